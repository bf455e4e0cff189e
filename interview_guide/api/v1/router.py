"""Main API v1 router."""

from fastapi import APIRouter

from interview_guide.api.v1.endpoints import resumes, interviews

api_router = APIRouter()

api_router.include_router(resumes.router, prefix="/resumes", tags=["resumes"])
api_router.include_router(interviews.router, prefix="/interviews", tags=["interviews"])
