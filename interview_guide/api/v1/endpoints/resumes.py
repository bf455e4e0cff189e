"""Resume upload, listing and deletion endpoints."""

import logging
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile, File, status

from interview_guide.core.config import settings
from interview_guide.schemas.resume import ResumeDetail, ResumeIntakeResult, ResumeListItem
from interview_guide.services.resume_intake import ResumeIntakeService
from interview_guide.api.v1.dependencies import get_resume_intake_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/upload", response_model=ResumeIntakeResult)
async def upload_resume(
    file: Annotated[UploadFile, File(...)],
    response: Response,
    service: ResumeIntakeService = Depends(get_resume_intake_service),
):
    """Upload a resume (PDF or plain text) and get its analysis.

    Re-uploading content that was seen before returns the stored analysis.
    """
    file_content = await file.read()
    if not file_content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )
    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size exceeds maximum allowed size of {settings.MAX_UPLOAD_SIZE} bytes",
        )

    logger.info(f"Resume upload received: {file.filename}, {len(file_content)} bytes")
    result = await service.intake(file_content, file.filename or "resume", file.content_type)
    response.status_code = status.HTTP_200_OK if result.duplicate else status.HTTP_201_CREATED
    return result


@router.get("/", response_model=list[ResumeListItem])
async def list_resumes(
    service: ResumeIntakeService = Depends(get_resume_intake_service),
):
    """List all resumes, newest first."""
    return await service.list_resumes()


@router.get("/{resume_id}", response_model=ResumeDetail)
async def get_resume(
    resume_id: int,
    service: ResumeIntakeService = Depends(get_resume_intake_service),
):
    """Get a resume with its latest analysis and interview sessions."""
    return await service.get_resume(resume_id)


@router.delete("/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resume(
    resume_id: int,
    service: ResumeIntakeService = Depends(get_resume_intake_service),
):
    """Delete a resume together with its analyses and interview sessions."""
    await service.delete_resume(resume_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
