"""Interview session endpoints."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response

from interview_guide.schemas.interview import (
    AnswerSubmit,
    AnswerSubmitResult,
    InterviewReportResponse,
    InterviewSessionResponse,
    SessionCreate,
    SessionStartResponse,
)
from interview_guide.services.interview_session import InterviewSessionService
from interview_guide.services.report_synthesizer import ReportSynthesizer
from interview_guide.api.v1.dependencies import get_report_synthesizer, get_session_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/sessions", response_model=SessionStartResponse)
async def create_session(
    data: SessionCreate,
    service: InterviewSessionService = Depends(get_session_service),
):
    """Create an interview session, or resume the unfinished one for this resume."""
    result = await service.create_or_resume_session(
        resume_text=data.resume_text,
        question_count=data.question_count,
        resume_id=data.resume_id,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.resumed else status.HTTP_201_CREATED,
        content=result.model_dump(),
    )


@router.get("/sessions/unfinished/{resume_id}", response_model=Optional[InterviewSessionResponse])
async def find_unfinished_session(
    resume_id: int,
    service: InterviewSessionService = Depends(get_session_service),
):
    """Return the unfinished session for a resume, or null."""
    return await service.find_unfinished_session(resume_id)


@router.get("/sessions/{session_id}", response_model=InterviewSessionResponse)
async def get_session(
    session_id: str,
    service: InterviewSessionService = Depends(get_session_service),
):
    """Get a session with all questions and recorded answers."""
    return await service.get_session(session_id)


@router.post("/sessions/{session_id}/answers", response_model=AnswerSubmitResult)
async def submit_answer(
    session_id: str,
    data: AnswerSubmit,
    service: InterviewSessionService = Depends(get_session_service),
):
    """Answer the current question and receive the next one."""
    return await service.submit_answer(session_id, data.question_index, data.answer)


@router.post("/sessions/{session_id}/complete", response_model=InterviewSessionResponse)
async def complete_session(
    session_id: str,
    service: InterviewSessionService = Depends(get_session_service),
):
    """Finish the interview early; unanswered questions score 0."""
    return await service.complete_early(session_id)


@router.get("/sessions/{session_id}/report", response_model=InterviewReportResponse)
async def get_report(
    session_id: str,
    synthesizer: ReportSynthesizer = Depends(get_report_synthesizer),
):
    """Get the report of a completed session, generating it on first request."""
    return await synthesizer.get_report(session_id)


@router.get("/sessions/{session_id}/report/export")
async def export_report(
    session_id: str,
    synthesizer: ReportSynthesizer = Depends(get_report_synthesizer),
):
    """Download the report of a completed session as a PDF."""
    content = await synthesizer.export_pdf(session_id)
    logger.info(f"Exported report for session {session_id}, {len(content)} bytes")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="interview_report_{session_id}.pdf"'},
    )
