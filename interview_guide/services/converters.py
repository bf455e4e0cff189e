"""Conversions from ORM models to response schemas."""

from datetime import datetime
from typing import Optional

from interview_guide.models.interview import (
    InterviewQuestion,
    InterviewReport,
    InterviewSession,
)
from interview_guide.models.resume import Resume, ResumeAnalysisRecord
from interview_guide.schemas.interview import (
    CategoryScore,
    InterviewQuestionResponse,
    InterviewReportResponse,
    InterviewSessionResponse,
    InterviewSessionSummary,
    QuestionDetail,
    ReferenceAnswer,
)
from interview_guide.schemas.resume import ResumeAnalysisResponse, ResumeResponse


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def resume_to_response(resume: Resume) -> ResumeResponse:
    return ResumeResponse(
        id=resume.id,
        file_name=resume.file_name,
        file_size=resume.file_size,
        content_type=resume.content_type,
        fingerprint=resume.fingerprint,
        storage_key=resume.storage_key,
        storage_url=resume.storage_url,
        uploaded_at=_iso(resume.uploaded_at),
    )


def analysis_to_response(analysis: ResumeAnalysisRecord) -> ResumeAnalysisResponse:
    return ResumeAnalysisResponse(
        id=analysis.id,
        resume_id=analysis.resume_id,
        overall_score=analysis.overall_score,
        summary=analysis.summary,
        strengths=analysis.strengths or [],
        suggestions=analysis.suggestions or [],
        sections=analysis.sections or {},
        created_at=_iso(analysis.created_at),
    )


def question_to_response(question: InterviewQuestion) -> InterviewQuestionResponse:
    return InterviewQuestionResponse(
        question_index=question.question_index,
        question=question.question,
        category=question.category,
        user_answer=question.user_answer,
        score=question.score,
        feedback=question.feedback,
    )


def session_to_response(session: InterviewSession) -> InterviewSessionResponse:
    """Requires ``session.questions`` to be loaded."""
    return InterviewSessionResponse(
        session_id=session.id,
        resume_id=session.resume_id,
        status=session.status,
        question_count=session.question_count,
        current_question_index=session.current_question_index,
        questions=[question_to_response(q) for q in session.questions],
        created_at=_iso(session.created_at),
        completed_at=_iso(session.completed_at),
    )


def session_to_summary(session: InterviewSession) -> InterviewSessionSummary:
    """Requires ``session.report`` to be loaded."""
    return InterviewSessionSummary(
        session_id=session.id,
        status=session.status,
        question_count=session.question_count,
        current_question_index=session.current_question_index,
        overall_score=session.report.overall_score if session.report else None,
        created_at=_iso(session.created_at),
        completed_at=_iso(session.completed_at),
    )


def report_to_response(report: InterviewReport) -> InterviewReportResponse:
    return InterviewReportResponse(
        session_id=report.session_id,
        total_questions=report.total_questions,
        overall_score=report.overall_score,
        category_scores=[CategoryScore(**c) for c in report.category_scores],
        overall_feedback=report.overall_feedback,
        strengths=list(report.strengths),
        improvements=list(report.improvements),
        question_details=[QuestionDetail(**d) for d in report.question_details],
        reference_answers=[ReferenceAnswer(**r) for r in report.reference_answers],
        created_at=_iso(report.created_at),
    )
