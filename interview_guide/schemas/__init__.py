"""Pydantic schemas for request/response validation."""

from interview_guide.schemas.interview import (
    AnswerSubmit,
    AnswerSubmitResult,
    InterviewQuestionResponse,
    InterviewReportResponse,
    InterviewSessionResponse,
    InterviewSessionSummary,
    SessionCreate,
    SessionStartResponse,
)
from interview_guide.schemas.resume import (
    ResumeAnalysis,
    ResumeAnalysisResponse,
    ResumeDetail,
    ResumeIntakeResult,
    ResumeListItem,
    ResumeResponse,
)

__all__ = [
    "AnswerSubmit",
    "AnswerSubmitResult",
    "InterviewQuestionResponse",
    "InterviewReportResponse",
    "InterviewSessionResponse",
    "InterviewSessionSummary",
    "SessionCreate",
    "SessionStartResponse",
    "ResumeAnalysis",
    "ResumeAnalysisResponse",
    "ResumeDetail",
    "ResumeIntakeResult",
    "ResumeListItem",
    "ResumeResponse",
]
