"""Database models."""

from interview_guide.models.resume import Resume, ResumeAnalysisRecord
from interview_guide.models.interview import (
    InterviewSession,
    InterviewQuestion,
    InterviewReport,
    SessionStatus,
)

__all__ = [
    "Resume",
    "ResumeAnalysisRecord",
    "InterviewSession",
    "InterviewQuestion",
    "InterviewReport",
    "SessionStatus",
]
