"""AI capability services: the OpenAI capability, retry policy and adapter."""

from interview_guide.services.ai.adapter import CapabilityAdapter
from interview_guide.services.ai.capability import (
    AnswerGrade,
    GeneratedQuestion,
    GradingCapability,
    OpenAICapability,
    ReferenceAnswerDraft,
    ReportSynthesis,
)
from interview_guide.services.ai.retry import RetryExhausted, RetryPolicy

__all__ = [
    "CapabilityAdapter",
    "AnswerGrade",
    "GeneratedQuestion",
    "GradingCapability",
    "OpenAICapability",
    "ReferenceAnswerDraft",
    "ReportSynthesis",
    "RetryExhausted",
    "RetryPolicy",
]
