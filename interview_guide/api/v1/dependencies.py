"""Service wiring for API endpoints."""

from functools import lru_cache

from interview_guide.core.database import AsyncSessionLocal
from interview_guide.core.locks import get_lock_provider
from interview_guide.services.ai import CapabilityAdapter, OpenAICapability, RetryPolicy
from interview_guide.services.interview_session import InterviewSessionService
from interview_guide.services.report_synthesizer import ReportSynthesizer
from interview_guide.services.resume_intake import ResumeIntakeService
from interview_guide.services.storage import LocalBlobStorage


@lru_cache
def get_capability_adapter() -> CapabilityAdapter:
    return CapabilityAdapter(OpenAICapability(), policy=RetryPolicy.from_settings())


def get_resume_intake_service() -> ResumeIntakeService:
    return ResumeIntakeService(
        session_factory=AsyncSessionLocal,
        storage=LocalBlobStorage(),
        adapter=get_capability_adapter(),
        locks=get_lock_provider(),
    )


def get_session_service() -> InterviewSessionService:
    return InterviewSessionService(
        session_factory=AsyncSessionLocal,
        adapter=get_capability_adapter(),
        locks=get_lock_provider(),
    )


def get_report_synthesizer() -> ReportSynthesizer:
    return ReportSynthesizer(
        session_factory=AsyncSessionLocal,
        adapter=get_capability_adapter(),
        locks=get_lock_provider(),
    )
