"""Shared fixtures: an isolated SQLite database, a fake AI capability and the engine services."""

import asyncio
import os
import tempfile
from collections import Counter

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("SESSION_LOG_ENABLED", "false")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="interview_guide_logs_"))

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import interview_guide.models  # noqa: F401
from interview_guide.core.database import Base
from interview_guide.core.locks import MemoryLockProvider
from interview_guide.schemas.resume import ResumeAnalysis
from interview_guide.services.ai import (
    AnswerGrade,
    CapabilityAdapter,
    GeneratedQuestion,
    ReferenceAnswerDraft,
    ReportSynthesis,
    RetryPolicy,
)
from interview_guide.services.interview_session import InterviewSessionService
from interview_guide.services.report_synthesizer import ReportSynthesizer
from interview_guide.services.resume_intake import ResumeIntakeService

RESUME_TEXT = """Jane Doe
Backend Engineer

Experience
  Senior Engineer at Acme (2020-2024): built FastAPI services on PostgreSQL.
Projects
  Distributed task queue handling millions of jobs per day.
"""

CATEGORIES = ["technical", "project", "behavioral"]


class FakeCapability:
    """Deterministic stand-in for the OpenAI capability that counts its calls."""

    def __init__(self):
        self.calls = Counter()
        self.analysis_failures = 0
        self.grade_failures = 0
        self.synthesis_failures = 0
        self.short_questions = False
        self.generation_delay = 0.0
        self.synthesis_delay = 0.0
        self.reference_delay = 0.0
        self.failing_answers: set[str] = set()
        self.failing_references: set[str] = set()
        self.before_generate = None
        self.scores: dict[str, int] = {}
        self.default_score = 80

    async def analyze_resume(self, text: str) -> ResumeAnalysis:
        self.calls["analyze_resume"] += 1
        if self.analysis_failures:
            self.analysis_failures -= 1
            raise RuntimeError("analysis backend unavailable")
        return ResumeAnalysis(
            overall_score=72,
            summary="Solid backend profile.",
            strengths=["Clear FastAPI experience"],
            suggestions=["Quantify the impact of projects"],
            sections={"experience": "Well structured"},
        )

    async def generate_questions(self, text: str, count: int) -> list[GeneratedQuestion]:
        self.calls["generate_questions"] += 1
        if self.before_generate is not None:
            await self.before_generate()
        if self.generation_delay:
            await asyncio.sleep(self.generation_delay)
        produced = count - 1 if self.short_questions else count
        return [
            GeneratedQuestion(
                question=f"Question {i + 1}: tell me about your work",
                category=CATEGORIES[i % len(CATEGORIES)],
            )
            for i in range(produced)
        ]

    async def grade_answer(self, question: str, category: str, answer: str) -> AnswerGrade:
        self.calls["grade_answer"] += 1
        if self.grade_failures:
            self.grade_failures -= 1
            raise RuntimeError("grading backend unavailable")
        if answer in self.failing_answers:
            raise RuntimeError(f"cannot grade {answer!r}")
        return AnswerGrade(
            score=self.scores.get(answer, self.default_score),
            feedback=f"Feedback on '{answer}'",
        )

    async def synthesize_report(self, entries: list[dict]) -> ReportSynthesis:
        self.calls["synthesize_report"] += 1
        if self.synthesis_delay:
            await asyncio.sleep(self.synthesis_delay)
        if self.synthesis_failures:
            self.synthesis_failures -= 1
            raise RuntimeError("synthesis backend unavailable")
        return ReportSynthesis(
            overall_feedback="A solid interview overall.",
            strengths=["Communicates clearly"],
            improvements=["Go deeper on trade-offs"],
        )

    async def reference_answer(self, question: str, category: str) -> ReferenceAnswerDraft:
        self.calls["reference_answer"] += 1
        if question in self.failing_references:
            raise RuntimeError("reference backend unavailable")
        if self.reference_delay:
            await asyncio.sleep(self.reference_delay)
        self.calls["reference_answer_done"] += 1
        return ReferenceAnswerDraft(
            reference_answer=f"Model answer for: {question}",
            key_points=["Context", "Action", "Result"],
        )


class FakeStorage:
    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.puts = 0
        self.deleted: list[str] = []
        self.fail_delete = False
        self.put_delay = 0.0

    async def put(self, data: bytes, filename=None) -> str:
        self.puts += 1
        key = f"resumes/{self.puts}_{filename}"
        if self.put_delay:
            await asyncio.sleep(self.put_delay)
        self.blobs[key] = data
        return key

    def url(self, key: str) -> str:
        return f"http://files.test/{key}"

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise OSError("storage offline")
        self.deleted.append(key)
        self.blobs.pop(key, None)


async def no_sleep(_delay: float) -> None:
    return None


def make_policy(max_attempts: int = 2) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=max_attempts, base_delay=0.0, attempt_timeout=None, sleep=no_sleep)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'interview_guide_test.sqlite3'}"


@pytest.fixture
async def session_factory(database_url):
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture
def capability():
    return FakeCapability()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def adapter(capability):
    return CapabilityAdapter(capability, policy=make_policy())


@pytest.fixture
def locks():
    return MemoryLockProvider()


@pytest.fixture
def intake_service(session_factory, storage, adapter, locks):
    return ResumeIntakeService(session_factory, storage, adapter, locks)


@pytest.fixture
def session_service(session_factory, adapter, locks):
    return InterviewSessionService(session_factory, adapter, locks)


@pytest.fixture
def report_synthesizer(session_factory, adapter, locks):
    return ReportSynthesizer(session_factory, adapter, locks)


@pytest.fixture
async def resume(intake_service):
    result = await intake_service.intake(RESUME_TEXT.encode("utf-8"), "jane_doe.txt", "text/plain")
    return result.resume
