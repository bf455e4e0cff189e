"""Retrying boundary between the engine and the grading capability.

Every call goes through a ``RetryPolicy``. When attempts run out the failure
surfaces as the engine error that matches the call site.
"""

import asyncio
import logging
from typing import Awaitable, Iterable, Optional, TypeVar

from interview_guide.core.exceptions import (
    GenerationFailed,
    GradingDeferred,
    SynthesisFailed,
)
from interview_guide.schemas.resume import ResumeAnalysis
from interview_guide.services.ai.capability import (
    AnswerGrade,
    GeneratedQuestion,
    GradingCapability,
    ReferenceAnswerDraft,
    ReportSynthesis,
)
from interview_guide.services.ai.retry import RetryExhausted, RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_or_cancel(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Like ``asyncio.gather`` but cancels the remaining calls on the first failure."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class CapabilityAdapter:
    """Wraps a ``GradingCapability`` with retries and typed failures.

    ``grading_policy`` applies to per-answer grading only, so the submission
    path can use a tighter budget than report synthesis.
    """

    def __init__(
        self,
        capability: GradingCapability,
        policy: Optional[RetryPolicy] = None,
        grading_policy: Optional[RetryPolicy] = None,
    ):
        self.capability = capability
        self.policy = policy or RetryPolicy.from_settings()
        self.grading_policy = grading_policy or self.policy

    async def analyze_resume(self, text: str) -> ResumeAnalysis:
        try:
            return await self.policy.run(
                lambda: self.capability.analyze_resume(text), "Resume analysis")
        except RetryExhausted as e:
            logger.error(f"Resume analysis exhausted retries: {e}")
            raise GenerationFailed("Resume analysis failed, please retry") from e

    async def generate_questions(self, text: str, count: int) -> list[GeneratedQuestion]:
        async def generate() -> list[GeneratedQuestion]:
            questions = await self.capability.generate_questions(text, count)
            usable = [q for q in questions if q.question and q.question.strip()]
            if len(usable) < count:
                # Short lists are retried like any other failure
                raise ValueError(
                    f"Expected {count} questions, got {len(usable)}")
            return usable[:count]

        try:
            return await self.policy.run(generate, "Question generation")
        except RetryExhausted as e:
            logger.error(f"Question generation exhausted retries: {e}")
            raise GenerationFailed(
                f"Could not generate {count} interview questions, please retry") from e

    async def grade_answer(self, question: str, category: str, answer: str) -> AnswerGrade:
        try:
            return await self.grading_policy.run(
                lambda: self.capability.grade_answer(question, category, answer),
                "Answer grading",
            )
        except RetryExhausted as e:
            raise GradingDeferred(str(e)) from e

    async def synthesize_report(self, entries: list[dict]) -> ReportSynthesis:
        try:
            return await self.policy.run(
                lambda: self.capability.synthesize_report(entries), "Report synthesis")
        except RetryExhausted as e:
            logger.error(f"Report synthesis exhausted retries: {e}")
            raise SynthesisFailed() from e

    async def reference_answers(
        self, questions: list[tuple[str, str]]
    ) -> list[ReferenceAnswerDraft]:
        """Fetch one reference answer per ``(question, category)``, concurrently."""

        async def one(question: str, category: str) -> ReferenceAnswerDraft:
            return await self.policy.run(
                lambda: self.capability.reference_answer(question, category),
                "Reference answer",
            )

        try:
            return await gather_or_cancel(one(q, c) for q, c in questions)
        except RetryExhausted as e:
            logger.error(f"Reference answer generation exhausted retries: {e}")
            raise SynthesisFailed() from e
