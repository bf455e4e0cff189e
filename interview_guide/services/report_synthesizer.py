"""Report synthesis for completed interview sessions."""

import asyncio
import logging
from statistics import fmean
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from interview_guide.core.exceptions import (
    GradingDeferred,
    SessionNotCompleted,
    SessionNotFound,
    SynthesisFailed,
)
from interview_guide.core.locks import LockProvider
from interview_guide.models.interview import InterviewQuestion, InterviewReport
from interview_guide.schemas.interview import InterviewReportResponse
from interview_guide.services.ai.adapter import CapabilityAdapter
from interview_guide.services.ai.capability import AnswerGrade
from interview_guide.services.converters import report_to_response
from interview_guide.services.report_export import render_report_pdf
from interview_guide.services.interview_session import NO_ANSWER_FEEDBACK, load_session
from interview_guide.services.session_logger import SessionLogger

logger = logging.getLogger(__name__)


def category_scores(entries: list[dict]) -> list[dict]:
    """Mean score per category, in order of first appearance."""
    grouped: dict[str, list[int]] = {}
    for entry in entries:
        grouped.setdefault(entry["category"], []).append(entry["score"])
    return [
        {"category": category, "score": round(fmean(scores), 1), "question_count": len(scores)}
        for category, scores in grouped.items()
    ]


class ReportSynthesizer:
    """Builds, persists and caches the report of a completed session.

    Synthesis is single-flighted per session: concurrent requests wait on the
    same lock and the second one finds the cached report.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        adapter: CapabilityAdapter,
        locks: LockProvider,
    ):
        self.session_factory = session_factory
        self.adapter = adapter
        self.locks = locks

    async def _cached(self, db: AsyncSession, session_id: str) -> Optional[InterviewReport]:
        result = await db.execute(
            select(InterviewReport)
            .where(InterviewReport.session_id == session_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_report(self, session_id: str) -> InterviewReportResponse:
        """Return the session report, generating it on first request.

        Raises:
            SessionNotFound, SessionNotCompleted
            SynthesisFailed: the AI service failed; the session stays completed
                and the call can simply be retried
        """
        async with self.session_factory() as db:
            report = await self._cached(db, session_id)
            if report is not None:
                return report_to_response(report)

        async with self.locks.hold(f"report:{session_id}"):
            async with self.session_factory() as db:
                report = await self._cached(db, session_id)
                if report is not None:
                    return report_to_response(report)

                session = await load_session(db, session_id)
                if session is None:
                    raise SessionNotFound()
                if not session.is_completed:
                    raise SessionNotCompleted()

            session_log = SessionLogger(session_id)
            try:
                await self._grade_pending(session_id, session.questions)
                entries = await self._entries(session_id)
                synthesis = await self.adapter.synthesize_report(entries)
                references = await self.adapter.reference_answers(
                    [(e["question"], e["category"]) for e in entries])
            except SynthesisFailed as e:
                logger.error(f"Report synthesis failed for session {session_id}: {e}")
                session_log.log_error("REPORT", e)
                raise

            overall_score = round(fmean(e["score"] for e in entries), 1) if entries else 0.0
            report = InterviewReport(
                session_id=session_id,
                total_questions=len(entries),
                overall_score=overall_score,
                category_scores=category_scores(entries),
                overall_feedback=synthesis.overall_feedback,
                strengths=list(synthesis.strengths),
                improvements=list(synthesis.improvements),
                question_details=entries,
                reference_answers=[
                    {
                        "question_index": entry["question_index"],
                        "question": entry["question"],
                        "reference_answer": ref.reference_answer,
                        "key_points": list(ref.key_points),
                    }
                    for entry, ref in zip(entries, references)
                ],
            )

            async with self.session_factory() as db:
                db.add(report)
                try:
                    await db.commit()
                except IntegrityError:
                    # Another worker persisted the report first
                    await db.rollback()
                stored = await self._cached(db, session_id)

        session_log.log_report(stored.overall_score)
        logger.info(
            f"Report created for session {session_id}, overall score {stored.overall_score}")
        return report_to_response(stored)

    async def export_pdf(self, session_id: str) -> bytes:
        """Render the session report as a PDF, generating the report if needed."""
        report = await self.get_report(session_id)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, render_report_pdf, report)

    async def _grade_pending(self, session_id: str, questions: list[InterviewQuestion]) -> None:
        """Grade answers whose grading was deferred at submission time.

        Grades that succeed are stored even when others stay deferred.
        """
        pending = [q for q in questions if q.user_answer and q.score is None]
        if not pending:
            return
        logger.info(
            f"Regrading {len(pending)} deferred answer(s) for session {session_id}")

        grades = await asyncio.gather(*(self._regrade(q) for q in pending))
        graded = [(q, g) for q, g in zip(pending, grades) if g is not None]

        async with self.session_factory() as db:
            for question, grade in graded:
                await db.execute(
                    update(InterviewQuestion)
                    .where(
                        InterviewQuestion.id == question.id,
                        InterviewQuestion.score.is_(None),
                    )
                    .values(score=grade.score, feedback=grade.feedback)
                    .execution_options(synchronize_session=False)
                )
            await db.commit()

        still_pending = len(pending) - len(graded)
        if still_pending:
            raise SynthesisFailed(
                f"{still_pending} answer(s) could not be graded yet, please retry")

    async def _regrade(self, question: InterviewQuestion) -> Optional[AnswerGrade]:
        try:
            return await self.adapter.grade_answer(
                question.question, question.category, question.user_answer)
        except GradingDeferred as e:
            logger.warning(f"Regrading question {question.question_index} deferred again: {e}")
            return None

    async def _entries(self, session_id: str) -> list[dict]:
        """Per-question tuples as stored, with unanswered questions counted as 0."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(InterviewQuestion)
                .where(InterviewQuestion.session_id == session_id)
                .order_by(InterviewQuestion.question_index)
                .execution_options(populate_existing=True)
            )
            questions = result.scalars().all()

        return [
            {
                "question_index": q.question_index,
                "question": q.question,
                "category": q.category,
                "user_answer": q.user_answer,
                "score": q.score if q.score is not None else 0,
                "feedback": q.feedback or (NO_ANSWER_FEEDBACK if not q.user_answer else ""),
            }
            for q in questions
        ]
