"""Interview session state machine.

A session is created holding its full, fixed-length question list and moves
``NOT_STARTED -> IN_PROGRESS -> COMPLETED``. Every mutation is a
compare-and-swap on ``(id, current_question_index, status)`` inside one
transaction, serialized by a per-session lock. Grading runs after that
transaction commits, so a slow or failing AI call never holds the lock and
never loses the answer.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import func

from interview_guide.core.config import settings
from interview_guide.core.exceptions import (
    EmptyAnswer,
    GradingDeferred,
    IndexMismatch,
    InvalidQuestionCount,
    ResumeNotFound,
    SessionCompleted,
    SessionNotFound,
)
from interview_guide.core.locks import LockProvider
from interview_guide.models.interview import (
    InterviewQuestion,
    InterviewSession,
    SessionStatus,
)
from interview_guide.models.resume import Resume
from interview_guide.schemas.interview import (
    AnswerSubmitResult,
    InterviewSessionResponse,
    SessionStartResponse,
)
from interview_guide.services.ai.adapter import CapabilityAdapter
from interview_guide.services.converters import question_to_response, session_to_response
from interview_guide.services.session_logger import SessionLogger

logger = logging.getLogger(__name__)

NO_ANSWER_FEEDBACK = "No answer was given for this question."
DEFAULT_CATEGORY = "general"

COMPLETED = SessionStatus.COMPLETED.value


async def load_session(db: AsyncSession, session_id: str) -> Optional[InterviewSession]:
    """Fetch a session with its questions, bypassing any stale identity-map copy."""
    result = await db.execute(
        select(InterviewSession)
        .options(selectinload(InterviewSession.questions))
        .where(InterviewSession.id == session_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class InterviewSessionService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        adapter: CapabilityAdapter,
        locks: LockProvider,
    ):
        self.session_factory = session_factory
        self.adapter = adapter
        self.locks = locks

    async def _find_active(self, db: AsyncSession, resume_id: int) -> Optional[InterviewSession]:
        result = await db.execute(
            select(InterviewSession)
            .options(selectinload(InterviewSession.questions))
            .where(
                InterviewSession.resume_id == resume_id,
                InterviewSession.status != COMPLETED,
            )
            .order_by(InterviewSession.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_unfinished_session(self, resume_id: int) -> Optional[InterviewSessionResponse]:
        async with self.session_factory() as db:
            session = await self._find_active(db, resume_id)
            return session_to_response(session) if session else None

    async def get_session(self, session_id: str) -> InterviewSessionResponse:
        async with self.session_factory() as db:
            session = await load_session(db, session_id)
            if session is None:
                raise SessionNotFound()
            return session_to_response(session)

    async def create_or_resume_session(
        self,
        resume_text: Optional[str],
        question_count: Optional[int],
        resume_id: int,
    ) -> SessionStartResponse:
        """Return the unfinished session for ``resume_id`` or create a new one.

        Creation is all-or-nothing: if question generation fails nothing is
        persisted and ``GenerationFailed`` propagates.
        """
        count = settings.DEFAULT_QUESTION_COUNT if question_count is None else question_count
        if not settings.MIN_QUESTION_COUNT <= count <= settings.MAX_QUESTION_COUNT:
            raise InvalidQuestionCount(
                f"Question count must be between {settings.MIN_QUESTION_COUNT} "
                f"and {settings.MAX_QUESTION_COUNT}, got {count}")

        async with self.locks.hold(f"resume:{resume_id}"):
            async with self.session_factory() as db:
                resume = await db.get(Resume, resume_id)
                if resume is None:
                    raise ResumeNotFound()

                active = await self._find_active(db, resume_id)
                if active is not None:
                    logger.info(
                        f"Resuming session {active.id} for resume {resume_id} "
                        f"at question {active.current_question_index}")
                    return SessionStartResponse(
                        session=session_to_response(active), resumed=True)

                seed_text = resume_text if resume_text and resume_text.strip() else resume.resume_text

            generated = await self.adapter.generate_questions(seed_text, count)

            session = InterviewSession(
                resume_id=resume_id,
                question_count=count,
                current_question_index=0,
                status=SessionStatus.NOT_STARTED.value,
            )
            session.questions = [
                InterviewQuestion(
                    question_index=index,
                    question=item.question.strip(),
                    category=(item.category or DEFAULT_CATEGORY).strip().lower() or DEFAULT_CATEGORY,
                )
                for index, item in enumerate(generated)
            ]

            async with self.session_factory() as db:
                # The resume may have been deleted while questions were generated
                if await db.get(Resume, resume_id) is None:
                    raise ResumeNotFound()
                db.add(session)
                try:
                    await db.commit()
                except IntegrityError:
                    # Partial unique index: another worker created one first
                    await db.rollback()
                    active = await self._find_active(db, resume_id)
                    if active is None:
                        if await db.get(Resume, resume_id) is None:
                            raise ResumeNotFound()
                        raise
                    return SessionStartResponse(
                        session=session_to_response(active), resumed=True)

                created = await load_session(db, session.id)

        SessionLogger(created.id).log_created(resume_id, count)
        logger.info(
            f"Created session {created.id} for resume {resume_id} with {count} questions")
        return SessionStartResponse(session=session_to_response(created), resumed=False)

    async def _rejection(self, db: AsyncSession, session_id: str, question_index: int) -> Exception:
        result = await db.execute(
            select(InterviewSession.status, InterviewSession.current_question_index)
            .where(InterviewSession.id == session_id)
        )
        row = result.one_or_none()
        if row is None:
            return SessionNotFound()
        if row.status == COMPLETED:
            return SessionCompleted()
        return IndexMismatch(expected=row.current_question_index, received=question_index)

    async def submit_answer(
        self, session_id: str, question_index: int, answer: str
    ) -> AnswerSubmitResult:
        """Record the answer to the current question, advance, then grade it.

        Raises:
            SessionNotFound, SessionCompleted, IndexMismatch, EmptyAnswer
        """
        if not answer or not answer.strip():
            raise EmptyAnswer()
        answer = answer.strip()

        async with self.locks.hold(f"session:{session_id}"):
            async with self.session_factory() as db:
                session = await load_session(db, session_id)
                if session is None:
                    raise SessionNotFound()
                if session.is_completed:
                    raise SessionCompleted()

                cursor = session.current_question_index
                if question_index != cursor:
                    raise IndexMismatch(expected=cursor, received=question_index)

                next_index = cursor + 1
                finished = next_index >= session.question_count
                status = COMPLETED if finished else SessionStatus.IN_PROGRESS.value

                values = {"current_question_index": next_index, "status": status}
                if finished:
                    values["completed_at"] = func.now()

                advanced = await db.execute(
                    update(InterviewSession)
                    .where(
                        InterviewSession.id == session_id,
                        InterviewSession.current_question_index == cursor,
                        InterviewSession.status != COMPLETED,
                    )
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                recorded = None
                if advanced.rowcount == 1:
                    recorded = await db.execute(
                        update(InterviewQuestion)
                        .where(
                            InterviewQuestion.session_id == session_id,
                            InterviewQuestion.question_index == cursor,
                            InterviewQuestion.user_answer.is_(None),
                        )
                        .values(user_answer=answer, answered_at=func.now())
                        .execution_options(synchronize_session=False)
                    )
                if recorded is None or recorded.rowcount != 1:
                    await db.rollback()
                    raise await self._rejection(db, session_id, question_index)
                await db.commit()

                current = session.questions[cursor]
                question_text, category = current.question, current.category
                next_question = None if finished else question_to_response(
                    session.questions[next_index])

        session_log = SessionLogger(session_id)
        session_log.log_answer(cursor, answer, status)
        if finished:
            session_log.log_completed(early=False)
            logger.info(f"Session {session_id} completed after {next_index} answers")

        graded = await self._grade(session_id, cursor, question_text, category, answer)

        return AnswerSubmitResult(
            graded=graded,
            has_next_question=not finished,
            next_question=next_question,
            status=status,
            current_question_index=next_index,
        )

    async def _grade(
        self, session_id: str, question_index: int, question: str, category: str, answer: str
    ) -> bool:
        session_log = SessionLogger(session_id)
        try:
            grade = await self.adapter.grade_answer(question, category, answer)
        except GradingDeferred as e:
            logger.warning(
                f"Grading deferred for session {session_id} question {question_index}: {e}")
            session_log.log_grading(question_index, None, deferred=True)
            return False

        async with self.session_factory() as db:
            await db.execute(
                update(InterviewQuestion)
                .where(
                    InterviewQuestion.session_id == session_id,
                    InterviewQuestion.question_index == question_index,
                    InterviewQuestion.score.is_(None),
                )
                .values(score=grade.score, feedback=grade.feedback)
                .execution_options(synchronize_session=False)
            )
            await db.commit()

        session_log.log_grading(question_index, grade.score)
        return True

    async def complete_early(self, session_id: str) -> InterviewSessionResponse:
        """Finish a session now; unanswered questions are scored 0."""
        async with self.locks.hold(f"session:{session_id}"):
            async with self.session_factory() as db:
                session = await load_session(db, session_id)
                if session is None:
                    raise SessionNotFound()
                if session.is_completed:
                    raise SessionCompleted()

                cursor = session.current_question_index
                closed = await db.execute(
                    update(InterviewSession)
                    .where(
                        InterviewSession.id == session_id,
                        InterviewSession.status != COMPLETED,
                    )
                    .values(status=COMPLETED, completed_at=func.now())
                    .execution_options(synchronize_session=False)
                )
                if closed.rowcount != 1:
                    await db.rollback()
                    raise SessionCompleted()

                zeroed = await db.execute(
                    update(InterviewQuestion)
                    .where(
                        InterviewQuestion.session_id == session_id,
                        InterviewQuestion.question_index >= cursor,
                        InterviewQuestion.user_answer.is_(None),
                    )
                    .values(score=0, feedback=NO_ANSWER_FEEDBACK)
                    .execution_options(synchronize_session=False)
                )
                await db.commit()

                completed = await load_session(db, session_id)

        SessionLogger(session_id).log_completed(early=True, zero_filled=zeroed.rowcount)
        logger.info(
            f"Session {session_id} completed early at question {cursor}, "
            f"{zeroed.rowcount} question(s) scored 0")
        return session_to_response(completed)
