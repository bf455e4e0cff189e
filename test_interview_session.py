"""Tests for the interview session state machine."""

import asyncio

import pytest
from sqlalchemy import delete, func, select

from interview_guide.core.exceptions import (
    EmptyAnswer,
    GenerationFailed,
    IndexMismatch,
    InvalidQuestionCount,
    ResumeNotFound,
    SessionCompleted,
    SessionNotFound,
)
from interview_guide.models import InterviewSession, Resume, ResumeAnalysisRecord
from interview_guide.services.interview_session import NO_ANSWER_FEEDBACK


async def start(session_service, resume, count=3):
    result = await session_service.create_or_resume_session(None, count, resume.id)
    return result.session


async def count_sessions(session_factory) -> int:
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(InterviewSession))).scalar_one()


async def test_create_returns_fresh_session(session_service, resume, capability):
    result = await session_service.create_or_resume_session("Custom seed text", 4, resume.id)

    assert result.resumed is False
    session = result.session
    assert session.status == "NOT_STARTED"
    assert session.current_question_index == 0
    assert session.question_count == 4
    assert [q.question_index for q in session.questions] == [0, 1, 2, 3]
    assert [q.category for q in session.questions] == ["technical", "project", "behavioral", "technical"]
    assert all(q.user_answer is None for q in session.questions)
    assert session.has_progress is False
    assert capability.calls["generate_questions"] == 1


async def test_second_create_resumes_unfinished_session(session_service, resume, capability):
    first = await session_service.create_or_resume_session(None, 3, resume.id)
    await session_service.submit_answer(first.session.session_id, 0, "My answer")

    second = await session_service.create_or_resume_session(None, 5, resume.id)

    assert second.resumed is True
    assert second.session.session_id == first.session.session_id
    assert second.session.question_count == 3
    assert second.session.current_question_index == 1
    assert second.session.has_progress is True
    assert capability.calls["generate_questions"] == 1


async def test_concurrent_create_yields_same_session(session_service, resume, capability, session_factory):
    capability.generation_delay = 0.05

    first, second = await asyncio.gather(
        session_service.create_or_resume_session(None, 3, resume.id),
        session_service.create_or_resume_session(None, 3, resume.id),
    )

    assert first.session.session_id == second.session.session_id
    assert sorted([first.resumed, second.resumed]) == [False, True]
    assert capability.calls["generate_questions"] == 1
    async with session_factory() as db:
        count = (await db.execute(select(func.count()).select_from(InterviewSession))).scalar_one()
    assert count == 1


async def test_generation_failure_persists_nothing(session_service, resume, capability, session_factory):
    capability.short_questions = True

    with pytest.raises(GenerationFailed):
        await session_service.create_or_resume_session(None, 3, resume.id)

    async with session_factory() as db:
        count = (await db.execute(select(func.count()).select_from(InterviewSession))).scalar_one()
    assert count == 0
    assert await session_service.find_unfinished_session(resume.id) is None


async def test_create_validates_inputs(session_service, resume):
    with pytest.raises(InvalidQuestionCount):
        await session_service.create_or_resume_session(None, 500, resume.id)
    with pytest.raises(InvalidQuestionCount):
        await session_service.create_or_resume_session(None, 0, resume.id)
    with pytest.raises(ResumeNotFound):
        await session_service.create_or_resume_session("text", 3, 12345)


async def test_find_unfinished_session(session_service, resume):
    assert await session_service.find_unfinished_session(resume.id) is None

    session = await start(session_service, resume)
    found = await session_service.find_unfinished_session(resume.id)

    assert found.session_id == session.session_id


async def test_index_mismatch_is_rejected(session_service, resume):
    session = await start(session_service, resume)

    with pytest.raises(IndexMismatch) as exc_info:
        await session_service.submit_answer(session.session_id, 2, "Too early")

    assert exc_info.value.expected == 0
    assert exc_info.value.received == 2
    current = await session_service.get_session(session.session_id)
    assert current.current_question_index == 0
    assert current.questions[2].user_answer is None


async def test_submission_advances_cursor(session_service, resume, capability):
    capability.scores["Solid answer"] = 90
    session = await start(session_service, resume)

    result = await session_service.submit_answer(session.session_id, 0, "  Solid answer  ")

    assert result.graded is True
    assert result.has_next_question is True
    assert result.next_question.question_index == 1
    assert result.status == "IN_PROGRESS"
    assert result.current_question_index == 1

    current = await session_service.get_session(session.session_id)
    assert current.status == "IN_PROGRESS"
    assert current.questions[0].user_answer == "Solid answer"
    assert current.questions[0].score == 90
    assert current.questions[0].feedback == "Feedback on 'Solid answer'"


async def test_duplicate_submission_does_not_overwrite_answer(session_service, resume):
    session = await start(session_service, resume)
    await session_service.submit_answer(session.session_id, 0, "First")

    with pytest.raises(IndexMismatch):
        await session_service.submit_answer(session.session_id, 0, "Retry")

    current = await session_service.get_session(session.session_id)
    assert current.questions[0].user_answer == "First"


async def test_concurrent_submissions_for_same_index(session_service, resume):
    session = await start(session_service, resume)

    results = await asyncio.gather(
        session_service.submit_answer(session.session_id, 0, "Tab one"),
        session_service.submit_answer(session.session_id, 0, "Tab two"),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], IndexMismatch)

    current = await session_service.get_session(session.session_id)
    assert current.current_question_index == 1
    assert current.questions[0].user_answer in {"Tab one", "Tab two"}


async def test_session_completes_when_questions_run_out(session_service, resume):
    session = await start(session_service, resume, count=3)

    responses = [
        await session_service.submit_answer(session.session_id, i, f"Answer {i}")
        for i in range(3)
    ]

    assert [r.has_next_question for r in responses] == [True, True, False]
    assert responses[-1].next_question is None
    assert responses[-1].status == "COMPLETED"

    current = await session_service.get_session(session.session_id)
    assert current.status == "COMPLETED"
    assert current.current_question_index == 3
    assert current.completed_at is not None

    with pytest.raises(SessionCompleted):
        await session_service.submit_answer(session.session_id, 3, "Extra")


async def test_completed_session_allows_a_new_one(session_service, resume):
    session = await start(session_service, resume, count=1)
    await session_service.submit_answer(session.session_id, 0, "Only answer")

    assert await session_service.find_unfinished_session(resume.id) is None
    result = await session_service.create_or_resume_session(None, 2, resume.id)

    assert result.resumed is False
    assert result.session.session_id != session.session_id


async def test_grading_failure_keeps_answer(session_service, resume, capability):
    capability.grade_failures = 2
    session = await start(session_service, resume)

    result = await session_service.submit_answer(session.session_id, 0, "Answer kept")

    assert result.graded is False
    assert result.has_next_question is True
    current = await session_service.get_session(session.session_id)
    assert current.questions[0].user_answer == "Answer kept"
    assert current.questions[0].score is None
    assert current.current_question_index == 1


async def test_empty_answer_is_rejected(session_service, resume):
    session = await start(session_service, resume)

    with pytest.raises(EmptyAnswer):
        await session_service.submit_answer(session.session_id, 0, "   ")


async def test_unknown_session(session_service):
    with pytest.raises(SessionNotFound):
        await session_service.submit_answer("missing", 0, "Answer")
    with pytest.raises(SessionNotFound):
        await session_service.complete_early("missing")
    with pytest.raises(SessionNotFound):
        await session_service.get_session("missing")


async def test_complete_early_zero_fills_remaining_questions(session_service, resume):
    session = await start(session_service, resume, count=8)
    for i in range(3):
        await session_service.submit_answer(session.session_id, i, f"Answer {i}")

    completed = await session_service.complete_early(session.session_id)

    assert completed.status == "COMPLETED"
    assert completed.current_question_index == 3
    for question in completed.questions[:3]:
        assert question.user_answer == f"Answer {question.question_index}"
        assert question.score == 80
    for question in completed.questions[3:]:
        assert question.user_answer is None
        assert question.score == 0
        assert question.feedback == NO_ANSWER_FEEDBACK

    with pytest.raises(SessionCompleted):
        await session_service.complete_early(session.session_id)
    with pytest.raises(SessionCompleted):
        await session_service.submit_answer(session.session_id, 3, "Late answer")


async def test_default_question_count_applies_when_omitted(session_service, resume):
    result = await session_service.create_or_resume_session(None, None, resume.id)

    assert result.session.question_count == 8


async def test_delete_waits_for_session_creation(
    session_service, intake_service, resume, capability, session_factory
):
    capability.generation_delay = 0.2

    async def delete_soon():
        await asyncio.sleep(0.05)
        await intake_service.delete_resume(resume.id)

    created, _ = await asyncio.gather(
        session_service.create_or_resume_session(None, 3, resume.id),
        delete_soon(),
    )

    assert created.resumed is False
    assert await count_sessions(session_factory) == 0
    async with session_factory() as db:
        assert await db.get(Resume, resume.id) is None


async def test_create_fails_when_resume_vanishes_during_generation(
    session_service, resume, capability, session_factory
):
    async def remove_resume():
        async with session_factory() as db:
            await db.execute(
                delete(ResumeAnalysisRecord).where(ResumeAnalysisRecord.resume_id == resume.id))
            await db.execute(delete(Resume).where(Resume.id == resume.id))
            await db.commit()

    capability.before_generate = remove_resume

    with pytest.raises(ResumeNotFound):
        await session_service.create_or_resume_session(None, 3, resume.id)

    assert await count_sessions(session_factory) == 0
