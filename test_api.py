"""HTTP-level tests for the resume and interview endpoints."""

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from conftest import RESUME_TEXT, FakeCapability, FakeStorage, make_policy
from interview_guide.api.v1.dependencies import (
    get_report_synthesizer,
    get_resume_intake_service,
    get_session_service,
)
from interview_guide.core.database import Base
from interview_guide.core.locks import MemoryLockProvider
from interview_guide.main import app
from interview_guide.services.ai import CapabilityAdapter
from interview_guide.services.interview_session import InterviewSessionService
from interview_guide.services.report_synthesizer import ReportSynthesizer
from interview_guide.services.resume_intake import ResumeIntakeService


@pytest.fixture
def client(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'api.sqlite3'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())

    session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    adapter = CapabilityAdapter(FakeCapability(), policy=make_policy())
    locks = MemoryLockProvider()
    storage = FakeStorage()

    app.dependency_overrides[get_resume_intake_service] = lambda: ResumeIntakeService(
        session_factory, storage, adapter, locks)
    app.dependency_overrides[get_session_service] = lambda: InterviewSessionService(
        session_factory, adapter, locks)
    app.dependency_overrides[get_report_synthesizer] = lambda: ReportSynthesizer(
        session_factory, adapter, locks)

    yield TestClient(app)

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


def upload(client, content=RESUME_TEXT, filename="jane.txt"):
    return client.post(
        "/api/v1/resumes/upload",
        files={"file": (filename, content.encode("utf-8"), "text/plain")},
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["lock_backend"] == "memory"


def test_upload_then_duplicate(client):
    first = upload(client)
    assert first.status_code == 201
    assert first.json()["duplicate"] is False
    assert first.json()["analysis"]["overall_score"] == 72

    second = upload(client, filename="jane-again.txt")
    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["resume"]["id"] == first.json()["resume"]["id"]


def test_empty_upload_is_rejected(client):
    response = client.post(
        "/api/v1/resumes/upload", files={"file": ("empty.txt", b"", "text/plain")})
    assert response.status_code == 400


def test_unextractable_upload(client):
    response = client.post(
        "/api/v1/resumes/upload", files={"file": ("scan.png", b"\x89PNG", "image/png")})
    assert response.status_code == 422
    assert response.json()["code"] == "EXTRACTION_FAILED"


def test_session_start_and_resume(client):
    resume_id = upload(client).json()["resume"]["id"]

    created = client.post(
        "/api/v1/interviews/sessions", json={"resume_id": resume_id, "question_count": 2})
    assert created.status_code == 201
    assert created.json()["resumed"] is False
    session_id = created.json()["session"]["session_id"]

    resumed = client.post(
        "/api/v1/interviews/sessions", json={"resume_id": resume_id, "question_count": 5})
    assert resumed.status_code == 200
    assert resumed.json()["resumed"] is True
    assert resumed.json()["session"]["session_id"] == session_id

    unfinished = client.get(f"/api/v1/interviews/sessions/unfinished/{resume_id}")
    assert unfinished.json()["session_id"] == session_id


def test_error_responses_carry_codes(client):
    resume_id = upload(client).json()["resume"]["id"]
    session_id = client.post(
        "/api/v1/interviews/sessions", json={"resume_id": resume_id, "question_count": 2}
    ).json()["session"]["session_id"]

    mismatch = client.post(
        f"/api/v1/interviews/sessions/{session_id}/answers",
        json={"question_index": 1, "answer": "Skipping ahead"},
    )
    assert mismatch.status_code == 409
    assert mismatch.json()["code"] == "INDEX_MISMATCH"
    assert "detail" in mismatch.json()

    not_ready = client.get(f"/api/v1/interviews/sessions/{session_id}/report")
    assert not_ready.status_code == 409
    assert not_ready.json()["code"] == "SESSION_NOT_COMPLETED"

    not_exportable = client.get(f"/api/v1/interviews/sessions/{session_id}/report/export")
    assert not_exportable.status_code == 409

    bad_count = client.post(
        "/api/v1/interviews/sessions", json={"resume_id": resume_id, "question_count": 0})
    assert bad_count.status_code == 400
    assert bad_count.json()["code"] == "INVALID_QUESTION_COUNT"

    missing = client.get("/api/v1/interviews/sessions/does-not-exist")
    assert missing.status_code == 404
    assert missing.json()["code"] == "SESSION_NOT_FOUND"


def test_full_interview_flow(client):
    resume_id = upload(client).json()["resume"]["id"]
    session_id = client.post(
        "/api/v1/interviews/sessions", json={"resume_id": resume_id, "question_count": 2}
    ).json()["session"]["session_id"]

    first = client.post(
        f"/api/v1/interviews/sessions/{session_id}/answers",
        json={"question_index": 0, "answer": "I built the billing service."},
    )
    assert first.status_code == 200
    assert first.json()["has_next_question"] is True
    assert first.json()["next_question"]["question_index"] == 1

    second = client.post(
        f"/api/v1/interviews/sessions/{session_id}/answers",
        json={"question_index": 1, "answer": "We split the monolith gradually."},
    )
    assert second.json()["has_next_question"] is False
    assert second.json()["status"] == "COMPLETED"

    report = client.get(f"/api/v1/interviews/sessions/{session_id}/report")
    assert report.status_code == 200
    body = report.json()
    assert body["total_questions"] == 2
    assert body["overall_score"] == 80.0
    assert len(body["reference_answers"]) == 2

    again = client.get(f"/api/v1/interviews/sessions/{session_id}/report")
    assert again.json() == body

    exported = client.get(f"/api/v1/interviews/sessions/{session_id}/report/export")
    assert exported.status_code == 200
    assert exported.headers["content-type"] == "application/pdf"
    assert "attachment" in exported.headers["content-disposition"]
    assert exported.content.startswith(b"%PDF")

    detail = client.get(f"/api/v1/resumes/{resume_id}")
    assert detail.json()["sessions"][0]["status"] == "COMPLETED"
    assert detail.json()["sessions"][0]["overall_score"] == 80.0


def test_complete_early_endpoint(client):
    resume_id = upload(client).json()["resume"]["id"]
    session_id = client.post(
        "/api/v1/interviews/sessions", json={"resume_id": resume_id, "question_count": 3}
    ).json()["session"]["session_id"]

    completed = client.post(f"/api/v1/interviews/sessions/{session_id}/complete")
    assert completed.status_code == 200
    assert completed.json()["status"] == "COMPLETED"

    again = client.post(f"/api/v1/interviews/sessions/{session_id}/complete")
    assert again.status_code == 409
    assert again.json()["code"] == "SESSION_COMPLETED"


def test_delete_resume(client):
    resume_id = upload(client).json()["resume"]["id"]

    listed = client.get("/api/v1/resumes/")
    assert [item["id"] for item in listed.json()] == [resume_id]

    deleted = client.delete(f"/api/v1/resumes/{resume_id}")
    assert deleted.status_code == 204

    missing = client.get(f"/api/v1/resumes/{resume_id}")
    assert missing.status_code == 404
    assert missing.json()["code"] == "RESUME_NOT_FOUND"
