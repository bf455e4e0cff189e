"""Interview session, question and report models."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    String,
    Text,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Float,
    Index,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from interview_guide.core.database import Base


class SessionStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


_ACTIVE = text("status != 'COMPLETED'")


class InterviewSession(Base):
    """A fixed-length mock interview tied to one resume."""

    __tablename__ = "interview_sessions"
    __table_args__ = (
        # At most one unfinished session per resume
        Index(
            "uq_interview_sessions_active_resume",
            "resume_id",
            unique=True,
            postgresql_where=_ACTIVE,
            sqlite_where=_ACTIVE,
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    resume_id: Mapped[int] = mapped_column(
        ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)

    question_count: Mapped[int] = mapped_column(Integer, nullable=False)
    current_question_index: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=SessionStatus.NOT_STARTED.value, nullable=False, index=True
    )

    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    resume: Mapped["Resume"] = relationship("Resume", back_populates="sessions")
    questions: Mapped[list["InterviewQuestion"]] = relationship(
        "InterviewQuestion",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="InterviewQuestion.question_index",
    )
    report: Mapped["InterviewReport | None"] = relationship(
        "InterviewReport",
        back_populates="session",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED.value

    def __repr__(self) -> str:
        return (
            f"<InterviewSession(id={self.id}, resume_id={self.resume_id}, "
            f"status={self.status}, cursor={self.current_question_index}/{self.question_count})>"
        )


class InterviewQuestion(Base):
    __tablename__ = "interview_questions"
    __table_args__ = (
        UniqueConstraint("session_id", "question_index",
                         name="uq_interview_questions_session_index"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("interview_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_index: Mapped[int] = mapped_column(Integer, nullable=False)

    question: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    user_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    answered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True)

    session: Mapped["InterviewSession"] = relationship(
        "InterviewSession", back_populates="questions")

    def __repr__(self) -> str:
        return f"<InterviewQuestion(session_id={self.session_id}, index={self.question_index}, score={self.score})>"


class InterviewReport(Base):
    """Cached evaluation of a completed session. Written once, never updated."""

    __tablename__ = "interview_reports"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("interview_sessions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    category_scores: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    overall_feedback: Mapped[str] = mapped_column(Text, nullable=False, default="")
    strengths: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    improvements: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    question_details: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    reference_answers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    session: Mapped["InterviewSession"] = relationship(
        "InterviewSession", back_populates="report")

    def __repr__(self) -> str:
        return f"<InterviewReport(session_id={self.session_id}, overall_score={self.overall_score})>"
