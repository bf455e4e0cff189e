"""Resume models."""

from datetime import datetime
from sqlalchemy import String, Text, DateTime, ForeignKey, JSON, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from interview_guide.core.database import Base


class Resume(Base):
    """An uploaded resume, identified by the fingerprint of its extracted text."""

    __tablename__ = "resumes"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    fingerprint: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False)

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    storage_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    storage_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    resume_text: Mapped[str] = mapped_column(Text, nullable=False)

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    analyses: Mapped[list["ResumeAnalysisRecord"]] = relationship(
        "ResumeAnalysisRecord",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="ResumeAnalysisRecord.id",
    )
    sessions: Mapped[list["InterviewSession"]] = relationship(
        "InterviewSession", back_populates="resume", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Resume(id={self.id}, file_name={self.file_name}, fingerprint={self.fingerprint[:12]})>"


class ResumeAnalysisRecord(Base):
    """AI critique of a resume. Immutable once written; the newest one is canonical."""

    __tablename__ = "resume_analyses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    resume_id: Mapped[int] = mapped_column(
        ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)

    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    strengths: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    suggestions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    sections: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    resume: Mapped["Resume"] = relationship("Resume", back_populates="analyses")

    def __repr__(self) -> str:
        return f"<ResumeAnalysisRecord(id={self.id}, resume_id={self.resume_id}, score={self.overall_score})>"
