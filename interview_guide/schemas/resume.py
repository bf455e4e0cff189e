"""Resume-related Pydantic schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from interview_guide.schemas.interview import InterviewSessionSummary


class ResumeAnalysis(BaseModel):
    overall_score: int = Field(
        ..., ge=0, le=100, description="Overall resume quality score (0-100)")
    summary: str = Field(
        ..., description="Short overall assessment of the resume as plain text")
    strengths: list[str] = Field(
        default_factory=list, description="Concrete strengths of the resume")
    suggestions: list[str] = Field(
        default_factory=list, description="Weaknesses and actionable improvement suggestions")
    sections: dict[str, str] = Field(
        default_factory=dict,
        description="Free-form per-section comments keyed by section name (e.g. experience, projects, skills)",
    )


class ResumeAnalysisResponse(ResumeAnalysis):
    id: int
    resume_id: int
    created_at: str

    class Config:
        from_attributes = True


class ResumeResponse(BaseModel):
    id: int
    file_name: str
    file_size: int
    content_type: Optional[str] = None
    fingerprint: str
    storage_key: Optional[str] = None
    storage_url: Optional[str] = None
    uploaded_at: str

    class Config:
        from_attributes = True


class ResumeIntakeResult(BaseModel):
    resume: ResumeResponse
    analysis: ResumeAnalysisResponse
    duplicate: bool = Field(
        ..., description="True when identical resume content was uploaded before")


class ResumeListItem(BaseModel):
    id: int
    file_name: str
    uploaded_at: str
    latest_score: Optional[int] = None
    interview_count: int = 0


class ResumeDetail(BaseModel):
    resume: ResumeResponse
    resume_text: str
    analysis: Optional[ResumeAnalysisResponse] = None
    sessions: list[InterviewSessionSummary] = Field(default_factory=list)
