"""Interview-related Pydantic schemas."""

from typing import Optional
from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    """Schema for creating (or resuming) an interview session."""

    resume_id: int = Field(..., description="Resume ID to base the interview on")
    question_count: Optional[int] = Field(
        None, description="Number of questions; server default when omitted")
    resume_text: Optional[str] = Field(
        None, description="Resume text to seed questions; the stored text is used when omitted"
    )


class AnswerSubmit(BaseModel):
    """Schema for submitting an answer to the current question."""

    question_index: int = Field(..., ge=0, description="Index of the question being answered")
    answer: str = Field(..., description="User's answer")


class InterviewQuestionResponse(BaseModel):
    question_index: int
    question: str
    category: str
    user_answer: Optional[str] = None
    score: Optional[int] = None
    feedback: Optional[str] = None

    class Config:
        from_attributes = True


class InterviewSessionResponse(BaseModel):
    session_id: str
    resume_id: int
    status: str
    question_count: int
    current_question_index: int
    questions: list[InterviewQuestionResponse] = Field(default_factory=list)
    created_at: str
    completed_at: Optional[str] = None

    @property
    def has_progress(self) -> bool:
        return self.current_question_index > 0 or any(
            q.user_answer for q in self.questions
        )


class InterviewSessionSummary(BaseModel):
    session_id: str
    status: str
    question_count: int
    current_question_index: int
    overall_score: Optional[float] = Field(
        None, description="Overall score of the stored report, null until one is generated")
    created_at: str
    completed_at: Optional[str] = None


class SessionStartResponse(BaseModel):
    session: InterviewSessionResponse
    resumed: bool = Field(
        ..., description="True when an unfinished session was returned instead of a new one")


class AnswerSubmitResult(BaseModel):
    graded: bool = Field(
        ..., description="False when grading was deferred; the answer is still recorded")
    has_next_question: bool
    next_question: Optional[InterviewQuestionResponse] = None
    status: str
    current_question_index: int


class CategoryScore(BaseModel):
    category: str
    score: float
    question_count: int


class QuestionDetail(BaseModel):
    question_index: int
    question: str
    category: str
    user_answer: Optional[str] = None
    score: int
    feedback: str


class ReferenceAnswer(BaseModel):
    question_index: int
    question: str
    reference_answer: str
    key_points: list[str] = Field(default_factory=list)


class InterviewReportResponse(BaseModel):
    session_id: str
    total_questions: int
    overall_score: float
    category_scores: list[CategoryScore]
    overall_feedback: str
    strengths: list[str]
    improvements: list[str]
    question_details: list[QuestionDetail]
    reference_answers: list[ReferenceAnswer]
    created_at: str
