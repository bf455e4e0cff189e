"""OpenAI-backed capability for resume analysis, question generation and grading.

Calls go through an instructor-patched ``AsyncOpenAI`` client so that every
response is parsed straight into a Pydantic model.
"""

from typing import Protocol

import instructor
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from interview_guide.core.config import settings
from interview_guide.schemas.resume import ResumeAnalysis


class GeneratedQuestion(BaseModel):
    question: str = Field(..., description="The interview question text")
    category: str = Field(
        ..., description="Short category tag, e.g. 'technical', 'project', 'behavioral'")


class QuestionList(BaseModel):
    """Schema for list of questions."""

    questions: list[GeneratedQuestion] = Field(
        ..., description="Interview questions in the order they should be asked")


class AnswerGrade(BaseModel):
    score: int = Field(..., ge=0, le=100, description="Answer score (0-100)")
    feedback: str = Field(..., description="Brief, specific feedback on the answer")


class ReportSynthesis(BaseModel):
    overall_feedback: str = Field(
        ..., description="Narrative assessment of the whole interview")
    strengths: list[str] = Field(
        default_factory=list, description="Strengths demonstrated across answers")
    improvements: list[str] = Field(
        default_factory=list, description="Actionable areas for improvement")


class ReferenceAnswerDraft(BaseModel):
    reference_answer: str = Field(
        ..., description="A strong model answer to the question")
    key_points: list[str] = Field(
        default_factory=list, description="Key points a good answer should cover")


class GradingCapability(Protocol):
    async def analyze_resume(self, text: str) -> ResumeAnalysis: ...

    async def generate_questions(self, text: str, count: int) -> list[GeneratedQuestion]: ...

    async def grade_answer(self, question: str, category: str, answer: str) -> AnswerGrade: ...

    async def synthesize_report(self, entries: list[dict]) -> ReportSynthesis: ...

    async def reference_answer(self, question: str, category: str) -> ReferenceAnswerDraft: ...


class OpenAICapability:
    """Grading capability backed by OpenAI chat completions."""

    def __init__(self, model: str | None = None):
        self.model = model or settings.OPENAI_MODEL
        self._openai_client = None

    def _get_openai_client(self):
        if self._openai_client is None:
            client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
                max_retries=0,  # RetryPolicy owns retries
            )
            self._openai_client = instructor.patch(client)
        return self._openai_client

    async def _complete(self, response_model, system: str, prompt: str, temperature: float):
        client = self._get_openai_client()
        return await client.chat.completions.create(
            model=self.model,
            response_model=response_model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
        )

    async def analyze_resume(self, text: str) -> ResumeAnalysis:
        prompt = f"""Evaluate this resume as an experienced technical recruiter.

Resume Text:
{text}

Provide:
1. **overall_score** - integer 0-100 reflecting overall quality
2. **summary** - two or three sentences on the candidate and the resume
3. **strengths** - what the resume does well
4. **suggestions** - weaknesses and concrete fixes
5. **sections** - a short comment for each section present (e.g. experience, projects, skills, education)"""

        return await self._complete(
            ResumeAnalysis,
            "You are an expert resume reviewer. Be specific, honest and constructive.",
            prompt,
            temperature=0.2,
        )

    async def generate_questions(self, text: str, count: int) -> list[GeneratedQuestion]:
        prompt = f"""Generate exactly {count} interview questions based on this resume.
Create a mix of:
- Technical questions (based on skills and technologies mentioned)
- Project questions (digging into projects and experience)
- Behavioral questions (teamwork, conflict, ownership)

For each question, provide:
- question: the question text
- category: a short lowercase tag such as "technical", "project" or "behavioral"

Resume Text:
{text}

Order the questions from warm-up to most challenging."""

        result = await self._complete(
            QuestionList,
            "You are an expert interviewer. Generate relevant, diverse interview questions based on resume data.",
            prompt,
            temperature=0.7,
        )
        return result.questions

    async def grade_answer(self, question: str, category: str, answer: str) -> AnswerGrade:
        prompt = f"""Grade this interview answer.

Question ({category}): {question}

Answer: {answer}

Score from 0 to 100 considering depth, relevance, correctness and clarity.
Give brief feedback explaining the score and how to improve."""

        return await self._complete(
            AnswerGrade,
            "You are an expert interviewer grading candidate answers. Be objective and consistent.",
            prompt,
            temperature=0.3,
        )

    async def synthesize_report(self, entries: list[dict]) -> ReportSynthesis:
        transcript = "\n\n".join(
            f"Q{e['question_index'] + 1} [{e['category']}] {e['question']}\n"
            f"Answer: {e['user_answer'] or '(no answer)'}\n"
            f"Score: {e['score']}/100\n"
            f"Feedback: {e['feedback']}"
            for e in entries
        )
        prompt = f"""Summarize this mock interview for the candidate.

{transcript}

Provide overall feedback, the main strengths shown, and actionable improvements."""

        return await self._complete(
            ReportSynthesis,
            "You are an interview coach writing a concise, encouraging but honest evaluation.",
            prompt,
            temperature=0.4,
        )

    async def reference_answer(self, question: str, category: str) -> ReferenceAnswerDraft:
        prompt = f"""Write a model answer for this interview question.

Question ({category}): {question}

Provide the reference answer and the key points it covers."""

        return await self._complete(
            ReferenceAnswerDraft,
            "You are a senior engineer preparing interview reference answers.",
            prompt,
            temperature=0.3,
        )
