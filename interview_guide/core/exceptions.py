"""Typed errors raised by the intake and interview engine."""

from typing import Optional


class InterviewEngineError(Exception):
    """Base class for engine errors.

    Every error carries a stable ``code`` for API clients and the HTTP status
    the API layer answers with.
    """

    code = "ENGINE_ERROR"
    status_code = 500
    default_message = "Interview engine error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ExtractionFailed(InterviewEngineError):
    code = "EXTRACTION_FAILED"
    status_code = 422
    default_message = "No text could be extracted from the uploaded document"


class GenerationFailed(InterviewEngineError):
    code = "GENERATION_FAILED"
    status_code = 502
    default_message = "The AI service could not generate the requested content"


class GradingDeferred(InterviewEngineError):
    code = "GRADING_DEFERRED"
    status_code = 503
    default_message = "Answer grading is temporarily unavailable"


class SynthesisFailed(InterviewEngineError):
    code = "SYNTHESIS_FAILED"
    status_code = 502
    default_message = "Report generation failed, please retry"


class ResumeNotFound(InterviewEngineError):
    code = "RESUME_NOT_FOUND"
    status_code = 404
    default_message = "Resume not found"


class SessionNotFound(InterviewEngineError):
    code = "SESSION_NOT_FOUND"
    status_code = 404
    default_message = "Interview session not found"


class SessionCompleted(InterviewEngineError):
    code = "SESSION_COMPLETED"
    status_code = 409
    default_message = "Interview session is already completed"


class SessionNotCompleted(InterviewEngineError):
    code = "SESSION_NOT_COMPLETED"
    status_code = 409
    default_message = "Interview must be completed to generate a report"


class IndexMismatch(InterviewEngineError):
    code = "INDEX_MISMATCH"
    status_code = 409

    def __init__(self, expected: int, received: int):
        super().__init__(
            f"Answer targets question {received} but the current question is {expected}"
        )
        self.expected = expected
        self.received = received


class InvalidQuestionCount(InterviewEngineError):
    code = "INVALID_QUESTION_COUNT"
    status_code = 400
    default_message = "Requested question count is out of range"


class EmptyAnswer(InterviewEngineError):
    code = "EMPTY_ANSWER"
    status_code = 400
    default_message = "Answer must not be empty"
