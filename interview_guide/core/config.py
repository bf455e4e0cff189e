"""Application configuration using Pydantic settings."""

from typing import List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Application
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 5242880  # 5MB per file before rotating
    LOG_BACKUP_COUNT: int = 5
    SESSION_LOG_ENABLED: bool = True  # Per-session JSON event log
    CORS_ORIGINS: List[str] = ["*"]

    # Database
    DATABASE_URL: str

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Locking (memory for a single worker, redis when running several)
    LOCK_BACKEND: Literal["memory", "redis"] = "memory"
    LOCK_TIMEOUT_SECONDS: int = 300  # Floor; raised to cover the AI retry budget

    # OpenAI
    OPENAI_API_KEY: str
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    # Retry policy for AI calls
    AI_MAX_ATTEMPTS: int = 3
    AI_BACKOFF_BASE_SECONDS: float = 0.5
    AI_BACKOFF_MAX_SECONDS: float = 8.0
    AI_ATTEMPT_TIMEOUT_SECONDS: float = 60.0

    # File Uploads
    UPLOAD_DIR: str = "./uploads"
    PUBLIC_BASE_URL: str = "/files"
    MAX_UPLOAD_SIZE: int = 10485760  # 10MB

    # Interview
    DEFAULT_QUESTION_COUNT: int = 8
    MIN_QUESTION_COUNT: int = 1
    MAX_QUESTION_COUNT: int = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables
    )


settings = Settings()
