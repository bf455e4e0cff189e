"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interview_guide import __version__
from interview_guide.api.v1.router import api_router
from interview_guide.core.config import settings
from interview_guide.core.database import engine, Base
from interview_guide.core.exceptions import InterviewEngineError
from interview_guide.core.logging import setup_logging
from interview_guide.core.redis import RedisClient

import interview_guide.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Shutdown
    await RedisClient.close()
    await engine.dispose()


app = FastAPI(
    title="Interview Guide API",
    description="Resume analysis and mock interview engine",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,  # Must be False when allow_origins is ["*"]
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(InterviewEngineError)
async def engine_error_handler(request: Request, exc: InterviewEngineError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "detail": exc.message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"code": InterviewEngineError.code, "detail": "Internal server error"},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint; reports redis only when it backs the locks."""
    health = {"status": "healthy", "service": "interview-guide", "lock_backend": settings.LOCK_BACKEND}
    if settings.LOCK_BACKEND == "redis":
        redis_ok = await RedisClient.ping()
        health["redis"] = "ok" if redis_ok else "unavailable"
        if not redis_ok:
            health["status"] = "degraded"
    return health
