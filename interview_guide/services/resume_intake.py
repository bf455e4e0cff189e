"""Resume intake: extraction, deduplication, storage, analysis and deletion."""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from interview_guide.core.exceptions import ResumeNotFound
from interview_guide.core.locks import LockProvider
from interview_guide.models.interview import (
    InterviewQuestion,
    InterviewReport,
    InterviewSession,
)
from interview_guide.models.resume import Resume, ResumeAnalysisRecord
from interview_guide.schemas.resume import (
    ResumeAnalysis,
    ResumeDetail,
    ResumeIntakeResult,
    ResumeListItem,
)
from interview_guide.services.ai.adapter import CapabilityAdapter
from interview_guide.services.converters import (
    analysis_to_response,
    resume_to_response,
    session_to_summary,
)
from interview_guide.services.fingerprint import FingerprintStore, compute_fingerprint
from interview_guide.services.storage import BlobStorage
from interview_guide.services.text_extractor import TextExtractor

logger = logging.getLogger(__name__)


class ResumeIntakeService:
    """Records each distinct resume once and keeps its latest analysis.

    Intake is idempotent on the normalized extracted text: uploading the same
    content again returns the stored record and analysis without touching
    storage or the AI service.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: BlobStorage,
        adapter: CapabilityAdapter,
        locks: LockProvider,
        extractor: Optional[TextExtractor] = None,
        fingerprints: Optional[FingerprintStore] = None,
    ):
        self.session_factory = session_factory
        self.storage = storage
        self.adapter = adapter
        self.locks = locks
        self.extractor = extractor or TextExtractor()
        self.fingerprints = fingerprints or FingerprintStore()

    async def intake(
        self, data: bytes, filename: str, content_type: Optional[str] = None
    ) -> ResumeIntakeResult:
        """Extract, deduplicate and record an uploaded resume.

        Raises:
            ExtractionFailed: the document yields no usable text
            GenerationFailed: analysis of a resume without a cached analysis failed
        """
        text = await self.extractor.extract_text(data, filename)
        fingerprint = compute_fingerprint(text)

        async with self.locks.hold(f"resume-intake:{fingerprint}"):
            async with self.session_factory() as db:
                existing = await self.fingerprints.find(db, fingerprint)
            if existing is not None:
                logger.info(
                    f"Duplicate resume upload {filename}, returning resume {existing.id}")
                return await self._duplicate_result(existing)

            key = await self.storage.put(data, filename)
            resume = Resume(
                fingerprint=fingerprint,
                file_name=filename,
                file_size=len(data),
                content_type=content_type,
                storage_key=key,
                storage_url=self.storage.url(key),
                resume_text=text,
            )
            async with self.session_factory() as db:
                db.add(resume)
                try:
                    await db.commit()
                except IntegrityError:
                    # Another worker recorded the same content first
                    await db.rollback()
                    await self._discard_blob(key)
                    existing = await self.fingerprints.find(db, fingerprint)
                    if existing is None:
                        raise
                    return await self._duplicate_result(existing)
                await db.refresh(resume)

            logger.info(
                f"Stored resume {resume.id} ({filename}, {len(data)} bytes) at {key}")
            analysis = await self.adapter.analyze_resume(text)
            record = await self._store_analysis(resume.id, analysis)
            logger.info(
                f"Resume {resume.id} analyzed, score {record.overall_score}")

            return ResumeIntakeResult(
                resume=resume_to_response(resume),
                analysis=analysis_to_response(record),
                duplicate=False,
            )

    async def _duplicate_result(self, resume: Resume) -> ResumeIntakeResult:
        async with self.session_factory() as db:
            record = await self._latest_analysis(db, resume.id)
        if record is None:
            logger.info(f"Resume {resume.id} has no cached analysis, generating one")
            analysis = await self.adapter.analyze_resume(resume.resume_text)
            record = await self._store_analysis(resume.id, analysis)
        return ResumeIntakeResult(
            resume=resume_to_response(resume),
            analysis=analysis_to_response(record),
            duplicate=True,
        )

    async def _latest_analysis(
        self, db: AsyncSession, resume_id: int
    ) -> Optional[ResumeAnalysisRecord]:
        result = await db.execute(
            select(ResumeAnalysisRecord)
            .where(ResumeAnalysisRecord.resume_id == resume_id)
            .order_by(ResumeAnalysisRecord.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _store_analysis(
        self, resume_id: int, analysis: ResumeAnalysis
    ) -> ResumeAnalysisRecord:
        record = ResumeAnalysisRecord(
            resume_id=resume_id,
            overall_score=analysis.overall_score,
            summary=analysis.summary,
            strengths=list(analysis.strengths),
            suggestions=list(analysis.suggestions),
            sections=dict(analysis.sections),
        )
        async with self.session_factory() as db:
            db.add(record)
            await db.commit()
            await db.refresh(record)
        return record

    async def _discard_blob(self, key: str) -> None:
        try:
            await self.storage.delete(key)
        except Exception as e:
            logger.warning(f"Could not delete orphaned blob {key}: {e}")

    async def delete_resume(self, resume_id: int) -> None:
        """Delete a resume with its analyses, sessions, questions and reports.

        Blob deletion is best effort: a storage failure is logged and the
        database records are removed anyway. Holds the same lock as session
        creation, so no session can be added while the resume is removed.
        """
        async with self.locks.hold(f"resume:{resume_id}"):
            await self._delete_records(resume_id)
        logger.info(f"Deleted resume {resume_id}")

    async def _delete_records(self, resume_id: int) -> None:
        async with self.session_factory() as db:
            resume = await db.get(Resume, resume_id)
            if resume is None:
                raise ResumeNotFound()

            if resume.storage_key:
                try:
                    await self.storage.delete(resume.storage_key)
                except Exception as e:
                    logger.warning(
                        f"Failed to delete stored file {resume.storage_key}, "
                        f"continuing with record deletion: {e}")

            session_ids = select(InterviewSession.id).where(
                InterviewSession.resume_id == resume_id)
            await db.execute(
                delete(InterviewReport).where(InterviewReport.session_id.in_(session_ids)))
            await db.execute(
                delete(InterviewQuestion).where(InterviewQuestion.session_id.in_(session_ids)))
            await db.execute(
                delete(InterviewSession).where(InterviewSession.resume_id == resume_id))
            await db.execute(
                delete(ResumeAnalysisRecord).where(ResumeAnalysisRecord.resume_id == resume_id))
            await db.execute(delete(Resume).where(Resume.id == resume_id))
            await db.commit()

    async def list_resumes(self) -> list[ResumeListItem]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Resume)
                .options(selectinload(Resume.analyses), selectinload(Resume.sessions))
                .order_by(Resume.uploaded_at.desc(), Resume.id.desc())
            )
            resumes = result.scalars().all()

        return [
            ResumeListItem(
                id=resume.id,
                file_name=resume.file_name,
                uploaded_at=resume.uploaded_at.isoformat(),
                latest_score=resume.analyses[-1].overall_score if resume.analyses else None,
                interview_count=len(resume.sessions),
            )
            for resume in resumes
        ]

    async def get_resume(self, resume_id: int) -> ResumeDetail:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Resume)
                .options(
                    selectinload(Resume.analyses),
                    selectinload(Resume.sessions).selectinload(InterviewSession.report),
                )
                .where(Resume.id == resume_id)
            )
            resume = result.scalar_one_or_none()
            if resume is None:
                raise ResumeNotFound()

        sessions = sorted(resume.sessions, key=lambda s: s.created_at, reverse=True)
        return ResumeDetail(
            resume=resume_to_response(resume),
            resume_text=resume.resume_text,
            analysis=analysis_to_response(resume.analyses[-1]) if resume.analyses else None,
            sessions=[session_to_summary(s) for s in sessions],
        )
