"""Content fingerprints for resume deduplication.

The fingerprint is taken over normalized extracted text rather than raw file
bytes, so re-exporting the same resume with different formatting still maps to
the same record.
"""

import hashlib
import re
import unicodedata
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from interview_guide.models.resume import Resume

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    normalized = unicodedata.normalize("NFKC", text)
    return _WHITESPACE.sub(" ", normalized).strip()


def compute_fingerprint(text: str) -> str:
    """SHA-256 hex digest of the normalized text."""
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()


class FingerprintStore:
    """Lookups against the unique fingerprint index on ``resumes``."""

    async def find(self, db: AsyncSession, fingerprint: str) -> Optional[Resume]:
        result = await db.execute(
            select(Resume).where(Resume.fingerprint == fingerprint)
        )
        return result.scalar_one_or_none()
