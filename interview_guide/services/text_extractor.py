"""Plain-text extraction from uploaded resume documents (pdfplumber, python-docx)."""

import asyncio
import io
import logging
from pathlib import Path

import docx
import pdfplumber

from interview_guide.core.exceptions import ExtractionFailed

logger = logging.getLogger(__name__)

PLAIN_TEXT_SUFFIXES = {".txt", ".md"}


class TextExtractor:
    """Turns PDF, DOCX and plain-text uploads into text."""

    async def extract_text(self, data: bytes, filename: str) -> str:
        suffix = Path(filename or "").suffix.lower()

        if suffix == ".pdf":
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, self._extract_pdf, data, filename)
        elif suffix == ".docx":
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, self._extract_docx, data, filename)
        elif suffix in PLAIN_TEXT_SUFFIXES:
            text = self._decode_plain_text(data)
        else:
            raise ExtractionFailed(
                f"Unsupported file type: {suffix or 'unknown'}. Upload a PDF, DOCX or plain-text resume.")

        if not text or not text.strip():
            raise ExtractionFailed(
                f"No text extracted from {filename}. Scanned PDFs are not supported.")
        return text

    @staticmethod
    def _extract_pdf(data: bytes, filename: str) -> str:
        text_parts = []
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages:
                    page_text = page.extract_text()
                    if page_text:
                        text_parts.append(page_text)
        except Exception as e:
            logger.warning(f"pdfplumber failed on {filename}: {e}")
            raise ExtractionFailed(f"Failed to extract text from PDF: {filename}") from e
        return "\n\n".join(text_parts)

    @staticmethod
    def _extract_docx(data: bytes, filename: str) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as e:
            logger.warning(f"python-docx failed on {filename}: {e}")
            raise ExtractionFailed(f"Failed to extract text from DOCX: {filename}") from e

        lines = [p.text for p in document.paragraphs if p.text.strip()]
        # Resume templates often lay out sections in tables
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append(" | ".join(cells))
        return "\n".join(lines)

    @staticmethod
    def _decode_plain_text(data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            return data.decode("latin-1")
