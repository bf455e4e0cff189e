"""Per-session event log for debugging interview flows."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from interview_guide.core.config import settings
from interview_guide.core.logging import session_log_dir

logger = logging.getLogger(__name__)


class SessionLogger:
    """Appends structured JSON lines to ``<LOG_DIR>/sessions/session_<id>.log``."""

    def __init__(self, session_id: str, log_dir: Optional[str] = None):
        self.session_id = session_id
        self.enabled = settings.SESSION_LOG_ENABLED
        self.log_dir = Path(log_dir) / "sessions" if log_dir else session_log_dir()
        self.log_file = self.log_dir / f"session_{session_id}.log"

    def _write_log(self, level: str, section: str, data: Dict[str, Any]):
        if not self.enabled:
            return
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "section": section,
            "session_id": self.session_id,
            "data": data,
        }
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            logger.error(f"Failed to write session log: {e}")

    def log_created(self, resume_id: int, question_count: int):
        self._write_log("INFO", "SESSION_CREATED", {
            "resume_id": resume_id,
            "question_count": question_count,
        })

    def log_answer(self, question_index: int, answer: str, status: str):
        self._write_log("INFO", "ANSWER_RECORDED", {
            "question_index": question_index,
            "answer": answer[:500],  # Long answers are truncated
            "status": status,
        })

    def log_grading(self, question_index: int, score: Optional[int], deferred: bool = False):
        self._write_log("WARNING" if deferred else "INFO", "GRADING", {
            "question_index": question_index,
            "score": score,
            "deferred": deferred,
        })

    def log_completed(self, early: bool, zero_filled: int = 0):
        self._write_log("INFO", "SESSION_COMPLETED", {
            "early": early,
            "zero_filled": zero_filled,
        })

    def log_report(self, overall_score: float):
        self._write_log("INFO", "REPORT_CREATED", {"overall_score": overall_score})

    def log_error(self, section: str, error: Exception, context: Optional[Dict[str, Any]] = None):
        self._write_log("ERROR", f"ERROR_{section}", {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
        })
