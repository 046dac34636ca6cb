"""
Error classification and compaction for the enrichment pipeline.

Quota errors abort a refresh; everything else is recorded per batch and
compacted into a short message for logs.
"""

from typing import List, Dict, Any
import traceback
import re
from datetime import datetime, timezone

from portfolio_radar.utils.errors import QuotaExceededError
from portfolio_radar.utils.logging import get_logger

logger = get_logger(__name__)

_QUOTA_PATTERN = re.compile(r"quota|429|resource.?exhausted|rate.?limit", re.IGNORECASE)


def status_code_of(error: BaseException):
    """HTTP-like status carried by a vendor exception, if any."""
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_quota_error(error: BaseException) -> bool:
    """True for quota and rate-limit rejections (HTTP 429 or equivalent)."""
    if isinstance(error, QuotaExceededError):
        return True
    if status_code_of(error) == 429:
        return True
    return bool(_QUOTA_PATTERN.search(str(error)))


class ErrorCompactor:
    """Compact errors for log lines and run summaries."""

    @staticmethod
    def compact_error(error: Exception, max_length: int = 200) -> str:
        """
        Create concise error message.

        Args:
            error: The exception to compact
            max_length: Maximum error message length

        Returns:
            Concise error description
        """
        error_type = type(error).__name__
        error_msg = str(error)

        patterns = [
            (r"quota|rate.?limit|429", "Rate limit hit"),
            (r"timeout|timed?.?out", "Operation timed out"),
            (r"json.?decode|invalid.?json|parse model response", "Invalid JSON response"),
            (r"connection.?refused|connection.?error", "Connection failed"),
            (r"authentication|unauthorized|401|403", "Authentication failed"),
            (r"invalid.?api.?key|api.?key.?not.?valid", "Invalid API key"),
            (r"not.?found|404", "Resource not found"),
            (r"model.?overloaded|unavailable|503", "Model temporarily unavailable"),
        ]

        error_lower = error_msg.lower()
        for pattern, simplified in patterns:
            if re.search(pattern, error_lower):
                return f"{error_type}: {simplified}"

        if len(error_msg) > max_length:
            return f"{error_type}: {error_msg[:max_length]}..."

        return f"{error_type}: {error_msg}"


class ErrorHandler:
    """Track the errors of one refresh run."""

    def __init__(self):
        self.error_history: List[Dict[str, Any]] = []

    def record_error(self, step: str, error: Exception):
        """Record error for analysis."""
        error_record = {
            "step": step,
            "type": type(error).__name__,
            "message": ErrorCompactor.compact_error(error),
            "full_error": str(error),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }

        self.error_history.append(error_record)
        logger.error(f"Error in {step}: {error_record['message']}")
        return error_record

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of errors for debugging."""
        errors_by_type: Dict[str, int] = {}
        for err in self.error_history:
            errors_by_type[err["type"]] = errors_by_type.get(err["type"], 0) + 1

        return {
            "total_errors": len(self.error_history),
            "errors_by_type": errors_by_type,
            "recent_errors": [
                {"step": e["step"], "message": e["message"]} for e in self.error_history[-5:]
            ],
        }
