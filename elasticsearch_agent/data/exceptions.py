"""
Stats Fetch Exceptions

Failures raised by the stats fetcher. Both abort the current poll cycle at the
fetch boundary; neither is ever raised past the reporting pipeline.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class StatsFetchError(Exception):
    """Base exception for all stats fetch errors."""

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.target = target
        self.url = url
        self.status_code = status_code
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "target": self.target,
            "url": self.url,
            "status_code": self.status_code,
            "original_error": str(self.original_error) if self.original_error else None,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.target:
            parts.append(f"[target={self.target}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class TransportError(StatsFetchError):
    """Cluster unreachable, connection refused, timeout or non-success status."""


class ParseError(StatsFetchError):
    """Response received but does not match the expected snapshot shape."""
