"""Error taxonomy for the compliance-check pipeline."""

from enum import Enum
from typing import Optional


class ValidationError(Exception):
    """Input is empty, malformed or too short. User-actionable, never retried."""


class FetchError(Exception):
    """A website could not be retrieved (DNS, connection reset, timeout ...)."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url


class TooManyRedirects(FetchError):
    """Redirect chain exceeded the configured hop limit."""

    def __init__(self, url: str, limit: int) -> None:
        super().__init__(url, f"more than {limit} redirects")
        self.limit = limit


class RedirectLoop(FetchError):
    """Redirect chain returned to a URL it had already visited."""

    def __init__(self, url: str, target: str) -> None:
        super().__init__(url, f"redirect loop back to {target}")
        self.target = target


class ModelErrorKind(str, Enum):
    BACKEND_ERROR = "backend_error"
    MALFORMED_RESPONSE = "malformed_response"
    JOB_FAILED = "job_failed"
    TIMEOUT = "timeout"


class ModelError(Exception):
    """Failure reported by, or while talking to, the model backend."""

    def __init__(self, kind: ModelErrorKind, detail: str, *, job_id: Optional[str] = None) -> None:
        super().__init__(detail)
        self.kind = kind
        self.detail = detail
        self.job_id = job_id

    def __repr__(self) -> str:
        return f"ModelError(kind={self.kind.value}, detail={self.detail!r})"
