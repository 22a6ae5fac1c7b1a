"""Error taxonomy shared by every layer.

Upstream failures are a single exception type tagged with an `ErrorKind`
instead of a subclass per status code; callers branch on `error.kind`.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Classification of a failed upstream call."""

    NOT_FOUND = "not_found"
    THROTTLED = "throttled"
    TRANSIENT_SERVER = "transient_server"
    NETWORK = "network"
    AUTH = "auth"
    CLIENT = "client"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.THROTTLED, ErrorKind.TRANSIENT_SERVER, ErrorKind.NETWORK)

    @property
    def fatal(self) -> bool:
        """Errors that no amount of skipping entities will fix."""
        return self is ErrorKind.AUTH

    @classmethod
    def from_status(cls, status: int) -> Optional["ErrorKind"]:
        """Classify an HTTP status; None for success."""
        if 200 <= status < 300:
            return None
        if status == 404:
            return cls.NOT_FOUND
        if status == 429:
            return cls.THROTTLED
        if status in (401, 403):
            return cls.AUTH
        if status >= 500:
            return cls.TRANSIENT_SERVER
        return cls.CLIENT


class PipelineError(Exception):
    pass


class ConfigError(PipelineError):
    """Missing or malformed configuration. Fatal at startup."""


class UpstreamError(PipelineError):
    def __init__(self, kind: ErrorKind, url: str, status: Optional[int] = None, detail: str = "") -> None:
        self.kind = kind
        self.url = url
        self.status = status
        self.detail = detail
        msg = f"{kind.value} status={status if status is not None else '-'} url={url}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class QuotaDeniedError(PipelineError):
    """The rate controller refused a cache miss for this identity."""

    def __init__(self, decision: Any) -> None:
        self.decision = decision
        super().__init__(
            f"quota denied for {decision.identity!r}: {decision.reason.value}"
            f" (retry after {decision.retry_after_s}s)"
        )


class RateStoreUnavailableError(PipelineError):
    """The shared quota store could not be reached. Ingestion fails closed."""


class StateFileError(PipelineError):
    """A crawl state document is corrupt or from an unknown version."""


class MatchParseError(PipelineError):
    """A match payload is missing the fields every record must carry."""


class BootstrapError(PipelineError):
    """The ladder produced no usable seed players."""
