"""Error taxonomy surfaced to callers of the preview pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_URL = "InvalidUrl"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    TIMEOUT = "Timeout"
    NETWORK = "NetworkError"


class FetchError(Exception):
    """Raised by the fetcher when a page cannot be retrieved."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class PipelineError(Exception):
    """
    Fatal pipeline failure tagged with the stage that produced it.

    Only URL validation and fetching can fail; extraction and summarization
    degrade internally instead.
    """

    def __init__(
        self,
        stage: str,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.kind = kind
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind.value, "message": self.message}
