"""
Exceptions raised by streamput.

Hierarchy:
    StreamputError
    ├── ConfigurationError
    ├── StoreError                  (raised by ObjectStore adapters)
    └── UploadError                 (pipeline failures, carry phase/part)
        ├── SourceReadError
        ├── PartLimitError
        ├── PartUploadError
        ├── SessionError
        │   └── CompletionError
        └── UploadTimeoutError
"""

from __future__ import annotations

from enum import Enum


class UploadPhase(str, Enum):
    """Pipeline phase an upload error happened in."""

    BEGIN = "begin"
    READ = "read"
    UPLOAD = "upload"
    COMPLETE = "complete"
    ABORT = "abort"


class StreamputError(Exception):
    """Base exception for all streamput errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause

    def __str__(self) -> str:
        return self.message


class ConfigurationError(StreamputError):
    """Invalid settings or arguments."""


class StoreError(StreamputError):
    """
    Object store call failed.

    Adapters decide ``retryable``: throttling, timeouts and 5xx responses are
    retryable; 4xx responses and unknown sessions are not.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        retryable: bool = False,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.code = code
        self.retryable = retryable


class UploadError(StreamputError):
    """Upload pipeline failure with enough context to diagnose it."""

    phase: UploadPhase = UploadPhase.UPLOAD

    def __init__(
        self,
        message: str,
        phase: UploadPhase | None = None,
        part_number: int | None = None,
        session_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        if phase is not None:
            self.phase = phase
        self.part_number = part_number
        self.session_id = session_id

    def __str__(self) -> str:
        context = f"phase={self.phase.value}"
        if self.part_number is not None:
            context += f", part={self.part_number}"
        return f"{self.message} ({context})"


class SourceReadError(UploadError):
    """Reading the input stream failed before end of stream."""

    phase = UploadPhase.READ


class PartLimitError(UploadError):
    """The stream needs more parts than the store allows."""

    phase = UploadPhase.READ

    def __init__(self, max_parts: int, part_size: int, **kwargs: object) -> None:
        super().__init__(
            f"Input exceeds {max_parts} parts of {part_size} bytes; use a larger part size",
            **kwargs,  # type: ignore[arg-type]
        )
        self.max_parts = max_parts
        self.part_size = part_size


class PartUploadError(UploadError):
    """A part could not be uploaded."""

    phase = UploadPhase.UPLOAD

    def __init__(
        self,
        message: str,
        part_number: int,
        retryable: bool = False,
        attempts: int = 1,
        session_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            part_number=part_number,
            session_id=session_id,
            cause=cause,
        )
        self.retryable = retryable
        self.attempts = attempts


class SessionError(UploadError):
    """Begin or abort call against the store failed."""

    phase = UploadPhase.BEGIN


class CompletionError(SessionError):
    """
    The store rejected or failed the completion call.

    All parts were uploaded but not assembled. The upload was left open so an
    operator can complete or abort it using ``session_id``.
    """

    phase = UploadPhase.COMPLETE


class UploadTimeoutError(UploadError):
    """The upload did not finish before its deadline."""

    def __init__(self, timeout_seconds: float, **kwargs: object) -> None:
        super().__init__(
            f"Upload did not finish within {timeout_seconds:g} seconds",
            **kwargs,  # type: ignore[arg-type]
        )
        self.timeout_seconds = timeout_seconds


__all__ = [
    "CompletionError",
    "ConfigurationError",
    "PartLimitError",
    "PartUploadError",
    "SessionError",
    "SourceReadError",
    "StoreError",
    "StreamputError",
    "UploadError",
    "UploadPhase",
    "UploadTimeoutError",
]
