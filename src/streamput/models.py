"""
Data models for streamput uploads.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from streamput.exceptions import UploadError, UploadPhase


class UploadState(str, Enum):
    """Coordinator lifecycle."""

    IDLE = "idle"
    STARTED = "started"
    UPLOADING = "uploading"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ABORTED = "aborted"


class UploadSession(BaseModel):
    """One logical multipart upload. Immutable once begin-upload succeeded."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    destination_key: str
    part_size: int = Field(gt=0)
    worker_count: int = Field(ge=1)

    @field_validator("destination_key")
    @classmethod
    def _key_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("destination_key must not be empty")
        return v


class Chunk(BaseModel):
    """A contiguous slice of the source, numbered in read order from 1."""

    model_config = ConfigDict(frozen=True)

    sequence_number: int = Field(ge=1)
    payload: bytes

    @property
    def length(self) -> int:
        return len(self.payload)

    def __repr__(self) -> str:
        return f"Chunk(#{self.sequence_number}, {self.length} bytes)"


class PartResult(BaseModel):
    """Store acknowledgment for one uploaded part."""

    model_config = ConfigDict(frozen=True)

    sequence_number: int = Field(ge=1)
    etag: str
    size: int = 0


class PartOutcome(BaseModel):
    """
    What a worker reports for one dispatched chunk.

    Exactly one of ``result`` / ``error`` is set, or neither when the chunk
    was skipped because the upload was already failing.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    sequence_number: int
    result: PartResult | None = None
    error: UploadError | None = None

    @property
    def skipped(self) -> bool:
        return self.result is None and self.error is None


class UploadMetrics(BaseModel):
    """Metrics for an upload operation."""

    # Timing (seconds)
    total_time: float = 0.0
    upload_time: float = 0.0

    # Sizes (bytes)
    bytes_read: int = 0
    bytes_uploaded: int = 0

    # Transfer details
    parts_count: int = 0
    retries_count: int = 0

    @property
    def upload_speed_mbps(self) -> float:
        """Upload speed in MB/s."""
        if self.upload_time <= 0:
            return 0.0
        return (self.bytes_uploaded / 1024 / 1024) / self.upload_time

    @property
    def total_speed_mbps(self) -> float:
        """Speed including session setup and completion, in MB/s."""
        if self.total_time <= 0:
            return 0.0
        return (self.bytes_uploaded / 1024 / 1024) / self.total_time

    def summary(self) -> str:
        """Human-readable summary."""
        size_mb = self.bytes_uploaded / 1024 / 1024
        lines = [
            f"Size: {size_mb:.1f} MB ({self.bytes_uploaded:,} bytes)",
            f"Total: {self.total_time:.1f}s @ {self.total_speed_mbps:.1f} MB/s",
        ]
        if self.upload_time > 0:
            lines.append(
                f"  └─ Upload: {self.upload_time:.1f}s @ {self.upload_speed_mbps:.1f} MB/s"
            )
        if self.parts_count > 0:
            lines.append(f"Parts: {self.parts_count}")
        if self.retries_count > 0:
            lines.append(f"Retries: {self.retries_count}")
        return "\n".join(lines)


class UploadResult(BaseModel):
    """Terminal result of an upload: confirmed key, or failure context."""

    success: bool
    key: str
    session_id: str | None = None
    state: UploadState = UploadState.IDLE
    parts_count: int = 0
    size: int = 0
    error: str | None = None
    phase: UploadPhase | None = None
    part_number: int | None = None
    metrics: UploadMetrics = Field(default_factory=UploadMetrics)

    def __repr__(self) -> str:
        if self.success:
            m = self.metrics
            size_mb = self.size / 1024 / 1024
            return (
                f"UploadResult(ok, {self.key}, {size_mb:.1f}MB, "
                f"{self.parts_count} parts, {m.total_time:.1f}s)"
            )
        return f"UploadResult(failed: {self.error})"

    def __str__(self) -> str:
        if self.success:
            return self.metrics.summary()
        return f"Failed: {self.error}"


__all__ = [
    "Chunk",
    "PartOutcome",
    "PartResult",
    "UploadMetrics",
    "UploadResult",
    "UploadSession",
    "UploadState",
]
