"""
Object store interface used by the upload pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from streamput.models import PartResult


class ObjectStore(ABC):
    """
    Multipart upload primitives of an object store.

    Implementations must allow concurrent ``upload_part`` calls with distinct
    part numbers on one session, and must treat a repeated ``upload_part``
    for the same number as an overwrite. Failures are raised as StoreError
    with ``retryable`` set by the adapter.
    """

    @abstractmethod
    async def begin_upload(self, key: str) -> str:
        """Start a multipart upload and return its session id."""

    @abstractmethod
    async def upload_part(
        self, session_id: str, key: str, part_number: int, data: bytes
    ) -> str:
        """Upload one part and return its ETag."""

    @abstractmethod
    async def complete_upload(
        self, session_id: str, key: str, parts: Sequence[PartResult]
    ) -> None:
        """Assemble the object from ``parts``, which must be in ascending order."""

    @abstractmethod
    async def abort_upload(self, session_id: str, key: str) -> None:
        """Discard the session and any uploaded parts."""
