"""
In-memory object store.

Keeps sessions and finished objects in dicts and applies the same completion
rules S3 does, so pipeline behavior can be checked without a network.
"""

from __future__ import annotations

import asyncio
import hashlib
import uuid
from dataclasses import dataclass, field
from typing import Sequence

from streamput.exceptions import StoreError
from streamput.models import PartResult
from streamput.stores.base import ObjectStore


@dataclass
class MemoryUpload:
    """Server-side state of one open session."""

    key: str
    parts: dict[int, tuple[str, bytes]] = field(default_factory=dict)
    upload_counts: dict[int, int] = field(default_factory=dict)


class MemoryObjectStore(ObjectStore):
    """
    Dict-backed ObjectStore.

    Args:
        min_part_size: Minimum size of every part but the last (S3 uses 5 MiB).
        max_part_number: Highest accepted part number.
    """

    def __init__(self, min_part_size: int = 0, max_part_number: int = 10_000) -> None:
        self.min_part_size = min_part_size
        self.max_part_number = max_part_number
        self.uploads: dict[str, MemoryUpload] = {}
        self.objects: dict[str, bytes] = {}
        self.completed: list[tuple[str, list[PartResult]]] = []
        self.aborted: list[str] = []
        self._lock = asyncio.Lock()

    @staticmethod
    def etag_for(data: bytes) -> str:
        return f'"{hashlib.md5(data).hexdigest()}"'

    def _get(self, session_id: str, key: str) -> MemoryUpload:
        upload = self.uploads.get(session_id)
        if upload is None or upload.key != key:
            raise StoreError(f"Unknown upload {session_id}", code="NoSuchUpload")
        return upload

    async def begin_upload(self, key: str) -> str:
        session_id = uuid.uuid4().hex
        async with self._lock:
            self.uploads[session_id] = MemoryUpload(key=key)
        return session_id

    async def upload_part(
        self, session_id: str, key: str, part_number: int, data: bytes
    ) -> str:
        if not 1 <= part_number <= self.max_part_number:
            raise StoreError(f"Invalid part number {part_number}", code="InvalidArgument")
        etag = self.etag_for(data)
        async with self._lock:
            upload = self._get(session_id, key)
            upload.parts[part_number] = (etag, bytes(data))
            upload.upload_counts[part_number] = upload.upload_counts.get(part_number, 0) + 1
        return etag

    async def complete_upload(
        self, session_id: str, key: str, parts: Sequence[PartResult]
    ) -> None:
        async with self._lock:
            upload = self._get(session_id, key)
            if not parts:
                raise StoreError("Completion needs at least one part", code="MalformedXML")

            numbers = [p.sequence_number for p in parts]
            if numbers != sorted(set(numbers)):
                raise StoreError("Parts must be in strictly ascending order", code="InvalidPartOrder")

            body = bytearray()
            for index, part in enumerate(parts):
                stored = upload.parts.get(part.sequence_number)
                if stored is None or stored[0] != part.etag:
                    raise StoreError(
                        f"Part {part.sequence_number} missing or ETag mismatch",
                        code="InvalidPart",
                    )
                is_last = index == len(parts) - 1
                if not is_last and len(stored[1]) < self.min_part_size:
                    raise StoreError(
                        f"Part {part.sequence_number} is smaller than {self.min_part_size} bytes",
                        code="EntityTooSmall",
                    )
                body.extend(stored[1])

            self.objects[key] = bytes(body)
            self.completed.append((session_id, list(parts)))
            del self.uploads[session_id]

    async def abort_upload(self, session_id: str, key: str) -> None:
        async with self._lock:
            self._get(session_id, key)
            del self.uploads[session_id]
            self.aborted.append(session_id)
