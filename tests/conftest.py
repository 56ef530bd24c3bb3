"""
Pytest configuration and fixtures for streamput tests.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence

import pytest

from streamput.config import reset_settings
from streamput.models import PartResult
from streamput.sources.base import IteratorSource
from streamput.stores.memory import MemoryObjectStore
from streamput.upload import RetryPolicy


class FlakyStore(MemoryObjectStore):
    """
    MemoryObjectStore with scripted failures and call tracking.

    ``part_errors[n]`` is a list of exceptions raised by successive
    ``upload_part`` calls for part ``n``; once empty, the call succeeds.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.part_errors: dict[int, list[Exception]] = {}
        self.part_delays: dict[int, float] = {}
        self.begin_error: Exception | None = None
        self.complete_errors: list[Exception] = []
        self.abort_error: Exception | None = None
        self.abort_delay = 0.0

        self.begin_calls = 0
        self.part_calls: list[int] = []
        self.complete_calls: list[list[PartResult]] = []
        self.abort_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def begin_upload(self, key: str) -> str:
        self.begin_calls += 1
        if self.begin_error is not None:
            raise self.begin_error
        return await super().begin_upload(key)

    async def upload_part(
        self, session_id: str, key: str, part_number: int, data: bytes
    ) -> str:
        self.part_calls.append(part_number)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.part_delays.get(part_number, 0))
            errors = self.part_errors.get(part_number)
            if errors:
                raise errors.pop(0)
            return await super().upload_part(session_id, key, part_number, data)
        finally:
            self.in_flight -= 1

    async def complete_upload(
        self, session_id: str, key: str, parts: Sequence[PartResult]
    ) -> None:
        self.complete_calls.append(list(parts))
        if self.complete_errors:
            raise self.complete_errors.pop(0)
        await super().complete_upload(session_id, key, parts)

    async def abort_upload(self, session_id: str, key: str) -> None:
        self.abort_calls.append(session_id)
        if self.abort_delay:
            await asyncio.sleep(self.abort_delay)
        if self.abort_error is not None:
            raise self.abort_error
        await super().abort_upload(session_id, key)


def make_source(
    data: bytes,
    piece_size: int = 7,
    fail_after: int | None = None,
    delay: float = 0.0,
) -> IteratorSource:
    """IteratorSource yielding ``data`` in ``piece_size`` pieces."""

    async def pieces():
        sent = 0
        for offset in range(0, len(data), piece_size):
            if fail_after is not None and sent >= fail_after:
                raise ConnectionResetError("connection reset by peer")
            if delay:
                await asyncio.sleep(delay)
            piece = data[offset : offset + piece_size]
            sent += len(piece)
            yield piece
        if fail_after is not None and sent >= fail_after:
            raise ConnectionResetError("connection reset by peer")

    return IteratorSource(pieces(), size=len(data))


@pytest.fixture(autouse=True)
def _reset_settings():
    """Keep the settings singleton from leaking between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def store() -> FlakyStore:
    """Provide an in-memory store with failure injection."""
    return FlakyStore()


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy that never sleeps."""
    return RetryPolicy(max_attempts=3, initial_backoff=0.0, max_backoff=0.0, jitter=0.0)


@pytest.fixture
def source_factory() -> Callable[..., IteratorSource]:
    """Provide make_source as a fixture."""
    return make_source


@pytest.fixture
def payload() -> bytes:
    """Deterministic, non-repeating test payload (1000 bytes)."""
    return bytes((i * 31 + 7) % 251 for i in range(1000))


@pytest.fixture
def store_class() -> type[FlakyStore]:
    """Provide the FlakyStore class for tests that subclass it."""
    return FlakyStore
