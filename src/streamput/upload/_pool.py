"""
Fixed-size pool of upload workers fed by a bounded queue.
"""

from __future__ import annotations

import asyncio
from typing import Any

from streamput.exceptions import UploadError
from streamput.logging import get_logger
from streamput.models import Chunk, PartOutcome, UploadSession
from streamput.upload._uploader import PartUploader

logger = get_logger(__name__)


class _Marker:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<{self.name}>"


# Put on the chunk queue, one per worker, after the last chunk
STOP = _Marker("STOP")

# Put on the result queue once every worker has exited
POOL_DONE = _Marker("POOL_DONE")


class WorkerPool:
    """
    W asyncio workers moving chunks from one bounded queue to another.

    Each worker takes a chunk, uploads it, and puts exactly one PartOutcome on
    the result queue. Full queues block the side that feeds them, which is the
    only flow control in the pipeline. After ``close()`` and once all queued
    chunks are handled, POOL_DONE is put on the result queue exactly once.

    ``stop_dispatch()`` makes workers report remaining queued chunks as
    skipped instead of uploading them; uploads already running finish.
    """

    def __init__(
        self,
        uploader: PartUploader,
        session: UploadSession,
        chunks: asyncio.Queue[Any],
        results: asyncio.Queue[Any],
    ) -> None:
        self._uploader = uploader
        self._session = session
        self._chunks = chunks
        self._results = results
        self._workers: list[asyncio.Task[None]] = []
        self._supervisor: asyncio.Task[None] | None = None
        self._stopping = False
        self._stops_sent = 0

    @property
    def worker_count(self) -> int:
        return self._session.worker_count

    @property
    def stopping(self) -> bool:
        return self._stopping

    @property
    def closed(self) -> bool:
        return self._stops_sent >= self.worker_count

    def start(self) -> None:
        """Spawn the workers."""
        if self._workers:
            raise RuntimeError("WorkerPool already started")
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"streamput-worker-{i}")
            for i in range(self.worker_count)
        ]
        self._supervisor = asyncio.create_task(
            self._supervise(), name="streamput-pool-supervisor"
        )

    def stop_dispatch(self) -> None:
        """Skip queued chunks from now on."""
        self._stopping = True

    async def close(self) -> None:
        """
        Signal that no more chunks will arrive.

        Safe to call again (or after an interrupted call); only the missing
        stop markers are sent.
        """
        while self._stops_sent < self.worker_count:
            await self._chunks.put(STOP)
            self._stops_sent += 1

    async def cancel(self) -> None:
        """Cancel every worker without waiting for queued chunks."""
        tasks = [*self._workers]
        if self._supervisor is not None:
            tasks.append(self._supervisor)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _supervise(self) -> None:
        await asyncio.gather(*self._workers)
        await self._results.put(POOL_DONE)

    async def _worker(self, index: int) -> None:
        while True:
            item = await self._chunks.get()
            if item is STOP:
                return
            outcome = await self._handle(item)
            await self._results.put(outcome)

    async def _handle(self, chunk: Chunk) -> PartOutcome:
        number = chunk.sequence_number
        if self._stopping:
            logger.debug("Skipping queued part", part=number)
            return PartOutcome(sequence_number=number)

        try:
            result = await self._uploader.upload(self._session, chunk)
        except UploadError as e:
            return PartOutcome(sequence_number=number, error=e)

        return PartOutcome(sequence_number=number, result=result)
