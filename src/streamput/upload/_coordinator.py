"""
Upload coordinator: begin, dispatch every part, collect, then complete or abort.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

from streamput.exceptions import (
    CompletionError,
    ConfigurationError,
    SessionError,
    UploadError,
    UploadPhase,
    UploadTimeoutError,
)
from streamput.logging import get_logger
from streamput.models import (
    Chunk,
    PartOutcome,
    PartResult,
    UploadMetrics,
    UploadResult,
    UploadSession,
    UploadState,
)
from streamput.sources.base import ByteSource, source_size
from streamput.stores.base import ObjectStore
from streamput.upload._config import (
    DEFAULT_ABORT_TIMEOUT,
    DEFAULT_COMPLETE_ATTEMPTS,
    DEFAULT_PART_SIZE,
    DEFAULT_WORKER_COUNT,
    MAX_PARTS,
    QUEUE_DEPTH_MULTIPLIER,
)
from streamput.upload._pool import POOL_DONE, WorkerPool
from streamput.upload._reader import ChunkReader
from streamput.upload._retry import RetryPolicy
from streamput.upload._uploader import PartUploader

logger = get_logger(__name__)

ProgressCallback = Callable[[int, "int | None"], None]

_STATE_PHASE = {
    UploadState.IDLE: UploadPhase.BEGIN,
    UploadState.STARTED: UploadPhase.BEGIN,
    UploadState.UPLOADING: UploadPhase.UPLOAD,
    UploadState.FINALIZING: UploadPhase.COMPLETE,
    UploadState.COMPLETED: UploadPhase.COMPLETE,
    UploadState.ABORTED: UploadPhase.ABORT,
}


class UploadCoordinator:
    """
    Drive one multipart upload from a byte source to a finished object.

    States: idle → started → uploading → finalizing → completed | aborted.

    A producer task reads chunks and queues them in sequence order; a
    WorkerPool uploads them; this coordinator is the only reader of the
    result queue and the only writer of the dispatched/observed counters.
    The part list sent to ``complete_upload`` is sorted by sequence number,
    whatever order workers finished in.

    Failure handling:
    - begin fails: SessionError, nothing to clean up.
    - a part fails fatally (or runs out of retries), or the source fails:
      dispatch stops, in-flight uploads settle, ``abort_upload`` is called
      once, and the first error is raised.
    - completion fails: CompletionError. The session is left open because
      every part is already stored.
    - deadline or task cancellation: workers are cancelled and abort is
      attempted within ``abort_timeout``. A session the store creates after
      the deadline hit begin-upload is aborted as well.

    An empty source is uploaded as a single zero-byte part, since S3 refuses
    to complete an upload with no parts.

    Example:
        >>> coordinator = UploadCoordinator(store, part_size=8 * 1024 * 1024, worker_count=4)
        >>> result = await coordinator.run(source, "feeds/large.xml")
        >>> result.parts_count
        12
    """

    def __init__(
        self,
        store: ObjectStore,
        part_size: int = DEFAULT_PART_SIZE,
        worker_count: int = DEFAULT_WORKER_COUNT,
        queue_size: int | None = None,
        retry_policy: RetryPolicy | None = None,
        complete_attempts: int = DEFAULT_COMPLETE_ATTEMPTS,
        abort_timeout: float = DEFAULT_ABORT_TIMEOUT,
        max_parts: int | None = MAX_PARTS,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if part_size <= 0:
            raise ConfigurationError(f"part_size must be positive, got {part_size}")
        if worker_count < 1:
            raise ConfigurationError(f"worker_count must be >= 1, got {worker_count}")
        if complete_attempts < 1:
            raise ConfigurationError("complete_attempts must be >= 1")

        self._store = store
        self._part_size = part_size
        self._worker_count = worker_count
        self._queue_size = queue_size or worker_count * QUEUE_DEPTH_MULTIPLIER
        self._retry_policy = retry_policy or RetryPolicy()
        self._complete_attempts = complete_attempts
        self._abort_timeout = abort_timeout
        self._max_parts = max_parts
        self._on_progress = on_progress

        self._state = UploadState.IDLE
        self._session: UploadSession | None = None
        self._error: UploadError | None = None
        self._parts: list[PartResult] = []
        self._dispatched = 0
        self._observed = 0
        self._total_size: int | None = None
        self._interrupted_in: UploadState | None = None
        self._started = False

        self._uploader = PartUploader(store, self._retry_policy)
        self._pool: WorkerPool | None = None
        self._producer: asyncio.Task[None] | None = None
        self._closer: asyncio.Task[None] | None = None
        self._metrics = UploadMetrics()

    # =========================================================================
    # Public
    # =========================================================================

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def session(self) -> UploadSession | None:
        """Session once begin-upload succeeded."""
        return self._session

    @property
    def metrics(self) -> UploadMetrics:
        return self._metrics

    @property
    def dispatched(self) -> int:
        return self._dispatched

    @property
    def observed(self) -> int:
        return self._observed

    async def run(
        self,
        source: ByteSource,
        key: str,
        timeout: float | None = None,
    ) -> UploadResult:
        """
        Upload everything ``source`` yields to ``key``.

        Args:
            source: Byte stream to upload, read once.
            key: Destination object key.
            timeout: Deadline for the whole upload in seconds.

        Returns:
            UploadResult with ``success=True``.

        Raises:
            SessionError: begin-upload failed.
            SourceReadError: the source failed mid-stream (upload aborted).
            PartLimitError: the source needs more than ``max_parts`` parts.
            PartUploadError: a part failed (upload aborted).
            CompletionError: every part is stored but assembly failed.
            UploadTimeoutError: ``timeout`` expired (upload aborted).
        """
        if self._started:
            raise RuntimeError("UploadCoordinator can only run once")
        self._started = True
        if not key:
            raise ConfigurationError("Destination key must not be empty")

        start = time.perf_counter()
        try:
            if timeout is None:
                return await self._run(source, key)
            try:
                return await asyncio.wait_for(self._run(source, key), timeout)
            except asyncio.TimeoutError as e:
                raise UploadTimeoutError(
                    timeout,
                    phase=self._timeout_phase,
                    session_id=self._session.session_id if self._session else None,
                    cause=e,
                ) from e
        finally:
            self._metrics.total_time = time.perf_counter() - start

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _run(self, source: ByteSource, key: str) -> UploadResult:
        self._total_size = source_size(source)
        session = await self._begin(key)
        log = logger.bind(key=key, session_id=session.session_id)

        try:
            await self._upload_all(session, source)
            if self._error is not None:
                log.error("Upload failed, aborting", error=str(self._error))
                await self._abort(session)
                raise self._error
            await self._finalize(session)
        except asyncio.CancelledError:
            self._interrupted_in = self._state
            await self._teardown()
            if self._state is not UploadState.ABORTED:
                log.warning("Upload cancelled, aborting")
                await self._abort(session)
            raise

        return UploadResult(
            success=True,
            key=key,
            session_id=session.session_id,
            state=self._state,
            parts_count=len(self._parts),
            size=self._metrics.bytes_uploaded,
            metrics=self._metrics,
        )

    async def _begin(self, key: str) -> UploadSession:
        # Shielded: a store that already created the session still reports
        # its id after a deadline or cancellation, so it can be aborted.
        begin = asyncio.create_task(self._store.begin_upload(key), name="streamput-begin")
        try:
            session_id = await asyncio.shield(begin)
        except asyncio.CancelledError:
            self._interrupted_in = self._state
            await self._abort_late_session(begin, key)
            raise
        except Exception as e:
            raise SessionError(
                f"Starting multipart upload for {key} failed: {e}",
                phase=UploadPhase.BEGIN,
                cause=e,
            ) from e

        self._session = self._new_session(session_id, key)
        self._state = UploadState.STARTED
        logger.info(
            "Started multipart upload",
            key=key,
            session_id=session_id,
            part_size=self._part_size,
            workers=self._worker_count,
        )
        return self._session

    async def _abort_late_session(self, begin: asyncio.Task[str], key: str) -> None:
        """Abort a session whose begin call outlived the caller."""
        try:
            session_id = await asyncio.wait_for(begin, self._abort_timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Begin-upload did not return within {self._abort_timeout}s; "
                "a session may be left open",
                key=key,
            )
            return
        except Exception as e:
            logger.debug("Begin-upload failed after cancellation", key=key, error=str(e))
            return

        self._session = self._new_session(session_id, key)
        logger.warning("Upload cancelled while starting, aborting", session_id=session_id)
        await self._abort(self._session)

    def _new_session(self, session_id: str, key: str) -> UploadSession:
        return UploadSession(
            session_id=session_id,
            destination_key=key,
            part_size=self._part_size,
            worker_count=self._worker_count,
        )

    async def _upload_all(self, session: UploadSession, source: ByteSource) -> None:
        chunks: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._queue_size)
        results: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._queue_size)

        self._pool = WorkerPool(self._uploader, session, chunks, results)
        reader = ChunkReader(source, self._part_size, max_parts=self._max_parts)

        self._state = UploadState.UPLOADING
        upload_start = time.perf_counter()

        self._pool.start()
        self._producer = asyncio.create_task(
            self._produce(reader, chunks), name="streamput-producer"
        )

        while True:
            item = await results.get()
            if item is POOL_DONE:
                break
            self._observe(item)

        await asyncio.wait([self._producer])
        if self._closer is not None:
            await asyncio.wait([self._closer])

        self._metrics.upload_time = time.perf_counter() - upload_start
        self._metrics.bytes_read = reader.bytes_read
        self._metrics.retries_count = self._uploader.retries_count

    async def _produce(self, reader: ChunkReader, chunks: asyncio.Queue[Any]) -> None:
        assert self._pool is not None
        try:
            async for chunk in reader:
                if self._pool.stopping:
                    break
                await chunks.put(chunk)
                self._dispatched += 1

            if self._dispatched == 0 and not self._pool.stopping:
                # Empty source: one zero-byte part keeps completion valid
                await chunks.put(Chunk(sequence_number=1, payload=b""))
                self._dispatched = 1
        except UploadError as e:
            self._fail(e)
        except Exception as e:
            self._fail(
                UploadError(
                    f"Unexpected error reading source: {e}",
                    phase=UploadPhase.READ,
                    cause=e,
                )
            )
        await self._pool.close()

    def _observe(self, outcome: PartOutcome) -> None:
        self._observed += 1

        if outcome.error is not None:
            self._fail(outcome.error)
        elif outcome.result is not None:
            result = outcome.result
            self._parts.append(result)
            self._metrics.parts_count += 1
            self._metrics.bytes_uploaded += result.size
            if self._on_progress is not None:
                try:
                    self._on_progress(self._metrics.bytes_uploaded, self._total_size)
                except Exception:
                    logger.exception("Progress callback failed")

    def _fail(self, error: UploadError) -> None:
        """Record the first fatal error and stop feeding the pool."""
        if self._error is None:
            if self._session is not None and error.session_id is None:
                error.session_id = self._session.session_id
            self._error = error
            logger.error("Upload failing", error=str(error))
        else:
            logger.warning("Discarding error after first failure", error=str(error))

        if self._pool is None or self._pool.stopping:
            return
        self._pool.stop_dispatch()

        producer = self._producer
        if producer is not None and not producer.done() and producer is not asyncio.current_task():
            producer.cancel()
            self._closer = asyncio.create_task(
                self._close_after(producer), name="streamput-closer"
            )

    async def _close_after(self, producer: asyncio.Task[None]) -> None:
        await asyncio.wait([producer])
        assert self._pool is not None
        await self._pool.close()

    async def _teardown(self) -> None:
        tasks = [t for t in (self._producer, self._closer) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if self._pool is not None:
            await self._pool.cancel()

    # =========================================================================
    # Finish
    # =========================================================================

    async def _finalize(self, session: UploadSession) -> None:
        self._state = UploadState.FINALIZING
        parts = sorted(self._parts, key=lambda p: p.sequence_number)
        numbers = [p.sequence_number for p in parts]

        if self._observed != self._dispatched or numbers != list(range(1, self._dispatched + 1)):
            await self._abort(session)
            raise RuntimeError(
                f"Refusing to complete: dispatched {self._dispatched}, "
                f"observed {self._observed}, acknowledged {numbers[:10]}..."
            )

        attempt = 0
        while True:
            attempt += 1
            try:
                await self._store.complete_upload(
                    session.session_id, session.destination_key, parts
                )
                break
            except Exception as e:
                if attempt < self._complete_attempts and self._retry_policy.is_retryable(e):
                    delay = self._retry_policy.backoff(attempt)
                    logger.warning(
                        f"Completion attempt {attempt} failed, retrying in {delay:.2f}s",
                        session_id=session.session_id,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)
                    continue
                raise CompletionError(
                    f"Completing upload of {session.destination_key} failed after "
                    f"{attempt} attempt(s); {len(parts)} parts are stored but not "
                    f"assembled: {e}",
                    session_id=session.session_id,
                    cause=e,
                ) from e

        self._state = UploadState.COMPLETED
        logger.info(
            "Multipart upload completed",
            key=session.destination_key,
            session_id=session.session_id,
            parts=len(parts),
            bytes=self._metrics.bytes_uploaded,
        )

    async def _abort(self, session: UploadSession) -> None:
        """Best-effort abort; failures are logged, never raised."""
        self._state = UploadState.ABORTED
        try:
            await asyncio.wait_for(
                self._store.abort_upload(session.session_id, session.destination_key),
                self._abort_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Abort did not finish within {self._abort_timeout}s",
                session_id=session.session_id,
            )
        except Exception as e:
            logger.error("Abort failed", session_id=session.session_id, error=str(e))
        else:
            logger.info("Multipart upload aborted", session_id=session.session_id)

    @property
    def _timeout_phase(self) -> UploadPhase:
        return _STATE_PHASE[self._interrupted_in or self._state]

    def __repr__(self) -> str:
        session_id = self._session.session_id if self._session else None
        return f"<UploadCoordinator state={self._state.value} session_id={session_id!r}>"
