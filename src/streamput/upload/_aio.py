"""
Asynchronous upload service.

Opens a source (URL or local file), runs an UploadCoordinator against the
configured store, and folds every outcome into a single UploadResult.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

from streamput.config import Settings, get_settings
from streamput.exceptions import ConfigurationError, SourceReadError, StreamputError
from streamput.logging import get_logger
from streamput.models import UploadMetrics, UploadResult, UploadState
from streamput.sources.base import ByteSource
from streamput.sources.file import FileSource
from streamput.sources.http import HttpSource
from streamput.upload._coordinator import ProgressCallback, UploadCoordinator
from streamput.upload._retry import RetryPolicy

if TYPE_CHECKING:
    import httpx

    from streamput.stores.base import ObjectStore

logger = get_logger(__name__)


class AsyncStreamUploader:
    """
    Asynchronous streaming uploader.

    Each call creates a fresh UploadCoordinator, so one uploader can run
    several uploads concurrently.

    Example:
        >>> uploader = AsyncStreamUploader(S3ObjectStore("my-bucket"))
        >>> result = await uploader.url(
        ...     "https://example.com/large-feed.xml",
        ...     key="feeds/large-feed.xml",
        ... )
        >>> print(result)  # Shows metrics summary
    """

    def __init__(
        self,
        store: ObjectStore | None = None,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store
        self._http_client = http_client
        s = self._settings
        self._part_size = s.part_size
        self._worker_count = s.worker_count
        self._queue_size = s.queue_size
        self._retry_policy = RetryPolicy(
            max_attempts=s.retry_attempts,
            initial_backoff=s.retry_initial_backoff,
            max_backoff=s.retry_max_backoff,
        )
        self._timeout = s.upload_timeout

    @property
    def store(self) -> ObjectStore:
        """Target store; an S3ObjectStore from settings unless one was given."""
        if self._store is None:
            from streamput.stores.s3 import S3ObjectStore

            if not self._settings.s3_bucket:
                raise ConfigurationError(
                    "No store configured. Pass store=... or set STREAMPUT_S3_BUCKET"
                )
            self._store = S3ObjectStore(
                self._settings.s3_bucket,
                region=self._settings.s3_region,
                endpoint_url=self._settings.s3_endpoint_url,
            )
        return self._store

    def configure(
        self,
        part_size: int | None = None,
        worker_count: int | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Override settings for subsequent uploads.

        Args:
            part_size: Bytes per part.
            worker_count: Concurrent part uploads.
            retry_policy: Retry strategy for parts and completion.
            timeout: Deadline per upload in seconds.
        """
        if part_size is not None:
            if part_size <= 0:
                raise ConfigurationError("part_size must be positive")
            self._part_size = part_size
        if worker_count is not None:
            if worker_count < 1:
                raise ConfigurationError("worker_count must be >= 1")
            self._worker_count = worker_count
            self._queue_size = worker_count * self._settings.queue_depth_multiplier
        if retry_policy is not None:
            self._retry_policy = retry_policy
        if timeout is not None:
            self._timeout = timeout

    async def url(
        self,
        url: str,
        key: str,
        on_progress: ProgressCallback | None = None,
        headers: dict[str, str] | None = None,
    ) -> UploadResult:
        """
        Stream ``url`` into ``key``.

        The store is resolved and the GET request is sent before the multipart
        upload starts, so a bad URL or a missing bucket never leaves an open
        session behind.

        Args:
            url: HTTP(S) URL of the file.
            key: Destination object key.
            on_progress: Callback(uploaded_bytes, total_bytes_or_None).
            headers: Extra request headers.

        Returns:
            UploadResult with success status, failure context and metrics.
        """
        start = time.perf_counter()
        try:
            store = self.store
        except StreamputError as e:
            return self._failed(key, e, None, time.perf_counter() - start)

        source = HttpSource(
            url,
            client=self._http_client,
            connect_timeout=self._settings.http_connect_timeout,
            read_timeout=self._settings.http_read_timeout,
            headers=headers,
        )
        try:
            await source.open()
        except StreamputError as e:
            return self._failed(key, e, None, time.perf_counter() - start)

        try:
            return await self._upload(store, source, key, on_progress)
        finally:
            await source.aclose()

    async def file(
        self,
        path: str | Path,
        key: str,
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Upload a local file to ``key``."""
        start = time.perf_counter()
        try:
            store = self.store
        except StreamputError as e:
            return self._failed(key, e, None, time.perf_counter() - start)

        source = FileSource(path)
        try:
            await source.open()
        except OSError as e:
            error = SourceReadError(f"Cannot open {path}: {e}", cause=e)
            return self._failed(key, error, None, time.perf_counter() - start)

        try:
            return await self._upload(store, source, key, on_progress)
        finally:
            await source.aclose()

    async def upload_source(
        self,
        source: ByteSource,
        key: str,
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Upload an already open ByteSource to ``key``."""
        try:
            store = self.store
        except StreamputError as e:
            return self._failed(key, e, None, 0.0)
        return await self._upload(store, source, key, on_progress)

    async def _upload(
        self,
        store: ObjectStore,
        source: ByteSource,
        key: str,
        on_progress: ProgressCallback | None,
    ) -> UploadResult:
        coordinator = UploadCoordinator(
            store,
            part_size=self._part_size,
            worker_count=self._worker_count,
            queue_size=self._queue_size,
            retry_policy=self._retry_policy,
            complete_attempts=self._settings.complete_attempts,
            abort_timeout=self._settings.abort_timeout,
            max_parts=self._settings.max_parts,
            on_progress=on_progress,
        )

        try:
            result = await coordinator.run(source, key, timeout=self._timeout)
        except StreamputError as e:
            logger.error("Upload failed", key=key, error=str(e))
            return self._failed(key, e, coordinator, coordinator.metrics.total_time)

        logger.info(
            f"Uploaded {result.size:,} bytes in {result.metrics.total_time:.1f}s "
            f"({result.metrics.total_speed_mbps:.1f} MB/s)",
            key=key,
            parts=result.parts_count,
        )
        return result

    @staticmethod
    def _failed(
        key: str,
        error: StreamputError,
        coordinator: UploadCoordinator | None,
        elapsed: float,
    ) -> UploadResult:
        metrics = coordinator.metrics if coordinator is not None else UploadMetrics()
        metrics.total_time = elapsed
        session = coordinator.session if coordinator is not None else None
        return UploadResult(
            success=False,
            key=key,
            session_id=getattr(error, "session_id", None)
            or (session.session_id if session else None),
            state=coordinator.state if coordinator is not None else UploadState.IDLE,
            parts_count=metrics.parts_count,
            size=metrics.bytes_uploaded,
            error=str(error),
            phase=getattr(error, "phase", None),
            part_number=getattr(error, "part_number", None),
            metrics=metrics,
        )
