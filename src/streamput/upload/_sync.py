"""
Synchronous upload service.

Wrapper around AsyncStreamUploader using asyncio.run().
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from streamput.upload._aio import AsyncStreamUploader
from streamput.upload._coordinator import ProgressCallback
from streamput.upload._retry import RetryPolicy

if TYPE_CHECKING:
    from streamput.config import Settings
    from streamput.models import UploadResult
    from streamput.stores.base import ObjectStore


class StreamUploader:
    """
    Synchronous streaming uploader.

    Thin wrapper around AsyncStreamUploader for scripts and handlers that
    are not async. Must not be called from inside a running event loop.

    Example:
        >>> uploader = StreamUploader(S3ObjectStore("my-bucket"))
        >>> result = uploader.url("https://example.com/feed.xml", "feeds/feed.xml")
        >>> result.success
        True
    """

    def __init__(
        self,
        store: ObjectStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._async_service = AsyncStreamUploader(store=store, settings=settings)

    def configure(
        self,
        part_size: int | None = None,
        worker_count: int | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float | None = None,
    ) -> None:
        """Override settings for subsequent uploads."""
        self._async_service.configure(
            part_size=part_size,
            worker_count=worker_count,
            retry_policy=retry_policy,
            timeout=timeout,
        )

    def url(
        self,
        url: str,
        key: str,
        on_progress: ProgressCallback | None = None,
        headers: dict[str, str] | None = None,
    ) -> UploadResult:
        """Stream ``url`` into ``key``. See AsyncStreamUploader.url."""
        return asyncio.run(
            self._async_service.url(url, key, on_progress=on_progress, headers=headers)
        )

    def file(
        self,
        path: str | Path,
        key: str,
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Upload a local file to ``key``."""
        return asyncio.run(self._async_service.file(path, key, on_progress=on_progress))
