"""
Upload a single chunk as one numbered part.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from streamput.exceptions import PartUploadError
from streamput.logging import get_logger
from streamput.models import Chunk, PartResult, UploadSession
from streamput.stores.base import ObjectStore
from streamput.upload._retry import RetryPolicy

logger = get_logger(__name__)


class PartUploader:
    """
    Upload parts with retry.

    Safe to call concurrently for different parts of one session. A retried
    part reuses its sequence number, which the store treats as an overwrite.
    """

    def __init__(
        self,
        store: ObjectStore,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self.retries_count = 0

    async def upload(self, session: UploadSession, chunk: Chunk) -> PartResult:
        """
        Upload ``chunk`` to ``session``.

        Raises:
            PartUploadError: On a fatal failure, or a transient one that
                outlived the retry policy.
        """
        number = chunk.sequence_number
        attempt = 0

        while True:
            attempt += 1
            try:
                etag = await self._store.upload_part(
                    session.session_id,
                    session.destination_key,
                    number,
                    chunk.payload,
                )
            except Exception as e:
                retryable = self._policy.is_retryable(e)
                if retryable and attempt < self._policy.max_attempts:
                    delay = self._policy.backoff(attempt)
                    self.retries_count += 1
                    logger.warning(
                        f"Part {number} attempt {attempt} failed, retrying in {delay:.2f}s",
                        error=str(e),
                    )
                    await self._sleep(delay)
                    continue
                raise PartUploadError(
                    f"Uploading part {number} failed after {attempt} attempt(s): {e}",
                    part_number=number,
                    retryable=retryable,
                    attempts=attempt,
                    session_id=session.session_id,
                    cause=e,
                ) from e

            if not etag:
                raise PartUploadError(
                    f"Store returned no ETag for part {number}",
                    part_number=number,
                    attempts=attempt,
                    session_id=session.session_id,
                )

            logger.debug(f"Uploaded part {number}", size=chunk.length, etag=etag)
            return PartResult(sequence_number=number, etag=etag, size=chunk.length)
