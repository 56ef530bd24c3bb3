"""
Retry policy for part uploads and completion.
"""

from __future__ import annotations

import asyncio
import random

import httpx
from pydantic import BaseModel, ConfigDict, Field

from streamput.exceptions import StoreError
from streamput.upload._config import DEFAULT_RETRY_ATTEMPTS


def is_transient(exc: BaseException) -> bool:
    """
    Classify a store failure.

    StoreError carries the adapter's verdict. Dropped connections and timeouts are
    transient; anything else (bad request, unknown session, bugs) is fatal.
    """
    if isinstance(exc, StoreError):
        return exc.retryable
    return isinstance(
        exc,
        (ConnectionError, TimeoutError, asyncio.TimeoutError, httpx.TransportError),
    )


class RetryPolicy(BaseModel):
    """
    Exponential backoff with cap and jitter.

    Subclass and override ``is_retryable`` or ``backoff`` to plug in another
    strategy; the uploader only uses those two and ``max_attempts``.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=1)
    initial_backoff: float = Field(default=0.5, ge=0.0)
    max_backoff: float = Field(default=8.0, ge=0.0)
    multiplier: float = Field(default=2.0, ge=1.0)
    jitter: float = Field(default=0.1, ge=0.0, le=1.0)

    @classmethod
    def no_retry(cls) -> RetryPolicy:
        """Fail on the first error."""
        return cls(max_attempts=1)

    def is_retryable(self, exc: BaseException) -> bool:
        return is_transient(exc)

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after failed attempt number ``attempt`` (1-based)."""
        delay = min(
            self.max_backoff,
            self.initial_backoff * self.multiplier ** max(0, attempt - 1),
        )
        if self.jitter and delay > 0:
            delay *= 1 + random.uniform(-self.jitter, self.jitter)
        return max(0.0, delay)
