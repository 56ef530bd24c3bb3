"""
HTTP(S) source backed by an httpx streaming response.
"""

from __future__ import annotations

from typing import Any

import httpx

from streamput.exceptions import SourceReadError
from streamput.logging import get_logger
from streamput.sources.base import IteratorSource

logger = get_logger(__name__)


class HttpSource(IteratorSource):
    """
    Stream a remote file with a single GET request.

    The body is consumed as it arrives; nothing beyond one network piece is
    buffered. Redirects are followed. Errors while opening (DNS, TLS, non-2xx
    status) raise SourceReadError before any upload session exists; errors
    mid-body surface from ``read()`` and are wrapped by the chunk reader.

    Example:
        >>> async with HttpSource("https://example.com/feed.xml") as source:
        ...     print(source.size)  # Content-Length or None
    """

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient | None = None,
        connect_timeout: float = 10.0,
        read_timeout: float = 60.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__()
        self.url = url
        self._client = client
        self._owns_client = client is None
        self._timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._headers = headers or {}
        self._response: httpx.Response | None = None

    @property
    def status_code(self) -> int | None:
        return self._response.status_code if self._response is not None else None

    async def open(self) -> HttpSource:
        """
        Send the GET request and start streaming the body.

        Raises:
            SourceReadError: If the request fails or returns a non-2xx status.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)

        request = self._client.build_request("GET", self.url, headers=self._headers)
        try:
            response = await self._client.send(request, stream=True, follow_redirects=True)
        except httpx.HTTPError as e:
            await self.aclose()
            raise SourceReadError(f"GET {self.url} failed: {e}", cause=e) from e

        self._response = response
        if response.is_error:
            await self.aclose()
            raise SourceReadError(
                f"GET {self.url} returned HTTP {response.status_code}"
            )

        # Content-Length describes the encoded body; only trust it unencoded
        length = response.headers.get("content-length")
        if length is not None and "content-encoding" not in response.headers:
            try:
                self.size = int(length)
            except ValueError:
                self.size = None

        logger.debug("source opened", url=self.url, size=self.size)
        self._set_iterable(response.aiter_bytes())
        return self

    async def aclose(self) -> None:
        if self._response is not None:
            await self._response.aclose()
            self._response = None
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpSource:
        return await self.open()

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<HttpSource url={self.url!r} size={self.size!r}>"
