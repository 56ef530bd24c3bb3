"""
Byte source interface and the async-iterator adapter.
"""

from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Protocol, runtime_checkable


@runtime_checkable
class ByteSource(Protocol):
    """
    Sequential readable byte stream.

    ``read(n)`` returns at most ``n`` bytes. A short read is not end of
    stream; only an empty result is. No seek or rewind is needed.
    """

    async def read(self, n: int) -> bytes: ...


def source_size(source: ByteSource) -> int | None:
    """Total size if the source knows it up front (e.g. Content-Length)."""
    size = getattr(source, "size", None)
    return size if isinstance(size, int) and size >= 0 else None


class IteratorSource:
    """
    ByteSource over any async iterable of byte pieces.

    Pieces are handed out in order, split when a piece is larger than the
    requested size. At most one piece is held in memory.

    Example:
        >>> async def pieces():
        ...     yield b"hello "
        ...     yield b"world"
        >>> source = IteratorSource(pieces())
        >>> await source.read(4)
        b'hell'
    """

    def __init__(
        self,
        iterable: AsyncIterable[bytes] | None = None,
        size: int | None = None,
    ) -> None:
        self._iterator: AsyncIterator[bytes] | None = (
            iterable.__aiter__() if iterable is not None else None
        )
        self._buffer = bytearray()
        self._exhausted = False
        self.size = size

    def _set_iterable(self, iterable: AsyncIterable[bytes]) -> None:
        self._iterator = iterable.__aiter__()
        self._buffer.clear()
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        """True once the underlying iterator ended and the buffer is empty."""
        return self._exhausted and not self._buffer

    async def read(self, n: int) -> bytes:
        if self._iterator is None:
            raise RuntimeError("Source is not open")
        if n <= 0:
            return b""

        while not self._buffer and not self._exhausted:
            try:
                piece = await self._iterator.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                break
            self._buffer.extend(piece)

        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data
