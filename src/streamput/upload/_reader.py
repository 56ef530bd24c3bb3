"""
Split a byte source into numbered, fixed-size chunks.
"""

from __future__ import annotations

from typing import AsyncIterator

from streamput.exceptions import PartLimitError, SourceReadError
from streamput.models import Chunk
from streamput.sources.base import ByteSource


class ChunkReader:
    """
    Lazy, single-pass iterator of Chunks.

    Each chunk is filled with repeated ``source.read()`` calls until it holds
    ``part_size`` bytes or the source ends. Sequence numbers start at 1 and
    are assigned in read order. Only the chunk being assembled is held in
    memory.

    Example:
        >>> reader = ChunkReader(source, part_size=8 * 1024 * 1024)
        >>> async for chunk in reader:
        ...     print(chunk.sequence_number, chunk.length)
    """

    def __init__(
        self,
        source: ByteSource,
        part_size: int,
        max_parts: int | None = None,
    ) -> None:
        if part_size <= 0:
            raise ValueError("part_size must be positive")
        self._source = source
        self._part_size = part_size
        self._max_parts = max_parts
        self._started = False
        self.bytes_read = 0
        self.chunks_read = 0

    def __aiter__(self) -> AsyncIterator[Chunk]:
        if self._started:
            raise RuntimeError("ChunkReader can only be iterated once")
        self._started = True
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[Chunk]:
        while True:
            sequence_number = self.chunks_read + 1
            pieces, filled, at_end = await self._fill(sequence_number)

            if filled:
                if self._max_parts is not None and sequence_number > self._max_parts:
                    raise PartLimitError(
                        self._max_parts,
                        self._part_size,
                        part_number=sequence_number,
                    )
                payload = pieces[0] if len(pieces) == 1 else b"".join(pieces)
                self.chunks_read = sequence_number
                self.bytes_read += filled
                yield Chunk(sequence_number=sequence_number, payload=payload)

            if at_end:
                return

    async def _fill(self, sequence_number: int) -> tuple[list[bytes], int, bool]:
        pieces: list[bytes] = []
        filled = 0
        while filled < self._part_size:
            wanted = self._part_size - filled
            try:
                data = await self._source.read(wanted)
            except Exception as e:
                raise SourceReadError(
                    f"Reading source failed: {e}",
                    part_number=sequence_number,
                    cause=e,
                ) from e

            if not data:
                return pieces, filled, True
            if len(data) > wanted:
                raise SourceReadError(
                    f"Source returned {len(data)} bytes for a {wanted} byte read",
                    part_number=sequence_number,
                )
            pieces.append(bytes(data))
            filled += len(data)
        return pieces, filled, False
