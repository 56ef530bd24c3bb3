"""
Local file source.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import IO, Any


class FileSource:
    """
    ByteSource reading a local file.

    Blocking reads run in the default thread pool so the event loop keeps
    serving upload workers.

    Example:
        >>> async with FileSource(Path("./dump.xml")) as source:
        ...     result = await uploader.upload_source(source, "dumps/dump.xml")
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.size: int | None = None
        self._fh: IO[bytes] | None = None

    async def open(self) -> FileSource:
        self._fh = await asyncio.to_thread(open, self.path, "rb")
        self.size = os.fstat(self._fh.fileno()).st_size
        return self

    async def read(self, n: int) -> bytes:
        if self._fh is None:
            raise RuntimeError("Source is not open")
        return await asyncio.to_thread(self._fh.read, n)

    async def aclose(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    async def __aenter__(self) -> FileSource:
        return await self.open()

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<FileSource path={str(self.path)!r}>"
