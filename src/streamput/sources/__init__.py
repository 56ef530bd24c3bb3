"""
Byte sources for streamput.

A source is anything with ``async read(n) -> bytes`` that returns empty bytes
at end of stream.
"""

from streamput.sources.base import ByteSource, IteratorSource, source_size
from streamput.sources.file import FileSource
from streamput.sources.http import HttpSource

__all__ = [
    "ByteSource",
    "FileSource",
    "HttpSource",
    "IteratorSource",
    "source_size",
]
