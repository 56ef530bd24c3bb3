"""Tests for IteratorSource and the ByteSource protocol."""

import pytest

from streamput.sources import ByteSource, FileSource, HttpSource, IteratorSource, source_size


async def pieces(*items):
    for item in items:
        yield item


class TestIteratorSource:
    @pytest.mark.asyncio
    async def test_reads_across_pieces(self):
        source = IteratorSource(pieces(b"hello ", b"world"))

        assert await source.read(4) == b"hell"
        assert await source.read(100) == b"o "
        assert await source.read(100) == b"world"
        assert await source.read(100) == b""
        assert source.exhausted

    @pytest.mark.asyncio
    async def test_skips_empty_pieces(self):
        source = IteratorSource(pieces(b"", b"ab", b"", b"c"))

        assert await source.read(10) == b"ab"
        assert await source.read(10) == b"c"
        assert await source.read(10) == b""

    @pytest.mark.asyncio
    async def test_zero_read(self):
        source = IteratorSource(pieces(b"abc"))
        assert await source.read(0) == b""
        assert not source.exhausted

    @pytest.mark.asyncio
    async def test_not_open(self):
        with pytest.raises(RuntimeError, match="not open"):
            await IteratorSource().read(1)

    @pytest.mark.asyncio
    async def test_iterator_error_propagates(self):
        async def broken():
            yield b"ok"
            raise ConnectionResetError("reset")

        source = IteratorSource(broken())
        assert await source.read(10) == b"ok"
        with pytest.raises(ConnectionResetError):
            await source.read(10)


class TestByteSourceProtocol:
    def test_implementations(self, tmp_path):
        assert isinstance(IteratorSource(), ByteSource)
        assert isinstance(FileSource(tmp_path / "x"), ByteSource)
        assert isinstance(HttpSource("https://example.com"), ByteSource)

    def test_source_size(self):
        assert source_size(IteratorSource(size=42)) == 42
        assert source_size(IteratorSource()) is None
        assert source_size(object()) is None
