"""Tests for FileSource."""

import pytest

from streamput.sources import FileSource


class TestFileSource:
    @pytest.mark.asyncio
    async def test_read_all(self, tmp_path, payload):
        path = tmp_path / "data.bin"
        path.write_bytes(payload)

        async with FileSource(path) as source:
            assert source.size == len(payload)
            data = b""
            while piece := await source.read(64):
                data += piece

        assert data == payload

    @pytest.mark.asyncio
    async def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")

        async with FileSource(path) as source:
            assert source.size == 0
            assert await source.read(10) == b""

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await FileSource(tmp_path / "missing.bin").open()

    @pytest.mark.asyncio
    async def test_read_after_close(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc")
        source = await FileSource(path).open()
        await source.aclose()

        with pytest.raises(RuntimeError):
            await source.read(1)

    def test_repr(self, tmp_path):
        assert "data.bin" in repr(FileSource(tmp_path / "data.bin"))
