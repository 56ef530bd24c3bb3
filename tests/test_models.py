"""
Tests for upload models.
"""

import pytest
from pydantic import ValidationError

from streamput.exceptions import PartUploadError, UploadPhase
from streamput.models import (
    Chunk,
    PartOutcome,
    PartResult,
    UploadMetrics,
    UploadResult,
    UploadSession,
    UploadState,
)


class TestUploadSession:
    def test_create(self):
        session = UploadSession(
            session_id="abc", destination_key="a/b.xml", part_size=1024, worker_count=2
        )
        assert session.session_id == "abc"
        assert session.destination_key == "a/b.xml"

    def test_frozen(self):
        session = UploadSession(
            session_id="abc", destination_key="k", part_size=1, worker_count=1
        )
        with pytest.raises(ValidationError):
            session.session_id = "other"

    def test_empty_key_rejected(self):
        with pytest.raises(ValidationError):
            UploadSession(session_id="abc", destination_key="", part_size=1, worker_count=1)

    def test_invalid_sizes(self):
        with pytest.raises(ValidationError):
            UploadSession(session_id="a", destination_key="k", part_size=0, worker_count=1)
        with pytest.raises(ValidationError):
            UploadSession(session_id="a", destination_key="k", part_size=1, worker_count=0)


class TestChunk:
    def test_length(self):
        chunk = Chunk(sequence_number=1, payload=b"hello")
        assert chunk.length == 5
        assert repr(chunk) == "Chunk(#1, 5 bytes)"

    def test_zero_byte_chunk(self):
        assert Chunk(sequence_number=1, payload=b"").length == 0

    def test_sequence_starts_at_one(self):
        with pytest.raises(ValidationError):
            Chunk(sequence_number=0, payload=b"x")


class TestPartOutcome:
    def test_success(self):
        outcome = PartOutcome(
            sequence_number=2, result=PartResult(sequence_number=2, etag='"e"', size=3)
        )
        assert not outcome.skipped
        assert outcome.error is None

    def test_error(self):
        error = PartUploadError("boom", part_number=2)
        outcome = PartOutcome(sequence_number=2, error=error)
        assert outcome.error is error
        assert not outcome.skipped

    def test_skipped(self):
        assert PartOutcome(sequence_number=4).skipped


class TestUploadMetrics:
    def test_defaults(self):
        m = UploadMetrics()
        assert m.bytes_uploaded == 0
        assert m.upload_speed_mbps == 0.0
        assert m.total_speed_mbps == 0.0

    def test_speeds(self):
        m = UploadMetrics(bytes_uploaded=10 * 1024 * 1024, upload_time=2.0, total_time=5.0)
        assert m.upload_speed_mbps == pytest.approx(5.0)
        assert m.total_speed_mbps == pytest.approx(2.0)

    def test_summary(self):
        m = UploadMetrics(
            bytes_uploaded=3 * 1024 * 1024,
            total_time=1.5,
            upload_time=1.0,
            parts_count=3,
            retries_count=1,
        )
        summary = m.summary()
        assert "3.0 MB" in summary
        assert "Parts: 3" in summary
        assert "Retries: 1" in summary

    def test_summary_omits_zero_retries(self):
        assert "Retries" not in UploadMetrics(parts_count=1).summary()


class TestUploadResult:
    def test_success_repr(self):
        result = UploadResult(
            success=True,
            key="k",
            session_id="s",
            state=UploadState.COMPLETED,
            parts_count=2,
            size=1024 * 1024,
        )
        assert "ok" in repr(result)
        assert "2 parts" in repr(result)

    def test_failure(self):
        result = UploadResult(
            success=False,
            key="k",
            state=UploadState.ABORTED,
            error="part 2 failed",
            phase=UploadPhase.UPLOAD,
            part_number=2,
        )
        assert str(result) == "Failed: part 2 failed"
        assert "failed" in repr(result)
        assert result.phase is UploadPhase.UPLOAD
