"""
Streaming multipart upload.

Pipeline:
    ByteSource → ChunkReader → bounded chunk queue → WorkerPool (N workers)
    → PartUploader → bounded result queue → UploadCoordinator → complete/abort

Features:
- Parts read and numbered in order, uploaded concurrently
- Backpressure: memory bounded by (workers + queue depth) × part size
- Per-part retry with exponential backoff for transient store errors
- Abort on the first fatal error, after in-flight parts settle
- Completion with parts sorted by number
"""

from streamput.upload._aio import AsyncStreamUploader
from streamput.upload._coordinator import UploadCoordinator
from streamput.upload._pool import WorkerPool
from streamput.upload._reader import ChunkReader
from streamput.upload._retry import RetryPolicy, is_transient
from streamput.upload._sync import StreamUploader
from streamput.upload._uploader import PartUploader

__all__ = [
    "AsyncStreamUploader",
    "ChunkReader",
    "PartUploader",
    "RetryPolicy",
    "StreamUploader",
    "UploadCoordinator",
    "WorkerPool",
    "is_transient",
]
