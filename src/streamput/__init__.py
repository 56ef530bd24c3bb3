"""
streamput: stream large remote files into object storage.

A file is read once as a sequence of fixed-size parts, uploaded with a
bounded number of concurrent workers, and assembled into one object with a
multipart upload. Memory stays bounded regardless of the file size.

Quick start:
    >>> from streamput import StreamUploader, S3ObjectStore
    >>> uploader = StreamUploader(S3ObjectStore("my-bucket"))
    >>> result = uploader.url("https://example.com/feed.xml", "feeds/feed.xml")
    >>> print(result)
"""

from streamput.config import Settings, configure_settings, get_settings
from streamput.exceptions import (
    CompletionError,
    ConfigurationError,
    PartLimitError,
    PartUploadError,
    SessionError,
    SourceReadError,
    StoreError,
    StreamputError,
    UploadError,
    UploadPhase,
    UploadTimeoutError,
)
from streamput.models import UploadMetrics, UploadResult, UploadSession, UploadState
from streamput.sources import ByteSource, FileSource, HttpSource, IteratorSource
from streamput.stores import MemoryObjectStore, ObjectStore, S3ObjectStore
from streamput.upload import (
    AsyncStreamUploader,
    RetryPolicy,
    StreamUploader,
    UploadCoordinator,
)

__version__ = "0.1.0"

__all__ = [
    # Upload
    "AsyncStreamUploader",
    "RetryPolicy",
    "StreamUploader",
    "UploadCoordinator",
    # Sources
    "ByteSource",
    "FileSource",
    "HttpSource",
    "IteratorSource",
    # Stores
    "MemoryObjectStore",
    "ObjectStore",
    "S3ObjectStore",
    # Models
    "UploadMetrics",
    "UploadResult",
    "UploadSession",
    "UploadState",
    # Config
    "Settings",
    "configure_settings",
    "get_settings",
    # Exceptions
    "CompletionError",
    "ConfigurationError",
    "PartLimitError",
    "PartUploadError",
    "SessionError",
    "SourceReadError",
    "StoreError",
    "StreamputError",
    "UploadError",
    "UploadPhase",
    "UploadTimeoutError",
    "__version__",
]
