"""
Object stores for streamput.
"""

from streamput.stores.base import ObjectStore
from streamput.stores.memory import MemoryObjectStore
from streamput.stores.s3 import S3ObjectStore, is_retryable_s3_error

__all__ = [
    "MemoryObjectStore",
    "ObjectStore",
    "S3ObjectStore",
    "is_retryable_s3_error",
]
