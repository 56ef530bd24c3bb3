"""
Default constants for the upload pipeline.
"""

# Part size for multipart upload
DEFAULT_PART_SIZE = 8 * 1024 * 1024  # 8MB

# Concurrent part uploads
DEFAULT_WORKER_COUNT = 5

# Each queue holds worker_count * this many items
QUEUE_DEPTH_MULTIPLIER = 2

# S3 part number limit
MAX_PARTS = 10_000

# Attempts per part, including the first
DEFAULT_RETRY_ATTEMPTS = 3

# Completion is not idempotent once it succeeded; keep this small
DEFAULT_COMPLETE_ATTEMPTS = 2

# Best-effort abort bound
DEFAULT_ABORT_TIMEOUT = 30.0  # seconds
