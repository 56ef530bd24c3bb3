"""
S3 object store.

Works against AWS S3 and S3-compatible endpoints (MinIO, R2, ...). boto3 is
blocking, so every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import boto3
from botocore.client import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from streamput.exceptions import StoreError
from streamput.logging import get_logger
from streamput.models import PartResult
from streamput.stores.base import ObjectStore

logger = get_logger(__name__)

_RETRY_CODES = {
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "RequestTimeout",
    "RequestTimeTooSkewed",
    "InternalError",
    "ServiceUnavailable",
    "InternalServerError",
}

_NETWORK_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


def is_retryable_s3_error(exc: BaseException) -> bool:
    """Throttling, timeouts, 5xx and connection failures are worth retrying."""
    if isinstance(exc, _NETWORK_ERRORS):
        return True
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code")
        http = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in _RETRY_CODES:
            return True
        if isinstance(http, int) and 500 <= http < 600:
            return True
    return False


def to_store_error(exc: BaseException, operation: str) -> StoreError:
    """Translate a botocore exception into a StoreError."""
    code: str | None = None
    message = str(exc)
    if isinstance(exc, ClientError):
        err = exc.response.get("Error", {}) or {}
        code = err.get("Code")
        message = err.get("Message") or message
    return StoreError(
        f"S3 {operation} failed: {message}",
        code=code,
        retryable=is_retryable_s3_error(exc),
        cause=exc,
    )


class S3ObjectStore(ObjectStore):
    """
    ObjectStore backed by boto3.

    Retries are owned by the upload pipeline, so botocore's own retry loop is
    limited to a single attempt.

    Example:
        >>> store = S3ObjectStore("my-bucket", region="eu-west-1")
        >>> session_id = await store.begin_upload("feeds/large.xml")
    """

    def __init__(
        self,
        bucket: str,
        client: Any = None,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        content_type: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.content_type = content_type
        self._region = region
        self._endpoint_url = endpoint_url
        self._client = client

    @property
    def client(self) -> Any:
        """boto3 S3 client, created on first use."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self._region,
                endpoint_url=self._endpoint_url,
                config=Config(
                    signature_version="s3v4",
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
            )
            logger.debug("s3 client created", region=self._region, endpoint=self._endpoint_url)
        return self._client

    async def _call(self, operation: str, **params: Any) -> dict[str, Any]:
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, Bucket=self.bucket, **params)
        except (ClientError, BotoCoreError) as e:
            raise to_store_error(e, operation) from e

    async def begin_upload(self, key: str) -> str:
        params: dict[str, Any] = {"Key": key}
        if self.content_type:
            params["ContentType"] = self.content_type
        resp = await self._call("create_multipart_upload", **params)
        return resp["UploadId"]

    async def upload_part(
        self, session_id: str, key: str, part_number: int, data: bytes
    ) -> str:
        resp = await self._call(
            "upload_part",
            Key=key,
            UploadId=session_id,
            PartNumber=part_number,
            Body=data,
        )
        return resp["ETag"]

    async def complete_upload(
        self, session_id: str, key: str, parts: Sequence[PartResult]
    ) -> None:
        # ETags go back exactly as S3 returned them, quotes included
        await self._call(
            "complete_multipart_upload",
            Key=key,
            UploadId=session_id,
            MultipartUpload={
                "Parts": [
                    {"ETag": p.etag, "PartNumber": p.sequence_number} for p in parts
                ]
            },
        )

    async def abort_upload(self, session_id: str, key: str) -> None:
        await self._call("abort_multipart_upload", Key=key, UploadId=session_id)

    def __repr__(self) -> str:
        return f"<S3ObjectStore bucket={self.bucket!r} endpoint={self._endpoint_url!r}>"
