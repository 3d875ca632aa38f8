"""S3-compatible storage client built on aioboto3."""

from contextlib import AsyncExitStack
from typing import Any, Dict, Optional
from urllib.parse import quote

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.error_handling import translate_exception, with_error_handling
from ..core.exceptions import StorageError
from ..core.logging_config import get_logger


def cache_control_header(cache_control: str) -> str:
    """Turn a bare number of seconds into a Cache-Control header value."""
    if cache_control.isdigit():
        return f"max-age={cache_control}"
    return cache_control


class S3StorageClient:
    """
    Uploads artifacts to an S3-compatible bucket.

    Use as an async context manager to share one client across a batch;
    outside of one, each upload opens its own client.

    Args:
        session: aioboto3 session (a default one is created if omitted).
        region_name: Bucket region, used for client creation and public URLs.
        endpoint_url: Custom endpoint for S3-compatible services.
        public_base_url: Prefix for public URLs, e.g.
            "https://<project>.supabase.co/storage/v1/object/public".
            Defaults to the endpoint (path style) or the AWS virtual-hosted URL.
    """

    def __init__(
        self,
        session: Optional[aioboto3.Session] = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        self._session = session or aioboto3.Session()
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._public_base_url = public_base_url
        self._client: Any = None
        self._exit_stack: Optional[AsyncExitStack] = None
        self._logger = get_logger("storage")

    def _client_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if self._region_name:
            kwargs["region_name"] = self._region_name
        if self._endpoint_url:
            kwargs["endpoint_url"] = self._endpoint_url
        return kwargs

    async def __aenter__(self) -> "S3StorageClient":
        self._exit_stack = AsyncExitStack()
        self._client = await self._exit_stack.enter_async_context(
            self._session.client("s3", **self._client_kwargs())  # type: ignore[reportUnknownMemberType]
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
        self._exit_stack = None
        self._client = None

    @with_error_handling(fallback=StorageError)
    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        cache_control: str,
        upsert: bool,
        content_type: str,
    ) -> None:
        """Put ``data`` at ``bucket/path``; without ``upsert`` an existing key fails."""
        params: Dict[str, Any] = {
            "Bucket": bucket,
            "Key": path,
            "Body": data,
            "ContentType": content_type,
            "CacheControl": cache_control_header(cache_control),
        }
        if not upsert:
            params["IfNoneMatch"] = "*"

        self._logger.debug(f"Uploading {len(data)} bytes to s3://{bucket}/{path}")
        try:
            await self._put(params)
        except (ClientError, BotoCoreError) as e:
            message = str(translate_exception(e, "upload", StorageError))
            raise StorageError(message, path=path) from e

    async def _put(self, params: Dict[str, Any]) -> None:
        if self._client is not None:
            await self._client.put_object(**params)
            return
        async with self._session.client("s3", **self._client_kwargs()) as s3_client:  # type: ignore[reportUnknownMemberType]
            await s3_client.put_object(**params)

    def get_public_url(self, bucket: str, path: str) -> str:
        key = quote(path, safe="/")
        if self._public_base_url:
            return f"{self._public_base_url.rstrip('/')}/{bucket}/{key}"
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{bucket}/{key}"
        if self._region_name and self._region_name != "us-east-1":
            return f"https://{bucket}.s3.{self._region_name}.amazonaws.com/{key}"
        return f"https://{bucket}.s3.amazonaws.com/{key}"
