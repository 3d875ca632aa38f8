"""HTTP client for the bulk checklist image registration endpoint."""

from typing import Any, Dict, List, Optional

import aiohttp

from ..core.error_handling import with_error_handling
from ..core.exceptions import RegistrationError
from ..core.logging_config import get_logger
from ..core.models import DEFAULT_BULK_ENDPOINT, UploadResult
from ..core.observability import StructuredLogger, timed_operation

DEFAULT_ERROR_MESSAGE = "Failed to save images"

timing_logger = StructuredLogger("checklist-images.registration.timing")


class HttpRegistrationClient:
    """POSTs uploaded image URLs to the backend in a single request."""

    def __init__(
        self,
        base_url: str,
        endpoint: str = DEFAULT_BULK_ENDPOINT,
        session: Optional[aiohttp.ClientSession] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
    ):
        self._url = f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        self._session = session
        self._headers = headers or {}
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._logger = get_logger("registration")

    @property
    def url(self) -> str:
        return self._url

    @with_error_handling(fallback=RegistrationError)
    @timed_operation("register_images", logger=timing_logger)
    async def register(self, results: List[UploadResult]) -> None:
        """
        Register ``results`` as ``{"items": [{"checklistid", "url"}, ...]}``.

        Raises:
            RegistrationError: Non-2xx response (message taken from the body's
                ``error`` field) or transport failure.
        """
        payload = {"items": [result.to_payload() for result in results]}
        self._logger.debug(f"Registering {len(results)} image(s) at {self._url}")

        if self._session is not None:
            await self._post(self._session, payload)
            return
        async with aiohttp.ClientSession(
            timeout=self._timeout, headers=self._headers
        ) as session:
            await self._post(session, payload)

    async def _post(self, session: aiohttp.ClientSession, payload: Dict[str, Any]) -> None:
        async with session.post(self._url, json=payload, headers=self._headers) as response:
            body = await self._read_json(response)
            if not 200 <= response.status < 300:
                message = body.get("error") if isinstance(body, dict) else None
                self._logger.error(
                    f"Registration failed with HTTP {response.status}: {message}"
                )
                raise RegistrationError(
                    str(message) if message else DEFAULT_ERROR_MESSAGE,
                    status=response.status,
                )

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return None
