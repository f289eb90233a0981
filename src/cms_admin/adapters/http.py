"""HTTP adapter for the CMS backend.

Provides ``HttpCmsAdapter``, an async implementation of the
``RecordStoreClient``, ``CmsConfigClient`` and ``AuthClient`` protocols
on top of ``httpx.AsyncClient``.

Usage:
    from cms_admin.adapters.http import HttpCmsAdapter

    async with HttpCmsAdapter("http://localhost:5173", token="...") as adapter:
        config = await adapter.fetch_config()
        agents = await adapter.fetch_collection()
        await adapter.save_collection(agents)
"""

import json
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from cms_admin.config.models import CMSConfig, EndpointConfig
from cms_admin.errors import RecordNotFoundError, TransportError
from cms_admin.forms.uploads import FileUpload
from cms_admin.store.models import AgentConfigEnvelope, AuthResponse, RecordMap

logger = logging.getLogger(__name__)

_STATUS_MESSAGES: dict[int, tuple[str, str]] = {
    401: ("UNAUTHORIZED", "Your session has expired. Please log in again."),
    403: ("FORBIDDEN", "You do not have permission to perform this action."),
    404: ("NOT_FOUND", "The requested resource was not found."),
    500: ("SERVER_ERROR", "An unexpected error occurred. Please try again later."),
}


def _encode_value(value: Any) -> Any:
    """``json.dumps`` hook for model values stored in records.

    A ``FileUpload`` persists as its metadata only; the bytes stay local.
    """
    if isinstance(value, FileUpload):
        return value.model_dump(mode="json", exclude={"content"})
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _transport_error(error: Exception) -> TransportError:
    """Translate an httpx failure into a ``TransportError``."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        code, message = _STATUS_MESSAGES.get(
            status, ("UNKNOWN_ERROR", f"Request failed with status {status}")
        )
        return TransportError(message, status_code=status, code=code)
    return TransportError(f"Request failed: {error}", code="NETWORK_ERROR")


class HttpCmsAdapter:
    """Async HTTP client for the CMS backend.

    Args:
        base_url: Backend base URL.
        token: Bearer token; optional, can be set later by ``login()``.
        endpoints: Endpoint paths (defaults match the stock backend).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).

    Example:
        adapter = HttpCmsAdapter("http://localhost:5173")
        await adapter.login("admin@example.com", "secret")
        records = await adapter.fetch_collection()
        await adapter.close()
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        endpoints: EndpointConfig | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.endpoints = endpoints or EndpointConfig()
        self._token = token
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpCmsAdapter":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def token(self) -> str | None:
        return self._token

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body (or ``None``)."""
        try:
            response = await self._http.request(method, path, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            error = _transport_error(e)
            logger.error("%s %s failed: %s", method, path, error)
            raise error from e

        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as e:
            logger.error("%s %s returned invalid JSON", method, path)
            raise TransportError(f"Invalid JSON from {path}", code="DECODE_ERROR") from e

    # ------------------------------------------------------------------
    # Record collection
    # ------------------------------------------------------------------

    async def fetch_collection(self) -> RecordMap:
        """Read the whole agent collection from its envelope."""
        body = await self._request("GET", self.endpoints.collection)
        try:
            envelope = AgentConfigEnvelope.model_validate(body or {})
        except ValidationError as e:
            raise TransportError(
                f"Malformed collection from {self.endpoints.collection}", code="DECODE_ERROR"
            ) from e
        logger.debug("Fetched %d records", len(envelope.data))
        return envelope.data

    async def fetch_record(self, key: str) -> dict[str, Any]:
        """Read one record; the backend only serves the whole collection."""
        records = await self.fetch_collection()
        if key not in records:
            raise RecordNotFoundError(key)
        return {"id": key, **records[key]}

    async def save_collection(self, records: RecordMap) -> None:
        """Overwrite the whole collection."""
        await self._request(
            "PUT",
            self.endpoints.save,
            json={
                "fileName": self.endpoints.save_file_name,
                "content": json.dumps(records, indent=2, default=_encode_value),
            },
        )
        logger.debug("Saved %d records", len(records))

    # ------------------------------------------------------------------
    # Schema document and auth
    # ------------------------------------------------------------------

    async def fetch_config(self) -> CMSConfig:
        """Read the CMS configuration document."""
        body = await self._request("GET", self.endpoints.cms_config)
        return CMSConfig.from_document(body or {})

    async def login(self, email: str, password: str) -> AuthResponse:
        """Exchange credentials for a token and use it for later requests."""
        body = await self._request(
            "POST",
            self.endpoints.login,
            json={"username": email, "password": password},
        )
        try:
            auth = AuthResponse.model_validate(body or {})
        except ValidationError as e:
            raise TransportError("Malformed login response", code="DECODE_ERROR") from e
        self._token = auth.token
        return auth

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()
