"""Authenticated HTTP access to the publication platform API."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from orvium_tools.errors import ProtocolError, RemoteError
from orvium_tools.result import FetchFailure
from orvium_tools.settings import Settings

logger = structlog.get_logger(__name__)


def _response_text(response: httpx.Response) -> str:
    try:
        return response.text
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        return ""


def quote_segment(value: str) -> str:
    """Quote one path segment (deposit id, filename, ORCID)."""
    return quote(value, safe="")


def failure_from_error(exc: RemoteError) -> FetchFailure:
    """Classify a platform error for lookups that report failures as values."""
    if exc.status is None:
        return FetchFailure(kind="network", message=str(exc))
    if exc.status == 404:
        return FetchFailure(kind="not_found", message=str(exc), status=exc.status)
    return FetchFailure(kind="status", message=str(exc), status=exc.status)


class PlatformClient:
    """Thin wrapper over ``httpx.AsyncClient`` that adds the credential headers.

    Requests addressed to pre-signed storage URLs must not go through this
    wrapper; use :attr:`http` directly so the credentials stay with the platform.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    @property
    def http(self) -> httpx.AsyncClient:
        return self._client

    def url(self, path: str) -> str:
        return f"{self._settings.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        expected: frozenset[int] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request and raise :class:`RemoteError` unless it succeeds.

        ``expected`` restricts success to specific status codes; by default any
        2xx answer is accepted. Redirects are never followed.
        """
        url = self.url(path)
        headers = {**kwargs.pop("headers", {}), **self._settings.auth_headers}
        try:
            response = await self._client.request(
                method, url, headers=headers, follow_redirects=False, **kwargs
            )
        except httpx.RequestError as exc:
            logger.warning("platform.request_failed", action=action, method=method, url=url, error=str(exc))
            raise RemoteError(f"{action} failed: {exc}") from exc

        ok = response.status_code in expected if expected else response.is_success
        if not ok:
            body = _response_text(response)
            logger.warning(
                "platform.unexpected_status",
                action=action,
                method=method,
                url=url,
                status=response.status_code,
            )
            raise RemoteError(f"{action} failed", status=response.status_code, body=body)
        return response

    async def request_json(self, method: str, path: str, *, action: str, **kwargs: Any) -> Any:
        response = await self.request(method, path, action=action, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError(f"{action} returned a non-JSON body") from exc

    async def get(self, path: str, *, action: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, action=action, **kwargs)

    async def get_json(self, path: str, *, action: str, **kwargs: Any) -> Any:
        return await self.request_json("GET", path, action=action, **kwargs)

    async def post_json(self, path: str, *, action: str, json: Any, **kwargs: Any) -> Any:
        return await self.request_json("POST", path, action=action, json=json, **kwargs)

    async def patch(self, path: str, *, action: str, json: Any, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, action=action, json=json, **kwargs)
