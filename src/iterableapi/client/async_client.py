"""Asynchronous HTTP client for the Iterable REST API.

This module provides :class:`AsyncClient`, a thin layer over
:class:`httpx.AsyncClient` that:

- **Injects the API key** -- every request carries the ``Api-Key`` header
  and a JSON ``Accept`` header.
- **Maps errors** -- network failures become
  :class:`~iterableapi.exceptions.ConnectionError_`; HTTP statuses >= 400
  become :class:`~iterableapi.exceptions.AuthError`,
  :class:`~iterableapi.exceptions.NotFoundError` or
  :class:`~iterableapi.exceptions.ServerError`.

Requests are sent exactly once. There is no retry, backoff, or rate
limiting at this layer.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from iterableapi.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from iterableapi.models import ServiceConfig

logger = logging.getLogger(__name__)

API_KEY_HEADER = "Api-Key"
ACCEPT_JSON = "application/json; charset=utf-8"


class AsyncClient:
    """Asynchronous HTTP client for Iterable API calls.

    Must be used as an async context manager so that the underlying
    connection pool is opened and closed.

    Args:
        config: Service configuration (API key, base URL, request settings).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        async with AsyncClient(ServiceConfig(api_key="abc")) as client:
            response = await client.get("/api/lists")
    """

    def __init__(
        self,
        config: ServiceConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        request = self._config.request
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=request.timeout,
            verify=request.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send one HTTP request with the API key attached.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            path: URL path appended to the configured ``base_url``.
            params: Query parameters.
            headers: Extra request headers; they override the defaults.
            json_body: JSON-serialisable body.

        Returns:
            The :class:`httpx.Response` for any status below 400.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On any other status >= 400.
            ConnectionError_: On network / timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        merged_headers: dict[str, str] = {
            "Accept": ACCEPT_JSON,
            API_KEY_HEADER: self._config.api_key,
        }
        merged_headers.update(headers or {})

        kwargs: dict[str, Any] = {
            "method": method,
            "url": path,
            "headers": merged_headers,
        }
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body

        logger.debug("%s %s params=%s", method, path, params or {})
        try:
            response = await self._client.request(**kwargs)
        except httpx.RequestError as exc:
            raise ConnectionError_(f"{method} {path} failed: {exc}") from exc

        self._map_response_error(response)
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        # Iterable error bodies use ``msg``; fall back to the usual suspects.
        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = (
                    detail.get("msg")
                    or detail.get("message")
                    or detail.get("error")
                    or detail.get("detail")
                    or ""
                )
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)
