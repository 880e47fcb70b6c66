"""HTTP client module for iterableapi.

Provides :class:`AsyncClient`, which wraps :class:`httpx.AsyncClient`
with API-key injection and typed error mapping.

Example::

    from iterableapi.client import AsyncClient

    async with AsyncClient(config) as client:
        resp = await client.get("/api/lists")
"""

from iterableapi.client.async_client import AsyncClient
from iterableapi.client.response import is_json_response

__all__ = ["AsyncClient", "is_json_response"]
