"""Single-round-trip user fetches from the Iterable user directory.

:class:`RemoteDirectory` performs exactly one HTTP request per call and
never raises for ordinary remote failure. Every outcome is expressed as a
:class:`~iterableapi.models.LookupResult`:

* ``FETCHED`` -- the body was JSON with a non-empty ``user`` object.
* ``ABSENT`` -- the body was JSON but carried no user (unknown key).
* ``FAILED`` -- network error, HTTP error status, non-JSON content type,
  or a body that could not be decoded.

Failures are logged as warnings. Caching is not this module's concern;
see :class:`~iterableapi.lookup.UserLookup`.
"""

from __future__ import annotations

import logging
from typing import Any

from iterableapi.client import AsyncClient, is_json_response
from iterableapi.exceptions import IterableError
from iterableapi.models import LookupResult

logger = logging.getLogger(__name__)

USER_BY_EMAIL_PATH = "/api/users/getByEmail"
USER_BY_USER_ID_PATH = "/api/users/byUserId"


class RemoteDirectory:
    """Fetches user records by email or userId.

    Keys are assumed to be validated by the caller.

    Args:
        client: An open :class:`~iterableapi.client.AsyncClient`.
    """

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def fetch_by_email(self, email: str) -> LookupResult:
        return await self._fetch(USER_BY_EMAIL_PATH, {"email": email})

    async def fetch_by_user_id(self, user_id: str) -> LookupResult:
        return await self._fetch(USER_BY_USER_ID_PATH, {"userId": user_id})

    async def _fetch(self, path: str, params: dict[str, Any]) -> LookupResult:
        try:
            response = await self._client.get(path, params=params)
        except IterableError as exc:
            logger.warning("Failed to fetch user from %s: %s", path, exc)
            return LookupResult.failed()

        if not is_json_response(response):
            logger.warning(
                "Response from %s is not JSON. content-type: %s",
                path,
                response.headers.get("content-type"),
            )
            return LookupResult.failed()

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Response from %s could not be decoded: %s", path, exc)
            return LookupResult.failed()

        if not isinstance(payload, dict):
            logger.warning("Response from %s is not a JSON object", path)
            return LookupResult.failed()

        user = payload.get("user")
        if not isinstance(user, dict) or not user:
            return LookupResult.absent()
        return LookupResult.fetched(user)
