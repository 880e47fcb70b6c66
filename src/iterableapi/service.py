"""Typed async client surface for the Iterable REST API.

:class:`IterableService` mirrors the remote endpoints one method each. Every
method validates its inputs locally first; invalid input is logged as a
warning and answered with the method's empty value (``None`` or ``[]``)
without a network call. HTTP and decoding failures are logged and answered
the same way, so ordinary remote trouble never raises out of this class.

The two user reads (by email, by userId) go through
:class:`~iterableapi.lookup.UserLookup` and its in-memory caches; all other
methods are uncached request/response translations.

Programmer errors still raise: :class:`~iterableapi.exceptions.ConfigError`
for a missing API key, and :class:`~iterableapi.exceptions.InvalidUsageError`
for wrongly typed lookup keys, bad :meth:`IterableService.subscribe_to_list`
arguments, and an invalid email passed to the deprecated
:meth:`IterableService.fetch_user_iterable_data`.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Mapping
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from iterableapi.cache import UserLookupCaches
from iterableapi.client import AsyncClient
from iterableapi.directory import RemoteDirectory
from iterableapi.exceptions import ConfigError, InvalidUsageError, IterableError
from iterableapi.lookup import UserLookup
from iterableapi.models import LookupResult, ServiceConfig
from iterableapi.validators import (
    is_identifier,
    is_non_empty_mapping,
    is_non_empty_string,
    is_valid_email,
    is_valid_url,
)

logger = logging.getLogger(__name__)

EVENTS_LIMIT = 200
IN_APP_MESSAGE_COUNT = 5
IN_APP_PLATFORM = "Web"
EVENT_IN_APP_DELIVERY = "trackInAppDelivery"
EVENT_IN_APP_OPEN = "trackInAppOpen"


def _segment(value: Any) -> str:
    """Percent-encode *value* for use as a single URL path segment."""
    return quote(str(value), safe="")


class IterableService:
    """Client for the Iterable API with cached user lookups.

    Args:
        config: An API key string, a :class:`~iterableapi.models.ServiceConfig`,
            or a mapping that validates as one.
        caches: User lookup caches to use. When omitted, a fresh pair sized
            by ``config.cache`` is created and lives as long as this service.
        transport: Optional httpx transport (tests use
            :class:`httpx.MockTransport`).

    Raises:
        ConfigError: If no usable API key is given.

    Example::

        async with IterableService("api-key") as service:
            result = await service.lookup_user_by_email("someone@example.com")
            if result.found:
                print(result.record["userId"])
    """

    def __init__(
        self,
        config: Union[str, ServiceConfig, Mapping[str, Any]],
        caches: Optional[UserLookupCaches] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = self._coerce_config(config)
        self._caches = caches or UserLookupCaches.from_config(self._config.cache)
        self._client = AsyncClient(self._config, transport=transport)
        self._lookup = UserLookup(RemoteDirectory(self._client), self._caches)

    @staticmethod
    def _coerce_config(config: Any) -> ServiceConfig:
        if isinstance(config, ServiceConfig):
            if not is_valid_url(config.base_url):
                raise ConfigError(f"base_url must be an http(s) URL, got {config.base_url!r}")
            return config
        if isinstance(config, str):
            if not config:
                raise ConfigError("config must have an api_key")
            return ServiceConfig(api_key=config)
        if isinstance(config, Mapping):
            try:
                coerced = ServiceConfig.model_validate(dict(config))
            except ValidationError as exc:
                raise ConfigError(f"Invalid service config: {exc}") from exc
            return IterableService._coerce_config(coerced)
        raise ConfigError(
            f"config must be an API key or ServiceConfig, got {type(config).__name__}"
        )

    async def __aenter__(self) -> IterableService:
        await self._client.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._client.__aexit__(*args)

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def caches(self) -> UserLookupCaches:
        return self._caches

    # ------------------------------------------------------------------ #
    # Users
    # ------------------------------------------------------------------ #

    async def lookup_user_by_email(self, email: str) -> LookupResult:
        """Look up a user by email, consulting the email cache first."""
        return await self._lookup.by_email(email)

    async def lookup_user_by_user_id(self, user_id: str) -> LookupResult:
        """Look up a user by userId, consulting the userId cache first."""
        return await self._lookup.by_user_id(user_id)

    async def fetch_user_by_email(self, email: str) -> Optional[dict[str, Any]]:
        """Return the user record for *email*, or ``None``."""
        return (await self._lookup.by_email(email)).record

    async def fetch_user_by_user_id(self, user_id: str) -> Optional[dict[str, Any]]:
        """Return the user record for *user_id*, or ``None``."""
        return (await self._lookup.by_user_id(user_id)).record

    async def fetch_user_id_by_email(self, email: str) -> Optional[str]:
        """Return the ``userId`` of the user with *email*, or ``None``."""
        user = await self.fetch_user_by_email(email)
        if user is None:
            return None
        return user.get("userId")

    async def fetch_user_iterable_data(self, email: str) -> dict[str, Any]:
        """Return ``{"user": record}`` for *email*.

        .. deprecated::
            Use :meth:`fetch_user_by_email` instead.

        Raises:
            InvalidUsageError: If *email* is not a valid email address.
        """
        warnings.warn(
            "fetch_user_iterable_data is deprecated; use fetch_user_by_email",
            DeprecationWarning,
            stacklevel=2,
        )
        if not is_valid_email(email):
            raise InvalidUsageError(
                "fetch_user_iterable_data: email provided is not a valid email address"
            )
        return {"user": await self.fetch_user_by_email(email)}

    async def put_user_data(
        self,
        *,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
        data_fields: Mapping[str, Any],
    ) -> Optional[Any]:
        """Create or update a user, merging nested data fields.

        At least one of *email* or *user_id* is required. When only an
        email is given it must be well formed. ``preferUserId`` is set when
        both identifiers are present.
        """
        has_email = is_non_empty_string(email)
        has_user_id = is_non_empty_string(user_id)
        if not has_email and not has_user_id:
            logger.warning("put_user_data: must provide either email or userId")
            return None
        if not has_user_id and not is_valid_email(email):
            logger.warning(
                "put_user_data: email provided does not appear to be a valid email address"
            )
            return None
        if not isinstance(data_fields, Mapping):
            logger.warning("put_user_data: data_fields is not a mapping")
            return None

        payload: dict[str, Any] = {
            "dataFields": dict(data_fields),
            "mergeNestedObjects": True,
        }
        if has_email:
            payload["email"] = email
        if has_user_id:
            payload["userId"] = user_id
        payload["preferUserId"] = has_email and has_user_id
        return await self._send_json(
            "put_user_data", "POST", "/api/users/update", json_body=payload
        )

    async def fetch_user_events(self, email: str) -> list[Any]:
        """Return up to 200 recent events for *email* (``[]`` on failure)."""
        if not is_non_empty_string(email):
            logger.warning("fetch_user_events: email is not a string or is empty")
            return []
        data = await self._send_json(
            "fetch_user_events",
            "GET",
            f"/api/events/{_segment(email)}",
            params={"limit": str(EVENTS_LIMIT)},
        )
        if not isinstance(data, dict) or not isinstance(data.get("events"), list):
            return []
        return list(data["events"])

    # ------------------------------------------------------------------ #
    # Lists
    # ------------------------------------------------------------------ #

    async def create_static_list(self, name: str, description: str) -> Optional[Any]:
        """Create a static list; the response carries the new ``listId``."""
        if not is_non_empty_string(name):
            logger.warning("create_static_list: name is not a string or is empty")
            return None
        if not is_non_empty_string(description):
            logger.warning("create_static_list: description is not a string or is empty")
            return None
        return await self._send_json(
            "create_static_list",
            "POST",
            "/api/lists",
            json_body={"name": name, "description": description},
        )

    async def fetch_lists(self) -> Optional[Any]:
        return await self._send_json("fetch_lists", "GET", "/api/lists")

    async def fetch_list_users(self, list_id: Union[str, int]) -> list[str]:
        """Return the member emails of a list.

        The endpoint answers with newline-separated text; lines that are not
        valid email addresses are dropped.
        """
        if not is_identifier(list_id):
            logger.warning("fetch_list_users: listId is not a string or number")
            return []
        response = await self._send(
            "fetch_list_users",
            "GET",
            "/api/lists/getUsers",
            params={"listId": str(list_id)},
        )
        if response is None:
            return []
        lines = (line.strip() for line in response.text.splitlines())
        return [line for line in lines if is_valid_email(line)]

    async def subscribe_to_list(
        self,
        list_id: Union[str, int],
        subscribers: list[dict[str, Any]],
    ) -> Optional[Any]:
        """Add subscribers (``{"email": ...}`` / ``{"userId": ...}``) to a list.

        Raises:
            InvalidUsageError: If *list_id* is not a string or number, or
                *subscribers* is not a list.
        """
        if not is_identifier(list_id):
            raise InvalidUsageError(
                "subscribe_to_list: listId is not a string or number"
            )
        if not isinstance(subscribers, list):
            raise InvalidUsageError("subscribe_to_list: subscribers is not a list")
        return await self._send_json(
            "subscribe_to_list",
            "POST",
            "/api/lists/subscribe",
            json_body={"listId": list_id, "subscribers": list(subscribers)},
        )

    # ------------------------------------------------------------------ #
    # Templates
    # ------------------------------------------------------------------ #

    async def fetch_template(
        self, template_id: Union[str, int], template_type: str
    ) -> Optional[Any]:
        """Fetch a template of *template_type* (``email``, ``push``, ...)."""
        if not is_identifier(template_id):
            logger.warning("fetch_template: templateId is not a string or number")
            return None
        if not is_non_empty_string(template_type):
            logger.warning("fetch_template: type is not a string or is empty")
            return None
        return await self._send_json(
            "fetch_template",
            "GET",
            f"/api/templates/{_segment(template_type)}/get",
            params={"templateId": str(template_id)},
        )

    async def update_template(
        self, template_type: str, body: Mapping[str, Any]
    ) -> Optional[str]:
        if not is_non_empty_string(template_type):
            logger.warning("update_template: type is not a string or is empty")
            return None
        if not is_non_empty_mapping(body):
            logger.warning("update_template: body is not a valid object")
            return None
        return await self._send_text(
            "update_template",
            "POST",
            f"/api/templates/{_segment(template_type)}/update",
            json_body=dict(body),
        )

    # ------------------------------------------------------------------ #
    # In-app messages
    # ------------------------------------------------------------------ #

    async def fetch_in_app_messages_for_user(self, user_id: str) -> Optional[Any]:
        """Fetch the latest five web in-app messages for *user_id*."""
        if not is_non_empty_string(user_id):
            logger.warning(
                "fetch_in_app_messages_for_user: userId is not a string or is empty"
            )
            return None
        return await self._send_json(
            "fetch_in_app_messages_for_user",
            "GET",
            "/api/inApp/getMessages",
            params={
                "userId": user_id,
                "count": str(IN_APP_MESSAGE_COUNT),
                "platform": IN_APP_PLATFORM,
            },
        )

    async def track_in_app_message_event(
        self, user_id: str, message_id: str, event: str
    ) -> Optional[str]:
        """Post an in-app tracking *event* (e.g. ``trackInAppOpen``)."""
        if not is_non_empty_string(user_id):
            logger.warning("track_in_app_message_event: userId is not a string or is empty")
            return None
        if not is_non_empty_string(message_id):
            logger.warning(
                "track_in_app_message_event: messageId is not a string or is empty"
            )
            return None
        if not is_non_empty_string(event):
            logger.warning("track_in_app_message_event: event is not a string or is empty")
            return None
        return await self._send_text(
            "track_in_app_message_event",
            "POST",
            f"/api/events/{_segment(event)}",
            json_body={"userId": user_id, "messageId": message_id},
        )

    async def mark_in_app_message_as_delivered(
        self, user_id: str, message_id: str
    ) -> Optional[str]:
        return await self.track_in_app_message_event(
            user_id, message_id, EVENT_IN_APP_DELIVERY
        )

    async def mark_in_app_message_as_read(
        self, user_id: str, message_id: str
    ) -> Optional[str]:
        return await self.track_in_app_message_event(user_id, message_id, EVENT_IN_APP_OPEN)

    async def trigger_in_app_for_user_id(
        self, user_id: str, campaign_id: Union[str, int]
    ) -> Optional[Any]:
        if not is_non_empty_string(user_id):
            logger.warning("trigger_in_app_for_user_id: userId is not a string or is empty")
            return None
        if not is_identifier(campaign_id):
            logger.warning(
                "trigger_in_app_for_user_id: campaignId is not a string or number"
            )
            return None
        return await self._send_json(
            "trigger_in_app_for_user_id",
            "POST",
            "/api/inApp/target",
            json_body={"campaignId": campaign_id, "recipientUserId": user_id},
        )

    async def trigger_in_app_for_email(
        self, email: str, campaign_id: Union[str, int]
    ) -> Optional[Any]:
        if not is_valid_email(email):
            logger.warning("trigger_in_app_for_email: email is not a valid email address")
            return None
        if not is_identifier(campaign_id):
            logger.warning("trigger_in_app_for_email: campaignId is not a string or number")
            return None
        return await self._send_json(
            "trigger_in_app_for_email",
            "POST",
            "/api/inApp/target",
            json_body={"campaignId": campaign_id, "recipientEmail": email},
        )

    # ------------------------------------------------------------------ #
    # Catalogs
    # ------------------------------------------------------------------ #

    async def list_catalog_items(
        self,
        catalog: str,
        page: Union[int, str] = 1,
        limit: Union[int, str] = 100,
    ) -> Optional[Any]:
        if not is_non_empty_string(catalog):
            logger.warning("list_catalog_items: catalog is not a string or is empty")
            return None
        if not is_identifier(page):
            logger.warning("list_catalog_items: page is not a string or number")
            return None
        if not is_identifier(limit):
            logger.warning("list_catalog_items: limit is not a string or number")
            return None
        return await self._send_json(
            "list_catalog_items",
            "GET",
            f"/api/catalogs/{_segment(catalog)}/items",
            params={"page": str(page), "pageSize": str(limit)},
        )

    async def create_or_replace_catalog_item(
        self, catalog: str, item_id: str, item: Mapping[str, Any]
    ) -> Optional[Any]:
        """PUT a catalog item, replacing any existing value.

        When *item* has a non-null ``data`` key, that value is sent;
        otherwise *item* itself is.
        """
        if not self._check_catalog_item("create_or_replace_catalog_item", catalog, item_id, item):
            return None
        return await self._send_json(
            "create_or_replace_catalog_item",
            "PUT",
            f"/api/catalogs/{_segment(catalog)}/items/{_segment(item_id)}",
            json_body={"value": self._item_value(item)},
        )

    async def create_or_update_catalog_item(
        self, catalog: str, item_id: str, item: Mapping[str, Any]
    ) -> Optional[Any]:
        """PATCH a catalog item, merging fields into any existing value."""
        if not self._check_catalog_item("create_or_update_catalog_item", catalog, item_id, item):
            return None
        return await self._send_json(
            "create_or_update_catalog_item",
            "PATCH",
            f"/api/catalogs/{_segment(catalog)}/items/{_segment(item_id)}",
            json_body={"update": self._item_value(item)},
        )

    async def delete_catalog_item(
        self, catalog: str, item_id: Union[str, list[str]]
    ) -> Optional[Any]:
        """Delete one item by id, or several when *item_id* is a list."""
        if not is_non_empty_string(catalog):
            logger.warning("delete_catalog_item: catalog is not a string or is empty")
            return None
        if is_non_empty_string(item_id):
            return await self._send_json(
                "delete_catalog_item",
                "DELETE",
                f"/api/catalogs/{_segment(catalog)}/items/{_segment(item_id)}",
            )
        if (
            isinstance(item_id, list)
            and item_id
            and all(is_non_empty_string(each) for each in item_id)
        ):
            return await self._send_json(
                "delete_catalog_item",
                "DELETE",
                f"/api/catalogs/{_segment(catalog)}/items",
                json_body={"itemIds": list(item_id)},
            )
        logger.warning(
            "delete_catalog_item: itemId must be a string or a list of strings"
        )
        return None

    @staticmethod
    def _check_catalog_item(label: str, catalog: Any, item_id: Any, item: Any) -> bool:
        if not is_non_empty_string(catalog):
            logger.warning("%s: catalog is not a string or is empty", label)
            return False
        if not is_non_empty_string(item_id):
            logger.warning("%s: itemId is not a string or is empty", label)
            return False
        if not isinstance(item, Mapping):
            logger.warning("%s: item is not a mapping", label)
            return False
        return True

    @staticmethod
    def _item_value(item: Mapping[str, Any]) -> Any:
        data = item.get("data")
        return data if data is not None else dict(item)

    # ------------------------------------------------------------------ #
    # Transport helpers
    # ------------------------------------------------------------------ #

    async def _send(
        self, label: str, method: str, path: str, **kwargs: Any
    ) -> Optional[httpx.Response]:
        try:
            return await self._client.request(method, path, **kwargs)
        except IterableError as exc:
            logger.warning("%s: request failed: %s", label, exc)
            return None

    async def _send_json(
        self, label: str, method: str, path: str, **kwargs: Any
    ) -> Optional[Any]:
        response = await self._send(label, method, path, **kwargs)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s: response is not valid JSON: %s", label, exc)
            return None

    async def _send_text(
        self, label: str, method: str, path: str, **kwargs: Any
    ) -> Optional[str]:
        response = await self._send(label, method, path, **kwargs)
        if response is None:
            return None
        return response.text
