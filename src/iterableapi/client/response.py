"""Response body helpers shared by the directory and service layers."""

from __future__ import annotations

import httpx


def is_json_response(response: httpx.Response) -> bool:
    """Return True if the response declares an ``application/json`` body.

    Parameters such as ``charset`` are ignored; the media type itself must
    match exactly.
    """
    content_type = response.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json"
