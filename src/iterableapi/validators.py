"""Pure input checks run before any cache or network interaction.

Every function here is side-effect free and never raises; each returns
``True`` only for values the API would accept. They are the fail-fast gate
used by :mod:`iterableapi.lookup` and :mod:`iterableapi.service`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def is_valid_email(value: Any) -> bool:
    """Return True if *value* is a string shaped like ``local@domain.tld``."""
    if not is_non_empty_string(value):
        return False
    return EMAIL_PATTERN.match(value) is not None


def is_valid_url(value: Any) -> bool:
    """Return True for absolute ``http``/``https`` URLs."""
    if not is_non_empty_string(value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_non_empty_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and len(value) > 0


def is_finite_number(value: Any) -> bool:
    """Return True for ints and finite floats (``bool`` is rejected)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_identifier(value: Any) -> bool:
    """Return True for values usable as a list or campaign id.

    Iterable accepts both numeric ids and their string form, so a non-empty
    string or a finite number qualifies.
    """
    return is_non_empty_string(value) or is_finite_number(value)
