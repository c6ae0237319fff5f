"""Canonical cache key derivation.

Every helper is a pure function: logically identical requests map to the
same key and different requests never share one. Structured values are
encoded as JSON with sorted object keys so the key never depends on
argument or field enumeration order.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from esports_connect.models import InvalidCacheKeyError, SearchFilters

USER_PREFIX = "user:"
USER_PROFILE_PREFIX = "user_profile:"
POSTS_PREFIX = "posts:"
USER_POSTS_PREFIX = "user_posts:"
TEAMS_PREFIX = "teams:"
CHAMPIONSHIPS_PREFIX = "championships:"
SEARCH_PREFIX = "search:"


# ---------------------------------------------------------------------------
# Canonical encoding
# ---------------------------------------------------------------------------

def canonical_json(value: Any) -> str:
    """Encode ``value`` as compact JSON with sorted keys."""
    return json.dumps(
        _normalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def make_key(namespace: str, args: tuple[Any, ...] = (), kwargs: Mapping[str, Any] | None = None) -> str:
    """Derive a key for a call from its namespace and arguments."""
    if not namespace:
        raise InvalidCacheKeyError("Key namespace must be a non-empty string")
    return f"{namespace}:{canonical_json([list(args), dict(kwargs or {})])}"


def _normalize(value: Any) -> Any:
    # Tuples, sets and dates are wrapped as {"$tag": ...}. User mapping keys
    # starting with "$" get one more "$", so a tag never matches user data.
    if isinstance(value, Enum):
        return _normalize(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(mode="json", exclude_none=True))
    if isinstance(value, datetime):
        return {"$datetime": value.isoformat()}
    if isinstance(value, date):
        return {"$date": value.isoformat()}
    if isinstance(value, Mapping):
        return {_mapping_key(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    if isinstance(value, tuple):
        return {"$tuple": [_normalize(v) for v in value]}
    if isinstance(value, (set, frozenset)):
        items = [_normalize(v) for v in value]
        return {"$set": sorted(items, key=lambda v: json.dumps(v, sort_keys=True))}
    raise InvalidCacheKeyError(
        f"Cannot derive a cache key from a {type(value).__name__}; pass an explicit key function"
    )


def _mapping_key(key: Any) -> str:
    if isinstance(key, Enum):
        key = key.value
    if not isinstance(key, str):
        raise InvalidCacheKeyError(
            f"Mapping keys must be strings to derive a cache key, got {key!r}; "
            "pass an explicit key function"
        )
    if key.startswith("$"):
        return "$" + key
    return key


# ---------------------------------------------------------------------------
# Entity keys
# ---------------------------------------------------------------------------

def user(user_id: str) -> str:
    return f"{USER_PREFIX}{_require_id(user_id)}"


def user_profile(user_id: str) -> str:
    return f"{USER_PROFILE_PREFIX}{_require_id(user_id)}"


def posts(page: int, limit: int) -> str:
    return f"{POSTS_PREFIX}{_require_page(page)}:{_require_limit(limit)}"


def user_posts_prefix(user_id: str) -> str:
    """Prefix shared by every page of one user's posts."""
    return f"{USER_POSTS_PREFIX}{_require_id(user_id)}:"


def user_posts(user_id: str, page: int, limit: int = 20) -> str:
    return f"{user_posts_prefix(user_id)}{_require_page(page)}:{_require_limit(limit)}"


def teams(page: int, limit: int, **filters: Any) -> str:
    return _listing(TEAMS_PREFIX, page, limit, filters)


def championships(page: int, limit: int, **filters: Any) -> str:
    return _listing(CHAMPIONSHIPS_PREFIX, page, limit, filters)


def search(query: str, filters: SearchFilters | Mapping[str, Any] | None = None) -> str:
    """Key for a user search.

    The query is stripped and case-folded since matching is case-insensitive.
    Missing filters and default filters produce the same key.
    """
    if not isinstance(query, str):
        raise InvalidCacheKeyError(f"Search query must be a string, got {query!r}")
    if not isinstance(filters, SearchFilters):
        filters = SearchFilters.model_validate(dict(filters or {}))
    return SEARCH_PREFIX + canonical_json({"query": query.strip().casefold(), "filters": filters})


def _listing(prefix: str, page: int, limit: int, filters: Mapping[str, Any]) -> str:
    key = f"{prefix}{_require_page(page)}:{_require_limit(limit)}"
    active = {k: v for k, v in filters.items() if v is not None}
    if active:
        key += ":" + canonical_json(active)
    return key


def _require_id(value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidCacheKeyError(f"Identifier must be a non-empty string, got {value!r}")
    if ":" in value:
        raise InvalidCacheKeyError(f"Identifier must not contain ':', got {value!r}")
    return value


def _require_page(page: int) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise InvalidCacheKeyError(f"Page must be an integer >= 1, got {page!r}")
    return page


def _require_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidCacheKeyError(f"Limit must be an integer >= 1, got {limit!r}")
    return limit
