"""Memoizing wrapper for sync and async read operations."""

from __future__ import annotations

import functools
import inspect
from typing import Any, Awaitable, Callable, TypeVar

from esports_connect.cache.keys import make_key
from esports_connect.cache.manager import CacheManager, validate_ttl

F = TypeVar("F", bound=Callable[..., Any])


def cached(
    operation: F | None = None,
    *,
    cache: CacheManager,
    key: Callable[..., str] | None = None,
    ttl: int | None = None,
    is_async: bool | None = None,
) -> Any:
    """Wrap ``operation`` so its results are memoized in ``cache``.

    Usable directly, ``cached(fetch_user, cache=c)``, or as a decorator,
    ``@cached(cache=c, key=keys.user, ttl=CacheTTL.MEDIUM)``.

    ``key`` receives the call's arguments and returns the cache key. Without
    it the key is the operation's qualified name plus a canonical JSON
    encoding of the arguments.

    Coroutine functions get an async wrapper, so hits and misses are both
    awaited. For a plain callable that returns awaitables, pass
    ``is_async=True`` so hits are awaitable even before the first miss;
    otherwise that is only learned from the first miss.

    Exceptions (cancellation included) propagate unchanged and are never
    cached.
    """
    if operation is None:
        return functools.partial(cached, cache=cache, key=key, ttl=ttl, is_async=is_async)

    if ttl is not None:
        validate_ttl(ttl)

    namespace = f"{getattr(operation, '__module__', None) or ''}." + getattr(
        operation, "__qualname__", type(operation).__qualname__
    )

    def cache_key(*args: Any, **kwargs: Any) -> str:
        if key is not None:
            return key(*args, **kwargs)
        return make_key(namespace, args, kwargs)

    if inspect.iscoroutinefunction(operation):

        @functools.wraps(operation)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            k = cache_key(*args, **kwargs)
            entry = cache.get_entry(k)
            if entry is not None:
                return entry.data
            result = await operation(*args, **kwargs)
            cache.set(k, result, ttl)
            return result

    else:
        returns_awaitable = bool(is_async)

        async def populate_later(k: str, pending: Awaitable[Any]) -> Any:
            result = await pending
            cache.set(k, result, ttl)
            return result

        async def resolved(value: Any) -> Any:
            return value

        @functools.wraps(operation)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            nonlocal returns_awaitable
            k = cache_key(*args, **kwargs)
            entry = cache.get_entry(k)
            if entry is not None:
                return resolved(entry.data) if returns_awaitable else entry.data
            result = operation(*args, **kwargs)
            if inspect.isawaitable(result):
                returns_awaitable = True
                return populate_later(k, result)
            cache.set(k, result, ttl)
            return result

    def invalidate(*args: Any, **kwargs: Any) -> bool:
        return cache.delete(cache_key(*args, **kwargs))

    wrapper.cache = cache  # type: ignore[attr-defined]
    wrapper.cache_key = cache_key  # type: ignore[attr-defined]
    wrapper.invalidate = invalidate  # type: ignore[attr-defined]
    return wrapper
