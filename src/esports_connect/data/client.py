"""EsportsDataClient: cached facade over the hosted data backend."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Protocol

from esports_connect.cache import keys
from esports_connect.cache.decorator import cached
from esports_connect.cache.manager import CacheManager, CacheTTL
from esports_connect.models import (
    BackendError,
    Championship,
    ChampionshipStatus,
    EntityNotFoundError,
    EsportsConnectError,
    Game,
    Page,
    Post,
    SearchFilters,
    Team,
    User,
    UserProfile,
)
from esports_connect.timing import SLOW_OPERATION_MS, measure_async_operation

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class DataBackend(Protocol):
    """Row-level access to the hosted backend. Rows are plain dicts."""

    async def fetch_user(self, user_id: str) -> Row | None: ...

    async def fetch_user_profile(self, user_id: str) -> Row | None: ...

    async def fetch_posts(self, limit: int, offset: int) -> list[Row]: ...

    async def fetch_user_posts(self, user_id: str, limit: int, offset: int) -> list[Row]: ...

    async def fetch_teams(
        self, limit: int, offset: int, game: str | None = None, region: str | None = None
    ) -> list[Row]: ...

    async def fetch_championships(
        self,
        limit: int,
        offset: int,
        game: str | None = None,
        region: str | None = None,
        status: str | None = None,
    ) -> list[Row]: ...

    async def search_users(self, query: str, filters: Row) -> list[Row]: ...

    async def update_user(self, user_id: str, updates: Row) -> Row: ...

    async def update_user_profile(self, user_id: str, updates: Row) -> Row: ...

    async def create_post(self, data: Row) -> Row: ...

    async def delete_post(self, post_id: str) -> None: ...

    async def create_team(self, data: Row) -> Row: ...

    async def create_championship(self, data: Row) -> Row: ...

    async def follow_user(self, follower_id: str, following_id: str) -> None: ...


class EsportsDataClient:
    """Read paths are memoized in ``cache``; writes invalidate what they touch."""

    def __init__(
        self,
        backend: DataBackend,
        cache: CacheManager,
        slow_threshold_ms: float = SLOW_OPERATION_MS,
    ):
        self._backend = backend
        self._cache = cache
        self._slow_threshold_ms = slow_threshold_ms

        self.get_user = cached(self._load_user, cache=cache, key=keys.user, ttl=CacheTTL.MEDIUM)
        self.get_user_profile = cached(
            self._load_user_profile, cache=cache, key=keys.user_profile, ttl=CacheTTL.MEDIUM
        )
        self.get_posts = cached(self._load_posts, cache=cache, key=_posts_key, ttl=CacheTTL.SHORT)
        self.get_user_posts = cached(
            self._load_user_posts, cache=cache, key=_user_posts_key, ttl=CacheTTL.SHORT
        )
        self.get_teams = cached(self._load_teams, cache=cache, key=_teams_key, ttl=CacheTTL.LONG)
        self.get_championships = cached(
            self._load_championships, cache=cache, key=_championships_key, ttl=CacheTTL.LONG
        )
        self.search_users = cached(
            self._load_search, cache=cache, key=keys.search, ttl=CacheTTL.SHORT
        )

    @property
    def cache(self) -> CacheManager:
        return self._cache

    # ------------------------------------------------------------------
    # Reads (wrapped with ``cached`` in __init__)
    # ------------------------------------------------------------------

    async def _load_user(self, user_id: str) -> User:
        row = await self._call("fetch_user", self._backend.fetch_user, user_id)
        if row is None:
            raise EntityNotFoundError(f"User not found: {user_id}")
        return User.model_validate(row)

    async def _load_user_profile(self, user_id: str) -> UserProfile:
        row = await self._call("fetch_user_profile", self._backend.fetch_user_profile, user_id)
        if row is None:
            raise EntityNotFoundError(f"Profile not found for user: {user_id}")
        return UserProfile.model_validate(row)

    async def _load_posts(self, page: int = 1, limit: int = 20) -> list[Post]:
        p = Page(page=page, limit=limit)
        rows = await self._call("fetch_posts", self._backend.fetch_posts, p.limit, p.offset)
        return [Post.model_validate(r) for r in rows]

    async def _load_user_posts(self, user_id: str, page: int = 1, limit: int = 20) -> list[Post]:
        p = Page(page=page, limit=limit)
        rows = await self._call(
            "fetch_user_posts", self._backend.fetch_user_posts, user_id, p.limit, p.offset
        )
        return [Post.model_validate(r) for r in rows]

    async def _load_teams(
        self,
        page: int = 1,
        limit: int = 20,
        game: Game | None = None,
        region: str | None = None,
    ) -> list[Team]:
        p = Page(page=page, limit=limit)
        rows = await self._call(
            "fetch_teams",
            self._backend.fetch_teams,
            p.limit,
            p.offset,
            game=_enum_value(game),
            region=region,
        )
        return [Team.model_validate(r) for r in rows]

    async def _load_championships(
        self,
        page: int = 1,
        limit: int = 20,
        game: Game | None = None,
        region: str | None = None,
        status: ChampionshipStatus | None = None,
    ) -> list[Championship]:
        p = Page(page=page, limit=limit)
        rows = await self._call(
            "fetch_championships",
            self._backend.fetch_championships,
            p.limit,
            p.offset,
            game=_enum_value(game),
            region=region,
            status=_enum_value(status),
        )
        return [Championship.model_validate(r) for r in rows]

    async def _load_search(
        self, query: str, filters: SearchFilters | dict[str, Any] | None = None
    ) -> list[User]:
        if not isinstance(filters, SearchFilters):
            filters = SearchFilters.model_validate(filters or {})
        rows = await self._call(
            "search_users",
            self._backend.search_users,
            query.strip(),
            filters.model_dump(mode="json", exclude_none=True),
        )
        return [User.model_validate(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def update_user(self, user_id: str, updates: dict[str, Any]) -> User:
        row = await self._call("update_user", self._backend.update_user, user_id, updates)
        self._cache.delete(keys.user(user_id))
        self._cache.delete_prefix(keys.SEARCH_PREFIX)
        return User.model_validate(row)

    async def update_user_profile(self, user_id: str, updates: dict[str, Any]) -> UserProfile:
        row = await self._call(
            "update_user_profile", self._backend.update_user_profile, user_id, updates
        )
        self._cache.delete(keys.user_profile(user_id))
        self._cache.delete_prefix(keys.SEARCH_PREFIX)
        return UserProfile.model_validate(row)

    async def create_post(self, data: dict[str, Any]) -> Post:
        row = await self._call("create_post", self._backend.create_post, data)
        post = Post.model_validate(row)
        self._invalidate_feeds(post.user_id)
        return post

    async def delete_post(self, post_id: str, user_id: str) -> None:
        await self._call("delete_post", self._backend.delete_post, post_id)
        self._invalidate_feeds(user_id)

    async def create_team(self, data: dict[str, Any]) -> Team:
        row = await self._call("create_team", self._backend.create_team, data)
        self._cache.delete_prefix(keys.TEAMS_PREFIX)
        return Team.model_validate(row)

    async def create_championship(self, data: dict[str, Any]) -> Championship:
        row = await self._call("create_championship", self._backend.create_championship, data)
        self._cache.delete_prefix(keys.CHAMPIONSHIPS_PREFIX)
        return Championship.model_validate(row)

    async def follow_user(self, follower_id: str, following_id: str) -> None:
        await self._call("follow_user", self._backend.follow_user, follower_id, following_id)
        self._cache.delete(keys.user(follower_id))
        self._cache.delete(keys.user(following_id))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _invalidate_feeds(self, user_id: str) -> None:
        removed = self._cache.delete_prefix(keys.POSTS_PREFIX)
        removed += self._cache.delete_prefix(keys.user_posts_prefix(user_id))
        logger.debug("Post write for user %s invalidated %d cached pages", user_id, removed)

    async def _call(self, name: str, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Run a backend call with timing, wrapping foreign errors in BackendError."""
        try:
            return await measure_async_operation(
                name,
                lambda: fn(*args, **kwargs),
                slow_threshold_ms=self._slow_threshold_ms,
            )
        except EsportsConnectError:
            raise
        except Exception as exc:
            raise BackendError(f"Backend call {name} failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Key functions (signatures mirror the read methods they key)
# ---------------------------------------------------------------------------

def _posts_key(page: int = 1, limit: int = 20) -> str:
    return keys.posts(page, limit)


def _user_posts_key(user_id: str, page: int = 1, limit: int = 20) -> str:
    return keys.user_posts(user_id, page, limit)


def _teams_key(
    page: int = 1, limit: int = 20, game: Game | None = None, region: str | None = None
) -> str:
    return keys.teams(page, limit, game=game, region=region)


def _championships_key(
    page: int = 1,
    limit: int = 20,
    game: Game | None = None,
    region: str | None = None,
    status: ChampionshipStatus | None = None,
) -> str:
    return keys.championships(page, limit, game=game, region=region, status=status)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)
