"""Integration tests for EsportsDataClient (fake backend, real cache)."""

from __future__ import annotations

from collections import Counter

import pytest
from fastapi.testclient import TestClient

from esports_connect.cache import keys
from esports_connect.config import Settings
from esports_connect.data.client import EsportsDataClient
from esports_connect.dependencies import build_data_client
from esports_connect.main import create_app
from esports_connect.models import (
    BackendError,
    EntityNotFoundError,
    Game,
    Post,
    SearchFilters,
    Team,
    User,
)


def _user_row(user_id: str, name: str = "Ada") -> dict:
    return {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "username": name.lower(),
        "display_name": name,
    }


def _post_row(post_id: str, user_id: str = "u1") -> dict:
    return {"id": post_id, "user_id": user_id, "title": f"Post {post_id}"}


def _team_row(team_id: str, game: str = "cs2") -> dict:
    return {
        "id": team_id,
        "name": f"Team {team_id}",
        "tag": team_id.upper(),
        "region": "EU",
        "game": game,
        "created_by": "u1",
    }


class FakeBackend:
    """In-memory rows plus a per-method call counter."""

    def __init__(self):
        self.calls: Counter[str] = Counter()
        self.users = {"u1": _user_row("u1"), "u2": _user_row("u2", "Grace")}
        self.profiles = {"u1": {"id": "pr1", "user_id": "u1", "game": "valorant", "rank": "Radiant"}}
        self.posts = [_post_row(f"p{i}", "u1" if i % 2 else "u2") for i in range(1, 6)]
        self.teams = [_team_row("t1"), _team_row("t2", "lol")]
        self.fail_next = False

    def _hit(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail_next:
            self.fail_next = False
            raise ConnectionError("backend unavailable")

    async def fetch_user(self, user_id):
        self._hit("fetch_user")
        return self.users.get(user_id)

    async def fetch_user_profile(self, user_id):
        self._hit("fetch_user_profile")
        return self.profiles.get(user_id)

    async def fetch_posts(self, limit, offset):
        self._hit("fetch_posts")
        return self.posts[offset:offset + limit]

    async def fetch_user_posts(self, user_id, limit, offset):
        self._hit("fetch_user_posts")
        rows = [p for p in self.posts if p["user_id"] == user_id]
        return rows[offset:offset + limit]

    async def fetch_teams(self, limit, offset, game=None, region=None):
        self._hit("fetch_teams")
        rows = [t for t in self.teams if game is None or t["game"] == game]
        return rows[offset:offset + limit]

    async def fetch_championships(self, limit, offset, game=None, region=None, status=None):
        self._hit("fetch_championships")
        return []

    async def search_users(self, query, filters):
        self._hit("search_users")
        self.last_search = (query, filters)
        return [u for u in self.users.values() if query.lower() in u["username"]]

    async def update_user(self, user_id, updates):
        self._hit("update_user")
        self.users[user_id] = {**self.users[user_id], **updates}
        return self.users[user_id]

    async def update_user_profile(self, user_id, updates):
        self._hit("update_user_profile")
        self.profiles[user_id] = {**self.profiles[user_id], **updates}
        return self.profiles[user_id]

    async def create_post(self, data):
        self._hit("create_post")
        row = {"id": f"p{len(self.posts) + 1}", **data}
        self.posts.insert(0, row)
        return row

    async def delete_post(self, post_id):
        self._hit("delete_post")
        self.posts = [p for p in self.posts if p["id"] != post_id]

    async def create_team(self, data):
        self._hit("create_team")
        row = {"id": f"t{len(self.teams) + 1}", **data}
        self.teams.insert(0, row)
        return row

    async def create_championship(self, data):
        self._hit("create_championship")
        return {"id": "c1", **data}

    async def follow_user(self, follower_id, following_id):
        self._hit("follow_user")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend, cache) -> EsportsDataClient:
    return EsportsDataClient(backend, cache)


class TestReads:
    async def test_get_user_is_memoized(self, client, backend, cache):
        first = await client.get_user("u1")
        second = await client.get_user("u1")
        assert isinstance(first, User)
        assert first == second
        assert backend.calls["fetch_user"] == 1
        assert keys.user("u1") in cache

    async def test_user_expires_after_medium_ttl(self, client, backend, clock):
        await client.get_user("u1")
        clock.advance(5 * 60 * 1000 + 1)
        await client.get_user("u1")
        assert backend.calls["fetch_user"] == 2

    async def test_missing_user_not_cached(self, client, backend, cache):
        with pytest.raises(EntityNotFoundError):
            await client.get_user("nobody")
        with pytest.raises(EntityNotFoundError):
            await client.get_user("nobody")
        assert backend.calls["fetch_user"] == 2
        assert cache.size() == 0

    async def test_backend_failure_wrapped_and_not_cached(self, client, backend, cache):
        backend.fail_next = True
        with pytest.raises(BackendError) as excinfo:
            await client.get_user_profile("u1")
        assert isinstance(excinfo.value.__cause__, ConnectionError)
        assert cache.size() == 0
        profile = await client.get_user_profile("u1")
        assert profile.rank == "Radiant"
        assert profile.game is Game.valorant

    async def test_posts_paginated(self, client, backend):
        page1 = await client.get_posts(page=1, limit=2)
        page2 = await client.get_posts(page=2, limit=2)
        assert [p.id for p in page1] == ["p1", "p2"]
        assert [p.id for p in page2] == ["p3", "p4"]
        await client.get_posts(page=1, limit=2)
        assert backend.calls["fetch_posts"] == 2

    async def test_teams_filtered_by_game(self, client, backend, cache):
        cs2 = await client.get_teams(game=Game.cs2)
        also_cs2 = await client.get_teams(game=Game.cs2)
        lol = await client.get_teams(game=Game.lol)
        assert [t.id for t in cs2] == ["t1"]
        assert also_cs2 == cs2
        assert [t.id for t in lol] == ["t2"]
        assert backend.calls["fetch_teams"] == 2

    async def test_search_uses_canonical_filters(self, client, backend):
        await client.search_users("ada", {"game": "valorant"})
        await client.search_users("ADA ", SearchFilters(game=Game.valorant))
        assert backend.calls["search_users"] == 1
        assert backend.last_search == ("ada", {"game": "valorant", "limit": 20})


class TestWriteInvalidation:
    async def test_update_user_drops_cached_user(self, client, backend):
        await client.get_user("u1")
        updated = await client.update_user("u1", {"display_name": "Ada L."})
        assert updated.display_name == "Ada L."
        fresh = await client.get_user("u1")
        assert fresh.display_name == "Ada L."
        assert backend.calls["fetch_user"] == 2

    async def test_update_user_drops_search_results(self, client, backend, cache):
        await client.search_users("ada")
        await client.update_user("u1", {"bio": "IGL"})
        assert not any(k.startswith(keys.SEARCH_PREFIX) for k in cache.keys())

    async def test_update_profile_drops_cached_profile(self, client, backend):
        await client.get_user_profile("u1")
        await client.update_user_profile("u1", {"rank": "Immortal"})
        profile = await client.get_user_profile("u1")
        assert profile.rank == "Immortal"

    async def test_create_post_drops_feed_pages(self, client, backend, cache):
        await client.get_posts(page=1, limit=2)
        await client.get_posts(page=2, limit=2)
        await client.get_user_posts("u1")
        await client.get_user_posts("u2")
        post = await client.create_post({"user_id": "u1", "title": "Ace clutch"})
        assert isinstance(post, Post)
        remaining = cache.keys()
        assert not any(k.startswith(keys.POSTS_PREFIX) for k in remaining)
        assert keys.user_posts("u2", 1) in remaining
        assert keys.user_posts("u1", 1) not in remaining
        feed = await client.get_posts(page=1, limit=2)
        assert feed[0].title == "Ace clutch"

    async def test_delete_post_drops_feed_pages(self, client, backend, cache):
        await client.get_posts()
        await client.delete_post("p1", "u1")
        feed = await client.get_posts()
        assert "p1" not in [p.id for p in feed]
        assert backend.calls["fetch_posts"] == 2

    async def test_create_team_drops_team_listings(self, client, backend):
        await client.get_teams()
        team = await client.create_team(
            {"name": "Navi", "tag": "NAVI", "region": "EU", "game": "cs2", "created_by": "u1"}
        )
        assert isinstance(team, Team)
        teams = await client.get_teams()
        assert teams[0].name == "Navi"

    async def test_create_championship_drops_listings(self, client, backend, cache):
        await client.get_championships()
        await client.create_championship(
            {
                "title": "Masters",
                "game": "valorant",
                "region": "NA",
                "start_date": "2025-06-01T00:00:00Z",
                "end_date": "2025-06-10T00:00:00Z",
                "organizer": "Riot",
                "created_by": "u1",
            }
        )
        assert not any(k.startswith(keys.CHAMPIONSHIPS_PREFIX) for k in cache.keys())

    async def test_follow_drops_both_users(self, client, backend, cache):
        await client.get_user("u1")
        await client.get_user("u2")
        await client.follow_user("u1", "u2")
        assert cache.size() == 0

    async def test_failed_write_keeps_cache(self, client, backend, cache):
        await client.get_user("u1")
        backend.fail_next = True
        with pytest.raises(BackendError):
            await client.update_user("u1", {"bio": "x"})
        assert keys.user("u1") in cache

    async def test_unobserved_writes_are_not_invalidated(self, client, backend):
        await client.get_user("u1")
        backend.users["u1"]["display_name"] = "Changed elsewhere"
        cached_user = await client.get_user("u1")
        assert cached_user.display_name == "Ada"


class TestWiring:
    async def test_build_data_client_shares_cache(self, backend, cache):
        client = build_data_client(backend, cache, Settings(slow_operation_threshold_ms=250))
        assert client.cache is cache
        await client.get_user("u1")
        assert cache.has(keys.user("u1"))

    async def test_embedding_app_shares_cache_with_admin_endpoints(self, backend, settings):
        app = create_app(settings)
        client = build_data_client(backend, app.state.cache, settings)
        await client.get_user("u1")
        http = TestClient(app)
        assert http.get("/api/cache/keys").json() == {"keys": ["user:u1"]}
        assert http.delete("/api/cache/user:u1").json() == {"deleted": True}
        await client.get_user("u1")
        assert backend.calls["fetch_user"] == 2
