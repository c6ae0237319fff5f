"""All Pydantic schemas: errors, domain rows, query parameters, cache stats."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class EsportsConnectError(Exception):
    """Base exception for EsportsConnect."""


class InvalidCacheKeyError(EsportsConnectError):
    """Raised when a cache key or key component is empty or malformed."""


class InvalidCacheTTLError(EsportsConnectError):
    """Raised when a TTL is not a positive number of milliseconds."""


class EntityNotFoundError(EsportsConnectError):
    """Raised when the backend has no row for a requested id."""


class BackendError(EsportsConnectError):
    """Raised when a call to the data backend fails."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Game(str, Enum):
    cs2 = "cs2"
    lol = "lol"
    valorant = "valorant"
    dota2 = "dota2"


class PostType(str, Enum):
    text = "text"
    video = "video"
    image = "image"


class ChampionshipStatus(str, Enum):
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"
    cancelled = "cancelled"


# ---------------------------------------------------------------------------
# Domain rows
# ---------------------------------------------------------------------------

class User(BaseModel):
    id: str = Field(..., min_length=1)
    email: str
    username: str = Field(..., min_length=1)
    display_name: str
    avatar_url: str | None = None
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    is_verified: bool = False
    is_premium: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserProfile(BaseModel):
    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    game: Game
    rank: str | None = None
    division: str | None = None
    lp: int | None = None
    mmr: int | None = None
    faceit_level: int | None = Field(None, ge=1, le=10)
    main_role: str | None = None
    updated_at: datetime | None = None


class Post(BaseModel):
    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    title: str
    content: str | None = None
    type: PostType = PostType.text
    video_url: str | None = None
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_public: bool = True
    likes_count: int = Field(0, ge=0)
    comments_count: int = Field(0, ge=0)
    created_at: datetime | None = None


class Team(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    tag: str
    description: str | None = None
    logo_url: str | None = None
    region: str
    game: Game
    is_premium: bool = False
    created_by: str
    created_at: datetime | None = None


class Championship(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    description: str = ""
    game: Game
    region: str
    start_date: datetime
    end_date: datetime
    prize_pool: float | None = Field(None, ge=0)
    max_teams: int | None = Field(None, ge=2)
    status: ChampionshipStatus = ChampionshipStatus.upcoming
    organizer: str
    created_by: str


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------

class Page(BaseModel):
    """1-based page of a listing."""

    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchFilters(BaseModel):
    game: Game | None = None
    rank: str | None = None
    role: str | None = None
    limit: int = Field(20, ge=1, le=100)


# ---------------------------------------------------------------------------
# Cache observability
# ---------------------------------------------------------------------------

class CacheStats(BaseModel):
    size: int = 0
    hits: int = 0
    misses: int = 0
    expirations: int = 0  # stale entries removed (lazily or by sweep)
    evictions: int = 0  # entries dropped by the max_entries bound
    max_entries: int | None = None
    default_ttl_ms: int

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total
