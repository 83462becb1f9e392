"""
Pydantic request / response schemas for the API layer.
Kept separate from the engine types in feed_api.ranking.models so the
transport shape can evolve without touching the scorer.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from feed_api.ranking.models import ScoreBreakdown


# ──────────────────────────── Feed posts ──────────────────────────────────

class FeedAuthor(BaseModel):
    user_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None
    follower_count: Optional[int] = None


class EngagementCounts(BaseModel):
    """Aggregate counters. ``None`` means the upstream query did not count it."""
    likes: Optional[int] = None
    replies: Optional[int] = None
    reposts: Optional[int] = None
    saves: Optional[int] = None


class FeedPost(BaseModel):
    """A post already fetched and authorised for the viewer by the caller."""
    post_id: str
    user_id: str
    content: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    created_at: datetime
    author: Optional[FeedAuthor] = None
    counts: EngagementCounts = Field(default_factory=EngagementCounts)
    # Sampled engager user ids (partial lists). Used when a count is missing
    # and to estimate unique engagers.
    liked_by: list[Optional[str]] = Field(default_factory=list)
    replied_by: list[Optional[str]] = Field(default_factory=list)
    reposted_by: list[Optional[str]] = Field(default_factory=list)
    saved_by: list[Optional[str]] = Field(default_factory=list)


# ──────────────────────────── Feed ranking ────────────────────────────────

class EngagementSnapshot(BaseModel):
    likes: int
    replies: int
    reposts: int
    saves: int
    unique_engagers: int


class RankFeedRequest(BaseModel):
    posts: list[FeedPost]


class RankFeedResponse(BaseModel):
    posts: list[FeedPost]
    # Whether the remote ranking service contributed to the order
    remote_applied: bool
    latency_ms: float
    # Only populated with ?explain=true
    breakdowns: Optional[dict[str, ScoreBreakdown]] = None
    engagement: Optional[dict[str, EngagementSnapshot]] = None
