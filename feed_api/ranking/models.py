"""
Request-scoped data types for the ranking engine.

Everything here is produced, consumed and discarded within a single feed
request. Numeric fields are deliberately permissive (optional, unbounded):
the scorer normalises missing, negative or non-finite values to zero instead of
rejecting the post.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EngagementMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    likes: Optional[float] = 0
    replies: Optional[float] = 0
    reposts: Optional[float] = 0
    saves: Optional[float] = 0


class RankablePost(BaseModel):
    """Immutable snapshot of a post at ranking time."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: Optional[datetime] = None
    content: str = ""
    user_id: str = ""
    user_created_at: Optional[datetime] = None
    follower_count: Optional[float] = 0
    metrics: EngagementMetrics = Field(default_factory=EngagementMetrics)


class ScoreBreakdown(BaseModel):
    """Per-post scoring components, exposed for debugging and tuning."""

    model_config = ConfigDict(frozen=True)

    engagement: float
    authority: float
    freshness: float
    maturity: float
    content_quality: float
    score: float
    post_age_hours: float
    account_age_days: float
    # e.g. "short_content", "tag_heavy"
    moderation_notes: list[str] = Field(default_factory=list)


class ScoredPost(BaseModel):
    model_config = ConfigDict(frozen=True)

    post: RankablePost
    score: float
    breakdown: ScoreBreakdown


class LocalRanking(BaseModel):
    """Locally computed order. ``ordered_post_ids`` mirrors ``ranked``."""

    ranked: list[ScoredPost] = Field(default_factory=list)
    ordered_post_ids: list[str] = Field(default_factory=list)
    breakdown_by_id: dict[str, ScoreBreakdown] = Field(default_factory=dict)


class RankingCandidate(BaseModel):
    """Wire form of one candidate sent to the remote ranking service."""

    post_id: str
    score: float
    created_at: Optional[str] = None   # ISO-8601


class RemoteRanking(BaseModel):
    ordered_post_ids: list[str]
