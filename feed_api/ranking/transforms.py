"""
Projection of API-layer FeedPost objects onto the engine's RankablePost.

Upstream queries usually carry aggregate counts, but some paths only fetch a
sample of engager ids per relation. A missing count falls back to the length
of its sample, then to zero.

Counts are unbounded integers on the wire. The engine works in floats, so
anything beyond the float range saturates at the largest finite float.
"""
import sys
from typing import Optional

from feed_api.ranking.models import EngagementMetrics, RankablePost
from feed_api.schemas import EngagementSnapshot, FeedPost

_FLOAT_MAX = sys.float_info.max


def _count(total: Optional[int], sample: list[Optional[str]]) -> int:
    if total is not None:
        return total
    return len(sample)


def _counts(post: FeedPost) -> dict[str, int]:
    return {
        "likes": _count(post.counts.likes, post.liked_by),
        "replies": _count(post.counts.replies, post.replied_by),
        "reposts": _count(post.counts.reposts, post.reposted_by),
        "saves": _count(post.counts.saves, post.saved_by),
    }


def _as_float(value: int) -> float:
    try:
        return float(value)
    except OverflowError:
        return _FLOAT_MAX if value > 0 else -_FLOAT_MAX


def build_rankable_post(post: FeedPost) -> RankablePost:
    author = post.author
    follower_count = author.follower_count if author and author.follower_count is not None else 0
    user_created_at = author.created_at if author and author.created_at else post.created_at
    metrics = {name: _as_float(value) for name, value in _counts(post).items()}

    return RankablePost(
        id=post.post_id,
        created_at=post.created_at,
        content=post.content or "",
        user_id=post.user_id,
        user_created_at=user_created_at,
        follower_count=_as_float(follower_count),
        metrics=EngagementMetrics(**metrics),
    )


def estimate_unique_engagers(post: FeedPost, counts: dict[str, int]) -> int:
    """
    Number of distinct users who engaged with ``post``.

    Exact when the sampled id lists cover every interaction; otherwise the
    sample's uniqueness ratio is extrapolated to the total.
    """
    total = sum(max(0, c) for c in counts.values())
    if total <= 0:
        return 0

    sampled = [
        uid
        for sample in (post.liked_by, post.replied_by, post.reposted_by, post.saved_by)
        for uid in sample
        if uid
    ]
    unique = len(set(sampled))

    if not sampled:
        return total
    if len(sampled) == total:
        return unique
    # Integer arithmetic, rounding half up: totals may exceed the float range.
    return (2 * total * unique + len(sampled)) // (2 * len(sampled))


def engagement_snapshot(post: FeedPost) -> EngagementSnapshot:
    counts = _counts(post)
    return EngagementSnapshot(
        **counts,
        unique_engagers=estimate_unique_engagers(post, counts),
    )
