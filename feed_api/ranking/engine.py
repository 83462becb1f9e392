"""
Local ranking engine.

Orders posts by score (desc), then created_at (desc, newer first), then id
(asc). The id key only matters when score and timestamp are both equal; it
keeps the order total so identical input always yields an identical result,
regardless of the order the candidates arrived in.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from feed_api.config import ScoringWeights, settings
from feed_api.ranking.models import LocalRanking, RankablePost, ScoredPost
from feed_api.ranking.scorer import score_breakdown

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DuplicatePostIdError(ValueError):
    """Raised when the same post id appears twice in one ranking call."""

    def __init__(self, post_id: str) -> None:
        self.post_id = post_id
        super().__init__(f"duplicate post id in ranking input: {post_id!r}")


def _created_at_key(scored: ScoredPost) -> float:
    ts = scored.post.created_at
    if ts is None:
        return _EPOCH.timestamp()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.timestamp()


def _check_unique_ids(posts: Sequence[RankablePost]) -> None:
    seen: set[str] = set()
    for post in posts:
        if post.id in seen:
            raise DuplicatePostIdError(post.id)
        seen.add(post.id)


def rank_posts(
    posts: Sequence[RankablePost],
    now: Optional[datetime] = None,
    weights: Optional[ScoringWeights] = None,
) -> LocalRanking:
    """
    Score and order ``posts``. Every input post appears exactly once in the
    result, whatever its score.
    """
    if posts is None:
        raise TypeError("rank_posts() requires a sequence of posts, got None")
    _check_unique_ids(posts)

    now = now or datetime.now(timezone.utc)
    weights = weights or settings.scoring

    scored = []
    for post in posts:
        breakdown = score_breakdown(post, now, weights)
        scored.append(ScoredPost(post=post, score=breakdown.score, breakdown=breakdown))

    # Two stable passes: id asc first, then (score, created_at) desc on top.
    scored.sort(key=lambda s: s.post.id)
    scored.sort(key=lambda s: (s.score, _created_at_key(s)), reverse=True)

    if scored:
        logger.debug(
            "Ranked %d posts locally (top=%s score=%.4f)",
            len(scored), scored[0].post.id, scored[0].score,
        )

    return LocalRanking(
        ranked=scored,
        ordered_post_ids=[s.post.id for s in scored],
        breakdown_by_id={s.post.id: s.breakdown for s in scored},
    )
