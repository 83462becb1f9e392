"""
Home feed assembly. Drives one ranking request end to end:

  Stage 1 │ Local ranking
  ────────┼──────────────────────────────────────────────────────────────
          │  FeedPost → RankablePost → score → deterministic local order.

  Stage 2 │ Remote ranking (best effort)
  ────────┼──────────────────────────────────────────────────────────────
          │  Send the locally ordered candidates to the injected remote
          │  ranker. ``None`` (failure, timeout, no ranker) is just an empty
          │  preferred order.

  Stage 3 │ Reconciliation & resolution
  ────────┼──────────────────────────────────────────────────────────────
          │  merge_ordering(remote, local), then map ids back to the
          │  caller's FeedPost objects. Ids with no matching post are
          │  skipped.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

from opentelemetry import trace
from pydantic import BaseModel, Field

from feed_api.config import ScoringWeights
from feed_api.ranking.engine import rank_posts
from feed_api.ranking.merge import merge_ordering
from feed_api.ranking.models import (
    LocalRanking,
    RankingCandidate,
    RemoteRanking,
    ScoreBreakdown,
)
from feed_api.ranking.transforms import build_rankable_post
from feed_api.schemas import FeedPost
from feed_api.telemetry import (
    FEED_RANK_CANDIDATES,
    FEED_RANK_LATENCY,
    FEED_RANK_OUTCOME_TOTAL,
    RANKING_ERRORS_TOTAL,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class RemoteRanker(Protocol):
    async def __call__(
        self, candidates: Sequence[RankingCandidate]
    ) -> Optional[RemoteRanking]: ...


class HomeFeedRanking(BaseModel):
    posts: list[FeedPost]
    local_order: list[str] = Field(default_factory=list)
    remote_order: list[str] = Field(default_factory=list)
    final_order: list[str] = Field(default_factory=list)
    remote_applied: bool = False
    breakdown_by_id: dict[str, ScoreBreakdown] = Field(default_factory=dict)


def _isoformat(ts: Optional[datetime]) -> Optional[str]:
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


def to_candidates(local: LocalRanking) -> list[RankingCandidate]:
    """Wire candidates in local rank order."""
    return [
        RankingCandidate(
            post_id=scored.post.id,
            score=scored.score,
            created_at=_isoformat(scored.post.created_at),
        )
        for scored in local.ranked
    ]


async def _remote_order(
    remote_ranker: RemoteRanker, candidates: list[RankingCandidate]
) -> list[str]:
    try:
        remote = await remote_ranker(candidates)
    except Exception as exc:
        logger.warning("Remote ranker raised %r — using local order", exc)
        RANKING_ERRORS_TOTAL.labels(reason="ranker").inc()
        return []
    return list(remote.ordered_post_ids) if remote is not None else []


async def rank_home_feed_detailed(
    posts: Sequence[FeedPost],
    remote_ranker: Optional[RemoteRanker] = None,
    now: Optional[datetime] = None,
    weights: Optional[ScoringWeights] = None,
) -> HomeFeedRanking:
    if posts is None:
        raise TypeError("rank_home_feed() requires a sequence of posts, got None")
    posts = list(posts)

    # Nothing to order
    if len(posts) <= 1:
        ids = [p.post_id for p in posts]
        return HomeFeedRanking(posts=posts, local_order=ids, final_order=ids)

    start_time = time.perf_counter()

    with tracer.start_as_current_span("rank_home_feed") as span:
        span.set_attribute("feed.candidates", len(posts))
        FEED_RANK_CANDIDATES.observe(len(posts))

        # ── Stage 1: local ranking ──────────────────────────────────────
        with tracer.start_as_current_span("local_rank"):
            rankable = [build_rankable_post(p) for p in posts]
            local = rank_posts(rankable, now=now, weights=weights)

        # ── Stage 2: remote ranking ─────────────────────────────────────
        remote_order: list[str] = []
        if remote_ranker is not None:
            with tracer.start_as_current_span("remote_rank"):
                remote_order = await _remote_order(remote_ranker, to_candidates(local))

        # ── Stage 3: merge & resolve ────────────────────────────────────
        final_order = merge_ordering(remote_order, local.ordered_post_ids)
        post_map = {p.post_id: p for p in posts}
        ranked = [post_map[pid] for pid in final_order if pid in post_map]

        remote_applied = bool(remote_order)
        FEED_RANK_OUTCOME_TOTAL.labels(outcome="remote" if remote_applied else "local").inc()
        span.set_attribute("feed.remote_applied", remote_applied)

    latency = time.perf_counter() - start_time
    FEED_RANK_LATENCY.observe(latency)
    logger.debug(
        "Ranked %d posts in %.1fms (remote_applied=%s)",
        len(ranked), latency * 1000, remote_applied,
    )

    return HomeFeedRanking(
        posts=ranked,
        local_order=local.ordered_post_ids,
        remote_order=remote_order,
        final_order=final_order,
        remote_applied=remote_applied,
        breakdown_by_id=local.breakdown_by_id,
    )


async def rank_home_feed(
    posts: Sequence[FeedPost],
    remote_ranker: Optional[RemoteRanker] = None,
    now: Optional[datetime] = None,
    weights: Optional[ScoringWeights] = None,
) -> list[FeedPost]:
    """Rank one page of home feed posts. Always returns a permutation of ``posts``."""
    result = await rank_home_feed_detailed(posts, remote_ranker, now=now, weights=weights)
    return result.posts
