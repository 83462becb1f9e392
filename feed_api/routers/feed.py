"""
Feed ranking endpoints.

  POST /feed/rank     rank one page of already-fetched, authorised posts
  GET  /feed/weights  effective scoring weights

Candidate retrieval, authorisation and pagination happen upstream; this
router only orders what it is given.
"""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from feed_api.clients.ranking_client import RankingClient
from feed_api.config import ScoringWeights, settings
from feed_api.ranking.engine import DuplicatePostIdError
from feed_api.ranking.home_feed import RemoteRanker, rank_home_feed_detailed
from feed_api.ranking.transforms import engagement_snapshot
from feed_api.schemas import RankFeedRequest, RankFeedResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def get_remote_ranker(request: Request) -> Optional[RemoteRanker]:
    """FastAPI dependency: the ranking client started by the app lifespan, if any."""
    client: Optional[RankingClient] = getattr(request.app.state, "ranking_client", None)
    return client.rank_feed if client is not None else None


@router.post("/rank", response_model=RankFeedResponse)
async def rank_feed(
    body: RankFeedRequest,
    explain: bool = Query(
        False, description="Include per-post score breakdowns and engagement snapshots"
    ),
    remote_ranker: Optional[RemoteRanker] = Depends(get_remote_ranker),
):
    if len(body.posts) > settings.max_rank_candidates:
        raise HTTPException(
            status_code=422,
            detail=f"At most {settings.max_rank_candidates} posts can be ranked per call",
        )

    start_time = time.time()
    try:
        result = await rank_home_feed_detailed(body.posts, remote_ranker)
    except DuplicatePostIdError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    latency_ms = (time.time() - start_time) * 1000
    response = RankFeedResponse(
        posts=result.posts,
        remote_applied=result.remote_applied,
        latency_ms=round(latency_ms, 2),
    )
    if explain:
        response.breakdowns = result.breakdown_by_id
        response.engagement = {p.post_id: engagement_snapshot(p) for p in result.posts}
    return response


@router.get("/weights", response_model=ScoringWeights)
async def get_weights():
    return settings.scoring
