"""
Remote ranking service client.

The external ranking service receives the locally ranked candidate set and
answers with its preferred order:

  POST /rank-feed
    { "candidates": [{ "post_id", "score", "created_at" }] }
  → { "ordered_post_ids": [...] }

The answer is a hint. Any failure (timeout, connection error, non-2xx,
malformed body) yields ``None`` so the caller falls back to the local order;
nothing here ever blocks feed delivery beyond the configured timeout. One
attempt per call, no retries.
"""
import asyncio
import logging
from typing import Optional, Sequence

import httpx
from pydantic import AliasChoices, BaseModel, Field, StrictStr, ValidationError

from feed_api.config import settings
from feed_api.ranking.models import RankingCandidate, RemoteRanking
from feed_api.telemetry import RANKING_ERRORS_TOTAL

logger = logging.getLogger(__name__)


class _RankFeedPayload(BaseModel):
    ordered_post_ids: list[StrictStr] = Field(
        validation_alias=AliasChoices("ordered_post_ids", "orderedPostIds")
    )


class RankingClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = settings.ranking_service_url if base_url is None else base_url
        self.timeout = settings.ranking_timeout_seconds if timeout is None else timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None

    async def rank_feed(
        self, candidates: Sequence[RankingCandidate]
    ) -> Optional[RemoteRanking]:
        """
        Ask the ranking service for its preferred order of ``candidates``.

        Returns ``None`` when there is nothing to rank or when the service
        could not produce a usable answer in time.
        """
        if not candidates:
            return None
        if self._http is None:
            logger.warning("Ranking client used before start() — skipping remote ranking")
            return None

        payload = {"candidates": [c.model_dump() for c in candidates]}

        try:
            # httpx enforces per-phase timeouts; wait_for bounds the whole call
            resp = await asyncio.wait_for(
                self._http.post("/rank-feed", json=payload), timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            return self._unavailable("timeout", exc)
        except httpx.HTTPError as exc:
            return self._unavailable("transport", exc)
        except asyncio.CancelledError as exc:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                # The enclosing request is going away; let it.
                raise
            return self._unavailable("cancelled", exc)

        if not resp.is_success:
            return self._unavailable("status", f"HTTP {resp.status_code}")

        try:
            body = _RankFeedPayload.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            return self._unavailable("payload", exc)

        return RemoteRanking(ordered_post_ids=body.ordered_post_ids)

    def _unavailable(self, reason: str, detail) -> None:
        logger.warning(
            "Ranking service unusable (%s): %s — using local order", reason, detail
        )
        RANKING_ERRORS_TOTAL.labels(reason=reason).inc()
        return None
