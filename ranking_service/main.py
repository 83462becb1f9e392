"""
Mock Ranking Service, a local stand-in for the external high-throughput
ranking service the feed API consults.

Implements the same HTTP contract as the production service:

  POST /rank-feed
    { "candidates": [{ "post_id", "score", "created_at" }] }
  → { "ordered_post_ids": [...] }

The real service blends in signals the API does not have. Here we simply
re-sort by the submitted score, newest first on ties, then post_id, so the
answer is deterministic and easy to reason about in local runs.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from pydantic import BaseModel
from prometheus_client import Histogram, make_asgi_app

from ranking_service.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# ── OTel ──────────────────────────────────────────────────────────────────
if settings.tracing_enabled:
    resource = Resource.create({"service.name": settings.service_name})
    provider = TracerProvider(resource=resource)
    try:
        exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint, insecure=True
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
    except Exception as exc:
        logger.warning("OTel exporter unavailable: %s", exc)
    trace.set_tracer_provider(provider)
tracer = trace.get_tracer(__name__)

# ── Prometheus ─────────────────────────────────────────────────────────────
RANK_FEED_LATENCY = Histogram(
    "rank_feed_latency_seconds",
    "Time spent ordering a batch of candidates",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
)

# ── Schemas ────────────────────────────────────────────────────────────────

class Candidate(BaseModel):
    post_id: str
    score: float = 0.0
    created_at: Optional[datetime] = None


class RankFeedRequest(BaseModel):
    candidates: list[Candidate]


class RankFeedResponse(BaseModel):
    ordered_post_ids: list[str]


# ── Ordering logic ─────────────────────────────────────────────────────────

def _timestamp(candidate: Candidate) -> float:
    ts = candidate.created_at
    if ts is None:
        return 0.0
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.timestamp()


def order_candidates(candidates: list[Candidate], newest_first: bool = True) -> list[str]:
    """score desc → created_at (newest first by default) → post_id asc; duplicates collapse."""
    direction = 1.0 if newest_first else -1.0
    ordered = sorted(candidates, key=lambda c: c.post_id)
    ordered.sort(key=lambda c: (c.score, direction * _timestamp(c)), reverse=True)

    seen: set[str] = set()
    result: list[str] = []
    for c in ordered:
        if c.post_id not in seen:
            seen.add(c.post_id)
            result.append(c.post_id)
    return result


# ── App ────────────────────────────────────────────────────────────────────

app = FastAPI(title="Ranking Service (Mock)", version="1.0.0")
if settings.tracing_enabled:
    FastAPIInstrumentor.instrument_app(app)
app.mount("/metrics", make_asgi_app())


@app.post("/rank-feed", response_model=RankFeedResponse)
def rank_feed(request: RankFeedRequest):
    if len(request.candidates) > settings.max_candidates:
        raise HTTPException(
            status_code=413,
            detail=f"At most {settings.max_candidates} candidates per request",
        )

    with tracer.start_as_current_span("rank_feed") as span:
        if settings.response_delay_ms > 0:
            time.sleep(settings.response_delay_ms / 1000)

        t0 = time.perf_counter()

        ordered_ids = order_candidates(
            request.candidates, newest_first=settings.newest_first_on_ties
        )

        latency = time.perf_counter() - t0
        RANK_FEED_LATENCY.observe(latency)

        span.set_attribute("batch.size", len(request.candidates))
        span.set_attribute("ranking.latency_ms", round(latency * 1000, 2))

        return RankFeedResponse(ordered_post_ids=ordered_ids)


@app.get("/health")
def health():
    return {"status": "ok", "service": settings.service_name}
