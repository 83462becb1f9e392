"""
Feed Ranking API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Start the remote ranking HTTP client (skipped when no URL is configured)
  3. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from feed_api.clients.ranking_client import RankingClient
from feed_api.config import settings
from feed_api.routers import feed
from feed_api.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of the remote ranking client."""
    logger.info("Starting Feed Ranking API (env=%s)", settings.environment)

    ranking_client = None
    if settings.ranking_service_url:
        ranking_client = RankingClient()
        await ranking_client.start()
        logger.info("Remote ranking enabled → %s", settings.ranking_service_url)
    else:
        logger.info("No ranking service configured — local ranking only")
    app.state.ranking_client = ranking_client

    yield

    logger.info("Shutting down...")
    if ranking_client is not None:
        await ranking_client.stop()


app = FastAPI(
    title="Feed Ranking API",
    description=(
        "Home feed ranking: local heuristic scoring reconciled with an "
        "external ranking service, degrading to the local order on failure."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(feed.router, prefix="/feed", tags=["Feed"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Mounted at /metrics — scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
