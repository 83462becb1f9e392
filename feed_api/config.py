"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.

Scoring weights are nested under ``scoring`` and use ``__`` as the env
delimiter, e.g. SCORING__FRESHNESS_HALF_LIFE_HOURS=12.
"""
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class ScoringWeights(BaseModel):
    """Tunable constants for the post scorer.

    Only the direction of each knob is load-bearing; the defaults are a
    reasonable starting point, not calibrated values.
    """

    # ── Engagement multipliers ─────────────────────────────────────────────
    like_weight: float = Field(1.0, ge=0)
    reply_weight: float = Field(2.0, ge=0)     # replies propagate reach
    repost_weight: float = Field(3.0, ge=0)    # reposts propagate reach most
    save_weight: float = Field(2.0, ge=0)

    # ── Authority (follower count) ─────────────────────────────────────────
    authority_weight: float = Field(10.0, ge=0)   # per decade of followers
    authority_cap: float = Field(60.0, ge=0)      # ~1M followers saturates

    # ── Freshness ──────────────────────────────────────────────────────────
    freshness_half_life_hours: float = Field(6.0, gt=0)

    # ── Account maturity ───────────────────────────────────────────────────
    new_account_days: float = Field(14.0, ge=0)
    new_account_min_multiplier: float = Field(0.75, ge=0, le=1)

    # ── Content quality ────────────────────────────────────────────────────
    min_content_length: int = Field(15, ge=0)          # chars, after trimming
    short_content_multiplier: float = Field(0.8, ge=0, le=1)
    max_tag_density: float = Field(0.5, ge=0, le=1)    # share of #tags/@mentions
    tag_heavy_multiplier: float = Field(0.5, ge=0, le=1)


class Settings(BaseSettings):
    # ── Ranking Service ────────────────────────────────────────────────────
    ranking_service_url: str = "http://ranking-service:8088"
    ranking_timeout_seconds: float = 0.5
    max_rank_candidates: int = 500      # posts accepted per /feed/rank call

    # ── Scoring ────────────────────────────────────────────────────────────
    scoring: ScoringWeights = ScoringWeights()

    # ── Observability ──────────────────────────────────────────────────────
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "feed-api"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"


settings = Settings()
