from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    port: int = 8088
    service_name: str = "ranking-service"
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"

    # ── Mock behaviour ─────────────────────────────────────────────────────
    max_candidates: int = 1000          # larger batches get a 413
    response_delay_ms: float = 0.0      # simulate a slow ranker locally
    newest_first_on_ties: bool = True   # False: older posts win score ties

    class Config:
        env_file = ".env"


settings = Settings()
