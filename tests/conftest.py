"""Shared test configuration."""

import os

# Keep test runs from trying to export spans to a collector.
os.environ.setdefault("TRACING_ENABLED", "false")
