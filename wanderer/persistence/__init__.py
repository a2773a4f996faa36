"""Position persistence: best-effort upserts of each agent's latest location."""

from wanderer.persistence.positions import (
    DuckDBPositionSink,
    InMemoryPositionSink,
    PositionSink,
    build_sink,
)

__all__ = ["DuckDBPositionSink", "InMemoryPositionSink", "PositionSink", "build_sink"]
