"""Position sinks: where each agent's latest position is published.

Two backends share one interface:
- InMemoryPositionSink: a dict, for tests and single-process runs
- DuckDBPositionSink: a DuckDB table keyed by agent id

Writes are best-effort upserts; the engine's in-memory state stays the source
of truth.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import duckdb

from wanderer.errors import PositionNotFoundError, SinkError
from wanderer.simulation.events import PositionRecord

if TYPE_CHECKING:
    from wanderer.config import SimulationConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class PositionSink(Protocol):
    """Key-value store of agent id to (lat, lon)."""

    def upsert_position(self, agent_id: str, lat: float, lon: float) -> None: ...

    def upsert_many(self, records: Iterable[PositionRecord]) -> None: ...

    def query_position(self, agent_id: str) -> tuple[float, float]: ...

    def clear(self) -> None: ...

    def close(self) -> None: ...


class InMemoryPositionSink:
    """Dict-backed sink. Safe to call from worker threads."""

    def __init__(self) -> None:
        self._positions: dict[str, tuple[float, float]] = {}
        self._lock = threading.Lock()

    def upsert_position(self, agent_id: str, lat: float, lon: float) -> None:
        with self._lock:
            self._positions[agent_id] = (lat, lon)

    def upsert_many(self, records: Iterable[PositionRecord]) -> None:
        with self._lock:
            for record in records:
                self._positions[record.agent_id] = (record.lat, record.lon)

    def query_position(self, agent_id: str) -> tuple[float, float]:
        with self._lock:
            try:
                return self._positions[agent_id]
            except KeyError:
                raise PositionNotFoundError(agent_id) from None

    def clear(self) -> None:
        with self._lock:
            self._positions.clear()

    def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._positions)


class DuckDBPositionSink:
    """DuckDB-backed sink: one row per agent, replaced on every publish."""

    def __init__(self, db_path: str = ":memory:"):
        """Open (or create) the positions database.

        Args:
            db_path: Path to DuckDB file, or ":memory:"
        """
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._lock = threading.Lock()
        try:
            self._conn = duckdb.connect(db_path)
            self._ensure_schema()
        except duckdb.Error as e:
            raise SinkError(f"Cannot open position store {db_path}: {e}") from e

    def _ensure_schema(self) -> None:
        """Create positions table if not exists."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS positions (
                agent_id VARCHAR PRIMARY KEY,
                lat DOUBLE,
                lon DOUBLE,
                updated_at VARCHAR
            )
        """)

    _UPSERT = """
        INSERT INTO positions (agent_id, lat, lon, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (agent_id) DO UPDATE SET
            lat = excluded.lat,
            lon = excluded.lon,
            updated_at = excluded.updated_at
    """

    def upsert_position(self, agent_id: str, lat: float, lon: float) -> None:
        self.upsert_many([PositionRecord(agent_id, lat, lon)])

    def upsert_many(self, records: Iterable[PositionRecord]) -> None:
        now = datetime.now(UTC).isoformat()
        rows = [(r.agent_id, r.lat, r.lon, now) for r in records]
        if not rows:
            return
        with self._lock:
            try:
                self._conn.executemany(self._UPSERT, rows)
            except duckdb.Error as e:
                raise SinkError(f"Failed to upsert {len(rows)} positions: {e}") from e

    def query_position(self, agent_id: str) -> tuple[float, float]:
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT lat, lon FROM positions WHERE agent_id = ?", [agent_id]
                ).fetchone()
            except duckdb.Error as e:
                raise SinkError(f"Failed to query position of {agent_id!r}: {e}") from e
        if row is None:
            raise PositionNotFoundError(agent_id)
        return float(row[0]), float(row[1])

    def clear(self) -> None:
        with self._lock:
            try:
                self._conn.execute("DELETE FROM positions")
            except duckdb.Error as e:
                raise SinkError(f"Failed to clear position store {self.db_path}: {e}") from e

    def count(self) -> int:
        with self._lock:
            result = self._conn.execute("SELECT COUNT(*) FROM positions").fetchone()
        return int(result[0]) if result else 0

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            self._conn.close()


def build_sink(config: SimulationConfig) -> PositionSink:
    """Create the sink selected by ``config.sink_backend``."""
    if config.sink_backend == "duckdb":
        sink: PositionSink = DuckDBPositionSink(config.sink_path)
    else:
        sink = InMemoryPositionSink()
    if config.reset_positions_on_start:
        sink.clear()
    logger.info(f"Publishing positions to {config.sink_backend} sink")
    return sink
