"""Tests for the in-memory and DuckDB position sinks."""

from __future__ import annotations

from pathlib import Path

import pytest

from wanderer.config import SimulationConfig
from wanderer.errors import PositionNotFoundError, SinkError
from wanderer.persistence.positions import (
    DuckDBPositionSink,
    InMemoryPositionSink,
    PositionSink,
    build_sink,
)
from wanderer.simulation.events import PositionRecord


@pytest.fixture(params=["memory", "duckdb"])
def any_sink(request):
    """Each sink backend, fresh."""
    if request.param == "memory":
        sink = InMemoryPositionSink()
    else:
        sink = DuckDBPositionSink(":memory:")
    yield sink
    sink.close()


class TestSinkContract:
    """Behavior shared by every backend."""

    def test_implements_protocol(self, any_sink) -> None:
        assert isinstance(any_sink, PositionSink)

    def test_upsert_and_query(self, any_sink) -> None:
        any_sink.upsert_position("alice", 52.52, 13.405)
        assert any_sink.query_position("alice") == (52.52, 13.405)

    def test_upsert_replaces(self, any_sink) -> None:
        """Only the latest position is kept per agent."""
        any_sink.upsert_position("alice", 1.0, 2.0)
        any_sink.upsert_position("alice", 3.0, 4.0)
        assert any_sink.query_position("alice") == (3.0, 4.0)

    def test_upsert_many(self, any_sink) -> None:
        any_sink.upsert_many(
            [PositionRecord("a", 1.0, 1.0), PositionRecord("b", 2.0, 2.0)]
        )
        any_sink.upsert_many([PositionRecord("b", 5.0, 6.0)])
        assert any_sink.query_position("a") == (1.0, 1.0)
        assert any_sink.query_position("b") == (5.0, 6.0)

    def test_upsert_many_empty(self, any_sink) -> None:
        any_sink.upsert_many([])
        with pytest.raises(PositionNotFoundError):
            any_sink.query_position("a")

    def test_missing_position(self, any_sink) -> None:
        with pytest.raises(PositionNotFoundError) as exc_info:
            any_sink.query_position("ghost")
        assert exc_info.value.agent_id == "ghost"
        assert isinstance(exc_info.value, SinkError)

    def test_clear(self, any_sink) -> None:
        any_sink.upsert_position("alice", 1.0, 2.0)
        any_sink.clear()
        with pytest.raises(PositionNotFoundError):
            any_sink.query_position("alice")


class TestDuckDBSink:
    """DuckDB-specific behavior."""

    def test_count(self) -> None:
        sink = DuckDBPositionSink()
        sink.upsert_many([PositionRecord("a", 1.0, 1.0), PositionRecord("b", 2.0, 2.0)])
        assert sink.count() == 2
        sink.close()

    def test_persists_to_file(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "positions.duckdb"
        sink = DuckDBPositionSink(str(db_path))
        sink.upsert_position("alice", 10.0, 20.0)
        sink.close()

        reopened = DuckDBPositionSink(str(db_path))
        assert reopened.query_position("alice") == (10.0, 20.0)
        reopened.close()

    def test_closed_connection_raises_sink_error(self) -> None:
        sink = DuckDBPositionSink()
        sink.close()
        with pytest.raises(SinkError):
            sink.upsert_position("alice", 1.0, 2.0)

    def test_clear_on_closed_connection_raises_sink_error(self) -> None:
        sink = DuckDBPositionSink()
        sink.upsert_position("alice", 1.0, 2.0)
        sink.close()
        with pytest.raises(SinkError):
            sink.clear()


class TestBuildSink:
    """Tests for build_sink()."""

    def test_memory_default(self) -> None:
        assert isinstance(build_sink(SimulationConfig()), InMemoryPositionSink)

    def test_duckdb_clears_on_start(self, tmp_path: Path) -> None:
        path = str(tmp_path / "positions.duckdb")
        first = DuckDBPositionSink(path)
        first.upsert_position("stale", 1.0, 1.0)
        first.close()

        sink = build_sink(SimulationConfig(sink_backend="duckdb", sink_path=path))
        try:
            assert isinstance(sink, DuckDBPositionSink)
            assert sink.count() == 0
        finally:
            sink.close()

    def test_duckdb_keeps_rows_without_reset(self, tmp_path: Path) -> None:
        path = str(tmp_path / "positions.duckdb")
        first = DuckDBPositionSink(path)
        first.upsert_position("kept", 1.0, 1.0)
        first.close()

        config = SimulationConfig(
            sink_backend="duckdb", sink_path=path, reset_positions_on_start=False
        )
        sink = build_sink(config)
        try:
            assert sink.query_position("kept") == (1.0, 1.0)
        finally:
            sink.close()
