"""Trajectory recorder: streams published positions to JSONL.

Registered as a tick listener on the SimulationRunner. Writes incrementally
so a crashed run still leaves every completed tick on disk.
"""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from wanderer.config import SimulationConfig
    from wanderer.simulation.events import TickRecord


class TrajectoryRecorder:
    """Records every published tick to ``<output_dir>/<run_id>/trajectory.jsonl``."""

    def __init__(self, output_dir: str = "data/trajectories", run_id: str | None = None):
        self.run_id = run_id or str(uuid.uuid4())[:12]
        self.output_dir = Path(output_dir) / self.run_id
        self._jsonl_file: TextIO | None = None
        self._ticks_recorded = 0
        self._agents_seen: set[str] = set()

    @property
    def path(self) -> Path:
        return self.output_dir / "trajectory.jsonl"

    def start_run(self, config: SimulationConfig, graph_stats: dict[str, int] | None = None) -> None:
        """Initialize recording. Called before first tick."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._jsonl_file = self.path.open("w")
        self._write_jsonl(
            {
                "type": "metadata",
                "run_id": self.run_id,
                "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                "config": config.model_dump(),
                "graph": graph_stats or {},
            }
        )

    def __call__(self, record: TickRecord) -> None:
        self.record_tick(record)

    def record_tick(self, record: TickRecord) -> None:
        """Record one tick's snapshot. Called after each publish."""
        if self._jsonl_file is None:
            return
        self._ticks_recorded += 1
        self._agents_seen.update(p.agent_id for p in record.positions)
        self._write_jsonl(
            {
                "type": "positions",
                "tick": record.tick,
                "positions": [p.to_dict() for p in record.positions],
                "arrived": list(record.arrived),
                "stranded": list(record.stranded),
            }
        )

    def end_run(self) -> None:
        """Finalize recording. Called after simulation ends."""
        if self._jsonl_file is None:
            return
        self._write_jsonl(
            {
                "type": "run_complete",
                "run_id": self.run_id,
                "ticks_recorded": self._ticks_recorded,
                "agents_seen": len(self._agents_seen),
            }
        )
        self._jsonl_file.close()
        self._jsonl_file = None

    def _write_jsonl(self, data: dict[str, Any]) -> None:
        assert self._jsonl_file is not None
        self._jsonl_file.write(json.dumps(data) + "\n")
        self._jsonl_file.flush()
