"""Performance timing instrumentation for wanderer ticks."""

from dataclasses import dataclass


@dataclass
class TickTiming:
    """Timing breakdown for a single tick."""

    advance_ms: float = 0.0
    publish_ms: float = 0.0
    total_ms: float = 0.0
    agent_count: int = 0
    overrun: bool = False  # tick took longer than the tick period


class PerformanceMonitor:
    """Tracks per-phase tick timing and period overruns."""

    def __init__(self, max_history: int = 1000):
        self._tick_timings: list[TickTiming] = []
        self._max_history = max_history
        self._total_ticks = 0
        self._overruns = 0
        self._slowest_ms = 0.0

    def record_tick(self, timing: TickTiming) -> None:
        self._total_ticks += 1
        if timing.overrun:
            self._overruns += 1
        self._slowest_ms = max(self._slowest_ms, timing.total_ms)
        self._tick_timings.append(timing)
        if len(self._tick_timings) > self._max_history:
            del self._tick_timings[0]

    @property
    def overruns(self) -> int:
        return self._overruns

    @property
    def summary(self) -> dict:
        if not self._tick_timings:
            return {}
        n = len(self._tick_timings)
        return {
            "total_ticks": self._total_ticks,
            "avg_tick_ms": sum(t.total_ms for t in self._tick_timings) / n,
            "avg_advance_ms": sum(t.advance_ms for t in self._tick_timings) / n,
            "avg_publish_ms": sum(t.publish_ms for t in self._tick_timings) / n,
            "slowest_tick_ms": self._slowest_ms,
            "overruns": self._overruns,
            "last_agent_count": self._tick_timings[-1].agent_count,
        }
