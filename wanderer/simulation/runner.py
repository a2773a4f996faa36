"""Async serialization point for the simulation engine.

Every registry mutation travels through one asyncio.Queue and is applied by
one consumer task, so commands and ticks never interleave. Producers (the
line server, the HTTP API, the ticker) await an acknowledgement future and
never touch the registry themselves.

Usage:
    runner = SimulationRunner(engine, sink)
    await runner.start()
    await runner.create("alice")
    ...
    await runner.shutdown()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from wanderer.errors import EngineStateError, SinkError
from wanderer.metrics.timing import PerformanceMonitor, TickTiming
from wanderer.persistence.positions import PositionSink
from wanderer.simulation.agent import Agent
from wanderer.simulation.engine import SimulationEngine
from wanderer.simulation.events import (
    Command,
    CommandEvent,
    CommandKind,
    CreateEvent,
    Event,
    TickEvent,
    TickRecord,
)

logger = logging.getLogger(__name__)

TickListener = Callable[[TickRecord], Awaitable[None] | None]


class _ReadEvent:
    """Internal event: run a read-only function at the serialization point."""

    def __init__(self, fn: Callable[[], Any]):
        self.fn = fn

    def __repr__(self) -> str:
        return "_ReadEvent()"


class SimulationRunner:
    """Single consumer of simulation events plus the periodic ticker."""

    def __init__(
        self,
        engine: SimulationEngine,
        sink: PositionSink,
        tick_seconds: float | None = None,
        listeners: list[TickListener] | None = None,
    ):
        self.engine = engine
        self.sink = sink
        self.tick_seconds = tick_seconds if tick_seconds is not None else engine.config.tick_seconds
        self.perf_monitor = PerformanceMonitor()
        self._listeners: list[TickListener] = list(listeners or [])
        self._queue: asyncio.Queue[tuple[Event | _ReadEvent, asyncio.Future[Any]]] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._ticker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def add_listener(self, listener: TickListener) -> None:
        """Register a callable notified with every published TickRecord."""
        self._listeners.append(listener)

    async def start(self, ticking: bool = True) -> None:
        """Start the consumer task and, unless disabled, the ticker."""
        if self.running:
            raise EngineStateError("Runner already started")
        if self._closed:
            raise EngineStateError("Runner has been shut down")
        self._queue = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume(), name="wanderer-consumer")
        if ticking:
            self._ticker = asyncio.create_task(self._tick_forever(), name="wanderer-ticker")
        logger.info(f"Simulation runner started (tick every {self.tick_seconds}s)")

    async def shutdown(self) -> None:
        """Stop ticking, fail any queued events, and stop the consumer."""
        self._closed = True
        for task in (self._ticker, self._consumer):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        if self._queue is not None:
            while not self._queue.empty():
                event, future = self._queue.get_nowait()
                if not future.done():
                    future.set_exception(EngineStateError(f"Runner shut down before {event!r}"))
        summary = self.perf_monitor.summary
        if summary:
            logger.info(
                f"Runner stopped after {summary['total_ticks']} ticks "
                f"(avg {summary['avg_tick_ms']:.2f}ms, {summary['overruns']} overruns)"
            )
        else:
            logger.info("Runner stopped")

    async def submit(self, event: Event | _ReadEvent) -> Any:
        """Queue an event and wait for the consumer to apply it."""
        if self._queue is None or not self.running:
            raise EngineStateError("Runner is not running")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        await self._queue.put((event, future))
        return await future

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            event, future = await self._queue.get()
            try:
                if isinstance(event, _ReadEvent):
                    result = event.fn()
                else:
                    result = self.engine.handle(event)
                    if isinstance(result, Agent):
                        # Callers get a snapshot; the live agent stays with the engine
                        result = result.as_dict()
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._queue.task_done()

    # --- Producer API ---

    async def create(self, agent_id: str) -> dict[str, Any]:
        return await self.submit(CreateEvent(agent_id))

    async def stop(self, agent_id: str) -> dict[str, Any]:
        return await self.submit(CommandEvent(Command(CommandKind.STOP, agent_id)))

    async def pause(self, agent_id: str) -> dict[str, Any]:
        return await self.submit(CommandEvent(Command(CommandKind.PAUSE, agent_id)))

    async def resume(self, agent_id: str) -> dict[str, Any]:
        return await self.submit(CommandEvent(Command(CommandKind.CONTINUE, agent_id)))

    async def command(self, command: Command) -> dict[str, Any]:
        return await self.submit(CommandEvent(command))

    async def agent_state(self, agent_id: str) -> dict[str, Any]:
        """Summary of one agent, read between events so it is never half-updated."""
        return await self._read(lambda: self.engine.agent_state(agent_id))

    async def query_position(self, agent_id: str) -> tuple[float, float]:
        """Latest published position of an agent, read from the sink."""
        return await asyncio.to_thread(self.sink.query_position, agent_id)

    async def _read(self, fn: Callable[[], Any]) -> Any:
        # Reads go through the queue too; the engine only sees Event objects
        return await self.submit(_ReadEvent(fn))

    # --- Ticking ---

    async def tick_once(self) -> TickRecord:
        """Run one tick, then publish its snapshot outside the consumer."""
        start = time.perf_counter()
        record: TickRecord = await self.submit(TickEvent())
        publish_start = time.perf_counter()
        await self._publish(record)
        end = time.perf_counter()

        total_ms = (end - start) * 1000
        self.perf_monitor.record_tick(
            TickTiming(
                advance_ms=record.advance_ms,
                publish_ms=(end - publish_start) * 1000,
                total_ms=total_ms,
                agent_count=len(record.positions),
                overrun=total_ms > self.tick_seconds * 1000,
            )
        )
        return record

    async def _publish(self, record: TickRecord) -> None:
        if record.positions:
            try:
                await asyncio.to_thread(self.sink.upsert_many, record.positions)
            except SinkError as e:
                logger.warning(f"Tick {record.tick}: position publish failed: {e}")
            except Exception as e:
                logger.error(f"Tick {record.tick}: position sink crashed: {e}", exc_info=True)

        for listener in self._listeners:
            try:
                result = listener(record)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Tick {record.tick}: listener {listener!r} failed: {e}")

    async def _tick_forever(self) -> None:
        """Tick at a fixed period; a slow tick delays the next one, never overlaps it."""
        while True:
            started = time.monotonic()
            try:
                await self.tick_once()
            except EngineStateError:
                return
            except Exception as e:
                logger.error(f"Tick {self.engine.state.tick} failed: {e}", exc_info=True)
            elapsed = time.monotonic() - started
            if elapsed > self.tick_seconds:
                logger.warning(
                    f"Tick {self.engine.state.tick} took {elapsed:.3f}s, "
                    f"longer than the {self.tick_seconds}s period"
                )
            await asyncio.sleep(max(0.0, self.tick_seconds - elapsed))

