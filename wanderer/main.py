"""Entry point for the wanderer simulation.

Usage:
    wanderer map.osm [--port 4001] [--tick 1.0] [--sink duckdb] [--live]
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys

import pydantic

from wanderer.config import SINK_BACKENDS, SimulationConfig
from wanderer.errors import GraphError, SinkError
from wanderer.persistence.positions import build_sink
from wanderer.protocol.server import CommandServer
from wanderer.simulation.engine import SimulationEngine
from wanderer.simulation.renderer import StatusRenderer
from wanderer.simulation.runner import SimulationRunner
from wanderer.streets.graph import StreetGraph
from wanderer.streets.osm import load_graph
from wanderer.trajectory.recorder import TrajectoryRecorder

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wanderer",
        description="Simulate people wandering an OpenStreetMap street network",
    )
    parser.add_argument("map_path", nargs="?", help="OSM XML file (or WANDERER_MAP_PATH)")
    parser.add_argument("--host", help="Command server bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Command server port (default: 4001)")
    parser.add_argument("--tick", type=float, dest="tick_seconds", help="Seconds per tick")
    parser.add_argument("--speed", type=float, dest="walking_speed_m_s", help="Walking speed, m/s")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")
    parser.add_argument("--sink", choices=SINK_BACKENDS, dest="sink_backend", help="Position store")
    parser.add_argument("--sink-path", dest="sink_path", help="DuckDB file for --sink duckdb")
    parser.add_argument(
        "--all-ways",
        action="store_true",
        help="Walk every way in the file, not only highway=* ones",
    )
    parser.add_argument("--live", action="store_true", help="Start the HTTP/WebSocket server")
    parser.add_argument("--live-port", type=int, dest="live_port", help="Live server port")
    parser.add_argument("--record", action="store_true", help="Record trajectories to JSONL")
    parser.add_argument(
        "--status",
        type=int,
        dest="status_interval",
        help="Print an agent table every N ticks",
    )
    parser.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING, ...")
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    """Environment-backed config with explicit CLI flags layered on top."""
    overrides = {
        key: value
        for key, value in vars(args).items()
        if value is not None and key not in ("all_ways", "live", "record")
    }
    if args.all_ways:
        overrides["highway_only"] = False
    if args.live:
        overrides["live_enabled"] = True
    if args.record:
        overrides["trajectory_recording"] = True
    return SimulationConfig(**overrides)


async def run(config: SimulationConfig, graph: StreetGraph) -> None:
    """Wire engine, runner, sink and servers, then serve until interrupted."""
    engine = SimulationEngine(graph, config)
    sink = build_sink(config)
    runner = SimulationRunner(engine, sink)

    recorder = None
    if config.trajectory_recording:
        recorder = TrajectoryRecorder(config.trajectory_output_dir)
        recorder.start_run(config, graph.stats())
        runner.add_listener(recorder)
        logger.info(f"Recording trajectory to {recorder.path}")
    if config.status_interval > 0:
        runner.add_listener(StatusRenderer(every=config.status_interval))

    server = CommandServer(runner, config.host, config.port)
    live = None
    await runner.start()
    try:
        await server.start()
        tasks = [asyncio.create_task(server.serve_forever(), name="wanderer-commands")]
        if config.live_enabled:
            from wanderer.visualization.realtime import LiveServer

            live = LiveServer(runner, config.live_host, config.live_port)
            runner.add_listener(live.broadcast)
            tasks.append(asyncio.create_task(live.serve(), name="wanderer-live"))

        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]
    finally:
        if live is not None:
            live.stop()
        await server.stop()
        await runner.shutdown()
        if recorder is not None:
            recorder.end_run()
        sink.close()


def main(argv: list[str] | None = None) -> int:
    """Run the simulation."""
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except pydantic.ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    if not config.map_path:
        logger.error("No map given: pass an OSM file or set WANDERER_MAP_PATH")
        return 2

    try:
        graph = load_graph(
            config.map_path,
            highway_only=config.highway_only,
            prune_isolated=config.prune_isolated_nodes,
        )
    except (GraphError, FileNotFoundError) as e:
        logger.error(f"Cannot build street graph: {e}")
        return 1
    if len(graph) == 0:
        logger.error(f"Street graph from {config.map_path} has no walkable nodes")
        return 1

    try:
        asyncio.run(run(config, graph))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except SinkError as e:
        logger.error(f"Position store unavailable: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot listen on {config.host}:{config.port}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
