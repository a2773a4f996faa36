"""Live HTTP/WebSocket server for the wanderer simulation.

Provides a FastAPI app that mirrors the line protocol as REST endpoints and
broadcasts every published tick to connected WebSocket clients. The app runs
on the same event loop as the SimulationRunner, so every request goes through
the runner's queue like any other producer.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from wanderer.errors import (
    AgentExistsError,
    EngineStateError,
    PositionNotFoundError,
    UnknownAgentError,
    ValidationError,
)
from wanderer.simulation.events import TickRecord
from wanderer.simulation.runner import SimulationRunner

logger = logging.getLogger(__name__)


def tick_to_json(record: TickRecord) -> dict[str, Any]:
    """Serialize a TickRecord to a JSON-serializable dict."""
    arrived = set(record.arrived)
    stranded = set(record.stranded)
    moved = set(record.moved)
    agents = []
    for position in record.positions:
        if position.agent_id in stranded:
            status = "stranded"
        elif position.agent_id in arrived:
            status = "arrived"
        elif position.agent_id in moved:
            status = "walking"
        else:
            status = "paused"
        agents.append({**position.to_dict(), "status": status})
    return {
        "tick": record.tick,
        "agents": agents,
        "agent_count": len(record.positions),
        "moved_count": len(record.moved),
        "arrived_count": len(record.arrived),
        "stranded_count": len(record.stranded),
    }


class LiveServer:
    """REST control surface plus a WebSocket tick stream.

    Usage:
        server = LiveServer(runner, port=8001)
        runner.add_listener(server.broadcast)
        await server.serve()
    """

    def __init__(self, runner: SimulationRunner, host: str = "127.0.0.1", port: int = 8001):
        self.runner = runner
        self.host = host
        self.port = port
        self._clients: list[WebSocket] = []
        self._server: uvicorn.Server | None = None
        self.app = FastAPI(title="wanderer live simulation")
        self._setup_routes()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def _setup_routes(self) -> None:
        """Setup FastAPI routes for agent control, positions and the tick stream."""
        runner = self.runner

        async def _run(coro: Any) -> Any:
            try:
                return await coro
            except AgentExistsError as e:
                raise HTTPException(status_code=409, detail=str(e)) from e
            except (UnknownAgentError, PositionNotFoundError) as e:
                raise HTTPException(status_code=404, detail=str(e)) from e
            except ValidationError as e:
                raise HTTPException(status_code=422, detail=str(e)) from e
            except EngineStateError as e:
                raise HTTPException(status_code=503, detail=str(e)) from e

        @self.app.post("/agents/{agent_id}", status_code=201)
        async def create_agent(agent_id: str) -> dict[str, Any]:
            return await _run(runner.create(agent_id))

        @self.app.delete("/agents/{agent_id}")
        async def stop_agent(agent_id: str) -> dict[str, Any]:
            await _run(runner.stop(agent_id))
            return {"id": agent_id, "stopped": True}

        @self.app.post("/agents/{agent_id}/pause")
        async def pause_agent(agent_id: str) -> dict[str, Any]:
            summary = await _run(runner.pause(agent_id))
            return {"id": agent_id, "enabled": summary["enabled"]}

        @self.app.post("/agents/{agent_id}/resume")
        async def resume_agent(agent_id: str) -> dict[str, Any]:
            summary = await _run(runner.resume(agent_id))
            return {"id": agent_id, "enabled": summary["enabled"]}

        @self.app.get("/agents/{agent_id}")
        async def get_agent(agent_id: str) -> dict[str, Any]:
            return await _run(runner.agent_state(agent_id))

        @self.app.get("/agents/{agent_id}/position")
        async def get_position(agent_id: str) -> dict[str, Any]:
            lat, lon = await _run(runner.query_position(agent_id))
            return {"id": agent_id, "lat": lat, "lon": lon}

        @self.app.get("/api/config")
        async def get_config() -> dict[str, Any]:
            config = runner.engine.config
            return {
                "tick_seconds": config.tick_seconds,
                "walking_speed_m_s": config.walking_speed_m_s,
                "step_distance_m": config.step_distance_m,
                "sink_backend": config.sink_backend,
                "graph": runner.engine.graph.stats(),
            }

        @self.app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket) -> None:
            await websocket.accept()
            self._clients.append(websocket)
            logger.info(f"Client connected. Total clients: {len(self._clients)}")

            try:
                # Keep connection alive until the client goes away
                while True:
                    await websocket.receive_text()
            except WebSocketDisconnect:
                pass
            except Exception as e:
                logger.warning(f"WebSocket error: {e}")
            finally:
                if websocket in self._clients:
                    self._clients.remove(websocket)
                logger.info(f"Client disconnected. Total clients: {len(self._clients)}")

    async def broadcast(self, record: TickRecord) -> None:
        """Tick listener: send the tick to every connected client."""
        if not self._clients:
            return
        payload = json.dumps(tick_to_json(record))
        disconnected = []
        for client in list(self._clients):
            try:
                await client.send_text(payload)
            except Exception:
                disconnected.append(client)

        for client in disconnected:
            if client in self._clients:
                self._clients.remove(client)

    async def serve(self) -> None:
        """Run uvicorn on the current event loop until stopped."""
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
            loop="asyncio",
        )
        self._server = uvicorn.Server(config)
        logger.info(f"Starting live server at http://{self.host}:{self.port}")
        await self._server.serve()

    def stop(self) -> None:
        """Ask uvicorn to exit; serve() returns shortly after."""
        if self._server is not None:
            self._server.should_exit = True
        logger.info("Live server stopped")

