"""TCP line-protocol server feeding the simulation runner."""

from __future__ import annotations

import asyncio
import logging

from wanderer.errors import WandererError
from wanderer.protocol.commands import (
    ERROR_REPLY,
    POSITION_VERB,
    format_position,
    format_reply,
    parse_request,
)
from wanderer.simulation.events import Command
from wanderer.simulation.runner import SimulationRunner

logger = logging.getLogger(__name__)


class CommandServer:
    """Accepts newline-terminated commands and answers one line per request.

    Usage:
        server = CommandServer(runner, port=4001)
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, runner: SimulationRunner, host: str = "0.0.0.0", port: int = 4001):
        self.runner = runner
        self.host = host
        self.port = port
        self._server: asyncio.Server | None = None

    @property
    def bound_port(self) -> int:
        """Actual listening port (useful when started with port 0)."""
        if self._server is None or not self._server.sockets:
            return self.port
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle_connection, self.host, self.port)
        logger.info(f"Command server listening on {self.host}:{self.bound_port}")

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        assert self._server is not None
        async with self._server:
            await self._server.serve_forever()

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("Command server stopped")

    async def dispatch(self, line: str) -> str:
        """Apply one request line and return the reply line (no newline)."""
        try:
            request = parse_request(line)
            if request.verb == POSITION_VERB:
                lat, lon = await self.runner.query_position(request.agent_id)
                return format_position(request.agent_id, lat, lon)
            kind = request.command_kind
            assert kind is not None
            await self.runner.command(Command(kind, request.agent_id))
            return format_reply(request.verb, request.agent_id)
        except WandererError as e:
            logger.warning(f"Rejected {line.strip()!r}: {e}")
            return ERROR_REPLY

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        peer = writer.get_extra_info("peername")
        logger.info(f"Accepted connection from {peer}")
        try:
            while True:
                try:
                    raw = await reader.readline()
                except ValueError:
                    # Line exceeded the stream limit; the oversized part is discarded
                    logger.warning(f"Oversized request from {peer}")
                    writer.write((ERROR_REPLY + "\n").encode("utf-8"))
                    await writer.drain()
                    continue
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                if not line:
                    continue
                try:
                    reply = await self.dispatch(line)
                except Exception as e:
                    logger.error(f"Unexpected failure handling {line!r}: {e}", exc_info=True)
                    reply = ERROR_REPLY
                writer.write((reply + "\n").encode("utf-8"))
                await writer.drain()
        except ConnectionError as e:
            logger.warning(f"Connection from {peer} dropped: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass
            logger.info(f"Closed connection from {peer}")
