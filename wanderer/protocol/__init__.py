"""Text line protocol for remote agent control."""

from wanderer.protocol.commands import Request, format_position, format_reply, parse_request
from wanderer.protocol.server import CommandServer

__all__ = ["CommandServer", "Request", "format_position", "format_reply", "parse_request"]
