"""Line protocol grammar.

Requests are ``T<verb> <agent_id>``; replies echo the verb as ``R<verb>``:

    Tstart alice      -> Rstart alice
    Tpause alice      -> Rpause alice
    Tcontinue alice   -> Rcontinue alice
    Tstop alice       -> Rstop alice
    Tpos alice        -> Rpos alice 40.712800 -74.006000

Anything that fails gets the bare reply ``Rerror``.
"""

from __future__ import annotations

from dataclasses import dataclass

from wanderer.errors import ProtocolError
from wanderer.simulation.events import CommandKind

ERROR_REPLY = "Rerror"
POSITION_VERB = "pos"

COMMAND_VERBS: dict[str, CommandKind] = {
    "start": CommandKind.START,
    "stop": CommandKind.STOP,
    "pause": CommandKind.PAUSE,
    "continue": CommandKind.CONTINUE,
}


@dataclass(frozen=True)
class Request:
    """One parsed request line."""

    verb: str  # without the leading "T"
    agent_id: str

    @property
    def command_kind(self) -> CommandKind | None:
        return COMMAND_VERBS.get(self.verb)


def parse_request(line: str) -> Request:
    """Parse one request line (line terminators already optional)."""
    tokens = line.rstrip("\r\n").split(" ")
    head = tokens[0]
    if not head.startswith("T") or len(head) < 2:
        raise ProtocolError(f"Malformed request verb: {head!r}")
    verb = head[1:]
    if verb not in COMMAND_VERBS and verb != POSITION_VERB:
        raise ProtocolError(f"Unknown request verb: {head!r}")
    if len(tokens) < 2 or not tokens[1]:
        raise ProtocolError(f"{head} requires an agent id")
    return Request(verb=verb, agent_id=tokens[1])


def format_reply(verb: str, agent_id: str) -> str:
    return f"R{verb} {agent_id}"


def format_position(agent_id: str, lat: float, lon: float) -> str:
    return f"R{POSITION_VERB} {agent_id} {lat:.6f} {lon:.6f}"
