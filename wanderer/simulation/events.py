"""Events consumed by the simulation's single serialization point."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class CommandKind(enum.Enum):
    """Lifecycle commands a client may issue for an agent."""

    START = "start"
    STOP = "stop"
    PAUSE = "pause"
    CONTINUE = "continue"


@dataclass(frozen=True)
class Command:
    """A lifecycle request for one agent."""

    kind: CommandKind
    agent_id: str


@dataclass(frozen=True)
class CreateEvent:
    agent_id: str


@dataclass(frozen=True)
class CommandEvent:
    command: Command


@dataclass(frozen=True)
class TickEvent:
    pass


Event = CreateEvent | CommandEvent | TickEvent


@dataclass(frozen=True)
class PositionRecord:
    """One agent's published position."""

    agent_id: str
    lat: float
    lon: float

    def to_dict(self) -> dict[str, float | str]:
        return {"id": self.agent_id, "lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class TickRecord:
    """Result of one tick: the position snapshot plus what happened."""

    tick: int
    positions: tuple[PositionRecord, ...] = ()
    moved: tuple[str, ...] = ()
    arrived: tuple[str, ...] = ()
    stranded: tuple[str, ...] = ()
    advance_ms: float = 0.0
