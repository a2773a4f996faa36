"""Agent navigation and the single-writer tick engine."""

from wanderer.simulation.agent import Agent, NavState, StepOutcome
from wanderer.simulation.engine import SimulationEngine
from wanderer.simulation.events import (
    Command,
    CommandEvent,
    CommandKind,
    CreateEvent,
    PositionRecord,
    TickEvent,
    TickRecord,
)

__all__ = [
    "Agent",
    "Command",
    "CommandEvent",
    "CommandKind",
    "CreateEvent",
    "NavState",
    "PositionRecord",
    "SimulationEngine",
    "StepOutcome",
    "TickEvent",
    "TickRecord",
]
