"""Simulation engine: sole owner of the agent registry.

Applies Create, Command and Tick events one at a time. The handlers are plain
synchronous methods; the SimulationRunner is the only caller in a running
process and guarantees they never interleave.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any

from wanderer.agents.registry import AgentRegistry
from wanderer.config import SimulationConfig
from wanderer.errors import AgentExistsError, ValidationError
from wanderer.simulation.agent import Agent, StepOutcome
from wanderer.simulation.events import (
    Command,
    CommandEvent,
    CommandKind,
    CreateEvent,
    Event,
    PositionRecord,
    TickEvent,
    TickRecord,
)
from wanderer.streets.graph import StreetGraph

logger = logging.getLogger(__name__)


@dataclass
class SimulationState:
    """Current state of the simulation."""

    tick: int = 0
    created: int = 0


def validate_agent_id(agent_id: str) -> str:
    """Agent ids are opaque, non-empty, and free of whitespace."""
    if not isinstance(agent_id, str) or not agent_id:
        raise ValidationError("Agent id must be a non-empty string")
    if any(ch.isspace() for ch in agent_id):
        raise ValidationError(f"Agent id must not contain whitespace: {agent_id!r}")
    return agent_id


class SimulationEngine:
    """Owns the agent registry and applies events to it."""

    def __init__(
        self,
        graph: StreetGraph,
        config: SimulationConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.graph = graph
        self.config = config or SimulationConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.registry = AgentRegistry()
        self.state = SimulationState()

    @property
    def step_distance_m(self) -> float:
        return self.config.step_distance_m

    def handle(self, event: Event) -> Any:
        """Apply one event and return the handler's result."""
        if isinstance(event, TickEvent):
            return self.on_tick()
        if isinstance(event, CreateEvent):
            return self.on_create(event.agent_id)
        if isinstance(event, CommandEvent):
            return self.on_command(event.command)
        raise TypeError(f"Unsupported event: {event!r}")

    def on_create(self, agent_id: str) -> Agent:
        """Place a new agent on a random node and plan its first walk."""
        validate_agent_id(agent_id)
        if agent_id in self.registry:
            # Checked before touching the rng so a rejected duplicate changes nothing
            raise AgentExistsError(agent_id)

        start = self.graph.random_node(self.rng)
        # Each agent gets its own stream so one agent's choices never shift another's
        agent = Agent(
            agent_id=agent_id,
            position=start,
            graph=self.graph,
            rng=random.Random(self.rng.getrandbits(64)),
        )
        agent.plan()
        self.registry.register(agent)
        self.state.created += 1
        logger.info(f"Created agent {agent_id} at node {start.id} ({start.lat:.6f}, {start.lon:.6f})")
        return agent

    def on_command(self, command: Command) -> Agent:
        """Apply a lifecycle command; unknown ids raise UnknownAgentError."""
        kind = command.kind
        if kind is CommandKind.START:
            return self.on_create(command.agent_id)
        if kind is CommandKind.STOP:
            agent = self.registry.remove(command.agent_id)
            logger.info(f"Stopped agent {command.agent_id}")
            return agent

        agent = self.registry.require(command.agent_id)
        if kind is CommandKind.PAUSE:
            agent.enabled = False
            logger.info(f"Paused agent {command.agent_id}")
        elif kind is CommandKind.CONTINUE:
            agent.enabled = True
            logger.info(f"Resumed agent {command.agent_id}")
        return agent

    def on_tick(self) -> TickRecord:
        """Advance every enabled agent one step and snapshot all positions.

        A failure while moving one agent never reaches the others: that agent
        is reset to its last node and retried on the next tick.
        """
        start = time.perf_counter()
        self.state.tick += 1
        step = self.step_distance_m

        moved: list[str] = []
        arrived: list[str] = []
        stranded: list[str] = []
        for agent in self.registry:
            if not agent.enabled:
                continue
            try:
                outcome = agent.advance(step)
            except Exception as e:
                logger.error(
                    f"Agent {agent.agent_id} failed to advance on tick {self.state.tick}: {e}",
                    exc_info=True,
                )
                agent.reset()
                stranded.append(agent.agent_id)
                continue

            if outcome is StepOutcome.STRANDED:
                stranded.append(agent.agent_id)
            else:
                moved.append(agent.agent_id)
                if outcome is StepOutcome.ARRIVED:
                    arrived.append(agent.agent_id)

        positions = tuple(
            PositionRecord(agent.agent_id, agent.position.lat, agent.position.lon)
            for agent in self.registry
        )
        advance_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            f"Tick {self.state.tick}: {len(moved)} moved, {len(arrived)} arrived, "
            f"{len(stranded)} stranded, {len(positions)} published"
        )
        return TickRecord(
            tick=self.state.tick,
            positions=positions,
            moved=tuple(moved),
            arrived=tuple(arrived),
            stranded=tuple(stranded),
            advance_ms=advance_ms,
        )

    def agent_state(self, agent_id: str) -> dict[str, Any]:
        """Read-only summary of one agent."""
        return self.registry.require(agent_id).as_dict()

    def stats(self) -> dict[str, int]:
        agents = self.registry.agents()
        return {
            "tick": self.state.tick,
            "agents": len(agents),
            "enabled": len(self.registry.enabled_agents()),
            "stranded": sum(1 for a in agents if a.stranded),
            "created": self.state.created,
            "stopped": self.registry.count_removed,
        }
