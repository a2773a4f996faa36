"""Agent registry: manages agent lifecycle (register, remove, lookup)."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from wanderer.errors import AgentExistsError, UnknownAgentError

if TYPE_CHECKING:
    from wanderer.simulation.agent import Agent


class AgentRegistry:
    """Mapping of agent id to Agent.

    Single source of truth for all agents in the simulation. Owned by the
    SimulationEngine; nothing else mutates it.
    """

    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}
        self._removed_count = 0

    def register(self, agent: Agent) -> Agent:
        """Add a new agent. A duplicate id is an error, never an overwrite."""
        if agent.agent_id in self._agents:
            raise AgentExistsError(agent.agent_id)
        self._agents[agent.agent_id] = agent
        return agent

    def remove(self, agent_id: str) -> Agent:
        """Remove and return an agent."""
        try:
            agent = self._agents.pop(agent_id)
        except KeyError:
            raise UnknownAgentError(agent_id) from None
        self._removed_count += 1
        return agent

    def require(self, agent_id: str) -> Agent:
        """Look up an agent, raising UnknownAgentError if absent."""
        agent = self._agents.get(agent_id)
        if agent is None:
            raise UnknownAgentError(agent_id)
        return agent

    def agents(self) -> list[Agent]:
        """All agents, in registration order."""
        return list(self._agents.values())

    def enabled_agents(self) -> list[Agent]:
        return [a for a in self._agents.values() if a.enabled]

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(list(self._agents.values()))

    @property
    def count_removed(self) -> int:
        return self._removed_count
