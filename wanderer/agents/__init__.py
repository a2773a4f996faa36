"""Agent bookkeeping owned by the simulation engine."""

from wanderer.agents.registry import AgentRegistry

__all__ = ["AgentRegistry"]
