"""Structured error hierarchy for wanderer."""


class WandererError(Exception):
    """Base for all wanderer errors."""

    pass


class GraphError(WandererError):
    """Street graph is malformed or degenerate for the requested operation."""

    pass


class EmptyGraphError(GraphError):
    """Graph has no nodes to pick from."""

    pass


class NoWayAtNodeError(GraphError):
    """Node touches no way, so there is nowhere to walk."""

    def __init__(self, node_id: int):
        self.node_id = node_id
        super().__init__(f"No way passes through node {node_id}")


class NodeNotOnWayError(GraphError):
    """Node is not part of the given way."""

    def __init__(self, node_id: int, way_id: int):
        self.node_id = node_id
        self.way_id = way_id
        super().__init__(f"Node {node_id} is not on way {way_id}")


class UnknownNodeError(GraphError):
    """Node id is not present in the graph."""

    def __init__(self, node_id: int):
        self.node_id = node_id
        super().__init__(f"Unknown node {node_id}")


class MapParseError(GraphError):
    """Raw map data could not be turned into a street graph."""

    pass


class RegistryError(WandererError):
    """Agent registry rejected a lifecycle operation."""

    pass


class AgentExistsError(RegistryError):
    """An agent with this id is already registered."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id!r} already exists")


class UnknownAgentError(RegistryError):
    """No agent with this id is registered."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Unknown agent {agent_id!r}")


class SinkError(WandererError):
    """Position sink failed to store or look up a position."""

    pass


class PositionNotFoundError(SinkError):
    """Sink holds no position for this agent."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"No position recorded for agent {agent_id!r}")


class ProtocolError(WandererError):
    """Command line from a client could not be understood."""

    pass


class ValidationError(WandererError):
    """Input validation at boundary failed."""

    pass


class EngineStateError(WandererError):
    """Engine in invalid state for requested operation."""

    pass
