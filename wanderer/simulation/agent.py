"""A simulated person walking the street graph.

Navigation is a small state machine:

    IDLE / ARRIVED --plan--> EN_ROUTE --advance--> EN_ROUTE | ARRIVED

Plan picks a random way through the current node and a random goal index on
that way. Advance walks node by node along the way, one adjacent waypoint at a
time, and re-plans as soon as the goal is reached.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from typing import Any

from wanderer.errors import EngineStateError
from wanderer.geo.geomath import distance_and_bearing, project
from wanderer.streets.graph import StreetGraph
from wanderer.streets.types import Node, Way

logger = logging.getLogger(__name__)


class NavState(enum.Enum):
    """Navigation state of an agent."""

    IDLE = "idle"  # no destination chosen
    EN_ROUTE = "en_route"
    ARRIVED = "arrived"  # goal reached, re-plan pending


class StepOutcome(enum.Enum):
    """What one call to Agent.advance() did."""

    MOVED = "moved"
    REACHED_WAYPOINT = "reached_waypoint"
    ARRIVED = "arrived"
    STRANDED = "stranded"


@dataclass
class Agent:
    """One wandering person.

    ``position`` is always a graph node or a point between two adjacent nodes
    of ``way``. ``anchor`` is the last graph node the agent stood on.
    """

    agent_id: str
    position: Node
    graph: StreetGraph = field(repr=False, compare=False)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)
    enabled: bool = True
    state: NavState = NavState.IDLE
    way: Way | None = None
    way_index: int = -1  # index of anchor within way
    goal_index: int = -1
    destination: Node | None = None  # next waypoint, adjacent to anchor
    bearing: float = 0.0  # radians toward destination
    stranded: bool = False
    distance_walked: float = 0.0
    arrivals: int = 0
    anchor: Node | None = None

    def __post_init__(self) -> None:
        if self.anchor is None:
            if not self.position.is_graph_node:
                raise EngineStateError(f"Agent {self.agent_id} must start on a graph node")
            self.anchor = self.position

    @property
    def goal(self) -> Node | None:
        """Final node of the current plan, or None when idle."""
        if self.way is None or self.goal_index < 0:
            return None
        return self.graph.node(self.way.node_ids[self.goal_index])

    def plan(self) -> bool:
        """Choose a way and a goal index from the current node.

        Returns:
            True if the agent is now EN_ROUTE, False if it is stranded
        """
        origin = self.anchor
        assert origin is not None and origin.id is not None

        ways = list(self.graph.ways_through(origin.id))
        self.rng.shuffle(ways)
        for way in ways:
            # A way whose only node is the origin cannot lead anywhere
            candidates = [i for i, node_id in enumerate(way.node_ids) if node_id != origin.id]
            if not candidates:
                continue
            self.way = way
            self.way_index = self.graph.index_of(way, origin.id)
            self.goal_index = self.rng.choice(candidates)
            self.state = NavState.EN_ROUTE
            self.stranded = False
            self._set_next_waypoint()
            return True

        if not self.stranded:
            logger.warning(f"Agent {self.agent_id} stranded at node {origin.id}: no walkable way")
        else:
            logger.debug(f"Agent {self.agent_id} still stranded at node {origin.id}")
        self.state = NavState.IDLE
        self.stranded = True
        self.way = None
        self.way_index = -1
        self.goal_index = -1
        self.destination = None
        return False

    def advance(self, distance_m: float) -> StepOutcome:
        """Walk ``distance_m`` toward the current waypoint.

        If the waypoint is closer than one step the agent snaps onto it; a
        positional error of up to one step is accepted.
        """
        if self.state is not NavState.EN_ROUTE and not self.plan():
            return StepOutcome.STRANDED
        assert self.destination is not None

        remaining, bearing = distance_and_bearing(self.position, self.destination)
        if remaining < distance_m:
            self.position = self.destination
            self.anchor = self.destination
            self.way_index = self._next_index()
            self.distance_walked += remaining
            if self.way_index == self.goal_index:
                self.state = NavState.ARRIVED
                self.arrivals += 1
                self.plan()
                return StepOutcome.ARRIVED
            self._set_next_waypoint()
            return StepOutcome.REACHED_WAYPOINT

        self.bearing = bearing
        self.position = project(self.position, distance_m, bearing)
        self.distance_walked += distance_m
        return StepOutcome.MOVED

    def reset(self) -> None:
        """Drop the current plan and stand on the last graph node reached."""
        assert self.anchor is not None
        self.position = self.anchor
        self.state = NavState.IDLE
        self.way = None
        self.way_index = -1
        self.goal_index = -1
        self.destination = None
        self.stranded = True

    def _next_index(self) -> int:
        return self.way_index + (1 if self.goal_index > self.way_index else -1)

    def _set_next_waypoint(self) -> None:
        assert self.way is not None
        self.destination = self.graph.node(self.way.node_ids[self._next_index()])
        meters, bearing = distance_and_bearing(self.position, self.destination)
        if meters > 0:
            self.bearing = bearing

    def as_dict(self) -> dict[str, Any]:
        """Read-only summary for APIs and status views."""
        goal = self.goal
        return {
            "id": self.agent_id,
            "lat": self.position.lat,
            "lon": self.position.lon,
            "enabled": self.enabled,
            "state": self.state.value,
            "stranded": self.stranded,
            "way_id": self.way.id if self.way else None,
            "way_name": self.way.name if self.way else "",
            "destination_node": self.destination.id if self.destination else None,
            "goal_node": goal.id if goal else None,
            "bearing": self.bearing,
            "distance_walked": round(self.distance_walked, 3),
            "arrivals": self.arrivals,
        }
