"""Read-only street graph: nodes, ways, and the node-to-way index.

Built once before the simulation starts and never mutated afterwards, so any
number of readers may share it without locking.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping

from wanderer.errors import (
    EmptyGraphError,
    NodeNotOnWayError,
    NoWayAtNodeError,
    UnknownNodeError,
)
from wanderer.streets.types import Node, Way


class StreetGraph:
    """Immutable graph of nodes and ways.

    Two nodes are adjacent iff they appear consecutively in some way.
    """

    def __init__(self, nodes: Mapping[int, Node] | Iterable[Node], ways: Iterable[Way]):
        if isinstance(nodes, Mapping):
            self._nodes: dict[int, Node] = dict(nodes)
        else:
            self._nodes = {n.id: n for n in nodes if n.id is not None}
        self._ways: tuple[Way, ...] = tuple(ways)
        self._node_list: tuple[Node, ...] = tuple(self._nodes.values())

        ways_by_node: dict[int, list[Way]] = {}
        for way in self._ways:
            for node_id in way.node_ids:
                if node_id not in self._nodes:
                    raise UnknownNodeError(node_id)
                bucket = ways_by_node.setdefault(node_id, [])
                # Closed ways list the same node twice; index the way once
                if not bucket or bucket[-1] is not way:
                    bucket.append(way)
        self._ways_by_node: dict[int, tuple[Way, ...]] = {
            node_id: tuple(bucket) for node_id, bucket in ways_by_node.items()
        }

    @property
    def nodes_by_id(self) -> Mapping[int, Node]:
        return self._nodes

    @property
    def ways(self) -> tuple[Way, ...]:
        return self._ways

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def node(self, node_id: int) -> Node:
        """Look up a node by id."""
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def random_node(self, rng: random.Random | None = None) -> Node:
        """Uniform pick over all nodes."""
        if not self._node_list:
            raise EmptyGraphError("Graph has no nodes")
        return (rng or random).choice(self._node_list)

    def ways_through(self, node_id: int) -> tuple[Way, ...]:
        """All ways containing ``node_id``, in definition order.

        An isolated node yields an empty tuple; that is a dead end, not an error.
        """
        return self._ways_by_node.get(node_id, ())

    def random_way(self, node_id: int, rng: random.Random | None = None) -> Way:
        """Uniform pick among the ways through ``node_id``."""
        ways = self.ways_through(node_id)
        if not ways:
            raise NoWayAtNodeError(node_id)
        return (rng or random).choice(ways)

    def index_of(self, way: Way, node_id: int) -> int:
        """First position of ``node_id`` within ``way``."""
        try:
            return way.node_ids.index(node_id)
        except ValueError:
            raise NodeNotOnWayError(node_id, way.id) from None

    def stats(self) -> dict[str, int]:
        """Node, way and isolated-node counts."""
        return {
            "nodes": len(self._nodes),
            "ways": len(self._ways),
            "isolated_nodes": sum(1 for node_id in self._nodes if node_id not in self._ways_by_node),
        }
