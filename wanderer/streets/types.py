"""Street network value types: nodes and ways."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Node:
    """A geographic point, in degrees.

    Graph nodes carry their OSM id. Points interpolated between two graph
    nodes carry ``id=None``.
    """

    id: int | None
    lat: float
    lon: float

    @property
    def is_graph_node(self) -> bool:
        return self.id is not None

    def same_place(self, other: Node) -> bool:
        """True if both points share the exact same coordinate."""
        return self.lat == other.lat and self.lon == other.lon


@dataclass(frozen=True)
class Way:
    """An ordered street segment; consecutive node ids are adjacent."""

    id: int
    node_ids: tuple[int, ...]
    name: str = ""
    type: str = ""  # OSM highway class: residential, footway, ...

    def __len__(self) -> int:
        return len(self.node_ids)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.node_ids
