"""Street network: immutable graph of OSM nodes and ways."""

from wanderer.streets.graph import StreetGraph
from wanderer.streets.types import Node, Way

__all__ = [
    "Node",
    "StreetGraph",
    "Way",
]
