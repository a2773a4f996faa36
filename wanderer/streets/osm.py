"""Build a StreetGraph from an OpenStreetMap XML extract.

osmnx reads the file into a networkx MultiDiGraph with one edge per pair of
consecutive way nodes. Ways are reassembled from those edges by chaining the
edges that share an ``osmid``.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
import xml.sax
from collections import defaultdict
from pathlib import Path

import networkx as nx
import osmnx as ox

from wanderer.errors import MapParseError
from wanderer.streets.graph import StreetGraph
from wanderer.streets.types import Node, Way

logger = logging.getLogger(__name__)


def _read_osm(path: Path) -> nx.MultiDiGraph:
    """Load the raw, unsimplified street network of an extract."""
    try:
        return ox.graph_from_xml(path, simplify=False, retain_all=True)
    except (ET.ParseError, xml.sax.SAXException) as e:
        raise MapParseError(f"Malformed OSM XML in {path}: {e}") from e
    except (KeyError, ValueError) as e:
        # Missing lat/lon, non-numeric ids, or ways referencing nodes outside a clipped extract
        raise MapParseError(f"Unusable OSM data in {path}: {e}") from e


def _chain(pairs: set[tuple[int, int]]) -> list[tuple[int, ...]]:
    """Order a way's edges into node sequences.

    A plain street yields one sequence from one end to the other, a closed way
    yields one sequence that starts and ends on the same node.
    """
    neighbors: dict[int, list[int]] = defaultdict(list)
    for u, v in pairs:
        neighbors[u].append(v)
        neighbors[v].append(u)
    for bucket in neighbors.values():
        bucket.sort()

    chains: list[tuple[int, ...]] = []
    while any(neighbors.values()):
        ends = sorted(n for n, bucket in neighbors.items() if len(bucket) % 2 == 1)
        start = ends[0] if ends else min(n for n, bucket in neighbors.items() if bucket)
        chain = [start]
        current = start
        while neighbors[current]:
            following = neighbors[current].pop(0)
            neighbors[following].remove(current)
            chain.append(following)
            current = following
        chains.append(tuple(chain))
    return chains


def parse_osm(path: str | Path, highway_only: bool = True) -> tuple[dict[int, Node], list[Way]]:
    """Parse OSM XML into raw nodes and ways.

    Args:
        path: Path to an .osm (or .osm.bz2) file
        highway_only: Keep only ways tagged ``highway=*``

    Returns:
        (nodes by id, ways) with every way reference resolvable
    """
    G = _read_osm(Path(path))

    nodes: dict[int, Node] = {}
    for node_id, data in G.nodes(data=True):
        if "y" not in data or "x" not in data:
            raise MapParseError(f"Node {node_id} is referenced by a way but missing from {path}")
        nodes[int(node_id)] = Node(id=int(node_id), lat=float(data["y"]), lon=float(data["x"]))

    pairs_by_way: dict[int, set[tuple[int, int]]] = defaultdict(set)
    tags_by_way: dict[int, tuple[str, str]] = {}
    skipped: set[int] = set()
    for u, v, data in G.edges(data=True):
        way_id = int(data["osmid"])
        highway = data.get("highway") or ""
        if highway_only and not highway:
            skipped.add(way_id)
            continue
        if u == v:
            continue
        # Two-way streets appear once per direction; keep one undirected pair
        pairs_by_way[way_id].add((min(u, v), max(u, v)))
        tags_by_way[way_id] = (data.get("name") or "", highway)

    ways: list[Way] = []
    for way_id in sorted(pairs_by_way):
        name, highway = tags_by_way[way_id]
        chains = _chain(pairs_by_way[way_id])
        if len(chains) > 1:
            logger.debug(f"Way {way_id} is not a single line, kept {len(chains)} segments")
        for chain in chains:
            ways.append(Way(id=way_id, node_ids=chain, name=str(name), type=str(highway)))

    if skipped:
        logger.debug(f"Skipped {len(skipped)} non-highway ways")
    return nodes, ways


def build_graph(
    path: str | Path,
    highway_only: bool = True,
    prune_isolated: bool = True,
) -> StreetGraph:
    """Parse an OSM extract and build the immutable street graph.

    With ``prune_isolated`` set, nodes that lie on no kept way (points of
    interest, building corners) are dropped so random starts land on a street.
    """
    nodes, ways = parse_osm(path, highway_only=highway_only)
    if prune_isolated:
        used = {node_id for way in ways for node_id in way.node_ids}
        nodes = {node_id: node for node_id, node in nodes.items() if node_id in used}
    return StreetGraph(nodes, ways)


def load_graph(path: str | Path, highway_only: bool = True, prune_isolated: bool = True) -> StreetGraph:
    """Load a street graph from an .osm file on disk."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Map file not found: {path}")
    graph = build_graph(path, highway_only=highway_only, prune_isolated=prune_isolated)
    stats = graph.stats()
    logger.info(
        f"Loaded street graph from {path}: {stats['nodes']} nodes, {stats['ways']} ways, "
        f"{stats['isolated_nodes']} isolated"
    )
    return graph
