"""Tests for building street graphs from OSM XML."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import OSM_SAMPLE
from wanderer.errors import MapParseError
from wanderer.streets.osm import build_graph, load_graph, parse_osm


@pytest.fixture
def write_osm(tmp_path: Path):
    """Write XML text to an .osm file and return its path."""

    def _write(text: str, name: str = "extract.osm") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


class TestParseOsm:
    """Tests for parse_osm()."""

    def test_parses_nodes(self, write_osm) -> None:
        nodes, _ = parse_osm(write_osm(OSM_SAMPLE))
        assert {1, 2, 3, 4} <= set(nodes)
        assert nodes[1].lat == pytest.approx(52.52)
        assert nodes[1].lon == pytest.approx(13.405)

    def test_highway_only_drops_buildings(self, write_osm) -> None:
        _, ways = parse_osm(write_osm(OSM_SAMPLE))
        assert sorted(w.id for w in ways) == [100, 101]

    def test_all_ways_when_not_highway_only(self, write_osm) -> None:
        _, ways = parse_osm(write_osm(OSM_SAMPLE), highway_only=False)
        assert sorted(w.id for w in ways) == [100, 101, 200]

    def test_way_tags_and_order(self, write_osm) -> None:
        """Edges of a way are chained back into its node sequence."""
        _, ways = parse_osm(write_osm(OSM_SAMPLE))
        main = next(w for w in ways if w.id == 100)
        assert main.name == "Linienstrasse"
        assert main.type == "residential"
        assert main.node_ids == (1, 2, 3)

    def test_unnamed_way(self, write_osm) -> None:
        _, ways = parse_osm(write_osm(OSM_SAMPLE))
        footway = next(w for w in ways if w.id == 101)
        assert footway.name == ""
        assert footway.node_ids == (2, 4)

    def test_closed_way(self, write_osm) -> None:
        xml = """<osm version="0.6">
          <node id="1" lat="0" lon="0"/>
          <node id="2" lat="0" lon="0.001"/>
          <node id="3" lat="0.001" lon="0.001"/>
          <way id="9">
            <nd ref="1"/><nd ref="2"/><nd ref="3"/><nd ref="1"/>
            <tag k="highway" v="pedestrian"/>
          </way>
        </osm>"""
        _, ways = parse_osm(write_osm(xml))
        assert [w.node_ids for w in ways] == [(1, 2, 3, 1)]

    def test_reference_outside_extract(self, write_osm) -> None:
        """A way pointing at a node the clipped extract lacks is rejected."""
        xml = """<osm version="0.6">
          <node id="1" lat="0" lon="0"/>
          <node id="2" lat="0" lon="0.001"/>
          <way id="9"><nd ref="1"/><nd ref="2"/><nd ref="3"/><tag k="highway" v="path"/></way>
        </osm>"""
        with pytest.raises(MapParseError):
            parse_osm(write_osm(xml))

    def test_malformed_xml(self, write_osm) -> None:
        with pytest.raises(MapParseError):
            parse_osm(write_osm("<osm><node id='1'"))

    def test_missing_coordinate(self, write_osm) -> None:
        xml = '<osm version="0.6"><node id="1" lon="0"/></osm>'
        with pytest.raises(MapParseError):
            parse_osm(write_osm(xml))

    def test_non_numeric_id(self, write_osm) -> None:
        xml = '<osm version="0.6"><node id="abc" lat="0" lon="0"/></osm>'
        with pytest.raises(MapParseError):
            parse_osm(write_osm(xml))


class TestBuildGraph:
    """Tests for build_graph() and load_graph()."""

    def test_prunes_isolated_nodes(self, write_osm) -> None:
        """Building corners and POIs never become start nodes."""
        graph = build_graph(write_osm(OSM_SAMPLE))
        assert sorted(graph.nodes_by_id) == [1, 2, 3, 4]
        assert graph.stats()["isolated_nodes"] == 0

    def test_keeps_isolated_nodes_when_asked(self, write_osm) -> None:
        graph = build_graph(write_osm(OSM_SAMPLE), prune_isolated=False)
        assert len(graph) == 7
        assert graph.stats()["isolated_nodes"] == 3

    def test_intersection_is_shared(self, write_osm) -> None:
        graph = build_graph(write_osm(OSM_SAMPLE))
        assert sorted(w.id for w in graph.ways_through(2)) == [100, 101]

    def test_load_from_file(self, write_osm) -> None:
        graph = load_graph(write_osm(OSM_SAMPLE, name="city.osm"))
        assert len(graph.ways) == 2

    def test_load_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_graph(tmp_path / "nowhere.osm")
