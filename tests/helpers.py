"""Shared graph data for wanderer test suites."""

from __future__ import annotations

from wanderer.streets.types import Node

N1 = Node(1, 0.0, 0.0)
N2 = Node(2, 0.0, 0.001)
N3 = Node(3, 0.0, 0.002)

# Two highway ways sharing node 2, one building outline, and a lone POI node (7)
OSM_SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6">
  <node id="1" lat="52.5200" lon="13.4050"/>
  <node id="2" lat="52.5201" lon="13.4052"/>
  <node id="3" lat="52.5202" lon="13.4054"/>
  <node id="4" lat="52.5203" lon="13.4050"/>
  <node id="5" lat="52.5210" lon="13.4100"/>
  <node id="6" lat="52.5211" lon="13.4101"/>
  <node id="7" lat="52.5220" lon="13.4200">
    <tag k="amenity" v="cafe"/>
  </node>
  <way id="100">
    <nd ref="1"/>
    <nd ref="2"/>
    <nd ref="3"/>
    <tag k="highway" v="residential"/>
    <tag k="name" v="Linienstrasse"/>
  </way>
  <way id="101">
    <nd ref="2"/>
    <nd ref="4"/>
    <tag k="highway" v="footway"/>
  </way>
  <way id="200">
    <nd ref="5"/>
    <nd ref="6"/>
    <tag k="building" v="yes"/>
  </way>
</osm>
"""
