"""Geodesic helpers used to walk agents along streets."""

from wanderer.geo.geomath import (
    distance_and_bearing,
    equirectangular_distance,
    project,
)

__all__ = [
    "distance_and_bearing",
    "equirectangular_distance",
    "project",
]
