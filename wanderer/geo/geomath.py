"""Geodesic math on the WGS84 ellipsoid.

Distances are meters, bearings are radians clockwise from north.
"""

from __future__ import annotations

import math

from pyproj import Geod

from wanderer.streets.types import Node

EARTH_RADIUS_M = 6371000.0

_GEOD = Geod(ellps="WGS84")
_TWO_PI = 2.0 * math.pi


def distance_and_bearing(a: Node, b: Node) -> tuple[float, float]:
    """Geodesic distance and initial bearing from ``a`` to ``b``.

    The bearing of two coincident points is meaningless; callers check the
    distance before using it.
    """
    if a.same_place(b):
        return 0.0, 0.0
    azimuth, _back_azimuth, meters = _GEOD.inv(a.lon, a.lat, b.lon, b.lat)
    return meters, math.radians(azimuth) % _TWO_PI


def project(origin: Node, distance_m: float, bearing: float) -> Node:
    """Point reached by walking ``distance_m`` from ``origin`` along ``bearing``.

    Args:
        origin: Starting point
        distance_m: Non-negative distance in meters
        bearing: Radians clockwise from north

    Returns:
        The projected point as an interpolated node (``id=None``), or
        ``origin`` itself when the distance is zero.
    """
    if distance_m < 0:
        raise ValueError(f"distance_m must not be negative, got {distance_m}")
    if distance_m == 0:
        return origin
    lon, lat, _back_azimuth = _GEOD.fwd(origin.lon, origin.lat, math.degrees(bearing), distance_m)
    return Node(id=None, lat=lat, lon=lon)


def equirectangular_distance(a: Node, b: Node) -> float:
    """Fast planar approximation of the distance, good at city scale."""
    x = math.radians(b.lon - a.lon) * math.cos(math.radians(a.lat))
    y = math.radians(b.lat - a.lat)
    return EARTH_RADIUS_M * math.hypot(x, y)
