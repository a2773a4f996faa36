"""Tests for geodesic distance, bearing and projection."""

from __future__ import annotations

import math

import pytest

from tests.helpers import N1, N2
from wanderer.geo import distance_and_bearing, equirectangular_distance, project
from wanderer.streets.types import Node


class TestDistanceAndBearing:
    """Tests for distance_and_bearing()."""

    def test_same_point_is_zero(self) -> None:
        """Coincident points are zero meters apart."""
        assert distance_and_bearing(N1, Node(None, 0.0, 0.0)) == (0.0, 0.0)

    def test_distance_is_positive_for_distinct_points(self) -> None:
        meters, _ = distance_and_bearing(N1, N2)
        assert meters > 0

    def test_equator_spacing(self) -> None:
        """0.001 degrees of longitude on the equator is about 111 meters."""
        meters, _ = distance_and_bearing(N1, N2)
        assert meters == pytest.approx(111.32, abs=0.05)

    def test_bearing_due_east(self) -> None:
        _, bearing = distance_and_bearing(N1, N2)
        assert bearing == pytest.approx(math.pi / 2, abs=1e-6)

    def test_bearing_due_west_is_normalized(self) -> None:
        """Bearings are in [0, 2*pi), never negative."""
        _, bearing = distance_and_bearing(N2, N1)
        assert bearing == pytest.approx(3 * math.pi / 2, abs=1e-6)

    def test_bearing_due_north(self) -> None:
        _, bearing = distance_and_bearing(N1, Node(None, 0.001, 0.0))
        assert bearing == pytest.approx(0.0, abs=1e-6)

    def test_symmetric_distance(self) -> None:
        a = Node(1, 52.52, 13.405)
        b = Node(2, 52.53, 13.42)
        assert distance_and_bearing(a, b)[0] == pytest.approx(distance_and_bearing(b, a)[0])


class TestProject:
    """Tests for project()."""

    def test_zero_distance_returns_origin(self) -> None:
        assert project(N1, 0.0, 1.0) is N1

    def test_negative_distance_rejected(self) -> None:
        with pytest.raises(ValueError):
            project(N1, -1.0, 0.0)

    def test_projected_point_is_interpolated(self) -> None:
        """Projected points never carry a graph node id."""
        assert project(N1, 10.0, 0.0).id is None

    @pytest.mark.parametrize("distance", [0.5, 1.56464, 100.0, 2500.0, 10000.0])
    @pytest.mark.parametrize("bearing", [0.0, 1.0, math.pi, 5.5])
    def test_round_trip_distance(self, distance: float, bearing: float) -> None:
        """Walking d meters then measuring back gives d."""
        origin = Node(1, 48.8566, 2.3522)
        meters, _ = distance_and_bearing(origin, project(origin, distance, bearing))
        assert meters == pytest.approx(distance, abs=1e-3)

    def test_round_trip_bearing(self) -> None:
        origin = Node(1, 40.7128, -74.006)
        _, bearing = distance_and_bearing(origin, project(origin, 500.0, 2.0))
        assert bearing == pytest.approx(2.0, abs=1e-6)

    def test_project_toward_neighbor_shrinks_distance(self) -> None:
        """A step along the bearing to a node gets closer by that step."""
        before, bearing = distance_and_bearing(N1, N2)
        after, _ = distance_and_bearing(project(N1, 1.56464, bearing), N2)
        assert after == pytest.approx(before - 1.56464, abs=1e-6)


def test_equirectangular_close_to_geodesic() -> None:
    """The planar approximation is within 1% at city scale."""
    a = Node(1, 52.52, 13.405)
    b = Node(2, 52.525, 13.41)
    geodesic, _ = distance_and_bearing(a, b)
    assert equirectangular_distance(a, b) == pytest.approx(geodesic, rel=0.01)
