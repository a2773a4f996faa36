"""Trajectory recording of published agent positions."""

from wanderer.trajectory.recorder import TrajectoryRecorder

__all__ = ["TrajectoryRecorder"]
