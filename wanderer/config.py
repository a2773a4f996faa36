"""Configuration settings for the wanderer simulation.

Uses Pydantic Settings for validation and environment variable support.
All settings can be overridden via WANDERER_* environment variables.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings

SINK_BACKENDS = ("memory", "duckdb")


class SimulationConfig(BaseSettings):
    """Global configuration for the street-walking simulation."""

    # Map
    map_path: str = ""
    highway_only: bool = True  # ignore buildings, fences, etc.
    prune_isolated_nodes: bool = True

    # Tick
    tick_seconds: float = 1.0
    walking_speed_m_s: float = 1.56464  # average adult walking pace
    seed: int | None = None

    # Line protocol server
    host: str = "0.0.0.0"
    port: int = 4001

    # Position sink
    sink_backend: str = "memory"  # "memory" | "duckdb"
    sink_path: str = "data/positions.duckdb"
    reset_positions_on_start: bool = True

    # Live HTTP/WebSocket server
    live_enabled: bool = False
    live_host: str = "127.0.0.1"
    live_port: int = 8001

    # Trajectory recording
    trajectory_recording: bool = False
    trajectory_output_dir: str = "data/trajectories"

    # Terminal status table every N ticks (0 = disabled)
    status_interval: int = 0

    log_level: str = "INFO"

    model_config = {"env_prefix": "WANDERER_"}

    @field_validator("tick_seconds")
    @classmethod
    def _positive_tick(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("tick_seconds must be positive")
        return value

    @field_validator("walking_speed_m_s")
    @classmethod
    def _non_negative_speed(cls, value: float) -> float:
        if value < 0:
            raise ValueError("walking_speed_m_s must not be negative")
        return value

    @field_validator("sink_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        if value not in SINK_BACKENDS:
            raise ValueError(f"sink_backend must be one of {SINK_BACKENDS}, got {value!r}")
        return value

    @property
    def step_distance_m(self) -> float:
        """Distance one agent covers in one tick."""
        return self.walking_speed_m_s * self.tick_seconds
