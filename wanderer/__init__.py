"""wanderer: simulated people wandering a real street network."""

__version__ = "0.1.0"
