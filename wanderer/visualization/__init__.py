"""Live browser-facing views of the running simulation."""
