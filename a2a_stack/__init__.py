"""Local telemetry stack and dashboard proxy for A2A agents."""

__version__ = "0.1.0"
