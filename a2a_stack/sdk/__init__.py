from .telemetry import TelemetryHandle, start_telemetry

__all__ = ["TelemetryHandle", "start_telemetry"]
