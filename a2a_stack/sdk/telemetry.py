"""
Telemetry bootstrap for agent processes.

Reads the project's `.a2a.config.json` written by `a2a link` and wires traces,
metrics and logs to the local collector over OTLP/HTTP.

Usage:
    from a2a_stack.sdk import start_telemetry

    telemetry = start_telemetry("./.a2a.config.json")
    ...
    telemetry.shutdown()
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Union

from opentelemetry import metrics as otel_metrics
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from a2a_stack.agents.registry import AgentConfig
from a2a_stack.config import constants

_logger = logging.getLogger(__name__)


def signal_endpoint(traces_endpoint: str, signal_path: str) -> str:
    """Derives the logs/metrics URL from the collector's traces URL."""
    if traces_endpoint.endswith(constants.OTLP_TRACES_PATH):
        return traces_endpoint[: -len(constants.OTLP_TRACES_PATH)] + signal_path
    return traces_endpoint.rstrip("/") + signal_path


def resource_attributes(config: AgentConfig) -> Dict[str, str]:
    return {
        SERVICE_NAME: config.agent_name,
        "a2a.agent.id": config.agent_id,
        "a2a.agent.role": config.role or "",
        "a2a.agent.connected": ",".join(config.connected_agents),
        "a2a.agent.methods": ",".join(config.methods),
    }


@dataclass
class TelemetryHandle:
    tracer_provider: TracerProvider
    meter_provider: MeterProvider
    logger_provider: LoggerProvider
    handler: LoggingHandler

    def shutdown(self):
        """Flush and stop all three providers."""
        logging.getLogger().removeHandler(self.handler)
        self.tracer_provider.shutdown()
        self.meter_provider.shutdown()
        self.logger_provider.shutdown()


def start_telemetry(config_path: Union[str, Path], export_interval_millis: int = 5000) -> TelemetryHandle:
    config = AgentConfig.load(Path(config_path))
    headers = {"Authorization": f"Bearer {config.token}"}
    resource = Resource.create(resource_attributes(config))

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=config.endpoint, headers=headers))
    )
    trace.set_tracer_provider(tracer_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=signal_endpoint(config.endpoint, constants.OTLP_METRICS_PATH), headers=headers),
        export_interval_millis=export_interval_millis,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    otel_metrics.set_meter_provider(meter_provider)

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(
            OTLPLogExporter(endpoint=signal_endpoint(config.endpoint, constants.OTLP_LOGS_PATH), headers=headers)
        )
    )
    set_logger_provider(logger_provider)

    # Attach OTLP handler to Python logging
    handler = LoggingHandler(level=logging.NOTSET, logger_provider=logger_provider)
    logging.getLogger().addHandler(handler)

    _logger.info("event=telemetry_started agent=%s endpoint=%s", config.agent_name, config.endpoint)
    return TelemetryHandle(tracer_provider, meter_provider, logger_provider, handler)
