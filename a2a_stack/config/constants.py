from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ServiceSpec:
    name: str
    service: Optional[str]
    preferred_port: int
    container_port: Optional[int]
    protocol: str = "http"

    @property
    def exposed(self) -> bool:
        return self.service is not None and self.container_port is not None


COLLECTOR_SERVICE = "otel-collector"
PROMETHEUS_SERVICE = "prometheus"
LOKI_SERVICE = "loki"
TEMPO_SERVICE = "tempo"

OTLP_GRPC_PORT = 4317
OTLP_HTTP_PORT = 4318
COLLECTOR_PROMETHEUS_EXPORTER_PORT = 9464
PROMETHEUS_PORT = 9090
LOKI_PORT = 3100
TEMPO_HTTP_PORT = 3200
TEMPO_GRPC_PORT = 9095

COLLECTOR_HTTP = "collector_http"
COLLECTOR_GRPC = "collector_grpc"
PROMETHEUS_EXPORTER = "prometheus_exporter"
PROMETHEUS = "prometheus"
LOKI = "loki"
TEMPO_HTTP = "tempo_http"
DASHBOARD = "dashboard"
TEMPO_GRPC = "tempo_grpc"

# Allocation order. Reordering changes which service wins a contested port.
SERVICE_SPECS: Tuple[ServiceSpec, ...] = (
    ServiceSpec(COLLECTOR_HTTP, COLLECTOR_SERVICE, 4318, OTLP_HTTP_PORT, "http"),
    ServiceSpec(COLLECTOR_GRPC, COLLECTOR_SERVICE, 55680, OTLP_GRPC_PORT, "grpc"),
    ServiceSpec(PROMETHEUS_EXPORTER, COLLECTOR_SERVICE, 9464, COLLECTOR_PROMETHEUS_EXPORTER_PORT, "http"),
    ServiceSpec(PROMETHEUS, PROMETHEUS_SERVICE, 9090, PROMETHEUS_PORT, "http"),
    ServiceSpec(LOKI, LOKI_SERVICE, 3100, LOKI_PORT, "http"),
    ServiceSpec(TEMPO_HTTP, TEMPO_SERVICE, 3200, TEMPO_HTTP_PORT, "http"),
    ServiceSpec(DASHBOARD, None, 4000, None, "http"),
    ServiceSpec(TEMPO_GRPC, TEMPO_SERVICE, 9095, TEMPO_GRPC_PORT, "grpc"),
)

SPECS_BY_NAME: Dict[str, ServiceSpec] = {spec.name: spec for spec in SERVICE_SPECS}

IMAGES: Dict[str, str] = {
    COLLECTOR_SERVICE: "otel/opentelemetry-collector-contrib:0.111.0",
    PROMETHEUS_SERVICE: "prom/prometheus:v2.54.1",
    LOKI_SERVICE: "grafana/loki:3.2.0",
    TEMPO_SERVICE: "grafana/tempo:2.6.0",
}

COLLECTOR_CONFIG_FILE = "otel-collector-config.yaml"
PROMETHEUS_CONFIG_FILE = "prometheus.yml"
TEMPO_CONFIG_FILE = "tempo.yaml"
COMPOSE_MANIFEST_FILE = "docker-compose.yml"

COLLECTOR_CONFIG_MOUNT = "/etc/otelcol-contrib/config.yaml"
PROMETHEUS_CONFIG_MOUNT = "/etc/prometheus/prometheus.yml"
TEMPO_CONFIG_MOUNT = "/etc/tempo/tempo.yaml"
LOKI_CONFIG_PATH = "/etc/loki/local-config.yaml"
TEMPO_DATA_DIR = "/var/tempo"

OTLP_TRACES_PATH = "/v1/traces"
OTLP_LOGS_PATH = "/v1/logs"
OTLP_METRICS_PATH = "/v1/metrics"
LOKI_OTLP_PATH = "/otlp"

DEFAULT_WINDOW_MS = 5 * 60 * 1000
DEFAULT_QUERY_LIMIT = 500
ONLINE_THRESHOLD_MS = 60_000
