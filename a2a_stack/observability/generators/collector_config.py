from typing import Any, Dict

from a2a_stack.config import constants


def internal_address(service: str, port: int) -> str:
    return f"{service}:{port}"


def build_collector_config() -> Dict[str, Any]:
    """OTel collector config. Only container ports and service names appear here."""
    tempo_otlp = internal_address(constants.TEMPO_SERVICE, constants.OTLP_GRPC_PORT)
    loki_otlp = f"http://{internal_address(constants.LOKI_SERVICE, constants.LOKI_PORT)}{constants.LOKI_OTLP_PATH}"

    return {
        "receivers": {
            "otlp": {
                "protocols": {
                    "grpc": {"endpoint": f"0.0.0.0:{constants.OTLP_GRPC_PORT}"},
                    "http": {"endpoint": f"0.0.0.0:{constants.OTLP_HTTP_PORT}"},
                }
            }
        },
        "processors": {
            "batch": {"timeout": "5s", "send_batch_size": 512},
        },
        "exporters": {
            "otlp/tempo": {
                "endpoint": tempo_otlp,
                "tls": {"insecure": True},
            },
            "otlphttp/loki": {
                "endpoint": loki_otlp,
                "tls": {"insecure": True},
            },
            "prometheus": {
                "endpoint": f"0.0.0.0:{constants.COLLECTOR_PROMETHEUS_EXPORTER_PORT}",
                "resource_to_telemetry_conversion": {"enabled": True},
            },
        },
        "service": {
            "pipelines": {
                "traces": {
                    "receivers": ["otlp"],
                    "processors": ["batch"],
                    "exporters": ["otlp/tempo"],
                },
                "metrics": {
                    "receivers": ["otlp"],
                    "processors": ["batch"],
                    "exporters": ["prometheus"],
                },
                "logs": {
                    "receivers": ["otlp"],
                    "processors": ["batch"],
                    "exporters": ["otlphttp/loki"],
                },
            },
            "telemetry": {"logs": {"level": "info"}},
        },
    }
