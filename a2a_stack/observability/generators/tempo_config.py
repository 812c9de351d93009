from typing import Any, Dict

from a2a_stack.config import constants


def build_tempo_config() -> Dict[str, Any]:
    return {
        "server": {
            "http_listen_port": constants.TEMPO_HTTP_PORT,
            "grpc_listen_port": constants.TEMPO_GRPC_PORT,
        },
        "distributor": {
            "receivers": {
                "otlp": {
                    "protocols": {
                        "grpc": {"endpoint": f"0.0.0.0:{constants.OTLP_GRPC_PORT}"},
                        "http": {"endpoint": f"0.0.0.0:{constants.OTLP_HTTP_PORT}"},
                    }
                }
            }
        },
        "compactor": {
            "compaction": {"block_retention": "48h"},
        },
        "storage": {
            "trace": {
                "backend": "local",
                "local": {"path": f"{constants.TEMPO_DATA_DIR}/traces"},
                "wal": {"path": f"{constants.TEMPO_DATA_DIR}/wal"},
            }
        },
    }
