from typing import Any, Dict

from a2a_stack.config import constants
from a2a_stack.observability.generators.collector_config import internal_address


def build_prometheus_config(scrape_interval: str = "15s") -> Dict[str, Any]:
    return {
        "global": {
            "scrape_interval": scrape_interval,
            "evaluation_interval": scrape_interval,
        },
        "scrape_configs": [
            {
                "job_name": "otel-collector",
                "static_configs": [
                    {
                        "targets": [
                            internal_address(
                                constants.COLLECTOR_SERVICE,
                                constants.COLLECTOR_PROMETHEUS_EXPORTER_PORT,
                            )
                        ]
                    }
                ],
            }
        ],
    }
