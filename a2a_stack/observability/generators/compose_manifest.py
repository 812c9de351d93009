from typing import Any, Dict, List, Mapping, Optional, Sequence

from a2a_stack.config import constants
from a2a_stack.config.constants import ServiceSpec

TEMPO_VOLUME = "tempo-data"


def port_pairs(specs: Sequence[ServiceSpec], assignments: Mapping[str, int], service: str) -> List[str]:
    pairs = []
    for spec in specs:
        if spec.service != service or not spec.exposed:
            continue
        if spec.name not in assignments:
            raise ValueError(f"No host port assigned for '{spec.name}'")
        pairs.append(f"{assignments[spec.name]}:{spec.container_port}")
    return pairs


def build_compose_manifest(
    specs: Sequence[ServiceSpec],
    assignments: Mapping[str, int],
    project_name: str,
) -> Dict[str, Any]:
    """docker compose manifest; the only document that carries host ports."""
    return {
        "name": project_name,
        "services": {
            constants.COLLECTOR_SERVICE: {
                "image": constants.IMAGES[constants.COLLECTOR_SERVICE],
                "command": [f"--config={constants.COLLECTOR_CONFIG_MOUNT}"],
                "volumes": [f"./{constants.COLLECTOR_CONFIG_FILE}:{constants.COLLECTOR_CONFIG_MOUNT}:ro"],
                "ports": port_pairs(specs, assignments, constants.COLLECTOR_SERVICE),
                "depends_on": [constants.LOKI_SERVICE, constants.TEMPO_SERVICE, constants.PROMETHEUS_SERVICE],
                "restart": "unless-stopped",
            },
            constants.PROMETHEUS_SERVICE: {
                "image": constants.IMAGES[constants.PROMETHEUS_SERVICE],
                "command": [f"--config.file={constants.PROMETHEUS_CONFIG_MOUNT}"],
                "volumes": [f"./{constants.PROMETHEUS_CONFIG_FILE}:{constants.PROMETHEUS_CONFIG_MOUNT}:ro"],
                "ports": port_pairs(specs, assignments, constants.PROMETHEUS_SERVICE),
                "restart": "unless-stopped",
            },
            constants.LOKI_SERVICE: {
                "image": constants.IMAGES[constants.LOKI_SERVICE],
                "command": [f"-config.file={constants.LOKI_CONFIG_PATH}"],
                "ports": port_pairs(specs, assignments, constants.LOKI_SERVICE),
                "restart": "unless-stopped",
            },
            constants.TEMPO_SERVICE: {
                "image": constants.IMAGES[constants.TEMPO_SERVICE],
                "command": [f"-config.file={constants.TEMPO_CONFIG_MOUNT}"],
                "volumes": [
                    f"./{constants.TEMPO_CONFIG_FILE}:{constants.TEMPO_CONFIG_MOUNT}:ro",
                    f"{TEMPO_VOLUME}:{constants.TEMPO_DATA_DIR}",
                ],
                "ports": port_pairs(specs, assignments, constants.TEMPO_SERVICE),
                "restart": "unless-stopped",
            },
        },
        "volumes": {TEMPO_VOLUME: {}},
    }


def _published_port(entry: Any, container_port: int) -> Optional[int]:
    """`[ip:]host:container[/proto]` -> host port when the container side matches."""
    parts = str(entry).split("/", 1)[0].split(":")
    if len(parts) < 2:
        return None
    try:
        host, container = int(parts[-2]), int(parts[-1])
    except ValueError:
        return None
    return host if container == container_port else None


def recover_assignments(specs: Sequence[ServiceSpec], manifest: Any) -> Dict[str, int]:
    """Host ports an existing manifest already publishes, keyed by role.

    Roles the manifest does not publish are left out.
    """
    services = manifest.get("services") if isinstance(manifest, dict) else None
    if not isinstance(services, dict):
        return {}
    recovered = {}
    for spec in specs:
        if not spec.exposed:
            continue
        service = services.get(spec.service)
        ports = service.get("ports") if isinstance(service, dict) else None
        for entry in ports if isinstance(ports, list) else []:
            host = _published_port(entry, spec.container_port)
            if host is not None:
                recovered[spec.name] = host
                break
    return recovered
