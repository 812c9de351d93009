"""Config synthesis: ServiceSpecs + host port assignments -> rendered YAML documents.

`synthesize` is pure. Writing is a separate step so the caller decides whether
existing documents on disk are replaced (`WriteMode.FORCE`) or kept
(`WriteMode.PRESERVE`). Documents are never merged with earlier versions.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import yaml

from a2a_stack.config import constants, settings
from a2a_stack.config.constants import ServiceSpec
from a2a_stack.observability.generators.collector_config import build_collector_config
from a2a_stack.observability.generators.compose_manifest import build_compose_manifest
from a2a_stack.observability.generators.prometheus_config import build_prometheus_config
from a2a_stack.observability.generators.tempo_config import build_tempo_config

logger = logging.getLogger(__name__)


class WriteMode(Enum):
    FORCE = "force"
    PRESERVE = "preserve"


def render_yaml(document: Dict[str, Any]) -> str:
    return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)


@dataclass(frozen=True)
class SynthesizedDocuments:
    collector_config: str
    metrics_scraper_config: str
    trace_backend_config: str
    orchestration_manifest: str

    def by_file_name(self) -> Dict[str, str]:
        return {
            constants.COLLECTOR_CONFIG_FILE: self.collector_config,
            constants.PROMETHEUS_CONFIG_FILE: self.metrics_scraper_config,
            constants.TEMPO_CONFIG_FILE: self.trace_backend_config,
            constants.COMPOSE_MANIFEST_FILE: self.orchestration_manifest,
        }

    def internal_documents(self) -> Dict[str, str]:
        docs = self.by_file_name()
        docs.pop(constants.COMPOSE_MANIFEST_FILE)
        return docs


def _validate(specs: Sequence[ServiceSpec], assignments: Mapping[str, int]) -> None:
    names = [spec.name for spec in specs]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate service spec names: {names}")
    missing = [spec.name for spec in specs if spec.exposed and spec.name not in assignments]
    if missing:
        raise ValueError(f"No host port assigned for: {', '.join(missing)}")
    exposed_ports = [assignments[spec.name] for spec in specs if spec.exposed]
    if len(set(exposed_ports)) != len(exposed_ports):
        raise ValueError(f"Host ports must be distinct, got {exposed_ports}")


def synthesize(
    specs: Sequence[ServiceSpec],
    assignments: Mapping[str, int],
    project_name: str = settings.PROJECT_NAME,
) -> SynthesizedDocuments:
    _validate(specs, assignments)
    return SynthesizedDocuments(
        collector_config=render_yaml(build_collector_config()),
        metrics_scraper_config=render_yaml(build_prometheus_config()),
        trace_backend_config=render_yaml(build_tempo_config()),
        orchestration_manifest=render_yaml(build_compose_manifest(specs, assignments, project_name)),
    )


def write_documents(documents: SynthesizedDocuments, directory: Path, mode: WriteMode = WriteMode.PRESERVE) -> List[Path]:
    """Writes the documents into `directory` and returns the paths actually written."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    for file_name, content in documents.by_file_name().items():
        path = directory / file_name
        if path.exists() and mode is WriteMode.PRESERVE:
            logger.warning("event=document_preserved path=%s hint=\"use --force to regenerate\"", path)
            continue
        path.write_text(content, encoding="utf-8")
        written.append(path)
        logger.info("event=document_written path=%s mode=%s", path, mode.value)
    return written
