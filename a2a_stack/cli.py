import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from a2a_stack.agents.otel_readme import inject_otel
from a2a_stack.agents.registry import AgentConfig, AgentRegistry, split_list
from a2a_stack.config import constants, settings
from a2a_stack.config.stack_state import StackStateRepository
from a2a_stack.errors import A2AError
from a2a_stack.gateway.app import create_app
from a2a_stack.gateway.routes.config import telemetry_urls
from a2a_stack.observability.generators.synthesizer import WriteMode
from a2a_stack.orchestrator.base.compose_driver import ComposeDriver
from a2a_stack.orchestrator.base.logql_logger import configure_logging
from a2a_stack.orchestrator.base.port_manager import PortAllocator
from a2a_stack.orchestrator.lifecycle import StackLifecycleManager, persist_best_effort
from a2a_stack.orchestrator.provisioning import provision

logger = logging.getLogger(__name__)


def cmd_init(args) -> int:
    mode = WriteMode.FORCE if args.force else WriteMode.PRESERVE
    result = provision(Path(args.home), mode=mode, allocator=PortAllocator(scan_window=args.scan_window))
    print(f"A2A initialized in {result.home}")
    for name, port in result.assignments.items():
        print(f"  {name:<20} localhost:{port}")
    if result.kept:
        kept = ", ".join(path.name for path in result.kept)
        print(f"  kept existing {kept}; rerun with --force to regenerate")
    return 0


def cmd_link(args) -> int:
    home = Path(args.home)
    state = StackStateRepository(settings.state_path(home)).load()
    cwd = Path.cwd()

    config = AgentConfig.for_agent(
        state,
        agent_name=args.name or cwd.name,
        role=args.role,
        connected_agents=split_list(args.connects),
        methods=split_list(args.methods),
    )
    AgentRegistry(settings.agents_path(home)).upsert(config.registration())
    config_path = cwd / settings.AGENT_CONFIG_FILE_NAME
    config.save(config_path)

    print(f'Linked agent "{config.agent_name}"')
    print(f"Created {config_path} and updated {settings.agents_path(home)}")
    return 0


def cmd_inject_otel(args) -> int:
    readme_path = inject_otel(Path.cwd())
    print(f"OTel setup written to {readme_path}")
    return 0


def _driver(home: Path) -> ComposeDriver:
    return ComposeDriver(home / constants.COMPOSE_MANIFEST_FILE)


def cmd_start_dashboard(args) -> int:
    home = Path(args.home)
    repository = StackStateRepository(settings.state_path(home))
    state = repository.load()

    if not args.skip_engine:
        manager = StackLifecycleManager(_driver(home))
        print("Starting telemetry stack...")
        manager.start()
        result = manager.reconcile(state)
        state = result.state
        for miss in result.misses:
            print(f"  warning: {miss}", file=sys.stderr)
        persist_best_effort(repository, state)

    urls = telemetry_urls(state)
    print("Telemetry stack running:")
    print(f"  Prometheus:     {urls.prometheus_url}")
    print(f"  Loki:           {urls.loki_url}")
    print(f"  Tempo:          {urls.tempo_url}")
    print(f"  Collector HTTP: {urls.collector_http}")
    print(f"  Collector gRPC: {urls.collector_grpc}")

    static_dir = Path(settings.DASHBOARD_STATIC_DIR) if settings.DASHBOARD_STATIC_DIR else None
    app = create_app(state, AgentRegistry(settings.agents_path(home)), static_dir=static_dir, instrument=True)
    print(f"Dashboard API at http://{settings.DASHBOARD_HOST}:{state.ports.dashboard}")
    uvicorn.run(app, host=settings.DASHBOARD_HOST, port=state.ports.dashboard, log_level=args.log_level.lower())
    return 0


def cmd_stop(args) -> int:
    StackLifecycleManager(_driver(Path(args.home))).stop()
    print("Telemetry stack stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="a2a", description="A2A agent telemetry stack")
    parser.add_argument("--home", default=str(settings.A2A_HOME), help="state directory (default: %(default)s)")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="allocate ports and generate the stack configuration")
    init.add_argument("--force", action="store_true", help="overwrite existing generated documents")
    init.add_argument("--scan-window", type=int, default=settings.PORT_SCAN_WINDOW,
                      help="ports to probe above each default (default: %(default)s)")
    init.set_defaults(func=cmd_init)

    link = sub.add_parser("link", help="link the current project as an agent")
    link.add_argument("-n", "--name", help="agent name (default: current directory name)")
    link.add_argument("--role", help="agent role")
    link.add_argument("--connects", help="comma separated agents this one talks to")
    link.add_argument("--methods", help="comma separated methods this agent provides")
    link.set_defaults(func=cmd_link)

    inject = sub.add_parser("inject-otel", help="write OpenTelemetry setup notes for the linked project")
    inject.set_defaults(func=cmd_inject_otel)

    start = sub.add_parser("start-dashboard", help="start the stack and serve the dashboard proxy")
    start.add_argument("--skip-engine", action="store_true", help="serve the proxy without touching docker")
    start.set_defaults(func=cmd_start_dashboard)

    stop = sub.add_parser("stop", help="stop the telemetry stack")
    stop.set_defaults(func=cmd_stop)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except A2AError as e:
        logger.error("event=command_failed command=%s error_type=%s", args.command, type(e).__name__)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
