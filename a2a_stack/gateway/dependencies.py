from fastapi import Request

from a2a_stack.agents.registry import AgentRegistry
from a2a_stack.config.stack_state import StackState
from a2a_stack.gateway.loki_client import LokiClient


def get_stack_state(request: Request) -> StackState:
    return request.app.state.stack_state


def get_loki_client(request: Request) -> LokiClient:
    return request.app.state.loki_client


def get_agent_registry(request: Request) -> AgentRegistry:
    return request.app.state.agent_registry
