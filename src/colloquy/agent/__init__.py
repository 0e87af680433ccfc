"""Agent construction and the turn loop."""

from colloquy.agent.agent import Agent
from colloquy.agent.builder import AgentBuilder
from colloquy.agent.orchestrator import (
    ChatOptions,
    TurnOrchestrator,
    TurnResult,
    TurnState,
)

__all__ = [
    "Agent",
    "AgentBuilder",
    "ChatOptions",
    "TurnOrchestrator",
    "TurnResult",
    "TurnState",
]
