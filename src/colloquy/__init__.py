"""colloquy: a conversational agent engine with rules, tools and sessions.

This package provides the agent builder and turn orchestrator, the
condition and rule algebra, session stores, an Ollama ChatModel and a
FastAPI server exposing an agent over HTTP.
"""

from colloquy.agent import Agent, AgentBuilder, ChatOptions, TurnResult, TurnState
from colloquy.app import VERSION, create_app
from colloquy.fields import FieldSpec, define
from colloquy.llm import ChatModel, ModelInfo, ModelSettings
from colloquy.sessions import Message, Session
from colloquy.tools import FunctionTool, Tool, ToolBuilder, function_tool

__version__ = VERSION

__all__ = [
    "Agent",
    "AgentBuilder",
    "ChatModel",
    "ChatOptions",
    "FieldSpec",
    "FunctionTool",
    "Message",
    "ModelInfo",
    "ModelSettings",
    "Session",
    "Tool",
    "ToolBuilder",
    "TurnResult",
    "TurnState",
    "create_app",
    "define",
    "function_tool",
    "__version__",
]
