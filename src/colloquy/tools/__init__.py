"""Tools the LLM can call during a turn."""

from colloquy.tools.base import (
    FunctionTool,
    Tool,
    ToolBuilder,
    function_tool,
    schema_from_signature,
)
from colloquy.tools.registry import ToolRegistry

__all__ = [
    "Tool",
    "FunctionTool",
    "ToolBuilder",
    "ToolRegistry",
    "function_tool",
    "schema_from_signature",
]
