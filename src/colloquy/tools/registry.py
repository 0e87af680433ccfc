"""Immutable tool registry.

The agent freezes its tools into a ToolRegistry at build time. Per-turn
extra tools produce a new registry and never touch the agent's own.
"""

import logging
from typing import Any, Iterable, Iterator

from colloquy.errors import InvalidConfigError
from colloquy.tools.base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """A name-indexed, read-only collection of tools."""

    def __init__(self, tools: Iterable[Tool] = ()):
        """Initialize the registry.

        Args:
            tools: Tools to register, in order

        Raises:
            InvalidConfigError: If two tools share a name
        """
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise InvalidConfigError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[dict[str, Any]]:
        """Return the function schemas of all tools, in registration order."""
        return [tool.to_schema() for tool in self._tools.values()]

    def merged_with(self, extra: Iterable[Tool]) -> "ToolRegistry":
        """Return a new registry with extra tools added.

        A per-turn tool with the same name as a registered one replaces it
        for that registry only.
        """
        merged = dict(self._tools)
        for tool in extra:
            if tool.name in merged:
                logger.debug(f"Per-turn tool {tool.name} overrides agent tool")
            merged[tool.name] = tool
        return ToolRegistry(merged.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry({self.names()})"
