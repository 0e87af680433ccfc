"""Tool abstractions.

A tool is a named capability the LLM may invoke with JSON arguments. The
agent hands tool schemas to the ChatModel and calls invoke() when the LLM
requests the tool.
"""

import asyncio
import inspect
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, get_type_hints

from colloquy.errors import InvalidConfigError

logger = logging.getLogger(__name__)

_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    dict: "object",
}

VALID_PARAM_TYPES = frozenset(
    {"string", "integer", "number", "boolean", "array", "object"}
)


def empty_parameters() -> dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


class Tool(ABC):
    """A named, schema-described capability."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable tool name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does, shown to the LLM."""

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON schema of the arguments object."""

    @abstractmethod
    async def invoke(self, arguments: str) -> str:
        """Run the tool.

        Args:
            arguments: JSON-encoded arguments object

        Returns:
            JSON-encoded result

        Raises:
            Exception: Any failure; the agent reports it back to the LLM
        """

    def to_schema(self) -> dict[str, Any]:
        """Return the function schema handed to the ChatModel."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class FunctionTool(Tool):
    """Wraps a plain Python callable as a tool.

    The JSON arguments object is passed as keyword arguments. Coroutine
    functions are awaited; regular functions run in a worker thread. The
    return value is JSON-encoded.
    """

    def __init__(
        self,
        name: str,
        description: str,
        fn: Callable[..., Any],
        parameters: dict[str, Any] | None = None,
    ):
        if not name:
            raise InvalidConfigError("Tool name is required")
        if not callable(fn):
            raise InvalidConfigError(f"Tool '{name}' needs a callable")
        self._name = name
        self._description = description
        self._fn = fn
        self._parameters = parameters or schema_from_signature(fn)

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    async def invoke(self, arguments: str) -> str:
        kwargs = json.loads(arguments) if arguments.strip() else {}
        if not isinstance(kwargs, dict):
            raise ValueError("arguments must be a JSON object")

        logger.debug(f"Invoking tool {self._name} with {sorted(kwargs)}")
        if inspect.iscoroutinefunction(self._fn):
            result = await self._fn(**kwargs)
        else:
            result = await asyncio.to_thread(self._fn, **kwargs)

        return json.dumps(result, default=str)


class ToolBuilder:
    """Fluent builder for FunctionTool with an explicit schema.

    Example:
        add = (
            ToolBuilder("add")
            .with_description("Add two numbers")
            .with_param("a", "number", "First addend")
            .with_param("b", "number", "Second addend")
            .with_func(lambda a, b: a + b)
            .build()
        )
    """

    def __init__(self, name: str):
        self._name = name
        self._description = ""
        self._properties: dict[str, dict[str, Any]] = {}
        self._required: list[str] = []
        self._fn: Callable[..., Any] | None = None

    def with_description(self, description: str) -> "ToolBuilder":
        self._description = description
        return self

    def with_param(
        self,
        name: str,
        param_type: str,
        description: str = "",
        required: bool = True,
    ) -> "ToolBuilder":
        if param_type not in VALID_PARAM_TYPES:
            raise InvalidConfigError(
                f"Unsupported parameter type '{param_type}' for '{name}'"
            )
        self._properties[name] = {"type": param_type, "description": description}
        if required and name not in self._required:
            self._required.append(name)
        return self

    def with_func(self, fn: Callable[..., Any]) -> "ToolBuilder":
        self._fn = fn
        return self

    def build(self) -> FunctionTool:
        if not self._name:
            raise InvalidConfigError("Tool name is required")
        if self._fn is None:
            raise InvalidConfigError(f"Tool '{self._name}' has no function")

        parameters = {
            "type": "object",
            "properties": dict(self._properties),
            "required": list(self._required),
        }
        return FunctionTool(self._name, self._description, self._fn, parameters)


def function_tool(
    name: str | None = None, description: str | None = None
) -> Callable[[Callable[..., Any]], FunctionTool]:
    """Decorator turning a function into a FunctionTool.

    The name defaults to the function name and the description to the first
    line of its docstring.

    Example:
        @function_tool()
        async def lookup_order(order_id: str) -> dict:
            \"\"\"Look up an order by id.\"\"\"
    """

    def decorator(fn: Callable[..., Any]) -> FunctionTool:
        doc = inspect.getdoc(fn) or ""
        return FunctionTool(
            name=name or fn.__name__,
            description=description or doc.split("\n", 1)[0],
            fn=fn,
        )

    return decorator


def schema_from_signature(fn: Callable[..., Any]) -> dict[str, Any]:
    """Derive an arguments schema from a function signature.

    Parameters without a default are required. Unannotated parameters are
    typed as strings.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return empty_parameters()

    try:
        hints = get_type_hints(fn)
    except Exception:
        hints = {}

    properties: dict[str, Any] = {}
    required: list[str] = []
    for param in signature.parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, str)
        origin = getattr(annotation, "__origin__", annotation)
        properties[param.name] = {"type": _JSON_TYPES.get(origin, "string")}
        if param.default is inspect.Parameter.empty:
            required.append(param.name)

    return {"type": "object", "properties": properties, "required": required}
