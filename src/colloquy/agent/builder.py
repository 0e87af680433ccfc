"""Fluent construction of agents.

Example:
    agent = (
        AgentBuilder("support")
        .with_description("Customer support")
        .with_chat_model(OllamaChatModel("http://localhost:11434"))
        .with_fields(define("email", "Your email address"))
        .when("hello").ask("Hi! How can I help?").build()
        .on_missing_info("email").collect("email").or_else("What's your email?").build()
        .build()
    )
"""

import logging
from typing import Any

from colloquy.agent.agent import Agent
from colloquy.agent.orchestrator import TurnOrchestrator
from colloquy.conditions import Count, Missing
from colloquy.config import ColloquySettings
from colloquy.errors import InvalidConfigError
from colloquy.fields import FieldSpec
from colloquy.llm.chat_model import ChatModel
from colloquy.llm.settings import ModelSettings
from colloquy.rules import Rule, RuleBuilder
from colloquy.sessions.store import InMemorySessionStore, SessionStore
from colloquy.tools.base import Tool
from colloquy.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.2:latest"
DEFAULT_MAX_TOOL_ROUNDS = 4
DEFAULT_TOOL_TIMEOUT = 30.0


class AgentBuilder:
    """Collects agent configuration and produces an immutable Agent."""

    def __init__(self, name: str = ""):
        self._name = name
        self._description = ""
        self._instructions: str | None = None
        self._model = DEFAULT_MODEL
        self._model_settings = ModelSettings()
        self._chat_model: ChatModel | None = None
        self._store: SessionStore | None = None
        self._tools: list[Tool] = []
        self._fields: dict[str, FieldSpec] = {}
        self._rules: list[Rule] = []
        self._max_tool_rounds = DEFAULT_MAX_TOOL_ROUNDS
        self._tool_timeout = DEFAULT_TOOL_TIMEOUT
        self._debug_logging = False
        self._extract_fields = False

    def with_name(self, name: str) -> "AgentBuilder":
        self._name = name
        return self

    def with_description(self, description: str) -> "AgentBuilder":
        self._description = description
        return self

    def with_instructions(self, instructions: str) -> "AgentBuilder":
        self._instructions = instructions
        return self

    def with_model(self, model: str) -> "AgentBuilder":
        if not model:
            raise InvalidConfigError("Model name cannot be empty")
        self._model = model
        return self

    def with_model_settings(
        self, settings: ModelSettings | None = None, **kwargs: Any
    ) -> "AgentBuilder":
        """Merge sampling settings into the agent's settings.

        Args:
            settings: A ModelSettings instance
            **kwargs: Individual ModelSettings fields, applied after settings

        Raises:
            pydantic.ValidationError: If a value is out of range
        """
        if settings is not None:
            self._model_settings = self._model_settings.merge(settings)
        if kwargs:
            self._model_settings = self._model_settings.merge(ModelSettings(**kwargs))
        return self

    def with_temperature(self, temperature: float) -> "AgentBuilder":
        return self.with_model_settings(temperature=temperature)

    def with_max_tokens(self, max_tokens: int) -> "AgentBuilder":
        return self.with_model_settings(max_tokens=max_tokens)

    def with_chat_model(self, chat_model: ChatModel) -> "AgentBuilder":
        self._chat_model = chat_model
        return self

    def with_session_store(self, store: SessionStore) -> "AgentBuilder":
        self._store = store
        return self

    def with_tool(self, tool: Tool) -> "AgentBuilder":
        self._tools.append(tool)
        return self

    def with_tools(self, *tools: Tool) -> "AgentBuilder":
        self._tools.extend(tools)
        return self

    def with_fields(self, *fields: FieldSpec) -> "AgentBuilder":
        for spec in fields:
            self._fields[spec.name] = spec
        return self

    def with_field_extraction(self, enabled: bool = True) -> "AgentBuilder":
        """Have the LLM extract declared field values before rules run each turn.

        Extracted values are merged into the session's "collected" map, which
        Missing conditions and Collect rules consult.
        """
        self._extract_fields = enabled
        return self

    def with_max_tool_rounds(self, rounds: int) -> "AgentBuilder":
        if rounds < 0:
            raise InvalidConfigError("max_tool_rounds cannot be negative")
        self._max_tool_rounds = rounds
        return self

    def with_tool_timeout(self, seconds: float) -> "AgentBuilder":
        if seconds <= 0:
            raise InvalidConfigError("tool_timeout must be positive")
        self._tool_timeout = seconds
        return self

    def with_debug_logging(self, enabled: bool = True) -> "AgentBuilder":
        self._debug_logging = enabled
        return self

    def with_settings(self, settings: ColloquySettings) -> "AgentBuilder":
        """Apply agent-related values from ColloquySettings.

        The name is only taken from settings when none was given.
        """
        if not self._name:
            self._name = settings.agent_name
        if settings.instructions:
            self._instructions = settings.instructions
        self._model = settings.model
        self._max_tool_rounds = settings.max_tool_rounds
        self._tool_timeout = settings.tool_timeout
        self._debug_logging = settings.debug_logging
        return self

    def when(self, condition: Any) -> RuleBuilder:
        """Start a rule.

        Args:
            condition: A Condition, a predicate callable, or a phrase such as
                "email missing" or "contains refund"
        """
        return RuleBuilder(self, condition)

    def on_missing_info(self, *fields: str) -> RuleBuilder:
        return RuleBuilder(self, Missing(*fields))

    def on_message_count(self, count: int) -> RuleBuilder:
        return RuleBuilder(self, Count(count))

    def _add_rule(self, rule: Rule) -> None:
        self._rules.append(rule)

    def build(self) -> Agent:
        """Freeze the configuration into an Agent.

        Raises:
            InvalidConfigError: If the name or chat model is missing, a rule
                collects an undeclared field, two tools share a name, or
                field extraction is enabled without declared fields
        """
        if not self._name:
            raise InvalidConfigError("Agent name is required")
        if self._chat_model is None:
            raise InvalidConfigError(f"Agent '{self._name}' has no chat model")
        if self._extract_fields and not self._fields:
            raise InvalidConfigError(
                f"Agent '{self._name}' enables field extraction without fields"
            )

        rules = [rule.resolve_fields(self._fields) for rule in self._rules]
        instructions = self._instructions
        if instructions is None:
            instructions = (
                f"You are {self._name}, a helpful AI assistant. {self._description}"
            ).strip()

        orchestrator = TurnOrchestrator(
            chat_model=self._chat_model,
            store=self._store or InMemorySessionStore(),
            model=self._model,
            instructions=instructions,
            rules=rules,
            tools=ToolRegistry(self._tools),
            model_settings=self._model_settings,
            max_tool_rounds=self._max_tool_rounds,
            tool_timeout=self._tool_timeout,
            name=self._name,
            fields=list(self._fields.values()),
            extract_fields=self._extract_fields,
            debug_logging=self._debug_logging,
        )
        agent = Agent(self._name, self._description, orchestrator)
        logger.info(
            f"Built agent {self._name}: model={self._model}, rules={len(rules)}, "
            f"tools={len(self._tools)}"
        )
        return agent
