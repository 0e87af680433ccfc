"""Rules: (condition -> action) pairs evaluated before each LLM call.

Actions form a closed set:
- Ask: reply with fixed text, no LLM call
- AskAI: steer the LLM with an extra system instruction for this turn
- Collect: ask the LLM to request missing structured fields

Rules are declared through a staged builder hanging off AgentBuilder:

    builder.when(Contains("hello")).ask("Hi!").build()
    builder.when(Contains("help")).ask_ai("Elaborate.").or_else("I can help.").build()
"""

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Union

from colloquy.conditions import Condition, Contains, Func, Missing
from colloquy.errors import InvalidConfigError
from colloquy.fields import FieldSpec

if TYPE_CHECKING:
    from colloquy.agent.builder import AgentBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ask:
    """Emit text verbatim as the assistant reply."""

    text: str


@dataclass(frozen=True)
class AskAI:
    """Inject an instruction as a transient system message."""

    instruction: str


@dataclass(frozen=True)
class Collect:
    """Ask the LLM to request whichever of these fields are still missing.

    Before the agent is built, entries may be plain field names; the agent
    builder resolves them against its declared fields.
    """

    fields: tuple[Union[FieldSpec, str], ...]

    def field_specs(self) -> tuple[FieldSpec, ...]:
        unresolved = [f for f in self.fields if not isinstance(f, FieldSpec)]
        if unresolved:
            raise InvalidConfigError(f"Unresolved collect fields: {unresolved}")
        return self.fields  # type: ignore[return-value]


Action = Union[Ask, AskAI, Collect]


@dataclass(frozen=True)
class Rule:
    """A frozen routing rule.

    Attributes:
        condition: When the rule applies
        action: What to do when it applies
        fallback: Verbatim reply if the LLM call fails (AskAI/Collect only)
        name: Diagnostic name, derived from the condition by default
    """

    condition: Condition
    action: Action
    fallback: str | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if self.fallback is not None and isinstance(self.action, Ask):
            raise InvalidConfigError("Ask rules cannot carry a fallback")
        if not self.name:
            object.__setattr__(self, "name", f"rule_{self.condition.name}")

    def resolve_fields(self, declared: dict[str, FieldSpec]) -> "Rule":
        """Return a copy whose Collect action only holds FieldSpecs.

        Raises:
            InvalidConfigError: If a field name is not declared
        """
        if not isinstance(self.action, Collect):
            return self

        resolved = []
        for entry in self.action.fields:
            if isinstance(entry, FieldSpec):
                resolved.append(entry)
            elif entry in declared:
                resolved.append(declared[entry])
            else:
                raise InvalidConfigError(
                    f"Rule '{self.name}' collects undeclared field '{entry}'"
                )
        return replace(self, action=Collect(fields=tuple(resolved)))


def to_condition(condition: Any) -> Condition:
    """Convert the forms accepted by when() into a Condition.

    Accepts a Condition, a callable predicate, or a short phrase such as
    "email missing" or "contains refund".

    Raises:
        InvalidConfigError: For anything else
    """
    if isinstance(condition, Condition):
        return condition
    if isinstance(condition, str):
        return _parse_condition_phrase(condition)
    if callable(condition):
        name = getattr(condition, "__name__", "custom")
        return Func("custom" if name == "<lambda>" else name, condition)
    raise InvalidConfigError(f"Invalid condition: {condition!r}")


def _parse_condition_phrase(phrase: str) -> Condition:
    words = phrase.split()
    if "missing" in words:
        index = words.index("missing")
        if index > 0:
            return Missing(words[index - 1])
    if "contains" in words:
        index = words.index("contains")
        if index < len(words) - 1:
            return Contains(words[index + 1])
    return Contains(phrase)


class RuleBuilder:
    """Staged builder for one rule.

    Stages: condition (and_/or_ allowed) -> action (one of ask, ask_ai,
    collect) -> optional or_else for LLM actions -> build().
    """

    def __init__(self, parent: "AgentBuilder", condition: Any):
        self._parent = parent
        self._condition = to_condition(condition)
        self._action: Action | None = None
        self._fallback: str | None = None
        self._name = ""

    def and_(self, condition: Any) -> "RuleBuilder":
        self._require_no_action("and_")
        self._condition = self._condition & to_condition(condition)
        return self

    def or_(self, condition: Any) -> "RuleBuilder":
        self._require_no_action("or_")
        self._condition = self._condition | to_condition(condition)
        return self

    def named(self, name: str) -> "RuleBuilder":
        self._name = name
        return self

    def ask(self, text: str) -> "RuleBuilder":
        self._set_action(Ask(text=text))
        return self

    def ask_ai(self, instruction: str) -> "RuleBuilder":
        self._set_action(AskAI(instruction=instruction))
        return self

    def collect(self, *fields: Union[FieldSpec, str]) -> "RuleBuilder":
        if not fields:
            raise InvalidConfigError("collect() needs at least one field")
        self._set_action(Collect(fields=tuple(fields)))
        return self

    def or_else(self, fallback: str) -> "RuleBuilder":
        if not isinstance(self._action, (AskAI, Collect)):
            raise InvalidConfigError("or_else() must follow ask_ai() or collect()")
        if self._fallback is not None:
            raise InvalidConfigError("or_else() was already set for this rule")
        self._fallback = fallback
        return self

    def build(self) -> "AgentBuilder":
        """Freeze the rule, register it and return the agent builder."""
        if self._action is None:
            raise InvalidConfigError(
                f"Rule on '{self._condition.name}' has no action"
            )
        rule = Rule(
            condition=self._condition,
            action=self._action,
            fallback=self._fallback,
            name=self._name,
        )
        self._parent._add_rule(rule)
        logger.debug(f"Registered rule {rule.name}")
        return self._parent

    def _set_action(self, action: Action) -> None:
        if self._action is not None:
            raise InvalidConfigError("A rule can only have one action")
        self._action = action

    def _require_no_action(self, method: str) -> None:
        if self._action is not None:
            raise InvalidConfigError(f"{method}() must come before the action")
