"""Condition base class and logical composites.

Conditions are pure predicates over (session, per-turn data). They must be
deterministic and free of side effects; a condition may raise, and the
exception propagates out of any composite that evaluates it.
"""

from abc import ABC, abstractmethod
from typing import Any

from colloquy.sessions.session import Session


class Condition(ABC):
    """A named predicate evaluated before each LLM call."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier used in logs and rule names."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable explanation of what the condition checks."""

    @abstractmethod
    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        """Evaluate the condition.

        Args:
            session: The conversation being routed
            data: Per-turn data (always holds "userInput")

        Returns:
            True if the condition holds
        """

    def __and__(self, other: "Condition") -> "Condition":
        return And(self, other)

    def __or__(self, other: "Condition") -> "Condition":
        return Or(self, other)

    def __invert__(self) -> "Condition":
        return Not(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class And(Condition):
    """True when every condition holds. Stops at the first false."""

    def __init__(self, *conditions: Condition):
        self.conditions = tuple(conditions)

    @property
    def name(self) -> str:
        return f"and({','.join(c.name for c in self.conditions)})"

    @property
    def description(self) -> str:
        return f"All of: [{', '.join(c.description for c in self.conditions)}]"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        for condition in self.conditions:
            if not condition.evaluate(session, data):
                return False
        return True


class Or(Condition):
    """True when any condition holds. Stops at the first true."""

    def __init__(self, *conditions: Condition):
        self.conditions = tuple(conditions)

    @property
    def name(self) -> str:
        return f"or({','.join(c.name for c in self.conditions)})"

    @property
    def description(self) -> str:
        return f"Any of: [{', '.join(c.description for c in self.conditions)}]"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        for condition in self.conditions:
            if condition.evaluate(session, data):
                return True
        return False


class Not(Condition):
    """Negates a condition."""

    def __init__(self, condition: Condition):
        self.condition = condition

    @property
    def name(self) -> str:
        return f"not({self.condition.name})"

    @property
    def description(self) -> str:
        return f"Not: {self.condition.description}"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        return not self.condition.evaluate(session, data)
