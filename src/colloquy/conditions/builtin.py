"""Leaf conditions.

Contains, Count, Missing, DataEquals, DataKeyExists, Func, Always, Never.
"""

import inspect
from typing import Any, Callable

from colloquy.conditions.base import Condition
from colloquy.sessions.session import Session

# Session scratch key holding values the application has already captured
COLLECTED_DATA_KEY = "collected"

USER_INPUT_KEY = "userInput"


def find_missing(session: Session, field_names: list[str] | tuple[str, ...]) -> list[str]:
    """Return the field names not yet present in the conversation.

    A field counts as present when its (lower-cased) name appears as a
    substring of any message's content, or when the session's "collected"
    map holds a non-empty value for it.

    Args:
        session: The conversation to scan
        field_names: Names to look for, in order

    Returns:
        The missing names, in the order given
    """
    collected = session.get_data(COLLECTED_DATA_KEY) or {}
    if not isinstance(collected, dict):
        collected = {}

    contents = [message.content.lower() for message in session.messages()]

    missing = []
    for field_name in field_names:
        value = collected.get(field_name)
        if value not in (None, ""):
            continue
        needle = field_name.lower()
        if not any(needle in content for content in contents):
            missing.append(field_name)
    return missing


class Contains(Condition):
    """Case-insensitive substring match against the current user input."""

    def __init__(self, text: str):
        self.text = text

    @property
    def name(self) -> str:
        return f"contains_{self.text.replace(' ', '_')}"

    @property
    def description(self) -> str:
        return f"Checks if user input contains '{self.text}'"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        user_input = data.get(USER_INPUT_KEY)
        if not isinstance(user_input, str):
            return False
        return self.text.lower() in user_input.lower()


class Count(Condition):
    """True once the session holds at least min_count messages."""

    def __init__(self, min_count: int):
        self.min_count = min_count

    @property
    def name(self) -> str:
        return f"message_count_{self.min_count}"

    @property
    def description(self) -> str:
        return f"Checks if message count is at least {self.min_count}"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        return session.message_count() >= self.min_count


class Missing(Condition):
    """True if any listed field has not appeared in the conversation yet."""

    def __init__(self, *fields: str):
        if not fields:
            raise ValueError("Missing() needs at least one field name")
        self.fields = tuple(fields)

    @property
    def name(self) -> str:
        return f"missing_fields_{'_'.join(self.fields)}"

    @property
    def description(self) -> str:
        return f"Checks if any of the fields {list(self.fields)} are missing"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        return len(find_missing(session, self.fields)) > 0


class DataEquals(Condition):
    """Compares a value from per-turn data, falling back to session data."""

    _UNSET = object()

    def __init__(self, key: str, value: Any):
        self.key = key
        self.value = value

    @property
    def name(self) -> str:
        return f"data_{self.key}_equals_{self.value}"

    @property
    def description(self) -> str:
        return f"Checks if data key '{self.key}' equals '{self.value}'"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        if self.key in data:
            return data[self.key] == self.value
        stored = session.get_data(self.key, self._UNSET)
        if stored is self._UNSET:
            return False
        return stored == self.value


class DataKeyExists(Condition):
    """True when the per-turn data carries the key."""

    def __init__(self, key: str):
        self.key = key

    @property
    def name(self) -> str:
        return f"data_has_{self.key}"

    @property
    def description(self) -> str:
        return f"Checks if key '{self.key}' exists in context data"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        return self.key in data


class Func(Condition):
    """Wraps a user-supplied predicate.

    The function receives (session) or (session, data), depending on how
    many positional parameters it declares.
    """

    def __init__(self, name: str, fn: Callable[..., bool]):
        self._name = name
        self.fn = fn
        self._wants_data = _accepts_two_args(fn)

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"Custom function condition: {self._name}"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        if self._wants_data:
            return bool(self.fn(session, data))
        return bool(self.fn(session))


class Always(Condition):
    """Always evaluates to true."""

    @property
    def name(self) -> str:
        return "always"

    @property
    def description(self) -> str:
        return "Always evaluates to true"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        return True


class Never(Condition):
    """Always evaluates to false."""

    @property
    def name(self) -> str:
        return "never"

    @property
    def description(self) -> str:
        return "Always evaluates to false"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        return False


def _accepts_two_args(fn: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False

    positional = 0
    for param in signature.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 2
