"""Error hierarchy for colloquy.

Every failure surfaced to callers is a subclass of ColloquyError:

    ColloquyError
    ├── InvalidConfigError      (also a ValueError)
    ├── UnsupportedModelError
    ├── SessionNotFoundError    (also a KeyError)
    ├── LLMError
    ├── ToolError
    │   └── ToolLoopExhaustedError
    ├── ConditionError
    └── TurnCancelledError
        └── TurnTimeoutError
"""


class ColloquyError(Exception):
    """Base class for all colloquy exceptions."""


class InvalidConfigError(ColloquyError, ValueError):
    """Agent, rule or tool configuration is invalid."""


class UnsupportedModelError(ColloquyError):
    """The chat model does not serve the requested model name."""

    def __init__(self, model: str, message: str = "") -> None:
        self.model = model
        super().__init__(message or f"Model '{model}' is not supported")


class SessionNotFoundError(ColloquyError, KeyError):
    """No session exists under the requested id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class LLMError(ColloquyError):
    """The ChatModel failed to produce a completion."""


class ToolError(ColloquyError):
    """Tool resolution failed in a way the turn cannot recover from."""


class ToolLoopExhaustedError(ToolError):
    """The LLM kept requesting tools past the round budget."""

    def __init__(self, rounds: int, last_text: str = "") -> None:
        self.rounds = rounds
        self.last_text = last_text
        super().__init__(
            f"LLM still requested tools after {rounds} tool rounds"
        )


class ConditionError(ColloquyError):
    """A rule condition raised during evaluation."""

    def __init__(self, condition_name: str, cause: Exception) -> None:
        self.condition_name = condition_name
        self.cause = cause
        super().__init__(f"Condition '{condition_name}' failed: {cause}")


class TurnCancelledError(ColloquyError):
    """The turn was cancelled before an assistant reply was committed."""


class TurnTimeoutError(TurnCancelledError):
    """The turn deadline expired before an assistant reply was committed."""
