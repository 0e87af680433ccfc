"""Structured input fields the agent collects through conversation.

Basic usage:
    define("email", "Please provide your email address")

Optional fields:
    define("phone", "Contact number (optional)").optional()
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class FieldSpec:
    """An expected input field.

    Attributes:
        name: Stable identifier, also the needle used to detect the field
        prompt: Human-readable request used to ask the user for it
        required: Whether the agent insists on it
    """

    name: str
    prompt: str
    required: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Field name cannot be empty")

    def optional(self) -> "FieldSpec":
        """Return a copy of this field marked optional."""
        return replace(self, required=False)


def define(name: str, prompt: str) -> FieldSpec:
    """Create a required field with the given collection prompt."""
    return FieldSpec(name=name, prompt=prompt)
