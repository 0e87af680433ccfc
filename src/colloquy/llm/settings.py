"""Sampling settings passed to the ChatModel.

ModelSettings is frozen and validated on construction, so an agent's
settings can be shared between turns and merged into per-turn copies.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModelSettings(BaseModel):
    """Generation parameters. Unset fields are left to the provider."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    temperature: float | None = Field(
        default=None, ge=0.0, le=2.0, description="Sampling temperature"
    )
    max_tokens: int | None = Field(
        default=None, gt=0, description="Maximum tokens to generate"
    )
    top_p: float | None = Field(
        default=None, ge=0.0, le=1.0, description="Nucleus sampling threshold"
    )
    frequency_penalty: float | None = Field(
        default=None, ge=-2.0, le=2.0, description="Penalty for frequent tokens"
    )
    presence_penalty: float | None = Field(
        default=None, ge=-2.0, le=2.0, description="Penalty for present tokens"
    )
    stop: list[str] | None = Field(default=None, description="Stop sequences")
    seed: int | None = Field(default=None, description="Sampling seed")

    def merge(self, other: "ModelSettings | None") -> "ModelSettings":
        """Return a copy where every field set on other wins."""
        if other is None:
            return self
        return self.model_copy(update=other.to_options())

    def to_options(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return self.model_dump(exclude_none=True)
