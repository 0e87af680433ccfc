"""Pydantic models for the /api/v1/models endpoints."""

from pydantic import BaseModel, Field

from colloquy.llm.types import ModelInfo


class ModelDetail(BaseModel):
    """Detailed information about a single model."""

    name: str = Field(..., description="Full model name")
    provider: str = Field(..., description="Provider serving the model")
    context_length: int = Field(
        ..., description="Maximum context window size in tokens"
    )
    max_output_tokens: int | None = Field(
        default=None, description="Output token limit, if known"
    )
    supports_tools: bool = Field(..., description="Whether the model accepts tools")
    capabilities: list[str] = Field(
        ...,
        description="List of model capabilities (e.g., ['completion', 'tools'])",
    )

    @classmethod
    def from_info(cls, info: ModelInfo) -> "ModelDetail":
        return cls(
            name=info.name,
            provider=info.provider,
            context_length=info.context_length,
            max_output_tokens=info.max_output_tokens,
            supports_tools=info.supports_tools,
            capabilities=info.capabilities,
        )


class ModelListResponse(BaseModel):
    models: list[str] = Field(..., description="Names of the supported models")
