"""Provider-neutral model metadata."""

from dataclasses import dataclass, field


@dataclass
class ModelInfo:
    """Information about a model served by a ChatModel.

    Attributes:
        name: Full model name (e.g., "llama3.2:latest")
        provider: Provider identifier (e.g., "ollama")
        context_length: Maximum context window size in tokens
        max_output_tokens: Output token limit, if the provider reports one
        supports_tools: Whether the model accepts tool schemas
        capabilities: Provider capability tags (e.g., ["completion", "tools"])
    """

    name: str
    provider: str
    context_length: int = 2048
    max_output_tokens: int | None = None
    supports_tools: bool = False
    capabilities: list[str] = field(default_factory=list)
