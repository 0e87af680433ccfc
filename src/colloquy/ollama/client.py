"""Ollama-backed ChatModel.

This module wraps ollama.AsyncClient behind the ChatModel contract. The
client is created once at startup and reused for every turn. Replies are
requested non-streaming; tool calls come back with decoded argument dicts
and no ids, so ids are synthesized here.
"""

import asyncio
import json
import logging
import uuid
from typing import Any

import ollama

from colloquy.errors import LLMError, UnsupportedModelError
from colloquy.llm.chat_model import ChatModel
from colloquy.llm.settings import ModelSettings
from colloquy.llm.types import ModelInfo
from colloquy.sessions.types import ROLE_TOOL, Message, ToolCall, ToolCallFunction

logger = logging.getLogger(__name__)

PROVIDER = "ollama"

# ModelSettings field -> Ollama option name
_OPTION_NAMES = {
    "temperature": "temperature",
    "max_tokens": "num_predict",
    "top_p": "top_p",
    "frequency_penalty": "frequency_penalty",
    "presence_penalty": "presence_penalty",
    "stop": "stop",
    "seed": "seed",
}


def _get_value(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from an ollama response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    if hasattr(obj, key):
        value = getattr(obj, key)
        return default if value is None else value
    return default


def to_ollama_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert conversation messages to Ollama chat format.

    Args:
        messages: Messages in prompt order

    Returns:
        List of message dicts: [{"role": "...", "content": "..."}, ...]
    """
    ollama_messages = []

    for msg in messages:
        ollama_msg: dict[str, Any] = {
            "role": msg.role,
            "content": msg.content,
        }

        if msg.tool_calls:
            ollama_msg["tool_calls"] = [
                {
                    "function": {
                        "name": call.function.name,
                        "arguments": _decode_arguments(call.function.arguments),
                    }
                }
                for call in msg.tool_calls
            ]

        if msg.role == ROLE_TOOL and msg.name:
            ollama_msg["tool_name"] = msg.name

        ollama_messages.append(ollama_msg)

    return ollama_messages


def to_ollama_options(settings: ModelSettings | None) -> dict[str, Any]:
    """Translate ModelSettings into Ollama's options dict."""
    if settings is None:
        return {}
    return {
        _OPTION_NAMES[key]: value for key, value in settings.to_options().items()
    }


def _decode_arguments(arguments: str) -> dict[str, Any]:
    try:
        decoded = json.loads(arguments) if arguments.strip() else {}
    except ValueError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _model_name(model_obj: Any) -> str | None:
    return _get_value(model_obj, "model") or _get_value(model_obj, "name")


class OllamaChatModel(ChatModel):
    """ChatModel talking to an Ollama server.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        timeout: Seconds allowed for a single chat request
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(self, host: str, timeout: float = 30.0) -> None:
        """Initialize the Ollama chat model.

        Args:
            host: The Ollama server URL
            timeout: Per-request timeout in seconds
        """
        self.host = host
        self.timeout = timeout
        self._client = ollama.AsyncClient(host=host)
        logger.info(f"OllamaChatModel initialized with host: {host}")

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def generate(
        self,
        messages: list[Message],
        model: str,
        settings: ModelSettings | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> Message:
        payload = to_ollama_messages(messages)
        options = to_ollama_options(settings)
        logger.debug(
            f"Ollama chat: model={model}, messages={len(payload)}, "
            f"tools={len(tools or [])}"
        )

        try:
            response = await asyncio.wait_for(
                self._client.chat(
                    model=model,
                    messages=payload,
                    tools=tools or None,
                    options=options or None,
                    stream=False,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise LLMError(
                f"ollama: request timed out after {self.timeout}s"
            ) from e
        except ollama.ResponseError as e:
            raise LLMError(f"ollama: {e.error} (status {e.status_code})") from e
        except Exception as e:
            raise LLMError(f"ollama: {e}") from e

        return self._parse_reply(response)

    def _parse_reply(self, response: Any) -> Message:
        message = _get_value(response, "message")
        if message is None:
            raise LLMError("ollama: response carried no message")

        content = _get_value(message, "content", "") or ""
        tool_calls = []
        for raw_call in _get_value(message, "tool_calls", []) or []:
            function = _get_value(raw_call, "function", {})
            arguments = _get_value(function, "arguments", {})
            if not isinstance(arguments, str):
                arguments = json.dumps(dict(arguments or {}))
            tool_calls.append(
                ToolCall(
                    id=_get_value(raw_call, "id") or f"call_{uuid.uuid4().hex[:12]}",
                    function=ToolCallFunction(
                        name=_get_value(function, "name", ""), arguments=arguments
                    ),
                )
            )

        if not content and not tool_calls:
            raise LLMError("ollama: empty response")

        logger.debug(
            f"Ollama reply: content_length={len(content)}, tool_calls={len(tool_calls)}"
        )
        return Message.assistant(content, tool_calls=tool_calls)

    async def list_models(self) -> list[ModelInfo]:
        """List all available models that support completion.

        Embedding-only models are excluded.

        Raises:
            LLMError: If the Ollama API request fails
        """
        try:
            response = await self._client.list()
        except Exception as e:
            logger.error(f"Failed to list models: {e}")
            raise LLMError(f"ollama: {e}") from e

        models_list = _get_value(response, "models", []) or []
        logger.debug(f"Retrieved {len(models_list)} models from Ollama")

        model_infos: list[ModelInfo] = []
        for model_obj in models_list:
            model_name = _model_name(model_obj)
            if not model_name:
                continue

            try:
                show_response = await self._client.show(model_name)
            except Exception as e:
                logger.warning(f"Failed to get details for model {model_name}: {e}")
                continue

            info = model_info_from_show(model_name, show_response)
            if "completion" in info.capabilities:
                model_infos.append(info)
            else:
                logger.debug(f"Skipped non-completion model: {model_name}")

        logger.info(f"Listed {len(model_infos)} completion-capable models")
        return model_infos

    async def supported_models(self) -> list[str]:
        return [info.name for info in await self.list_models()]

    async def model_info(self, name: str) -> ModelInfo | None:
        """Get detailed information about a specific model.

        Returns:
            ModelInfo | None: Model information if found, None if not found

        Raises:
            LLMError: If the Ollama API request fails (except for 404)
        """
        try:
            show_response = await self._client.show(name)
        except ollama.ResponseError as e:
            if e.status_code == 404:
                logger.debug(f"Model not found: {name}")
                return None
            logger.error(f"Ollama API error for model {name}: {e}")
            raise LLMError(f"ollama: {e.error} (status {e.status_code})") from e
        except Exception as e:
            logger.error(f"Failed to get model info for {name}: {e}")
            raise LLMError(f"ollama: {e}") from e

        return model_info_from_show(name, show_response)

    async def validate_model(self, name: str) -> None:
        info = await self.model_info(name)
        if info is None:
            raise UnsupportedModelError(name, f"Model '{name}' is not available in Ollama")
        if "completion" not in info.capabilities:
            raise UnsupportedModelError(name, f"Model '{name}' does not support chat completion")
        logger.debug(f"Validated model {name}")

    async def close(self) -> None:
        """Close the client.

        ollama.AsyncClient keeps an httpx client open until it is closed.
        """
        http_client = getattr(self._client, "_client", None)
        if http_client is not None and hasattr(http_client, "aclose"):
            await http_client.aclose()
        logger.debug("OllamaChatModel closed")


def model_info_from_show(name: str, show_response: Any) -> ModelInfo:
    """Build a ModelInfo from an Ollama show response.

    Capabilities default to ["completion"] when the server does not report
    them. The context length is read from the family-specific key in
    modelinfo, falling back to 2048.
    """
    details = _get_value(show_response, "details", {})
    family = _get_value(details, "family", "unknown")

    capabilities = list(_get_value(show_response, "capabilities", []) or [])
    if not capabilities:
        capabilities = ["completion"]

    modelinfo = _get_value(show_response, "modelinfo", {}) or {}
    context_length = 2048
    if isinstance(modelinfo, dict):
        context_key = f"{family}.context_length"
        if context_key in modelinfo:
            context_length = int(modelinfo[context_key])
        elif "context_length" in modelinfo:
            context_length = int(modelinfo["context_length"])

    return ModelInfo(
        name=name,
        provider=PROVIDER,
        context_length=context_length,
        max_output_tokens=None,
        supports_tools="tools" in capabilities,
        capabilities=capabilities,
    )
