"""Unit tests for OllamaChatModel."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import ollama
import pytest

from colloquy.errors import LLMError, UnsupportedModelError
from colloquy.llm import ModelSettings
from colloquy.ollama import OllamaChatModel
from colloquy.ollama.client import to_ollama_messages, to_ollama_options
from colloquy.sessions import Message, ToolCall, ToolCallFunction


@pytest.fixture
def mock_ollama_async_client():
    """Create a mock ollama.AsyncClient."""
    with patch("colloquy.ollama.client.ollama.AsyncClient") as mock_class:
        mock_instance = AsyncMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def chat_model(mock_ollama_async_client):
    """Create an OllamaChatModel with mocked AsyncClient."""
    return OllamaChatModel(host="http://localhost:11434")


def _show_response(capabilities=None, family="llama", context_length=8192):
    show = MagicMock()
    show.capabilities = capabilities if capabilities is not None else ["completion", "tools"]
    show.modelinfo = {f"{family}.context_length": context_length}
    details = MagicMock()
    details.family = family
    show.details = details
    return show


@pytest.mark.asyncio
async def test_initialization():
    with patch("colloquy.ollama.client.ollama.AsyncClient") as mock_class:
        model = OllamaChatModel(host="http://test:11434", timeout=5.0)

    assert model.host == "http://test:11434"
    assert model.timeout == 5.0
    mock_class.assert_called_once_with(host="http://test:11434")


@pytest.mark.asyncio
async def test_check_connection(chat_model, mock_ollama_async_client):
    mock_ollama_async_client.list.return_value = {"models": []}
    assert await chat_model.check_connection() is True

    mock_ollama_async_client.list.side_effect = Exception("Connection refused")
    assert await chat_model.check_connection() is False


@pytest.mark.asyncio
async def test_generate_text_reply(chat_model, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = {
        "message": {"role": "assistant", "content": "Hello there"}
    }

    reply = await chat_model.generate(
        [Message.system("Be nice"), Message.user("Hi")],
        model="llama3.2:latest",
        settings=ModelSettings(temperature=0.2, max_tokens=50),
    )

    assert reply.role == "assistant"
    assert reply.content == "Hello there"
    assert not reply.has_tool_calls

    kwargs = mock_ollama_async_client.chat.call_args.kwargs
    assert kwargs["model"] == "llama3.2:latest"
    assert kwargs["stream"] is False
    assert kwargs["tools"] is None
    assert kwargs["options"] == {"temperature": 0.2, "num_predict": 50}
    assert kwargs["messages"] == [
        {"role": "system", "content": "Be nice"},
        {"role": "user", "content": "Hi"},
    ]


@pytest.mark.asyncio
async def test_generate_tool_calls_get_ids_and_json_arguments(
    chat_model, mock_ollama_async_client
):
    function = MagicMock()
    function.name = "lookup_order"
    function.arguments = {"order_id": "A1"}
    raw_call = MagicMock(spec=["function"])
    raw_call.function = function
    message = MagicMock()
    message.content = ""
    message.tool_calls = [raw_call]
    response = MagicMock()
    response.message = message
    mock_ollama_async_client.chat.return_value = response

    tools = [{"type": "function", "function": {"name": "lookup_order"}}]
    reply = await chat_model.generate([Message.user("where?")], "m", tools=tools)

    assert len(reply.tool_calls) == 1
    call = reply.tool_calls[0]
    assert call.id.startswith("call_")
    assert call.function.name == "lookup_order"
    assert json.loads(call.function.arguments) == {"order_id": "A1"}
    assert mock_ollama_async_client.chat.call_args.kwargs["tools"] == tools


@pytest.mark.asyncio
async def test_generate_empty_reply_is_an_error(chat_model, mock_ollama_async_client):
    mock_ollama_async_client.chat.return_value = {
        "message": {"role": "assistant", "content": ""}
    }

    with pytest.raises(LLMError, match="empty response"):
        await chat_model.generate([Message.user("Hi")], "m")


@pytest.mark.asyncio
async def test_generate_wraps_provider_errors(chat_model, mock_ollama_async_client):
    mock_ollama_async_client.chat.side_effect = ollama.ResponseError("model exploded", 500)

    with pytest.raises(LLMError, match="^ollama: "):
        await chat_model.generate([Message.user("Hi")], "m")

    mock_ollama_async_client.chat.side_effect = ConnectionError("refused")

    with pytest.raises(LLMError, match="refused"):
        await chat_model.generate([Message.user("Hi")], "m")


@pytest.mark.asyncio
async def test_generate_times_out(mock_ollama_async_client):
    async def slow_chat(**kwargs):
        await asyncio.sleep(1)

    mock_ollama_async_client.chat.side_effect = slow_chat
    model = OllamaChatModel(host="http://localhost:11434", timeout=0.01)

    with pytest.raises(LLMError, match="timed out"):
        await model.generate([Message.user("Hi")], "m")


def test_to_ollama_messages_with_tools():
    call = ToolCall(id="call_1", function=ToolCallFunction("add", '{"a": 1}'))
    messages = [
        Message.user("add"),
        Message.assistant("", tool_calls=[call]),
        Message.tool("call_1", "add", "2"),
    ]

    converted = to_ollama_messages(messages)

    assert converted[1]["tool_calls"] == [
        {"function": {"name": "add", "arguments": {"a": 1}}}
    ]
    assert converted[2] == {"role": "tool", "content": "2", "tool_name": "add"}


def test_to_ollama_options_maps_names():
    settings = ModelSettings(
        temperature=0.1, max_tokens=10, top_p=0.9, stop=["x"], seed=3
    )

    assert to_ollama_options(settings) == {
        "temperature": 0.1,
        "num_predict": 10,
        "top_p": 0.9,
        "stop": ["x"],
        "seed": 3,
    }
    assert to_ollama_options(None) == {}


@pytest.mark.asyncio
async def test_model_info(chat_model, mock_ollama_async_client):
    mock_ollama_async_client.show.return_value = _show_response()

    info = await chat_model.model_info("llama3:8b")

    assert info.name == "llama3:8b"
    assert info.provider == "ollama"
    assert info.context_length == 8192
    assert info.supports_tools is True


@pytest.mark.asyncio
async def test_model_info_not_found(chat_model, mock_ollama_async_client):
    mock_ollama_async_client.show.side_effect = ollama.ResponseError("not found", 404)

    assert await chat_model.model_info("nope") is None


@pytest.mark.asyncio
async def test_validate_model(chat_model, mock_ollama_async_client):
    mock_ollama_async_client.show.return_value = _show_response()
    await chat_model.validate_model("llama3:8b")

    mock_ollama_async_client.show.return_value = _show_response(capabilities=["embedding"])
    with pytest.raises(UnsupportedModelError):
        await chat_model.validate_model("nomic-embed")

    mock_ollama_async_client.show.side_effect = ollama.ResponseError("not found", 404)
    with pytest.raises(UnsupportedModelError):
        await chat_model.validate_model("nope")


@pytest.mark.asyncio
async def test_validate_model_connection_failure_is_llm_error(
    chat_model, mock_ollama_async_client
):
    mock_ollama_async_client.show.side_effect = ConnectionError("connection refused")

    with pytest.raises(LLMError) as exc_info:
        await chat_model.validate_model("llama3:8b")
    assert not isinstance(exc_info.value, UnsupportedModelError)


@pytest.mark.asyncio
async def test_supported_models_skips_non_completion(chat_model, mock_ollama_async_client):
    model_a = MagicMock()
    model_a.model = "llama3:8b"
    model_b = MagicMock()
    model_b.model = "nomic-embed-text"
    list_response = MagicMock()
    list_response.models = [model_a, model_b]
    mock_ollama_async_client.list.return_value = list_response
    mock_ollama_async_client.show.side_effect = [
        _show_response(),
        _show_response(capabilities=["embedding"]),
    ]

    assert await chat_model.supported_models() == ["llama3:8b"]
