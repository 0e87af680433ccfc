"""LLM-backed extraction of declared fields from the conversation.

When enabled on an agent, each turn first asks the ChatModel for a JSON
object holding the values of fields not yet collected. Non-empty values
are merged into the session's "collected" map, where Missing conditions
and Collect rules see them.
"""

import json
import logging
from typing import Any, Sequence

from colloquy.conditions import COLLECTED_DATA_KEY
from colloquy.fields import FieldSpec
from colloquy.sessions.session import Session
from colloquy.sessions.types import ROLE_ASSISTANT, ROLE_USER, Message

logger = logging.getLogger(__name__)

EXTRACTION_HEADER = (
    "You are an information extraction assistant. Analyze the conversation "
    "below and extract any available information that matches the expected "
    "fields."
)

EXTRACTION_REQUEST = "Extract information from the conversation."


def collected_values(session: Session) -> dict[str, Any]:
    collected = session.get_data(COLLECTED_DATA_KEY) or {}
    return dict(collected) if isinstance(collected, dict) else {}


def uncollected_fields(
    session: Session, fields: Sequence[FieldSpec]
) -> list[FieldSpec]:
    """Return the fields without a non-empty collected value."""
    collected = collected_values(session)
    return [f for f in fields if collected.get(f.name) in (None, "")]


def build_extraction_messages(
    session: Session, fields: Sequence[FieldSpec]
) -> list[Message]:
    """Build the prompt asking the LLM for a JSON object of field values.

    Only user and assistant text from the session is included; tool traffic
    and system messages are left out.
    """
    lines = [EXTRACTION_HEADER, "", "Expected fields:"]
    for spec in fields:
        kind = "required" if spec.required else "optional"
        lines.append(f"- {spec.name}: {spec.prompt} ({kind})")

    lines += ["", "Conversation history:"]
    for message in session.messages():
        if message.role in (ROLE_USER, ROLE_ASSISTANT) and message.content:
            lines.append(f"{message.role}: {message.content}")

    example = json.dumps({spec.name: "extracted_value_or_null" for spec in fields}, indent=2)
    lines += [
        "",
        "Instructions:",
        "1. Extract information from the conversation that matches the expected fields",
        "2. Return ONLY a JSON object with the extracted information",
        "3. Use null for fields where no information was found",
        "4. Be conservative - only extract information that is clearly stated",
        "",
        "Example response format:",
        example,
    ]
    return [Message.system("\n".join(lines)), Message.user(EXTRACTION_REQUEST)]


def parse_extraction(content: str, fields: Sequence[FieldSpec]) -> dict[str, Any]:
    """Pull declared, non-empty field values out of an extraction reply.

    The reply may wrap the JSON object in prose or a code fence. Anything
    that does not parse to an object yields an empty dict.
    """
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end < start:
        logger.debug("Extraction reply held no JSON object")
        return {}

    try:
        data = json.loads(content[start : end + 1])
    except json.JSONDecodeError as e:
        logger.debug(f"Extraction reply was not valid JSON: {e}")
        return {}
    if not isinstance(data, dict):
        return {}

    names = {spec.name for spec in fields}
    return {
        key: value
        for key, value in data.items()
        if key in names and value not in (None, "")
    }


def merge_collected(session: Session, values: dict[str, Any]) -> dict[str, Any]:
    """Merge values into the session's collected map and return the result."""
    merged = collected_values(session)
    merged.update(values)
    session.set_data(COLLECTED_DATA_KEY, merged)
    return merged
