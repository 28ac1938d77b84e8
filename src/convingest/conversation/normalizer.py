"""
Normalize heterogeneous export JSON into the canonical Conversation model.

Supported source shapes (best effort, first match wins):
- ChatGPT-style: ``messages`` with ``role`` / ``timestamp`` / ``content``
- Anthropic-style: ``chat_messages`` with ``sender`` / ``created_at`` / ``text``
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, List, Mapping, Optional

from convingest.core.errors import (
    ConversationParseError,
    IngestError,
    MessageParseError,
)

from .markers import MarkerSet, extract_markers
from .schema import Conversation, ConversationMeta, Message, MessageRole
from .text import extract_text
from .timestamps import resolve_timestamp

logger = logging.getLogger(__name__)

MESSAGE_TIMESTAMP_KEYS = ("timestamp", "created_at", "create_time")
CONVERSATION_TIMESTAMP_KEYS = ("created_at", "create_time")


def _first_str(raw: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str):
            return value
    return None


def _infer_message_id(raw: Mapping[str, Any]) -> uuid.UUID:
    for key in ("id", "uuid"):
        value = raw.get(key)
        if isinstance(value, str):
            try:
                return uuid.UUID(value)
            except ValueError:
                continue
    return uuid.uuid4()


def _metadata_tag(raw: Mapping[str, Any], key: str) -> Optional[str]:
    metadata = raw.get("metadata")
    if not isinstance(metadata, dict):
        return None
    value = metadata.get(key)
    return value if isinstance(value, str) else None


def _conversation_id(raw: Mapping[str, Any]) -> str:
    for key in ("id", "uuid"):
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
        # Some exporters emit numeric ids.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
    return str(uuid.uuid4())


def _raw_messages(raw: Mapping[str, Any]) -> List[Any]:
    for key in ("messages", "chat_messages"):
        if key not in raw:
            continue
        value = raw[key]
        if not isinstance(value, list):
            if value is not None:
                logger.debug("ignoring non-array '%s' (%s)", key, type(value).__name__)
            return []
        return value
    return []


def normalize_message(idx: int, raw: Any) -> Message:
    """
    Build a canonical Message from one raw export object.

    Raises MissingFieldError when no timestamp key is present and
    InvalidTimestampError when one is present but unparseable.
    """
    if not isinstance(raw, dict):
        raise MessageParseError(index=idx, reason=f"expected object, got {type(raw).__name__}")

    role_value = raw.get("role")
    if role_value is None:
        role_value = raw.get("sender")

    timestamp = resolve_timestamp(raw, MESSAGE_TIMESTAMP_KEYS, field_name="timestamp", where="message")
    text = extract_text(raw)

    return Message(
        id=_infer_message_id(raw),
        idx=idx,
        role=MessageRole.from_export(role_value),
        timestamp=timestamp,
        content=text,
        project=_metadata_tag(raw, "project"),
        meeting=_metadata_tag(raw, "meeting"),
        markers=extract_markers(text),
        raw=raw,
    )


def normalize_conversation(raw: Any) -> Conversation:
    """
    Build a canonical Conversation from one raw export object.

    One malformed message fails the whole conversation so that ``idx``
    always matches source position.
    """
    if not isinstance(raw, dict):
        raise ConversationParseError(reason=f"expected object, got {type(raw).__name__}")

    raw_messages = _raw_messages(raw)
    conv_id = _conversation_id(raw)
    created_at = resolve_timestamp(
        raw, CONVERSATION_TIMESTAMP_KEYS, field_name="created_at", where="conversation"
    )

    markers = MarkerSet()
    messages: List[Message] = []
    for idx, raw_message in enumerate(raw_messages):
        try:
            message = normalize_message(idx, raw_message)
        except IngestError as exc:
            exc.with_context(conv_id=conv_id, message_index=idx)
            raise
        markers.update(message.markers)
        messages.append(message)

    meta = ConversationMeta(
        id=uuid.uuid4(),
        conv_id=conv_id,
        title=_first_str(raw, "title", "name"),
        created_at=created_at,
        updated_at=messages[-1].timestamp if messages else None,
        markers=markers,
    )
    logger.debug("normalized conversation %s (%d messages)", conv_id, len(messages))
    return Conversation(meta=meta, messages=tuple(messages), raw=raw)
