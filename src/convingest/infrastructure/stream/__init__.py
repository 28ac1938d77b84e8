"""
Streaming readers for conversation exports (JSON array or NDJSON).
"""

from .detector import StreamFormat, detect_format, sniff_format
from .raw_values import JsonArrayStream, NdjsonStream, RawValueStream, open_raw_values
from .conversations import ConversationStream, open_conversations
from .async_reader import AsyncConversationReader

__all__ = [
    "StreamFormat",
    "detect_format",
    "sniff_format",
    "JsonArrayStream",
    "NdjsonStream",
    "RawValueStream",
    "open_raw_values",
    "ConversationStream",
    "open_conversations",
    "AsyncConversationReader",
]
