"""
convingest - streaming ingestion of exported chat conversations.

Reads JSON-array or NDJSON exports element by element, normalizes them into
a canonical Conversation/Message model with inline marker extraction, and
re-serializes them as append-only NDJSON records.
"""

__version__ = "0.1.0"

from .core.errors import IngestError, Result
from .conversation import (
    Conversation,
    ConversationMeta,
    Message,
    MessageRole,
    MarkerSet,
    extract_markers,
    normalize_conversation,
    normalize_message,
)
from .infrastructure.stream import (
    AsyncConversationReader,
    ConversationStream,
    StreamFormat,
    detect_format,
    open_conversations,
    open_raw_values,
)
from .infrastructure.ndjson import NdjsonWriter, parse_record

__all__ = [
    "__version__",
    "IngestError",
    "Result",
    "Conversation",
    "ConversationMeta",
    "Message",
    "MessageRole",
    "MarkerSet",
    "extract_markers",
    "normalize_conversation",
    "normalize_message",
    "AsyncConversationReader",
    "ConversationStream",
    "StreamFormat",
    "detect_format",
    "open_conversations",
    "open_raw_values",
    "NdjsonWriter",
    "parse_record",
]
