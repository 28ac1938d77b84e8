"""
Canonical conversation model.

This package focuses on:
- Normalizing exported chat/agent transcripts from different tools
- Extracting inline markers (``ctx::``, ``project::`` ...) from message text
- Resolving the timestamp and text shapes exporters disagree on
"""

from .schema import Conversation, ConversationMeta, Message, MessageRole
from .markers import MarkerSet, extract_markers
from .timestamps import format_timestamp, parse_timestamp
from .text import extract_text
from .normalizer import normalize_conversation, normalize_message
from .artifacts import Artifact, ArtifactKind, extract_artifacts

__all__ = [
    "Conversation",
    "ConversationMeta",
    "Message",
    "MessageRole",
    "MarkerSet",
    "extract_markers",
    "format_timestamp",
    "parse_timestamp",
    "extract_text",
    "normalize_conversation",
    "normalize_message",
    "Artifact",
    "ArtifactKind",
    "extract_artifacts",
]
