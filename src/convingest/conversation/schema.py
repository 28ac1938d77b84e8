from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple
from uuid import UUID

from .markers import MarkerSet


class MessageRole(str, Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"
    TOOL = "tool"
    OTHER = "other"

    @classmethod
    def from_export(cls, value: Any) -> "MessageRole":
        """Map an exporter's role vocabulary; anything unrecognized is OTHER."""
        if not isinstance(value, str):
            return cls.OTHER
        return _ROLE_ALIASES.get(value, cls.OTHER)


_ROLE_ALIASES = {
    "system": MessageRole.SYSTEM,
    "assistant": MessageRole.ASSISTANT,
    "user": MessageRole.USER,
    "human": MessageRole.USER,
    "tool": MessageRole.TOOL,
    "function": MessageRole.TOOL,
}


@dataclass(frozen=True)
class Message:
    id: UUID
    idx: int
    role: MessageRole
    timestamp: datetime
    content: str
    project: Optional[str] = None
    meeting: Optional[str] = None
    markers: MarkerSet = field(default_factory=MarkerSet)
    # Original export object, passed through untouched for lossless consumers.
    raw: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class ConversationMeta:
    id: UUID
    conv_id: str
    title: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime] = None
    markers: MarkerSet = field(default_factory=MarkerSet)


@dataclass(frozen=True)
class Conversation:
    meta: ConversationMeta
    messages: Tuple[Message, ...] = ()
    raw: Any = field(default=None, repr=False, compare=False)
