"""
Storage-oriented flattening of a Conversation.

One ``meta`` record followed by one ``message`` record per message; every
field is a primitive or a list of strings, so each line stands alone.
"""

from __future__ import annotations

from typing import Annotated, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from convingest.conversation import Conversation, Message, format_timestamp


class MetaRecord(BaseModel):
    type: Literal["meta"] = "meta"
    conv_id: str
    title: Optional[str] = None
    created_at: str
    markers: List[str] = Field(default_factory=list)


class MessageEntryRecord(BaseModel):
    type: Literal["message"] = "message"
    conv_id: str
    idx: int
    message_id: str
    role: str
    timestamp: str
    content: str
    project: Optional[str] = None
    meeting: Optional[str] = None
    markers: List[str] = Field(default_factory=list)


MessageRecord = Annotated[Union[MetaRecord, MessageEntryRecord], Field(discriminator="type")]

_RECORD_ADAPTER: TypeAdapter[MessageRecord] = TypeAdapter(MessageRecord)


def meta_record(conv: Conversation) -> MetaRecord:
    meta = conv.meta
    return MetaRecord(
        conv_id=meta.conv_id,
        title=meta.title,
        created_at=format_timestamp(meta.created_at),
        markers=meta.markers.to_list(),
    )


def message_record(conv_id: str, message: Message) -> MessageEntryRecord:
    return MessageEntryRecord(
        conv_id=conv_id,
        idx=message.idx,
        message_id=str(message.id),
        role=message.role.value,
        timestamp=format_timestamp(message.timestamp),
        content=message.content,
        project=message.project,
        meeting=message.meeting,
        markers=message.markers.to_list(),
    )


def iter_records(conv: Conversation) -> Iterator[MessageRecord]:
    """Meta first, then messages in source order."""
    yield meta_record(conv)
    for message in conv.messages:
        yield message_record(conv.meta.conv_id, message)


def parse_record(line: Union[str, bytes]) -> MessageRecord:
    """Parse one NDJSON line back into its record variant."""
    return _RECORD_ADAPTER.validate_json(line)
