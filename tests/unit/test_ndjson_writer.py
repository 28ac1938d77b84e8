import io
import json

import pytest

from convingest.conversation import normalize_conversation
from convingest.core.errors import IoError
from convingest.infrastructure.ndjson import (
    MessageEntryRecord,
    MetaRecord,
    NdjsonWriter,
    iter_records,
    parse_record,
    write_records,
)
from convingest.infrastructure.stream import open_conversations


class _CountingSink(io.BytesIO):
    def __init__(self):
        super().__init__()
        self.flushes = 0

    def flush(self):
        self.flushes += 1
        super().flush()


def test_meta_then_messages(conversation_factory):
    conv = normalize_conversation(conversation_factory())
    records = list(iter_records(conv))
    assert isinstance(records[0], MetaRecord)
    assert all(isinstance(r, MessageEntryRecord) for r in records[1:])
    assert [r.idx for r in records[1:]] == [0, 1]


def test_wire_fields(conversation_factory):
    conv = normalize_conversation(conversation_factory())
    sink = io.BytesIO()
    NdjsonWriter(sink).write_conversation(conv)
    lines = sink.getvalue().decode("utf-8").splitlines()
    meta = json.loads(lines[0])
    assert meta == {
        "type": "meta",
        "conv_id": "conv-1",
        "title": "Weekly sync",
        "created_at": "2025-01-14T12:00:00+00:00",
        "markers": ["ctx::review", "project::api"],
    }
    first = json.loads(lines[1])
    assert first["type"] == "message"
    assert set(first) == {
        "type", "conv_id", "idx", "message_id", "role", "timestamp",
        "content", "project", "meeting", "markers",
    }
    assert first["role"] == "user"
    assert first["markers"] == ["ctx::review", "project::api"]


def test_flushes_every_line(conversation_factory):
    conv = normalize_conversation(conversation_factory())
    sink = _CountingSink()
    writer = NdjsonWriter(sink)
    assert writer.write_conversation(conv) == 3
    assert sink.flushes == 3
    assert writer.records_written == 3


def test_append_mode_never_rewrites(tmp_path, conversation_factory):
    conv = normalize_conversation(conversation_factory())
    path = tmp_path / "out.ndjson"
    write_records(path, conv)
    write_records(path, conv, append=True)
    assert len(path.read_text(encoding="utf-8").splitlines()) == 6


def test_write_failure_raises_io_error(conversation_factory):
    class Full(io.BytesIO):
        def write(self, data):
            raise OSError(28, "No space left on device")

    conv = normalize_conversation(conversation_factory())
    with pytest.raises(IoError):
        NdjsonWriter(Full()).write_conversation(conv)


def test_round_trip_preserves_count_order_and_markers(write_ndjson, conversation_factory, tmp_path):
    source = conversation_factory(
        messages=[
            {"role": "user", "timestamp": "2025-01-14T12:00:00Z", "content": "ctx::one"},
            {"role": "assistant", "timestamp": "2025-01-14T12:00:01Z", "content": "plain"},
            {"role": "user", "timestamp": "2025-01-14T12:00:02Z", "content": "float.Z project::X ctx::one"},
        ]
    )
    conv = next(iter(open_conversations(write_ndjson([source])))).unwrap()
    out = tmp_path / "records.ndjson"
    with NdjsonWriter.create(out) as writer:
        writer.write_conversation(conv)

    records = [parse_record(line) for line in out.read_text(encoding="utf-8").splitlines()]
    meta, messages = records[0], records[1:]
    assert isinstance(meta, MetaRecord)
    assert len(messages) == len(conv.messages)
    assert [m.idx for m in messages] == [m.idx for m in conv.messages]
    assert [m.content for m in messages] == [m.content for m in conv.messages]
    assert [set(m.markers) for m in messages] == [set(m.markers) for m in conv.messages]
    assert meta.markers == conv.meta.markers.to_list()
