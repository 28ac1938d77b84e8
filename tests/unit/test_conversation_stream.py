import pytest

from convingest.core.errors import ConversationParseError, JsonError, MissingFieldError, PathNotFoundError
from convingest.infrastructure.stream import ConversationStream, StreamFormat, open_conversations


def test_array_export_normalizes_each_item(write_array, conversation_factory):
    path = write_array([conversation_factory("a"), conversation_factory("b")])
    with open_conversations(path) as stream:
        assert stream.format is StreamFormat.ARRAY
        convs = [r.unwrap() for r in stream]
    assert [c.meta.conv_id for c in convs] == ["a", "b"]
    assert len(convs[0].messages) == 2


def test_failures_stay_in_their_slot(write_ndjson, conversation_factory):
    broken = conversation_factory("broken")
    del broken["created_at"]
    path = write_ndjson([conversation_factory("a"), broken, ["not", "object"], conversation_factory("d")])

    results = list(ConversationStream.from_path(path))
    assert len(results) == 4
    assert results[0].unwrap().meta.conv_id == "a"
    assert isinstance(results[1].error, MissingFieldError)
    assert isinstance(results[2].error, ConversationParseError)
    assert results[3].unwrap().meta.conv_id == "d"


def test_json_errors_pass_through(tmp_path, conversation_factory):
    path = tmp_path / "bad.ndjson"
    path.write_text('{"id": "x", "created_at": "2025-01-14T12:00:00Z"}\n{not json}\n', encoding="utf-8")
    results = list(open_conversations(path))
    assert results[0].is_ok()
    assert isinstance(results[1].error, JsonError)


def test_stream_is_single_pass(write_ndjson, conversation_factory):
    stream = open_conversations(write_ndjson([conversation_factory()]))
    assert len(list(stream)) == 1
    assert list(stream) == []


def test_missing_path_raises_on_open(tmp_path):
    with pytest.raises(PathNotFoundError):
        open_conversations(tmp_path / "missing.json")
