from __future__ import annotations

import json
import os

import pytest

from convingest.application import SplitOptions, convert_to_ndjson, explode_messages, explode_ndjson, full_extract
from convingest.core.errors import ConversationParseError, JsonError


def test_convert_array_to_ndjson(tmp_path, write_array):
    values = [{"b": 1, "a": "é"}, {"id": "x"}, [1, 2]]
    out = tmp_path / "out.ndjson"
    assert convert_to_ndjson(write_array(values), out) == 3
    lines = out.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line) for line in lines] == values
    assert lines[0] == '{"b":1,"a":"é"}'


def test_convert_canonical_sorts_keys(tmp_path, write_array):
    out = tmp_path / "out.ndjson"
    convert_to_ndjson(write_array([{"b": 1, "a": {"d": 0, "c": 1}}]), out, canonical=True)
    assert out.read_text(encoding="utf-8") == '{"a":{"c":1,"d":0},"b":1}\n'


def test_convert_to_stdout(write_ndjson, capsys):
    assert convert_to_ndjson(write_ndjson([{"id": "x"}])) == 1
    assert capsys.readouterr().out == '{"id":"x"}\n'


def test_convert_progress_stays_off_stdout(write_ndjson, capsys):
    assert convert_to_ndjson(write_ndjson([{"id": "x"}, {"id": "y"}]), show_progress=True) == 2
    assert capsys.readouterr().out == '{"id":"x"}\n{"id":"y"}\n'


def test_convert_stops_on_bad_element(tmp_path):
    src = tmp_path / "bad.json"
    src.write_text('[{"a": 1}, {oops}]', encoding="utf-8")
    with pytest.raises(JsonError) as exc:
        convert_to_ndjson(src, tmp_path / "out.ndjson")
    assert exc.value.context["conversation"] == 2


def test_explode_ndjson(tmp_path):
    src = tmp_path / "convs.ndjson"
    src.write_text(
        "\n".join(
            [
                json.dumps({"uuid": "u-1", "name": "one"}),
                "",
                json.dumps({"id": "a/b:c", "title": "two"}),
                "{broken",
                json.dumps({"conv_id": "c-3"}),
                json.dumps({"title": "no id"}),
                json.dumps({"id": 99}),
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    out_dir = tmp_path / "exploded"
    assert explode_ndjson(src, out_dir, max_workers=32) == 3
    assert sorted(p.name for p in out_dir.iterdir()) == ["a_b_c.json", "c-3.json", "u-1.json"]
    assert json.loads((out_dir / "u-1.json").read_text(encoding="utf-8")) == {"uuid": "u-1", "name": "one"}


def test_explode_ndjson_skips_unencodable_and_deep_lines(tmp_path):
    src = tmp_path / "convs.ndjson"
    src.write_text(
        "\n".join(
            [
                '{"id": "bad", "content": "\\ud83d"}',
                "[" * 100000 + "]" * 100000,
                json.dumps({"id": "good"}),
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    out_dir = tmp_path / "exploded"
    assert explode_ndjson(src, out_dir, show_progress=True) == 1
    assert [p.name for p in out_dir.iterdir()] == ["good.json"]


def test_explode_messages_rejects_lone_surrogate(tmp_path):
    src = tmp_path / "conv.json"
    src.write_text('{"id": "c", "messages": [{"content": "\\udc00"}]}', encoding="utf-8")
    with pytest.raises(JsonError):
        explode_messages(src, tmp_path / "out.ndjson")


@pytest.mark.parametrize(
    "conv, expected_role, expected_ts",
    [
        (
            {"id": "c", "messages": [{"role": "user", "timestamp": "t1", "content": "hi"}]},
            "user",
            "t1",
        ),
        (
            {"uuid": "c", "chat_messages": [{"sender": "human", "created_at": "t2", "content": [{"text": "x"}]}]},
            "human",
            "t2",
        ),
    ],
)
def test_explode_messages(tmp_path, conv, expected_role, expected_ts):
    src = tmp_path / "conv.json"
    src.write_text(json.dumps(conv), encoding="utf-8")
    out = tmp_path / "messages.ndjson"
    assert explode_messages(src, out) == 1
    line = json.loads(out.read_text(encoding="utf-8"))
    assert line["conv_id"] == "c"
    assert line["index"] == 0
    assert line["role"] == expected_role
    assert line["timestamp"] == expected_ts
    assert set(line) == {"conv_id", "index", "role", "timestamp", "content"}


def test_explode_messages_requires_messages(tmp_path):
    src = tmp_path / "conv.json"
    src.write_text(json.dumps({"id": "c"}), encoding="utf-8")
    with pytest.raises(ConversationParseError):
        explode_messages(src, tmp_path / "out.ndjson")


def test_full_extract_from_array(tmp_path, write_array, conversation_factory):
    source = write_array([conversation_factory("a", title="Array")])
    options = SplitOptions(output_dir=tmp_path / "out", show_progress=False)
    before = set(p.name for p in tmp_path.iterdir())
    summary = full_extract(source, options)
    assert summary.processed == 1
    assert (tmp_path / "out" / "2025-01-14-array" / "2025-01-14-array.md").exists()
    assert set(p.name for p in tmp_path.iterdir()) - before == {"out"}


def test_full_extract_keeps_ndjson_on_request(tmp_path, write_array, conversation_factory, caplog):
    options = SplitOptions(output_dir=tmp_path / "out", show_progress=False)
    with caplog.at_level("INFO"):
        full_extract(write_array([conversation_factory()]), options, keep_ndjson=True)
    kept = [r.getMessage() for r in caplog.records if "keeping intermediate NDJSON" in r.getMessage()]
    assert kept
    kept_path = kept[0].rsplit(" ", 1)[-1]
    with open(kept_path, encoding="utf-8") as fh:
        assert json.loads(fh.readline())["id"] == "conv-1"
    os.remove(kept_path)


def test_full_extract_passes_ndjson_through(tmp_path, write_ndjson, conversation_factory):
    options = SplitOptions(output_dir=tmp_path / "out", show_progress=False)
    summary = full_extract(write_ndjson([conversation_factory("a"), conversation_factory("b", title="Other")]), options)
    assert summary.processed == 2
