# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src to sys.path so `import convingest` works without installing.
"""

import json
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))


def make_conversation(conv_id="conv-1", title="Weekly sync", created_at="2025-01-14T12:00:00Z", messages=None):
    return {
        "id": conv_id,
        "title": title,
        "created_at": created_at,
        "messages": messages
        if messages is not None
        else [
            {"role": "user", "timestamp": "2025-01-14T12:00:00Z", "content": "ctx::review project::Api hello"},
            {"role": "assistant", "timestamp": "2025-01-14T12:01:00Z", "content": "hi there"},
        ],
    }


@pytest.fixture
def conversation_factory():
    return make_conversation


@pytest.fixture
def write_array(tmp_path):
    """Write values as a pretty JSON array export and return the path."""

    def _write(values, name="conversations.json"):
        path = tmp_path / name
        path.write_text(json.dumps(values, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_ndjson(tmp_path):
    """Write values one per line and return the path."""

    def _write(values, name="conversations.ndjson"):
        path = tmp_path / name
        lines = [json.dumps(v, ensure_ascii=False) for v in values]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
