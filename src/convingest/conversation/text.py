from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Tuple

TextStrategy = Callable[[Mapping[str, Any]], Optional[str]]


def _content_string(raw: Mapping[str, Any]) -> Optional[str]:
    content = raw.get("content")
    return content if isinstance(content, str) else None


def _content_blocks(raw: Mapping[str, Any]) -> Optional[str]:
    content = raw.get("content")
    if not isinstance(content, list):
        return None
    texts = [
        block["text"]
        for block in content
        if isinstance(block, dict) and isinstance(block.get("text"), str)
    ]
    # Blocks without any text (tool calls, images) fall through to the next strategy.
    joined = "\n\n".join(texts)
    return joined or None


def _summary(raw: Mapping[str, Any]) -> Optional[str]:
    summary = raw.get("summary")
    return summary if isinstance(summary, str) else None


def _text_field(raw: Mapping[str, Any]) -> Optional[str]:
    text = raw.get("text")
    return text if isinstance(text, str) else None


TEXT_STRATEGIES: Tuple[Tuple[str, TextStrategy], ...] = (
    ("content_string", _content_string),
    ("content_blocks", _content_blocks),
    ("summary", _summary),
    ("text", _text_field),
)


def extract_text(raw: Mapping[str, Any]) -> str:
    """
    Extract a message body from one of the known raw shapes.

    Strategies are tried in priority order and the first hit wins. Unknown
    shapes degrade to an empty string rather than failing the message.
    """
    for _, strategy in TEXT_STRATEGIES:
        text = strategy(raw)
        if text is not None:
            return text
    return ""
