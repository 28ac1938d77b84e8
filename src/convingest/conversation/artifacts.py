from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from convingest.utils.text_processing import slugify

from .schema import Conversation, Message


class ArtifactKind(str, Enum):
    CODE = "code"
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class Artifact:
    message_idx: int
    title: str
    filename: str
    kind: ArtifactKind
    body: str
    language: Optional[str] = None


_EXTENSIONS: Dict[str, str] = {
    "text/markdown": "md",
    "application/vnd.ant.react": "jsx",
    "application/vnd.ant.code": "jsx",
    "text/javascript": "js",
    "application/javascript": "js",
    "text/typescript": "ts",
    "application/typescript": "ts",
    "text/html": "html",
    "image/svg+xml": "svg",
    "text/css": "css",
    "application/json": "json",
    "text/x-python": "py",
    "application/x-python": "py",
    "text/x-java": "java",
    "text/x-c": "c",
    "text/x-cpp": "cpp",
    "text/x-rust": "rs",
    "text/x-go": "go",
}


def artifact_extension(artifact_type: str) -> str:
    return _EXTENSIONS.get(artifact_type, "txt")


def iter_artifact_blocks(message: Message) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """Yield ``(block_idx, input)`` for every artifacts tool_use block in the raw content."""
    raw = message.raw if isinstance(message.raw, dict) else {}
    content = raw.get("content")
    if not isinstance(content, list):
        return
    for block_idx, block in enumerate(content):
        if not isinstance(block, dict):
            continue
        if block.get("type") != "tool_use" or block.get("name") != "artifacts":
            continue
        payload = block.get("input")
        if isinstance(payload, dict):
            yield block_idx, payload


def _str_field(payload: Dict[str, Any], key: str, default: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else default


def extract_artifacts(conv: Conversation) -> List[Artifact]:
    artifacts: List[Artifact] = []
    for message in conv.messages:
        for block_idx, payload in iter_artifact_blocks(message):
            title = _str_field(payload, "title", "artifact")
            ext = artifact_extension(_str_field(payload, "type", "text/plain"))
            language = payload.get("language")
            artifacts.append(
                Artifact(
                    message_idx=message.idx,
                    title=title,
                    filename=f"{block_idx:02d}-{slugify(title)}.{ext}",
                    kind=ArtifactKind.CODE,
                    body=_str_field(payload, "content", ""),
                    language=language if isinstance(language, str) else None,
                )
            )
    return artifacts
