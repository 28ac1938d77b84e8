from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, Union

from convingest.conversation import Conversation, normalize_conversation
from convingest.core.errors import IngestError, Result

from .detector import StreamFormat
from .raw_values import DEFAULT_CHUNK_SIZE, RawResult, RawValueStream

logger = logging.getLogger(__name__)

ConversationResult = Result[Conversation, IngestError]


def normalize_result(raw: RawResult) -> ConversationResult:
    """Normalize one raw stream item; a failure stays confined to its own slot."""
    if raw.is_err():
        return raw  # type: ignore[return-value]
    try:
        return Result.ok(normalize_conversation(raw.unwrap()))
    except IngestError as exc:
        return Result.err(exc)


class ConversationStream:
    """
    Lazy sequence of normalized conversations from one export file.

    Each item is an independent ``Result``. Iterating twice requires
    reopening the path.
    """

    def __init__(self, raw: RawValueStream):
        self._raw = raw
        self._index = 0

    @classmethod
    def from_path(cls, path: Union[str, Path], *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> "ConversationStream":
        return cls(RawValueStream.from_path(path, chunk_size=chunk_size))

    @property
    def format(self) -> StreamFormat:
        return self._raw.format

    @property
    def path(self) -> Path:
        return self._raw.path

    def __iter__(self) -> Iterator[ConversationResult]:
        return self

    def __next__(self) -> ConversationResult:
        result = normalize_result(next(self._raw))
        if result.is_err():
            logger.debug("conversation #%d failed: %s", self._index, result.error)
        self._index += 1
        return result

    def close(self) -> None:
        self._raw.close()

    def __enter__(self) -> "ConversationStream":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open_conversations(path: Union[str, Path], *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> ConversationStream:
    """Detect the layout of ``path`` and stream normalized conversations from it."""
    return ConversationStream.from_path(path, chunk_size=chunk_size)
