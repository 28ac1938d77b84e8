from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Union

from pydantic import BaseModel

from convingest.conversation import Conversation
from convingest.core.errors import IoError, JsonError

from .records import iter_records

logger = logging.getLogger(__name__)


class NdjsonWriter:
    """
    Append-only NDJSON sink for MessageRecords.

    Every line is flushed as soon as it is written, so a crash leaves only
    complete lines behind. There is no multi-record transaction: write to a
    temp file and rename when atomicity matters.
    """

    def __init__(self, sink: BinaryIO, *, name: str = "<sink>", owns_sink: bool = False):
        self._sink = sink
        self._name = name
        self._owns_sink = owns_sink
        self.records_written = 0

    @classmethod
    def create(cls, path: Union[str, Path], *, append: bool = False) -> "NdjsonWriter":
        path = Path(path)
        try:
            sink = path.open("ab" if append else "wb")
        except OSError as exc:
            raise IoError.from_os_error(exc, str(path)) from exc
        return cls(sink, name=str(path), owns_sink=True)

    def write_record(self, record: BaseModel) -> None:
        try:
            line = record.model_dump_json()
        except (TypeError, ValueError) as exc:
            raise JsonError(where=f"{self._name} record #{self.records_written}", reason=str(exc)) from exc
        try:
            self._sink.write(line.encode("utf-8") + b"\n")
            self._sink.flush()
        except OSError as exc:
            raise IoError.from_os_error(exc, self._name) from exc
        self.records_written += 1

    def write_conversation(self, conv: Conversation) -> int:
        """Write the meta record and one record per message; returns lines written."""
        count = 0
        for record in iter_records(conv):
            self.write_record(record)
            count += 1
        logger.debug("wrote %d records for conversation %s to %s", count, conv.meta.conv_id, self._name)
        return count

    def close(self) -> None:
        if self._owns_sink and not self._sink.closed:
            self._sink.close()

    def __enter__(self) -> "NdjsonWriter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def write_records(path: Union[str, Path], conv: Conversation, *, append: bool = False) -> int:
    """Open ``path``, write one conversation's records, and close it."""
    with NdjsonWriter.create(path, append=append) as writer:
        return writer.write_conversation(conv)
