"""
Async conversation reader for NDJSON exports.

Blocking file reads run on a worker thread via ``asyncio.to_thread``; the
reader suspends only while waiting for the next line. Conversations come
back one per call, strictly in file order.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from convingest.core.errors import IoError, PathNotFoundError, Result

from .conversations import ConversationResult, normalize_result
from .raw_values import decode_ndjson_line

logger = logging.getLogger(__name__)


class AsyncConversationReader:
    """
    Usage::

        async with await AsyncConversationReader.open(path) as reader:
            async for result in reader:
                ...
    """

    def __init__(self, fh: BinaryIO, path: Path):
        self._fh = fh
        self._path = path
        self._lineno = 0

    @classmethod
    async def open(cls, path: Union[str, Path]) -> "AsyncConversationReader":
        path = Path(path)
        if not path.exists():
            raise PathNotFoundError(path=path)
        try:
            fh = await asyncio.to_thread(path.open, "rb")
        except OSError as exc:
            raise IoError.from_os_error(exc, str(path)) from exc
        logger.debug("async reader opened %s", path)
        return cls(fh, path)

    @property
    def path(self) -> Path:
        return self._path

    async def next(self) -> Optional[ConversationResult]:
        """Next conversation result, or None at end of file."""
        while not self._fh.closed:
            try:
                raw_line = await asyncio.to_thread(self._fh.readline)
            except OSError as exc:
                self.close()
                return Result.err(IoError.from_os_error(exc, str(self._path)))
            if not raw_line:
                self.close()
                break
            self._lineno += 1
            raw = decode_ndjson_line(raw_line, f"{self._path}:{self._lineno}", first=self._lineno == 1)
            if raw is not None:
                return normalize_result(raw)
        return None

    def __aiter__(self) -> "AsyncConversationReader":
        return self

    async def __anext__(self) -> ConversationResult:
        result = await self.next()
        if result is None:
            raise StopAsyncIteration
        return result

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    async def __aenter__(self) -> "AsyncConversationReader":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()
