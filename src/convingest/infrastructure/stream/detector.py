from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Union

from convingest.core.errors import EmptyFileError, IoError, PathNotFoundError

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
_WHITESPACE = b" \t\r\n"
_SNIFF_CHUNK = 4096


class StreamFormat(str, Enum):
    ARRAY = "array"     # one JSON array of conversation objects
    NDJSON = "ndjson"   # one JSON value per line


def sniff_format(fh: BinaryIO, path: Union[str, Path] = "<stream>") -> StreamFormat:
    """
    Classify by the first non-whitespace byte: ``[`` is an array, anything else NDJSON.

    Only leading whitespace (and a UTF-8 BOM) is read; the rest of the file is never touched.
    """
    first_chunk = True
    while True:
        chunk = fh.read(_SNIFF_CHUNK)
        if not chunk:
            raise EmptyFileError(path=Path(path))
        if first_chunk and chunk.startswith(UTF8_BOM):
            chunk = chunk[len(UTF8_BOM):]
        first_chunk = False
        stripped = chunk.lstrip(_WHITESPACE)
        if stripped:
            return StreamFormat.ARRAY if stripped[:1] == b"[" else StreamFormat.NDJSON


def detect_format(path: Union[str, Path]) -> StreamFormat:
    path = Path(path)
    if not path.exists():
        raise PathNotFoundError(path=path)
    try:
        with path.open("rb") as fh:
            fmt = sniff_format(fh, path)
    except OSError as exc:
        raise IoError.from_os_error(exc, str(path)) from exc
    logger.debug("detected %s layout for %s", fmt.value, path)
    return fmt
