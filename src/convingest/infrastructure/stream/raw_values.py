"""
Streaming JSON-array / NDJSON reader with bounded memory.

``json.load`` would materialize a whole ``[{conv1}, {conv2}, ...]`` export
before yielding anything. :class:`JsonArrayStream` instead walks the array
structure itself and decodes one element at a time:

1. read the opening ``[``
2. decode one element straight from a sliding text buffer
3. skip the ``,`` between elements
4. stop at the closing ``]``

Only the current element plus one read chunk is held at any point. When an
element is malformed, its extent is found with a string/bracket aware scan to
the next top-level ``,`` or ``]``; that slot yields an error and streaming
resumes with the following element.

NDJSON is read one line at a time; blank lines are skipped.

Every item is a :class:`Result`, so a bad element never discards the ones
around it. Callers decide whether to skip or abort.
"""

from __future__ import annotations

import codecs
import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Iterator, List, Optional, Tuple, Union

from convingest.core.errors import IngestError, InvalidFormatError, IoError, JsonError, Result

from .detector import UTF8_BOM, StreamFormat, detect_format

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
# Consumed text is dropped from the front of the buffer past this many characters.
_COMPACT_THRESHOLD = 1024 * 1024
_WS = " \t\r\n"

# "\uD800".."\uDFFF" escapes; only these can put a surrogate into decoded text.
_SURROGATE_ESCAPE = re.compile(r"\\u[dD][89a-fA-F][0-9a-fA-F]{2}")
_SURROGATE = re.compile("[\ud800-\udfff]")
LONE_SURROGATE_REASON = "lone surrogate escape in string (not valid Unicode)"
NESTING_REASON = "nesting too deep"

RawResult = Result[Any, IngestError]


def has_lone_surrogate(value: Any) -> bool:
    """True when any string or object key inside ``value`` holds an unpaired surrogate."""
    stack = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            if _SURROGATE.search(item):
                return True
        elif isinstance(item, list):
            stack.extend(item)
        elif isinstance(item, dict):
            for key, child in item.items():
                if _SURROGATE.search(key):
                    return True
                stack.append(child)
    return False


def loads_value(text: str) -> Any:
    """
    ``json.loads`` that also rejects what cannot be re-encoded as UTF-8.

    Raises:
        JSONDecodeError: malformed JSON
        ValueError: nesting past the interpreter recursion limit, or a lone surrogate
    """
    try:
        value = json.loads(text)
    except RecursionError as exc:
        raise ValueError(NESTING_REASON) from exc
    if _SURROGATE_ESCAPE.search(text) and has_lone_surrogate(value):
        raise ValueError(LONE_SURROGATE_REASON)
    return value


class _State(Enum):
    START = "start"          # before '['
    FIRST = "first"          # after '[', empty array still possible
    VALUE = "value"          # expecting an element
    SEPARATOR = "separator"  # expecting ',' or ']'
    DONE = "done"


class JsonArrayStream:
    """
    Iterate the elements of a top-level JSON array from a binary file handle.
    """

    def __init__(self, fh: BinaryIO, *, source: str = "<stream>", chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._fh = fh
        self._source = source
        self._chunk_size = chunk_size
        # utf-8-sig drops a leading BOM.
        self._decoder = codecs.getincrementaldecoder("utf-8-sig")()
        self._json = json.JSONDecoder()
        self._buf = ""
        self._pos = 0
        self._dropped = 0
        self._eof = False
        self._state = _State.START
        self._index = 0

    def __iter__(self) -> Iterator[RawResult]:
        return self

    def __next__(self) -> RawResult:
        if self._state is _State.DONE:
            raise StopIteration
        try:
            result = self._advance()
        except UnicodeDecodeError as exc:
            self._state = _State.DONE
            return Result.err(JsonError(where=self._where(self._index, self._pos), reason=f"invalid UTF-8: {exc.reason}"))
        except OSError as exc:
            self._state = _State.DONE
            return Result.err(IoError.from_os_error(exc, self._source))
        if result is None:
            self._state = _State.DONE
            raise StopIteration
        self._compact()
        return result

    # -- state machine -------------------------------------------------

    def _advance(self) -> Optional[RawResult]:
        while True:
            ch = self._peek()

            if self._state is _State.START:
                if ch != "[":
                    self._state = _State.DONE
                    return Result.err(
                        InvalidFormatError(path=Path(self._source), reason="expected '[' at start of JSON array")
                    )
                self._pos += 1
                self._state = _State.FIRST
                continue

            if ch is None:
                self._state = _State.DONE
                return Result.err(self._error(self._index, self._pos, "unexpected EOF in JSON array (missing ']')"))

            if self._state is _State.FIRST:
                if ch == "]":
                    self._pos += 1
                    return None
                self._state = _State.VALUE
                continue

            if self._state is _State.VALUE:
                if ch in ",]":
                    index = self._index
                    self._index += 1
                    offset = self._pos
                    self._pos += 1
                    if ch == "]":
                        self._state = _State.DONE
                    return Result.err(self._error(index, offset, f"expected value, found {ch!r}"))
                self._state = _State.SEPARATOR
                return self._read_value()

            # SEPARATOR
            if ch == "]":
                self._pos += 1
                return None
            if ch == ",":
                self._pos += 1
                self._state = _State.VALUE
                continue
            return self._skip_stray(ch)

    def _read_value(self) -> RawResult:
        start = self._pos
        index = self._index
        self._index += 1

        decoded = self._try_decode(start)
        if decoded is not None:
            value, end = decoded
            self._pos = end
            if _SURROGATE_ESCAPE.search(self._buf, start, end) and has_lone_surrogate(value):
                return Result.err(self._error(index, start, LONE_SURROGATE_REASON))
            return Result.ok(value)

        end = self._scan_terminator(start)
        if end is None:
            self._state = _State.DONE
            return Result.err(self._error(index, start, "unexpected EOF in JSON array (missing ']')"))
        self._pos = end
        try:
            return Result.ok(loads_value(self._buf[start:end]))
        except json.JSONDecodeError as exc:
            return Result.err(self._error(index, start, f"{exc.msg} (line {exc.lineno} column {exc.colno})"))
        except ValueError as exc:
            return Result.err(self._error(index, start, str(exc)))

    def _try_decode(self, start: int) -> Optional[Tuple[Any, int]]:
        """Decode straight from the buffer; None when the element is incomplete or malformed."""
        while True:
            try:
                value, end = self._json.raw_decode(self._buf, start)
            except (json.JSONDecodeError, RecursionError):
                return None
            # A number or literal touching the buffer end may continue in the next chunk.
            if end == len(self._buf) and not self._eof:
                self._fill()
                continue
            nxt = self._skip_ws_from(end)
            if nxt >= len(self._buf) or self._buf[nxt] in ",]":
                return value, end
            return None

    def _skip_stray(self, ch: str) -> RawResult:
        start = self._pos
        index = self._index
        self._index += 1
        end = self._scan_terminator(start)
        reason = f"unexpected character {ch!r} in JSON array (expected ',' or ']')"
        if end is None:
            self._state = _State.DONE
        else:
            self._pos = end
        return Result.err(self._error(index, start, reason))

    # -- buffer helpers ------------------------------------------------

    def _read_chunk(self) -> Optional[str]:
        """Next decoded chunk (possibly empty mid-character), or None at EOF."""
        if self._eof:
            return None
        chunk = self._fh.read(self._chunk_size)
        if not chunk:
            self._eof = True
            return self._decoder.decode(b"", final=True) or None
        return self._decoder.decode(chunk)

    def _fill(self) -> bool:
        text = self._read_chunk()
        if text is None:
            return False
        self._buf += text
        return True

    def _skip_ws_from(self, i: int) -> int:
        while True:
            buf = self._buf
            n = len(buf)
            while i < n and buf[i] in _WS:
                i += 1
            if i < n or not self._fill():
                return i

    def _peek(self) -> Optional[str]:
        self._pos = self._skip_ws_from(self._pos)
        if self._pos < len(self._buf):
            return self._buf[self._pos]
        return None

    def _scan_terminator(self, start: int) -> Optional[int]:
        """
        Index of the next top-level ',' or ']' outside strings, reading more as needed.

        Chunks read during the scan are joined onto the buffer once at the end,
        so an element spanning many chunks costs linear time.
        """
        depth = 0
        in_string = False
        escaped = False
        pending: List[str] = []
        piece = self._buf
        base = 0
        i = start
        found: Optional[int] = None
        while found is None:
            n = len(piece)
            while i < n:
                ch = piece[i]
                if in_string:
                    if escaped:
                        escaped = False
                    elif ch == "\\":
                        escaped = True
                    elif ch == '"':
                        in_string = False
                elif ch == '"':
                    in_string = True
                elif ch == "[" or ch == "{":
                    depth += 1
                elif ch == "]" or ch == "}":
                    if depth:
                        depth -= 1
                    elif ch == "]":
                        found = base + i
                        break
                elif ch == "," and not depth:
                    found = base + i
                    break
                i += 1
            if found is not None:
                break
            text = self._read_chunk()
            if text is None:
                break
            pending.append(text)
            base += n
            piece = text
            i = 0
        if pending:
            self._buf += "".join(pending)
        return found

    def _compact(self) -> None:
        if self._pos > _COMPACT_THRESHOLD:
            self._dropped += self._pos
            self._buf = self._buf[self._pos:]
            self._pos = 0

    def _where(self, index: int, offset: int) -> str:
        return f"{self._source} element #{index} (char {self._dropped + offset})"

    def _error(self, index: int, offset: int, reason: str) -> JsonError:
        return JsonError(where=self._where(index, offset), reason=reason)


def decode_ndjson_line(raw_line: bytes, where: str, *, first: bool = False) -> Optional[RawResult]:
    """
    Decode one NDJSON line. Blank lines give None; a bad line fails only itself.
    """
    if first and raw_line.startswith(UTF8_BOM):
        raw_line = raw_line[len(UTF8_BOM):]
    try:
        line = raw_line.decode("utf-8")
    except UnicodeDecodeError as exc:
        return Result.err(JsonError(where=where, reason=f"invalid UTF-8: {exc.reason}"))
    line = line.strip()
    if not line:
        return None
    try:
        return Result.ok(loads_value(line))
    except json.JSONDecodeError as exc:
        return Result.err(JsonError(where=where, reason=f"{exc.msg} (column {exc.colno})"))
    except ValueError as exc:
        return Result.err(JsonError(where=where, reason=str(exc)))


class NdjsonStream:
    """Iterate one JSON value per non-blank line from a binary file handle."""

    def __init__(self, fh: BinaryIO, *, source: str = "<stream>"):
        self._fh = fh
        self._source = source
        self._lineno = 0
        self._done = False

    def __iter__(self) -> Iterator[RawResult]:
        return self

    def __next__(self) -> RawResult:
        while not self._done:
            try:
                raw_line = self._fh.readline()
            except OSError as exc:
                self._done = True
                return Result.err(IoError.from_os_error(exc, self._source))
            if not raw_line:
                self._done = True
                break
            self._lineno += 1
            result = decode_ndjson_line(raw_line, f"{self._source}:{self._lineno}", first=self._lineno == 1)
            if result is not None:
                return result
        raise StopIteration


class RawValueStream:
    """
    Raw JSON values from an export file, format auto-detected.

    Use this for operations that do not need the canonical model
    (format conversion, exploding into files). Not rewindable: reopen
    the path to iterate again.
    """

    def __init__(self, path: Path, fmt: StreamFormat, fh: BinaryIO, inner: Iterator[RawResult]):
        self._path = path
        self._format = fmt
        self._fh = fh
        self._inner = inner

    @classmethod
    def from_path(cls, path: Union[str, Path], *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> "RawValueStream":
        path = Path(path)
        fmt = detect_format(path)
        try:
            fh = path.open("rb")
        except OSError as exc:
            raise IoError.from_os_error(exc, str(path)) from exc
        inner: Iterator[RawResult]
        if fmt is StreamFormat.ARRAY:
            inner = JsonArrayStream(fh, source=str(path), chunk_size=chunk_size)
        else:
            inner = NdjsonStream(fh, source=str(path))
        logger.debug("streaming %s as %s", path, fmt.value)
        return cls(path, fmt, fh, inner)

    @property
    def format(self) -> StreamFormat:
        return self._format

    @property
    def path(self) -> Path:
        return self._path

    def __iter__(self) -> Iterator[RawResult]:
        return self

    def __next__(self) -> RawResult:
        try:
            return next(self._inner)
        except StopIteration:
            self.close()
            raise

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def __enter__(self) -> "RawValueStream":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open_raw_values(path: Union[str, Path], *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> RawValueStream:
    """Detect the layout of ``path`` and open it as a lazy raw value stream."""
    return RawValueStream.from_path(path, chunk_size=chunk_size)
