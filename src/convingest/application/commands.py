"""
Bulk conversion commands over raw export values.

These skip normalization entirely: values are streamed, re-serialized and
written as-is, so they also work on exports the canonical model rejects.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Union, cast

from convingest.core.errors import ConversationParseError, IngestError, IoError, JsonError
from convingest.infrastructure.stream import StreamFormat, detect_format, open_raw_values
from convingest.infrastructure.stream.raw_values import loads_value
from convingest.utils.text_processing import sanitize_filename

from .export_pipeline import SplitOptions, SplitSummary, make_progress, split_file

logger = logging.getLogger(__name__)

MAX_EXPLODE_WORKERS = 8
ID_KEYS = ("uuid", "id", "conv_id")


@contextmanager
def _open_output(output: Optional[Union[str, Path]]) -> Iterator[TextIO]:
    """Text sink for ``output``, or stdout when None (left open)."""
    if output is None:
        yield sys.stdout
        sys.stdout.flush()
        return
    path = Path(output)
    try:
        fh = open(path, "w", encoding="utf-8", newline="\n")
    except OSError as exc:
        raise IoError.from_os_error(exc, str(path)) from exc
    with fh:
        yield fh


def _dump_line(value: Any, *, canonical: bool = False) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), sort_keys=canonical)


def _conversation_id(value: Any) -> Optional[str]:
    if not isinstance(value, dict):
        return None
    for key in ID_KEYS:
        if key in value:
            candidate = value[key]
            return candidate if isinstance(candidate, str) else None
    return None


def convert_to_ndjson(
    input_path: Union[str, Path],
    output: Optional[Union[str, Path]] = None,
    canonical: bool = False,
    show_progress: bool = False,
) -> int:
    """
    Re-emit every raw value of an export as one compact JSON line.

    Args:
        input_path: JSON array or NDJSON export
        output: destination file; stdout when None
        canonical: sort object keys
        show_progress: draw a spinner on stderr

    Returns:
        number of values written
    """
    written = 0
    progress = make_progress(show_progress)
    with open_raw_values(input_path) as stream, _open_output(output) as out, progress:
        task = progress.add_task("converting to NDJSON...", total=None)
        for idx, result in enumerate(stream):
            if result.is_err():
                error = cast(IngestError, result.error)
                error.with_context(conversation=idx + 1)
                raise error
            try:
                out.write(_dump_line(result.unwrap(), canonical=canonical))
                out.write("\n")
            except OSError as exc:
                raise IoError.from_os_error(exc, str(output or "<stdout>")) from exc
            written += 1
            progress.update(task, advance=1)
    logger.info("NDJSON conversion complete: %d conversations", written)
    return written


def _write_pretty(path: Path, value: Any) -> Path:
    path.write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def explode_ndjson(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> int:
    """
    Write each NDJSON conversation to ``<output_dir>/<id>.json``.

    Lines that are blank, unparseable, or carry no string ``uuid``/``id``/``conv_id``
    are skipped. Files are written by a thread pool of at most 8 workers.

    Returns:
        number of files written
    """
    input_path = Path(input_path)
    out_dir = Path(output_dir)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoError.from_os_error(exc, str(out_dir)) from exc

    workers = min(max_workers or os.cpu_count() or 1, MAX_EXPLODE_WORKERS)
    written = 0
    skipped = 0

    try:
        fh = open(input_path, "r", encoding="utf-8", errors="replace")
    except OSError as exc:
        raise IoError.from_os_error(exc, str(input_path)) from exc

    with fh, ThreadPoolExecutor(max_workers=workers) as executor, make_progress(show_progress) as progress:
        task = progress.add_task("exploding conversations...", total=None)
        futures: List[Future] = []
        for line in fh:
            trimmed = line.strip()
            if not trimmed:
                continue
            try:
                value = loads_value(trimmed)
            except ValueError:
                skipped += 1
                continue
            conv_id = _conversation_id(value)
            if conv_id is None:
                skipped += 1
                continue
            target = out_dir / f"{sanitize_filename(conv_id)}.json"
            futures.append(executor.submit(_write_pretty, target, value))

        for future in as_completed(futures):
            try:
                future.result()
            except OSError as exc:
                logger.warning("failed to write exploded conversation: %s", exc)
                continue
            written += 1
            progress.update(task, advance=1)

    logger.info(
        "Exploded %d conversations into %s using %d threads (%d lines skipped)",
        written,
        out_dir,
        workers,
        skipped,
    )
    return written


_MESSAGE_SHAPES: Dict[str, Dict[str, str]] = {
    "messages": {"role": "role", "timestamp": "timestamp"},
    "chat_messages": {"role": "sender", "timestamp": "created_at"},
}


def explode_messages(conv_json: Union[str, Path], output: Optional[Union[str, Path]] = None) -> int:
    """
    Flatten one conversation JSON file into one line per message.

    Each line holds ``conv_id``, ``index``, ``role``, ``timestamp`` and ``content``.
    """
    path = Path(conv_json)
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IoError.from_os_error(exc, str(path)) from exc
    try:
        raw = loads_value(raw_text)
    except json.JSONDecodeError as exc:
        raise JsonError(where=str(path), reason=exc.msg) from exc
    except ValueError as exc:
        raise JsonError(where=str(path), reason=str(exc)) from exc

    if not isinstance(raw, dict):
        raise ConversationParseError(reason=f"expected object in {path}, got {type(raw).__name__}")

    conv_id = _conversation_id(raw)
    for key, fields in _MESSAGE_SHAPES.items():
        messages = raw.get(key)
        if not isinstance(messages, list):
            continue
        with _open_output(output) as out:
            for index, message in enumerate(messages):
                message = message if isinstance(message, dict) else {}
                line = {
                    "conv_id": conv_id,
                    "index": index,
                    "role": message.get(fields["role"]),
                    "timestamp": message.get(fields["timestamp"]),
                    "content": message.get("content"),
                }
                out.write(_dump_line(line) + "\n")
        logger.info("Exploded %d messages from %s (%s)", len(messages), path, key)
        return len(messages)

    raise ConversationParseError(
        reason="no messages found in conversation (expected 'messages' or 'chat_messages' field)"
    )


def full_extract(
    input_path: Union[str, Path],
    options: Optional[SplitOptions] = None,
    keep_ndjson: bool = False,
) -> SplitSummary:
    """
    Convert a JSON array export to a temporary NDJSON file if needed, then split it.
    """
    input_path = Path(input_path)
    options = options or SplitOptions()
    fmt = detect_format(input_path)

    if fmt is StreamFormat.NDJSON:
        logger.info("detected NDJSON format, proceeding directly to split")
        return split_file(input_path, options)

    logger.info("detected JSON array format, converting to NDJSON first")
    fd, tmp_name = tempfile.mkstemp(prefix="convingest_", suffix=".ndjson")
    os.close(fd)
    ndjson_path = Path(tmp_name)
    try:
        convert_to_ndjson(input_path, ndjson_path)
        logger.info("running split on %s", ndjson_path)
        return split_file(ndjson_path, options)
    except IngestError:
        logger.error("full extract failed for %s", input_path)
        raise
    finally:
        if keep_ndjson:
            logger.info("keeping intermediate NDJSON file at %s", ndjson_path)
        else:
            try:
                ndjson_path.unlink()
            except OSError as exc:
                logger.warning("failed to remove temp file %s: %s", ndjson_path, exc)
