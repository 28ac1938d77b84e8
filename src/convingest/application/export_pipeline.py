"""
Split an export file into one folder per conversation.

For every conversation the pipeline writes, under ``<output_dir>/<slug>/``:
- ``<slug>.ndjson``  MessageRecords
- ``<slug>.json``    the retained raw export object, pretty-printed
- ``<slug>.md``      a Markdown transcript
- ``artifacts/``     files extracted from artifact tool calls

and appends every conversation's records to ``<output_dir>/messages.ndjson``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union, cast

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from convingest.config import IngestSettings
from convingest.conversation import Conversation, extract_artifacts
from convingest.core.errors import IngestError, IoError, JsonError
from convingest.infrastructure.ndjson import NdjsonWriter
from convingest.infrastructure.stream import ConversationStream
from convingest.infrastructure.stream.raw_values import DEFAULT_CHUNK_SIZE
from convingest.presentation import render_markdown
from convingest.utils.text_processing import slugify, strip_leading_date, truncate_title

logger = logging.getLogger(__name__)

AGGREGATE_FILENAME = "messages.ndjson"
PROGRESS_LABEL_LIMIT = 60


class ErrorPolicy(str, Enum):
    ABORT = "abort"   # first failed item stops the run
    SKIP = "skip"     # failed items are logged and counted


@dataclass
class SplitOptions:
    output_dir: Path = Path("conv_out")
    emit_markdown: bool = True
    emit_json: bool = True
    emit_ndjson: bool = True
    dry_run: bool = False
    show_progress: bool = True
    error_policy: ErrorPolicy = ErrorPolicy.ABORT
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir)
        self.error_policy = ErrorPolicy(self.error_policy)

    @classmethod
    def from_settings(cls, settings: IngestSettings) -> "SplitOptions":
        out = settings.output
        return cls(
            output_dir=Path(out.output_dir),
            emit_markdown=out.emit_markdown,
            emit_json=out.emit_json,
            emit_ndjson=out.emit_ndjson,
            dry_run=out.dry_run,
            show_progress=out.show_progress,
            error_policy=ErrorPolicy(settings.stream.error_policy),
            chunk_size=settings.stream.chunk_size,
        )


@dataclass
class SplitSummary:
    output_dir: Path
    processed: int = 0
    failed: int = 0
    errors: List[IngestError] = field(default_factory=list)


def generate_slug(conv: Conversation) -> str:
    """``YYYY-MM-DD-<slugified title>``; the date comes from ``created_at`` in UTC."""
    date_str = conv.meta.created_at.strftime("%Y-%m-%d")
    title = conv.meta.title if conv.meta.title is not None else "conversation"
    slug = slugify(strip_leading_date(title))
    if not slug:
        return f"{date_str}-conversation"
    return f"{date_str}-{slug}"


def progress_label(conv: Conversation) -> str:
    raw = conv.meta.title if conv.meta.title is not None else conv.meta.conv_id
    return truncate_title(raw, PROGRESS_LABEL_LIMIT)


def make_progress(enabled: bool) -> Progress:
    """Spinner with a running count, drawn on stderr."""
    return Progress(
        SpinnerColumn(),
        TextColumn("processed {task.completed:.0f}: {task.description}"),
        console=Console(stderr=True),
        disable=not enabled,
    )


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise IoError.from_os_error(exc, str(path)) from exc
    except UnicodeEncodeError as exc:
        raise JsonError(where=str(path), reason=f"not encodable as UTF-8: {exc.reason}") from exc


def _make_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoError.from_os_error(exc, str(path)) from exc


def write_conversation(conv: Conversation, options: SplitOptions) -> Optional[Path]:
    """
    Write one conversation's folder.

    Returns:
        the conversation directory, or None in dry-run mode
    """
    if options.dry_run:
        logger.debug("dry-run: skipping write for %s", conv.meta.conv_id)
        return None

    slug = generate_slug(conv)
    conv_dir = options.output_dir / slug
    _make_dir(conv_dir)

    if options.emit_ndjson:
        with NdjsonWriter.create(conv_dir / f"{slug}.ndjson") as writer:
            writer.write_conversation(conv)

    if options.emit_json:
        _write_text(conv_dir / f"{slug}.json", json.dumps(conv.raw, indent=2, ensure_ascii=False))

    if options.emit_markdown:
        _write_text(conv_dir / f"{slug}.md", render_markdown(conv))

    artifacts = extract_artifacts(conv)
    if artifacts:
        artifacts_dir = conv_dir / "artifacts"
        _make_dir(artifacts_dir)
        for artifact in artifacts:
            _write_text(artifacts_dir / artifact.filename, artifact.body)

    logger.debug("wrote %s (%d messages, %d artifacts)", conv_dir, len(conv.messages), len(artifacts))
    return conv_dir


def split_file(path: Union[str, Path], options: Optional[SplitOptions] = None) -> SplitSummary:
    """
    Stream conversations from ``path`` and write each one out.

    Under ``ErrorPolicy.ABORT`` the first failed item is raised with a
    ``conversation`` context entry (1-based); under ``SKIP`` it is logged,
    counted, and the stream continues.
    """
    options = options or SplitOptions()
    summary = SplitSummary(output_dir=options.output_dir)

    if not options.dry_run:
        _make_dir(options.output_dir)

    aggregate: Optional[NdjsonWriter] = None
    if options.emit_ndjson and not options.dry_run:
        aggregate = NdjsonWriter.create(options.output_dir / AGGREGATE_FILENAME)

    try:
        with ConversationStream.from_path(path, chunk_size=options.chunk_size) as stream, make_progress(
            options.show_progress
        ) as progress:
            task = progress.add_task("streaming conversations...", total=None)
            for idx, result in enumerate(stream):
                if result.is_err():
                    error = cast(IngestError, result.error)
                    error.with_context(conversation=idx + 1)
                    if options.error_policy is ErrorPolicy.ABORT:
                        logger.error("failed to parse conversation #%d: %s", idx + 1, error)
                        raise error
                    logger.warning("skipping conversation #%d: %s", idx + 1, error)
                    summary.failed += 1
                    summary.errors.append(error)
                    continue

                conv = result.unwrap()
                if aggregate is not None:
                    aggregate.write_conversation(conv)
                write_conversation(conv, options)
                summary.processed += 1
                progress.update(task, advance=1, description=progress_label(conv))
    finally:
        if aggregate is not None:
            aggregate.close()

    logger.info(
        "Split complete: %d conversation(s) written under %s (%d failed)",
        summary.processed,
        options.output_dir,
        summary.failed,
    )
    return summary


__all__ = [
    "AGGREGATE_FILENAME",
    "ErrorPolicy",
    "SplitOptions",
    "SplitSummary",
    "generate_slug",
    "make_progress",
    "progress_label",
    "split_file",
    "write_conversation",
]
