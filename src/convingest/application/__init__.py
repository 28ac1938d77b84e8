"""
Application layer: the split/export pipeline and bulk conversion commands.
"""

from .export_pipeline import (
    ErrorPolicy,
    SplitOptions,
    SplitSummary,
    generate_slug,
    split_file,
    write_conversation,
)
from .commands import convert_to_ndjson, explode_messages, explode_ndjson, full_extract

__all__ = [
    "ErrorPolicy",
    "SplitOptions",
    "SplitSummary",
    "generate_slug",
    "split_file",
    "write_conversation",
    "convert_to_ndjson",
    "explode_messages",
    "explode_ndjson",
    "full_extract",
]
