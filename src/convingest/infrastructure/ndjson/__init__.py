"""
NDJSON MessageRecord model and writer.
"""

from .records import (
    MessageEntryRecord,
    MessageRecord,
    MetaRecord,
    iter_records,
    message_record,
    meta_record,
    parse_record,
)
from .writer import NdjsonWriter, write_records

__all__ = [
    "MessageEntryRecord",
    "MessageRecord",
    "MetaRecord",
    "iter_records",
    "message_record",
    "meta_record",
    "parse_record",
    "NdjsonWriter",
    "write_records",
]
