"""
Unified error module.
"""

from .errors import (
    ErrorSeverity,
    IngestError,
    IoError,
    JsonError,
    InvalidFormatError,
    ConversationParseError,
    MessageParseError,
    MissingFieldError,
    InvalidTimestampError,
    PathNotFoundError,
    EmptyFileError,
    ConfigError,
    Result,
)

__all__ = [
    "ErrorSeverity",
    "IngestError",
    "IoError",
    "JsonError",
    "InvalidFormatError",
    "ConversationParseError",
    "MessageParseError",
    "MissingFieldError",
    "InvalidTimestampError",
    "PathNotFoundError",
    "EmptyFileError",
    "ConfigError",
    "Result",
]
