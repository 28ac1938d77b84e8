"""
Unified error taxonomy and Result wrapper, so streaming consumers can decide
per item whether to skip, log, or abort.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union, cast


class ErrorSeverity(Enum):
    WARNING = "warning"      # item can be skipped
    ERROR = "error"          # item failed
    CRITICAL = "critical"    # stream cannot continue


@dataclass(eq=False)
class IngestError(Exception):
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    code: str = "UNKNOWN"
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def with_context(self, **values: Any) -> "IngestError":
        self.context = {**(self.context or {}), **values}
        return self


@dataclass(eq=False)
class IoError(IngestError):
    message: str = "I/O error"
    code: str = "IO_ERROR"
    severity: ErrorSeverity = ErrorSeverity.CRITICAL

    @classmethod
    def from_os_error(cls, exc: OSError, where: str = "") -> "IoError":
        prefix = f"{where}: " if where else ""
        return cls(message=f"I/O error: {prefix}{exc}")


@dataclass(eq=False)
class JsonError(IngestError):
    message: str = ""
    code: str = "JSON_ERROR"
    where: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"JSON error at {self.where}: {self.reason}"


@dataclass(eq=False)
class InvalidFormatError(IngestError):
    message: str = ""
    code: str = "INVALID_FORMAT"
    path: Optional[Path] = None
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Invalid format in file {str(self.path)!r}: {self.reason}"


@dataclass(eq=False)
class ConversationParseError(IngestError):
    message: str = ""
    code: str = "CONVERSATION_PARSE"
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Failed to parse conversation: {self.reason}"


@dataclass(eq=False)
class MessageParseError(IngestError):
    message: str = ""
    code: str = "MESSAGE_PARSE"
    index: int = 0
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Failed to parse message at index {self.index}: {self.reason}"


@dataclass(eq=False)
class MissingFieldError(IngestError):
    message: str = ""
    code: str = "MISSING_FIELD"
    field_name: str = ""
    where: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Missing required field '{self.field_name}' in {self.where}"


@dataclass(eq=False)
class InvalidTimestampError(IngestError):
    message: str = ""
    code: str = "INVALID_TIMESTAMP"
    value: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Invalid timestamp {self.value!r}: {self.reason}"


@dataclass(eq=False)
class PathNotFoundError(IngestError):
    message: str = ""
    code: str = "PATH_NOT_FOUND"
    severity: ErrorSeverity = ErrorSeverity.CRITICAL
    path: Optional[Path] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Path not found: {str(self.path)!r}"


@dataclass(eq=False)
class EmptyFileError(IngestError):
    message: str = ""
    code: str = "EMPTY_FILE"
    severity: ErrorSeverity = ErrorSeverity.CRITICAL
    path: Optional[Path] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Empty input file: {str(self.path)!r}"


@dataclass(eq=False)
class ConfigError(IngestError):
    message: str = ""
    code: str = "CONFIG_ERROR"
    severity: ErrorSeverity = ErrorSeverity.CRITICAL
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Configuration error: {self.reason}"


T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=IngestError)


@dataclass
class Result(Generic[T, E]):
    """One independently successful or failed item of a lazy sequence."""

    _value: Union[T, E]
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(_value=value, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        return cls(_value=error, _is_ok=False)

    def is_ok(self) -> bool:
        return self._is_ok

    def is_err(self) -> bool:
        return not self._is_ok

    @property
    def error(self) -> Optional[E]:
        return None if self._is_ok else cast(E, self._value)

    def unwrap(self) -> T:
        if not self._is_ok:
            raise cast(E, self._value)
        return cast(T, self._value)

    def unwrap_or(self, default: T) -> T:
        return cast(T, self._value) if self._is_ok else default

    def map(self, fn: Callable[[T], U]) -> "Result[U, E]":
        if self._is_ok:
            return Result.ok(fn(cast(T, self._value)))
        return cast("Result[U, E]", self)
