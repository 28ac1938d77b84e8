"""
Core layer: error taxonomy and the Result wrapper shared by every stage.
"""

from .errors import ErrorSeverity, IngestError, Result

__all__ = [
    "ErrorSeverity",
    "IngestError",
    "Result",
]
