from .models import (
    IngestSettings,
    LoggingSettings,
    OutputSettings,
    StreamSettings,
    load_settings,
)

__all__ = [
    "IngestSettings",
    "LoggingSettings",
    "OutputSettings",
    "StreamSettings",
    "load_settings",
]
