from .text_processing import sanitize_filename, slugify, strip_leading_date, truncate_title
from .logger import configure_logging, setup_logger

__all__ = [
    "sanitize_filename",
    "slugify",
    "strip_leading_date",
    "truncate_title",
    "configure_logging",
    "setup_logger",
]
