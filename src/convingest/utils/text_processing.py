"""
Text helpers for filenames, slugs and progress labels.

All truncation counts code points, never bytes, so multi-byte characters
(emoji, CJK, combining marks) are never split.
"""

import re

from loguru import logger


_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}[\s\-:]+")
_INVALID_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')

SLUG_MAX_LENGTH = 100


def strip_leading_date(text: str) -> str:
    """
    Remove a leading ``YYYY-MM-DD`` prefix such as ``"2024-01-15 - "``.

    Args:
        text: title text

    Returns:
        title without the date prefix, whitespace-trimmed
    """
    return _DATE_PREFIX.sub("", text, count=1).strip()


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """
    Lowercase ASCII slug: letters and digits kept, everything else collapses to ``-``.
    """
    chars = []
    for ch in text:
        if "a" <= ch <= "z" or "0" <= ch <= "9":
            chars.append(ch)
        elif "A" <= ch <= "Z":
            chars.append(ch.lower())
        else:
            chars.append("-")
    slug = "-".join(part for part in "".join(chars).split("-") if part)
    return slug[:max_length]


def sanitize_filename(name: str) -> str:
    cleaned = _INVALID_FILENAME_CHARS.sub("_", name)
    if cleaned != name:
        logger.debug(f"sanitized filename {name!r} -> {cleaned!r}")
    return cleaned


def truncate_title(text: str, max_len: int) -> str:
    """
    Truncate to at most ``max_len`` code points, ending in an ellipsis when cut.
    """
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + "…"
