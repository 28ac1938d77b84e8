from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Optional


MARKER_PATTERN = re.compile(
    r"(?:ctx|project|mode|bridge|lf1m|karen|sysop|qtb|httm)::\S+|float\.\S+",
    re.IGNORECASE,
)


class MarkerSet:
    """
    Duplicate-free collection of lowercase marker strings.

    Iteration is lexicographic regardless of insertion order.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Iterable[str]] = None):
        self._items: set[str] = set()
        if items is not None:
            for item in items:
                self.add(item)

    def add(self, marker: str) -> None:
        self._items.add(marker.lower())

    def update(self, other: Iterable[str]) -> None:
        for marker in other:
            self.add(marker)

    def to_list(self) -> List[str]:
        return sorted(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, marker: object) -> bool:
        return isinstance(marker, str) and marker.lower() in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MarkerSet):
            return self._items == other._items
        if isinstance(other, (set, frozenset)):
            return self._items == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._items))

    def __repr__(self) -> str:
        return f"MarkerSet({self.to_list()!r})"


def extract_markers(text: str) -> MarkerSet:
    """Scan free text for marker tags; every match is stored lowercased."""
    markers = MarkerSet()
    if not text:
        return markers
    for match in MARKER_PATTERN.finditer(text):
        markers.add(match.group(0))
    return markers
