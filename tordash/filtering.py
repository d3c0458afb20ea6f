from __future__ import annotations

from typing import Sequence

from rapidfuzz import fuzz
from rapidfuzz.distance import LCSseq

from .models import TorrentSnapshot


FilteredView = tuple[int, ...]


def is_subsequence(pattern: str, text: str) -> bool:
    """True when every character of ``pattern`` occurs in ``text`` in order, ignoring case."""
    return LCSseq.similarity(pattern.lower(), text.lower()) == len(pattern)


def match_positions(pattern: str, text: str) -> tuple[int, ...] | None:
    """Indices of ``text`` matched by ``pattern`` as a case-insensitive subsequence.

    Returns ``None`` when some pattern character cannot be found in order.
    """
    if not is_subsequence(pattern, text):
        return None
    positions: list[int] = []
    for op in LCSseq.opcodes(pattern.lower(), text.lower()):
        if op.tag == "equal":
            positions.extend(range(op.dest_start, op.dest_end))
    return tuple(positions)


def fuzzy_match(pattern: str, text: str) -> int | None:
    """Score ``text`` against ``pattern``, or ``None`` if it is not a subsequence match.

    Tight runs score higher than scattered characters. An empty pattern scores 0.
    """
    if not is_subsequence(pattern, text):
        return None
    return round(fuzz.WRatio(pattern.lower(), text.lower()))


class FilterEngine:
    """Holds the filter pattern and derives filtered views from snapshot lists.

    ``apply`` never touches its input: it returns indices into the sequence it
    was given, in the sequence's own order, whatever the match scores.
    """

    def __init__(self, pattern: str | None = None):
        self._pattern: str | None = None
        self.set_pattern(pattern)

    @property
    def pattern(self) -> str | None:
        return self._pattern

    def set_pattern(self, text: str | None) -> None:
        self._pattern = text or None

    def clear_pattern(self) -> None:
        self._pattern = None

    def apply(self, snapshots: Sequence[TorrentSnapshot]) -> FilteredView:
        if self._pattern is None:
            return tuple(range(len(snapshots)))
        return tuple(
            index
            for index, snapshot in enumerate(snapshots)
            if fuzzy_match(self._pattern, snapshot.name) is not None
        )
