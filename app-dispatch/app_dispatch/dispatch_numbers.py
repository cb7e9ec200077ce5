"""
Dispatch-number parsing and the in-process "next number" cache.

Dispatch numbers are free-form strings recorded in column A of the dispatch
sheet; only their trailing numeric part matters here. Letters end in a
``<run>-<range end>`` pair (``No.BHCP/2024/CAT/12-034``), every other file
type ends in a single run of digits (``No.BHCP/CAT/2024/057``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

LETTER_FILE_TYPE = "Letter"

# Column positions inside a row of the dispatch sheet (A..D).
DISPATCH_NUMBER_COLUMN = 0
FILE_TYPE_COLUMN = 3

# \Z rather than $: a trailing newline must not count as "end of string".
_LETTER_RE = re.compile(r"(\d+)-(\d+)\Z", re.ASCII)
_OTHER_RE = re.compile(r"(\d+)\Z", re.ASCII)


def is_letter(file_type: str) -> bool:
    return file_type == LETTER_FILE_TYPE


def parse_letter_number(value: str) -> Optional[int]:
    """Return the range end of a letter dispatch number, or None."""
    match = _LETTER_RE.search(value)
    if match is None:
        return None
    return int(match.group(2))


def parse_other_number(value: str) -> Optional[int]:
    """Return the trailing integer of a non-letter dispatch number, or None."""
    match = _OTHER_RE.search(value)
    if match is None:
        return None
    return int(match.group(1))


def parse_dispatch_number(file_type: str, value: str) -> Optional[int]:
    if is_letter(file_type):
        return parse_letter_number(value)
    return parse_other_number(value)


@dataclass(frozen=True)
class DispatchNumbers:
    letters: int
    others: int

    def as_dict(self) -> dict[str, int]:
        return {"letters": self.letters, "others": self.others}


class DispatchNumberCache:
    """Next dispatch number per file-type class.

    The sheet is the source of truth; this object only remembers what was last
    derived from it. ``rescan`` merges with a running maximum, while
    ``advance`` and ``set_next`` overwrite. No locking: concurrent writers race
    and the last one wins.
    """

    def __init__(self, next_letter_number: int = 0, next_other_number: int = 0) -> None:
        self.next_letter_number = next_letter_number
        self.next_other_number = next_other_number

    def rescan(self, rows: Iterable[Sequence[str]]) -> int:
        """Fold every historical row into the cache.

        The first row is a header. Rows without a dispatch number or file type,
        or whose number does not parse, are skipped. State is committed only
        once ``rows`` is fully consumed, so an error raised by the row source
        leaves the cache as it was. Returns the number of rows that
        contributed a number.
        """
        letters = self.next_letter_number
        others = self.next_other_number
        used = 0

        iterator = iter(rows)
        next(iterator, None)
        for row in iterator:
            if len(row) <= FILE_TYPE_COLUMN:
                continue
            dispatch_number = row[DISPATCH_NUMBER_COLUMN]
            file_type = row[FILE_TYPE_COLUMN]
            if not dispatch_number or not file_type:
                continue

            parsed = parse_dispatch_number(file_type, dispatch_number)
            if parsed is None:
                continue

            used += 1
            if is_letter(file_type):
                letters = max(letters, parsed + 1)
            else:
                others = max(others, parsed + 1)

        self.next_letter_number = letters
        self.next_other_number = others
        return used

    def advance(self, file_type: str, dispatch_number: str) -> bool:
        """Move past a freshly appended dispatch number.

        Overwrites the matching field with ``parsed + 1`` even when that is
        lower than the current value. Returns False (and changes nothing) when
        the number does not parse.
        """
        parsed = parse_dispatch_number(file_type, dispatch_number)
        if parsed is None:
            return False
        self._store(file_type, parsed + 1)
        return True

    def set_next(self, file_type: str, observed_total: int) -> None:
        self._store(file_type, observed_total + 1)

    def snapshot(self) -> DispatchNumbers:
        return DispatchNumbers(letters=self.next_letter_number, others=self.next_other_number)

    def _store(self, file_type: str, value: int) -> None:
        if is_letter(file_type):
            self.next_letter_number = value
        else:
            self.next_other_number = value


__all__ = [
    "LETTER_FILE_TYPE",
    "DispatchNumberCache",
    "DispatchNumbers",
    "is_letter",
    "parse_dispatch_number",
    "parse_letter_number",
    "parse_other_number",
]
