"""Helpers for spreadsheet A1 notation.

Only the subset used by the storage layer is supported: a sheet name
followed by ``!`` and either a single cell (``A1``), a cell span
(``A2:G2``) or a whole-column span (``A:G``). Sheet names are never quoted
because every sheet title we create is a single word.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CELL_RE = re.compile(r"^([A-Z]+)(\d*)$")


def column_letter(index: int) -> str:
    """Return the column letters for zero-based ``index`` (``0 -> "A"``)."""
    if index < 0:
        raise ValueError("column index must be non-negative")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """Inverse of :func:`column_letter`."""
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def columns_range(sheet: str, width: int, first: int = 0) -> str:
    """Whole-column range covering ``width`` columns, e.g. ``Users!A:D``."""
    return f"{sheet}!{column_letter(first)}:{column_letter(first + width - 1)}"


def row_range(sheet: str, row_number: int, width: int) -> str:
    """Range for one row of ``width`` cells, e.g. ``Users!A5:D5``."""
    last = column_letter(width - 1)
    return f"{sheet}!A{row_number}:{last}{row_number}"


@dataclass(frozen=True)
class A1Range:
    """A parsed range. Row numbers are 1-based; ``None`` means unbounded."""

    sheet: str
    first_column: int
    first_row: int | None
    last_column: int
    last_row: int | None


def parse_range(text: str) -> A1Range:
    sheet, sep, cells = text.partition("!")
    if not sep or not sheet:
        raise ValueError(f"range {text!r} has no sheet name")
    start, _, end = cells.partition(":")
    end = end or start

    parsed = []
    for part in (start, end):
        match = _CELL_RE.match(part)
        if not match:
            raise ValueError(f"unsupported range {text!r}")
        letters, digits = match.groups()
        parsed.append((column_index(letters), int(digits) if digits else None))

    (first_column, first_row), (last_column, last_row) = parsed
    return A1Range(sheet, first_column, first_row, last_column, last_row)
