"""Remote access to a single sheet and id allocation for it."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..adapters.base import Row, SheetsClient
from .codec import parse_int
from .layouts import SheetLayout
from .ranges import columns_range, row_range

log = logging.getLogger(__name__)


class SheetHandle:
    """One named sheet plus its declared column layout.

    Row numbers are 1-based as in the spreadsheet UI; row 1 is the header.
    ``lock`` serializes writers to this sheet within the process.
    """

    def __init__(self, client: SheetsClient, layout: SheetLayout) -> None:
        self.client = client
        self.layout = layout
        self.lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self.layout.name

    @property
    def width(self) -> int:
        return len(self.layout.columns)

    @property
    def full_range(self) -> str:
        return columns_range(self.name, self.width)

    # ------------------------------------------------------------------
    # Reads
    async def read_rows(self) -> list[Row]:
        """All rows of the sheet, header included."""
        return await self.client.get_values(self.full_range)

    async def read_column(self, index: int = 0) -> list[Row]:
        return await self.client.get_values(columns_range(self.name, 1, first=index))

    async def read_row(self, row_number: int) -> Row:
        rows = await self.client.get_values(row_range(self.name, row_number, self.width))
        return rows[0] if rows else []

    # ------------------------------------------------------------------
    # Writes
    async def write_header(self) -> None:
        await self.client.update_values(f"{self.name}!A1", [self.layout.headers])

    async def append_row(self, cells: list[Any]) -> None:
        await self.client.append_values(self.full_range, [cells])

    async def write_row(self, row_number: int, cells: list[Any]) -> None:
        await self.client.update_values(row_range(self.name, row_number, self.width), [cells])

    def normalize(self, row: Row) -> list[str]:
        """Pad or cut ``row`` to the layout width as strings, for comparisons."""
        cells = ["" if c is None else str(c) for c in row[: self.width]]
        return cells + [""] * (self.width - len(cells))


class IdAllocator:
    """Hands out ``max(existing id) + 1`` for a keyed sheet.

    Deleted rows keep their id negated in the key column and still count
    towards the maximum, so an id is never handed out twice. Blank and
    non-numeric cells are skipped. Callers must hold the sheet's lock
    between :meth:`next_id` and the append for the id to be unique.
    """

    def __init__(self, sheet: SheetHandle) -> None:
        self.sheet = sheet

    async def next_id(self) -> int:
        try:
            values = await self.sheet.read_column(0)
        except Exception:
            log.exception("Error getting next ID for %s", self.sheet.name)
            raise
        ids = [parse_int(row[0]) if row else None for row in values[1:]]
        valid = [abs(i) for i in ids if i]
        return max(valid, default=0) + 1
