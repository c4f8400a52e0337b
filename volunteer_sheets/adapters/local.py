"""Spreadsheet client backed by a local JSON file.

Behaves like the Google client closely enough for the stores: values come
back as strings, trailing empty cells and rows are trimmed and appends land
after the last row that holds data. Useful for development without a
service account and for the test-suite.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from ..core.ranges import A1Range, parse_range
from ..exceptions import SheetsAPIError
from .base import Row, SheetsClient


def _as_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def _trim(cells: list[str]) -> list[str]:
    while cells and cells[-1] == "":
        cells.pop()
    return cells


class LocalSheetsClient(SheetsClient):
    """Persist a whole spreadsheet to a single JSON file.

    The file is rewritten atomically on every mutation, which keeps the
    implementation simple while surviving process restarts.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._sheets: dict[str, dict[str, Any]] = {}
        if self.path.exists():
            self._load()

    # ------------------------------------------------------------------
    # Persistence helpers
    def _load(self) -> None:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self._sheets = {
            title: {"sheetId": int(sheet["sheetId"]), "rows": list(sheet.get("rows", []))}
            for title, sheet in data.get("sheets", {}).items()
        }

    def _save(self) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"sheets": self._sheets}, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    def _rows_for(self, range_: str) -> tuple[A1Range, list[list[Any]]]:
        try:
            parsed = parse_range(range_)
        except ValueError as exc:
            raise SheetsAPIError(str(exc)) from exc
        sheet = self._sheets.get(parsed.sheet)
        if sheet is None:
            raise SheetsAPIError(f"Unable to parse range: {range_}")
        return parsed, sheet["rows"]

    @staticmethod
    def _write(rows: list[list[Any]], first_row: int, first_column: int, values: list[Row]) -> None:
        for offset, values_row in enumerate(values):
            index = first_row - 1 + offset
            while len(rows) <= index:
                rows.append([])
            row = rows[index]
            end = first_column + len(values_row)
            if len(row) < end:
                row.extend([""] * (end - len(row)))
            for col, value in enumerate(values_row, start=first_column):
                row[col] = "" if value is None else value

    # ------------------------------------------------------------------
    async def get_spreadsheet(self) -> dict[str, Any]:
        return {
            "sheets": [
                {"properties": {"sheetId": sheet["sheetId"], "title": title, "index": i}}
                for i, (title, sheet) in enumerate(self._sheets.items())
            ]
        }

    async def get_values(self, range_: str) -> list[Row]:
        parsed, rows = self._rows_for(range_)
        start = (parsed.first_row or 1) - 1
        stop = parsed.last_row if parsed.last_row is not None else len(rows)
        values = [
            _trim([_as_cell(c) for c in row[parsed.first_column : parsed.last_column + 1]])
            for row in rows[start:stop]
        ]
        while values and not values[-1]:
            values.pop()
        return values

    async def update_values(self, range_: str, values: list[Row]) -> None:
        parsed, rows = self._rows_for(range_)
        self._write(rows, parsed.first_row or 1, parsed.first_column, values)
        self._save()

    async def append_values(self, range_: str, values: list[Row]) -> None:
        parsed, rows = self._rows_for(range_)
        last_with_data = 0
        for number, row in enumerate(rows, start=1):
            cells = row[parsed.first_column : parsed.last_column + 1]
            if any(_as_cell(c) for c in cells):
                last_with_data = number
        self._write(rows, last_with_data + 1, parsed.first_column, values)
        self._save()

    async def batch_update(self, requests: list[dict[str, Any]]) -> dict[str, Any]:
        replies: list[dict[str, Any]] = []
        for request in requests:
            if "addSheet" not in request:
                raise SheetsAPIError(f"Unsupported batch request: {sorted(request)}")
            title = request["addSheet"]["properties"]["title"]
            if title in self._sheets:
                raise SheetsAPIError(f"A sheet with the name {title!r} already exists")
            sheet_id = max((s["sheetId"] for s in self._sheets.values()), default=0) + 1
            self._sheets[title] = {"sheetId": sheet_id, "rows": []}
            replies.append({"addSheet": {"properties": {"sheetId": sheet_id, "title": title}}})
        self._save()
        return {"replies": replies}
