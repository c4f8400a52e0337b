"""Base client interface for spreadsheet backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Row = list[Any]


class SheetsClient(ABC):
    """Abstract client for one spreadsheet.

    The method set mirrors the Google Sheets v4 API so that the Google and
    local implementations are interchangeable for the stores.
    """

    @abstractmethod
    async def get_spreadsheet(self) -> dict[str, Any]:
        """Return spreadsheet metadata with a ``sheets`` list of ``properties``."""

    @abstractmethod
    async def get_values(self, range_: str) -> list[Row]:
        """Return the rows in ``range_``, trailing empty rows and cells trimmed."""

    @abstractmethod
    async def update_values(self, range_: str, values: list[Row]) -> None:
        """Overwrite cells starting at the top-left of ``range_``."""

    @abstractmethod
    async def append_values(self, range_: str, values: list[Row]) -> None:
        """Append ``values`` after the last row with data in ``range_``."""

    @abstractmethod
    async def batch_update(self, requests: list[dict[str, Any]]) -> dict[str, Any]:
        """Apply structural ``requests`` such as ``addSheet``."""

    async def close(self) -> None:
        """Release any resources held by the client."""
