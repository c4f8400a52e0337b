"""Conversion between records and spreadsheet rows.

Each sheet declares an ordered tuple of :class:`Column` objects; the
:class:`RowCodec` walks that tuple in both directions. Column order is
load-bearing: reordering the declaration without migrating the sheet
silently shifts every value into the wrong field.

Decoding is permissive (a malformed cell never raises) but not silent: the
returned :class:`Decoded` names every field that fell back to a default so
callers can log data-quality problems.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from datetime import UTC
from enum import Enum
from typing import Any, Generic, TypeVar

from ..exceptions import InvalidInputError
from .models import ProjectStatus, Record

R = TypeVar("R", bound=Record)

TIMESTAMP_FALLBACKS = ("none", "now")


class Kind(Enum):
    KEY = "key"
    TEXT = "text"
    OPTIONAL_TEXT = "optional_text"
    INTEGER = "integer"
    OPTIONAL_INTEGER = "optional_integer"
    TIMESTAMP = "timestamp"
    STATUS = "status"


@dataclass(frozen=True)
class Column:
    header: str
    field: str
    kind: Kind = Kind.TEXT


@dataclass(frozen=True)
class Decoded(Generic[R]):
    """Outcome of decoding one row.

    ``defaulted`` lists the fields whose cell was malformed, or blank where a
    value was required, so that a fallback value was used instead.
    """

    record: R
    defaulted: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.defaulted


def cell_text(cell: Any) -> str:
    return "" if cell is None else str(cell)


def is_blank(row: list[Any]) -> bool:
    return all(not cell_text(c).strip() for c in row)


def parse_int(cell: Any) -> int | None:
    """Parse a cell as an integer; ``None`` for blank or non-numeric cells."""
    text = cell_text(cell).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_timestamp(text: str) -> datetime.datetime:
    value = datetime.datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


class RowCodec(Generic[R]):
    """Map records of ``model`` onto rows laid out as ``columns``."""

    def __init__(
        self,
        model: type[R],
        columns: tuple[Column, ...],
        *,
        timestamp_fallback: str = "none",
    ) -> None:
        if timestamp_fallback not in TIMESTAMP_FALLBACKS:
            raise InvalidInputError(f"Unknown timestamp fallback {timestamp_fallback!r}")
        self.model = model
        self.columns = columns
        self.timestamp_fallback = timestamp_fallback

    # ------------------------------------------------------------------
    # Decoding
    def _fallback_timestamp(self) -> datetime.datetime | None:
        if self.timestamp_fallback == "now":
            return datetime.datetime.now(tz=UTC)
        return None

    def _decode_cell(self, kind: Kind, cell: Any) -> tuple[Any, bool]:
        """Return ``(value, used_default)`` for one cell."""
        raw = cell_text(cell)
        text = raw.strip()

        if kind is Kind.TEXT:
            return raw, False
        if kind is Kind.OPTIONAL_TEXT:
            return (raw if text else None), False
        if kind is Kind.STATUS:
            try:
                return ProjectStatus(text), False
            except ValueError:
                return ProjectStatus.AVAILABLE, True
        if kind is Kind.TIMESTAMP:
            if text:
                try:
                    return parse_timestamp(text), False
                except ValueError:
                    pass
            return self._fallback_timestamp(), True

        number = parse_int(text)
        if kind is Kind.OPTIONAL_INTEGER:
            return number, number is None and bool(text)
        # KEY / INTEGER
        if number is None:
            # a blank key just means a blank row; not a data-quality problem
            return 0, bool(text) or kind is Kind.INTEGER
        return number, False

    def decode(self, row: list[Any]) -> Decoded[R]:
        values: dict[str, Any] = {}
        defaulted: list[str] = []
        for index, column in enumerate(self.columns):
            cell = row[index] if index < len(row) else ""
            value, used_default = self._decode_cell(column.kind, cell)
            values[column.field] = value
            if used_default:
                defaulted.append(column.field)
        return Decoded(self.model.model_validate(values), tuple(defaulted))

    # ------------------------------------------------------------------
    # Encoding
    @staticmethod
    def _encode_cell(value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, datetime.datetime):
            return value.isoformat()
        return value

    def encode(self, record: R) -> list[Any]:
        return [self._encode_cell(getattr(record, c.field)) for c in self.columns]

    def dropped_fields(self, record: R) -> tuple[str, ...]:
        """Fields holding non-default values that no column can persist."""
        persisted = {c.field for c in self.columns} | {"id"}
        dropped = []
        for name, info in type(record).model_fields.items():
            if name in persisted:
                continue
            if getattr(record, name) != info.get_default(call_default_factory=True):
                dropped.append(name)
        return tuple(dropped)
