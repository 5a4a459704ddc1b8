"""Typed cell values and the tabular containers built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, Tuple, Union

import pandas as pd


class CellType(str, Enum):
    """Semantic type of a cell or column."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    EMPTY = "empty"


@dataclass(frozen=True)
class Text:
    value: str
    kind: ClassVar[CellType] = CellType.TEXT


@dataclass(frozen=True)
class Number:
    value: Decimal
    kind: ClassVar[CellType] = CellType.NUMBER


@dataclass(frozen=True)
class Date:
    value: datetime
    kind: ClassVar[CellType] = CellType.DATE


@dataclass(frozen=True)
class Boolean:
    value: bool
    kind: ClassVar[CellType] = CellType.BOOLEAN


@dataclass(frozen=True)
class Empty:
    """A missing or blank cell. Never equal to ``Text("")``."""

    kind: ClassVar[CellType] = CellType.EMPTY

    @property
    def value(self) -> None:
        return None


CellValue = Union[Text, Number, Date, Boolean, Empty]
EMPTY = Empty()


def to_python(cell: CellValue) -> Any:
    """Unwrap a cell into a plain Python value (``None`` for Empty)."""
    return cell.value


@dataclass(frozen=True)
class Column:
    """Column metadata, fixed once the header and first data row are read."""

    name: str
    index: int
    data_type: CellType = CellType.TEXT
    is_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "index": self.index,
            "data_type": self.data_type.value,
            "is_required": self.is_required,
        }


@dataclass(frozen=True)
class DataRow:
    """One data line; ``row_number`` counts data rows only, starting at 1."""

    row_number: int
    values: Tuple[CellValue, ...]

    def __getitem__(self, index: int) -> CellValue:
        return self.values[index]

    def __len__(self) -> int:
        return len(self.values)

    def value_at(self, index: int) -> CellValue:
        if 0 <= index < len(self.values):
            return self.values[index]
        return EMPTY


@dataclass(frozen=True)
class CsvData:
    """Result of a whole-file read: headers, typed rows and provenance."""

    headers: Tuple[Column, ...]
    rows: Tuple[DataRow, ...]
    file_name: str
    processed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.headers]

    def column(self, name: str) -> Column:
        for column in self.headers:
            if column.name == name:
                return column
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[DataRow]:
        return iter(self.rows)

    def to_frame(self) -> pd.DataFrame:
        """Unwrap the typed rows into a pandas DataFrame indexed by row number."""
        records = [[to_python(value) for value in row.values] for row in self.rows]
        frame = pd.DataFrame(records, columns=self.column_names)
        frame.index = pd.Index([row.row_number for row in self.rows], name="row_number")
        return frame

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "processed_at": self.processed_at.isoformat(),
            "headers": [column.to_dict() for column in self.headers],
            "row_count": len(self.rows),
        }


@dataclass(frozen=True)
class RowBatch:
    """An ordered slice of rows handed to a streaming consumer."""

    number: int
    columns: Tuple[Column, ...]
    rows: Tuple[DataRow, ...]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[DataRow]:
        return iter(self.rows)
