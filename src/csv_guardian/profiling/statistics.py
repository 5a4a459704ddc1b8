from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import numpy as np
import pandas as pd

from ..core.validator import ValidationResult
from ..core.values import CellValue, Column, CsvData, DataRow, Empty, Number, RowBatch

logger = logging.getLogger(__name__)


class StatisticType(str, Enum):
    COUNT = "count"
    SUM = "sum"
    AVERAGE = "average"
    MIN = "min"
    MAX = "max"
    MEDIAN = "median"
    STANDARD_DEVIATION = "standard_deviation"


@dataclass
class ColumnStatistics:
    """Aggregates for one column.

    ``statistics`` only holds keys that could be computed; it is empty for a
    column without any ``Number`` cells. ``null_count`` counts every cell that
    is not a ``Number`` (text, dates and booleans included), while
    ``missing_count`` counts ``Empty`` cells only.
    """

    column_name: str
    statistics: Dict[StatisticType, Decimal] = field(default_factory=dict)
    unique_values: int = 0
    null_count: int = 0
    missing_count: int = 0

    def get(self, statistic: StatisticType) -> Optional[Decimal]:
        return self.statistics.get(statistic)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column_name": self.column_name,
            "statistics": {key.value: float(value) for key, value in self.statistics.items()},
            "unique_values": self.unique_values,
            "null_count": self.null_count,
            "missing_count": self.missing_count,
        }


@dataclass
class DataSummary:
    """Per-column statistics for a dataset plus row counts."""

    total_rows: int
    valid_rows: int
    invalid_rows: int
    column_statistics: List[ColumnStatistics]
    processing_time: float = 0.0

    def for_column(self, name: str) -> ColumnStatistics:
        for stats in self.column_statistics:
            if stats.column_name == name:
                return stats
        raise KeyError(name)

    def to_frame(self) -> pd.DataFrame:
        """One row per column, one column per statistic (NaN where not computable)."""
        records = []
        for stats in self.column_statistics:
            record: Dict[str, Any] = {"column": stats.column_name}
            for statistic in StatisticType:
                value = stats.statistics.get(statistic)
                record[statistic.value] = float(value) if value is not None else np.nan
            record["unique_values"] = stats.unique_values
            record["null_count"] = stats.null_count
            record["missing_count"] = stats.missing_count
            records.append(record)
        columns = ["column", *(s.value for s in StatisticType), "unique_values", "null_count", "missing_count"]
        return pd.DataFrame(records, columns=columns).set_index("column")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "invalid_rows": self.invalid_rows,
            "column_statistics": [stats.to_dict() for stats in self.column_statistics],
            "processing_time": round(self.processing_time, 3),
        }


def compute_numeric_statistics(values: Sequence[Decimal]) -> Dict[StatisticType, Decimal]:
    """Count, sum, average, min, max, median and population standard deviation."""
    if not values:
        return {}
    count = len(values)
    total = sum(values, Decimal(0))
    average = total / count

    ordered = sorted(values)
    middle = count // 2
    if count % 2 == 0:
        median = (ordered[middle - 1] + ordered[middle]) / 2
    else:
        median = ordered[middle]

    # Population variant (ddof=0); the square root is taken in floating point.
    deviation = float(np.std(np.asarray(values, dtype=float), ddof=0))

    return {
        StatisticType.COUNT: Decimal(count),
        StatisticType.SUM: total,
        StatisticType.AVERAGE: average,
        StatisticType.MIN: ordered[0],
        StatisticType.MAX: ordered[-1],
        StatisticType.MEDIAN: median,
        StatisticType.STANDARD_DEVIATION: Decimal(repr(deviation)),
    }


def calculate_column_statistics(column_index: int, column_name: str, rows: Sequence[DataRow]) -> ColumnStatistics:
    cells = [row.value_at(column_index) for row in rows]
    numbers = [cell.value for cell in cells if isinstance(cell, Number)]
    return ColumnStatistics(
        column_name=column_name,
        statistics=compute_numeric_statistics(numbers),
        unique_values=len(set(cells)),
        null_count=len(cells) - len(numbers),
        missing_count=sum(1 for cell in cells if isinstance(cell, Empty)),
    )


def generate_data_summary(csv_data: CsvData, validation: ValidationResult | None = None) -> DataSummary:
    """Compute statistics for every column of ``csv_data``.

    Validation is a separate pass: without an explicit ``validation`` result
    every row is reported as valid.
    """
    start_time = time.perf_counter()
    column_statistics = [
        calculate_column_statistics(column.index, column.name, csv_data.rows) for column in csv_data.headers
    ]
    total_rows = len(csv_data.rows)
    if validation is not None:
        valid_rows, invalid_rows = len(validation.valid_rows), len(validation.invalid_rows)
    else:
        valid_rows, invalid_rows = total_rows, 0
    elapsed = time.perf_counter() - start_time
    logger.info(f"Summarised {len(column_statistics)} columns over {total_rows} rows in {elapsed:.3f}s")
    return DataSummary(
        total_rows=total_rows,
        valid_rows=valid_rows,
        invalid_rows=invalid_rows,
        column_statistics=column_statistics,
        processing_time=elapsed,
    )


@dataclass
class _ColumnAccumulator:
    name: str
    index: int
    numbers: List[Decimal] = field(default_factory=list)
    distinct: Set[CellValue] = field(default_factory=set)
    missing: int = 0
    seen: int = 0

    def add(self, cell: CellValue) -> None:
        self.seen += 1
        self.distinct.add(cell)
        if isinstance(cell, Number):
            self.numbers.append(cell.value)
        elif isinstance(cell, Empty):
            self.missing += 1

    def finish(self) -> ColumnStatistics:
        return ColumnStatistics(
            column_name=self.name,
            statistics=compute_numeric_statistics(self.numbers),
            unique_values=len(self.distinct),
            null_count=self.seen - len(self.numbers),
            missing_count=self.missing,
        )


class StatisticsCollector:
    """Streaming consumer that builds a :class:`DataSummary` batch by batch.

    Rows are not retained, but median and standard deviation need every
    numeric value and ``unique_values`` needs every distinct cell, so memory
    grows with the numeric cell count and the number of distinct values per
    column. Results are exact; no approximate quantiles are used.
    """

    def __init__(self) -> None:
        self._columns: List[_ColumnAccumulator] = []
        self.total_rows = 0
        self.batches_processed = 0
        self._elapsed = 0.0

    def __call__(self, batch: RowBatch) -> None:
        start_time = time.perf_counter()
        if not self._columns:
            self._columns = [_ColumnAccumulator(column.name, column.index) for column in batch.columns]
        for row in batch.rows:
            for accumulator in self._columns:
                accumulator.add(row.value_at(accumulator.index))
        self.total_rows += len(batch)
        self.batches_processed += 1
        self._elapsed += time.perf_counter() - start_time

    def add_rows(self, columns: Iterable[Column], rows: Sequence[DataRow]) -> None:
        self(RowBatch(self.batches_processed + 1, tuple(columns), tuple(rows)))

    def summary(self, *, valid_rows: int | None = None, invalid_rows: int = 0) -> DataSummary:
        start_time = time.perf_counter()
        column_statistics = [accumulator.finish() for accumulator in self._columns]
        elapsed = self._elapsed + time.perf_counter() - start_time
        return DataSummary(
            total_rows=self.total_rows,
            valid_rows=self.total_rows if valid_rows is None else valid_rows,
            invalid_rows=invalid_rows,
            column_statistics=column_statistics,
            processing_time=elapsed,
        )
