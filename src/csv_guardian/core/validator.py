from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..settings import get_settings
from .rules import Custom, MaxLength, MinLength, Pattern, Predicate, Range, Required, ValidationRule
from .values import CellValue, Column, CsvData, DataRow, RowBatch, to_python

logger = logging.getLogger(__name__)

RuleSet = Mapping[str, Tuple[ValidationRule, ...]]


@dataclass(frozen=True)
class ValidationError:
    """One failed rule for one cell."""

    row_number: int
    column_name: str
    value: CellValue
    rule: ValidationRule
    message: str

    def to_dict(self) -> Dict[str, Any]:
        raw = to_python(self.value)
        return {
            "row": self.row_number,
            "column": self.column_name,
            "value": None if raw is None else str(raw),
            "rule": self.rule.name,
            "message": self.message,
        }


@dataclass
class ValidationResult:
    """Validation outcome; ``valid_rows`` and ``invalid_rows`` partition the input."""

    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    valid_rows: List[DataRow] = field(default_factory=list)
    invalid_rows: List[DataRow] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        if not self.is_valid:
            raise DataValidationError(self)

    def errors_by_row(self) -> Dict[int, List[ValidationError]]:
        grouped: Dict[int, List[ValidationError]] = {}
        for error in self.errors:
            grouped.setdefault(error.row_number, []).append(error)
        return grouped

    def errors_by_column(self) -> Counter[str]:
        return Counter(error.column_name for error in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "error_count": len(self.errors),
            "valid_rows": len(self.valid_rows),
            "invalid_rows": len(self.invalid_rows),
            "errors": [error.to_dict() for error in self.errors],
        }


class DataValidationError(Exception):
    """Raised by ``ValidationResult.raise_for_errors`` when rows failed."""

    def __init__(self, result: ValidationResult):
        super().__init__(f"Validation failed: {len(result.errors)} errors in {len(result.invalid_rows)} rows")
        self.result = result


def validate_cell(
    rule: ValidationRule,
    column_name: str,
    row_number: int,
    value: CellValue,
) -> Optional[ValidationError]:
    message = rule.evaluate(value)
    if message is None:
        return None
    return ValidationError(row_number, column_name, value, rule, message)


def validate_row(rules: RuleSet, columns: Sequence[Column], row: DataRow) -> List[ValidationError]:
    """Evaluate every rule for every cell of ``row``; no short-circuit."""
    errors: List[ValidationError] = []
    for column in columns:
        column_rules = rules.get(column.name, ())
        if not column_rules:
            continue
        value = row.value_at(column.index)
        for rule in column_rules:
            error = validate_cell(rule, column.name, row.row_number, value)
            if error is not None:
                errors.append(error)
    return errors


def validate_rows(rules: RuleSet, columns: Sequence[Column], rows: Iterable[DataRow]) -> ValidationResult:
    errors: List[ValidationError] = []
    valid_rows: List[DataRow] = []
    invalid_rows: List[DataRow] = []
    for row in rows:
        row_errors = validate_row(rules, columns, row)
        if row_errors:
            errors.extend(row_errors)
            invalid_rows.append(row)
        else:
            valid_rows.append(row)
    return ValidationResult(not errors, errors, valid_rows, invalid_rows)


def validate_data(rules: RuleSet, csv_data: CsvData) -> ValidationResult:
    """Validate every row of ``csv_data`` and partition rows by outcome."""
    _warn_unknown_columns(rules, csv_data.headers)
    result = validate_rows(rules, csv_data.headers, csv_data.rows)
    logger.info(
        f"Validated {len(csv_data.rows)} rows of {csv_data.file_name}: "
        f"{len(result.invalid_rows)} invalid, {len(result.errors)} errors"
    )
    return result


def _warn_unknown_columns(rules: RuleSet, columns: Sequence[Column]) -> None:
    known = {column.name for column in columns}
    for name in rules:
        if name not in known:
            logger.warning(f"Rules defined for unknown column '{name}' are never evaluated")


class RuleSetBuilder:
    """Fluent API for building an immutable column-name to rules mapping."""

    def __init__(self) -> None:
        self._rules: Dict[str, List[ValidationRule]] = {}

    def add_rule(self, column: str, rule: ValidationRule) -> "RuleSetBuilder":
        self._rules.setdefault(column, []).append(rule)
        return self

    def required(self, column: str) -> "RuleSetBuilder":
        return self.add_rule(column, Required())

    def length(self, column: str, *, min_length: int | None = None, max_length: int | None = None) -> "RuleSetBuilder":
        if min_length is not None:
            self.add_rule(column, MinLength(min_length))
        if max_length is not None:
            self.add_rule(column, MaxLength(max_length))
        return self

    def range(self, column: str, minimum: Decimal | int | float | str, maximum: Decimal | int | float | str) -> "RuleSetBuilder":
        return self.add_rule(column, Range(Decimal(str(minimum)), Decimal(str(maximum))))

    def pattern(self, column: str, regex: str) -> "RuleSetBuilder":
        return self.add_rule(column, Pattern(regex))

    def custom(
        self,
        column: str,
        predicate: Predicate,
        *,
        label: str = "custom",
        error_message: str | None = None,
    ) -> "RuleSetBuilder":
        return self.add_rule(column, Custom(predicate, label, error_message))

    def from_columns(self, columns: Iterable[Column]) -> "RuleSetBuilder":
        """Add ``Required`` for every column flagged ``is_required``."""
        for column in columns:
            if column.is_required:
                self.required(column.name)
        return self

    def build(self) -> RuleSet:
        return MappingProxyType({name: tuple(rules) for name, rules in self._rules.items()})


@dataclass
class ValidationCollector:
    """Streaming consumer that validates each batch as it arrives.

    Keeps running counts, a bounded sample of errors and the most frequent
    messages; rows themselves are not retained.
    """

    rules: RuleSet
    max_errors_sample: int = field(default_factory=lambda: get_settings().max_errors_sample)
    total_rows: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    error_count: int = 0
    batches_processed: int = 0
    errors_sample: List[ValidationError] = field(default_factory=list)
    common_errors: Counter[str] = field(default_factory=Counter)
    processing_time: float = 0.0

    def __call__(self, batch: RowBatch) -> None:
        start_time = time.perf_counter()
        result = validate_rows(self.rules, batch.columns, batch.rows)
        self.total_rows += len(batch)
        self.valid_rows += len(result.valid_rows)
        self.invalid_rows += len(result.invalid_rows)
        self.error_count += len(result.errors)
        self.batches_processed += 1
        for error in result.errors:
            self.common_errors[f"{error.column_name}: {error.rule.name}"] += 1
            if len(self.errors_sample) < self.max_errors_sample:
                self.errors_sample.append(error)
        self.processing_time += time.perf_counter() - start_time

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    @property
    def error_rate(self) -> float:
        return self.invalid_rows / self.total_rows if self.total_rows else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "invalid_rows": self.invalid_rows,
            "error_count": self.error_count,
            "error_rate": round(self.error_rate, 4),
            "common_errors": dict(self.common_errors.most_common(10)),
            "batches_processed": self.batches_processed,
            "processing_time": round(self.processing_time, 3),
        }
