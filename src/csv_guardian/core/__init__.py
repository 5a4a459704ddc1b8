"""Core ingestion and validation primitives for csv_guardian."""

from .options import CsvOptions
from .reader import BatchReader, ReadResult, StreamResult, read_csv, read_csv_text, stream_csv, stream_csv_sync
from .tokenizer import tokenize_line
from .validator import (
    RuleSetBuilder,
    ValidationCollector,
    ValidationError,
    ValidationResult,
    validate_cell,
    validate_data,
    validate_row,
)

__all__ = [
    "BatchReader",
    "CsvOptions",
    "ReadResult",
    "RuleSetBuilder",
    "StreamResult",
    "ValidationCollector",
    "ValidationError",
    "ValidationResult",
    "read_csv",
    "read_csv_text",
    "stream_csv",
    "stream_csv_sync",
    "tokenize_line",
    "validate_cell",
    "validate_data",
    "validate_row",
]
