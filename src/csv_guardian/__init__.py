"""Public interface for the csv_guardian package."""

import logging

from .core.errors import (
    ConsumerError,
    EmptyInputError,
    IngestError,
    ProgressCallbackError,
    ReadCancelledError,
    SourceAccessError,
)
from .core.inference import infer_type, parse_cell_value
from .core.options import CsvOptions
from .core.reader import (
    BatchReader,
    ReadResult,
    StreamProgress,
    StreamResult,
    read_csv,
    read_csv_text,
    stream_csv,
    stream_csv_sync,
)
from .core.rules import Custom, MaxLength, MinLength, Pattern, Range, Required, ValidationRule
from .core.tokenizer import tokenize_line
from .core.validator import (
    DataValidationError,
    RuleSetBuilder,
    ValidationCollector,
    ValidationError,
    ValidationResult,
    validate_cell,
    validate_data,
    validate_row,
)
from .core.values import (
    EMPTY,
    Boolean,
    CellType,
    CellValue,
    Column,
    CsvData,
    DataRow,
    Date,
    Empty,
    Number,
    RowBatch,
    Text,
)
from .profiling import (
    ColumnStatistics,
    DataSummary,
    StatisticType,
    StatisticsCollector,
    calculate_column_statistics,
    generate_data_summary,
)
from .settings import GuardianSettings, get_settings, reset_settings
from .utils.reporting import SummaryReporter

logging.getLogger("csv_guardian").setLevel(get_settings().log_level.upper())

__all__ = [
    "BatchReader",
    "Boolean",
    "CellType",
    "CellValue",
    "Column",
    "ColumnStatistics",
    "ConsumerError",
    "CsvData",
    "CsvOptions",
    "Custom",
    "DataRow",
    "DataSummary",
    "DataValidationError",
    "Date",
    "EMPTY",
    "Empty",
    "EmptyInputError",
    "GuardianSettings",
    "IngestError",
    "MaxLength",
    "MinLength",
    "Number",
    "Pattern",
    "ProgressCallbackError",
    "Range",
    "ReadCancelledError",
    "ReadResult",
    "Required",
    "RowBatch",
    "RuleSetBuilder",
    "SourceAccessError",
    "StatisticType",
    "StatisticsCollector",
    "StreamProgress",
    "StreamResult",
    "SummaryReporter",
    "Text",
    "ValidationCollector",
    "ValidationError",
    "ValidationResult",
    "ValidationRule",
    "calculate_column_statistics",
    "generate_data_summary",
    "get_settings",
    "infer_type",
    "parse_cell_value",
    "read_csv",
    "read_csv_text",
    "reset_settings",
    "stream_csv",
    "stream_csv_sync",
    "tokenize_line",
    "validate_cell",
    "validate_data",
    "validate_row",
]

__version__ = "0.1.0"
