"""Column statistics for csv_guardian."""

from .statistics import (
    ColumnStatistics,
    DataSummary,
    StatisticType,
    StatisticsCollector,
    calculate_column_statistics,
    compute_numeric_statistics,
    generate_data_summary,
)

__all__ = [
    "ColumnStatistics",
    "DataSummary",
    "StatisticType",
    "StatisticsCollector",
    "calculate_column_statistics",
    "compute_numeric_statistics",
    "generate_data_summary",
]
