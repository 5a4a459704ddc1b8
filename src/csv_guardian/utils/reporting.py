"""Console rendering and tabular views of validation and summary results."""

from __future__ import annotations

from collections import Counter

import pandas as pd
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..core.validator import ValidationResult
from ..profiling.statistics import DataSummary, StatisticType


class SummaryReporter:
    """Render a :class:`ValidationResult` and/or :class:`DataSummary` with rich."""

    def __init__(self, validation: ValidationResult | None = None, summary: DataSummary | None = None) -> None:
        """
        Initialize reporter.

        Args:
            validation: Result of ``validate_data``, if validation was run
            summary: Result of ``generate_data_summary``, if statistics were computed
        """
        if validation is None and summary is None:
            raise ValueError("SummaryReporter needs a validation result, a summary, or both")
        self.validation = validation
        self.summary = summary

    def to_console(self, verbose: bool = False, console: Console | None = None) -> None:
        """
        Print formatted tables to the console.

        Args:
            verbose: Also list individual errors (first 20)
            console: Optional custom Console instance
        """
        console = console or Console()
        if self.validation is not None:
            self._print_validation(console, self.validation, verbose)
        if self.summary is not None:
            self._print_summary(console, self.summary)

    def errors_to_dataframe(self) -> pd.DataFrame:
        """
        Convert validation errors to a DataFrame.

        Returns:
            DataFrame with columns: row, column, value, rule, message
        """
        columns = ["row", "column", "value", "rule", "message"]
        if self.validation is None or not self.validation.errors:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame([error.to_dict() for error in self.validation.errors], columns=columns)

    def statistics_to_dataframe(self) -> pd.DataFrame:
        if self.summary is None:
            return pd.DataFrame()
        return self.summary.to_frame()

    def _print_validation(self, console: Console, result: ValidationResult, verbose: bool) -> None:
        table = Table(title="Validation Summary", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan", width=20)
        table.add_column("Value", style="white", width=30)
        status = Text("VALID", style="bold green") if result.is_valid else Text("INVALID", style="bold red")
        table.add_row("Status", status)
        table.add_row("Valid Rows", str(len(result.valid_rows)))
        table.add_row("Invalid Rows", str(len(result.invalid_rows)))
        table.add_row("Total Errors", str(len(result.errors)))
        console.print(table)
        console.print()

        if not result.errors:
            return

        by_column: Counter[str] = result.errors_by_column()
        column_table = Table(title="Errors by Column", show_header=True)
        column_table.add_column("Column", style="yellow")
        column_table.add_column("Count", style="red", justify="right")
        column_table.add_column("Percentage", style="red", justify="right")
        for column, count in by_column.most_common(10):
            pct = (count / len(result.errors)) * 100
            column_table.add_row(column, str(count), f"{pct:.1f}%")
        console.print(column_table)
        console.print()

        if verbose:
            detail = Table(title="Errors", show_header=True)
            detail.add_column("Row", justify="right")
            detail.add_column("Column", style="yellow")
            detail.add_column("Message", style="red", overflow="fold")
            for error in result.errors[:20]:
                detail.add_row(str(error.row_number), error.column_name, error.message)
            console.print(detail)
            console.print()

    def _print_summary(self, console: Console, summary: DataSummary) -> None:
        table = Table(
            title=f"Column Statistics ({summary.total_rows} rows, {summary.processing_time:.3f}s)",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Column", style="cyan")
        shown = (StatisticType.COUNT, StatisticType.AVERAGE, StatisticType.MEDIAN,
                 StatisticType.MIN, StatisticType.MAX, StatisticType.STANDARD_DEVIATION)
        for statistic in shown:
            table.add_column(statistic.value.replace("_", " ").title(), justify="right")
        table.add_column("Unique", justify="right")
        table.add_column("Nulls", justify="right")

        for stats in summary.column_statistics:
            cells = []
            for statistic in shown:
                value = stats.get(statistic)
                cells.append("-" if value is None else f"{float(value):.4g}")
            table.add_row(stats.column_name, *cells, str(stats.unique_values), str(stats.null_count))
        console.print(table)
        console.print()
