from __future__ import annotations

import math
from decimal import Decimal
from typing import Sequence

import pytest

from csv_guardian import (
    EMPTY,
    BatchReader,
    Boolean,
    CellValue,
    CsvOptions,
    DataRow,
    Number,
    RuleSetBuilder,
    StatisticsCollector,
    StatisticType,
    Text,
    calculate_column_statistics,
    generate_data_summary,
    validate_data,
)


def _rows(values: Sequence[CellValue]) -> list[DataRow]:
    return [DataRow(i, (value,)) for i, value in enumerate(values, start=1)]


def _numbers(*values: int | str) -> list[DataRow]:
    return _rows([Number(Decimal(str(v))) for v in values])


class TestCalculateColumnStatistics:
    def test_null_accounting(self) -> None:
        rows = _rows([Number(Decimal(10)), Text("x"), EMPTY, Number(Decimal(20))])

        stats = calculate_column_statistics(0, "amount", rows)

        assert stats.column_name == "amount"
        assert stats.statistics[StatisticType.COUNT] == 2
        assert stats.statistics[StatisticType.SUM] == 30
        assert stats.statistics[StatisticType.AVERAGE] == 15
        assert stats.statistics[StatisticType.MIN] == 10
        assert stats.statistics[StatisticType.MAX] == 20
        assert stats.statistics[StatisticType.STANDARD_DEVIATION] == 5
        assert stats.null_count == 2
        assert stats.missing_count == 1
        assert stats.unique_values == 4

    def test_median_even(self) -> None:
        stats = calculate_column_statistics(0, "n", _numbers(4, 1, 3, 2))
        assert stats.get(StatisticType.MEDIAN) == Decimal("2.5")

    def test_median_odd(self) -> None:
        stats = calculate_column_statistics(0, "n", _numbers(3, 1, 2))
        assert stats.get(StatisticType.MEDIAN) == 2

    def test_population_standard_deviation(self) -> None:
        stats = calculate_column_statistics(0, "n", _numbers(2, 4, 4, 4, 5, 5, 7, 9))

        assert stats.get(StatisticType.AVERAGE) == 5
        assert stats.get(StatisticType.STANDARD_DEVIATION) == 2

    def test_single_value_has_zero_deviation(self) -> None:
        stats = calculate_column_statistics(0, "n", _numbers("7.25"))

        assert stats.get(StatisticType.STANDARD_DEVIATION) == 0
        assert stats.get(StatisticType.MEDIAN) == Decimal("7.25")

    def test_decimal_precision_is_kept(self) -> None:
        stats = calculate_column_statistics(0, "price", _numbers("0.1", "0.2"))

        assert stats.get(StatisticType.SUM) == Decimal("0.3")
        assert stats.get(StatisticType.AVERAGE) == Decimal("0.15")

    def test_non_numeric_column_has_no_statistics(self) -> None:
        rows = _rows([Text("a"), Text("a"), EMPTY, Boolean(True)])

        stats = calculate_column_statistics(0, "tag", rows)

        assert stats.statistics == {}
        assert stats.get(StatisticType.COUNT) is None
        assert stats.unique_values == 3
        assert stats.null_count == 4

    def test_no_rows(self) -> None:
        stats = calculate_column_statistics(0, "n", [])

        assert stats.statistics == {}
        assert (stats.unique_values, stats.null_count) == (0, 0)


class TestGenerateDataSummary:
    def test_summary_reports_all_rows_valid_without_validation(self, orders_data) -> None:
        summary = generate_data_summary(orders_data)

        assert summary.total_rows == 5
        assert summary.valid_rows == 5
        assert summary.invalid_rows == 0
        assert [s.column_name for s in summary.column_statistics] == orders_data.column_names
        assert summary.processing_time >= 0

    def test_summary_uses_explicit_validation_result(self, orders_data) -> None:
        validation = validate_data(RuleSetBuilder().required("customer").build(), orders_data)

        summary = generate_data_summary(orders_data, validation)

        assert (summary.valid_rows, summary.invalid_rows) == (4, 1)

    def test_amount_column(self, orders_data) -> None:
        amount = generate_data_summary(orders_data).for_column("amount")

        assert amount.get(StatisticType.COUNT) == 5
        assert amount.get(StatisticType.SUM) == Decimal("397.49")
        assert amount.get(StatisticType.MIN) == -5
        assert amount.get(StatisticType.MEDIAN) == 42

    def test_to_frame(self, orders_data) -> None:
        frame = generate_data_summary(orders_data).to_frame()

        assert list(frame.index) == orders_data.column_names
        assert frame.loc["amount", "count"] == 5
        assert math.isnan(frame.loc["customer", "average"])
        assert frame.loc["customer", "missing_count"] == 1

    def test_for_column_unknown(self, orders_data) -> None:
        with pytest.raises(KeyError):
            generate_data_summary(orders_data).for_column("nope")


class TestStatisticsCollector:
    def test_streamed_summary_matches_whole_file(self, orders_text: str, orders_data) -> None:
        collector = StatisticsCollector()

        result = BatchReader(CsvOptions(batch_size=2)).stream_lines_sync(orders_text.splitlines(), collector)
        streamed = collector.summary()
        expected = generate_data_summary(orders_data)

        assert result.success
        assert collector.batches_processed == 3
        assert streamed.total_rows == expected.total_rows
        for got, want in zip(streamed.column_statistics, expected.column_statistics):
            assert got.column_name == want.column_name
            assert got.statistics == want.statistics
            assert got.unique_values == want.unique_values
            assert got.null_count == want.null_count
            assert got.missing_count == want.missing_count

    def test_add_rows_and_explicit_counts(self, people_data) -> None:
        collector = StatisticsCollector()
        collector.add_rows(people_data.headers, people_data.rows)

        summary = collector.summary(valid_rows=2, invalid_rows=1)

        assert summary.total_rows == 3
        assert (summary.valid_rows, summary.invalid_rows) == (2, 1)
        assert summary.for_column("age").get(StatisticType.COUNT) == 1
        assert summary.for_column("age").null_count == 2
