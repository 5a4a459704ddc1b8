from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from csv_guardian import (
    EMPTY,
    BatchReader,
    Boolean,
    Column,
    CsvOptions,
    Custom,
    DataRow,
    DataValidationError,
    MaxLength,
    MinLength,
    Number,
    Pattern,
    Range,
    Required,
    RuleSetBuilder,
    Text,
    ValidationCollector,
    read_csv_text,
    validate_cell,
    validate_data,
    validate_row,
)

EMAIL_REGEX = r"^[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}$"


class TestValidateCell:
    def test_required(self) -> None:
        error = validate_cell(Required(), "name", 4, EMPTY)

        assert error is not None
        assert (error.row_number, error.column_name, error.value) == (4, "name", EMPTY)
        assert error.rule == Required()
        assert validate_cell(Required(), "name", 4, Text("")) is None

    def test_length_rules_apply_to_text_only(self) -> None:
        assert validate_cell(MinLength(3), "c", 1, Text("ab")) is not None
        assert validate_cell(MinLength(3), "c", 1, Text("abc")) is None
        assert validate_cell(MaxLength(3), "c", 1, Text("abcd")) is not None
        assert validate_cell(MinLength(3), "c", 1, Number(Decimal(1))) is None
        assert validate_cell(MaxLength(0), "c", 1, EMPTY) is None

    def test_range_bounds_are_inclusive(self) -> None:
        rule = Range(Decimal(0), Decimal(120))

        assert validate_cell(rule, "age", 1, Number(Decimal(0))) is None
        assert validate_cell(rule, "age", 1, Number(Decimal(120))) is None
        assert validate_cell(rule, "age", 1, Number(Decimal("120.01"))) is not None
        assert validate_cell(rule, "age", 1, Number(Decimal(-1))) is not None

    def test_range_is_vacuous_for_other_variants(self) -> None:
        rule = Range(0, 120)

        for value in (Text("abc"), EMPTY, Boolean(True)):
            assert validate_cell(rule, "age", 1, value) is None

    def test_range_rejects_inverted_bounds(self) -> None:
        with pytest.raises(ValueError):
            Range(10, 1)

    def test_pattern_uses_search_semantics(self) -> None:
        assert validate_cell(Pattern("b"), "c", 1, Text("abc")) is None
        assert validate_cell(Pattern("^b"), "c", 1, Text("abc")) is not None
        assert validate_cell(Pattern(r"\d"), "c", 1, Number(Decimal(5))) is None

    def test_custom_predicate(self) -> None:
        is_even = Custom(lambda v: isinstance(v, Number) and v.value % 2 == 0, label="even")

        assert validate_cell(is_even, "n", 1, Number(Decimal(4))) is None
        error = validate_cell(is_even, "n", 1, Number(Decimal(3)))
        assert error is not None
        assert "even" in error.message

    def test_custom_predicate_that_raises_fails_the_rule(self) -> None:
        def broken(value):
            raise KeyError("lookup")

        error = validate_cell(Custom(broken, label="lookup"), "n", 1, Text("x"))

        assert error is not None
        assert "raised KeyError" in error.message


class TestValidateRow:
    def test_collects_every_error_for_a_cell(self) -> None:
        columns = [Column("code", 0)]
        rules = RuleSetBuilder().length("code", min_length=5).pattern("code", r"\d").build()

        errors = validate_row(rules, columns, DataRow(1, (Text("ab"),)))

        assert [error.rule.name for error in errors] == ["min_length", "pattern"]

    def test_columns_without_rules_are_skipped(self) -> None:
        columns = [Column("a", 0), Column("b", 1)]
        rules = RuleSetBuilder().required("b").build()

        assert validate_row(rules, columns, DataRow(1, (EMPTY, Text("x")))) == []


class TestValidateData:
    def test_people_scenario_passes_range_vacuously(self, people_data) -> None:
        rules = RuleSetBuilder().range("age", 0, 120).build()

        result = validate_data(rules, people_data)

        assert result.is_valid
        assert result.errors == []
        assert [row.row_number for row in result.valid_rows] == [1, 2, 3]
        assert result.invalid_rows == []

    def test_required_makes_blank_age_invalid(self, people_data) -> None:
        rules = RuleSetBuilder().required("age").range("age", 0, 120).build()

        result = validate_data(rules, people_data)

        assert not result.is_valid
        assert len(result.errors) == 1
        assert result.errors[0].row_number == 2
        assert [row.row_number for row in result.invalid_rows] == [2]
        assert [row.row_number for row in result.valid_rows] == [1, 3]

    def test_partition_preserves_order(self, orders_data) -> None:
        rules = (
            RuleSetBuilder()
            .required("customer")
            .pattern("customer", EMAIL_REGEX)
            .range("amount", 0, 1000)
            .build()
        )

        result = validate_data(rules, orders_data)

        assert [row.row_number for row in result.valid_rows] == [1, 2, 4]
        assert [row.row_number for row in result.invalid_rows] == [3, 5]
        assert sorted(result.errors_by_row()) == [3, 5]
        assert len(result.errors_by_row()[3]) == 2
        assert result.errors_by_column()["customer"] == 2
        assert len(result.valid_rows) + len(result.invalid_rows) == len(orders_data.rows)

    def test_raise_for_errors(self, people_data) -> None:
        result = validate_data(RuleSetBuilder().required("age").build(), people_data)

        with pytest.raises(DataValidationError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.result is result

    def test_unknown_column_is_logged(self, people_data, caplog: pytest.LogCaptureFixture) -> None:
        rules = RuleSetBuilder().required("salary").build()

        with caplog.at_level(logging.WARNING, logger="csv_guardian"):
            result = validate_data(rules, people_data)

        assert result.is_valid
        assert "salary" in caplog.text

    def test_result_to_dict(self, people_data) -> None:
        result = validate_data(RuleSetBuilder().required("age").build(), people_data)

        payload = result.to_dict()

        assert payload["is_valid"] is False
        assert payload["invalid_rows"] == 1
        assert payload["errors"][0] == {
            "row": 2,
            "column": "age",
            "value": None,
            "rule": "required",
            "message": "Value is required",
        }


class TestRuleSetBuilder:
    def test_build_is_immutable(self) -> None:
        rules = RuleSetBuilder().required("a").build()

        with pytest.raises(TypeError):
            rules["b"] = (Required(),)  # type: ignore[index]
        assert rules["a"] == (Required(),)

    def test_from_columns_adds_required(self, people_text: str) -> None:
        options = CsvOptions(required_columns=frozenset({"age"}))
        data = read_csv_text(people_text, options).raise_for_error()

        rules = RuleSetBuilder().from_columns(data.headers).build()

        assert set(rules) == {"age"}
        assert [row.row_number for row in validate_data(rules, data).invalid_rows] == [2]


class TestValidationCollector:
    def test_streaming_validation_matches_whole_file(self, orders_text: str, orders_data) -> None:
        rules = RuleSetBuilder().required("customer").range("amount", 0, 1000).build()
        collector = ValidationCollector(rules, max_errors_sample=1)

        result = BatchReader(CsvOptions(batch_size=2)).stream_lines_sync(orders_text.splitlines(), collector)
        expected = validate_data(rules, orders_data)

        assert result.success
        assert collector.total_rows == 5
        assert collector.invalid_rows == len(expected.invalid_rows) == 2
        assert collector.error_count == len(expected.errors)
        assert len(collector.errors_sample) == 1
        assert collector.batches_processed == 3
        assert not collector.is_valid
        assert collector.to_dict()["error_rate"] == 0.4
