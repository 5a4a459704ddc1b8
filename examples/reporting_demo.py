"""Demonstration of csv_guardian reading, validation and reporting."""

import tempfile
from pathlib import Path

from csv_guardian import (
    CsvOptions,
    RuleSetBuilder,
    StatisticsCollector,
    SummaryReporter,
    ValidationCollector,
    generate_data_summary,
    read_csv,
    stream_csv_sync,
    validate_data,
)

# Email regex pattern
EMAIL_REGEX = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

SAMPLE = """id,email,age,score,joined
1,alice@example.com,34,88.5,2023-04-01
2,no-at-sign,150,91.0,2023-05-12
3,carol@example.com,,78.1,not a date
4,dave@example.com,-5,105,2023-07-30
5,erin@example.com,45,95.0,2023-08-02
"""


def demo_whole_file(path: Path) -> None:
    """Read everything, validate, summarise and print."""
    print("=" * 80)
    print("csv_guardian - Whole-file Demo")
    print("=" * 80)
    print()

    data = read_csv(path, CsvOptions(required_columns=frozenset({"id", "email"}))).raise_for_error()
    print(f"Read {len(data)} rows with columns: {', '.join(data.column_names)}")
    print()

    rules = (
        RuleSetBuilder()
        .from_columns(data.headers)
        .required("age")
        .pattern("email", EMAIL_REGEX)
        .range("age", 0, 120)
        .range("score", 0, 100)
        .build()
    )
    validation = validate_data(rules, data)
    summary = generate_data_summary(data, validation)

    reporter = SummaryReporter(validation, summary)
    reporter.to_console(verbose=True)

    print("Errors as a DataFrame:")
    print(reporter.errors_to_dataframe())
    print()


def demo_streaming(path: Path) -> None:
    """Stream in small batches with validating and statistics consumers."""
    print("=" * 80)
    print("csv_guardian - Streaming Demo")
    print("=" * 80)
    print()

    rules = RuleSetBuilder().required("age").range("age", 0, 120).build()
    validation = ValidationCollector(rules)
    statistics = StatisticsCollector()

    def consume(batch):
        validation(batch)
        statistics(batch)

    result = stream_csv_sync(
        path,
        consume,
        CsvOptions(batch_size=2),
        progress_callback=lambda p: print(f"  batch {p.batches_dispatched}: {p.rows_read} rows"),
    )
    result.raise_for_error()

    print()
    print(f"Validation: {validation.to_dict()}")
    summary = statistics.summary(
        valid_rows=validation.total_rows - validation.invalid_rows,
        invalid_rows=validation.invalid_rows,
    )
    SummaryReporter(summary=summary).to_console()


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        sample_path = Path(tmp) / "users.csv"
        sample_path.write_text(SAMPLE, encoding="utf-8")
        demo_whole_file(sample_path)
        demo_streaming(sample_path)
