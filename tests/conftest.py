from __future__ import annotations

from pathlib import Path

import pytest

from csv_guardian import CsvData, CsvOptions, read_csv_text, reset_settings


PEOPLE_CSV = """name,age,active
Alice,30,true
Bob,,false
Carol,abc,true
"""

ORDERS_CSV = """order_id,customer,amount,placed_at,paid
1,alice@example.com,10.50,2024-01-01,true
2,bob@test.org,99.99,2024-01-02,false

3,carol,-5,2024-01-03,true
4,dave@example.com,250,not a date,yes
5,,42,2024-01-05,false
"""


@pytest.fixture()
def people_text() -> str:
    """Header plus three rows; the third row has a non-numeric age."""
    return PEOPLE_CSV


@pytest.fixture()
def people_data(people_text: str) -> CsvData:
    return read_csv_text(people_text, file_name="people.csv").raise_for_error()


@pytest.fixture()
def orders_text() -> str:
    """Five orders with one blank line and a few malformed values."""
    return ORDERS_CSV


@pytest.fixture()
def orders_data(orders_text: str) -> CsvData:
    return read_csv_text(orders_text, file_name="orders.csv").raise_for_error()


@pytest.fixture()
def orders_file(tmp_path: Path, orders_text: str) -> Path:
    filepath = tmp_path / "orders.csv"
    filepath.write_text(orders_text, encoding="utf-8")
    return filepath


@pytest.fixture()
def small_batches() -> CsvOptions:
    return CsvOptions(batch_size=2)


@pytest.fixture(autouse=True)
def isolated_settings():
    """Make sure environment-driven settings never leak between tests."""
    reset_settings()
    yield
    reset_settings()
