"""Type inference for sampled values and total coercion of raw cells."""

from __future__ import annotations

import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from .values import EMPTY, Boolean, CellType, CellValue, Date, Number, Text

_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")
_BOOLEANS = {"true": True, "false": False}


def parse_number(raw: str) -> Decimal | None:
    """Parse a locale-invariant decimal: optional sign, digits, optional point."""
    text = raw.strip()
    if not _NUMBER_RE.fullmatch(text):
        return None
    try:
        return Decimal(text)
    except InvalidOperation:  # pragma: no cover - the pattern already guards this
        return None


def parse_date(raw: str) -> datetime | None:
    """Parse ISO-8601 dates (``2024-01-31``) and date-times (``2024-01-31T10:00:00Z``)."""
    text = raw.strip()
    if not text.isascii() or not text[:1].isdigit():
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.combine(date.fromisoformat(text), time.min)
    except ValueError:
        return None


def parse_boolean(raw: str) -> bool | None:
    return _BOOLEANS.get(raw.strip().lower())


def infer_type(sample: str) -> CellType:
    """Decide the semantic type of a sampled value.

    Trial order is blank, number, date, boolean, text; numbers are tried
    before dates so that ``"2024"`` is a number.
    """
    if not sample.strip():
        return CellType.EMPTY
    if parse_number(sample) is not None:
        return CellType.NUMBER
    if parse_date(sample) is not None:
        return CellType.DATE
    if parse_boolean(sample) is not None:
        return CellType.BOOLEAN
    return CellType.TEXT


def parse_cell_value(raw: str, column_type: CellType) -> CellValue:
    """Coerce ``raw`` to ``column_type``. Never raises.

    Blank input is always ``Empty``; input that does not parse as the
    column's type degrades to ``Text(raw)`` for this cell only.
    """
    if not raw.strip():
        return EMPTY
    if column_type is CellType.NUMBER:
        number = parse_number(raw)
        if number is not None:
            return Number(number)
    elif column_type is CellType.DATE:
        moment = parse_date(raw)
        if moment is not None:
            return Date(moment)
    elif column_type is CellType.BOOLEAN:
        flag = parse_boolean(raw)
        if flag is not None:
            return Boolean(flag)
    return Text(raw)
