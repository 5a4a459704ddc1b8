"""Declarative per-cell validation rules.

Each rule answers ``evaluate(value)`` with ``None`` when the value passes or a
message when it fails. Rules that do not apply to a cell's variant (for
example ``Range`` on a ``Text`` cell) pass vacuously.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Union

from .values import CellValue, Empty, Number, Text

Predicate = Callable[[CellValue], bool]


@dataclass(frozen=True)
class Required:
    name = "required"

    def evaluate(self, value: CellValue) -> Optional[str]:
        if isinstance(value, Empty):
            return "Value is required"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": self.name}


@dataclass(frozen=True)
class MinLength:
    length: int
    name = "min_length"

    def evaluate(self, value: CellValue) -> Optional[str]:
        if isinstance(value, Text) and len(value.value) < self.length:
            return f"Length {len(value.value)} is shorter than minimum {self.length}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": self.name, "length": self.length}


@dataclass(frozen=True)
class MaxLength:
    length: int
    name = "max_length"

    def evaluate(self, value: CellValue) -> Optional[str]:
        if isinstance(value, Text) and len(value.value) > self.length:
            return f"Length {len(value.value)} exceeds maximum {self.length}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": self.name, "length": self.length}


@dataclass(frozen=True)
class Range:
    minimum: Decimal
    maximum: Decimal
    name = "range"

    def __post_init__(self) -> None:
        object.__setattr__(self, "minimum", Decimal(str(self.minimum)))
        object.__setattr__(self, "maximum", Decimal(str(self.maximum)))
        if self.minimum > self.maximum:
            raise ValueError(f"Range minimum {self.minimum} is greater than maximum {self.maximum}")

    def evaluate(self, value: CellValue) -> Optional[str]:
        if isinstance(value, Number) and (value.value < self.minimum or value.value > self.maximum):
            return f"Value {value.value} is outside range [{self.minimum}, {self.maximum}]"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": self.name, "min": str(self.minimum), "max": str(self.maximum)}


@dataclass(frozen=True)
class Pattern:
    """Passes when the text *contains* a match (``re.search`` semantics)."""

    regex: str
    compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)
    name = "pattern"

    def __post_init__(self) -> None:
        object.__setattr__(self, "compiled", re.compile(self.regex))

    def evaluate(self, value: CellValue) -> Optional[str]:
        if isinstance(value, Text) and self.compiled.search(value.value) is None:
            return f"Value '{value.value}' does not match pattern {self.regex!r}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": self.name, "regex": self.regex}


@dataclass(frozen=True)
class Custom:
    predicate: Predicate
    label: str = "custom"
    error_message: str | None = None
    name = "custom"

    def evaluate(self, value: CellValue) -> Optional[str]:
        try:
            passed = bool(self.predicate(value))
        except Exception as exc:
            return f"Custom check '{self.label}' raised {exc.__class__.__name__}: {exc}"
        if not passed:
            return self.error_message or f"Custom check '{self.label}' failed"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": self.name, "label": self.label}


ValidationRule = Union[Required, MinLength, MaxLength, Range, Pattern, Custom]
