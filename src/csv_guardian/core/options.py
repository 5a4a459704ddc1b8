"""Immutable parsing configuration passed to every reader entry point."""

from __future__ import annotations

from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..settings import GuardianSettings, get_settings


class CsvOptions(BaseModel):
    """Tokenizer and reader configuration.

    Instances are frozen, so a single options object can be shared across
    runs and threads.
    """

    model_config = ConfigDict(frozen=True)

    delimiter: str = Field(default=",", description="Field separator")
    has_headers: bool = Field(default=True, description="Treat the first non-blank line as column names")
    encoding: str = Field(default="utf-8", description="Encoding used when opening files")
    quote_char: str = Field(default='"', description="Character that opens and closes quoted fields")
    escape_char: Optional[str] = Field(default=None, description="Character that makes the next quote literal")
    trim_whitespace: bool = Field(default=True, description="Strip surrounding whitespace from each field")
    batch_size: int = Field(default=1000, ge=1, description="Rows per dispatched batch")
    queue_capacity: int = Field(default=1, ge=1, description="Batches buffered ahead of a slow consumer")
    required_columns: FrozenSet[str] = Field(
        default_factory=frozenset, description="Column names flagged as required"
    )

    @field_validator("delimiter", "quote_char")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("must be exactly one character")
        return value

    @field_validator("escape_char")
    @classmethod
    def _single_escape_character(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) != 1:
            raise ValueError("must be exactly one character")
        return value

    @model_validator(mode="after")
    def _distinct_control_characters(self) -> "CsvOptions":
        if self.delimiter == self.quote_char:
            raise ValueError("delimiter and quote_char must differ")
        if self.escape_char is not None and self.escape_char == self.delimiter:
            raise ValueError("delimiter and escape_char must differ")
        return self

    @classmethod
    def from_settings(cls, settings: GuardianSettings | None = None, **overrides: object) -> "CsvOptions":
        """Build options seeded from environment settings, then apply overrides."""
        settings = settings or get_settings()
        values: dict[str, object] = {
            "encoding": settings.default_encoding,
            "batch_size": settings.default_batch_size,
            "queue_capacity": settings.queue_capacity,
        }
        values.update(overrides)
        return cls(**values)
