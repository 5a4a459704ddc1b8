"""Exception hierarchy for ingestion failures.

Entry points of the reader never let these escape: they are caught and
returned inside :class:`~csv_guardian.core.reader.ReadResult` or
:class:`~csv_guardian.core.reader.StreamResult`. Callers that prefer
exceptions call ``raise_for_error()`` on the result.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base error for a failed ingestion run."""


class SourceAccessError(IngestError):
    """The source could not be opened, read or decoded."""


class EmptyInputError(IngestError):
    """The source contained no header and no data lines."""


class ReadCancelledError(IngestError):
    """The run was cancelled between batches."""


class ConsumerError(IngestError):
    """A batch consumer raised while processing a batch."""

    def __init__(self, message: str, *, batch_number: int | None = None) -> None:
        super().__init__(message)
        self.batch_number = batch_number


class ProgressCallbackError(IngestError):
    """A progress callback raised after a batch was handed off."""

    def __init__(self, message: str, *, batch_number: int | None = None) -> None:
        super().__init__(message)
        self.batch_number = batch_number
