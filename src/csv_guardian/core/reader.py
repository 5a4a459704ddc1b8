"""Line-oriented batch reader with whole-file and streaming modes."""

from __future__ import annotations

import asyncio
import inspect
import io
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
)

from .errors import (
    ConsumerError,
    EmptyInputError,
    IngestError,
    ProgressCallbackError,
    ReadCancelledError,
    SourceAccessError,
)
from .inference import infer_type, parse_cell_value
from .options import CsvOptions
from .tokenizer import tokenize_line
from .values import CellType, Column, CsvData, DataRow, RowBatch

logger = logging.getLogger(__name__)


class BatchConsumer(Protocol):
    """Receives each batch in order; may be a plain function or a coroutine."""

    def __call__(self, batch: RowBatch) -> Optional[Awaitable[None]]:
        ...


class CancelToken(Protocol):
    """Anything with ``is_set()``, e.g. ``asyncio.Event`` or ``threading.Event``."""

    def is_set(self) -> bool:
        ...


@dataclass
class StreamProgress:
    """Progress snapshot handed to progress callbacks after each batch."""

    batches_dispatched: int = 0
    rows_read: int = 0
    elapsed: float = 0.0


class ProgressCallback(Protocol):
    def __call__(self, progress: StreamProgress) -> None:
        ...


@dataclass
class ReadResult:
    """Outcome of a whole-file read: either ``data`` or ``error`` is set."""

    data: Optional[CsvData]
    error: Optional[IngestError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> CsvData:
        if self.error is not None:
            raise self.error
        if self.data is None:
            raise IngestError("Read produced neither data nor an error")
        return self.data


@dataclass
class StreamResult:
    """Terminal status of a streaming run.

    Accumulated results live in the caller's consumer; this only reports
    whether the run completed and how far it got.
    """

    success: bool
    source: str
    rows_read: int = 0
    batches_dispatched: int = 0
    columns: Tuple[Column, ...] = ()
    error: Optional[IngestError] = None
    processing_time: float = 0.0

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "source": self.source,
            "rows_read": self.rows_read,
            "batches_dispatched": self.batches_dispatched,
            "columns": [column.name for column in self.columns],
            "error": str(self.error) if self.error is not None else None,
            "processing_time": round(self.processing_time, 3),
        }


class _RowAssembler:
    """Turns non-blank lines into typed rows; owns header and type state."""

    def __init__(self, options: CsvOptions) -> None:
        self._options = options
        self._names: Optional[List[str]] = None
        self.columns: Optional[Tuple[Column, ...]] = None
        self.rows_read = 0

    def feed(self, line: str) -> Optional[DataRow]:
        if not line.strip():
            return None
        fields = tokenize_line(line, self._options)
        if self._names is None:
            if self._options.has_headers:
                self._names = [name or f"Column{i}" for i, name in enumerate(fields, start=1)]
                return None
            self._names = [f"Column{i}" for i in range(1, len(fields) + 1)]

        fields = self._fit(fields, len(self._names))
        if self.columns is None:
            self.columns = tuple(
                Column(name, index, infer_type(raw), name in self._options.required_columns)
                for index, (name, raw) in enumerate(zip(self._names, fields))
            )

        self.rows_read += 1
        values = tuple(parse_cell_value(raw, column.data_type) for raw, column in zip(fields, self.columns))
        return DataRow(self.rows_read, values)

    def final_columns(self) -> Tuple[Column, ...]:
        if self.columns is not None:
            return self.columns
        if self._names is None:
            raise EmptyInputError("Source contains no header or data lines")
        # Headers without data rows: nothing to infer from.
        return tuple(
            Column(name, index, CellType.TEXT, name in self._options.required_columns)
            for index, name in enumerate(self._names)
        )

    def _fit(self, fields: List[str], width: int) -> List[str]:
        if len(fields) == width:
            return fields
        logger.debug(f"Row {self.rows_read + 1}: expected {width} fields, got {len(fields)}")
        if len(fields) < width:
            return fields + [""] * (width - len(fields))
        return fields[:width]


def _iter_file(path: Path, encoding: str) -> Iterator[str]:
    with open(path, "r", encoding=encoding) as handle:
        yield from handle


async def _aiter_lines(lines: Iterable[str]) -> AsyncIterator[str]:
    for line in lines:
        yield line


def _source_error(source: str, exc: Exception) -> SourceAccessError:
    error = SourceAccessError(f"Cannot read '{source}': {exc}")
    error.__cause__ = exc
    return error


class BatchReader:
    """Reads delimited text into typed rows.

    ``read_*`` methods collect every row into one :class:`CsvData`.
    ``stream_*`` methods hand :class:`RowBatch` objects of ``batch_size`` rows
    to a consumer through a bounded queue and never hold the whole file.
    """

    def __init__(self, options: CsvOptions | None = None) -> None:
        self.options = options or CsvOptions()

    # Whole-file mode ---------------------------------------------------------

    def read_file(self, filepath: Path | str, *, cancel: CancelToken | None = None) -> ReadResult:
        """Read a file from disk using ``options.encoding``."""
        filepath = Path(filepath)
        return self._read(_iter_file(filepath, self.options.encoding), str(filepath), filepath.name, cancel)

    def read_lines(
        self,
        lines: Iterable[str],
        *,
        file_name: str = "<lines>",
        cancel: CancelToken | None = None,
    ) -> ReadResult:
        """Read lines that were already split on line endings, e.g. an open text file."""
        return self._read(iter(lines), file_name, file_name, cancel)

    def _read(
        self,
        lines: Iterator[str],
        source: str,
        file_name: str,
        cancel: CancelToken | None,
    ) -> ReadResult:
        assembler = _RowAssembler(self.options)
        rows: List[DataRow] = []
        start_time = time.perf_counter()

        def check_cancelled() -> None:
            if cancel is not None and cancel.is_set():
                raise ReadCancelledError(f"Read of '{source}' cancelled after {len(rows)} rows")

        logger.info(f"Reading {source}")
        try:
            check_cancelled()
            for line in lines:
                row = assembler.feed(line)
                if row is None:
                    continue
                rows.append(row)
                if len(rows) % self.options.batch_size == 0:
                    check_cancelled()
            columns = assembler.final_columns()
            check_cancelled()
        except IngestError as exc:
            logger.warning(f"Read of {source} failed: {exc}")
            return ReadResult(None, exc)
        except (OSError, UnicodeError, LookupError) as exc:
            error = _source_error(source, exc)
            logger.warning(str(error))
            return ReadResult(None, error)

        data = CsvData(headers=columns, rows=tuple(rows), file_name=file_name)
        logger.info(
            f"Read {len(rows)} rows, {len(columns)} columns from {source} "
            f"in {time.perf_counter() - start_time:.3f}s"
        )
        return ReadResult(data)

    # Streaming mode ----------------------------------------------------------

    async def stream_file(
        self,
        filepath: Path | str,
        consumer: BatchConsumer,
        *,
        cancel: CancelToken | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> StreamResult:
        filepath = Path(filepath)
        lines = _aiter_lines(_iter_file(filepath, self.options.encoding))
        return await self._stream(lines, consumer, str(filepath), cancel, progress_callback)

    async def stream_lines(
        self,
        lines: Iterable[str],
        consumer: BatchConsumer,
        *,
        source: str = "<lines>",
        cancel: CancelToken | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> StreamResult:
        return await self._stream(_aiter_lines(lines), consumer, source, cancel, progress_callback)

    async def stream_async(
        self,
        lines: AsyncIterator[str],
        consumer: BatchConsumer,
        *,
        source: str = "stream",
        cancel: CancelToken | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> StreamResult:
        """Stream from an async line source such as a socket or aiofiles handle."""
        return await self._stream(lines, consumer, source, cancel, progress_callback)

    def stream_file_sync(
        self,
        filepath: Path | str,
        consumer: BatchConsumer,
        *,
        cancel: CancelToken | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> StreamResult:
        """Synchronous version of stream_file."""
        return asyncio.run(
            self.stream_file(filepath, consumer, cancel=cancel, progress_callback=progress_callback)
        )

    def stream_lines_sync(
        self,
        lines: Iterable[str],
        consumer: BatchConsumer,
        *,
        source: str = "<lines>",
        cancel: CancelToken | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> StreamResult:
        """Synchronous version of stream_lines."""
        return asyncio.run(
            self.stream_lines(lines, consumer, source=source, cancel=cancel, progress_callback=progress_callback)
        )

    async def _stream(
        self,
        lines: AsyncIterator[str],
        consumer: BatchConsumer,
        source: str,
        cancel: CancelToken | None,
        progress_callback: ProgressCallback | None,
    ) -> StreamResult:
        """Core loop: tokenize, buffer, hand off through a bounded queue."""
        assembler = _RowAssembler(self.options)
        queue: asyncio.Queue[Optional[RowBatch]] = asyncio.Queue(maxsize=self.options.queue_capacity)
        failures: List[ConsumerError] = []
        worker = asyncio.create_task(self._drain(queue, consumer, failures))
        progress = StreamProgress()
        buffer: List[DataRow] = []
        start_time = time.perf_counter()
        error: Optional[IngestError] = None

        async def hand_off() -> None:
            nonlocal buffer
            progress.batches_dispatched += 1
            batch = RowBatch(progress.batches_dispatched, assembler.final_columns(), tuple(buffer))
            buffer = []
            await queue.put(batch)
            await asyncio.sleep(0)  # Let the worker pick the batch up
            logger.debug(f"Dispatched batch {batch.number} ({len(batch)} rows) from {source}")
            if failures:
                raise failures[0]
            progress.rows_read = assembler.rows_read
            progress.elapsed = time.perf_counter() - start_time
            if progress_callback is not None:
                try:
                    progress_callback(progress)
                except Exception as exc:
                    raise ProgressCallbackError(
                        f"Progress callback failed after batch {batch.number}: {exc}", batch_number=batch.number
                    ) from exc

        def check_cancelled() -> None:
            if cancel is not None and cancel.is_set():
                raise ReadCancelledError(
                    f"Stream of '{source}' cancelled after {progress.batches_dispatched} batches"
                )

        logger.info(f"Streaming {source} in batches of {self.options.batch_size}")
        columns: Tuple[Column, ...] = ()
        try:
            check_cancelled()
            async for line in lines:
                row = assembler.feed(line)
                if row is None:
                    continue
                buffer.append(row)
                if len(buffer) >= self.options.batch_size:
                    await hand_off()
                    check_cancelled()
            columns = assembler.final_columns()
            if buffer:
                await hand_off()
        except IngestError as exc:
            error = exc
        except (OSError, UnicodeError, LookupError) as exc:
            error = _source_error(source, exc)
        finally:
            if error is None or isinstance(error, ReadCancelledError):
                # Batches already handed off are still delivered.
                await queue.put(None)
                await worker
            else:
                worker.cancel()
                await asyncio.gather(worker, return_exceptions=True)

        if error is None and failures:
            error = failures[0]
        elapsed = time.perf_counter() - start_time
        columns = assembler.columns or columns
        if error is not None:
            logger.warning(f"Stream of {source} stopped after {assembler.rows_read} rows: {error}")
        else:
            logger.info(
                f"Streamed {assembler.rows_read} rows in {progress.batches_dispatched} batches "
                f"from {source} in {elapsed:.3f}s"
            )
        return StreamResult(
            success=error is None,
            source=source,
            rows_read=assembler.rows_read,
            batches_dispatched=progress.batches_dispatched,
            columns=columns,
            error=error,
            processing_time=elapsed,
        )

    @staticmethod
    async def _drain(
        queue: asyncio.Queue[Optional[RowBatch]],
        consumer: BatchConsumer,
        failures: List[ConsumerError],
    ) -> None:
        """Invoke the consumer for each queued batch until the end sentinel."""
        while True:
            batch = await queue.get()
            if batch is None:
                return
            if failures:
                continue
            try:
                outcome = consumer(batch)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                failure = ConsumerError(f"Consumer failed on batch {batch.number}: {exc}", batch_number=batch.number)
                failure.__cause__ = exc
                failures.append(failure)


def read_csv(filepath: Path | str, options: CsvOptions | None = None) -> ReadResult:
    """Convenience function for a whole-file read."""
    return BatchReader(options).read_file(filepath)


def read_csv_text(text: str, options: CsvOptions | None = None, *, file_name: str = "<text>") -> ReadResult:
    """Read CSV content held in memory."""
    return BatchReader(options).read_lines(io.StringIO(text, newline=None), file_name=file_name)


async def stream_csv(
    filepath: Path | str,
    consumer: BatchConsumer,
    options: CsvOptions | None = None,
    *,
    cancel: CancelToken | None = None,
    progress_callback: ProgressCallback | None = None,
) -> StreamResult:
    """Convenience function for streaming a CSV file through ``consumer``."""
    reader = BatchReader(options)
    return await reader.stream_file(filepath, consumer, cancel=cancel, progress_callback=progress_callback)


def stream_csv_sync(
    filepath: Path | str,
    consumer: BatchConsumer,
    options: CsvOptions | None = None,
    *,
    cancel: CancelToken | None = None,
    progress_callback: ProgressCallback | None = None,
) -> StreamResult:
    """Synchronous version of stream_csv."""
    return asyncio.run(
        stream_csv(filepath, consumer, options, cancel=cancel, progress_callback=progress_callback)
    )
