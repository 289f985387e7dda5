"""Column-name indexed reader for GTFS text tables."""

import csv
import io
import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from transit_mcp.models.responses import OutcomeKind

logger = logging.getLogger(__name__)

FeedRow = dict[str, str | None]


class FeedTableError(Exception):
    """A whole table could not be read. Never raised for a single bad row."""

    kind = OutcomeKind.MALFORMED_SCHEMA

    def __init__(self, filename: str, message: str):
        super().__init__(message)
        self.filename = filename


class FeedFileError(FeedTableError):
    """The table file is missing or unreadable."""

    kind = OutcomeKind.FILE_MISSING


class FeedSchemaError(FeedTableError):
    """The table is empty or its header lacks required columns."""

    kind = OutcomeKind.MALFORMED_SCHEMA


def clean_value(value: str) -> str | None:
    """Trim a raw field, unwrap surrounding quotes, map empty to None."""
    cleaned = value.strip()
    if len(cleaned) >= 2 and cleaned[0] == '"' and cleaned[-1] == '"':
        cleaned = cleaned[1:-1].strip()
    return cleaned or None


def split_line(line: str) -> list[str] | None:
    """Tokenize one physical line, or return None if it cannot be tokenized."""
    try:
        return next(csv.reader([line.rstrip("\r\n")]), [])
    except csv.Error:
        return None


class TableReader:
    """Forward-only reader over one GTFS table.

    The header is resolved once on construction. Iterating yields one dict per
    data row mapping column name to cleaned value; columns that the file does
    not have are simply absent, so ``row.get(col)`` is None for them.

    Each physical line is tokenized on its own and undecodable bytes are
    replaced, so a broken row never spills into the rows after it. Rows whose
    token count does not match the header, or that cannot be tokenized, are
    skipped and counted.

    Usage:
        with open_table(path, ["stop_id"]) as reader:
            for row in reader:
                ...
    """

    def __init__(self, stream: IO[bytes], filename: str, required_columns: Sequence[str] = ()):
        """Initialize the reader.

        Args:
            stream: Binary stream positioned at the header line.
            filename: Table file name, used in errors and logs.
            required_columns: Columns that must appear in the header.

        Raises:
            FeedSchemaError: If the table is empty or required columns are missing.
        """
        self.filename = filename
        self.skipped_rows = 0
        self._lines = io.TextIOWrapper(stream, encoding="utf-8-sig", errors="replace")
        self.columns = self._read_header(required_columns)
        self._index = {name: idx for idx, name in enumerate(self.columns) if name}

    def _read_header(self, required_columns: Sequence[str]) -> list[str]:
        line = self._lines.readline()
        if not line:
            raise FeedSchemaError(self.filename, f"{self.filename} is empty")
        header = split_line(line)
        if header is None:
            raise FeedSchemaError(self.filename, f"{self.filename} has an unreadable header")
        columns = [clean_value(name) or "" for name in header]
        missing = [col for col in required_columns if col not in columns]
        if missing:
            raise FeedSchemaError(
                self.filename, f"{self.filename} missing columns: {', '.join(missing)}"
            )
        return columns

    def _tokens(self) -> Iterator[list[str]]:
        width = len(self.columns)
        for line in self._lines:
            if not line.strip():
                continue
            tokens = split_line(line)
            if tokens is None or len(tokens) != width:
                self.skipped_rows += 1
                continue
            yield tokens

    def _to_row(self, tokens: list[str]) -> FeedRow:
        return {name: clean_value(tokens[idx]) for name, idx in self._index.items()}

    def __iter__(self) -> Iterator[FeedRow]:
        for tokens in self._tokens():
            yield self._to_row(tokens)

    def filter_rows(self, column: str, value: str) -> Iterator[FeedRow]:
        """Yield only rows whose ``column`` equals ``value``.

        The raw token is compared before a row dict is built, so scanning a
        large table for a handful of rows stays cheap.
        """
        idx = self._index.get(column)
        if idx is None:
            return
        for tokens in self._tokens():
            if clean_value(tokens[idx]) == value:
                yield self._to_row(tokens)


@contextmanager
def open_table(path: Path, required_columns: Sequence[str] = ()) -> Iterator[TableReader]:
    """Open a GTFS table file for reading.

    Args:
        path: Path to the .txt table.
        required_columns: Columns that must appear in the header.

    Yields:
        TableReader positioned after the header.

    Raises:
        FeedFileError: If the file is missing or cannot be opened.
        FeedSchemaError: If the header is empty or lacks required columns.
    """
    path = Path(path)
    try:
        stream = open(path, "rb")
    except OSError as e:
        raise FeedFileError(path.name, f"{path.name} is missing or unreadable: {e}") from e

    with stream:
        try:
            yield TableReader(stream, path.name, required_columns)
        except OSError as e:
            raise FeedFileError(path.name, f"Error reading {path.name}: {e}") from e
