"""Access to the proc pseudo file system.

Kernel virtual files are small, loosely formatted text streams that can change
between two reads and cannot be seeked reliably. Everything here reads them
sequentially, one bounded line at a time, and closes every stream before the
caller's scope ends.
"""

import os
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import BinaryIO

DEFAULT_ROOT = "/proc"
MAX_LINE_LENGTH = 1024


class DataUnavailable(Exception):
    """A source under the procfs root could not be opened, read or understood."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


@lru_cache(maxsize=32)
def _delimiter_set(delimiters: str) -> frozenset[str]:
    return frozenset(delimiters)


def tokenize(line: str | None, delimiters: str) -> list[str]:
    """
    Split a line on any of the given delimiter characters.

    Every delimiter ends a field, so adjacent delimiters produce empty fields
    and the remainder after the last delimiter is always kept, even when
    empty. A line without any delimiter is returned as a single field.

    Args:
        line: Text to split. None or "" yields an empty list.
        delimiters: Set of single-character delimiters (any-of, not a sequence).

    Returns:
        The fields in their original order.
    """
    if not line:
        return []
    if not delimiters:
        return [line]

    separators = _delimiter_set(delimiters)
    fields: list[str] = []
    start = 0
    for index, char in enumerate(line):
        if char in separators:
            fields.append(line[start:index])
            start = index + 1
    fields.append(line[start:])
    return fields


def read_line(stream: BinaryIO, max_length: int = MAX_LINE_LENGTH) -> str | None:
    """
    Read one record from a byte stream.

    Stops after a newline or after max_length bytes, whichever comes first.
    A record longer than max_length is returned in max_length sized pieces on
    successive calls. The trailing newline is stripped.

    Returns:
        The decoded line, or None once the stream is exhausted.
    """
    if max_length < 1:
        raise ValueError(f"max_length must be >= 1, got {max_length}")

    raw = stream.readline(max_length)
    if not raw:
        return None
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def iter_lines(stream: BinaryIO, max_length: int = MAX_LINE_LENGTH) -> Iterator[str]:
    """Yield records from a stream until read_line reports the end."""
    while (line := read_line(stream, max_length)) is not None:
        yield line


class ProcFS:
    """
    A procfs mount point.

    All paths are resolved relative to the root instead of changing the
    working directory of the process.
    """

    def __init__(
        self,
        root: str | Path = DEFAULT_ROOT,
        max_line_length: int = MAX_LINE_LENGTH,
    ) -> None:
        self._root = Path(root)
        self._max_line_length = max_line_length

    @property
    def root(self) -> Path:
        return self._root

    def path(self, relative: str) -> Path:
        return self._root / relative

    def check(self) -> None:
        """Raise DataUnavailable unless the root is a readable directory."""
        if not self._root.is_dir():
            raise DataUnavailable(str(self._root), "not a directory")
        if not os.access(self._root, os.R_OK | os.X_OK):
            raise DataUnavailable(str(self._root), "permission denied")

    @contextmanager
    def open(self, relative: str) -> Iterator[BinaryIO]:
        """Open a source for binary reading; it is closed when the block exits."""
        try:
            stream = open(self.path(relative), "rb")
        except OSError as e:
            raise DataUnavailable(relative, e.strerror or str(e)) from e
        try:
            yield stream
        finally:
            stream.close()

    @contextmanager
    def lines(self, relative: str) -> Iterator[Iterator[str]]:
        """Open a source and yield an iterator over its lines."""
        with self.open(relative) as stream:
            yield self._guarded_lines(relative, stream)

    def _guarded_lines(self, relative: str, stream: BinaryIO) -> Iterator[str]:
        try:
            yield from iter_lines(stream, self._max_line_length)
        except OSError as e:
            # Reading a status file of a process that just exited fails with ESRCH
            raise DataUnavailable(relative, e.strerror or str(e)) from e

    def read_first_line(self, relative: str) -> str:
        """Return the first line of a source, which must not be empty."""
        with self.lines(relative) as lines:
            first = next(lines, None)
        if first is None:
            raise DataUnavailable(relative, "empty")
        return first

    def pids(self) -> list[int]:
        """List the purely numeric directory names under the root."""
        try:
            with os.scandir(self._root) as entries:
                return sorted(
                    int(entry.name)
                    for entry in entries
                    if entry.name.isascii() and entry.name.isdigit() and entry.is_dir()
                )
        except OSError as e:
            raise DataUnavailable(str(self._root), e.strerror or str(e)) from e
