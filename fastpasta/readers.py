"""Readers for raw input that can skip forward over unwanted data."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import BinaryIO

DEFAULT_CAPACITY = 1024 * 50


class StreamSkipReader:
    """Reader over a non-seekable byte stream such as standard input.

    Skipping forward is done by reading and discarding bytes.
    """

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin.buffer

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, fewer only at the end of the stream."""
        if size < 0:
            return self._stream.read()
        chunks: list[bytes] = []
        remaining = size
        while remaining > 0:
            chunk = self._stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def seek_relative(self, offset: int) -> None:
        """Skip ``offset`` bytes forward; raises EOFError if the stream ends first."""
        if offset < 0:
            raise io.UnsupportedOperation("cannot seek backwards in a stream")
        skipped = self.read(offset)
        if len(skipped) < offset:
            raise EOFError(
                f"stream ended after skipping {len(skipped)} of {offset} bytes"
            )


class FileReader:
    """Buffered reader over a file that can seek relative to the current position."""

    def __init__(self, path: str | Path, capacity: int = DEFAULT_CAPACITY) -> None:
        self._file = open(path, "rb", buffering=capacity)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, fewer only at the end of the file."""
        return self._file.read(size)

    def seek_relative(self, offset: int) -> None:
        """Move ``offset`` bytes from the current position."""
        self._file.seek(offset, io.SEEK_CUR)

    def close(self) -> None:
        """Close the underlying file."""
        self._file.close()

    def __enter__(self) -> FileReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()