"""Random-access line extraction with bounded memory usage."""
from __future__ import annotations

import os
import time
from pathlib import Path
from typing import BinaryIO, NamedTuple, Optional, Union

from common.errors import BackendError, EmptyFileError, LineReadError, OutOfRangeError
from common.models import ReadEvent
from common.progress import ReadEventLogger

from .assembler import LineAssembler, MatchResult
from .terminators import TerminatorSet

DEFAULT_CHUNK_SIZE = 16


class LineRead(NamedTuple):
    text: str
    resume_offset: int
    wrapped_to_start: bool


class RandomLineReader:
    """Returns whole lines from arbitrary byte offsets of a binary file.

    The reader owns the handle cursor and reads ``chunk_size`` bytes at a time,
    so memory use is bounded by the chunk plus the line being returned. Hitting
    end-of-file before a terminator wraps the cursor to offset 0 and sets
    ``wrapped_to_start``; the tail fragment read so far is dropped.

    One instance serves one caller at a time.
    """

    def __init__(
        self,
        handle: BinaryIO,
        encoding: str = "utf-8",
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        errors: str = "strict",
        name: Optional[str] = None,
        event_logger: Optional[ReadEventLogger] = None,
    ) -> None:
        self.terminators = TerminatorSet.for_encoding(encoding)
        self.handle = handle
        self.encoding = encoding
        self.errors = errors
        self.chunk_size = max(1, chunk_size)
        self.name = name or str(getattr(handle, "name", "<stream>"))
        self.event_logger = event_logger
        self.wrapped_to_start = False
        self.line_start_offset = 0
        self._assembler = LineAssembler(self.terminators)
        self._chunk_reads = 0

    @classmethod
    def open(
        cls,
        path: Union[str, os.PathLike[str]],
        encoding: str = "utf-8",
        **kwargs,
    ) -> "RandomLineReader":
        path = Path(path)
        try:
            handle = path.open("rb")
        except OSError as exc:
            raise LineReadError(source=str(path), operation="open", position=0) from exc
        try:
            kwargs.setdefault("name", str(path))
            return cls(handle, encoding, **kwargs)
        except BackendError:
            handle.close()
            raise

    def __enter__(self) -> "RandomLineReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.handle.close()

    def length(self) -> int:
        try:
            self.handle.seek(0, os.SEEK_END)
            return self.handle.tell()
        except OSError as exc:
            raise LineReadError(source=self.name, operation="stat", position=-1) from exc

    def read_line_at(self, offset: int, *, skip_leading_fragment: bool = False) -> LineRead:
        """Return the line at ``offset`` with its resume offset and wrap flag.

        By default an offset inside a line is moved back to where that line
        begins. With ``skip_leading_fragment`` the scan only moves forward: a
        partial line under the offset is skipped and the next complete line is
        returned. In both modes an offset sitting on a terminator yields the
        line after it.
        """

        started = time.perf_counter()
        length = self.length()
        if offset < 0 or offset > length:
            raise OutOfRangeError(offset=offset, length=length)

        self.wrapped_to_start = False
        self._chunk_reads = 0
        # Multi-byte encodings are scanned one code unit at a time, so the scan
        # has to begin on a unit boundary.
        aligned = self.terminators.align(offset)
        if skip_leading_fragment:
            start = aligned
            self._assembler.reset(skip_fragment=not self._is_line_start(aligned))
        else:
            start = self._seek_line_start(aligned, length)
            self._assembler.reset()

        position = self._seek(start)
        while True:
            chunk = self._read(position)
            if chunk:
                result = self._assembler.feed(chunk)
                if result.complete:
                    break
                position += len(chunk)
                continue
            result = self._assembler.finish()
            if result.complete:
                break
            if self.wrapped_to_start:
                raise EmptyFileError(source=self.name, length=length)
            self.wrapped_to_start = True
            self._assembler.reset()
            position = self._seek(0)

        resume_offset = position + result.resume_mark
        self.line_start_offset = resume_offset - len(result.terminator) - len(result.line)
        text = result.line.decode(self.encoding, errors=self.errors)
        self._log(offset, resume_offset, result, started)
        return LineRead(text, resume_offset, self.wrapped_to_start)

    # Internal helpers -------------------------------------------------

    def _is_line_start(self, offset: int) -> bool:
        if offset == 0:
            return True
        before = self._read_span(max(0, offset - self.terminators.longest), offset)
        return self.terminators.ends_with_terminator(before)

    def _seek_line_start(self, offset: int, length: int) -> int:
        if offset in (0, length):
            return offset
        head = self._read_span(offset, offset + self.terminators.longest)
        if self.terminators.starts_with_terminator(head):
            return offset
        # Walk backwards in chunk-sized windows; windows overlap by the longest
        # terminator so a sequence split across two windows is still seen.
        overlap = self.terminators.longest - 1
        unit = self.terminators.unit
        span = -(-self.chunk_size // unit) * unit
        cursor = offset
        while cursor > 0:
            window_start = max(0, cursor - span)
            window = self._read_span(window_start, min(offset, cursor + overlap))
            index = self.terminators.last_line_start(window)
            if index != -1:
                return window_start + index
            cursor = window_start
        return 0

    def _read_span(self, start: int, stop: int) -> bytes:
        self._seek(start)
        try:
            return self.handle.read(max(0, stop - start))
        except OSError as exc:
            raise LineReadError(source=self.name, operation="read", position=start) from exc

    def _seek(self, position: int) -> int:
        try:
            self.handle.seek(position)
        except OSError as exc:
            raise LineReadError(source=self.name, operation="seek", position=position) from exc
        return position

    def _read(self, position: int) -> bytes:
        try:
            chunk = self.handle.read(self.chunk_size)
        except OSError as exc:
            raise LineReadError(source=self.name, operation="read", position=position) from exc
        self._chunk_reads += 1
        return chunk

    def _log(self, offset: int, resume_offset: int, result: MatchResult, started: float) -> None:
        if self.event_logger is None:
            return
        self.event_logger.emit(
            ReadEvent(
                source=self.name,
                offset=offset,
                line_start=self.line_start_offset,
                resume_offset=resume_offset,
                wrapped_to_start=self.wrapped_to_start,
                chunk_reads=self._chunk_reads,
                line_bytes=len(result.line),
                duration_ms=(time.perf_counter() - started) * 1000.0,
            )
        )
