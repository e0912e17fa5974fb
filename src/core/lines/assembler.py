"""Incremental end-of-line matching over fixed-size byte chunks."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .terminators import TerminatorSet


class MatchStatus(str, Enum):
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


@dataclass(slots=True)
class MatchResult:
    """Outcome of feeding one chunk.

    ``resume_mark`` is relative to the chunk passed to :meth:`LineAssembler.feed`
    and points just past the confirmed terminator. It is negative when the
    terminator ended inside bytes carried over from the previous chunk.
    """

    status: MatchStatus
    line: bytes = b""
    resume_mark: int = 0
    terminator: bytes = b""

    @property
    def complete(self) -> bool:
        return self.status is MatchStatus.COMPLETE


class LineAssembler:
    """Collects the bytes of one line until a terminator is confirmed.

    The assembler knows nothing about files: the caller feeds raw chunks in
    order and stops as soon as a ``COMPLETE`` result comes back. A terminator
    prefix at the end of a chunk is kept in ``pending_tail`` and resolved with
    the next chunk, so CRLF split across two reads is still one terminator.

    The first terminator seen before any content only closes a leading
    fragment and is skipped. With ``skip_fragment=True`` the first terminator
    closes a fragment even when content came before it.
    """

    def __init__(self, terminators: TerminatorSet) -> None:
        self.terminators = terminators
        self.pending_tail = b""
        self.segments: List[bytes] = []
        self.line_start = 0
        self.line_end = 0
        self._skip_fragment = False
        self._leading_resolved = False

    def reset(self, *, skip_fragment: bool = False) -> None:
        self.pending_tail = b""
        self.segments = []
        self.line_start = 0
        self.line_end = 0
        self._skip_fragment = skip_fragment
        self._leading_resolved = False

    def feed(self, chunk: bytes) -> MatchResult:
        """Consume the next chunk of the file."""

        carried = len(self.pending_tail)
        window = self.pending_tail + bytes(chunk)
        self.pending_tail = b""
        return self._scan(window, carried, final=False)

    def finish(self) -> MatchResult:
        """Resolve the pending tail once the input is exhausted."""

        carried = len(self.pending_tail)
        window = self.pending_tail
        self.pending_tail = b""
        return self._scan(window, carried, final=True)

    @property
    def buffered_bytes(self) -> int:
        return sum(len(segment) for segment in self.segments) + len(self.pending_tail)

    # Internal helpers -------------------------------------------------

    def _scan(self, window: bytes, carried: int, *, final: bool) -> MatchResult:
        unit = self.terminators.unit
        self.line_start = 0
        position = 0
        while position < len(window):
            if not final and len(window) - position < unit:
                # A code unit split by the chunk boundary waits for its other
                # bytes so the next window starts on a boundary.
                self._collect(window, position)
                self.pending_tail = window[position:]
                return MatchResult(MatchStatus.INCOMPLETE)
            terminator, prospective = self._match_at(window, position, final=final)
            if terminator is None:
                position += unit
                continue
            if prospective:
                self._collect(window, position)
                self.pending_tail = window[position:]
                return MatchResult(MatchStatus.INCOMPLETE)
            end = position + len(terminator)
            if self._is_leading(position):
                self._discard_fragment(end)
                position = end
                continue
            self._collect(window, position)
            return MatchResult(
                MatchStatus.COMPLETE,
                line=b"".join(self.segments),
                resume_mark=self.line_end + len(terminator) - carried,
                terminator=terminator,
            )
        self._collect(window, len(window))
        return MatchResult(MatchStatus.INCOMPLETE)

    def _match_at(self, window: bytes, position: int, *, final: bool) -> Tuple[Optional[bytes], bool]:
        available = len(window) - position
        for sequence in self.terminators:
            if window.startswith(sequence, position):
                return sequence, False
            if not final and len(sequence) > available and sequence.startswith(window[position:]):
                # Longest candidates come first, so a longer prospective match
                # defers any shorter full match at the same position.
                return sequence, True
        return None, False

    def _is_leading(self, position: int) -> bool:
        if self._leading_resolved:
            return False
        if self._skip_fragment:
            return True
        return not self.segments and position == self.line_start

    def _discard_fragment(self, end: int) -> None:
        self.segments = []
        self.line_start = end
        self._skip_fragment = False
        self._leading_resolved = True

    def _collect(self, window: bytes, stop: int) -> None:
        self.line_end = stop
        if stop > self.line_start:
            self.segments.append(window[self.line_start:stop])
