"""End-of-line candidates encoded for a specific charset."""
from __future__ import annotations

import codecs
from dataclasses import dataclass
from typing import Iterator, Tuple

from common.errors import BackendError, ErrorCode

LINE_BREAKS = ("\r\n", "\n", "\r")


@dataclass(frozen=True, slots=True)
class TerminatorSet:
    """Immutable table of terminator byte sequences, longest first."""

    encoding: str
    sequences: Tuple[bytes, ...]

    @classmethod
    def for_encoding(cls, encoding: str) -> "TerminatorSet":
        try:
            name = codecs.lookup(encoding).name
        except LookupError as exc:
            raise BackendError(
                ErrorCode.CONFIG_ERROR,
                f"Unknown encoding '{encoding}'",
                context={"encoding": encoding},
            ) from exc
        sequences = tuple(_encode_without_bom(text, name) for text in LINE_BREAKS)
        if not all(sequences):
            raise BackendError(
                ErrorCode.CONFIG_ERROR,
                f"Encoding '{encoding}' cannot represent line breaks",
                context={"encoding": encoding},
            )
        # sorted() is stable, so CRLF stays ahead of LF/CR of equal length
        ordered = tuple(sorted(sequences, key=len, reverse=True))
        return cls(encoding=name, sequences=ordered)

    @property
    def longest(self) -> int:
        return len(self.sequences[0])

    @property
    def unit(self) -> int:
        """Width of one code unit: 1 for utf-8, 2 for utf-16, 4 for utf-32."""

        return len(self.sequences[-1])

    def align(self, offset: int) -> int:
        return offset - offset % self.unit

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.sequences)

    def __contains__(self, value: object) -> bool:
        return value in self.sequences

    def starts_with_terminator(self, data: bytes) -> bool:
        """True when ``data`` begins with a full candidate."""

        return any(data.startswith(seq) for seq in self.sequences)

    def ends_with_terminator(self, data: bytes) -> bool:
        return any(data.endswith(seq) for seq in self.sequences)

    def last_line_start(self, window: bytes) -> int:
        """Return the index just past the last terminator in ``window``, or -1.

        ``window`` must start on a code-unit boundary; hits that straddle two
        code units are ignored.
        """

        best = -1
        for seq in self.sequences:
            hit = window.rfind(seq)
            while hit > 0 and hit % self.unit:
                hit = window.rfind(seq, 0, hit + len(seq) - 1)
            if hit != -1:
                best = max(best, hit + len(seq))
        return best


def _encode_without_bom(text: str, encoding: str) -> bytes:
    # Encoders such as utf-16 emit a byte-order mark on every call; encoding a
    # marker first and slicing it off leaves only the payload bytes.
    try:
        marker = "\n".encode(encoding, errors="strict")
        payload = ("\n" + text).encode(encoding, errors="strict")
    except (UnicodeEncodeError, LookupError) as exc:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Encoding '{encoding}' cannot represent line breaks",
            context={"encoding": encoding},
        ) from exc
    return payload[len(marker):]
