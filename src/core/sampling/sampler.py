"""Random row sampling and sequential walks over a RandomLineReader."""
from __future__ import annotations

import random
from typing import Iterator, List, Optional

from common.errors import EmptyFileError
from common.models import SampledRow
from core.lines import RandomLineReader


class RowSampler:
    """Draws rows at uniformly random byte offsets of a delimited file.

    With ``skip_header`` the first line of the file is treated as a header:
    whenever a draw lands on it (directly or after wrapping past end-of-file)
    the line after it is returned instead.
    """

    def __init__(
        self,
        reader: RandomLineReader,
        *,
        seed: Optional[int] = None,
        skip_header: bool = False,
        skip_leading_fragment: bool = False,
    ) -> None:
        self.reader = reader
        self.skip_header = skip_header
        self.skip_leading_fragment = skip_leading_fragment
        self._rng = random.Random(seed)

    def sample(self, count: int) -> List[SampledRow]:
        count = max(0, count)
        if count == 0:
            return []
        length = self.reader.length()
        return [self.read_row(self._rng.randint(0, length)) for _ in range(count)]

    def read_row(self, offset: int) -> SampledRow:
        text, resume_offset, wrapped = self.reader.read_line_at(
            offset, skip_leading_fragment=self.skip_leading_fragment
        )
        line_start = self.reader.line_start_offset
        header_skipped = False
        if self.skip_header and line_start == 0:
            # The header's resume offset is always a line start, so the
            # forward-only mode never drops a row here.
            text, resume_offset, wrapped_again = self.reader.read_line_at(
                resume_offset, skip_leading_fragment=True
            )
            line_start = self.reader.line_start_offset
            if line_start == 0:
                raise EmptyFileError(source=self.reader.name, length=self.reader.length())
            wrapped = wrapped or wrapped_again
            header_skipped = True
        return SampledRow(
            offset=offset,
            text=text,
            line_start=line_start,
            resume_offset=resume_offset,
            wrapped_to_start=wrapped,
            header_skipped=header_skipped,
        )

    def walk(self, offset: int = 0, limit: Optional[int] = None) -> Iterator[SampledRow]:
        """Yield consecutive rows from ``offset`` until the reader wraps around."""

        produced = 0
        cursor = offset
        first = True
        while limit is None or produced < limit:
            text, resume_offset, wrapped = self.reader.read_line_at(
                cursor, skip_leading_fragment=self.skip_leading_fragment or not first
            )
            if wrapped and not first:
                return
            first = False
            requested, cursor = cursor, resume_offset
            line_start = self.reader.line_start_offset
            if self.skip_header and line_start == 0:
                continue
            yield SampledRow(
                offset=requested,
                text=text,
                line_start=line_start,
                resume_offset=resume_offset,
                wrapped_to_start=wrapped,
            )
            produced += 1
