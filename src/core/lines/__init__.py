"""Random-access line extraction: terminator matching and chunked reads."""

from .assembler import LineAssembler, MatchResult, MatchStatus
from .reader import DEFAULT_CHUNK_SIZE, LineRead, RandomLineReader
from .terminators import TerminatorSet

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "LineAssembler",
    "LineRead",
    "MatchResult",
    "MatchStatus",
    "RandomLineReader",
    "TerminatorSet",
]
