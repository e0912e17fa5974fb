"""Tests for the chunked line assembler."""
from __future__ import annotations

import pytest

from common.errors import BackendError, ErrorCode
from core.lines import LineAssembler, MatchStatus, TerminatorSet


@pytest.fixture()
def assembler() -> LineAssembler:
    built = LineAssembler(TerminatorSet.for_encoding("utf-8"))
    built.reset()
    return built


def test_terminators_prefer_crlf() -> None:
    terminators = TerminatorSet.for_encoding("utf-8")
    assert terminators.sequences == (b"\r\n", b"\n", b"\r")
    assert terminators.longest == 2


def test_terminators_drop_byte_order_mark() -> None:
    terminators = TerminatorSet.for_encoding("utf-16")
    assert [len(seq) for seq in terminators] == [4, 2, 2]
    little = TerminatorSet.for_encoding("utf-16-le")
    assert little.sequences == ("\r\n".encode("utf-16-le"), b"\n\x00", b"\r\x00")


def test_unknown_encoding_is_config_error() -> None:
    with pytest.raises(BackendError) as exc:
        TerminatorSet.for_encoding("no-such-charset")
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_crlf_split_across_chunks_is_one_terminator(assembler: LineAssembler) -> None:
    first = assembler.feed(b"abc\r")
    assert first.status is MatchStatus.INCOMPLETE
    assert assembler.pending_tail == b"\r"

    second = assembler.feed(b"\ndef")
    assert second.complete
    assert second.line == b"abc"
    assert second.terminator == b"\r\n"
    assert second.resume_mark == 1


def test_lone_cr_confirmed_by_next_chunk(assembler: LineAssembler) -> None:
    assembler.feed(b"abc\r")
    result = assembler.feed(b"def")
    assert result.complete
    assert result.line == b"abc"
    assert result.terminator == b"\r"
    assert result.resume_mark == 0


def test_leading_terminator_is_skipped(assembler: LineAssembler) -> None:
    result = assembler.feed(b"\nabc\n")
    assert result.line == b"abc"
    assert result.resume_mark == 5


def test_only_first_leading_terminator_is_skipped(assembler: LineAssembler) -> None:
    result = assembler.feed(b"\n\nabc")
    assert result.complete
    assert result.line == b""
    assert result.resume_mark == 2


def test_skip_fragment_discards_partial_line() -> None:
    assembler = LineAssembler(TerminatorSet.for_encoding("utf-8"))
    assembler.reset(skip_fragment=True)
    assert not assembler.feed(b"xy").complete
    result = assembler.feed(b"z\nab\n")
    assert result.line == b"ab"
    assert result.resume_mark == 5


def test_segments_join_without_padding(assembler: LineAssembler) -> None:
    payload = b"abcdefghij\n"
    chunks = [payload[i:i + 4] for i in range(0, len(payload), 4)]
    results = [assembler.feed(chunk) for chunk in chunks]
    assert [r.complete for r in results] == [False, False, True]
    assert results[-1].line == b"abcdefghij"
    assert assembler.segments == [b"abcd", b"efgh", b"ij"]


def test_pending_tail_stays_below_longest_terminator(assembler: LineAssembler) -> None:
    payload = b"a\r\r\nbc\n"
    for index in range(len(payload)):
        result = assembler.feed(payload[index:index + 1])
        assert len(assembler.pending_tail) <= assembler.terminators.longest - 1
        if result.complete:
            break
    assert result.line == b"a"
    assert result.terminator == b"\r"


def test_byte_by_byte_crlf_on_line_start(assembler: LineAssembler) -> None:
    results = [assembler.feed(bytes([byte])) for byte in b"\r\nab\n"]
    assert [r.complete for r in results] == [False, False, False, False, True]
    assert results[-1].line == b"ab"


def test_no_terminator_stays_incomplete(assembler: LineAssembler) -> None:
    assert not assembler.feed(b"abc").complete
    assert not assembler.feed(b"def").complete
    assert assembler.buffered_bytes == 6
    assert not assembler.finish().complete


def test_finish_confirms_trailing_cr(assembler: LineAssembler) -> None:
    assert not assembler.feed(b"ab\r").complete
    result = assembler.finish()
    assert result.complete
    assert result.line == b"ab"
    assert result.resume_mark == 0


def test_reset_clears_previous_line(assembler: LineAssembler) -> None:
    assembler.feed(b"stale\r")
    assembler.reset()
    assert assembler.pending_tail == b""
    assert assembler.segments == []
    result = assembler.feed(b"x\n")
    assert result.line == b"x"


def test_utf16_crlf_split_mid_sequence() -> None:
    assembler = LineAssembler(TerminatorSet.for_encoding("utf-16-le"))
    assembler.reset()
    payload = "ab\r\ncd".encode("utf-16-le")
    first = assembler.feed(payload[:6])
    assert not first.complete
    assert assembler.pending_tail == b"\r\x00"
    second = assembler.feed(payload[6:])
    assert second.complete
    assert second.line.decode("utf-16-le") == "ab"
    assert second.terminator == "\r\n".encode("utf-16-le")


@pytest.mark.parametrize(
    ("encoding", "unit"),
    [("utf-8", 1), ("utf-16-le", 2), ("utf-16", 2), ("utf-32-le", 4)],
)
def test_code_unit_width(encoding: str, unit: int) -> None:
    terminators = TerminatorSet.for_encoding(encoding)
    assert terminators.unit == unit
    assert terminators.align(7) == 7 - 7 % unit


def test_last_line_start_ignores_hits_across_code_units() -> None:
    terminators = TerminatorSet.for_encoding("utf-16-le")
    # U+0A15 U+4E00 holds the bytes 0a 00 at index 1
    window = "ਕ一".encode("utf-16-le")
    assert terminators.last_line_start(window) == -1
    assert terminators.last_line_start(window + "\n".encode("utf-16-le")) == 6


def test_utf16_newline_bytes_inside_characters_are_not_terminators() -> None:
    assembler = LineAssembler(TerminatorSet.for_encoding("utf-16-le"))
    assembler.reset()
    result = assembler.feed("ਕ一\nnext".encode("utf-16-le"))
    assert result.complete
    assert result.line.decode("utf-16-le") == "ਕ一"
    assert result.resume_mark == 6


def test_code_unit_split_by_chunk_is_carried() -> None:
    assembler = LineAssembler(TerminatorSet.for_encoding("utf-16-le"))
    assembler.reset()
    payload = "ਕ一\n".encode("utf-16-le")
    first = assembler.feed(payload[:3])
    assert not first.complete
    assert assembler.pending_tail == payload[2:3]
    second = assembler.feed(payload[3:])
    assert second.complete
    assert second.line == payload[:4]
    assert second.resume_mark == 3


def test_line_end_marks_content_end_in_last_window(assembler: LineAssembler) -> None:
    result = assembler.feed(b"ab\ncd")
    assert result.complete
    assert assembler.line_end == 2
    assert result.resume_mark == assembler.line_end + len(result.terminator)
