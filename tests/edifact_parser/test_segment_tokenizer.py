# FILE: tests/edifact_parser/test_segment_tokenizer.py
import pytest

from edifact_parser import split_top_level, tokenize_segments

pytestmark = pytest.mark.unit


def test_round_trip_preserves_segment_count():
    segments = ["UNH+1+APERAK:D:07B:UN", "BGM+312+X", "UNT+3+1"]
    text = "'".join(segments) + "'"
    assert len(tokenize_segments(text, "'", "?")) == len(segments)
    assert tokenize_segments(text, "'", "?") == segments


def test_escaped_terminator_stays_in_one_segment():
    assert tokenize_segments("FTX+A?'B'", "'", "?") == ["FTX+A'B"]


def test_escaped_release_character_is_literal():
    assert tokenize_segments("FTX+50??'", "'", "?") == ["FTX+50?"]


def test_keep_escapes_retains_release_for_later_stages():
    assert tokenize_segments("FTX+A?+B?'C'", "'", "?", keep_escapes=True) == ["FTX+A?+B?'C"]


def test_unterminated_trailing_segment_is_emitted():
    assert tokenize_segments("BGM+1'UNT+2+1", "'", "?") == ["BGM+1", "UNT+2+1"]


def test_empty_and_whitespace_segments_are_dropped():
    assert tokenize_segments("BGM+1'' \n 'UNT+2+1'", "'", "?") == ["BGM+1", "UNT+2+1"]


def test_line_breaks_inside_segments_are_stripped():
    text = "UNH+1+APE\r\nRAK'\nBGM+312\n+X'\n"
    assert tokenize_segments(text, "'", "?") == ["UNH+1+APERAK", "BGM+312+X"]


def test_custom_terminator():
    assert tokenize_segments("UNB*X~UNH*1~", "~", "!") == ["UNB*X", "UNH*1"]


# --- Element Splitter ---

def test_empty_placeholder_is_preserved():
    assert split_top_level("A++B", "+", "?") == ["A", "", "B"]


def test_trailing_token_is_always_emitted():
    assert split_top_level("A+", "+", "?") == ["A", ""]
    assert split_top_level("", "+", "?") == [""]


def test_escaped_separator_is_literal():
    assert split_top_level("A?+B+C", "+", "?") == ["A+B", "C"]


def test_split_without_unescape_keeps_escape_sequences():
    assert split_top_level("A?:B:C+D", "+", "?", unescape=False) == ["A?:B:C", "D"]
