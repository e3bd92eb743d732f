"""Unit tests for bar splitting and preview extraction."""

from tunebook.bar_extractor import extract_preview, split_bars

KESH = "X:1\nT:The Kesh\nM:6/8\nK:G\nGAB AGE|GAB AGE|ABc dBG|"


def test_bracketed_bar_line_does_not_split() -> None:
    assert split_bars("A B [C|D] E|F") == ["A B [C|D] E", "F"]


def test_preview_of_bracketed_bar() -> None:
    assert extract_preview("A B [C|D] E|F", 1) == "A B [C|D] E"


def test_preview_keeps_headers_and_first_bars() -> None:
    assert extract_preview(KESH, 2) == "X:1\nT:The Kesh\nM:6/8\nK:G\nGAB AGE|GAB AGE"


def test_pickup_counts_as_first_bar() -> None:
    abc = "X:1\nK:D\nFA|d2 dc|B2 A2|"
    assert extract_preview(abc, 2) == "X:1\nK:D\nFA|d2 dc"


def test_fewer_bars_than_requested_returns_all() -> None:
    preview = extract_preview(KESH, 10)
    music = preview.split("\n")[-1]
    assert music.split("|") == ["GAB AGE", "GAB AGE", "ABc dBG"]


def test_default_preview_is_four_bars() -> None:
    abc = "K:D\nA|B|c|d|e|f|"
    assert extract_preview(abc) == "K:D\nA|B|c|d"


def test_bars_run_across_music_lines() -> None:
    assert split_bars("AB|c d|e") == ["AB", "c d", "e"]
    assert extract_preview("K:G\nAB|c\nd|e", 2) == "K:G\nAB|c d"


def test_comment_lines_are_not_music() -> None:
    assert extract_preview("K:G\n% A comment | with bars\nAB|cd|", 1) == "K:G\nAB"


def test_repeat_and_ending_punctuation_is_not_a_bar() -> None:
    assert split_bars("|:AB|[1 cd:|[2 ef|]") == [":AB", "[1 cd:", "[2 ef"]


def test_double_bar_does_not_create_empty_bar() -> None:
    assert split_bars("AB||cd|") == ["AB", "cd"]


def test_no_music_returns_input_unchanged() -> None:
    abc = "X:1\nT:Only headers"
    assert extract_preview(abc, 2) == abc


def test_empty_input() -> None:
    assert extract_preview("", 4) == ""


def test_zero_bars_treated_as_one() -> None:
    assert extract_preview("K:G\nAB|cd|", 0) == "K:G\nAB"
