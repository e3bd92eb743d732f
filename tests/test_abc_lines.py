"""Unit tests for the ABC line classifier."""

from tunebook.abc_lines import classify_lines, header_value, is_header_line

KESH = """X:1
T:The Kesh
M:6/8
K:G
% first part
GAB AGE|GAB AGE|

|:d2e dBG:|
"""


def test_headers_in_order() -> None:
    assert classify_lines(KESH).headers == ["X:1", "T:The Kesh", "M:6/8", "K:G"]


def test_music_lines_exclude_blank_and_comment_lines() -> None:
    assert classify_lines(KESH).music == ["GAB AGE|GAB AGE|", "|:d2e dBG:|"]


def test_comments_kept_apart() -> None:
    assert classify_lines(KESH).comments == ["% first part"]


def test_lines_are_stripped_before_classifying() -> None:
    classified = classify_lines("  T:Indented  \n   ABc|  ")
    assert classified.headers == ["T:Indented"]
    assert classified.music == ["ABc|"]


def test_lowercase_field_is_music() -> None:
    assert classify_lines("w:lyrics here").music == ["w:lyrics here"]


def test_empty_text() -> None:
    classified = classify_lines("")
    assert classified.headers == []
    assert classified.music == []


def test_is_header_line() -> None:
    assert is_header_line("K:D")
    assert not is_header_line("abc|")
    assert not is_header_line("k:D")


def test_header_value() -> None:
    headers = classify_lines(KESH).headers
    assert header_value(headers, "T") == "The Kesh"
    assert header_value(headers, "Q") is None
