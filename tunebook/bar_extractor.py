"""Preview generation: the first few bars of a tune, headers included."""

from typing import Final

from tunebook.abc_lines import classify_lines

DEFAULT_PREVIEW_BARS: Final[int] = 4

# A '[' followed by one of these starts a bar-line or ending marker ("[|", "[1"),
# not a chord or inline field.
_NON_GROUP_AFTER_BRACKET: Final[str] = "|0123456789"


def _opens_group(music: str, index: int) -> bool:
    following = music[index + 1:index + 2]
    return following == "" or following not in _NON_GROUP_AFTER_BRACKET


def _close_bar(bars: list[str], chars: list[str]) -> None:
    segment = "".join(chars).strip()
    # repeat and ending punctuation left over from "|:", "|]" or "[|" is not a bar
    if segment.strip(":[]"):
        bars.append(segment)


def split_bars(music: str) -> list[str]:
    """
    Split a music stream into bars on ``|`` characters outside brackets.

    The text before the first bar line (a pickup, if any) is bar 0. Trailing
    unterminated music is the final bar. Delimiters are not kept and
    segments holding only whitespace or bar-line punctuation (the gap inside
    ``||``, the ``]`` of ``|]``) are skipped.
    """
    bars: list[str] = []
    current: list[str] = []
    depth = 0

    for index, char in enumerate(music):
        if char == "[" and _opens_group(music, index):
            depth += 1
        elif char == "]" and depth > 0:
            depth -= 1

        if char == "|" and depth == 0:
            _close_bar(bars, current)
            current = []
            continue
        current.append(char)

    _close_bar(bars, current)
    return bars


def extract_preview(abc_text: str | None, num_bars: int = DEFAULT_PREVIEW_BARS) -> str:
    """
    Return the header lines followed by the first ``num_bars`` bars.

    Music lines are joined with single spaces before splitting, so bars may
    run across source lines. Fewer bars than requested returns them all; no
    music at all returns the input unchanged. ``num_bars`` below one is
    treated as one.
    """
    if not abc_text:
        return ""

    classified = classify_lines(abc_text)
    if not classified.music:
        return abc_text

    bars = split_bars(" ".join(classified.music))
    preview = "|".join(bars[:max(1, num_bars)])
    if not classified.headers:
        return preview
    return "\n".join(classified.headers) + "\n" + preview
