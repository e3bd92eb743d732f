"""Complete and tidy ABC fragments imported from The Session."""

import re
from typing import Final

from tunebook.abc_lines import is_header_line

DEFAULT_UNIT_NOTE_LENGTH: Final[str] = "1/8"

_INDEX_HEADER_RE = re.compile(r"^\s*X:", re.MULTILINE)
_LINE_BREAK_MARKER_RE = re.compile(r"\s*!\s*")
_BLANK_RUN_RE = re.compile(r"\n\n+")


def has_index_header(abc_text: str) -> bool:
    """True if any line of ``abc_text`` starts with ``X:``."""
    return _INDEX_HEADER_RE.search(abc_text) is not None


def normalize_line_breaks(abc_text: str) -> str:
    """
    Turn The Session's ``!`` line-break markers into real newlines.

    Lines are stripped, lone ``!`` lines are removed and blank lines are
    squeezed out.
    """
    lines = [line.strip() for line in abc_text.split("\n")]
    lines = [_LINE_BREAK_MARKER_RE.sub("\n", line) for line in lines if line != "!"]
    return _BLANK_RUN_RE.sub("\n", "\n".join(lines)).strip()


def clean_and_complete(
    abc_fragment: str | None,
    title: str | None = None,
    key: str | None = None,
    meter: str | None = None,
) -> str:
    """
    Return renderable ABC for a fragment that may lack a header block.

    A fragment with an ``X:`` line only has its line breaks normalised.
    Otherwise the headers ``X:1``, ``T:``, ``M:``, ``L:1/8`` and ``K:`` are
    synthesised in that order, skipping any field the fragment already
    declares and any of title/meter/key that is not given. Header lines at
    the top of the fragment are kept between the synthesised fields and
    ``K:`` so the key still closes the header block.

    Never raises; empty input gives an empty string.
    """
    if not abc_fragment:
        return ""

    cleaned = normalize_line_breaks(abc_fragment)
    if has_index_header(abc_fragment):
        return cleaned

    lines = cleaned.split("\n") if cleaned else []
    split_at = 0
    while split_at < len(lines) and is_header_line(lines[split_at]):
        split_at += 1
    own_headers, body = lines[:split_at], lines[split_at:]
    declared = {line[0] for line in own_headers}

    headers = ["X:1"]
    if title and "T" not in declared:
        headers.append(f"T:{title}")
    if meter and "M" not in declared:
        headers.append(f"M:{meter}")
    if "L" not in declared:
        headers.append(f"L:{DEFAULT_UNIT_NOTE_LENGTH}")
    headers.extend(own_headers)
    if key and "K" not in declared:
        headers.append(f"K:{key}")

    return "\n".join(headers + body)
