"""Split ABC text into header lines and music lines."""

import re

from tunebook.abc_models import ClassifiedLines

HEADER_RE = re.compile(r"^[A-Z]:")


def is_header_line(line: str) -> bool:
    """True for ``<Upper-case letter>:<value>`` lines such as ``K:D``."""
    return HEADER_RE.match(line.strip()) is not None


def classify_lines(text: str | None) -> ClassifiedLines:
    """
    Sort the lines of ``text`` into headers, music and comments.

    Every line is stripped first. Blank lines are discarded; ``%`` lines are
    kept apart as comments and never reach the music bucket.
    """
    classified = ClassifiedLines()
    if not text:
        return classified

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if HEADER_RE.match(line):
            classified.headers.append(line)
        elif not line:
            continue
        elif line.startswith("%"):
            classified.comments.append(line)
        else:
            classified.music.append(line)
    return classified


def header_value(headers: list[str], field_name: str) -> str | None:
    """Return the value of the first ``field_name:`` header, stripped, or None."""
    prefix = f"{field_name}:"
    for line in headers:
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None
