"""Data models shared by the ABC line classifier, bar extractor and transposer."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ClassifiedLines:
    """Lines of an ABC document sorted into buckets, each in source order."""

    headers: list[str] = field(default_factory=list)
    music: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NoteToken:
    """A single pitched note: optional accidental, letter and octave marks."""

    accidental: str
    letter: str
    octave_marks: str = ""

    @property
    def octave_offset(self) -> int:
        """Octaves above the upper-case reference octave (negative = below)."""
        offset = 1 if self.letter.islower() else 0
        return offset + self.octave_marks.count("'") - self.octave_marks.count(",")

    @property
    def text(self) -> str:
        return f"{self.accidental}{self.letter}{self.octave_marks}"


@dataclass(frozen=True)
class BarLineToken:
    """An unquoted ``|`` character."""

    text: str = "|"


@dataclass(frozen=True)
class ChordSymbolToken:
    """A double-quoted string: a guitar chord such as "Am" or a text annotation."""

    symbol: str

    @property
    def text(self) -> str:
        return f'"{self.symbol}"'


@dataclass(frozen=True)
class InlineFieldToken:
    """A bracketed inline field such as ``[K:G]`` or ``[M:6/8]``."""

    name: str
    value: str

    @property
    def text(self) -> str:
        return f"[{self.name}:{self.value}]"


@dataclass(frozen=True)
class OtherToken:
    """Anything passed through verbatim: durations, rests, decorations, comments."""

    text: str


Token = NoteToken | BarLineToken | ChordSymbolToken | InlineFieldToken | OtherToken
