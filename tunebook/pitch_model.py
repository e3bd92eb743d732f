"""Pitch model: semitone arithmetic, key signatures and enharmonic spelling."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

logger = logging.getLogger(__name__)

SEMITONES_PER_OCTAVE: Final[int] = 12

#: Base semitone of each diatonic letter (C = 0).
LETTER_SEMITONES: Final[Mapping[str, int]] = MappingProxyType(
    {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
)

#: Semitone delta of each ABC accidental prefix.
ACCIDENTAL_DELTAS: Final[Mapping[str, int]] = MappingProxyType(
    {"^^": 2, "^": 1, "=": 0, "_": -1, "__": -2}
)

#: Roots that conventionally spell chromatic notes with sharps.
SHARP_ROOTS: Final[frozenset[str]] = frozenset("GDAEB")

# Pitch class -> letter, for the three spelling families
NATURAL_SPELLINGS: Final[Mapping[int, str]] = MappingProxyType(
    {semitone: letter for letter, semitone in LETTER_SEMITONES.items()}
)
SHARP_SPELLINGS: Final[Mapping[int, str]] = MappingProxyType(
    {1: "C", 3: "D", 6: "F", 8: "G", 10: "A"}
)
FLAT_SPELLINGS: Final[Mapping[int, str]] = MappingProxyType(
    {1: "D", 3: "E", 6: "G", 8: "A", 10: "B"}
)

# ── Key signature construction ──────────────────────────────────────────────

_SHARP_ORDER = "FCGDAEB"
_FLAT_ORDER = "BEADGCF"

# Position of each natural tonic on the circle of fifths (C = 0)
_TONIC_FIFTHS: Final[Mapping[str, int]] = MappingProxyType(
    {"F": -1, "C": 0, "G": 1, "D": 2, "A": 3, "E": 4, "B": 5}
)

#: Mode code -> signature shift in fifths relative to the major key on the same tonic.
MODE_FIFTHS: Final[Mapping[str, int]] = MappingProxyType(
    {"": 0, "lyd": 1, "mix": -1, "dor": -2, "m": -3, "phr": -4, "loc": -5}
)

MODE_DISPLAY_NAMES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "": "Major",
        "m": "Minor",
        "dor": "Dorian",
        "mix": "Mixolydian",
        "phr": "Phrygian",
        "lyd": "Lydian",
        "loc": "Locrian",
    }
)

_MODE_PREFIXES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "maj": "",
        "ion": "",
        "min": "m",
        "aeo": "m",
        "dor": "dor",
        "mix": "mix",
        "phr": "phr",
        "lyd": "lyd",
        "loc": "loc",
    }
)

_KEY_RE = re.compile(r"^([A-Ga-g])([#b]?)([A-Za-z]*)$")

EMPTY_SIGNATURE: Final[Mapping[str, int]] = MappingProxyType({})


def _signature_for_fifths(fifths: int) -> Mapping[str, int]:
    """Return the letter -> delta map for a signature with ``fifths`` sharps (>0) or flats (<0)."""
    if fifths > 0:
        return MappingProxyType({letter: 1 for letter in _SHARP_ORDER[:fifths]})
    if fifths < 0:
        return MappingProxyType({letter: -1 for letter in _FLAT_ORDER[:-fifths]})
    return EMPTY_SIGNATURE


def _fifths_of(tonic: str, accidental: str, mode: str) -> int:
    fifths = _TONIC_FIFTHS[tonic] + MODE_FIFTHS[mode]
    if accidental == "#":
        fifths += 7
    elif accidental == "b":
        fifths -= 7
    return fifths


def _build_key_signatures() -> Mapping[str, Mapping[str, int]]:
    table: dict[str, Mapping[str, int]] = {}
    for tonic in _TONIC_FIFTHS:
        for accidental in ("", "#", "b"):
            for mode in MODE_FIFTHS:
                fifths = _fifths_of(tonic, accidental, mode)
                if -7 <= fifths <= 7:
                    table[f"{tonic}{accidental}{mode}"] = _signature_for_fifths(fifths)
    return MappingProxyType(table)


#: Normalized key code (e.g. "D", "Am", "Edor", "Bbmix") -> letter offsets.
KEY_SIGNATURES: Final[Mapping[str, Mapping[str, int]]] = _build_key_signatures()


@dataclass(frozen=True)
class KeyName:
    """
    A parsed key name.

    Attributes:
        tonic:      Upper-case root letter, A-G.
        accidental: "", "#" or "b".
        mode:       Mode code: "" (major), "m", "dor", "mix", "phr", "lyd" or "loc".
    """

    tonic: str
    accidental: str
    mode: str

    @property
    def code(self) -> str:
        """Compact ABC form, e.g. 'Dmix' or 'Am'."""
        return f"{self.tonic}{self.accidental}{self.mode}"

    @property
    def display_name(self) -> str:
        """Human-readable form, e.g. 'D Mixolydian'."""
        return f"{self.tonic}{self.accidental} {MODE_DISPLAY_NAMES[self.mode]}"

    @property
    def pitch_class(self) -> int:
        delta = {"#": 1, "b": -1}.get(self.accidental, 0)
        return (LETTER_SEMITONES[self.tonic] + delta) % SEMITONES_PER_OCTAVE


# ── Public API ───────────────────────────────────────────────────────────────


def semitone_of(letter: str) -> int:
    """
    Return the base semitone of a note letter (either case).

    Raises:
        ValueError: If ``letter`` is not one of A-G.
    """
    try:
        return LETTER_SEMITONES[letter.upper()]
    except KeyError:
        raise ValueError(f"Not a note letter: {letter!r}") from None


def _mode_code(word: str) -> str | None:
    lowered = word.lower()
    if lowered == "":
        return ""
    if lowered == "m":
        return "m"
    return _MODE_PREFIXES.get(lowered[:3])


def parse_key_name(text: str | None) -> KeyName | None:
    """
    Parse a free-text key name such as 'D', 'Dmixolydian', 'A Min' or 'Bb'.

    Clef and other ``name=value`` modifiers are ignored. Returns None when the
    text does not describe a recognised tonic and mode.
    """
    if not text:
        return None

    words = [word for word in text.split() if "=" not in word]
    match = _KEY_RE.match("".join(words))
    if match is None:
        return None

    tonic, accidental, mode_word = match.groups()
    mode = _mode_code(mode_word)
    if mode is None:
        return None
    return KeyName(tonic=tonic.upper(), accidental=accidental, mode=mode)


def key_signature_offsets(key_name: str | None) -> Mapping[str, int]:
    """
    Return the implicit accidental offset per letter for a key name.

    Unknown or unparseable keys resolve to an empty mapping, which behaves
    like C major.
    """
    parsed = parse_key_name(key_name)
    if parsed is None:
        if key_name:
            logger.debug("Unrecognised key %r, using an empty signature", key_name)
        return EMPTY_SIGNATURE
    signature = KEY_SIGNATURES.get(parsed.code)
    if signature is None:
        logger.debug("Key %r has more than seven accidentals, using an empty signature", key_name)
        return EMPTY_SIGNATURE
    return signature


def prefer_sharps(key_name: str | None) -> bool:
    """True when chromatic notes in ``key_name`` should be spelled with sharps."""
    parsed = parse_key_name(key_name)
    if parsed is None:
        return "#" in (key_name or "")
    if parsed.accidental:
        return parsed.accidental == "#"
    return parsed.tonic in SHARP_ROOTS


def spell_pitch_class(pitch_class: int, sharps: bool) -> tuple[str, int]:
    """
    Spell a pitch class (0-11) as (upper-case letter, semitone delta).

    Naturals win; otherwise the sharp or flat family is used.
    """
    pitch_class %= SEMITONES_PER_OCTAVE
    if pitch_class in NATURAL_SPELLINGS:
        return NATURAL_SPELLINGS[pitch_class], 0
    if sharps:
        return SHARP_SPELLINGS[pitch_class], 1
    return FLAT_SPELLINGS[pitch_class], -1


def transpose_key_name(key_name: str, steps: int) -> str:
    """
    Shift a key's tonic by ``steps`` semitones, keeping its mode.

    The spelling with the smaller signature wins (Db over C#). Unparseable
    names are returned unchanged.
    """
    parsed = parse_key_name(key_name)
    if parsed is None:
        return key_name

    pitch_class = (parsed.pitch_class + steps) % SEMITONES_PER_OCTAVE
    candidates: list[KeyName] = []
    for sharps in (True, False):
        letter, delta = spell_pitch_class(pitch_class, sharps)
        accidental = {1: "#", -1: "b"}.get(delta, "")
        candidates.append(KeyName(tonic=letter, accidental=accidental, mode=parsed.mode))

    best = min(
        candidates,
        key=lambda key: abs(_fifths_of(key.tonic, key.accidental, key.mode)),
    )
    return best.code


def canonical_key_name(text: str | None) -> str | None:
    """Best-effort display name for a free-text key ('Dmixolydian' -> 'D Mixolydian')."""
    parsed = parse_key_name(text)
    return parsed.display_name if parsed is not None else None
