"""Transposer: shift every note of an ABC tune by a number of semitones."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping

from tunebook.abc_lines import is_header_line
from tunebook.abc_models import (
    BarLineToken,
    ChordSymbolToken,
    InlineFieldToken,
    NoteToken,
    OtherToken,
    Token,
)
from tunebook.pitch_model import (
    ACCIDENTAL_DELTAS,
    EMPTY_SIGNATURE,
    SEMITONES_PER_OCTAVE,
    key_signature_offsets,
    prefer_sharps,
    semitone_of,
    spell_pitch_class,
    transpose_key_name,
)

logger = logging.getLogger(__name__)

NOTE_LETTERS = frozenset("ABCDEFGabcdefg")

_DECORATION_RE = re.compile(r"![^!\s]*!|\+[A-Za-z().<>]+\+")
_INLINE_FIELD_RE = re.compile(r"\[([A-Za-z]):([^\]]*)\]")
_CHORD_SYMBOL_RE = re.compile(r"^([A-G])([#b]?)([^/]*)(?:/([A-G])([#b]?))?$")
_KEY_LINE_RE = re.compile(r"^\s*K:")
_LYRIC_LINE_RE = re.compile(r"^[a-z]:")


class TranspositionError(ValueError):
    """Raised when a tune cannot be transposed without corrupting it."""


# ── Spelling strategies ─────────────────────────────────────────────────────


class SpellingStrategy(ABC):
    """
    Choose how a transposed pitch class is written.

    Concrete strategies differ only in which family of accidentals they use
    for the five black-key pitch classes.
    """

    @property
    @abstractmethod
    def sharps(self) -> bool:
        """True for the sharp family."""

    def spell_note(self, pitch_class: int, target_signature: Mapping[str, int]) -> tuple[str, str]:
        """
        Return (upper-case letter, ABC accidental) for a pitch class.

        A natural letter that the target signature alters gets an explicit
        ``=`` so it still sounds natural.
        """
        letter, delta = spell_pitch_class(pitch_class, self.sharps)
        if delta == 0:
            return letter, "=" if target_signature.get(letter, 0) else ""
        return letter, "^" if delta > 0 else "_"

    def spell_chord_root(self, pitch_class: int) -> str:
        """Return a chord-symbol root such as 'F#' or 'Bb'."""
        letter, delta = spell_pitch_class(pitch_class, self.sharps)
        return letter + {1: "#", -1: "b"}.get(delta, "")


class SharpSpeller(SpellingStrategy):
    @property
    def sharps(self) -> bool:
        return True


class FlatSpeller(SpellingStrategy):
    @property
    def sharps(self) -> bool:
        return False


def speller_for_key(key_name: str) -> SpellingStrategy:
    """Return the spelling strategy preferred by ``key_name``."""
    return SharpSpeller() if prefer_sharps(key_name) else FlatSpeller()


# ── Tokenizer ────────────────────────────────────────────────────────────────


def _octave_marks_end(line: str, start: int) -> int:
    end = start
    while end < len(line) and line[end] in ",'":
        end += 1
    return end


def tokenize_music_line(line: str) -> list[Token]:
    """
    Split one music line into typed tokens.

    Quoted strings, ``!decorations!``, inline fields and ``%`` comments are
    single tokens so the letters inside them are never read as notes.

    Raises:
        TranspositionError: If an accidental is not followed by a note letter.
    """
    tokens: list[Token] = []
    index = 0
    length = len(line)

    while index < length:
        char = line[index]

        if char == "%":
            tokens.append(OtherToken(line[index:]))
            break

        if char == '"':
            closing = line.find('"', index + 1)
            if closing == -1:
                tokens.append(OtherToken(line[index:]))
                break
            tokens.append(ChordSymbolToken(line[index + 1:closing]))
            index = closing + 1
            continue

        if char in "!+":
            decoration = _DECORATION_RE.match(line, index)
            if decoration:
                tokens.append(OtherToken(decoration.group()))
                index = decoration.end()
                continue

        if char == "[":
            field = _INLINE_FIELD_RE.match(line, index)
            if field:
                tokens.append(InlineFieldToken(field.group(1), field.group(2)))
                index = field.end()
                continue

        if char in "^_=":
            width = 2 if line.startswith(("^^", "__"), index) else 1
            accidental = line[index:index + width]
            letter_index = index + width
            if letter_index >= length or line[letter_index] not in NOTE_LETTERS:
                raise TranspositionError(
                    f"Accidental {accidental!r} at column {index + 1} "
                    f"is not followed by a note: {line!r}"
                )
            marks_end = _octave_marks_end(line, letter_index + 1)
            tokens.append(
                NoteToken(accidental, line[letter_index], line[letter_index + 1:marks_end])
            )
            index = marks_end
            continue

        if char in NOTE_LETTERS:
            marks_end = _octave_marks_end(line, index + 1)
            tokens.append(NoteToken("", char, line[index + 1:marks_end]))
            index = marks_end
            continue

        if char == "|":
            tokens.append(BarLineToken())
        else:
            tokens.append(OtherToken(char))
        index += 1

    return tokens


def render_note(letter: str, accidental: str, octave_offset: int) -> str:
    """Encode a letter and an octave offset from the upper-case reference octave."""
    if octave_offset >= 1:
        return accidental + letter.lower() + "'" * (octave_offset - 1)
    if octave_offset == 0:
        return accidental + letter.upper()
    return accidental + letter.upper() + "," * -octave_offset


# ── Transposer ───────────────────────────────────────────────────────────────


class Transposer:
    """
    Stateful single-pass transposition of one ABC document.

    The first ``K:`` line becomes ``target_key``; later key changes (header
    lines or inline ``[K:]`` fields) are shifted by the same interval.
    """

    def __init__(self, steps: int, target_key: str) -> None:
        self.steps = steps
        self.target_key = target_key.strip()
        self._source_signature: Mapping[str, int] = EMPTY_SIGNATURE
        self._target_signature: Mapping[str, int] = EMPTY_SIGNATURE
        self._speller: SpellingStrategy = speller_for_key(self.target_key)
        self._seen_key = False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _change_key(self, source_key: str) -> str:
        """Switch to ``source_key`` and return the key name to write instead."""
        if self._seen_key:
            new_key = transpose_key_name(source_key, self.steps)
        else:
            new_key = self.target_key
            self._seen_key = True
        logger.debug("Key %r -> %r", source_key, new_key)

        self._source_signature = key_signature_offsets(source_key)
        self._target_signature = key_signature_offsets(new_key)
        self._speller = speller_for_key(new_key)
        return new_key

    def _key_line(self, line: str) -> str:
        value = line.strip()[2:].strip()
        modifiers = [word for word in value.split() if "=" in word]
        source_key = " ".join(word for word in value.split() if "=" not in word)
        return "K:" + " ".join([self._change_key(source_key), *modifiers])

    def _transpose_note(self, token: NoteToken) -> str:
        if token.accidental:
            delta = ACCIDENTAL_DELTAS[token.accidental]
        else:
            delta = self._source_signature.get(token.letter.upper(), 0)

        pitch = semitone_of(token.letter) + delta + self.steps
        octave_shift, pitch_class = divmod(pitch, SEMITONES_PER_OCTAVE)
        letter, accidental = self._speller.spell_note(pitch_class, self._target_signature)
        return render_note(letter, accidental, token.octave_offset + octave_shift)

    def _transpose_chord_root(self, letter: str, accidental: str) -> str:
        delta = {"#": 1, "b": -1}.get(accidental, 0)
        pitch_class = (semitone_of(letter) + delta + self.steps) % SEMITONES_PER_OCTAVE
        return self._speller.spell_chord_root(pitch_class)

    def _transpose_chord_symbol(self, token: ChordSymbolToken) -> str:
        match = _CHORD_SYMBOL_RE.match(token.symbol)
        if match is None:
            return token.text
        root, root_accidental, quality, bass, bass_accidental = match.groups()
        symbol = self._transpose_chord_root(root, root_accidental) + quality
        if bass:
            symbol += "/" + self._transpose_chord_root(bass, bass_accidental or "")
        return f'"{symbol}"'

    def _render_token(self, token: Token) -> str:
        if isinstance(token, NoteToken):
            return self._transpose_note(token)
        if isinstance(token, ChordSymbolToken):
            return self._transpose_chord_symbol(token)
        if isinstance(token, InlineFieldToken) and token.name == "K":
            return f"[K:{self._change_key(token.value.strip())}]"
        return token.text

    def _music_line(self, line: str) -> str:
        return "".join(self._render_token(token) for token in tokenize_music_line(line))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transpose_document(self, abc_text: str) -> str:
        """
        Transpose every music line of ``abc_text``.

        Raises:
            TranspositionError: If there is no ``K:`` line or a note cannot be read.
        """
        if not any(_KEY_LINE_RE.match(line) for line in abc_text.split("\n")):
            raise TranspositionError("ABC text has no K: header.")

        output: list[str] = []
        for line in abc_text.split("\n"):
            stripped = line.strip()
            if stripped.startswith("K:"):
                output.append(self._key_line(line))
            elif (
                not stripped
                or stripped.startswith("%")
                or is_header_line(stripped)
                or _LYRIC_LINE_RE.match(stripped)
            ):
                output.append(line)
            else:
                output.append(self._music_line(line))
        return "\n".join(output)


def transpose_or_raise(abc_text: str | None, steps: int, target_key: str) -> str:
    """
    Like :func:`transpose` but raises instead of returning None.

    Raises:
        TranspositionError: On an empty target key, a missing ``K:`` line or
            an unreadable note.
    """
    if not abc_text or steps == 0:
        return abc_text or ""
    if not target_key or not target_key.strip():
        raise TranspositionError("Target key is empty.")
    return Transposer(steps, target_key).transpose_document(abc_text)


def transpose(abc_text: str | None, steps: int, target_key: str) -> str | None:
    """
    Transpose ``abc_text`` by ``steps`` semitones and rewrite ``K:`` to ``target_key``.

    Zero steps returns the input unchanged. Returns None when the tune cannot
    be transposed safely; callers should keep the original text.
    """
    try:
        return transpose_or_raise(abc_text, steps, target_key)
    except TranspositionError as exc:
        logger.warning("Transposition by %+d to %r failed: %s", steps, target_key, exc)
        return None
