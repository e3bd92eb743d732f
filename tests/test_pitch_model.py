"""Unit tests for the pitch model: semitones, key signatures and spelling."""

import pytest

from tunebook.pitch_model import (
    KEY_SIGNATURES,
    canonical_key_name,
    key_signature_offsets,
    parse_key_name,
    prefer_sharps,
    semitone_of,
    spell_pitch_class,
    transpose_key_name,
)


def test_semitone_of_natural_letters() -> None:
    assert [semitone_of(letter) for letter in "CDEFGAB"] == [0, 2, 4, 5, 7, 9, 11]


def test_semitone_of_is_case_insensitive() -> None:
    assert semitone_of("b") == 11


def test_semitone_of_rejects_non_note_letter() -> None:
    with pytest.raises(ValueError):
        semitone_of("H")


@pytest.mark.parametrize(
    ("key_name", "expected"),
    [
        ("C", {}),
        ("D", {"F": 1, "C": 1}),
        ("Dmixolydian", {"F": 1}),
        ("G Mixolydian", {}),
        ("A Min", {}),
        ("Edorian", {"F": 1, "C": 1}),
        ("Bb", {"B": -1, "E": -1}),
        ("Gm", {"B": -1, "E": -1}),
        ("F", {"B": -1}),
    ],
)
def test_key_signature_offsets(key_name: str, expected: dict[str, int]) -> None:
    assert dict(key_signature_offsets(key_name)) == expected


def test_seven_sharp_key_alters_every_letter() -> None:
    assert dict(key_signature_offsets("C#")) == {letter: 1 for letter in "FCGDAEB"}


@pytest.mark.parametrize("key_name", ["", None, "Xyz", "HP", "G#", "none"])
def test_unknown_keys_fall_back_to_empty_signature(key_name: str | None) -> None:
    assert dict(key_signature_offsets(key_name)) == {}


def test_key_signature_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        KEY_SIGNATURES["D"]["F"] = 0  # type: ignore[index]


@pytest.mark.parametrize(
    ("key_name", "expected"),
    [
        ("D", True),
        ("G Mixolydian", True),
        ("Am", True),
        ("F#m", True),
        ("C", False),
        ("F", False),
        ("Bb", False),
        ("Eb", False),
        ("", False),
    ],
)
def test_prefer_sharps(key_name: str, expected: bool) -> None:
    assert prefer_sharps(key_name) is expected


def test_prefer_sharps_unparseable_key_with_sharp_sign() -> None:
    assert prefer_sharps("weird#") is True


@pytest.mark.parametrize(
    ("text", "code"),
    [
        ("Dmixolydian", "Dmix"),
        ("A Min", "Am"),
        ("Gmajor", "G"),
        ("G clef=treble", "G"),
        ("Ebdorian", "Ebdor"),
        ("bminor", "Bm"),
    ],
)
def test_parse_key_name_codes(text: str, code: str) -> None:
    parsed = parse_key_name(text)
    assert parsed is not None
    assert parsed.code == code


def test_parse_key_name_rejects_unknown_mode() -> None:
    assert parse_key_name("Dfoo") is None


def test_canonical_key_name() -> None:
    assert canonical_key_name("Dmixolydian") == "D Mixolydian"
    assert canonical_key_name("Gmajor") == "G Major"
    assert canonical_key_name("eminor") == "E Minor"
    assert canonical_key_name("HP") is None


def test_spell_pitch_class() -> None:
    assert spell_pitch_class(6, sharps=True) == ("F", 1)
    assert spell_pitch_class(6, sharps=False) == ("G", -1)
    assert spell_pitch_class(-1, sharps=True) == ("B", 0)


@pytest.mark.parametrize(
    ("key_name", "steps", "expected"),
    [
        ("G", 2, "A"),
        ("Dmix", 2, "Emix"),
        ("D", 1, "Eb"),
        ("Am", 3, "Cm"),
        ("Edorian", -2, "Ddor"),
        ("weird", 2, "weird"),
    ],
)
def test_transpose_key_name(key_name: str, steps: int, expected: str) -> None:
    assert transpose_key_name(key_name, steps) == expected
