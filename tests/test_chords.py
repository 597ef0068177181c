import pytest

from sheet2cho.chords import (
    chords_in_token,
    extract_chord_tokens,
    extract_chords_with_offsets,
    is_chord,
    is_separator,
    normalize_chord_token,
    normalize_cyrillic,
    root_semitone,
    split_combined_chord,
    transpose_chord,
    transpose_root,
)
from sheet2cho.models import PositionedChord

# ---------------------------------------------------------------------------
# is_chord
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("token", [
    "A", "Am", "H", "Hm", "Bb", "F#m", "C7", "Cmaj7", "Ammaj7",
    "Dsus4", "Gdim", "Eaug", "Cadd9", "Dm/F", "F#m7/C#", "N.C.",
])
def test_chord_grammar_accepts(token):
    assert is_chord(normalize_chord_token(token))


@pytest.mark.parametrize("token", ["X", "Hello", "Am7x", "", "J7", "/C"])
def test_chord_grammar_rejects(token):
    assert not is_chord(token)


# ---------------------------------------------------------------------------
# normalize_chord_token
# ---------------------------------------------------------------------------


def test_normalize_strips_brackets_and_punctuation():
    assert normalize_chord_token("(Am),") == "Am"
    assert normalize_chord_token("[C]") == "C"
    assert normalize_chord_token("{G}") == "G"


def test_normalize_keeps_no_chord_periods():
    assert normalize_chord_token("N.C.") == "N.C."


def test_normalize_maps_cyrillic_homoglyphs():
    assert normalize_chord_token("Нm") == "Hm"
    assert normalize_chord_token("Аm") == "Am"
    assert normalize_chord_token("Е7") == "E7"


def test_normalize_cyrillic_leaves_latin_untouched():
    assert normalize_cyrillic("Am") == "Am"


# ---------------------------------------------------------------------------
# split_combined_chord
# ---------------------------------------------------------------------------


def test_split_run_together_chords():
    assert split_combined_chord("AmEmC") == ["Am", "Em", "C"]


def test_split_prefers_longest_quality():
    assert split_combined_chord("Cmaj7Am") == ["Cmaj7", "Am"]


def test_split_rejects_residue():
    assert split_combined_chord("Xyz") == []
    assert split_combined_chord("AmXy") == []


def test_split_single_chord_is_not_combined():
    assert split_combined_chord("Am") == []


# ---------------------------------------------------------------------------
# Separators
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("token", ["|", "||", "/", "--", "x4", "}x2", "()", "...", "."])
def test_separators(token):
    assert is_separator(token)


def test_chord_is_not_separator():
    assert not is_separator("Am")


# ---------------------------------------------------------------------------
# Token / line extraction
# ---------------------------------------------------------------------------


def test_chords_in_token():
    assert chords_in_token("Am") == ["Am"]
    assert chords_in_token("(AmEm)") == ["Am", "Em"]
    assert chords_in_token("|") == []
    assert chords_in_token("привет") == []


def test_extract_chord_tokens_skips_separators():
    assert extract_chord_tokens("Am | C | G x2") == ["Am", "C", "G"]


def test_extract_chord_tokens_expands_combined():
    assert extract_chord_tokens("AmEm  C") == ["Am", "Em", "C"]


def test_extract_chords_with_offsets():
    assert extract_chords_with_offsets("Am   Em   C") == [
        PositionedChord(0, "Am"),
        PositionedChord(5, "Em"),
        PositionedChord(10, "C"),
    ]


def test_combined_token_parts_keep_own_offsets():
    assert extract_chords_with_offsets("Am  AmEm") == [
        PositionedChord(0, "Am"),
        PositionedChord(4, "Am"),
        PositionedChord(6, "Em"),
    ]


# ---------------------------------------------------------------------------
# Transposition
# ---------------------------------------------------------------------------


def test_root_semitone_german_notation():
    assert root_semitone("H") == 11
    assert root_semitone("B") == 10
    assert root_semitone("Hb") == 10
    assert root_semitone("Db") == 1
    assert root_semitone("a") == 9
    assert root_semitone("X") is None


def test_transpose_root_wraps_around():
    assert transpose_root("H", 1) == "C"
    assert transpose_root("C", -1) == "H"
    assert transpose_root("A", 1) == "B"
    assert transpose_root("X", 1) == ""


@pytest.mark.parametrize("chord,shift,expected", [
    ("Am", 2, "Hm"),
    ("Am7/G", 2, "Hm7/A"),
    ("Bb", 2, "C"),
    ("Ebm", 1, "Em"),
    ("F#m", -13, "Fm"),
    ("Dsus4", 12, "Dsus4"),
])
def test_transpose_chord(chord, shift, expected):
    assert transpose_chord(chord, shift) == expected


def test_transpose_chord_leaves_unreadable_root():
    assert transpose_chord("N.C.", 3) == "N.C."
    assert transpose_chord(" Am ", 0) == "Am"


def test_transpose_chord_drops_unreadable_bass():
    assert transpose_chord("Am/x", 1) == "A#m"
