import pytest

from sheet2cho.lines import (
    LineType,
    SectionCue,
    classify_line,
    is_chord_line,
    is_chord_progression_line,
    is_instrumental_section_name,
    is_likely_pure_lyric_line,
    is_tab_line,
    parse_section_cue,
)

LONG_PROGRESSION = "Am | C | G | D | Am | C | G | D |"

# ---------------------------------------------------------------------------
# Rule order
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("line, expected", [
    ("", LineType.BLANK),
    ("   ", LineType.BLANK),
    ("{title: Группа крови}", LineType.DIRECTIVE),
    ("{c: Припев}", LineType.DIRECTIVE),
    ("[Припев]", LineType.SECTION),
    ("[Chorus]:", LineType.SECTION),
    ("Куплет 2:", LineType.SECTION),
    ("Соло - Am G", LineType.SECTION),
    ("E|--0--2--3--|", LineType.TAB),
    ("1-я струна: 0-0-0", LineType.TAB),
    ("Am   C   Dm  |  E", LineType.CHORD),
    ("[Am]", LineType.CHORD),
    ("Тёплое место, но улицы ждут", LineType.LYRIC),
])
def test_classify_line(line, expected):
    assert classify_line(line) == expected


def test_progression_only_inside_instrumental():
    assert classify_line(LONG_PROGRESSION, instrumental=True) == LineType.PROGRESSION
    assert classify_line(LONG_PROGRESSION) == LineType.LYRIC


def test_short_progression_is_chord_row():
    assert classify_line("Am - C - G - D x2", instrumental=True) == LineType.CHORD


# ---------------------------------------------------------------------------
# Section cues
# ---------------------------------------------------------------------------


def test_bracket_cue():
    assert parse_section_cue("[Вступление]") == SectionCue(section="Вступление")


def test_bracket_chord_is_not_a_cue():
    assert parse_section_cue("[Am]") is None


def test_label_cue_with_tail():
    assert parse_section_cue("Припев: Am C") == SectionCue(section="Припев", tail="Am C")


def test_keyword_cue_with_separator():
    assert parse_section_cue("Intro - Am G") == SectionCue(section="Intro", tail="Am G")


def test_keyword_cue_alone():
    assert parse_section_cue("Припев") == SectionCue(section="Припев")


def test_keyword_without_separator_is_text():
    assert parse_section_cue("Припев поём вместе") is None


def test_unknown_label_is_not_a_cue():
    assert parse_section_cue("Слова: народные") is None


def test_instrumental_section_names():
    assert is_instrumental_section_name("Проигрыш")
    assert is_instrumental_section_name("соло 2")
    assert is_instrumental_section_name("Intro")
    assert not is_instrumental_section_name("Припев")
    assert not is_instrumental_section_name("")


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------


def test_tab_lines():
    assert is_tab_line("e|--0--3h5--|")
    assert is_tab_line("B|-1-1-(3)-x-|")
    assert is_tab_line("3-я струна")


def test_tab_start_with_words_is_not_tab():
    assert not is_tab_line("E|Hello world")


# ---------------------------------------------------------------------------
# Chord rows
# ---------------------------------------------------------------------------


def test_chord_row_with_separators_and_combined_tokens():
    assert is_chord_line("AmEm | C x2")


def test_chord_row_needs_a_chord():
    assert not is_chord_line("| -- |")


def test_chord_row_token_limit():
    assert is_chord_line(" ".join(["Am"] * 12))
    assert not is_chord_line(" ".join(["Am"] * 13))


def test_lyric_is_not_chord_row():
    assert not is_chord_line("Am I dreaming")


def test_progression_rejects_cyrillic():
    assert not is_chord_progression_line("Am C G D припев")


def test_progression_needs_two_chords():
    assert is_chord_progression_line("Am | C")
    assert not is_chord_progression_line("Am | |")


# ---------------------------------------------------------------------------
# Pure lyric lines
# ---------------------------------------------------------------------------


def test_pure_lyric_line():
    assert is_likely_pure_lyric_line("Группа крови на рукаве")
    assert not is_likely_pure_lyric_line("[Am]Группа крови")
    assert not is_likely_pure_lyric_line("E|--0--|")
    assert not is_likely_pure_lyric_line("123 456")
