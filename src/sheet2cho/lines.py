"""Line classification for raw chord sheets.

A line's role is decided by an ordered rule table; the first matching rule
wins:

  1. DIRECTIVE    ``{key: value}``
  2. SECTION      ``[Припев]``, ``[Chorus]:``, ``Куплет:``, ``Intro - Am G``
  3. TAB          ``E|--0--2--``, ``1-я струна ...``
  4. CHORD        ``Am   C   Dm  |  E``  (at most 12 tokens)
  5. PROGRESSION  ``Am - C - G - D x2``  (only inside instrumental sections)
  6. LYRIC        everything else

Blank lines are classified as BLANK before the table is consulted.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from .chords import (
    CYRILLIC_RE,
    is_chord,
    is_separator,
    normalize_chord_token,
    split_combined_chord,
)

MAX_CHORD_ROW_TOKENS = 12

SECTION_KEYWORDS = (
    "куплет", "припев", "вступление", "проигрыш", "кода", "бридж", "соло",
    "intro", "verse", "chorus", "bridge", "instrumental", "interlude", "outro",
)
_KEYWORDS_PAT = "|".join(SECTION_KEYWORDS)

DIRECTIVE_RE = re.compile(r"^\{\s*([^:}\s]+)\s*(?::\s*([^}]*))?\}\s*$")
BRACKET_SECTION_RE = re.compile(r"^\[([^\]]+)\]:?$")

# "Припев: Am C" / "Chorus 2:": the whole label must be a known keyword.
_PLAIN_SECTION_RE = re.compile(r"^\s*([A-Za-zА-Яа-яЁё0-9\s]+):\s*(.*)$")
# "Припев - Am C" / "Соло.": keyword at line start, optional separator.
_LOOSE_SECTION_RE = re.compile(
    rf"^\s*((?:{_KEYWORDS_PAT})(?:\s*\d+)?)\s*([.:!?-])?\s*(.*)$", re.IGNORECASE
)
_SECTION_NAME_RE = re.compile(rf"^(?:{_KEYWORDS_PAT})(?:\s*\d+)?$", re.IGNORECASE)
_INSTRUMENTAL_NAME_RE = re.compile(
    r"^(?:вступление|проигрыш|соло|кода|intro|instrumental|interlude|outro)(?:\s*\d+)?$",
    re.IGNORECASE,
)

_STRING_ORDINAL_RE = re.compile(r"^[1-6]-я\s+")
_TAB_START_RE = re.compile(r"^[EADGBe]\|")
_TAB_LINE_RE = re.compile(r"^[EADGBe]\|[-0-9hHpPbBrRsSxX~^()\\/|.*\s]+$")


class LineType(Enum):
    BLANK = auto()
    DIRECTIVE = auto()
    SECTION = auto()
    TAB = auto()
    CHORD = auto()
    PROGRESSION = auto()
    LYRIC = auto()


@dataclass
class SectionCue:
    """A section header found in raw text, with any content after it."""

    section: str
    tail: str = ""


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_directive(line: str) -> bool:
    return bool(DIRECTIVE_RE.match(line.strip()))


def is_section_name(value: str) -> bool:
    return bool(_SECTION_NAME_RE.match(value.strip()))


def is_instrumental_section_name(value: str) -> bool:
    return bool(_INSTRUMENTAL_NAME_RE.match((value or "").strip()))


def parse_section_cue(line: str) -> SectionCue | None:
    """Return the section named at the start of *line*, or ``None``.

    Handles bracketed labels (``[Припев]``, ``[Chorus]:``) whose content is
    not a chord, ``Label: tail`` lines whose label is a known section word,
    and keyword-first lines (``Соло - Am G``).  Without a separator any text
    after the keyword makes the line ordinary text.
    """
    stripped = line.strip()

    m = BRACKET_SECTION_RE.match(stripped)
    if m:
        label = m.group(1).strip()
        if label and not is_chord(normalize_chord_token(label)):
            return SectionCue(section=label)
        return None

    m = _PLAIN_SECTION_RE.match(line)
    if m and is_section_name(m.group(1)):
        return SectionCue(section=m.group(1).strip(), tail=m.group(2).strip())

    m = _LOOSE_SECTION_RE.match(line)
    if not m:
        return None
    separator = (m.group(2) or "").strip()
    tail = (m.group(3) or "").strip()
    if not separator and tail:
        return None
    return SectionCue(section=m.group(1).strip(), tail=tail)


def is_tab_line(line: str) -> bool:
    """True for guitar string lines: ``e|--0--3--|`` or ``2-я струна ...``."""
    stripped = line.strip()
    if _STRING_ORDINAL_RE.match(stripped):
        return True
    return bool(_TAB_LINE_RE.match(stripped))


def is_chord_line(line: str) -> bool:
    """True when every token is a chord, a combined chord or a separator."""
    tokens = line.split()
    if not tokens or len(tokens) > MAX_CHORD_ROW_TOKENS:
        return False

    chord_count = 0
    for token in tokens:
        candidate = normalize_chord_token(token)
        if not candidate:
            continue
        if is_chord(candidate):
            chord_count += 1
            continue
        combined = split_combined_chord(candidate)
        if combined:
            chord_count += len(combined)
            continue
        if is_separator(candidate):
            continue
        return False

    return chord_count > 0


def is_chord_progression_line(line: str) -> bool:
    """True for a long Latin-only run of chords and separators (>= 2 chords)."""
    stripped = line.strip()
    if not stripped or _TAB_START_RE.match(stripped) or CYRILLIC_RE.search(stripped):
        return False

    chord_count = 0
    for token in stripped.split():
        candidate = normalize_chord_token(token)
        if not candidate:
            continue
        if is_chord(candidate):
            chord_count += 1
            continue
        if is_separator(candidate):
            continue
        return False

    return chord_count >= 2


def is_likely_pure_lyric_line(line: str) -> bool:
    stripped = (line or "").strip()
    if not stripped or "[" in stripped or is_tab_line(stripped):
        return False
    return bool(re.search(r"[А-Яа-яЁёA-Za-z]", stripped))


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

Rule = tuple[LineType, Callable[[str, bool], bool]]

RULES: list[Rule] = [
    (LineType.DIRECTIVE, lambda line, _: is_directive(line)),
    (LineType.SECTION, lambda line, _: parse_section_cue(line) is not None),
    (LineType.TAB, lambda line, _: is_tab_line(line)),
    (LineType.CHORD, lambda line, _: is_chord_line(line)),
    (LineType.PROGRESSION, lambda line, instrumental: instrumental and is_chord_progression_line(line)),
]


def classify_line(line: str, instrumental: bool = False) -> LineType:
    """Classify one raw line.

    Args:
        line:         A single line of source text.
        instrumental: Whether the line sits inside an instrumental section;
                      chord progressions are only recognized there.
    """
    stripped = line.strip()
    if not stripped:
        return LineType.BLANK
    for line_type, matches in RULES:
        if matches(stripped, instrumental):
            return line_type
    return LineType.LYRIC
