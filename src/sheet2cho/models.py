from dataclasses import dataclass, field
from typing import NamedTuple, Union


class PositionedChord(NamedTuple):
    """A chord name together with the source column it was found at."""

    pos: int
    chord: str


@dataclass
class ConvertOptions:
    """Layout switches for :func:`~sheet2cho.converter.to_cho`.

    ``simple_chord_distribution`` is enabled for sources whose chord rows
    carry no usable column alignment (pesnipodgitaru.ru); chords are then
    spread over the lyric line instead of being placed by column.
    """

    simple_chord_distribution: bool = False
    preserve_chord_rows: bool = False


@dataclass
class ChordSheet:
    """Raw chord sheet pulled out of a source page, before conversion."""

    title: str
    artist: str
    body_text: str


@dataclass
class Song:
    """A converted song: metadata plus canonical ``cho`` text."""

    title: str
    artist: str
    cho: str
    source_url: str = ""
    source_host: str = ""


# ---------------------------------------------------------------------------
# Display rows (output of chordpro.parse_cho)
# ---------------------------------------------------------------------------
#
# ``source`` fields hold the exact line the row was parsed from and are left
# out of equality; render_cho writes them back unchanged.


@dataclass(frozen=True)
class SectionRow:
    """``{c: name}`` / ``{comment: name}`` directive."""

    name: str
    instrumental: bool = False
    key: str = "c"
    source: str = field(default="", compare=False)


@dataclass(frozen=True)
class DirectiveRow:
    """Any other directive, e.g. ``{title: ...}``."""

    key: str
    value: str = ""
    source: str = field(default="", compare=False)


@dataclass(frozen=True)
class TextRow:
    value: str
    instrumental: bool = False
    tab_like: bool = False
    source: str = field(default="", compare=False)


@dataclass(frozen=True)
class ChordedRow:
    """A line with inline chords split into a chord row and a lyric row.

    ``chords`` is aligned column-for-column with ``lyrics``.  For chord-only
    lines ``lyrics`` is empty and ``chords`` is a space-joined list.
    """

    chords: str
    lyrics: str
    instrumental: bool = False
    source: str = field(default="", compare=False)


@dataclass(frozen=True)
class VerseGapRow:
    """One or more consecutive blank lines."""

    instrumental: bool = False
    size: int = 1
    source: tuple[str, ...] = field(default=(), compare=False)


DisplayRow = Union[SectionRow, DirectiveRow, TextRow, ChordedRow, VerseGapRow]


class DisplayRows(list):
    """Rows of one parsed document; remembers whether the text ended in a newline."""

    def __init__(self, rows=(), trailing_newline: bool = True):
        super().__init__(rows)
        self.trailing_newline = trailing_newline
