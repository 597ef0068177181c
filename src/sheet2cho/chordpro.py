"""Canonical ``cho`` text -> display rows, and back.

Each line of a ``.cho`` document becomes one display row (blank runs become
one row):

+--------------------------------------+------------------------------------+
| Line                                 | Row                                |
+======================================+====================================+
| ``{c: Припев}``, ``{comment: Solo}`` | :class:`SectionRow`                |
+--------------------------------------+------------------------------------+
| ``{title: ...}`` and other keys      | :class:`DirectiveRow`              |
+--------------------------------------+------------------------------------+
| blank line(s)                        | :class:`VerseGapRow`               |
+--------------------------------------+------------------------------------+
| text without ``[``                   | :class:`TextRow`                   |
+--------------------------------------+------------------------------------+
| text with ``[Chord]`` tokens         | :class:`ChordedRow`                |
+--------------------------------------+------------------------------------+

Rows also carry an ``instrumental`` flag.  It is switched on by instrumental
section names (Проигрыш, Intro, Solo, Riff, ...) and by string-tab lines, and
switched off again when lyrics resume.

Usage::

    from sheet2cho.chordpro import parse_cho
    for row in parse_cho(Path("song.cho").read_text()):
        ...

Parsing never raises: malformed brackets and stray braces end up as text.
"""

import re

from .chords import transpose_chord
from .lines import DIRECTIVE_RE, is_tab_line
from .models import ChordedRow, DirectiveRow, DisplayRow, DisplayRows, SectionRow, TextRow, VerseGapRow

DEFAULT_SECTION_NAME = "Секция"
SECTION_KEYS = ("c", "comment")

_INSTRUMENTAL_SECTION_RE = re.compile(
    r"(проигрыш|вступлен|соло|interlude|intro|instrumental|riff|рифф|bridge|бридж)",
    re.IGNORECASE,
)
_CHORD_TOKEN_RE = re.compile(r"\[([^\]]+)\]")
_LETTER_RE = re.compile(r"[А-Яа-яЁёA-Za-z]")


def parse_directive(line: str) -> tuple[str, str] | None:
    """Return ``(key, value)`` for ``{key: value}`` / ``{key}``; key is lowercased."""
    m = DIRECTIVE_RE.match(line)
    if not m:
        return None
    return m.group(1).lower(), (m.group(2) or "").strip()


def is_instrumental_section(name: str) -> bool:
    return bool(_INSTRUMENTAL_SECTION_RE.search(name or ""))


def is_chorded_lyric_line(line: str) -> bool:
    """True for a line with chord tokens *and* lyric letters outside them."""
    if "[" not in line:
        return False
    without_chords = _CHORD_TOKEN_RE.sub("", line).strip()
    return bool(without_chords) and bool(_LETTER_RE.search(without_chords))


def should_exit_instrumental(line: str) -> bool:
    """True when a line inside an instrumental block carries real words."""
    stripped = line.strip()
    if not stripped or is_tab_line(stripped):
        return False
    without_chords = _CHORD_TOKEN_RE.sub("", stripped).strip()
    if not without_chords:
        return False
    return bool(re.search(r"[А-Яа-яЁё]", without_chords) or re.search(r"[A-Za-z]{2,}", without_chords))


def split_chord_line(line: str) -> tuple[str, str]:
    """Split ``[Am]Hello [C]world`` into ``("Am    C", "Hello world")``.

    Each chord is placed above the lyric character it precedes, but always
    at least one column after the previous chord ends.  A line holding only
    chords gives a space-joined chord list and empty lyrics.
    """
    if not _CHORD_TOKEN_RE.sub("", line).strip():
        names = [m.group(1).strip() for m in _CHORD_TOKEN_RE.finditer(line)]
        return " ".join(name for name in names if name), ""

    lyrics: list[str] = []
    chords = ""
    lyric_len = 0
    consumed = 0

    for m in _CHORD_TOKEN_RE.finditer(line):
        text = line[consumed:m.start()]
        lyrics.append(text)
        lyric_len += len(text)

        chord = m.group(1).strip()
        place = lyric_len
        if chords and len(chords) >= place:
            place = len(chords) + 1
        chords = chords.ljust(place) + chord
        consumed = m.end()

    lyrics.append(line[consumed:])
    return chords, "".join(lyrics)


class _BlankRun:
    def __init__(self):
        self.lines: list[str] = []

    def flush(self, rows: list[DisplayRow], instrumental: bool) -> None:
        if self.lines:
            rows.append(VerseGapRow(instrumental=instrumental, size=len(self.lines), source=tuple(self.lines)))
            self.lines = []


def parse_cho(text: str) -> DisplayRows:
    """Parse canonical text into display rows.

    A final newline terminates the last line rather than adding a gap; it is
    recorded on the result as ``trailing_newline``.  Every row keeps the line
    it came from, so ``render_cho(parse_cho(text)) == text``.
    """
    rows = DisplayRows(trailing_newline=text.endswith("\n"))
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()

    blank = _BlankRun()
    instrumental = False
    locked = False  # instrumental state was set by a section directive

    for source in lines:
        line = source.replace("\r", "")
        directive = parse_directive(line)
        if directive:
            blank.flush(rows, instrumental)
            key, value = directive
            if key in SECTION_KEYS:
                instrumental = is_instrumental_section(value)
                locked = instrumental
                rows.append(SectionRow(name=value or DEFAULT_SECTION_NAME, instrumental=instrumental,
                                       key=key, source=source))
            else:
                rows.append(DirectiveRow(key=key, value=value, source=source))
            continue

        if not line.strip():
            blank.lines.append(source)
            continue

        tab_like = is_tab_line(line)
        if tab_like:
            instrumental = True

        if locked and is_chorded_lyric_line(line):
            instrumental = False
            locked = False

        if instrumental and not locked and should_exit_instrumental(line):
            instrumental = False

        blank.flush(rows, instrumental)

        if "[" not in line:
            rows.append(TextRow(value=line, instrumental=instrumental or tab_like, tab_like=tab_like,
                                source=source))
            continue

        chords, lyrics = split_chord_line(line)
        rows.append(ChordedRow(chords=chords, lyrics=lyrics, instrumental=instrumental, source=source))

    blank.flush(rows, instrumental)
    return rows


def render_cho(rows: list[DisplayRow]) -> str:
    """Serialize display rows back to canonical text.

    Rows parsed from text are written back as their source lines.  Rows built
    by hand are formatted, and a plain list renders newline-terminated.
    """
    out: list[str] = []
    for row in rows:
        if isinstance(row, VerseGapRow):
            out.extend(row.source if len(row.source) == row.size else [""] * row.size)
        elif row.source:
            out.append(row.source)
        elif isinstance(row, SectionRow):
            out.append(f"{{{row.key}: {row.name}}}")
        elif isinstance(row, DirectiveRow):
            out.append(f"{{{row.key}: {row.value}}}" if row.value else f"{{{row.key}}}")
        elif isinstance(row, TextRow):
            out.append(row.value)
        elif isinstance(row, ChordedRow):
            out.append(_join_chord_rows(row.chords, row.lyrics))
    text = "\n".join(out)
    if getattr(rows, "trailing_newline", True) and out:
        text += "\n"
    return text


def _join_chord_rows(chords: str, lyrics: str) -> str:
    if not lyrics:
        return " ".join(f"[{name}]" for name in chords.split())
    parts: list[str] = []
    cursor = 0
    for m in re.finditer(r"\S+", chords):
        pos = min(m.start(), len(lyrics))
        parts.append(lyrics[cursor:pos])
        parts.append(f"[{m.group()}]")
        cursor = max(cursor, pos)
    parts.append(lyrics[cursor:])
    return "".join(parts)


def extract_chord_names(text: str) -> list[str]:
    """Return the sorted set of chord names used in a canonical document."""
    return sorted({m.group(1).strip() for m in _CHORD_TOKEN_RE.finditer(text) if m.group(1).strip()})


def transpose_cho(text: str, shift: int) -> str:
    """Transpose every ``[chord]`` token of a canonical document.

    Directive lines and lyrics are left untouched.
    """
    if not shift:
        return text

    def _transpose(m: re.Match) -> str:
        return f"[{transpose_chord(m.group(1), shift)}]"

    lines = text.split("\n")
    return "\n".join(
        line if DIRECTIVE_RE.match(line) else _CHORD_TOKEN_RE.sub(_transpose, line) for line in lines
    )
