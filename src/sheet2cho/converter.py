"""Raw chord sheet -> canonical ``cho`` text.

:class:`ChoConverter` walks the body of a :class:`~sheet2cho.models.ChordSheet`
line by line.  Chord rows are buffered until the lyric line they belong to
arrives and are then interleaved into it (see :mod:`sheet2cho.merge`).
Section headers become ``{c: name}`` directives.

Output grammar::

    {title: ...}
    {artist: ...}

    {c: Куплет}
    [Am]Lyric line with [C]inline chords
    [Am] [C] [G]            (chord-only line)

A converter instance holds the state of exactly one document; use
:func:`to_cho` for one-shot conversion.
"""

import logging
import re
from dataclasses import dataclass

from .lines import (
    BRACKET_SECTION_RE,
    LineType,
    classify_line,
    is_chord_line,
    is_instrumental_section_name,
    is_likely_pure_lyric_line,
    parse_section_cue,
)
from .merge import (
    build_chord_only_line,
    cleanup_merged_line,
    convert_progression_to_inline,
    extract_trailing_carry,
    merge_chord_rows,
    merge_chord_sequence,
)
from .models import ChordSheet, ConvertOptions

logger = logging.getLogger(__name__)

CHORUS_RE = re.compile(r"^припев$", re.IGNORECASE)
VERSE_SECTION = "Куплет"
TAB_SECTION = "Проигрыш"

# Chorus -> verse switch thresholds (pesnipodgitaru layout).
CHORUS_SWITCH_MIN_CHORDED = 4
CHORUS_SWITCH_MIN_UNCHORDED = 2

_BRACKET_TOKEN_RE = re.compile(r"\[([^\]]+)\]")
_SECTION_DIRECTIVE_RE = re.compile(r"^\{\s*c\s*:\s*([^}]+)\}\s*$", re.IGNORECASE)
_EXCESS_BLANKS_RE = re.compile(r"\n{3,}")


@dataclass
class SectionContext:
    """Per-section state: name, first chord seen and chorded line count."""

    name: str = ""
    first_chord: str = ""
    chorded_lines: int = 0

    @property
    def instrumental(self) -> bool:
        return is_instrumental_section_name(self.name)

    @property
    def is_chorus(self) -> bool:
        return bool(CHORUS_RE.match(self.name or ""))


def first_chord_of(line: str) -> str:
    m = _BRACKET_TOKEN_RE.search(line)
    return m.group(1).strip() if m else ""


class ChoConverter:
    """Convert one chord sheet body to canonical text."""

    def __init__(self, options: ConvertOptions | None = None):
        self.options = options or ConvertOptions()
        self._reset()

    def _reset(self) -> None:
        self.section = SectionContext()
        self.out: list[str] = []
        self.pending_chord_lines: list[str] = []
        self.carried_chord_lines: list[str] | None = None
        self.carried_tail_chords: list[str] | None = None

    @property
    def simple(self) -> bool:
        return self.options.simple_chord_distribution

    def convert(self, sheet: ChordSheet) -> str:
        """Convert *sheet*; state left over from a previous call is discarded."""
        self._reset()
        if sheet.title:
            self.out.append(f"{{title: {sheet.title}}}")
        if sheet.artist:
            self.out.append(f"{{artist: {sheet.artist}}}")
        self.out.append("")

        for raw_line in sheet.body_text.split("\n"):
            self._feed(raw_line)
        self._finish()

        cho = _EXCESS_BLANKS_RE.sub("\n\n", "\n".join(self.out)).strip()
        return normalize_section_flow(cho) if self.simple else cho

    # -----------------------------------------------------------------------
    # Line handling
    # -----------------------------------------------------------------------

    def _feed(self, raw_line: str) -> None:
        line = raw_line
        tail_chords = None
        if self.simple and not is_chord_line(raw_line):
            carry = extract_trailing_carry(line)
            if carry:
                line, tail_chords = carry

        self._dispatch(line, raw_line)

        # Chords glued to the end of this line belong to the next one.
        if tail_chords:
            self.carried_tail_chords = tail_chords

    def _dispatch(self, line: str, raw_line: str) -> None:
        line_type = classify_line(line, instrumental=self.section.instrumental)

        if line_type == LineType.BLANK:
            # Chord rows are sometimes separated from their lyric by an
            # empty line; keep them pending.
            if not self.pending_chord_lines:
                self.out.append("")
            return

        if line_type == LineType.DIRECTIVE:
            self.out.append(line.strip())
            return

        if line_type == LineType.SECTION:
            self._handle_section(line)
            return

        if line_type == LineType.CHORD:
            self.pending_chord_lines.append(raw_line)
            return

        if line_type == LineType.TAB:
            self._handle_tab(line)
            return

        if line_type == LineType.PROGRESSION:
            self.out.append(convert_progression_to_inline(line))
            return

        self._handle_text(line)

    def _handle_section(self, line: str) -> None:
        cue = parse_section_cue(line)
        self._flush_pending_for_section()
        name = cue.section
        if BRACKET_SECTION_RE.match(line.strip()):
            name = name.replace(":", "").strip()
        self._start_section(name)

        if not cue.tail:
            return

        # Carried chords never go into a tail that already has [chord] tokens;
        # they are emitted as a chord-only line above it.
        tail = cue.tail
        if self.carried_tail_chords and self.simple:
            if "[" in tail:
                self.out.append(" ".join(f"[{chord}]" for chord in self.carried_tail_chords))
            else:
                tail = merge_chord_sequence(self.carried_tail_chords, tail)
        self.carried_tail_chords = None

        if self.carried_chord_lines:
            if "[" in tail:
                self.out.append(build_chord_only_line(self.carried_chord_lines))
                self._emit_chorded(tail)
            else:
                self._emit_chorded(merge_chord_rows(self.carried_chord_lines, tail, spread_single_row=True))
            self.carried_chord_lines = None
        else:
            self.out.append(convert_progression_to_inline(tail))

    def _handle_tab(self, line: str) -> None:
        if self.pending_chord_lines:
            self.out.append(build_chord_only_line(self.pending_chord_lines))
            self.pending_chord_lines = []
        if not self.section.instrumental:
            logger.debug("Tab line outside instrumental section, opening %s", TAB_SECTION)
            self._start_section(TAB_SECTION)
        self.out.append(line)

    def _handle_text(self, line: str) -> None:
        if self.carried_chord_lines:
            if "[" in line:
                self._emit_chorded(line)
            else:
                merged = merge_chord_rows(self.carried_chord_lines, line, spread_single_row=True)
                self._emit_chorded(cleanup_merged_line(merged))
            self.carried_chord_lines = None
            return

        if self.pending_chord_lines:
            pending = self.pending_chord_lines
            self.pending_chord_lines = []
            if "[" in line:
                self._emit_chorded(line)
            elif self.options.preserve_chord_rows:
                self.out.append(build_chord_only_line(pending))
                self.out.append(line)
            else:
                merged = merge_chord_rows(pending, line, spread_single_row=self.simple)
                self._emit_chorded(cleanup_merged_line(merged))
            return

        if self.simple and self.carried_tail_chords and "[" not in line:
            self._emit_chorded(cleanup_merged_line(merge_chord_sequence(self.carried_tail_chords, line)))
            self.carried_tail_chords = None
            return

        if (
            self.simple
            and self.section.is_chorus
            and self.section.chorded_lines >= CHORUS_SWITCH_MIN_UNCHORDED
            and is_likely_pure_lyric_line(line)
        ):
            logger.debug("Unchorded line after chorus, switching to %s: %r", VERSE_SECTION, line)
            self._switch_to_verse()

        self.out.append(line)

    def _finish(self) -> None:
        if self.pending_chord_lines:
            self.out.append(build_chord_only_line(self.pending_chord_lines))
            self.pending_chord_lines = []
        if self.carried_chord_lines:
            self.out.append(build_chord_only_line(self.carried_chord_lines))
            self.carried_chord_lines = None
        if self.carried_tail_chords:
            self.out.append(" ".join(f"[{chord}]" for chord in self.carried_tail_chords))
            self.carried_tail_chords = None

    # -----------------------------------------------------------------------
    # Section bookkeeping
    # -----------------------------------------------------------------------

    def _flush_pending_for_section(self) -> None:
        if not self.pending_chord_lines:
            return
        if self.simple:
            self.carried_chord_lines = list(self.pending_chord_lines)
        else:
            self.out.append(build_chord_only_line(self.pending_chord_lines))
        self.pending_chord_lines = []

    def _start_section(self, name: str) -> None:
        self.section = SectionContext(name=name)
        self.out.append(f"{{c: {name}}}")

    def _switch_to_verse(self) -> None:
        self._start_section(VERSE_SECTION)

    def _should_switch_to_verse(self, line: str, first_chord: str) -> bool:
        """Chorus that ran 4+ chorded lines and changes its opening chord.

        Lines ending in ``!`` or ``?`` are read as an emphatic chorus ending
        and never switch.
        """
        if not first_chord or not self.simple or not self.section.is_chorus:
            return False
        if not self.section.first_chord:
            return False
        lyric = _BRACKET_TOKEN_RE.sub("", line).strip()
        if re.search(r"[!?]\s*$", lyric):
            return False
        return (
            self.section.chorded_lines >= CHORUS_SWITCH_MIN_CHORDED
            and first_chord != self.section.first_chord
        )

    def _emit_chorded(self, line: str) -> None:
        first_chord = first_chord_of(line)
        if self._should_switch_to_verse(line, first_chord):
            logger.debug("Chorus chord changed %s -> %s, switching to %s",
                         self.section.first_chord, first_chord, VERSE_SECTION)
            self._switch_to_verse()
        self.out.append(line)
        if first_chord:
            if not self.section.first_chord:
                self.section.first_chord = first_chord
            self.section.chorded_lines += 1


def normalize_section_flow(cho: str) -> str:
    """Insert ``{c: Куплет}`` where a chorus with 2+ chorded lines meets plain lyrics."""
    out: list[str] = []
    current = ""
    chorded = 0

    for line in cho.split("\n"):
        directive = _SECTION_DIRECTIVE_RE.match(line)
        if directive:
            current = directive.group(1).strip()
            chorded = 0
            out.append(line)
            continue

        if line.strip() and CHORUS_RE.match(current):
            if "[" in line:
                chorded += 1
            elif chorded >= CHORUS_SWITCH_MIN_UNCHORDED and is_likely_pure_lyric_line(line):
                out.append(f"{{c: {VERSE_SECTION}}}")
                current = VERSE_SECTION
                chorded = 0

        out.append(line)

    return "\n".join(out)


def to_cho(sheet: ChordSheet, options: ConvertOptions | None = None) -> str:
    """Convert *sheet* to canonical text with a fresh :class:`ChoConverter`."""
    return ChoConverter(options).convert(sheet)
