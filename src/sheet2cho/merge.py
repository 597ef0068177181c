"""Chord/lyric interleaving.

Turns chord rows that sit above a lyric line into inline ``[Chord]`` tokens:

    chord rows  ->  Am      C       G
    lyric line  ->  Hello darkness my old friend
    result      ->  [Am]Hello da[C]rkness my [G]old friend

Two placement strategies exist:

  - positional: chord columns from the source row are kept, scaled down when
    the row is much wider than the lyric (lost tabs, justified text)
  - sequence:   only the chord order is trusted; chords are spread over the
    lyric (first at the start, second past 55% at a word start, three or
    more evenly)

Chords are never reordered and two chords never share an insertion point
unless the lyric has run out of characters.
"""

import math
import re

from .chords import CHORD_PAT, chords_in_token, extract_chord_tokens, extract_chords_with_offsets
from .models import PositionedChord

SECOND_CHORD_ANCHOR = 0.55
# A chord row wider than this many lyric lengths is scaled to fit.
OVERSHOOT_RATIO = 1.2
# Two-chord rows over lyrics shorter than this are placed by column as-is.
MIN_SPREAD_LYRIC_LEN = 18

_TRAPPED_LETTER_RE = re.compile(r"[A-H]\[([A-H](?:#|b)?(?:mmaj|maj|min|sus|dim|aug|add|m)?\d*)\]m")
_PROGRESSION_CHORD_RE = re.compile(rf"(?<![\w#])({CHORD_PAT})(?![\w#])")
_BRACKETED_RE = re.compile(r"\[([^\]]+)\]")
_PLACEHOLDER_RE = re.compile(r"@@(\d+)@@")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _insert_chords(lyric: str, placements: list[tuple[int, str]]) -> str:
    """Insert ``[chord]`` at each position, keeping positions strictly increasing."""
    parts: list[str] = []
    cursor = 0
    previous = -1
    for pos, chord in placements:
        pos = min(max(pos, previous + 1, cursor), len(lyric))
        parts.append(lyric[cursor:pos])
        parts.append(f"[{chord}]")
        cursor = pos
        previous = pos
    parts.append(lyric[cursor:])
    return "".join(parts)


def second_chord_position(lyric: str) -> int:
    """Return the first word start at or past 55% of *lyric* (or its end)."""
    anchor = math.floor(len(lyric) * SECOND_CHORD_ANCHOR)
    for i in range(anchor, len(lyric)):
        if not lyric[i].isspace() and (i == 0 or lyric[i - 1].isspace()):
            return i
    return len(lyric)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def merge_chord_sequence(chords: list[str], lyric: str) -> str:
    """Spread an ordered chord sequence over *lyric*, ignoring source columns."""
    if not chords:
        return lyric
    if len(chords) == 1:
        return f"[{chords[0]}]{lyric}"
    if len(chords) == 2:
        return _insert_chords(lyric, [(0, chords[0]), (second_chord_position(lyric), chords[1])])

    max_pos = max(0, len(lyric) - 1)
    count = len(chords)
    placements = [(_round_half_up(i * max_pos / (count - 1)), chord) for i, chord in enumerate(chords)]
    return _insert_chords(lyric, placements)


def merge_positioned_chords(chords: list[PositionedChord], lyric: str) -> str:
    """Place chords at their source columns, scaled into the lyric if needed.

    When a two-chord row collapses to "start of line + end of line" (the
    right-hand chord was pushed out by padding), the second chord goes to
    the middle of the lyric instead.
    """
    if not chords:
        return lyric

    length = len(lyric)
    max_raw = max(c.pos for c in chords)
    scale = 1.0
    if length > 0 and max_raw > length * OVERSHOOT_RATIO:
        scale = length / max_raw

    projected = [min(_round_half_up(c.pos * scale), length) for c in chords]

    if (
        len(chords) == 2
        and length > MIN_SPREAD_LYRIC_LEN
        and projected[0] <= 1
        and projected[1] >= length - 1
    ):
        return merge_chord_sequence([c.chord for c in chords], lyric)

    return _insert_chords(lyric, [(pos, c.chord) for pos, c in zip(projected, chords)])


def merge_chord_lyric_lines(chord_line: str, lyric_line: str) -> str:
    """Merge one chord row into the lyric line below it, by column."""
    return merge_positioned_chords(extract_chords_with_offsets(chord_line), lyric_line)


def combine_chord_lines(chord_lines: list[str]) -> list[PositionedChord]:
    """Fold several chord rows into one, ordered by source column.

    A chord that would overlap (or touch) the previous one is pushed right
    so that it starts one column after the previous chord ends.
    """
    positions = [pc for line in chord_lines for pc in extract_chords_with_offsets(line)]
    positions.sort(key=lambda pc: pc.pos)

    out: list[PositionedChord] = []
    end = 0
    for pc in positions:
        pos = pc.pos
        if out and end >= pos:
            pos = end + 1
        out.append(PositionedChord(pos, pc.chord))
        end = pos + len(pc.chord)
    return out


def merge_chord_rows(chord_rows: list[str], lyric: str, spread_single_row: bool = False) -> str:
    """Merge the chord rows buffered above *lyric* into it.

    Rows holding one chord each are treated as a plain sequence.  With
    *spread_single_row*, a lone multi-chord row is also treated as a
    sequence; otherwise rows are combined and placed by column.
    """
    row_tokens = [extract_chord_tokens(row) for row in chord_rows]
    if all(len(tokens) == 1 for tokens in row_tokens):
        return merge_chord_sequence([tokens[0] for tokens in row_tokens], lyric)
    if spread_single_row and len(chord_rows) == 1:
        return merge_chord_sequence(row_tokens[0], lyric)
    return merge_positioned_chords(combine_chord_lines(chord_rows), lyric)


# ---------------------------------------------------------------------------
# Line builders and repairs
# ---------------------------------------------------------------------------


def cleanup_merged_line(line: str) -> str:
    """Repair ``X[chord]m`` (a lyric letter trapped before a chord) to ``[chordm]``."""
    return _TRAPPED_LETTER_RE.sub(r"[\1m]", line).rstrip()


def build_chord_only_line(chord_rows: list[str]) -> str:
    """``["Am  C", "G"]`` -> ``"[Am] [C] [G]"``."""
    chords = [chord for row in chord_rows for chord in extract_chord_tokens(row)]
    return " ".join(f"[{chord}]" for chord in chords)


def convert_progression_to_inline(value: str) -> str:
    """Bracket every chord word of a progression line, leaving ``[X]`` intact."""
    protected: list[str] = []

    def _protect(m: re.Match) -> str:
        protected.append(m.group(1))
        return f"@@{len(protected) - 1}@@"

    converted = _PROGRESSION_CHORD_RE.sub(r"[\1]", _BRACKETED_RE.sub(_protect, value))
    return _PLACEHOLDER_RE.sub(lambda m: f"[{protected[int(m.group(1))]}]", converted)


def extract_trailing_carry(line: str) -> tuple[str, list[str]] | None:
    """Split off chords glued to the end of a line after a dash run.

    Some sources print the next line's chords at the end of the current
    one: ``Текст песни ___ Am Dm``.  Returns ``(line_without_chords, chords)``
    or ``None`` when there are fewer than two such chords, no dash or
    underscore within 16 characters before them, or no text left.
    """
    tokens = list(re.finditer(r"\S+", line))
    if not tokens:
        return None

    tail: list[str] = []
    cut = len(line)
    for m in reversed(tokens):
        chords = chords_in_token(m.group())
        if not chords:
            break
        tail[:0] = chords
        cut = m.start()

    if len(tail) < 2:
        return None

    prefix = line[:cut]
    if not re.search(r"[_—-]", prefix[-16:]):
        return None

    cleaned = re.sub(r"[\s_—-]+$", "", prefix)
    if not cleaned.strip():
        return None
    return cleaned, tail
