"""Chord token recognition.

Chord names use German notation (``H`` is B natural, ``B`` is B flat)::

    ROOT[#|b][quality][digits][/ROOT[#|b]]      or the literal  N.C.

Scraped sheets are noisy, so tokens are cleaned before matching:

  - enclosing brackets and trailing punctuation are stripped (``(Am),`` -> ``Am``)
  - Cyrillic homoglyphs of chord roots are mapped to Latin (``Нm`` -> ``Hm``)
  - run-together chords are decomposed (``AmEmC`` -> ``Am Em C``)
"""

import re

from .models import PositionedChord

# Qualities are listed longest-first so that prefix matching (used when
# splitting run-together tokens) takes "maj" rather than stopping at "m".
_QUALITY_PAT = r"(?:mmaj|maj|min|sus|dim|aug|add|m)"
CHORD_PAT = rf"[A-H](?:#|b)?{_QUALITY_PAT}?\d*(?:/[A-H](?:#|b)?)?"

CHORD_RE = re.compile(rf"^(?:{CHORD_PAT}|N\.C\.)$", re.IGNORECASE)
_CHORD_PREFIX_RE = re.compile(rf"(?:{CHORD_PAT}|N\.C\.)", re.IGNORECASE)

# Bars, slashes, dashes, repeat counts (x4, }x2), empty parens, ellipses.
SEPARATOR_RE = re.compile(r"^(?:\|+|/+|-+|x\d+|\}x\d+|\(+\)+|\.{1,3})$", re.IGNORECASE)

CYRILLIC_RE = re.compile(r"[А-Яа-яЁё]")

_LEADING_BRACKETS_RE = re.compile(r"^[\[({]+")
_TRAILING_BRACKETS_RE = re.compile(r"[\])}]+$")
_TRAILING_PUNCT_RE = re.compile(r"[\])},:;.!?]+$")

_HOMOGLYPHS = str.maketrans({
    "А": "A", "а": "A",
    "В": "B", "в": "B",
    "С": "C", "с": "C",
    "Е": "E", "е": "E",
    "Н": "H", "н": "H",
})


def normalize_cyrillic(token: str) -> str:
    """Map Cyrillic look-alikes of chord letters to their Latin equivalents."""
    if not CYRILLIC_RE.search(token):
        return token
    return token.translate(_HOMOGLYPHS)


def normalize_chord_token(token: str) -> str:
    """Return a chord candidate for a raw whitespace-delimited token.

    Trailing periods are kept when they belong to the chord (``N.C.``).
    """
    unwrapped = _TRAILING_BRACKETS_RE.sub("", _LEADING_BRACKETS_RE.sub("", token))
    candidate = normalize_cyrillic(unwrapped)
    if CHORD_RE.match(candidate):
        return candidate
    return normalize_cyrillic(_TRAILING_PUNCT_RE.sub("", unwrapped))


def is_chord(candidate: str) -> bool:
    return bool(CHORD_RE.match(candidate))


def is_separator(candidate: str) -> bool:
    return bool(SEPARATOR_RE.match(candidate))


def split_combined_chord(candidate: str) -> list[str]:
    """Decompose a run-together chord token, e.g. ``AmEmC`` -> ``[Am, Em, C]``.

    Returns an empty list when any residue is not a chord, or when the token
    holds fewer than two chords.
    """
    if not candidate or len(candidate) < 2:
        return []

    out: list[str] = []
    rest = candidate
    while rest:
        m = _CHORD_PREFIX_RE.match(rest)
        if not m or not m.group():
            return []
        out.append(m.group())
        rest = rest[m.end():]

    return out if len(out) > 1 else []


def chords_in_token(token: str) -> list[str]:
    """Return the chords a raw token stands for (empty if it is not chord-like)."""
    candidate = normalize_chord_token(token)
    if not candidate:
        return []
    if is_chord(candidate):
        return [candidate]
    return split_combined_chord(candidate)


def extract_chord_tokens(line: str) -> list[str]:
    """Return chord names from a line in order, expanding combined tokens.

    Separators and non-chord words are skipped.
    """
    out: list[str] = []
    for token in line.split():
        out.extend(chords_in_token(token))
    return out


def extract_chords_with_offsets(line: str) -> list[PositionedChord]:
    """Return ``(column, chord)`` pairs for every chord in a chord row.

    Combined tokens are expanded with each part keeping its own column
    inside the token (``AmEm`` at column 4 -> Am@4, Em@6).
    """
    out: list[PositionedChord] = []
    for m in re.finditer(r"\S+", line):
        offset = m.start()
        for chord in chords_in_token(m.group()):
            out.append(PositionedChord(offset, chord))
            offset += len(chord)
    return out


# ---------------------------------------------------------------------------
# Transposition
# ---------------------------------------------------------------------------

# Sharps are preferred on output; ``B`` is B flat and ``H`` B natural.
SEMITONE_ROOTS = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "B", "H")

_ROOT_SEMITONES = {
    "C": 0, "C#": 1, "Db": 1, "D": 2, "D#": 3, "Eb": 3, "E": 4, "F": 5,
    "F#": 6, "Gb": 6, "G": 7, "G#": 8, "Ab": 8, "A": 9, "A#": 10, "Bb": 10,
    "B": 10, "H": 11, "Hb": 10,
}

_ROOT_SPLIT_RE = re.compile(r"^([A-H](?:#|b)?)(.*)$", re.IGNORECASE | re.DOTALL)


def root_semitone(root: str) -> int | None:
    """Semitone index (C = 0) of a chord root, or ``None`` if unknown."""
    root = root.strip()
    if root in _ROOT_SEMITONES:
        return _ROOT_SEMITONES[root]
    return _ROOT_SEMITONES.get(root.upper())


def transpose_root(root: str, shift: int) -> str:
    """Move *root* by *shift* semitones; ``""`` when the root is unknown."""
    index = root_semitone(root)
    if index is None:
        return ""
    return SEMITONE_ROOTS[(index + shift) % 12]


def transpose_chord(chord: str, shift: int) -> str:
    """Transpose a chord name by *shift* semitones.

    ``transpose_chord("Am7/G", 2) == "Hm7/A"``.  The quality suffix is
    kept as written.  A bass note that cannot be read is dropped, and a chord
    whose root cannot be read is returned stripped but otherwise unchanged.
    """
    chord = chord.strip()
    if not chord or not shift:
        return chord

    main, slash, bass = chord.partition("/")
    m = _ROOT_SPLIT_RE.match(main)
    root = transpose_root(m.group(1), shift) if m else ""
    if not root:
        return chord

    out = root + m.group(2)
    if slash:
        b = _ROOT_SPLIT_RE.match(bass)
        bass_root = transpose_root(b.group(1), shift) if b else ""
        if bass_root:
            out += f"/{bass_root}{b.group(2)}"
    return out
