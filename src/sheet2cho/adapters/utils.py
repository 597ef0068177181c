"""Shared text helpers used by the source adapters.

  1. split_heading()            "Artist - Title" -> (artist, title)
  2. strip_repeat_notations()   drop "2р" / "2р. Am" repeat marks
  3. block_text()               HTML element -> text with line breaks at block tags
  4. parse_text_chord_sheet()   heading line + body -> ChordSheet
"""

import re
import sys
from pathlib import Path
from urllib.parse import urlparse

from bs4 import Tag

from ..chords import CHORD_PAT
from ..exceptions import FormatError
from ..models import ChordSheet

DEFAULT_TITLE = "Без названия"
DEFAULT_ARTIST = "Неизвестный исполнитель"
STDIN_SOURCE = "-"

_REPEAT_WITH_CHORD_RE = re.compile(rf"(?<!\w)\d+\s*[рp]\.?\s*{CHORD_PAT}(?![\w#])", re.IGNORECASE)
_REPEAT_RE = re.compile(r"(?<!\w)\d+\s*[рp]\.?(?!\w)", re.IGNORECASE)
_CHORD_LEGEND_RE = re.compile(r"^Аккорд\s+", re.IGNORECASE)
_EXCESS_BLANKS_RE = re.compile(r"\n{3,}")

# Tags that end a line of text; values are (text before, text after).
_BLOCK_BREAKS = {
    "pre": ("\n", "\n"),
    "p": ("", "\n"),
    "div": ("", "\n"),
    **{f"h{n}": ("\n", "\n\n") for n in range(1, 7)},
}


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when *url* has no scheme."""
    if re.match(r"^https?://", url, re.IGNORECASE):
        return url
    return f"https://{url}"


def is_url(source: str) -> bool:
    if re.match(r"^https?://", source, re.IGNORECASE):
        return True
    # bare host: "amdm.ru/akkordi/..."
    return bool(re.match(r"^[\w-]+(?:\.[\w-]+)+/", source)) and not source.startswith(".")


def source_host(source: str) -> str:
    if not is_url(source):
        return "local-file"
    host = urlparse(normalize_url(source)).hostname or ""
    return re.sub(r"^www\.", "", host)


def read_local_source(source: str) -> str:
    """Read a chord sheet from a file path, or from stdin when *source* is ``-``.

    Raises FormatError when the file cannot be read as UTF-8 text.
    """
    if source == STDIN_SOURCE:
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError(source, "file is not UTF-8 text") from exc
    except OSError as exc:
        raise FormatError(source, exc.strerror or "cannot read file") from exc


def collapse_blank_lines(text: str) -> str:
    return _EXCESS_BLANKS_RE.sub("\n\n", text).strip()


def normalize_html_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def split_heading(raw_heading: str) -> tuple[str, str]:
    """Split ``Artist - Title`` into ``(artist, title)``.

    Site suffixes (``| amdm.ru``, ``, аккорды ...``) and the ``Title:`` /
    ``# `` prefixes of proxy text are removed first.  A heading without a
    spaced dash is all title.
    """
    cleaned = re.sub(r"^Title:\s+", "", raw_heading, flags=re.IGNORECASE)
    cleaned = re.sub(r"^#\s+", "", cleaned)
    cleaned = re.sub(r"\s*[|•]\s*amdm\.?ru.*$", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r",\s*аккорды.*$", "", cleaned, flags=re.IGNORECASE).strip()

    parts = [part.strip() for part in re.split(r"\s+-\s+", cleaned) if part.strip()]
    if len(parts) > 1:
        return parts[0], " - ".join(parts[1:])
    return "", parts[0] if parts else ""


def clean_song_title(title: str) -> str:
    title = re.sub(r"\s*\(аккорды для гитары\)\s*$", "", title, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", title).strip()


def strip_repeat_notations(line: str) -> str:
    """Remove repeat marks such as ``2р``, ``3 р.`` and ``2р. Am``."""
    line = _REPEAT_WITH_CHORD_RE.sub("", line)
    line = _REPEAT_RE.sub("", line)
    return line.rstrip()


def block_text(element: Tag) -> str:
    """Return the text of *element* with line breaks at ``<br>`` and block tags.

    Inline markup (``<span>``, ``<b>``) is flattened in place so chord spans
    stay on their line.  The element is modified.
    """
    for br in element.find_all("br"):
        br.replace_with("\n")
    for tag in element.find_all(list(_BLOCK_BREAKS)):
        before, after = _BLOCK_BREAKS[tag.name]
        if before:
            tag.insert_before(before)
        if after:
            tag.insert_after(after)
    return element.get_text()


def normalize_text_block(text: str) -> str:
    text = text.replace("\r", "").replace("\u00a0", " ")
    text = re.sub(r"[ \t]+\n", "\n", text)
    return _EXCESS_BLANKS_RE.sub("\n\n", text)


def parse_text_chord_sheet(raw: str) -> ChordSheet:
    """Parse a plain-text chord sheet whose first non-blank line is the heading."""
    lines = [line.rstrip() for line in raw.replace("\r", "").split("\n")]
    heading_index = next((i for i, line in enumerate(lines) if line.strip()), len(lines))
    heading = lines[heading_index] if heading_index < len(lines) else ""
    artist, title = split_heading(heading)

    body = [
        strip_repeat_notations(line)
        for line in lines[heading_index + 1:]
        if not _CHORD_LEGEND_RE.match(line.strip())
    ]
    return ChordSheet(
        title=clean_song_title(title or DEFAULT_TITLE),
        artist=artist or DEFAULT_ARTIST,
        body_text=collapse_blank_lines("\n".join(body)),
    )
