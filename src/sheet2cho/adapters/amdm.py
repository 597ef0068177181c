"""Adapter for amdm.ru chord pages.

URL pattern: amdm.ru/akkordi/<artist>/<id>/<song-slug>/

amdm.ru pages are fetched through the r.jina.ai text proxy, which returns
the rendered page as plain text::

    Title: Кино - Группа крови, аккорды | AMDM.ru
    ...
    L41: [Вступление]
    L42: Am  C  Dm  G
    ...
    L97: Свернуть Распечатать

Optional ``L<n>:`` prefixes are stripped.  The song body runs from the
first bracketed section line (or first chord row) up to the first stop
marker.  Chord notation: unbracketed, space-aligned above lyrics.
"""

import logging
import re

import httpx

from ..exceptions import NetworkError
from ..lines import is_chord_line
from ..models import ChordSheet
from .base import SourceAdapter
from .utils import (
    DEFAULT_ARTIST,
    DEFAULT_TITLE,
    clean_song_title,
    collapse_blank_lines,
    normalize_url,
    source_host,
    split_heading,
)

logger = logging.getLogger(__name__)

PROXY_PREFIX = "https://r.jina.ai/http://"

_LINE_PREFIX_RE = re.compile(r"^L\d+:\s?")
_SECTION_LINE_RE = re.compile(r"^\s*\[[^\]]+\]:?\s*$")
_STOP_PATTERNS = [
    re.compile(r"Свернуть\s+Распечатать", re.IGNORECASE),
    re.compile(r"###\s+Аппликатуры аккордов", re.IGNORECASE),
    re.compile(r"популярные подборы", re.IGNORECASE),
]


class AmdmAdapter(SourceAdapter):
    """Adapter for amdm.ru chord pages (via the text proxy)."""

    @classmethod
    def can_handle(cls, source: str) -> bool:
        return source_host(source).endswith("amdm.ru")

    def fetch(self, source: str) -> str:
        url = normalize_url(source)
        proxy_url = PROXY_PREFIX + re.sub(r"^https?://", "", url, flags=re.IGNORECASE)
        logger.info("Fetching %s", proxy_url)
        try:
            resp = httpx.get(
                proxy_url,
                headers={"Accept": "text/plain"},
                follow_redirects=True,
                timeout=30,
            )
        except httpx.RequestError as exc:
            raise NetworkError(url, 0) from exc
        if resp.status_code != 200:
            raise NetworkError(url, resp.status_code)
        return resp.text

    def extract(self, raw: str, source: str) -> ChordSheet:
        lines = [
            _LINE_PREFIX_RE.sub("", line).rstrip()
            for line in raw.replace("\r", "").split("\n")
        ]

        artist, title = _extract_artist_and_title(lines)
        start = _find_start_index(lines)
        end = _find_end_index(lines, start)

        return ChordSheet(
            title=clean_song_title(title or DEFAULT_TITLE),
            artist=artist or DEFAULT_ARTIST,
            body_text=collapse_blank_lines("\n".join(lines[start:end])),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _extract_artist_and_title(lines: list[str]) -> tuple[str, str]:
    """Use the proxy's ``Title:`` line, else the first ``# `` heading."""
    candidates = [
        next((line for line in lines if re.match(r"^Title:\s+", line, re.IGNORECASE)), None),
        next((line for line in lines if re.match(r"^#\s+", line)), None),
    ]
    for candidate in candidates:
        if not candidate:
            continue
        artist, title = split_heading(candidate)
        if artist or title:
            return artist, title
    return "", ""


def _find_start_index(lines: list[str]) -> int:
    for i, line in enumerate(lines):
        if _SECTION_LINE_RE.match(line):
            return i
    for i, line in enumerate(lines):
        if is_chord_line(line.strip()):
            return i
    return 0


def _find_end_index(lines: list[str], start: int) -> int:
    for i in range(start, len(lines)):
        if any(pattern.search(lines[i]) for pattern in _STOP_PATTERNS):
            return i
    return len(lines)
