"""Adapter for pesnipodgitaru.ru song pages.

URL pattern: pesnipodgitaru.ru/pesni/<genre>/<artist-slug>/<song-slug>

Page structure (WordPress):
    <div class="breadcrumb">
        ... <a href=".../pesni/russkiy-rok/kino-i-viktor-tsoy/">
                <span>Группа «Кино» и Виктор Цой</span></a>
            <meta itemprop="position" content="3"> ...
    </div>
    <article>
        <h1 class="entry-title">Группа крови текст песни, аккорды ...</h1>
        <div class="entry-content">
            <p>Тональность ...</p>                ← noise
            <div class="code-block">ads</div>     ← removed
            <pre>chord rows / lyrics / "2р" repeat marks</pre>
            ...
        </div>
    </article>

Chord rows here do not keep their column alignment, so conversion runs
with ``simple_chord_distribution``: chords are spread over each lyric line
instead of being placed by column.  The same applies to pages saved to
disk under a ``pesnipodgitaru`` label.
"""

import logging
import re

import httpx
from bs4 import BeautifulSoup

from ..chords import CHORD_PAT, CYRILLIC_RE
from ..exceptions import FormatError, NetworkError
from ..models import ChordSheet, ConvertOptions
from .base import SourceAdapter
from .utils import (
    block_text,
    is_url,
    normalize_html_text,
    normalize_text_block,
    normalize_url,
    parse_text_chord_sheet,
    read_local_source,
    strip_repeat_notations,
)

logger = logging.getLogger(__name__)

_FETCH_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Songbook Importer)",
    "Accept": "text/html,application/xhtml+xml",
}

_HTML_MARKER_RE = re.compile(r"<html[\s>]|<pre[\s>]|<span[\s>]", re.IGNORECASE)
_NOISE_RES = [
    re.compile(r"^[—\-_.\s]+$"),
    re.compile(
        r"(русский рок под гитару|группа «?кино»? и виктор цой|"
        r"текст песни, аккорды(?:, табулатура,? видеоразбор)?|музыка и слова виктор цой)",
        re.IGNORECASE,
    ),
    re.compile(r"^рекомендуемый рисунок:?$", re.IGNORECASE),
    re.compile(r"тональност", re.IGNORECASE),
]
_CHORD_ROW_RE = re.compile(rf"^{CHORD_PAT}(?:\s+{CHORD_PAT})+\s*$", re.IGNORECASE)
_CHORD_WORD_RE = re.compile(rf"(?<![\w#]){CHORD_PAT}(?![\w#])")


class PesniPodGitaruAdapter(SourceAdapter):
    """Adapter for pesnipodgitaru.ru pages (live or saved to disk)."""

    reads_local_files = True

    @classmethod
    def can_handle(cls, source: str) -> bool:
        return "pesnipodgitaru" in source.lower()

    def options(self, source: str) -> ConvertOptions:
        return ConvertOptions(simple_chord_distribution=True)

    def fetch(self, source: str) -> str:
        if not is_url(source):
            logger.info("Reading saved page %s", source)
            return read_local_source(source)

        url = normalize_url(source)
        logger.info("Fetching %s", url)
        try:
            resp = httpx.get(url, headers=_FETCH_HEADERS, follow_redirects=True, timeout=15)
        except httpx.RequestError as exc:
            raise NetworkError(url, 0) from exc
        if resp.status_code != 200:
            raise NetworkError(url, resp.status_code)
        if "<html" not in resp.text:
            raise FormatError(url, "response is not an HTML page")
        return resp.text

    def extract(self, raw: str, source: str) -> ChordSheet:
        text = extract_page_text(raw) if _HTML_MARKER_RE.search(raw) else raw
        return parse_text_chord_sheet(text)


def extract_page_text(html: str) -> str:
    """Return ``Artist - Title`` followed by the song body as plain text."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("h1", class_="entry-title") or soup.find("title")
    title = _clean_title(normalize_html_text(title_tag.get_text())) if title_tag else ""
    artist = _clean_artist(normalize_html_text(_breadcrumb_artist(soup)))

    content = soup.find("div", class_="entry-content") or soup.body or soup
    for tag in content.find_all(["script", "style", "iframe", "object", "img"]):
        tag.decompose()
    for tag in content.find_all("div", class_="code-block"):
        tag.decompose()
    for link in content.find_all("a"):
        link.unwrap()

    lines = []
    for line in normalize_text_block(block_text(content)).split("\n"):
        line = _normalize_body_line(line)
        if line and not _is_noise_line(line):
            lines.append(line)

    body = "\n".join(lines[_find_body_start(lines):]).strip()
    if artist and title:
        return f"{artist} - {title}\n{body}".strip()
    if title:
        return f"{title}\n{body}".strip()
    return body


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _breadcrumb_artist(soup: BeautifulSoup) -> str:
    """Artist link at breadcrumb position 3, else the ``og:title`` meta."""
    crumbs = soup.find(class_="breadcrumb")
    if crumbs:
        position = crumbs.find("meta", attrs={"itemprop": "position", "content": "3"})
        link = position.find_previous_sibling("a") if position else None
        if link:
            return link.get_text()
    og_title = soup.find("meta", property="og:title")
    return og_title.get("content", "") if og_title else ""


def _clean_title(value: str) -> str:
    value = re.sub(r"\s*группы\s+[^,|]+.*$", "", value, flags=re.IGNORECASE)
    value = re.sub(r"\s*текст.*$", "", value, flags=re.IGNORECASE)
    value = re.sub(r"\|\s*песни под гитару.*$", "", value, flags=re.IGNORECASE)
    return re.sub(r"\s+", " ", value).strip()


def _clean_artist(value: str) -> str:
    value = re.sub(r"^группа\s+", "", value, flags=re.IGNORECASE)
    value = re.sub(r"^клуб\s+", "", value, flags=re.IGNORECASE)
    value = re.sub(r"\s+", " ", value).strip()
    if re.match(r"^kino", value, re.IGNORECASE) or re.search(r"виктор цой", value, re.IGNORECASE):
        return "Кино"
    return value


def _normalize_body_line(line: str) -> str:
    line = line.replace("\u200b", "")
    line = strip_repeat_notations(line)
    return re.sub(r"^[ _—-]+", "", line).rstrip()


def _is_noise_line(line: str) -> bool:
    value = line.strip()
    return not value or any(pattern.search(value) for pattern in _NOISE_RES)


def _find_body_start(lines: list[str]) -> int:
    """Index of the first musical line: string line, chord row, or chorded lyric."""
    for i, line in enumerate(lines):
        if re.search(r"тональност", line, re.IGNORECASE):
            continue
        if re.match(r"^\d-я\s+", line, re.IGNORECASE):
            return i
        if _CHORD_ROW_RE.match(line):
            return i
        if CYRILLIC_RE.search(line) and _CHORD_WORD_RE.search(line):
            return i
    return 0
