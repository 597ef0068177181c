"""Adapter for local files and stdin.

Accepts a path, or ``-`` for stdin.  The file may be:

  - a plain-text chord sheet: first non-blank line is ``Artist - Title``,
    the rest is chord rows over lyrics
  - a saved HTML page: ``<title>`` gives the heading, the first ``<pre>``
    the body
  - a saved mychords.net page: no ``<pre>``, the body is the
    ``div.w-words__text`` block with its ``b-accord__symbol`` chord spans
"""

import logging
import re

from bs4 import BeautifulSoup

from ..exceptions import FormatError
from ..models import ChordSheet
from .base import SourceAdapter
from .utils import (
    STDIN_SOURCE,
    block_text,
    is_url,
    normalize_html_text,
    normalize_text_block,
    parse_text_chord_sheet,
    read_local_source,
)

logger = logging.getLogger(__name__)

_HTML_RE = re.compile(r"<html[\s>]|<pre[\s>]|<span[\s>]", re.IGNORECASE)


class TextAdapter(SourceAdapter):
    """Adapter for chord sheets on disk (text or saved HTML)."""

    reads_local_files = True

    @classmethod
    def can_handle(cls, source: str) -> bool:
        return source == STDIN_SOURCE or not is_url(source)

    def fetch(self, source: str) -> str:
        logger.info("Reading %s", "stdin" if source == STDIN_SOURCE else source)
        return read_local_source(source)

    def extract(self, raw: str, source: str) -> ChordSheet:
        if _HTML_RE.search(raw):
            return parse_text_chord_sheet(extract_html_text(raw, source))
        return parse_text_chord_sheet(raw)


def extract_html_text(html: str, source: str = "") -> str:
    """Return the page ``<title>`` followed by the text of its song block.

    The song block is the first ``<pre>``, else the mychords.net words block.
    Raises FormatError when the page has neither.
    """
    soup = BeautifulSoup(html, "html.parser")
    pre = soup.find("pre") or soup.find("div", class_="w-words__text")
    if pre is None:
        raise FormatError(source, "no <pre> or song block in HTML page")

    title_tag = soup.find("title")
    heading = normalize_html_text(title_tag.get_text()) if title_tag else ""
    body = normalize_text_block(block_text(pre)).strip("\n")
    return f"{heading}\n{body}"
