import logging
from abc import ABC, abstractmethod

from ..converter import to_cho
from ..exceptions import EmptyResultError
from ..models import ChordSheet, ConvertOptions, Song
from .utils import source_host

logger = logging.getLogger(__name__)


class SourceAdapter(ABC):
    """Abstract base class for all source-specific adapters."""

    # True when fetch() also accepts a file path (saved pages).
    reads_local_files = False

    @classmethod
    @abstractmethod
    def can_handle(cls, source: str) -> bool:
        """Return True if this adapter can handle the given URL or source label."""

    @abstractmethod
    def fetch(self, source: str) -> str:
        """Fetch the raw page (or file) text for *source*.

        Raises NetworkError on HTTP-level failures.
        """

    @abstractmethod
    def extract(self, raw: str, source: str) -> ChordSheet:
        """Pull title, artist and chord sheet body out of the raw text.

        The body is still in source layout (chord rows above lyrics);
        conversion to canonical text happens in :meth:`convert`.

        Raises FormatError if the payload is not what the source serves.
        """

    def options(self, source: str) -> ConvertOptions:
        """Layout switches for this source (overridden per site)."""
        return ConvertOptions()

    def convert(self, raw: str, source: str, options: ConvertOptions | None = None) -> Song:
        """Extract + convert to canonical text.

        *options* replaces the source's own :meth:`options` when given.
        Raises EmptyResultError when no song body is left after extraction.
        """
        sheet = self.extract(raw, source)
        if not sheet.body_text.strip():
            raise EmptyResultError(source)

        logger.debug("Converting %s - %s from %s", sheet.artist, sheet.title, source)
        return Song(
            title=sheet.title,
            artist=sheet.artist,
            cho=to_cho(sheet, options or self.options(source)),
            source_url=source,
            source_host=source_host(source),
        )

    def scrape(self, source: str, options: ConvertOptions | None = None) -> Song:
        """Convenience method: fetch + convert."""
        raw = self.fetch(source)
        return self.convert(raw, source, options)
