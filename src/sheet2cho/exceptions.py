class Sheet2ChoError(Exception):
    """Base exception for sheet2cho."""


class NetworkError(Sheet2ChoError):
    """Raised when an HTTP request fails or returns a non-200 status."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP {status_code} fetching {url}")


class FormatError(Sheet2ChoError):
    """Raised when a payload does not contain an expected marker."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Unexpected payload from {source}: {reason}")


class EmptyResultError(Sheet2ChoError):
    """Raised when no song text is left after stripping page boilerplate."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"No song text found in {source}")


class UnsupportedSiteError(Sheet2ChoError):
    """Raised when no adapter matches the given URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No adapter found for URL: {url}")
