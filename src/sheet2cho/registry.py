from .adapters.amdm import AmdmAdapter
from .adapters.base import SourceAdapter
from .adapters.pesnipodgitaru import PesniPodGitaruAdapter
from .adapters.text import TextAdapter
from .adapters.utils import is_url
from .exceptions import UnsupportedSiteError

_ADAPTERS: list[type[SourceAdapter]] = [
    AmdmAdapter,
    PesniPodGitaruAdapter,
    TextAdapter,
]


def get_adapter(source: str, label: str | None = None) -> SourceAdapter:
    """Return an instantiated adapter for a URL, file path or ``-``.

    URLs are matched on the URL itself.  Local sources are matched on
    *label* when given (e.g. the site a saved page came from), falling back
    to plain text.

    Raises UnsupportedSiteError if a URL matches no adapter.
    """
    if is_url(source):
        for cls in _ADAPTERS:
            if cls.can_handle(source):
                return cls()
        raise UnsupportedSiteError(source)

    hint = label or source
    for cls in _ADAPTERS:
        if cls.reads_local_files and cls.can_handle(hint):
            return cls()
    return TextAdapter()
