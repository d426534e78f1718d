"""Source format detection by file extension."""

from enum import Enum
from pathlib import PurePath


class DocumentFormat(Enum):
    """Markup grammars haystack can render."""

    MARKDOWN = "markdown"
    ORG = "org"


_EXTENSIONS: dict[str, DocumentFormat] = {
    ".md": DocumentFormat.MARKDOWN,
    ".markdown": DocumentFormat.MARKDOWN,
    ".org": DocumentFormat.ORG,
}

# Probe order when a URL maps onto several candidate sources
DOCUMENT_EXTENSIONS: tuple[str, ...] = (".md", ".markdown", ".org")


def detect_format(path: PurePath | str) -> DocumentFormat | None:
    """Classify a path as a document format or an asset.

    Args:
        path: File path; only the extension is inspected

    Returns:
        The document format, or None for assets
    """
    return _EXTENSIONS.get(PurePath(path).suffix.lower())


def is_document(path: PurePath | str) -> bool:
    return detect_format(path) is not None
