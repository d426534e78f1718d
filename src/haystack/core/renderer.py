"""Document rendering pipeline.

Dispatches on the document format to the Markdown or Org converter and
composes the resulting fragment into a full page. Shared by the batch
builder and the HTTP server so both produce identical bytes.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from haystack.core.formats import DocumentFormat, detect_format
from haystack.core.highlight import CodeHighlighter
from haystack.core.markdown import convert_markdown
from haystack.core.org import OrgConverter
from haystack.core.page import PageComposer

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


@dataclass(frozen=True)
class Document:
    """A source document read from disk."""

    source_path: Path
    content: bytes
    format: DocumentFormat

    @classmethod
    def read(cls, source_path: Path) -> "Document":
        """Read a document from disk.

        Raises:
            ValueError: If the path is not a Markdown or Org document
            OSError: If the file cannot be read
        """
        fmt = detect_format(source_path)
        if fmt is None:
            raise ValueError(f"Not a document: {source_path}")
        return cls(source_path=source_path, content=source_path.read_bytes(), format=fmt)

    @property
    def fallback_title(self) -> str:
        return self.source_path.stem


@dataclass(frozen=True)
class RenderedFragment:
    """HTML body of a document plus its extracted title."""

    html: str
    title: str | None


def decode_source(content: bytes) -> str:
    """Decode document bytes as UTF-8, never failing on bad input.

    NUL characters are replaced with U+FFFD, as CommonMark does.
    """
    text = content.decode("utf-8", errors="replace")
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    return text.replace("\x00", "\ufffd")


def render(content: bytes, fmt: DocumentFormat, highlighter: CodeHighlighter) -> RenderedFragment:
    """Render document content to an HTML fragment.

    Args:
        content: Raw document bytes
        fmt: Markup grammar of the content
        highlighter: Highlighter for code blocks

    Returns:
        RenderedFragment; title is None when the document has none
    """
    text = decode_source(content)
    if not text.strip():
        return RenderedFragment(html="", title=None)

    if fmt is DocumentFormat.MARKDOWN:
        html, title = convert_markdown(text, highlighter)
    elif fmt is DocumentFormat.ORG:
        html, title = OrgConverter(highlighter).convert(text)
    else:
        raise ValueError(f"Unsupported document format: {fmt}")

    return RenderedFragment(html=html, title=title)


class PageRenderer:
    """Renders source documents into complete HTML pages.

    Holds only read-only state (highlighter and composer), so one instance
    is shared by all build workers and request handlers.
    """

    def __init__(self, highlighter: CodeHighlighter, composer: PageComposer) -> None:
        self._highlighter = highlighter
        self._composer = composer

    @property
    def composer(self) -> PageComposer:
        return self._composer

    def render_document(self, document: Document) -> str:
        """Render an already-read document into a full page."""
        fragment = render(document.content, document.format, self._highlighter)
        return self._composer.compose(
            fragment.html,
            fragment.title,
            fallback_title=document.fallback_title,
        )

    def render_file(self, source_path: Path) -> bytes:
        """Read and render a document file.

        Args:
            source_path: Path to a Markdown or Org file

        Returns:
            UTF-8 encoded page

        Raises:
            OSError: If the source cannot be read
        """
        logger.debug(f"Rendering {source_path}")
        document = Document.read(source_path)
        return self.render_document(document).encode("utf-8")
