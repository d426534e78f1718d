"""Mapping between source files, output files and request URLs.

Build mode maps each source file to its destination under the output root.
Serve mode maps a requested URL path back to a source document or asset.
Both preserve the relative directory structure.
"""

import enum
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from haystack.core.formats import DOCUMENT_EXTENSIONS, is_document
from haystack.core.types import URLPath
from haystack.errors import InvalidRequestPathError

HTML_SUFFIX = ".html"
INDEX_NAME = "index"


def output_path_for(source: Path, source_root: Path, output_root: Path) -> Path:
    """Compute the build destination for a source file.

    Documents get an ``.html`` extension; assets keep theirs.

    Args:
        source: File inside source_root
        source_root: Root of the source tree
        output_root: Root of the output tree

    Returns:
        Destination path under output_root

    Raises:
        ValueError: If source is not inside source_root
    """
    relative = source.relative_to(source_root)
    if is_document(relative):
        relative = relative.with_suffix(HTML_SUFFIX)
    return output_root / relative


def ensure_parent(path: Path) -> None:
    """Create the parent directories of path; safe under concurrent calls."""
    path.parent.mkdir(parents=True, exist_ok=True)


class RequestKind(enum.Enum):
    DOCUMENT = "document"
    ASSET = "asset"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ResolvedRequest:
    """Outcome of mapping a request path onto the source tree."""

    kind: RequestKind
    relative_path: str
    source_path: Path | None = None


def normalize_request_path(url_path: URLPath | str) -> str:
    """Validate a request path and return it relative to the site root.

    Query strings and fragments are dropped and percent-escapes decoded.
    ``/`` becomes ``index.html``. This runs before any filesystem access.

    Raises:
        InvalidRequestPathError: On ``..`` segments, backslashes, NUL bytes
            or drive-qualified paths
    """
    # A request target is a path, never an authority: "//x/y" stays a path
    raw_path = url_path.partition("#")[0].partition("?")[0]
    path = unquote(raw_path)

    if "\\" in path or "\x00" in path:
        raise InvalidRequestPathError(url_path)

    segments = path.split("/")
    if any(segment == ".." for segment in segments):
        raise InvalidRequestPathError(url_path)

    relative = path.lstrip("/")
    if ":" in relative.split("/", 1)[0]:
        raise InvalidRequestPathError(url_path)

    if not relative or relative.endswith("/"):
        relative = f"{relative}{INDEX_NAME}{HTML_SUFFIX}"
    return relative


def _inside(candidate: Path, root: Path) -> bool:
    try:
        candidate.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def document_candidates(relative_html: str, source_root: Path) -> list[Path]:
    """Source paths probed for a ``.html`` request, in precedence order.

    Markdown is preferred over Org when both exist.
    """
    base = relative_html[: -len(HTML_SUFFIX)]
    return [source_root / f"{base}{ext}" for ext in DOCUMENT_EXTENSIONS]


def resolve_request(url_path: URLPath | str, source_root: Path) -> ResolvedRequest:
    """Map a requested URL path onto the source tree.

    Args:
        url_path: Path component of the request (e.g., "/guide/intro.html")
        source_root: Root of the source tree

    Returns:
        ResolvedRequest describing a document, an asset or a miss

    Raises:
        InvalidRequestPathError: If the path is malformed or escapes source_root
    """
    relative = normalize_request_path(url_path)

    if relative.lower().endswith(HTML_SUFFIX):
        for candidate in document_candidates(relative, source_root):
            if candidate.is_file():
                if not _inside(candidate, source_root):
                    raise InvalidRequestPathError(url_path)
                return ResolvedRequest(RequestKind.DOCUMENT, relative, candidate)

    asset = source_root / PurePosixPath(relative)
    if asset.is_file() and not is_document(asset):
        if not _inside(asset, source_root):
            raise InvalidRequestPathError(url_path)
        return ResolvedRequest(RequestKind.ASSET, relative, asset)

    return ResolvedRequest(RequestKind.NOT_FOUND, relative)
