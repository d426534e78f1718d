"""Built-in assets bundled with the haystack package.

Locates the stylesheet shipped as package data and derives Content-Types
for asset files passed through unmodified.
"""

import mimetypes
from importlib.resources import files
from pathlib import PurePath

STYLESHEET_NAME = "haystack.css"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def read_stylesheet() -> str:
    """Return the built-in responsive/dark-mode stylesheet.

    Raises:
        FileNotFoundError: If the stylesheet is not bundled.
    """
    stylesheet = files("haystack").joinpath("static", STYLESHEET_NAME)
    if not stylesheet.is_file():
        msg = f"Bundled stylesheet not found: static/{STYLESHEET_NAME}. Reinstall haystack."
        raise FileNotFoundError(msg)
    return stylesheet.read_text(encoding="utf-8")


def guess_content_type(path: PurePath | str) -> str:
    """Derive a Content-Type from the file extension."""
    content_type, _ = mimetypes.guess_type(str(path))
    if content_type is None:
        return DEFAULT_CONTENT_TYPE
    if content_type.startswith("text/") or content_type in {"application/javascript", "application/json"}:
        return f"{content_type}; charset=utf-8"
    return content_type
