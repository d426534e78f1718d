"""Server-side syntax highlighting with Pygments.

Code blocks are rendered with inline ``style=`` attributes only, once per
configured theme, so pages need no external stylesheet. The page CSS decides
which of the two renderings is visible.
"""

import html
import logging
import re
from dataclasses import dataclass
from functools import cached_property

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.style import Style
from pygments.styles import get_all_styles, get_style_by_name
from pygments.util import ClassNotFound

from haystack.errors import ThemeNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_LIGHT_THEME = "default"
DEFAULT_DARK_THEME = "github-dark"

_THEME_ALIASES = {
    "github": "github-dark",
    "light": DEFAULT_LIGHT_THEME,
    "dark": DEFAULT_DARK_THEME,
    "solarized": "solarized-light",
    "gruvbox": "gruvbox-dark",
    "onedark": "one-dark",
}

_NON_ALNUM_RE = re.compile(r"[^0-9a-z]")


@dataclass(frozen=True)
class Theme:
    """A resolved highlighting theme."""

    name: str
    style: type[Style]

    @property
    def background(self) -> str:
        return self.style.background_color or "transparent"


@dataclass(frozen=True)
class ThemePair:
    """Light and dark themes selected for a run."""

    light: Theme
    dark: Theme


class ThemeCatalog:
    """Built-in catalog of highlighting theme names.

    Names come from the installed Pygments styles and are read once.
    """

    @cached_property
    def _names(self) -> tuple[str, ...]:
        return tuple(sorted(get_all_styles(), key=str.lower))

    def names(self) -> list[str]:
        """Return catalog names sorted case-insensitively."""
        return list(self._names)

    def resolve(self, name: str) -> Theme:
        """Resolve a user-supplied theme name.

        Matching is tried exact, then case-insensitive, then on
        alphanumerics only (so ``Solarized (dark)`` finds ``solarized-dark``),
        then through a short alias table.

        Args:
            name: Theme name as given on the command line or in config

        Returns:
            Resolved theme

        Raises:
            ThemeNotFoundError: If no catalog entry matches
        """
        wanted = name.strip()
        if not wanted:
            raise ThemeNotFoundError(name)

        if wanted in self._names:
            return self._load(wanted)

        lower = wanted.lower()
        for candidate in self._names:
            if candidate.lower() == lower:
                return self._load(candidate)

        normalized = _normalize(wanted)
        for candidate in self._names:
            if _normalize(candidate) == normalized:
                return self._load(candidate)

        alias = _THEME_ALIASES.get(normalized) or _THEME_ALIASES.get(lower)
        if alias is not None and alias in self._names:
            return self._load(alias)

        raise ThemeNotFoundError(name)

    def _load(self, name: str) -> Theme:
        try:
            return Theme(name=name, style=get_style_by_name(name))
        except ClassNotFound as e:
            raise ThemeNotFoundError(name) from e


def _normalize(name: str) -> str:
    return _NON_ALNUM_RE.sub("", name.lower())


def resolve_theme_pair(
    light: str | None,
    dark: str | None,
    catalog: ThemeCatalog | None = None,
) -> ThemePair:
    """Resolve the light/dark theme names for a run.

    Missing names fall back to the built-in defaults.

    Raises:
        ThemeNotFoundError: If either name is unknown
    """
    catalog = catalog or ThemeCatalog()
    return ThemePair(
        light=catalog.resolve(light if light is not None else DEFAULT_LIGHT_THEME),
        dark=catalog.resolve(dark if dark is not None else DEFAULT_DARK_THEME),
    )


def language_from_info(info: str | None) -> str | None:
    """Extract the language tag from a fence info string.

    ``"python title=x.py"`` gives ``"python"``; ``"{.rust}"`` gives ``"rust"``.
    """
    if not info:
        return None
    first = info.strip().split(maxsplit=1)
    if not first:
        return None
    lang = first[0].strip("{}").lstrip(".")
    if lang.startswith("language-"):
        lang = lang[len("language-"):]
    return lang or None


def _lexer_for(language: str | None) -> Lexer:
    if language:
        try:
            return get_lexer_by_name(language)
        except ClassNotFound:
            logger.debug(f"No lexer for language {language!r}, rendering as plain text")
    return TextLexer()


def highlight_code(code: str, language: str | None, theme: Theme) -> str:
    """Highlight code with a single theme.

    Args:
        code: Source text of the block
        language: Language hint; unknown or missing hints give plain text
        theme: Resolved theme

    Returns:
        HTML with inline styles
    """
    formatter = HtmlFormatter(style=theme.style, noclasses=True)
    return pygments_highlight(code, _lexer_for(language), formatter)


class CodeHighlighter:
    """Highlights code blocks for both themes of a theme pair.

    Shared read-only between threads; formatters are built once.
    """

    def __init__(self, themes: ThemePair) -> None:
        self._themes = themes
        self._light_formatter = HtmlFormatter(style=themes.light.style, noclasses=True)
        self._dark_formatter = HtmlFormatter(style=themes.dark.style, noclasses=True)

    @property
    def themes(self) -> ThemePair:
        return self._themes

    def highlight(self, code: str, language: str | None = None) -> str:
        """Render a code block for both themes.

        Args:
            code: Raw (unescaped) code text
            language: Language hint from the fence or ``#+BEGIN_SRC`` line

        Returns:
            A ``code-block`` wrapper holding the light and dark renderings
        """
        lexer = _lexer_for(language)
        light = pygments_highlight(code, lexer, self._light_formatter)
        dark = pygments_highlight(code, lexer, self._dark_formatter)
        lang_attr = html.escape(language or "text", quote=True)
        return (
            f'<div class="code-block" data-lang="{lang_attr}">'
            f'<div class="hl-light">{light}</div>'
            f'<div class="hl-dark">{dark}</div>'
            "</div>\n"
        )
