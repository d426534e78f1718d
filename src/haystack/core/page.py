"""Page composition.

Wraps rendered fragments in a complete, self-contained HTML document: the
built-in stylesheet, highlighting theme variables, the optional head include
and a light/dark/auto theme toggle. No external stylesheet or script is
referenced.
"""

import html
import logging
from pathlib import Path

from haystack.assets import read_stylesheet
from haystack.core.highlight import ThemePair

logger = logging.getLogger(__name__)

DEFAULT_HEAD_INCLUDE = Path("theme") / "head.html"
THEME_STORAGE_KEY = "haystack-theme"

_THEME_BOOTSTRAP = f"""(function(){{
  try {{
    document.documentElement.setAttribute('data-theme', localStorage.getItem('{THEME_STORAGE_KEY}') || 'auto');
  }} catch(e) {{}}
}})();"""

_THEME_TOGGLE = f"""(function(){{
  function setTheme(t){{ document.documentElement.setAttribute('data-theme', t); try{{ localStorage.setItem('{THEME_STORAGE_KEY}', t); }}catch(e){{}} }}
  var btn = document.getElementById('themeToggle');
  if(btn){{ btn.addEventListener('click', function(){{
    var cur = document.documentElement.getAttribute('data-theme') || 'auto';
    var next = (cur === 'light') ? 'dark' : (cur === 'dark' ? 'auto' : 'light');
    setTheme(next);
  }}); }}
}})();"""

_THEME_CONTROLS = (
    '<div class="theme-controls">'
    '<button id="themeToggle" type="button" aria-label="Toggle theme">&#x1F313;</button>'
    "</div>"
)

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en" data-theme="auto">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<script>{bootstrap}</script>
<style>
{stylesheet}
{theme_css}
</style>
{head_include}
</head>
<body>
{controls}
<main class="container">
{body}
</main>
<script>{toggle}</script>
</body>
</html>
"""


def theme_css(themes: ThemePair) -> str:
    """CSS variables and visibility rules for the highlighted code blocks.

    Each code block carries a light and a dark rendering; these rules show
    exactly one of them for the active appearance.
    """
    return f"""/* highlighting: {themes.light.name} (light), {themes.dark.name} (dark) */
:root {{ --hl-light-bg: {themes.light.background}; --hl-dark-bg: {themes.dark.background}; }}
.code-block .hl-light .highlight {{ background: var(--hl-light-bg); }}
.code-block .hl-dark .highlight {{ background: var(--hl-dark-bg); }}
.code-block .hl-dark {{ display: none; }}
html[data-theme='dark'] .code-block .hl-light {{ display: none; }}
html[data-theme='dark'] .code-block .hl-dark {{ display: block; }}
@media (prefers-color-scheme: dark) {{
  html[data-theme='auto'] .code-block .hl-light {{ display: none; }}
  html[data-theme='auto'] .code-block .hl-dark {{ display: block; }}
}}"""


def compose_page(
    fragment: str,
    title: str | None,
    themes: ThemePair,
    head_include: str,
    *,
    fallback_title: str,
    stylesheet: str,
) -> str:
    """Compose a complete HTML document.

    Args:
        fragment: Rendered document body
        title: Extracted title, or None
        themes: Highlighting theme pair
        head_include: Raw HTML appended to the head verbatim (may be empty)
        fallback_title: Title used when the document has none
        stylesheet: Built-in CSS

    Returns:
        Full HTML page
    """
    page_title = title or fallback_title
    return _PAGE_TEMPLATE.format(
        title=html.escape(page_title, quote=False),
        bootstrap=_THEME_BOOTSTRAP,
        stylesheet=stylesheet.rstrip("\n"),
        theme_css=theme_css(themes),
        head_include=head_include.rstrip("\n"),
        controls=_THEME_CONTROLS,
        body=fragment.rstrip("\n"),
        toggle=_THEME_TOGGLE,
    )


class HeadInclude:
    """Optional raw HTML injected into every page head.

    With ``reload=True`` the file is re-read on every access, so edits show
    up without restarting the server. Otherwise it is read once, up front.
    A missing file yields empty text.
    """

    def __init__(self, path: Path | None = DEFAULT_HEAD_INCLUDE, *, reload: bool = False) -> None:
        self._path = path
        self._reload = reload
        self._cached = "" if reload else self._read()

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def reload(self) -> bool:
        return self._reload

    def text(self) -> str:
        if self._reload:
            return self._read()
        return self._cached

    def _read(self) -> str:
        if self._path is None:
            return ""
        try:
            content = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        logger.debug(f"Loaded head include from {self._path}")
        return content


class PageComposer:
    """Composes pages with the run's theme pair and head include.

    The stylesheet is loaded once; the composer is shared read-only between
    threads.
    """

    def __init__(
        self,
        themes: ThemePair,
        head_include: HeadInclude | None = None,
        *,
        stylesheet: str | None = None,
    ) -> None:
        self._themes = themes
        self._head_include = head_include or HeadInclude(None)
        self._stylesheet = stylesheet if stylesheet is not None else read_stylesheet()

    @property
    def themes(self) -> ThemePair:
        return self._themes

    @property
    def head_include(self) -> HeadInclude:
        return self._head_include

    def compose(self, fragment: str, title: str | None, *, fallback_title: str) -> str:
        """Compose a full page for a rendered fragment."""
        return compose_page(
            fragment,
            title,
            self._themes,
            self._head_include.text(),
            fallback_title=fallback_title,
            stylesheet=self._stylesheet,
        )
