"""Startup wiring for the rendering pipeline.

Resolves the configured theme pair once, before any document is touched,
and assembles the shared read-only renderer used by build and serve modes.
"""

import logging

from haystack.config import Config
from haystack.core.highlight import CodeHighlighter, ThemeCatalog, resolve_theme_pair
from haystack.core.page import HeadInclude, PageComposer
from haystack.core.renderer import PageRenderer

logger = logging.getLogger(__name__)


def create_renderer(
    config: Config,
    *,
    reload_head: bool,
    catalog: ThemeCatalog | None = None,
) -> PageRenderer:
    """Create the page renderer for a run.

    Args:
        config: Application configuration
        reload_head: Re-read the head include on every page (serve mode)
            instead of once up front (build mode)
        catalog: Theme catalog; defaults to the built-in one

    Returns:
        Renderer shared by every render of the run

    Raises:
        ThemeNotFoundError: If a configured theme name is unknown
    """
    themes = resolve_theme_pair(config.theme.light, config.theme.dark, catalog)
    logger.info(f"Highlighting themes: {themes.light.name} (light), {themes.dark.name} (dark)")

    head_include = HeadInclude(config.paths.head_include, reload=reload_head)
    composer = PageComposer(themes, head_include)
    return PageRenderer(CodeHighlighter(themes), composer)
