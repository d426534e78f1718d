"""aiohttp server for haystack.

Application factory and route registration for serve mode.
"""

import logging

from aiohttp import web

from haystack.app_keys import renderer_key, source_dir_key
from haystack.config import Config
from haystack.core.renderer import PageRenderer
from haystack.core.site import create_renderer
from haystack.errors import ConfigurationError
from haystack.routes import create_page_routes

logger = logging.getLogger(__name__)


def create_app(config: Config, renderer: PageRenderer | None = None) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        renderer: Page renderer; built from config when omitted, with the
            head include re-read on every request

    Returns:
        Configured aiohttp application

    Raises:
        ThemeNotFoundError: If a configured theme name is unknown
    """
    if renderer is None:
        renderer = create_renderer(config, reload_head=True)

    app = web.Application()
    app[renderer_key] = renderer
    app[source_dir_key] = config.paths.source_dir
    app.router.add_routes(create_page_routes())
    return app


def run_server(config: Config, renderer: PageRenderer | None = None) -> None:
    """Run the server until interrupted.

    Raises:
        ConfigurationError: If the source directory does not exist
    """
    source_dir = config.paths.source_dir
    if not source_dir.is_dir():
        raise ConfigurationError(f"src folder not found: {source_dir}")

    app = create_app(config, renderer)
    logger.debug(f"Serving {source_dir} on http://{config.server.host}:{config.server.port}/")
    web.run_app(app, host=config.server.host, port=config.server.port, print=None)
