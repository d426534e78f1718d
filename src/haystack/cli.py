"""CLI interface for haystack.

Command-line tool for building and serving Markdown/Org documents as HTML.
"""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from haystack import __version__
from haystack.config import Config
from haystack.core.highlight import ThemeCatalog
from haystack.errors import ConfigurationError


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[haystack] %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _load_config(config_path: Path | None, **overrides: object) -> Config:
    """Load configuration and apply CLI overrides, exiting on invalid input."""
    try:
        return Config.load(config_path).with_overrides(**overrides)  # type: ignore[arg-type]
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Path to configuration file (default: auto-discover haystack.toml)",
)
source_dir_option = click.option(
    "--source-dir",
    "-s",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Source directory (default: src)",
)
theme_light_option = click.option(
    "--theme-light",
    metavar="NAME",
    default=None,
    help="Light theme name for syntax highlighting",
)
theme_dark_option = click.option(
    "--theme-dark",
    metavar="NAME",
    default=None,
    help="Dark theme name for syntax highlighting",
)
verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)


@click.group()
@click.version_option(__version__, prog_name="haystack")
def cli() -> None:
    """haystack - build and serve Markdown/Org documents as HTML."""


@cli.command()
@config_option
@source_dir_option
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Output directory (default: output)",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Number of files processed in parallel (default: automatic)",
)
@theme_light_option
@theme_dark_option
@verbose_option
def build(
    config_path: Path | None,
    source_dir: Path | None,
    output_dir: Path | None,
    jobs: int | None,
    theme_light: str | None,
    theme_dark: str | None,
    verbose: bool,
) -> None:
    """Compile src/*.md and src/*.org to output/*.html."""
    from haystack.builder import SiteBuilder
    from haystack.core.site import create_renderer

    _configure_logging(verbose)
    config = _load_config(
        config_path,
        source_dir=source_dir,
        output_dir=output_dir,
        theme_light=theme_light,
        theme_dark=theme_dark,
    )

    try:
        renderer = create_renderer(config, reload_head=False)
        builder = SiteBuilder(
            renderer,
            config.paths.source_dir,
            config.paths.output_dir,
            jobs=jobs,
        )
        report = builder.build()
    except (ConfigurationError, OSError) as e:
        _fail(str(e))

    click.echo(
        f"Built {len(report.built)} documents, copied {len(report.copied)} files "
        f"into {config.paths.output_dir}",
    )
    if not report.ok:
        click.echo(
            click.style(f"\n{len(report.failures)} file(s) failed:", fg="yellow"),
            err=True,
        )
        for failure in report.failures:
            click.echo(f"  - {failure.source}: {failure.error}", err=True)
        sys.exit(1)


@cli.command()
@config_option
@source_dir_option
@click.option(
    "--host",
    default=None,
    help="Host to bind to (default: 0.0.0.0)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to listen on (default: 4000)",
)
@theme_light_option
@theme_dark_option
@verbose_option
def serve(
    config_path: Path | None,
    source_dir: Path | None,
    host: str | None,
    port: int | None,
    theme_light: str | None,
    theme_dark: str | None,
    verbose: bool,
) -> None:
    """Serve on-demand HTML from src/*.md and src/*.org."""
    from haystack.core.site import create_renderer
    from haystack.server import run_server

    _configure_logging(verbose)
    config = _load_config(
        config_path,
        source_dir=source_dir,
        host=host,
        port=port,
        theme_light=theme_light,
        theme_dark=theme_dark,
    )

    try:
        renderer = create_renderer(config, reload_head=True)
        click.echo(f"Serving {config.paths.source_dir} on http://{config.server.host}:{config.server.port}/")
        run_server(config, renderer)
    except (ConfigurationError, OSError) as e:
        _fail(str(e))


@cli.command()
def themes() -> None:
    """List available syntax highlighting themes."""
    names = ThemeCatalog().names()
    click.echo(f"Available themes ({len(names)}):")
    for name in names:
        click.echo(f"- {name}")


if __name__ == "__main__":
    cli()
