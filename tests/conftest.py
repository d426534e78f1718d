"""Shared test fixtures."""

from pathlib import Path

import pytest
from haystack.config import Config, PathsConfig, ServerConfig, ThemeConfig
from haystack.core.highlight import CodeHighlighter, ThemePair, resolve_theme_pair
from haystack.core.page import HeadInclude, PageComposer
from haystack.core.renderer import PageRenderer


@pytest.fixture
def themes() -> ThemePair:
    """Default light/dark theme pair."""
    return resolve_theme_pair(None, None)


@pytest.fixture
def highlighter(themes: ThemePair) -> CodeHighlighter:
    return CodeHighlighter(themes)


@pytest.fixture
def composer(themes: ThemePair) -> PageComposer:
    return PageComposer(themes, HeadInclude(None))


@pytest.fixture
def renderer(highlighter: CodeHighlighter, composer: PageComposer) -> PageRenderer:
    return PageRenderer(highlighter, composer)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    source = tmp_path / "src"
    source.mkdir(exist_ok=True)
    return source


@pytest.fixture
def test_config(tmp_path: Path, source_dir: Path) -> Config:
    """Create a test configuration with tmp_path directories."""
    return Config(
        paths=PathsConfig(
            source_dir=source_dir,
            output_dir=tmp_path / "output",
            head_include=tmp_path / "theme" / "head.html",
        ),
        server=ServerConfig(host="127.0.0.1", port=4000),
        theme=ThemeConfig(),
    )
