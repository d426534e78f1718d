"""Tests for serve mode."""

import threading
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web
from haystack import routes
from haystack.app_keys import renderer_key, source_dir_key
from haystack.builder import SiteBuilder
from haystack.config import Config
from haystack.core.paths import ResolvedRequest, resolve_request
from haystack.core.renderer import PageRenderer
from haystack.errors import ThemeNotFoundError
from haystack.server import create_app


@pytest.fixture
def app(test_config: Config) -> web.Application:
    return create_app(test_config)


class TestCreateApp:
    """Tests for create_app()."""

    def test__valid_config__returns_configured_app(self, test_config: Config) -> None:
        """Create app with valid configuration."""
        app = create_app(test_config)

        assert app[source_dir_key] == test_config.paths.source_dir
        assert isinstance(app[renderer_key], PageRenderer)
        assert app[renderer_key].composer.head_include.reload is True

    def test__unknown_theme__fails_at_startup(self, test_config: Config) -> None:
        """Theme names are validated when the app is created."""
        config = test_config.with_overrides(theme_light="does-not-exist")

        with pytest.raises(ThemeNotFoundError):
            create_app(config)


class TestGetPage:
    """Tests for GET /{path}."""

    @pytest.mark.asyncio
    async def test__root__renders_index(self, aiohttp_client: Any, app: web.Application, source_dir: Path) -> None:
        """GET / renders src/index.md."""
        (source_dir / "index.md").write_text("# Home\n\nWelcome.\n")

        client = await aiohttp_client(app)
        response = await client.get("/")

        assert response.status == 200
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        body = await response.text()
        assert "<title>Home</title>" in body
        assert "<p>Welcome.</p>" in body

    @pytest.mark.asyncio
    async def test__root__same_as_index_html(self, aiohttp_client: Any, app: web.Application, source_dir: Path) -> None:
        """/ and /index.html produce the same page."""
        (source_dir / "index.md").write_text("# Home\n\n```python\nx = 1\n```\n")

        client = await aiohttp_client(app)
        root = await (await client.get("/")).read()
        index = await (await client.get("/index.html")).read()

        assert root == index

    @pytest.mark.asyncio
    async def test__org_document__rendered(self, aiohttp_client: Any, app: web.Application, source_dir: Path) -> None:
        """Nested Org documents are served at their .html path."""
        (source_dir / "notes").mkdir()
        (source_dir / "notes" / "todo.org").write_text("#+TITLE: Todo\n* Milk\n")

        client = await aiohttp_client(app)
        response = await client.get("/notes/todo.html")

        assert response.status == 200
        assert "<title>Todo</title>" in await response.text()

    @pytest.mark.asyncio
    async def test__missing_page__returns_404(self, aiohttp_client: Any, app: web.Application) -> None:
        """Missing documents are a not-found response."""
        client = await aiohttp_client(app)
        response = await client.get("/missing.html")

        assert response.status == 404
        assert await response.text() == "Not Found"

    @pytest.mark.asyncio
    async def test__traversal__returns_400(self, aiohttp_client: Any, app: web.Application, source_dir: Path) -> None:
        """Encoded traversal is refused even when the target exists."""
        (source_dir.parent / "secret.md").write_text("# Secret")
        (source_dir / "sub").mkdir()

        client = await aiohttp_client(app)
        response = await client.get("/sub/..%2F..%2Fsecret.html")

        assert response.status == 400
        assert await response.text() == "Bad Request"

    @pytest.mark.asyncio
    async def test__asset__served_with_content_type(
        self,
        aiohttp_client: Any,
        app: web.Application,
        source_dir: Path,
    ) -> None:
        """Non-document files are served verbatim."""
        (source_dir / "css").mkdir()
        (source_dir / "css" / "site.css").write_text("body { color: red; }")
        (source_dir / "logo.png").write_bytes(b"\x89PNG\r\n")

        client = await aiohttp_client(app)
        css = await client.get("/css/site.css")
        png = await client.get("/logo.png")

        assert css.status == 200
        assert css.headers["Content-Type"] == "text/css; charset=utf-8"
        assert await css.text() == "body { color: red; }"
        assert png.headers["Content-Type"] == "image/png"
        assert await png.read() == b"\x89PNG\r\n"

    @pytest.mark.asyncio
    async def test__source_edit__visible_on_next_request(
        self,
        aiohttp_client: Any,
        app: web.Application,
        source_dir: Path,
    ) -> None:
        """Documents are read fresh for every request."""
        page = source_dir / "page.md"
        page.write_text("# One\n")

        client = await aiohttp_client(app)
        first = await (await client.get("/page.html")).text()
        page.write_text("# Two\n")
        second = await (await client.get("/page.html")).text()

        assert "<title>One</title>" in first
        assert "<title>Two</title>" in second

    @pytest.mark.asyncio
    async def test__head_include__reread_per_request(
        self,
        aiohttp_client: Any,
        app: web.Application,
        test_config: Config,
        source_dir: Path,
    ) -> None:
        """Head include edits apply without a restart."""
        (source_dir / "index.md").write_text("# Home\n")
        head = test_config.paths.head_include
        head.parent.mkdir(parents=True)
        head.write_text('<meta name="rev" content="1">')

        client = await aiohttp_client(app)
        first = await (await client.get("/")).text()
        head.write_text('<meta name="rev" content="2">')
        second = await (await client.get("/")).text()

        assert '<meta name="rev" content="1">' in first
        assert '<meta name="rev" content="2">' in second

    @pytest.mark.asyncio
    async def test__matching_etag__returns_304(
        self,
        aiohttp_client: Any,
        app: web.Application,
        source_dir: Path,
    ) -> None:
        """Return 304 when ETag matches."""
        (source_dir / "guide.md").write_text("# Guide\n")

        client = await aiohttp_client(app)
        first = await client.get("/guide.html")
        etag = first.headers["ETag"]
        second = await client.get("/guide.html", headers={"If-None-Match": etag})

        assert second.status == 304

    @pytest.mark.asyncio
    async def test__read_error__returns_500_for_that_request_only(
        self,
        aiohttp_client: Any,
        app: web.Application,
        source_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """An I/O error fails only the affected request."""
        (source_dir / "broken.md").write_text("# Broken\n")
        (source_dir / "fine.md").write_text("# Fine\n")
        original = PageRenderer.render_file

        def flaky(self: PageRenderer, source: Path) -> bytes:
            if source.name == "broken.md":
                raise PermissionError("Permission denied")
            return original(self, source)

        monkeypatch.setattr(PageRenderer, "render_file", flaky)

        client = await aiohttp_client(app)
        broken = await client.get("/broken.html")
        fine = await client.get("/fine.html")

        assert broken.status == 500
        assert fine.status == 200

    @pytest.mark.asyncio
    async def test__same_stem_documents__match_built_page(
        self,
        aiohttp_client: Any,
        app: web.Application,
        source_dir: Path,
        tmp_path: Path,
    ) -> None:
        """Serve and build pick the same document for a shared output path."""
        (source_dir / "a.md").write_text("# From Markdown\n")
        (source_dir / "a.org").write_text("#+TITLE: From Org\n")
        output = tmp_path / "output"
        SiteBuilder(app[renderer_key], source_dir, output).build()

        client = await aiohttp_client(app)
        served = await (await client.get("/a.html")).read()

        assert served == (output / "a.html").read_bytes()
        assert b"<title>From Markdown</title>" in served

    @pytest.mark.asyncio
    async def test__path_resolution__runs_off_event_loop(
        self,
        aiohttp_client: Any,
        app: web.Application,
        source_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Filesystem probing for a request happens in the executor."""
        (source_dir / "index.md").write_text("# Home\n")
        calls: list[int] = []

        def recording(url_path: str, root: Path) -> ResolvedRequest:
            calls.append(threading.get_ident())
            return resolve_request(url_path, root)

        monkeypatch.setattr(routes, "resolve_request", recording)

        client = await aiohttp_client(app)
        response = await client.get("/")

        assert response.status == 200
        assert calls
        assert threading.get_ident() not in calls
