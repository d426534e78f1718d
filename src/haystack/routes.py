"""Request handling for serve mode.

Maps request paths onto the source tree and renders documents on demand.
Every request reads its source fresh; nothing is cached between requests.
"""

import asyncio
import logging
from hashlib import md5

from aiohttp import web

from haystack.app_keys import renderer_key, source_dir_key
from haystack.assets import guess_content_type
from haystack.core.paths import RequestKind, resolve_request
from haystack.core.types import URLPath
from haystack.errors import InvalidRequestPathError

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


def create_page_routes() -> list[web.RouteDef]:
    return [
        web.get("/{path:.*}", get_page),
    ]


async def get_page(request: web.Request) -> web.Response:
    source_dir = request.app[source_dir_key]
    renderer = request.app[renderer_key]

    # raw_path keeps percent-escapes so traversal checks see the original request
    url_path = URLPath(request.raw_path)
    loop = asyncio.get_running_loop()
    try:
        resolved = await loop.run_in_executor(None, resolve_request, url_path, source_dir)
    except InvalidRequestPathError:
        logger.warning(f"Rejected request path: {request.raw_path}")
        return web.Response(text="Bad Request", status=400)

    if resolved.kind is RequestKind.NOT_FOUND or resolved.source_path is None:
        return web.Response(text="Not Found", status=404)

    try:
        if resolved.kind is RequestKind.DOCUMENT:
            body = await loop.run_in_executor(None, renderer.render_file, resolved.source_path)
            content_type = HTML_CONTENT_TYPE
        else:
            body = await loop.run_in_executor(None, resolved.source_path.read_bytes)
            content_type = guess_content_type(resolved.source_path)
    except OSError as e:
        logger.error(f"Error reading {resolved.relative_path}: {e}")
        return web.Response(text=f"Error reading {resolved.relative_path}", status=500)

    etag = _compute_etag(body)
    if request.headers.get("If-None-Match") == etag:
        return web.Response(status=304, headers={"ETag": etag})

    return web.Response(
        body=body,
        headers={
            "Content-Type": content_type,
            "ETag": etag,
            "Cache-Control": "no-cache",
        },
    )


def _compute_etag(content: bytes) -> str:
    # First 16 hex chars (64 bits) are enough to detect changed content
    content_hash = md5(content, usedforsecurity=False).hexdigest()[:16]
    return f'"{content_hash}"'
