"""Application keys for type-safe app configuration access."""

from pathlib import Path

from aiohttp import web

from haystack.core.renderer import PageRenderer

renderer_key = web.AppKey("renderer", PageRenderer)
source_dir_key = web.AppKey("source_dir", Path)
