"""Markdown to HTML conversion with mistune.

Fenced and indented code blocks are routed through the code highlighter
instead of being emitted as bare ``<pre><code>`` text.
"""

import logging
from typing import Any

import mistune
from mistune import HTMLRenderer

from haystack.core.highlight import CodeHighlighter, language_from_info

logger = logging.getLogger(__name__)

PLUGINS = ["table", "strikethrough", "footnotes", "task_lists"]


class HighlightingRenderer(HTMLRenderer):
    """mistune HTML renderer that highlights code blocks."""

    def __init__(self, highlighter: CodeHighlighter) -> None:
        # Raw HTML in documents is trusted local content
        super().__init__(escape=False)
        self._highlighter = highlighter

    def block_code(self, code: str, info: str | None = None) -> str:
        return self._highlighter.highlight(code, language_from_info(info))


def convert_markdown(text: str, highlighter: CodeHighlighter) -> tuple[str, str | None]:
    """Convert Markdown text to an HTML fragment.

    Args:
        text: Markdown source
        highlighter: Highlighter used for every code block

    Returns:
        Tuple of (html, title) where title is the first level-1 heading
    """
    markdown = mistune.create_markdown(
        renderer=HighlightingRenderer(highlighter),
        plugins=PLUGINS,
    )
    html = markdown(text)
    logger.debug(f"Converted {len(text)} characters of markdown to {len(html)} characters of HTML")
    return html, extract_markdown_title(text)


def extract_markdown_title(text: str) -> str | None:
    """Return the text of the first level-1 heading, if any.

    Inline markup is dropped, so ``# Hello *world*`` gives ``Hello world``.
    Headings with no text are skipped.
    """
    parse = mistune.create_markdown(renderer="ast", plugins=PLUGINS)
    tokens = parse(text)
    for token in _walk_blocks(tokens):
        if token.get("type") != "heading" or token.get("attrs", {}).get("level") != 1:
            continue
        title = _plain_text(token.get("children", [])).strip()
        if title:
            return title
    return None


def _walk_blocks(tokens: list[dict[str, Any]]):
    for token in tokens:
        yield token
        if token.get("type") in {"block_quote", "list", "list_item"}:
            yield from _walk_blocks(token.get("children", []))


def _plain_text(tokens: list[dict[str, Any]]) -> str:
    parts: list[str] = []
    for token in tokens:
        kind = token.get("type")
        if kind in {"softbreak", "linebreak"}:
            parts.append(" ")
        elif "children" in token:
            parts.append(_plain_text(token["children"]))
        elif kind in {"text", "codespan"}:
            parts.append(token.get("raw", ""))
    return "".join(parts)
