"""Org-mode to HTML conversion.

A line-oriented converter covering the subset of Org used for notes and
articles: keywords, headlines, paragraphs, lists, tables, blocks, drawers and
inline markup. Source blocks go through the code highlighter.

Unterminated blocks are not an error: the rest of the document is emitted as
escaped literal text.
"""

import html
import logging
import re
import textwrap
from dataclasses import dataclass, field

from haystack.core.highlight import CodeHighlighter, language_from_info

logger = logging.getLogger(__name__)

_KEYWORD_RE = re.compile(r"^\s*#\+([A-Za-z_][\w-]*):\s*(.*?)\s*$")
_HEADLINE_RE = re.compile(r"^(\*+)\s+(.*?)\s*$")
_BLOCK_BEGIN_RE = re.compile(r"^\s*#\+begin_(\w+)(?:\s+(.*?))?\s*$", re.IGNORECASE)
_LIST_RE = re.compile(r"^(\s*)([-+]|\d+[.)])(?:\s+(.*)|\s*$)")
_TABLE_RE = re.compile(r"^\s*\|")
_TABLE_RULE_RE = re.compile(r"^\s*\|[-+:\s]*-[-+:\s|]*$")
_RULE_RE = re.compile(r"^\s*-{5,}\s*$")
_FIXED_WIDTH_RE = re.compile(r"^\s*:(?:\s(.*)|$)")
_COMMENT_RE = re.compile(r"^\s*#(?:\s|$)")
_DRAWER_RE = re.compile(r"^\s*:([A-Za-z_][\w-]*):\s*$")
_DRAWER_END_RE = re.compile(r"^\s*:END:\s*$", re.IGNORECASE)
_PLANNING_RE = re.compile(r"^\s*(SCHEDULED|DEADLINE|CLOSED):")

_TODO_RE = re.compile(r"^(TODO|DONE|NEXT|WAITING|CANCELED|CANCELLED)\s+")
_PRIORITY_RE = re.compile(r"^\[#[A-Za-z0-9]\]\s*")
_TAGS_RE = re.compile(r"\s+(:[\w@#%:]+:)$")
_CHECKBOX_RE = re.compile(r"^\[([ xX-])\]\s*")
_DESCRIPTION_RE = re.compile(r"^(.*?)\s+::(?:\s+(.*)|$)")

_LINK_RE = re.compile(r"\[\[([^\[\]]+)\](?:\[([^\[\]]+)\])?\]")
_VERBATIM_RE = re.compile(r"(^|[\s\-({'\"])([=~])(\S|\S.*?\S)\2(?=[\s\-.,:!?;'\")}\[]|$)")
_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".bmp")
_SLUG_RE = re.compile(r"[^0-9a-z]+")

_EMPHASIS = (
    ("*", "strong"),
    ("/", "em"),
    ("_", "u"),
    ("+", "del"),
)


def _emphasis_re(marker: str) -> re.Pattern[str]:
    m = re.escape(marker)
    return re.compile(
        rf"(^|[\s\-({{'\"])"
        rf"{m}([^\s{m}]|[^\s{m}].*?[^\s{m}]){m}"
        rf"(?=[\s\-.,:!?;'\")}}\[]|$)",
    )


_EMPHASIS_RES = [(_emphasis_re(marker), tag) for marker, tag in _EMPHASIS]


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-")


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def clean_headline(text: str) -> str:
    """Strip TODO keyword, priority cookie and trailing tags from a headline."""
    text = _TODO_RE.sub("", text)
    text = _PRIORITY_RE.sub("", text)
    text = _TAGS_RE.sub("", text)
    return text.strip()


def extract_org_title(text: str) -> str | None:
    """Return the ``#+TITLE`` value, else the first headline text."""
    for line in text.splitlines():
        match = _KEYWORD_RE.match(line)
        if match and match.group(1).lower() == "title" and match.group(2):
            return match.group(2)
    for line in text.splitlines():
        match = _HEADLINE_RE.match(line)
        if match:
            title = clean_headline(match.group(2))
            if title:
                return title
    return None


def render_inline(text: str) -> str:
    """Render Org inline markup to HTML, escaping everything else."""
    # NUL delimits placeholders below, so it can't survive from the source
    text = text.replace("\x00", "\ufffd")
    protected: list[str] = []

    def protect(fragment: str) -> str:
        protected.append(fragment)
        return f"\x00{len(protected) - 1}\x00"

    def link(match: re.Match[str]) -> str:
        return protect(_render_link(match.group(1), match.group(2)))

    def verbatim(match: re.Match[str]) -> str:
        code = html.escape(match.group(3), quote=False)
        return match.group(1) + protect(f"<code>{code}</code>")

    text = _LINK_RE.sub(link, text)
    text = _VERBATIM_RE.sub(verbatim, text)
    text = html.escape(text, quote=False)
    for pattern, tag in _EMPHASIS_RES:
        text = pattern.sub(rf"\1<{tag}>\2</{tag}>", text)
    text = text.replace("\\\\\n", "<br>\n")
    if text.endswith("\\\\"):
        text = text[:-2] + "<br>"
    return re.sub("\x00(\\d+)\x00", lambda m: protected[int(m.group(1))], text)


def _link_target(target: str) -> str:
    if target.startswith("file:"):
        target = target[len("file:"):]
    if target.startswith("*"):
        return "#" + slugify(target[1:])
    path, sep, anchor = target.partition("#")
    if path.lower().endswith(".org") and "://" not in path:
        path = path[: -len(".org")] + ".html"
    return path + sep + anchor


def _is_image(target: str) -> bool:
    return target.lower().endswith(_IMAGE_EXTENSIONS)


def _render_link(target: str, description: str | None) -> str:
    href = html.escape(_link_target(target), quote=True)
    if description is None:
        if _is_image(target):
            return f'<img src="{href}" alt="">'
        return f'<a href="{href}">{html.escape(target, quote=False)}</a>'
    if _is_image(description):
        src = html.escape(_link_target(description), quote=True)
        return f'<a href="{href}"><img src="{src}" alt=""></a>'
    return f'<a href="{href}">{render_inline(description)}</a>'


@dataclass
class _ListItem:
    """Item text up to its first nested element, then rendered children."""

    text: list[str]
    children: list[str] = field(default_factory=list)
    trailing: list[str] = field(default_factory=list)

    def add_text(self, line: str) -> None:
        if self.children:
            self.trailing.append(line)
        else:
            self.text.append(line)

    def add_child(self, rendered: str) -> None:
        self._flush()
        self.children.append(rendered)

    def body(self) -> str:
        self._flush()
        return "".join(self.children)

    def _flush(self) -> None:
        if self.trailing:
            text = render_inline("\n".join(self.trailing))
            self.children.append(f"<p>{text}</p>\n")
            self.trailing.clear()


class OrgConverter:
    """Converts Org documents to HTML fragments.

    Stateless between calls; one instance can be shared across threads.
    """

    def __init__(self, highlighter: CodeHighlighter) -> None:
        self._highlighter = highlighter

    def convert(self, text: str) -> tuple[str, str | None]:
        """Convert Org text to an HTML fragment.

        Args:
            text: Org source

        Returns:
            Tuple of (html, title)
        """
        lines = text.splitlines()
        html_text = "".join(self._convert_lines(lines))
        logger.debug(f"Converted {len(text)} characters of org to {len(html_text)} characters of HTML")
        return html_text, extract_org_title(text)

    def _convert_lines(self, lines: list[str]) -> list[str]:
        out: list[str] = []
        paragraph: list[str] = []
        i = 0
        n = len(lines)

        def flush() -> None:
            if paragraph:
                text = render_inline("\n".join(paragraph))
                out.append(f"<p>{text}</p>\n")
                paragraph.clear()

        while i < n:
            line = lines[i]
            stripped = line.strip()

            if not stripped:
                flush()
                i += 1
                continue

            headline = _HEADLINE_RE.match(line)
            if headline:
                flush()
                level = min(len(headline.group(1)), 6)
                title = clean_headline(headline.group(2))
                out.append(f'<h{level} id="{slugify(title)}">{render_inline(title)}</h{level}>\n')
                i += 1
                continue

            block = _BLOCK_BEGIN_RE.match(line)
            if block:
                flush()
                rendered, i = self._convert_block(lines, i, block.group(1), block.group(2))
                out.append(rendered)
                continue

            keyword = _KEYWORD_RE.match(line)
            if keyword or _COMMENT_RE.match(line) or _PLANNING_RE.match(line):
                flush()
                i += 1
                continue

            drawer = _DRAWER_RE.match(line)
            if drawer:
                end = self._find(lines, i + 1, _DRAWER_END_RE)
                if end is not None:
                    flush()
                    i = end + 1
                    continue

            if _RULE_RE.match(line):
                flush()
                out.append("<hr>\n")
                i += 1
                continue

            if _FIXED_WIDTH_RE.match(line):
                flush()
                rendered, i = self._convert_fixed_width(lines, i)
                out.append(rendered)
                continue

            if _TABLE_RE.match(line):
                flush()
                rendered, i = self._convert_table_at(lines, i)
                out.append(rendered)
                continue

            if _LIST_RE.match(line):
                flush()
                rendered, i = self._convert_list(lines, i)
                out.append(rendered)
                continue

            paragraph.append(stripped)
            i += 1

        flush()
        return out

    @staticmethod
    def _find(lines: list[str], start: int, pattern: re.Pattern[str]) -> int | None:
        for j in range(start, len(lines)):
            if pattern.match(lines[j]):
                return j
        return None

    def _convert_block(
        self,
        lines: list[str],
        start: int,
        name: str,
        params: str | None,
    ) -> tuple[str, int]:
        kind = name.lower()
        end_re = re.compile(rf"^\s*#\+end_{re.escape(name)}\s*$", re.IGNORECASE)
        end = self._find(lines, start + 1, end_re)
        if end is None:
            logger.debug(f"Unterminated #+BEGIN_{name} block at line {start + 1}")
            literal = html.escape("\n".join(lines[start:]), quote=False)
            return f'<pre class="org-literal">{literal}</pre>\n', len(lines)

        body = lines[start + 1:end]
        next_index = end + 1

        if kind == "src":
            code = textwrap.dedent("\n".join(_unescape_commas(body)))
            if code:
                code += "\n"
            return self._highlighter.highlight(code, language_from_info(params)), next_index
        if kind == "example":
            code = textwrap.dedent("\n".join(_unescape_commas(body)))
            return f'<pre class="example">{html.escape(code, quote=False)}</pre>\n', next_index
        if kind == "quote":
            inner = "".join(self._convert_lines(body))
            return f"<blockquote>\n{inner}</blockquote>\n", next_index
        if kind == "verse":
            verse = "<br>\n".join(render_inline(line.strip()) for line in body)
            return f'<p class="verse">\n{verse}\n</p>\n', next_index
        if kind == "export":
            if (params or "").strip().lower() == "html":
                return "\n".join(body) + "\n", next_index
            return "", next_index
        if kind == "comment":
            return "", next_index

        inner = "".join(self._convert_lines(body))
        css_class = html.escape(kind, quote=True)
        return f'<div class="{css_class}">\n{inner}</div>\n', next_index

    @staticmethod
    def _convert_fixed_width(lines: list[str], start: int) -> tuple[str, int]:
        fixed: list[str] = []
        i = start
        while i < len(lines):
            match = _FIXED_WIDTH_RE.match(lines[i])
            if match is None:
                break
            fixed.append(match.group(1) or "")
            i += 1
        escaped = html.escape("\n".join(fixed), quote=False)
        return f'<pre class="example">{escaped}</pre>\n', i

    def _convert_table_at(self, lines: list[str], start: int) -> tuple[str, int]:
        rows: list[str] = []
        i = start
        while i < len(lines) and _TABLE_RE.match(lines[i]):
            rows.append(lines[i])
            i += 1
        return self._convert_table(rows), i

    def _convert_table(self, rows: list[str]) -> str:
        parsed: list[list[str] | None] = []
        for row in rows:
            if _TABLE_RULE_RE.match(row):
                parsed.append(None)
                continue
            body = row.strip()[1:]
            if body.endswith("|"):
                body = body[:-1]
            parsed.append([cell.strip() for cell in body.split("|")])

        # Rows above the first rule form the header, when there is data below it
        header: list[list[str]] = []
        data: list[list[str]] = []
        first_rule = next((k for k, row in enumerate(parsed) if row is None), None)
        for k, row in enumerate(parsed):
            if row is None:
                continue
            if first_rule is not None and k < first_rule:
                header.append(row)
            else:
                data.append(row)
        if not data:
            data, header = header, []

        out = ["<table>\n"]
        if header:
            out.append("<thead>\n")
            for row in header:
                cells = "".join(f"<th>{render_inline(c)}</th>" for c in row)
                out.append(f"<tr>{cells}</tr>\n")
            out.append("</thead>\n")
        out.append("<tbody>\n")
        for row in data:
            cells = "".join(f"<td>{render_inline(c)}</td>" for c in row)
            out.append(f"<tr>{cells}</tr>\n")
        out.append("</tbody>\n</table>\n")
        return "".join(out)

    def _convert_list(self, lines: list[str], start: int) -> tuple[str, int]:
        first = _LIST_RE.match(lines[start])
        assert first is not None
        indent = len(first.group(1))
        ordered = first.group(2)[0].isdigit()
        description = not ordered and _DESCRIPTION_RE.match(first.group(3) or "") is not None

        items: list[_ListItem] = []
        i = start
        n = len(lines)
        while i < n:
            match = _LIST_RE.match(lines[i])
            if not match or len(match.group(1)) != indent:
                break
            item = _ListItem(text=[match.group(3) or ""])
            i += 1
            while i < n:
                line = lines[i]
                if not line.strip():
                    j = i + 1
                    while j < n and not lines[j].strip():
                        j += 1
                    if j < n and _indent(lines[j]) > indent and j - i == 1:
                        i = j
                        continue
                    break
                if _indent(line) <= indent:
                    break
                if _LIST_RE.match(line):
                    nested, i = self._convert_list(lines, i)
                    item.add_child(nested)
                    continue
                block = _BLOCK_BEGIN_RE.match(line)
                if block:
                    rendered, i = self._convert_block(lines, i, block.group(1), block.group(2))
                    item.add_child(rendered)
                    continue
                if _TABLE_RE.match(line):
                    rendered, i = self._convert_table_at(lines, i)
                    item.add_child(rendered)
                    continue
                if _FIXED_WIDTH_RE.match(line):
                    rendered, i = self._convert_fixed_width(lines, i)
                    item.add_child(rendered)
                    continue
                item.add_text(line.strip())
                i += 1
            items.append(item)

            # A single blank line between siblings keeps the list open
            if i + 1 < n and not lines[i].strip():
                sibling = _LIST_RE.match(lines[i + 1])
                if sibling and len(sibling.group(1)) == indent:
                    i += 1

        if description:
            return self._render_description_list(items), i
        tag = "ol" if ordered else "ul"
        out = [f"<{tag}>\n"]
        for item in items:
            out.append(f"<li>{self._render_item_text(item.text)}{item.body()}</li>\n")
        out.append(f"</{tag}>\n")
        return "".join(out), i

    def _render_description_list(self, items: list[_ListItem]) -> str:
        out = ["<dl>\n"]
        for item in items:
            match = _DESCRIPTION_RE.match(item.text[0])
            if match:
                term = match.group(1)
                rest = [match.group(2) or ""] + item.text[1:]
            else:
                term = ""
                rest = item.text
            out.append(f"<dt>{render_inline(term)}</dt>")
            out.append(f"<dd>{self._render_item_text(rest)}{item.body()}</dd>\n")
        out.append("</dl>\n")
        return "".join(out)

    @staticmethod
    def _render_item_text(text: list[str]) -> str:
        first = text[0]
        checkbox = _CHECKBOX_RE.match(first)
        prefix = ""
        if checkbox:
            state = checkbox.group(1)
            checked = " checked" if state in "xX" else ""
            prefix = f'<input type="checkbox" disabled{checked}> '
            first = first[checkbox.end():]
        body = "\n".join([first, *text[1:]]).strip()
        return prefix + render_inline(body)


def _unescape_commas(lines: list[str]) -> list[str]:
    # Org escapes "*" and "#+" at line start inside blocks with a leading comma
    return [re.sub(r"^(\s*),(\*|#\+)", r"\1\2", line) for line in lines]
