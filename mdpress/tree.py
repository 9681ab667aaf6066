"""
Structural document tree.

Markdown is parsed with markdown-it-py (CommonMark plus GFM tables,
strikethrough and autolinks) and the token stream is folded into a small set
of immutable node types that the renderer dispatches on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode


@dataclass(frozen=True)
class Node:
    pass


@dataclass(frozen=True)
class Root(Node):
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Heading(Node):
    level: int
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Paragraph(Node):
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Text(Node):
    value: str


@dataclass(frozen=True)
class Emphasis(Node):
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Strong(Node):
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class InlineCode(Node):
    value: str


@dataclass(frozen=True)
class Code(Node):
    value: str
    lang: Optional[str] = None


@dataclass(frozen=True)
class List(Node):
    ordered: bool
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class ListItem(Node):
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Blockquote(Node):
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class TableCell(Node):
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class TableRow(Node):
    children: tuple[TableCell, ...] = ()


@dataclass(frozen=True)
class Table(Node):
    children: tuple[TableRow, ...] = ()


@dataclass(frozen=True)
class Link(Node):
    url: str
    children: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Image(Node):
    url: str
    alt: str = ""


@dataclass(frozen=True)
class ThematicBreak(Node):
    pass


@dataclass(frozen=True)
class Unknown(Node):
    """Any construct without a dedicated node type; rendered as its children."""

    kind: str
    children: tuple[Node, ...] = ()


def _build_markdown_parser() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"linkify": True})
    md.enable(["table", "strikethrough", "linkify"])
    # Every scheme is accepted and URLs are kept as written.
    md.validateLink = lambda url: True
    md.normalizeLink = lambda url: url
    return md


_MD_PARSER: MarkdownIt | None = None


def _get_markdown_parser() -> MarkdownIt:
    global _MD_PARSER
    if _MD_PARSER is None:
        _MD_PARSER = _build_markdown_parser()
    return _MD_PARSER


def _convert_children(children: Iterable[SyntaxTreeNode]) -> tuple[Node, ...]:
    out: list[Node] = []
    for child in children:
        out.extend(_convert(child))
    return tuple(out)


def _table_rows(node: SyntaxTreeNode) -> tuple[TableRow, ...]:
    rows: list[TableRow] = []
    for section in node.children:
        # thead / tbody are flattened; rows keep source order.
        candidates = section.children if section.type in ("thead", "tbody") else [section]
        for row in candidates:
            if row.type != "tr":
                continue
            cells = tuple(TableCell(children=_convert_children(cell.children)) for cell in row.children)
            rows.append(TableRow(children=cells))
    return tuple(rows)


def _strip_final_newline(value: str) -> str:
    return value[:-1] if value.endswith("\n") else value


def _convert(node: SyntaxTreeNode) -> list[Node]:
    kind = node.type
    if kind == "inline":
        return list(_convert_children(node.children))
    if kind == "text":
        return [Text(value=node.content)]
    # Hard breaks collapse to a newline too; no <br> is emitted.
    if kind in ("softbreak", "hardbreak"):
        return [Text(value="\n")]
    if kind == "heading":
        return [Heading(level=int(node.tag[1:]), children=_convert_children(node.children))]
    if kind == "paragraph":
        return [Paragraph(children=_convert_children(node.children))]
    if kind == "em":
        return [Emphasis(children=_convert_children(node.children))]
    if kind == "strong":
        return [Strong(children=_convert_children(node.children))]
    if kind == "code_inline":
        return [InlineCode(value=node.content)]
    if kind in ("fence", "code_block"):
        info = (node.info or "").strip()
        lang = info.split()[0] if info else None
        return [Code(value=_strip_final_newline(node.content), lang=lang)]
    if kind in ("bullet_list", "ordered_list"):
        return [List(ordered=kind == "ordered_list", children=_convert_children(node.children))]
    if kind == "list_item":
        return [ListItem(children=_convert_children(node.children))]
    if kind == "blockquote":
        return [Blockquote(children=_convert_children(node.children))]
    if kind == "table":
        return [Table(children=_table_rows(node))]
    if kind == "link":
        return [Link(url=str(node.attrs.get("href", "")), children=_convert_children(node.children))]
    if kind == "image":
        alt = plain_text(Root(children=_convert_children(node.children)))
        return [Image(url=str(node.attrs.get("src", "")), alt=alt)]
    if kind == "hr":
        return [ThematicBreak()]
    if kind == "s":
        return [Unknown(kind="delete", children=_convert_children(node.children))]
    if kind in ("html_block", "html_inline"):
        return [Unknown(kind="html")]
    return [Unknown(kind=kind, children=_convert_children(node.children))]


def parse_markdown(text: str) -> Root:
    tokens = _get_markdown_parser().parse(text)
    return Root(children=_convert_children(SyntaxTreeNode(tokens).children))


def plain_text(node: Node) -> str:
    if isinstance(node, (Text, InlineCode)):
        return node.value
    if isinstance(node, Image):
        return node.alt
    return "".join(plain_text(child) for child in getattr(node, "children", ()))


def document_title(root: Root) -> Optional[str]:
    """Plain text of the first heading, if any."""
    for child in root.children:
        if isinstance(child, Heading):
            title = plain_text(child).strip()
            return title or None
    return None
