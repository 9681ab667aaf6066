from __future__ import annotations

from functools import singledispatch

from .escape import escape_html
from .rules import FormattingRule, StyleSheet
from .tree import (
    Blockquote,
    Code,
    Emphasis,
    Heading,
    Image,
    InlineCode,
    Link,
    List,
    ListItem,
    Node,
    Paragraph,
    Strong,
    Table,
    Text,
    ThematicBreak,
)


def render(node: Node, rule: FormattingRule, depth: int = 0) -> str:
    """Render a tree (or subtree) to an HTML fragment with inline styles."""
    return render_node(node, StyleSheet.from_rule(rule), depth)


def _children(node: Node, sheet: StyleSheet, depth: int) -> str:
    return "".join(render_node(child, sheet, depth) for child in getattr(node, "children", ()))


@singledispatch
def render_node(node: Node, sheet: StyleSheet, depth: int = 0) -> str:
    # Root, Unknown and anything unrecognised: children only, no wrapper.
    return _children(node, sheet, depth)


@render_node.register(Heading)
def _heading(node: Heading, sheet: StyleSheet, depth: int = 0) -> str:
    style = sheet.heading(node.level)
    content = _children(node, sheet, depth)
    return (
        f'<h{node.level} style="font-size: {style.font_size}px; font-weight: {style.font_weight}; '
        f'margin-top: {style.margin_top}px; margin-bottom: {style.margin_bottom}px;">'
        f"{content}</h{node.level}>"
    )


@render_node.register(Paragraph)
def _paragraph(node: Paragraph, sheet: StyleSheet, depth: int = 0) -> str:
    content = _children(node, sheet, depth)
    return f'<p style="margin-bottom: 1em; line-height: {sheet.rule.line_height};">{content}</p>'


@render_node.register(Text)
def _text(node: Text, sheet: StyleSheet, depth: int = 0) -> str:
    return escape_html(node.value)


@render_node.register(Emphasis)
def _emphasis(node: Emphasis, sheet: StyleSheet, depth: int = 0) -> str:
    return f"<em>{_children(node, sheet, depth)}</em>"


@render_node.register(Strong)
def _strong(node: Strong, sheet: StyleSheet, depth: int = 0) -> str:
    return f"<strong>{_children(node, sheet, depth)}</strong>"


@render_node.register(InlineCode)
def _inline_code(node: InlineCode, sheet: StyleSheet, depth: int = 0) -> str:
    code = sheet.code
    return (
        f'<code style="font-family: {code.font_family}; font-size: {code.font_size}px; '
        f'background-color: {code.background_color}; padding: 2px 4px; border-radius: 3px;">'
        f"{escape_html(node.value)}</code>"
    )


@render_node.register(Code)
def _code(node: Code, sheet: StyleSheet, depth: int = 0) -> str:
    code = sheet.code
    return (
        f'<pre style="font-family: {code.font_family}; font-size: {code.font_size}px; '
        f"background-color: {code.background_color}; padding: {code.padding}px; "
        f"border-radius: {code.border_radius}px; overflow-x: auto; "
        f'line-height: {code.line_height};"><code>{escape_html(node.value)}</code></pre>'
    )


@render_node.register(List)
def _list(node: List, sheet: StyleSheet, depth: int = 0) -> str:
    tag = "ol" if node.ordered else "ul"
    content = _children(node, sheet, depth + 1)
    return f'<{tag} style="margin-left: {20 + depth * 20}px; margin-bottom: 1em;">{content}</{tag}>'


@render_node.register(ListItem)
def _list_item(node: ListItem, sheet: StyleSheet, depth: int = 0) -> str:
    return f"<li>{_children(node, sheet, depth)}</li>"


@render_node.register(Blockquote)
def _blockquote(node: Blockquote, sheet: StyleSheet, depth: int = 0) -> str:
    content = _children(node, sheet, depth)
    return (
        '<blockquote style="border-left: 4px solid #ccc; padding-left: 12px; margin-left: 0; '
        f'font-style: italic; color: #666;">{content}</blockquote>'
    )


@render_node.register(Table)
def _table(node: Table, sheet: StyleSheet, depth: int = 0) -> str:
    table = sheet.table
    parts = [
        '<table style="border-collapse: collapse; width: 100%; margin-bottom: 1em; '
        f'border: 1px solid {table.border_color};"><tbody>'
    ]
    cell_style = (
        f"border: 1px solid {table.border_color}; padding: {table.cell_padding}px; "
        f"font-size: {table.font_size}px;"
    )
    # A header row only exists when there is at least one other row.
    has_header = len(node.children) > 1
    for index, row in enumerate(node.children):
        is_header = has_header and index == 0
        tag = "th" if is_header else "td"
        background = table.header_background_color if is_header else "white"
        parts.append(f'<tr style="background-color: {background};">')
        for cell in row.children:
            parts.append(f'<{tag} style="{cell_style}">{_children(cell, sheet, depth)}</{tag}>')
        parts.append("</tr>")
    parts.append("</tbody></table>")
    return "".join(parts)


@render_node.register(Link)
def _link(node: Link, sheet: StyleSheet, depth: int = 0) -> str:
    content = _children(node, sheet, depth)
    return (
        f'<a href="{escape_html(node.url)}" style="color: #0066cc; text-decoration: underline;">'
        f"{content}</a>"
    )


@render_node.register(Image)
def _image(node: Image, sheet: StyleSheet, depth: int = 0) -> str:
    return (
        f'<img src="{escape_html(node.url)}" alt="{escape_html(node.alt or "")}" '
        'style="max-width: 100%; height: auto; margin: 1em 0;" />'
    )


@render_node.register(ThematicBreak)
def _thematic_break(node: ThematicBreak, sheet: StyleSheet, depth: int = 0) -> str:
    return '<hr style="border: none; border-top: 1px solid #ccc; margin: 2em 0;" />'
