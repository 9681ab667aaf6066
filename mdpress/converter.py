from __future__ import annotations

from .renderer import render
from .rules import FormattingRule
from .shell import wrap
from .tree import Root, parse_markdown


def render_document(root: Root, rule: FormattingRule) -> str:
    return wrap(render(root, rule), rule)


def markdown_to_html(markdown_text: str, rule: FormattingRule) -> str:
    """Parse Markdown and produce the complete styled HTML document for ``rule``."""
    return render_document(parse_markdown(markdown_text), rule)
