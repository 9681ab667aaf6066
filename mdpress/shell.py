from __future__ import annotations

from .escape import escape_html
from .rules import FormattingRule


DOCUMENT_TITLE = "PDF Document"

PAGE_DIMENSIONS = {
    "Letter": "8.5in 11in",
    "A4": "210mm 297mm",
}

_BASELINE_CSS = """
    h1, h2, h3, h4, h5, h6 {
      page-break-after: avoid;
    }

    pre {
      page-break-inside: avoid;
    }

    table {
      page-break-inside: avoid;
    }

    img {
      page-break-inside: avoid;
    }

    p {
      margin-bottom: 1em;
    }

    ul, ol {
      margin-left: 20px;
      margin-bottom: 1em;
    }

    blockquote {
      border-left: 4px solid #ccc;
      padding-left: 12px;
      margin-left: 0;
      font-style: italic;
      color: #666;
      margin-bottom: 1em;
    }

    code {
      font-family: 'Courier New', monospace;
      background-color: #f5f5f5;
      padding: 2px 4px;
      border-radius: 3px;
    }

    pre code {
      padding: 0;
      background-color: transparent;
    }
"""


def page_dimensions(page_size: str | None) -> str:
    """CSS ``size`` value for a page size name; anything but Letter is A4."""
    if page_size == "Letter":
        return PAGE_DIMENSIONS["Letter"]
    return PAGE_DIMENSIONS["A4"]


def _page_rule(rule: FormattingRule) -> str:
    lines = [
        "    @page {",
        f"      size: {page_dimensions(rule.page_size)};",
        f"      margin: {rule.margin_top}mm {rule.margin_right}mm {rule.margin_bottom}mm {rule.margin_left}mm;",
    ]
    if rule.header_text:
        lines.append(f'      @top-center {{ content: "{escape_html(rule.header_text)}"; }}')
    if rule.footer_text:
        lines.append(f'      @bottom-center {{ content: "{escape_html(rule.footer_text)}"; }}')
    lines.append("    }")
    return "\n".join(lines)


def _pagination_rules(rule: FormattingRule) -> str:
    lines: list[str] = []
    if rule.page_break_before_headings == "h1":
        lines.append("    h1 { page-break-before: always; }")
    elif rule.page_break_before_headings == "h2":
        lines.append("    h2 { page-break-before: always; }")
    if rule.prevent_orphan_headings:
        lines.append("    h1, h2, h3 { page-break-after: avoid; orphans: 3; widows: 3; }")
    return "\n".join(lines)


def build_stylesheet(rule: FormattingRule) -> str:
    body = "\n".join(
        [
            "    body {",
            f"      font-family: '{rule.font_family}', sans-serif;",
            f"      font-size: {rule.font_size}px;",
            f"      line-height: {rule.line_height};",
            "      color: #333;",
            "    }",
        ]
    )
    sections = [
        "    * {\n      margin: 0;\n      padding: 0;\n      box-sizing: border-box;\n    }",
        _page_rule(rule),
        body,
    ]
    pagination = _pagination_rules(rule)
    if pagination:
        sections.append(pagination)
    return "\n\n".join(sections) + "\n" + _BASELINE_CSS


def wrap(body: str, rule: FormattingRule) -> str:
    """Wrap a rendered body fragment in a complete, print-ready HTML document."""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="UTF-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"  <title>{DOCUMENT_TITLE}</title>\n"
        "  <style>\n"
        f"{build_stylesheet(rule)}"
        "  </style>\n"
        "</head>\n"
        "<body>\n"
        f"{body}\n"
        "</body>\n"
        "</html>\n"
    )
