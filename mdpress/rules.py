from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional


DEFAULT_HEADING_STYLES: dict[str, dict[str, int]] = {
    "h1": {"fontSize": 32, "fontWeight": 900, "marginTop": 24, "marginBottom": 12},
    "h2": {"fontSize": 24, "fontWeight": 800, "marginTop": 20, "marginBottom": 10},
    "h3": {"fontSize": 20, "fontWeight": 700, "marginTop": 16, "marginBottom": 8},
    "h4": {"fontSize": 16, "fontWeight": 600, "marginTop": 12, "marginBottom": 6},
    "h5": {"fontSize": 14, "fontWeight": 600, "marginTop": 10, "marginBottom": 4},
    "h6": {"fontSize": 12, "fontWeight": 600, "marginTop": 8, "marginBottom": 4},
}

# Used for any heading level (or field) the rule does not define.
FALLBACK_HEADING_STYLE: dict[str, int] = {
    "fontSize": 16,
    "fontWeight": 600,
    "marginTop": 12,
    "marginBottom": 6,
}

DEFAULT_CODE_BLOCK_STYLES: dict[str, Any] = {
    "fontFamily": "monospace",
    "fontSize": 11,
    "backgroundColor": "#f5f5f5",
    "padding": 12,
    "borderRadius": 4,
    "lineHeight": 1.4,
}

DEFAULT_TABLE_STYLES: dict[str, Any] = {
    "borderColor": "#ddd",
    "headerBackgroundColor": "#f9f9f9",
    "cellPadding": 8,
    "fontSize": 11,
}

PAGE_BREAK_CHOICES = ("h1", "h2", "none")

# Record key -> FormattingRule field.
RECORD_FIELDS: dict[str, str] = {
    "fontFamily": "font_family",
    "fontSize": "font_size",
    "lineHeight": "line_height",
    "headingStyles": "heading_styles",
    "pageSize": "page_size",
    "marginTop": "margin_top",
    "marginBottom": "margin_bottom",
    "marginLeft": "margin_left",
    "marginRight": "margin_right",
    "headerText": "header_text",
    "footerText": "footer_text",
    "codeBlockStyles": "code_block_styles",
    "tableStyles": "table_styles",
    "pageBreakBeforeHeadings": "page_break_before_headings",
    "preventOrphanHeadings": "prevent_orphan_headings",
    "keepCodeBlocksTogether": "keep_code_blocks_together",
}
_NULLABLE_FIELDS = {"header_text", "footer_text"}
_FLAG_FIELDS = {"prevent_orphan_headings", "keep_code_blocks_together"}


@dataclass(frozen=True)
class HeadingStyle:
    font_size: Any
    font_weight: Any
    margin_top: Any
    margin_bottom: Any


@dataclass(frozen=True)
class CodeBlockStyle:
    font_family: Any
    font_size: Any
    background_color: Any
    padding: Any
    border_radius: Any
    line_height: Any


@dataclass(frozen=True)
class TableStyle:
    border_color: Any
    header_background_color: Any
    cell_padding: Any
    font_size: Any


def _pick(values: Any, key: str, default: Any) -> Any:
    # Falsy values (missing, None, 0, "") fall back to the default.
    if not isinstance(values, Mapping):
        return default
    return values.get(key) or default


def resolve_heading_style(heading_styles: Any, level: int) -> HeadingStyle:
    values = heading_styles.get(f"h{level}") if isinstance(heading_styles, Mapping) else None
    return HeadingStyle(
        font_size=_pick(values, "fontSize", FALLBACK_HEADING_STYLE["fontSize"]),
        font_weight=_pick(values, "fontWeight", FALLBACK_HEADING_STYLE["fontWeight"]),
        margin_top=_pick(values, "marginTop", FALLBACK_HEADING_STYLE["marginTop"]),
        margin_bottom=_pick(values, "marginBottom", FALLBACK_HEADING_STYLE["marginBottom"]),
    )


def resolve_code_block_style(values: Any) -> CodeBlockStyle:
    d = DEFAULT_CODE_BLOCK_STYLES
    return CodeBlockStyle(
        font_family=_pick(values, "fontFamily", d["fontFamily"]),
        font_size=_pick(values, "fontSize", d["fontSize"]),
        background_color=_pick(values, "backgroundColor", d["backgroundColor"]),
        padding=_pick(values, "padding", d["padding"]),
        border_radius=_pick(values, "borderRadius", d["borderRadius"]),
        line_height=_pick(values, "lineHeight", d["lineHeight"]),
    )


def resolve_table_style(values: Any) -> TableStyle:
    d = DEFAULT_TABLE_STYLES
    return TableStyle(
        border_color=_pick(values, "borderColor", d["borderColor"]),
        header_background_color=_pick(values, "headerBackgroundColor", d["headerBackgroundColor"]),
        cell_padding=_pick(values, "cellPadding", d["cellPadding"]),
        font_size=_pick(values, "fontSize", d["fontSize"]),
    )


@dataclass(frozen=True)
class FormattingRule:
    """Typography, page geometry and pagination policy for one render.

    Style maps keep the camelCase keys of the stored JSON records
    (``{"h1": {"fontSize": 32, ...}}``). They may be partial; missing entries
    are filled from the default tables when a :class:`StyleSheet` is built.
    """

    font_family: str = "Inter"
    font_size: int = 12
    line_height: str = "1.50"
    heading_styles: Mapping[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_HEADING_STYLES))
    page_size: str = "A4"
    margin_top: int = 20
    margin_bottom: int = 20
    margin_left: int = 20
    margin_right: int = 20
    header_text: Optional[str] = None
    footer_text: Optional[str] = None
    code_block_styles: Mapping[str, Any] = field(default_factory=lambda: dict(DEFAULT_CODE_BLOCK_STYLES))
    table_styles: Mapping[str, Any] = field(default_factory=lambda: dict(DEFAULT_TABLE_STYLES))
    page_break_before_headings: str = "h1"
    prevent_orphan_headings: bool = True
    keep_code_blocks_together: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FormattingRule":
        """Build a rule from a camelCase record, back-filling defaults."""
        line_height = data.get("lineHeight")
        prevent_orphans = data.get("preventOrphanHeadings")
        keep_code = data.get("keepCodeBlocksTogether")
        return cls(
            font_family=data.get("fontFamily") or "Inter",
            font_size=data.get("fontSize") or 12,
            line_height=str(line_height) if line_height else "1.50",
            heading_styles=data.get("headingStyles") or copy.deepcopy(DEFAULT_HEADING_STYLES),
            page_size=data.get("pageSize") or "A4",
            margin_top=data.get("marginTop") or 20,
            margin_bottom=data.get("marginBottom") or 20,
            margin_left=data.get("marginLeft") or 20,
            margin_right=data.get("marginRight") or 20,
            header_text=data.get("headerText") or None,
            footer_text=data.get("footerText") or None,
            code_block_styles=data.get("codeBlockStyles") or dict(DEFAULT_CODE_BLOCK_STYLES),
            table_styles=data.get("tableStyles") or dict(DEFAULT_TABLE_STYLES),
            page_break_before_headings=data.get("pageBreakBeforeHeadings") or "h1",
            prevent_orphan_headings=True if prevent_orphans is None else bool(prevent_orphans),
            keep_code_blocks_together=True if keep_code is None else bool(keep_code),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "fontFamily": self.font_family,
            "fontSize": self.font_size,
            "lineHeight": self.line_height,
            "headingStyles": copy.deepcopy(dict(self.heading_styles)),
            "pageSize": self.page_size,
            "marginTop": self.margin_top,
            "marginBottom": self.margin_bottom,
            "marginLeft": self.margin_left,
            "marginRight": self.margin_right,
            "headerText": self.header_text,
            "footerText": self.footer_text,
            "codeBlockStyles": dict(self.code_block_styles),
            "tableStyles": dict(self.table_styles),
            "pageBreakBeforeHeadings": self.page_break_before_headings,
            "preventOrphanHeadings": self.prevent_orphan_headings,
            "keepCodeBlocksTogether": self.keep_code_blocks_together,
        }

    def with_values(self, values: Mapping[str, Any]) -> "FormattingRule":
        """Return a copy with the given camelCase fields applied as sent.

        Unlike :meth:`from_mapping` nothing is back-filled, so an explicit
        ``0`` or ``""`` is kept. ``None`` clears only the header and footer
        text; for every other field it leaves the current value in place.
        """
        changes: dict[str, Any] = {}
        for key, name in RECORD_FIELDS.items():
            if key not in values:
                continue
            value = values[key]
            if value is None and name not in _NULLABLE_FIELDS:
                continue
            if name == "line_height":
                value = str(value)
            elif name in _FLAG_FIELDS:
                value = bool(value)
            changes[name] = value
        return replace(self, **changes)


@dataclass(frozen=True)
class StyleSheet:
    """A rule with every per-element style category resolved against the defaults."""

    rule: FormattingRule
    headings: Mapping[int, HeadingStyle]
    code: CodeBlockStyle
    table: TableStyle

    @classmethod
    def from_rule(cls, rule: FormattingRule) -> "StyleSheet":
        return cls(
            rule=rule,
            headings={level: resolve_heading_style(rule.heading_styles, level) for level in range(1, 7)},
            code=resolve_code_block_style(rule.code_block_styles),
            table=resolve_table_style(rule.table_styles),
        )

    def heading(self, level: int) -> HeadingStyle:
        style = self.headings.get(level)
        if style is None:
            style = resolve_heading_style(self.rule.heading_styles, level)
        return style
