from mdpress.rules import (
    DEFAULT_HEADING_STYLES,
    FormattingRule,
    StyleSheet,
    resolve_code_block_style,
    resolve_heading_style,
    resolve_table_style,
)


def test_default_heading_map() -> None:
    sheet = StyleSheet.from_rule(FormattingRule())

    assert sheet.heading(1).font_size == 32
    assert sheet.heading(2).font_size == 24
    assert sheet.heading(3).font_size == 20
    assert sheet.heading(6).margin_bottom == 4


def test_heading_style_falls_back_when_map_is_empty() -> None:
    style = resolve_heading_style({}, 1)

    assert (style.font_size, style.font_weight, style.margin_top, style.margin_bottom) == (16, 600, 12, 6)


def test_heading_style_treats_zero_as_missing() -> None:
    style = resolve_heading_style({"h2": {"fontSize": 0, "fontWeight": 300}}, 2)

    assert style.font_size == 16
    assert style.font_weight == 300


def test_code_and_table_styles_default_per_field() -> None:
    code = resolve_code_block_style({"fontSize": 9})
    table = resolve_table_style(None)

    assert code.font_size == 9
    assert code.font_family == "monospace"
    assert code.background_color == "#f5f5f5"
    assert table.border_color == "#ddd"
    assert table.header_background_color == "#f9f9f9"
    assert table.cell_padding == 8


def test_from_mapping_back_fills_defaults() -> None:
    rule = FormattingRule.from_mapping({"fontFamily": "Georgia", "marginTop": 30})

    assert rule.font_family == "Georgia"
    assert rule.margin_top == 30
    assert rule.margin_bottom == 20
    assert rule.line_height == "1.50"
    assert rule.heading_styles == DEFAULT_HEADING_STYLES
    assert rule.page_break_before_headings == "h1"
    assert rule.prevent_orphan_headings is True
    assert rule.keep_code_blocks_together is True


def test_from_mapping_keeps_explicit_false_flags() -> None:
    rule = FormattingRule.from_mapping({"preventOrphanHeadings": 0, "keepCodeBlocksTogether": False})

    assert rule.prevent_orphan_headings is False
    assert rule.keep_code_blocks_together is False


def test_mapping_round_trip() -> None:
    rule = FormattingRule(font_size=14, header_text="Top", page_size="Letter")

    assert FormattingRule.from_mapping(rule.to_mapping()) == rule


def test_default_rules_do_not_share_style_maps() -> None:
    first = FormattingRule()
    second = FormattingRule()

    assert first.heading_styles is not second.heading_styles


def test_with_values_applies_fields_as_sent() -> None:
    rule = FormattingRule(header_text="Top").with_values(
        {"fontSize": 0, "lineHeight": 1.8, "headerText": None, "pageSize": None, "preventOrphanHeadings": 0}
    )

    assert rule.font_size == 0
    assert rule.line_height == "1.8"
    assert rule.header_text is None
    assert rule.page_size == "A4"
    assert rule.prevent_orphan_headings is False
