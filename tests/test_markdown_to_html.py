from mdpress.converter import markdown_to_html
from mdpress.rules import FormattingRule


def _rule(**overrides) -> FormattingRule:
    return FormattingRule(**overrides)


def test_basic_markdown() -> None:
    html = markdown_to_html("# Hello World\n\nThis is a paragraph.", _rule())

    assert "<h1" in html
    assert "Hello World" in html
    assert "<p" in html
    assert "This is a paragraph" in html


def test_bold_and_italic() -> None:
    html = markdown_to_html("**bold** and *italic* text", _rule())

    assert "<strong>bold</strong>" in html
    assert "<em>italic</em>" in html


def test_code_block() -> None:
    html = markdown_to_html("```\nconst x = 1;\n```", _rule())

    assert "<pre" in html
    assert "<code" in html
    assert "<code>const x = 1;</code></pre>" in html


def test_inline_code() -> None:
    html = markdown_to_html("Use `const x = 1` in your code", _rule())

    assert "<code style=" in html
    assert "const x = 1</code>" in html


def test_list() -> None:
    html = markdown_to_html("- Item 1\n- Item 2\n- Item 3", _rule())

    assert "<ul" in html
    assert html.count("<li>") == 3
    for item in ("Item 1", "Item 2", "Item 3"):
        assert item in html


def test_blockquote() -> None:
    html = markdown_to_html("> This is a quote", _rule())

    assert "<blockquote" in html
    assert "This is a quote" in html


def test_link() -> None:
    html = markdown_to_html("[Google](https://google.com)", _rule())

    assert '<a href="https://google.com"' in html
    assert ">Google</a>" in html


def test_link_keeps_any_scheme() -> None:
    html = markdown_to_html("[x](javascript:alert(1)) and [f](file:///etc/hosts)", _rule())

    assert '<a href="javascript:alert(1)"' in html
    assert '<a href="file:///etc/hosts"' in html
    assert "[x]" not in html


def test_link_url_is_kept_as_written() -> None:
    html = markdown_to_html("[q](https://x.test/a?b=1&c=ü)", _rule())

    assert '<a href="https://x.test/a?b=1&amp;c=ü"' in html


def test_autolink() -> None:
    html = markdown_to_html("See https://example.com for details", _rule())

    assert '<a href="https://example.com"' in html


def test_document_structure() -> None:
    html = markdown_to_html("# Test", _rule())

    assert html.startswith("<!DOCTYPE html>")
    assert '<html lang="en">' in html
    assert "<head>" in html
    assert "<body>" in html
    assert html.rstrip().endswith("</html>")


def test_letter_page_size() -> None:
    html = markdown_to_html("# Test", _rule(page_size="Letter"))

    assert "8.5in 11in" in html


def test_margins() -> None:
    html = markdown_to_html("# Test", _rule(margin_top=30, margin_bottom=25))

    assert "margin: 30mm 20mm 25mm 20mm;" in html


def test_ampersand_is_escaped() -> None:
    html = markdown_to_html("This has & characters", _rule())

    assert "This has &amp; characters" in html
    assert "This has & characters" not in html


def test_special_characters_in_text_are_escaped() -> None:
    html = markdown_to_html("Quotes \"double\" and 'single' plus \\<tag\\>", _rule())

    assert "&quot;double&quot;" in html
    assert "&#039;single&#039;" in html
    assert "&lt;tag&gt;" in html
    assert "<tag>" not in html


def test_heading_sizes_from_default_map() -> None:
    html = markdown_to_html("# H1\n## H2\n### H3", _rule())

    assert "<h1" in html and "<h2" in html and "<h3" in html
    assert "font-size: 32px" in html
    assert "font-size: 24px" in html
    assert "font-size: 20px" in html


def test_rendering_is_deterministic() -> None:
    source = "# Title\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\n- one\n  - two\n"
    rule = _rule(header_text="Header", footer_text="Footer")

    assert markdown_to_html(source, rule) == markdown_to_html(source, rule)


def test_strikethrough_renders_its_text() -> None:
    html = markdown_to_html("~~gone~~ kept", _rule())

    assert "gone kept" in html
    assert "<del>" not in html


def test_raw_html_is_dropped() -> None:
    html = markdown_to_html("before <span>inline</span> after", _rule())

    assert "<span>" not in html
    assert "before" in html and "after" in html
