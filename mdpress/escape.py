from __future__ import annotations

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
}

_TABLE = str.maketrans(_ESCAPES)


def escape_html(text: str) -> str:
    return text.translate(_TABLE)
