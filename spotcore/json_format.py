"""Pretty-printing of flat JSON objects in a tab-indented layout."""

from __future__ import annotations

from collections.abc import Mapping

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def _quote(text: str) -> str:
    pieces = []
    for ch in text:
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            pieces.append(escaped)
        elif ord(ch) < 0x20:
            pieces.append(f"\\u{ord(ch):04x}")
        else:
            pieces.append(ch)
    return '"' + "".join(pieces) + '"'


def _format_value(value: object) -> str:
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, int):
        return str(int(value))
    raise TypeError(f"only strings and integers can be stored, got {type(value).__name__}")


def format_json(mapping: Mapping[str, object]) -> str:
    """Render a flat mapping of strings and integers as an indented JSON object.

    Each member sits on its own line, indented by a tab, with a tab after
    the colon. An empty mapping renders as an opening and a closing brace
    on separate lines.
    """
    lines = []
    for key, value in mapping.items():
        if not isinstance(key, str):
            raise TypeError(f"object keys must be strings, got {type(key).__name__}")
        lines.append(f"\t{_quote(key)}:\t{_format_value(value)}")
    if not lines:
        return "{\n}"
    return "{\n" + ",\n".join(lines) + "\n}"