"""Name conversions and TypeScript literal rendering shared by templates and converters."""

import json
import math
import re
from typing import Any

_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])|([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[^a-zA-Z0-9]+")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _split_words(text: str) -> list:
    text = _WORD_BOUNDARY.sub(lambda m: f"{m.group(1) or m.group(3)}_{m.group(2) or m.group(4)}", text)
    return [word for word in _SEPARATORS.split(text) if word]


def snake_case(text: str) -> str:
    return "_".join(word.lower() for word in _split_words(text))


def camel_case(text: str) -> str:
    words = _split_words(text)
    if not words:
        return ""
    return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def pascal_case(text: str) -> str:
    return "".join(word.capitalize() for word in _split_words(text))


def kebab_case(text: str) -> str:
    return "-".join(word.lower() for word in _split_words(text))


def env_name(text: str) -> str:
    """``openAIApiKey`` -> ``OPEN_AI_API_KEY``."""
    return snake_case(text).upper()


def indent(text: str, width: int = 2) -> str:
    """Indent every non-blank line."""
    pad = " " * width
    return "\n".join(pad + line if line.strip() else line for line in text.split("\n"))


def quote(text: str, char: str = "'") -> str:
    escaped = str(text).replace("\\", "\\\\").replace(char, "\\" + char).replace("\n", "\\n")
    return f"{char}{escaped}{char}"


def ts_key(key: str) -> str:
    return key if _IDENTIFIER.match(key) else quote(key)


def ts_value(value: Any, char: str = "'") -> str:
    """Render a JSON-like value as a TypeScript literal."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return "undefined"
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, str):
        return quote(value, char)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(ts_value(item, char) for item in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        entries = ", ".join(f"{ts_key(str(k))}: {ts_value(v, char)}" for k, v in value.items())
        return "{ " + entries + " }"
    return quote(json.dumps(value, default=str), char)


def ts_object(value: Any, char: str = "'", level: int = 0, width: int = 2) -> str:
    """Like ``ts_value`` but lays out non-empty objects one key per line."""
    if not isinstance(value, dict) or not value:
        return ts_value(value, char)
    pad = " " * (width * (level + 1))
    entries = [
        f"{pad}{ts_key(str(k))}: {ts_object(v, char, level + 1, width)}"
        for k, v in value.items()
        if v is not None
    ]
    return "{\n" + ",\n".join(entries) + ",\n" + " " * (width * level) + "}"


def template_literal(text: str) -> str:
    """Backtick string, for multi-line prompt templates."""
    escaped = str(text).replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
    return f"`{escaped}`"
