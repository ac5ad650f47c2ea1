"""
toml_io.py — Read TOML with tomllib, write it back with a small formatter.

Used for mobile.toml, Cargo.toml metadata, and .cargo/config.toml.
"""

from __future__ import annotations

import datetime as _dt
import re
import tomllib
from pathlib import Path
from typing import Any

from mobkit.report import MobkitError


class TomlError(MobkitError):
    pass


def load_toml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TomlError(f"Failed to read {path}", str(exc)) from exc
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise TomlError(f"Failed to parse {path}", str(exc)) from exc


def _toml_quote_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\").replace("\t", "\\t").replace("\r", "\\r").replace("\n", "\\n").replace('"', '\\"')
    )
    return f'"{escaped}"'


_TOML_BARE_KEY_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


def _toml_format_key(key: str) -> str:
    """Format a TOML key, quoting it only when required."""
    if _TOML_BARE_KEY_RE.match(key):
        return key
    return _toml_quote_string(key)


def _toml_format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (_dt.datetime, _dt.date, _dt.time)):
        return value.isoformat()
    if isinstance(value, (str, Path)):
        return _toml_quote_string(str(value))
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_format_value(v) for v in value) + "]"
    if isinstance(value, dict):
        inner = ", ".join(f"{_toml_format_key(k)} = {_toml_format_value(v)}" for k, v in value.items())
        return "{ " + inner + " }" if inner else "{}"
    raise TomlError(f"Unsupported TOML value type: {type(value).__name__}")


def _is_table_array(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def _emit_table(lines: list[str], path: list[str], table: dict[str, Any]) -> None:
    scalars = [(k, v) for k, v in table.items() if not isinstance(v, dict) and not _is_table_array(v)]
    tables = [(k, v) for k, v in table.items() if isinstance(v, dict)]
    arrays = [(k, v) for k, v in table.items() if _is_table_array(v)]

    header = ".".join(_toml_format_key(part) for part in path)
    if path and (scalars or not (tables or arrays)):
        if lines:
            lines.append("")
        lines.append(f"[{header}]")
    for key, value in scalars:
        lines.append(f"{_toml_format_key(key)} = {_toml_format_value(value)}")
    for key, value in tables:
        _emit_table(lines, path + [key], value)
    for key, items in arrays:
        array_header = ".".join(_toml_format_key(part) for part in path + [key])
        for item in items:
            if lines:
                lines.append("")
            lines.append(f"[[{array_header}]]")
            for item_key, item_value in item.items():
                lines.append(f"{_toml_format_key(item_key)} = {_toml_format_value(item_value)}")


def dumps(data: dict[str, Any]) -> str:
    lines: list[str] = []
    _emit_table(lines, [], data)
    return "\n".join(lines) + "\n"


def write_toml(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(data), encoding="utf-8")
