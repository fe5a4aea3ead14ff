"""Value inspection for result nodes and debug output.

Everything here is observational: results feed log entries and result-node
metadata, never the published data itself.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from animflow.contracts.sentinels import NoInputSentinel

PREVIEW_ITEMS = 3
COMPLEX_LIST_LENGTH = 10
COMPLEX_MAPPING_KEYS = 5


def get_value_type(value: Any) -> str:
    """'null', 'no_input', 'boolean', 'number', 'string', 'array[n]' or 'object'."""
    if isinstance(value, NoInputSentinel):
        return "no_input"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return f"array[{len(value)}]"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _format_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, list | tuple):
        return f"[...{len(value)} items]"
    if isinstance(value, Mapping):
        return f"{{...{len(value)} keys}}"
    return str(value)


def format_value(value: Any) -> str:
    """Human-readable preview; containers show the first three items or keys."""
    if isinstance(value, NoInputSentinel):
        return "<no input connected>"
    if isinstance(value, list | tuple):
        shown = ", ".join(_format_scalar(item) for item in value[:PREVIEW_ITEMS])
        remaining = len(value) - PREVIEW_ITEMS
        suffix = f", ... (+{remaining} more)" if remaining > 0 else ""
        return f"[{shown}{suffix}]"
    if isinstance(value, Mapping):
        keys = list(value)
        shown = ", ".join(f"{key}: {_format_scalar(value[key])}" for key in keys[:PREVIEW_ITEMS])
        remaining = len(keys) - PREVIEW_ITEMS
        suffix = f", ... (+{remaining} more)" if remaining > 0 else ""
        return f"{{{shown}{suffix}}}"
    return _format_scalar(value)


def get_data_size(value: Any) -> str:
    """Approximate serialized size as '<n> bytes', '<n.n> KB' or '<n.n> MB'."""
    if value is None or isinstance(value, NoInputSentinel):
        return "0 bytes"
    size = len(json.dumps(value, default=str).encode("utf-8"))
    if size < 1024:
        return f"{size} bytes"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def is_complex_object(value: Any) -> bool:
    if isinstance(value, list | tuple):
        return len(value) > COMPLEX_LIST_LENGTH
    if isinstance(value, Mapping):
        return len(value) > COMPLEX_MAPPING_KEYS
    return False


def has_nested_data(value: Any) -> bool:
    if isinstance(value, list | tuple):
        items: Any = value
    elif isinstance(value, Mapping):
        items = value.values()
    else:
        return False
    return any(isinstance(item, list | tuple | Mapping) for item in items)
