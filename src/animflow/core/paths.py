"""Dotted-path access into nested property mappings.

Batch overrides and bindings address values like ``move.from.x`` inside a
track's properties, or whole structures like ``move.from``. These helpers
read and write such paths without touching sibling keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def split_path(path: str) -> list[str]:
    """Split a dotted path, rejecting empty segments."""
    parts = path.split(".")
    if not path or any(part == "" for part in parts):
        raise ValueError(f"Invalid property path: {path!r}")
    return parts


def get_by_path(data: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Read the value at `path`, or `default` if any segment is missing."""
    current: Any = data
    for part in split_path(path):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def set_by_path(data: dict[str, Any], path: str, value: Any) -> None:
    """Write `value` at `path` in place, creating intermediate dicts.

    A non-mapping intermediate value is replaced by a dict.
    """
    parts = split_path(path)
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def path_is_within(path: str, prefix: str) -> bool:
    """True if `path` equals `prefix` or is nested below it."""
    return path == prefix or path.startswith(prefix + ".")


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge two mappings field by field; `overrides` wins on conflicts.

    Nested mappings are merged recursively. Inputs are not modified; the
    result shares leaf values with the inputs, so clone before mutating leaves.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in overrides.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(existing, value)
        else:
            merged[key] = value
    return merged


def delete_by_path(data: dict[str, Any], path: str) -> bool:
    """Remove the value at `path` in place. Returns False if it was absent."""
    parts = split_path(path)
    current: Any = data
    for part in parts[:-1]:
        if not isinstance(current, dict) or part not in current:
            return False
        current = current[part]
    if not isinstance(current, dict) or parts[-1] not in current:
        return False
    del current[parts[-1]]
    return True
