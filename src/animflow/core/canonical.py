# src/animflow/core/canonical.py
"""
Canonical JSON serialization for deterministic hashing.

Two-phase approach:
1. Normalize: Convert engine types (dataclasses, pydantic models, enums,
   sets, sentinels) to JSON-safe primitives (our code)
2. Serialize: Produce deterministic JSON per RFC 8785/JCS (rfc8785 package)

NaN and Infinity are REJECTED, not silently converted. A run whose output
table holds a non-finite number cannot be fingerprinted.
"""

from __future__ import annotations

import dataclasses
import hashlib
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any

import rfc8785
from pydantic import BaseModel

from animflow.contracts.sentinels import NoInputSentinel

CANONICAL_VERSION = "sha256-rfc8785-v1"


def _normalize_value(obj: Any) -> Any:
    """Convert a single value to a JSON-safe primitive.

    Raises:
        ValueError: If value is NaN or Infinity
    """
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            raise ValueError(f"Cannot canonicalize non-finite float: {obj}.")
        return obj

    # Enum check comes before str: StrEnum members are also str
    if isinstance(obj, Enum):
        return obj.value

    if obj is None or isinstance(obj, str | int | bool):
        return obj

    if isinstance(obj, NoInputSentinel):
        return repr(obj)

    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="python")

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}

    return obj


def _normalize_for_canonical(data: Any) -> Any:
    """Recursively normalize a data structure for canonical JSON."""
    data = _normalize_value(data)
    if isinstance(data, Mapping):
        return {str(k): _normalize_for_canonical(v) for k, v in data.items()}
    if isinstance(data, set | frozenset):
        return sorted((_normalize_for_canonical(v) for v in data), key=repr)
    if isinstance(data, list | tuple):
        return [_normalize_for_canonical(v) for v in data]
    return data


def to_json_safe(data: Any) -> Any:
    """Normalize engine values for JSON output, without the canonical rejections.

    Non-finite floats become the strings 'NaN', 'Infinity' and '-Infinity'
    so the result always serializes with `json.dumps(..., allow_nan=False)`.
    Used for human-facing output only; hashing goes through canonical_json.
    """
    if isinstance(data, float) and not math.isfinite(data):
        if math.isnan(data):
            return "NaN"
        return "Infinity" if data > 0 else "-Infinity"
    data = _normalize_value(data)
    if isinstance(data, Mapping):
        return {str(k): to_json_safe(v) for k, v in data.items()}
    if isinstance(data, set | frozenset):
        return sorted((to_json_safe(v) for v in data), key=repr)
    if isinstance(data, list | tuple):
        return [to_json_safe(v) for v in data]
    return data


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON for hashing.

    Args:
        obj: Data structure to serialize

    Returns:
        Canonical JSON string (no whitespace, sorted keys)

    Raises:
        ValueError: If data contains NaN, Infinity, or other non-finite values
        TypeError: If data contains types that cannot be serialized
    """
    normalized = _normalize_for_canonical(obj)
    result: bytes = rfc8785.dumps(normalized)
    return result.decode("utf-8")


def stable_hash(obj: Any, version: str = CANONICAL_VERSION) -> str:
    """Compute stable hash of object.

    Args:
        obj: Data structure to hash
        version: Hash algorithm version

    Returns:
        SHA-256 hex digest of canonical JSON
    """
    canonical = canonical_json(obj)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
