"""Published values, metadata keys and debug log entries."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from animflow.contracts.enums import LogicDataType, PortKind
from animflow.contracts.types import NodeID, PortName


class MetadataKey(StrEnum):
    """Well-known metadata keys with engine semantics.

    Any other key is opaque and must be passed through untouched by nodes
    that are pure pass-throughs for that concern.
    """

    TIME_CURSOR = "per_object_time_cursor"
    ANIMATIONS = "per_object_animations"
    ASSIGNMENTS = "per_object_assignments"
    BATCH_OVERRIDES = "per_object_batch_overrides"
    BOUND_FIELDS = "per_object_bound_fields"
    LOGIC_TYPE = "logic_type"


@dataclass(frozen=True, slots=True)
class ExecutionValue:
    """A value published by a node on one of its output ports.

    Once stored in the output table the value is owned by it; executors
    receive deep copies from ExecutionContext lookups.
    """

    kind: PortKind
    data: Any
    node_id: NodeID
    port: PortName
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def describe_source(self) -> str:
        """Render as 'node:port' for error messages."""
        return f"{self.node_id}:{self.port}"


@dataclass(frozen=True, slots=True)
class TypedValue:
    """A logic input after type validation and coercion."""

    value: Any
    data_type: LogicDataType
    source: ExecutionValue


@dataclass(frozen=True, slots=True)
class ExecutionLogEntry:
    """One debug log record captured for the active debug target.

    `sequence` orders entries within a run; it is not a wall-clock time so
    repeated runs produce identical logs.
    """

    node_id: NodeID
    sequence: int
    action: str
    data: Mapping[str, Any]
