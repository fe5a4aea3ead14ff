"""Run-scoped execution state shared by all node executors.

The context owns the output table (one ExecutionValue per node+port), the
global scene-animation accumulator, the logical current-time cursor and the
debug log. Executors read upstream values only through the lookup methods
here, which hand out deep copies: an executor can never alias or mutate a
value another node published.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, assert_never

import structlog

from animflow.contracts.enums import LogicDataType, PortKind
from animflow.contracts.errors import EngineInvariantError, TypeValidationError
from animflow.contracts.flow import FlowEdge
from animflow.contracts.tracks import SceneAnimationTrack
from animflow.contracts.types import NodeID, PortName
from animflow.contracts.values import ExecutionLogEntry, ExecutionValue, MetadataKey, TypedValue
from animflow.core.cloning import clone

if TYPE_CHECKING:
    from animflow.scene.partitioner import AssembledScene

slog = structlog.get_logger(__name__)

_HEX_COLOR = re.compile(r"^#([0-9a-fA-F]{3}){1,2}$")


@dataclass(frozen=True, slots=True)
class IdRegistry:
    """Point-in-time, read-only set of every object id in the output table.

    Handed to the duplicate executor so id disambiguation depends on an
    explicit input instead of a hidden scan.
    """

    ids: frozenset[str]

    def __contains__(self, object_id: object) -> bool:
        return object_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.ids))


def describe_value_type(value: Any) -> str:
    """Name a runtime value's type the way logic ports talk about types."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def coerce_logic_value(value: Any, expected: LogicDataType) -> Any:
    """Validate `value` against a logic type, applying the safe coercions.

    - number: finite or infinite numbers (not NaN, not booleans), numeric strings
    - boolean: booleans, 'true'/'false' strings, numbers (non-zero is True)
    - string: strings; other primitives are stringified
    - color: '#rgb' or '#rrggbb' strings
    - any: everything

    Raises:
        ValueError: If the value cannot be used as `expected`
    """
    match expected:
        case LogicDataType.NUMBER:
            if isinstance(value, int | float) and not isinstance(value, bool):
                if isinstance(value, float) and math.isnan(value):
                    raise ValueError("NaN")
                return value
            if isinstance(value, str) and value.strip():
                try:
                    number = float(value)
                except ValueError:
                    raise ValueError(f"non-numeric string {value!r}") from None
                if math.isnan(number):
                    raise ValueError("NaN")
                return number
            raise ValueError(describe_value_type(value))
        case LogicDataType.BOOLEAN:
            if isinstance(value, bool):
                return value
            if value == "true" or value == "false":
                return value == "true"
            if isinstance(value, int | float):
                return value != 0
            raise ValueError(describe_value_type(value))
        case LogicDataType.STRING:
            if isinstance(value, str):
                return value
            if isinstance(value, bool):
                return "true" if value else "false"
            if value is None or isinstance(value, int | float):
                return "null" if value is None else str(value)
            raise ValueError(describe_value_type(value))
        case LogicDataType.COLOR:
            if isinstance(value, str) and _HEX_COLOR.match(value):
                return value
            raise ValueError(describe_value_type(value))
        case LogicDataType.ANY:
            return value
        case _ as unreachable:
            assert_never(unreachable)


class ExecutionContext:
    """State for one run of a flow.

    Attributes:
        current_time: Logical scene time reached so far; only ever increases
        scene_animations: Every animation assembled by any animation node
        debug_target_node_id: The one node whose debug entries are captured
        executed_nodes: Node ids in the order they ran
        scenes: Assembled scenes keyed by scene node id
    """

    def __init__(self, *, debug_target_node_id: str | None = None) -> None:
        self._outputs: dict[tuple[str, str], ExecutionValue] = {}
        self._execution_log: list[ExecutionLogEntry] = []
        self.current_time: float = 0.0
        self.scene_animations: list[SceneAnimationTrack] = []
        self.debug_target_node_id = debug_target_node_id
        self.executed_nodes: list[NodeID] = []
        self.scenes: dict[NodeID, AssembledScene] = {}

    # =========================================================================
    # Output table
    # =========================================================================

    @property
    def node_outputs(self) -> Mapping[tuple[str, str], ExecutionValue]:
        """Read-only view of the output table keyed by (node_id, port)."""
        return MappingProxyType(self._outputs)

    def get_node_output(self, node_id: str, port: str = "output") -> ExecutionValue | None:
        """Borrow a published value. Callers must not mutate it."""
        return self._outputs.get((node_id, port))

    def has_output(self, node_id: str) -> bool:
        return any(key[0] == node_id for key in self._outputs)

    def set_node_output(
        self,
        node_id: str,
        port: str,
        kind: PortKind,
        data: Any,
        metadata: Mapping[str, Any] | None = None,
    ) -> ExecutionValue:
        """Publish a value on one of a node's output ports.

        Raises:
            EngineInvariantError: If the port already has a published value
        """
        key = (node_id, port)
        if key in self._outputs:
            raise EngineInvariantError(f"Node '{node_id}' published port '{port}' twice")
        value = ExecutionValue(
            kind=kind,
            data=data,
            node_id=NodeID(node_id),
            port=PortName(port),
            metadata=dict(metadata or {}),
        )
        self._outputs[key] = value
        return value

    # =========================================================================
    # Input lookup
    # =========================================================================

    def get_connected_inputs(self, connections: Sequence[FlowEdge], node_id: str, port: str) -> list[ExecutionValue]:
        """Owned copies of every value connected to `node_id`'s `port`.

        Order follows `connections`. Edges whose source published nothing on
        the connected port (e.g. the untaken branch of an if/else) are skipped.
        """
        values: list[ExecutionValue] = []
        for edge in connections:
            if edge.target != node_id or edge.target_port != port:
                continue
            value = self._outputs.get((edge.source, edge.source_port))
            if value is not None:
                values.append(clone(value))
        return values

    def get_connected_input(self, connections: Sequence[FlowEdge], node_id: str, port: str) -> ExecutionValue | None:
        """The first connected value on `port`, or None."""
        inputs = self.get_connected_inputs(connections, node_id, port)
        return inputs[0] if inputs else None

    def get_typed_connected_input(
        self,
        connections: Sequence[FlowEdge],
        node_id: str,
        port: str,
        expected: LogicDataType,
    ) -> TypedValue | None:
        """Connected value on `port`, validated and coerced to `expected`.

        A value whose producer declared a different logic type is rejected
        outright; undeclared values go through coerce_logic_value().

        Returns:
            TypedValue, or None when nothing is connected

        Raises:
            TypeValidationError: If the value does not satisfy `expected`
        """
        value = self.get_connected_input(connections, node_id, port)
        if value is None:
            return None

        declared = value.metadata.get(MetadataKey.LOGIC_TYPE)
        if declared is not None and expected != LogicDataType.ANY and declared != expected:
            raise TypeValidationError(
                node_id=node_id,
                port=port,
                expected=expected.value,
                received=str(declared),
                received_from=value.describe_source(),
            )
        try:
            coerced = coerce_logic_value(value.data, expected)
        except ValueError as e:
            raise TypeValidationError(
                node_id=node_id,
                port=port,
                expected=expected.value,
                received=str(e),
                received_from=value.describe_source(),
            ) from e
        return TypedValue(value=coerced, data_type=expected, source=value)

    def object_id_snapshot(self) -> IdRegistry:
        """Every identified object id currently published on any object stream."""
        ids: set[str] = set()
        for value in self._outputs.values():
            if value.kind != PortKind.OBJECT_STREAM or not isinstance(value.data, list):
                continue
            ids.update(item["id"] for item in value.data if isinstance(item, dict) and isinstance(item.get("id"), str))
        return IdRegistry(frozenset(ids))

    # =========================================================================
    # Time, animations, debug log
    # =========================================================================

    def advance_time(self, time: float) -> None:
        """Move the current-time cursor forward; earlier times are ignored."""
        self.current_time = max(self.current_time, time)

    def add_scene_animations(self, animations: Iterable[SceneAnimationTrack]) -> None:
        self.scene_animations.extend(animations)

    def is_debug_target(self, node_id: str) -> bool:
        return self.debug_target_node_id is not None and node_id == self.debug_target_node_id

    def record_debug(self, node_id: str, action: str, data: Mapping[str, Any]) -> None:
        """Append a debug entry when `node_id` is the active debug target."""
        if not self.is_debug_target(node_id):
            return
        entry = ExecutionLogEntry(node_id=NodeID(node_id), sequence=len(self._execution_log), action=action, data=dict(data))
        self._execution_log.append(entry)
        slog.debug("debug_entry_recorded", node_id=node_id, action=action)

    @property
    def execution_log(self) -> tuple[ExecutionLogEntry, ...]:
        return tuple(self._execution_log)

    def mark_executed(self, node_id: str) -> None:
        self.executed_nodes.append(NodeID(node_id))
