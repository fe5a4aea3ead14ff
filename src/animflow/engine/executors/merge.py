"""Merge executor: combines numbered object-stream ports into one stream.

Ports are named input1..inputN. When the same object id arrives on several
ports, the LOWEST-numbered port wins. Ports are walked from the highest index
down so each lower port overwrites what a higher one stored. Per-object
metadata follows the same priority; cursors take the maximum over all ports
and bound-field sets are unioned.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

import structlog

from animflow.contracts.enums import PortKind
from animflow.contracts.errors import EngineInvariantError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.types import SceneObject
from animflow.contracts.values import ExecutionValue, MetadataKey
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import MergeConfig
from animflow.engine.metadata import (
    extract_cursors_from_inputs,
    extract_per_object_bound_fields_from_inputs,
    identified_objects,
    merge_per_object_animations_with_priority,
    merge_per_object_assignments_with_priority,
    merge_per_object_batch_overrides_with_priority,
    passthrough_metadata,
)

slog = structlog.get_logger(__name__)


def merge_port_names(input_port_count: int) -> list[str]:
    return [f"input{index}" for index in range(1, input_port_count + 1)]


def execute_merge(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = MergeConfig.for_node(node)

    # Highest port first; later groups win in the priority merges below
    port_groups: list[list[ExecutionValue]] = []
    for port in reversed(merge_port_names(cfg.input_port_count)):
        port_groups.append(context.get_connected_inputs(connections, node.node_id, port))

    by_id: dict[str, SceneObject] = {}
    winning_port: dict[str, int] = {}
    for offset, group in enumerate(port_groups):
        port_index = cfg.input_port_count - offset
        for obj in identified_objects(group):
            by_id[obj["id"]] = obj
            winning_port[obj["id"]] = port_index
        slog.debug("merge_port_processed", node_id=node.node_id, port=f"input{port_index}", values=len(group))

    merged_objects = list(by_id.values())
    counts = Counter(obj["id"] for obj in merged_objects)
    collisions = sorted(object_id for object_id, count in counts.items() if count > 1)
    if collisions:
        raise EngineInvariantError(f"Merge node '{node.node_id}' produced duplicate object ids: {collisions}")

    ids = set(by_id)
    all_inputs = [value for group in port_groups for value in group]
    metadata = {
        **passthrough_metadata(all_inputs),
        MetadataKey.TIME_CURSOR: extract_cursors_from_inputs(all_inputs, ids),
        MetadataKey.ANIMATIONS: merge_per_object_animations_with_priority(port_groups, ids),
        MetadataKey.ASSIGNMENTS: merge_per_object_assignments_with_priority(port_groups, ids),
        MetadataKey.BATCH_OVERRIDES: merge_per_object_batch_overrides_with_priority(port_groups, ids),
        MetadataKey.BOUND_FIELDS: extract_per_object_bound_fields_from_inputs(all_inputs, ids),
    }

    context.record_debug(
        node.node_id,
        "merge_output",
        {"object_ids": sorted(ids), "winning_port": {object_id: f"input{index}" for object_id, index in sorted(winning_port.items())}},
    )
    context.set_node_output(node.node_id, "output", PortKind.OBJECT_STREAM, merged_objects, metadata)
