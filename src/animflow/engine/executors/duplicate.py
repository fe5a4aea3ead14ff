"""Duplicate executor: clones each input object into `count` copies.

The original passes through untouched. Copies get ids `{id}_dup_{NNN}`
(1-based, zero padded), disambiguated against an id snapshot of the run's
output table and against ids generated earlier in the same call. Every copy
carries independent clones of the original's metadata and its cursor.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import replace

import structlog

from animflow.contracts.enums import PortKind
from animflow.contracts.errors import DuplicateCountExceededError, DuplicateNodeError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.tracks import SceneAnimationTrack
from animflow.contracts.values import MetadataKey
from animflow.core.cloning import clone
from animflow.engine.context import ExecutionContext, IdRegistry
from animflow.engine.executors.config import DuplicateConfig
from animflow.engine.metadata import collect_object_metadata, is_identified, iter_items

slog = structlog.get_logger(__name__)

MAX_DUPLICATE_COUNT = 50
MAX_TOTAL_OBJECTS = 200


def generate_duplicate_id(original_id: str, index: int, taken: Collection[str]) -> str:
    """First free id for copy `index`: `{id}_dup_{NNN}`, then `_1`, `_2`, ... suffixes."""
    candidate = f"{original_id}_dup_{index:03d}"
    if candidate not in taken:
        return candidate
    suffix = 1
    while f"{candidate}_{suffix}" in taken:
        suffix += 1
    return f"{candidate}_{suffix}"


def rewrite_animation_owner(animation: SceneAnimationTrack, original_id: str, new_id: str) -> SceneAnimationTrack:
    return replace(
        animation,
        id=animation.id.replace(original_id, new_id, 1),
        object_id=new_id,
        properties=clone(animation.properties),
    )


def _validate_count(node: FlowNode, count: int | None) -> int:
    if count is None:
        return 1
    if count < 1:
        raise DuplicateNodeError(
            f"Duplicate node '{node.display_name}' requires a count of at least 1, got {count}",
            node_id=node.node_id,
            node_name=node.display_name,
            details={"count": count},
        )
    if count > MAX_DUPLICATE_COUNT:
        raise DuplicateCountExceededError(node_id=node.node_id, node_name=node.display_name, count=count, max_count=MAX_DUPLICATE_COUNT)
    return count


def execute_duplicate(
    node: FlowNode,
    context: ExecutionContext,
    connections: Sequence[FlowEdge],
    *,
    id_registry: IdRegistry | None = None,
) -> None:
    cfg = DuplicateConfig.for_node(node)
    count = _validate_count(node, cfg.count)

    inputs = context.get_connected_inputs(connections, node.node_id, "input")
    items = [item for value in inputs for item in iter_items(value)]
    originals = [item for item in items if is_identified(item)]
    if not originals:
        raise DuplicateNodeError(
            f"Duplicate node '{node.display_name}' has no input objects",
            node_id=node.node_id,
            node_name=node.display_name,
        )

    total = len(originals) * count
    if total > MAX_TOTAL_OBJECTS:
        raise DuplicateNodeError(
            f"Duplicate node '{node.display_name}' would produce {total} objects (maximum {MAX_TOTAL_OBJECTS})",
            node_id=node.node_id,
            node_name=node.display_name,
            details={"count": count, "input_objects": len(originals), "total": total, "max_total": MAX_TOTAL_OBJECTS},
        )

    registry = id_registry if id_registry is not None else context.object_id_snapshot()
    taken: set[str] = set(registry.ids)
    taken.update(obj["id"] for obj in originals)

    metadata = collect_object_metadata(inputs, {obj["id"] for obj in originals})
    cursors = metadata[MetadataKey.TIME_CURSOR]
    animations = metadata[MetadataKey.ANIMATIONS]
    assignments = metadata[MetadataKey.ASSIGNMENTS]
    batch_overrides = metadata[MetadataKey.BATCH_OVERRIDES]
    bound_fields = metadata[MetadataKey.BOUND_FIELDS]

    output = [item for item in items if not is_identified(item)]
    generated: dict[str, list[str]] = {}
    for original in originals:
        original_id = original["id"]
        output.append(original)
        copies: list[str] = []
        for index in range(1, count):
            new_id = generate_duplicate_id(original_id, index, taken)
            taken.add(new_id)
            copies.append(new_id)

            output.append({**clone(original), "id": new_id})
            if original_id in cursors:
                cursors[new_id] = cursors[original_id]
            if original_id in animations:
                animations[new_id] = [rewrite_animation_owner(a, original_id, new_id) for a in animations[original_id]]
            if original_id in assignments:
                assignments[new_id] = clone(assignments[original_id])
            if original_id in batch_overrides:
                batch_overrides[new_id] = clone(batch_overrides[original_id])
            if original_id in bound_fields:
                bound_fields[new_id] = set(bound_fields[original_id])
        generated[original_id] = copies

    slog.debug("duplicate_node_executed", node_id=node.node_id, count=count, originals=len(originals), total=total)
    context.record_debug(node.node_id, "duplicate_output", {"count": count, "generated_ids": generated})
    context.set_node_output(node.node_id, "output", PortKind.OBJECT_STREAM, output, metadata)
