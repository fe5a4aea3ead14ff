"""Per-object metadata helpers shared by the object-stream executors.

Every function here is pure: it reads ExecutionValues (already owned copies,
see ExecutionContext.get_connected_inputs) and returns fresh maps. Two
families exist:

- extract_*_from_inputs: combine the inputs of one port in connection order.
  Cursors merge by maximum; animation histories concatenate; assignments,
  batch overrides and bound fields merge field by field, later input winning.
- merge_*_with_priority: combine several ports where later groups win over
  earlier ones. The merge executor feeds ports from highest index to lowest,
  which is how the lowest-numbered port ends up winning.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from animflow.contracts.assignments import ObjectAssignments, merge_object_assignments
from animflow.contracts.tracks import SceneAnimationTrack
from animflow.contracts.types import BatchOverrideMap, BoundFieldMap, CursorMap, SceneObject
from animflow.contracts.values import ExecutionValue, MetadataKey
from animflow.scene.assembler import is_cursor_map, merge_cursor_maps

V = TypeVar("V")

type AnimationMap = dict[str, list[SceneAnimationTrack]]
type AssignmentMap = dict[str, ObjectAssignments]


def is_identified(item: Any) -> bool:
    """True for scene objects that carry a string id."""
    return isinstance(item, dict) and isinstance(item.get("id"), str)


def iter_items(value: ExecutionValue) -> list[Any]:
    """The payload of an object stream as a list (a single item is wrapped)."""
    data = value.data
    if isinstance(data, list):
        return data
    return [data] if data is not None else []


def identified_objects(inputs: Iterable[ExecutionValue]) -> list[SceneObject]:
    return [item for value in inputs for item in iter_items(value) if is_identified(item)]


def extract_object_ids_from_inputs(inputs: Iterable[ExecutionValue]) -> set[str]:
    return {item["id"] for item in identified_objects(inputs)}


def _allowed(object_id: str, allowed_ids: Collection[str] | None) -> bool:
    return allowed_ids is None or object_id in allowed_ids


def _metadata_map(value: ExecutionValue, key: MetadataKey) -> Mapping[str, Any]:
    raw = value.metadata.get(key)
    return raw if isinstance(raw, Mapping) else {}


# =============================================================================
# Single-port extraction
# =============================================================================


def extract_cursors_from_inputs(inputs: Iterable[ExecutionValue], allowed_ids: Collection[str] | None = None) -> CursorMap:
    """Merge every input's time cursor map, keeping the maximum per object."""
    merged: CursorMap = {}
    for value in inputs:
        raw = value.metadata.get(MetadataKey.TIME_CURSOR)
        if is_cursor_map(raw):
            merged = merge_cursor_maps(merged, raw)
    return {k: v for k, v in merged.items() if _allowed(k, allowed_ids)}


def extract_per_object_animations_from_inputs(
    inputs: Iterable[ExecutionValue],
    allowed_ids: Collection[str] | None = None,
) -> AnimationMap:
    """Concatenate animation histories per object in connection order."""
    merged: AnimationMap = {}
    for value in inputs:
        for object_id, animations in _metadata_map(value, MetadataKey.ANIMATIONS).items():
            if _allowed(object_id, allowed_ids) and isinstance(animations, list):
                merged.setdefault(object_id, []).extend(animations)
    return merged


def extract_per_object_assignments_from_inputs(
    inputs: Iterable[ExecutionValue],
    allowed_ids: Collection[str] | None = None,
) -> AssignmentMap:
    """Merge assignments per object field by field; later inputs win."""
    merged: AssignmentMap = {}
    for value in inputs:
        for object_id, raw in _metadata_map(value, MetadataKey.ASSIGNMENTS).items():
            if not _allowed(object_id, allowed_ids):
                continue
            combined = merge_object_assignments(merged.get(object_id), ObjectAssignments.from_value(raw))
            if combined is not None:
                merged[object_id] = combined
    return merged


def extract_per_object_batch_overrides_from_inputs(
    inputs: Iterable[ExecutionValue],
    allowed_ids: Collection[str] | None = None,
) -> BatchOverrideMap:
    """Merge batch overrides per object and field; later inputs win per key."""
    merged: BatchOverrideMap = {}
    for value in inputs:
        merge_batch_overrides_into(merged, _metadata_map(value, MetadataKey.BATCH_OVERRIDES), allowed_ids)
    return merged


def extract_per_object_bound_fields_from_inputs(
    inputs: Iterable[ExecutionValue],
    allowed_ids: Collection[str] | None = None,
) -> BoundFieldMap:
    """Union of bound field paths per object."""
    merged: BoundFieldMap = {}
    for value in inputs:
        for object_id, fields in _metadata_map(value, MetadataKey.BOUND_FIELDS).items():
            if _allowed(object_id, allowed_ids) and isinstance(fields, Iterable) and not isinstance(fields, str):
                merged.setdefault(object_id, set()).update(str(f) for f in fields)
    return merged


def merge_batch_overrides_into(
    target: BatchOverrideMap,
    overrides: Mapping[str, Any],
    allowed_ids: Collection[str] | None = None,
) -> None:
    """Fold `overrides` into `target` in place; `overrides` wins per batch key."""
    for object_id, fields in overrides.items():
        if not _allowed(object_id, allowed_ids) or not isinstance(fields, Mapping):
            continue
        object_fields = target.setdefault(object_id, {})
        for field_path, by_key in fields.items():
            if isinstance(by_key, Mapping):
                object_fields[field_path] = {**object_fields.get(field_path, {}), **by_key}


# =============================================================================
# Multi-port merging with priority
# =============================================================================


def merge_per_object_animations_with_priority(
    port_groups: Sequence[Sequence[ExecutionValue]],
    allowed_ids: Collection[str] | None = None,
) -> AnimationMap:
    """Merge animation histories across ports; later inputs win per animation type.

    Inputs are taken one at a time, group by group. When an input carries
    animations for an object, any earlier animation of the same track type
    is replaced, including one from another connection on the same port.
    Types only present in earlier inputs are kept.
    """
    merged: AnimationMap = {}
    for group in port_groups:
        for value in group:
            for object_id, animations in extract_per_object_animations_from_inputs([value], allowed_ids).items():
                incoming_types = {animation.type for animation in animations}
                kept = [animation for animation in merged.get(object_id, []) if animation.type not in incoming_types]
                merged[object_id] = [*kept, *animations]
    return merged


def merge_per_object_assignments_with_priority(
    port_groups: Sequence[Sequence[ExecutionValue]],
    allowed_ids: Collection[str] | None = None,
) -> AssignmentMap:
    """Merge assignments across ports; later groups win per field."""
    merged: AssignmentMap = {}
    for group in port_groups:
        for object_id, assignments in extract_per_object_assignments_from_inputs(group, allowed_ids).items():
            combined = merge_object_assignments(merged.get(object_id), assignments)
            if combined is not None:
                merged[object_id] = combined
    return merged


def merge_per_object_batch_overrides_with_priority(
    port_groups: Sequence[Sequence[ExecutionValue]],
    allowed_ids: Collection[str] | None = None,
) -> BatchOverrideMap:
    """Merge batch overrides across ports; later groups win per batch key."""
    merged: BatchOverrideMap = {}
    for group in port_groups:
        merge_batch_overrides_into(merged, extract_per_object_batch_overrides_from_inputs(group, allowed_ids))
    return merged


# =============================================================================
# Projection
# =============================================================================


def project_onto_ids(per_object: Mapping[str, V], ids: Collection[str]) -> dict[str, V]:
    """Keep only the entries whose object id is in `ids`."""
    return {object_id: value for object_id, value in per_object.items() if object_id in ids}


# Keys this module understands; everything else is opaque and passed through
_PER_OBJECT_KEYS: frozenset[str] = frozenset(
    {
        MetadataKey.TIME_CURSOR,
        MetadataKey.ANIMATIONS,
        MetadataKey.ASSIGNMENTS,
        MetadataKey.BATCH_OVERRIDES,
        MetadataKey.BOUND_FIELDS,
    }
)


def passthrough_metadata(inputs: Iterable[ExecutionValue]) -> dict[str, Any]:
    """Metadata keys without per-object semantics, later inputs winning."""
    carried: dict[str, Any] = {}
    for value in inputs:
        for key, raw in value.metadata.items():
            if key not in _PER_OBJECT_KEYS and key != MetadataKey.LOGIC_TYPE:
                carried[key] = raw
    return carried


def collect_object_metadata(inputs: Sequence[ExecutionValue], ids: Collection[str]) -> dict[str, Any]:
    """All per-object metadata of `inputs` projected onto `ids`, plus opaque keys.

    Used by executors that pass per-object state through unchanged.
    """
    return {
        **passthrough_metadata(inputs),
        MetadataKey.TIME_CURSOR: extract_cursors_from_inputs(inputs, ids),
        MetadataKey.ANIMATIONS: extract_per_object_animations_from_inputs(inputs, ids),
        MetadataKey.ASSIGNMENTS: extract_per_object_assignments_from_inputs(inputs, ids),
        MetadataKey.BATCH_OVERRIDES: extract_per_object_batch_overrides_from_inputs(inputs, ids),
        MetadataKey.BOUND_FIELDS: extract_per_object_bound_fields_from_inputs(inputs, ids),
    }
