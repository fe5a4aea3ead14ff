"""Animation executor: appends assembled animations to each object's timeline.

For every identified input object:
- baseline = upstream time cursor if present, else the object's appearance
  time, else 0
- authored tracks are resolved against bindings (global, then per object)
- tracks are converted by the scene assembler, seeded only with this path's
  animation history for the object
- the cursor advances to max(existing cursor, end of the new animations)

Node-local assignments win per field over upstream ones; node-local batch
overrides are scoped to the connected objects.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from animflow.contracts.assignments import merge_object_assignments
from animflow.contracts.enums import PortKind
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.tracks import SceneAnimationTrack
from animflow.contracts.types import BatchOverrideMap, SceneObject
from animflow.contracts.values import MetadataKey
from animflow.core.cloning import clone
from animflow.engine.bindings import BindingReader, apply_bindings_to_tracks, mask_bound_track_overrides, normalize_track_field
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import AnimationConfig
from animflow.engine.metadata import collect_object_metadata, is_identified, iter_items, merge_batch_overrides_into
from animflow.scene.assembler import convert_tracks_to_scene_animations
from animflow.scene.batch_overrides import BatchOverrideContext
from animflow.scene.transforms import DEFAULT_TRANSFORM_REGISTRY, TransformRegistry

slog = structlog.get_logger(__name__)

# Entry in batch_overrides_by_field applying to every connected batched object
DEFAULT_OBJECT_MARKER = "__default_object__"


def resolve_baseline(obj: SceneObject, cursors: Mapping[str, float]) -> float:
    """Upstream cursor, else appearance time, else 0."""
    object_id = obj["id"]
    if object_id in cursors:
        return cursors[object_id]
    appearance = obj.get("appearance_time")
    if isinstance(appearance, int | float) and not isinstance(appearance, bool):
        return float(appearance)
    return 0.0


def scope_node_batch_overrides(
    batch_overrides_by_field: Mapping[str, Mapping[str, Mapping[str, Any]]],
    objects: Sequence[SceneObject],
) -> BatchOverrideMap:
    """Turn field -> object -> values into object -> field -> values for connected objects.

    The default-object entry applies to batched objects only; an explicit
    per-object entry refines it key by key.
    """
    scoped: BatchOverrideMap = {}
    for field_path, by_object in batch_overrides_by_field.items():
        for obj in objects:
            object_id = obj["id"]
            values: dict[str, Any] = {}
            if obj.get("batch") is True and DEFAULT_OBJECT_MARKER in by_object:
                values.update(by_object[DEFAULT_OBJECT_MARKER])
            values.update(by_object.get(object_id, {}))
            if values:
                scoped.setdefault(object_id, {})[field_path] = clone(values)
    return scoped


def execute_animation(
    node: FlowNode,
    context: ExecutionContext,
    connections: Sequence[FlowEdge],
    *,
    registry: TransformRegistry = DEFAULT_TRANSFORM_REGISTRY,
) -> None:
    cfg = AnimationConfig.for_node(node)
    inputs = context.get_connected_inputs(connections, node.node_id, "input")

    objects = [item for value in inputs for item in iter_items(value)]
    identified = [item for item in objects if is_identified(item)]
    ids = {item["id"] for item in identified}

    metadata = collect_object_metadata(inputs, ids)
    cursors: dict[str, float] = metadata[MetadataKey.TIME_CURSOR]
    history: dict[str, list[SceneAnimationTrack]] = metadata[MetadataKey.ANIMATIONS]
    assignments = metadata[MetadataKey.ASSIGNMENTS]
    batch_overrides: BatchOverrideMap = metadata[MetadataKey.BATCH_OVERRIDES]
    bound_fields: dict[str, set[str]] = metadata[MetadataKey.BOUND_FIELDS]

    for object_id, local in cfg.per_object_assignments.items():
        if object_id in ids:
            merged = merge_object_assignments(assignments.get(object_id), local)
            if merged is not None:
                assignments[object_id] = merged

    merge_batch_overrides_into(batch_overrides, scope_node_batch_overrides(cfg.batch_overrides_by_field, identified))

    reader = BindingReader(context, cfg.variable_bindings, cfg.variable_bindings_by_object)
    global_values = reader.global_values()

    updated_cursors = dict(cursors)
    produced: list[SceneAnimationTrack] = []
    for obj in identified:
        object_id = obj["id"]
        baseline = resolve_baseline(obj, cursors)

        bound_keys = reader.bound_keys(object_id)
        bound = {f for f in (normalize_track_field(key) for key in bound_keys) if f is not None}
        if bound:
            bound_fields.setdefault(object_id, set()).update(bound)

        tracks = apply_bindings_to_tracks(cfg.tracks, global_values, reader.object_values(object_id))
        object_assignments = mask_bound_track_overrides(assignments.get(object_id), bound_keys, tracks)
        batch_context = BatchOverrideContext(
            batch_key=None,
            per_object_batch_overrides={object_id: batch_overrides.get(object_id, {})},
            per_object_bound_fields={object_id: bound_fields.get(object_id, set())},
        )
        animations = convert_tracks_to_scene_animations(
            tracks,
            object_id,
            baseline,
            history.get(object_id, []),
            object_assignments,
            batch_context,
            registry=registry,
        )

        history[object_id] = [*history.get(object_id, []), *animations]
        local_end = max((animation.end_time for animation in animations), default=baseline)
        updated_cursors[object_id] = max(cursors.get(object_id, local_end), local_end)
        produced.extend(animations)

    context.add_scene_animations(clone(produced))
    if produced:
        context.advance_time(max(animation.end_time for animation in produced))

    slog.debug("animation_node_executed", node_id=node.node_id, objects=len(identified), animations=len(produced))
    context.record_debug(
        node.node_id,
        "animation_output",
        {"object_ids": sorted(ids), "animation_ids": [animation.id for animation in produced]},
    )

    metadata[MetadataKey.TIME_CURSOR] = updated_cursors
    context.set_node_output(node.node_id, "output", PortKind.OBJECT_STREAM, objects, metadata)
