"""Scene executor: collects inserted objects and their animations into a scene.

The scene is a sink. It publishes nothing; the AssembledScene is stored in
`context.scenes` for partitioning and rendering.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from animflow.contracts.assignments import ObjectAssignments
from animflow.contracts.errors import MissingInsertConnectionError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.types import NodeID, SceneObject
from animflow.contracts.values import MetadataKey
from animflow.core.cloning import clone
from animflow.core.paths import deep_merge
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import SceneConfig
from animflow.engine.metadata import collect_object_metadata, is_identified, iter_items
from animflow.scene.partitioner import AssembledScene

slog = structlog.get_logger(__name__)

MIN_SCENE_DURATION = 1.0
SCENE_TAIL_PADDING = 0.5

# Assignment `initial` key -> scene object key
_INITIAL_TARGETS: dict[str, tuple[str, ...]] = {
    "position": ("initial_position",),
    "rotation": ("initial_rotation",),
    "scale": ("initial_scale",),
    "opacity": ("initial_opacity",),
    "fill_color": ("properties", "fill_color"),
    "stroke_color": ("properties", "stroke_color"),
    "stroke_width": ("properties", "stroke_width"),
}


def apply_initial_assignments(obj: SceneObject, assignments: ObjectAssignments | None) -> SceneObject:
    """Return a copy of `obj` with the assignment's static properties applied."""
    result = clone(obj)
    if assignments is None:
        return result
    for name, value in assignments.initial.items():
        target = _INITIAL_TARGETS.get(name)
        if target is None:
            slog.debug("initial_assignment_ignored", object_id=obj.get("id"), property=name)
            continue
        container: dict[str, Any] = result
        for key in target[:-1]:
            container = container.setdefault(key, {})
        leaf = target[-1]
        current = container.get(leaf)
        if isinstance(current, dict) and isinstance(value, dict):
            container[leaf] = deep_merge(current, value)
        else:
            container[leaf] = clone(value)
    return result


def execute_scene(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = SceneConfig.for_node(node)
    inputs = context.get_connected_inputs(connections, node.node_id, "input")

    timed = [
        item
        for value in inputs
        for item in iter_items(value)
        if is_identified(item) and isinstance(item.get("appearance_time"), int | float)
    ]
    if not timed:
        raise MissingInsertConnectionError(node_id=node.node_id, node_name=node.display_name)

    ids = {obj["id"] for obj in timed}
    metadata = collect_object_metadata(inputs, ids)
    assignments = metadata[MetadataKey.ASSIGNMENTS]
    history = metadata[MetadataKey.ANIMATIONS]

    objects = [apply_initial_assignments(obj, assignments.get(obj["id"])) for obj in timed]
    animations = [animation for obj in timed for animation in history.get(obj["id"], [])]

    if cfg.duration is not None:
        duration = cfg.duration
    else:
        latest = max((animation.end_time for animation in animations), default=0.0)
        duration = max(MIN_SCENE_DURATION, latest + SCENE_TAIL_PADDING)

    scene = AssembledScene(
        scene_id=node.node_id,
        objects=objects,
        animations=animations,
        duration=duration,
        background_color=cfg.background_color,
        per_object_batch_overrides=metadata[MetadataKey.BATCH_OVERRIDES],
        per_object_bound_fields=metadata[MetadataKey.BOUND_FIELDS],
    )
    context.scenes[NodeID(node.node_id)] = scene

    slog.info("scene_assembled", scene_id=node.node_id, objects=len(objects), animations=len(animations), duration=duration)
    context.record_debug(
        node.node_id,
        "scene_output",
        {"object_ids": [obj["id"] for obj in objects], "animation_count": len(animations), "duration": duration},
    )
