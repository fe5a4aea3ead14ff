"""Scene assembler: authored tracks to absolute-time scene animations.

For one object, each authored track becomes a SceneAnimationTrack starting at
`baseline_time + track.start_time`. Properties resolve in layers, later
layers winning:

1. the authored properties, on top of the registry defaults for the type
2. the object's matching track override from its ObjectAssignments
   (matched by track id, else by type); a `from` that is still the default
   is then inherited from the latest earlier animation of the same scene
   property, so chained tracks continue where the previous one stopped
3. batch overrides for the active batch key (or 'default'), skipped for
   bound fields
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import structlog

from animflow.contracts.assignments import ObjectAssignments, TrackOverride
from animflow.contracts.tracks import AnimationTrack, SceneAnimationTrack
from animflow.contracts.types import CursorMap
from animflow.core.cloning import clone
from animflow.core.paths import deep_merge
from animflow.scene.batch_overrides import BatchOverrideContext, apply_track_overrides
from animflow.scene.transforms import DEFAULT_TRANSFORM_REGISTRY, TransformRegistry

slog = structlog.get_logger(__name__)

# =============================================================================
# Cursor helpers
# =============================================================================


def is_cursor_map(value: Any) -> bool:
    """True for a mapping of object id -> finite number."""
    if not isinstance(value, Mapping):
        return False
    return all(
        isinstance(k, str) and isinstance(v, int | float) and not isinstance(v, bool) and math.isfinite(v) for k, v in value.items()
    )


def merge_cursor_maps(*maps: Mapping[str, float]) -> CursorMap:
    """Merge cursor maps keeping the maximum per object, never the sum or last value."""
    merged: CursorMap = {}
    for cursor_map in maps:
        for object_id, time in cursor_map.items():
            merged[object_id] = max(merged.get(object_id, time), time)
    return merged


def pick_cursors_for_ids(cursors: Mapping[str, float], ids: Iterable[str]) -> CursorMap:
    return {object_id: cursors[object_id] for object_id in ids if object_id in cursors}


def extract_object_ids(items: Iterable[Any]) -> list[str]:
    """Ids of the identified objects in `items`, in order."""
    return [item["id"] for item in items if isinstance(item, dict) and isinstance(item.get("id"), str)]


def format_scene_time(time: float) -> str:
    """Render a time for animation ids: 2.0 -> '2', 2.5 -> '2.5'."""
    return str(int(time)) if float(time).is_integer() else repr(float(time))


# =============================================================================
# Track conversion
# =============================================================================


def _apply_track_override(track: AnimationTrack, override: TrackOverride | None) -> tuple[dict[str, Any], float, float, Any, bool]:
    properties = clone(track.properties)
    if override is None:
        return properties, track.start_time, track.duration, track.easing, False
    properties = deep_merge(properties, clone(override.properties))
    return (
        properties,
        override.start_time if override.start_time is not None else track.start_time,
        override.duration if override.duration is not None else track.duration,
        override.easing or track.easing,
        "from" in override.properties,
    )


def _inherited_from_value(
    target: str,
    start_time: float,
    history: Sequence[SceneAnimationTrack],
    registry: TransformRegistry,
) -> Any | None:
    """Value the target property has at `start_time` according to earlier animations."""
    earlier = [
        animation
        for animation in history
        if animation.start_time <= start_time and registry.target_property(animation.type, animation.properties) == target
    ]
    if not earlier:
        return None
    latest = max(earlier, key=lambda a: (min(a.end_time, start_time), a.start_time))
    if latest.end_time <= start_time:
        return clone(registry.end_value(latest))
    return registry.value_at(latest, start_time)


def convert_tracks_to_scene_animations(
    tracks: Sequence[AnimationTrack],
    object_id: str,
    baseline_time: float,
    prior_animations: Sequence[SceneAnimationTrack] = (),
    assignments: ObjectAssignments | None = None,
    batch_context: BatchOverrideContext | None = None,
    *,
    registry: TransformRegistry = DEFAULT_TRANSFORM_REGISTRY,
) -> list[SceneAnimationTrack]:
    """Convert one object's authored tracks to scene animations.

    Args:
        tracks: Authored tracks, relative to the baseline
        object_id: Object the tracks animate
        baseline_time: Absolute time the tracks are relative to
        prior_animations: This execution path's history for the object only
        assignments: The object's merged manual overrides
        batch_context: Batch override state; None skips the batch layer
        registry: Track defaults and evaluation

    Returns:
        One SceneAnimationTrack per authored track, in authored order.
    """
    history: list[SceneAnimationTrack] = list(prior_animations)
    result: list[SceneAnimationTrack] = []

    for track in tracks:
        override = assignments.find_track_override(track.track_id, track.type) if assignments else None
        authored, start_offset, duration, easing, override_sets_from = _apply_track_override(track, override)

        defaults = registry.default_properties(track.type)
        properties = deep_merge(clone(dict(defaults)), authored)
        start_time = baseline_time + start_offset

        from_is_explicit = override_sets_from or ("from" in authored and authored["from"] != defaults.get("from"))
        if not from_is_explicit:
            inherited = _inherited_from_value(registry.target_property(track.type, properties), start_time, history, registry)
            if inherited is not None:
                properties["from"] = inherited

        if batch_context is not None:
            properties = apply_track_overrides(object_id, track.type.value, properties, batch_context)

        animation = SceneAnimationTrack(
            id=f"{object_id}::{track.track_id}::{format_scene_time(start_time)}",
            object_id=object_id,
            track_id=track.track_id,
            type=track.type,
            start_time=start_time,
            duration=duration,
            easing=easing,
            properties=properties,
        )
        history.append(animation)
        result.append(animation)

    slog.debug("tracks_converted", object_id=object_id, baseline_time=baseline_time, count=len(result))
    return result
