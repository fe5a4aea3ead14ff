"""Batch override resolution.

A batched object carries, per field, a table of values keyed by batch key
plus a 'default' fallback:

    per_object_batch_overrides = {
        "title": {
            "fade.to": {"en": 1, "de": 0.5, "default": 0.8},
            "Canvas.position.x": {"en": 50, "default": 25},
        }
    }

Track fields are addressed as '{track_type}.{property_path}', static object
fields as 'Canvas.*'. Precedence for one field, highest first:

1. the field (or an enclosing path) is bound: the current value stands
2. a value for the active batch key
3. the 'default' value
4. the current value
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Final

import structlog

from animflow.contracts.tracks import SceneAnimationTrack
from animflow.contracts.types import BatchOverrideMap, BoundFieldMap, SceneObject
from animflow.core.cloning import clone
from animflow.core.paths import get_by_path, path_is_within, set_by_path, split_path

slog = structlog.get_logger(__name__)

DEFAULT_BATCH_KEY: Final = "default"

# Above this many keys per field the table is probably generated by mistake
SOFT_KEY_LIMIT: Final = 200

_UNSET: Final = object()

# Canvas field path -> path inside a scene object
CANVAS_FIELDS: Final[Mapping[str, str]] = {
    "Canvas.position.x": "initial_position.x",
    "Canvas.position.y": "initial_position.y",
    "Canvas.scale.x": "initial_scale.x",
    "Canvas.scale.y": "initial_scale.y",
    "Canvas.rotation": "initial_rotation",
    "Canvas.opacity": "initial_opacity",
    "Canvas.fill_color": "properties.fill_color",
    "Canvas.stroke_color": "properties.stroke_color",
    "Canvas.stroke_width": "properties.stroke_width",
}

type Coercer = Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class BatchOverrideContext:
    """Everything needed to resolve batch overrides for one batch key.

    `batch_key` None means "not rendering a specific replica": only
    'default' entries apply.
    """

    batch_key: str | None = None
    per_object_batch_overrides: BatchOverrideMap = field(default_factory=dict)
    per_object_bound_fields: BoundFieldMap = field(default_factory=dict)

    def overrides_for(self, object_id: str) -> Mapping[str, Mapping[str, Any]]:
        return self.per_object_batch_overrides.get(object_id, {})

    def bound_fields_for(self, object_id: str) -> set[str]:
        return self.per_object_bound_fields.get(object_id, set())

    def is_bound(self, object_id: str, field_path: str) -> bool:
        """True if the field or any path enclosing it is bound."""
        return any(path_is_within(field_path, bound) for bound in self.bound_fields_for(object_id))


def coerce_number(value: Any) -> float | int:
    """Accept finite numbers and numeric strings."""
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got boolean {value!r}")
    if isinstance(value, int | float):
        number = value
    elif isinstance(value, str) and value.strip():
        number = float(value)
    else:
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(number, float) and not math.isfinite(number):
        raise ValueError(f"expected a finite number, got {value!r}")
    return number


def coerce_string(value: Any) -> str:
    """Accept strings and stringify numbers."""
    if isinstance(value, str):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"expected a string, got {value!r}")


def coercer_for(current: Any) -> Coercer | None:
    """Pick a coercer matching the type of the value being replaced."""
    if isinstance(current, int | float) and not isinstance(current, bool):
        return coerce_number
    if isinstance(current, str):
        return coerce_string
    return None


def resolve_field_value(
    object_id: str,
    field_path: str,
    current: Any,
    ctx: BatchOverrideContext,
    coerce: Coercer | None = None,
) -> Any:
    """Resolve one field: bound > batch key > default > current.

    An invalid value for the batch key is logged and the 'default' entry is
    tried in its place; an invalid default leaves the current value.
    """
    if ctx.is_bound(object_id, field_path):
        return current
    by_key = ctx.overrides_for(object_id).get(field_path)
    if not by_key:
        return current
    if len(by_key) > SOFT_KEY_LIMIT:
        slog.warning("batch_override_many_keys", object_id=object_id, field_path=field_path, key_count=len(by_key))

    candidates = [key for key in (ctx.batch_key, DEFAULT_BATCH_KEY) if key is not None and key in by_key]
    for key in dict.fromkeys(candidates):
        raw = by_key[key]
        if coerce is None:
            return clone(raw)
        try:
            return coerce(raw)
        except ValueError as e:
            slog.warning(
                "batch_override_invalid_value",
                object_id=object_id,
                field_path=field_path,
                batch_key=key,
                error=str(e),
            )
    return current


def apply_overrides_to_object(obj: SceneObject, ctx: BatchOverrideContext) -> SceneObject:
    """Return a copy of `obj` with its Canvas.* overrides resolved."""
    object_id = obj["id"]
    overrides = ctx.overrides_for(object_id)
    if not any(path in CANVAS_FIELDS for path in overrides):
        return obj
    result = clone(obj)
    for field_path, object_path in CANVAS_FIELDS.items():
        if field_path not in overrides:
            continue
        current = get_by_path(result, object_path)
        value = resolve_field_value(object_id, field_path, current, ctx, coercer_for(current))
        if value is not current:
            set_by_path(result, object_path, value)
    return result


def apply_track_overrides(
    object_id: str,
    track_type: str,
    properties: dict[str, Any],
    ctx: BatchOverrideContext,
) -> dict[str, Any]:
    """Apply '{track_type}.*' overrides to a track's properties in place and return them.

    Whole-structure paths ('move.from') are applied before nested leaves
    ('move.from.x') so a leaf override refines a structure override. Bound
    leaves nested below an overridden structure keep their values.
    """
    prefix = f"{track_type}."
    paths = sorted(
        (path for path in ctx.overrides_for(object_id) if path.startswith(prefix) and len(path) > len(prefix)),
        key=lambda path: (len(split_path(path)), path),
    )
    for field_path in paths:
        property_path = field_path[len(prefix) :]
        current = get_by_path(properties, property_path, _UNSET)
        baseline = None if current is _UNSET else current
        value = resolve_field_value(object_id, field_path, baseline, ctx, coercer_for(baseline))
        if value is baseline:
            continue
        preserved = {
            bound: get_by_path(properties, bound[len(prefix) :], _UNSET)
            for bound in ctx.bound_fields_for(object_id)
            if bound.startswith(field_path + ".")
        }
        set_by_path(properties, property_path, value)
        for bound, kept in preserved.items():
            if kept is not _UNSET:
                set_by_path(properties, bound[len(prefix) :], kept)
    return properties


def apply_overrides_to_animation(animation: SceneAnimationTrack, ctx: BatchOverrideContext) -> SceneAnimationTrack:
    """Return `animation` with its track-field overrides resolved for ctx.batch_key."""
    if not ctx.overrides_for(animation.object_id):
        return animation
    properties = apply_track_overrides(animation.object_id, animation.type.value, clone(animation.properties), ctx)
    return replace(animation, properties=properties)
