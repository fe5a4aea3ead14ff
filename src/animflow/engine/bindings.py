"""Variable bindings: node configuration supplied by result nodes.

A binding ties a configuration key to a result node; at execution time the
key takes whatever value that node published. Bindings come in two scopes,
global to the node and per object, the per-object binding overriding the
global one for the same key.

Animation track keys:
    '{type}.{path}'                 every track of that type, e.g. 'move.to.x'
    'track.{track_id}.{type}.{path}' one track, e.g. 'track.t1.move.to.x'
    'track.{track_id}.{field}'      one track's start_time, duration or easing

A path of start_time, duration or easing under '{type}.' or
'track.{track_id}.{type}.' sets the track field rather than a property.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from animflow.contracts.assignments import ObjectAssignments, TrackOverride
from animflow.contracts.enums import Easing, TrackType
from animflow.contracts.sentinels import NoInputSentinel
from animflow.contracts.tracks import AnimationTrack
from animflow.core.cloning import clone
from animflow.core.paths import delete_by_path, set_by_path
from animflow.engine.context import ExecutionContext
from animflow.scene.batch_overrides import coerce_number

slog = structlog.get_logger(__name__)

TRACK_KEY_PREFIX = "track."
TRACK_SCALAR_FIELDS: frozenset[str] = frozenset({"start_time", "duration", "easing"})


class VariableBinding(BaseModel):
    """One binding: the result node whose published value supplies a key."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    bound_result_node_id: str | None = None


class BindingReader:
    """Reads bound values for one node execution."""

    def __init__(
        self,
        context: ExecutionContext,
        global_bindings: Mapping[str, VariableBinding],
        per_object_bindings: Mapping[str, Mapping[str, VariableBinding]],
    ) -> None:
        self._context = context
        self._global = global_bindings
        self._per_object = per_object_bindings

    def _read(self, binding: VariableBinding | None) -> Any | None:
        if binding is None or not binding.bound_result_node_id:
            return None
        value = self._context.get_node_output(binding.bound_result_node_id, "output")
        if value is None or isinstance(value.data, NoInputSentinel):
            return None
        return clone(value.data)

    def global_values(self) -> dict[str, Any]:
        """Resolved global bindings; unresolvable keys are omitted."""
        values = {key: self._read(binding) for key, binding in self._global.items()}
        return {key: value for key, value in values.items() if value is not None}

    def object_values(self, object_id: str) -> dict[str, Any]:
        """Resolved per-object bindings for `object_id`; unresolvable keys are omitted."""
        bindings = self._per_object.get(object_id, {})
        values = {key: self._read(binding) for key, binding in bindings.items()}
        return {key: value for key, value in values.items() if value is not None}

    def read_global(self, key: str) -> Any | None:
        return self._read(self._global.get(key))

    def read_object(self, object_id: str, key: str) -> Any | None:
        return self._read(self._per_object.get(object_id, {}).get(key))

    def read(self, key: str, object_id: str | None = None) -> Any | None:
        """Per-object binding for `key` if it resolves, else the global one."""
        if object_id is not None:
            value = self.read_object(object_id, key)
            if value is not None:
                return value
        return self.read_global(key)

    def bound_keys(self, object_id: str) -> set[str]:
        """Every key with a configured binding for `object_id`, either scope."""
        keys = {key for key, b in self._global.items() if b.bound_result_node_id}
        keys.update(key for key, b in self._per_object.get(object_id, {}).items() if b.bound_result_node_id)
        return keys


def normalize_track_field(key: str) -> str | None:
    """Map a binding key to the '{type}.{path}' field it binds, or None.

    'track.t1.move.to.x' -> 'move.to.x'; 'track.t1.duration' -> None.
    """
    if key.startswith(TRACK_KEY_PREFIX):
        _track_id, _, sub = key[len(TRACK_KEY_PREFIX) :].partition(".")
        if not sub or sub in TRACK_SCALAR_FIELDS or "." not in sub:
            return None
        return sub
    return key if "." in key else None


def _apply_scalar(updates: dict[str, Any], field: str, value: Any, track: AnimationTrack) -> None:
    try:
        updates[field] = Easing(value) if field == "easing" else coerce_number(value)
    except ValueError as e:
        slog.warning("track_binding_invalid_value", track_id=track.track_id, field=field, error=str(e))


def _bind_track(track: AnimationTrack, values: Mapping[str, Any], properties: dict[str, Any], updates: dict[str, Any]) -> None:
    # Type-wide keys first so track-specific keys refine them
    ordered = sorted(values.items(), key=lambda item: item[0].startswith(TRACK_KEY_PREFIX))
    for key, value in ordered:
        if key.startswith(TRACK_KEY_PREFIX):
            track_id, _, sub = key[len(TRACK_KEY_PREFIX) :].partition(".")
            if track_id != track.track_id or not sub:
                continue
            if sub in TRACK_SCALAR_FIELDS:
                _apply_scalar(updates, sub, value, track)
                continue
            track_type, _, path = sub.partition(".")
        else:
            track_type, _, path = key.partition(".")
        if track_type != track.type.value or not path:
            continue
        if path in TRACK_SCALAR_FIELDS:
            _apply_scalar(updates, path, value, track)
        else:
            set_by_path(properties, path, clone(value))


def apply_bindings_to_tracks(
    tracks: Sequence[AnimationTrack],
    global_values: Mapping[str, Any],
    object_values: Mapping[str, Any] | None = None,
) -> list[AnimationTrack]:
    """Return copies of `tracks` with bound values written into them.

    Global values are applied first, then per-object values on top.
    """
    result: list[AnimationTrack] = []
    for track in tracks:
        properties = clone(track.properties)
        updates: dict[str, Any] = {}
        _bind_track(track, global_values, properties, updates)
        if object_values:
            _bind_track(track, object_values, properties, updates)
        result.append(track.model_copy(update={**updates, "properties": properties}))
    return result


def _override_target(override: TrackOverride, key: str, track_type: TrackType | None) -> str | None:
    """The part of `override` a binding key supplies: a scalar field, a property path, or None."""
    if key.startswith(TRACK_KEY_PREFIX):
        track_id, _, sub = key[len(TRACK_KEY_PREFIX) :].partition(".")
        if not override.track_id or track_id != override.track_id:
            return None
        if sub in TRACK_SCALAR_FIELDS:
            return sub
        key = sub
    if track_type is None:
        return None
    prefix = f"{track_type.value}."
    if not key.startswith(prefix) or len(key) == len(prefix):
        return None
    return key[len(prefix) :]


def mask_bound_track_overrides(
    assignments: ObjectAssignments | None,
    bound_keys: Iterable[str],
    tracks: Sequence[AnimationTrack],
) -> ObjectAssignments | None:
    """Drop manual track-override values a binding supplies.

    `bound_keys` are raw binding keys. Scalar keys ('move.duration',
    'track.t1.easing') clear the override's start_time, duration or easing;
    property keys delete the property path.
    """
    keys = list(bound_keys)
    if assignments is None or not keys:
        return assignments
    type_by_track_id = {track.track_id: track.type for track in tracks}

    masked: list[TrackOverride] = []
    for override in assignments.tracks:
        track_type = override.type or (type_by_track_id.get(override.track_id) if override.track_id else None)
        properties = clone(override.properties)
        scalars: dict[str, None] = {}
        for key in keys:
            target = _override_target(override, key, track_type)
            if target is None:
                continue
            if target in TRACK_SCALAR_FIELDS:
                scalars[target] = None
            else:
                delete_by_path(properties, target)
        masked.append(override.model_copy(update={**scalars, "properties": properties}))
    return assignments.model_copy(update={"tracks": tuple(masked)})
