"""Per-object property assignments and their field-level merge.

An assignment records manual overrides for one object: static `initial`
properties (position, opacity, colors) and per-track overrides matched by
track id or, failing that, by track type.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field

from animflow.contracts.enums import Easing, TrackType
from animflow.core.paths import deep_merge

# Static properties an assignment may set on an object
INITIAL_PROPERTY_NAMES: frozenset[str] = frozenset(
    {"position", "rotation", "scale", "opacity", "fill_color", "stroke_color", "stroke_width"}
)


class TrackOverride(BaseModel):
    """Manual override for one track of an object.

    Matched to an authored track by `track_id`, or by `type` when no
    track id is given.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    track_id: str | None = None
    type: TrackType | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    start_time: float | None = None
    duration: float | None = None
    easing: Easing | None = None

    @property
    def match_key(self) -> str | None:
        """Index key used when merging overrides: 'id:<track_id>' or 'type:<type>'."""
        if self.track_id:
            return f"id:{self.track_id}"
        if self.type is not None:
            return f"type:{self.type.value}"
        return None

    def merged_with(self, other: TrackOverride) -> TrackOverride:
        """Return this override updated by `other`, field by field."""
        return TrackOverride(
            track_id=other.track_id or self.track_id,
            type=other.type or self.type,
            properties=deep_merge(self.properties, other.properties),
            start_time=other.start_time if other.start_time is not None else self.start_time,
            duration=other.duration if other.duration is not None else self.duration,
            easing=other.easing or self.easing,
        )


class ObjectAssignments(BaseModel):
    """All manual overrides recorded for one object."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    initial: dict[str, Any] = Field(default_factory=dict)
    tracks: tuple[TrackOverride, ...] = ()

    @classmethod
    def from_value(cls, value: ObjectAssignments | dict[str, Any]) -> Self:
        """Accept either a parsed model or raw editor data."""
        if isinstance(value, cls):
            return value
        return cls.model_validate(value)

    def is_empty(self) -> bool:
        return not self.initial and not self.tracks

    def find_track_override(self, track_id: str, track_type: TrackType) -> TrackOverride | None:
        """Find the override for a track: exact track id first, then a type-only entry."""
        for override in self.tracks:
            if override.track_id == track_id:
                return override
        for override in self.tracks:
            if override.track_id is None and override.type == track_type:
                return override
        return None


def merge_object_assignments(base: ObjectAssignments | None, overrides: ObjectAssignments | None) -> ObjectAssignments | None:
    """Merge two assignments; `overrides` wins per field, never per record.

    `initial` properties merge recursively. Track overrides sharing a match
    key merge their fields; unmatched entries from both sides are kept, base
    entries first.
    """
    if base is None and overrides is None:
        return None
    if base is None:
        return overrides
    if overrides is None:
        return base

    initial = deep_merge(base.initial, overrides.initial)

    indexed: dict[str, TrackOverride] = {}
    unkeyed: list[TrackOverride] = []
    for side in (base.tracks, overrides.tracks):
        for override in side:
            key = override.match_key
            if key is None:
                unkeyed.append(override)
            elif key in indexed:
                indexed[key] = indexed[key].merged_with(override)
            else:
                indexed[key] = override

    return ObjectAssignments(initial=initial, tracks=(*indexed.values(), *unkeyed))
