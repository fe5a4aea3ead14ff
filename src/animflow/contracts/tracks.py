"""Authored animation tracks and their assembled, absolute-time counterparts."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from animflow.contracts.enums import Easing, TrackType


class TrackIdentifier(BaseModel):
    """Stable identity of an authored track within its animation node."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    display_name: str = ""


class AnimationTrack(BaseModel):
    """A track as authored on an animation node.

    `start_time` is relative to the object's baseline (its time cursor or
    appearance time); the scene assembler makes it absolute.
    """

    model_config = ConfigDict(extra="ignore")

    identifier: TrackIdentifier
    type: TrackType
    start_time: float = Field(default=0.0, ge=0)
    duration: float = Field(default=1.0, ge=0)
    easing: Easing = Easing.EASE_IN_OUT
    properties: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_track_id(cls, data: Any) -> Any:
        """Allow `track_id: x` as shorthand for `identifier: {id: x}`."""
        if isinstance(data, dict) and "identifier" not in data and "track_id" in data:
            data = dict(data)
            data["identifier"] = {"id": data.pop("track_id")}
        return data

    @property
    def track_id(self) -> str:
        return self.identifier.id


@dataclass(frozen=True, slots=True)
class SceneAnimationTrack:
    """An absolute-time, fully resolved animation instruction for one object.

    Attributes:
        id: '{object_id}::{track_id}::{start_time}'
        object_id: Object the animation applies to
        track_id: Authored track this was assembled from
        type: Track type
        start_time: Absolute scene time in seconds
        duration: Seconds
        easing: Easing curve
        properties: Resolved properties (authored, assignment and batch layers applied)
    """

    id: str
    object_id: str
    track_id: str
    type: TrackType
    start_time: float
    duration: float
    easing: Easing
    properties: dict[str, Any]

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for JSON output and canonical hashing."""
        return asdict(self)
