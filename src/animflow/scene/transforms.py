"""Transform registry: per-track-type defaults and evaluation.

The scene assembler never hardcodes track behaviour. It asks a
TransformRegistry for a track type's default properties, for the scene
property a track animates (so a later track can inherit its start value
from an earlier one), and for the value an assembled animation has at a
given time.

DefaultTransformRegistry covers the five built-in track types so the engine
runs headlessly; renderers may supply their own registry.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, Final, Protocol, assert_never

from animflow.contracts.enums import Easing, TrackType
from animflow.contracts.tracks import SceneAnimationTrack


class TransformRegistry(Protocol):
    """What the scene assembler needs from the transform registry."""

    def default_properties(self, track_type: TrackType) -> Mapping[str, Any]:
        """Properties a track of this type has when the author sets nothing."""
        ...

    def target_property(self, track_type: TrackType, properties: Mapping[str, Any]) -> str:
        """Name of the scene property the track animates (e.g. 'position', 'color.fill')."""
        ...

    def end_value(self, animation: SceneAnimationTrack) -> Any:
        """Value of the animated property once the animation completes."""
        ...

    def value_at(self, animation: SceneAnimationTrack, time: float) -> Any:
        """Value of the animated property at absolute scene `time`."""
        ...


def ease(easing: Easing, t: float) -> float:
    """Map linear progress t in [0, 1] through an easing curve."""
    t = min(max(t, 0.0), 1.0)
    match easing:
        case Easing.LINEAR:
            return t
        case Easing.EASE_IN:
            return t * t
        case Easing.EASE_OUT:
            return t * (2 - t)
        case Easing.EASE_IN_OUT:
            return 2 * t * t if t < 0.5 else -1 + (4 - 2 * t) * t
        case _ as unreachable:
            assert_never(unreachable)


def _parse_hex(color: str) -> tuple[int, int, int]:
    digits = color.lstrip("#")
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def interpolate(start: Any, end: Any, progress: float) -> Any:
    """Interpolate numbers, {x, y} points and hex colors; anything else steps at the end."""
    if isinstance(start, int | float) and isinstance(end, int | float) and not isinstance(start, bool):
        return start + (end - start) * progress
    if isinstance(start, Mapping) and isinstance(end, Mapping):
        return {key: interpolate(start.get(key, end[key]), end[key], progress) for key in end}
    if isinstance(start, str) and isinstance(end, str) and start.startswith("#") and end.startswith("#"):
        a, b = _parse_hex(start), _parse_hex(end)
        r, g, bl = (round(x + (y - x) * progress) for x, y in zip(a, b, strict=True))
        return f"#{r:02x}{g:02x}{bl:02x}"
    return end if progress >= 1.0 else start


_DEFAULTS: Final[Mapping[TrackType, Mapping[str, Any]]] = MappingProxyType(
    {
        TrackType.MOVE: {"from": {"x": 0, "y": 0}, "to": {"x": 100, "y": 100}},
        TrackType.ROTATE: {"from": 0, "to": 360},
        TrackType.SCALE: {"from": 1, "to": 2},
        TrackType.FADE: {"from": 1, "to": 0},
        TrackType.COLOR: {"from": "#ff0000", "to": "#00ff00", "property": "fill"},
    }
)

_TARGETS: Final[Mapping[TrackType, Callable[[Mapping[str, Any]], str]]] = MappingProxyType(
    {
        TrackType.MOVE: lambda _props: "position",
        TrackType.ROTATE: lambda _props: "rotation",
        TrackType.SCALE: lambda _props: "scale",
        TrackType.FADE: lambda _props: "opacity",
        TrackType.COLOR: lambda props: f"color.{props.get('property', 'fill')}",
    }
)


class DefaultTransformRegistry:
    """Built-in definitions for move, rotate, scale, fade and color tracks."""

    def default_properties(self, track_type: TrackType) -> Mapping[str, Any]:
        return _DEFAULTS[track_type]

    def target_property(self, track_type: TrackType, properties: Mapping[str, Any]) -> str:
        return _TARGETS[track_type](properties)

    def end_value(self, animation: SceneAnimationTrack) -> Any:
        return animation.properties.get("to")

    def value_at(self, animation: SceneAnimationTrack, time: float) -> Any:
        start = animation.properties.get("from")
        end = animation.properties.get("to")
        if animation.duration <= 0:
            return end if time >= animation.start_time else start
        progress = ease(animation.easing, (time - animation.start_time) / animation.duration)
        return interpolate(start, end, progress)


DEFAULT_TRANSFORM_REGISTRY: Final[DefaultTransformRegistry] = DefaultTransformRegistry()
