# tests/unit/scene/test_transforms.py
"""Tests for easing, interpolation and the default transform registry."""

from __future__ import annotations

import pytest

from animflow.contracts.enums import Easing, TrackType
from animflow.scene.transforms import DEFAULT_TRANSFORM_REGISTRY, ease, interpolate
from animflow.testing import make_scene_animation


class TestEase:
    @pytest.mark.parametrize("easing", list(Easing))
    def test_endpoints_fixed(self, easing: Easing) -> None:
        assert ease(easing, 0.0) == 0.0
        assert ease(easing, 1.0) == 1.0

    def test_progress_is_clamped(self) -> None:
        assert ease(Easing.LINEAR, -1.0) == 0.0
        assert ease(Easing.LINEAR, 2.0) == 1.0

    def test_curves_at_midpoint(self) -> None:
        assert ease(Easing.EASE_IN, 0.5) == 0.25
        assert ease(Easing.EASE_OUT, 0.5) == 0.75
        assert ease(Easing.EASE_IN_OUT, 0.5) == 0.5


class TestInterpolate:
    def test_numbers(self) -> None:
        assert interpolate(0, 10, 0.25) == 2.5

    def test_points(self) -> None:
        assert interpolate({"x": 0, "y": 10}, {"x": 10, "y": 20}, 0.5) == {"x": 5.0, "y": 15.0}

    def test_point_missing_start_key_uses_end(self) -> None:
        assert interpolate({"x": 0}, {"x": 10, "y": 20}, 0.5) == {"x": 5.0, "y": 20.0}

    def test_hex_colors(self) -> None:
        assert interpolate("#000000", "#ffffff", 0.5) == "#808080"
        assert interpolate("#f00", "#00f", 1.0) == "#0000ff"

    def test_other_values_step(self) -> None:
        assert interpolate("left", "right", 0.9) == "left"
        assert interpolate("left", "right", 1.0) == "right"


class TestDefaultTransformRegistry:
    def test_defaults(self) -> None:
        registry = DEFAULT_TRANSFORM_REGISTRY
        assert registry.default_properties(TrackType.MOVE) == {"from": {"x": 0, "y": 0}, "to": {"x": 100, "y": 100}}
        assert registry.default_properties(TrackType.ROTATE) == {"from": 0, "to": 360}
        assert registry.default_properties(TrackType.SCALE) == {"from": 1, "to": 2}
        assert registry.default_properties(TrackType.FADE) == {"from": 1, "to": 0}
        assert registry.default_properties(TrackType.COLOR)["property"] == "fill"

    def test_target_property(self) -> None:
        registry = DEFAULT_TRANSFORM_REGISTRY
        assert registry.target_property(TrackType.MOVE, {}) == "position"
        assert registry.target_property(TrackType.COLOR, {"property": "stroke"}) == "color.stroke"
        assert registry.target_property(TrackType.COLOR, {}) == "color.fill"

    def test_value_at_and_end_value(self) -> None:
        animation = make_scene_animation("a", "r", TrackType.ROTATE, start_time=2.0, duration=2.0, properties={"from": 0, "to": 90})
        assert DEFAULT_TRANSFORM_REGISTRY.value_at(animation, 3.0) == 45.0
        assert DEFAULT_TRANSFORM_REGISTRY.value_at(animation, 10.0) == 90
        assert DEFAULT_TRANSFORM_REGISTRY.end_value(animation) == 90

    def test_zero_duration_steps(self) -> None:
        animation = make_scene_animation("a", "f", TrackType.FADE, start_time=1.0, duration=0.0, properties={"from": 1, "to": 0})
        assert DEFAULT_TRANSFORM_REGISTRY.value_at(animation, 0.5) == 1
        assert DEFAULT_TRANSFORM_REGISTRY.value_at(animation, 1.0) == 0
