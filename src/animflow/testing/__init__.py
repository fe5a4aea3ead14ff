# src/animflow/testing/__init__.py
"""Test infrastructure for animflow flows.

Factories for constructing engine types with sensible defaults.
When a backbone type's constructor changes, update the factory here.
Tests that use factories need ZERO changes.

Usage:
    from animflow.testing import make_node, make_edge, make_object, publish_objects
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from animflow.contracts.enums import Easing, LogicDataType, NodeType, PortKind, TrackType
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.tracks import AnimationTrack, SceneAnimationTrack
from animflow.contracts.types import NodeID, PortName
from animflow.contracts.values import ExecutionValue, MetadataKey
from animflow.engine.context import ExecutionContext

# =============================================================================
# Graph
# =============================================================================


def make_node(
    node_id: str,
    node_type: NodeType | str,
    data: Mapping[str, Any] | None = None,
    *,
    display_name: str = "",
) -> FlowNode:
    """Build a FlowNode.

    Usage:
        node = make_node("dup", NodeType.DUPLICATE, {"count": 3})
        node = make_node("m", "merge")
    """
    return FlowNode(node_id=NodeID(node_id), node_type=NodeType(node_type), display_name=display_name, data=dict(data or {}))


def make_edge(source: str, target: str, source_port: str = "output", target_port: str = "input") -> FlowEdge:
    return FlowEdge(
        source=NodeID(source),
        target=NodeID(target),
        source_port=PortName(source_port),
        target_port=PortName(target_port),
        edge_id=f"{source}:{source_port}->{target}:{target_port}",
    )


# =============================================================================
# Objects and tracks
# =============================================================================


def make_object(object_id: str, *, appearance_time: float | None = None, **extra: Any) -> dict[str, Any]:
    """Build a minimal scene object (a circle at the origin)."""
    obj: dict[str, Any] = {
        "id": object_id,
        "type": "circle",
        "initial_position": {"x": 0.0, "y": 0.0},
        "initial_rotation": 0.0,
        "initial_scale": {"x": 1.0, "y": 1.0},
        "initial_opacity": 1.0,
        "properties": {"radius": 50.0, "fill_color": "#4444ff", "stroke_color": "#ffffff", "stroke_width": 0.0},
    }
    if appearance_time is not None:
        obj["appearance_time"] = appearance_time
    obj.update(extra)
    return obj


def make_track(
    track_id: str = "t1",
    track_type: TrackType | str = TrackType.MOVE,
    *,
    start_time: float = 0.0,
    duration: float = 1.0,
    easing: Easing | str = Easing.LINEAR,
    properties: Mapping[str, Any] | None = None,
) -> AnimationTrack:
    """Build an authored AnimationTrack.

    Usage:
        track = make_track("t1", "move", properties={"to": {"x": 10, "y": 0}})
    """
    return AnimationTrack.model_validate(
        {
            "identifier": {"id": track_id, "display_name": track_id},
            "type": TrackType(track_type),
            "start_time": start_time,
            "duration": duration,
            "easing": Easing(easing),
            "properties": dict(properties or {}),
        }
    )


def make_scene_animation(
    object_id: str,
    track_id: str = "t1",
    track_type: TrackType | str = TrackType.MOVE,
    *,
    start_time: float = 0.0,
    duration: float = 1.0,
    properties: Mapping[str, Any] | None = None,
) -> SceneAnimationTrack:
    """Build an assembled SceneAnimationTrack with the engine's id scheme."""
    start = f"{start_time:g}"
    return SceneAnimationTrack(
        id=f"{object_id}::{track_id}::{start}",
        object_id=object_id,
        track_id=track_id,
        type=TrackType(track_type),
        start_time=start_time,
        duration=duration,
        easing=Easing.LINEAR,
        properties=dict(properties or {}),
    )


# =============================================================================
# Context
# =============================================================================


def publish_objects(
    context: ExecutionContext,
    node_id: str,
    objects: Sequence[Any],
    *,
    port: str = "output",
    metadata: Mapping[str, Any] | None = None,
) -> ExecutionValue:
    """Publish an object stream as if node `node_id` had executed.

    Usage:
        publish_objects(ctx, "src", [make_object("a")], metadata={MetadataKey.TIME_CURSOR: {"a": 2.0}})
    """
    return context.set_node_output(node_id, port, PortKind.OBJECT_STREAM, list(objects), metadata)


def publish_data(
    context: ExecutionContext,
    node_id: str,
    value: Any,
    *,
    logic_type: LogicDataType | None = None,
    port: str = "output",
) -> ExecutionValue:
    """Publish a data value, optionally declaring its logic type."""
    metadata = {MetadataKey.LOGIC_TYPE: logic_type} if logic_type is not None else {}
    return context.set_node_output(node_id, port, PortKind.DATA, value, metadata)


__all__ = [
    "make_edge",
    "make_node",
    "make_object",
    "make_scene_animation",
    "make_track",
    "publish_data",
    "publish_objects",
]
