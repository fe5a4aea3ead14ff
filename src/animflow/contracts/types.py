"""Semantic type aliases for compile-time type safety.

NewType creates distinct types that mypy treats as incompatible,
preventing accidental misuse of semantically different string values.
"""

from typing import Any, NewType

NodeID = NewType("NodeID", str)
"""Unique node identifier in the flow graph (e.g., 'anim_1')"""

PortName = NewType("PortName", str)
"""Named input or output slot on a node (e.g., 'input1', 'true_path')"""

ObjectID = NewType("ObjectID", str)
"""Stable identity of a scene object (e.g., 'circle_1_dup_002')"""

BatchKey = NewType("BatchKey", str)
"""Discriminator selecting one templated replica of a scene (e.g., 'en-GB')"""

FieldPath = NewType("FieldPath", str)
"""Dotted override address (e.g., 'move.from.x', 'Canvas.opacity')"""

type SceneObject = dict[str, Any]
"""A scene object payload. Identified objects carry a string 'id'."""

type CursorMap = dict[str, float]
"""object id -> furthest timeline point reached along the current path."""

type BatchOverrideMap = dict[str, dict[str, dict[str, Any]]]
"""object id -> field path -> {batch key | 'default' -> value}."""

type BoundFieldMap = dict[str, set[str]]
"""object id -> field paths supplied by an external binding."""
