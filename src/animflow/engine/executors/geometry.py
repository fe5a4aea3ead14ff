"""Geometry executors: circle, rectangle and triangle nodes.

Each publishes a single scene object whose id is the node id.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from animflow.contracts.enums import NodeType, PortKind
from animflow.contracts.errors import EngineInvariantError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import GeometryConfig


def _shape_properties(node_type: NodeType, cfg: GeometryConfig) -> dict[str, Any]:
    match node_type:
        case NodeType.CIRCLE:
            return {"radius": cfg.radius}
        case NodeType.RECTANGLE:
            return {"width": cfg.width, "height": cfg.height}
        case NodeType.TRIANGLE:
            return {"size": cfg.size}
        case _:
            raise EngineInvariantError(f"Not a geometry node type: {node_type!r}")


def execute_geometry(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = GeometryConfig.for_node(node)
    obj = {
        "id": node.node_id,
        "type": node.node_type.value,
        "initial_position": cfg.position.model_dump(),
        "initial_rotation": cfg.rotation,
        "initial_scale": cfg.scale.model_dump(),
        "initial_opacity": cfg.opacity,
        "properties": {
            **_shape_properties(node.node_type, cfg),
            "fill_color": cfg.fill_color,
            "stroke_color": cfg.stroke_color,
            "stroke_width": cfg.stroke_width,
        },
    }
    context.set_node_output(node.node_id, "output", PortKind.OBJECT_STREAM, [obj])
