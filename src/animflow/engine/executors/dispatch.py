"""Closed dispatch from node type to executor."""

from __future__ import annotations

from collections.abc import Sequence
from typing import assert_never

from animflow.contracts.enums import NodeType
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.animation import execute_animation
from animflow.engine.executors.batch import execute_batch
from animflow.engine.executors.constants import execute_constants
from animflow.engine.executors.duplicate import execute_duplicate
from animflow.engine.executors.filter import execute_filter
from animflow.engine.executors.geometry import execute_geometry
from animflow.engine.executors.insert import execute_insert
from animflow.engine.executors.logic import execute_boolean_op, execute_compare, execute_if_else, execute_math_op
from animflow.engine.executors.merge import execute_merge
from animflow.engine.executors.result import execute_result
from animflow.engine.executors.scene import execute_scene
from animflow.scene.transforms import DEFAULT_TRANSFORM_REGISTRY, TransformRegistry


def execute_node(
    node: FlowNode,
    context: ExecutionContext,
    connections: Sequence[FlowEdge],
    *,
    registry: TransformRegistry = DEFAULT_TRANSFORM_REGISTRY,
) -> None:
    """Run the executor for `node.node_type`.

    The duplicate executor receives an id snapshot taken immediately before
    it runs.
    """
    match node.node_type:
        case NodeType.CIRCLE | NodeType.RECTANGLE | NodeType.TRIANGLE:
            execute_geometry(node, context, connections)
        case NodeType.INSERT:
            execute_insert(node, context, connections)
        case NodeType.ANIMATION:
            execute_animation(node, context, connections, registry=registry)
        case NodeType.MERGE:
            execute_merge(node, context, connections)
        case NodeType.DUPLICATE:
            execute_duplicate(node, context, connections, id_registry=context.object_id_snapshot())
        case NodeType.FILTER:
            execute_filter(node, context, connections)
        case NodeType.BATCH:
            execute_batch(node, context, connections)
        case NodeType.CONSTANTS:
            execute_constants(node, context, connections)
        case NodeType.RESULT:
            execute_result(node, context, connections)
        case NodeType.COMPARE:
            execute_compare(node, context, connections)
        case NodeType.IF_ELSE:
            execute_if_else(node, context, connections)
        case NodeType.BOOLEAN_OP:
            execute_boolean_op(node, context, connections)
        case NodeType.MATH_OP:
            execute_math_op(node, context, connections)
        case NodeType.SCENE:
            execute_scene(node, context, connections)
        case _ as unreachable:
            assert_never(unreachable)
