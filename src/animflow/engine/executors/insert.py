"""Insert executor: gives objects the time they appear in the scene."""

from __future__ import annotations

from collections.abc import Sequence

from animflow.contracts.enums import PortKind
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import InsertConfig
from animflow.engine.metadata import collect_object_metadata, is_identified, iter_items


def execute_insert(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    """Stamp `appearance_time` on every identified object; metadata passes through."""
    cfg = InsertConfig.for_node(node)
    inputs = context.get_connected_inputs(connections, node.node_id, "input")

    output = []
    ids: set[str] = set()
    for value in inputs:
        for item in iter_items(value):
            if is_identified(item):
                item = {**item, "appearance_time": cfg.appearance_time}
                ids.add(item["id"])
            output.append(item)

    context.advance_time(cfg.appearance_time)
    context.set_node_output(node.node_id, "output", PortKind.OBJECT_STREAM, output, collect_object_metadata(inputs, ids))
