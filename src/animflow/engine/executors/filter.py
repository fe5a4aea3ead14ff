"""Filter executor: keeps the identified objects named in an allow-list."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from animflow.contracts.enums import PortKind
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import FilterConfig
from animflow.engine.metadata import collect_object_metadata, is_identified, iter_items

slog = structlog.get_logger(__name__)


def execute_filter(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = FilterConfig.for_node(node)
    allowed = set(cfg.selected_object_ids)

    inputs = context.get_connected_inputs(connections, node.node_id, "input")
    items = [item for value in inputs for item in iter_items(value)]

    # Non-identified payloads always survive
    kept = [item for item in items if not is_identified(item) or item["id"] in allowed]
    kept_ids = {item["id"] for item in kept if is_identified(item)}
    dropped = sorted({item["id"] for item in items if is_identified(item)} - kept_ids)

    metadata = collect_object_metadata(inputs, kept_ids)

    slog.debug("filter_node_executed", node_id=node.node_id, kept=len(kept_ids), dropped=len(dropped))
    context.record_debug(node.node_id, "filter_output", {"kept_ids": sorted(kept_ids), "dropped_ids": dropped})
    context.set_node_output(node.node_id, "output", PortKind.OBJECT_STREAM, kept, metadata)
