"""Result executor: exposes one upstream value for bindings and debugging.

Zero inputs publish NO_INPUT so the output table stays total. One input is
published unchanged, annotated with inspection metadata. More than one input
is ambiguous and rejected.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from animflow.contracts.enums import PortKind
from animflow.contracts.errors import MultipleResultValuesError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.sentinels import NO_INPUT
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import ResultConfig
from animflow.engine.inspection import format_value, get_data_size, get_value_type, has_nested_data, is_complex_object

slog = structlog.get_logger(__name__)

DEFAULT_LABEL = "Debug"


def execute_result(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = ResultConfig.for_node(node)
    label = cfg.label or DEFAULT_LABEL
    inputs = context.get_connected_inputs(connections, node.node_id, "input")

    if len(inputs) > 1:
        raise MultipleResultValuesError(
            node_id=node.node_id,
            node_name=node.display_name,
            sources=[value.describe_source() for value in inputs],
        )

    if not inputs:
        formatted = format_value(NO_INPUT)
        slog.info("result_value", node_id=node.node_id, label=label, formatted_value=formatted)
        context.record_debug(
            node.node_id,
            "result_output",
            {
                "label": label,
                "display_name": node.display_name,
                "value": None,
                "value_type": "no_input",
                "formatted_value": formatted,
                "has_connections": False,
                "input_count": 0,
            },
        )
        context.set_node_output(
            node.node_id,
            "output",
            PortKind.DATA,
            NO_INPUT,
            {"label": label, "display_name": node.display_name, "value_type": "no_input", "formatted_value": formatted},
        )
        return

    (upstream,) = inputs
    value = upstream.data
    value_type = get_value_type(value)
    formatted = format_value(value)
    slog.info("result_value", node_id=node.node_id, label=label, value_type=value_type, formatted_value=formatted)

    context.record_debug(
        node.node_id,
        "result_output",
        {
            "label": label,
            "display_name": node.display_name,
            "value": value,
            "value_type": value_type,
            "formatted_value": formatted,
            "has_connections": True,
            "input_count": 1,
            "source": upstream.describe_source(),
            "data_size": get_data_size(value),
            "is_complex_object": is_complex_object(value),
            "has_nested_data": has_nested_data(value),
        },
    )
    context.set_node_output(
        node.node_id,
        "output",
        upstream.kind,
        value,
        {**upstream.metadata, "label": label, "display_name": node.display_name, "value_type": value_type, "formatted_value": formatted},
    )
