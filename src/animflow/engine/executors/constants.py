"""Constants executor: publishes one typed literal."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, assert_never

from animflow.contracts.enums import ConstantValueType, LogicDataType, PortKind
from animflow.contracts.errors import NodeConfigError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.values import MetadataKey
from animflow.engine.context import ExecutionContext, coerce_logic_value
from animflow.engine.executors.config import ConstantsConfig


def constant_value(cfg: ConstantsConfig) -> tuple[Any, LogicDataType]:
    match cfg.value_type:
        case ConstantValueType.NUMBER:
            return cfg.number_value, LogicDataType.NUMBER
        case ConstantValueType.STRING:
            return cfg.string_value, LogicDataType.STRING
        case ConstantValueType.BOOLEAN:
            return cfg.boolean_value.strip().lower() == "true", LogicDataType.BOOLEAN
        case ConstantValueType.COLOR:
            return cfg.color_value, LogicDataType.COLOR
        case _ as unreachable:
            assert_never(unreachable)


def execute_constants(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = ConstantsConfig.for_node(node)
    value, logic_type = constant_value(cfg)
    try:
        value = coerce_logic_value(value, logic_type)
    except ValueError as e:
        raise NodeConfigError(
            f"Constants node '{node.display_name}' has an invalid {logic_type.value} value: {e}",
            node_id=node.node_id,
            node_name=node.display_name,
        ) from e

    context.record_debug(node.node_id, "constant_output", {"value": value, "value_type": logic_type.value})
    context.set_node_output(
        node.node_id,
        "output",
        PortKind.DATA,
        value,
        {MetadataKey.LOGIC_TYPE: logic_type, "validated": True},
    )
