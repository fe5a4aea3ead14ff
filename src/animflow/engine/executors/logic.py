"""Logic executors: compare, if/else, boolean and math operators.

Inputs are read through ExecutionContext.get_typed_connected_input(), so a
wrongly typed value fails with TypeValidationError before any operator runs.
Type failures are logged with the node name and re-raised unchanged.

Operator dispatch is a closed `match` ending in assert_never; an operator
value that escapes the enum (corrupted configuration) fails the assertion,
which names the value.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, assert_never

import structlog

from animflow.contracts.enums import UNARY_MATH_OPERATORS, BooleanOperator, CompareOperator, LogicDataType, MathOperator, PortKind
from animflow.contracts.errors import (
    DivisionByZeroError,
    MissingInputError,
    ModuloByZeroError,
    NaNResultError,
    NegativeSquareRootError,
    TypeValidationError,
)
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.values import MetadataKey
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import BooleanOpConfig, CompareConfig, MathOpConfig

slog = structlog.get_logger(__name__)


def _require_typed(
    node: FlowNode,
    context: ExecutionContext,
    connections: Sequence[FlowEdge],
    port: str,
    expected: LogicDataType,
) -> Any:
    """Validated value on `port`; logs and re-raises type failures."""
    try:
        typed = context.get_typed_connected_input(connections, node.node_id, port, expected)
    except TypeValidationError as e:
        slog.error(
            "logic_input_type_invalid",
            node_id=node.node_id,
            node_name=node.display_name,
            port=port,
            expected=e.expected,
            received=e.received,
            received_from=e.received_from,
        )
        raise
    if typed is None:
        raise MissingInputError(node_id=node.node_id, node_name=node.display_name, port=port)
    return typed.value


def _publish_logic(context: ExecutionContext, node: FlowNode, value: Any, logic_type: LogicDataType, port: str = "output") -> None:
    context.set_node_output(node.node_id, port, PortKind.DATA, value, {MetadataKey.LOGIC_TYPE: logic_type, "validated": True})


# =============================================================================
# Compare
# =============================================================================


def compare_values(operator: CompareOperator, a: float, b: float) -> bool:
    match operator:
        case CompareOperator.GT:
            return a > b
        case CompareOperator.LT:
            return a < b
        case CompareOperator.EQ:
            return a == b
        case CompareOperator.NEQ:
            return a != b
        case CompareOperator.GTE:
            return a >= b
        case CompareOperator.LTE:
            return a <= b
        case _ as unreachable:
            assert_never(unreachable)


def execute_compare(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = CompareConfig.for_node(node)
    a = _require_typed(node, context, connections, "input_a", LogicDataType.NUMBER)
    b = _require_typed(node, context, connections, "input_b", LogicDataType.NUMBER)

    result = compare_values(cfg.operator, a, b)
    slog.debug("compare_evaluated", node_id=node.node_id, operator=cfg.operator.value, a=a, b=b, result=result)
    context.record_debug(node.node_id, "compare_output", {"operator": cfg.operator.value, "a": a, "b": b, "result": result})
    _publish_logic(context, node, result, LogicDataType.BOOLEAN)


# =============================================================================
# If / else
# =============================================================================


def execute_if_else(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    """Route the `data` input to `true_path` or `false_path`, never both.

    Without a `data` input the condition itself is routed.
    """
    condition = _require_typed(node, context, connections, "condition", LogicDataType.BOOLEAN)
    port = "true_path" if condition else "false_path"

    data = context.get_connected_input(connections, node.node_id, "data")
    slog.debug("if_else_routed", node_id=node.node_id, condition=condition, port=port, has_data=data is not None)
    context.record_debug(node.node_id, "if_else_output", {"condition": condition, "port": port})
    if data is None:
        _publish_logic(context, node, condition, LogicDataType.BOOLEAN, port)
        return
    context.set_node_output(node.node_id, port, data.kind, data.data, data.metadata)


# =============================================================================
# Boolean
# =============================================================================


def apply_boolean(operator: BooleanOperator, a: bool, b: bool | None = None) -> bool:
    match operator:
        case BooleanOperator.AND:
            return a and bool(b)
        case BooleanOperator.OR:
            return a or bool(b)
        case BooleanOperator.XOR:
            return a != bool(b)
        case BooleanOperator.NOT:
            return not a
        case _ as unreachable:
            assert_never(unreachable)


def execute_boolean_op(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = BooleanOpConfig.for_node(node)
    a = _require_typed(node, context, connections, "input1", LogicDataType.BOOLEAN)
    b = None if cfg.operator is BooleanOperator.NOT else _require_typed(node, context, connections, "input2", LogicDataType.BOOLEAN)

    result = apply_boolean(cfg.operator, a, b)
    slog.debug("boolean_evaluated", node_id=node.node_id, operator=cfg.operator.value, a=a, b=b, result=result)
    context.record_debug(node.node_id, "boolean_output", {"operator": cfg.operator.value, "a": a, "b": b, "result": result})
    _publish_logic(context, node, result, LogicDataType.BOOLEAN)


# =============================================================================
# Math
# =============================================================================


def _power(a: float, b: float) -> float:
    if a == 0 and b < 0:
        return math.inf
    try:
        return math.pow(a, b)
    except ValueError:
        # Negative base with fractional exponent
        return math.nan
    except OverflowError:
        odd_exponent = float(b).is_integer() and int(b) % 2 == 1
        return math.copysign(math.inf, a) if odd_exponent else math.inf


def compute_math(node: FlowNode, operator: MathOperator, a: float, b: float | None = None) -> float:
    """Apply a math operator, raising named errors for undefined operations.

    Raises:
        DivisionByZeroError: divide with b == 0
        ModuloByZeroError: modulo with b == 0
        NegativeSquareRootError: sqrt with a < 0
        NaNResultError: any operation producing NaN
    """
    rhs = 0.0 if b is None else b
    match operator:
        case MathOperator.ADD:
            result = a + rhs
        case MathOperator.SUBTRACT:
            result = a - rhs
        case MathOperator.MULTIPLY:
            result = a * rhs
        case MathOperator.DIVIDE:
            if rhs == 0:
                raise DivisionByZeroError(node_id=node.node_id, node_name=node.display_name, dividend=a)
            result = a / rhs
        case MathOperator.MODULO:
            if rhs == 0:
                raise ModuloByZeroError(node_id=node.node_id, node_name=node.display_name, dividend=a)
            try:
                result = math.fmod(a, rhs)
            except ValueError:
                result = math.nan
        case MathOperator.POWER:
            result = _power(a, rhs)
        case MathOperator.SQRT:
            if a < 0:
                raise NegativeSquareRootError(node_id=node.node_id, node_name=node.display_name, operand=a)
            result = math.sqrt(a)
        case MathOperator.ABS:
            result = abs(a)
        case MathOperator.MIN:
            result = min(a, rhs)
        case MathOperator.MAX:
            result = max(a, rhs)
        case _ as unreachable:
            assert_never(unreachable)

    operands = [a] if b is None else [a, b]
    if isinstance(result, float) and math.isnan(result):
        raise NaNResultError(node_id=node.node_id, node_name=node.display_name, operator=operator.value, operands=operands)
    if isinstance(result, float) and math.isinf(result):
        slog.warning("math_result_not_finite", node_id=node.node_id, node_name=node.display_name, operator=operator.value, result=result)
    return result


def execute_math_op(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = MathOpConfig.for_node(node)
    a = _require_typed(node, context, connections, "input_a", LogicDataType.NUMBER)
    b = None if cfg.operator in UNARY_MATH_OPERATORS else _require_typed(node, context, connections, "input_b", LogicDataType.NUMBER)

    result = compute_math(node, cfg.operator, a, b)
    slog.debug("math_evaluated", node_id=node.node_id, operator=cfg.operator.value, a=a, b=b, result=result)
    context.record_debug(node.node_id, "math_output", {"operator": cfg.operator.value, "a": a, "b": b, "result": result})
    _publish_logic(context, node, result, LogicDataType.NUMBER)
