# tests/unit/engine/executors/test_result_executor.py
"""Tests for the result executor."""

from __future__ import annotations

import pytest

from animflow.contracts.enums import LogicDataType, NodeType, PortKind
from animflow.contracts.errors import MultipleResultValuesError
from animflow.contracts.sentinels import NO_INPUT
from animflow.contracts.values import MetadataKey
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.result import execute_result
from animflow.testing import make_edge, make_node, make_object, publish_data, publish_objects


class TestResultExecutor:
    def test_no_input_publishes_sentinel(self) -> None:
        context = ExecutionContext(debug_target_node_id="r")
        execute_result(make_node("r", NodeType.RESULT), context, [])
        output = context.get_node_output("r")
        assert output is not None
        assert output.data is NO_INPUT
        assert output.kind is PortKind.DATA
        assert output.metadata["label"] == "Debug"
        assert output.metadata["formatted_value"] == "<no input connected>"
        [entry] = context.execution_log
        assert entry.data["has_connections"] is False
        assert entry.data["value_type"] == "no_input"

    def test_single_input_passed_through_unchanged(self, context: ExecutionContext) -> None:
        publish_data(context, "c", 42, logic_type=LogicDataType.NUMBER)
        execute_result(make_node("r", NodeType.RESULT, {"label": "Answer"}), context, [make_edge("c", "r")])
        output = context.get_node_output("r")
        assert output is not None
        assert output.data == 42
        assert output.metadata[MetadataKey.LOGIC_TYPE] is LogicDataType.NUMBER
        assert output.metadata["label"] == "Answer"
        assert output.metadata["value_type"] == "number"
        assert output.metadata["formatted_value"] == "42"

    def test_object_stream_keeps_kind(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a")])
        execute_result(make_node("r", NodeType.RESULT), context, [make_edge("src", "r")])
        output = context.get_node_output("r")
        assert output is not None
        assert output.kind is PortKind.OBJECT_STREAM
        assert output.metadata["value_type"] == "array[1]"

    def test_debug_entry_inspects_value(self) -> None:
        context = ExecutionContext(debug_target_node_id="r")
        publish_data(context, "c", list(range(12)))
        execute_result(make_node("r", NodeType.RESULT, display_name="Peek"), context, [make_edge("c", "r")])
        [entry] = context.execution_log
        assert entry.action == "result_output"
        assert entry.data["display_name"] == "Peek"
        assert entry.data["source"] == "c:output"
        assert entry.data["is_complex_object"] is True
        assert entry.data["has_nested_data"] is False
        assert entry.data["formatted_value"] == "[0, 1, 2, ... (+9 more)]"
        assert entry.data["data_size"].endswith("bytes")

    def test_multiple_inputs_rejected_naming_sources(self, context: ExecutionContext) -> None:
        publish_data(context, "x", 1)
        publish_data(context, "y", 2)
        node = make_node("r", NodeType.RESULT, display_name="Out")
        with pytest.raises(MultipleResultValuesError) as exc_info:
            execute_result(node, context, [make_edge("x", "r"), make_edge("y", "r")])
        assert exc_info.value.details["sources"] == ["x:output", "y:output"]
        assert context.get_node_output("r") is None
