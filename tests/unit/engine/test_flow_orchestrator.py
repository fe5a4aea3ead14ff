# tests/unit/engine/test_flow_orchestrator.py
"""Tests for FlowOrchestrator: ordering, routing, guards and run results."""

from __future__ import annotations

from typing import Any

import pytest

from animflow.contracts.enums import NodeType
from animflow.contracts.errors import (
    CircularDependencyError,
    DebugTargetNotFoundError,
    DuplicateObjectIdsError,
    TooManyAnimationsError,
)
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.sentinels import NO_INPUT
from animflow.core.config import EngineSettings, parse_flow
from animflow.core.dag import FlowGraph
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.animation import DEFAULT_OBJECT_MARKER
from animflow.engine.orchestrator import FlowOrchestrator, should_skip_for_conditional_routing
from animflow.testing import make_edge, make_node

FADE_TRACK = {"track_id": "f1", "type": "fade", "start_time": 0.5, "duration": 2.0, "easing": "linear", "properties": {"to": 0.2}}


def _scene_flow(anim_data: dict[str, Any] | None = None) -> tuple[list[FlowNode], list[FlowEdge]]:
    nodes = [
        make_node("c1", NodeType.CIRCLE),
        make_node("ins", NodeType.INSERT, {"appearance_time": 1.0}),
        make_node("anim", NodeType.ANIMATION, anim_data or {"tracks": [FADE_TRACK]}),
        make_node("scene", NodeType.SCENE),
    ]
    edges = [make_edge("c1", "ins"), make_edge("ins", "anim"), make_edge("anim", "scene")]
    return nodes, edges


def _routing_flow(condition: str) -> tuple[list[FlowNode], list[FlowEdge]]:
    nodes = [
        make_node("k", NodeType.CONSTANTS, {"value_type": "boolean", "boolean_value": condition}),
        make_node("c1", NodeType.CIRCLE),
        make_node("if1", NodeType.IF_ELSE),
        make_node("ins_t", NodeType.INSERT),
        make_node("ins_f", NodeType.INSERT),
        make_node("r_f", NodeType.RESULT),
    ]
    edges = [
        make_edge("k", "if1", target_port="condition"),
        make_edge("c1", "if1", target_port="data"),
        make_edge("if1", "ins_t", source_port="true_path"),
        make_edge("if1", "ins_f", source_port="false_path"),
        make_edge("ins_f", "r_f"),
    ]
    return nodes, edges


class TestRun:
    def test_linear_scene_flow(self) -> None:
        nodes, edges = _scene_flow()
        result = FlowOrchestrator().run(nodes, edges)
        assert result.execution_order == ["c1", "ins", "anim", "scene"]
        assert result.skipped_nodes == []
        scene = result.scenes["scene"]
        assert [obj["id"] for obj in scene.objects] == ["c1"]
        assert [a.id for a in scene.animations] == ["c1::f1::1.5"]
        assert scene.duration == 4.0
        assert result.context.current_time == 3.5

    def test_authoring_order_breaks_ties(self) -> None:
        nodes = [make_node("b", NodeType.CIRCLE), make_node("a", NodeType.CIRCLE)]
        result = FlowOrchestrator().run(nodes, [])
        assert result.execution_order == ["b", "a"]

    def test_control_edges_never_reach_execution(self) -> None:
        document = parse_flow(
            {
                "nodes": [{"id": "c1", "type": "circle"}, {"id": "r", "type": "result"}],
                "edges": [
                    {"source": "c1", "target": "r"},
                    {"source": "r", "target": "c1", "kind": "control"},
                ],
            }
        )
        result = FlowOrchestrator().run_flow(document)
        assert result.execution_order == ["c1", "r"]

    def test_cycle_rejected(self) -> None:
        nodes = [make_node("a", NodeType.RESULT), make_node("b", NodeType.RESULT)]
        with pytest.raises(CircularDependencyError):
            FlowOrchestrator().run(nodes, [make_edge("a", "b"), make_edge("b", "a")])

    def test_unconnected_result_publishes_no_input(self) -> None:
        result = FlowOrchestrator().run([make_node("r", NodeType.RESULT)], [])
        output = result.context.get_node_output("r")
        assert output is not None
        assert output.data is NO_INPUT

    def test_settings_debug_target_runs_whole_flow(self) -> None:
        nodes, edges = _scene_flow()
        nodes.append(make_node("r", NodeType.RESULT))
        result = FlowOrchestrator(EngineSettings(debug_target_node_id="r")).run(nodes, edges)
        assert result.execution_order == ["c1", "ins", "anim", "scene", "r"]
        assert [entry.node_id for entry in result.context.execution_log] == ["r"]

    def test_settings_debug_target_must_exist(self) -> None:
        nodes, edges = _scene_flow()
        with pytest.raises(DebugTargetNotFoundError):
            FlowOrchestrator(EngineSettings(debug_target_node_id="ghost")).run(nodes, edges)


class TestRunDebug:
    def test_runs_only_target_and_ancestors(self) -> None:
        nodes = [
            make_node("c1", NodeType.CIRCLE),
            make_node("k", NodeType.CONSTANTS, {"number_value": 4}),
            make_node("r", NodeType.RESULT, {"label": "Four"}),
        ]
        result = FlowOrchestrator().run_debug(nodes, [make_edge("k", "r")], "r")
        assert result.execution_order == ["k", "r"]
        [entry] = result.context.execution_log
        assert entry.action == "result_output"
        assert entry.data["label"] == "Four"
        assert entry.data["value"] == 4

    def test_unknown_target(self) -> None:
        with pytest.raises(DebugTargetNotFoundError) as exc_info:
            FlowOrchestrator().run_debug([make_node("c1", NodeType.CIRCLE)], [], "ghost")
        assert exc_info.value.node_id == "ghost"

    def test_run_flow_honours_document_target(self) -> None:
        document = parse_flow(
            {
                "nodes": [
                    {"id": "c1", "type": "circle"},
                    {"id": "k", "type": "constants", "data": {"value_type": "string", "string_value": "hi"}},
                    {"id": "r", "type": "result"},
                ],
                "edges": [{"source": "k", "target": "r"}],
                "settings": {"debug_target_node_id": "r"},
            }
        )
        result = FlowOrchestrator(document.settings).run_flow(document)
        assert result.execution_order == ["k", "r"]


class TestConditionalRouting:
    def test_untaken_branch_and_its_dependents_skipped(self) -> None:
        nodes, edges = _routing_flow("true")
        result = FlowOrchestrator().run(nodes, edges)
        assert result.execution_order == ["k", "c1", "if1", "ins_t"]
        assert result.skipped_nodes == ["ins_f", "r_f"]
        routed = result.context.get_node_output("ins_t")
        assert routed is not None
        assert routed.data[0]["id"] == "c1"

    def test_false_condition_takes_other_branch(self) -> None:
        nodes, edges = _routing_flow("false")
        result = FlowOrchestrator().run(nodes, edges)
        assert result.skipped_nodes == ["ins_t"]
        assert "r_f" in result.execution_order

    def test_unconnected_node_never_skipped(self) -> None:
        graph = FlowGraph.from_flow([make_node("r", NodeType.RESULT)], [])
        assert should_skip_for_conditional_routing([], graph, ExecutionContext()) is False


class TestDuplicateObjectIds:
    def _fan_in(self, target_type: NodeType) -> tuple[list[FlowNode], list[FlowEdge]]:
        nodes = [
            make_node("c1", NodeType.CIRCLE),
            make_node("ins_a", NodeType.INSERT, {"appearance_time": 1.0}),
            make_node("ins_b", NodeType.INSERT, {"appearance_time": 2.0}),
            make_node("join", target_type, display_name="Join"),
        ]
        second_port = "input2" if target_type is NodeType.MERGE else "input"
        first_port = "input1" if target_type is NodeType.MERGE else "input"
        edges = [
            make_edge("c1", "ins_a"),
            make_edge("c1", "ins_b"),
            make_edge("ins_a", "join", target_port=first_port),
            make_edge("ins_b", "join", target_port=second_port),
        ]
        return nodes, edges

    def test_non_merge_node_rejects_shared_ids(self) -> None:
        nodes, edges = self._fan_in(NodeType.ANIMATION)
        with pytest.raises(DuplicateObjectIdsError) as exc_info:
            FlowOrchestrator().run(nodes, edges)
        assert exc_info.value.node_id == "join"
        assert exc_info.value.details["sources"] == {"c1": ["ins_a:output", "ins_b:output"]}

    def test_merge_combines_shared_ids(self) -> None:
        nodes, edges = self._fan_in(NodeType.MERGE)
        result = FlowOrchestrator().run(nodes, edges)
        output = result.context.get_node_output("join")
        assert output is not None
        [merged] = output.data
        assert merged["appearance_time"] == 1.0


class TestGuards:
    def test_too_many_animations(self) -> None:
        tracks = [FADE_TRACK, {**FADE_TRACK, "track_id": "f2"}]
        nodes, edges = _scene_flow({"tracks": tracks})
        with pytest.raises(TooManyAnimationsError) as exc_info:
            FlowOrchestrator(EngineSettings(max_animations_per_run=1)).run(nodes, edges)
        assert exc_info.value.details == {"count": 2, "limit": 1}


class TestRunResult:
    def test_fingerprint_is_deterministic_across_runs(self) -> None:
        nodes, edges = _scene_flow()
        first = FlowOrchestrator().run(nodes, edges)
        second = FlowOrchestrator().run(nodes, edges)
        assert first.run_id != second.run_id
        assert first.fingerprint() == second.fingerprint()

    def test_fingerprint_changes_with_outputs(self) -> None:
        nodes, edges = _scene_flow()
        other_nodes, other_edges = _scene_flow({"tracks": [{**FADE_TRACK, "duration": 3.0}]})
        assert FlowOrchestrator().run(nodes, edges).fingerprint() != FlowOrchestrator().run(other_nodes, other_edges).fingerprint()

    def test_non_finite_output_cannot_be_fingerprinted(self) -> None:
        nodes = [
            make_node("base", NodeType.CONSTANTS, {"number_value": 10}),
            make_node("exp", NodeType.CONSTANTS, {"number_value": 400}),
            make_node("m", NodeType.MATH_OP, {"operator": "power"}),
        ]
        edges = [make_edge("base", "m", target_port="input_a"), make_edge("exp", "m", target_port="input_b")]
        result = FlowOrchestrator().run(nodes, edges)
        with pytest.raises(ValueError, match="non-finite"):
            result.fingerprint()

    def test_partitions_resolve_batch_overrides(self) -> None:
        nodes = [
            make_node("c1", NodeType.CIRCLE),
            make_node("b", NodeType.BATCH, {"keys": ["en", "de"]}),
            make_node("ins", NodeType.INSERT),
            make_node(
                "anim",
                NodeType.ANIMATION,
                {"tracks": [FADE_TRACK], "batch_overrides_by_field": {"fade.to": {DEFAULT_OBJECT_MARKER: {"en": 0.1, "de": 0.9}}}},
            ),
            make_node("scene", NodeType.SCENE),
        ]
        edges = [make_edge("c1", "b"), make_edge("b", "ins"), make_edge("ins", "anim"), make_edge("anim", "scene")]
        result = FlowOrchestrator().run(nodes, edges)
        partitions = result.partitions()["scene"]
        assert [p.batch_key for p in partitions] == ["de", "en"]
        assert [p.animations[0].properties["to"] for p in partitions] == [0.9, 0.1]
        assert result.scenes["scene"].animations[0].properties["to"] == 0.2
