# src/animflow/engine/orchestrator.py
"""FlowOrchestrator: runs a flow's nodes in topological order.

Coordinates:
- Graph construction and validation (FlowGraph)
- Deterministic topological walk
- Conditional routing: nodes starved by an untaken If/Else branch are skipped
- Duplicate object id checks on every non-merge node's incoming streams
- Resource guardrail on the total number of assembled animations

The run is single-threaded and synchronous. Either every visited node
completes or the first unrecovered error aborts the run.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from animflow.contracts.enums import NodeType
from animflow.contracts.errors import DebugTargetNotFoundError, DuplicateObjectIdsError, TooManyAnimationsError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.types import NodeID
from animflow.core.canonical import stable_hash
from animflow.core.config import EngineSettings, FlowDocument
from animflow.core.dag import FlowGraph
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.dispatch import execute_node
from animflow.engine.metadata import is_identified, iter_items
from animflow.scene.partitioner import AssembledScene, ScenePartition, resolve_partitions
from animflow.scene.transforms import DEFAULT_TRANSFORM_REGISTRY, TransformRegistry

slog = structlog.get_logger(__name__)

IF_ELSE_BRANCH_PORTS: frozenset[str] = frozenset({"true_path", "false_path"})


@dataclass
class RunResult:
    """Result of one flow run.

    Attributes:
        run_id: Random id for log correlation; not part of the fingerprint
        context: The final execution context (output table, animations, log)
        execution_order: Node ids in the order they executed
        skipped_nodes: Node ids skipped by conditional routing
    """

    run_id: str
    context: ExecutionContext
    execution_order: list[NodeID] = field(default_factory=list)
    skipped_nodes: list[NodeID] = field(default_factory=list)

    @property
    def scenes(self) -> Mapping[NodeID, AssembledScene]:
        return self.context.scenes

    def partitions(self) -> dict[NodeID, list[ScenePartition]]:
        """Every scene split per batch key, with batch overrides resolved."""
        return {scene_id: resolve_partitions(scene) for scene_id, scene in self.context.scenes.items()}

    def fingerprint(self) -> str:
        """SHA-256 over the canonical output table, scene animations and current time.

        Raises:
            ValueError: If any published value is NaN or infinite
        """
        outputs = {
            f"{node_id}:{port}": {"kind": value.kind, "data": value.data, "metadata": value.metadata}
            for (node_id, port), value in sorted(self.context.node_outputs.items())
        }
        return stable_hash(
            {
                "outputs": outputs,
                "scene_animations": self.context.scene_animations,
                "current_time": self.context.current_time,
            }
        )


class FlowOrchestrator:
    """Executes flows.

    Example:
        orchestrator = FlowOrchestrator(EngineSettings(max_animations_per_run=500))
        result = orchestrator.run(nodes, edges)
        for scene_id, partitions in result.partitions().items():
            ...
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        transform_registry: TransformRegistry = DEFAULT_TRANSFORM_REGISTRY,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._registry = transform_registry

    def run(self, nodes: Iterable[FlowNode], edges: Iterable[FlowEdge]) -> RunResult:
        """Execute every node of the flow.

        A debug target configured in settings only enables log capture; the
        whole flow still runs.

        Raises:
            DomainError: On any user-attributable configuration problem
            EngineInvariantError: On an internal consistency failure
        """
        graph = FlowGraph.from_flow(nodes, edges)
        target = self._settings.debug_target_node_id
        if target is not None and not graph.has_node(target):
            raise DebugTargetNotFoundError(target)
        return self._execute(graph, graph.topological_order(), debug_target=target)

    def run_debug(self, nodes: Iterable[FlowNode], edges: Iterable[FlowEdge], target_node_id: str) -> RunResult:
        """Execute the target node and its ancestors with debug capture on the target.

        Raises:
            DebugTargetNotFoundError: If `target_node_id` is not in the flow
        """
        graph = FlowGraph.from_flow(nodes, edges)
        if not graph.has_node(target_node_id):
            raise DebugTargetNotFoundError(target_node_id)
        needed = graph.ancestors(target_node_id) | {NodeID(target_node_id)}
        order = [node_id for node_id in graph.topological_order() if node_id in needed]
        return self._execute(graph, order, debug_target=target_node_id)

    def run_flow(self, document: FlowDocument) -> RunResult:
        """Run a loaded flow document, honouring its debug target if set."""
        nodes, edges = document.flow_nodes(), document.flow_edges()
        target = document.settings.debug_target_node_id
        if target is not None:
            return self.run_debug(nodes, edges, target)
        return self.run(nodes, edges)

    # =========================================================================
    # Execution
    # =========================================================================

    def _execute(self, graph: FlowGraph, order: Sequence[NodeID], *, debug_target: str | None) -> RunResult:
        run_id = uuid.uuid4().hex
        context = ExecutionContext(debug_target_node_id=debug_target)
        connections = graph.edges
        skipped: list[NodeID] = []

        with structlog.contextvars.bound_contextvars(run_id=run_id):
            slog.info("flow_run_started", node_count=graph.node_count, edge_count=len(connections), debug_target=debug_target)

            for node_id in order:
                node = graph.get_node(node_id)
                incoming = graph.incoming_edges(node_id)

                if should_skip_for_conditional_routing(incoming, graph, context):
                    slog.info("node_skipped_conditional_routing", node_id=node_id, node_type=node.node_type.value)
                    skipped.append(node_id)
                    continue

                if node.node_type is not NodeType.MERGE:
                    validate_no_duplicate_object_ids(node, incoming, context)

                slog.debug("node_executing", node_id=node_id, node_type=node.node_type.value)
                execute_node(node, context, connections, registry=self._registry)
                context.mark_executed(node_id)

            animation_count = len(context.scene_animations)
            if animation_count > self._settings.max_animations_per_run:
                raise TooManyAnimationsError(count=animation_count, limit=self._settings.max_animations_per_run)

            slog.info(
                "flow_run_completed",
                executed=len(context.executed_nodes),
                skipped=len(skipped),
                animations=animation_count,
                scenes=len(context.scenes),
                current_time=context.current_time,
            )

        return RunResult(run_id=run_id, context=context, execution_order=list(context.executed_nodes), skipped_nodes=skipped)


def should_skip_for_conditional_routing(
    incoming: Sequence[FlowEdge],
    graph: FlowGraph,
    context: ExecutionContext,
) -> bool:
    """True when some connected input port is starved by conditional routing.

    For each connected port with no published value on any of its edges, the
    node is skipped if every source is an If/Else branch port, or if no
    source node executed at all. Unconnected nodes are never skipped here.
    """
    by_port: dict[str, list[FlowEdge]] = defaultdict(list)
    for edge in incoming:
        by_port[edge.target_port].append(edge)

    executed = set(context.executed_nodes)
    for edges in by_port.values():
        if any(context.get_node_output(edge.source, edge.source_port) is not None for edge in edges):
            continue
        if all(
            graph.get_node(edge.source).node_type is NodeType.IF_ELSE and edge.source_port in IF_ELSE_BRANCH_PORTS for edge in edges
        ):
            return True
        if all(edge.source not in executed for edge in edges):
            return True
    return False


def validate_no_duplicate_object_ids(node: FlowNode, incoming: Sequence[FlowEdge], context: ExecutionContext) -> None:
    """Reject object ids arriving over more than one incoming edge.

    Raises:
        DuplicateObjectIdsError: Naming each duplicated id and its sources
    """
    sources_by_id: dict[str, list[str]] = defaultdict(list)
    for edge in incoming:
        value = context.get_node_output(edge.source, edge.source_port)
        if value is None:
            continue
        seen_on_edge: set[str] = set()
        for item in iter_items(value):
            if is_identified(item) and item["id"] not in seen_on_edge:
                seen_on_edge.add(item["id"])
                sources_by_id[item["id"]].append(edge.describe_source())

    duplicates = {object_id: sources for object_id, sources in sources_by_id.items() if len(sources) > 1}
    if duplicates:
        raise DuplicateObjectIdsError(node_id=node.node_id, node_name=node.display_name, duplicates=duplicates)
