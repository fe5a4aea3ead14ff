# src/animflow/core/dag/graph.py
"""FlowGraph class: validation and traversal of an authored flow.

Wraps a NetworkX MultiDiGraph. Multiple edges between the same node pair are
legal (e.g. one source feeding both input1 and input2 of a merge), so edges
are keyed by their target port.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import networkx as nx
from networkx import MultiDiGraph

from animflow.contracts.enums import NodeType
from animflow.contracts.errors import CircularDependencyError, InvalidConnectionError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.types import NodeID


class FlowGraph:
    """Execution graph for one flow.

    Node authoring order is remembered and used to break ties in the
    topological order, so repeated runs visit nodes identically.
    """

    def __init__(self) -> None:
        self._graph: MultiDiGraph[str] = nx.MultiDiGraph()
        self._edges: list[FlowEdge] = []
        self._authoring_index: dict[str, int] = {}

    @classmethod
    def from_flow(cls, nodes: Iterable[FlowNode], edges: Iterable[FlowEdge]) -> FlowGraph:
        """Build and validate a graph.

        Raises:
            InvalidConnectionError: On duplicate node ids or dangling edges
            CircularDependencyError: If the graph has a cycle
        """
        graph = cls()
        for node in nodes:
            graph.add_node(node)
        for edge in edges:
            graph.add_edge(edge)
        graph.validate()
        return graph

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edges(self) -> Sequence[FlowEdge]:
        """All edges in authoring order."""
        return tuple(self._edges)

    def has_node(self, node_id: str) -> bool:
        """Check if node exists."""
        return self._graph.has_node(node_id)

    def get_node(self, node_id: str) -> FlowNode:
        # All nodes have "info" - added via add_node(), direct access is safe
        node: FlowNode = self._graph.nodes[node_id]["info"]
        return node

    def add_node(self, node: FlowNode) -> None:
        if self._graph.has_node(node.node_id):
            raise InvalidConnectionError(f"Duplicate node id: {node.node_id!r}", node_id=node.node_id)
        self._authoring_index[node.node_id] = len(self._authoring_index)
        self._graph.add_node(node.node_id, info=node)

    def add_edge(self, edge: FlowEdge) -> None:
        for endpoint in (edge.source, edge.target):
            if not self._graph.has_node(endpoint):
                raise InvalidConnectionError(
                    f"Edge {edge.describe_source()} -> {edge.target}:{edge.target_port} references unknown node '{endpoint}'",
                    node_id=endpoint,
                    details={"source": edge.source, "target": edge.target},
                )
        key = f"{edge.source_port}->{edge.target_port}"
        if self._graph.has_edge(edge.source, edge.target, key=key):
            raise InvalidConnectionError(
                f"Duplicate connection {edge.describe_source()} -> {edge.target}:{edge.target_port}",
                node_id=edge.target,
            )
        self._graph.add_edge(edge.source, edge.target, key=key, edge=edge)
        self._edges.append(edge)

    def is_acyclic(self) -> bool:
        """Check if the graph is acyclic (a valid DAG)."""
        return nx.is_directed_acyclic_graph(self._graph)

    def validate(self) -> None:
        """Validate the flow structure.

        Raises:
            CircularDependencyError: If the graph contains a cycle
        """
        if not self.is_acyclic():
            cycle = nx.find_cycle(self._graph)
            # MultiDiGraph returns (u, v, key) tuples
            path = [str(edge[0]) for edge in cycle]
            path.append(str(cycle[0][0]))
            raise CircularDependencyError(path)

    def topological_order(self) -> list[NodeID]:
        """Return node ids in execution order, ties broken by authoring order.

        Raises:
            CircularDependencyError: If graph has cycles
        """
        try:
            order = nx.lexicographical_topological_sort(self._graph, key=lambda n: self._authoring_index[n])
            return [NodeID(n) for n in order]
        except nx.NetworkXUnfeasible:
            self.validate()
            raise

    def incoming_edges(self, node_id: str) -> list[FlowEdge]:
        """Edges targeting `node_id`, in authoring order."""
        return [edge for edge in self._edges if edge.target == node_id]

    def ancestors(self, node_id: str) -> set[NodeID]:
        return {NodeID(n) for n in nx.ancestors(self._graph, node_id)}

    def nodes_of_type(self, node_type: NodeType) -> list[NodeID]:
        return [NodeID(n) for n, data in self._graph.nodes(data=True) if data["info"].node_type == node_type]
