"""Flow graph contracts: nodes and the edges that connect their ports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from animflow.contracts.enums import NodeType
from animflow.contracts.types import NodeID, PortName


@dataclass(frozen=True, slots=True)
class FlowNode:
    """One typed unit of computation in the authored graph.

    Attributes:
        node_id: Unique node identifier
        node_type: Closed NodeType tag used for executor dispatch
        display_name: Name shown to users in error messages
        data: Free-form configuration; parsed by the node's NodeConfig
    """

    node_id: NodeID
    node_type: NodeType
    display_name: str = ""
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the config so executors cannot edit the authored graph
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
        if not self.display_name:
            object.__setattr__(self, "display_name", str(self.node_id))


@dataclass(frozen=True, slots=True)
class FlowEdge:
    """A connection from one node's output port to another node's input port."""

    source: NodeID
    target: NodeID
    source_port: PortName = PortName("output")
    target_port: PortName = PortName("input")
    edge_id: str = ""

    def describe_source(self) -> str:
        """Render as 'node:port' for error messages."""
        return f"{self.source}:{self.source_port}"
