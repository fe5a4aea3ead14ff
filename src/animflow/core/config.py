# src/animflow/core/config.py
"""
Configuration schema and loading for animflow runs.

Uses Pydantic for validation and PyYAML for loading flow documents.
Settings are frozen (immutable) after construction. JSON is valid YAML,
so flows exported by the editor as JSON load through the same path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from animflow.contracts.enums import NodeType
from animflow.contracts.errors import InvalidConnectionError, UnknownNodeTypeError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.types import NodeID, PortName

DEFAULT_MAX_ANIMATIONS_PER_RUN = 100_000


class EngineSettings(BaseModel):
    """Run-level engine configuration.

    Example YAML:
        settings:
          debug_target_node_id: result_1
          max_animations_per_run: 5000
          log_level: DEBUG
    """

    model_config = {"frozen": True, "extra": "forbid"}

    debug_target_node_id: str | None = Field(
        default=None,
        description="Capture debug log entries for exactly this node",
    )
    max_animations_per_run: int = Field(
        default=DEFAULT_MAX_ANIMATIONS_PER_RUN,
        gt=0,
        description="Abort runs that assemble more scene animations than this",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_logs: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class NodeSettings(BaseModel):
    """A node as written in a flow document."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    display_name: str = ""
    data: dict[str, Any] = Field(default_factory=dict)

    def to_flow_node(self) -> FlowNode:
        """Resolve the type tag into the closed NodeType set.

        Raises:
            UnknownNodeTypeError: If the type tag is not a known node type
        """
        try:
            node_type = NodeType(self.type)
        except ValueError:
            raise UnknownNodeTypeError(self.type, node_id=self.id) from None
        return FlowNode(node_id=NodeID(self.id), node_type=node_type, display_name=self.display_name, data=self.data)


class EdgeSettings(BaseModel):
    """An edge as written in a flow document."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = ""
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    source_port: str = "output"
    target_port: str = "input"
    kind: Literal["data", "control"] = Field(default="data", description="Only data edges take part in execution")

    def to_flow_edge(self) -> FlowEdge:
        return FlowEdge(
            source=NodeID(self.source),
            target=NodeID(self.target),
            source_port=PortName(self.source_port),
            target_port=PortName(self.target_port),
            edge_id=self.id,
        )


class FlowDocument(BaseModel):
    """A complete flow: nodes, edges and run settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    nodes: list[NodeSettings] = Field(default_factory=list)
    edges: list[EdgeSettings] = Field(default_factory=list)
    settings: EngineSettings = Field(default_factory=EngineSettings)

    @model_validator(mode="after")
    def _validate_unique_node_ids(self) -> FlowDocument:
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id!r}")
            seen.add(node.id)
        return self

    def flow_nodes(self) -> list[FlowNode]:
        return [node.to_flow_node() for node in self.nodes]

    def flow_edges(self) -> list[FlowEdge]:
        """Data edges only; control edges are editor-level ordering hints."""
        return [edge.to_flow_edge() for edge in self.edges if edge.kind == "data"]


def parse_flow(raw: dict[str, Any]) -> FlowDocument:
    """Validate a raw flow mapping.

    Raises:
        InvalidConnectionError: If the document structure is invalid
    """
    if not isinstance(raw, dict):
        raise InvalidConnectionError(f"Flow document must be a mapping, got {type(raw).__name__}")
    try:
        return FlowDocument.model_validate(raw)
    except ValidationError as e:
        raise InvalidConnectionError(f"Invalid flow document: {e}") from e


def load_flow(path: Path) -> FlowDocument:
    """Load a flow document from a YAML or JSON file.

    Args:
        path: Path to the flow file

    Returns:
        Validated FlowDocument

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidConnectionError: If the document is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Flow file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidConnectionError(f"Flow file {path} is not valid YAML/JSON: {e}") from e
    return parse_flow(raw if raw is not None else {})


__all__ = [
    "DEFAULT_MAX_ANIMATIONS_PER_RUN",
    "EdgeSettings",
    "EngineSettings",
    "FlowDocument",
    "NodeSettings",
    "load_flow",
    "parse_flow",
]
