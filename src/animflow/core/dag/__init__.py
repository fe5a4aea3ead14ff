"""DAG construction and validation for flows."""

from animflow.core.dag.graph import FlowGraph

__all__ = ["FlowGraph"]
