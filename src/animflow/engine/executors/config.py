"""Typed node configurations.

Each node type parses its free-form `data` into a NodeConfig subclass:
- Unknown keys are ignored (the editor stores UI-only fields alongside config)
- Factory method with clear error messages naming the node
- Enum-typed operators, so a corrupted operator fails at parse time

Example usage:
    class DuplicateConfig(NodeConfig):
        count: int = 1

    cfg = DuplicateConfig.for_node(node)
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, Field, ValidationError, field_validator

from animflow.contracts.assignments import ObjectAssignments
from animflow.contracts.enums import BooleanOperator, CompareOperator, ConstantValueType, MathOperator
from animflow.contracts.errors import NodeConfigError
from animflow.contracts.flow import FlowNode
from animflow.contracts.tracks import AnimationTrack
from animflow.engine.bindings import VariableBinding


class NodeConfig(BaseModel):
    """Base class for typed node configurations."""

    model_config = {"extra": "ignore", "frozen": True}

    @classmethod
    def from_dict(cls, config: dict[str, Any], *, node_id: str | None = None, node_name: str | None = None) -> Self:
        """Create config from dict with clear error on validation failure.

        Raises:
            NodeConfigError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise NodeConfigError(
                f"Invalid configuration for {cls.__name__}: config must be a dict, got {type(config).__name__}.",
                node_id=node_id,
                node_name=node_name,
            )
        try:
            return cls.model_validate(config)
        except ValidationError as e:
            raise NodeConfigError(f"Invalid configuration for {cls.__name__}: {e}", node_id=node_id, node_name=node_name) from e
        except ValueError as e:
            raise NodeConfigError(f"Invalid configuration for {cls.__name__}: {e}", node_id=node_id, node_name=node_name) from e

    @classmethod
    def for_node(cls, node: FlowNode) -> Self:
        return cls.from_dict(dict(node.data), node_id=node.node_id, node_name=node.display_name)


class BindableConfig(NodeConfig):
    """Config for nodes whose keys may be supplied by result nodes."""

    variable_bindings: dict[str, VariableBinding] = Field(default_factory=dict)
    variable_bindings_by_object: dict[str, dict[str, VariableBinding]] = Field(default_factory=dict)


# =============================================================================
# Object nodes
# =============================================================================


class Point(BaseModel):
    model_config = {"extra": "forbid", "frozen": True}

    x: float = 0.0
    y: float = 0.0


class GeometryConfig(NodeConfig):
    """Shared config for circle, rectangle and triangle nodes.

    Shape-specific fields (radius, width, height, size) land in `properties`.
    """

    position: Point = Field(default_factory=Point)
    rotation: float = 0.0
    scale: Point = Field(default_factory=lambda: Point(x=1.0, y=1.0))
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    fill_color: str = "#4444ff"
    stroke_color: str = "#ffffff"
    stroke_width: float = Field(default=0.0, ge=0.0)
    radius: float = Field(default=50.0, gt=0)
    width: float = Field(default=100.0, gt=0)
    height: float = Field(default=100.0, gt=0)
    size: float = Field(default=80.0, gt=0)


class InsertConfig(NodeConfig):
    appearance_time: float = Field(default=0.0, ge=0.0)


class AnimationConfig(BindableConfig):
    """Animation node: tracks plus node-local assignments and batch overrides."""

    tracks: list[AnimationTrack] = Field(default_factory=list)
    per_object_assignments: dict[str, ObjectAssignments] = Field(default_factory=dict)
    batch_overrides_by_field: dict[str, dict[str, dict[str, Any]]] = Field(
        default_factory=dict,
        description="field path -> object id (or '__default_object__') -> {batch key | 'default': value}",
    )


class MergeConfig(NodeConfig):
    input_port_count: int = Field(default=2, ge=1)


class DuplicateConfig(NodeConfig):
    # Bounds are enforced by the executor so violations raise named domain errors
    count: int | None = None


class FilterConfig(NodeConfig):
    selected_object_ids: list[str] = Field(default_factory=list)


class BatchConfig(BindableConfig):
    key: Any = None
    keys: list[Any] = Field(default_factory=list)


class SceneConfig(NodeConfig):
    duration: float | None = Field(default=None, gt=0)
    background_color: str = "#000000"


# =============================================================================
# Logic nodes
# =============================================================================


class ConstantsConfig(NodeConfig):
    value_type: ConstantValueType = ConstantValueType.NUMBER
    number_value: int | float = 0
    string_value: str = ""
    boolean_value: str = "false"
    color_value: str = "#ffffff"

    @field_validator("boolean_value", mode="before")
    @classmethod
    def _boolean_as_text(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return "true" if v else "false"
        return v


class CompareConfig(NodeConfig):
    operator: CompareOperator = CompareOperator.GT


class BooleanOpConfig(NodeConfig):
    operator: BooleanOperator = BooleanOperator.AND


class MathOpConfig(NodeConfig):
    operator: MathOperator = MathOperator.ADD


class ResultConfig(NodeConfig):
    label: str = ""
