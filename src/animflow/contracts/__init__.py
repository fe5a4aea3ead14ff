"""Shared contracts for cross-boundary data types.

Dataclasses, enums, pydantic models and errors that cross the boundaries
between the context, the executors and the scene assembler live here.

Import patterns:
    from animflow.contracts import NodeType, ExecutionValue, DomainError

    # Settings and flow documents pull in YAML loading; import from core
    from animflow.core.config import EngineSettings, FlowDocument
"""

from animflow.contracts.assignments import ObjectAssignments, TrackOverride, merge_object_assignments
from animflow.contracts.enums import (
    BooleanOperator,
    CompareOperator,
    ConstantValueType,
    Easing,
    LogicDataType,
    MathOperator,
    NodeType,
    PortKind,
    TrackType,
)
from animflow.contracts.errors import (
    BatchDoubleTagError,
    BatchEmptyKeyError,
    CircularDependencyError,
    DebugTargetNotFoundError,
    DivisionByZeroError,
    DomainError,
    DomainErrorCode,
    DuplicateCountExceededError,
    DuplicateNodeError,
    DuplicateObjectIdsError,
    EngineInvariantError,
    InvalidConnectionError,
    MissingInputError,
    MissingInsertConnectionError,
    ModuloByZeroError,
    MultipleResultValuesError,
    NaNResultError,
    NegativeSquareRootError,
    NodeConfigError,
    TooManyAnimationsError,
    TypeValidationError,
    UnknownNodeTypeError,
)
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.sentinels import NO_INPUT, NoInputSentinel
from animflow.contracts.tracks import AnimationTrack, SceneAnimationTrack, TrackIdentifier
from animflow.contracts.types import BatchKey, FieldPath, NodeID, ObjectID, PortName
from animflow.contracts.values import ExecutionLogEntry, ExecutionValue, MetadataKey, TypedValue

__all__ = [  # Grouped by category for readability
    # assignments
    "ObjectAssignments",
    "TrackOverride",
    "merge_object_assignments",
    # enums
    "BooleanOperator",
    "CompareOperator",
    "ConstantValueType",
    "Easing",
    "LogicDataType",
    "MathOperator",
    "NodeType",
    "PortKind",
    "TrackType",
    # errors
    "BatchDoubleTagError",
    "BatchEmptyKeyError",
    "CircularDependencyError",
    "DebugTargetNotFoundError",
    "DivisionByZeroError",
    "DomainError",
    "DomainErrorCode",
    "DuplicateCountExceededError",
    "DuplicateNodeError",
    "DuplicateObjectIdsError",
    "EngineInvariantError",
    "InvalidConnectionError",
    "MissingInputError",
    "MissingInsertConnectionError",
    "ModuloByZeroError",
    "MultipleResultValuesError",
    "NaNResultError",
    "NegativeSquareRootError",
    "NodeConfigError",
    "TooManyAnimationsError",
    "TypeValidationError",
    "UnknownNodeTypeError",
    # flow
    "FlowEdge",
    "FlowNode",
    # sentinels
    "NO_INPUT",
    "NoInputSentinel",
    # tracks
    "AnimationTrack",
    "SceneAnimationTrack",
    "TrackIdentifier",
    # types
    "BatchKey",
    "FieldPath",
    "NodeID",
    "ObjectID",
    "PortName",
    # values
    "ExecutionLogEntry",
    "ExecutionValue",
    "MetadataKey",
    "TypedValue",
]
