"""Error taxonomy for flow execution.

Two categories exist and must never be folded together:

- DomainError: an expected, user-attributable configuration problem (missing
  inputs, limits exceeded, division by zero, empty batch keys). Carries a
  stable code, the offending node's id and display name, and a payload
  rich enough to render an actionable message. Surfaced verbatim; aborts
  the run.
- EngineInvariantError: a programming bug inside the engine (e.g. a merge
  publishing two objects with one id). Not something the user can fix by
  editing their graph; callers should report it, not retry it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any, ClassVar

# Truncation cap for object id lists rendered into error messages
MAX_DISPLAYED_IDS = 20


class DomainErrorCode(StrEnum):
    """Stable machine-readable codes for DomainError subclasses."""

    CIRCULAR_DEPENDENCY = "ERR_CIRCULAR_DEPENDENCY"
    INVALID_CONNECTION = "ERR_INVALID_CONNECTION"
    UNKNOWN_NODE_TYPE = "ERR_UNKNOWN_NODE_TYPE"
    NODE_CONFIG_INVALID = "ERR_NODE_CONFIG_INVALID"
    DEBUG_TARGET_NOT_FOUND = "ERR_DEBUG_TARGET_NOT_FOUND"
    DUPLICATE_OBJECT_IDS = "ERR_DUPLICATE_OBJECT_IDS"
    DUPLICATE_INVALID = "ERR_DUPLICATE_INVALID"
    DUPLICATE_COUNT_EXCEEDED = "ERR_DUPLICATE_COUNT_EXCEEDED"
    BATCH_EMPTY_KEY = "ERR_BATCH_EMPTY_KEY"
    BATCH_DOUBLE_TAG = "ERR_BATCH_DOUBLE_TAG"
    MULTIPLE_RESULT_VALUES = "ERR_MULTIPLE_RESULT_VALUES"
    TYPE_VALIDATION = "ERR_TYPE_VALIDATION"
    MISSING_INPUT = "ERR_MISSING_INPUT"
    DIVISION_BY_ZERO = "ERR_DIVISION_BY_ZERO"
    MODULO_BY_ZERO = "ERR_MODULO_BY_ZERO"
    NEGATIVE_SQRT = "ERR_NEGATIVE_SQRT"
    NAN_RESULT = "ERR_NAN_RESULT"
    MISSING_INSERT_CONNECTION = "ERR_MISSING_INSERT_CONNECTION"
    TOO_MANY_ANIMATIONS = "ERR_TOO_MANY_ANIMATIONS"


def format_id_list(ids: Sequence[str], limit: int = MAX_DISPLAYED_IDS) -> str:
    """Render ids for a message, truncated with a remainder count past `limit`."""
    shown = ", ".join(ids[:limit])
    remaining = len(ids) - limit
    return f"{shown} ...+{remaining} more" if remaining > 0 else shown


class DomainError(Exception):
    """Base class for user-attributable flow errors.

    Attributes:
        message: Human-readable description
        code: Stable DomainErrorCode
        node_id: Offending node, when one is known
        node_name: Display name of the offending node
        details: Structured payload (operands, object ids, sources)
    """

    is_user_error: ClassVar[bool] = True

    def __init__(
        self,
        message: str,
        code: DomainErrorCode,
        *,
        node_id: str | None = None,
        node_name: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.node_id = node_id
        self.node_name = node_name
        self.details: dict[str, Any] = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses and CLI JSON output."""
        return {
            "code": self.code.value,
            "message": self.message,
            "node_id": self.node_id,
            "node_name": self.node_name,
            "details": self.details,
            "is_user_error": self.is_user_error,
        }


class CircularDependencyError(DomainError):
    """Raised when the flow graph contains a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        super().__init__(
            f"Flow contains a circular dependency: {' -> '.join(cycle)}",
            DomainErrorCode.CIRCULAR_DEPENDENCY,
            details={"cycle": list(cycle)},
        )


class InvalidConnectionError(DomainError):
    """Raised when an edge references a missing node or nodes share an id."""

    def __init__(self, message: str, *, node_id: str | None = None, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, DomainErrorCode.INVALID_CONNECTION, node_id=node_id, details=details)


class UnknownNodeTypeError(DomainError):
    """Raised when a node's type tag is not a known NodeType.

    Usually an editor/engine version mismatch rather than a user mistake.
    """

    is_user_error: ClassVar[bool] = False

    def __init__(self, node_type: str, *, node_id: str | None = None) -> None:
        super().__init__(
            f"Unknown node type: {node_type!r}",
            DomainErrorCode.UNKNOWN_NODE_TYPE,
            node_id=node_id,
            details={"node_type": node_type},
        )


class NodeConfigError(DomainError):
    """Raised when a node's configuration data fails validation."""

    def __init__(self, message: str, *, node_id: str | None = None, node_name: str | None = None) -> None:
        super().__init__(message, DomainErrorCode.NODE_CONFIG_INVALID, node_id=node_id, node_name=node_name)


class DebugTargetNotFoundError(DomainError):
    """Raised when a debug run names a node that is not in the flow."""

    def __init__(self, node_id: str) -> None:
        super().__init__(
            f"Debug target node '{node_id}' does not exist in this flow",
            DomainErrorCode.DEBUG_TARGET_NOT_FOUND,
            node_id=node_id,
        )


class DuplicateObjectIdsError(DomainError):
    """Raised when the same object id reaches a non-merge node through several edges.

    Only merge nodes may combine streams that share object ids.
    """

    def __init__(self, *, node_id: str, node_name: str, duplicates: Mapping[str, Sequence[str]]) -> None:
        ids = sorted(duplicates)
        super().__init__(
            f"Node '{node_name}' receives duplicate object ids from multiple connections: [{format_id_list(ids)}]. Use a Merge node to combine these streams.",
            DomainErrorCode.DUPLICATE_OBJECT_IDS,
            node_id=node_id,
            node_name=node_name,
            details={"object_ids": ids, "sources": {k: list(v) for k, v in duplicates.items()}},
        )


class DuplicateNodeError(DomainError):
    """Raised when a duplicate node is misconfigured or starved of input."""

    def __init__(self, message: str, *, node_id: str, node_name: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, DomainErrorCode.DUPLICATE_INVALID, node_id=node_id, node_name=node_name, details=details)


class DuplicateCountExceededError(DomainError):
    """Raised when a duplicate node asks for more copies than allowed per object."""

    def __init__(self, *, node_id: str, node_name: str, count: int, max_count: int) -> None:
        super().__init__(
            f"Duplicate node '{node_name}' requests {count} copies; the maximum is {max_count}",
            DomainErrorCode.DUPLICATE_COUNT_EXCEEDED,
            node_id=node_id,
            node_name=node_name,
            details={"count": count, "max_count": max_count},
        )


class BatchEmptyKeyError(DomainError):
    """Raised when a batch node cannot resolve any key for one or more objects."""

    def __init__(self, *, node_id: str, node_name: str, object_ids: Sequence[str]) -> None:
        super().__init__(
            f"Batch node '{node_name}' received objects with empty keys: [{format_id_list(object_ids)}]",
            DomainErrorCode.BATCH_EMPTY_KEY,
            node_id=node_id,
            node_name=node_name,
            details={"object_ids": list(object_ids)},
        )


class BatchDoubleTagError(DomainError):
    """Raised when an already-tagged object is re-tagged with a different key set."""

    def __init__(self, *, node_id: str, node_name: str, object_id: str, existing_keys: Sequence[str], new_keys: Sequence[str]) -> None:
        super().__init__(
            f"Batch node '{node_name}' received already-tagged objects. Only one Batch node allowed per object path.",
            DomainErrorCode.BATCH_DOUBLE_TAG,
            node_id=node_id,
            node_name=node_name,
            details={"object_id": object_id, "existing_keys": list(existing_keys), "new_keys": list(new_keys)},
        )


class MultipleResultValuesError(DomainError):
    """Raised when a result node has more than one connected input."""

    def __init__(self, *, node_id: str, node_name: str, sources: Sequence[str]) -> None:
        super().__init__(
            f"Result node '{node_name}' accepts one input but {len(sources)} are connected: {', '.join(sources)}",
            DomainErrorCode.MULTIPLE_RESULT_VALUES,
            node_id=node_id,
            node_name=node_name,
            details={"sources": list(sources)},
        )


class TypeValidationError(DomainError):
    """Raised when a logic port receives a value of the wrong primitive type."""

    def __init__(
        self,
        *,
        node_id: str,
        port: str,
        expected: str,
        received: str,
        received_from: str | None = None,
    ) -> None:
        source = f" from {received_from}" if received_from else ""
        super().__init__(
            f"Port '{port}' of node '{node_id}' expects {expected} but received {received}{source}",
            DomainErrorCode.TYPE_VALIDATION,
            node_id=node_id,
            details={"port": port, "expected": expected, "received": received, "received_from": received_from},
        )
        self.port = port
        self.expected = expected
        self.received = received
        self.received_from = received_from


class MissingInputError(DomainError):
    """Raised when a logic node's required port has nothing connected."""

    def __init__(self, *, node_id: str, node_name: str, port: str) -> None:
        super().__init__(
            f"Node '{node_name}' requires an input on port '{port}'",
            DomainErrorCode.MISSING_INPUT,
            node_id=node_id,
            node_name=node_name,
            details={"port": port},
        )


class DivisionByZeroError(DomainError):
    """Raised when a math node divides by zero."""

    def __init__(self, *, node_id: str, node_name: str, dividend: float) -> None:
        super().__init__(
            f"Math node '{node_name}' cannot divide {dividend} by zero",
            DomainErrorCode.DIVISION_BY_ZERO,
            node_id=node_id,
            node_name=node_name,
            details={"input_a": dividend, "input_b": 0},
        )


class ModuloByZeroError(DomainError):
    """Raised when a math node takes a remainder modulo zero."""

    def __init__(self, *, node_id: str, node_name: str, dividend: float) -> None:
        super().__init__(
            f"Math node '{node_name}' cannot compute {dividend} modulo zero",
            DomainErrorCode.MODULO_BY_ZERO,
            node_id=node_id,
            node_name=node_name,
            details={"input_a": dividend, "input_b": 0},
        )


class NegativeSquareRootError(DomainError):
    """Raised when a math node takes the square root of a negative number."""

    def __init__(self, *, node_id: str, node_name: str, operand: float) -> None:
        super().__init__(
            f"Math node '{node_name}' cannot take the square root of negative number {operand}",
            DomainErrorCode.NEGATIVE_SQRT,
            node_id=node_id,
            node_name=node_name,
            details={"input_a": operand},
        )


class NaNResultError(DomainError):
    """Raised when a math operation produces NaN."""

    def __init__(self, *, node_id: str, node_name: str, operator: str, operands: Sequence[float]) -> None:
        super().__init__(
            f"Math node '{node_name}' produced NaN from {operator}({', '.join(str(o) for o in operands)})",
            DomainErrorCode.NAN_RESULT,
            node_id=node_id,
            node_name=node_name,
            details={"operator": operator, "operands": list(operands)},
        )


class MissingInsertConnectionError(DomainError):
    """Raised when a scene node receives no objects with an appearance time."""

    def __init__(self, *, node_id: str, node_name: str) -> None:
        super().__init__(
            f"Scene '{node_name}' has no inserted objects. Connect objects through an Insert node.",
            DomainErrorCode.MISSING_INSERT_CONNECTION,
            node_id=node_id,
            node_name=node_name,
        )


class TooManyAnimationsError(DomainError):
    """Raised when a run produces more scene animations than the configured limit."""

    def __init__(self, *, count: int, limit: int) -> None:
        super().__init__(
            f"Run produced {count} animations, exceeding the limit of {limit}",
            DomainErrorCode.TOO_MANY_ANIMATIONS,
            details={"count": count, "limit": limit},
        )


class EngineInvariantError(Exception):
    """Raised when the engine violates one of its own invariants.

    This is a bug in animflow, not a problem with the user's flow. It is
    deliberately not a DomainError so callers cannot mistake it for
    something to fix by editing the graph.
    """

    pass
