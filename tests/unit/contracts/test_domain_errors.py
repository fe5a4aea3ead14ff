# tests/unit/contracts/test_domain_errors.py
"""Tests for the error taxonomy: codes, payloads and the invariant split."""

from __future__ import annotations

import pytest

from animflow.contracts.errors import (
    BatchDoubleTagError,
    BatchEmptyKeyError,
    CircularDependencyError,
    DivisionByZeroError,
    DomainError,
    DomainErrorCode,
    DuplicateObjectIdsError,
    EngineInvariantError,
    NaNResultError,
    TypeValidationError,
    UnknownNodeTypeError,
    format_id_list,
)


class TestFormatIdList:
    """Tests for truncated id rendering."""

    def test_short_list_is_rendered_in_full(self) -> None:
        assert format_id_list(["a", "b"]) == "a, b"

    def test_long_list_is_truncated_with_remainder(self) -> None:
        ids = [f"obj{i}" for i in range(25)]
        rendered = format_id_list(ids)
        assert rendered.endswith(" ...+5 more")
        assert "obj19" in rendered
        assert "obj20" not in rendered

    def test_custom_limit(self) -> None:
        assert format_id_list(["a", "b", "c"], limit=1) == "a ...+2 more"


class TestDomainErrorPayloads:
    """Each domain error carries a stable code, the node, and a payload."""

    def test_to_dict_shape(self) -> None:
        err = DivisionByZeroError(node_id="m1", node_name="Divide", dividend=4.0)
        payload = err.to_dict()
        assert payload["code"] == "ERR_DIVISION_BY_ZERO"
        assert payload["node_id"] == "m1"
        assert payload["node_name"] == "Divide"
        assert payload["is_user_error"] is True
        assert "4.0" in payload["message"]

    def test_batch_empty_key_lists_ids(self) -> None:
        err = BatchEmptyKeyError(node_id="b", node_name="Batch", object_ids=["x", "y"])
        assert err.code is DomainErrorCode.BATCH_EMPTY_KEY
        assert "[x, y]" in err.message
        assert err.details["object_ids"] == ["x", "y"]

    def test_batch_double_tag_message(self) -> None:
        err = BatchDoubleTagError(node_id="b", node_name="Batch 2", object_id="a", existing_keys=["en"], new_keys=["de"])
        assert "Only one Batch node allowed per object path" in err.message
        assert err.details == {"object_id": "a", "existing_keys": ["en"], "new_keys": ["de"]}

    def test_duplicate_object_ids_sorted_and_sourced(self) -> None:
        err = DuplicateObjectIdsError(node_id="n", node_name="Anim", duplicates={"b": ["s1:output", "s2:output"], "a": ["s1:output", "s3:output"]})
        assert err.details["object_ids"] == ["a", "b"]
        assert err.details["sources"]["b"] == ["s1:output", "s2:output"]
        assert "Merge node" in err.message

    def test_type_validation_attributes(self) -> None:
        err = TypeValidationError(node_id="cmp", port="input_a", expected="number", received="string", received_from="c:output")
        assert err.port == "input_a"
        assert err.expected == "number"
        assert err.received_from == "c:output"
        assert "from c:output" in err.message

    def test_nan_result_names_operands(self) -> None:
        err = NaNResultError(node_id="m", node_name="Math", operator="power", operands=[-8.0, 0.5])
        assert "power(-8.0, 0.5)" in err.message

    def test_circular_dependency_renders_cycle(self) -> None:
        err = CircularDependencyError(["a", "b", "a"])
        assert "a -> b -> a" in err.message
        assert err.code is DomainErrorCode.CIRCULAR_DEPENDENCY


class TestErrorCategories:
    """Invariant violations are never domain errors."""

    def test_engine_invariant_is_not_domain_error(self) -> None:
        assert not issubclass(EngineInvariantError, DomainError)

    def test_unknown_node_type_is_not_a_user_error(self) -> None:
        err = UnknownNodeTypeError("sprocket", node_id="x")
        assert isinstance(err, DomainError)
        assert err.is_user_error is False
        assert DomainError.is_user_error is True

    def test_domain_error_is_raisable_and_catchable(self) -> None:
        with pytest.raises(DomainError) as exc_info:
            raise BatchEmptyKeyError(node_id="b", node_name="Batch", object_ids=["a"])
        assert exc_info.value.node_id == "b"
