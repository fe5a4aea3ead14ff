# tests/unit/engine/executors/test_batch_executor.py
"""Tests for the batch executor: key resolution, tagging and its two invariants."""

from __future__ import annotations

from typing import Any

import pytest

from animflow.contracts.enums import NodeType
from animflow.contracts.errors import BatchDoubleTagError, BatchEmptyKeyError
from animflow.contracts.values import MetadataKey
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.batch import execute_batch, normalize_batch_keys
from animflow.testing import make_edge, make_node, make_object, publish_data, publish_objects


def _batch(context: ExecutionContext, data: dict[str, Any], *, node_id: str = "b", source: str = "src") -> list[Any]:
    node = make_node(node_id, NodeType.BATCH, data, display_name="Locale")
    execute_batch(node, context, [make_edge(source, node_id)])
    output = context.get_node_output(node_id)
    assert output is not None
    return list(output.data)


class TestNormalizeBatchKeys:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("en", ["en"]),
            ("  en ", ["en"]),
            (["en", "de", "en", ""], ["en", "de"]),
            (("x",), ["x"]),
            (3, ["3"]),
            (3.0, ["3"]),
            (2.5, ["2.5"]),
            (True, ["true"]),
            (None, []),
            ({"en": 1}, []),
            ([None, {"a": 1}, ["nested"], "ok"], ["ok"]),
            ("   ", []),
        ],
    )
    def test_normalization(self, raw: Any, expected: list[str]) -> None:
        assert normalize_batch_keys(raw) == expected


class TestKeyResolution:
    def test_literal_key(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a")])
        [tagged] = _batch(context, {"key": "en"})
        assert tagged["batch"] is True
        assert tagged["batch_keys"] == ["en"]

    def test_legacy_keys_list(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a")])
        [tagged] = _batch(context, {"keys": ["en", "de"]})
        assert tagged["batch_keys"] == ["en", "de"]

    def test_literal_key_beats_legacy_list(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a")])
        [tagged] = _batch(context, {"key": "fr", "keys": ["en"]})
        assert tagged["batch_keys"] == ["fr"]

    def test_global_binding_beats_literal(self, context: ExecutionContext) -> None:
        publish_data(context, "r_locale", "de")
        publish_objects(context, "src", [make_object("a")])
        data = {"key": "fr", "variable_bindings": {"key": {"bound_result_node_id": "r_locale"}}}
        [tagged] = _batch(context, data)
        assert tagged["batch_keys"] == ["de"]

    def test_object_binding_beats_global(self, context: ExecutionContext) -> None:
        publish_data(context, "r_global", "de")
        publish_data(context, "r_a", ["it", "es"])
        publish_objects(context, "src", [make_object("a"), make_object("b")])
        data = {
            "variable_bindings": {"key": {"bound_result_node_id": "r_global"}},
            "variable_bindings_by_object": {"a": {"key": {"bound_result_node_id": "r_a"}}},
        }
        a, b = _batch(context, data)
        assert a["batch_keys"] == ["it", "es"]
        assert b["batch_keys"] == ["de"]

    def test_empty_binding_falls_through(self, context: ExecutionContext) -> None:
        publish_data(context, "r_blank", "  ")
        publish_objects(context, "src", [make_object("a")])
        data = {"key": "en", "variable_bindings": {"key": {"bound_result_node_id": "r_blank"}}}
        [tagged] = _batch(context, data)
        assert tagged["batch_keys"] == ["en"]


class TestBatchInvariants:
    def test_empty_keys_lists_every_offender(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a"), make_object("b")])
        with pytest.raises(BatchEmptyKeyError) as exc_info:
            _batch(context, {})
        assert exc_info.value.details["object_ids"] == ["a", "b"]
        assert exc_info.value.node_name == "Locale"

    def test_identical_retag_is_a_no_op(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a")])
        _batch(context, {"keys": ["en", "de"]}, node_id="b1")
        [tagged] = _batch(context, {"keys": ["de", "en"]}, node_id="b2", source="b1")
        assert tagged["batch_keys"] == ["en", "de"]

    def test_differing_retag_rejected(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a")])
        _batch(context, {"key": "en"}, node_id="b1")
        with pytest.raises(BatchDoubleTagError) as exc_info:
            _batch(context, {"key": "de"}, node_id="b2", source="b1")
        assert exc_info.value.details["existing_keys"] == ["en"]
        assert exc_info.value.details["new_keys"] == ["de"]

    def test_legacy_single_key_field_replaced(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [make_object("a", batch=True, batch_key="en")])
        [tagged] = _batch(context, {"key": "en"})
        assert "batch_key" not in tagged
        assert tagged["batch_keys"] == ["en"]


class TestBatchOutput:
    def test_non_identified_items_pass_untagged(self, context: ExecutionContext) -> None:
        publish_objects(context, "src", [{"caption": "x"}, make_object("a")])
        caption, tagged = _batch(context, {"key": "en"})
        assert caption == {"caption": "x"}
        assert tagged["batch"] is True

    def test_metadata_passes_through(self, context: ExecutionContext) -> None:
        publish_objects(
            context,
            "src",
            [make_object("a")],
            metadata={MetadataKey.TIME_CURSOR: {"a": 2.0}, MetadataKey.BATCH_OVERRIDES: {"a": {"fade.to": {"en": 1}}}},
        )
        _batch(context, {"key": "en"})
        output = context.get_node_output("b")
        assert output is not None
        assert output.metadata[MetadataKey.TIME_CURSOR] == {"a": 2.0}
        assert output.metadata[MetadataKey.BATCH_OVERRIDES] == {"a": {"fade.to": {"en": 1}}}
