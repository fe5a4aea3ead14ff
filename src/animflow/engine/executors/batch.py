"""Batch executor: tags objects with the batch keys their scene replica uses.

Keys resolve per object from the first non-empty source:
1. a per-object binding for `key`
2. a global binding for `key`
3. the literal `key` configured on the node
4. the legacy `keys` list

Objects are tagged `batch=True` with `batch_keys`. An object reaching a second
Batch node may only be re-tagged with the same key set.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from animflow.contracts.enums import PortKind
from animflow.contracts.errors import BatchDoubleTagError, BatchEmptyKeyError
from animflow.contracts.flow import FlowEdge, FlowNode
from animflow.contracts.types import SceneObject
from animflow.engine.bindings import BindingReader
from animflow.engine.context import ExecutionContext
from animflow.engine.executors.config import BatchConfig
from animflow.engine.metadata import collect_object_metadata, is_identified, iter_items
from animflow.scene.partitioner import object_batch_keys

slog = structlog.get_logger(__name__)


def normalize_batch_keys(value: Any) -> list[str]:
    """Turn a raw key source into trimmed, non-empty, de-duplicated strings."""
    raw = value if isinstance(value, list | tuple) else [value]
    keys: list[str] = []
    for item in raw:
        if item is None or isinstance(item, dict | list):
            continue
        if isinstance(item, bool):
            text = "true" if item else "false"
        elif isinstance(item, float) and item.is_integer():
            text = str(int(item))
        else:
            text = str(item).strip()
        if text and text not in keys:
            keys.append(text)
    return keys


def resolve_object_keys(object_id: str, cfg: BatchConfig, reader: BindingReader) -> list[str]:
    """Keys for one object from the first source that yields any."""
    sources = (reader.read_object(object_id, "key"), reader.read_global("key"), cfg.key, cfg.keys)
    for source in sources:
        keys = normalize_batch_keys(source)
        if keys:
            return keys
    return []


def _tag(
    node: FlowNode,
    obj: SceneObject,
    keys: list[str],
) -> SceneObject:
    existing = object_batch_keys(obj)
    if existing and set(existing) != set(keys):
        raise BatchDoubleTagError(
            node_id=node.node_id,
            node_name=node.display_name,
            object_id=obj["id"],
            existing_keys=existing,
            new_keys=keys,
        )
    tagged = {**obj, "batch": True, "batch_keys": existing or keys}
    tagged.pop("batch_key", None)
    return tagged


def execute_batch(node: FlowNode, context: ExecutionContext, connections: Sequence[FlowEdge]) -> None:
    cfg = BatchConfig.for_node(node)
    reader = BindingReader(context, cfg.variable_bindings, cfg.variable_bindings_by_object)

    inputs = context.get_connected_inputs(connections, node.node_id, "input")
    items = [item for value in inputs for item in iter_items(value)]

    output: list[Any] = []
    empty: list[str] = []
    resolved: dict[str, list[str]] = {}
    for item in items:
        if not is_identified(item):
            output.append(item)
            continue
        keys = resolve_object_keys(item["id"], cfg, reader)
        if not keys:
            empty.append(item["id"])
            output.append(item)
            continue
        resolved[item["id"]] = keys
        output.append(_tag(node, item, keys))

    if empty:
        raise BatchEmptyKeyError(node_id=node.node_id, node_name=node.display_name, object_ids=empty)

    metadata = collect_object_metadata(inputs, set(resolved))

    slog.debug("batch_node_executed", node_id=node.node_id, objects=len(resolved), keys=sorted({k for ks in resolved.values() for k in ks}))
    context.record_debug(node.node_id, "batch_output", {"keys_by_object": resolved})
    context.set_node_output(node.node_id, "output", PortKind.OBJECT_STREAM, output, metadata)
