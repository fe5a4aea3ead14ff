"""Assembled scenes and their per-batch-key replicas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from animflow.contracts.tracks import SceneAnimationTrack
from animflow.contracts.types import BatchOverrideMap, BoundFieldMap, SceneObject
from animflow.scene.batch_overrides import BatchOverrideContext, apply_overrides_to_animation, apply_overrides_to_object

slog = structlog.get_logger(__name__)


@dataclass(slots=True)
class AssembledScene:
    """Everything a scene node collected: objects, their animations and batch state."""

    scene_id: str
    objects: list[SceneObject]
    animations: list[SceneAnimationTrack]
    duration: float
    background_color: str = "#000000"
    per_object_batch_overrides: BatchOverrideMap = field(default_factory=dict)
    per_object_bound_fields: BoundFieldMap = field(default_factory=dict)

    def batch_context(self, batch_key: str | None = None) -> BatchOverrideContext:
        return BatchOverrideContext(
            batch_key=batch_key,
            per_object_batch_overrides=self.per_object_batch_overrides,
            per_object_bound_fields=self.per_object_bound_fields,
        )


@dataclass(frozen=True, slots=True)
class ScenePartition:
    """One replica of a scene. `batch_key` is None when the scene has no batches."""

    batch_key: str | None
    objects: list[SceneObject]
    animations: list[SceneAnimationTrack]

    def to_dict(self) -> dict[str, Any]:
        return {
            "batch_key": self.batch_key,
            "objects": self.objects,
            "animations": [animation.to_dict() for animation in self.animations],
        }


def object_batch_keys(obj: SceneObject) -> list[str]:
    """Batch keys an object was tagged with; empty for non-batched objects."""
    if obj.get("batch") is not True:
        return []
    keys = obj.get("batch_keys")
    if isinstance(keys, list):
        return [k for k in keys if isinstance(k, str) and k]
    single = obj.get("batch_key")
    return [single] if isinstance(single, str) and single else []


def partition_by_batch_key(scene: AssembledScene) -> list[ScenePartition]:
    """Split a scene into one partition per distinct batch key.

    Without batch keys the result is a single partition with batch_key None
    holding every object unchanged. Otherwise keys are sorted ascending; each
    partition holds every non-batched object plus the batched objects carrying
    that key. Animations follow their objects.
    """
    keys = sorted({key for obj in scene.objects for key in object_batch_keys(obj)})
    if not keys:
        return [ScenePartition(batch_key=None, objects=list(scene.objects), animations=list(scene.animations))]

    partitions: list[ScenePartition] = []
    for key in keys:
        objects = [obj for obj in scene.objects if not object_batch_keys(obj) or key in object_batch_keys(obj)]
        ids = {obj["id"] for obj in objects}
        animations = [animation for animation in scene.animations if animation.object_id in ids]
        partitions.append(ScenePartition(batch_key=key, objects=objects, animations=animations))
    slog.debug("scene_partitioned", scene_id=scene.scene_id, batch_keys=keys)
    return partitions


def resolve_partition(scene: AssembledScene, partition: ScenePartition) -> ScenePartition:
    """Apply the partition's batch key to its objects and animations."""
    ctx = scene.batch_context(partition.batch_key)
    return ScenePartition(
        batch_key=partition.batch_key,
        objects=[apply_overrides_to_object(obj, ctx) for obj in partition.objects],
        animations=[apply_overrides_to_animation(animation, ctx) for animation in partition.animations],
    )


def resolve_partitions(scene: AssembledScene) -> list[ScenePartition]:
    """Partition a scene and resolve batch overrides for every replica."""
    return [resolve_partition(scene, partition) for partition in partition_by_batch_key(scene)]
