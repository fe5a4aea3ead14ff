"""Scene assembly: track conversion, batch override resolution, batch partitioning."""

from animflow.scene.assembler import convert_tracks_to_scene_animations
from animflow.scene.batch_overrides import BatchOverrideContext, resolve_field_value
from animflow.scene.partitioner import AssembledScene, ScenePartition, partition_by_batch_key, resolve_partitions
from animflow.scene.transforms import DEFAULT_TRANSFORM_REGISTRY, DefaultTransformRegistry, TransformRegistry

__all__ = [
    "DEFAULT_TRANSFORM_REGISTRY",
    "AssembledScene",
    "BatchOverrideContext",
    "DefaultTransformRegistry",
    "ScenePartition",
    "TransformRegistry",
    "convert_tracks_to_scene_animations",
    "partition_by_batch_key",
    "resolve_field_value",
    "resolve_partitions",
]
