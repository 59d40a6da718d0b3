from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from ..core.raw_animation import RawAnimation
from ..core.settings import Setting, joint_setting
from ..core.skeleton import NO_PARENT, Skeleton


@dataclass
class JointSpec:
    """Effective optimization budget of a joint.

    Notes:
    - `tolerance` is the min tolerance of the joint's whole subtree.
    - `distance` is the farthest of the joint's own setting distance and the end of its
      longest animated descendant chain, in the joint's (scaled) space.
    - `hierarchy_error_ratio` is the joint's share of the tolerance. Errors of every joint
      on a root to leaf chain add up at the leaf, so the chain budget is split equally
      between the joints of the deepest chain going through this joint.
    """

    tolerance: float
    distance: float
    scale: float = 1.0
    parent_scale: float = 1.0
    hierarchy_error_ratio: float = 1.0

    @property
    def own_tolerance(self) -> float:
        return self.tolerance * self.hierarchy_error_ratio


def _max_abs_scale(animation: RawAnimation, joint: int) -> float:
    scales = animation.tracks[joint].scales
    if not scales:
        return 1.0
    values = np.abs(np.asarray([k.value for k in scales], dtype=np.float64))
    return float(np.max(values))


def _max_translation_length(animation: RawAnimation, joint: int) -> float:
    translations = animation.tracks[joint].translations
    if not translations:
        return 0.0
    values = np.asarray([k.value for k in translations], dtype=np.float64)
    return float(np.max(np.linalg.norm(values, axis=1)))


def resolve_hierarchy(
    animation: RawAnimation,
    skeleton: Skeleton,
    setting: Setting,
    overrides: Mapping[int, Setting],
) -> list[JointSpec]:
    if animation.num_tracks != skeleton.num_joints:
        raise ValueError(
            f"Animation has {animation.num_tracks} tracks but skeleton has {skeleton.num_joints} joints"
        )

    specs: list[JointSpec] = []
    for joint in range(skeleton.num_joints):
        own = joint_setting(setting, overrides, joint)
        specs.append(JointSpec(tolerance=own.tolerance, distance=own.distance))

    # Scales accumulate from root to leaves.
    for joint, parent in skeleton.iter_depth_first():
        spec = specs[joint]
        spec.parent_scale = specs[parent].scale if parent != NO_PARENT else 1.0
        spec.scale = _max_abs_scale(animation, joint) * spec.parent_scale
        spec.distance *= spec.scale

    # Length and tolerance propagate from leaves to root, each parent keeping its
    # most impacting child.
    for joint, parent in skeleton.iter_depth_first_reverse():
        if parent == NO_PARENT:
            continue
        spec = specs[joint]
        parent_spec = specs[parent]
        # A child translation is expressed in its parent's scaled space.
        length = spec.distance + _max_translation_length(animation, joint) * parent_spec.scale
        parent_spec.distance = max(parent_spec.distance, length)
        parent_spec.tolerance = min(parent_spec.tolerance, spec.tolerance)

    for joint in range(skeleton.num_joints):
        chain = skeleton.depth(joint) + 1 + skeleton.height(joint)
        specs[joint].hierarchy_error_ratio = 1.0 / float(chain)

    return specs
