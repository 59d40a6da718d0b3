from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from .skeleton import Skeleton


DEFAULT_TOLERANCE = 1e-3  # 1mm
DEFAULT_DISTANCE = 1e-1  # 10cm

DEFAULT_TRANSLATION_TOLERANCE = 1e-3
DEFAULT_SCALE_TOLERANCE = 1e-3
# Cosine of half a 0.1 degree angle. Stored as a cosine so tiny angles stay distinct from 1.
DEFAULT_ROTATION_TOLERANCE = math.cos(0.5 * math.radians(0.1))


def _positive_finite(value: Any, *, field: str) -> float:
    try:
        v = float(value)
    except Exception as ex:
        raise ValueError(f"Invalid {field}") from ex
    if not np.isfinite(v) or v <= 0.0:
        raise ValueError(f"{field} must be a positive finite number")
    return v


@dataclass(frozen=True)
class Setting:
    """Optimization setting for a joint hierarchy.

    Notes:
    - `tolerance` is the maximum error (meters) allowed on the whole joint hierarchy.
    - `distance` is where error is measured (meters from the joint) when the joint
      hierarchy is shorter. It emulates the effect on skinned vertices.
    """

    tolerance: float = DEFAULT_TOLERANCE
    distance: float = DEFAULT_DISTANCE

    def __post_init__(self) -> None:
        object.__setattr__(self, "tolerance", _positive_finite(self.tolerance, field="tolerance"))
        object.__setattr__(self, "distance", _positive_finite(self.distance, field="distance"))

    @classmethod
    def from_any(cls, value: Any) -> Setting:
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {"tolerance", "distance"}
            if unknown:
                raise ValueError(f"Unknown setting fields: {sorted(unknown)}")
            return cls(
                tolerance=value.get("tolerance", DEFAULT_TOLERANCE),
                distance=value.get("distance", DEFAULT_DISTANCE),
            )
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(tolerance=value[0], distance=value[1])
        raise ValueError("Setting must be a Setting, a (tolerance, distance) pair or a mapping")


JointsSetting = dict[int, Setting]


def parse_joints_setting(mapping: Mapping[Any, Any], *, skeleton: Skeleton | None = None) -> JointsSetting:
    """Normalizes a per-joint override mapping.

    Keys can be joint indices or, when `skeleton` is given, joint names.
    """

    out: JointsSetting = {}
    for key, value in mapping.items():
        if isinstance(key, str) and skeleton is not None and not key.strip().lstrip("-").isdigit():
            joint = skeleton.joint_index(key)
        else:
            try:
                joint = int(key)
            except Exception as ex:
                raise ValueError(f"Invalid joint key: {key!r}") from ex
        if joint < 0:
            raise ValueError(f"Joint index must be >= 0, got {joint}")
        if skeleton is not None and joint >= skeleton.num_joints:
            raise ValueError(f"Joint index {joint} out of range for {skeleton.num_joints} joints")
        if joint in out:
            raise ValueError(f"Duplicate setting for joint {joint}")
        out[joint] = Setting.from_any(value)
    return out


def joint_setting(setting: Setting, overrides: Mapping[int, Setting], joint: int) -> Setting:
    return overrides.get(joint, setting)
