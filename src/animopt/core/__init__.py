from __future__ import annotations

from .math import (
    IDENTITY_ROTATION,
    IDENTITY_SCALE,
    IDENTITY_TRANSLATION,
    lerp,
    nlerp,
    normalize_quat,
    quat_angle,
    quat_compare,
    quat_from_axis_angle,
    vec3_compare,
)
from .raw_animation import (
    JointTrack,
    RawAnimation,
    RotationKey,
    ScaleKey,
    TrackType,
    TranslationKey,
    identity_value,
    sample_track,
)
from .settings import (
    DEFAULT_ROTATION_TOLERANCE,
    DEFAULT_SCALE_TOLERANCE,
    DEFAULT_TRANSLATION_TOLERANCE,
    JointsSetting,
    Setting,
    joint_setting,
    parse_joints_setting,
)
from .skeleton import NO_PARENT, Skeleton

__all__ = [
    "IDENTITY_TRANSLATION",
    "IDENTITY_ROTATION",
    "IDENTITY_SCALE",
    "lerp",
    "nlerp",
    "normalize_quat",
    "quat_angle",
    "quat_compare",
    "quat_from_axis_angle",
    "vec3_compare",
    "TrackType",
    "TranslationKey",
    "RotationKey",
    "ScaleKey",
    "JointTrack",
    "RawAnimation",
    "identity_value",
    "sample_track",
    "Setting",
    "JointsSetting",
    "joint_setting",
    "parse_joints_setting",
    "DEFAULT_TRANSLATION_TOLERANCE",
    "DEFAULT_ROTATION_TOLERANCE",
    "DEFAULT_SCALE_TOLERANCE",
    "NO_PARENT",
    "Skeleton",
]
