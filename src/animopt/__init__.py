from __future__ import annotations

from .core.raw_animation import JointTrack, RawAnimation, RotationKey, ScaleKey, TrackType, TranslationKey, sample_track
from .core.settings import JointsSetting, Setting, parse_joints_setting
from .core.skeleton import NO_PARENT, Skeleton
from .optimizer import (
    AnimationConstantOptimizer,
    AnimationOptimizer,
    JointSpec,
    LoggingObserver,
    Observer,
    ObserverData,
    RecordingObserver,
    resolve_hierarchy,
)

__all__ = [
    "AnimationOptimizer",
    "AnimationConstantOptimizer",
    "Setting",
    "JointsSetting",
    "parse_joints_setting",
    "JointSpec",
    "resolve_hierarchy",
    "Observer",
    "ObserverData",
    "RecordingObserver",
    "LoggingObserver",
    "RawAnimation",
    "JointTrack",
    "TranslationKey",
    "RotationKey",
    "ScaleKey",
    "TrackType",
    "sample_track",
    "Skeleton",
    "NO_PARENT",
]
