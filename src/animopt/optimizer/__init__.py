from __future__ import annotations

from .animation_optimizer import AnimationOptimizer
from .constant import AnimationConstantOptimizer
from .decimate import DecimateResult, decimate, error_metric
from .hierarchy import JointSpec, resolve_hierarchy
from .observer import LoggingObserver, Observer, ObserverData, RecordingObserver

__all__ = [
    "AnimationOptimizer",
    "AnimationConstantOptimizer",
    "DecimateResult",
    "decimate",
    "error_metric",
    "JointSpec",
    "resolve_hierarchy",
    "Observer",
    "ObserverData",
    "RecordingObserver",
    "LoggingObserver",
]
