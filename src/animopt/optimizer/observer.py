from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from ..core.raw_animation import TrackType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObserverData:
    iteration: int
    joint: int
    type: TrackType
    target_error: float
    distance: float
    original_size: int
    validated_size: int
    candidate_size: int
    own_tolerance: float
    own_error: float
    hierarchy_error_ratio: float
    # Relative size reduction of the candidate over the original track.
    optimization_delta: float


class Observer(Protocol):
    """Receives one record per attempted key removal.

    Returning False stops decimation of the current track, keeping the last
    validated keys. Observers are called from the optimizing thread only.
    """

    def push(self, data: ObserverData) -> bool: ...


@dataclass
class RecordingObserver:
    limit: int | None = None
    records: list[ObserverData] = field(default_factory=list)

    def push(self, data: ObserverData) -> bool:
        self.records.append(data)
        return self.limit is None or len(self.records) < self.limit

    def for_track(self, joint: int, kind: TrackType) -> list[ObserverData]:
        return [r for r in self.records if r.joint == joint and r.type == kind]


class LoggingObserver:
    def __init__(self, level: int = logging.DEBUG) -> None:
        self.level = level

    def push(self, data: ObserverData) -> bool:
        logger.log(
            self.level,
            "joint %d %s it=%d size %d->%d error=%.3g/%.3g ratio=%.3g",
            data.joint,
            data.type.name.lower(),
            data.iteration,
            data.validated_size,
            data.candidate_size,
            data.own_error,
            data.own_tolerance,
            data.hierarchy_error_ratio,
        )
        return True
