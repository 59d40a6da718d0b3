from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence, Union

import numpy as np

from .math import (
    IDENTITY_ROTATION,
    IDENTITY_SCALE,
    IDENTITY_TRANSLATION,
    Quat,
    Vec3,
    lerp,
    nlerp,
)


class TrackType(IntEnum):
    TRANSLATION = 0
    ROTATION = 1
    SCALE = 2


@dataclass(frozen=True)
class TranslationKey:
    time: float
    value: Vec3 = IDENTITY_TRANSLATION


@dataclass(frozen=True)
class RotationKey:
    time: float
    value: Quat = IDENTITY_ROTATION


@dataclass(frozen=True)
class ScaleKey:
    time: float
    value: Vec3 = IDENTITY_SCALE


Keyframe = Union[TranslationKey, RotationKey, ScaleKey]


@dataclass
class JointTrack:
    """Keyframes of one joint, one list per transform component."""

    translations: list[TranslationKey] = field(default_factory=list)
    rotations: list[RotationKey] = field(default_factory=list)
    scales: list[ScaleKey] = field(default_factory=list)

    def track(self, kind: TrackType) -> list:
        if kind == TrackType.TRANSLATION:
            return self.translations
        if kind == TrackType.ROTATION:
            return self.rotations
        if kind == TrackType.SCALE:
            return self.scales
        raise ValueError(f"Unknown track type: {kind!r}")

    def set_track(self, kind: TrackType, keys: Sequence[Keyframe]) -> None:
        if kind == TrackType.TRANSLATION:
            self.translations = list(keys)  # type: ignore[arg-type]
        elif kind == TrackType.ROTATION:
            self.rotations = list(keys)  # type: ignore[arg-type]
        elif kind == TrackType.SCALE:
            self.scales = list(keys)  # type: ignore[arg-type]
        else:
            raise ValueError(f"Unknown track type: {kind!r}")

    def copy(self) -> JointTrack:
        return JointTrack(
            translations=list(self.translations),
            rotations=list(self.rotations),
            scales=list(self.scales),
        )

    @property
    def key_count(self) -> int:
        return len(self.translations) + len(self.rotations) + len(self.scales)


@dataclass
class RawAnimation:
    """Offline animation: a duration and one `JointTrack` per skeleton joint.

    Notes:
    - Key times are in seconds, within [0, duration], strictly increasing per track.
    - An empty track means the joint keeps its identity value for that component.
    - Keys are immutable, so copies only duplicate the track lists.
    """

    duration: float = 1.0
    tracks: list[JointTrack] = field(default_factory=list)
    name: str = ""

    @property
    def num_tracks(self) -> int:
        return len(self.tracks)

    @property
    def key_count(self) -> int:
        return sum(t.key_count for t in self.tracks)

    def validate(self) -> bool:
        duration = float(self.duration)
        if not np.isfinite(duration) or duration <= 0.0:
            return False
        for joint_track in self.tracks:
            for kind in TrackType:
                if not _validate_track(joint_track.track(kind), kind, duration):
                    return False
        return True

    def reset(self) -> None:
        self.duration = 1.0
        self.tracks = []
        self.name = ""

    def assign(self, other: RawAnimation) -> None:
        self.duration = float(other.duration)
        self.tracks = [t.copy() for t in other.tracks]
        self.name = str(other.name)

    def copy(self) -> RawAnimation:
        out = RawAnimation()
        out.assign(self)
        return out


def _validate_track(keys: Sequence[Keyframe], kind: TrackType, duration: float) -> bool:
    previous = -1.0
    for key in keys:
        t = float(key.time)
        if not np.isfinite(t) or t < 0.0 or t > duration:
            return False
        # Strictly increasing, the first key included.
        if t <= previous:
            return False
        value = np.asarray(key.value, dtype=np.float64)
        if not np.all(np.isfinite(value)):
            return False
        if kind == TrackType.ROTATION and float(np.linalg.norm(value)) < 1e-12:
            return False
        previous = t
    return True


def identity_value(kind: TrackType) -> Vec3 | Quat:
    if kind == TrackType.TRANSLATION:
        return IDENTITY_TRANSLATION
    if kind == TrackType.ROTATION:
        return IDENTITY_ROTATION
    return IDENTITY_SCALE


def interpolate(kind: TrackType, a: Vec3 | Quat, b: Vec3 | Quat, alpha: float) -> np.ndarray:
    if kind == TrackType.ROTATION:
        return nlerp(a, b, alpha)  # type: ignore[arg-type]
    return lerp(a, b, alpha)  # type: ignore[arg-type]


def sample_track(keys: Sequence[Keyframe], kind: TrackType, time: float) -> np.ndarray:
    """Evaluates a track at `time`, clamping outside of the keyed range."""

    if len(keys) == 0:
        return np.asarray(identity_value(kind), dtype=np.float64)
    t = float(time)
    if t <= float(keys[0].time):
        return np.asarray(keys[0].value, dtype=np.float64)
    if t >= float(keys[-1].time):
        return np.asarray(keys[-1].value, dtype=np.float64)

    times = [float(k.time) for k in keys]
    i1 = bisect_right(times, t) - 1
    k1, k2 = keys[i1], keys[i1 + 1]
    alpha = (t - times[i1]) / (times[i1 + 1] - times[i1])
    return interpolate(kind, k1.value, k2.value, alpha)
