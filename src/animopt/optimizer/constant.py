from __future__ import annotations

import logging
from typing import Sequence

from ..core.math import quat_compare, vec3_compare
from ..core.raw_animation import JointTrack, Keyframe, RawAnimation, TrackType
from ..core.settings import (
    DEFAULT_ROTATION_TOLERANCE,
    DEFAULT_SCALE_TOLERANCE,
    DEFAULT_TRANSLATION_TOLERANCE,
)


logger = logging.getLogger(__name__)


class AnimationConstantOptimizer:
    """Strips constant tracks down to a single key.

    Tolerances are local to each track, no hierarchy is involved.
    - translation_tolerance: meters, euclidean distance.
    - rotation_tolerance: cosine of half the tolerance angle, which keeps tiny angles
      representable where their cosine would round to 1.
    - scale_tolerance: euclidean distance.
    """

    def __init__(
        self,
        translation_tolerance: float = DEFAULT_TRANSLATION_TOLERANCE,
        rotation_tolerance: float = DEFAULT_ROTATION_TOLERANCE,
        scale_tolerance: float = DEFAULT_SCALE_TOLERANCE,
    ) -> None:
        self.translation_tolerance = float(translation_tolerance)
        self.rotation_tolerance = float(rotation_tolerance)
        self.scale_tolerance = float(scale_tolerance)

    def is_constant(self, keys: Sequence[Keyframe], kind: TrackType) -> bool:
        if len(keys) <= 1:
            return True
        reference = keys[0].value
        if kind == TrackType.ROTATION:
            return all(quat_compare(reference, k.value, self.rotation_tolerance) for k in keys[1:])  # type: ignore[arg-type]
        tolerance = self.translation_tolerance if kind == TrackType.TRANSLATION else self.scale_tolerance
        return all(vec3_compare(reference, k.value, tolerance) for k in keys[1:])  # type: ignore[arg-type]

    def strip(self, keys: Sequence[Keyframe], kind: TrackType) -> list[Keyframe]:
        if self.is_constant(keys, kind):
            return list(keys[:1])
        return list(keys)

    def __call__(self, animation: RawAnimation, output: RawAnimation | None) -> bool:
        if output is None:
            logger.warning("Constant optimization requires an output animation")
            return False
        if not animation.validate():
            logger.warning("Input animation %r is invalid", animation.name)
            output.reset()
            return False

        tracks: list[JointTrack] = []
        for joint_track in animation.tracks:
            out = JointTrack()
            for kind in TrackType:
                out.set_track(kind, self.strip(joint_track.track(kind), kind))
            tracks.append(out)

        result = RawAnimation(duration=float(animation.duration), tracks=tracks, name=str(animation.name))
        if not result.validate():
            logger.warning("Constant-stripped animation %r failed validation", animation.name)
            output.reset()
            return False

        logger.info(
            "Stripped constant tracks of %r: %d -> %d keys",
            animation.name,
            animation.key_count,
            result.key_count,
        )
        output.assign(result)
        return True
