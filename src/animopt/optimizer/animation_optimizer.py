from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from ..core.raw_animation import JointTrack, RawAnimation, TrackType
from ..core.settings import JointsSetting, Setting, parse_joints_setting
from ..core.skeleton import Skeleton
from .decimate import decimate
from .hierarchy import JointSpec, resolve_hierarchy
from .observer import Observer


logger = logging.getLogger(__name__)


class AnimationOptimizer:
    """Decimates redundant or interpolable keys of a `RawAnimation`.

    The error of every joint is evaluated on its whole child hierarchy, so a small
    error on a shoulder that would be magnified at the fingers is accounted for.
    Overriding a joint setting implicitly affects the whole chain up to that joint:
    a precise hand keeps the arm leading to it precise too.

    Default tolerances favor quality over memory footprint.
    """

    def __init__(
        self,
        setting: Setting | None = None,
        joints_setting_override: JointsSetting | None = None,
        observer: Observer | None = None,
        max_workers: int = 1,
    ) -> None:
        self.setting = setting if setting is not None else Setting()
        # Plain data is accepted here and normalized on each call.
        self.joints_setting_override: JointsSetting = dict(joints_setting_override or {})
        self.observer = observer
        self.max_workers = int(max_workers)

    def settings(self, skeleton: Skeleton) -> tuple[Setting, JointsSetting]:
        """Normalizes the global setting and overrides, raising ValueError on bad values."""

        setting = Setting.from_any(self.setting)
        overrides = parse_joints_setting(self.joints_setting_override, skeleton=skeleton)
        return setting, overrides

    def resolve(self, animation: RawAnimation, skeleton: Skeleton) -> list[JointSpec]:
        setting, overrides = self.settings(skeleton)
        return resolve_hierarchy(animation, skeleton, setting, overrides)

    def __call__(self, animation: RawAnimation, skeleton: Skeleton, output: RawAnimation | None) -> bool:
        if output is None:
            logger.warning("Animation optimization requires an output animation")
            return False

        if not animation.validate():
            logger.warning("Input animation %r is invalid", animation.name)
            output.reset()
            return False
        if animation.num_tracks != skeleton.num_joints:
            logger.warning(
                "Input animation %r has %d tracks, skeleton has %d joints",
                animation.name,
                animation.num_tracks,
                skeleton.num_joints,
            )
            output.reset()
            return False
        try:
            setting, overrides = self.settings(skeleton)
        except ValueError as ex:
            logger.warning("Invalid optimization settings: %s", ex)
            output.reset()
            return False

        specs = resolve_hierarchy(animation, skeleton, setting, overrides)

        # Observers are not required to be thread-safe.
        if self.observer is None and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(self._optimize_joint, animation.tracks[j], specs[j], j)
                    for j in range(skeleton.num_joints)
                ]
                tracks = [f.result() for f in futures]
        else:
            tracks = [self._optimize_joint(animation.tracks[j], specs[j], j) for j in range(skeleton.num_joints)]

        result = RawAnimation(duration=float(animation.duration), tracks=tracks, name=str(animation.name))
        if not result.validate():
            logger.warning("Optimized animation %r failed validation", animation.name)
            output.reset()
            return False

        logger.info(
            "Optimized animation %r: %d -> %d keys over %d joints",
            animation.name,
            animation.key_count,
            result.key_count,
            result.num_tracks,
        )
        output.assign(result)
        return True

    def _optimize_joint(self, track: JointTrack, spec: JointSpec, joint: int) -> JointTrack:
        out = JointTrack()
        for kind in TrackType:
            keys = track.track(kind)
            decimated = decimate(
                keys,
                kind,
                tolerance=spec.tolerance,
                distance=spec.distance,
                parent_scale=spec.parent_scale,
                hierarchy_error_ratio=spec.hierarchy_error_ratio,
                joint=joint,
                observer=self.observer,
            )
            if decimated.cancelled:
                logger.debug("Joint %d %s decimation cancelled by observer", joint, kind.name.lower())
            logger.debug(
                "Joint %d %s: %d -> %d keys",
                joint,
                kind.name.lower(),
                len(keys),
                len(decimated.keys),
            )
            out.set_track(kind, decimated.keys)
        return out
