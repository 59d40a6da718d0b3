from __future__ import annotations

import numpy as np
import pytest

from animopt.core.math import quat_angle, quat_from_axis_angle
from animopt.core.raw_animation import (
    JointTrack,
    RawAnimation,
    RotationKey,
    ScaleKey,
    TrackType,
    TranslationKey,
    sample_track,
)
from animopt.core.settings import Setting
from animopt.core.skeleton import NO_PARENT, Skeleton
from animopt.optimizer import animation_optimizer as animation_optimizer_module
from animopt.optimizer.animation_optimizer import AnimationOptimizer
from animopt.optimizer.decimate import DecimateResult, error_metric
from animopt.optimizer.observer import RecordingObserver


def _chain() -> Skeleton:
    return Skeleton([NO_PARENT, 0, 1], ["root", "mid", "tip"])


def _static_track(offset: tuple[float, float, float] = (0.0, 0.0, 0.0)) -> JointTrack:
    return JointTrack(
        translations=[TranslationKey(0.0, offset)],
        rotations=[RotationKey(0.0, (0.0, 0.0, 0.0, 1.0))],
        scales=[ScaleKey(0.0, (1.0, 1.0, 1.0))],
    )


def _collinear_chain_animation() -> RawAnimation:
    mid = _static_track()
    mid.translations = [TranslationKey(t, (1.0 + t, 0.5 * t, 0.0)) for t in (0.0, 0.25, 0.5, 0.75, 1.0)]
    return RawAnimation(duration=1.0, tracks=[_static_track(), mid, _static_track((1.0, 0.0, 0.0))], name="walk")


def _wobbly_chain_animation(amplitude: float, count: int = 21) -> RawAnimation:
    root = _static_track()
    times = np.linspace(0.0, 1.0, count)
    root.rotations = [
        RotationKey(float(t), quat_from_axis_angle((0.0, 0.0, 1.0), amplitude * (i % 2))) for i, t in enumerate(times)
    ]
    return RawAnimation(
        duration=1.0,
        tracks=[root, _static_track((1.0, 0.0, 0.0)), _static_track((1.0, 0.0, 0.0))],
        name="wobble",
    )


def _rich_animation(seed: int = 0) -> tuple[RawAnimation, Skeleton]:
    rng = np.random.default_rng(seed)
    skel = Skeleton([NO_PARENT, 0, 1, 2, 1, 4])
    times = np.linspace(0.0, 2.0, 25)
    tracks = []
    for joint in range(skel.num_joints):
        phase = float(rng.uniform(0.0, np.pi))
        tracks.append(
            JointTrack(
                translations=[
                    TranslationKey(float(t), (0.3, 0.05 * np.sin(2.0 * t + phase), 0.0)) for t in times
                ],
                rotations=[
                    RotationKey(float(t), quat_from_axis_angle((0.2, 1.0, 0.1), 0.5 * np.sin(3.0 * t + phase)))
                    for t in times
                ],
                scales=[ScaleKey(float(t), (1.0, 1.0 + 0.01 * np.cos(t + phase), 1.0)) for t in times],
            )
        )
    return RawAnimation(duration=2.0, tracks=tracks, name="rich"), skel


def test_collinear_translation_keeps_only_endpoints() -> None:
    anim = _collinear_chain_animation()
    output = RawAnimation()
    assert AnimationOptimizer()(anim, _chain(), output)

    mid = output.tracks[1].translations
    assert mid == [anim.tracks[1].translations[0], anim.tracks[1].translations[-1]]
    assert output.duration == 1.0
    assert output.name == "walk"
    assert output.num_tracks == 3
    assert output.validate()


def test_tip_override_tightens_mid_tolerance() -> None:
    optimizer = AnimationOptimizer(joints_setting_override={2: Setting(tolerance=1e-6)})
    specs = optimizer.resolve(_collinear_chain_animation(), _chain())
    assert specs[1].tolerance <= 1e-6
    assert specs[0].tolerance <= 1e-6


def test_tight_descendant_override_keeps_ancestor_keys() -> None:
    anim = _wobbly_chain_animation(amplitude=1e-5)

    loose = RawAnimation()
    assert AnimationOptimizer()(anim, _chain(), loose)
    assert len(loose.tracks[0].rotations) == 2

    tight = RawAnimation()
    assert AnimationOptimizer(joints_setting_override={2: Setting(tolerance=1e-6)})(anim, _chain(), tight)
    assert len(tight.tracks[0].rotations) == len(anim.tracks[0].rotations)


def test_output_is_within_resolved_budget_for_every_track() -> None:
    anim, skel = _rich_animation()
    optimizer = AnimationOptimizer(setting=Setting(tolerance=2e-3, distance=0.1), joints_setting_override={5: Setting(tolerance=1e-4)})
    output = RawAnimation()
    assert optimizer(anim, skel, output)

    specs = optimizer.resolve(anim, skel)
    reduced = 0
    for joint, spec in enumerate(specs):
        for kind in TrackType:
            original = anim.tracks[joint].track(kind)
            optimized = output.tracks[joint].track(kind)
            assert len(optimized) <= len(original)
            assert optimized[0] == original[0]
            assert optimized[-1] == original[-1]
            reduced += len(original) - len(optimized)

            metric = error_metric(kind, distance=spec.distance, parent_scale=spec.parent_scale)
            for key in original:
                sampled = sample_track(optimized, kind, key.time)
                assert metric(sampled, np.asarray(key.value, dtype=np.float64)) <= spec.own_tolerance + 1e-9
    assert reduced > 0


def test_optimization_is_deterministic_and_parallel_safe() -> None:
    anim, skel = _rich_animation(seed=7)
    first = RawAnimation()
    second = RawAnimation()
    parallel = RawAnimation()
    assert AnimationOptimizer()(anim, skel, first)
    assert AnimationOptimizer()(anim, skel, second)
    assert AnimationOptimizer(max_workers=4)(anim, skel, parallel)
    assert first == second
    assert first == parallel


def test_input_is_not_modified() -> None:
    anim = _collinear_chain_animation()
    before = anim.copy()
    assert AnimationOptimizer()(anim, _chain(), RawAnimation())
    assert anim == before


def test_output_content_is_replaced() -> None:
    output = RawAnimation(duration=5.0, tracks=[JointTrack() for _ in range(7)], name="previous")
    assert AnimationOptimizer()(_collinear_chain_animation(), _chain(), output)
    assert output.duration == 1.0
    assert output.num_tracks == 3
    assert output.name == "walk"


def test_observer_streams_records_per_attempt() -> None:
    observer = RecordingObserver()
    output = RawAnimation()
    assert AnimationOptimizer(observer=observer)(_collinear_chain_animation(), _chain(), output)

    records = observer.for_track(1, TrackType.TRANSLATION)
    assert len(records) == 3
    assert len(observer.records) == 3
    assert [r.iteration for r in records] == [1, 2, 3]
    assert [r.validated_size for r in records] == [5, 4, 3]
    assert [r.candidate_size for r in records] == [4, 3, 2]
    assert np.allclose([r.optimization_delta for r in records], [0.2, 0.4, 0.6])
    for r in records:
        assert r.original_size == 5
        assert r.target_error == 1e-3
        assert np.isclose(r.hierarchy_error_ratio, 1.0 / 3.0)
        assert r.own_error <= r.own_tolerance


def test_observer_cancellation_only_stops_current_track() -> None:
    anim = _collinear_chain_animation()
    anim.tracks[2].rotations = [
        RotationKey(t, quat_from_axis_angle((1.0, 0.0, 0.0), 0.01 * t)) for t in (0.0, 0.5, 1.0)
    ]

    class StopMidTranslation:
        def __init__(self) -> None:
            self.seen: list[tuple[int, TrackType]] = []

        def push(self, data) -> bool:
            self.seen.append((data.joint, data.type))
            return not (data.joint == 1 and data.type == TrackType.TRANSLATION)

    observer = StopMidTranslation()
    output = RawAnimation()
    assert AnimationOptimizer(observer=observer)(anim, _chain(), output)
    assert output.tracks[1].translations == anim.tracks[1].translations
    assert (2, TrackType.ROTATION) in observer.seen
    assert len(output.tracks[2].rotations) == 2


def test_missing_output_fails() -> None:
    assert AnimationOptimizer()(_collinear_chain_animation(), _chain(), None) is False


@pytest.mark.parametrize(
    "mutate",
    [
        lambda a: setattr(a, "duration", 0.0),
        lambda a: a.tracks[1].translations.reverse(),
        lambda a: a.tracks.pop(),
    ],
)
def test_invalid_input_fails_and_resets_output(mutate) -> None:
    anim = _collinear_chain_animation()
    mutate(anim)
    output = RawAnimation(duration=3.0, tracks=[JointTrack()], name="stale")
    assert AnimationOptimizer()(anim, _chain(), output) is False
    assert output.duration == 1.0
    assert output.tracks == []
    assert output.name == ""
    assert output.validate()


def test_out_of_range_override_fails() -> None:
    output = RawAnimation(duration=3.0, tracks=[JointTrack()], name="stale")
    optimizer = AnimationOptimizer(joints_setting_override={9: Setting()})
    assert optimizer(_collinear_chain_animation(), _chain(), output) is False
    assert output.tracks == []


def test_malformed_result_resets_output(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_decimate(keys, kind, **kwargs) -> DecimateResult:
        return DecimateResult(keys=list(reversed(keys)))

    monkeypatch.setattr(animation_optimizer_module, "decimate", broken_decimate)
    output = RawAnimation(duration=3.0, tracks=[JointTrack()], name="stale")
    assert AnimationOptimizer()(_collinear_chain_animation(), _chain(), output) is False
    assert output == RawAnimation()


def test_rotation_error_accounts_for_hierarchy_length() -> None:
    anim = _wobbly_chain_animation(amplitude=2e-4)
    specs = AnimationOptimizer().resolve(anim, _chain())
    assert np.isclose(specs[0].distance, 2.1)
    error = quat_angle(anim.tracks[0].rotations[0].value, anim.tracks[0].rotations[1].value) * specs[0].distance
    assert error > specs[0].own_tolerance

    output = RawAnimation()
    assert AnimationOptimizer()(anim, _chain(), output)
    assert len(output.tracks[0].rotations) == len(anim.tracks[0].rotations)


@pytest.mark.parametrize(
    "override",
    [
        {2: (1e-6, 0.1)},
        {2: {"tolerance": 1e-6}},
        {"tip": Setting(tolerance=1e-6)},
    ],
)
def test_plain_data_overrides_are_accepted(override) -> None:
    anim = _wobbly_chain_animation(amplitude=1e-5)
    optimizer = AnimationOptimizer(joints_setting_override=override)
    assert optimizer.resolve(anim, _chain())[0].tolerance == 1e-6

    output = RawAnimation()
    assert optimizer(anim, _chain(), output)
    assert len(output.tracks[0].rotations) == len(anim.tracks[0].rotations)


def test_plain_data_global_setting_is_accepted() -> None:
    optimizer = AnimationOptimizer()
    optimizer.setting = (2e-3, 0.2)  # type: ignore[assignment]
    specs = optimizer.resolve(_collinear_chain_animation(), _chain())
    assert specs[2].tolerance == 2e-3
    assert np.isclose(specs[2].distance, 0.2)


@pytest.mark.parametrize(
    "override",
    [
        {1: (0.0, 0.1)},
        {1: "tight"},
        {"finger": (1e-6, 0.1)},
        {-1: Setting()},
    ],
)
def test_invalid_override_fails_and_resets_output(override) -> None:
    output = RawAnimation(duration=3.0, tracks=[JointTrack()], name="stale")
    optimizer = AnimationOptimizer(joints_setting_override=override)
    assert optimizer(_collinear_chain_animation(), _chain(), output) is False
    assert output == RawAnimation()


def _quat_matrix(q: np.ndarray) -> np.ndarray:
    x, y, z, w = (np.asarray(q, dtype=np.float64) / np.linalg.norm(q)).tolist()
    return np.array(
        [
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
            [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
            [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
        ],
        dtype=np.float64,
    )


def _skin_point(anim: RawAnimation, skel: Skeleton, time: float, offset: float) -> np.ndarray:
    worlds: list[np.ndarray] = []
    for joint in range(skel.num_joints):
        track = anim.tracks[joint]
        local = np.eye(4, dtype=np.float64)
        rotation = _quat_matrix(sample_track(track.rotations, TrackType.ROTATION, time))
        scale = sample_track(track.scales, TrackType.SCALE, time)
        local[:3, :3] = rotation @ np.diag(scale)
        local[:3, 3] = sample_track(track.translations, TrackType.TRANSLATION, time)
        parent = skel.parent(joint)
        worlds.append(local if parent == NO_PARENT else worlds[parent] @ local)
    return (worlds[-1] @ np.array([offset, 0.0, 0.0, 1.0]))[:3]


def test_leaf_error_stays_within_tolerance_in_world_space() -> None:
    skel = Skeleton([NO_PARENT, 0, 1, 2])
    times = np.linspace(0.0, 2.0, 61)
    tracks = []
    for joint in range(skel.num_joints):
        if joint == 0:
            translations = [TranslationKey(float(t), (0.1 * np.sin(t), 0.0, 0.05 * np.cos(t))) for t in times]
        else:
            translations = [TranslationKey(float(t), (0.3, 0.02 * np.sin(2.0 * t + joint), 0.0)) for t in times]
        rotations = [
            RotationKey(float(t), quat_from_axis_angle((0.3, 1.0, 0.2 * joint), 0.4 * np.sin(1.5 * t + joint)))
            for t in times
        ]
        tracks.append(JointTrack(translations=translations, rotations=rotations))
    anim = RawAnimation(duration=2.0, tracks=tracks, name="reach")

    setting = Setting()
    output = RawAnimation()
    assert AnimationOptimizer(setting=setting)(anim, skel, output)
    assert output.key_count < anim.key_count

    worst = 0.0
    for t in times:
        expected = _skin_point(anim, skel, float(t), setting.distance)
        actual = _skin_point(output, skel, float(t), setting.distance)
        worst = max(worst, float(np.linalg.norm(actual - expected)))
    assert worst <= setting.tolerance


def test_zero_norm_rotation_input_fails_and_resets_output() -> None:
    anim = _collinear_chain_animation()
    anim.tracks[1].rotations = [RotationKey(0.0, (0.0, 0.0, 0.0, 0.0)), RotationKey(1.0)]
    output = RawAnimation(duration=3.0, tracks=[JointTrack()], name="stale")
    assert AnimationOptimizer()(anim, _chain(), output) is False
    assert output == RawAnimation()
