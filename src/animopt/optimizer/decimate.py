from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from ..core.math import quat_angle
from ..core.raw_animation import Keyframe, TrackType, interpolate
from .observer import Observer, ObserverData


ErrorMetric = Callable[[np.ndarray, np.ndarray], float]


@dataclass
class DecimateResult:
    keys: list[Keyframe] = field(default_factory=list)
    cancelled: bool = False
    iterations: int = 0


def error_metric(kind: TrackType, *, distance: float, parent_scale: float = 1.0) -> ErrorMetric:
    """Positional error (meters) between a reconstructed and an original key value.

    Translation is measured in the parent's scaled space. Rotation and scale are
    measured at `distance` from the joint, rotation as the arc length of the angle.
    """

    if kind == TrackType.TRANSLATION:
        scale = float(parent_scale)
        return lambda a, b: float(np.linalg.norm(a - b)) * scale
    if kind == TrackType.ROTATION:
        radius = float(distance)
        return lambda a, b: quat_angle(a, b) * radius
    if kind == TrackType.SCALE:
        length = float(distance)
        return lambda a, b: float(np.linalg.norm(a - b)) * length
    raise ValueError(f"Unknown track type: {kind!r}")


def decimate(
    keys: Sequence[Keyframe],
    kind: TrackType,
    *,
    tolerance: float,
    distance: float,
    parent_scale: float = 1.0,
    hierarchy_error_ratio: float = 1.0,
    joint: int = 0,
    observer: Observer | None = None,
) -> DecimateResult:
    """Removes keys while every original sample stays within the error budget.

    Interior keys are removed greedily, the one whose removal introduces the
    smallest error first (ties go to the earliest key). The error of removing a
    key is the worst error over every original key between its remaining
    neighbours. Decimation stops at the first candidate above
    `tolerance * hierarchy_error_ratio`, or when the observer returns False.
    First and last keys are always kept.
    """

    original = list(keys)
    size = len(original)
    if size <= 2:
        return DecimateResult(keys=original)

    own_tolerance = float(tolerance) * float(hierarchy_error_ratio)
    metric = error_metric(kind, distance=distance, parent_scale=parent_scale)
    times = [float(k.time) for k in original]
    if any(t1 <= t0 for t0, t1 in zip(times, times[1:])):
        raise ValueError("Key times must be strictly increasing")
    values = [np.asarray(k.value, dtype=np.float64) for k in original]

    # Doubly linked list over remaining keys.
    prev = list(range(-1, size - 1))
    nxt = list(range(1, size + 1))
    removed = [False] * size
    version = [0] * size

    def removal_error(i: int) -> float:
        p, n = prev[i], nxt[i]
        t0 = times[p]
        span = times[n] - t0
        worst = 0.0
        for k in range(p + 1, n):
            value = interpolate(kind, values[p], values[n], (times[k] - t0) / span)  # type: ignore[arg-type]
            worst = max(worst, metric(value, values[k]))
        return worst

    heap: list[tuple[float, float, int, int]] = [(removal_error(i), times[i], i, 0) for i in range(1, size - 1)]
    heapq.heapify(heap)

    validated = size
    iteration = 0
    cancelled = False
    while heap:
        error, _, i, ver = heapq.heappop(heap)
        if removed[i] or ver != version[i]:
            continue

        iteration += 1
        candidate = validated - 1
        if observer is not None:
            data = ObserverData(
                iteration=iteration,
                joint=int(joint),
                type=kind,
                target_error=float(tolerance),
                distance=float(distance),
                original_size=size,
                validated_size=validated,
                candidate_size=candidate,
                own_tolerance=own_tolerance,
                own_error=float(error),
                hierarchy_error_ratio=float(hierarchy_error_ratio),
                optimization_delta=float(size - candidate) / float(size),
            )
            if not observer.push(data):
                cancelled = True
                break

        if error > own_tolerance:
            break

        removed[i] = True
        p, n = prev[i], nxt[i]
        nxt[p] = n
        prev[n] = p
        validated = candidate

        for j in (p, n):
            if 0 < j < size - 1:
                version[j] += 1
                heapq.heappush(heap, (removal_error(j), times[j], j, version[j]))

    kept = [original[i] for i in range(size) if not removed[i]]
    return DecimateResult(keys=kept, cancelled=cancelled, iterations=iteration)
