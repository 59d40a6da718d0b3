from __future__ import annotations

import numpy as np


Vec3 = tuple[float, float, float]
Quat = tuple[float, float, float, float]

IDENTITY_TRANSLATION: Vec3 = (0.0, 0.0, 0.0)
IDENTITY_ROTATION: Quat = (0.0, 0.0, 0.0, 1.0)
IDENTITY_SCALE: Vec3 = (1.0, 1.0, 1.0)


def vec3(v: np.ndarray | tuple[float, float, float] | list[float]) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(3)


def quat(q_xyzw: np.ndarray | tuple[float, float, float, float] | list[float]) -> np.ndarray:
    return np.asarray(q_xyzw, dtype=np.float64).reshape(4)


def normalize_quat(
    q_xyzw: np.ndarray | tuple[float, float, float, float] | list[float],
) -> np.ndarray:
    q = quat(q_xyzw)
    n = float(np.linalg.norm(q))
    if n < 1e-12:
        raise ValueError("Quaternion norm is too close to zero")
    return q / n


def lerp(a: np.ndarray | Vec3, b: np.ndarray | Vec3, alpha: float) -> np.ndarray:
    va = vec3(a)
    return va + (vec3(b) - va) * float(alpha)


def nlerp(a: np.ndarray | Quat, b: np.ndarray | Quat, alpha: float) -> np.ndarray:
    """Normalized lerp along the shortest path, as the runtime sampler does."""

    qa = quat(a)
    qb = quat(b)
    if float(np.dot(qa, qb)) < 0.0:
        qb = -qb
    out = qa + (qb - qa) * float(alpha)
    n = float(np.linalg.norm(out))
    if n < 1e-12:
        return qa
    return out / n


def quat_angle(a: np.ndarray | Quat, b: np.ndarray | Quat) -> float:
    # q and -q represent the same orientation.
    cos_half_angle = abs(float(np.dot(normalize_quat(a), normalize_quat(b))))
    return float(2.0 * np.arccos(min(cos_half_angle, 1.0)))


def quat_compare(a: np.ndarray | Quat, b: np.ndarray | Quat, cos_half_tolerance: float) -> bool:
    cos_half_angle = abs(float(np.dot(normalize_quat(a), normalize_quat(b))))
    return cos_half_angle >= float(cos_half_tolerance)


def vec3_compare(a: np.ndarray | Vec3, b: np.ndarray | Vec3, tolerance: float) -> bool:
    return float(np.linalg.norm(vec3(a) - vec3(b))) <= float(tolerance)


def quat_from_axis_angle(axis: np.ndarray | Vec3, angle: float) -> Quat:
    n = vec3(axis)
    length = float(np.linalg.norm(n))
    if length < 1e-12:
        raise ValueError("Rotation axis is too close to zero")
    n = n / length
    s = float(np.sin(0.5 * float(angle)))
    return float(n[0] * s), float(n[1] * s), float(n[2] * s), float(np.cos(0.5 * float(angle)))
