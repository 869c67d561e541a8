"""Three-component vector helpers shared by the builder, generators and soap film.

Vectors are plain ``(x, y, z)`` float tuples.  Tuples are immutable, so a
vector handed to a builder or stored in a working mesh can never be changed
behind the owner's back.
"""

from __future__ import annotations

from math import sqrt
from typing import Iterable, Optional, Sequence, Tuple

Vec3 = Tuple[float, float, float]

ZERO: Vec3 = (0.0, 0.0, 0.0)

epsilon = 1e-12


def to_vec3(point_like: Sequence[float]) -> Vec3:
    """Return the XYZ components of ``point_like`` as a float tuple."""

    if len(point_like) < 3:
        raise ValueError("value must have at least three components")
    return float(point_like[0]), float(point_like[1]), float(point_like[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale(v: Vec3, s: float) -> Vec3:
    return (v[0] * s, v[1] * s, v[2] * s)


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def mag_sq(v: Vec3) -> float:
    return dot(v, v)


def mag(v: Vec3) -> float:
    """Euclidean length of ``v``."""
    return sqrt(mag_sq(v))


def dist(a: Vec3, b: Vec3) -> float:  # distance between two points a & b
    return mag(sub(a, b))


def normalize(v: Vec3) -> Vec3:
    """Unit vector in the direction of ``v``, or the zero vector if degenerate."""
    length = mag(v)
    if length <= epsilon:
        return ZERO
    return (v[0] / length, v[1] / length, v[2] / length)


def midpoint(a: Vec3, b: Vec3) -> Vec3:
    return ((a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5, (a[2] + b[2]) * 0.5)


def centroid(points: Iterable[Vec3]) -> Vec3:
    """Return the arithmetic mean of ``points``."""

    sx = sy = sz = 0.0
    count = 0
    for p in points:
        sx += p[0]
        sy += p[1]
        sz += p[2]
        count += 1
    if count == 0:
        raise ValueError("centroid of an empty point set is undefined")
    return (sx / count, sy / count, sz / count)


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Optional[Vec3]:
    """Return the unit normal of a triangle or ``None`` if degenerate."""

    n = cross(sub(v1, v0), sub(v2, v0))
    length = mag(n)
    if length <= epsilon:
        return None
    return (n[0] / length, n[1] / length, n[2] / length)


__all__ = [
    "Vec3",
    "ZERO",
    "epsilon",
    "to_vec3",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "mag_sq",
    "mag",
    "dist",
    "normalize",
    "midpoint",
    "centroid",
    "triangle_normal",
]
