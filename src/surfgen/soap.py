"""Soap-film relaxation: approximate a minimal surface spanning a closed curve.

A straightforward approach would build the full-resolution network at once
and smooth it many times.  Instead we start from a very coarse network (a
hexagonal fan), refine it step by step and perform some smoothing after each
refinement.  Smoothing a coarse network is cheaper and also more far-reaching
than a smoothing step on the fine network.

Border vertices are identified by their curve parameter in ``[0, 1)`` and are
always evaluated directly on the boundary curve; smoothing never moves them.
"""

from __future__ import annotations

import logging
import time
from math import cos, pi, sin
from typing import Callable, Dict, List, Tuple

import numpy as np

from surfgen.builder import MeshBuilder, SurfaceGenerator
from surfgen.vec3 import Vec3, centroid, midpoint, to_vec3

logger = logging.getLogger(__name__)

BoundaryCurve = Callable[[float], Vec3]
Edge = Tuple[int, int]
Triple = Tuple[int, int, int]

INITIAL_BORDER_SAMPLES = 6


def unit_circle(fraction: float) -> Vec3:
    """Unit circle in the XY plane."""
    x = 2 * pi * fraction
    return (cos(x), sin(x), 0.0)


def saddle_boundary(fraction: float) -> Vec3:
    """A wavy wire frame: a circle of radius 3 oscillating five times in y."""
    x = 2 * pi * fraction
    return (3 * sin(x), 2 * sin(5 * x), 3 * cos(x))


def border_midpoint_parameter(fa: float, fb: float) -> float:
    """Average two curve parameters along the shorter arc between them."""
    return ((fa + fb + (abs(fb - fa) > 0.5)) / 2) % 1


class SoapFilm:
    """Working mesh of one relaxation run.

    ``vertices`` only ever grows by appending, so indices stay valid across
    refinement passes.  ``border`` maps border vertex indices to their curve
    parameter.
    """

    def __init__(self, boundary: BoundaryCurve):
        self.boundary = boundary
        self.vertices: List[Vec3] = []
        self.triangles: List[Triple] = []
        self.border: Dict[int, float] = {}
        self._bootstrap()

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    def is_border(self, index: int) -> bool:
        return index in self.border

    def _add_vertex(self, position: Vec3) -> int:
        self.vertices.append(position)
        return len(self.vertices) - 1

    def _add_border_vertex(self, fraction: float) -> int:
        v = self._add_vertex(to_vec3(self.boundary(fraction)))
        self.border[v] = fraction
        return v

    def _bootstrap(self) -> None:
        n = INITIAL_BORDER_SAMPLES
        ring = [self._add_border_vertex(k / n) for k in range(n)]
        center = self._add_vertex(centroid(self.vertices[v] for v in ring))
        for k, v in enumerate(ring):
            self.triangles.append((center, v, ring[(k + 1) % n]))

    def refine(self) -> Dict[Edge, int]:
        """Split every triangle into four; return this pass's edge midpoints.

        Two triangles sharing an edge share its midpoint vertex.  The midpoint
        of a border edge is a new border vertex evaluated on the curve.
        """

        edge_centers: Dict[Edge, int] = {}

        def edge_center(a: int, b: int) -> int:
            key = (a, b) if a < b else (b, a)
            v = edge_centers.get(key)
            if v is not None:
                return v
            if a in self.border and b in self.border:
                v = self._add_border_vertex(
                    border_midpoint_parameter(self.border[a], self.border[b]))
            else:
                v = self._add_vertex(midpoint(self.vertices[a], self.vertices[b]))
            edge_centers[key] = v
            return v

        # The triangle list grows while we walk the original entries.
        for i in range(len(self.triangles)):
            a, b, c = self.triangles[i]
            ab = edge_center(a, b)
            bc = edge_center(b, c)
            ca = edge_center(c, a)
            self.triangles.append((a, ab, ca))
            self.triangles.append((b, bc, ab))
            self.triangles.append((c, ca, bc))
            self.triangles[i] = (ab, bc, ca)
        return edge_centers

    def smooth(self) -> float:
        """Move each interior vertex to the mean of its neighbours' old positions.

        Returns the largest distance an interior vertex moved.
        """

        positions = np.asarray(self.vertices, dtype=np.float64)
        tris = np.asarray(self.triangles, dtype=np.intp)
        sums = np.zeros_like(positions)
        # Every triangle contributes its two other corners to each corner.
        for corner in range(3):
            others = positions[tris[:, (corner + 1) % 3]] + positions[tris[:, (corner + 2) % 3]]
            np.add.at(sums, tris[:, corner], others)
        counts = 2 * np.bincount(tris.reshape(-1), minlength=len(positions))

        interior = np.ones(len(positions), dtype=bool)
        interior[list(self.border)] = False
        interior &= counts > 0
        indices = np.flatnonzero(interior)
        if len(indices) == 0:
            return 0.0

        updated = sums[indices] / counts[indices][:, None]
        max_move = float(np.sqrt(((updated - positions[indices]) ** 2).sum(axis=1).max()))
        for idx, pos in zip(indices.tolist(), updated.tolist()):
            self.vertices[idx] = (pos[0], pos[1], pos[2])

        logger.debug("smoothed %d vertices (%d border), %d triangles, max move %g",
                     len(self.vertices), len(self.border), len(self.triangles), max_move)
        return max_move

    def relax(self, refinements: int, smoothing_steps: int) -> None:
        """Run ``refinements`` passes of refine-then-smooth."""

        _check_count("refinements", refinements)
        _check_count("smoothing_steps", smoothing_steps)
        t_start = time.perf_counter()
        for _ in range(refinements):
            self.refine()
            for _ in range(smoothing_steps):
                self.smooth()
        elapsed = (time.perf_counter() - t_start) * 1000.0
        logger.info("in %.1f ms: %d refinement(s) @ %d smoothing(s) => "
                    "%d vertices (%d border), %d triangles",
                    elapsed, refinements, smoothing_steps,
                    len(self.vertices), len(self.border), len(self.triangles))

    def emit(self, builder: MeshBuilder) -> None:
        """Replay the working mesh into ``builder``."""
        v_map = [builder.add_vertex(v) for v in self.vertices]
        for a, b, c in self.triangles:
            builder.add_triangle(v_map[a], v_map[b], v_map[c])


def _check_count(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def relax(boundary: BoundaryCurve, refinements: int, smoothing_steps: int) -> SurfaceGenerator:
    """Relax a soap film spanning ``boundary`` and return a generator emitting it.

    The relaxation runs immediately; the returned generator only replays the
    result into whichever builder it is given.
    """

    film = SoapFilm(boundary)
    film.relax(refinements, smoothing_steps)
    return film.emit


__all__ = [
    "BoundaryCurve",
    "INITIAL_BORDER_SAMPLES",
    "SoapFilm",
    "border_midpoint_parameter",
    "relax",
    "saddle_boundary",
    "unit_circle",
]
