"""Grid and triangle walkers plus a few generators built on top of them.

``quadrangulate`` walks a rectangular parameter grid and ``triangulate``
walks a barycentric triangle lattice.  Both only decide connectivity; the
caller decides where the vertices go.
"""

from __future__ import annotations

import logging
from math import cos, pi, sin, sqrt
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from surfgen.builder import MeshBuilder, SurfaceGenerator
from surfgen.vec3 import Vec3, add, normalize, scale, to_vec3

logger = logging.getLogger(__name__)

VertexValue = Union[Sequence[float], Tuple[Sequence[float], Sequence[float]]]
VertexFromXY = Callable[[float, float], VertexValue]


def subdivide(start: float, stop: float, steps: int) -> List[float]:
    """Return ``steps + 1`` equally spaced values from ``start`` to ``stop``.

    Both ends are hit exactly.  With ``steps == 0`` only ``start`` is returned.
    """

    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")
    if steps == 0:
        if start != stop:
            logger.warning("subdividing a non-empty interval [%g, %g] into 0 steps", start, stop)
        return [start]
    return [(start * (steps - i) + stop * i) / steps for i in range(steps + 1)]


def _emit_vertex(builder: MeshBuilder, value: VertexValue) -> int:
    # A bare position has three components, a (position, normal) pair has two.
    if len(value) == 2:
        position, normal = value
        return builder.add_vertex(position, normal)
    return builder.add_vertex(value)


def quadrangulate(xs: Sequence[float], ys: Sequence[float], to_vertex: VertexFromXY, *,
                  material: int = 0, invert: bool = False) -> SurfaceGenerator:
    """Return a generator meshing the grid ``xs`` x ``ys``.

    ``to_vertex(x, y)`` maps a grid point to a position or to a
    ``(position, normal)`` pair.  Each grid cell becomes one quadrangle, so
    the result has ``2 * (len(xs) - 1) * (len(ys) - 1)`` triangles.  Cells are
    oriented so that the triangle normals follow ``d/dx`` x ``d/dy`` of the
    mapping.
    """

    def generator(builder: MeshBuilder) -> None:
        prev_line: Optional[List[int]] = None
        for x in xs:
            line: List[int] = []
            for j, y in enumerate(ys):
                vertex = _emit_vertex(builder, to_vertex(x, y))
                if prev_line is not None and j > 0:
                    builder.add_quadrangle(line[j - 1], vertex, prev_line[j], prev_line[j - 1],
                                           material=material, invert=invert)
                line.append(vertex)
            prev_line = line

    return generator


def triangulate(n: int,
                add_vertex_from_indices: Callable[[int, int, int], int],
                emit_triangle: Callable[[int, int, int], None]) -> None:
    """Walk the ``n``-row triangular lattice.

    ``add_vertex_from_indices(i, j, k)`` is called once per lattice point with
    ``i + j + k == n`` (row ``i``, position ``j`` within the row) and must
    return a vertex index.  ``emit_triangle(a, b, c)`` receives the ``n**2``
    triangles, all with the same winding.  For ``n == 0`` the single corner
    ``(0, 0, 0)`` is visited and nothing is emitted.
    """

    if n < 0:
        raise ValueError(f"subdivision count must be non-negative, got {n}")
    prev_row: Optional[List[int]] = None
    for i in range(n + 1):
        row: List[int] = []
        n_i = n - i
        prev: Optional[int] = None
        for j in range(n_i + 1):
            v = add_vertex_from_indices(i, j, n_i - j)
            row.append(v)
            if prev_row is not None:
                if prev is not None:
                    emit_triangle(v, prev_row[j], prev)
                emit_triangle(v, prev_row[j + 1], prev_row[j])
            prev = v
        prev_row = row


def flat_triangle(a: Sequence[float], b: Sequence[float], c: Sequence[float], n: int, *,
                  material: int = 0, invert: bool = False) -> SurfaceGenerator:
    """Return a generator for the planar triangle ``a b c`` split into ``n**2`` pieces.

    Lattice point ``(i, j, k)`` sits at ``(i*a + j*b + k*c) / n``.
    """

    pa, pb, pc = to_vec3(a), to_vec3(b), to_vec3(c)

    def generator(builder: MeshBuilder) -> None:
        if n == 0:
            return

        def vertex(i: int, j: int, k: int) -> int:
            return builder.add_vertex(add(add(scale(pa, i / n), scale(pb, j / n)), scale(pc, k / n)))

        triangulate(n, vertex,
                    lambda p, q, r: builder.add_triangle(p, q, r, material=material, invert=invert))

    return generator


def _rotate(axis: int, values: Tuple[int, int, int]) -> Tuple[int, ...]:
    return values[axis:] + values[:axis]


def rounded_box(corner0: Sequence[float], corner1: Sequence[float],
                radii: Sequence[float], steps: int) -> SurfaceGenerator:
    """Return a generator for a box with rounded edges and corners.

    ``corner0`` and ``corner1`` are opposite corners of the inner box; the
    surface lies ``radii`` (per axis) outside of it.  Each of the eight
    corners is a spherical triangle subdivided into ``steps**2`` triangles;
    flat faces and cylindrical edge strips reuse the corner border vertices.
    All vertices carry explicit normals.
    """

    if steps < 1:
        raise ValueError(f"rounded_box needs at least one step, got {steps}")
    corners = (to_vec3(corner0), to_vec3(corner1))
    rx, ry, rz = to_vec3(radii)
    sines = [sin(m / steps * pi / 2) for m in range(steps + 1)]

    def generator(builder: MeshBuilder) -> None:
        # Border vertices of the corner patches, keyed by the corner
        # (which end of each axis) and the lattice position within it.
        border: Dict[Tuple[Tuple[int, ...], Tuple[int, ...]], int] = {}

        for i in (0, 1):
            for j in (0, 1):
                for k in (0, 1):
                    invert = (i + j + k) % 2 == 0
                    signs = (2 * i - 1, 2 * j - 1, 2 * k - 1)
                    center = (corners[i][0], corners[j][1], corners[k][2])

                    def corner_vertex(i2: int, j2: int, k2: int,
                                      signs=signs, center=center, key=(i, j, k)) -> int:
                        normal = normalize((sines[i2] * signs[0],
                                            sines[j2] * signs[1],
                                            sines[k2] * signs[2]))
                        position = add(center, (normal[0] * rx, normal[1] * ry, normal[2] * rz))
                        v = builder.add_vertex(position, normal)
                        if i2 == 0 or j2 == 0 or k2 == 0:
                            border[(key, (i2, j2, k2))] = v
                        return v

                    triangulate(steps, corner_vertex,
                                lambda a, b, c, invert=invert: builder.add_triangle(a, b, c, invert=invert))

        for axis in range(3):
            def lookup(dims: Tuple[int, int, int], dims2: Tuple[int, int, int], axis=axis) -> int:
                return border[(_rotate(axis, dims), _rotate(axis, dims2))]

            for f in (0, 1):
                # face
                builder.add_quadrangle(lookup((f, 0, 0), (steps, 0, 0)),
                                       lookup((f, 1, 0), (steps, 0, 0)),
                                       lookup((f, 1, 1), (steps, 0, 0)),
                                       lookup((f, 0, 1), (steps, 0, 0)),
                                       invert=f == 0)
                for g in (0, 1):
                    # edge
                    for f2 in range(steps):
                        g2 = steps - f2
                        builder.add_quadrangle(lookup((0, f, g), (0, f2, g2)),
                                               lookup((1, f, g), (0, f2, g2)),
                                               lookup((1, f, g), (0, f2 + 1, g2 - 1)),
                                               lookup((0, f, g), (0, f2 + 1, g2 - 1)),
                                               invert=f != g)

    return generator


def icosahedron(radius: float = 1.0, *, material: int = 0) -> SurfaceGenerator:
    """Return a generator for a regular icosahedron with circumradius ``radius``.

    The twelve vertices are the two poles plus two pentagons at heights
    ``+-radius/sqrt(5)``, rotated against each other by 36 degrees.  Faces
    are wound outward and share their vertices, so every vertex normal is
    computed from the five faces around it.
    """

    height = radius / sqrt(5)
    ring_radius = 2 * height

    def generator(builder: MeshBuilder) -> None:
        north = builder.add_vertex((0.0, 0.0, radius))
        south = builder.add_vertex((0.0, 0.0, -radius))
        # Alternating upper and lower ring vertices, 36 degrees apart.
        ring = [builder.add_vertex((ring_radius * cos(pi / 5 * i),
                                    ring_radius * sin(pi / 5 * i),
                                    height if i % 2 == 0 else -height))
                for i in range(10)]
        for i in range(0, 10, 2):
            upper0, lower1, upper2, lower3 = (ring[(i + j) % 10] for j in range(4))
            builder.add_triangle(north, upper0, upper2, material=material)
            builder.add_triangle(lower1, upper2, upper0, material=material)
            builder.add_triangle(lower1, lower3, upper2, material=material)
            builder.add_triangle(lower1, south, lower3, material=material)

    return generator


def sphere(radius: float = 1.0, n: int = 8, *, use_sines: bool = False,
           full: bool = True, material: int = 0) -> SurfaceGenerator:
    """Return a generator for a sphere made of eight triangulated octants.

    Each octant is the lattice of :func:`triangulate` projected onto the
    sphere, giving ``n**2`` triangles per octant.  Lattice coordinates are
    taken as ``i/n`` or, with ``use_sines``, as ``sin(i/n * pi/2)``, which
    spreads the vertices more evenly towards the octant corners.  With
    ``full=False`` only the positive octant is emitted.  Octants do not share
    their seam vertices; normals are explicit.
    """

    if n < 1:
        raise ValueError(f"sphere needs at least one subdivision, got {n}")
    if use_sines:
        coords = [sin(m / n * pi / 2) for m in range(n + 1)]
    else:
        coords = [m / n for m in range(n + 1)]
    signs = (-1, 1) if full else (1,)

    def generator(builder: MeshBuilder) -> None:
        for sx in signs:
            for sy in signs:
                for sz in signs:
                    # Mirroring through an odd number of planes flips the winding.
                    invert = sx * sy * sz < 0

                    def vertex(i: int, j: int, k: int, sx=sx, sy=sy, sz=sz) -> int:
                        normal = normalize((sx * coords[i], sy * coords[j], sz * coords[k]))
                        return builder.add_vertex(scale(normal, radius), normal)

                    triangulate(n, vertex,
                                lambda a, b, c, invert=invert: builder.add_triangle(
                                    a, b, c, material=material, invert=invert))

    return generator


def enneper_point(x: float, y: float) -> Vec3:
    """Enneper's minimal surface at parameter ``(x, y)``."""
    return (
        x - x ** 3 / 3 + x * y ** 2,
        -y + y ** 3 / 3 - x ** 2 * y,
        x ** 2 - y ** 2,
    )


def enneper_surface(x_range: Tuple[float, float] = (-1.0, 1.0),
                    y_range: Tuple[float, float] = (-1.0, 1.0),
                    x_steps: int = 50, y_steps: int = 50) -> SurfaceGenerator:
    """Enneper's surface over a rectangular parameter patch."""
    xs = subdivide(x_range[0], x_range[1], x_steps)
    ys = subdivide(y_range[0], y_range[1], y_steps)
    return quadrangulate(xs, ys, enneper_point)


__all__ = [
    "subdivide",
    "quadrangulate",
    "triangulate",
    "flat_triangle",
    "rounded_box",
    "icosahedron",
    "sphere",
    "enneper_point",
    "enneper_surface",
]
