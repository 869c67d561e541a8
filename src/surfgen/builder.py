"""Indexed-mesh construction from procedural surface generators.

A *surface generator* is any callable that takes a :class:`MeshBuilder` and
describes a surface purely through the builder's emission methods:

- ``add_vertex(position, normal=None) -> int`` registers a vertex and returns
  its index.  If normals are provided *for all vertices* they are used as-is,
  otherwise normals are computed from the triangles.
- ``vertex_position(i)`` / ``vertex_normal(i)`` read back earlier vertices.
- ``add_triangle(a, b, c, *, material=0, invert=False)`` registers a triangle
  in a material slot; ``invert`` flips the winding (and the visible side).
- ``add_quadrangle(a, b, c, d, *, material=0, invert=False)`` registers the
  two triangles ``(a, b, c)`` and ``(a, c, d)``.

``finish()`` turns the accumulated data into an immutable
:class:`IndexedMesh`.  A builder serves exactly one generator run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from surfgen.vec3 import Vec3, epsilon, to_vec3

logger = logging.getLogger(__name__)

Triple = Tuple[int, int, int]


class MeshBuilderError(ValueError):
    """Raised when a generator violates the builder's usage contract."""


@dataclass(frozen=True)
class MaterialGroup:
    """A contiguous run of triangles sharing one material slot.

    ``start`` and ``count`` are measured in triangles, so the group's slice of
    the flat index array is ``indices[3 * start:3 * (start + count)]``.
    """

    material: int
    start: int
    count: int

    @property
    def index_range(self) -> Tuple[int, int]:
        return 3 * self.start, 3 * (self.start + self.count)


@dataclass(frozen=True, eq=False)
class IndexedMesh:
    """Renderer-agnostic triangle mesh produced by :meth:`MeshBuilder.finish`.

    ``positions`` and ``normals`` are flat float64 arrays with three entries
    per vertex, ``indices`` is a flat uint32 array with three entries per
    triangle.  All arrays are read-only.
    """

    positions: np.ndarray
    normals: np.ndarray
    indices: np.ndarray
    groups: Tuple[MaterialGroup, ...]
    normals_computed: bool
    warnings: Tuple[str, ...] = ()

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def vertices(self) -> np.ndarray:
        """Positions as an ``(N, 3)`` view."""
        return self.positions.reshape(-1, 3)

    def vertex_normals(self) -> np.ndarray:
        """Normals as an ``(N, 3)`` view."""
        return self.normals.reshape(-1, 3)

    def triangles(self) -> np.ndarray:
        """Indices as an ``(M, 3)`` view."""
        return self.indices.reshape(-1, 3)

    def group_triangles(self, material: int) -> np.ndarray:
        """Return the ``(K, 3)`` triangles of one material slot (``K`` may be 0)."""
        for group in self.groups:
            if group.material == material:
                lo, hi = group.index_range
                return self.indices[lo:hi].reshape(-1, 3)
        return np.zeros((0, 3), dtype=np.uint32)


class MeshBuilder:
    """Accumulates vertices and material-grouped triangles for one mesh."""

    def __init__(self) -> None:
        self._vertices: List[Vec3] = []
        self._normals: List[Optional[Vec3]] = []
        self._triangles: Dict[int, List[Triple]] = {}
        self._normal_count = 0
        self._warnings: List[str] = []
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def triangle_count(self) -> int:
        return sum(len(tris) for tris in self._triangles.values())

    def add_vertex(self, position: Sequence[float],
                   normal: Optional[Sequence[float]] = None) -> int:
        """Register ``position`` (and optionally its normal); return the new index."""

        self._check_open()
        pos = to_vec3(position)
        index = len(self._vertices)
        if normal is not None:
            if index > 0 and self._normal_count == 0:
                self._warn(f"unexpected normal for vertex #{index} {pos}: {tuple(normal)}")
            self._normals.append(to_vec3(normal))
            self._normal_count += 1
        else:
            if self._normal_count > 0:
                self._warn(f"expected normal for vertex #{index} {pos}")
            self._normals.append(None)
        self._vertices.append(pos)
        return index

    def vertex_position(self, index: int) -> Vec3:
        self._check_open()
        return self._vertices[self._check_index(index)]

    def vertex_normal(self, index: int) -> Optional[Vec3]:
        """Return the normal supplied for ``index``, or ``None`` if there was none."""
        self._check_open()
        return self._normals[self._check_index(index)]

    def add_triangle(self, a: int, b: int, c: int, *,
                     material: int = 0, invert: bool = False) -> None:
        self._check_open()
        tri = (self._check_index(a), self._check_index(b), self._check_index(c))
        if invert:
            tri = (tri[2], tri[1], tri[0])
        self._triangles.setdefault(self._check_material(material), []).append(tri)

    def add_quadrangle(self, a: int, b: int, c: int, d: int, *,
                       material: int = 0, invert: bool = False) -> None:
        """Register quadrangle ``a b c d`` as two triangles split along ``a-c``.

        Nothing is registered unless all four corners are valid.
        """
        self._check_open()
        for index in (a, b, c, d):
            self._check_index(index)
        self._check_material(material)
        self.add_triangle(a, b, c, material=material, invert=invert)
        self.add_triangle(a, c, d, material=material, invert=invert)

    def finish(self) -> IndexedMesh:
        """Freeze the accumulated data into an :class:`IndexedMesh`.

        The builder cannot be used afterwards; a second call raises
        :class:`MeshBuilderError`.
        """

        self._check_open()
        self._finished = True

        groups: List[MaterialGroup] = []
        flat: List[Triple] = []
        for material in sorted(self._triangles):
            tris = self._triangles[material]
            groups.append(MaterialGroup(material, len(flat), len(tris)))
            flat.extend(tris)

        positions = np.asarray(self._vertices, dtype=np.float64).reshape(-1, 3)
        triangles = np.asarray(flat, dtype=np.uint32).reshape(-1, 3)

        used = np.zeros(len(positions), dtype=bool)
        used[triangles.reshape(-1).astype(np.intp)] = True
        isolated = np.flatnonzero(~used)
        if len(isolated):
            self._warn(f"{len(isolated)} vertices have no adjacent triangle "
                       f"(first: #{int(isolated[0])})")

        supplied = self._normal_count
        if self._vertices and supplied == len(self._vertices):
            normals = np.asarray(self._normals, dtype=np.float64)
            computed = False
        else:
            if supplied:
                self._warn(f"supplied only {supplied} normals for {len(self._vertices)} vertices")
            normals = self._compute_normals(positions, triangles)
            computed = True

        mesh = IndexedMesh(
            positions=_frozen(positions.reshape(-1)),
            normals=_frozen(normals.reshape(-1)),
            indices=_frozen(triangles.reshape(-1)),
            groups=tuple(groups),
            normals_computed=computed,
            warnings=tuple(self._warnings),
        )
        logger.debug("finished mesh: %d vertices, %d triangles in %d group(s)",
                     mesh.vertex_count, mesh.triangle_count, len(groups))
        return mesh

    def _compute_normals(self, positions: np.ndarray, triangles: np.ndarray) -> np.ndarray:
        # Area-weighted: unnormalized face normals are summed per vertex.
        normals = np.zeros_like(positions)
        if len(triangles):
            idx = triangles.astype(np.intp)
            p0, p1, p2 = positions[idx[:, 0]], positions[idx[:, 1]], positions[idx[:, 2]]
            face = np.cross(p1 - p0, p2 - p0)
            for corner in range(3):
                np.add.at(normals, idx[:, corner], face)

        # Isolated vertices end up with a zero normal.
        lengths = np.linalg.norm(normals, axis=1)
        ok = lengths > epsilon
        normals[ok] /= lengths[ok][:, None]
        normals[~ok] = 0.0
        return normals

    def _check_open(self) -> None:
        if self._finished:
            raise MeshBuilderError("mesh builder already finished")

    def _check_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
            raise MeshBuilderError(f"vertex index must be an integer, got {index!r}")
        if not 0 <= index < len(self._vertices):
            raise MeshBuilderError(
                f"unknown vertex index {index} (have {len(self._vertices)} vertices)")
        return int(index)

    def _check_material(self, material: int) -> int:
        if isinstance(material, bool) or not isinstance(material, (int, np.integer)) or material < 0:
            raise MeshBuilderError(f"material slot must be a non-negative integer, got {material!r}")
        return int(material)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self._warnings.append(message)


SurfaceGenerator = Callable[[MeshBuilder], None]


def build_mesh(generator: SurfaceGenerator) -> IndexedMesh:
    """Run ``generator`` against a fresh builder and return the finished mesh."""

    builder = MeshBuilder()
    generator(builder)
    return builder.finish()


def combine_generators(*generators: SurfaceGenerator) -> SurfaceGenerator:
    """Return a generator that runs ``generators`` in order on one builder."""

    def combined(builder: MeshBuilder) -> None:
        for gen in generators:
            gen(builder)

    return combined


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.ascontiguousarray(array)
    array.flags.writeable = False
    return array


__all__ = [
    "MeshBuilderError",
    "MaterialGroup",
    "IndexedMesh",
    "MeshBuilder",
    "SurfaceGenerator",
    "build_mesh",
    "combine_generators",
]
