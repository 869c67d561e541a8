"""Validation helpers for finished indexed meshes."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Tuple

from surfgen.builder import IndexedMesh


def indices_valid(mesh: IndexedMesh) -> "CheckResult":
    """Every triangle index must refer to an existing vertex."""

    bad = [idx for idx, tri in enumerate(mesh.triangles().tolist())
           if any(v >= mesh.vertex_count for v in tri)]
    if bad:
        return CheckResult(False, [f'triangles with out-of-range indices: {bad}'])
    return CheckResult(True, [])


def boundary_edges(mesh: IndexedMesh) -> List[Tuple[int, int]]:
    """Return the undirected edges used by exactly one triangle."""

    edges = _edge_counts(mesh)
    return sorted(edge for edge, count in edges.items() if count == 1)


def mesh_watertight(mesh: IndexedMesh) -> "CheckResult":
    edges = _edge_counts(mesh)

    boundary = [edge for edge, count in edges.items() if count == 1]
    invalid = [edge for edge, count in edges.items() if count > 2]

    warnings: List[str] = []
    ok = True
    if boundary:
        ok = False
        warnings.append(f'{len(boundary)} boundary edges detected')
    if invalid:
        ok = False
        warnings.append(f'edges with multiplicity >2: {invalid}')

    return CheckResult(ok, warnings)


def faces_oriented(mesh: IndexedMesh) -> "CheckResult":
    """Neighbouring triangles must traverse their shared edge in opposite directions."""

    directed = Counter()
    for a, b, c in mesh.triangles().tolist():
        directed[(a, b)] += 1
        directed[(b, c)] += 1
        directed[(c, a)] += 1

    inconsistent = sorted(edge for edge, count in directed.items() if count > 1)
    if inconsistent:
        return CheckResult(False, [f'edges traversed twice in the same direction: {inconsistent}'])
    return CheckResult(True, [])


def _edge_counts(mesh: IndexedMesh) -> Counter:
    edges = Counter()
    for a, b, c in mesh.triangles().tolist():
        edges[_edge_key(a, b)] += 1
        edges[_edge_key(b, c)] += 1
        edges[_edge_key(c, a)] += 1
    return edges


def _edge_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


__all__ = [
    'CheckResult',
    'indices_valid',
    'boundary_edges',
    'mesh_watertight',
    'faces_oriented',
]
