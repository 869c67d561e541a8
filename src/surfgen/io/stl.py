"""STL export for indexed meshes."""

from __future__ import annotations

import struct
from typing import Iterator, List, Tuple

from surfgen.builder import IndexedMesh
from surfgen.vec3 import Vec3, triangle_normal

_HEADER_SIZE = 80
_STRUCT_TRIANGLE = struct.Struct('<12fH')

Facet = Tuple[Vec3, Vec3, Vec3, Vec3]


def facets(mesh: IndexedMesh) -> Iterator[Facet]:
    """Yield ``(normal, v0, v1, v2)`` per triangle, skipping degenerate ones."""

    verts = [tuple(v) for v in mesh.vertices().tolist()]
    for a, b, c in mesh.triangles().tolist():
        v0, v1, v2 = verts[a], verts[b], verts[c]
        normal = triangle_normal(v0, v1, v2)
        if normal is None:
            continue
        yield normal, v0, v1, v2


def write_stl(mesh: IndexedMesh, path_or_file, *, binary: bool = True, name: str = 'surfgen') -> None:
    """Write ``mesh`` to STL.

    ``path_or_file`` can be a filesystem path or an open binary/text stream.
    """

    triangles = list(facets(mesh))

    if binary:
        _write_binary(triangles, path_or_file, name)
    else:
        _write_ascii(triangles, path_or_file, name)


def _write_binary(triangles: List[Facet], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'wb')
        close_when_done = True

    try:
        header = (name[:_HEADER_SIZE]).encode('ascii', errors='replace')
        header = header.ljust(_HEADER_SIZE, b' ')
        stream.write(header)
        stream.write(struct.pack('<I', len(triangles)))

        for normal, v0, v1, v2 in triangles:
            stream.write(_STRUCT_TRIANGLE.pack(*normal, *v0, *v1, *v2, 0))
    finally:
        if close_when_done:
            stream.close()


def _write_ascii(triangles: List[Facet], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'w', encoding='ascii')
        close_when_done = True

    try:
        print(f"solid {name}", file=stream)
        for normal, v0, v1, v2 in triangles:
            print(f"  facet normal {normal[0]:.6e} {normal[1]:.6e} {normal[2]:.6e}", file=stream)
            print("    outer loop", file=stream)
            for v in (v0, v1, v2):
                print(f"      vertex {v[0]:.6e} {v[1]:.6e} {v[2]:.6e}", file=stream)
            print("    endloop", file=stream)
            print("  endfacet", file=stream)
        print(f"endsolid {name}", file=stream)
    finally:
        if close_when_done:
            stream.close()
