"""Tests for the mesh builder and the generator contract."""

import logging

import numpy as np
import pytest

from surfgen.builder import (
    IndexedMesh,
    MaterialGroup,
    MeshBuilder,
    MeshBuilderError,
    build_mesh,
    combine_generators,
)


def _square(builder, **options):
    a = builder.add_vertex((0, 0, 0))
    b = builder.add_vertex((1, 0, 0))
    c = builder.add_vertex((1, 1, 0))
    d = builder.add_vertex((0, 1, 0))
    builder.add_quadrangle(a, b, c, d, **options)
    return a, b, c, d


class TestEmission:
    """Vertex and triangle registration."""

    def test_vertex_indices_are_sequential(self):
        builder = MeshBuilder()
        assert [builder.add_vertex((i, 0, 0)) for i in range(5)] == [0, 1, 2, 3, 4]
        assert builder.vertex_count == 5

    def test_vertex_read_back(self):
        builder = MeshBuilder()
        builder.add_vertex((1, 2, 3))
        v = builder.add_vertex([4, 5, 6, 1], normal=(0, 0, 1))
        assert builder.vertex_position(0) == (1.0, 2.0, 3.0)
        assert builder.vertex_position(v) == (4.0, 5.0, 6.0)
        assert builder.vertex_normal(v) == (0.0, 0.0, 1.0)
        assert builder.vertex_normal(0) is None

    def test_invert_reverses_winding(self):
        plain = MeshBuilder()
        inverted = MeshBuilder()
        for builder in (plain, inverted):
            for i in range(3):
                builder.add_vertex((i, i * i, 0))
        plain.add_triangle(0, 1, 2, material=1)
        inverted.add_triangle(0, 1, 2, material=1, invert=True)
        assert plain.finish().group_triangles(1).tolist() == [[0, 1, 2]]
        assert inverted.finish().group_triangles(1).tolist() == [[2, 1, 0]]

    def test_quadrangle_decomposition(self):
        builder = MeshBuilder()
        _square(builder)
        mesh = builder.finish()
        assert mesh.triangles().tolist() == [[0, 1, 2], [0, 2, 3]]

    def test_inverted_quadrangle(self):
        builder = MeshBuilder()
        _square(builder, invert=True)
        mesh = builder.finish()
        assert mesh.triangles().tolist() == [[2, 1, 0], [3, 2, 0]]
        assert set(mesh.indices.tolist()) == {0, 1, 2, 3}

    def test_triangle_count(self):
        builder = MeshBuilder()
        _square(builder)
        _square(builder, material=3)
        assert builder.triangle_count == 4


class TestUsageErrors:
    """Contract violations are hard failures."""

    def test_unknown_vertex_index(self):
        builder = MeshBuilder()
        builder.add_vertex((0, 0, 0))
        builder.add_vertex((1, 0, 0))
        with pytest.raises(MeshBuilderError):
            builder.add_triangle(0, 1, 2)
        with pytest.raises(MeshBuilderError):
            builder.add_triangle(-1, 0, 1)
        with pytest.raises(MeshBuilderError):
            builder.vertex_position(5)

    def test_non_integer_index(self):
        builder = MeshBuilder()
        for i in range(3):
            builder.add_vertex((i, 0, 0))
        with pytest.raises(MeshBuilderError):
            builder.add_triangle(0, 1.0, 2)
        with pytest.raises(MeshBuilderError):
            builder.add_triangle(True, 1, 2)

    def test_numpy_integer_index_accepted(self):
        builder = MeshBuilder()
        for i in range(3):
            builder.add_vertex((i, i, 0))
        builder.add_triangle(np.int64(0), np.int32(1), 2)
        assert builder.finish().triangles().tolist() == [[0, 1, 2]]

    def test_bad_material(self):
        builder = MeshBuilder()
        for i in range(3):
            builder.add_vertex((i, 0, 0))
        with pytest.raises(MeshBuilderError):
            builder.add_triangle(0, 1, 2, material=-1)

    def test_usage_error_is_value_error(self):
        assert issubclass(MeshBuilderError, ValueError)

    def test_no_operations_after_finish(self):
        builder = MeshBuilder()
        _square(builder)
        builder.finish()
        assert builder.finished
        with pytest.raises(MeshBuilderError):
            builder.add_vertex((0, 0, 1))
        with pytest.raises(MeshBuilderError):
            builder.add_triangle(0, 1, 2)
        with pytest.raises(MeshBuilderError):
            builder.add_quadrangle(0, 1, 2, 3)
        with pytest.raises(MeshBuilderError):
            builder.vertex_position(0)

    def test_failed_quadrangle_registers_nothing(self):
        builder = MeshBuilder()
        for i in range(3):
            builder.add_vertex((i, i % 2, 0))
        with pytest.raises(MeshBuilderError):
            builder.add_quadrangle(0, 1, 2, 99)
        with pytest.raises(MeshBuilderError):
            builder.add_quadrangle(0, 1, 2, 0, material=-3)
        assert builder.triangle_count == 0

    def test_finish_twice_rejected(self):
        builder = MeshBuilder()
        _square(builder)
        builder.finish()
        with pytest.raises(MeshBuilderError):
            builder.finish()


class TestFinish:
    """Flattening, grouping and normals."""

    def test_groups_sorted_by_material(self):
        builder = MeshBuilder()
        for i in range(4):
            builder.add_vertex((i, i % 2, 0))
        builder.add_triangle(0, 1, 2, material=2)
        builder.add_triangle(1, 2, 3, material=0)
        builder.add_triangle(0, 2, 3, material=2)
        mesh = builder.finish()
        assert mesh.groups == (MaterialGroup(0, 0, 1), MaterialGroup(2, 1, 2))
        assert mesh.indices.tolist() == [1, 2, 3, 0, 1, 2, 0, 2, 3]
        assert mesh.groups[1].index_range == (3, 9)
        assert mesh.group_triangles(2).tolist() == [[0, 1, 2], [0, 2, 3]]
        assert mesh.group_triangles(1).shape == (0, 3)

    def test_groups_cover_indices(self):
        builder = MeshBuilder()
        _square(builder, material=4)
        _square(builder, material=1)
        _square(builder)
        mesh = builder.finish()
        start = 0
        for group in mesh.groups:
            assert group.start == start
            start += group.count
        assert start == mesh.triangle_count == 6

    def test_array_layout(self):
        builder = MeshBuilder()
        _square(builder)
        mesh = builder.finish()
        assert isinstance(mesh, IndexedMesh)
        assert mesh.positions.dtype == np.float64
        assert mesh.indices.dtype == np.uint32
        assert mesh.positions.shape == (12,)
        assert mesh.normals.shape == (12,)
        assert mesh.indices.shape == (6,)
        assert mesh.vertex_count == 4
        assert mesh.vertices()[2].tolist() == [1.0, 1.0, 0.0]

    def test_mesh_is_read_only(self):
        builder = MeshBuilder()
        _square(builder)
        mesh = builder.finish()
        for array in (mesh.positions, mesh.normals, mesh.indices):
            assert not array.flags.writeable
        with pytest.raises(ValueError):
            mesh.positions[0] = 5.0

    def test_computed_normals(self):
        builder = MeshBuilder()
        _square(builder)
        mesh = builder.finish()
        assert mesh.normals_computed
        assert np.allclose(mesh.vertex_normals(), [[0, 0, 1]] * 4)
        assert mesh.warnings == ()

    def test_computed_normals_are_averaged(self):
        # Two faces of a roof meeting at the ridge 1-2.
        builder = MeshBuilder()
        v = [builder.add_vertex(p) for p in
             [(-1, 0, 0), (0, 0, 1), (0, 1, 1), (-1, 1, 0), (1, 0, 0), (1, 1, 0)]]
        builder.add_quadrangle(v[0], v[1], v[2], v[3])
        builder.add_quadrangle(v[1], v[4], v[5], v[2])
        mesh = builder.finish()
        normals = mesh.vertex_normals()
        s = 1 / np.sqrt(2)
        assert np.allclose(normals[0], [-s, 0, s])
        assert np.allclose(normals[4], [s, 0, s])
        # area weighted: the ridge vertex touches one left and two right triangles
        assert np.allclose(normals[1], np.array([1, 0, 3]) / np.sqrt(10))
        assert np.allclose(np.linalg.norm(mesh.vertex_normals(), axis=1), 1.0)

    def test_explicit_normals_used(self):
        builder = MeshBuilder()
        for p in [(0, 0, 0), (1, 0, 0), (0, 1, 0)]:
            builder.add_vertex(p, normal=(0, 0, -1))
        builder.add_triangle(0, 1, 2)
        mesh = builder.finish()
        assert not mesh.normals_computed
        assert mesh.normals.tolist() == [0.0, 0.0, -1.0] * 3

    def test_partial_normals_fall_back(self, caplog):
        builder = MeshBuilder()
        with caplog.at_level(logging.WARNING, logger="surfgen.builder"):
            builder.add_vertex((0, 0, 0), normal=(0, 0, -1))
            builder.add_vertex((1, 0, 0))
            builder.add_vertex((0, 1, 0), normal=(0, 0, -1))
            builder.add_triangle(0, 1, 2)
            mesh = builder.finish()
        assert mesh.normals_computed
        assert np.allclose(mesh.vertex_normals(), [[0, 0, 1]] * 3)
        assert any("expected normal for vertex #1" in w for w in mesh.warnings)
        assert any("supplied only 2 normals for 3 vertices" in w for w in mesh.warnings)
        assert "supplied only 2 normals" in caplog.text

    def test_unexpected_normal_warns(self):
        builder = MeshBuilder()
        builder.add_vertex((0, 0, 0))
        builder.add_vertex((1, 0, 0), normal=(0, 0, 1))
        builder.add_vertex((0, 1, 0))
        builder.add_triangle(0, 1, 2)
        mesh = builder.finish()
        assert any("unexpected normal for vertex #1" in w for w in mesh.warnings)
        assert mesh.normals_computed

    def test_isolated_vertex_keeps_zero_normal(self):
        builder = MeshBuilder()
        _square(builder)
        lonely = builder.add_vertex((5, 5, 5))
        mesh = builder.finish()
        assert mesh.vertex_normals()[lonely].tolist() == [0.0, 0.0, 0.0]
        assert any("no adjacent triangle" in w for w in mesh.warnings)

    def test_isolated_vertex_with_explicit_normals_warns(self):
        builder = MeshBuilder()
        for p in [(0, 0, 0), (1, 0, 0), (0, 1, 0), (4, 4, 0)]:
            builder.add_vertex(p, normal=(0, 0, 1))
        builder.add_triangle(0, 1, 2)
        mesh = builder.finish()
        assert not mesh.normals_computed
        assert mesh.warnings == ("1 vertices have no adjacent triangle (first: #3)",)
        assert mesh.vertex_normals()[3].tolist() == [0.0, 0.0, 1.0]

    def test_empty_mesh(self):
        mesh = MeshBuilder().finish()
        assert mesh.vertex_count == 0
        assert mesh.triangle_count == 0
        assert mesh.groups == ()
        assert mesh.triangles().shape == (0, 3)
        assert mesh.normals.shape == (0,)
        assert mesh.warnings == ()


class TestGeneratorContract:
    """Generators only talk to the builder."""

    def test_build_mesh(self):
        mesh = build_mesh(lambda b: _square(b))
        assert mesh.triangle_count == 2

    def test_combine_generators(self):
        def shifted(dx):
            def gen(builder):
                base = builder.vertex_count
                for x, y in [(0, 0), (1, 0), (0, 1)]:
                    builder.add_vertex((x + dx, y, 0))
                builder.add_triangle(base, base + 1, base + 2, material=int(dx))
            return gen

        mesh = build_mesh(combine_generators(shifted(0), shifted(1), shifted(2)))
        assert mesh.vertex_count == 9
        assert mesh.triangles().tolist() == [[0, 1, 2], [3, 4, 5], [6, 7, 8]]
        assert [g.material for g in mesh.groups] == [0, 1, 2]

    def test_indices_within_vertex_count(self):
        mesh = build_mesh(combine_generators(lambda b: _square(b), lambda b: _square(b)))
        assert mesh.indices.max() < mesh.vertex_count
