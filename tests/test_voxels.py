import math

import numpy as np
import pytest

from dioramabuilder.models import Dimensions, Voxel
from dioramabuilder.primitives import Box, Material
from dioramabuilder.scene import SceneNode
from dioramabuilder.symmetry import VoxelCollector, rotate_point
from dioramabuilder.voxels import (extract_shell, generate_shell, instanced_node, pack_instances,
                                   pack_voxels, sample_grid)


def solid(nx, ny, nz):
    return True


def cube_dims(n, size=1.0):
    """Dimensions that sample an n x n x n grid at *size*."""
    half = (n - 1) * size / 2.0
    return Dimensions(half, n * size, half)


@pytest.mark.parametrize("n", [1, 2, 3, 5, 8])
def test_shell_of_solid_cube_keeps_only_surface(n):
    grid = sample_grid(cube_dims(n), 1.0, solid)
    assert len(grid) == n ** 3
    shell = extract_shell(grid)
    expected = n ** 3 if n <= 2 else 6 * (n - 2) ** 2 + 12 * (n - 2) + 8
    assert len(shell) == expected


def test_shell_drops_interior_cells():
    shell = generate_shell(cube_dims(5), 1.0, solid)
    interior = [v for v in shell if abs(v.x) < 2 and 0 < v.y < 4 and abs(v.z) < 2]
    assert interior == []


def test_sampling_uses_normalised_coordinates():
    # Sphere of normalised radius 1 inside a 10 x 10 x 10 box
    grid = sample_grid(Dimensions(5, 10, 5), 1.0, lambda x, y, z: x * x + y * y + z * z <= 1.0)
    assert 0 < len(grid) < 11 ** 2 * 10
    assert all(v.x ** 2 + (v.y - 5) ** 2 + v.z ** 2 <= 25.0 + 1e-9 for v in grid.values())


def test_exclusion_receives_world_coordinates():
    seen = []

    def exclude(x, y, z):
        seen.append((x, y, z))
        return x > 100

    grid = sample_grid(Dimensions(1, 2, 1), 1.0, solid, center=(100, 0, 0), exclude=exclude)
    assert all(v.x <= 100 for v in grid.values())
    assert min(p[0] for p in seen) == 99


def test_zero_extent_axis_normalises_to_zero():
    seen = []
    sample_grid(Dimensions(0, 2, 0), 1.0, lambda x, y, z: seen.append((x, z)) or True)
    assert seen and all(p == (0.0, 0.0) for p in seen)


def test_empty_generation_returns_nothing():
    assert generate_shell(Dimensions(3, 3, 3), 1.0, lambda x, y, z: False) == []
    assert pack_voxels([], 1.0, Material()) is None
    assert pack_instances([], Material(), Box(1, 1, 1)) is None
    parent = SceneNode(name="parent")
    assert instanced_node([], 1.0, Material(), parent=parent) is None
    assert parent.children == []


def test_pack_voxels_emits_colors_only_when_present():
    plain = pack_voxels([Voxel(0, 0, 0), Voxel(1, 0, 0)], 1.0, Material(color='#FF0000'))
    assert plain.colors is None
    assert plain.count == 2

    mixed = pack_voxels([Voxel(0, 0, 0, '#00FF00'), Voxel(1, 0, 0)], 1.0, Material(color='#FF0000'))
    np.testing.assert_allclose(mixed.colors[0], [0, 1, 0, 1])
    np.testing.assert_allclose(mixed.colors[1], [1, 0, 0, 1])


def test_instanced_structure_is_read_only():
    structure = pack_voxels([Voxel(0, 0, 0), Voxel(1, 2, 3)], 1.0, Material())
    with pytest.raises(ValueError):
        structure.positions[0, 0] = 5.0


def test_instanced_structure_bakes_every_instance():
    structure = pack_voxels([Voxel(0, 0, 0, '#FFFFFF'), Voxel(5, 0, 0, '#000000')], 1.0, Material())
    mesh = structure.to_mesh()
    assert len(mesh.vertices) == 16
    assert len(mesh.faces) == 24
    assert mesh.bounds[1][0] == pytest.approx(5.5)


# ── Symmetry ──────────────────────────────────────────────────────────

def test_rotate_point_quarter_turn():
    x, z = rotate_point(1.0, 0.0, 90)
    assert x == pytest.approx(0.0, abs=1e-12)
    assert z == pytest.approx(1.0)


def test_hex_and_triad_replication():
    vc = VoxelCollector()
    vc.add_hex(10, 0, 0, '#FFFFFF')
    vc.add_triad(20, 5, 0, '#FF0000', kind='glass')
    assert vc.counts()['solid'] == 6
    assert vc.counts()['glass'] == 3
    radii = {round(math.hypot(v.x, v.z)) for v in vc.voxels('solid')}
    assert radii == {10}


def test_collector_snaps_and_keeps_last_write():
    vc = VoxelCollector()
    vc.add(0.4, 0.0, 0.0, '#111111')
    vc.add(0.0, 0.0, -0.4, '#222222')
    assert len(vc) == 1
    assert vc.voxels()[0].color == '#222222'


def test_collector_half_values_round_up():
    vc = VoxelCollector()
    vc.add(0.5, -0.5, 2.5, '#FFFFFF')
    v = vc.voxels()[0]
    assert (v.x, v.y, v.z) == (1, 0, 3)


def test_collector_rejects_unknown_kind():
    with pytest.raises(ValueError):
        VoxelCollector().add(0, 0, 0, '#FFFFFF', kind='plasma')
