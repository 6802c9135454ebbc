"""Voxel grid sampling, shell extraction and instanced packing.

A parametric solid is sampled on a regular grid inside a bounding box,
reduced to its boundary (any cell with a missing 6-neighbour) and packed
into a single ``InstancedStructure``: one shared cube, one material, and a
per-instance translation and colour.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import trimesh

from .models import Dimensions, Voxel
from .primitives import Box, Material, to_rgba
from .scene import SceneNode

logger = logging.getLogger(__name__)

NEIGHBOURS = ((1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1))


def _axis_count(extent, size):
    if extent <= 0:
        return 1
    return int(math.floor(2.0 * extent / size + 1e-9)) + 1


def sample_grid(dims, voxel_size, inside, center=(0.0, 0.0, 0.0), exclude=None, color=None):
    """Sample *inside(nx, ny, nz)* over the box described by *dims*.

    Cells run over x in [-w, w], y in [0, h) and z in [-d, d] at a step of
    *voxel_size*.  Normalised coordinates are ``x/w``, ``(y - h/2)/(h/2)``
    and ``z/d``; a zero extent normalises to 0.  *exclude* receives world
    coordinates (``center + local``).

    Returns a dict keyed by integer cell index (i, j, k) whose values are
    ``Voxel`` instances in world coordinates.
    """
    if not isinstance(dims, Dimensions):
        dims = Dimensions(*dims)
    if voxel_size <= 0:
        logger.warning(f"Non-positive voxel size {voxel_size}; nothing sampled")
        return {}

    w, h, d = dims.w, dims.h, dims.d
    cx, cy, cz = center
    s = voxel_size
    half_h = h / 2.0

    nx_count = _axis_count(w, s)
    nz_count = _axis_count(d, s)
    ny_count = int(math.ceil(h / s - 1e-9)) if h > 0 else 0

    grid = {}
    for j in range(ny_count):
        y = j * s
        ny = (y - half_h) / half_h if half_h else 0.0
        for i in range(nx_count):
            x = -w + i * s if w > 0 else 0.0
            nx = x / w if w else 0.0
            for k in range(nz_count):
                z = -d + k * s if d > 0 else 0.0
                nz = z / d if d else 0.0
                if not inside(nx, ny, nz):
                    continue
                vx, vy, vz = cx + x, cy + y, cz + z
                if exclude is not None and exclude(vx, vy, vz):
                    continue
                grid[(i, j, k)] = Voxel(vx, vy, vz, color)
    return grid


def extract_shell(grid):
    """Keep only cells with at least one of their 6 neighbours missing."""
    shell = []
    for (i, j, k), voxel in grid.items():
        for di, dj, dk in NEIGHBOURS:
            if (i + di, j + dj, k + dk) not in grid:
                shell.append(voxel)
                break
    return shell


def generate_shell(dims, voxel_size, inside, center=(0.0, 0.0, 0.0), exclude=None, color=None):
    """Sample a solid and return its boundary voxels as a list."""
    grid = sample_grid(dims, voxel_size, inside, center=center, exclude=exclude, color=color)
    shell = extract_shell(grid)
    logger.debug(f"Shell: {len(shell)} of {len(grid)} sampled cells kept")
    return shell


# ── Instanced packing ─────────────────────────────────────────────────

def _readonly(array):
    if array is None:
        return None
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class InstancedStructure:
    """One template geometry drawn at many positions.

    Positions are (N, 3) in the owning node's local space.  ``colors`` is an
    optional (N, 4) RGBA array overriding the material's base colour per
    instance; ``scales`` an optional (N, 3) per-instance scale.
    """
    template: object
    material: Material
    positions: np.ndarray = field(repr=False)
    colors: Optional[np.ndarray] = field(default=None, repr=False)
    scales: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def count(self) -> int:
        return len(self.positions)

    def to_mesh(self):
        """Bake every instance into a single mesh with per-vertex colours."""
        base = self.template.to_mesh()
        nv = len(base.vertices)
        verts = np.tile(base.vertices, (self.count, 1, 1))
        if self.scales is not None:
            verts = verts * self.scales[:, None, :]
        verts = verts + self.positions[:, None, :]
        offsets = (np.arange(self.count) * nv)[:, None, None]
        faces = np.asarray(base.faces)[None, :, :] + offsets

        mesh = trimesh.Trimesh(vertices=verts.reshape(-1, 3), faces=faces.reshape(-1, 3),
                               process=False)
        if self.colors is not None:
            rgba = (np.repeat(self.colors, nv, axis=0) * 255).round().astype(np.uint8)
            mesh.visual = trimesh.visual.ColorVisuals(mesh, vertex_colors=rgba)
        return mesh


def pack_instances(positions, material, template, colors=None, scales=None):
    """Build an ``InstancedStructure`` from raw arrays; None when empty."""
    pos = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    if len(pos) == 0:
        logger.debug("No instances to pack")
        return None
    col = None
    if colors is not None:
        col = np.array([to_rgba(c) for c in colors], dtype=np.float64)
    sc = None
    if scales is not None:
        sc = np.asarray(scales, dtype=np.float64).reshape(-1, 3)
    return InstancedStructure(template=template, material=material,
                              positions=_readonly(pos), colors=_readonly(col),
                              scales=_readonly(sc))


def pack_voxels(voxels, voxel_size, material, template=None):
    """Pack voxels into one structure of edge-*voxel_size* cubes.

    Per-instance colours are only emitted when at least one voxel carries
    its own colour; voxels without one fall back to the material colour.
    """
    voxels = list(voxels)
    if not voxels:
        logger.debug("Empty voxel set; no structure created")
        return None
    if template is None:
        template = Box(voxel_size, voxel_size, voxel_size)
    colors = None
    if any(v.color is not None for v in voxels):
        colors = [v.color if v.color is not None else material.color for v in voxels]
    return pack_instances([(v.x, v.y, v.z) for v in voxels], material, template, colors=colors)


def instanced_node(voxels, voxel_size, material, name=None, parent=None, template=None):
    """Wrap packed voxels in a shadow-casting scene node, or return None."""
    structure = pack_voxels(voxels, voxel_size, material, template=template)
    if structure is None:
        return None
    node = SceneNode(name=name, geometry=structure, material=material)
    node.cast_shadow = True
    node.receive_shadow = True
    if parent is not None:
        parent.add(node)
    return node


def structure_node(structure, name=None, parent=None):
    if structure is None:
        return None
    node = SceneNode(name=name, geometry=structure, material=structure.material)
    node.cast_shadow = True
    node.receive_shadow = True
    if parent is not None:
        parent.add(node)
    return node
