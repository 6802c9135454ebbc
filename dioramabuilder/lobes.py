"""Stepped-voxel museum lobes and the monorail keep-clear corridor.

Each lobe is a parametric solid sampled on a 1.25-unit grid and reduced
to its shell.  The monorail threads through the museum, so lobes are
carved wherever a voxel at beam height would sit within 4 units of either
track.
"""

import math
import logging

import numpy as np
import shapely
from scipy.spatial import cKDTree
from shapely.geometry import box as shapely_box

from .audio import SoundKind, attach_sound, create_sound
from .constants import TRACK_HEIGHT
from .models import Dimensions
from .primitives import Material, create_cylinder, create_plane, glow
from .scene import Light, group, light_node
from .transforms import transform_point
from .voxels import generate_shell, instanced_node

logger = logging.getLogger(__name__)

LOBE_VOXEL_SIZE = 1.25
MUSEUM_POSITION = (-70.0, 0.0, -280.0)
MUSEUM_ROTATION = math.pi / 4

CORRIDOR_HALF_SPAN = 60.0
CORRIDOR_RADIUS = 4.0
CORRIDOR_SAMPLES = 400


# ── Shape predicates (normalised coordinates) ─────────────────────────

def wavy_cylinder(nx, ny, nz):
    angle = math.atan2(nz, nx)
    radius = math.sqrt(nx * nx + nz * nz)
    return radius < 0.8 + math.sin(ny * 5 + angle * 2) * 0.15


def drooping_sphere(nx, ny, nz):
    bulge = 1.0 + abs(ny) * 0.2 if ny < 0 else 1.0
    return nx * nx + ny * ny + nz * nz < 0.8 * bulge


def sheared_cone(nx, ny, nz):
    width = 1.0 - (ny + 1) * 0.2
    ex = nx - ny * 0.5
    return ex * ex + nz * nz < width * width


def box_prism(nx, ny, nz):
    return abs(nx) < 0.6 and abs(nz) < 0.6


class KeepClearCorridor:
    """Exclusion predicate carving a path for the beams through a group.

    Parameters
    ----------
    placement : (4, 4) array
        Local-to-world matrix of the group whose local points are tested.
    points : (N, 3) array
        World-space samples along the corridor centre lines.
    """

    def __init__(self, placement, points, y_range=(TRACK_HEIGHT - 2, TRACK_HEIGHT + 6),
                 radius=CORRIDOR_RADIUS, half_span=CORRIDOR_HALF_SPAN):
        self.placement = np.asarray(placement, dtype=np.float64)
        self.y_range = y_range
        self.radius = radius

        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        pts = pts[np.all(np.isfinite(pts), axis=1)]
        ox, oz = self.placement[0, 3], self.placement[2, 3]
        window = shapely_box(ox - half_span, oz - half_span, ox + half_span, oz + half_span)
        if len(pts):
            mask = shapely.contains_xy(window, pts[:, 0], pts[:, 2])
            pts = pts[mask]
        self.points = pts
        self._tree = cKDTree(pts[:, [0, 2]]) if len(pts) else None
        logger.debug(f"Keep-clear corridor: {len(pts)} track samples near ({ox}, {oz})")

    def __call__(self, x, y, z):
        lo, hi = self.y_range
        if self._tree is None or y < lo or y > hi:
            return False
        wx, _, wz = transform_point(self.placement, (x, y, z))
        dist, _ = self._tree.query((wx, wz))
        return bool(dist < self.radius)


def stepped_lobe(center, dims, color, material_params, shape, exclude=None, name=None):
    """One shell-voxel lobe as an instanced node, or None when nothing survives."""
    voxels = generate_shell(Dimensions(*dims), LOBE_VOXEL_SIZE, shape,
                            center=center, exclude=exclude)
    logger.info(f"Lobe {name or color}: {len(voxels)} shell voxels")
    return instanced_node(voxels, LOBE_VOXEL_SIZE, Material(color=color, **material_params),
                          name=name)


# center, dims (w, h, d), colour, material, shape
LOBES = (
    ('gold', (-25, 0, 0), (18, 22, 15), '#C5A059',
     dict(metalness=1.0, roughness=0.15), wavy_cylinder),
    ('red', (-5, 0, 25), (12, 18, 12), '#D91E36',
     dict(metalness=0.9, roughness=0.1), drooping_sphere),
    ('grey', (16, 0, 6), (15, 28, 15), '#7A8999',
     dict(metalness=1.0, roughness=0.1), sheared_cone),
    ('black', (2, 0, -4), (8, 32, 8), '#111111',
     dict(metalness=1.0, roughness=0.05), box_prism),
)


def _spotlights(museum, count=4, radius=50.0):
    for i in range(count):
        angle = i / count * math.pi * 2
        x, z = math.sin(angle) * radius, math.cos(angle) * radius
        spot = light_node(Light(kind='spot', color='#FFFFFF', intensity=2000,
                                distance=200, decay=1.5),
                          position=(x, 0.5, z), name=f"museum_spot_{i}")
        spot.user_data['target'] = (0.0, 20.0, 0.0)
        museum.add(spot)
        create_cylinder(0.5, 0.6, 0.5, 8, '#222', x, 0.25, z, museum)
        glow(create_plane(0.4, 0.4, '#FFFFE0', x, 0.51, z, -math.pi / 2, museum), '#FFFFFF')


def build_museum(tracks, audio=None):
    """Four stepped lobes around a lit forecourt, carved clear of *tracks*."""
    museum = group(name="museum", position=MUSEUM_POSITION, rotation_y=MUSEUM_ROTATION)
    _spotlights(museum)

    samples = [curve.spaced_points(CORRIDOR_SAMPLES) for curve in tracks]
    points = np.concatenate(samples) if samples else np.empty((0, 3))
    corridor = KeepClearCorridor(museum.local_matrix(), points)

    attach_sound(museum, create_sound(audio, SoundKind.MOPOP, 80, 800, 0.6))

    for name, center, dims, color, params, shape in LOBES:
        museum.add(stepped_lobe(center, dims, color, params, shape, exclude=corridor,
                                name=f"museum_lobe_{name}"))
    return museum
