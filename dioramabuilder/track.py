"""Elevated monorail superstructure: swept guideway beam and piers."""

import math
import logging

import numpy as np

from .constants import COLORS, PIER_SPACING
from .pavement import surface_height
from .primitives import Material, MeshData, create_box, create_mesh, sweep_profile
from .scene import group
from .transforms import clamp, is_finite, look_rotation

logger = logging.getLogger(__name__)

BEAM_WIDTH = 1.2
BEAM_HEIGHT = 2.0
BEAM_STEPS = 200

CAP_HEIGHT = 1.5
CAP_WIDTH = 3.0
CAP_DEPTH = 2.0
COLUMN_WIDTH = 1.5
MIN_COLUMN_HEIGHT = 0.5

# The ramp cut only exists under the avenue
CUT_MIN_X, CUT_MAX_X = -10.0, 40.0


def pier_ground_height(x, z):
    """Ground height under a pier; the ramp dip only applies inside the cut."""
    if not CUT_MIN_X < x < CUT_MAX_X:
        return 0.0
    return surface_height(z)


def _rectangle(w, h):
    return [(-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)]


def beam_mesh(curve, steps=BEAM_STEPS):
    """Sweep the guideway cross-section along *curve*; None if degenerate."""
    us = np.linspace(0.0, 1.0, steps + 1)
    points = [curve.point_at(u) for u in us]
    tangents = [curve.tangent_at(u) for u in us]
    swept = sweep_profile(points, tangents, _rectangle(BEAM_WIDTH, BEAM_HEIGHT))
    if swept is None:
        return None
    verts, faces = swept
    return MeshData(np.asarray(verts, dtype=np.float64), np.asarray(faces, dtype=np.int64))


def pier(position, tangent, color_column=COLORS['CONCRETE_DARK'], color_cap=COLORS['CONCRETE']):
    """Column and cap below the beam at *position*, or None if too short."""
    ground = pier_ground_height(position[0], position[2])
    cap_top = -BEAM_HEIGHT / 2
    cap_center = cap_top - CAP_HEIGHT / 2
    top = cap_top - CAP_HEIGHT
    bottom = ground - position[1]
    height = top - bottom
    if height <= MIN_COLUMN_HEIGHT:
        return None

    node = group(name="pier", position=position)
    frame = look_rotation(tangent)
    if frame is not None:
        # Y component of the XYZ Euler decomposition
        node.set_euler(0.0, math.asin(clamp(frame[0, 2], -1.0, 1.0)), 0.0)
    create_box(COLUMN_WIDTH, height, COLUMN_WIDTH, color_column, 0, top - height / 2, 0, node)
    create_box(CAP_WIDTH, CAP_HEIGHT, CAP_DEPTH, color_cap, 0, cap_center, 0, node)
    return node


def build_track(curve, name="track"):
    """Beam plus piers every ``PIER_SPACING`` units along *curve*."""
    root = group(name=name)
    beam = beam_mesh(curve)
    if beam is not None:
        create_mesh(beam, Material(color=COLORS['CONCRETE'], roughness=0.8), parent=root,
                    name=f"{name}_beam")
    else:
        logger.warning(f"{name}: degenerate curve, no beam generated")

    count = max(1, math.floor(curve.length() / PIER_SPACING))
    piers = 0
    for i in range(count + 1):
        u = i / count
        position = curve.point_at(u)
        tangent = curve.tangent_at(u)
        if not is_finite(position):
            continue
        node = pier(position, tangent)
        if node is not None:
            root.add(node)
            piers += 1
    logger.info(f"{name}: {piers} piers over {curve.length():.1f} units")
    return root
