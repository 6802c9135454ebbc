"""Fifth Avenue road and sidewalk voxel field.

The avenue is sampled on a 0.5-unit grid.  Each column is classified
(asphalt, paint, ironwork, kerb, paving, planters) and emitted as one or
more coloured voxels; the whole field becomes a single instanced node.
Remainders use C-style truncation (``math.fmod``) so markings repeat
symmetrically either side of z = 0.
"""

import math
import logging
from enum import Enum

from .constants import NORTH_RAMP, RAMP_DEPTH, ROAD_MAX_X, ROAD_MIN_X, SOUTH_RAMP
from .models import Voxel
from .primitives import Material
from .voxels import instanced_node

logger = logging.getLogger(__name__)

VOXEL_SIZE = 0.5
MIN_X, MAX_X = -10.0, 30.0
MIN_Z, MAX_Z = -230.0, 100.0
SIDEWALK_HEIGHT = 0.25
PLANTER_SPACING = 25.0


class PavementCell(str, Enum):
    ROAD = "ROAD"
    MARKING_YELLOW = "MARKING_YELLOW"
    MARKING_WHITE = "MARKING_WHITE"
    MANHOLE = "MANHOLE"
    GRATE = "GRATE"
    CURB = "CURB"
    CURB_RED = "CURB_RED"
    TILE = "TILE"
    TILE_LIGHT = "TILE_LIGHT"
    PLANTER_WALL = "PLANTER_WALL"
    PLANTER_BED = "PLANTER_BED"
    BOLLARD = "BOLLARD"


CELL_COLORS = {
    PavementCell.ROAD: '#252525',
    PavementCell.MARKING_YELLOW: '#FFC000',
    PavementCell.MARKING_WHITE: '#FFFFFF',
    PavementCell.MANHOLE: '#3E2723',
    PavementCell.GRATE: '#111111',
    PavementCell.CURB: '#888888',
    PavementCell.CURB_RED: '#CC2222',
    PavementCell.TILE: '#AAAAAA',
    PavementCell.TILE_LIGHT: '#BBBBBB',
    PavementCell.PLANTER_WALL: '#8B4513',
}

ASPHALT_NOISE = '#2A2A2A'
SIDEWALK_DARK = '#999999'
SOIL = '#3d2817'
GRASS = '#448844'
SHRUB = '#33AA33'


def in_ramp(z) -> bool:
    return NORTH_RAMP[0] < z < NORTH_RAMP[1] or SOUTH_RAMP[0] < z < SOUTH_RAMP[1]


def surface_height(z):
    """Road surface height at *z*: 0 at grade, dipping to -12 in the ramps."""
    if NORTH_RAMP[0] < z < NORTH_RAMP[1]:
        t = (z - NORTH_RAMP[0]) / (NORTH_RAMP[1] - NORTH_RAMP[0])
        return RAMP_DEPTH * (1 - t)
    if SOUTH_RAMP[0] < z < SOUTH_RAMP[1]:
        t = min(1.0, (z - SOUTH_RAMP[0]) / (SOUTH_RAMP[1] - SOUTH_RAMP[0]))
        return RAMP_DEPTH * t
    return 0.0


def _near(value, target, tol=0.1):
    return abs(value - target) < tol


def _road_cell(x, z):
    cell = PavementCell.ROAD
    if _near(x, 9.5) or _near(x, 10.5):
        cell = PavementCell.MARKING_YELLOW

    lane_divider = any(_near(x, lx) for lx in (2.0, 6.0, 14.0, 18.0))
    if lane_divider and abs(math.fmod(z, 12)) < 3:
        cell = PavementCell.MARKING_WHITE

    # Crosswalk: stop line plus zebra stripes
    cw = abs(math.fmod(z, 40))
    if abs(cw - 6) < 0.4:
        cell = PavementCell.MARKING_WHITE
    if cw < 3.0 and math.floor(x) % 2 == 0:
        cell = PavementCell.MARKING_WHITE

    if abs(math.fmod(z, 50)) < 1.0 and (abs(x - 4) < 0.6 or abs(x - 16) < 0.6):
        cell = PavementCell.MANHOLE

    if abs(math.fmod(z, 20)) < 1.0 and (abs(x - ROAD_MIN_X) < 1.0 or abs(x - ROAD_MAX_X) < 1.0):
        cell = PavementCell.GRATE
    return cell


def _is_curb(x):
    return ROAD_MIN_X - 0.5 <= x < ROAD_MIN_X or ROAD_MAX_X < x <= ROAD_MAX_X + 0.5


def _tile(x, z):
    if (math.floor(x) + math.floor(z)) % 2 == 0:
        return PavementCell.TILE
    return PavementCell.TILE_LIGHT


def classify_cell(x, z):
    """Surface category of the grid column at (*x*, *z*)."""
    if ROAD_MIN_X <= x <= ROAD_MAX_X:
        return _road_cell(x, z)

    if _is_curb(x):
        return PavementCell.CURB_RED if abs(math.fmod(z, 40)) < 8 else PavementCell.CURB

    center = -6.0 if x < ROAD_MIN_X else 26.0
    planter_z = math.fmod(z, PLANTER_SPACING)
    if abs(planter_z) < 2.5 and abs(x - center) < 1.5:
        if abs(planter_z) > 2.0 or abs(x - center) > 1.0:
            return PavementCell.PLANTER_WALL
        return PavementCell.PLANTER_BED

    if abs(math.fmod(z + 12.5, PLANTER_SPACING)) < 0.5 and abs(x - center) < 0.5:
        return PavementCell.BOLLARD
    return _tile(x, z)


def cell_voxels(x, z, rng):
    """Voxels for one grid column; draws from *rng* only for planter beds."""
    s = VOXEL_SIZE
    cell = classify_cell(x, z)
    surface = surface_height(z)
    out = []

    if cell in (PavementCell.ROAD, PavementCell.MARKING_YELLOW, PavementCell.MARKING_WHITE,
                PavementCell.MANHOLE, PavementCell.GRATE):
        color = CELL_COLORS[cell]
        if cell is PavementCell.ROAD and (math.floor(x * 2) + math.floor(z * 2)) % 7 == 0:
            color = ASPHALT_NOISE
        out.append(Voxel(x, surface, z, color))
        return out

    # Sidewalks stay at grade through the ramps
    top = SIDEWALK_HEIGHT
    if cell in (PavementCell.CURB, PavementCell.CURB_RED):
        # Retaining wall down to the road where the avenue drops away
        if surface < -0.5:
            fy = surface
            while fy < 0:
                out.append(Voxel(x, fy, z, SIDEWALK_DARK))
                fy += s
        out.append(Voxel(x, top, z, CELL_COLORS[cell]))
        return out

    if cell is PavementCell.PLANTER_WALL:
        out.append(Voxel(x, top, z, CELL_COLORS[cell]))
        out.append(Voxel(x, top + s, z, CELL_COLORS[cell]))
    elif cell is PavementCell.PLANTER_BED:
        out.append(Voxel(x, top, z, CELL_COLORS[PavementCell.PLANTER_WALL]))
        out.append(Voxel(x, top + s, z, SOIL))
        out.append(Voxel(x, top + s * 1.5, z, GRASS))
        if rng.random() > 0.8:
            out.append(Voxel(x, top + s * 2.5, z, SHRUB))
    elif cell is PavementCell.BOLLARD:
        out.append(Voxel(x, top, z, CELL_COLORS[_tile(x, z)]))
        out.append(Voxel(x, top + s, z, SIDEWALK_DARK))
    else:
        out.append(Voxel(x, top, z, CELL_COLORS[cell]))
    return out


def pavement_voxels(rng):
    """Every pavement voxel, swept north-to-south then west-to-east."""
    nz = int(round((MAX_Z - MIN_Z) / VOXEL_SIZE))
    nx = int(round((MAX_X - MIN_X) / VOXEL_SIZE))
    voxels = []
    for iz in range(nz + 1):
        z = MAX_Z - iz * VOXEL_SIZE
        for ix in range(nx + 1):
            voxels.extend(cell_voxels(MIN_X + ix * VOXEL_SIZE, z, rng))
    return voxels


def build_pavement(rng):
    voxels = pavement_voxels(rng)
    logger.info(f"Pavement: {len(voxels)} voxels")
    return instanced_node(voxels, VOXEL_SIZE, Material(roughness=0.9), name="fifth_ave_pavement")
