"""Needle tower: level profile, voxel model and the animated tower agent.

The tower is modelled at one voxel per unit in its own frame (ground at
y = 0, spire tip at 550) and then scaled by 0.5 into the diorama.  All
geometry has three- or six-fold symmetry, so most features are written
once and replicated with ``VoxelCollector.add_triad`` / ``add_hex``.
"""

import math
import logging
from dataclasses import dataclass

from .agents import Agent, Capability
from .elevator import Elevator
from .primitives import Material, glass
from .scene import Light, group, light_node
from .symmetry import VoxelCollector, rotate_point
from .transforms import frange
from .voxels import instanced_node

logger = logging.getLogger(__name__)

PALETTE = {
    'LEG_WHITE': '#FFFFFF',
    'CORE_CONCRETE': '#DDDDDD',
    'GLASS_BLUE': '#AACCFF',
    'GALAXY_GOLD': '#FF9900',
    'WARNING_RED': '#FF3333',
    'DARK_STEEL': '#444444',
    'ELEVATOR_RED': '#D03030',
    'ELEVATOR_YELLOW': '#F0C000',
    'ELEVATOR_BLUE': '#3060D0',
    'INTERIOR_FLOOR': '#222222',
    'INTERIOR_WALL': '#EEEEEE',
    'FURNITURE_WOOD': '#8B5A2B',
    'KIOSK_SCREEN': '#00AAFF',
    'GLASS_FLOOR': '#99CCFF',
    'GLASS_BARRIER': '#E0F5FF',
    'BENCH_GLASS': '#DDEEFF',
}

# (angle, colour, first-dwell offset) for the three shafts
ELEVATOR_SHAFTS = (
    (60, PALETTE['ELEVATOR_BLUE'], 0),
    (180, PALETTE['ELEVATOR_YELLOW'], 2),
    (300, PALETTE['ELEVATOR_RED'], 4),
)

BEACON_HEIGHT = 545
BEACON_INTENSITY = 500
TOWER_SCALE = 0.5
ROTATION_RATE = 0.05


@dataclass(frozen=True)
class TowerProfile:
    """Heights of the tower's stacked sections, in tower units."""
    ground: int = 0
    skyline: int = 80
    waist: int = 300
    soffit_start: int = 400
    loupe_floor: int = 415
    open_deck: int = 428
    roof_brim: int = 442
    roof_peak: int = 460
    spire_height: int = 90
    skyline_height: int = 12
    podium_depth: int = 40
    brim_height: int = 5
    mezzanine_height: int = 12

    @property
    def mezzanine_start(self):
        return self.roof_brim + self.brim_height

    @property
    def cap_start(self):
        return self.mezzanine_start + self.mezzanine_height

    def level_range(self, level):
        """Inclusive (low, high) heights covered by *level*."""
        ranges = {
            'podium': (-self.podium_depth, self.ground),
            'skyline_floor': (self.skyline, self.skyline),
            'skyline_roof': (self.skyline + self.skyline_height, self.skyline + self.skyline_height),
            'legs': (self.ground, self.soffit_start),
            'soffit': (self.soffit_start, self.loupe_floor),
            'loupe': (self.loupe_floor, self.open_deck),
            'open_deck': (self.open_deck, self.roof_brim),
            'roof_brim': (self.roof_brim, self.mezzanine_start),
            'mezzanine': (self.mezzanine_start, self.cap_start),
            'cap': (self.cap_start, self.roof_peak),
            'spire': (self.roof_peak, self.roof_peak + self.spire_height),
        }
        if level not in ranges:
            raise ValueError(f"Unknown tower level: {level!r}")
        return ranges[level]

    def radius(self, level, y):
        """Outer radius of *level* at height *y*.

        Raises ValueError when *y* lies outside the level.
        """
        lo, hi = self.level_range(level)
        if not lo <= y <= hi:
            raise ValueError(f"Height {y} outside {level} range [{lo}, {hi}]")
        t = (y - lo) / (hi - lo) if hi > lo else 0.0

        if level == 'podium':
            return 80 * (1 - t * 0.5)
        if level == 'skyline_floor':
            return 46
        if level == 'skyline_roof':
            return 50
        if level == 'legs':
            if y < self.waist:
                return 15 + 60 * math.pow(1 - y / self.waist, 2.5)
            t = (y - self.waist) / (self.soffit_start - self.waist)
            return 15 + 40 * t * t
        if level == 'soffit':
            return 50 + t * 30
        if level == 'loupe':
            return 80 + t * 4
        if level == 'open_deck':
            return 84 + t * 8
        if level == 'roof_brim':
            return 92 * (1 - t * 0.3)
        if level == 'mezzanine':
            return 64 * (1 - t * 0.5)
        if level == 'cap':
            return 32 * (1 - t)
        return 2


DEFAULT_PROFILE = TowerProfile()


def _ring(vc, radius, y, color, step, kind='solid', start=0):
    for d in frange(start, 360, step):
        x, z = rotate_point(radius, 0, d)
        vc.add(x, y, z, color, kind)


def _disc(vc, r_from, r_to, r_step, y, color, step):
    for r in range(r_from, r_to, r_step):
        _ring(vc, r, y, color, step)


def _podium(vc, p):
    for y in range(-p.podium_depth, p.ground + 1):
        t = (y + p.podium_depth) / p.podium_depth
        r = 80 * (1 - t * 0.5)
        for dx in frange(-r, r, 2, inclusive=True):
            for dz in frange(-r, r, 2, inclusive=True):
                dist = math.sqrt(dx * dx + dz * dz)
                if dist < r and (dist > r - 3 or y == 0):
                    vc.add(dx, y, dz, PALETTE['CORE_CONCRETE'])

    # Glazed base pavilion
    for y in range(25):
        _ring(vc, 55, y, PALETTE['GLASS_BLUE'], 2, 'glass')
        if y == 24:
            _ring(vc, 55, y, PALETTE['LEG_WHITE'], 1)


def _core(vc, p):
    rail_x, rail_z = rotate_point(9, 0, 60)
    for y in range(p.soffit_start):
        vc.add_hex(8, y, 0, PALETTE['CORE_CONCRETE'])
        vc.add_hex(7, y, 0, PALETTE['CORE_CONCRETE'])
        if y < p.soffit_start - 20:
            vc.add_triad(rail_x, y, rail_z, PALETTE['DARK_STEEL'])


def _skyline(vc, p):
    top = p.skyline + p.skyline_height
    for y in range(p.skyline, top + 1):
        if y == p.skyline:
            for r in range(12, p.radius('skyline_floor', y) + 1):
                _ring(vc, r, y, PALETTE['LEG_WHITE'], 1)
        if y == top:
            for r in range(12, p.radius('skyline_roof', y) + 1):
                _ring(vc, r, y, PALETTE['LEG_WHITE'], 1)
        if p.skyline < y < top:
            _ring(vc, 46, y, PALETTE['GLASS_BLUE'], 0.8, 'glass')
            if y % 4 == 0:
                _ring(vc, 44, y, PALETTE['LEG_WHITE'], 30)


def _legs(vc, p):
    col = 6
    white = PALETTE['LEG_WHITE']
    for y in range(p.ground, p.soffit_start + 1):
        r = p.radius('legs', y)
        for dr in range(3):
            for dz in (-1, 0, 1):
                vc.add_triad(r + dr, y, -col + dz, white)
        for dr in range(3):
            for dz in (-1, 0, 1):
                vc.add_triad(r + dr, y, col + dz, white)

        # X-bracing every 20 floors, with a solid tie at each node
        local_y = y % 20
        t = local_y / 20
        z1 = -col + t * col * 2
        z2 = col - t * col * 2
        vc.add_triad(r, y, z1, white)
        vc.add_triad(r + 1, y, z1, white)
        vc.add_triad(r, y, z2, white)
        vc.add_triad(r + 1, y, z2, white)
        if local_y < 2:
            for z in range(-col, col + 1):
                vc.add_triad(r, y, z, white)
                vc.add_triad(r + 1, y, z, white)

    _ring(vc, 55, p.soffit_start, white, 0.5)


def _soffit(vc, p):
    r_inner = 8
    for y in range(p.soffit_start, p.loupe_floor):
        t = (y - p.soffit_start) / (p.loupe_floor - p.soffit_start)
        r_outer = p.radius('soffit', y)
        for i in range(48):
            angle = i * (360 / 48)
            for s in range(11):
                st = s / 10
                curve = math.pow(st, 0.5)
                if t > (1 - curve) * 0.2:
                    x, z = rotate_point(r_inner + (r_outer - r_inner) * st, 0, angle)
                    vc.add(x, y, z, PALETTE['LEG_WHITE'])


def _is_doorway(d, angles=(60, 180, 300)):
    for angle in angles:
        diff = abs(d - angle)
        if diff > 180:
            diff = 360 - diff
        if diff < 9:
            return True
    return False


def _loupe(vc, p):
    for y in range(p.loupe_floor, p.open_deck):
        if y == p.loupe_floor:
            _disc(vc, 10, 60, 2, y, PALETTE['INTERIOR_FLOOR'], 2)
            # Turntable: glass floor with a white rib every 15 degrees
            for r in range(60, 78):
                for d in range(360):
                    x, z = rotate_point(r, 0, d)
                    if d % 15 == 0:
                        vc.add(x, y, z, '#FFFFFF', 'rotating')
                    else:
                        vc.add(x, y, z, PALETTE['GLASS_FLOOR'], 'rotating_glass')
            _disc(vc, 78, 80, 1, y, PALETTE['DARK_STEEL'], 2)

        if y == p.open_deck - 1:
            _disc(vc, 10, 80, 2, y, PALETTE['INTERIOR_WALL'], 2)

        if p.loupe_floor + 1 <= y <= p.loupe_floor + 4:
            for d in range(0, 360, 2):
                if not _is_doorway(d):
                    x, z = rotate_point(16, 0, d)
                    vc.add(x, y, z, PALETTE['INTERIOR_WALL'])
            for k in range(6):
                angle = k * 60 + 15
                for w in range(-2, 3):
                    x, z = rotate_point(45 + w, 0, angle)
                    vc.add(x, y, z, PALETTE['KIOSK_SCREEN'])
                if y == p.loupe_floor + 1:
                    x, z = rotate_point(45, 0, angle)
                    vc.add(x, y, z, PALETTE['FURNITURE_WOOD'])

        r = p.radius('loupe', y)
        _ring(vc, r, y, PALETTE['GLASS_BLUE'], 0.6, 'glass')
        if y % 6 == 0:
            _ring(vc, r - 1, y, PALETTE['DARK_STEEL'], 15)


def _open_deck(vc, p):
    for y in range(p.open_deck, p.roof_brim):
        if y == p.open_deck:
            _disc(vc, 12, 84, 2, y, '#BBBBBB', 2)

        if p.open_deck + 1 <= y <= p.open_deck + 2:
            for b in range(12):
                for w in range(-2, 3):
                    x, z = rotate_point(75, w, b * 30)
                    vc.add(x, y, z, PALETTE['FURNITURE_WOOD'])

        r = p.radius('open_deck', y)
        _ring(vc, r, y, PALETTE['GLASS_BARRIER'], 0.6, 'glass')

        if y <= p.open_deck + 3:
            for d in range(360):
                if d % 20 < 12:
                    x, z = rotate_point(r - 1.5, 0, d)
                    vc.add(x, y, z, PALETTE['BENCH_GLASS'], 'glass')

        if y == p.roof_brim - 1:
            _ring(vc, r, y, PALETTE['DARK_STEEL'], 1)


def _roof(vc, p):
    for y in range(p.roof_brim, p.mezzanine_start):
        r = p.radius('roof_brim', y)
        _ring(vc, r, y, PALETTE['GALAXY_GOLD'], 1)
        if y % 2 == 0:
            for i in range(60):
                x, z = rotate_point(r, 0, i * 6)
                vc.add(x, y + 0.5, z, PALETTE['LEG_WHITE'])

    for y in range(p.mezzanine_start, p.cap_start):
        r = p.radius('mezzanine', y)
        _ring(vc, r, y, PALETTE['LEG_WHITE'], 2)
        if y % 3 == 0:
            _ring(vc, r + 1, y, PALETTE['DARK_STEEL'], 6)

    for y in range(p.cap_start, p.roof_peak):
        _ring(vc, p.radius('cap', y), y, PALETTE['GALAXY_GOLD'], 4)


def _spire(vc, p):
    for y in range(p.spire_height):
        h = p.roof_peak + y
        if y < 25:
            vc.add_hex(2, h, 0, PALETTE['LEG_WHITE'])
            vc.add_hex(1, h, 0, PALETTE['LEG_WHITE'])
            vc.add(0, h, 0, PALETTE['LEG_WHITE'])
        elif y < 80:
            vc.add_hex(1, h, 0, PALETTE['DARK_STEEL'])
            vc.add(0, h, 0, PALETTE['DARK_STEEL'])
        else:
            vc.add(0, h, 0, PALETTE['WARNING_RED'])
            vc.add_hex(1, h, 0, PALETTE['WARNING_RED'])
        if y in (30, 60):
            _ring(vc, 4, h, PALETTE['DARK_STEEL'], 20)


def generate_tower_voxels(profile=DEFAULT_PROFILE):
    """Build the full tower voxel model, bucketed by material kind."""
    vc = VoxelCollector()
    _podium(vc, profile)
    _core(vc, profile)
    _skyline(vc, profile)
    _legs(vc, profile)
    _soffit(vc, profile)
    _loupe(vc, profile)
    _open_deck(vc, profile)
    _roof(vc, profile)
    _spire(vc, profile)
    logger.info(f"Tower voxels: {vc.counts()}")
    return vc


class SpaceNeedle(Agent):
    """Tower with a revolving turntable, three elevators and a beacon."""

    capabilities = frozenset({Capability.MOVABLE, Capability.POV})

    def __init__(self, position, rng, audio=None, profile=DEFAULT_PROFILE):
        self.time = 0.0
        self.node = group(name="space_needle", position=position)
        self.node.set_scale(TOWER_SCALE)

        voxels = generate_tower_voxels(profile)
        instanced_node(voxels.voxels('solid'), 1.0,
                       Material(roughness=0.8, metalness=0.2),
                       name="needle_solid", parent=self.node)
        instanced_node(voxels.voxels('glass'), 1.0,
                       glass('#FFFFFF', opacity=0.15, roughness=0.0, metalness=0.9, double_sided=True),
                       name="needle_glass", parent=self.node)

        self.rotating = group(name="needle_turntable")
        self.node.add(self.rotating)
        instanced_node(voxels.voxels('rotating'), 1.0,
                       Material(roughness=0.8, metalness=0.1),
                       name="needle_turntable_ribs", parent=self.rotating)
        instanced_node(voxels.voxels('rotating_glass'), 1.0,
                       glass('#AACCFF', opacity=0.25, roughness=0.1, metalness=0.5, double_sided=True),
                       name="needle_turntable_glass", parent=self.rotating)

        self.elevators = [Elevator(angle, color, offset, rng, audio)
                          for angle, color, offset in ELEVATOR_SHAFTS]
        self.node.add(*(e.node for e in self.elevators))

        self.beacon = Light(kind='point', color='#FF0000', intensity=BEACON_INTENSITY,
                            distance=40, decay=2)
        self.node.add(light_node(self.beacon, position=(0, BEACON_HEIGHT, 0), name="needle_beacon"))

    def update(self, delta):
        self.time += delta
        self.rotating.euler[1] += delta * ROTATION_RATE
        for elevator in self.elevators:
            elevator.update(delta)
        self.beacon.intensity = BEACON_INTENSITY if math.sin(self.time * 5) > 0 else 0

    def get_pov(self):
        """Ride-along view from the first elevator."""
        return self.elevators[0].get_camera_target()
