"""Seattle Center landmarks, the taxi tunnel and the ground planes.

Like the city blocks, every builder returns a fresh group node and takes
its randomness from an explicit ``random.Random``.
"""

import math
import logging

import numpy as np

from .constants import COLORS
from .curves import CatmullRomCurve
from .primitives import (Annulus, Box, Material, MeshData, create_box, create_cylinder,
                         create_mesh, create_plane, glow, sweep_profile)
from .scene import Light, group, light_node
from .transforms import frange
from .voxels import pack_instances, structure_node

logger = logging.getLogger(__name__)

MURAL_COLORS = ['#8B2E2E', '#2F4F4F', '#A9A9A9', '#DCDCDC', '#1C1C1C', '#D4AF37']

TUNNEL_WIDTH = 14.0
TUNNEL_HEIGHT = 9.0
TUNNEL_STEPS = 300
TUNNEL_SAMPLES = 600
TUNNEL_LIGHT_SPACING = 40.0

PORTAL_FACE_Z = -4.0


# ── Seattle Center ────────────────────────────────────────────────────

def armory(x=15, y=0, z=-30):
    """Beige exhibition hall with a clerestory and a red banner."""
    g = group(name="armory", position=(x, y, z))
    width, depth, height = 80, 50, 18
    beige = '#D8C8B8'
    create_box(width, height, depth, beige, 0, height / 2, 0, g)
    create_box(width - 4, 1, depth - 4, '#555', 0, height + 0.5, 0, g)
    create_box(width / 2, 4, depth / 2, beige, 0, height + 3, 0, g)
    create_box(width / 2 + 1, 0.5, depth / 2 + 1, '#444', 0, height + 5.25, 0, g)

    wins_x, wins_z = 10, 6
    for i in range(wins_x):
        wx = (i - (wins_x - 1) / 2) * 6
        create_box(3, 10, 0.5, '#222', wx, height / 2, depth / 2 + 0.1, g)
        create_box(3, 10, 0.5, '#222', wx, height / 2, -depth / 2 - 0.1, g)
    for i in range(wins_z):
        wz = (i - (wins_z - 1) / 2) * 6
        create_box(0.5, 10, 3, '#222', -width / 2 - 0.1, height / 2, wz, g)
        create_box(0.5, 10, 3, '#222', width / 2 + 0.1, height / 2, wz, g)
    create_box(20, 3, 1, '#8B0000', 0, height - 3, depth / 2 + 0.5, g)
    return g


def _mural(rng, radius=50, height=24, segments=20, arc=math.pi / 2.5):
    mural = group(name="mural", position=(0, 0, -15))
    seg_width = arc * radius / segments + 0.5
    tiles = 8
    tile_h = height / tiles
    for i in range(segments + 1):
        angle = -arc / 2 + i / segments * arc
        column = group(position=(math.sin(angle) * radius, 0, math.cos(angle) * radius - radius),
                       rotation_y=angle)
        create_box(seg_width, height, 2, '#999', 0, height / 2, 0, column)
        for k in range(tiles):
            color = MURAL_COLORS[math.floor(rng.random() * len(MURAL_COLORS))]
            depth = 0.5 + rng.random() * 0.5
            create_box(seg_width * 0.95, tile_h * 0.95, depth, color,
                       0, k * tile_h + tile_h / 2, 1, column)
        mural.add(column)
    create_box(3, height, 3, '#444', -20, height / 2, -5, mural)
    create_box(3, height, 3, '#444', 20, height / 2, -5, mural)
    return mural


def _stage(width=40, depth=20, height=3):
    stage = group(name="stage", position=(0, 0, 10))
    create_box(width, height, depth, '#222', 0, height / 2, 0, stage)
    create_box(width - 2, 0.2, depth - 2, '#111', 0, height + 0.1, 0, stage)
    for sx in (-18, 18):
        for sz in (-8, 8):
            create_box(1, 16, 1, '#111', sx, 8, sz, stage)
    create_box(38, 1, 18, '#111', 0, 16, 0, stage)
    glow(create_box(30, 0.5, 0.5, '#FFF', 0, 15.5, 8, stage), '#FFFFE0', 2.0)
    return stage


def _lawn(rng, width=80, length=80, slope=-0.15, steps=20):
    lawn = group(name="lawn", position=(0, 0, 40))
    step_l = length / steps
    step_h = math.tan(abs(slope)) * length / steps
    for i in range(steps):
        y, z = i * step_h, i * step_l
        create_box(width, step_h + 1, step_l + 0.5, '#3A5F0B', 0, y, z, lawn)
        if rng.random() > 0.6:
            px = (rng.random() - 0.5) * (width - 5)
            color = MURAL_COLORS[math.floor(rng.random() * len(MURAL_COLORS))]
            create_box(1.5, 1.5, 1.5, color, px, y + step_h / 2 + 0.75, z, lawn)

    wall_l = math.hypot(length, length * math.tan(abs(slope)))
    for wx in (-width / 2 - 1, width / 2 + 1):
        wall = create_box(2, 4, wall_l, '#888', wx, steps * step_h / 2, length / 2, lawn)
        wall.set_euler(slope, 0.0, 0.0)
    return lawn


def mural_amphitheater(rng, x=-70, y=0, z=-35):
    """Curved tile mural facing a trussed stage, a reflecting pool and a stepped lawn."""
    g = group(name="mural_amphitheater", position=(x, y, z), rotation_y=-math.pi / 3)
    g.add(_mural(rng), _stage())
    create_box(60, 0.5, 15, '#224466', 0, 0.2, 0, g)
    g.add(_lawn(rng))
    return g


def glass_garden(rng, x=-40, y=0, z=25):
    """Glasshouse of steel arches around a hanging sculpture, with a planted yard.

    Reeds and floor pieces that would land inside the glasshouse footprint
    are skipped rather than redrawn.
    """
    g = group(name="glass_garden", position=(x, y, z))
    gh_w, gh_h, gh_d = 20, 25, 40
    frame = '#333'
    for i in range(6):
        arch = group(position=(0, 0, (i - 2.5) * 7))
        create_box(1, 15, 1, frame, -gh_w / 2, 7.5, 0, arch)
        create_box(1, 15, 1, frame, gh_w / 2, 7.5, 0, arch)
        create_box(1, 12, 1, frame, -gh_w / 4, 19, 0, arch).set_euler(0.0, 0.0, -0.5)
        create_box(1, 12, 1, frame, gh_w / 4, 19, 0, arch).set_euler(0.0, 0.0, 0.5)
        g.add(arch)

    panes = create_box(gh_w - 1, gh_h, gh_d - 1, '#ADD8E6', 0, gh_h / 2, 0, g)
    panes.material.transparent = True
    panes.material.opacity = 0.3

    sculpture = group(name="sculpture", position=(0, 18, 0))
    for i in range(30):
        t = i / 30
        color = '#FF4500' if t < 0.3 else ('#FFA500' if t < 0.6 else '#FFFF00')
        piece = create_box(1.5, 1.5, 1.5, color, math.sin(t * math.pi * 4) * 4,
                           math.cos(t * math.pi * 2) * 2, (t - 0.5) * 30, sculpture)
        piece.set_euler(rng.random(), rng.random(), rng.random())
    g.add(sculpture)

    for _ in range(20):
        rx = (rng.random() - 0.5) * 50
        rz = (rng.random() - 0.5) * 50
        if abs(rx) < 12 and abs(rz) < 22:
            continue
        h = 5 + rng.random() * 8
        color = '#8A2BE2' if rng.random() > 0.5 else '#4169E1'
        create_cylinder(0.2, 0.2, h, 6, color, rx, h / 2, rz, g)

    for _ in range(10):
        sx = (rng.random() - 0.5) * 40
        sz = (rng.random() - 0.5) * 40
        if abs(sx) < 12 and abs(sz) < 22:
            continue
        create_box(1.5, 1.5, 1.5, '#FFD700', sx, 0.75, sz, g)
    return g


def lattice_tower_voxels(height=32.0, base_radius=3.5, v_res=0.5, curve_start=0.3):
    """Rib and ring points of one gothic lattice arch, in arch-local space.

    The four corner ribs run straight for the bottom 30% and then close in
    along a quarter cosine; a square ring is added every 3 units.
    """
    points = []
    for y in frange(0.0, height, v_res, inclusive=True):
        t = y / height
        r = base_radius
        if t > curve_start:
            tc = (t - curve_start) / (1 - curve_start)
            r = base_radius * math.cos(tc * math.pi / 2)
        r = max(r, 0.1)

        for ox, oz in ((r, r), (-r, r), (r, -r), (-r, -r)):
            points.append((ox, y, oz))

        if y % 3.0 < v_res:
            for d in frange(-r, r, 0.4, inclusive=True):
                points.extend(((d, y, r), (d, y, -r)))
            for d in frange(-r, r, 0.4, inclusive=True):
                points.extend(((r, y, d), (-r, y, d)))

        if y > height - 1:
            points.append((0.0, y, 0.0))
    return points


def science_center(x=-60, z=260, pool_size=60, spacing=14):
    """Reflecting pool with five instanced lattice arches and fountain blocks."""
    g = group(name="science_center", position=(x, 0, z))
    half = pool_size / 2

    water = Material(color='#00AADD', roughness=0.1, metalness=0.1, transparent=True, opacity=0.8)
    create_mesh(Box(pool_size, 0.4, pool_size), water, 0, 0.2, 0, g, name="pool_water")
    create_box(pool_size + 2, 0.2, pool_size + 2, '#FFFFFF', 0, 0, 0, g)
    create_box(pool_size + 4, 1.5, 1, '#EEEEEE', 0, 0.75, half + 0.5, g)
    create_box(pool_size + 4, 1.5, 1, '#EEEEEE', 0, 0.75, -half - 0.5, g)
    create_box(1, 1.5, pool_size + 2, '#EEEEEE', half + 0.5, 0.75, 0, g)
    create_box(1, 1.5, pool_size + 2, '#EEEEEE', -half - 0.5, 0.75, 0, g)

    locations = [(0, 0), (spacing, spacing), (-spacing, spacing),
                 (spacing, -spacing), (-spacing, -spacing)]
    tower = np.asarray(lattice_tower_voxels())
    positions = np.concatenate([tower + (lx, 0.2, lz) for lx, lz in locations])
    structure_node(pack_instances(positions, Material(color='#FFFFFF', roughness=0.2),
                                  Box(0.3, 0.5, 0.3)),
                   name="lattice_arches", parent=g)
    logger.debug(f"Science center: {len(positions)} lattice instances")

    fountains = group(name="fountains")
    for lx, lz in locations:
        create_box(2, 0.5, 2, '#FFFFFF', lx, 0.5, lz, fountains)
    g.add(fountains)
    return g


# ── Avenue tunnel ─────────────────────────────────────────────────────

def _in_tunnel(p):
    return p[1] < -0.1 or 70 < p[2] < 150 or -260 < p[2] < -190


def tunnel_centerline(path, samples=TUNNEL_SAMPLES):
    """Open curve through the covered part of the closed taxi loop.

    The loop is resampled evenly and every sample below grade or inside a
    ramp window is kept.  The kept samples are rotated so the run starts
    just after the longest uncovered stretch; otherwise a loop that begins
    inside a ramp would bridge the open avenue.
    Returns None when fewer than two samples qualify.
    """
    pts = path.spaced_points(samples)[:-1]
    mask = np.array([_in_tunnel(p) for p in pts])
    if mask.sum() < 2:
        return None
    if not mask.all():
        # Index of the first sample after the last uncovered one
        start = (len(mask) - 1 - int(np.argmin(mask[::-1]))) + 1
        pts = np.roll(pts, -start, axis=0)
        mask = np.roll(mask, -start)
    return CatmullRomCurve(pts[mask], closed=False, tension=0.5)


def _tunnel_light(point, tangent):
    ceiling = point + np.array([0.0, TUNNEL_HEIGHT - 0.5, 0.0])
    fixture = create_box(2, 0.2, 4, '#333', *ceiling)
    fixture.name = "tunnel_fixture"
    fixture.look_at(ceiling + tangent)
    glow(create_box(1.5, 0.1, 3, '#FFAA00', 0, -0.16, 0, fixture), '#FFAA55', 2.0)
    lamp = light_node(Light(color='#FFAA00', intensity=40, distance=40),
                      position=ceiling + np.array([0.0, -1.0, 0.0]), name="tunnel_light")
    return fixture, lamp


def taxi_tunnel(path):
    """Swept concrete tube over the underground loop plus sodium ceiling lights.

    Returns None if the loop never dips below grade.
    """
    curve = tunnel_centerline(path)
    if curve is None:
        logger.warning("Taxi path has no covered section; skipping tunnel")
        return None

    g = group(name="taxi_tunnel")
    us = np.linspace(0.0, 1.0, TUNNEL_STEPS + 1)
    hw = TUNNEL_WIDTH / 2
    profile = [(-hw, 0.0), (hw, 0.0), (hw, TUNNEL_HEIGHT), (-hw, TUNNEL_HEIGHT)]
    swept = sweep_profile([curve.point_at(u) for u in us], [curve.tangent_at(u) for u in us],
                          profile, closed_ends=False)
    if swept is not None:
        verts, faces = swept
        create_mesh(MeshData(np.asarray(verts, dtype=np.float64), np.asarray(faces, dtype=np.int64)),
                    Material(color='#555555', roughness=0.9, double_sided=True),
                    parent=g, name="tunnel_shell")

    count = max(1, math.floor(curve.length() / TUNNEL_LIGHT_SPACING))
    lights = 0
    for i in range(count + 1):
        u = i / count
        p, tangent = curve.point_at(u), curve.tangent_at(u)
        if not (np.all(np.isfinite(p)) and np.all(np.isfinite(tangent))) or p[1] >= -2:
            continue
        g.add(*_tunnel_light(p, tangent))
        lights += 1
    logger.info(f"Taxi tunnel: {curve.length():.1f} units, {lights} ceiling lights")
    return g


def _speed_limit_sign(g, px=-21.0):
    create_box(0.3, 5, 0.3, COLORS['STEEL'], px, 2.5, 0, g)
    create_box(2.5, 3, 0.1, '#EEE', px, 4, 0.2, g)
    create_mesh(Annulus(0.9, 1.2, 32), Material(color='#CC0000', double_sided=True),
                px, 4, 0.26, g, name="speed_limit_ring", cast_shadow=False)
    for y in (4.4, 4.0, 3.6):
        create_box(1.0, 0.2, 0.05, '#111', px, y, 0.26, g)
    create_box(0.2, 1.0, 0.05, '#111', px - 0.4, 4.0, 0.26, g)
    create_box(0.2, 1.0, 0.05, '#111', px + 0.4, 4.0, 0.26, g)


def tunnel_portal(z, is_north, rng, length=60):
    """Landscaped lid over a tunnel mouth, with lamps, lane signals and walls."""
    g = group(name="tunnel_portal_north" if is_north else "tunnel_portal_south",
              position=(10, 0, z), rotation_y=math.pi if is_north else 0.0)
    center_z = PORTAL_FACE_Z + length / 2

    create_box(40, 2, length, COLORS['CONCRETE'], 0, 0, center_z, g)
    create_box(38, 0.5, length - 2, '#3d2817', 0, 1.25, center_z, g)
    create_box(38, 0.2, length - 2, '#448844', 0, 1.6, center_z, g)
    for _ in range(math.floor(length * 1.5)):
        bx = (rng.random() - 0.5) * 36
        bz = center_z + (rng.random() - 0.5) * (length - 3)
        create_box(0.8, 0.8, 0.8, '#228822', bx, 2.0, bz, g)

    face = PORTAL_FACE_Z
    create_box(36, 0.8, 0.6, COLORS['STEEL'], 0, -0.5, face, g)
    for x in (-12, 0, 12):
        create_box(0.4, 4, 0.4, COLORS['STEEL'], x, 2, face, g)
        create_box(0.3, 0.3, 2, COLORS['STEEL'], x, 3.8, face + 1, g)
        create_box(0.8, 0.3, 0.8, COLORS['STEEL'], x, 3.6, face + 2, g)
        glow(create_box(0.6, 0.1, 0.6, '#FFFFDD', x, 3.5, face + 2, g), '#FFFFEE', 2.0)
        g.add(light_node(Light(color='#FFFFEE', intensity=40, distance=25),
                         position=(x, 3.0, face + 2), name="portal_lamp"))

    for x, color in ((-8, '#FF0000'), (8, '#00FF00')):
        create_box(2.5, 2.5, 0.2, '#111', x, 1.5, face - 0.2, g)
        glow(create_box(1.5, 1.5, 0.22, color, x, 1.5, face - 0.2, g), color, 2.0)

    _speed_limit_sign(g)

    create_box(2, 10, length + 4, COLORS['CONCRETE'], -21, -4, center_z, g)
    create_box(2, 10, length + 4, COLORS['CONCRETE'], 21, -4, center_z, g)
    return g


def _sign_post(x, z, rotation):
    g = group(name="tunnel_sign", position=(x, 0, z), rotation_y=rotation)
    create_cylinder(0.1, 0.1, 4, 8, '#333', 0, 2, 0, g)
    create_box(3, 1.5, 0.1, '#006633', 0, 3.5, 0, g)
    create_box(2.5, 0.1, 0.15, '#FFF', 0, 3.8, 0, g)
    create_box(2.0, 0.1, 0.15, '#FFF', 0, 3.5, 0, g)
    create_box(2.5, 0.1, 0.15, '#FFF', 0, 3.2, 0, g)
    return g


def tunnel_signage():
    return group(name="tunnel_signage").add(_sign_post(24, 80, -math.pi / 2),
                                            _sign_post(-4, -200, math.pi / 2))


def ground_planes():
    """Base slab and the grass verges either side of the avenue."""
    g = group(name="ground")
    color = COLORS['GROUND']
    create_plane(2000, 2000, color, 0, -20, 0, -math.pi / 2, g)
    create_plane(1000, 2000, color, -510, -0.1, 0, -math.pi / 2, g)
    create_plane(1000, 2000, color, 530, -0.1, 0, -math.pi / 2, g)
    create_plane(40, 1000, color, 10, -0.1, 580, -math.pi / 2, g)
    create_plane(40, 1000, color, 10, -0.1, -730, -math.pi / 2, g)
    return g
