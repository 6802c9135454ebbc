"""City blocks, the news tower, street furniture and the monorail station.

Builders are pure: each returns a new group node (plus any extra data the
caller needs) and never attaches itself to the scene.  Randomised detail
such as lit windows or apartment jitter comes from the ``random.Random``
passed in.
"""

import math
import logging

import numpy as np

from .constants import COLORS, TRACK_HEIGHT
from .primitives import (Box, Material, create_box, create_cylinder, create_mesh, create_plane,
                         glass, glow)
from .scene import Light, group, light_node
from .voxels import pack_instances, structure_node

logger = logging.getLogger(__name__)

WINDOW_GLOW = '#FFFFEE'
LIT_WINDOW_CHANCE = 0.25


def mark_lit_window(node, emissive=WINDOW_GLOW):
    """Tag a node as a lit window; it stays dark until night mode."""
    node.user_data['lit_window'] = True
    if node.material is not None:
        node.material.emissive = emissive
        node.material.emissive_intensity = 0.0
    return node


def _instances(parent, name, template, material, positions, scales=None):
    return structure_node(pack_instances(positions, material, template, scales=scales),
                          name=name, parent=parent)


# ── Buildings ─────────────────────────────────────────────────────────

def brick_building(x, z, floors, width, depth, color, rng):
    """Brick block with a glowing shopfront and instanced window bays.

    Each upper floor gets ``floor(width / 4)`` bays; every bay is a frame,
    sill, lintel and a pane that is lit with probability 0.25.
    """
    g = group(name="brick_building", position=(x, 0, z))
    floor_height = 4

    create_box(width, 5, depth, '#2F2F2F', 0, 2.5, 0, g)
    glow(create_box(width - 2, 3.5, depth + 0.1, '#FFAA55', 0, 2.5, 0, g), '#553311')
    create_box(width - 1.5, 0.5, depth + 0.2, '#111', 0, 4.5, 0, g)

    wins_x = math.floor(width / 4)
    frames, sills, lintels, dark, lit = [], [], [], [], []
    for f in range(1, floors):
        y = 5 + (f - 1) * floor_height
        create_box(width, floor_height, depth, color, 0, y + floor_height / 2, 0, g)
        create_box(width + 0.5, 0.5, depth + 0.5, '#554433', 0, y + floor_height, 0, g)
        for i in range(wins_x):
            wx = (i - (wins_x - 1) / 2) * 4
            frames.append((wx, y + floor_height / 2, 0))
            sills.append((wx, y + 0.5, 0))
            lintels.append((wx, y + floor_height - 0.8, 0))
            pane = (wx, y + floor_height / 2, 0)
            if rng.random() < LIT_WINDOW_CHANCE:
                lit.append(pane)
            else:
                dark.append(pane)

    pane = Box(1.8, 1.8, depth + 0.3)
    _instances(g, "window_frames", Box(2.2, 2.2, depth + 0.2), Material(color='#333'), frames)
    _instances(g, "window_sills", Box(2.4, 0.4, depth + 0.4), Material(color='#222'), sills)
    _instances(g, "window_lintels", Box(2.4, 0.6, depth + 0.4), Material(color=color), lintels)
    _instances(g, "windows_dark", pane, Material(color='#112233', roughness=0.2), dark)
    lit_node = _instances(g, "windows_lit", pane,
                          Material(color=WINDOW_GLOW, emissive=WINDOW_GLOW, emissive_intensity=0.0),
                          lit)
    if lit_node is not None:
        mark_lit_window(lit_node)

    top = 5 + (floors - 1) * floor_height
    create_box(width + 1.2, 1.5, depth + 1.2, '#332211', 0, top + 0.75, 0, g)
    create_box(width - 2, 1, depth - 2, '#222', 0, top + 0.1, 0, g)
    create_box(4, 3, 4, '#555', 2, top + 2.5, 2, g)
    # Rooftop water tank
    create_cylinder(1.5, 1.5, 4, 16, '#8B4513', -3, top + 2, -3, g)
    create_cylinder(2, 2, 3, 16, '#8B4513', -3, top + 4.5, -3, g)

    # Fire escapes
    for f in range(1, floors):
        y = 5 + (f - 1) * floor_height
        create_box(width / 2 + 1, 0.2, 4, '#111', width / 4, y + 0.5, depth / 2 + 0.6, g)
        ladder = create_box(1, 5, 0.2, '#111', width / 4 + 1, y + 2.5, depth / 2 + 2.5, g)
        ladder.set_euler(0, 0, -0.3)
    return g


def glass_tower(x, z, floors, width, color, rng):
    g = group(name="glass_tower", position=(x, 0, z))
    floor_height = 5
    total = floors * floor_height

    create_box(width - 4, total, width - 4, '#444', 0, total / 2, 0, g)

    # Lit office floors glimpsed through the curtain wall
    positions, scales = [], []
    for _ in range(floors * 2):
        if rng.random() > 0.4:
            continue
        f = math.floor(rng.random() * floors)
        positions.append((0, f * floor_height + floor_height / 2, 0))
        scales.append((0.8 + rng.random() * 0.2, 0.8, 0.8 + rng.random() * 0.2))
    rooms = _instances(g, "lit_rooms", Box(width - 5, floor_height - 1, width - 5),
                       Material(color=WINDOW_GLOW, emissive=WINDOW_GLOW, emissive_intensity=0.0),
                       positions, scales=scales)
    if rooms is not None:
        mark_lit_window(rooms)

    create_mesh(Box(width, total, width), glass(color, opacity=0.6, roughness=0.1, metalness=0.8),
                0, total / 2, 0, g, name="curtain_wall")

    for f in range(floors + 1):
        create_box(width + 0.4, 0.5, width + 0.4, '#222', 0, f * floor_height, 0, g)

    col = 1.5
    for cx, cz in ((1, 1), (-1, 1), (1, -1), (-1, -1)):
        create_box(col, total, col, '#222', cx * width / 2, total / 2, cz * width / 2, g)

    mullions = 3
    for m in range(1, mullions):
        x_off = -width / 2 + (width / mullions) * m
        create_box(0.3, total, 0.3, '#333', x_off, total / 2, width / 2 + 0.1, g)
        create_box(0.3, total, 0.3, '#333', x_off, total / 2, -width / 2 - 0.1, g)

    create_cylinder(0.5, 0.1, 12, 8, '#888', 0, total + 6, 0, g)
    create_box(width - 2, 3, width - 2, '#222', 0, total + 1.5, 0, g)
    glow(create_box(0.5, 0.5, 0.5, 'red', 0, total + 12, 0, g), intensity=2)
    return g


def brutalist_block(x, z, height, width):
    g = group(name="brutalist_block", position=(x, 0, z))
    create_box(width, height, width, '#999', 0, height / 2, 0, g)
    for i in range(1, math.floor(height / 6)):
        y = i * 6
        create_box(width + 0.2, 2, width + 0.2, '#111', 0, y, 0, g)
        for k in range(5):
            create_box(1, 6, 1.5, '#999', (k - 2) * (width / 5), y, width / 2, g)
    return g


def stacked_apartments(x, z, rng):
    """Core tower with eight jittered slabs, each with a balcony window."""
    g = group(name="stacked_apartments", position=(x, 0, z))
    create_box(10, 60, 10, '#333', 0, 30, 0, g)
    for i in range(8):
        y = 5 + i * 7
        w = 12 + rng.random() * 4
        d = 12 + rng.random() * 4
        x_off = (rng.random() - 0.5) * 4
        z_off = (rng.random() - 0.5) * 4
        color = '#EFEFEF' if i % 2 == 0 else '#DDDDDD'
        create_box(w, 6, d, color, x_off, y + 3, z_off, g)
        create_box(w + 0.2, 2, d + 0.2, '#222', x_off, y + 4, z_off, g)
        bx = x_off + (w / 2 if rng.random() > 0.5 else -w / 2)
        create_box(2, 1, d * 0.8, '#555', bx, y + 1, z_off, g)

        win = create_box(2, 2, 0.2, '#88CCFF', bx, y + 2, z_off + d / 2 - 0.5, g)
        win.material.transparent = True
        if rng.random() > 0.5:
            mark_lit_window(win)
    return g


def theater(x=45, z=-40, color='#A05040'):
    g = group(name="theater", position=(x, 0, z))
    create_box(25, 25, 30, color, 0, 12.5, 0, g)
    create_box(25, 40, 15, color, 0, 20, 7.5, g)
    for i in range(5):
        create_box(1, 25, 1, '#D08070', -10 + i * 5, 12.5, -15.1, g)
    marquee = glow(create_box(6, 6, 14, '#FF1493', -13, 8, -5, g), '#880044')
    marquee.set_euler(0, 0, 0.1)
    sign = create_plane(0.1, 4, 'white', -14, 8, -5, 0, g)
    sign.set_euler(0, math.pi / 2, 0)
    create_box(18, 1, 8, '#333', 0, 4, -16, g)
    create_box(0.5, 4, 0.5, '#D4AF37', 8, 2, -19, g)
    create_box(0.5, 4, 0.5, '#D4AF37', -8, 2, -19, g)
    return g


def news_tower(x=-55, z=-215, height=45, width=18, depth=18):
    """Studio tower with a rooftop helipad.

    Returns ``(node, pad_position)`` where *pad_position* is the world
    landing point 1.6 units above the roof deck.
    """
    g = group(name="news_tower", position=(x, 0, z))
    h, w, d = height, width, depth

    create_box(w, h, d, '#888899', 0, h / 2, 0, g)
    mark_lit_window(create_box(w + 0.2, h - 4, 4, '#113355', 0, h / 2, 0, g))
    mark_lit_window(create_box(4, h - 4, d + 0.2, '#113355', 0, h / 2, 0, g))

    roof_y = h + 0.5
    create_box(w + 2, 1, d + 2, '#333333', 0, roof_y, 0, g)

    # "H" marking inside a dashed circle
    mark_y = roof_y + 0.51
    create_box(1, 0.1, 8, '#FFFFFF', -3, mark_y, 0, g)
    create_box(1, 0.1, 8, '#FFFFFF', 3, mark_y, 0, g)
    create_box(6, 0.1, 1, '#FFFFFF', 0, mark_y, 0, g)
    segments = 16
    for i in range(segments):
        ang = i / segments * math.pi * 2
        dash = create_box(1.5, 0.1, 0.5, '#FFCC00', math.cos(ang) * 7, mark_y, math.sin(ang) * 7, g)
        dash.set_euler(0, -ang, 0)

    for cx, cz in ((-w / 2, -d / 2), (w / 2, -d / 2), (w / 2, d / 2), (-w / 2, d / 2)):
        create_cylinder(0.3, 0.3, 1, 8, '#333', cx, roof_y + 0.5, cz, g)
        g.add(light_node(Light(color='#FF0000', intensity=1, distance=10),
                         position=(cx, roof_y + 1.5, cz), name="pad_light"))
        glow(create_box(0.4, 0.4, 0.4, '#FF0000', cx, roof_y + 1.2, cz, g), intensity=2)

    pad = np.array([x, roof_y + 1.6, z], dtype=np.float64)
    return g, pad


# ── Street furniture ──────────────────────────────────────────────────

def voxel_tree(x, z):
    g = group(name="tree", position=(x, 0, z))
    create_box(0.6, 4, 0.6, '#5C4033', 0, 2, 0, g)
    leaves = '#32CD32'
    create_box(2.4, 1.2, 2.4, leaves, 0, 4, 0, g)
    create_box(1.8, 1.2, 1.8, leaves, 0, 5, 0, g)
    create_box(1.2, 0.8, 1.2, leaves, 0, 6, 0, g)
    return g


def street_lamp(x, z, rotation, y_base=0.0):
    """Cobra-head lamp; its bulb is a night-only point light."""
    g = group(name="street_lamp", position=(x, y_base, z), rotation_y=rotation)
    create_box(0.8, 1, 0.8, '#444', 0, 0.5, 0, g)
    create_box(0.3, 8, 0.3, '#444', 0, 4, 0, g)
    create_box(2.5, 0.2, 0.3, '#444', 1, 7.5, 0, g)
    lens = glow(create_box(0.9, 0.5, 0.9, '#FFFFE0', 2, 7.2, 0, g), '#FFFFE0', 0.8)
    lens.material.transparent = True
    lens.material.opacity = 0.8
    g.add(light_node(Light(color='#FFAA00', intensity=10, distance=30),
                     position=(2, 6.5, 0), name="lamp_bulb", night_only=True))
    return g


def bench(x, y, z, rotation=0.0):
    g = group(name="bench", position=(x, y, z), rotation_y=rotation)
    create_box(3, 0.1, 1, '#8B4513', 0, 0.5, 0, g)
    create_box(0.2, 0.5, 0.8, '#333', -1.2, 0.25, 0, g)
    create_box(0.2, 0.5, 0.8, '#333', 1.2, 0.25, 0, g)
    create_box(3, 0.5, 0.1, '#8B4513', 0, 0.8, -0.4, g)
    return g


def ticket_machine(x, y, z, rotation=0.0):
    g = group(name="ticket_machine", position=(x, y, z), rotation_y=rotation)
    create_box(0.8, 2, 0.6, '#004488', 0, 1, 0, g)
    glow(create_plane(0.5, 0.4, '#AADDFF', 0, 1.5, 0.31, 0, g), '#AADDFF', 0.6)
    create_plane(0.4, 0.1, '#111', 0, 1.1, 0.31, 0, g)
    create_box(0.8, 0.2, 0.6, '#C0C0C0', 0, 2.1, 0, g)
    return g


def turnstile(x, y, z):
    g = group(name="turnstile", position=(x, y, z))
    create_box(0.2, 1, 1, '#C0C0C0', 0, 0.5, 0, g)
    create_box(1, 0.1, 0.1, 'red', 0.5, 0.8, 0, g)
    return g


# Z ranges along each sidewalk where trees would clash with piers,
# planters or building entrances
TREE_EXCLUSIONS_WEST = ((17.5, 42.5), (-20, 0), (-101, -79), (-160, -120), (-240, -210))
TREE_EXCLUSIONS_EAST = ((-12.5, 12.5), (30, 50), (-55, -25), (-92.5, -67.5), (-135, -105),
                        (-172.5, -147.5), (-240, -210))


def is_excluded(z, zones, margin=2.0):
    return any(lo - margin <= z <= hi + margin for lo, hi in zones)


def lamp_base_height(z):
    """Lamp footing height; lamps over the ramps step down with the road."""
    y = 0.0
    if -230 < z < -140:
        y = -12 * ((z + 140) / -90)
    elif 40 < z < 100:
        y = -12 * min(1.0, (z - 40) / 40)
    return max(-12.0, y)


def avenue_furniture():
    """Lamps on both kerbs every 25 units, with trees where there's room."""
    g = group(name="avenue_furniture")
    for i in range(-3, 12):
        z = 40 - i * 25
        y = lamp_base_height(z)
        g.add(street_lamp(-8, z, math.pi / 2, y))
        if not is_excluded(z + 12, TREE_EXCLUSIONS_WEST):
            g.add(voxel_tree(-12, z + 12))
        g.add(street_lamp(28, z, -math.pi / 2, y))
        if not is_excluded(z + 12, TREE_EXCLUSIONS_EAST):
            g.add(voxel_tree(32, z + 12))
    return g


# ── Monorail terminus ─────────────────────────────────────────────────

def _spiral_ramp():
    spiral = group(name="spiral_ramp", position=(28, 0, 8))
    create_cylinder(1.5, 1.5, 14, 16, COLORS['CONCRETE'], 0, 6, 0, spiral)

    booth = group(name="booth", position=(4, 0, 4))
    create_cylinder(2.5, 2.5, 3, 6, '#334455', 0, 1.5, 0, booth)
    create_cylinder(2.6, 2.6, 1, 6, '#222', 0, 1.5, 0, booth)
    create_cylinder(0, 3, 1.5, 6, '#222', 0, 3.5, 0, booth)
    spiral.add(booth)

    for i in range(24):
        step = group(name="spiral_step", position=(0, i * 0.5 + 0.5, 0), rotation_y=i * 0.3)
        create_box(3, 0.2, 1.2, '#DDD', 3, 0, 0, step).set_euler(0, 0, 0.1)
        create_box(0.1, 1.2, 0.1, '#333', 4.4, 0.6, 0, step)
        create_box(0.1, 0.1, 1.5, 'red', 4.4, 1.2, 0.5, step).set_euler(0.1, 0, 0)
        spiral.add(step)
    return spiral


def monorail_station():
    """Elevated platform, canopy, furniture and spiral ramp, in station-local space."""
    g = group(name="monorail_station")
    th = TRACK_HEIGHT
    create_box(50, 2, 16, '#EEEEEE', 0, th - 1, 0, g)
    for side in (7.8, -7.8):
        rail = create_box(50, 1.2, 0.2, COLORS['STEEL'], 0, th + 1, side, g)
        rail.material.transparent = True
        rail.material.opacity = 0.5
        create_box(50, 0.2, 0.4, '#C0C0C0', 0, th + 1.6, side, g)

    for x in (-15, 0, 15):
        create_box(1.5, 6, 1.5, COLORS['CONCRETE_DARK'], x, th + 3, 0, g)
        create_box(1.4, 1, 8, COLORS['CONCRETE'], x, th + 6, 3, g).set_euler(0.4, 0, 0)
        create_box(1.4, 1, 8, COLORS['CONCRETE'], x, th + 6, -3, g).set_euler(-0.4, 0, 0)
    create_box(60, 0.5, 18, '#FFFFFF', 0, th + 7.5, 0, g)

    for bx, bz in ((-10, 4), (10, 4), (-10, -4), (10, -4)):
        g.add(bench(bx, th - 0.5, bz))
    g.add(ticket_machine(20, th - 0.5, 0))
    g.add(turnstile(22, th - 0.5, 2))
    g.add(turnstile(22, th - 0.5, -2))

    # Wayfinding pylons
    for pz in (2.5, -2.5):
        create_box(2, 2, 2, '#333', 4, th + 1, pz, g)
        glow(create_box(0.2, 1, 1.5, '#FF0000', 5.1, th + 1, pz, g), '#550000')

    g.add(_spiral_ramp())
    return g
