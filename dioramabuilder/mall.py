"""Westlake Center atrium: a glass box over the monorail terminus.

The atrium floor sits above beam height so trains run underneath it.
Two escalators climb to a mezzanine with a pair of shopfronts; gears in
glass-covered pits under each escalator end turn while the scene runs.
"""

import math
import logging

from .agents import Agent, Capability
from .audio import SoundKind, attach_sound, create_sound
from .primitives import Box, Material, create_box, create_cylinder, create_mesh, glass
from .scene import group
from .voxels import pack_instances, structure_node

logger = logging.getLogger(__name__)

LEVEL_3_Y = 20
LEVEL_4_Y = 32
WIDTH = 46
DEPTH = 50
ROOF_Y = LEVEL_4_Y + 16

GEAR_SPEED = 1.5
TILE_SIZE = 0.5
TILE_THRESHOLD = 0.85
TILE_COLORS = ['#FFFFFF', '#EEDDCC', '#CCEEFF']
ESCALATOR_STEPS = 30


class WestlakeMall(Agent):
    """Atrium building whose only motion is its escalator gears."""

    capabilities = frozenset({Capability.MOVABLE})

    def __init__(self, rng, x=10, z=50, audio=None):
        self.rng = rng
        self.gears = []
        self.node = group(name="westlake_mall", position=(x, 0, z))

        self._structure()
        self._escalators()
        self._shops()
        self._planter(-12)
        self._planter(12)
        attach_sound(self.node, create_sound(audio, SoundKind.MOPOP, 60, 400, 0.4))
        logger.debug(f"Westlake mall: {len(self.gears)} gears")

    def update(self, delta):
        for i, gear in enumerate(self.gears):
            gear.euler[1] += delta * GEAR_SPEED * (1 if i % 2 == 0 else -1)

    # ── Shell ─────────────────────────────────────────────────────────

    def _atrium_tiles(self):
        nx, nz = int(WIDTH / TILE_SIZE), int(DEPTH / TILE_SIZE)
        positions, colors = [], []
        for i in range(nx):
            x = -WIDTH / 2 + i * TILE_SIZE
            for k in range(nz):
                z = -DEPTH / 2 + k * TILE_SIZE
                # Escalator pit
                if abs(x) < 5 and abs(z) < 12:
                    continue
                if self.rng.random() > TILE_THRESHOLD:
                    colors.append(TILE_COLORS[math.floor(self.rng.random() * len(TILE_COLORS))])
                    positions.append((x + TILE_SIZE / 2, 0.05, z + TILE_SIZE / 2))
        return positions, colors

    def _structure(self):
        for cx in (-19, -10, 10, 19):
            for cz in (-22, 0, 22):
                create_box(2.5, ROOF_Y, 2.5, '#9999AA', cx, ROOF_Y / 2, cz, self.node)

        atrium = group(name="atrium_floor", position=(0, LEVEL_3_Y, 0))
        self.node.add(atrium)
        create_box(WIDTH, 1, DEPTH, '#DDDDDD', 0, -0.5, 0, atrium)
        positions, colors = self._atrium_tiles()
        structure_node(pack_instances(positions, Material(roughness=0.2),
                                      Box(TILE_SIZE, 0.1, TILE_SIZE), colors=colors),
                       name="atrium_tiles", parent=atrium)

        mezzanine = group(name="mezzanine", position=(0, LEVEL_4_Y, 0))
        self.node.add(mezzanine)
        for w, d, x, z in ((16, DEPTH, -15, 0), (16, DEPTH, 15, 0), (14, 16, 0, -17), (14, 14, 0, 18)):
            create_box(w, 1, d, '#EEEEEE', x, -0.5, z, mezzanine)
        rail = glass('#AACCFF', opacity=0.4, roughness=1.0, metalness=0.0)
        for w, d, x, z in ((0.2, 20, -7.1, 1), (0.2, 20, 7.1, 1), (14.2, 0.2, 0, -9.1),
                           (14.2, 0.2, 0, 11.1)):
            create_mesh(Box(w, 1.1, d), rail, x, 0.55, z, mezzanine, name="mezzanine_rail")

        glass_h = ROOF_Y - LEVEL_3_Y
        walls = group(name="curtain_wall", position=(0, LEVEL_3_Y + glass_h / 2, 0))
        self.node.add(walls)
        pane = glass('#DDEEFF', opacity=0.15, roughness=0.0, metalness=0.8, double_sided=True)
        create_mesh(Box(0.5, glass_h, DEPTH), pane, -WIDTH / 2, 0, 0, walls)
        create_mesh(Box(0.5, glass_h, DEPTH), pane, WIDTH / 2, 0, 0, walls)
        create_mesh(Box(WIDTH, glass_h, 0.5), pane, 0, 0, -DEPTH / 2, walls)
        create_mesh(Box(WIDTH, glass_h, 0.5), pane, 0, 0, DEPTH / 2, walls)

        roof = group(name="roof", position=(0, ROOF_Y, 0))
        self.node.add(roof)
        create_box(WIDTH + 2, 2, DEPTH + 2, '#EEEEEE', 0, 1, 0, roof)
        create_mesh(Box(20, 0.5, 30), pane, 0, 1, 0, roof, name="skylight")

    # ── Escalators ────────────────────────────────────────────────────

    def _escalators(self, x_offset=2.5, z_start=10, z_end=-8):
        self._gear_chamber(0, LEVEL_3_Y - 1.5, z_start + 2)
        self._gear_chamber(0, LEVEL_4_Y - 1.5, z_end - 2)
        self._escalator(-x_offset, LEVEL_3_Y, z_start, LEVEL_4_Y, z_end)
        self._escalator(x_offset, LEVEL_3_Y, z_start, LEVEL_4_Y, z_end)

    def _gear_chamber(self, x, y, z):
        cover = create_box(8, 0.2, 6, '#88CCFF', x, y + 1.5, z, self.node)
        cover.material.transparent = True
        cover.material.opacity = 0.3
        self._gear(x - 2, y, z - 1, 1.2, '#CC2222')
        self._gear(x + 2, y, z + 1, 1.2, '#CC2222')
        self._gear(x, y, z, 0.8, '#FFAA00')
        create_cylinder(0.2, 0.2, 4, 8, '#555', x - 2, y - 2, z - 1, self.node)
        create_cylinder(0.2, 0.2, 4, 8, '#555', x + 2, y - 2, z + 1, self.node)

    def _gear(self, x, y, z, radius, color):
        gear = group(name="gear", position=(x, y, z))
        self.node.add(gear)
        create_cylinder(radius, radius, 0.5, 16, color, 0, 0, 0, gear)
        for i in range(8):
            angle = i / 8 * math.pi * 2
            tooth = create_box(0.4, 0.5, 0.4, color, math.cos(angle) * (radius + 0.2), 0,
                               math.sin(angle) * (radius + 0.2), gear)
            tooth.set_euler(0.0, -angle, 0.0)
        self.gears.append(gear)
        return gear

    def _escalator(self, x, y_bottom, z_start, y_top, z_end):
        run = z_start - z_end
        rise = y_top - y_bottom
        dist = math.hypot(run, rise)

        unit = group(name="escalator", position=(x, 0, 0))
        self.node.add(unit)
        balustrade = group(position=(0, (y_top + y_bottom) / 2, (z_start + z_end) / 2))
        balustrade.set_euler(math.atan2(rise, run), 0.0, 0.0)
        unit.add(balustrade)

        side = glass('#AACCFF', opacity=0.3, roughness=1.0, metalness=0.0)
        create_mesh(Box(0.2, 1.5, dist), side, -1, 0, 0, balustrade)
        create_mesh(Box(0.2, 1.5, dist), side, 1, 0, 0, balustrade)
        create_box(0.3, 0.2, dist, '#111', -1, 0.85, 0, balustrade)
        create_box(0.3, 0.2, dist, '#111', 1, 0.85, 0, balustrade)

        step_dist = dist / ESCALATOR_STEPS
        for i in range(ESCALATOR_STEPS):
            step = group(position=(0, -0.5, (i - ESCALATOR_STEPS / 2) * step_dist))
            balustrade.add(step)
            create_box(1.8, 0.1, step_dist * 1.1, '#AAAAAA', 0, 0, 0, step)
            create_box(1.8, 0.2, 0.1, '#888888', 0, 0.1, step_dist / 2, step)
            create_box(0.1, 0.11, step_dist, '#FFFF00', -0.85, 0, 0, step)
            create_box(0.1, 0.11, step_dist, '#FFFF00', 0.85, 0, 0, step)

    # ── Fit-out ───────────────────────────────────────────────────────

    def _shops(self):
        shops = group(name="shops", position=(0, LEVEL_4_Y, 22))
        self.node.add(shops)
        clothing = self._storefront(-10, '#FFCCCC', shops)
        for i in (-1, 1):
            figure = group(name="mannequin", position=(i * 3, 0, 1.5))
            create_box(0.4, 1.5, 0.4, '#FFDDBB', 0, 0.75, 0, figure)
            create_box(0.6, 1.2, 0.4, '#FF5555', 0, 2.0, 0, figure)
            create_box(0.4, 0.4, 0.4, '#FFDDBB', 0, 2.8, 0, figure)
            clothing.add(figure)

        coffee = self._storefront(10, '#6F4E37', shops)
        create_box(12, 1.2, 1, '#8B4513', 0, 0.6, 2, coffee)
        create_box(2, 1.5, 1, '#C0C0C0', -2, 1.8, 2, coffee)
        create_box(0.3, 0.4, 0.3, '#FFF', 0, 1.4, 2, coffee)
        create_box(0.3, 0.4, 0.3, '#FFF', 1, 1.4, 2, coffee)

    def _storefront(self, x, sign_color, parent):
        g = group(name="storefront", position=(x, 0, 0))
        parent.add(g)
        create_box(18, 6, 1, '#EEEEEE', 0, 3, 0, g)
        create_box(16, 5, 0.5, '#222', 0, 2.5, 0.5, g)
        create_box(10, 1, 0.2, sign_color, 0, 5, 0.8, g)
        return g

    def _planter(self, x, z=-10):
        g = group(name="planter", position=(x, LEVEL_3_Y, z))
        self.node.add(g)
        create_box(6, 1, 6, '#8B4513', 0, 0.5, 0, g)
        create_box(5, 0.5, 5, '#228822', 0, 1.0, 0, g)
        create_box(0.6, 5, 0.6, '#5C4033', 0, 3, 0, g)
        leaf = '#32CD32'
        create_box(4, 0.2, 0.6, leaf, 0, 5.5, 0, g)
        create_box(0.6, 0.2, 4, leaf, 0, 5.5, 0, g)
        create_box(3, 0.2, 0.6, leaf, 0, 5.7, 0, g).set_euler(0.0, math.pi / 4, 0.0)
        create_box(0.6, 0.2, 3, leaf, 0, 5.7, 0, g).set_euler(0.0, math.pi / 4, 0.0)
        return g
