"""In-memory scene graph: transform nodes, lights and tree queries.

A ``SceneNode`` carries a local transform (position, rotation, scale), an
optional payload (a primitive geometry, an instanced structure or a
``Light``) with its material, and free-form ``user_data`` markers read by
the day/night toggle.  Rotation is held either as XYZ Euler angles or as an
explicit matrix set by ``look_at``; writing one clears the other.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .transforms import UP, compose, euler_xyz, look_rotation, transform_point

logger = logging.getLogger(__name__)

# Emissive strength restored on lit windows at night
LIT_WINDOW_INTENSITY = 1.0


@dataclass
class Light:
    kind: str = 'point'
    color: object = '#FFFFFF'
    intensity: float = 1.0
    distance: float = 0.0
    decay: float = 2.0


class SceneNode:
    """A transform node in the diorama scene graph."""

    def __init__(self, name=None, geometry=None, material=None, position=(0.0, 0.0, 0.0)):
        self.name = name
        self.geometry = geometry
        self.material = material
        self.position = np.array(position, dtype=np.float64)
        self.euler = np.zeros(3)
        self.scale = np.ones(3)
        self._rotation_override = None
        self.parent = None
        self.children = []
        self.visible = True
        self.cast_shadow = False
        self.receive_shadow = False
        self.user_data = {}
        self.sounds = []

    def __repr__(self):
        return f"SceneNode({self.name!r}, children={len(self.children)})"

    # ── Hierarchy ─────────────────────────────────────────────────────

    def add(self, *nodes):
        for node in nodes:
            if node is None:
                continue
            if node.parent is not None:
                node.parent.remove(node)
            node.parent = self
            self.children.append(node)
        return self

    def remove(self, node):
        if node in self.children:
            self.children.remove(node)
            node.parent = None
        return self

    def traverse(self):
        """Yield this node and every descendant, depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, name):
        for node in self.traverse():
            if node.name == name:
                return node
        return None

    # ── Local transform ───────────────────────────────────────────────

    def set_position(self, x, y, z):
        self.position[:] = (x, y, z)
        return self

    def set_euler(self, x=0.0, y=0.0, z=0.0):
        self.euler[:] = (x, y, z)
        self._rotation_override = None
        return self

    def set_rotation_matrix(self, rotation):
        self._rotation_override = np.array(rotation, dtype=np.float64)
        return self

    def set_scale(self, sx, sy=None, sz=None):
        if sy is None:
            sy = sz = sx
        self.scale[:] = (sx, sy, sz)
        return self

    @property
    def rotation(self):
        if self._rotation_override is not None:
            return self._rotation_override
        return euler_xyz(*self.euler)

    def local_matrix(self):
        return compose(self.position, self.rotation, self.scale)

    # ── World queries ─────────────────────────────────────────────────

    def world_matrix(self):
        m = self.local_matrix()
        node = self.parent
        while node is not None:
            m = node.local_matrix() @ m
            node = node.parent
        return m

    def world_position(self):
        return self.world_matrix()[:3, 3].copy()

    def world_rotation(self):
        """World rotation with scale removed."""
        m = self.world_matrix()[:3, :3]
        return m / np.linalg.norm(m, axis=0)

    def transform_point(self, point):
        """Map a point from this node's local space into world space."""
        return transform_point(self.world_matrix(), point)

    def look_at(self, target, up=UP):
        """Turn the node so its local +Z axis faces a world-space *target*.

        Returns False (leaving the rotation untouched) when the target
        coincides with the node or is not finite.
        """
        direction = np.asarray(target, dtype=np.float64) - self.world_position()
        world_rot = look_rotation(direction, up)
        if world_rot is None:
            return False
        if self.parent is not None:
            world_rot = self.parent.world_rotation().T @ world_rot
        self._rotation_override = world_rot
        return True


def group(name=None, position=(0.0, 0.0, 0.0), rotation_y=0.0):
    node = SceneNode(name=name, position=position)
    if rotation_y:
        node.set_euler(0.0, rotation_y, 0.0)
    return node


def light_node(light, position=(0.0, 0.0, 0.0), name=None, night_only=False):
    node = SceneNode(name=name, geometry=light, position=position)
    if night_only:
        node.user_data['night_light'] = True
    return node


def apply_time_of_day(root, night=False):
    """Show practical lights and light up tagged windows for night scenes.

    Day mode hides every ``night_light`` node and drops the emissive
    intensity of ``lit_window`` materials to zero.
    """
    lights = windows = 0
    for node in root.traverse():
        if node.user_data.get('night_light'):
            node.visible = night
            lights += 1
        if node.user_data.get('lit_window') and node.material is not None:
            node.material.emissive_intensity = LIT_WINDOW_INTENSITY if night else 0.0
            windows += 1
    logger.info(f"{'Night' if night else 'Day'} mode: {lights} practical lights, "
                f"{windows} lit-window meshes")
    return lights, windows


def summarize(root):
    """Count nodes, meshes, instances, lights and markers under *root*."""
    from .voxels import InstancedStructure

    stats = {'nodes': 0, 'meshes': 0, 'instanced_meshes': 0, 'instances': 0,
             'lights': 0, 'lit_windows': 0, 'night_lights': 0, 'sounds': 0}
    for node in root.traverse():
        stats['nodes'] += 1
        stats['sounds'] += len(node.sounds)
        if node.user_data.get('lit_window'):
            stats['lit_windows'] += 1
        if node.user_data.get('night_light'):
            stats['night_lights'] += 1
        geom = node.geometry
        if geom is None:
            continue
        if isinstance(geom, Light):
            stats['lights'] += 1
        elif isinstance(geom, InstancedStructure):
            stats['instanced_meshes'] += 1
            stats['instances'] += geom.count
        else:
            stats['meshes'] += 1
    return stats
