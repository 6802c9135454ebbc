"""Parametric box / cylinder / plane emitters and their materials.

Every factory returns a ``SceneNode`` carrying a geometry descriptor and a
fresh ``Material``; nodes are only attached when a *parent* is passed.
Geometry descriptors are lightweight and turn into trimesh meshes only when
the scene is exported.
"""

import math
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

import numpy as np
import trimesh

from .scene import SceneNode
from .transforms import UP, look_rotation

logger = logging.getLogger(__name__)

NAMED_COLORS = {
    'white': '#FFFFFF',
    'black': '#000000',
    'red': '#FF0000',
    'green': '#008000',
    'blue': '#0000FF',
    'yellow': '#FFFF00',
}


@lru_cache(maxsize=1024)
def _parse_hex(color: str):
    text = NAMED_COLORS.get(color.lower(), color).lstrip('#')
    if len(text) == 3:
        text = ''.join(ch * 2 for ch in text)
    if len(text) != 6:
        raise ValueError(f"Unrecognised color: {color!r}")
    try:
        value = int(text, 16)
    except ValueError:
        raise ValueError(f"Unrecognised color: {color!r}")
    return ((value >> 16) & 0xFF) / 255.0, ((value >> 8) & 0xFF) / 255.0, (value & 0xFF) / 255.0, 1.0


def to_rgba(color):
    """Convert '#RRGGBB', '#RGB', a CSS name, 0xRRGGBB or a tuple to RGBA floats."""
    if isinstance(color, str):
        return _parse_hex(color)
    if isinstance(color, (int, np.integer)) and not isinstance(color, bool):
        value = int(color)
        return ((value >> 16) & 0xFF) / 255.0, ((value >> 8) & 0xFF) / 255.0, (value & 0xFF) / 255.0, 1.0
    rgba = tuple(float(c) for c in color)
    if len(rgba) == 3:
        return rgba + (1.0,)
    if len(rgba) == 4:
        return rgba
    raise ValueError(f"Unrecognised color: {color!r}")


@dataclass
class Material:
    color: object = '#FFFFFF'
    roughness: float = 1.0
    metalness: float = 0.0
    opacity: float = 1.0
    transparent: bool = False
    emissive: Optional[object] = None
    emissive_intensity: float = 1.0
    double_sided: bool = False

    @property
    def rgba(self):
        r, g, b, _ = to_rgba(self.color)
        return r, g, b, self.opacity if self.transparent else 1.0

    def to_pbr(self):
        """PBR material for glTF export."""
        kwargs = dict(
            baseColorFactor=list(self.rgba),
            roughnessFactor=self.roughness,
            metallicFactor=self.metalness,
            doubleSided=self.double_sided,
        )
        if self.transparent:
            kwargs['alphaMode'] = 'BLEND'
        if self.emissive is not None and self.emissive_intensity > 0:
            r, g, b, _ = to_rgba(self.emissive)
            k = min(1.0, self.emissive_intensity)
            kwargs['emissiveFactor'] = [r * k, g * k, b * k]
        return trimesh.visual.material.PBRMaterial(**kwargs)


# ── Geometry descriptors ──────────────────────────────────────────────

def tapered_prism(r_bottom, r_top, y_bottom, y_top, nsides=8, rotation=0.0):
    """Frustum with *nsides* sides centred on the Y axis.

    Returns (verts, faces).  *rotation* offsets the starting angle in
    radians; pi/4 aligns a square prism's flat faces with the axes.
    """
    verts = []
    faces = []

    # Bottom ring then top ring: 2*nsides vertices
    for radius, y in ((r_bottom, y_bottom), (r_top, y_top)):
        for i in range(nsides):
            angle = 2.0 * math.pi * i / nsides + rotation
            verts.append([radius * math.cos(angle), y, radius * math.sin(angle)])

    for i in range(nsides):
        j = (i + 1) % nsides
        b0, b1 = i, j
        t0, t1 = nsides + i, nsides + j
        faces.append([b0, t1, b1])
        faces.append([b0, t0, t1])

    cbot = len(verts)
    verts.append([0.0, y_bottom, 0.0])
    for i in range(nsides):
        faces.append([cbot, i, (i + 1) % nsides])

    ctop = len(verts)
    verts.append([0.0, y_top, 0.0])
    for i in range(nsides):
        faces.append([ctop, nsides + (i + 1) % nsides, nsides + i])

    return verts, faces


def sweep_profile(points, tangents, profile, up=UP, closed_ends=True):
    """Extrude a closed 2D *profile* along sampled path frames.

    *profile* is a list of (u, v) offsets: u runs along the frame's side
    axis and v along its up axis.  Frames with a non-finite tangent are
    dropped.  Returns (verts, faces) or None when fewer than two usable
    frames remain.
    """
    rings = []
    for p, t in zip(points, tangents):
        frame = look_rotation(t, up)
        if frame is None or not np.all(np.isfinite(p)):
            continue
        side, normal = frame[:, 0], frame[:, 1]
        rings.append([p + u * side + v * normal for u, v in profile])
    if len(rings) < 2:
        return None

    n_pts = len(profile)
    verts = [v for ring in rings for v in ring]
    faces = []
    for i in range(len(rings) - 1):
        b0 = i * n_pts
        b1 = (i + 1) * n_pts
        for j in range(n_pts):
            jn = (j + 1) % n_pts
            faces.append([b0 + j, b0 + jn, b1 + jn])
            faces.append([b0 + j, b1 + jn, b1 + j])

    if closed_ends:
        cb = len(verts)
        verts.append(np.mean(rings[0], axis=0))
        for j in range(n_pts):
            faces.append([cb, (j + 1) % n_pts, j])
        ct = len(verts)
        tb = (len(rings) - 1) * n_pts
        verts.append(np.mean(rings[-1], axis=0))
        for j in range(n_pts):
            faces.append([ct, tb + j, tb + (j + 1) % n_pts])

    return verts, faces


@dataclass(frozen=True)
class Box:
    width: float
    height: float
    depth: float

    def to_mesh(self):
        return trimesh.creation.box(extents=(self.width, self.height, self.depth))


@dataclass(frozen=True)
class Cylinder:
    radius_top: float
    radius_bottom: float
    height: float
    segments: int = 16

    def to_mesh(self):
        half = self.height / 2.0
        verts, faces = tapered_prism(self.radius_bottom, self.radius_top, -half, half,
                                     nsides=max(3, int(self.segments)))
        return trimesh.Trimesh(vertices=verts, faces=faces, process=False)


@dataclass(frozen=True)
class Plane:
    """Flat quad in the local XY plane facing +Z."""
    width: float
    height: float

    def to_mesh(self):
        hw, hh = self.width / 2.0, self.height / 2.0
        verts = [[-hw, -hh, 0.0], [hw, -hh, 0.0], [hw, hh, 0.0], [-hw, hh, 0.0]]
        return trimesh.Trimesh(vertices=verts, faces=[[0, 1, 2], [0, 2, 3]], process=False)


@dataclass(frozen=True)
class Annulus:
    """Thin flat ring in the local XY plane (sign faces)."""
    inner_radius: float
    outer_radius: float
    segments: int = 32
    thickness: float = 0.02

    def to_mesh(self):
        return trimesh.creation.annulus(r_min=self.inner_radius, r_max=self.outer_radius,
                                        height=self.thickness, sections=self.segments)


@dataclass(frozen=True)
class Sphere:
    radius: float
    subdivisions: int = 1

    def to_mesh(self):
        return trimesh.creation.icosphere(subdivisions=self.subdivisions, radius=self.radius)


@dataclass(frozen=True, eq=False)
class MeshData:
    """Arbitrary triangle mesh (swept beams, tunnel shells)."""
    vertices: np.ndarray = field(repr=False)
    faces: np.ndarray = field(repr=False)

    def to_mesh(self):
        return trimesh.Trimesh(vertices=self.vertices, faces=self.faces, process=False)


# ── Factories ─────────────────────────────────────────────────────────

def create_mesh(geometry, material, x=0.0, y=0.0, z=0.0, parent=None, name=None,
                cast_shadow=True, receive_shadow=True):
    node = SceneNode(name=name, geometry=geometry, material=material, position=(x, y, z))
    node.cast_shadow = cast_shadow
    node.receive_shadow = receive_shadow
    if parent is not None:
        parent.add(node)
    return node


def create_box(w, h, d, color, x=0.0, y=0.0, z=0.0, parent=None):
    return create_mesh(Box(w, h, d), Material(color=color), x, y, z, parent)


def create_cylinder(rt, rb, h, segments, color, x=0.0, y=0.0, z=0.0, parent=None):
    return create_mesh(Cylinder(rt, rb, h, segments), Material(color=color), x, y, z, parent)


def create_plane(w, h, color, x=0.0, y=0.0, z=0.0, rot_x=0.0, parent=None):
    node = create_mesh(Plane(w, h), Material(color=color, double_sided=True), x, y, z, parent,
                       cast_shadow=False)
    node.set_euler(rot_x, 0.0, 0.0)
    return node


def glow(node, emissive=None, intensity=1.0):
    """Make a primitive's material emissive; returns the node."""
    node.material.emissive = emissive if emissive is not None else node.material.color
    node.material.emissive_intensity = intensity
    return node


def glass(color, opacity=0.4, roughness=0.1, metalness=0.9, double_sided=False):
    return Material(color=color, transparent=True, opacity=opacity, roughness=roughness,
                    metalness=metalness, double_sided=double_sided)
