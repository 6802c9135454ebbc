"""Rotation, look-at and matrix helpers (Y-up, right-handed).

Euler angles follow the XYZ convention used by the scene graph:
``R = Rx(x) @ Ry(y) @ Rz(z)``.
"""

import math

import numpy as np
from trimesh import transformations as tf

UP = np.array([0.0, 1.0, 0.0])
FORWARD = np.array([0.0, 0.0, 1.0])
RIGHT = np.array([1.0, 0.0, 0.0])


def rotation_x(angle):
    return tf.rotation_matrix(angle, RIGHT)[:3, :3]


def rotation_y(angle):
    return tf.rotation_matrix(angle, UP)[:3, :3]


def rotation_z(angle):
    return tf.rotation_matrix(angle, FORWARD)[:3, :3]


def euler_xyz(x=0.0, y=0.0, z=0.0):
    return rotation_x(x) @ rotation_y(y) @ rotation_z(z)


def look_rotation(direction, up=UP):
    """Rotation whose local +Z points along *direction*.

    Returns None for a zero or non-finite direction.  When *direction* is
    parallel to *up* the forward axis is nudged, so a straight-down look
    still yields a usable frame.
    """
    z = np.asarray(direction, dtype=np.float64)
    norm = np.linalg.norm(z)
    if not np.isfinite(norm) or norm == 0.0:
        return None
    z = z / norm
    x = np.cross(up, z)
    if np.linalg.norm(x) < 1e-12:
        if abs(up[2]) == 1.0:
            z = z + np.array([1e-4, 0.0, 0.0])
        else:
            z = z + np.array([0.0, 0.0, 1e-4])
        z = z / np.linalg.norm(z)
        x = np.cross(up, z)
    x = x / np.linalg.norm(x)
    y = np.cross(z, x)
    return np.column_stack([x, y, z])


def compose(position, rotation, scale):
    """4x4 matrix from translation, 3x3 rotation and per-axis scale."""
    m = np.eye(4)
    m[:3, :3] = rotation @ np.diag(scale)
    m[:3, 3] = position
    return m


def transform_point(matrix, point):
    p = np.append(np.asarray(point, dtype=np.float64), 1.0)
    return (matrix @ p)[:3]


def is_finite(*values) -> bool:
    """True when every value is present and contains only finite numbers."""
    for v in values:
        if v is None:
            return False
        if not np.all(np.isfinite(np.asarray(v, dtype=np.float64))):
            return False
    return True


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


def lerp(a, b, t):
    return a + (b - a) * t


def heading_vectors(heading):
    """Forward (+Z) and right (+X) unit vectors after a yaw of *heading*."""
    s, c = math.sin(heading), math.cos(heading)
    return np.array([s, 0.0, c]), np.array([c, 0.0, -s])


def frange(start, stop, step, inclusive=False):
    """Float range that accumulates *step*, matching a running-sum loop."""
    v = start
    while v < stop or (inclusive and v == stop):
        yield v
        v += step
