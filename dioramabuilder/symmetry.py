"""Rotational symmetry helpers for the tower voxel model."""

import math
import logging

from .models import Voxel

logger = logging.getLogger(__name__)

KINDS = ('solid', 'glass', 'rotating', 'rotating_glass')

TRIAD_ANGLES = (0, 120, 240)
HEX_ANGLES = (0, 60, 120, 180, 240, 300)


def rotate_point(x, z, angle_deg):
    """Rotate (x, z) about the Y axis by *angle_deg* degrees."""
    rad = math.radians(angle_deg)
    c, s = math.cos(rad), math.sin(rad)
    return x * c - z * s, x * s + z * c


def round_half_up(value) -> int:
    return int(math.floor(value + 0.5))


class VoxelCollector:
    """Integer-snapped voxel buckets, one per material kind.

    Writing twice to the same cell of a bucket keeps the later colour.
    """

    def __init__(self):
        self._buckets = {kind: {} for kind in KINDS}

    def add(self, x, y, z, color, kind='solid'):
        if kind not in self._buckets:
            raise ValueError(f"Unknown voxel kind: {kind!r}")
        key = (round_half_up(x), round_half_up(y), round_half_up(z))
        self._buckets[kind][key] = color

    def add_triad(self, x, y, z, color, kind='solid'):
        for angle in TRIAD_ANGLES:
            rx, rz = rotate_point(x, z, angle)
            self.add(rx, y, rz, color, kind)

    def add_hex(self, x, y, z, color, kind='solid'):
        for angle in HEX_ANGLES:
            rx, rz = rotate_point(x, z, angle)
            self.add(rx, y, rz, color, kind)

    def voxels(self, kind='solid'):
        return [Voxel(x, y, z, color) for (x, y, z), color in self._buckets[kind].items()]

    def counts(self):
        return {kind: len(bucket) for kind, bucket in self._buckets.items()}

    def __len__(self):
        return sum(len(bucket) for bucket in self._buckets.values())
