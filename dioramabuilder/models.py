"""Data classes and path management."""

import pathlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from .constants import OUTPUT_DIR


class PathManager:
    """Manage paths relative to the output directory."""

    @staticmethod
    def get_output_path(filename: str) -> pathlib.Path:
        """Get the output file path; absolute paths are kept as given."""
        path = pathlib.Path(filename)
        if path.is_absolute():
            return path
        return OUTPUT_DIR / path


@dataclass(frozen=True)
class Voxel:
    x: float
    y: float
    z: float
    color: object = None


@dataclass(frozen=True)
class Dimensions:
    """Half-width, height and half-depth of a voxel sampling box."""
    w: float
    h: float
    d: float


@dataclass
class CameraView:
    """Eye position and look-at point in world space.

    ``up`` and ``fov`` are only set by agents that override the camera's
    up vector or field of view (the helicopter gimbal).
    """
    position: np.ndarray
    look_at: np.ndarray
    up: Optional[np.ndarray] = None
    fov: Optional[float] = None


class CarType(str, Enum):
    HEAD = "HEAD"
    BODY = "BODY"
    TAIL = "TAIL"
