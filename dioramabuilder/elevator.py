"""Glass elevator cars shuttling up the tower core."""

import math
import logging
from enum import Enum

import numpy as np

from .agents import Agent, Capability
from .audio import SoundKind, attach_sound, create_sound
from .models import CameraView, Voxel
from .primitives import Material, glass
from .scene import SceneNode, group
from .symmetry import rotate_point
from .voxels import instanced_node

logger = logging.getLogger(__name__)

BOTTOM_Y = 10.0
TOP_Y = 415.0
MAX_SPEED = 15.0
ACCEL = 10.0
SLOW_ZONE = 50.0
DAMPING = 0.95
SNAP_EPSILON = 1.0
SHAFT_RADIUS = 11.0

BODY_DOOR = '#333333'
BODY_FLOOR = '#1a1a1a'
GLASS_TINT = '#add8e6'


class ElevatorMode(str, Enum):
    WAIT = "WAIT"
    MOVING_UP = "MOVING_UP"
    MOVING_DOWN = "MOVING_DOWN"


def car_voxels(angle, color):
    """Return (solid, glass) voxel lists for a 3x3x6 car at *angle* degrees.

    Floor and roof are solid; on the four middle layers the outer column
    is glass, the middle column is glass around a hollow centre and the
    inner (core-facing) column is body with a door in the middle.
    """
    solid, glazing = [], []
    for dy in range(6):
        for dx in (-1, 0, 1):
            for dz in (-1, 0, 1):
                x, z = rotate_point(SHAFT_RADIUS + dx, dz, angle)
                if dy == 0:
                    solid.append(Voxel(x, dy, z, BODY_FLOOR))
                elif dy == 5:
                    solid.append(Voxel(x, dy, z, color))
                elif dx == 1:
                    glazing.append(Voxel(x, dy, z))
                elif dx == 0:
                    if dz != 0:
                        glazing.append(Voxel(x, dy, z))
                else:
                    solid.append(Voxel(x, dy, z, BODY_DOOR if dz == 0 else color))
    return solid, glazing


class Elevator(Agent):
    """One car running between the base and the loupe floor.

    Parameters
    ----------
    angle : float
        Shaft bearing in degrees around the core.
    color : str
        Body colour.
    speed_offset : float
        Extra seconds added to the first dwell so the cars don't move in
        lockstep.
    rng : random.Random
        Source for the dwell times.
    """

    capabilities = frozenset({Capability.MOVABLE, Capability.CAMERA_TARGET})

    def __init__(self, angle, color, speed_offset, rng, audio=None):
        self.angle = angle
        self.speed_offset = speed_offset
        self.rng = rng

        self.y = BOTTOM_Y
        self.target_y = TOP_Y
        self.velocity = 0.0
        self.mode = ElevatorMode.WAIT
        self.wait_time = rng.random() * 5 + speed_offset

        self.node = group(name=f"elevator_{int(angle)}")
        self.sound_dummy = SceneNode(name="elevator_sound")
        self.car = group(name="elevator_car")
        self.node.add(self.sound_dummy, self.car)
        attach_sound(self.sound_dummy, create_sound(audio, SoundKind.ELEVATOR, 20, 300, 0.5))

        solid, glazing = car_voxels(angle, color)
        instanced_node(solid, 1.0, Material(color='#FFFFFF', roughness=0.5, metalness=0.5),
                       name="elevator_body", parent=self.car)
        instanced_node(glazing, 1.0, glass(GLASS_TINT, opacity=0.4, roughness=0.1, metalness=0.9),
                       name="elevator_glass", parent=self.car)
        self._place()

    @property
    def direction(self):
        if self.mode is ElevatorMode.MOVING_UP:
            return 1
        if self.mode is ElevatorMode.MOVING_DOWN:
            return -1
        return 0

    def _depart(self):
        # Head for whichever end is farther away
        if abs(TOP_Y - self.y) >= abs(self.y - BOTTOM_Y):
            self.target_y, self.mode = TOP_Y, ElevatorMode.MOVING_UP
        else:
            self.target_y, self.mode = BOTTOM_Y, ElevatorMode.MOVING_DOWN

    def _arrive(self):
        self.y = self.target_y
        self.velocity = 0.0
        self.mode = ElevatorMode.WAIT
        self.wait_time = 3 + self.rng.random() * 5

    def update(self, delta):
        if self.mode is ElevatorMode.WAIT:
            self.wait_time -= delta
            if self.wait_time <= 0:
                self._depart()
        else:
            dist = self.target_y - self.y
            sign = math.copysign(1.0, dist) if dist else 0.0
            if abs(self.velocity) < MAX_SPEED:
                self.velocity += sign * ACCEL * delta
            if abs(dist) < SLOW_ZONE:
                self.velocity *= DAMPING

            if abs(dist) < SNAP_EPSILON or (sign > 0 > self.velocity) or (sign < 0 < self.velocity):
                self._arrive()
            else:
                self.y += self.velocity * delta
        self._place()

    def _place(self):
        self.car.position[1] = self.y
        x, z = rotate_point(SHAFT_RADIUS, 0, self.angle)
        self.sound_dummy.set_position(x, self.y + 3, z)

    def get_camera_target(self):
        """Eye at the car's outer glass, looking outward and down.

        The view is built in the host tower's frame and mapped to world
        space through this elevator's node.
        """
        x, z = rotate_point(SHAFT_RADIUS, 0, self.angle)
        local_eye = np.array([x, self.y + 3, z])
        rad = math.radians(self.angle)
        local_target = local_eye + np.array([math.cos(rad), 0.0, math.sin(rad)]) * 100
        local_target[1] -= 20
        return CameraView(position=self.node.transform_point(local_eye),
                          look_at=self.node.transform_point(local_target))
