"""Shuttle monorail trains.

A train is four car slots following an open track curve.  Slot offsets are
fixed (slot 0 is always furthest along the curve), so running in reverse
means slot 3 leads; on departure the head and tail meshes are rebuilt so a
HEAD car always faces the direction of travel.
"""

import math
import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .agents import Agent, Capability
from .audio import SoundKind, attach_sound, create_sound
from .constants import CAR_GAP, COLORS, TRAIN_LENGTH_RATIO
from .curves import clamp_parameter
from .models import CameraView, CarType
from .primitives import Box, Cylinder, Material, create_box, create_mesh, glass
from .scene import group
from .transforms import clamp, is_finite

logger = logging.getLogger(__name__)

SPEED_SCALE = 0.1
SLOT_COUNT = 4
LOOKAHEAD = 0.05

CAR_WIDTH = 2.4
CAR_LENGTH = 4.5
NOSE_OFFSET = 2.25

# Eye position relative to the lead car, in car space
CAB_EYE = (0.0, 3.5, NOSE_OFFSET + 1.5)


class TrainState(str, Enum):
    MOVING = "MOVING"
    STOPPED = "STOPPED"


@dataclass
class TrainConfig:
    name: str
    color: str
    speed: float = 0.1
    direction: int = 1
    initial_progress: float = 0.0
    dwell_time: float = 5.0
    dwell_jitter: float = 0.0
    end_buffer: float = 0.01
    swap_ends_on_departure: bool = True


def slot_offset(index):
    return index * (TRAIN_LENGTH_RATIO + CAR_GAP)


def composition(direction):
    """Car roles by slot, leading car first in travel order."""
    if direction >= 0:
        return [CarType.HEAD, CarType.BODY, CarType.BODY, CarType.TAIL]
    return [CarType.TAIL, CarType.BODY, CarType.BODY, CarType.HEAD]


# ── Car meshes ────────────────────────────────────────────────────────

def _nose(car, is_head, color, chrome, glazing):
    nose = group(name="nose", position=(0, 0, NOSE_OFFSET if is_head else -NOSE_OFFSET),
                 rotation_y=0.0 if is_head else math.pi)
    create_box(CAR_WIDTH, 1.2, 1.2, '#444', 0, 0.4, 0.6, nose)
    create_mesh(Box(CAR_WIDTH + 0.2, 0.5, 0.4), chrome, 0, 0.4, 1.2, nose)
    create_box(CAR_WIDTH, 0.8, 1.0, color, 0, 1.4, 0.5, nose)
    create_box(0.2, 0.6, 0.1, '#EEE', 0, 1.4, 1.01, nose)
    create_mesh(Box(CAR_WIDTH - 0.2, 1.1, 1.0), glazing, 0, 2.0, 0.4, nose).set_euler(-0.25)
    create_box(CAR_WIDTH, 0.3, 1.2, COLORS['ROOF'], 0, 2.55, 0.1, nose).set_euler(-0.05)

    lamp = '#FFFFEE' if is_head else '#FF0000'
    lamp_glow = '#FFFFEE' if is_head else '#AA0000'
    for x in (-0.8, 0.8):
        light = create_mesh(Cylinder(0.25, 0.25, 0.2, 16),
                            Material(color=lamp, emissive=lamp_glow, emissive_intensity=3.0),
                            x, 1.0, 1.0, nose, name="lamp")
        light.set_euler(math.pi / 2)
    car.add(nose)


def car_mesh(car_type, color):
    """One monorail car with its nose pointing down local +Z.

    Tail cars carry the same nose turned to face -Z, with red lamps; body
    cars get a gangway at the rear.
    """
    car_type = CarType(car_type)
    car = group(name=f"car_{car_type.value.lower()}")
    paint = Material(color=color, roughness=0.3, metalness=0.1)
    chrome = Material(color='#EEEEEE', roughness=0.1, metalness=0.9)
    glazing = glass(COLORS['GLASS'], opacity=0.4, roughness=0.0, metalness=0.9)

    create_mesh(Box(CAR_WIDTH, 1.2, CAR_LENGTH), Material(color='#444444', roughness=0.8),
                0, 0.4, 0, car, name="skirt")
    create_mesh(Box(CAR_WIDTH, 1.0, CAR_LENGTH), paint, 0, 1.5, 0, car, name="hull")
    create_mesh(Box(CAR_WIDTH + 0.05, 0.15, CAR_LENGTH), chrome, 0, 1.1, 0, car, name="belt")
    create_mesh(Box(CAR_WIDTH - 0.1, 0.8, CAR_LENGTH - 0.2), glazing, 0, 1.8, 0, car,
                name="windows")
    for z in (-1.5, 0.0, 1.5):
        create_box(CAR_WIDTH, 0.8, 0.3, color, 0, 1.8, z, car)
    create_mesh(Box(CAR_WIDTH, 0.4, CAR_LENGTH), Material(color=COLORS['ROOF'], roughness=0.5),
                0, 2.4, 0, car, name="roof")
    create_box(1.2, 0.2, 3.0, COLORS['VENT'], 0, 2.6, 0, car)

    if car_type is CarType.BODY:
        create_box(1.8, 2.0, 0.4, '#222', 0, 1.5, -2.45, car)
        create_box(2.0, 2.1, 0.1, '#111', 0, 1.5, -2.3, car)
        create_box(2.0, 2.1, 0.1, '#111', 0, 1.5, -2.6, car)
    else:
        _nose(car, car_type is CarType.HEAD, color, chrome, glazing)
    return car


# ── Agent ─────────────────────────────────────────────────────────────

class CarSlot:
    """A fixed position in the consist: offset behind slot 0 and its node."""

    def __init__(self, index, car_type, color):
        self.index = index
        self.offset = slot_offset(index)
        self.car_type = CarType(car_type)
        self.node = group(name=f"slot_{index}")
        self.mesh = car_mesh(self.car_type, color)
        self.node.add(self.mesh)

    def rebuild(self, car_type, color):
        car_type = CarType(car_type)
        if car_type is self.car_type:
            return False
        self.node.remove(self.mesh)
        self.car_type = car_type
        self.mesh = car_mesh(car_type, color)
        self.node.add(self.mesh)
        return True


class Train(Agent):
    """Four-car shuttle bouncing between the ends of an open curve.

    Parameters
    ----------
    config : TrainConfig
        Speed, direction, start position and dwell behaviour.
    curve : CatmullRomCurve
        Open track curve, shared with other agents.
    rng : random.Random, optional
        Source for dwell jitter; without one the dwell is fixed.
    audio : SoundBank, optional
    """

    capabilities = frozenset({Capability.MOVABLE, Capability.CAMERA_TARGET})

    def __init__(self, config, curve, rng=None, audio=None):
        self.config = config
        self.curve = curve
        self.rng = rng
        self.speed = config.speed
        self.direction = 1 if config.direction >= 0 else -1
        # Orientation of the current consist; lags direction during a dwell
        self.facing = self.direction
        self.state = TrainState.MOVING
        self.dwell_remaining = 0.0

        self.span = slot_offset(SLOT_COUNT - 1)
        self.min_progress = self.span + config.end_buffer
        self.max_progress = 1.0 - config.end_buffer
        if self.min_progress >= self.max_progress:
            raise ValueError(f"Train {config.name}: end buffer {config.end_buffer} leaves no "
                             f"room for a {self.span:.4f} consist")
        self.progress = clamp(config.initial_progress, self.min_progress, self.max_progress)

        self.node = group(name=f"train_{config.name}")
        self.slots = [CarSlot(i, role, config.color)
                      for i, role in enumerate(composition(self.direction))]
        self.node.add(*(slot.node for slot in self.slots))
        self.sound = attach_sound(self.lead_slot.node,
                                  create_sound(audio, SoundKind.TRAIN, 20, 500, 0.5))
        self._place_cars()

    @property
    def lead_slot(self):
        return self.slots[0] if self.facing >= 0 else self.slots[-1]

    def slot_parameter(self, slot):
        return clamp_parameter(self.progress - slot.offset)

    def update(self, delta):
        if self.state is TrainState.MOVING:
            self.progress += self.direction * self.speed * delta * SPEED_SCALE
            if self.direction > 0 and self.progress >= self.max_progress:
                self._arrive(self.max_progress)
            elif self.direction < 0 and self.progress <= self.min_progress:
                self._arrive(self.min_progress)
        else:
            self.dwell_remaining -= delta
            if self.dwell_remaining <= 0:
                self._depart()
        self._place_cars()

    def _arrive(self, bound):
        self.progress = bound
        self.direction = -self.direction
        self.state = TrainState.STOPPED
        jitter = self.rng.random() * self.config.dwell_jitter if self.rng is not None else 0.0
        self.dwell_remaining = self.config.dwell_time + jitter
        logger.debug(f"Train {self.config.name} stopped at {bound:.3f} "
                     f"for {self.dwell_remaining:.1f}s")

    def _depart(self):
        self.state = TrainState.MOVING
        self.dwell_remaining = 0.0
        self.facing = self.direction
        if self.config.swap_ends_on_departure:
            for slot, role in zip(self.slots, composition(self.direction)):
                slot.rebuild(role, self.config.color)
        if self.sound is not None:
            attach_sound(self.lead_slot.node, self.sound)

    def _place_cars(self):
        for slot in self.slots:
            t = self.slot_parameter(slot)
            position = self.curve.point_at(t)
            tangent = self.curve.tangent_at(t)
            if not is_finite(position, tangent):
                continue
            slot.node.set_position(*position)
            slot.node.look_at(position + tangent * self.facing)

    def get_camera_target(self):
        """Cab view from just ahead of the lead nose, looking down the track."""
        lead = self.lead_slot
        rotation = lead.node.world_rotation()
        position = lead.node.world_position() + rotation @ np.array(CAB_EYE)

        ahead = clamp_parameter(self.slot_parameter(lead) + LOOKAHEAD * self.facing)
        look_at = self.curve.point_at(ahead)
        if is_finite(look_at):
            look_at = look_at + np.array([0.0, 2.0, 0.0])
        else:
            look_at = position + rotation[:, 2] * 100
        return CameraView(position=position, look_at=look_at)

    def __repr__(self):
        return (f"Train({self.config.name!r}, {self.state.value}, "
                f"progress={self.progress:.4f}, direction={self.direction})")
