"""Closed-loop road traffic and the hero taxi.

Cars follow the shared taxi loop forever: progress wraps into [0, 1) and
each car faces a sample slightly ahead of itself on the loop.
"""

import math
import logging

from .agents import Agent, Capability
from .audio import SoundKind, attach_sound, create_sound
from .constants import TRAFFIC_COLORS
from .curves import wrap_unit
from .models import CameraView
from .primitives import Cylinder, Material, create_box, create_mesh, glow
from .scene import SceneNode, group
from .transforms import is_finite

logger = logging.getLogger(__name__)

LOOP_SPEED_SCALE = 0.0005
LOOK_AHEAD = 0.005

TRAFFIC_SPEED = 60
TRAFFIC_CARS = 20
TAXI_SPEED = 70
TAXI_START = 0.85
TAXI_COLOR = '#FFD700'


def car_body(node, color):
    """Sedan body, wheels and lamps; the bonnet points down local +Z."""
    create_box(2.2, 1.0, 4.5, color, 0, 1.0, 0, node)
    create_box(2.0, 0.8, 2.5, '#333', 0, 1.9, -0.2, node)
    create_box(2.1, 0.15, 2.6, color, 0, 2.3, -0.2, node)

    tyre = Material(color='#222')
    for x, z in ((1.1, 1.2), (-1.1, 1.2), (1.1, -1.5), (-1.1, -1.5)):
        wheel = create_mesh(Cylinder(0.4, 0.4, 0.4, 16), tyre, x, 0.4, z, node, name="wheel")
        wheel.set_euler(0.0, 0.0, math.pi / 2)

    glow(create_box(1.8, 0.2, 0.1, '#FFF', 0, 1.0, 2.26, node), '#FFFFE0')
    glow(create_box(1.8, 0.2, 0.1, '#F00', 0, 1.0, -2.26, node), '#AA0000')
    return node


class LoopFollower(Agent):
    """Base for agents that drive round a closed curve without stopping."""

    capabilities = frozenset({Capability.MOVABLE})

    def __init__(self, curve, progress, speed, name):
        self.curve = curve
        self.progress = wrap_unit(progress)
        self.speed = speed
        self.node = group(name=name)

    def update(self, delta):
        self.progress = wrap_unit(self.progress + self.speed * delta * LOOP_SPEED_SCALE)
        self._place()

    def _place(self):
        position = self.curve.point_at(self.progress)
        ahead = self.curve.point_at(wrap_unit(self.progress + LOOK_AHEAD))
        if not is_finite(position, ahead):
            return
        self.node.set_position(*position)
        # Coincident samples leave the previous heading in place
        self.node.look_at(ahead)


class TrafficCar(LoopFollower):

    def __init__(self, curve, progress, speed, color, audio=None):
        super().__init__(curve, progress, speed, name="traffic_car")
        self.color = color
        attach_sound(self.node, create_sound(audio, SoundKind.TRAFFIC, 30, 300, 0.3))
        car_body(self.node, color)
        self._place()


class TrafficSystem(Agent):
    """Evenly spaced cars in random liveries, updated as one agent."""

    capabilities = frozenset({Capability.MOVABLE})

    def __init__(self, curve, rng, count=TRAFFIC_CARS, speed=TRAFFIC_SPEED, audio=None):
        self.node = group(name="traffic")
        self.cars = []
        for i in range(count):
            color = TRAFFIC_COLORS[math.floor(rng.random() * len(TRAFFIC_COLORS))]
            car = TrafficCar(curve, i / count, speed, color, audio=audio)
            self.node.add(car.node)
            self.cars.append(car)
        logger.debug(f"Traffic: {count} cars at speed {speed}")

    def update(self, delta):
        for car in self.cars:
            car.update(delta)


class HeroTaxi(LoopFollower):
    """Checker-striped cab with a fixed in-cab camera rig."""

    capabilities = frozenset({Capability.MOVABLE, Capability.CAMERA_TARGET})

    def __init__(self, curve, audio=None, progress=TAXI_START, speed=TAXI_SPEED):
        super().__init__(curve, progress, speed, name="hero_taxi")
        car_body(self.node, TAXI_COLOR)
        for i in range(8):
            z = -2 + i * 0.5
            color = '#000' if i % 2 == 0 else '#FFF'
            create_box(0.1, 0.2, 0.4, color, 1.11, 1.0, z, self.node)
            create_box(0.1, 0.2, 0.4, color, -1.11, 1.0, z, self.node)
        glow(create_box(0.8, 0.3, 0.4, '#FFFFE0', 0, 2.5, 0.5, self.node), '#FFFFE0', 0.5)

        self.camera_rig = SceneNode(name="taxi_camera_rig", position=(0.0, 3.0, 0.5))
        self.view_target = SceneNode(name="taxi_view_target", position=(0.0, 1.0, 50.0))
        self.node.add(self.camera_rig, self.view_target)
        attach_sound(self.node, create_sound(audio, SoundKind.TRAFFIC, 30, 300, 0.8))
        self._place()

    def get_camera_target(self):
        return CameraView(position=self.camera_rig.world_position(),
                          look_at=self.view_target.world_position())
