"""News helicopter parked on the news tower, flyable from a gamepad.

Flight is arcade physics: yaw from angular velocity, thrust in the heading
frame, constant gravity against trigger lift, per-frame drag and a hard
floor.  The body banks toward its local velocity; a nose gimbal carries
the POV camera.
"""

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .agents import Agent, Capability
from .audio import SoundKind, attach_sound, create_sound
from .inputs import read_flight_controls
from .models import CameraView
from .primitives import Box, Cylinder, Material, Sphere, create_box, create_cylinder, create_mesh
from .scene import group
from .transforms import clamp, lerp, rotation_y

logger = logging.getLogger(__name__)

POV_FOV = 110
ROTOR_MANUAL = 20.0
ROTOR_SPIN_UP = 10.0
ROTOR_SPIN_DOWN = 5.0


class HelicopterMode(str, Enum):
    PARKED = "PARKED"
    MANUAL = "MANUAL"


@dataclass(frozen=True)
class FlightParameters:
    accel: float = 60.0
    lift: float = 40.0
    gravity: float = 20.0
    friction: float = 0.97
    angular_accel: float = 2.0
    angular_friction: float = 0.92
    max_tilt: float = 0.4
    floor: float = 2.0
    deadzone: float = 0.15
    bank_gain: float = 0.02
    bank_rate: float = 3.0


def _normalize(v):
    return v / np.linalg.norm(v)


class NewsHelicopter(Agent):
    """Parked on its pad until switched to manual flight.

    Parameters
    ----------
    landing_position : array-like
        World position of the pad; the aircraft sits here while parked.
    inputs : InputService, optional
        Gamepad source for manual flight.
    audio : SoundBank, optional
    """

    capabilities = frozenset({Capability.MOVABLE, Capability.CAMERA_TARGET, Capability.POV})

    def __init__(self, landing_position, inputs=None, audio=None, params=None):
        self.params = params or FlightParameters()
        self.inputs = inputs
        self.landing_position = np.array(landing_position, dtype=np.float64)
        self.mode = HelicopterMode.PARKED
        self.velocity = np.zeros(3)
        self.angular_velocity = 0.0
        self.rotor_speed = 0.0
        self.target_rotor_speed = 0.0

        self.node = group(name="news_helicopter", position=self.landing_position)
        self.sound = attach_sound(self.node, create_sound(audio, SoundKind.ELEVATOR, 50, 1000, 0.0))
        if self.sound is not None:
            self.sound.set_playback_rate(1.5)
        self._build()

    # ── Model ─────────────────────────────────────────────────────────

    def _build(self):
        fuselage, stripe, metal, blade = '#FFFFFF', '#CC0000', '#333333', '#222222'
        body = self.body = group(name="helicopter_body")
        self.node.add(body)

        create_box(2.2, 2.0, 3.5, fuselage, 0, 1.5, 0.5, body)
        create_box(2.0, 1.8, 1.5, fuselage, 0, 1.4, 3.0, body)
        create_box(0.8, 0.8, 5.0, fuselage, 0, 1.8, -3.5, body)
        create_box(0.2, 1.5, 1.0, fuselage, 0, 2.5, -5.5, body).set_euler(0.3)
        create_box(2.3, 0.3, 3.6, stripe, 0, 1.5, 0.5, body)
        create_box(0.9, 0.3, 5.0, stripe, 0, 1.8, -3.5, body)

        canopy = Material(color='#112233', transparent=True, opacity=0.6, roughness=0.1)
        create_mesh(Box(2.1, 1.2, 1.6), canopy, 0, 2.0, 2.0, body, name="windshield").set_euler(-0.3)
        create_box(0.6, 0.6, 0.6, '#000000', 0, 1.8, 1.5, body)

        skid = Material(color=metal)
        for x in (1.0, -1.0):
            create_mesh(Cylinder(0.1, 0.1, 5, 8), skid, x, 0.2, 0.5, body, name="skid").set_euler(np.pi / 2)
            for z in (1.5, -1.0):
                create_box(0.1, 1.2, 0.1, metal, x, 0.8, z, body)

        self.main_rotor = group(name="main_rotor", position=(0, 3.2, 1.0))
        body.add(self.main_rotor)
        create_cylinder(0.2, 0.2, 0.8, 8, metal, 0, -0.4, 0, self.main_rotor)
        create_box(8.0, 0.1, 0.5, blade, 0, 0, 0, self.main_rotor)
        create_box(0.5, 0.1, 8.0, blade, 0, 0, 0, self.main_rotor)

        self.tail_rotor = group(name="tail_rotor", position=(0.5, 2.5, -5.5))
        self.tail_rotor.set_euler(0.0, 0.0, np.pi / 2)
        body.add(self.tail_rotor)
        create_box(2.5, 0.1, 0.2, blade, 0, 0, 0, self.tail_rotor)

        self.gimbal = group(name="camera_gimbal", position=(0, -0.2, 4.5))
        body.add(self.gimbal)
        create_mesh(Sphere(0.4), Material(color='#111'), parent=self.gimbal, name="gimbal_ball")
        create_cylinder(0.2, 0.15, 0.3, 8, '#111', 0, 0, 0.3, self.gimbal).set_euler(np.pi / 2)

    # ── State ─────────────────────────────────────────────────────────

    @property
    def position(self):
        return self.node.position

    @property
    def heading(self):
        return float(self.node.euler[1])

    @heading.setter
    def heading(self, value):
        self.node.set_euler(0.0, value, 0.0)

    def set_manual(self, manual=True):
        self.mode = HelicopterMode.MANUAL if manual else HelicopterMode.PARKED
        logger.info(f"Helicopter mode: {self.mode.value}")

    def toggle_mode(self):
        self.set_manual(self.mode is HelicopterMode.PARKED)
        return self.mode

    # ── Update ────────────────────────────────────────────────────────

    def _spin_rotors(self, delta):
        if self.rotor_speed < self.target_rotor_speed:
            self.rotor_speed = min(self.target_rotor_speed, self.rotor_speed + delta * ROTOR_SPIN_UP)
        elif self.rotor_speed > self.target_rotor_speed:
            self.rotor_speed = max(self.target_rotor_speed, self.rotor_speed - delta * ROTOR_SPIN_DOWN)
        self.main_rotor.euler[1] -= self.rotor_speed * delta * 20
        self.tail_rotor.euler[0] -= self.rotor_speed * delta * 30
        if self.sound is not None:
            self.sound.set_volume(min(1.0, self.rotor_speed / 5))

    def update(self, delta):
        self._spin_rotors(delta)
        if self.mode is HelicopterMode.MANUAL:
            self.target_rotor_speed = ROTOR_MANUAL
            self._fly(delta)
        else:
            self.target_rotor_speed = 0.0
            self._park()

    def _park(self):
        self.node.set_position(*self.landing_position)
        self.node.set_euler(0.0, 0.0, 0.0)
        self.body.set_euler(0.0, 0.0, 0.0)
        self.velocity[:] = 0.0
        self.angular_velocity = 0.0
        forward = _normalize(np.array([0.0, -1.0, 3.0]))
        self.gimbal.look_at(self.landing_position + forward * 200)

    def _fly(self, delta):
        p = self.params
        controls = read_flight_controls(self.inputs, p.deadzone)
        if controls is not None:
            self.angular_velocity -= controls.yaw * p.angular_accel * delta
            self.angular_velocity *= p.angular_friction
            self.heading = self.heading + self.angular_velocity * delta

            heading = rotation_y(self.heading)
            self.velocity += heading[:, 2] * (controls.forward * p.accel * delta)
            self.velocity += heading[:, 0] * (controls.strafe * p.accel * delta)
            self.velocity[1] += (controls.lift * p.lift - p.gravity) * delta

        self.node.position += self.velocity * delta
        if self.node.position[1] < p.floor:
            self.node.position[1] = p.floor
            if self.velocity[1] < 0:
                self.velocity[1] = 0.0
        self.velocity *= p.friction

        heading = rotation_y(self.heading)
        local = heading.T @ self.velocity
        pitch = clamp(local[2] * p.bank_gain, -p.max_tilt, p.max_tilt)
        roll = clamp(-local[0] * p.bank_gain, -p.max_tilt, p.max_tilt)
        t = min(1.0, delta * p.bank_rate)
        self.body.set_euler(lerp(self.body.euler[0], pitch, t), 0.0,
                            lerp(self.body.euler[2], roll, t))

        self.gimbal.look_at(self.node.position + heading @ np.array([0.0, -50.0, 100.0]))

    # ── Cameras ───────────────────────────────────────────────────────

    def get_camera_target(self):
        heading = rotation_y(self.heading)
        position = self.node.position + heading @ np.array([0.0, 2.0, 8.0])
        look_at = self.node.position + heading @ np.array([0.0, -10.0, 20.0])
        return CameraView(position=position, look_at=look_at)

    def get_pov(self):
        rotation = self.gimbal.world_rotation()
        position = self.gimbal.world_position()
        return CameraView(position=position, look_at=position + rotation[:, 2] * 100,
                          up=rotation[:, 1].copy(), fov=POV_FOV)
