"""Camera rig: turns the active camera mode into an eye, target and up."""

import logging
from enum import Enum

import numpy as np

from .agents import Capability
from .models import CameraView
from .transforms import UP, is_finite

logger = logging.getLogger(__name__)

DEFAULT_FOV = 45
HELI_FOV = 110


class CameraMode(str, Enum):
    ORBIT = "ORBIT"
    RED = "RED"
    BLUE = "BLUE"
    ELEVATOR = "ELEVATOR"
    TAXI = "TAXI"
    HELI = "HELI"


class CameraRig:
    """Maps each camera mode to the agent it follows.

    ``resolve`` must run after the scheduler's tick for the same frame so
    the view tracks the agent's updated transform.
    """

    def __init__(self, bindings=None):
        self.bindings = {}
        for mode, agent in (bindings or {}).items():
            self.bind(mode, agent)

    def bind(self, mode, agent):
        mode = CameraMode(mode)
        if not (agent.supports(Capability.POV) or agent.supports(Capability.CAMERA_TARGET)):
            raise TypeError(f"{type(agent).__name__} offers no camera view")
        self.bindings[mode] = agent

    def resolve(self, mode):
        """View for *mode*, or None to hand control to the orbit controller."""
        mode = CameraMode(mode)
        agent = self.bindings.get(mode)
        if mode is CameraMode.ORBIT or agent is None:
            return None

        if agent.supports(Capability.POV):
            view = agent.get_pov()
        else:
            view = agent.get_camera_target()
        if not is_finite(view.position, view.look_at):
            logger.debug(f"{mode.value} camera view not finite; keeping previous view")
            return None

        up = view.up if view.up is not None else UP.copy()
        fov = HELI_FOV if mode is CameraMode.HELI else DEFAULT_FOV
        return CameraView(position=np.asarray(view.position, dtype=np.float64),
                          look_at=np.asarray(view.look_at, dtype=np.float64),
                          up=np.asarray(up, dtype=np.float64), fov=fov)
