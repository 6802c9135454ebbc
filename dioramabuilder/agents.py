"""Agent base class and capability flags."""

from enum import Enum


class Capability(str, Enum):
    MOVABLE = "MOVABLE"
    CAMERA_TARGET = "CAMERA_TARGET"
    POV = "POV"


class Agent:
    """An independently updated entity owning its own scene node.

    Subclasses declare what they can do in ``capabilities``; the scheduler
    and camera rig consult it instead of probing for methods.
    """

    capabilities = frozenset()

    node = None

    def supports(self, capability) -> bool:
        return Capability(capability) in self.capabilities

    def update(self, delta):
        raise NotImplementedError

    def get_camera_target(self):
        raise NotImplementedError

    def get_pov(self):
        raise NotImplementedError
