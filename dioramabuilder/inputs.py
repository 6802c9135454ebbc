"""Optional gamepad input service.

The host application copies device state into ``InputService`` slots each
frame; agents only read it.  With no service, or no connected pad, manual
control is simply unavailable.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

MAX_DEVICES = 4

# Standard mapping
AXIS_STRAFE = 0
AXIS_FORWARD = 1
AXIS_YAW = 2
BUTTON_LIFT = 7


@dataclass
class GamepadState:
    connected: bool = True
    axes: List[float] = field(default_factory=list)
    # Raw values or objects exposing ``.value``
    buttons: list = field(default_factory=list)

    def axis(self, index) -> float:
        if index >= len(self.axes) or self.axes[index] is None:
            return 0.0
        return float(self.axes[index])

    def button(self, index) -> float:
        if index >= len(self.buttons) or self.buttons[index] is None:
            return 0.0
        value = self.buttons[index]
        if isinstance(value, (int, float)):
            return float(value)
        return float(getattr(value, 'value', 0.0))


class InputService:
    """Up to four device slots, indexed like the browser gamepad list."""

    def __init__(self, devices=None):
        self.slots: List[Optional[GamepadState]] = [None] * MAX_DEVICES
        for i, device in enumerate(devices or []):
            self.connect(i, device)

    def connect(self, index, device):
        if not 0 <= index < MAX_DEVICES:
            raise ValueError(f"Device slot {index} out of range 0..{MAX_DEVICES - 1}")
        self.slots[index] = device
        logger.info(f"Gamepad connected in slot {index}")

    def disconnect(self, index):
        self.slots[index] = None

    def first_connected(self):
        for device in self.slots:
            if device is not None and device.connected:
                return device
        return None


@dataclass(frozen=True)
class FlightControls:
    """Stick and trigger values in [-1, 1] (lift in [0, 1])."""
    strafe: float = 0.0
    forward: float = 0.0
    yaw: float = 0.0
    lift: float = 0.0


def apply_deadzone(value, deadzone):
    return value if abs(value) > deadzone else 0.0


def read_flight_controls(service, deadzone=0.15):
    """Map the first connected pad onto flight controls, or None without one.

    Pushing the left stick up (negative axis 1) flies forward.
    """
    if service is None:
        return None
    pad = service.first_connected()
    if pad is None:
        return None
    return FlightControls(strafe=apply_deadzone(pad.axis(AXIS_STRAFE), deadzone),
                          forward=-apply_deadzone(pad.axis(AXIS_FORWARD), deadzone),
                          yaw=apply_deadzone(pad.axis(AXIS_YAW), deadzone),
                          lift=pad.button(BUTTON_LIFT))
