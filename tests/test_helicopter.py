import numpy as np
import pytest

from dioramabuilder.helicopter import FlightParameters, HelicopterMode, NewsHelicopter
from dioramabuilder.inputs import (FlightControls, GamepadState, InputService, apply_deadzone,
                                   read_flight_controls)

PAD = (-55.0, 47.1, -215.0)


def pad_service(axes=(0.0, 0.0, 0.0), lift=0.0):
    buttons = [0.0] * 8
    buttons[7] = lift
    return InputService([GamepadState(axes=list(axes), buttons=buttons)])


@pytest.mark.parametrize("deltas", [[1 / 60] * 10, [0.0, 0.5, 0.016, 0.1], [0.033] * 100])
def test_parked_helicopter_stays_on_the_pad(deltas):
    heli = NewsHelicopter(PAD, inputs=pad_service(axes=(1.0, -1.0, 1.0), lift=1.0))
    for delta in deltas:
        heli.update(delta)
        np.testing.assert_array_equal(heli.position, PAD)
        assert np.all(heli.velocity == 0.0)
        assert heli.angular_velocity == 0.0
        assert heli.heading == 0.0


def test_manual_flight_moves_forward_and_climbs():
    heli = NewsHelicopter(PAD, inputs=pad_service(axes=(0.0, -1.0, 0.0), lift=1.0))
    heli.set_manual()
    for _ in range(30):
        heli.update(1 / 60)
    assert heli.position[2] > PAD[2]
    assert heli.position[1] > PAD[1]
    assert heli.rotor_speed > 0


def test_manual_flight_without_a_pad_coasts():
    heli = NewsHelicopter(PAD)
    heli.set_manual()
    heli.velocity[:] = (10.0, 0.0, 0.0)
    heli.update(0.1)
    assert heli.position[0] == pytest.approx(PAD[0] + 1.0)
    assert heli.velocity[0] == pytest.approx(10.0 * 0.97)
    assert heli.position[1] == PAD[1]


def test_floor_clamps_descent():
    heli = NewsHelicopter((0.0, 2.5, 0.0))
    heli.set_manual()
    heli.velocity[:] = (0.0, -100.0, 0.0)
    heli.update(0.1)
    assert heli.position[1] == FlightParameters().floor
    assert heli.velocity[1] == 0.0


def test_yaw_turns_the_heading():
    heli = NewsHelicopter(PAD, inputs=pad_service(axes=(0.0, 0.0, 1.0)))
    heli.set_manual()
    for _ in range(10):
        heli.update(1 / 60)
    assert heli.heading < 0


def test_rotor_ramp_never_overshoots():
    heli = NewsHelicopter(PAD)
    heli.set_manual()
    heli.update(10.0)
    heli.update(10.0)
    assert heli.rotor_speed == 20.0
    heli.toggle_mode()
    assert heli.mode is HelicopterMode.PARKED
    heli.update(10.0)
    heli.update(10.0)
    assert heli.rotor_speed == 0.0


def test_pov_uses_the_gimbal_frame():
    heli = NewsHelicopter(PAD)
    heli.update(1 / 60)
    view = heli.get_pov()
    assert view.fov == 110
    assert view.up is not None
    assert view.look_at[1] < view.position[1]
    assert view.look_at[2] > view.position[2]


def test_chase_camera_sits_behind_and_above():
    heli = NewsHelicopter(PAD)
    view = heli.get_camera_target()
    assert view.position[1] > PAD[1]
    assert view.look_at[1] < view.position[1]


# ── Inputs ────────────────────────────────────────────────────────────

def test_deadzone_zeroes_small_values():
    assert apply_deadzone(0.1, 0.15) == 0.0
    assert apply_deadzone(-0.5, 0.15) == -0.5


def test_no_service_or_pad_means_no_controls():
    assert read_flight_controls(None) is None
    assert read_flight_controls(InputService()) is None
    service = pad_service()
    service.slots[0].connected = False
    assert read_flight_controls(service) is None


def test_stick_up_flies_forward():
    controls = read_flight_controls(pad_service(axes=(0.05, -0.8, 0.5), lift=0.7))
    assert controls == FlightControls(strafe=0.0, forward=0.8, yaw=0.5, lift=0.7)


def test_button_objects_expose_value():
    class Button:
        value = 0.4

    pad = GamepadState(axes=[], buttons=[None] * 7 + [Button()])
    assert pad.button(7) == 0.4
    assert pad.axis(3) == 0.0


def test_input_slots_are_bounded():
    with pytest.raises(ValueError):
        InputService().connect(4, GamepadState())
