import math
import random

import numpy as np
import pytest

from dioramabuilder.elevator import BOTTOM_Y, SHAFT_RADIUS, TOP_Y, Elevator, ElevatorMode
from dioramabuilder.scene import group
from dioramabuilder.tower import TOWER_SCALE, SpaceNeedle

DT = 1 / 60


def run_until(elevator, predicate, limit=300.0):
    elapsed = 0.0
    while elapsed < limit:
        elevator.update(DT)
        elapsed += DT
        if predicate(elevator):
            return elapsed
    raise AssertionError(f"elevator stuck in {elevator.mode} at y={elevator.y}")


def test_elevator_round_trip():
    elevator = Elevator(60, '#3060D0', 0, random.Random(3))
    assert elevator.y == BOTTOM_Y
    assert elevator.mode is ElevatorMode.WAIT

    run_until(elevator, lambda e: e.mode is ElevatorMode.MOVING_UP)
    run_until(elevator, lambda e: e.mode is ElevatorMode.WAIT)
    assert elevator.y == TOP_Y
    assert elevator.velocity == 0.0

    run_until(elevator, lambda e: e.mode is ElevatorMode.MOVING_DOWN)
    run_until(elevator, lambda e: e.mode is ElevatorMode.WAIT)
    assert elevator.y == BOTTOM_Y
    assert elevator.velocity == 0.0


def test_elevator_never_leaves_the_shaft():
    elevator = Elevator(180, '#F0C000', 2, random.Random(9))
    for _ in range(60 * 240):
        elevator.update(DT)
        assert BOTTOM_Y - 1.0 <= elevator.y <= TOP_Y + 1.0


def test_speed_offset_delays_the_first_departure():
    elevator = Elevator(300, '#D03030', 4, random.Random(0))
    assert elevator.wait_time >= 4
    waited = run_until(elevator, lambda e: e.mode is not ElevatorMode.WAIT)
    assert waited >= 4 - DT


def test_car_node_tracks_height():
    elevator = Elevator(60, '#3060D0', 0, random.Random(1))
    run_until(elevator, lambda e: e.y > BOTTOM_Y + 20)
    assert elevator.car.position[1] == pytest.approx(elevator.y)


def assert_outward_and_down(view, angle):
    ahead = view.look_at - view.position
    horizontal = np.array([ahead[0], ahead[2]])
    rad = math.radians(angle)
    np.testing.assert_allclose(horizontal / np.linalg.norm(horizontal),
                               [math.cos(rad), math.sin(rad)], atol=1e-9)
    assert view.look_at[1] < view.position[1]


@pytest.mark.parametrize("angle", [60, 180, 300])
def test_elevator_view_looks_outward_and_down(angle):
    elevator = Elevator(angle, '#3060D0', 0, random.Random(2))
    view = elevator.get_camera_target()
    assert_outward_and_down(view, angle)
    rad = math.radians(angle)
    np.testing.assert_allclose(view.position, [SHAFT_RADIUS * math.cos(rad), BOTTOM_Y + 3,
                                               SHAFT_RADIUS * math.sin(rad)], atol=1e-9)


def test_tower_pov_is_the_first_elevator_in_world_space():
    host = group(name="center", position=(100, 0, -50))
    needle = SpaceNeedle((10, 0, 20), random.Random(4))
    host.add(needle.node)
    elevator = needle.elevators[0]

    view = needle.get_pov()
    assert_outward_and_down(view, elevator.angle)
    rad = math.radians(elevator.angle)
    local_eye = np.array([SHAFT_RADIUS * math.cos(rad), elevator.y + 3, SHAFT_RADIUS * math.sin(rad)])
    np.testing.assert_allclose(view.position, np.array([110, 0, -30]) + TOWER_SCALE * local_eye)
    np.testing.assert_allclose(view.position, elevator.get_camera_target().position)
