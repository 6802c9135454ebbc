import math

import numpy as np
import pytest

from dioramabuilder.agents import Agent, Capability
from dioramabuilder.camera import CameraMode, CameraRig
from dioramabuilder.helicopter import NewsHelicopter
from dioramabuilder.models import CameraView
from dioramabuilder.scene import group
from dioramabuilder.scheduler import AnimationScheduler, FrameClock
from dioramabuilder.transforms import UP


class Counter(Agent):
    capabilities = frozenset({Capability.MOVABLE})

    def __init__(self):
        self.node = group(name="counter")
        self.deltas = []

    def update(self, delta):
        self.deltas.append(delta)


class Exploding(Counter):
    def update(self, delta):
        raise RuntimeError("boom")


class Scenery(Agent):
    capabilities = frozenset({Capability.CAMERA_TARGET})

    def __init__(self, position=(0.0, 10.0, 0.0), look_at=(0.0, 0.0, 50.0)):
        self.view = CameraView(position=np.array(position, dtype=float),
                               look_at=np.array(look_at, dtype=float))

    def get_camera_target(self):
        return self.view


def test_tick_updates_agents_in_registration_order():
    order = []

    class Named(Counter):
        def __init__(self, name):
            super().__init__()
            self.name = name

        def update(self, delta):
            order.append(self.name)

    scheduler = AnimationScheduler()
    scheduler.register_all([Named('a'), Named('b'), Named('c')])
    scheduler.tick(0.016)
    assert order == ['a', 'b', 'c']


def test_failing_agent_does_not_stop_the_frame():
    scheduler = AnimationScheduler()
    before, bomb, after = Counter(), Exploding(), Counter()
    scheduler.register_all([before, bomb, after])
    scheduler.tick(0.02)
    scheduler.tick(0.02)
    assert before.deltas == [0.02, 0.02]
    assert after.deltas == [0.02, 0.02]
    assert scheduler.faults == 2
    assert scheduler.frames == 2


def test_invalid_deltas_are_skipped():
    scheduler = AnimationScheduler()
    agent = scheduler.register(Counter())
    for delta in (math.nan, math.inf, -0.1, None):
        assert scheduler.tick(delta) == 0.0
    assert agent.deltas == []
    assert scheduler.frames == 0


def test_long_frames_are_clamped():
    scheduler = AnimationScheduler(max_delta=0.1)
    agent = scheduler.register(Counter())
    assert scheduler.tick(5.0) == 0.1
    assert agent.deltas == [0.1]


def test_registration_checks_capabilities_and_duplicates():
    scheduler = AnimationScheduler()
    with pytest.raises(TypeError):
        scheduler.register(Scenery())
    with pytest.raises(TypeError):
        scheduler.register(object())
    agent = scheduler.register(Counter())
    with pytest.raises(ValueError):
        scheduler.register(agent)
    assert len(scheduler) == 1
    assert agent in scheduler


def test_run_uses_fixed_steps_and_clear_resets():
    scheduler = AnimationScheduler()
    agent = scheduler.register(Counter())
    assert scheduler.run(1.0, step=0.25) == 4
    assert agent.deltas == [0.25] * 4
    assert scheduler.elapsed == pytest.approx(1.0)
    with pytest.raises(ValueError):
        scheduler.run(1.0, step=0)
    scheduler.clear()
    assert len(scheduler) == 0
    assert scheduler.elapsed == 0.0


def test_run_realtime_uses_clock_deltas():
    ticks = iter([0.0, 0.05, 0.10, 0.15])
    clock = FrameClock(timer=lambda: next(ticks))
    scheduler = AnimationScheduler()
    agent = scheduler.register(Counter())
    frames = scheduler.run_realtime(0.14, clock=clock, sleep=lambda s: None)
    assert frames == 3
    assert agent.deltas == pytest.approx([0.05, 0.05, 0.05])


def test_agents_with_filters_by_capability():
    scheduler = AnimationScheduler()
    heli = NewsHelicopter((0, 20, 0))
    scheduler.register_all([Counter(), heli])
    assert scheduler.agents_with(Capability.POV) == [heli]
    assert len(scheduler.agents_with(Capability.MOVABLE)) == 2


# ── Camera rig ────────────────────────────────────────────────────────

def test_orbit_and_unbound_modes_resolve_to_none():
    rig = CameraRig({CameraMode.RED: Scenery()})
    assert rig.resolve(CameraMode.ORBIT) is None
    assert rig.resolve(CameraMode.BLUE) is None


def test_camera_target_view_resets_up_and_fov():
    rig = CameraRig({CameraMode.TAXI: Scenery()})
    view = rig.resolve('TAXI')
    np.testing.assert_array_equal(view.up, UP)
    assert view.fov == 45
    np.testing.assert_array_equal(view.position, [0.0, 10.0, 0.0])


def test_heli_mode_prefers_pov_with_wide_fov():
    heli = NewsHelicopter((0, 20, 0))
    heli.update(1 / 60)
    rig = CameraRig({CameraMode.HELI: heli})
    view = rig.resolve(CameraMode.HELI)
    assert view.fov == 110
    np.testing.assert_allclose(view.position, heli.get_pov().position)
    np.testing.assert_allclose(view.up, heli.gimbal.world_rotation()[:, 1])


def test_non_finite_view_is_dropped():
    rig = CameraRig({CameraMode.RED: Scenery(position=(np.nan, 0.0, 0.0))})
    assert rig.resolve(CameraMode.RED) is None


def test_binding_requires_a_view():
    with pytest.raises(TypeError):
        CameraRig({CameraMode.RED: Counter()})
