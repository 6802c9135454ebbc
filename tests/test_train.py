import random

import numpy as np
import pytest

from dioramabuilder.audio import SoundBank, SoundKind
from dioramabuilder.constants import track_left, track_right
from dioramabuilder.models import CarType
from dioramabuilder.train import Train, TrainConfig, TrainState, composition, slot_offset

DT = 1 / 60


def red_train(**overrides):
    config = dict(name='red', color='#E31837', speed=0.35, direction=1, initial_progress=0.05)
    config.update(overrides)
    return TrainConfig(**config)


def run_until(train, predicate, limit=120.0):
    elapsed = 0.0
    while elapsed < limit:
        train.update(DT)
        elapsed += DT
        if predicate(train):
            return elapsed
    raise AssertionError(f"condition not reached within {limit}s: {train!r}")


def test_train_reverses_and_dwells_at_the_far_end():
    train = Train(red_train(), track_left())
    run_until(train, lambda t: t.state is TrainState.STOPPED)

    assert train.progress == train.max_progress
    assert train.direction == -1
    assert train.dwell_remaining == pytest.approx(5.0)

    run_until(train, lambda t: t.state is TrainState.MOVING, limit=10.0)
    assert train.direction == -1
    before = train.progress
    train.update(DT)
    assert train.progress < before


def test_dwell_lasts_the_configured_time():
    train = Train(red_train(dwell_time=2.0, initial_progress=0.985), track_left())
    run_until(train, lambda t: t.state is TrainState.STOPPED)
    waited = run_until(train, lambda t: t.state is TrainState.MOVING, limit=5.0)
    assert waited == pytest.approx(2.0, abs=2 * DT)


def test_every_slot_stays_inside_the_buffered_domain():
    config = red_train(speed=3.0)
    train = Train(config, track_right())
    lo, hi = config.end_buffer, 1.0 - config.end_buffer
    for _ in range(6000):
        train.update(DT)
        for slot in train.slots:
            t = train.progress - slot.offset
            assert lo - 1e-9 <= t <= hi + 1e-9


def test_initial_progress_is_clamped_to_bounds():
    train = Train(red_train(initial_progress=0.0), track_left())
    assert train.progress == pytest.approx(slot_offset(3) + 0.01)
    train = Train(red_train(initial_progress=1.0), track_left())
    assert train.progress == pytest.approx(0.99)


def test_oversized_buffer_is_rejected():
    with pytest.raises(ValueError):
        Train(red_train(end_buffer=0.49), track_left())


def test_composition_always_leads_with_a_head():
    assert composition(1) == [CarType.HEAD, CarType.BODY, CarType.BODY, CarType.TAIL]
    assert composition(-1) == [CarType.TAIL, CarType.BODY, CarType.BODY, CarType.HEAD]


def test_lead_car_is_swapped_on_departure():
    train = Train(red_train(initial_progress=0.985), track_left())
    assert train.lead_slot is train.slots[0]
    run_until(train, lambda t: t.state is TrainState.STOPPED)
    # Still facing the old way while dwelling
    assert train.lead_slot is train.slots[0]
    run_until(train, lambda t: t.state is TrainState.MOVING, limit=10.0)
    assert train.lead_slot is train.slots[-1]
    assert train.slots[-1].car_type is CarType.HEAD
    assert train.slots[0].car_type is CarType.TAIL


def test_sound_follows_the_lead_car():
    bank = SoundBank(kinds=[SoundKind.TRAIN])
    train = Train(red_train(initial_progress=0.985), track_left(), audio=bank)
    assert train.sound in train.slots[0].node.sounds
    run_until(train, lambda t: t.state is TrainState.STOPPED)
    run_until(train, lambda t: t.state is TrainState.MOVING, limit=10.0)
    assert train.sound in train.slots[-1].node.sounds
    assert train.sound not in train.slots[0].node.sounds


def test_cars_face_the_direction_of_travel():
    train = Train(red_train(initial_progress=0.5), track_left())
    lead = train.slots[0].node
    forward = lead.world_rotation()[:, 2]
    tangent = track_left().tangent_at(train.progress)
    assert float(np.dot(forward, tangent)) > 0.99


def test_dwell_jitter_draws_from_the_given_rng():
    config = red_train(initial_progress=0.985, dwell_jitter=3.0)
    a = Train(config, track_left(), rng=random.Random(5))
    b = Train(config, track_left(), rng=random.Random(5))
    run_until(a, lambda t: t.state is TrainState.STOPPED)
    run_until(b, lambda t: t.state is TrainState.STOPPED)
    assert a.dwell_remaining == b.dwell_remaining
    assert 5.0 <= a.dwell_remaining <= 8.0


def test_cab_camera_looks_down_the_track():
    train = Train(red_train(initial_progress=0.5), track_left())
    view = train.get_camera_target()
    assert np.all(np.isfinite(view.position))
    ahead = view.look_at - view.position
    assert float(np.dot(ahead, track_left().tangent_at(0.5))) > 0


class BrokenTrack:
    """Real track whose samples turn to NaN once ``broken`` is set."""

    def __init__(self, curve):
        self.curve = curve
        self.broken = False

    def point_at(self, u):
        if self.broken:
            return np.full(3, np.nan)
        return self.curve.point_at(u)

    def tangent_at(self, u):
        return self.curve.tangent_at(u)


def test_invalid_samples_keep_the_last_car_transforms():
    track = BrokenTrack(track_left())
    train = Train(red_train(initial_progress=0.5), track)
    for _ in range(5):
        train.update(DT)
    before = [(slot.node.position.copy(), slot.node.world_rotation()) for slot in train.slots]

    track.broken = True
    for _ in range(10):
        train.update(DT)

    assert train.progress > 0.5
    for slot, (position, rotation) in zip(train.slots, before):
        assert np.all(np.isfinite(slot.node.position))
        np.testing.assert_array_equal(slot.node.position, position)
        np.testing.assert_allclose(slot.node.world_rotation(), rotation)
