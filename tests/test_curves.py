import math

import numpy as np
import pytest

from dioramabuilder.constants import traffic_path
from dioramabuilder.curves import CatmullRomCurve, clamp_parameter, wrap_unit
from dioramabuilder.traffic import TrafficCar
from dioramabuilder.transforms import is_finite


class RecordingCurve:
    """Delegates to a real curve and remembers every parameter requested."""

    def __init__(self, curve):
        self.curve = curve
        self.requested = []

    def point_at(self, u):
        self.requested.append(u)
        return self.curve.point_at(u)


@pytest.mark.parametrize("value", [-3.5, -1.0, -1e-20, 0.0, 0.25, 0.999999, 1.0, 1.5, 7.25])
def test_wrap_unit_stays_in_half_open_interval(value):
    wrapped = wrap_unit(value)
    assert 0.0 <= wrapped < 1.0
    assert math.isclose(wrapped, value % 1.0, abs_tol=1e-12) or wrapped == 0.0


def test_clamp_parameter_keeps_away_from_endpoints():
    assert clamp_parameter(-0.5) == 0.001
    assert clamp_parameter(2.0) == 0.999
    assert clamp_parameter(0.4) == 0.4


def test_loop_follower_only_requests_wrapped_parameters():
    curve = RecordingCurve(traffic_path())
    car = TrafficCar(curve, progress=0.98, speed=5000, color='#FFFFFF')
    for _ in range(50):
        car.update(0.1)
    assert len(curve.requested) > 100
    assert all(0.0 <= u < 1.0 for u in curve.requested)


def test_straight_curve_samples_linearly():
    curve = CatmullRomCurve([(0, 0, 0), (10, 0, 0)])
    assert curve.length() == pytest.approx(10.0)
    np.testing.assert_allclose(curve.point_at(0.5), [5.0, 0.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(curve.tangent_at(0.5), [1.0, 0.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(curve.point_at(1.0), [10.0, 0.0, 0.0], atol=1e-9)


def test_arc_length_parameter_spaces_points_evenly():
    curve = CatmullRomCurve([(0, 0, 0), (1, 0, 0), (20, 0, 5), (21, 0, 5)], tension=0.5)
    points = curve.spaced_points(20)
    gaps = np.linalg.norm(np.diff(points, axis=0), axis=1)
    assert len(points) == 21
    assert gaps.max() - gaps.min() < 0.05 * gaps.mean()


def test_closed_curve_wraps_parameters():
    curve = traffic_path()
    assert curve.closed
    np.testing.assert_allclose(curve.point_at(1.25), curve.point_at(0.25))
    np.testing.assert_allclose(curve.point_at(-0.75), curve.point_at(0.25))


def test_curve_needs_two_points():
    with pytest.raises(ValueError):
        CatmullRomCurve([(0, 0, 0)])


def test_degenerate_curve_yields_non_finite_tangent():
    curve = CatmullRomCurve([(1, 1, 1), (1, 1, 1)])
    assert curve.length() == 0.0
    np.testing.assert_allclose(curve.point_at(0.3), [1.0, 1.0, 1.0])
    assert not is_finite(curve.tangent_at(0.3))


def test_is_finite_rejects_missing_and_nan():
    assert is_finite(np.zeros(3), [1.0, 2.0, 3.0])
    assert not is_finite(None)
    assert not is_finite(np.array([0.0, np.nan, 0.0]))
    assert not is_finite(np.zeros(3), [np.inf, 0, 0])
