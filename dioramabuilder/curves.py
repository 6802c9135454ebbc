"""Catmull-Rom spline paths sampled by normalized arc length.

Curves are immutable once built and are shared by reference between every
agent that follows them (two trains per track, twenty cars and the taxi on
the traffic loop).  ``point_at`` / ``tangent_at`` take a parameter in
[0, 1] measured along the arc, so equal parameter steps cover equal
distances regardless of control point spacing.
"""

import math
import logging

import numpy as np

logger = logging.getLogger(__name__)

# Samples used to build the arc-length lookup table
ARC_DIVISIONS = 200

# Parameter step for the central-difference tangent
TANGENT_DELTA = 1e-4


def wrap_unit(value: float) -> float:
    """Wrap any real number into [0, 1)."""
    wrapped = value % 1.0
    # -1e-20 % 1.0 rounds to exactly 1.0
    if wrapped >= 1.0:
        wrapped = 0.0
    return wrapped


def clamp_parameter(t: float, epsilon: float = 0.001) -> float:
    """Clamp an open-curve parameter away from the endpoints."""
    return min(1.0 - epsilon, max(epsilon, t))


def _catmull_rom(p0, p1, p2, p3, tension, w):
    # Cubic with tangents tension * (p2 - p0) and tension * (p3 - p1)
    t0 = tension * (p2 - p0)
    t1 = tension * (p3 - p1)
    c0 = p1
    c1 = t0
    c2 = -3.0 * p1 + 3.0 * p2 - 2.0 * t0 - t1
    c3 = 2.0 * p1 - 2.0 * p2 + t0 + t1
    return c0 + c1 * w + c2 * w * w + c3 * w * w * w


class CatmullRomCurve:
    """Uniform Catmull-Rom spline through an ordered list of 3D points.

    Parameters
    ----------
    points : sequence of (x, y, z)
        Control points, at least two.
    closed : bool
        When True the last point joins back to the first.
    tension : float
        Tangent scale; 0.5 is the classic spline, smaller values hug the
        control polygon more tightly.
    """

    def __init__(self, points, closed=False, tension=0.5):
        pts = np.array(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 3:
            raise ValueError(f"Expected (N, 3) control points, got shape {pts.shape}")
        if len(pts) < 2:
            raise ValueError("A curve needs at least two control points")
        pts.setflags(write=False)
        self._points = pts
        self.closed = bool(closed)
        self.tension = float(tension)

        samples = np.array([self.point(j / ARC_DIVISIONS)
                            for j in range(ARC_DIVISIONS + 1)])
        seg = np.linalg.norm(np.diff(samples, axis=0), axis=1)
        lengths = np.concatenate([[0.0], np.cumsum(seg)])
        lengths.setflags(write=False)
        self._arc_lengths = lengths
        self._arc_params = np.linspace(0.0, 1.0, ARC_DIVISIONS + 1)

    @property
    def points(self):
        return self._points

    def length(self) -> float:
        return float(self._arc_lengths[-1])

    # ── Raw spline parameter ──────────────────────────────────────────

    def point(self, t: float):
        """Point at raw spline parameter *t* (uneven speed)."""
        pts = self._points
        n = len(pts)
        p = (n - (0 if self.closed else 1)) * t
        index = math.floor(p)
        weight = p - index

        if self.closed:
            index %= n
        elif weight == 0 and index == n - 1:
            index = n - 2
            weight = 1.0
        index = int(index)

        if self.closed or index > 0:
            p0 = pts[(index - 1) % n]
        else:
            p0 = 2.0 * pts[0] - pts[1]
        p1 = pts[index % n]
        p2 = pts[(index + 1) % n]
        if self.closed or index + 2 < n:
            p3 = pts[(index + 2) % n]
        else:
            p3 = 2.0 * pts[n - 1] - pts[n - 2]

        return _catmull_rom(p0, p1, p2, p3, self.tension, weight)

    def tangent(self, t: float):
        t1 = max(0.0, t - TANGENT_DELTA)
        t2 = min(1.0, t + TANGENT_DELTA)
        d = self.point(t2) - self.point(t1)
        norm = np.linalg.norm(d)
        if norm == 0.0:
            return np.full(3, np.nan)
        return d / norm

    # ── Arc-length parameter ──────────────────────────────────────────

    def _normalize(self, u: float) -> float:
        if self.closed:
            return wrap_unit(u)
        return min(1.0, max(0.0, u))

    def u_to_t(self, u: float) -> float:
        """Map a normalized arc-length parameter onto the raw spline parameter."""
        u = self._normalize(u)
        total = self._arc_lengths[-1]
        if total <= 0.0:
            return u
        return float(np.interp(u * total, self._arc_lengths, self._arc_params))

    def point_at(self, u: float):
        return self.point(self.u_to_t(u))

    def tangent_at(self, u: float):
        """Unit tangent at arc parameter *u*; NaN where the curve is degenerate."""
        return self.tangent(self.u_to_t(u))

    def spaced_points(self, divisions: int = 5):
        divisions = max(1, int(divisions))
        return np.array([self.point_at(i / divisions) for i in range(divisions + 1)])

    def __repr__(self):
        kind = "closed" if self.closed else "open"
        return (f"CatmullRomCurve({len(self._points)} points, {kind}, "
                f"tension={self.tension}, length={self.length():.1f})")
