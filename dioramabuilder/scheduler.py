"""Animation scheduler: one ordered agent list, ticked once per frame."""

import math
import time
import logging

from .agents import Agent, Capability
from .constants import MAX_FRAME_DELTA

logger = logging.getLogger(__name__)


class FrameClock:
    """Wall-clock delta between successive ``get_delta`` calls."""

    def __init__(self, timer=time.perf_counter):
        self._timer = timer
        self._last = None

    def get_delta(self):
        now = self._timer()
        delta = 0.0 if self._last is None else now - self._last
        self._last = now
        return delta


class AnimationScheduler:
    """Owns the agents and advances them in registration order.

    A frame with a non-finite or negative delta is dropped; long frames are
    clamped to ``max_delta``.  An agent that raises is logged and the rest
    of the frame carries on.
    """

    def __init__(self, max_delta=MAX_FRAME_DELTA):
        self.max_delta = max_delta
        self.agents = []
        self.elapsed = 0.0
        self.frames = 0
        self.faults = 0

    def __len__(self):
        return len(self.agents)

    def __contains__(self, agent):
        return any(a is agent for a in self.agents)

    def register(self, agent):
        if not isinstance(agent, Agent) or not agent.supports(Capability.MOVABLE):
            raise TypeError(f"{type(agent).__name__} is not a movable agent")
        if agent in self:
            raise ValueError(f"{type(agent).__name__} is already registered")
        self.agents.append(agent)
        return agent

    def register_all(self, agents):
        for agent in agents:
            self.register(agent)

    def clear(self):
        count = len(self.agents)
        self.agents.clear()
        self.elapsed = 0.0
        self.frames = 0
        logger.debug(f"Scheduler cleared ({count} agents)")

    def agents_with(self, capability):
        return [a for a in self.agents if a.supports(capability)]

    def tick(self, delta):
        """Advance every agent by *delta* seconds; returns the delta used."""
        if delta is None or not math.isfinite(delta) or delta < 0:
            logger.warning(f"Skipping frame with invalid delta {delta!r}")
            return 0.0
        delta = min(delta, self.max_delta)
        for agent in self.agents:
            try:
                agent.update(delta)
            except Exception as e:
                self.faults += 1
                logger.error(f"{type(agent).__name__}.update failed: {e}")
        self.elapsed += delta
        self.frames += 1
        return delta

    def run(self, duration, step=1 / 60):
        """Fixed-step simulation of *duration* seconds; returns the frame count."""
        if step <= 0:
            raise ValueError(f"Step must be positive, got {step}")
        frames = max(0, math.ceil(duration / step - 1e-9))
        for _ in range(frames):
            self.tick(step)
        return frames

    def run_realtime(self, duration, clock=None, sleep=time.sleep, frame_time=1 / 60):
        """Drive the loop from wall-clock deltas until *duration* has elapsed."""
        clock = clock or FrameClock()
        clock.get_delta()
        spent = 0.0
        while spent < duration:
            sleep(frame_time)
            delta = clock.get_delta()
            spent += delta
            self.tick(delta)
        return self.frames
