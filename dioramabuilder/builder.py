"""DioramaBuilder: thin orchestrator that delegates to focused modules."""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .camera import CameraMode, CameraRig
from .constants import COLORS, DEFAULT_SEED, NIGHT_MODE, track_left, track_right, traffic_path
from .helicopter import NewsHelicopter
from .landmarks import (armory, glass_garden, ground_planes, mural_amphitheater, science_center,
                        taxi_tunnel, tunnel_portal, tunnel_signage)
from .lobes import build_museum
from .mall import WestlakeMall
from .pavement import build_pavement
from .scene import Light, SceneNode, apply_time_of_day, group, light_node, summarize
from .scheduler import AnimationScheduler
from .tower import SpaceNeedle
from .track import build_track
from .traffic import HeroTaxi, TrafficSystem
from .train import Train, TrainConfig
from . import buildings

logger = logging.getLogger(__name__)

SEATTLE_CENTER = (-155, 0, -280)
NEEDLE_POSITION = (-40, 0, 85)

RED_TRAIN = TrainConfig(name='red', color=COLORS['RED_TRAIN'], speed=0.35,
                        direction=1, initial_progress=0.05)
BLUE_TRAIN = TrainConfig(name='blue', color=COLORS['BLUE_TRAIN'], speed=0.32,
                         direction=-1, initial_progress=0.95)

# (x, z, floors, width, depth, color)
BRICK_BUILDINGS = [
    (-25, 30, 8, 25, 25, '#8B4513'),
    (-25, -90, 6, 22, 22, '#553333'),
    (45, 40, 5, 25, 20, '#A0522D'),
    (45, -80, 10, 25, 25, '#708090'),
]

# (x, z, floors, width, color)
GLASS_TOWERS = [
    (-25, -10, 10, 20, '#88CCFF'),
    (45, 0, 12, 25, '#AAFFAA'),
    (45, -120, 8, 30, '#AACCDD'),
]


@dataclass
class Diorama:
    """A built scene: the node tree plus everything that animates it."""
    root: SceneNode
    scheduler: AnimationScheduler
    camera: CameraRig
    seed: int
    red_train: Train
    blue_train: Train
    needle: SpaceNeedle
    taxi: HeroTaxi
    helicopter: NewsHelicopter
    agents: List = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)

    def tick(self, delta):
        return self.scheduler.tick(delta)

    def summary(self):
        stats = summarize(self.root)
        stats['agents'] = len(self.scheduler)
        return stats


class DioramaBuilder:
    def __init__(self, seed: Optional[int] = None, audio=None, inputs=None, night=NIGHT_MODE):
        """
        seed: drives every random choice; the same seed rebuilds the same scene.
        audio: optional SoundBank; without one every agent is silent.
        inputs: optional InputService used by the helicopter's manual mode.
        night: build with practical lights on and windows lit.
        """
        self.seed = DEFAULT_SEED if seed is None else seed
        self.audio = audio
        self.inputs = inputs
        self.night = night
        self._timings = {}

    def _rng(self, stage):
        # One stream per stage so editing one stage leaves the others' draws alone
        return random.Random(f"{self.seed}:{stage}")

    def _timed(self, label, fn, *args):
        t0 = time.perf_counter()
        result = fn(*args)
        self._timings[label] = time.perf_counter() - t0
        return result

    # ── Stages ────────────────────────────────────────────────────────

    def _lighting(self):
        g = group(name="lighting")
        g.add(light_node(Light(kind='ambient', color='#FFFFFF', intensity=0.4), name="ambient"))
        g.add(light_node(Light(kind='hemisphere', color=COLORS['SKY'], intensity=0.6),
                         position=(0, 200, 0), name="hemisphere"))
        g.add(light_node(Light(kind='directional', color='#FFFFFF', intensity=1.2),
                         position=(100, 200, 100), name="sun"))
        return g

    def _tracks(self):
        return group(name="tracks").add(build_track(track_left(), name="track_left"),
                                         build_track(track_right(), name="track_right"))

    def _environment(self):
        rng = self._rng("environment")
        env = group(name="environment")
        env.add(ground_planes(), build_pavement(rng), taxi_tunnel(traffic_path()),
                tunnel_signage(), tunnel_portal(95, False, rng), tunnel_portal(-215, True, rng))
        return env

    def _seattle_center(self):
        rng = self._rng("seattle_center")
        center = group(name="seattle_center", position=SEATTLE_CENTER)
        center.add(buildings.monorail_station(), armory(), mural_amphitheater(rng),
                   glass_garden(rng), science_center())
        needle = SpaceNeedle(NEEDLE_POSITION, self._rng("needle"), audio=self.audio)
        center.add(needle.node)
        return center, needle

    def _city(self):
        rng = self._rng("city")
        city = group(name="city")
        city.add(buildings.avenue_furniture())
        for x, z, floors, width, depth, color in BRICK_BUILDINGS:
            city.add(buildings.brick_building(x, z, floors, width, depth, color, rng))
        city.add(buildings.brutalist_block(45, -160, 40, 25))
        for x, z, floors, width, color in GLASS_TOWERS:
            city.add(buildings.glass_tower(x, z, floors, width, color, rng))
        city.add(buildings.stacked_apartments(-30, -140, rng), buildings.theater())
        tower, pad = buildings.news_tower()
        city.add(tower)
        return city, pad

    def _vehicles(self, pad):
        rng = self._rng("vehicles")
        traffic = TrafficSystem(traffic_path(), rng, audio=self.audio)
        taxi = HeroTaxi(traffic_path(), audio=self.audio)
        red = Train(RED_TRAIN, track_left(), rng=rng, audio=self.audio)
        blue = Train(BLUE_TRAIN, track_right(), rng=rng, audio=self.audio)
        heli = NewsHelicopter(pad, inputs=self.inputs, audio=self.audio)
        return traffic, taxi, red, blue, heli

    # ── Build ─────────────────────────────────────────────────────────

    def build(self) -> Diorama:
        """Generate the whole scene and wire its agents into a scheduler."""
        logger.info(f"Building diorama (seed={self.seed}, night={self.night})")
        self._timings = {}
        root = group(name="diorama")
        root.add(self._lighting())

        root.add(self._timed('1_tracks', self._tracks))
        root.add(self._timed('2_environment', self._environment))
        mall = self._timed('3_mall', WestlakeMall, self._rng("mall"), 10, 50, self.audio)
        root.add(mall.node)
        center, needle = self._timed('4_seattle_center', self._seattle_center)
        root.add(center)
        root.add(self._timed('5_museum', build_museum, [track_left(), track_right()], self.audio))
        city, pad = self._timed('6_city', self._city)
        root.add(city)
        traffic, taxi, red, blue, heli = self._timed('7_vehicles', self._vehicles, pad)
        root.add(traffic.node, taxi.node, red.node, blue.node, heli.node)

        agents = [red, blue, traffic, taxi, needle, mall, heli]
        scheduler = AnimationScheduler()
        scheduler.register_all(agents)

        camera = CameraRig({
            CameraMode.RED: red,
            CameraMode.BLUE: blue,
            CameraMode.ELEVATOR: needle,
            CameraMode.TAXI: taxi,
            CameraMode.HELI: heli,
        })

        apply_time_of_day(root, self.night)

        # ── Timing summary ──
        logger.info("=" * 60)
        logger.info("DIORAMA BUILD TIMING BREAKDOWN")
        logger.info("=" * 60)
        total = 0.0
        for label, duration in sorted(self._timings.items()):
            logger.info(f"  {label}: {duration:.2f}s")
            total += duration
        logger.info(f"  TOTAL: {total:.2f}s")
        logger.info("=" * 60)
        logger.info(f"Registered {len(scheduler)} agents")

        return Diorama(root=root, scheduler=scheduler, camera=camera, seed=self.seed,
                       red_train=red, blue_train=blue, needle=needle, taxi=taxi,
                       helicopter=heli, agents=agents, timings=dict(self._timings))
