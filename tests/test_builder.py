import numpy as np

from dioramabuilder.agents import Capability
from dioramabuilder.builder import DioramaBuilder
from dioramabuilder.camera import CameraMode
from dioramabuilder.constants import NIGHT_MODE
from dioramabuilder.train import TrainState


def test_every_agent_is_registered_once(diorama):
    assert len(diorama.scheduler) == 7
    assert all(agent in diorama.scheduler for agent in diorama.agents)
    assert diorama.scheduler.agents_with(Capability.POV) == [diorama.needle, diorama.helicopter]


def test_scene_contains_the_districts(diorama):
    root = diorama.root
    for name in ("lighting", "tracks", "environment", "westlake_mall", "seattle_center",
                 "space_needle", "museum", "city", "news_tower", "taxi_tunnel",
                 "fifth_ave_pavement", "traffic", "hero_taxi", "train_red", "train_blue",
                 "news_helicopter"):
        assert root.find(name) is not None, name


def test_needle_stands_in_seattle_center(diorama):
    center = diorama.root.find("seattle_center")
    assert diorama.needle.node.parent is center
    np.testing.assert_allclose(diorama.needle.node.world_position(), [-195, 0, -195])


def test_helicopter_waits_on_the_news_tower(diorama):
    tower = diorama.root.find("news_tower")
    pad = diorama.helicopter.landing_position
    assert pad[1] > 45
    np.testing.assert_allclose(pad[[0, 2]], tower.world_position()[[0, 2]])


def test_trains_start_at_opposite_ends(diorama):
    red, blue = diorama.red_train, diorama.blue_train
    assert red.direction == 1 and blue.direction == -1
    assert red.config.speed == 0.35 and blue.config.speed == 0.32


def test_night_lights_follow_the_time_of_day(diorama):
    lights = [n for n in diorama.root.traverse() if n.user_data.get('night_light')]
    assert lights
    assert all(n.visible == NIGHT_MODE for n in lights)


def test_every_camera_mode_resolves(diorama):
    assert diorama.camera.resolve(CameraMode.ORBIT) is None
    for mode in (CameraMode.RED, CameraMode.BLUE, CameraMode.ELEVATOR,
                 CameraMode.TAXI, CameraMode.HELI):
        view = diorama.camera.resolve(mode)
        assert view is not None, mode
        assert np.all(np.isfinite(view.position)) and np.all(np.isfinite(view.look_at))


def test_simulation_runs_without_faults(diorama):
    red_start = diorama.red_train.progress
    diorama.scheduler.run(3.0)
    assert diorama.scheduler.faults == 0
    assert diorama.red_train.state is TrainState.MOVING
    assert diorama.red_train.progress != red_start


def test_stage_streams_are_seeded():
    a, b = DioramaBuilder(seed=5), DioramaBuilder(seed=5)
    assert a._rng("city").random() == b._rng("city").random()
    assert a._rng("city").random() != a._rng("mall").random()


def test_elevator_camera_rides_the_first_shaft(diorama):
    view = diorama.camera.resolve(CameraMode.ELEVATOR)
    expected = diorama.needle.elevators[0].get_camera_target()
    np.testing.assert_allclose(view.position, expected.position)
    np.testing.assert_allclose(view.look_at, expected.look_at)
    assert view.look_at[1] < view.position[1]
