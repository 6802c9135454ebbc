import random

import numpy as np
import pytest

from dioramabuilder.audio import SoundBank, SoundKind, attach_sound, create_sound
from dioramabuilder.buildings import brick_building, mark_lit_window, news_tower
from dioramabuilder.constants import traffic_path
from dioramabuilder.curves import CatmullRomCurve
from dioramabuilder.landmarks import taxi_tunnel, tunnel_centerline
from dioramabuilder.lobes import KeepClearCorridor, box_prism, stepped_lobe
from dioramabuilder.pavement import PavementCell, build_pavement, cell_voxels, classify_cell, surface_height
from dioramabuilder.primitives import create_box
from dioramabuilder.scene import Light, apply_time_of_day, group, light_node, summarize
from dioramabuilder.tower import DEFAULT_PROFILE, generate_tower_voxels


# ── Tower ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("level,y,radius", [
    ('podium', 0, 40),
    ('skyline_floor', 80, 46),
    ('legs', 0, 75),
    ('legs', 300, 15),
    ('soffit', 400, 50),
    ('loupe', 415, 80),
    ('cap', 460, 0),
    ('spire', 500, 2),
])
def test_tower_level_radii(level, y, radius):
    assert DEFAULT_PROFILE.radius(level, y) == pytest.approx(radius)


def test_tower_levels_reject_bad_queries():
    with pytest.raises(ValueError):
        DEFAULT_PROFILE.radius('basement', 0)
    with pytest.raises(ValueError):
        DEFAULT_PROFILE.radius('legs', 401)


def test_tower_model_is_deterministic_and_symmetric():
    first = generate_tower_voxels()
    second = generate_tower_voxels()
    assert first.counts() == second.counts()
    counts = first.counts()
    assert counts['solid'] > 0 and counts['glass'] > 0 and counts['rotating'] > 0
    assert max(v.y for v in first.voxels('solid')) <= DEFAULT_PROFILE.roof_peak + DEFAULT_PROFILE.spire_height


# ── Pavement ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("x,z,cell", [
    (8.0, 5.0, PavementCell.ROAD),
    (9.5, 5.0, PavementCell.MARKING_YELLOW),
    (8.0, 1.0, PavementCell.MARKING_WHITE),
    (-2.25, 20.0, PavementCell.CURB),
    (-2.25, 5.0, PavementCell.CURB_RED),
    (-8.0, 10.0, PavementCell.TILE),
    (-6.0, 0.0, PavementCell.PLANTER_BED),
])
def test_pavement_classification(x, z, cell):
    assert classify_cell(x, z) is cell


def test_road_dips_through_the_ramps():
    assert surface_height(0.0) == 0.0
    assert surface_height(-222.5) == pytest.approx(-6.0)
    assert surface_height(110.0) == pytest.approx(-6.0)


def test_curb_grows_a_retaining_wall_in_the_ramp():
    voxels = cell_voxels(-2.25, 110.0, random.Random(0))
    assert len(voxels) == 13
    assert min(v.y for v in voxels) == pytest.approx(-6.0)
    assert len(cell_voxels(-2.25, 20.0, random.Random(0))) == 1


def test_pavement_is_reproducible_from_its_seed():
    a = build_pavement(random.Random(11)).geometry
    b = build_pavement(random.Random(11)).geometry
    assert a.count == b.count
    np.testing.assert_array_equal(a.positions, b.positions)
    np.testing.assert_array_equal(a.colors, b.colors)


# ── Keep-clear corridor ───────────────────────────────────────────────

def test_corridor_excludes_only_near_beam_height():
    corridor = KeepClearCorridor(np.eye(4), [(0, 12, 0), (10, 12, 0), (500, 12, 0)])
    assert len(corridor.points) == 2
    assert corridor(0, 12, 2)
    assert not corridor(0, 0, 0)
    assert not corridor(0, 12, 30)
    assert not corridor(500, 12, 0)


def test_corridor_carves_a_lobe():
    track = [(x, 12, 0) for x in range(-20, 21)]
    corridor = KeepClearCorridor(np.eye(4), track)
    plain = stepped_lobe((0, 0, 0), (8, 24, 8), '#111111', {}, box_prism)
    carved = stepped_lobe((0, 0, 0), (8, 24, 8), '#111111', {}, box_prism, exclude=corridor)
    assert carved.geometry.count < plain.geometry.count
    pos = carved.geometry.positions
    near = (np.abs(pos[:, 2]) < 4) & (pos[:, 1] >= 10) & (pos[:, 1] <= 18)
    assert not near.any()


# ── Tunnel ────────────────────────────────────────────────────────────

def test_tunnel_follows_the_covered_loop():
    curve = tunnel_centerline(traffic_path())
    assert curve is not None and not curve.closed
    for p in curve.points:
        assert p[1] < -0.1 or 70 < p[2] < 150 or -260 < p[2] < -190
    tunnel = taxi_tunnel(traffic_path())
    assert tunnel.find("tunnel_shell") is not None
    assert tunnel.find("tunnel_light") is not None


def test_surface_loop_has_no_tunnel():
    loop = CatmullRomCurve([(0, 0, 0), (50, 0, 0), (50, 0, 10)], closed=True)
    assert tunnel_centerline(loop) is None
    assert taxi_tunnel(loop) is None


# ── Buildings and day/night ───────────────────────────────────────────

def test_news_tower_pad_sits_on_the_roof():
    node, pad = news_tower(x=-55, z=-215, height=45)
    np.testing.assert_allclose(pad, [-55, 45 + 0.5 + 1.6, -215])
    assert node.find("pad_light") is not None


def test_building_windows_are_seeded():
    a = summarize(brick_building(0, 0, 6, 20, 20, '#8B4513', random.Random(4)))
    b = summarize(brick_building(0, 0, 6, 20, 20, '#8B4513', random.Random(4)))
    assert a == b


def test_day_night_toggle():
    root = group(name="root")
    lamp = light_node(Light(intensity=5), name="lamp", night_only=True)
    window = mark_lit_window(create_box(1, 1, 0.1, '#113355'))
    root.add(lamp, window)

    assert apply_time_of_day(root, night=False) == (1, 1)
    assert not lamp.visible
    assert window.material.emissive_intensity == 0.0

    apply_time_of_day(root, night=True)
    assert lamp.visible
    assert window.material.emissive_intensity == 1.0


def test_summary_counts_markers():
    root = group(name="root")
    root.add(light_node(Light(), night_only=True), mark_lit_window(create_box(1, 1, 1, '#FFF')))
    stats = summarize(root)
    assert stats['lights'] == 1
    assert stats['night_lights'] == 1
    assert stats['lit_windows'] == 1
    assert stats['meshes'] == 1
    assert stats['nodes'] == 3


# ── Audio ─────────────────────────────────────────────────────────────

def test_missing_audio_is_silent():
    node = group()
    assert create_sound(None, SoundKind.TRAIN, 20, 500) is None
    assert attach_sound(node, None) is None
    assert node.sounds == []


def test_sound_bank_only_serves_rendered_kinds():
    bank = SoundBank(kinds=[SoundKind.TRAFFIC], seed=3)
    assert bank.create_positional_sound(SoundKind.ELEVATOR, 50, 1000) is None
    sound = bank.create_positional_sound(SoundKind.TRAFFIC, 30, 300, 0.3)
    assert sound.buffer.dtype == np.float32
    assert len(sound.buffer) == 2 * bank.sample_rate
    assert np.all(np.isfinite(sound.buffer))
    bank.start_all()
    assert sound.is_playing
    assert bank.master_volume == 0.0
