import numpy as np
import pytest
import trimesh

from dioramabuilder.glb import export_glb
from dioramabuilder.primitives import create_box
from dioramabuilder.scene import Light, group, light_node


def test_export_writes_visible_meshes(tmp_path, small_scene):
    path = export_glb(small_scene, tmp_path / "scene.glb")
    assert path == str(tmp_path / "scene.glb")
    loaded = trimesh.load(path, force='scene')
    assert len(loaded.geometry) == 2
    assert loaded.bounds[1][0] == pytest.approx(10.5, abs=1e-4)


def test_hidden_subtrees_are_skipped(tmp_path, small_scene):
    small_scene.find("block").visible = False
    loaded = trimesh.load(export_glb(small_scene, tmp_path / "hidden.glb"), force='scene')
    assert len(loaded.geometry) == 1
    assert loaded.bounds[1][0] < 5


def test_world_transform_is_baked(tmp_path):
    root = group(name="root", position=(0, 0, 100))
    inner = group(name="inner", position=(5, 0, 0))
    inner.set_scale(2.0)
    root.add(inner)
    create_box(1, 1, 1, '#FFFFFF', 0, 0, 0, inner)
    loaded = trimesh.load(export_glb(root, tmp_path / "moved.glb"), force='scene')
    np.testing.assert_allclose(loaded.bounds, [[4, -1, 99], [6, 1, 101]], atol=1e-4)


def test_empty_scene_is_an_error(tmp_path):
    root = group(name="root")
    root.add(light_node(Light()))
    with pytest.raises(ValueError):
        export_glb(root, tmp_path / "empty.glb")
