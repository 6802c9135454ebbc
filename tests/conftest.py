"""Pytest configuration for dioramabuilder tests."""

import random
import sys
from pathlib import Path

import pytest

# Repository root on the path so the package imports without installation
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture(scope="session")
def diorama():
    from dioramabuilder.builder import DioramaBuilder

    return DioramaBuilder(seed=7).build()


@pytest.fixture
def small_scene():
    """A red box offset to x=10, two coloured voxels and a lamp."""
    from dioramabuilder.models import Voxel
    from dioramabuilder.primitives import Material, create_box
    from dioramabuilder.scene import Light, group, light_node
    from dioramabuilder.voxels import instanced_node

    root = group(name="root")
    block = group(name="block", position=(10, 0, 0))
    create_box(1, 2, 1, '#FF0000', 0, 1, 0, block)
    root.add(block)
    instanced_node([Voxel(0, 0, 0, '#00FF00'), Voxel(0, 0, 3, '#0000FF')], 1.0,
                   Material(), name="voxels", parent=root)
    root.add(light_node(Light(intensity=3), position=(0, 10, 0), name="lamp"))
    return root
