"""DioramaBuilder package: procedural voxel city diorama with animated agents.

Import constants FIRST so dotenv configuration and logging are in place
before any other module reads them.
"""

from dioramabuilder import constants as _constants  # noqa: F401

from dioramabuilder.builder import Diorama, DioramaBuilder
from dioramabuilder.scheduler import AnimationScheduler
from dioramabuilder.camera import CameraMode, CameraRig
