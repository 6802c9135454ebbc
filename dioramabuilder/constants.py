"""Configuration constants, palette, route tables and paths."""

import os
import pathlib
import logging
from functools import lru_cache

from dotenv import load_dotenv

from .curves import CatmullRomCurve

# Load environment variables
load_dotenv()

# Configure base paths
BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = pathlib.Path(os.environ.get("DIORAMA_OUTPUT_DIR", BASE_DIR / "output"))

DEFAULT_SEED = int(os.environ.get("DIORAMA_SEED", "7"))

# Frames longer than this (tab switch, debugger pause) are clamped
MAX_FRAME_DELTA = float(os.environ.get("DIORAMA_MAX_FRAME_DELTA", "0.1"))

# Set DIORAMA_NIGHT=1 to build with practical lights on
NIGHT_MODE = os.environ.get("DIORAMA_NIGHT", "").strip().lower() in ("1", "true", "yes")

LOG_LEVEL = os.environ.get("DIORAMA_LOG_LEVEL", "INFO").upper()

# ── Palette ───────────────────────────────────────────────────────────

COLORS = {
    'SKY': '#87CEEB',
    'GOLDEN_SKY': '#FFAB76',
    'CONCRETE': '#C0C0C0',
    'CONCRETE_DARK': '#808080',
    'RED_TRAIN': '#E31837',
    'BLUE_TRAIN': '#005696',
    'GLASS': '#ADD8E6',
    'WINDOW': '#1A1A1A',
    'STEEL': '#555555',
    'ROOF': '#DDDDDD',
    'VENT': '#333333',
    'GROUND': '#556655',
}

TRAFFIC_COLORS = [
    '#A93226', '#1F618D', '#117A65', '#D68910', '#D35400',
    '#7F8C8D', '#2E4053', '#F1C40F', '#E74C3C',
]

# ── Dimensions ────────────────────────────────────────────────────────

TRACK_HEIGHT = 12
PIER_SPACING = 20
TRAIN_LENGTH_RATIO = 0.01
CAR_GAP = 0.0005

# Fifth Avenue cut: the road dips below grade at both ends
ROAD_MIN_X = -2.0
ROAD_MAX_X = 22.0
RAMP_DEPTH = -12.0
NORTH_RAMP = (-245.0, -200.0)   # z range, 45 long, rising toward -200
SOUTH_RAMP = (80.0, 140.0)      # z range, 60 long, falling toward 140

# ── Routes ────────────────────────────────────────────────────────────
# Track 1 (west/inner) and track 2 (east/outer) share the apex turn
# toward the Seattle Center station at x = -150.

LEFT_TRACK_POINTS = [
    (7.5, TRACK_HEIGHT, 80),
    (7.5, TRACK_HEIGHT, 0),
    (7.5, TRACK_HEIGHT, -100),
    (7.5, TRACK_HEIGHT, -200),
    (-41.8, TRACK_HEIGHT, -258.2),
    (-100, TRACK_HEIGHT, -277.5),
    (-150, TRACK_HEIGHT, -277.5),
]

RIGHT_TRACK_POINTS = [
    (12.5, TRACK_HEIGHT, 80),
    (12.5, TRACK_HEIGHT, 0),
    (12.5, TRACK_HEIGHT, -100),
    (12.5, TRACK_HEIGHT, -200),
    (-38.2, TRACK_HEIGHT, -261.8),
    (-100, TRACK_HEIGHT, -282.5),
    (-150, TRACK_HEIGHT, -282.5),
]

# Traffic loop: southbound on the surface at x = 17.5, down the south
# ramp, U-turn underground, northbound tunnel at x = 2.5, U-turn and
# back up the north ramp.  Lanes stay clear of the piers at 7.5 / 12.5.
# The closed curve joins the last point back to the first.
TRAFFIC_POINTS = [
    (17.5, 0, -200),
    (17.5, 0, 80),
    (17.5, -12, 140),
    (17.5, -12, 150),
    (10, -12, 170),
    (2.5, -12, 150),
    (2.5, -12, -230),
    (2.5, -12, -240),
    (10, -12, -260),
    (17.5, -12, -245),
]

TRACK_TENSION = 0.2
TRAFFIC_TENSION = 0.05


@lru_cache(maxsize=None)
def track_left() -> CatmullRomCurve:
    return CatmullRomCurve(LEFT_TRACK_POINTS, closed=False, tension=TRACK_TENSION)


@lru_cache(maxsize=None)
def track_right() -> CatmullRomCurve:
    return CatmullRomCurve(RIGHT_TRACK_POINTS, closed=False, tension=TRACK_TENSION)


@lru_cache(maxsize=None)
def traffic_path() -> CatmullRomCurve:
    """Closed loop shared by the traffic cars and the hero taxi."""
    return CatmullRomCurve(TRAFFIC_POINTS, closed=True, tension=TRAFFIC_TENSION)


# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO),
                    format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)
