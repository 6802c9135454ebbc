"""Optional positional audio service.

Agents never require audio: every call site accepts ``None`` for the bank
and for the handles it returns.  ``SoundBank`` renders each loop buffer
once with numpy and hands out ``PositionalSound`` handles that the host
application binds to its audio engine.
"""

import math
import logging
import random
from enum import Enum

import numpy as np
from scipy.signal import lfilter

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050


class SoundKind(str, Enum):
    TRAFFIC = "TRAFFIC"
    TRAIN = "TRAIN"
    ELEVATOR = "ELEVATOR"
    MOPOP = "MOPOP"


# Loop lengths in seconds
LOOP_SECONDS = {
    SoundKind.TRAFFIC: 2.0,
    SoundKind.TRAIN: 1.0,
    SoundKind.ELEVATOR: 4.0,
    SoundKind.MOPOP: 2.0,
}

ARPEGGIO = [220, 261, 329, 392, 440, 392, 329, 261, 220, 196, 220, 261, 329, 440, 523, 440]


def _one_pole(white, gain, divisor):
    # y[i] = (y[i-1] + gain * x[i]) / divisor
    return lfilter([gain / divisor], [1.0, -1.0 / divisor], white)


def render_loop(kind, rng, sample_rate=SAMPLE_RATE):
    """Synthesize the mono loop buffer for *kind* as float32 samples."""
    kind = SoundKind(kind)
    n = int(LOOP_SECONDS[kind] * sample_rate)
    t = np.arange(n) / sample_rate
    nrng = np.random.default_rng(rng.getrandbits(32))

    def noise():
        return nrng.uniform(-1.0, 1.0, n)

    if kind is SoundKind.TRAFFIC:
        brown = _one_pole(noise(), 0.02, 1.02)
        hum = np.sin(t * 2 * math.pi * 60) * 0.3
        data = brown * 0.5 + hum * 0.5
    elif kind is SoundKind.TRAIN:
        whine = (t * 400 % 1) * 2 - 1
        track = noise() * 0.2
        rhythm = np.where(np.sin(t * math.pi * 4) > 0.8, 0.3, 0.0)
        data = whine * 0.1 + track + track * rhythm
    elif kind is SoundKind.ELEVATOR:
        drone = np.sin(2 * math.pi * 60 * t) * 0.2 + np.sin(2 * math.pi * 120 * t) * 0.1
        wind = _one_pole(noise(), 0.1, 1.1)
        swell = 0.5 + 0.5 * np.sin(2 * math.pi * 0.25 * t)
        whine = np.sin(2 * math.pi * 800 * t) * 0.05
        data = drone * 0.6 + wind * 2.0 * swell + whine
    else:
        kick_t = t % 0.5
        kick = np.where(kick_t < 0.2,
                        np.sin(2 * math.pi * 120 * np.exp(-kick_t * 25) * kick_t) * np.exp(-kick_t * 20),
                        0.0)
        bar_t = t % 2.0
        snare_t = np.where((bar_t >= 0.5) & (bar_t < 1.0), bar_t - 0.5,
                           np.where(bar_t >= 1.5, bar_t - 1.5, -1.0))
        snare = np.where((snare_t >= 0) & (snare_t < 0.2), noise() * np.exp(-snare_t * 30), 0.0)
        six_t = t % 0.125
        hat = np.where(six_t < 0.05, noise() * np.exp(-six_t * 80) * 0.4, 0.0)
        freq = np.array(ARPEGGIO)[np.floor(t / 0.125).astype(int) % len(ARPEGGIO)]
        sine = np.sin(2 * math.pi * freq * t)
        square = np.where(sine > 0, 1.0, -1.0)
        synth = np.where(six_t < 0.1, (square * 0.3 + sine * 0.7) * np.exp(-six_t * 10) * 0.15, 0.0)
        data = kick * 0.8 + snare * 0.5 + hat * 0.3 + synth

    return data.astype(np.float32)


class PositionalSound:
    """Handle for one looping positional emitter."""

    def __init__(self, kind, buffer, ref_distance, max_distance, volume=1.0):
        self.kind = SoundKind(kind)
        self.buffer = buffer
        self.ref_distance = ref_distance
        self.max_distance = max_distance
        self.volume = volume
        self.playback_rate = 1.0
        self.loop = True
        self.is_playing = False
        self.node = None

    def set_volume(self, volume):
        self.volume = volume

    def set_playback_rate(self, rate):
        self.playback_rate = rate

    def play(self):
        self.is_playing = True

    def stop(self):
        self.is_playing = False

    def __repr__(self):
        return (f"PositionalSound({self.kind.value}, ref={self.ref_distance}, "
                f"max={self.max_distance}, volume={self.volume:.2f})")


class SoundBank:
    """Renders loop buffers and tracks every positional sound it creates.

    Parameters
    ----------
    kinds : iterable of SoundKind, optional
        Buffers to render; requests for any other kind return None.
    seed : int
        Seed for the noise generators.
    """

    def __init__(self, kinds=None, seed=0, sample_rate=SAMPLE_RATE):
        rng = random.Random(seed)
        kinds = list(SoundKind) if kinds is None else [SoundKind(k) for k in kinds]
        self.sample_rate = sample_rate
        self.buffers = {kind: render_loop(kind, rng, sample_rate) for kind in kinds}
        self.sounds = []
        # Starts muted until the user opts in
        self.master_volume = 0.0
        logger.debug(f"Rendered {len(self.buffers)} loop buffers at {sample_rate} Hz")

    def create_positional_sound(self, kind, ref_distance, max_distance, volume=1.0):
        buffer = self.buffers.get(SoundKind(kind))
        if buffer is None:
            return None
        sound = PositionalSound(kind, buffer, ref_distance, max_distance, volume)
        self.sounds.append(sound)
        return sound

    def start_all(self):
        for sound in self.sounds:
            if not sound.is_playing:
                sound.play()

    def set_master_volume(self, volume):
        self.master_volume = max(0.0, min(1.0, volume))


def create_sound(audio, kind, ref_distance, max_distance, volume=1.0):
    """``audio.create_positional_sound`` that tolerates a missing bank."""
    if audio is None:
        return None
    return audio.create_positional_sound(kind, ref_distance, max_distance, volume)


def attach_sound(node, sound):
    """Bind *sound* to *node*; a None handle is ignored."""
    if sound is None:
        return None
    if sound.node is not None and sound in sound.node.sounds:
        sound.node.sounds.remove(sound)
    node.sounds.append(sound)
    sound.node = node
    return sound
