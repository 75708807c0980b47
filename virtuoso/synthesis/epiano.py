"""Electric piano synthesizer: two-operator FM with a decaying index."""

import numpy as np

from . import dsp
from .base import RenderContext, ReverbSettings, Synthesizer, Voice
from ..core import NoteEvent

MIN_VELOCITY = 0.4
MODULATOR_RATIO = 2.0
INDEX_SCALE = 500.0  # Hz of deviation at full velocity
INDEX_DECAY = 0.4
ATTACK = 0.01
DECAY_TIME = 1.0
DECAY_LEVEL = 0.2
RELEASE = 0.2


class ElectricPianoSynthesizer(Synthesizer):
    """Bright FM attack that collapses into a mellow sine."""

    name = "piano"
    reverb = ReverbSettings(seconds=1.5, send=0.15)

    def voice(self, note: NoteEvent, ctx: RenderContext) -> Voice:
        sr = ctx.sample_rate
        freq = note.frequency
        dur = note.duration
        vel = max(MIN_VELOCITY, note.velocity)
        n = ctx.samples_for(dur + RELEASE)
        t = np.arange(n) / sr

        index = dsp.exponential_ramp(INDEX_SCALE * vel, 1.0, INDEX_DECAY, n, sr)
        modulator = dsp.sine(freq * MODULATOR_RATIO * t) * index
        carrier = dsp.sine(dsp.phase_from_frequency(freq + modulator, n, sr))

        return Voice(ctx.offset_for(note.start_time), carrier * self._amplitude(t, dur, vel))

    @staticmethod
    def _amplitude(t: np.ndarray, dur: float, vel: float) -> np.ndarray:
        """Near-instant attack, exponential decay, linear release after note end."""
        decay_progress = np.clip((t - ATTACK) / (DECAY_TIME - ATTACK), 0.0, 1.0)
        body = np.where(t < ATTACK, vel * t / ATTACK, vel * DECAY_LEVEL ** decay_progress)
        release = np.clip(1.0 - (t - dur) / RELEASE, 0.0, 1.0)
        return body * release
