"""Reed/brass synthesizer (saxophone).

Square wave with a sub-harmonic "growl" modulating its pitch, a sawtooth
sub-oscillator for body, breath noise, and a low-pass that opens on the
attack in proportion to velocity.
"""

import numpy as np

from . import dsp
from .base import RenderContext, ReverbSettings, Synthesizer, Voice
from ..core import NoteEvent

ATTACK = 0.05
RELEASE = 0.1
GROWL_DEPTH_HZ = 15.0
SUB_GAIN = 0.4
FILTER_Q = 2.0
CUTOFF_START = 300.0
CUTOFF_SUSTAIN = 500.0
BREATH_CENTER_HZ = 2000.0
BREATH_GAIN = 0.03


class ReedSynthesizer(Synthesizer):
    """Subtractive reed voice with FM growl."""

    name = "sax"
    reverb = ReverbSettings(seconds=1.2, send=0.15)

    def voice(self, note: NoteEvent, ctx: RenderContext) -> Voice:
        sr = ctx.sample_rate
        freq = note.frequency
        dur = note.duration
        vel = note.velocity
        n = ctx.samples_for(dur + RELEASE)
        t = np.arange(n) / sr

        growl = dsp.sine(freq * 0.5 * t) * GROWL_DEPTH_HZ
        primary = dsp.square(dsp.phase_from_frequency(freq + growl, n, sr))
        sub = dsp.sawtooth(freq * t) * SUB_GAIN

        filtered = dsp.swept_lowpass(primary + sub, self._cutoff_curve(t, dur, vel), FILTER_Q, sr)

        breath = dsp.apply_filter(
            dsp.white_noise(ctx.rng, n),
            dsp.bandpass_coefficients(BREATH_CENTER_HZ, 1.0, sr),
        ) * (BREATH_GAIN * vel)

        return Voice(ctx.offset_for(note.start_time), (filtered + breath) * self._amplitude(n, sr, dur, vel))

    @staticmethod
    def _cutoff_curve(t: np.ndarray, dur: float, vel: float) -> np.ndarray:
        """Linear sweep up over the attack, exponential settle to the sustain cutoff."""
        attack = min(ATTACK, dur)
        peak = 800.0 + vel * 1200.0
        rise = CUTOFF_START + (peak - CUTOFF_START) * np.clip(t / attack, 0.0, 1.0)
        settle_time = max(dur - attack, 1e-6)
        progress = np.clip((t - attack) / settle_time, 0.0, 1.0)
        settle = peak * (CUTOFF_SUSTAIN / peak) ** progress
        return np.where(t < attack, rise, settle)

    @staticmethod
    def _amplitude(n: int, sr: int, dur: float, vel: float) -> np.ndarray:
        attack = min(ATTACK, dur / 2)
        hold_end = max(attack, dur - ATTACK)
        return dsp.breakpoint_envelope(
            [
                (0.0, 0.0),
                (attack, vel * 0.5),
                (hold_end, vel * 0.5),
                (hold_end, vel * 0.4),
                (dur + RELEASE, 0.0),
            ],
            n,
            sr,
        )
