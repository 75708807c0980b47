"""Bowed-string ensemble synthesizer (violin)."""

import numpy as np

from . import dsp
from .base import RenderContext, ReverbSettings, Synthesizer, Voice
from ..core import NoteEvent

DETUNE = (1.0, 0.998, 1.002)
VIBRATO_RATE = 5.5
VIBRATO_DEPTH = 0.02  # fraction of the note frequency
MIX_GAIN = 0.2
ATTACK = 0.15
RELEASE = 0.25
SCRATCH_LENGTH = 0.15


class BowedStringSynthesizer(Synthesizer):
    """Three detuned sawtooths through a wooden body filter, plus bow scratch."""

    name = "violin"
    reverb = ReverbSettings(seconds=2.0, send=0.3)

    def voice(self, note: NoteEvent, ctx: RenderContext) -> Voice:
        sr = ctx.sample_rate
        freq = note.frequency
        dur = note.duration
        vel = note.velocity
        n = ctx.samples_for(dur + RELEASE)
        t = np.arange(n) / sr

        vibrato = dsp.sine(VIBRATO_RATE * t) * freq * VIBRATO_DEPTH
        ensemble = sum(
            dsp.sawtooth(dsp.phase_from_frequency(freq * detune + vibrato, n, sr))
            for detune in DETUNE
        ) * MIX_GAIN

        resonance = dsp.apply_filter(ensemble, dsp.peaking_coefficients(1000.0, 2.0, 5.0, sr))

        # Bow scratch: high-passed noise gated to the attack
        scratch_env = dsp.exponential_ramp(0.1, 0.001, SCRATCH_LENGTH, n, sr)
        scratch = dsp.apply_filter(
            dsp.white_noise(ctx.rng, n), dsp.highpass_coefficients(1500.0, 1.0, sr)
        ) * scratch_env

        body = dsp.apply_filter(resonance + scratch, dsp.lowpass_coefficients(2200.0, 0.7, sr))

        attack = min(ATTACK, dur)
        amplitude = dsp.breakpoint_envelope(
            [(0.0, 0.0), (attack, vel * 0.8), (dur, vel * 0.8), (dur + RELEASE, 0.0)],
            n,
            sr,
        )
        return Voice(ctx.offset_for(note.start_time), body * amplitude)
