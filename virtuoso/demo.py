"""Built-in test phrase for trying the pipeline without a recording.

Seven sawtooth notes (a short blues riff in G), each 0.4 s long with a
plucked attack/decay envelope, starting 0.5 s into a 4 s buffer.
"""

from typing import List

import numpy as np

from .core import NoteEvent, SampleBuffer
from .core.constants import DEFAULT_OUTPUT_SR
from .synthesis import dsp

DEMO_FREQUENCIES = (196.00, 233.08, 261.63, 277.18, 293.66, 349.23, 392.00)
DEMO_START = 0.5
DEMO_NOTE_LENGTH = 0.4
DEMO_DURATION = 4.0


def _note_envelope(n_samples: int, sample_rate: int) -> np.ndarray:
    """Fast attack, short decay to 0.4, hold, then a 50 ms exponential fade."""
    t = np.arange(n_samples) / sample_rate
    fade_start = DEMO_NOTE_LENGTH - 0.05
    return np.select(
        [t < 0.02, t < 0.1, t < fade_start],
        [
            0.6 * t / 0.02,
            0.6 * (0.4 / 0.6) ** ((t - 0.02) / 0.08),
            np.full(n_samples, 0.4),
        ],
        0.4 * (0.001 / 0.4) ** np.clip((t - fade_start) / 0.05, 0.0, 1.0),
    )


def generate_demo_phrase(sample_rate: int = DEFAULT_OUTPUT_SR) -> SampleBuffer:
    """
    Render the test phrase.

    Args:
        sample_rate: Sample rate of the returned buffer

    Returns:
        Mono buffer of DEMO_DURATION seconds

    Raises:
        ValueError: If sample_rate is not positive
    """
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")

    out = np.zeros(int(DEMO_DURATION * sample_rate))
    n = int(round(DEMO_NOTE_LENGTH * sample_rate))
    envelope = _note_envelope(n, sample_rate)
    t = np.arange(n) / sample_rate
    for i, freq in enumerate(DEMO_FREQUENCIES):
        offset = int(round((DEMO_START + i * DEMO_NOTE_LENGTH) * sample_rate))
        out[offset:offset + n] += dsp.sawtooth(freq * t) * envelope
    return SampleBuffer(out, sample_rate)


def demo_notes() -> List[NoteEvent]:
    """The notes the test phrase plays."""
    return [
        NoteEvent(
            note_number=NoteEvent.freq_to_midi(freq),
            start_time=DEMO_START + i * DEMO_NOTE_LENGTH,
            duration=DEMO_NOTE_LENGTH,
            velocity=1.0,
        )
        for i, freq in enumerate(DEMO_FREQUENCIES)
    ]
