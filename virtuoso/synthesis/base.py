"""Base classes for offline instrument synthesis.

A render call builds one RenderContext, turns every note into an
independent Voice, sums the voices into a dry bus, adds the reverb send
and runs the master limiter. Nothing survives between calls.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from . import dsp
from ..core import NoteEvent, SampleBuffer
from ..core.constants import MASTER_GAIN, TAIL_MARGIN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReverbSettings:
    """Synthetic room for one instrument.

    Attributes:
        seconds: Impulse length
        send: Wet gain added back to the dry bus
        decay_exponent: Shape of the (1 - n/length)**k decay
    """

    seconds: float
    send: float
    decay_exponent: float = 2.0


@dataclass(frozen=True, eq=False)
class RenderContext:
    """Everything a voice needs to know about the render in progress."""

    sample_rate: int
    n_samples: int
    rng: np.random.Generator
    reverb_impulse: np.ndarray
    reverb_send: float
    limiter: dsp.LimiterSettings = field(default_factory=dsp.LimiterSettings)

    @classmethod
    def create(
        cls,
        sample_rate: int,
        total_duration: float,
        reverb: ReverbSettings,
        limiter: dsp.LimiterSettings = None,
        seed: int = 0,
        tail_margin: float = TAIL_MARGIN,
    ) -> "RenderContext":
        """
        Build the context for one render.

        Raises:
            ValueError: If sample rate or duration is not positive
        """
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")
        if not total_duration > 0:
            raise ValueError(f"Total duration must be positive, got {total_duration}")

        rng = np.random.default_rng(seed)
        return cls(
            sample_rate=int(sample_rate),
            n_samples=math.ceil((total_duration + tail_margin) * sample_rate),
            rng=rng,
            reverb_impulse=dsp.reverb_impulse(
                rng, reverb.seconds, int(sample_rate), reverb.decay_exponent
            ),
            reverb_send=reverb.send,
            limiter=limiter or dsp.LimiterSettings(),
        )

    def samples_for(self, seconds: float) -> int:
        """Number of samples covering a span of seconds."""
        return max(1, math.ceil(seconds * self.sample_rate))

    def offset_for(self, seconds: float) -> int:
        """Sample index of a time offset."""
        return int(round(seconds * self.sample_rate))


@dataclass
class Voice:
    """Bounded contribution of one note, placed at a sample offset."""

    offset: int
    samples: np.ndarray

    def mix_into(self, bus: np.ndarray) -> None:
        """Add this voice to the bus, truncating at the bus end."""
        if self.offset >= len(bus):
            return
        stop = min(len(bus), self.offset + len(self.samples))
        bus[self.offset:stop] += self.samples[: stop - self.offset]


class Synthesizer(ABC):
    """Abstract base class for the instrument renderers."""

    name: str = ""
    reverb: ReverbSettings = ReverbSettings(seconds=1.5, send=0.15)

    def __init__(self, limiter: dsp.LimiterSettings = None):
        self.limiter = limiter or dsp.LimiterSettings()

    def render(
        self,
        notes: Sequence[NoteEvent],
        sample_rate: int,
        total_duration: float,
        seed: int = 0,
    ) -> SampleBuffer:
        """
        Render notes into a mono buffer.

        Args:
            notes: Notes to play (may be empty)
            sample_rate: Output sample rate in Hz
            total_duration: Performance length in seconds; a fixed tail is appended
            seed: Seed for every noise source of this render

        Returns:
            Buffer of ceil((total_duration + tail) * sample_rate) samples

        Raises:
            ValueError: If sample_rate or total_duration is not positive
        """
        ctx = RenderContext.create(
            sample_rate, total_duration, self.reverb, limiter=self.limiter, seed=seed
        )
        bus = np.zeros(ctx.n_samples)

        voices = self.voices(notes, ctx)
        for voice in voices:
            voice.mix_into(bus)

        wet = dsp.apply_reverb(bus, ctx.reverb_impulse, ctx.reverb_send)
        master = (bus + wet) * MASTER_GAIN
        output = np.clip(dsp.limit(master, ctx.sample_rate, ctx.limiter), -1.0, 1.0)

        logger.info(
            "Rendered %d notes on %s: %d samples at %d Hz",
            len(voices),
            self.name,
            ctx.n_samples,
            ctx.sample_rate,
        )
        return SampleBuffer(output, ctx.sample_rate)

    def voices(self, notes: Sequence[NoteEvent], ctx: RenderContext) -> List[Voice]:
        """Build one voice per note that starts inside the buffer."""
        return [
            self.voice(note, ctx)
            for note in notes
            if ctx.offset_for(note.start_time) < ctx.n_samples
        ]

    @abstractmethod
    def voice(self, note: NoteEvent, ctx: RenderContext) -> Voice:
        """Render a single note's signal graph."""
        pass
