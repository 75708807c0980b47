"""SampleBuffer - immutable audio samples tagged with their sample rate."""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Floating-point audio in [-1, 1].

    Mono buffers hold a 1-D array; multi-channel buffers hold an
    ``(n_frames, channels)`` array. The array is copied on construction and
    marked read-only, so a buffer never aliases another stage's data.
    """

    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if self.channels < 1:
            raise ValueError(f"Channel count must be >= 1, got {self.channels}")

        data = np.array(self.samples, dtype=np.float64, copy=True)
        if self.channels == 1:
            if data.ndim == 2 and data.shape[1] == 1:
                data = data[:, 0]
            if data.ndim != 1:
                raise ValueError(f"Mono buffer needs a 1-D array, got shape {data.shape}")
        elif data.ndim != 2 or data.shape[1] != self.channels:
            raise ValueError(
                f"Expected shape (n, {self.channels}) for {self.channels} channels, "
                f"got {data.shape}"
            )
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)

    @classmethod
    def silent(cls, n_frames: int, sample_rate: int, channels: int = 1) -> "SampleBuffer":
        """Create an all-zero buffer."""
        shape = (n_frames,) if channels == 1 else (n_frames, channels)
        return cls(np.zeros(shape), sample_rate, channels)

    @property
    def n_frames(self) -> int:
        """Number of sample frames (samples per channel)."""
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.n_frames / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return self.n_frames == 0

    def to_mono(self) -> "SampleBuffer":
        """Average all channels into one analysis channel."""
        if self.channels == 1:
            return self
        return SampleBuffer(self.samples.mean(axis=1), self.sample_rate, 1)

    def peak(self) -> float:
        """Absolute peak amplitude."""
        if self.is_empty:
            return 0.0
        return float(np.abs(self.samples).max())
