"""Signal conditioning ahead of pitch detection.

The conditioner low-passes the raw recording so the difference function
locks onto the fundamental rather than bright upper harmonics, and slices
both the filtered and the raw signal into overlapping analysis frames.
Loudness (RMS) is always measured on the raw signal, since the filter
attenuates it.
"""

import logging

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy.signal import lfilter

from ..core import SampleBuffer
from ..core.constants import (
    DEFAULT_CUTOFF_HZ,
    DEFAULT_HOP_SIZE,
    DEFAULT_RMS_GATE,
    DEFAULT_WINDOW_SIZE,
)

logger = logging.getLogger(__name__)


class SignalConditioner:
    """Low-pass pre-filter, frame windower and RMS gate."""

    def __init__(
        self,
        cutoff_hz: float = DEFAULT_CUTOFF_HZ,
        window_size: int = DEFAULT_WINDOW_SIZE,
        hop_size: int = DEFAULT_HOP_SIZE,
        rms_gate: float = DEFAULT_RMS_GATE,
    ):
        """
        Initialize SignalConditioner.

        Args:
            cutoff_hz: Low-pass cutoff in Hz
            window_size: Frame length W in samples
            hop_size: Hop length H in samples (must be < W)
            rms_gate: Raw-signal RMS a frame must exceed to be analysed
        """
        if cutoff_hz <= 0:
            raise ValueError(f"Cutoff must be positive, got {cutoff_hz}")
        if window_size <= 0 or hop_size <= 0:
            raise ValueError("Window and hop sizes must be positive")
        if hop_size >= window_size:
            raise ValueError(
                f"Hop size ({hop_size}) must be smaller than window size ({window_size})"
            )
        self.cutoff_hz = cutoff_hz
        self.window_size = window_size
        self.hop_size = hop_size
        self.rms_gate = rms_gate

    def condition(self, raw: SampleBuffer, cutoff_hz: float = None) -> SampleBuffer:
        """
        Apply the single-pole low-pass filter.

        Args:
            raw: Input buffer (stereo is reduced to mono first)
            cutoff_hz: Optional cutoff override

        Returns:
            New filtered mono buffer
        """
        cutoff = self.cutoff_hz if cutoff_hz is None else cutoff_hz
        if cutoff <= 0:
            raise ValueError(f"Cutoff must be positive, got {cutoff}")

        mono = raw.to_mono()
        rc = 1.0 / (2 * np.pi * cutoff)
        dt = 1.0 / mono.sample_rate
        alpha = dt / (rc + dt)

        # y[n] = y[n-1] + alpha * (x[n] - y[n-1]), starting from rest
        filtered = lfilter([alpha], [1.0, alpha - 1.0], mono.samples)
        return SampleBuffer(filtered, mono.sample_rate)

    def frame_starts(self, n_samples: int) -> np.ndarray:
        """Start offsets of every complete analysis frame."""
        return np.arange(0, n_samples - self.window_size, self.hop_size, dtype=np.int64)

    def frame_times(self, buffer: SampleBuffer) -> np.ndarray:
        """Frame start times in seconds."""
        return self.frame_starts(buffer.n_frames) / buffer.sample_rate

    def frame_duration(self, sample_rate: int) -> float:
        """Time advanced by one hop, in seconds."""
        return self.hop_size / sample_rate

    def frames(self, buffer: SampleBuffer) -> np.ndarray:
        """
        Slice a mono buffer into overlapping frames.

        Returns:
            Read-only view of shape (n_frames, window_size)
        """
        mono = buffer.to_mono().samples
        starts = self.frame_starts(len(mono))
        if len(starts) == 0:
            return np.empty((0, self.window_size))
        return sliding_window_view(mono, self.window_size)[starts]

    def frame_rms(self, raw: SampleBuffer) -> np.ndarray:
        """Per-frame RMS of the unfiltered signal."""
        frames = self.frames(raw)
        if len(frames) == 0:
            return np.empty(0)
        return np.sqrt(np.mean(frames ** 2, axis=1))

    def gate(self, rms: np.ndarray) -> np.ndarray:
        """Boolean mask of frames loud enough to analyse."""
        return rms > self.rms_gate
