"""Monophonic pitch detection with an average magnitude difference function."""

from typing import Tuple

import numpy as np

from ..core import NoteEvent
from ..core.constants import (
    DEFAULT_MAX_FREQ,
    DEFAULT_MIN_FREQ,
    DEFAULT_OCTAVE_TOLERANCE,
    DEFAULT_SILENCE_THRESHOLD,
    EXTRACTION_MAX_NOTE,
    EXTRACTION_MIN_NOTE,
)


class PitchDetector:
    """Estimate the fundamental of one frame by minimizing its self-difference."""

    def __init__(
        self,
        min_freq: float = DEFAULT_MIN_FREQ,
        max_freq: float = DEFAULT_MAX_FREQ,
        silence_threshold: float = DEFAULT_SILENCE_THRESHOLD,
        confidence_ratio: float = 0.8,
        min_note: int = EXTRACTION_MIN_NOTE,
        max_note: int = EXTRACTION_MAX_NOTE,
        block_size: int = 256,
        octave_tolerance: float = DEFAULT_OCTAVE_TOLERANCE,
    ):
        """
        Initialize PitchDetector.

        Args:
            min_freq: Lowest accepted fundamental (Hz)
            max_freq: Highest accepted fundamental (Hz)
            silence_threshold: Frames with RMS below this are skipped
            confidence_ratio: Reject if best mean difference > ratio * RMS
            min_note: Lowest MIDI note kept by to_semitone
            max_note: Highest MIDI note kept by to_semitone
            block_size: Samples accumulated between early-exit checks
            octave_tolerance: A shorter lag replaces the best one when its mean
                difference is within this fraction of the frame RMS
        """
        if not 0 < min_freq < max_freq:
            raise ValueError(f"Invalid frequency range: {min_freq}-{max_freq} Hz")
        if block_size <= 0:
            raise ValueError(f"Block size must be positive, got {block_size}")
        if octave_tolerance < 0:
            raise ValueError(f"Octave tolerance must be >= 0, got {octave_tolerance}")
        self.min_freq = min_freq
        self.max_freq = max_freq
        self.silence_threshold = silence_threshold
        self.confidence_ratio = confidence_ratio
        self.min_note = min_note
        self.max_note = max_note
        self.block_size = block_size
        self.octave_tolerance = octave_tolerance

    def lag_range(self, sample_rate: int, frame_length: int) -> range:
        """Candidate periods in samples, capped to the frame length."""
        min_lag = max(1, int(sample_rate // self.max_freq))
        max_lag = min(int(sample_rate // self.min_freq), frame_length - 1)
        return range(min_lag, max_lag + 1)

    def detect(self, frame: np.ndarray, sample_rate: int) -> float:
        """
        Detect the fundamental frequency of a frame.

        The lag with the smallest mean difference is often a multiple of the
        true period, because a multiple can land closer to a whole number of
        samples. The shortest sub-multiple whose difference stays within
        ``octave_tolerance * rms`` of the best is reported instead.

        Args:
            frame: Frame samples (already low-passed)
            sample_rate: Sample rate in Hz

        Returns:
            Frequency in Hz, or 0.0 when the frame is silent or non-periodic
        """
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")

        frame = np.asarray(frame, dtype=np.float64)
        n = len(frame)
        if n < 2:
            return 0.0

        rms = float(np.sqrt(np.mean(frame ** 2)))
        if rms < self.silence_threshold:
            return 0.0

        best_lag, best_mean = self.search(frame, sample_rate)
        if best_lag == 0:
            return 0.0
        if best_mean > self.confidence_ratio * rms:
            return 0.0

        lag = self._fundamental_lag(
            frame,
            best_lag,
            best_mean + self.octave_tolerance * rms,
            self.lag_range(sample_rate, n),
        )
        return sample_rate / lag

    def search(self, frame: np.ndarray, sample_rate: int) -> Tuple[int, float]:
        """
        Find the lag with the smallest mean absolute difference.

        Returns:
            Tuple of (lag, mean difference); lag is 0 when no lag fits the frame
        """
        frame = np.asarray(frame, dtype=np.float64)
        n = len(frame)
        best_mean = np.inf
        best_lag = 0
        for lag in self.lag_range(sample_rate, n):
            count = n - lag
            head = frame[:count]
            tail = frame[lag:]
            # A lag is abandoned once its partial sum can no longer beat the best mean
            ceiling = best_mean * count
            partial = 0.0
            for start in range(0, count, self.block_size):
                stop = min(start + self.block_size, count)
                partial += float(np.abs(head[start:stop] - tail[start:stop]).sum())
                if partial >= ceiling:
                    break
            else:
                mean = partial / count
                if mean < best_mean:
                    best_mean = mean
                    best_lag = lag
        return best_lag, best_mean

    def _fundamental_lag(
        self, frame: np.ndarray, best_lag: int, limit: float, lags: range
    ) -> int:
        """Shortest lag near best_lag / k (k >= 2) whose mean difference is <= limit."""
        for k in range(best_lag // lags.start, 1, -1):
            centre = int(round(best_lag / k))
            candidates = [lag for lag in (centre - 1, centre, centre + 1) if lag in lags]
            if not candidates:
                continue
            means = [self._mean_difference(frame, lag) for lag in candidates]
            i = int(np.argmin(means))
            if means[i] <= limit:
                return candidates[i]
        return best_lag

    @staticmethod
    def _mean_difference(frame: np.ndarray, lag: int) -> float:
        return float(np.mean(np.abs(frame[:-lag] - frame[lag:])))

    def to_semitone(self, freq: float) -> int:
        """Nearest MIDI note for a frequency, 0 when outside the accepted range."""
        note = NoteEvent.freq_to_midi(freq)
        if note < self.min_note or note > self.max_note:
            return 0
        return note

    def track(self, frames: np.ndarray, sample_rate: int, mask: np.ndarray = None) -> np.ndarray:
        """
        Run detection over a stack of frames.

        Args:
            frames: Array of shape (n_frames, window)
            sample_rate: Sample rate in Hz
            mask: Optional boolean mask; unmasked frames are reported as 0

        Returns:
            Integer semitone per frame (0 = no pitch)
        """
        values = np.zeros(len(frames), dtype=np.int64)
        for i, frame in enumerate(frames):
            if mask is not None and not mask[i]:
                continue
            freq = self.detect(frame, sample_rate)
            if self.min_freq < freq < self.max_freq:
                values[i] = self.to_semitone(freq)
        return values
