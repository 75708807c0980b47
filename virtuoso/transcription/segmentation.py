"""Note segmentation - turn a per-frame pitch stream into note events.

Steps:
1. Median smoothing of the raw semitone sequence (kills one-frame glitches)
2. Run-length grouping of equal consecutive values
3. Minimum-duration filter (strictly longer than 60 ms by default)
4. Velocity from the loudest raw-signal frame of each run
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..core import NoteEvent
from ..core.constants import (
    DEFAULT_MEDIAN_WINDOW,
    DEFAULT_MIN_NOTE_DURATION,
    DEFAULT_VELOCITY_FLOOR,
    DEFAULT_VELOCITY_SCALE,
)

logger = logging.getLogger(__name__)

# Durations are compared at nanosecond resolution so that frame-count
# products such as 60 * 0.001 land exactly on the threshold.
_DURATION_DECIMALS = 9


@dataclass
class SegmenterConfig:
    """Configuration for note segmentation.

    Attributes:
        median_window: Odd median filter length in frames (default: 7)
        min_note_duration: Runs must be strictly longer than this, in seconds (default: 0.06)
        velocity_scale: Multiplier from peak RMS to velocity (default: 4.0)
        velocity_floor: Lowest velocity assigned to an accepted note (default: 0.3)
    """

    median_window: int = DEFAULT_MEDIAN_WINDOW
    min_note_duration: float = DEFAULT_MIN_NOTE_DURATION
    velocity_scale: float = DEFAULT_VELOCITY_SCALE
    velocity_floor: float = DEFAULT_VELOCITY_FLOOR

    def __post_init__(self):
        if self.median_window < 1 or self.median_window % 2 == 0:
            raise ValueError(
                f"Median window must be a positive odd number, got {self.median_window}"
            )
        if self.min_note_duration < 0:
            raise ValueError("Minimum note duration must be >= 0")
        if not 0.0 <= self.velocity_floor <= 1.0:
            raise ValueError("Velocity floor must be in [0, 1]")


def median_smooth(values: Sequence[int], window: int) -> np.ndarray:
    """
    Sliding median using only in-bounds neighbours at the edges.

    For the shortened windows at the edges an even count takes the upper median.
    """
    data = np.asarray(values, dtype=np.int64)
    n = len(data)
    half = window // 2
    smoothed = np.zeros(n, dtype=np.int64)
    for i in range(n):
        neighbourhood = np.sort(data[max(0, i - half):min(n, i + half + 1)])
        smoothed[i] = neighbourhood[len(neighbourhood) // 2]
    return smoothed


class NoteSegmenter:
    """Group a smoothed semitone stream into discrete notes."""

    def __init__(self, config: Optional[SegmenterConfig] = None):
        self.config = config or SegmenterConfig()

    def segment(
        self,
        frame_values: Sequence[int],
        frame_times: Sequence[float],
        frame_duration: float,
        frame_rms: Optional[Sequence[float]] = None,
    ) -> List[NoteEvent]:
        """
        Segment per-frame semitones into notes.

        Args:
            frame_values: Semitone per frame (0 = silence)
            frame_times: Start time of each frame in seconds
            frame_duration: Seconds between consecutive frames
            frame_rms: Optional raw-signal RMS per frame, used for velocity

        Returns:
            Notes ordered by start time
        """
        if frame_duration <= 0:
            raise ValueError(f"Frame duration must be positive, got {frame_duration}")
        if len(frame_values) != len(frame_times):
            raise ValueError(
                f"Got {len(frame_values)} frame values but {len(frame_times)} frame times"
            )
        if frame_rms is not None and len(frame_rms) != len(frame_values):
            raise ValueError(
                f"Got {len(frame_values)} frame values but {len(frame_rms)} RMS values"
            )

        if len(frame_values) == 0:
            return []

        smoothed = median_smooth(frame_values, self.config.median_window)
        rms = None if frame_rms is None else np.asarray(frame_rms, dtype=np.float64)

        notes: List[NoteEvent] = []
        current = 0
        run_start = 0
        for i, value in enumerate(smoothed):
            if value != current:
                if current > 0:
                    self._close_run(notes, int(current), run_start, i, frame_times, frame_duration, rms)
                current = value
                run_start = i

        # A run still open at the end obeys the same duration rule
        if current > 0:
            self._close_run(
                notes, int(current), run_start, len(smoothed), frame_times, frame_duration, rms
            )

        logger.debug("Segmented %d frames into %d notes", len(smoothed), len(notes))
        return notes

    def _close_run(
        self,
        notes: List[NoteEvent],
        note_number: int,
        start: int,
        end: int,
        frame_times: Sequence[float],
        frame_duration: float,
        rms: Optional[np.ndarray],
    ) -> None:
        """Append the run [start, end) as a note if it is long enough."""
        duration = (end - start) * frame_duration
        if round(duration, _DURATION_DECIMALS) <= self.config.min_note_duration:
            return

        notes.append(
            NoteEvent(
                note_number=note_number,
                start_time=float(frame_times[start]),
                duration=duration,
                velocity=self._velocity(rms, start, end),
            )
        )

    def _velocity(self, rms: Optional[np.ndarray], start: int, end: int) -> float:
        """Map the loudest frame of a run to a velocity in [floor, 1]."""
        if rms is None:
            return 1.0
        peak = float(rms[start:end].max())
        return float(np.clip(peak * self.config.velocity_scale, self.config.velocity_floor, 1.0))
