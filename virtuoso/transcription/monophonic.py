"""Monophonic transcription: conditioner -> pitch detector -> segmenter."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .base import Transcriber
from .segmentation import NoteSegmenter, SegmenterConfig
from ..analysis import PitchDetector, SignalConditioner
from ..core import NoteEvent, SampleBuffer
from ..core.constants import (
    DEFAULT_CUTOFF_HZ,
    DEFAULT_HOP_SIZE,
    DEFAULT_MAX_FREQ,
    DEFAULT_MIN_FREQ,
    DEFAULT_OCTAVE_TOLERANCE,
    DEFAULT_RMS_GATE,
    DEFAULT_SILENCE_THRESHOLD,
    DEFAULT_WINDOW_SIZE,
    EXTRACTION_MAX_NOTE,
    EXTRACTION_MIN_NOTE,
)

logger = logging.getLogger(__name__)


@dataclass
class ExtractionConfig:
    """Configuration for frame analysis.

    Attributes:
        window_size: Analysis frame length in samples (default: 1024)
        hop_size: Samples between frames (default: 256)
        cutoff_hz: Low-pass pre-filter cutoff (default: 700)
        rms_gate: Raw RMS a frame must exceed to be analysed (default: 0.02)
        silence_threshold: Filtered RMS below which the detector skips a frame (default: 0.01)
        min_freq: Lowest accepted fundamental in Hz (default: 75)
        max_freq: Highest accepted fundamental in Hz (default: 1200)
        min_note: Lowest accepted MIDI note (default: 36)
        max_note: Highest accepted MIDI note (default: 96)
        confidence_ratio: Periodicity gate relative to frame RMS (default: 0.8)
        octave_tolerance: RMS fraction allowed when preferring a shorter period (default: 0.2)
    """

    window_size: int = DEFAULT_WINDOW_SIZE
    hop_size: int = DEFAULT_HOP_SIZE
    cutoff_hz: float = DEFAULT_CUTOFF_HZ
    rms_gate: float = DEFAULT_RMS_GATE
    silence_threshold: float = DEFAULT_SILENCE_THRESHOLD
    min_freq: float = DEFAULT_MIN_FREQ
    max_freq: float = DEFAULT_MAX_FREQ
    min_note: int = EXTRACTION_MIN_NOTE
    max_note: int = EXTRACTION_MAX_NOTE
    confidence_ratio: float = 0.8
    octave_tolerance: float = DEFAULT_OCTAVE_TOLERANCE


@dataclass
class PitchTrack:
    """Per-frame analysis output."""

    times: np.ndarray
    values: np.ndarray
    rms: np.ndarray
    frame_duration: float

    @property
    def voiced_ratio(self) -> float:
        """Fraction of frames with a detected pitch."""
        if len(self.values) == 0:
            return 0.0
        return float(np.count_nonzero(self.values)) / len(self.values)


class MonophonicTranscriber(Transcriber):
    """Transcribes a single melodic line with a difference-function detector."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        segmenter_config: Optional[SegmenterConfig] = None,
    ):
        """
        Initialize MonophonicTranscriber.

        Args:
            config: Frame analysis settings
            segmenter_config: Note segmentation settings
        """
        self.config = config or ExtractionConfig()
        self.conditioner = SignalConditioner(
            cutoff_hz=self.config.cutoff_hz,
            window_size=self.config.window_size,
            hop_size=self.config.hop_size,
            rms_gate=self.config.rms_gate,
        )
        self.detector = PitchDetector(
            min_freq=self.config.min_freq,
            max_freq=self.config.max_freq,
            silence_threshold=self.config.silence_threshold,
            confidence_ratio=self.config.confidence_ratio,
            min_note=self.config.min_note,
            max_note=self.config.max_note,
            octave_tolerance=self.config.octave_tolerance,
        )
        self.segmenter = NoteSegmenter(segmenter_config)

    def transcribe(self, audio: SampleBuffer) -> List[NoteEvent]:
        """
        Transcribe monophonic audio to notes.

        Args:
            audio: Input buffer (any channel count)

        Returns:
            List of detected notes
        """
        track = self.pitch_track(audio)
        notes = self.segmenter.segment(
            track.values, track.times, track.frame_duration, track.rms
        )
        logger.info(
            "Extracted %d notes from %.2fs of audio (%.0f%% voiced frames)",
            len(notes),
            audio.duration,
            track.voiced_ratio * 100,
        )
        return notes

    def pitch_track(self, audio: SampleBuffer) -> PitchTrack:
        """
        Compute per-frame semitones and raw RMS.

        Raises:
            ValueError: If the buffer holds no samples
        """
        if audio.is_empty:
            raise ValueError("Cannot transcribe an empty sample buffer")

        raw = audio.to_mono()
        filtered = self.conditioner.condition(raw)

        rms = self.conditioner.frame_rms(raw)
        frames = self.conditioner.frames(filtered)
        values = self.detector.track(frames, raw.sample_rate, mask=self.conditioner.gate(rms))

        logger.debug("Analysed %d frames at %d Hz", len(frames), raw.sample_rate)
        return PitchTrack(
            times=self.conditioner.frame_times(raw),
            values=values,
            rms=rms,
            frame_duration=self.conditioner.frame_duration(raw.sample_rate),
        )
