"""Transcription layer - Note-level detection from audio.

This layer converts a monophonic recording into discrete note events:
- Frame-wise pitch tracking (via the analysis layer)
- Median smoothing and run-length segmentation
- Velocity estimation from raw signal energy
"""

from .base import Transcriber
from .segmentation import NoteSegmenter, SegmenterConfig, median_smooth
from .monophonic import ExtractionConfig, MonophonicTranscriber, PitchTrack

__all__ = [
    "Transcriber",
    "NoteSegmenter",
    "SegmenterConfig",
    "median_smooth",
    "ExtractionConfig",
    "MonophonicTranscriber",
    "PitchTrack",
]
