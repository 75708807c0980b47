"""Virtuoso - Re-perform a monophonic recording on another instrument.

Architecture Layers:
    1. input/         - Audio and MIDI note file loading
    2. analysis/      - Low-pass conditioning, framing and pitch detection
    3. transcription/ - Note segmentation (monophonic)
    4. synthesis/     - Offline instrument rendering (sax, violin, piano)
    5. output/        - Export (WAV, MIDI)
"""

__version__ = "0.1.0"

# Core types
from .core import NoteEvent, SampleBuffer

# Input layer
from .input import AudioLoader, load_note_events

# Analysis layer
from .analysis import SignalConditioner, PitchDetector

# Transcription layer
from .transcription import (
    MonophonicTranscriber,
    NoteSegmenter,
    ExtractionConfig,
    SegmenterConfig,
)

# Synthesis layer
from .synthesis import (
    ReedSynthesizer,
    BowedStringSynthesizer,
    ElectricPianoSynthesizer,
    get_synthesizer,
)

# Output layer
from .output import WavEncoder, MidiEncoder

# Pipeline
from .pipeline import ConversionPipeline, ConversionResult
from .demo import generate_demo_phrase

__all__ = [
    # Core
    "NoteEvent",
    "SampleBuffer",
    # Input
    "AudioLoader",
    "load_note_events",
    # Analysis
    "SignalConditioner",
    "PitchDetector",
    # Transcription
    "MonophonicTranscriber",
    "NoteSegmenter",
    "ExtractionConfig",
    "SegmenterConfig",
    # Synthesis
    "ReedSynthesizer",
    "BowedStringSynthesizer",
    "ElectricPianoSynthesizer",
    "get_synthesizer",
    # Output
    "WavEncoder",
    "MidiEncoder",
    # Pipeline
    "ConversionPipeline",
    "ConversionResult",
    "generate_demo_phrase",
]
