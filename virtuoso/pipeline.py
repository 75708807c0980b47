"""End-to-end conversion: recording -> notes -> rendered instrument + exports.

Pipeline:
1. Optionally trim leading/trailing silence
2. Extract notes with the monophonic transcriber
3. Render the notes on the selected instrument
4. Encode the render as WAV and the notes as MIDI
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .core import NoteEvent, SampleBuffer
from .core.constants import DEFAULT_OUTPUT_SR
from .input import AudioLoader
from .output import MidiEncoder, WavEncoder
from .synthesis import get_synthesizer
from .transcription import ExtractionConfig, MonophonicTranscriber, SegmenterConfig

logger = logging.getLogger(__name__)


@dataclass
class StageTimings:
    """Track timing of processing stages."""

    stages: Dict[str, float] = field(default_factory=dict)
    _current_stage: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        """Start timing a stage."""
        self._current_stage = stage
        self._start_time = time.perf_counter()

    def stop(self) -> float:
        """Stop timing the current stage, return duration."""
        if self._current_stage is None:
            return 0.0
        duration = time.perf_counter() - self._start_time
        self.stages[self._current_stage] = duration
        self._current_stage = None
        return duration

    @property
    def total_time(self) -> float:
        """Get total time across all stages."""
        return sum(self.stages.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "stages": self.stages,
            "total_time": self.total_time,
        }


@dataclass
class ConversionResult:
    """Everything produced by one pipeline run."""

    instrument: str
    notes: List[NoteEvent]
    rendered: SampleBuffer
    wav_bytes: bytes
    midi_bytes: Optional[bytes]
    input_duration: float
    timings: StageTimings = field(default_factory=StageTimings)

    @property
    def has_notes(self) -> bool:
        return bool(self.notes)

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics."""
        return {
            "instrument": self.instrument,
            "notes_count": len(self.notes),
            "input_duration": self.input_duration,
            "output_duration": self.rendered.duration,
            "output_sample_rate": self.rendered.sample_rate,
            "midi_exported": self.midi_bytes is not None,
            "timings": self.timings.to_dict(),
        }


class ConversionPipeline:
    """Turn a monophonic recording into a new instrument performance."""

    def __init__(
        self,
        instrument: str = "sax",
        output_sr: int = DEFAULT_OUTPUT_SR,
        seed: int = 0,
        trim_silence: bool = False,
        extraction: Optional[ExtractionConfig] = None,
        segmentation: Optional[SegmenterConfig] = None,
    ):
        """
        Initialize ConversionPipeline.

        Args:
            instrument: Target instrument ('sax', 'violin', 'piano')
            output_sr: Sample rate of the rendered audio
            seed: Seed for the synthesizer's noise sources
            trim_silence: Trim leading/trailing silence before analysis
            extraction: Frame analysis settings
            segmentation: Note segmentation settings
        """
        if output_sr <= 0:
            raise ValueError(f"Output sample rate must be positive, got {output_sr}")
        # Fail on unknown instruments before any work is done
        get_synthesizer(instrument)
        self.instrument = instrument
        self.output_sr = output_sr
        self.seed = seed
        self.trim_silence = trim_silence
        self.transcriber = MonophonicTranscriber(extraction, segmentation)
        self.wav_encoder = WavEncoder()
        self.midi_encoder = MidiEncoder()

    def run(self, audio: SampleBuffer, instrument: Optional[str] = None) -> ConversionResult:
        """
        Run the whole conversion on an in-memory buffer.

        Args:
            audio: Source recording
            instrument: Optional override of the target instrument

        Returns:
            ConversionResult with notes, rendered buffer and encoded bytes

        Raises:
            ValueError: If the buffer is empty or the instrument unknown
        """
        instrument = instrument or self.instrument
        synth = get_synthesizer(instrument)
        timings = StageTimings()

        if audio.is_empty:
            raise ValueError("Cannot convert an empty sample buffer")

        if self.trim_silence:
            timings.start("trim")
            audio = AudioLoader().trim_silence(audio)
            timings.stop()

        timings.start("extract")
        notes = self.transcriber.transcribe(audio)
        timings.stop()

        timings.start("render")
        rendered = synth.render(notes, self.output_sr, audio.duration, seed=self.seed)
        timings.stop()

        timings.start("encode")
        wav_bytes = self.wav_encoder.encode(rendered)
        midi_bytes = self.midi_encoder.encode(notes, track_label=f"Virtuoso {synth.name}")
        timings.stop()

        if midi_bytes is None:
            logger.warning("No pitched content detected; MIDI export skipped")

        return ConversionResult(
            instrument=synth.name,
            notes=notes,
            rendered=rendered,
            wav_bytes=wav_bytes,
            midi_bytes=midi_bytes,
            input_duration=audio.duration,
            timings=timings,
        )

    def run_file(self, path: str, instrument: Optional[str] = None) -> ConversionResult:
        """Load an audio file (mono, native rate) and run the conversion."""
        return self.run(AudioLoader().load(path), instrument)
