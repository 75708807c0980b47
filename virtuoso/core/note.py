"""NoteEvent data class - the unit exchanged between extraction, synthesis and export."""

from dataclasses import dataclass

import numpy as np

from .constants import A4_FREQUENCY, A4_MIDI, PITCH_NAMES


@dataclass(frozen=True)
class NoteEvent:
    """A single extracted note.

    Attributes:
        note_number: MIDI note number (1-127)
        start_time: Start time in seconds
        duration: Length in seconds (strictly positive)
        velocity: Normalized loudness in [0, 1]
    """

    note_number: int
    start_time: float
    duration: float
    velocity: float = 1.0

    def __post_init__(self):
        if not self.duration > 0:
            raise ValueError(f"Note duration must be positive, got {self.duration}")
        if self.start_time < 0:
            raise ValueError(f"Note start time must be >= 0, got {self.start_time}")
        if not 0.0 <= self.velocity <= 1.0:
            raise ValueError(f"Note velocity must be in [0, 1], got {self.velocity}")

    @property
    def end_time(self) -> float:
        """Note end in seconds."""
        return self.start_time + self.duration

    @property
    def frequency(self) -> float:
        """Equal-tempered frequency in Hz."""
        return NoteEvent.midi_to_freq(self.note_number)

    @property
    def pitch_name(self) -> str:
        """Get note name (e.g., 'C4', 'A#3')."""
        octave = (self.note_number // 12) - 1
        return f"{PITCH_NAMES[self.note_number % 12]}{octave}"

    @staticmethod
    def freq_to_midi(freq: float) -> int:
        """Convert frequency (Hz) to the nearest MIDI note, 0 for no pitch."""
        if freq <= 0:
            return 0
        return int(round(A4_MIDI + 12 * np.log2(freq / A4_FREQUENCY)))

    @staticmethod
    def midi_to_freq(midi: int) -> float:
        """Convert MIDI note to frequency (Hz)."""
        return A4_FREQUENCY * (2 ** ((midi - A4_MIDI) / 12.0))
