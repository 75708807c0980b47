"""Read stored MIDI note files back into note events."""

from pathlib import Path
from typing import List

import pretty_midi

from ..core import NoteEvent
from ..core.constants import MIDI_MAX


def load_note_events(path: str) -> List[NoteEvent]:
    """
    Load every non-drum note of a MIDI file.

    Args:
        path: Path to a .mid file

    Returns:
        Notes sorted by start time, velocity scaled to [0, 1]

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not a readable MIDI file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"MIDI file not found: {path}")

    try:
        midi = pretty_midi.PrettyMIDI(str(path))
    except Exception as e:
        raise ValueError(f"Could not parse MIDI file: {path}") from e

    notes = []
    for instrument in midi.instruments:
        if instrument.is_drum:
            continue
        for note in instrument.notes:
            if note.end <= note.start:
                continue
            notes.append(
                NoteEvent(
                    note_number=note.pitch,
                    start_time=max(0.0, float(note.start)),
                    duration=float(note.end - note.start),
                    velocity=note.velocity / MIDI_MAX,
                )
            )

    notes.sort(key=lambda n: (n.start_time, n.note_number))
    return notes
