"""Input layer - Audio and note file loading."""

from .loader import AudioLoader
from .notes import load_note_events

__all__ = [
    "AudioLoader",
    "load_note_events",
]
