"""Output layer - Binary export.

This layer serializes pipeline results:
- WAV (16-bit linear PCM) for rendered audio
- Standard MIDI File (format 0) for extracted notes
"""

from .wav import WavEncoder
from .midi import MidiEncoder, MidiTrack, decode_vlq, encode_vlq, read_track_events

__all__ = [
    "WavEncoder",
    "MidiEncoder",
    "MidiTrack",
    "encode_vlq",
    "decode_vlq",
    "read_track_events",
]
