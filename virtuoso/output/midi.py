"""Standard MIDI File (format 0) export.

The byte layout is written by hand: chunk lengths and the tempo are
big-endian fields, and every event is preceded by a variable-length
quantity (VLQ) delta time.
"""

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core import NoteEvent
from ..core.constants import (
    ENCODE_MAX_NOTE,
    ENCODE_MIN_NOTE,
    MIDI_MAX,
    MIN_MIDI_VELOCITY,
    TEMPO_US_PER_QUARTER,
    TICKS_PER_QUARTER,
)

logger = logging.getLogger(__name__)

NOTE_OFF = 0x80
NOTE_ON = 0x90
META = 0xFF
META_TRACK_NAME = 0x03
META_TEMPO = 0x51
META_END_OF_TRACK = 0x2F

MAX_VLQ = 0x0FFFFFFF


def encode_vlq(value: int) -> bytes:
    """
    Encode a non-negative integer as a MIDI variable-length quantity.

    7 bits per byte, most significant group first, high bit set on every
    byte except the last.
    """
    if value < 0 or value > MAX_VLQ:
        raise ValueError(f"VLQ value out of range: {value}")
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


def decode_vlq(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a VLQ starting at offset.

    Returns:
        Tuple of (value, offset just past the quantity)
    """
    value = 0
    for i in range(4):
        if offset + i >= len(data):
            raise ValueError("Truncated variable-length quantity")
        byte = data[offset + i]
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, offset + i + 1
    raise ValueError("Variable-length quantity longer than 4 bytes")


@dataclass
class MidiEvent:
    """One channel event on the absolute tick timeline."""

    tick: int
    status: int
    note: int
    velocity: int

    @property
    def is_note_on(self) -> bool:
        return self.status & 0xF0 == NOTE_ON and self.velocity > 0


@dataclass
class MidiTrack:
    """Parsed contents of a single-track file."""

    format: int
    division: int
    tempo: Optional[int] = None
    name: Optional[str] = None
    events: List[MidiEvent] = field(default_factory=list)
    deltas: List[int] = field(default_factory=list)

    def note_spans(self) -> List[Tuple[int, int, int]]:
        """Pair note-ons with the next note-off of the same key: (note, start, end)."""
        open_notes = {}
        spans = []
        for event in self.events:
            if event.is_note_on:
                open_notes.setdefault(event.note, []).append(event.tick)
            elif open_notes.get(event.note):
                spans.append((event.note, open_notes[event.note].pop(0), event.tick))
        spans.sort(key=lambda s: (s[1], s[0]))
        return spans


class MidiEncoder:
    """Serialize notes as a single-track, format-0 MIDI file at 120 BPM."""

    def __init__(
        self,
        ticks_per_quarter: int = TICKS_PER_QUARTER,
        tempo_us: int = TEMPO_US_PER_QUARTER,
    ):
        """
        Initialize MidiEncoder.

        Args:
            ticks_per_quarter: Header division (ticks per quarter note)
            tempo_us: Microseconds per quarter note
        """
        self.ticks_per_quarter = ticks_per_quarter
        self.tempo_us = tempo_us

    @property
    def tempo_bpm(self) -> float:
        return 60_000_000 / self.tempo_us

    @property
    def ticks_per_second(self) -> float:
        """960 at the default 120 BPM and 480 PPQ."""
        return self.tempo_bpm / 60.0 * self.ticks_per_quarter

    def seconds_to_ticks(self, seconds: float) -> int:
        return int(round(seconds * self.ticks_per_second))

    def encode(self, notes: Sequence[NoteEvent], track_label: str = "Virtuoso") -> Optional[bytes]:
        """
        Encode notes to MIDI bytes.

        Args:
            notes: Notes to export
            track_label: Track name meta-event text

        Returns:
            Complete file contents, or None when there is nothing to export
        """
        if not notes:
            return None

        track = bytearray()
        track += b"\x00" + bytes([META, META_TEMPO, 0x03])
        track += bytes([(self.tempo_us >> 16) & 0xFF, (self.tempo_us >> 8) & 0xFF, self.tempo_us & 0xFF])

        name = track_label.encode("utf-8")
        track += b"\x00" + bytes([META, META_TRACK_NAME]) + encode_vlq(len(name)) + name

        last_tick = 0
        for event in self.expand_events(notes):
            track += encode_vlq(max(0, event.tick - last_tick))
            track += bytes([event.status, event.note, event.velocity])
            last_tick = max(last_tick, event.tick)

        track += b"\x00" + bytes([META, META_END_OF_TRACK, 0x00])

        header = b"MThd" + struct.pack(">IHHH", 6, 0, 1, self.ticks_per_quarter)
        data = header + b"MTrk" + struct.pack(">I", len(track)) + bytes(track)
        logger.debug("Encoded %d notes into %d MIDI bytes", len(notes), len(data))
        return data

    def expand_events(self, notes: Sequence[NoteEvent]) -> List[MidiEvent]:
        """Note-on/note-off pairs sorted by tick; ties keep expansion order."""
        events = []
        for note in notes:
            pitch = int(np.clip(note.note_number, ENCODE_MIN_NOTE, ENCODE_MAX_NOTE))
            velocity = int(np.floor(np.clip(note.velocity * MIDI_MAX, MIN_MIDI_VELOCITY, MIDI_MAX)))
            events.append(MidiEvent(self.seconds_to_ticks(note.start_time), NOTE_ON, pitch, velocity))
            events.append(MidiEvent(self.seconds_to_ticks(note.end_time), NOTE_OFF, pitch, 0))
        # list.sort is stable
        events.sort(key=lambda e: e.tick)
        return events

    def write(
        self, notes: Sequence[NoteEvent], output_path: str, track_label: str = "Virtuoso"
    ) -> Optional[Path]:
        """Encode and save; returns None (and writes nothing) for an empty note list."""
        data = self.encode(notes, track_label)
        if data is None:
            return None
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path


def read_track_events(data: bytes) -> MidiTrack:
    """
    Parse a single-track file produced by MidiEncoder.

    Supports note-on/note-off channel events (with running status) and meta
    events; anything else raises ValueError.
    """
    if len(data) < 14 or data[:4] != b"MThd":
        raise ValueError("Not a MIDI file: missing MThd header")
    header_len, fmt, n_tracks, division = struct.unpack(">IHHH", data[4:14])
    if header_len != 6:
        raise ValueError(f"Unexpected header length: {header_len}")
    if n_tracks < 1:
        raise ValueError("MIDI file has no tracks")

    offset = 8 + header_len
    if data[offset:offset + 4] != b"MTrk":
        raise ValueError("Missing MTrk chunk")
    (track_len,) = struct.unpack(">I", data[offset + 4:offset + 8])
    pos = offset + 8
    end = pos + track_len
    if end > len(data):
        raise ValueError("Track chunk runs past end of data")

    track = MidiTrack(format=fmt, division=division)
    tick = 0
    status = None
    while pos < end:
        delta, pos = decode_vlq(data, pos)
        tick += delta
        track.deltas.append(delta)

        if data[pos] & 0x80:
            status = data[pos]
            pos += 1
        elif status is None:
            raise ValueError("Running status without a previous status byte")

        if status == META:
            meta_type = data[pos]
            length, pos = decode_vlq(data, pos + 1)
            payload = data[pos:pos + length]
            pos += length
            if meta_type == META_TEMPO:
                track.tempo = (payload[0] << 16) | (payload[1] << 8) | payload[2]
            elif meta_type == META_TRACK_NAME:
                track.name = payload.decode("utf-8")
            elif meta_type == META_END_OF_TRACK:
                break
        elif status & 0xF0 in (NOTE_ON, NOTE_OFF):
            track.events.append(MidiEvent(tick, status, data[pos], data[pos + 1]))
            pos += 2
        else:
            raise ValueError(f"Unsupported MIDI status byte: 0x{status:02X}")

    return track
