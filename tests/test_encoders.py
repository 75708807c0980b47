"""Tests for WAV and MIDI export."""

import io
import struct

import numpy as np
import pretty_midi
import pytest
import soundfile as sf
from scipy.io import wavfile

from virtuoso.core import NoteEvent, SampleBuffer
from virtuoso.output import (
    MidiEncoder,
    WavEncoder,
    decode_vlq,
    encode_vlq,
    read_track_events,
)


class TestWavEncoder:
    """Tests for 16-bit PCM WAV export."""

    @pytest.fixture
    def encoder(self):
        return WavEncoder()

    def test_full_scale_samples(self, encoder):
        data = encoder.encode(SampleBuffer(np.array([1.0, -1.0]), 8000))

        assert len(data) == 48
        assert data[:4] == b"RIFF"
        assert data[8:16] == b"WAVEfmt "
        assert struct.unpack("<I", data[4:8])[0] == 40
        assert data[36:40] == b"data"
        assert struct.unpack("<I", data[40:44])[0] == 4
        assert struct.unpack("<hh", data[44:48]) == (32767, -32768)

    def test_header_fields(self, encoder):
        data = encoder.encode(SampleBuffer(np.zeros(10), 22050))
        fmt_tag, channels, rate, byte_rate, block_align, bits = struct.unpack(
            "<HHIIHH", data[20:36]
        )
        assert fmt_tag == 1
        assert channels == 1
        assert rate == 22050
        assert byte_rate == 44100
        assert block_align == 2
        assert bits == 16

    def test_clamping_and_truncation(self, encoder):
        pcm = encoder.to_pcm16(np.array([2.0, -3.0, 0.5, -0.5, 0.0]))
        np.testing.assert_array_equal(pcm, [32767, -32768, 16383, -16384, 0])

    def test_stereo_is_interleaved(self, encoder):
        buf = SampleBuffer(np.array([[0.5, -0.5], [0.25, -0.25]]), 8000, channels=2)
        data = encoder.encode(buf)

        assert struct.unpack("<H", data[22:24])[0] == 2
        assert struct.unpack("<H", data[32:34])[0] == 4
        assert struct.unpack("<hhhh", data[44:52]) == (16383, -16384, 8191, -8192)

    def test_readable_by_scipy(self, encoder):
        data = encoder.encode(SampleBuffer(np.array([1.0, -1.0, 0.0]), 8000))
        rate, samples = wavfile.read(io.BytesIO(data))
        assert rate == 8000
        np.testing.assert_array_equal(samples, [32767, -32768, 0])

    def test_empty_buffer(self, encoder):
        data = encoder.encode(SampleBuffer(np.zeros(0), 8000))
        assert len(data) == 44
        assert struct.unpack("<I", data[40:44])[0] == 0

    def test_write(self, encoder, tmp_path):
        path = encoder.write(SampleBuffer(np.zeros(100), 8000), str(tmp_path / "out" / "a.wav"))
        assert path.exists()
        assert path.stat().st_size == 44 + 200


class TestVlq:
    """Tests for variable-length quantities."""

    @pytest.mark.parametrize(
        "value,encoded",
        [
            (0, b"\x00"),
            (0x40, b"\x40"),
            (0x7F, b"\x7f"),
            (0x80, b"\x81\x00"),
            (480, b"\x83\x60"),
            (0x2000, b"\xc0\x00"),
            (0x3FFF, b"\xff\x7f"),
            (0x4000, b"\x81\x80\x00"),
            (0x0FFFFFFF, b"\xff\xff\xff\x7f"),
        ],
    )
    def test_known_values(self, value, encoded):
        assert encode_vlq(value) == encoded
        assert decode_vlq(encoded) == (value, len(encoded))

    @pytest.mark.parametrize("value", [-1, 0x10000000])
    def test_out_of_range(self, value):
        with pytest.raises(ValueError):
            encode_vlq(value)

    def test_truncated(self):
        with pytest.raises(ValueError):
            decode_vlq(b"\x81")


class TestMidiEncoder:
    """Tests for format-0 MIDI export."""

    @pytest.fixture
    def encoder(self):
        return MidiEncoder()

    def test_header(self, encoder):
        data = encoder.encode([NoteEvent(69, 0.0, 0.5)])
        assert data[:14] == b"MThd\x00\x00\x00\x06\x00\x00\x00\x01\x01\xe0"
        assert data[14:18] == b"MTrk"
        assert struct.unpack(">I", data[18:22])[0] == len(data) - 22

    def test_tempo_and_name_meta(self, encoder):
        data = encoder.encode([NoteEvent(69, 0.0, 0.5)], track_label="Solo")
        assert b"\x00\xff\x51\x03\x07\xa1\x20" in data
        assert b"\x00\xff\x03\x04Solo" in data

    def test_single_note_deltas(self, encoder):
        track = read_track_events(encoder.encode([NoteEvent(69, 0.0, 0.5, 1.0)]))

        assert track.format == 0
        assert track.division == 480
        assert track.tempo == 500000
        assert track.deltas == [0, 0, 0, 480, 0]
        on, off = track.events
        assert (on.status, on.note, on.velocity) == (0x90, 69, 127)
        assert (off.status, off.note, off.velocity) == (0x80, 69, 0)

    def test_ticks_per_second(self, encoder):
        assert encoder.tempo_bpm == 120.0
        assert encoder.ticks_per_second == 960.0
        assert encoder.seconds_to_ticks(1.2345) == 1185

    def test_empty_notes(self, encoder, tmp_path):
        assert encoder.encode([]) is None
        assert encoder.write([], str(tmp_path / "none.mid")) is None
        assert not (tmp_path / "none.mid").exists()

    def test_round_trip_within_one_tick(self, encoder):
        notes = [
            NoteEvent(60, 0.0, 0.25),
            NoteEvent(62, 0.2571, 0.3333),
            NoteEvent(64, 1.0001, 0.0625),
        ]
        track = read_track_events(encoder.encode(notes))
        spans = track.note_spans()

        assert [s[0] for s in spans] == [60, 62, 64]
        for note, (_, start, end) in zip(notes, spans):
            assert abs(start - note.start_time * 960) <= 1
            assert abs(end - note.end_time * 960) <= 1

    @pytest.mark.parametrize("velocity,expected", [(0.0, 10), (0.05, 10), (0.5, 63), (1.0, 127)])
    def test_velocity_mapping(self, encoder, velocity, expected):
        events = encoder.expand_events([NoteEvent(60, 0.0, 1.0, velocity)])
        assert events[0].velocity == expected

    def test_note_number_clamped(self, encoder):
        events = encoder.expand_events([NoteEvent(0, 0.0, 1.0), NoteEvent(130, 0.0, 1.0)])
        assert {e.note for e in events} == {1, 127}

    def test_tied_events_keep_order(self, encoder):
        events = encoder.expand_events([NoteEvent(60, 0.0, 0.5), NoteEvent(62, 0.5, 0.5)])
        at_480 = [(e.status, e.note) for e in events if e.tick == 480]
        assert at_480 == [(0x80, 60), (0x90, 62)]

    def test_readable_by_pretty_midi(self, encoder):
        data = encoder.encode([NoteEvent(69, 0.0, 0.5), NoteEvent(72, 0.5, 1.0, 0.5)])
        midi = pretty_midi.PrettyMIDI(io.BytesIO(data))

        parsed = midi.instruments[0].notes
        assert [n.pitch for n in parsed] == [69, 72]
        assert parsed[0].start == pytest.approx(0.0)
        assert parsed[0].end == pytest.approx(0.5)
        assert parsed[1].end == pytest.approx(1.5)

    def test_write(self, encoder, tmp_path):
        path = encoder.write([NoteEvent(69, 0.0, 0.5)], str(tmp_path / "a.mid"))
        assert path.read_bytes() == encoder.encode([NoteEvent(69, 0.0, 0.5)])


class TestReadTrackEvents:
    """Tests for the minimal track parser."""

    def test_running_status(self):
        body = b"\x00\x90\x3c\x64" + b"\x83\x60\x3c\x00" + b"\x00\xff\x2f\x00"
        data = b"MThd" + struct.pack(">IHHH", 6, 0, 1, 480) + b"MTrk" + struct.pack(">I", len(body)) + body
        track = read_track_events(data)

        assert track.deltas == [0, 480, 0]
        assert track.note_spans() == [(60, 0, 480)]

    def test_not_midi(self):
        with pytest.raises(ValueError, match="MThd"):
            read_track_events(b"RIFF0000WAVE")


class TestWavInterop:
    """Rendered WAV files decode with a standard reader."""

    def test_soundfile_reads_float_values(self, tmp_path):
        samples = np.array([0.5, -0.5, 0.25, 0.0])
        path = WavEncoder().write(SampleBuffer(samples, 16000), str(tmp_path / "a.wav"))

        data, rate = sf.read(str(path))
        assert rate == 16000
        np.testing.assert_allclose(data, samples, atol=1e-4)
