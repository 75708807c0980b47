"""Tests for audio and note file loading."""

import numpy as np
import pytest
import soundfile as sf

from virtuoso.core import NoteEvent, SampleBuffer
from virtuoso.input import AudioLoader, load_note_events
from virtuoso.output import MidiEncoder, WavEncoder

SR = 8000


def tone(duration: float, freq: float = 440.0, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(SR * duration)) / SR
    return amplitude * np.sin(2 * np.pi * freq * t)


class TestAudioLoader:
    """Tests for AudioLoader."""

    def test_load_wav(self, tmp_path):
        path = tmp_path / "tone.wav"
        sf.write(str(path), tone(0.5), SR)
        audio = AudioLoader().load(str(path))

        assert audio.sample_rate == SR
        assert audio.channels == 1
        assert audio.n_frames == SR // 2
        np.testing.assert_allclose(audio.samples, tone(0.5), atol=1e-3)

    def test_load_stereo_keeps_channels(self, tmp_path):
        data = np.stack([tone(0.25), -tone(0.25)], axis=1)
        path = WavEncoder().write(SampleBuffer(data, SR, channels=2), str(tmp_path / "st.wav"))

        stereo = AudioLoader(mono=False).load(str(path))
        assert stereo.channels == 2
        assert stereo.n_frames == SR // 4

        mono = AudioLoader().load(str(path))
        assert mono.channels == 1
        assert mono.peak() < 1e-3

    def test_resample(self, tmp_path):
        path = tmp_path / "tone.flac"
        sf.write(str(path), tone(0.5), SR)
        audio = AudioLoader(target_sr=16000).load(str(path))
        assert audio.sample_rate == 16000
        assert audio.duration == pytest.approx(0.5, abs=0.01)

    def test_normalize(self):
        loader = AudioLoader()
        audio = np.array([0.5, -0.5, 0.25, -0.25])
        normalized = loader._normalize(audio)

        assert np.abs(normalized).max() == 1.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AudioLoader().load(str(tmp_path / "missing.wav"))

    def test_unsupported_format(self, tmp_path):
        dummy_file = tmp_path / "test.xyz"
        dummy_file.write_text("dummy content")

        loader = AudioLoader()
        with pytest.raises(ValueError, match="Unsupported format"):
            loader.load(str(dummy_file))

    def test_undecodable_file(self, tmp_path):
        bad = tmp_path / "x.wav"
        bad.write_bytes(b"this is not audio" * 64)

        with pytest.raises(ValueError, match="Could not decode"):
            AudioLoader().load(str(bad))

    def test_trim_silence(self):
        data = np.concatenate([np.zeros(SR), tone(0.5), np.zeros(SR)])
        trimmed = AudioLoader().trim_silence(SampleBuffer(data, SR))
        assert trimmed.duration == pytest.approx(0.6, abs=0.01)

    def test_trim_all_silent_returns_input(self):
        buf = SampleBuffer(np.zeros(SR), SR)
        assert AudioLoader().trim_silence(buf) is buf

    def test_trim_nothing_to_remove(self):
        buf = SampleBuffer(tone(0.5), SR)
        assert AudioLoader().trim_silence(buf) is buf


class TestLoadNoteEvents:
    """Tests for reading MIDI note files."""

    def test_reads_encoded_notes(self, tmp_path):
        notes = [NoteEvent(69, 0.0, 0.5), NoteEvent(72, 0.5, 0.25, 0.5)]
        path = MidiEncoder().write(notes, str(tmp_path / "melody.mid"))

        loaded = load_note_events(str(path))
        assert [n.note_number for n in loaded] == [69, 72]
        assert loaded[0].start_time == pytest.approx(0.0)
        assert loaded[0].duration == pytest.approx(0.5)
        assert loaded[0].velocity == pytest.approx(1.0)
        assert loaded[1].start_time == pytest.approx(0.5)
        assert loaded[1].velocity == pytest.approx(63 / 127)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_note_events(str(tmp_path / "missing.mid"))

    def test_unreadable_midi(self, tmp_path):
        bad = tmp_path / "x.mid"
        bad.write_bytes(b"not a midi file")

        with pytest.raises(ValueError, match="Could not parse"):
            load_note_events(str(bad))
