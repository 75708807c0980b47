"""Tests for note segmentation."""

import numpy as np
import pytest

from virtuoso.transcription import NoteSegmenter, SegmenterConfig
from virtuoso.transcription.segmentation import median_smooth


def frame_grid(values, frame_duration):
    values = np.asarray(values, dtype=np.int64)
    return values, np.arange(len(values)) * frame_duration


class TestMedianSmooth:
    """Tests for the sliding median."""

    def test_removes_single_frame_glitch(self):
        values = [60] * 10 + [72] + [60] * 10
        np.testing.assert_array_equal(median_smooth(values, 7), [60] * 21)

    def test_removes_dropout(self):
        values = [60] * 10 + [0, 0] + [60] * 10
        np.testing.assert_array_equal(median_smooth(values, 7), [60] * 22)

    def test_edges_use_in_bounds_neighbours(self):
        np.testing.assert_array_equal(median_smooth([1, 2, 3], 7), [2, 2, 2])

    def test_window_one_is_identity(self):
        values = [0, 60, 0, 62]
        np.testing.assert_array_equal(median_smooth(values, 1), values)


class TestSegmenterConfig:
    """Tests for configuration validation."""

    @pytest.mark.parametrize("window", [0, 4, -3])
    def test_window_must_be_positive_odd(self, window):
        with pytest.raises(ValueError, match="Median window"):
            SegmenterConfig(median_window=window)

    def test_velocity_floor_range(self):
        with pytest.raises(ValueError):
            SegmenterConfig(velocity_floor=1.5)


class TestNoteSegmenter:
    """Tests for run grouping and filtering."""

    @pytest.fixture
    def segmenter(self):
        return NoteSegmenter()

    def test_all_silent(self, segmenter):
        values, times = frame_grid([0] * 50, 0.01)
        assert segmenter.segment(values, times, 0.01) == []

    def test_no_frames(self, segmenter):
        assert segmenter.segment([], [], 0.01) == []

    def test_minimum_duration_is_exclusive(self, segmenter):
        values, times = frame_grid([0] * 10 + [69] * 60 + [0] * 10, 0.001)
        assert segmenter.segment(values, times, 0.001) == []

    def test_just_over_minimum_is_kept(self, segmenter):
        values, times = frame_grid([0] * 10 + [69] * 61 + [0] * 10, 0.001)
        notes = segmenter.segment(values, times, 0.001)
        assert len(notes) == 1
        assert notes[0].note_number == 69
        assert notes[0].start_time == pytest.approx(0.010)
        assert notes[0].duration == pytest.approx(0.061)

    def test_open_run_at_end(self, segmenter):
        values, times = frame_grid([0] * 5 + [69] * 100, 0.001)
        notes = segmenter.segment(values, times, 0.001)
        assert len(notes) == 1
        assert notes[0].duration == pytest.approx(0.1)

    def test_short_open_run_at_end_dropped(self, segmenter):
        values, times = frame_grid([0] * 50 + [69] * 50, 0.001)
        assert segmenter.segment(values, times, 0.001) == []

    def test_adjacent_notes(self, segmenter):
        values, times = frame_grid([0] * 10 + [60] * 20 + [62] * 30 + [0] * 10, 0.01)
        notes = segmenter.segment(values, times, 0.01)

        assert [n.note_number for n in notes] == [60, 62]
        assert notes[0].start_time == pytest.approx(0.10)
        assert notes[0].duration == pytest.approx(0.20)
        assert notes[1].start_time == pytest.approx(0.30)
        assert notes[1].duration == pytest.approx(0.30)

    def test_notes_ordered_and_disjoint(self, segmenter):
        values, times = frame_grid([60] * 12 + [64] * 12 + [0] * 8 + [67] * 12, 0.01)
        notes = segmenter.segment(values, times, 0.01)
        for prev, nxt in zip(notes, notes[1:]):
            assert prev.start_time < nxt.start_time
            assert prev.end_time <= nxt.start_time + 1e-9

    def test_resegmenting_own_output_is_stable(self, segmenter):
        fd = 0.01
        values, times = frame_grid([0] * 10 + [60] * 20 + [62] * 30 + [0] * 10, fd)
        first = segmenter.segment(values, times, fd)

        rebuilt = np.zeros(len(values), dtype=np.int64)
        for note in first:
            start = int(round(note.start_time / fd))
            rebuilt[start:start + int(round(note.duration / fd))] = note.note_number
        second = segmenter.segment(rebuilt, times, fd)

        assert second == first

    def test_velocity_without_rms(self, segmenter):
        values, times = frame_grid([69] * 20, 0.01)
        assert segmenter.segment(values, times, 0.01)[0].velocity == 1.0

    @pytest.mark.parametrize(
        "peak,expected",
        [(0.1, 0.4), (0.01, 0.3), (0.5, 1.0)],
    )
    def test_velocity_from_peak_rms(self, segmenter, peak, expected):
        values, times = frame_grid([69] * 20, 0.01)
        rms = np.full(20, peak / 2)
        rms[7] = peak
        notes = segmenter.segment(values, times, 0.01, frame_rms=rms)
        assert notes[0].velocity == pytest.approx(expected)

    def test_length_mismatch(self, segmenter):
        with pytest.raises(ValueError):
            segmenter.segment([60, 60], [0.0], 0.01)
        with pytest.raises(ValueError):
            segmenter.segment([60, 60], [0.0, 0.01], 0.01, frame_rms=[0.1])

    def test_invalid_frame_duration(self, segmenter):
        with pytest.raises(ValueError):
            segmenter.segment([60], [0.0], 0.0)
