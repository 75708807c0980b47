"""Global constants for Virtuoso."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Tuning reference (equal temperament)
A4_FREQUENCY = 440.0
A4_MIDI = 69

# Analysis defaults
DEFAULT_WINDOW_SIZE = 1024
DEFAULT_HOP_SIZE = 256
DEFAULT_CUTOFF_HZ = 700.0
DEFAULT_RMS_GATE = 0.02
DEFAULT_SILENCE_THRESHOLD = 0.01
DEFAULT_MIN_FREQ = 75.0
DEFAULT_MAX_FREQ = 1200.0
DEFAULT_OCTAVE_TOLERANCE = 0.2  # fraction of frame RMS

# Accepted note range for extraction (C2 - C7)
EXTRACTION_MIN_NOTE = 36
EXTRACTION_MAX_NOTE = 96

# Segmentation defaults
DEFAULT_MEDIAN_WINDOW = 7
DEFAULT_MIN_NOTE_DURATION = 0.06  # 60 ms, strict
DEFAULT_VELOCITY_SCALE = 4.0
DEFAULT_VELOCITY_FLOOR = 0.3

# Synthesis defaults
DEFAULT_OUTPUT_SR = 44100
TAIL_MARGIN = 2.0  # seconds of release/reverb tail after the input duration
MASTER_GAIN = 0.9

# MIDI ranges and timing
MIDI_MAX = 127
ENCODE_MIN_NOTE = 1
ENCODE_MAX_NOTE = 127
TICKS_PER_QUARTER = 480
TEMPO_US_PER_QUARTER = 500000  # 120 BPM
MIN_MIDI_VELOCITY = 10
