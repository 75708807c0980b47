"""Core types and constants for Virtuoso."""

from .note import NoteEvent
from .buffer import SampleBuffer
from .constants import (
    PITCH_NAMES,
    DEFAULT_OUTPUT_SR,
    DEFAULT_HOP_SIZE,
    DEFAULT_WINDOW_SIZE,
    TAIL_MARGIN,
)

__all__ = [
    "NoteEvent",
    "SampleBuffer",
    "PITCH_NAMES",
    "DEFAULT_OUTPUT_SR",
    "DEFAULT_HOP_SIZE",
    "DEFAULT_WINDOW_SIZE",
    "TAIL_MARGIN",
]
