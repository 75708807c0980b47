"""Analysis layer - Low-level signal analysis.

This layer prepares raw audio for note extraction:
- Low-pass conditioning and framing
- RMS gating
- Monophonic pitch detection
"""

from .conditioning import SignalConditioner
from .pitch import PitchDetector

__all__ = [
    "SignalConditioner",
    "PitchDetector",
]
