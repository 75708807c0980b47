"""Synthesis layer - Offline instrument rendering.

Each synthesizer turns a note list into a complete mono buffer:
- Reed/brass (saxophone)
- Bowed-string ensemble (violin)
- Electric piano (FM)
"""

from typing import Dict, Type

from .base import RenderContext, ReverbSettings, Synthesizer, Voice
from .dsp import LimiterSettings
from .epiano import ElectricPianoSynthesizer
from .reed import ReedSynthesizer
from .strings import BowedStringSynthesizer

INSTRUMENTS: Dict[str, Type[Synthesizer]] = {
    "sax": ReedSynthesizer,
    "violin": BowedStringSynthesizer,
    "piano": ElectricPianoSynthesizer,
}

ALIASES = {
    "saxophone": "sax",
    "reed": "sax",
    "strings": "violin",
    "epiano": "piano",
}


def get_synthesizer(name: str, limiter: LimiterSettings = None) -> Synthesizer:
    """
    Look up a synthesizer by instrument name.

    Raises:
        ValueError: If the instrument is unknown
    """
    key = name.lower().strip()
    key = ALIASES.get(key, key)
    if key not in INSTRUMENTS:
        raise ValueError(
            f"Unknown instrument: {name}. Available: {', '.join(sorted(INSTRUMENTS))}"
        )
    return INSTRUMENTS[key](limiter=limiter)


__all__ = [
    "RenderContext",
    "ReverbSettings",
    "Synthesizer",
    "Voice",
    "LimiterSettings",
    "ReedSynthesizer",
    "BowedStringSynthesizer",
    "ElectricPianoSynthesizer",
    "INSTRUMENTS",
    "get_synthesizer",
]
