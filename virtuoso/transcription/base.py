"""Base classes for transcription."""

from abc import ABC, abstractmethod
from typing import List

from ..core import NoteEvent, SampleBuffer


class Transcriber(ABC):
    """Abstract base class for audio transcription."""

    @abstractmethod
    def transcribe(self, audio: SampleBuffer) -> List[NoteEvent]:
        """
        Transcribe audio to notes.

        Args:
            audio: Input sample buffer

        Returns:
            List of detected notes, ordered by start time
        """
        pass
