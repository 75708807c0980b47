"""Audio loading and preprocessing utilities."""

import logging
from pathlib import Path
from typing import Optional

import librosa
import numpy as np

from ..core import SampleBuffer

logger = logging.getLogger(__name__)


class AudioLoader:
    """Handles audio file loading and preprocessing."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".mp4", ".webm"}

    def __init__(
        self,
        target_sr: Optional[int] = None,
        mono: bool = True,
        normalize: bool = False,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Resample to this rate; None keeps the file's native rate
            mono: Downmix to a single analysis channel if True
            normalize: Peak-normalize the samples if True
        """
        self.target_sr = target_sr
        self.mono = mono
        self.normalize = normalize

    def load(self, path: str) -> SampleBuffer:
        """
        Load an audio file.

        Args:
            path: Path to audio file

        Returns:
            Decoded sample buffer

        Raises:
            ValueError: If the format is unsupported or the file cannot be decoded
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        try:
            audio, sr = librosa.load(str(path), sr=self.target_sr, mono=self.mono)
        except Exception as e:
            raise ValueError(f"Could not decode audio file: {path}") from e

        if audio.size == 0:
            raise ValueError(f"Audio file contains no samples: {path}")

        if self.normalize:
            audio = self._normalize(audio)

        logger.debug("Loaded %s: %d samples at %d Hz", path.name, audio.shape[-1], sr)

        if audio.ndim == 1:
            return SampleBuffer(audio, int(sr))
        # librosa returns (channels, samples)
        return SampleBuffer(audio.T, int(sr), channels=audio.shape[0])

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max()
        if peak > 0:
            audio = audio / peak
        return audio

    def trim_silence(
        self,
        buffer: SampleBuffer,
        threshold: float = 0.005,
        padding: float = 0.05,
    ) -> SampleBuffer:
        """
        Trim leading and trailing silence.

        The first channel decides where sound starts and ends; a short
        padding is kept on both sides.

        Args:
            buffer: Input buffer
            threshold: Absolute amplitude considered sound (about -46 dBFS)
            padding: Seconds kept before the first and after the last loud sample

        Returns:
            Trimmed buffer, or the input itself if nothing would be removed
        """
        first = buffer.samples if buffer.channels == 1 else buffer.samples[:, 0]
        loud = np.flatnonzero(np.abs(first) > threshold)
        if len(loud) == 0:
            return buffer

        pad = int(buffer.sample_rate * padding)
        start = max(0, int(loud[0]) - pad)
        end = min(buffer.n_frames, int(loud[-1]) + 1 + pad)
        if end - start >= buffer.n_frames:
            return buffer

        logger.debug("Trimmed %d samples of silence", buffer.n_frames - (end - start))
        return SampleBuffer(buffer.samples[start:end], buffer.sample_rate, buffer.channels)
