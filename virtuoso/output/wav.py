"""Uncompressed 16-bit PCM WAV export."""

import struct
from pathlib import Path

import numpy as np

from ..core import SampleBuffer

PCM_FORMAT_TAG = 1
BITS_PER_SAMPLE = 16
FMT_CHUNK_SIZE = 16
HEADER_SIZE = 44


class WavEncoder:
    """Serialize sample buffers as RIFF/WAVE linear PCM."""

    def encode(self, buffer: SampleBuffer) -> bytes:
        """
        Encode a buffer to WAV bytes.

        Samples are clamped to [-1, 1]; negative values scale by 32768 and
        non-negative ones by 32767, truncating toward zero.

        Args:
            buffer: Mono or interleaved multi-channel buffer

        Returns:
            Complete WAV file contents
        """
        pcm = self.to_pcm16(buffer.samples).tobytes()
        block_align = buffer.channels * BITS_PER_SAMPLE // 8
        byte_rate = buffer.sample_rate * block_align

        header = struct.pack(
            "<4sI4s4sIHHIIHH4sI",
            b"RIFF",
            HEADER_SIZE - 8 + len(pcm),
            b"WAVE",
            b"fmt ",
            FMT_CHUNK_SIZE,
            PCM_FORMAT_TAG,
            buffer.channels,
            buffer.sample_rate,
            byte_rate,
            block_align,
            BITS_PER_SAMPLE,
            b"data",
            len(pcm),
        )
        return header + pcm

    @staticmethod
    def to_pcm16(samples: np.ndarray) -> np.ndarray:
        """Asymmetric float -> int16 conversion, interleaved row by row."""
        clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
        scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
        return np.trunc(scaled).astype("<i2")

    def write(self, buffer: SampleBuffer, output_path: str) -> Path:
        """Encode and save to disk, creating parent directories."""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.encode(buffer))
        return path
