"""DSP building blocks shared by the instrument synthesizers.

Everything here is a plain function over numpy arrays (or a small settings
dataclass); nothing keeps state between calls.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from scipy import signal

Coefficients = Tuple[np.ndarray, np.ndarray]


# =============================================================================
# Oscillators
# =============================================================================


def phase_from_frequency(frequency, n_samples: int, sample_rate: int) -> np.ndarray:
    """Accumulated phase in cycles for a constant or time-varying frequency."""
    freq = np.broadcast_to(np.asarray(frequency, dtype=np.float64), (n_samples,))
    phase = np.empty(n_samples)
    if n_samples == 0:
        return phase
    phase[0] = 0.0
    np.cumsum(freq[:-1] / sample_rate, out=phase[1:])
    return phase


def sine(phase: np.ndarray) -> np.ndarray:
    return np.sin(2 * np.pi * phase)


def square(phase: np.ndarray) -> np.ndarray:
    return signal.square(2 * np.pi * phase)


def sawtooth(phase: np.ndarray) -> np.ndarray:
    return signal.sawtooth(2 * np.pi * phase)


def white_noise(rng: np.random.Generator, n_samples: int, amplitude: float = 0.5) -> np.ndarray:
    """Uniform white noise in [-amplitude, amplitude)."""
    return rng.uniform(-1.0, 1.0, n_samples) * amplitude


# =============================================================================
# Envelopes
# =============================================================================


def breakpoint_envelope(
    points: Sequence[Tuple[float, float]], n_samples: int, sample_rate: int
) -> np.ndarray:
    """
    Piecewise-linear envelope through (time, value) points.

    Two points at the same time make a step. The value is held after the
    last point.
    """
    times = np.maximum.accumulate(np.array([p[0] for p in points], dtype=np.float64))
    values = np.array([p[1] for p in points], dtype=np.float64)
    t = np.arange(n_samples) / sample_rate
    return np.interp(t, times, values)


def exponential_ramp(
    start: float, end: float, ramp_time: float, n_samples: int, sample_rate: int
) -> np.ndarray:
    """Geometric glide from start to end over ramp_time seconds, then hold end."""
    t = np.arange(n_samples) / sample_rate
    progress = np.clip(t / ramp_time, 0.0, 1.0) if ramp_time > 0 else np.ones(n_samples)
    return start * (end / start) ** progress


# =============================================================================
# Filters (RBJ cookbook biquads)
# =============================================================================


def _biquad_terms(freq: float, q: float, sample_rate: int) -> Tuple[float, float, float]:
    # Keep the centre frequency safely below Nyquist
    freq = float(np.clip(freq, 10.0, 0.45 * sample_rate))
    w0 = 2 * np.pi * freq / sample_rate
    return np.cos(w0), np.sin(w0) / (2 * q), w0


def _normalize(b, a) -> Coefficients:
    b = np.asarray(b, dtype=np.float64)
    a = np.asarray(a, dtype=np.float64)
    return b / a[0], a / a[0]


def lowpass_coefficients(freq: float, q: float, sample_rate: int) -> Coefficients:
    cos_w0, alpha, _ = _biquad_terms(freq, q, sample_rate)
    b = [(1 - cos_w0) / 2, 1 - cos_w0, (1 - cos_w0) / 2]
    a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    return _normalize(b, a)


def highpass_coefficients(freq: float, q: float, sample_rate: int) -> Coefficients:
    cos_w0, alpha, _ = _biquad_terms(freq, q, sample_rate)
    b = [(1 + cos_w0) / 2, -(1 + cos_w0), (1 + cos_w0) / 2]
    a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    return _normalize(b, a)


def bandpass_coefficients(freq: float, q: float, sample_rate: int) -> Coefficients:
    """Band-pass with 0 dB peak gain."""
    cos_w0, alpha, _ = _biquad_terms(freq, q, sample_rate)
    b = [alpha, 0.0, -alpha]
    a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    return _normalize(b, a)


def peaking_coefficients(freq: float, q: float, gain_db: float, sample_rate: int) -> Coefficients:
    cos_w0, alpha, _ = _biquad_terms(freq, q, sample_rate)
    amp = 10 ** (gain_db / 40)
    b = [1 + alpha * amp, -2 * cos_w0, 1 - alpha * amp]
    a = [1 + alpha / amp, -2 * cos_w0, 1 - alpha / amp]
    return _normalize(b, a)


def apply_filter(samples: np.ndarray, coefficients: Coefficients) -> np.ndarray:
    b, a = coefficients
    return signal.lfilter(b, a, samples)


def swept_lowpass(
    samples: np.ndarray,
    cutoff: np.ndarray,
    q: float,
    sample_rate: int,
    block_size: int = 64,
) -> np.ndarray:
    """
    Resonant low-pass whose cutoff follows a per-sample curve.

    Coefficients are updated once per block; the filter state carries
    across blocks.
    """
    out = np.empty(len(samples))
    zi = np.zeros(2)
    for start in range(0, len(samples), block_size):
        stop = min(start + block_size, len(samples))
        b, a = lowpass_coefficients(float(cutoff[start]), q, sample_rate)
        out[start:stop], zi = signal.lfilter(b, a, samples[start:stop], zi=zi)
    return out


# =============================================================================
# Reverb
# =============================================================================


def reverb_impulse(
    rng: np.random.Generator,
    seconds: float,
    sample_rate: int,
    decay_exponent: float = 2.0,
) -> np.ndarray:
    """
    Synthetic impulse response: white noise under (1 - n/length)**decay_exponent.

    Scaled to unit energy so the send gain alone sets the wet level.
    """
    length = max(1, int(sample_rate * seconds))
    n = np.arange(length)
    envelope = (1.0 - n / length) ** decay_exponent
    impulse = rng.uniform(-1.0, 1.0, length) * envelope
    energy = np.sqrt(np.sum(impulse ** 2))
    if energy > 0:
        impulse = impulse / energy
    return impulse


def apply_reverb(dry: np.ndarray, impulse: np.ndarray, send: float) -> np.ndarray:
    """Wet signal only, trimmed to the dry length."""
    if send == 0 or not np.any(dry):
        return np.zeros_like(dry)
    return signal.fftconvolve(dry, impulse)[: len(dry)] * send


# =============================================================================
# Dynamics
# =============================================================================


@dataclass(frozen=True)
class LimiterSettings:
    """Fixed master limiter parameters.

    Attributes:
        threshold_db: Level where gain reduction starts (default: -6)
        knee_db: Soft-knee width (default: 10)
        ratio: Compression ratio above threshold (default: 15)
        attack: Attack time in seconds (default: 0.005)
        release: Release time in seconds (default: 0.1)
    """

    threshold_db: float = -6.0
    knee_db: float = 10.0
    ratio: float = 15.0
    attack: float = 0.005
    release: float = 0.1


def gain_reduction_db(level_db: np.ndarray, settings: LimiterSettings) -> np.ndarray:
    """Static soft-knee gain curve (<= 0 dB)."""
    over = level_db - settings.threshold_db
    slope = 1.0 / settings.ratio - 1.0
    knee = settings.knee_db
    if knee > 0:
        in_knee = slope * (over + knee / 2) ** 2 / (2 * knee)
    else:
        in_knee = np.zeros_like(over)
    return np.where(
        2 * over < -knee,
        0.0,
        np.where(2 * np.abs(over) <= knee, in_knee, slope * over),
    )


def limit(samples: np.ndarray, sample_rate: int, settings: LimiterSettings) -> np.ndarray:
    """
    Feed-forward peak limiter with attack/release smoothing of the gain.

    Silence passes through unchanged.
    """
    if len(samples) == 0 or not np.any(samples):
        return np.array(samples, dtype=np.float64)

    level_db = 20 * np.log10(np.maximum(np.abs(samples), 1e-10))
    target = gain_reduction_db(level_db, settings)

    attack = np.exp(-1.0 / (settings.attack * sample_rate))
    release = np.exp(-1.0 / (settings.release * sample_rate))
    smoothed = np.empty(len(target))
    gain = 0.0
    for i, value in enumerate(target.tolist()):
        coeff = attack if value < gain else release
        gain = coeff * gain + (1.0 - coeff) * value
        smoothed[i] = gain

    return samples * 10 ** (smoothed / 20)
