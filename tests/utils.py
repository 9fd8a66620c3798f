"""
Test Utilities

Helper functions for Zimtohrli tests:
- Test signal generation (sines, harmonic tones, noise)
- Noise mixing at a given level or SNR
"""

import numpy as np
import torch

from torch_zimtohrli import SAMPLE_RATE

DEFAULT_SEED = 42


def generate_sine(freq: float, duration: float, amplitude: float = 1.0,
                  fs: float = SAMPLE_RATE) -> np.ndarray:
    """
    Generate a sine wave.

    Args:
        freq: Frequency in Hz
        duration: Duration in seconds
        amplitude: Peak amplitude (1.0 is full scale)
        fs: Sampling rate

    Returns:
        float32 samples
    """
    t = np.arange(int(fs * duration)) / fs
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def generate_test_signal(duration: float = 1.0, seed: int = DEFAULT_SEED,
                         fs: float = SAMPLE_RATE) -> np.ndarray:
    """
    Generate a broadband music-like test signal.

    A decaying harmonic tone with a vibrato plus a low-level noise floor,
    so every channel of the spectrogram carries some energy.

    Args:
        duration: Duration in seconds
        seed: Random seed for the noise floor
        fs: Sampling rate

    Returns:
        float32 samples in [-1, 1]
    """
    rng = np.random.default_rng(seed)
    num_samples = int(fs * duration)
    t = np.arange(num_samples) / fs

    fundamental = 220.0 * (1 + 0.01 * np.sin(2 * np.pi * 5 * t))
    phase = 2 * np.pi * np.cumsum(fundamental) / fs
    tone = sum(
        np.sin(k * phase) / k for k in range(1, 12)
    ) * np.exp(-1.5 * t)

    signal = 0.3 * tone + 0.01 * rng.standard_normal(num_samples)
    return np.clip(signal, -1.0, 1.0).astype(np.float32)


def generate_white_noise(duration: float, level: float = 0.1,
                         seed: int = DEFAULT_SEED,
                         fs: float = SAMPLE_RATE) -> np.ndarray:
    """
    Generate white Gaussian noise.

    Args:
        duration: Duration in seconds
        level: Standard deviation
        seed: Random seed
        fs: Sampling rate

    Returns:
        float32 samples
    """
    rng = np.random.default_rng(seed)
    return (level * rng.standard_normal(int(fs * duration))).astype(np.float32)


def add_noise(clean: np.ndarray, level: float, seed: int = DEFAULT_SEED) -> np.ndarray:
    """
    Add independent white noise with the given standard deviation.

    Args:
        clean: Clean signal
        level: Noise standard deviation
        seed: Random seed

    Returns:
        Noisy float32 signal
    """
    rng = np.random.default_rng(seed + 1)
    noise = level * rng.standard_normal(len(clean))
    return (clean + noise).astype(np.float32)


def add_noise_at_snr(clean: torch.Tensor, noise: torch.Tensor, snr_db: float) -> torch.Tensor:
    """
    Add noise to clean signal at specified SNR level.

    Args:
        clean: Clean signal tensor, shape (samples,)
        noise: Noise signal tensor, same shape as clean
        snr_db: Desired Signal-to-Noise Ratio in dB

    Returns:
        Noisy signal with specified SNR
    """
    signal_power = torch.mean(clean ** 2)
    noise_power = torch.mean(noise ** 2)

    snr_linear = 10 ** (snr_db / 10)
    noise_scale = torch.sqrt(signal_power / (noise_power * snr_linear))

    return clean + noise_scale * noise
