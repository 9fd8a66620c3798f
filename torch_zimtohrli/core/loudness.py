"""
Loudness Calibration Module

Maps raw channel energies to perceptual levels in dB. A full-scale sine
(energy 0.5) maps to `full_scale_sine_db`; levels are clamped at 0 dB and
silence is exactly zero, so every value is non-negative.
"""

import numpy as np
import torch

from ..constants import FULL_SCALE_SINE_ENERGY, DB_EPSILON


def energy_to_db(energy, full_scale_sine_db, db_epsilon=DB_EPSILON):
    """
    Convert channel energies to calibrated, non-negative dB levels.

        level = max(0, full_scale_sine_db + 10 * log10(energy / 0.5 + eps))

    Args:
        energy (np.ndarray or torch.Tensor): Non-negative energies, any shape
        full_scale_sine_db (float): dB level of a sine with amplitude 1.0
        db_epsilon (float): Added to the normalized energy before the log

    Returns:
        torch.Tensor: float32 levels with the same shape as `energy`
    """
    if isinstance(energy, np.ndarray):
        energy = torch.from_numpy(energy)
    energy = energy.to(torch.float64)

    if torch.any(energy < 0):
        raise ValueError("energy must be non-negative")

    levels = full_scale_sine_db + 10.0 * torch.log10(
        energy / FULL_SCALE_SINE_ENERGY + db_epsilon
    )
    # Silence stays at 0 dB whatever the calibration
    levels = torch.where(energy > 0, levels, torch.zeros_like(levels))
    return torch.clamp(levels, min=0.0).to(torch.float32)
