"""
NSIM Module - Normalized Structural Similarity

Computes a windowed similarity statistic between two time-aligned
spectrograms, analogous to SSIM for images.

For every window the local score is the product of three terms:

    luminance  l = (2 * mu_a * mu_b + C1) / (mu_a^2 + mu_b^2 + C1)
    contrast   c = (2 * sigma_a * sigma_b + C2) / (sigma_a^2 + sigma_b^2 + C2)
    structure  s = (sigma_ab + C3) / (sigma_a * sigma_b + C3)

The global similarity is the mean local score over all windows.

Boundary policy (clip):
    A window of step_window x channel_window cells starts at every cell
    (t, c) and is truncated at the far edges of the grid. Every cell is the
    origin of exactly one window; windows larger than the grid are clipped
    to it rather than rejected.
"""

import numbers

import torch

from ..constants import NSIM_C1, NSIM_C2, NSIM_C3
from ..errors import ConfigurationError, InvalidInputError


def _check_window(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")


def box_mean(values, step_window, channel_window):
    """
    Mean of every clipped window, computed from a 2-D integral image.

    Args:
        values (torch.Tensor): (L, C) grid
        step_window (int): Window extent along the time axis
        channel_window (int): Window extent along the channel axis

    Returns:
        torch.Tensor: (L, C) window means, entry (t, c) for the window
            starting at (t, c)
    """
    steps, channels = values.shape
    device = values.device

    integral = torch.zeros(steps + 1, channels + 1, dtype=values.dtype, device=device)
    integral[1:, 1:] = values.cumsum(dim=0).cumsum(dim=1)

    t0 = torch.arange(steps, device=device)
    t1 = torch.clamp(t0 + step_window, max=steps)
    c0 = torch.arange(channels, device=device)
    c1 = torch.clamp(c0 + channel_window, max=channels)

    sums = (
        integral[t1][:, c1]
        - integral[t0][:, c1]
        - integral[t1][:, c0]
        + integral[t0][:, c0]
    )
    counts = (t1 - t0)[:, None] * (c1 - c0)[None, :]

    return sums / counts.to(values.dtype)


def window_statistics(values_a, values_b, step_window, channel_window):
    """
    Local means, variances and covariance over clipped windows.

    Returns:
        tuple: (mean_a, mean_b, var_a, var_b, cov), each (L, C)
    """
    mean_a = box_mean(values_a, step_window, channel_window)
    mean_b = box_mean(values_b, step_window, channel_window)

    var_a = box_mean(values_a * values_a, step_window, channel_window) - mean_a ** 2
    var_b = box_mean(values_b * values_b, step_window, channel_window) - mean_b ** 2
    cov = box_mean(values_a * values_b, step_window, channel_window) - mean_a * mean_b

    # Cancellation can leave tiny negative variances
    var_a = torch.clamp(var_a, min=0.0)
    var_b = torch.clamp(var_b, min=0.0)

    return mean_a, mean_b, var_a, var_b, cov


def nsim_map(values_a, values_b, step_window, channel_window):
    """
    Local NSIM score of every window.

    Args:
        values_a (torch.Tensor): (L, C) aligned spectrogram, values in [0, 1]
        values_b (torch.Tensor): (L, C) aligned spectrogram, values in [0, 1]
        step_window (int): Window extent along the time axis
        channel_window (int): Window extent along the channel axis

    Returns:
        torch.Tensor: (L, C) float64 local scores
    """
    values_a = values_a.to(torch.float64)
    values_b = values_b.to(torch.float64)

    mean_a, mean_b, var_a, var_b, cov = window_statistics(
        values_a, values_b, step_window, channel_window
    )
    std_a = torch.sqrt(var_a)
    std_b = torch.sqrt(var_b)

    luminance = (2 * mean_a * mean_b + NSIM_C1) / (mean_a ** 2 + mean_b ** 2 + NSIM_C1)
    contrast = (2 * std_a * std_b + NSIM_C2) / (var_a + var_b + NSIM_C2)
    structure = (cov + NSIM_C3) / (std_a * std_b + NSIM_C3)

    return luminance * contrast * structure


def nsim(values_a, values_b, step_window, channel_window):
    """
    Global NSIM similarity between two aligned spectrograms.

    Args:
        values_a (torch.Tensor): (L, C) aligned spectrogram, values in [0, 1]
        values_b (torch.Tensor): (L, C) aligned spectrogram (same shape)
        step_window (int): Window extent along the time axis
        channel_window (int): Window extent along the channel axis

    Returns:
        float: Similarity in [0, 1], 1 for identical inputs

    Raises:
        ConfigurationError: If a window size is not a positive integer
        InvalidInputError: If the inputs are not 2D, differ in shape or are empty

    Notes:
        - Two all-zero inputs score exactly 1
        - An all-zero input against a loud one scores close to 0
    """
    _check_window("step_window", step_window)
    _check_window("channel_window", channel_window)

    if values_a.ndim != 2 or values_a.shape != values_b.shape:
        raise InvalidInputError(
            f"values_a and values_b must be 2D with the same shape, "
            f"got {tuple(values_a.shape)} and {tuple(values_b.shape)}"
        )
    if values_a.numel() == 0:
        raise InvalidInputError("cannot compute NSIM of empty spectrograms")

    score = nsim_map(values_a, values_b, step_window, channel_window).mean()
    return float(torch.clamp(score, min=0.0, max=1.0))
