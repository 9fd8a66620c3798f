"""
Common Utility Functions for Zimtohrli

Reusable validation and conversion helpers shared by the analyzer, the
spectrogram container and the core modules.

Utilities:
    - Signal validation and type conversion
    - Spectrogram pair validation
"""

import warnings
from typing import Sequence, Tuple, Union

import numpy as np
import torch

from .errors import InvalidInputError

SignalLike = Union[np.ndarray, torch.Tensor, Sequence[float]]


def validate_and_convert_signal(
    signal: SignalLike,
    param_name: str = "signal"
) -> np.ndarray:
    """
    Validate an input signal and convert it to a float64 numpy array.

    Args:
        signal: Mono samples at 48 kHz, nominally in [-1, 1]
        param_name: Name of the parameter for error messages

    Returns:
        np.ndarray: 1-D float64 copy of the samples

    Raises:
        TypeError: If signal is not a sequence, np.ndarray or torch.Tensor
        InvalidInputError: If signal is not 1-D or contains NaN/Inf

    Example:
        >>> x = validate_and_convert_signal([0.0, 0.5, -0.5])
        >>> print(x.dtype, x.shape)
        float64 (3,)
    """
    if isinstance(signal, torch.Tensor):
        samples = signal.detach().cpu().to(torch.float64).numpy()
    elif isinstance(signal, np.ndarray):
        samples = signal.astype(np.float64)
    elif isinstance(signal, (list, tuple)):
        samples = np.asarray(signal, dtype=np.float64)
    else:
        raise TypeError(
            f"{param_name} must be np.ndarray, torch.Tensor, list or tuple, "
            f"got {type(signal).__name__}"
        )

    if samples.ndim != 1:
        raise InvalidInputError(
            f"{param_name} must be 1D (samples,), got {samples.ndim}D "
            f"with shape {samples.shape}"
        )

    if samples.size == 0:
        return samples

    if not np.all(np.isfinite(samples)):
        raise InvalidInputError(f"{param_name} contains NaN or Inf values")

    peak = np.max(np.abs(samples))
    if peak > 1.0:
        warnings.warn(
            f"{param_name} peak amplitude {peak:.3f} exceeds full scale (1.0). "
            f"Levels above full_scale_sine_db will be reported.",
            UserWarning,
            stacklevel=3
        )

    return samples


def validate_spectrogram_pair(spec_a, spec_b) -> Tuple[int, int, int]:
    """
    Check that two spectrograms can be compared.

    Args:
        spec_a: First spectrogram
        spec_b: Second spectrogram

    Returns:
        Tuple (steps_a, steps_b, dims)

    Raises:
        TypeError: If either argument is not a Spectrogram
        InvalidInputError: If the channel dimensions differ, both arguments
            are the same object, or either holds NaN/Inf
    """
    from .spectrogram import Spectrogram

    for name, spec in (("spec_a", spec_a), ("spec_b", spec_b)):
        if not isinstance(spec, Spectrogram):
            raise TypeError(f"{name} must be Spectrogram, got {type(spec).__name__}")

    if spec_a.num_dims != spec_b.num_dims:
        raise InvalidInputError(
            f"spec_a and spec_b must have the same number of dimensions, "
            f"got {spec_a.num_dims} and {spec_b.num_dims}"
        )

    if spec_a is spec_b:
        raise InvalidInputError(
            "spec_a and spec_b must be distinct spectrograms, both are "
            "rescaled in place"
        )

    for name, spec in (("spec_a", spec_a), ("spec_b", spec_b)):
        if not np.all(np.isfinite(spec.values())):
            raise InvalidInputError(f"{name} contains NaN or Inf values")

    return spec_a.num_steps, spec_b.num_steps, spec_a.num_dims
