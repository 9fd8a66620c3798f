"""
Spectrogram Container

A dense (num_steps, num_dims) float32 matrix of perceptual loudness values,
stored row-major:

    [
      [step0_dim0, step0_dim1, ..., step0_dimn],
      [step1_dim0, step1_dim1, ..., step1_dimn],
      ...,
      [stepm_dim0, stepm_dim1, ..., stepm_dimn],
    ]

The shape is fixed at creation. The only in-place mutations are rescale()
and writes through values_mut().
"""

import math
import numbers

import numpy as np
import torch

from .constants import NUM_CHANNELS
from .errors import InvalidInputError


class Spectrogram:
    """
    Perceptual spectrogram with `num_steps` time steps and `num_dims` channels.

    Args:
        num_steps (int): Number of time steps (rows)
        num_dims (int): Number of feature dimensions (columns). Default: 128.
        values (array-like, optional): Initial values, either (num_steps, num_dims)
            or flat with num_steps * num_dims elements. Zero-filled if None.

    Raises:
        InvalidInputError: If the shape arguments are invalid or values do not
            match them

    Example:
        >>> spec = Spectrogram(10)
        >>> print(spec.num_steps, spec.num_dims, spec.size)
        10 128 1280
    """

    def __init__(self, num_steps, num_dims=NUM_CHANNELS, values=None):
        for name, n in (("num_steps", num_steps), ("num_dims", num_dims)):
            if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 0:
                raise InvalidInputError(f"{name} must be a non-negative integer, got {n!r}")
        if num_dims == 0:
            raise InvalidInputError("num_dims must be positive")

        num_steps, num_dims = int(num_steps), int(num_dims)

        if values is None:
            tensor = torch.zeros(num_steps, num_dims, dtype=torch.float32)
        else:
            if isinstance(values, torch.Tensor):
                tensor = values.detach().to(device='cpu', dtype=torch.float32)
            else:
                tensor = torch.as_tensor(np.asarray(values, dtype=np.float32))
            if tensor.numel() != num_steps * num_dims:
                raise InvalidInputError(
                    f"values must hold {num_steps * num_dims} elements for shape "
                    f"({num_steps}, {num_dims}), got {tensor.numel()}"
                )
            tensor = tensor.reshape(num_steps, num_dims).clone().contiguous()

        self._values = tensor

    @classmethod
    def from_tensor(cls, tensor):
        """Wrap a 2-D (num_steps, num_dims) tensor or array, copying its data"""
        if tensor.ndim != 2:
            raise InvalidInputError(
                f"tensor must be 2D (num_steps, num_dims), got {tensor.ndim}D"
            )
        num_steps, num_dims = tensor.shape
        return cls(num_steps, num_dims, values=tensor)

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def num_steps(self):
        return self._values.shape[0]

    @property
    def num_dims(self):
        return self._values.shape[1]

    @property
    def size(self):
        """Total number of values, num_steps * num_dims"""
        return self._values.numel()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def max(self):
        """Largest absolute value across all cells, 0.0 for an empty spectrogram"""
        if self.size == 0:
            return 0.0
        return float(self._values.abs().max())

    def rescale(self, factor):
        """
        Multiply every value by `factor` in place.

        Raises:
            InvalidInputError: If factor is not a finite number
        """
        if isinstance(factor, bool) or not isinstance(factor, numbers.Real):
            raise InvalidInputError(f"factor must be a number, got {type(factor).__name__}")
        if not math.isfinite(factor):
            raise InvalidInputError(f"factor must be finite, got {factor}")
        if factor != 1.0:
            self._values.mul_(float(factor))

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def values(self):
        """Read-only flat view of the values, row-major [step][channel]"""
        view = self._values.view(-1).numpy()
        view.flags.writeable = False
        return view

    def values_mut(self):
        """Writable flat view of the values. Writes update the spectrogram."""
        return self._values.view(-1).numpy()

    def row(self, step):
        """Read-only view of the channel values at one time step"""
        self._check_step(step)
        view = self._values[step].numpy()
        view.flags.writeable = False
        return view

    def to_tensor(self):
        """2-D copy of the values"""
        return self._values.clone()

    def __getitem__(self, index):
        if not isinstance(index, tuple) or len(index) != 2:
            raise TypeError("Spectrogram indices must be (step, channel) tuples")
        step, channel = index
        self._check_step(step)
        if not 0 <= channel < self.num_dims:
            raise IndexError(
                f"channel index {channel} out of range for {self.num_dims} dimensions"
            )
        return float(self._values[step, channel])

    def _check_step(self, step):
        if not 0 <= step < self.num_steps:
            raise IndexError(f"step index {step} out of range for {self.num_steps} steps")

    def __repr__(self):
        return (
            f"Spectrogram(num_steps={self.num_steps}, num_dims={self.num_dims}, "
            f"size={self.size}, max={self.max():.4f})"
        )


def new_spectrogram(num_steps, num_dims=NUM_CHANNELS):
    """
    Create a zero-filled spectrogram.

    Args:
        num_steps (int): Number of time steps
        num_dims (int): Number of channels (default: num_channels())

    Returns:
        Spectrogram: All-zero spectrogram of shape (num_steps, num_dims)
    """
    return Spectrogram(num_steps, num_dims)
