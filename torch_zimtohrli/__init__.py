"""
torch-zimtohrli: Zimtohrli perceptual audio distance

Quantifies the human-observable difference between two audio signals,
focused on just-noticeable differences for audio compression evaluation.

Main API:
    >>> from torch_zimtohrli import new_analyzer
    >>> import numpy as np
    >>>
    >>> # Audio samples should be in range [-1, 1] at 48 kHz
    >>> analyzer = new_analyzer()
    >>> spec_a = analyzer.analyze(np.zeros(48000, dtype=np.float32))
    >>> spec_b = analyzer.analyze(np.zeros(48000, dtype=np.float32))
    >>>
    >>> # 0 = identical, 1 = maximally different
    >>> distance = analyzer.distance(spec_a, spec_b)
    >>> print(f"Perceptual distance: {distance:.4f}")

Pipeline:
    - Rotator bank: 128 ERB-spaced cochlear channels
    - Loudness calibration against full_scale_sine_db
    - Dynamic Time Warping alignment
    - NSIM (Normalized Structural Similarity) scoring

Requirements:
    - Mono samples at 48 kHz with values in [-1, 1]
"""

__version__ = "0.1.0"

# Main API
from .zimtohrli import Analyzer, new_analyzer, zimtohrli_distance
from .spectrogram import Spectrogram, new_spectrogram
from .config import AnalyzerConfig
from .constants import sample_rate, num_channels, SAMPLE_RATE, NUM_CHANNELS
from .errors import ZimtohrliError, InvalidInputError, ConfigurationError

# Core modules (for advanced users)
from .core import (
    RotatorBank,
    get_center_frequencies,
    energy_to_db,
    dtw_path,
    align,
    nsim,
)

__all__ = [
    # Main API
    'Analyzer',
    'new_analyzer',
    'zimtohrli_distance',
    'Spectrogram',
    'new_spectrogram',
    'AnalyzerConfig',
    # Constants
    'sample_rate',
    'num_channels',
    'SAMPLE_RATE',
    'NUM_CHANNELS',
    # Errors
    'ZimtohrliError',
    'InvalidInputError',
    'ConfigurationError',
    # Core modules
    'RotatorBank',
    'get_center_frequencies',
    'energy_to_db',
    'dtw_path',
    'align',
    'nsim',
]
