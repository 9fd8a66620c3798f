"""
Zimtohrli Core Modules

Processing stages of the perceptual distance:

Modules:
  Rotators   - Cochlear filter bank (scipy.signal)
  Loudness   - dB calibration against full_scale_sine_db
  DTW        - Temporal alignment of two spectrograms
  NSIM       - Windowed structural similarity of the aligned pair
"""

from .rotators import (
    RotatorBank,
    get_center_frequencies,
    spectrogram_steps,
    fc2erb,
    erb2fc,
)
from .loudness import energy_to_db
from .dtw import compute_cost_matrix, dtw_path, align
from .nsim import nsim, nsim_map, box_mean

__all__ = [
    # Filter bank
    'RotatorBank',              # Rotator bank
    'get_center_frequencies',   # ERB-spaced center frequencies
    'spectrogram_steps',        # Output step count
    'fc2erb',                   # Hz to ERB-rate
    'erb2fc',                   # ERB-rate to Hz
    'energy_to_db',             # Loudness calibration
    # Alignment
    'compute_cost_matrix',      # Pairwise step costs
    'dtw_path',                 # Optimal alignment path
    'align',                    # Warp both sequences onto the path
    # Similarity
    'nsim',                     # Global NSIM
    'nsim_map',                 # Local NSIM scores
    'box_mean',                 # Clipped window means
]
