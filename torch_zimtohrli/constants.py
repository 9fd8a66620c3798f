"""
Zimtohrli Constants

Fixed engine parameters and configuration defaults.
Filter-bank and NSIM constants are shared by every analyzer instance.
"""

# ============================================================================
# Basic Parameters
# ============================================================================

SAMPLE_RATE = 48000.0   # Expected input sampling frequency (Hz)
NUM_CHANNELS = 128      # Number of rotators (frequency channels)

# ============================================================================
# Configuration Defaults
# ============================================================================

DEFAULT_STEP_WINDOW = 8                 # NSIM window along time (steps)
DEFAULT_CHANNEL_WINDOW = 5              # NSIM window along frequency (channels)
DEFAULT_PERCEPTUAL_SAMPLE_RATE = 85.0   # Spectrogram time resolution (Hz)
DEFAULT_FULL_SCALE_SINE_DB = 78.3       # dB SPL of a sine with amplitude 1.0

# ============================================================================
# Rotator Bank
# ============================================================================

MIN_FREQUENCY = 20.0        # Center frequency of the lowest channel (Hz)
MAX_FREQUENCY = 20000.0     # Center frequency of the highest channel (Hz)
FILTER_ORDER = 4            # Number of cascaded resonators per channel
ERB_BANDWIDTH_FACTOR = 1.019  # Gammatone bandwidth relative to one ERB

# Mean square of a full-scale sine, the energy that maps to full_scale_sine_db
FULL_SCALE_SINE_ENERGY = 0.5

# Added to normalized energy before the log, keeps silence finite
DB_EPSILON = 1e-10

# ============================================================================
# NSIM
# ============================================================================

# Stabilizing constants for a unit dynamic range
NSIM_C1 = 0.01 ** 2
NSIM_C2 = 0.03 ** 2
NSIM_C3 = NSIM_C2 / 2


def sample_rate():
    """Expected sample rate of input audio (48000 Hz)"""
    return SAMPLE_RATE


def num_channels():
    """Number of frequency channels in every analyzer spectrogram (128)"""
    return NUM_CHANNELS


# ============================================================================
# Testing
# ============================================================================

if __name__ == '__main__':
    print(f"Sample rate:      {sample_rate()} Hz")
    print(f"Channels:         {num_channels()}")
    print(f"Frequency range:  {MIN_FREQUENCY} - {MAX_FREQUENCY} Hz")
    print(f"NSIM constants:   C1={NSIM_C1:.2e}, C2={NSIM_C2:.2e}, C3={NSIM_C3:.2e}")
