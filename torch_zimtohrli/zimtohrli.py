"""
Zimtohrli Main Module

Perceptual audio distance: converts 48 kHz mono signals into perceptual
spectrograms and compares them with DTW-aligned NSIM.
"""

import warnings

from .config import AnalyzerConfig
from .constants import NUM_CHANNELS
from .core.rotators import RotatorBank, spectrogram_steps
from .core.loudness import energy_to_db
from .core.dtw import align
from .core.nsim import nsim
from .spectrogram import Spectrogram
from .utils import validate_and_convert_signal, validate_spectrogram_pair


class Analyzer:
    """
    Psychoacoustic analyzer: configuration plus rotator bank.

    Converts audio signals to perceptual spectrograms and computes perceptual
    distances between them.

    Args:
        config (AnalyzerConfig, optional): Configuration to use. A new one
            with default values is created if None.

    Thread-safety:
        Not thread-safe. Use one analyzer per thread or guard it with a lock.

    Example:
        >>> analyzer = Analyzer()
        >>> spec_a = analyzer.analyze(np.zeros(48000, dtype=np.float32))
        >>> spec_b = analyzer.analyze(np.zeros(48000, dtype=np.float32))
        >>> print(analyzer.distance(spec_a, spec_b))
        0.0
    """

    def __init__(self, config=None):
        self.config = config if config is not None else AnalyzerConfig()
        self._bank = RotatorBank(num_channels=NUM_CHANNELS)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def step_window(self):
        """NSIM window size along the time axis (steps). Default: 8."""
        return self.config.step_window

    @step_window.setter
    def step_window(self, value):
        self.config.step_window = value

    @property
    def channel_window(self):
        """NSIM window size along the frequency axis (channels). Default: 5."""
        return self.config.channel_window

    @channel_window.setter
    def channel_window(self, value):
        self.config.channel_window = value

    @property
    def perceptual_sample_rate(self):
        """Time resolution of output spectrograms in Hz. Default: 85."""
        return self.config.perceptual_sample_rate

    @perceptual_sample_rate.setter
    def perceptual_sample_rate(self, value):
        self.config.perceptual_sample_rate = value

    @property
    def full_scale_sine_db(self):
        """dB level of a sine wave with amplitude 1.0. Default: 78.3."""
        return self.config.full_scale_sine_db

    @full_scale_sine_db.setter
    def full_scale_sine_db(self, value):
        self.config.full_scale_sine_db = value

    @property
    def dtw_band(self):
        """Sakoe-Chiba band radius for alignment, None for unconstrained."""
        return self.config.dtw_band

    @dtw_band.setter
    def dtw_band(self, value):
        self.config.dtw_band = value

    @property
    def frequencies(self):
        """Center frequencies of the rotator bank in Hz"""
        return self._bank.frequencies.copy()

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def spectrogram_steps(self, num_samples):
        """
        Number of time steps in the spectrogram of a signal.

        Args:
            num_samples (int): Number of samples in the input signal

        Returns:
            int: round(num_samples * perceptual_sample_rate / 48000), 0 for
                an empty signal
        """
        return spectrogram_steps(num_samples, self.config.perceptual_sample_rate)

    def analyze(self, signal):
        """
        Compute the perceptual spectrogram of a signal.

        Args:
            signal (np.ndarray, torch.Tensor, list): Mono samples at 48 kHz,
                values in [-1, 1] where 1 is full scale

        Returns:
            Spectrogram: (spectrogram_steps(len(signal)), 128) loudness levels.
                Empty signals give zero steps, silence gives all zeros.

        Raises:
            TypeError: If signal has an unsupported type
            InvalidInputError: If signal is not 1D or holds NaN/Inf
        """
        samples = validate_and_convert_signal(signal)
        num_steps = self.spectrogram_steps(len(samples))

        energy = self._bank.channel_energy(samples, num_steps)
        levels = energy_to_db(energy, self.config.full_scale_sine_db)

        return Spectrogram(num_steps, NUM_CHANNELS, values=levels)

    def distance(self, spec_a, spec_b):
        """
        Perceptual distance between two spectrograms.

        Both spectrograms are rescaled in place by the inverse of their joint
        maximum, then aligned with DTW and compared with NSIM. The rescale is
        applied only when the computation succeeds.

        Args:
            spec_a (Spectrogram): First spectrogram (normalized in place)
            spec_b (Spectrogram): Second spectrogram (normalized in place)

        Returns:
            float: Distance in [0, 1], 0 for identical inputs and 1 when no
                comparison is possible (either spectrogram has zero steps)

        Raises:
            TypeError: If an argument is not a Spectrogram
            InvalidInputError: If the channel dimensions differ, spec_a and
                spec_b are the same object, or either holds NaN/Inf
        """
        steps_a, steps_b, _ = validate_spectrogram_pair(spec_a, spec_b)

        if steps_a == 0 or steps_b == 0:
            warnings.warn(
                f'Cannot compare spectrograms with {steps_a} and {steps_b} steps. '
                f'Returning maximal distance 1.0.',
                RuntimeWarning,
                stacklevel=2
            )
            return 1.0

        peak = max(spec_a.max(), spec_b.max())
        scale = 1.0 / peak if peak > 0 else 1.0

        values_a = spec_a.to_tensor().mul_(scale)
        values_b = spec_b.to_tensor().mul_(scale)

        aligned_a, aligned_b = align(values_a, values_b, band=self.config.dtw_band)
        similarity = nsim(
            aligned_a, aligned_b,
            step_window=self.config.step_window,
            channel_window=self.config.channel_window
        )

        spec_a.rescale(scale)
        spec_b.rescale(scale)

        return min(max(1.0 - similarity, 0.0), 1.0)

    def __repr__(self):
        return (
            f"Analyzer(step_window={self.step_window}, "
            f"channel_window={self.channel_window}, "
            f"perceptual_sample_rate={self.perceptual_sample_rate}, "
            f"full_scale_sine_db={self.full_scale_sine_db})"
        )


def new_analyzer():
    """Create an analyzer with default settings"""
    return Analyzer()


def zimtohrli_distance(signal_a, signal_b, analyzer=None):
    """
    Perceptual distance between two signals.

    Analyzes both signals and compares the resulting spectrograms.

    Args:
        signal_a (np.ndarray, torch.Tensor, list): Reference samples at 48 kHz
        signal_b (np.ndarray, torch.Tensor, list): Degraded samples at 48 kHz.
            May differ in length from signal_a.
        analyzer (Analyzer, optional): Analyzer to use (default: new_analyzer())

    Returns:
        float: Distance in [0, 1], 0 for perceptually identical signals

    Example:
        >>> import numpy as np
        >>> t = np.arange(48000) / 48000
        >>> clean = 0.5 * np.sin(2 * np.pi * 440 * t)
        >>> noisy = clean + 0.01 * np.random.randn(48000)
        >>> d = zimtohrli_distance(clean, noisy)
        >>> print(f"Zimtohrli: {d:.4f}")
    """
    if analyzer is None:
        analyzer = new_analyzer()

    spec_a = analyzer.analyze(signal_a)
    spec_b = analyzer.analyze(signal_b)
    return analyzer.distance(spec_a, spec_b)
