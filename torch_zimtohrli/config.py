"""
Analyzer Configuration

Tunable parameters read by the rotator bank (time resolution, loudness
calibration), the temporal aligner (band radius) and the NSIM scorer
(window sizes). Values are read at call time, so changing them never
affects spectrograms that were already produced.
"""

import math
import numbers

from .constants import (
    SAMPLE_RATE,
    DEFAULT_STEP_WINDOW,
    DEFAULT_CHANNEL_WINDOW,
    DEFAULT_PERCEPTUAL_SAMPLE_RATE,
    DEFAULT_FULL_SCALE_SINE_DB,
)
from .errors import ConfigurationError


def _validate_window(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return int(value)


def _validate_finite(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    return float(value)


class AnalyzerConfig:
    """
    Engine configuration owned by a single analyzer.

    Attributes:
        step_window (int): NSIM window size along the time axis. Default: 8.
        channel_window (int): NSIM window size along the frequency axis. Default: 5.
        perceptual_sample_rate (float): Spectrogram time resolution in Hz. Default: 85.
        full_scale_sine_db (float): dB level assigned to a sine of amplitude 1.0.
            Default: 78.3.
        dtw_band (int or None): Sakoe-Chiba band radius in steps for the temporal
            aligner, None for an unconstrained alignment. Default: None.

    Raises:
        ConfigurationError: When a setter receives an invalid value
    """

    def __init__(self):
        self._step_window = DEFAULT_STEP_WINDOW
        self._channel_window = DEFAULT_CHANNEL_WINDOW
        self._perceptual_sample_rate = DEFAULT_PERCEPTUAL_SAMPLE_RATE
        self._full_scale_sine_db = DEFAULT_FULL_SCALE_SINE_DB
        self._dtw_band = None

    @property
    def step_window(self):
        return self._step_window

    @step_window.setter
    def step_window(self, value):
        self._step_window = _validate_window("step_window", value)

    @property
    def channel_window(self):
        return self._channel_window

    @channel_window.setter
    def channel_window(self, value):
        self._channel_window = _validate_window("channel_window", value)

    @property
    def perceptual_sample_rate(self):
        return self._perceptual_sample_rate

    @perceptual_sample_rate.setter
    def perceptual_sample_rate(self, value):
        value = _validate_finite("perceptual_sample_rate", value)
        # Each step must average at least one sample
        if value <= 0 or value > SAMPLE_RATE:
            raise ConfigurationError(
                f"perceptual_sample_rate must be in (0, {SAMPLE_RATE}] Hz, got {value}"
            )
        self._perceptual_sample_rate = value

    @property
    def full_scale_sine_db(self):
        return self._full_scale_sine_db

    @full_scale_sine_db.setter
    def full_scale_sine_db(self, value):
        self._full_scale_sine_db = _validate_finite("full_scale_sine_db", value)

    @property
    def dtw_band(self):
        return self._dtw_band

    @dtw_band.setter
    def dtw_band(self, value):
        if value is None:
            self._dtw_band = None
            return
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise ConfigurationError(
                f"dtw_band must be an integer or None, got {type(value).__name__}"
            )
        if value < 0:
            raise ConfigurationError(f"dtw_band must be non-negative, got {value}")
        self._dtw_band = int(value)

    def __repr__(self):
        return (
            f"AnalyzerConfig(step_window={self._step_window}, "
            f"channel_window={self._channel_window}, "
            f"perceptual_sample_rate={self._perceptual_sample_rate}, "
            f"full_scale_sine_db={self._full_scale_sine_db}, "
            f"dtw_band={self._dtw_band})"
        )
