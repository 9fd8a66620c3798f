"""
Rotator Bank and Loudness Tests

1. Center frequency layout
2. Step count formula
3. Channel selectivity and loudness calibration
4. Degenerate inputs
"""

import numpy as np
import pytest
import torch

from torch_zimtohrli import SAMPLE_RATE, NUM_CHANNELS
from torch_zimtohrli.constants import MIN_FREQUENCY, MAX_FREQUENCY, DEFAULT_FULL_SCALE_SINE_DB
from torch_zimtohrli.core.rotators import (
    RotatorBank,
    get_center_frequencies,
    spectrogram_steps,
    step_boundaries,
    fc2erb,
    erb2fc,
)
from torch_zimtohrli.core.loudness import energy_to_db
from tests.utils import generate_sine, generate_white_noise


@pytest.fixture(scope="module")
def bank():
    return RotatorBank()


def test_center_frequencies():
    """Channels span the audible range, denser at low frequencies"""
    freqs = get_center_frequencies()

    assert freqs.shape == (NUM_CHANNELS,)
    assert freqs[0] == pytest.approx(MIN_FREQUENCY)
    assert freqs[-1] == pytest.approx(MAX_FREQUENCY)
    assert np.all(np.diff(freqs) > 0)
    # Spacing in Hz grows with frequency
    assert np.all(np.diff(np.diff(freqs)) > 0)
    # ...but is uniform on the ERB-rate scale
    np.testing.assert_allclose(np.diff(fc2erb(freqs)), np.diff(fc2erb(freqs))[0], rtol=1e-9)


def test_erb_roundtrip():
    f = np.array([20.0, 100.0, 1000.0, 8000.0, 20000.0])
    np.testing.assert_allclose(erb2fc(fc2erb(f)), f, rtol=1e-10)


def test_invalid_frequency_range():
    with pytest.raises(ValueError):
        get_center_frequencies(min_freq=1000.0, max_freq=100.0)
    with pytest.raises(ValueError):
        get_center_frequencies(num_channels=0)


def test_spectrogram_steps():
    assert spectrogram_steps(0, 85.0) == 0
    assert spectrogram_steps(48000, 85.0) == 85
    assert spectrogram_steps(4800, 85.0) == 9      # 8.5 rounds half up
    assert spectrogram_steps(1, 85.0) == 0

    steps = [spectrogram_steps(n, 85.0) for n in range(0, 20000, 37)]
    assert all(a <= b for a, b in zip(steps, steps[1:]))


def test_step_boundaries_cover_signal():
    starts, lengths = step_boundaries(4800, 9)

    assert starts[0] == 0
    assert np.all(lengths > 0)
    assert starts[-1] + lengths[-1] == 4800
    np.testing.assert_array_equal(starts[1:], starts[:-1] + lengths[:-1])


def test_filter_poles_stable(bank):
    radius = np.abs(bank.poles)
    assert np.all(radius < 1.0)
    assert np.all(radius > 0.0)
    np.testing.assert_allclose(bank.gains, 1.0 - radius)


def test_channel_selectivity(bank):
    """A sine excites the channel tuned to its frequency the most"""
    channel = 60
    sine = generate_sine(bank.frequencies[channel], duration=0.5)

    energy = bank.channel_energy(sine, num_steps=40)
    steady = energy[10:].mean(axis=0)

    print(f"\n    Sine at {bank.frequencies[channel]:.1f} Hz peaks in channel {np.argmax(steady)}")
    assert abs(int(np.argmax(steady)) - channel) <= 1
    # Far channels barely respond
    assert steady[channel] > 1000 * steady[channel + 40]
    assert steady[channel] > 1000 * steady[channel - 40]


def test_full_scale_sine_calibration(bank):
    """A full-scale sine at a center frequency reads full_scale_sine_db"""
    channel = 60
    sine = generate_sine(bank.frequencies[channel], duration=0.5, amplitude=1.0)

    energy = bank.channel_energy(sine, num_steps=40)
    levels = energy_to_db(energy, DEFAULT_FULL_SCALE_SINE_DB)

    steady_db = levels[10:, channel].mean().item()
    print(f"\n    Full-scale sine level: {steady_db:.2f} dB (reference {DEFAULT_FULL_SCALE_SINE_DB})")
    assert steady_db == pytest.approx(DEFAULT_FULL_SCALE_SINE_DB, abs=0.5)


def test_level_follows_amplitude(bank):
    """Halving the amplitude lowers the level by about 6 dB"""
    channel = 70
    loud = generate_sine(bank.frequencies[channel], duration=0.5, amplitude=1.0)

    level_loud = energy_to_db(bank.channel_energy(loud, 40), 78.3)[10:, channel].mean()
    level_soft = energy_to_db(bank.channel_energy(0.5 * loud, 40), 78.3)[10:, channel].mean()

    assert (level_loud - level_soft).item() == pytest.approx(20 * np.log10(2), abs=0.05)


def test_silence_and_empty(bank):
    silence = bank.channel_energy(np.zeros(4800), num_steps=9)
    assert silence.shape == (9, NUM_CHANNELS)
    assert np.all(silence == 0)

    empty = bank.channel_energy(np.zeros(0), num_steps=0)
    assert empty.shape == (0, NUM_CHANNELS)


def test_too_many_steps(bank):
    with pytest.raises(ValueError):
        bank.channel_energy(np.ones(10) * 0.1, num_steps=11)


def test_noise_energy_nonnegative(bank):
    noise = generate_white_noise(0.2, level=0.1)
    energy = bank.channel_energy(noise, num_steps=spectrogram_steps(len(noise), 85.0))
    assert np.all(energy > 0)


def test_energy_to_db():
    energy = torch.tensor([0.0, 1e-30, 0.5, 0.125])
    levels = energy_to_db(energy, 78.3)

    assert levels.dtype == torch.float32
    assert levels[0].item() == 0.0
    assert levels[1].item() == 0.0       # below the floor, clamped
    assert levels[2].item() == pytest.approx(78.3, abs=1e-4)
    assert levels[3].item() == pytest.approx(78.3 - 10 * np.log10(4), abs=1e-3)

    # Silence stays at zero even with a very high calibration
    assert energy_to_db(torch.zeros(3), 200.0).abs().max().item() == 0.0

    with pytest.raises(ValueError):
        energy_to_db(torch.tensor([-1.0]), 78.3)


def test_energy_to_db_numpy():
    levels = energy_to_db(np.full((2, 3), 0.5), 90.0)
    assert isinstance(levels, torch.Tensor)
    assert levels.shape == (2, 3)
    assert torch.allclose(levels, torch.full((2, 3), 90.0))


def test_nyquist_check():
    with pytest.raises(ValueError):
        RotatorBank(sample_rate=16000)
    assert RotatorBank().sample_rate == SAMPLE_RATE
