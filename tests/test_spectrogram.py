"""
Spectrogram Container Tests
"""

import numpy as np
import pytest
import torch

from torch_zimtohrli import Spectrogram, new_spectrogram, num_channels, InvalidInputError


def _ramp_spectrogram(num_steps=4, num_dims=3):
    values = np.arange(num_steps * num_dims, dtype=np.float32)
    return Spectrogram(num_steps, num_dims, values=values)


def test_new_spectrogram():
    spec = new_spectrogram(10)

    assert spec.num_steps == 10
    assert spec.num_dims == num_channels()
    assert spec.size == 10 * 128
    assert spec.max() == 0.0
    assert np.all(spec.values() == 0)


def test_empty_spectrogram():
    spec = new_spectrogram(0)

    assert spec.num_steps == 0
    assert spec.size == 0
    assert spec.max() == 0.0
    assert spec.values().shape == (0,)
    spec.rescale(3.0)
    assert spec.size == 0


def test_row_major_layout():
    spec = _ramp_spectrogram()

    assert spec[0, 0] == 0.0
    assert spec[0, 2] == 2.0
    assert spec[1, 0] == 3.0
    assert spec[3, 2] == 11.0
    np.testing.assert_array_equal(spec.row(2), [6.0, 7.0, 8.0])


def test_from_tensor():
    tensor = torch.rand(5, 7)
    spec = Spectrogram.from_tensor(tensor)

    assert (spec.num_steps, spec.num_dims) == (5, 7)
    assert torch.equal(spec.to_tensor(), tensor)

    # Data is copied
    tensor.zero_()
    assert spec.max() > 0

    with pytest.raises(InvalidInputError):
        Spectrogram.from_tensor(torch.rand(5))


def test_max_uses_absolute_value():
    spec = Spectrogram(1, 3, values=[0.5, -2.0, 1.0])
    assert spec.max() == 2.0


def test_rescale_is_linear():
    spec = _ramp_spectrogram()
    original_max = spec.max()
    original = spec.to_tensor()

    spec.rescale(0.25)

    assert spec.max() == pytest.approx(original_max * 0.25)
    assert torch.allclose(spec.to_tensor(), original * 0.25)


def test_rescale_one_is_noop():
    spec = _ramp_spectrogram()
    before = spec.to_tensor()
    spec.rescale(1.0)
    assert torch.equal(spec.to_tensor(), before)


@pytest.mark.parametrize("factor", [float('nan'), float('inf'), "2", None])
def test_rescale_rejects_invalid_factor(factor):
    spec = _ramp_spectrogram()
    with pytest.raises(InvalidInputError):
        spec.rescale(factor)


def test_values_is_read_only():
    spec = _ramp_spectrogram()
    values = spec.values()

    assert values.shape == (spec.size,)
    with pytest.raises(ValueError):
        values[0] = 42.0


def test_values_mut_writes_through():
    spec = _ramp_spectrogram()
    spec.values_mut()[4] = 100.0

    assert spec[1, 1] == 100.0
    assert spec.max() == 100.0
    # Earlier read-only views share the same storage
    assert spec.values()[4] == 100.0


def test_to_tensor_is_a_copy():
    spec = _ramp_spectrogram()
    copy = spec.to_tensor()
    copy.zero_()
    assert spec.max() == 11.0


def test_storage_is_not_exposed():
    """Callers only get copies or fixed-size views, so the shape cannot change"""
    spec = _ramp_spectrogram()

    assert not hasattr(spec, "tensor")

    copy = spec.to_tensor()
    copy.resize_(1)
    assert spec.size == spec.num_steps * spec.num_dims == 12
    assert spec.values_mut().shape == (12,)


def test_index_bounds():
    spec = _ramp_spectrogram()
    with pytest.raises(IndexError):
        spec[4, 0]
    with pytest.raises(IndexError):
        spec[0, 3]
    with pytest.raises(IndexError):
        spec[-1, 0]
    with pytest.raises(IndexError):
        spec.row(10)
    with pytest.raises(TypeError):
        spec[0]


def test_invalid_shapes():
    with pytest.raises(InvalidInputError):
        Spectrogram(-1)
    with pytest.raises(InvalidInputError):
        Spectrogram(3, 0)
    with pytest.raises(InvalidInputError):
        Spectrogram(2, 3, values=np.zeros(5))


def test_repr():
    text = repr(_ramp_spectrogram())
    assert "num_steps=4" in text
    assert "num_dims=3" in text
    assert "size=12" in text
    assert "max=11.0000" in text
