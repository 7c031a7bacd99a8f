"""
Unit tests for the Mel scale conversions and the triangular filterbank.

Run:
    pytest tests/test_mel.py -v
"""

import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
import pytest
import librosa

from melcepstrum import MelFilterBank, hz_to_mel, mel_to_hz, freq_to_index
from melcepstrum.errors import ConfigurationError, ShapeMismatchError


class TestMelScale:
    """Test suite for Hz <-> Mel conversion."""

    def test_hz_to_mel_break_frequency(self):
        """700 Hz maps to 1127.01048 * ln 2."""
        m = hz_to_mel(700.0)
        print(f"\n[Mel Break Frequency] hz_to_mel(700) = {m:.4f}")

        assert abs(m - 1127.01048 * np.log(2.0)) < 1e-9
        assert abs(m - 781.15) < 0.05

    def test_mel_to_hz_inverse(self):
        """mel_to_hz undoes hz_to_mel."""
        assert abs(mel_to_hz(hz_to_mel(1000.0)) - 1000.0) / 1000.0 < 1e-6

        f = np.arange(20, 22051, dtype=np.float64)
        error = np.abs(mel_to_hz(hz_to_mel(f)) - f) / f
        print(f"\n[Mel Round Trip] Max relative error: {error.max():.2e}")
        assert error.max() < 1e-9

    def test_against_librosa(self):
        """Matches librosa's HTK Mel formula."""
        f = np.linspace(20, 22050, 200)
        ours = hz_to_mel(f)
        ref = librosa.hz_to_mel(f, htk=True)
        error = np.abs(ours - ref) / ref

        print(f"\n[Mel vs librosa] Max relative error: {error.max():.2e}")
        assert np.allclose(ours, ref, rtol=1e-4)

    def test_freq_to_index_rounding(self):
        """Bin index rounds half to even."""
        assert freq_to_index(1000.0, 44100, 1024) == 23
        assert freq_to_index(250.0, 1000, 10) == 2
        assert freq_to_index(350.0, 1000, 10) == 4
        assert freq_to_index(0.0, 44100, 1024) == 0


class TestMelFilterBank:
    """Test suite for filterbank construction and inverse Mel scaling."""

    @pytest.fixture
    def filterbank(self):
        return MelFilterBank(1024, 44100, 36)

    def test_shape(self, filterbank):
        assert filterbank.shape == (36, 512)
        assert filterbank.frequencies.shape == (38,)
        assert filterbank.mel_index.shape == (38,)
        assert filterbank.triangle_heights.shape == (36,)

    def test_weights_non_negative(self, filterbank):
        assert np.all(filterbank.weights >= 0)
        assert np.all(filterbank.weights.sum(axis=1) > 0)

    def test_vertices_monotonic(self, filterbank):
        assert np.all(np.diff(filterbank.frequencies) > 0)
        assert np.all(np.diff(filterbank.mel_index) >= 0)
        assert filterbank.frequencies[0] == 20
        assert filterbank.frequencies[-1] == 22050

    def test_unit_area(self, filterbank):
        """Row sum times bin width is close to 1 for wide bands."""
        bin_hz = (44100 // 2) / 512
        spans = filterbank.mel_index[2:] - filterbank.mel_index[:-2]
        wide = spans >= 10
        areas = filterbank.weights.sum(axis=1) * bin_hz

        print(f"\n[Filterbank Area] {int(wide.sum())} wide bands, "
              f"areas in [{areas[wide].min():.4f}, {areas[wide].max():.4f}]")

        assert wide.sum() > 0
        assert np.allclose(areas[wide], 1.0, rtol=0.05)

    def test_triangle_heights(self, filterbank):
        widths = filterbank.frequencies[2:] - filterbank.frequencies[:-2]
        assert np.allclose(filterbank.triangle_heights, 2.0 / widths)
        # triangles peak at their centre frequency
        assert np.all(filterbank.weights.max(axis=1) <= filterbank.triangle_heights + 1e-12)

    def test_read_only(self, filterbank):
        with pytest.raises(ValueError):
            filterbank.weights[0, 0] = 1.0

    def test_apply(self, filterbank):
        spectral = np.abs(np.random.randn(512, 12))
        mel = filterbank.apply(spectral)
        assert mel.shape == (36, 12)
        assert np.allclose(mel, filterbank.weights @ spectral)

    def test_apply_wrong_rows(self, filterbank):
        with pytest.raises(ShapeMismatchError):
            filterbank.apply(np.ones((513, 4)))
        with pytest.raises(ShapeMismatchError):
            filterbank.apply(np.ones(512))

    def test_inverse_constant(self, filterbank):
        """Constant band values spread to a constant over the covered bins."""
        mel = np.full((36, 5), 3.0)
        out = filterbank.inverse(mel)
        first = int(filterbank.mel_index[1])
        last = int(filterbank.mel_index[36])

        assert out.shape == (512, 5)
        assert np.all(out[:first] == 0)
        assert np.allclose(out[first:last], 3.0)
        # last band starts at its own value and falls towards 0
        assert np.allclose(out[last], 3.0)
        assert np.all(out[last:] <= 3.0)

    def test_inverse_interpolates(self, filterbank):
        """Within a band the values move linearly towards the next band."""
        mel = np.arange(1, 37, dtype=np.float64)[:, np.newaxis]
        out = filterbank.inverse(mel)[:, 0]

        start = int(filterbank.mel_index[21])
        end = int(filterbank.mel_index[22])
        steps = end - start
        assert steps > 0
        expected = 21.0 + np.arange(steps) / steps
        assert np.allclose(out[start:end], expected)

    def test_inverse_wrong_rows(self, filterbank):
        with pytest.raises(ShapeMismatchError):
            filterbank.inverse(np.ones((20, 3)))

    def test_invalid_arguments(self):
        with pytest.raises(ConfigurationError):
            MelFilterBank(0, 44100, 36)
        with pytest.raises(ConfigurationError):
            MelFilterBank(1023, 44100, 36)
        with pytest.raises(ConfigurationError):
            MelFilterBank(1024, 30, 36)
        with pytest.raises(ConfigurationError):
            MelFilterBank(1024, 44100, 0)

    def test_dense_layout_warns(self, caplog):
        """More than W/4 bands is accepted with a warning."""
        with caplog.at_level(logging.WARNING, logger="melcepstrum.mel"):
            fb = MelFilterBank(64, 8000, 40)

        assert fb.shape == (40, 32)
        assert any("Mel bands" in r.getMessage() for r in caplog.records)
