"""
Unit tests for the magnitude STFT.

Run:
    pytest tests/test_stft.py -v
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
import pytest
from scipy.fft import rfft as scipy_rfft
from scipy.signal import get_window as scipy_get_window

from melcepstrum import stft, get_window, MfccPipeline
from melcepstrum.errors import ConfigurationError, ShapeMismatchError


class TestSTFT:
    """Test suite for STFT implementation."""

    def test_shape(self):
        y = np.random.randn(44100)
        S = stft(y, window_size=1024, hop_size=512)
        print(f"\n[STFT Shape] {S.shape}")
        assert S.shape == (512, (44100 - 1024) // 512)

    def test_against_scipy_frames(self):
        y = np.random.randn(8192)
        S = stft(y, window_size=1024, hop_size=256)
        window = scipy_get_window('hann', 1024)

        for t in [0, 5, S.shape[1] - 1]:
            frame = y[t * 256:t * 256 + 1024] * window
            ref = np.abs(scipy_rfft(frame))[:512]
            assert np.allclose(S[:, t], ref, atol=1e-9)

    def test_sine_peak(self):
        sr = 44100
        n_fft = 1024
        freq = 100 * sr / n_fft
        t = np.arange(sr) / sr
        S = stft(np.sin(2 * np.pi * freq * t), window_size=n_fft, hop_size=512)
        assert np.all(np.argmax(S, axis=0) == 100)

    def test_feeds_pipeline(self):
        S = stft(np.random.randn(22050), window_size=1024, hop_size=512)
        mfcc = MfccPipeline().apply_mel_scale_dct(S)
        assert mfcc.shape == (20, S.shape[1])

    def test_short_signal(self):
        S = stft(np.random.randn(500), window_size=1024, hop_size=512)
        assert S.shape == (512, 0)

    def test_windows(self):
        for name in ['hann', 'hamming', 'blackman']:
            ours = get_window(name, 512)
            ref = scipy_get_window(name, 512)
            assert np.allclose(ours, ref), f"Window {name} mismatch"

        assert np.array_equal(get_window('rectangular', 16), np.ones(16))
        assert np.isclose(get_window('bartlett', 17).max(), 1.0)

    def test_custom_window(self):
        w = np.linspace(0, 1, 64)
        assert get_window(w, 64) is w
        with pytest.raises(ConfigurationError):
            get_window(w, 32)

    def test_invalid_arguments(self):
        with pytest.raises(ConfigurationError):
            get_window('kaiser', 64)
        with pytest.raises(ConfigurationError):
            stft(np.zeros(4096), window_size=1023)
        with pytest.raises(ConfigurationError):
            stft(np.zeros(4096), hop_size=0)
        with pytest.raises(ShapeMismatchError):
            stft(np.zeros((2, 4096)))
