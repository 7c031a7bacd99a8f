"""
Magnitude STFT producing the spectral matrices the pipeline consumes.

The layout is (window_size // 2, frames): the Nyquist bin is dropped and
frames start at multiples of ``hop_size`` with no centre padding, giving
``(len(y) - window_size) // hop_size`` frames.
"""

import logging
from typing import Union

import numpy as np
from scipy.fft import rfft

from .errors import ConfigurationError, ShapeMismatchError
from .utils.logging import timed

logger = logging.getLogger(__name__)


# Generalized cosine windows: w[n] = sum_k (-1)^k a_k cos(2 pi k n / N)
COSINE_WINDOWS = {
    'hann': (0.5, 0.5),
    'hamming': (0.54, 0.46),
    'blackman': (0.42, 0.5, 0.08),
}


def get_window(window: Union[str, np.ndarray], win_length: int) -> np.ndarray:
    """
    Analysis window for ``stft``.

    Cosine windows (hann, hamming, blackman) are periodic, i.e. built with N
    rather than N - 1 in the denominator (DFT-even).
    'bartlett' is the symmetric triangle and 'rectangular' (alias 'rect',
    'boxcar') is all ones. An ndarray is returned as is after a length check.
    """
    if isinstance(window, np.ndarray):
        if len(window) != win_length:
            raise ConfigurationError(f"Window has {len(window)} samples, expected {win_length}")
        return window

    n = np.arange(win_length)

    if window in COSINE_WINDOWS:
        phase = 2 * np.pi * n / win_length
        w = np.zeros(win_length)
        for k, a in enumerate(COSINE_WINDOWS[window]):
            w += (-1) ** k * a * np.cos(k * phase)
        return w
    if window == 'bartlett':
        half = (win_length - 1) / 2
        return 1.0 - np.abs(n - half) / half
    if window in ('rectangular', 'rect', 'boxcar'):
        return np.ones(win_length)

    raise ConfigurationError(f"Unknown window type: {window!r}")


def stft(
    y: np.ndarray,
    window_size: int = 1024,
    hop_size: int = 512,
    window: Union[str, np.ndarray] = 'hann'
) -> np.ndarray:
    """
    Magnitude spectrogram of a mono signal.

    Examples
    --------
    >>> y = np.random.randn(44100)
    >>> S = stft(y, window_size=1024, hop_size=512)
    >>> S.shape  # (512, 84)
    """
    y = np.asarray(y, dtype=np.float64)
    if y.ndim != 1:
        raise ShapeMismatchError(f"Input must be 1D, got shape {y.shape}")
    if window_size <= 0 or window_size % 2 != 0:
        raise ConfigurationError(f"window_size must be a positive even number, got {window_size}")
    if hop_size <= 0:
        raise ConfigurationError(f"hop_size must be positive, got {hop_size}")

    n_frames = max(0, (len(y) - window_size) // hop_size)
    n_bins = window_size // 2

    with timed(logger, "Short Term Fourier Transform"):
        if n_frames == 0:
            logger.warning(f"Signal of {len(y)} samples is too short for window_size={window_size}")
            return np.zeros((n_bins, 0), dtype=np.float64)

        window_func = get_window(window, window_size)

        # Extract all frames at once: shape (n_frames, window_size)
        frame_starts = np.arange(n_frames) * hop_size
        frame_indices = frame_starts[:, np.newaxis] + np.arange(window_size)
        frames = y[frame_indices] * window_func

        spectrum = np.abs(rfft(frames, axis=1))
        return np.ascontiguousarray(spectrum[:, :n_bins].T)
