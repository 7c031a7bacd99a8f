"""
Mel filterbank construction and inverse Mel scaling.

The filterbank maps ``window_size / 2`` linear FFT bins onto
``number_filters`` triangular Mel bands. Each triangle is normalized to unit
area on the Hz axis (height ``2 / (right - left)``), so a row sum times the
bin width is close to 1 for bands that cover enough bins.

The inverse is not the pseudo-inverse of the weight matrix: every Mel band
is spread back over its bin range by linear interpolation towards the next
band, which is lossy but keeps the spectral envelope.
"""

import logging
from typing import Union

import numpy as np

from .errors import ConfigurationError
from .matrix import as_matrix, check_rows

logger = logging.getLogger(__name__)

MEL_SCALE = 1127.01048
MEL_BREAK_FREQUENCY = 700.0
MIN_FREQUENCY = 20


def hz_to_mel(frequencies: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Convert frequencies from linear (Hz) to Mel scale.

    mel = 1127.01048 * ln(1 + f / 700)
    """
    return MEL_SCALE * np.log(1.0 + np.asarray(frequencies, dtype=np.float64) / MEL_BREAK_FREQUENCY)


def mel_to_hz(mels: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Convert frequencies from Mel scale back to linear (Hz).

    f = 700 * (exp(mel / 1127.01048) - 1)
    """
    return MEL_BREAK_FREQUENCY * (np.exp(np.asarray(mels, dtype=np.float64) / MEL_SCALE) - 1.0)


def freq_to_index(freq: float, sample_rate: int, window_size: int) -> int:
    """FFT bin index closest to ``freq``: round(freq * window_size / sample_rate)."""
    # round() is round-half-to-even
    return int(round(freq * window_size / sample_rate))


class MelFilterBank:
    """
    Triangular Mel filterbank for a fixed (window size, sample rate, band count).

    Attributes
    ----------
    weights : np.ndarray
        Read-only filter weights, shape (number_filters, window_size // 2)
    frequencies : np.ndarray
        Hz position of the number_filters + 2 triangle vertices
    mel_index : np.ndarray
        FFT bin index of every vertex (monotonically non-decreasing)
    triangle_heights : np.ndarray
        Peak height of every triangle, 2 / (right - left)
    """

    def __init__(self, window_size: int, sample_rate: int, number_filters: int):
        if window_size <= 0 or window_size % 2 != 0:
            raise ConfigurationError(f"window_size must be a positive even number, got {window_size}")
        if sample_rate // 2 < MIN_FREQUENCY:
            raise ConfigurationError(
                f"sample_rate {sample_rate} leaves no frequencies above {MIN_FREQUENCY} Hz"
            )
        if number_filters < 1:
            raise ConfigurationError(f"number_filters must be >= 1, got {number_filters}")

        self.window_size = window_size
        self.sample_rate = sample_rate
        self.number_filters = number_filters
        self.number_bins = window_size // 2

        if 2 * number_filters > self.number_bins:
            logger.warning(
                f"{number_filters} Mel bands on {self.number_bins} bins: "
                f"triangles will cover fewer than two bins each"
            )

        self.frequencies = self._vertex_frequencies()
        self.mel_index = np.array(
            [freq_to_index(f, sample_rate, window_size) for f in self.frequencies],
            dtype=np.int64
        )

        widths = self.frequencies[2:] - self.frequencies[:-2]
        if np.any(widths == 0):
            logger.warning(
                f"{int(np.sum(widths == 0))} Mel triangles collapsed to zero width "
                f"(sample_rate={sample_rate}, number_filters={number_filters})"
            )
        with np.errstate(divide='ignore'):
            self.triangle_heights = 2.0 / widths

        self.weights = self._filter_weights()
        for arr in (self.frequencies, self.mel_index, self.triangle_heights, self.weights):
            arr.setflags(write=False)

    def _vertex_frequencies(self) -> np.ndarray:
        # Mel lookup table, one entry per Hz from 20 Hz to Nyquist
        freq = np.arange(MIN_FREQUENCY, self.sample_rate // 2 + 1, dtype=np.float64)
        mel = hz_to_mel(freq)

        n_vertices = self.number_filters + 2
        vertices = np.empty(n_vertices, dtype=np.float64)
        for v in range(n_vertices):
            target = 1.0 + (mel[-1] - 1.0) / (n_vertices - 1.0) * v
            # first minimum wins, same as a strict '<' linear scan
            vertices[v] = freq[np.argmin(np.abs(mel - target))]
        return vertices

    def _filter_weights(self) -> np.ndarray:
        n_freqs = self.number_bins + 1
        fft_freq = (self.sample_rate // 2) / (n_freqs - 1.0) * np.arange(n_freqs)

        weights = np.zeros((self.number_filters, n_freqs), dtype=np.float64)
        for j in range(self.number_filters):
            left, center, right = self.frequencies[j:j + 3]
            height = self.triangle_heights[j]

            rising = (fft_freq > left) & (fft_freq <= center)
            weights[j, rising] = height * ((fft_freq[rising] - left) / (center - left))

            falling = (fft_freq > center) & (fft_freq < right)
            weights[j, falling] += height * ((right - fft_freq[falling]) / (right - center))

        # the Nyquist bin is not part of a spectral matrix
        return np.ascontiguousarray(weights[:, :self.number_bins])

    @property
    def shape(self):
        return self.weights.shape

    def apply(self, spectral: np.ndarray) -> np.ndarray:
        """Project a (window_size/2, frames) spectrum onto the Mel bands."""
        spectral = as_matrix(spectral, "spectral matrix")
        check_rows(spectral, self.number_bins, "spectral matrix")
        return self.weights @ spectral

    def inverse(self, mel: np.ndarray) -> np.ndarray:
        """
        Spread Mel band values back over the linear FFT bins.

        For every column, band ``i`` fills bins ``[mel_index[i+1], mel_index[i+2])``
        by interpolating linearly from its own value towards band ``i+1``; the
        last band interpolates towards 0. Bins below ``mel_index[1]`` stay 0.

        Parameters
        ----------
        mel : np.ndarray
            Linear-amplitude Mel matrix, shape (number_filters, frames)

        Returns
        -------
        np.ndarray
            New matrix of shape (window_size // 2, frames)
        """
        mel = as_matrix(mel, "mel matrix")
        check_rows(mel, self.number_filters, "mel matrix")

        n_frames = mel.shape[1]
        out = np.zeros((self.number_bins, n_frames), dtype=np.float64)
        zeros = np.zeros(n_frames, dtype=np.float64)

        for i in range(self.number_filters):
            start_index = int(self.mel_index[i + 1])
            end_index = int(self.mel_index[i + 2])
            part_steps = end_index - start_index
            if part_steps <= 0:
                continue

            start_value = mel[i]
            end_value = mel[i + 1] if i + 1 < self.number_filters else zeros

            p = np.arange(part_steps, dtype=np.float64) / part_steps
            segment = start_value[np.newaxis, :] + (end_value - start_value)[np.newaxis, :] * p[:, np.newaxis]

            stop = min(end_index, self.number_bins)
            if stop > start_index:
                out[start_index:stop] = segment[:stop - start_index]

        return out

    def __repr__(self) -> str:
        return (f"MelFilterBank(window_size={self.window_size}, sample_rate={self.sample_rate}, "
                f"number_filters={self.number_filters})")
