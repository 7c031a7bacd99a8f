"""
MFCC pipeline: Mel filterbank, log compression, DCT or Haar wavelet.

Forward stages::

    spectral (W/2, T) -> mel (B, T) -> log-mel (B, T) -> cepstral (C, T)
                                                      \\-> wavelet coded

Each inverse runs the stages backwards. The inverse log divides by the
height of the first Mel triangle for every band, and the inverse Mel step
interpolates band values over their bin ranges, so the round trip
reconstructs the spectral envelope rather than the exact input.

Every public method allocates its result and leaves its argument untouched.
"""

import logging
import math
from dataclasses import replace
from typing import Optional, Tuple

import numpy as np
from numba import jit

from .compress import CompressionState, wavelet_compress, wavelet_decompress
from .config import MfccConfig
from .dct import DCT
from .errors import ShapeMismatchError
from .haar import haar_transform_2d, inverse_haar_transform_2d
from .matrix import as_matrix, check_rows, is_power_of_two, next_power_of_two, resize
from .mel import MelFilterBank
from .utils.logging import timed

logger = logging.getLogger(__name__)

# 20 * log10(x) == LOG10_SCALE * ln(x)
LOG10_SCALE = 20.0 * (1.0 / math.log(10.0))


@jit(nopython=True, cache=True)
def _log_compress_inplace(mel: np.ndarray) -> None:
    rows, cols = mel.shape
    for i in range(rows):
        for j in range(cols):
            v = mel[i, j]
            if v < 1.0:
                mel[i, j] = 0.0
            else:
                mel[i, j] = 20.0 * math.log10(v)


def log_compress(mel: np.ndarray) -> np.ndarray:
    """
    Element-wise dB conversion with a floor at unity.

    0 where mel < 1, else 20 * log10(mel). Returns a new array.
    """
    out = np.array(mel, dtype=np.float64, copy=True)
    _log_compress_inplace(out)
    return out


def log_compress_bulk(mel: np.ndarray) -> np.ndarray:
    """
    Same rule as ``log_compress`` expressed as whole-matrix operations:
    clip at the lower boundary 1, natural log, scale to dB.
    """
    out = np.maximum(np.asarray(mel, dtype=np.float64), 1.0)
    np.log(out, out=out)
    out *= LOG10_SCALE
    return out


def inverse_log_compress(log_mel: np.ndarray, divisor: float) -> np.ndarray:
    """10 ** (x / 20) / divisor, element-wise."""
    return np.power(10.0, np.asarray(log_mel, dtype=np.float64) / 20.0) / divisor


class MfccPipeline:
    """
    Forward and inverse MFCC / wavelet transforms for one configuration.

    The filterbank and the DCT basis are built once in the constructor and
    only read afterwards, so one pipeline can serve many callers.

    Args:
        config: Pipeline configuration (defaults to ``MfccConfig()``)
        **overrides: Individual configuration fields, e.g. ``number_filters=40``

    Example:
        >>> pipeline = MfccPipeline(window_size=1024, sample_rate=44100,
        ...                         number_filters=36, number_coefficients=20)
        >>> mfcc = pipeline.apply_mel_scale_dct(spectrogram)  # (20, frames)
        >>> approx = pipeline.inverse_mel_scale_dct(mfcc)     # (512, frames)
    """

    def __init__(self, config: Optional[MfccConfig] = None, **overrides):
        if config is None:
            config = MfccConfig(**overrides)
        elif overrides:
            config = replace(config, **overrides)
        self.config = config

        self.filterbank = MelFilterBank(config.window_size, config.sample_rate, config.number_filters)
        self.dct = DCT(config.number_coefficients, config.number_filters)

        logger.debug(
            f"MfccPipeline ready: filter weights {self.filterbank.shape}, dct {self.dct.shape}, "
            f"{config.number_wavelet_transforms} wavelet levels"
        )

    @classmethod
    def from_yaml(cls, config_path) -> 'MfccPipeline':
        return cls(MfccConfig.from_yaml(config_path))

    @property
    def filter_weights(self) -> np.ndarray:
        return self.filterbank.weights

    @property
    def dct_matrix(self) -> np.ndarray:
        return self.dct.matrix

    @property
    def mel_index(self) -> np.ndarray:
        return self.filterbank.mel_index

    @property
    def triangle_heights(self) -> np.ndarray:
        return self.filterbank.triangle_heights

    @property
    def number_filters(self) -> int:
        return self.config.number_filters

    @property
    def number_coefficients(self) -> int:
        return self.config.number_coefficients

    # ------------------------------------------------------------------
    # Shared stages
    # ------------------------------------------------------------------

    def _mel_log(self, spectral: np.ndarray) -> np.ndarray:
        return log_compress(self.filterbank.apply(spectral))

    def _inverse_mel_log(self, log_mel: np.ndarray) -> np.ndarray:
        # Band 0's height is the normalization constant for every band
        mel = inverse_log_compress(log_mel, self.filterbank.triangle_heights[0])
        return self.filterbank.inverse(mel)

    # ------------------------------------------------------------------
    # Mel + log + DCT
    # ------------------------------------------------------------------

    def apply_mel_scale_dct(self, spectral: np.ndarray) -> np.ndarray:
        """
        MFCC of a magnitude spectrogram.

        Parameters
        ----------
        spectral : np.ndarray
            Magnitude spectrogram, shape (window_size // 2, frames)

        Returns
        -------
        np.ndarray
            Cepstral coefficients, shape (number_coefficients, frames)
        """
        with timed(logger, "Mel Scale DCT"):
            return self.dct.apply(self._mel_log(spectral))

    def apply_mel_scale_dct_bulk(self, spectral: np.ndarray) -> np.ndarray:
        """``apply_mel_scale_dct`` computed with whole-matrix log operations."""
        with timed(logger, "Mel Scale DCT (bulk)"):
            mel = self.filterbank.apply(spectral)
            return self.dct.apply(log_compress_bulk(mel))

    def inverse_mel_scale_dct(self, cepstral: np.ndarray) -> np.ndarray:
        """
        Approximate magnitude spectrogram from MFCCs.

        Returns a matrix of shape (window_size // 2, frames).
        """
        with timed(logger, "Inverse Mel Scale DCT"):
            return self._inverse_mel_log(self.dct.inverse(cepstral))

    def apply_dct(self, log_mel: np.ndarray) -> np.ndarray:
        with timed(logger, "ApplyDCT"):
            return self.dct.apply(log_mel)

    def inverse_dct(self, cepstral: np.ndarray) -> np.ndarray:
        with timed(logger, "InverseDCT"):
            return self.dct.inverse(cepstral)

    # ------------------------------------------------------------------
    # Mel + log only
    # ------------------------------------------------------------------

    def apply_mel_scale_and_log(self, spectral: np.ndarray) -> np.ndarray:
        """Log-Mel spectrogram in dB, shape (number_filters, frames)."""
        with timed(logger, "Mel Scale And Log"):
            return self._mel_log(spectral)

    def inverse_mel_scale_and_log(self, log_mel: np.ndarray) -> np.ndarray:
        with timed(logger, "Inverse Mel Scale And Log"):
            return self._inverse_mel_log(log_mel)

    # ------------------------------------------------------------------
    # Mel + log + padded 2D Haar
    # ------------------------------------------------------------------

    def apply_mel_scale_wavelet_padding(self, spectral: np.ndarray) -> np.ndarray:
        """
        Log-Mel spectrogram zero-padded to a power-of-two square, then 2D Haar.

        The caller has to remember the frame count to crop the padding away
        again in ``inverse_mel_scale_wavelet_padding``.
        """
        with timed(logger, "Mel Scale And Wavelet Padding"):
            mel = self._mel_log(spectral)

            rows, cols = mel.shape
            if rows != cols or not is_power_of_two(rows):
                size = next_power_of_two(max(rows, cols))
                mel = resize(mel, size, size)

            return haar_transform_2d(mel)

    def inverse_mel_scale_wavelet_padding(self, wavelet: np.ndarray, frames: Optional[int] = None) -> np.ndarray:
        """
        Undo ``apply_mel_scale_wavelet_padding``.

        Args:
            wavelet: Square power-of-two Haar coefficient matrix
            frames: Frame count before padding (defaults to the wavelet width)

        Returns:
            Approximate magnitude spectrogram, shape (window_size // 2, frames)
        """
        with timed(logger, "Inverse Mel Scale And Wavelet Padding"):
            wavelet = as_matrix(wavelet, "wavelet matrix")
            if frames is None:
                frames = wavelet.shape[1]
            if wavelet.shape[0] < self.number_filters or not 0 < frames <= wavelet.shape[1]:
                raise ShapeMismatchError(
                    f"Cannot crop wavelet matrix of shape {wavelet.shape} "
                    f"to ({self.number_filters}, {frames})"
                )

            mel = inverse_haar_transform_2d(wavelet)
            mel = resize(mel, self.number_filters, frames)
            return self._inverse_mel_log(mel)

    # ------------------------------------------------------------------
    # Multi-level wavelet compression
    # ------------------------------------------------------------------

    def apply_wavelet_compression(self, matrix: np.ndarray) -> Tuple[np.ndarray, CompressionState]:
        """
        Pyramid Haar transform of ``matrix`` cropped to ``number_coefficients`` rows.

        Returns:
            (compressed, state): the cropped coefficients and the state needed
            by ``inverse_wavelet_compression``
        """
        with timed(logger, "Wavelet Compression"):
            wavelet = np.array(as_matrix(matrix), copy=True)
            state = wavelet_compress(
                wavelet,
                self.config.number_wavelet_transforms,
                self.config.wavelet_threshold
            )
            return resize(wavelet, self.number_coefficients, wavelet.shape[1]), state

    def inverse_wavelet_compression(
        self,
        wavelet: np.ndarray,
        state: CompressionState,
        rows: int,
        columns: int
    ) -> np.ndarray:
        """
        Zero-fill ``wavelet`` back to ``(rows, columns)`` and invert the pyramid.

        Detail rows dropped by the compression come back as zeros.
        """
        with timed(logger, "Inverse Wavelet Compression"):
            m = resize(wavelet, rows, columns)
            wavelet_decompress(m, state)
            return m

    def apply_mel_scale_and_wavelet_compress(self, spectral: np.ndarray) -> Tuple[np.ndarray, CompressionState]:
        """Log-Mel spectrogram followed by ``apply_wavelet_compression``."""
        with timed(logger, "Mel Scale And Wavelet Compression"):
            return self.apply_wavelet_compression(self._mel_log(spectral))

    def inverse_mel_scale_and_wavelet_compress(self, wavelet: np.ndarray, state: CompressionState) -> np.ndarray:
        """Approximate magnitude spectrogram from ``apply_mel_scale_and_wavelet_compress`` output."""
        with timed(logger, "Inverse Mel Scale And Wavelet Compression"):
            wavelet = as_matrix(wavelet, "wavelet matrix")
            check_rows(wavelet, self.number_coefficients, "wavelet matrix")
            mel = self.inverse_wavelet_compression(wavelet, state, self.number_filters, wavelet.shape[1])
            return self._inverse_mel_log(mel)

    def __repr__(self) -> str:
        return f"MfccPipeline({self.config})"
