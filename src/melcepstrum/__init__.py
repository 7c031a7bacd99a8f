"""
melcepstrum - Mel cepstrum and Haar wavelet transforms of spectrograms

Forward and inverse transforms between magnitude spectrograms of shape
(window_size / 2, frames) and compact Mel-domain representations:
MFCCs (Mel filterbank, dB log, DCT-II) or a Haar wavelet pyramid over the
log-Mel spectrogram.

Modules:
    - mel: Mel scale conversion and triangular filterbank
    - dct: Orthonormal DCT-II basis
    - haar: In-place Haar wavelet transforms (Numba JIT)
    - compress: Multi-level wavelet compression and thresholding
    - mfcc: Forward/inverse pipeline combining the stages above
    - stft: Magnitude STFT producing the pipeline input
"""

from .errors import MelcepstrumError, ConfigurationError, ShapeMismatchError, NotPowerOfTwoError
from .config import MfccConfig
from .matrix import resize, is_power_of_two, next_power_of_two
from .mel import MelFilterBank, hz_to_mel, mel_to_hz, freq_to_index
from .dct import DCT, dct_matrix
from .haar import (
    haar_1d,
    inverse_haar_1d,
    haar_2d,
    inverse_haar_2d,
    haar_step_2d,
    inverse_haar_step_2d,
    haar_transform_2d,
    inverse_haar_transform_2d,
)
from .compress import (
    CompressionState,
    wavelet_compress,
    wavelet_decompress,
    compress_decompress,
    hard_threshold,
    soft_threshold,
    semisoft_threshold,
    strict_threshold,
)
from .mfcc import MfccPipeline, log_compress, log_compress_bulk, inverse_log_compress
from .stft import stft, get_window

__all__ = [
    # Errors
    'MelcepstrumError',
    'ConfigurationError',
    'ShapeMismatchError',
    'NotPowerOfTwoError',
    # Configuration
    'MfccConfig',
    # Matrix helpers
    'resize',
    'is_power_of_two',
    'next_power_of_two',
    # Mel scale
    'MelFilterBank',
    'hz_to_mel',
    'mel_to_hz',
    'freq_to_index',
    # DCT
    'DCT',
    'dct_matrix',
    # Haar wavelet
    'haar_1d',
    'inverse_haar_1d',
    'haar_2d',
    'inverse_haar_2d',
    'haar_step_2d',
    'inverse_haar_step_2d',
    'haar_transform_2d',
    'inverse_haar_transform_2d',
    # Compression
    'CompressionState',
    'wavelet_compress',
    'wavelet_decompress',
    'compress_decompress',
    'hard_threshold',
    'soft_threshold',
    'semisoft_threshold',
    'strict_threshold',
    # Pipeline
    'MfccPipeline',
    'log_compress',
    'log_compress_bulk',
    'inverse_log_compress',
    # STFT
    'stft',
    'get_window',
]

__version__ = '1.0.0'
