"""
Multi-level Haar block compression with threshold quantization.

``wavelet_compress`` builds the standard multi-resolution pyramid: each level
applies one 2D Haar step to the current top-left block and halves it, so
detail coefficients of earlier levels are left untouched. Small coefficients
are then zeroed (hard quantization). ``wavelet_decompress`` grows the block
back level by level; quantization is not reversible, so the result is the
quantized approximation of the input.

Also contains the usual wavelet thresholding rules (hard, soft, semisoft,
strict) as standalone array functions.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .errors import NotPowerOfTwoError, ShapeMismatchError
from .haar import check_inplace_array, haar_step_2d, inverse_haar_step_2d

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressionState:
    """
    What the decompressor needs to undo ``wavelet_compress``.

    Attributes:
        last_height: Height of the approximation block after the last level
        last_width: Width of the approximation block after the last level
        levels: Number of pyramid levels actually applied
    """
    last_height: int
    last_width: int
    levels: int


def wavelet_compress(matrix: np.ndarray, levels: int, threshold: float = 0.0) -> CompressionState:
    """
    Multi-level 2D Haar transform plus hard quantization, in place.

    Stops early once either active dimension reaches 1. Every level needs
    even active dimensions; this is checked before anything is modified.

    Args:
        matrix: 2D float64 array, overwritten with the coefficients
        levels: Maximum number of pyramid levels
        threshold: Coefficients with |x| <= threshold are set to 0

    Returns:
        CompressionState for ``wavelet_decompress``
    """
    check_inplace_array(matrix, 2, "matrix")
    if levels < 0:
        raise ValueError(f"levels must be >= 0, got {levels}")
    if threshold < 0:
        raise ValueError(f"threshold must be >= 0, got {threshold}")

    height, width = matrix.shape
    blocks = []
    while len(blocks) < levels and height > 1 and width > 1:
        if height % 2 != 0 or width % 2 != 0:
            raise NotPowerOfTwoError(
                f"Level {len(blocks) + 1} of {levels} needs even block dimensions, "
                f"got ({height}, {width}) from matrix shape {matrix.shape}"
            )
        blocks.append((height, width))
        height //= 2
        width //= 2

    for block_height, block_width in blocks:
        haar_step_2d(matrix, block_height, block_width)

    if threshold > 0:
        quantized = np.abs(matrix) <= threshold
        matrix[quantized] = 0.0
        logger.debug(f"Quantized {int(quantized.sum())} of {matrix.size} coefficients (threshold={threshold})")

    return CompressionState(last_height=height, last_width=width, levels=len(blocks))


def wavelet_decompress(matrix: np.ndarray, state: CompressionState) -> None:
    """
    Undo the pyramid of ``wavelet_compress``, in place.

    Args:
        matrix: Coefficients, same shape as the matrix that was compressed
        state: CompressionState returned by the compressor
    """
    check_inplace_array(matrix, 2, "matrix")

    scale = 2 ** state.levels
    if state.last_height * scale > matrix.shape[0] or state.last_width * scale > matrix.shape[1]:
        raise ShapeMismatchError(
            f"Matrix of shape {matrix.shape} is smaller than the compressed block "
            f"({state.last_height * scale}, {state.last_width * scale})"
        )

    height, width = state.last_height, state.last_width
    for _ in range(state.levels):
        height *= 2
        width *= 2
        inverse_haar_step_2d(matrix, height, width)


def compress_decompress(matrix: np.ndarray, levels: int, threshold: float) -> np.ndarray:
    """Lossy approximation of ``matrix``: compress and decompress a copy."""
    out = np.array(matrix, dtype=np.float64, copy=True)
    state = wavelet_compress(out, levels, threshold)
    wavelet_decompress(out, state)
    return out


def hard_threshold(x: np.ndarray, threshold: float) -> np.ndarray:
    """Zero every coefficient with |x| <= threshold."""
    y = np.array(x, dtype=np.float64, copy=True)
    y[np.abs(y) <= threshold] = 0.0
    return y


def soft_threshold(x: np.ndarray, threshold: float) -> np.ndarray:
    """
    Zero every coefficient with |x| <= threshold and shrink the others
    towards 0 by ``threshold``: sign(x) * (|x| - t).
    """
    x = np.asarray(x, dtype=np.float64)
    return np.sign(x) * np.maximum(np.abs(x) - threshold, 0.0)


def semisoft_threshold(x: np.ndarray, threshold1: float, threshold2: float) -> np.ndarray:
    """
    Semi-soft thresholding, between hard (t2 -> t1) and soft (t2 -> inf).

    |x| < t1 becomes 0, t1 <= |x| < t2 becomes sign(x) * t2 / (t2 - t1) * (|x| - t1),
    larger coefficients are kept.
    """
    if threshold2 <= threshold1:
        raise ValueError(f"threshold2 ({threshold2}) must be larger than threshold1 ({threshold1})")

    x = np.asarray(x, dtype=np.float64)
    magnitude = np.abs(x)
    y = x.copy()
    y[magnitude < threshold1] = 0.0

    band = (magnitude >= threshold1) & (magnitude < threshold2)
    scale = threshold2 / (threshold2 - threshold1)
    y[band] = np.sign(x[band]) * scale * (magnitude[band] - threshold1)
    return y


def strict_threshold(x: np.ndarray, keep: int) -> np.ndarray:
    """Keep the ``keep`` largest-magnitude coefficients of every row, zero the rest."""
    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 2:
        raise ShapeMismatchError(f"strict_threshold expects a 2D array, got shape {x.shape}")

    keep = max(0, min(keep, x.shape[1]))
    order = np.argsort(-np.abs(x), axis=1, kind='stable')[:, :keep]
    rows = np.arange(x.shape[0])[:, np.newaxis]

    y = np.zeros_like(x)
    y[rows, order] = x[rows, order]
    return y
