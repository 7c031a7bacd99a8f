"""
Orthonormal Haar wavelet transform (Numba JIT)

Every decomposition step replaces a length-w prefix by w/2 averages
(a + b) / sqrt(2) followed by w/2 differences (a - b) / sqrt(2), so the
transform preserves energy and the inverse is exact up to rounding.

Two flavours are provided:

- ``haar_1d`` / ``haar_2d``: full decomposition down to width (and height) 1.
  The 2D version alternates a row pass and a column pass while shrinking the
  active block, and requires power-of-two dimensions.
- ``haar_step_2d``: a single pyramid level over a top-left block, the
  building block of the multi-level compressor in ``compress``.

The lowercase ``haar_*`` functions work IN PLACE on the array they are given
and return None. ``haar_transform_2d`` / ``inverse_haar_transform_2d`` return
a transformed copy and leave their argument alone.
"""

import math

import numpy as np
from numba import jit

from .errors import NotPowerOfTwoError, ShapeMismatchError
from .matrix import is_power_of_two

SQRT2 = math.sqrt(2.0)


@jit(nopython=True, cache=True)
def _haar_step(vec: np.ndarray, w: int) -> None:
    """One decomposition step over vec[:w]."""
    half = w // 2
    tmp = np.empty(2 * half, dtype=np.float64)
    for i in range(half):
        a = vec[2 * i]
        b = vec[2 * i + 1]
        tmp[i] = (a + b) / SQRT2
        tmp[i + half] = (a - b) / SQRT2
    for i in range(2 * half):
        vec[i] = tmp[i]


@jit(nopython=True, cache=True)
def _inverse_haar_step(vec: np.ndarray, w: int) -> None:
    """Undo one decomposition step over vec[:w]."""
    half = w // 2
    tmp = np.empty(2 * half, dtype=np.float64)
    for i in range(half):
        s = vec[i]
        d = vec[i + half]
        tmp[2 * i] = (s + d) / SQRT2
        tmp[2 * i + 1] = (s - d) / SQRT2
    for i in range(2 * half):
        vec[i] = tmp[i]


@jit(nopython=True, cache=True)
def _haar_1d(vec: np.ndarray) -> None:
    w = vec.shape[0]
    while w > 1:
        _haar_step(vec, w)
        w //= 2


@jit(nopython=True, cache=True)
def _inverse_haar_1d(vec: np.ndarray) -> None:
    n = vec.shape[0]
    w = 2
    while w <= n:
        _inverse_haar_step(vec, w)
        w *= 2


@jit(nopython=True, cache=True)
def _haar_2d(matrix: np.ndarray) -> None:
    rows, cols = matrix.shape
    w = cols
    h = rows
    while w > 1 or h > 1:
        if w > 1:
            for i in range(h):
                _haar_step(matrix[i], w)
        if h > 1:
            for j in range(w):
                _haar_step(matrix[:, j], h)

        if w > 1:
            w //= 2
        if h > 1:
            h //= 2


@jit(nopython=True, cache=True)
def _inverse_haar_2d(matrix: np.ndarray) -> None:
    rows, cols = matrix.shape

    # Record the (w, h) of every forward stage
    n_stages = 0
    w = cols
    h = rows
    while w > 1 or h > 1:
        n_stages += 1
        if w > 1:
            w //= 2
        if h > 1:
            h //= 2

    widths = np.empty(n_stages, dtype=np.int64)
    heights = np.empty(n_stages, dtype=np.int64)
    w = cols
    h = rows
    for s in range(n_stages):
        widths[s] = w
        heights[s] = h
        if w > 1:
            w //= 2
        if h > 1:
            h //= 2

    # Replay backwards: columns first, then rows
    for s in range(n_stages - 1, -1, -1):
        w = widths[s]
        h = heights[s]
        if h > 1:
            for j in range(w):
                _inverse_haar_step(matrix[:, j], h)
        if w > 1:
            for i in range(h):
                _inverse_haar_step(matrix[i], w)


@jit(nopython=True, cache=True)
def _haar_step_2d(matrix: np.ndarray, height: int, width: int) -> None:
    for i in range(height):
        _haar_step(matrix[i], width)
    for j in range(width):
        _haar_step(matrix[:, j], height)


@jit(nopython=True, cache=True)
def _inverse_haar_step_2d(matrix: np.ndarray, height: int, width: int) -> None:
    for j in range(width):
        _inverse_haar_step(matrix[:, j], height)
    for i in range(height):
        _inverse_haar_step(matrix[i], width)


def check_inplace_array(arr, ndim: int, name: str) -> None:
    if not isinstance(arr, np.ndarray):
        raise TypeError(f"{name} must be a numpy array for an in-place transform, got {type(arr).__name__}")
    if arr.ndim != ndim:
        raise ShapeMismatchError(f"{name} must be {ndim}D, got shape {arr.shape}")
    if arr.dtype != np.float64:
        raise TypeError(f"{name} must be a float64 array, got {arr.dtype}")
    if not arr.flags.writeable:
        raise ValueError(f"{name} is read-only")


def _check_power_of_two(shape, name: str) -> None:
    for n in shape:
        if not is_power_of_two(n):
            raise NotPowerOfTwoError(f"{name} dimensions must be powers of two, got shape {shape}")


def haar_1d(vec: np.ndarray) -> None:
    """
    Full 1D Haar decomposition of ``vec``, in place.

    Parameters
    ----------
    vec : np.ndarray
        1D float64 array whose length is a power of two
    """
    check_inplace_array(vec, 1, "vector")
    _check_power_of_two(vec.shape, "vector")
    _haar_1d(vec)


def inverse_haar_1d(vec: np.ndarray) -> None:
    """Undo ``haar_1d``, in place."""
    check_inplace_array(vec, 1, "vector")
    _check_power_of_two(vec.shape, "vector")
    _inverse_haar_1d(vec)


def haar_2d(matrix: np.ndarray) -> None:
    """
    Full 2D Haar decomposition of ``matrix``, in place.

    While either active dimension is larger than 1, the first ``w`` entries
    of rows ``0..h-1`` are decomposed one step, then the first ``h`` entries
    of columns ``0..w-1``; each dimension still above 1 is then halved.
    Rows and columns may differ but both must be powers of two.
    """
    check_inplace_array(matrix, 2, "matrix")
    _check_power_of_two(matrix.shape, "matrix")
    _haar_2d(matrix)


def inverse_haar_2d(matrix: np.ndarray) -> None:
    """Undo ``haar_2d``, in place."""
    check_inplace_array(matrix, 2, "matrix")
    _check_power_of_two(matrix.shape, "matrix")
    _inverse_haar_2d(matrix)


def haar_step_2d(matrix: np.ndarray, height: int, width: int) -> None:
    """
    One pyramid level over the top-left ``height x width`` block, in place.

    Rows of the block are decomposed one step, then its columns. Both
    ``height`` and ``width`` must be even.
    """
    check_inplace_array(matrix, 2, "matrix")
    _check_block(matrix, height, width)
    _haar_step_2d(matrix, height, width)


def inverse_haar_step_2d(matrix: np.ndarray, height: int, width: int) -> None:
    """Undo ``haar_step_2d`` on the same block, in place."""
    check_inplace_array(matrix, 2, "matrix")
    _check_block(matrix, height, width)
    _inverse_haar_step_2d(matrix, height, width)


def _check_block(matrix: np.ndarray, height: int, width: int) -> None:
    if height > matrix.shape[0] or width > matrix.shape[1] or height < 1 or width < 1:
        raise ShapeMismatchError(f"Block ({height}, {width}) does not fit matrix of shape {matrix.shape}")
    if height % 2 != 0 or width % 2 != 0:
        raise NotPowerOfTwoError(f"Haar block dimensions must be even, got ({height}, {width})")


def haar_transform_2d(m: np.ndarray) -> np.ndarray:
    """Return the full 2D Haar decomposition of a copy of ``m``."""
    out = np.array(m, dtype=np.float64, copy=True)
    haar_2d(out)
    return out


def inverse_haar_transform_2d(m: np.ndarray) -> np.ndarray:
    """Return the inverse 2D Haar transform of a copy of ``m``."""
    out = np.array(m, dtype=np.float64, copy=True)
    inverse_haar_2d(out)
    return out
