"""
Small dense-matrix helpers on top of numpy.

The transforms work on plain 2D ``np.ndarray`` objects; this module only
adds the few operations numpy does not spell the way the pipeline needs
them (zero-filling resize, power-of-two sizing, input validation).
"""

import numpy as np

from .errors import ShapeMismatchError


def as_matrix(m, name: str = "matrix") -> np.ndarray:
    """Return ``m`` as a 2D float64 array, raising ShapeMismatchError otherwise."""
    m = np.asarray(m, dtype=np.float64)
    if m.ndim != 2:
        raise ShapeMismatchError(f"{name} must be 2D, got shape {m.shape}")
    return m


def check_rows(m: np.ndarray, expected: int, name: str = "matrix") -> None:
    if m.shape[0] != expected:
        raise ShapeMismatchError(
            f"{name} has {m.shape[0]} rows, expected {expected} (shape {m.shape})"
        )


def resize(m: np.ndarray, rows: int, columns: int) -> np.ndarray:
    """
    Crop or zero-pad ``m`` to ``(rows, columns)``.

    The overlapping top-left block is copied, everything else is zero.
    Always returns a new array.

    Parameters
    ----------
    m : np.ndarray
        2D input matrix (not modified)
    rows, columns : int
        Target shape, both must be non-negative

    Returns
    -------
    np.ndarray
        New float64 matrix of shape (rows, columns)
    """
    if rows < 0 or columns < 0:
        raise ShapeMismatchError(f"Cannot resize to negative shape ({rows}, {columns})")

    m = as_matrix(m)
    out = np.zeros((rows, columns), dtype=np.float64)
    r = min(rows, m.shape[0])
    c = min(columns, m.shape[1])
    out[:r, :c] = m[:r, :c]
    return out


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two that is >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()
