"""
DCT-II basis over the Mel band axis.

The basis rows are orthonormal (first row scaled by 1/sqrt(N), the others by
sqrt(2/N)), so the transpose is the inverse whenever every coefficient is
kept. Keeping fewer coefficients than bands makes the round trip a
projection onto the low-quefrency subspace.
"""

import numpy as np

from .errors import ConfigurationError
from .matrix import as_matrix, check_rows


def dct_matrix(n_coeffs: int, n_bands: int) -> np.ndarray:
    """
    Build the (n_coeffs, n_bands) DCT-II matrix.

    d[i, j] = w_i * cos(pi / N * i * (j + 0.5)), w_0 = 1/sqrt(N), w_i = sqrt(2/N)
    """
    if n_bands < 1:
        raise ConfigurationError(f"n_bands must be >= 1, got {n_bands}")
    if not 1 <= n_coeffs <= n_bands:
        raise ConfigurationError(f"n_coeffs must be in [1, {n_bands}], got {n_coeffs}")

    k1 = np.pi / n_bands
    i = np.arange(n_coeffs)[:, np.newaxis]
    j = np.arange(n_bands)

    matrix = np.cos(k1 * i * (j + 0.5))
    matrix[0] *= 1.0 / np.sqrt(n_bands)
    matrix[1:] *= np.sqrt(2.0 / n_bands)
    return matrix


class DCT:
    """Fixed DCT basis applied along axis 0 of a (bands, frames) matrix."""

    def __init__(self, n_coeffs: int, n_bands: int):
        self.n_coeffs = n_coeffs
        self.n_bands = n_bands
        self.matrix = dct_matrix(n_coeffs, n_bands)
        self.matrix.setflags(write=False)

    @property
    def shape(self):
        return self.matrix.shape

    def apply(self, m: np.ndarray) -> np.ndarray:
        """Cepstral coefficients, shape (n_coeffs, frames)."""
        m = as_matrix(m, "log-mel matrix")
        check_rows(m, self.n_bands, "log-mel matrix")
        return self.matrix @ m

    def inverse(self, m: np.ndarray) -> np.ndarray:
        """Transposed basis times ``m``, shape (n_bands, frames)."""
        m = as_matrix(m, "cepstral matrix")
        check_rows(m, self.n_coeffs, "cepstral matrix")
        return self.matrix.T @ m

    def __repr__(self) -> str:
        return f"DCT(n_coeffs={self.n_coeffs}, n_bands={self.n_bands})"
