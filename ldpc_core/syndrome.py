"""Syndrome computation and codeword membership checks."""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ldpc_core.errors import DimensionError
from ldpc_core.gf2 import matmul

# Largest k for which the codebook is enumerated by default
EXHAUSTIVE_CHECK_LIMIT = 15


def syndrome(vector: ArrayLike, h_matrix: ArrayLike) -> NDArray[np.uint8]:
    """Return ``H @ vector mod 2`` (length m)."""
    h_mat = np.asarray(h_matrix)
    vec = np.asarray(vector)
    if vec.shape != (h_mat.shape[1],):
        msg = f"Vector length {vec.shape} does not match H with {h_mat.shape[1]} columns"
        raise DimensionError(msg)
    return matmul(h_mat, vec)


def syndrome_weight(vector: ArrayLike, h_matrix: ArrayLike) -> int:
    """Number of unsatisfied checks."""
    return int(syndrome(vector, h_matrix).sum())


def all_information_vectors(k: int) -> NDArray[np.uint8]:
    """All ``2**k`` length-k binary vectors, row ``i`` holding the bits of ``i``."""
    values = np.arange(2**k, dtype=np.int64)
    return ((values[:, np.newaxis] >> np.arange(k)) & 1).astype(np.uint8)


def codebook(g_matrix: ArrayLike) -> NDArray[np.uint8]:
    """Every codeword generated by ``G``, one per row."""
    g_mat = np.asarray(g_matrix)
    return matmul(all_information_vectors(g_mat.shape[0]), g_mat)


def is_valid_codeword(
    candidate: ArrayLike,
    h_matrix: ArrayLike,
    g_matrix: ArrayLike | None = None,
    exhaustive_limit: int = EXHAUSTIVE_CHECK_LIMIT,
) -> bool:
    """Check that ``candidate`` belongs to the code.

    The syndrome must be zero. When ``G`` is given and has at most
    ``exhaustive_limit`` rows, the candidate must also equal one of the ``2**k``
    encoded codewords. Above the limit the syndrome test alone decides.
    """
    cand = np.asarray(candidate)
    if syndrome(cand, h_matrix).any():
        return False
    if g_matrix is None:
        return True
    g_mat = np.asarray(g_matrix)
    if g_mat.shape[0] == 0 or g_mat.shape[0] > exhaustive_limit:
        return True
    return bool(np.any(np.all(codebook(g_mat) == cand, axis=1)))
