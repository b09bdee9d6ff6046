"""Parity-check matrices of standard code families, for demos and tests."""

import numpy as np
import pyldpc
from numpy.typing import NDArray

from ldpc_core.gf2 import independent_rows


def make_repetition(n: int) -> NDArray[np.uint8]:
    """(n, 1) repetition code: check i ties bit i to bit i + 1."""
    if n < 2:
        msg = "Repetition code needs n >= 2"
        raise ValueError(msg)
    h_mat = np.zeros((n - 1, n), dtype=np.uint8)
    idx = np.arange(n - 1)
    h_mat[idx, idx] = 1
    h_mat[idx, idx + 1] = 1
    return h_mat


def make_hamming(r: int) -> NDArray[np.uint8]:
    """(2^r - 1, 2^r - 1 - r) Hamming code; column j is the binary form of j + 1."""
    if r < 2:
        msg = "Hamming code needs r >= 2"
        raise ValueError(msg)
    n = 2**r - 1
    cols = np.arange(1, n + 1)
    return ((cols[np.newaxis, :] >> np.arange(r)[:, np.newaxis]) & 1).astype(np.uint8)


def make_regular_ldpc(
    n: int,
    d_v: int,
    d_c: int,
    seed: int | None = None,
    drop_redundant: bool = True,
) -> NDArray[np.uint8]:
    """Random (d_v, d_c)-regular Gallager code from ``pyldpc.make_ldpc``.

    Gallager's construction stacks ``d_v`` row blocks that each sum to the
    all-ones vector, so H always has ``d_v - 1`` or more dependent rows. With
    ``drop_redundant`` those rows are removed, leaving a full-rank H that
    :func:`~ldpc_core.matrices.matrices_from_parity_check` accepts.
    """
    h_mat, _ = pyldpc.make_ldpc(n, d_v, d_c, systematic=False, sparse=False, seed=seed)
    if hasattr(h_mat, "toarray"):
        h_mat = h_mat.toarray()
    h_mat = np.asarray(h_mat, dtype=np.uint8)
    if drop_redundant:
        h_mat = h_mat[independent_rows(h_mat)]
    return h_mat
