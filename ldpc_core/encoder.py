"""Systematic encoding of information vectors."""

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ldpc_core.errors import CodecError, DimensionError, DomainError, StructuralError
from ldpc_core.gf2 import as_binary_matrix, is_binary, matmul, solve_linear
from ldpc_core.matrices import MatrixResult

logger = logging.getLogger(__name__)


class ColumnOrder(Enum):
    """Column ordering of vectors exchanged with the caller."""

    GRAPH = "graph"
    SYSTEMATIC = "systematic"


@dataclass(frozen=True)
class EncodingResult:
    """Codeword plus success flag; ``codeword`` is empty on failure."""

    codeword: NDArray[np.uint8]
    success: bool
    message: str = ""


def systematic_encode(
    information: NDArray[np.uint8],
    h_matrix: ArrayLike,
    column_permutation: ArrayLike,
) -> NDArray[np.uint8]:
    """Encode through the parity equations instead of G.

    In systematic order the first k positions hold ``information``; the parity
    part p solves ``H_p @ p = H_i @ information`` where ``H_i``/``H_p`` are the
    information and parity columns of H. The result is returned in graph order.
    """
    h_mat = as_binary_matrix(h_matrix, "H")
    perm = np.asarray(column_permutation, dtype=np.int64)
    k = len(information)
    h_sys = h_mat[:, perm]
    parity = solve_linear(h_sys[:, k:], matmul(h_sys[:, :k], information))
    codeword = np.empty(h_mat.shape[1], dtype=np.uint8)
    codeword[perm] = np.concatenate([information, parity])
    return codeword


def encode(
    information: ArrayLike,
    g_matrix: ArrayLike | MatrixResult,
    column_permutation: ArrayLike | None = None,
    h_matrix: ArrayLike | None = None,
    order: ColumnOrder = ColumnOrder.GRAPH,
) -> EncodingResult:
    """Encode ``information`` as ``information @ G mod 2``.

    When both ``column_permutation`` and ``h_matrix`` are known the codeword is
    also produced by :func:`systematic_encode` and the two must match bit for
    bit. ``order`` selects whether the returned codeword uses graph column order
    or systematic order. A :class:`MatrixResult` may be passed in place of G and
    supplies the permutation and H.
    """
    if isinstance(g_matrix, MatrixResult):
        if column_permutation is None:
            column_permutation = g_matrix.column_permutation
        if h_matrix is None:
            h_matrix = g_matrix.h_matrix
        g_matrix = g_matrix.g_matrix

    try:
        g_mat = as_binary_matrix(g_matrix, "G")
        k, n = g_mat.shape
        info = np.asarray(information)
        if info.shape != (k,):
            msg = f"Information vector must have length k = {k}, got shape {info.shape}"
            raise DimensionError(msg)
        if not is_binary(info):
            msg = "Information vector must be binary"
            raise DomainError(msg)
        info = info.astype(np.uint8)

        codeword = matmul(info, g_mat)
        perm = None
        if column_permutation is not None:
            perm = np.asarray(column_permutation, dtype=np.int64)
            if sorted(perm.tolist()) != list(range(n)):
                msg = f"Column permutation is not a permutation of 0..{n - 1}"
                raise DimensionError(msg)
        if h_matrix is not None:
            h_mat = as_binary_matrix(h_matrix, "H")
            if h_mat.shape[1] != n:
                msg = f"H has {h_mat.shape[1]} columns but G has {n}"
                raise DimensionError(msg)
            if matmul(h_mat, codeword).any():
                msg = "Encoded word does not satisfy H; G and H do not belong together"
                raise StructuralError(msg)
            if perm is not None and not np.array_equal(systematic_encode(info, h_mat, perm), codeword):
                msg = "Systematic encoder disagrees with the generator matrix"
                raise StructuralError(msg)
        if order is ColumnOrder.SYSTEMATIC:
            if perm is None:
                msg = "Systematic output order needs a column permutation"
                raise DimensionError(msg)
            codeword = codeword[perm]
    except CodecError as exc:
        logger.debug("Encoding failed: %s", exc)
        return EncodingResult(codeword=np.zeros(0, dtype=np.uint8), success=False, message=str(exc))

    return EncodingResult(codeword=codeword, success=True, message="Encoded successfully")
