"""Linear algebra over GF(2).

All matrices are handled as ``uint8`` arrays holding 0/1. Addition is XOR, so
row operations become ``row_a ^= row_b``.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ldpc_core.errors import DimensionError, DomainError, StructuralError


def is_binary(values: ArrayLike) -> bool:
    """Return True when every entry of ``values`` is 0 or 1."""
    arr = np.asarray(values)
    if arr.size == 0:
        return True
    if not np.issubdtype(arr.dtype, np.number) and arr.dtype != np.bool_:
        return False
    return bool(np.all((arr == 0) | (arr == 1)))


def as_binary_matrix(matrix: ArrayLike, name: str = "matrix") -> NDArray[np.uint8]:
    """Validate ``matrix`` as a 2-D binary array and return a uint8 copy."""
    arr = np.asarray(matrix)
    if arr.ndim != 2:
        msg = f"{name} must be 2-D, got shape {arr.shape}"
        raise DimensionError(msg)
    if not is_binary(arr):
        msg = f"{name} must contain only 0 and 1"
        raise DomainError(msg)
    return arr.astype(np.uint8)


def matmul(a: ArrayLike, b: ArrayLike) -> NDArray[np.uint8]:
    """Matrix (or matrix-vector) product reduced mod 2."""
    product = np.asarray(a, dtype=np.int64) @ np.asarray(b, dtype=np.int64)
    return (product % 2).astype(np.uint8)


def rref(matrix: ArrayLike) -> tuple[NDArray[np.uint8], list[int]]:
    """Reduce ``matrix`` to reduced row echelon form.

    Gauss-Jordan elimination: for each column the first row at or below the
    current row holding a 1 is swapped up and XORed into every other row with a
    1 in that column, above as well as below.

    Returns:
        The reduced matrix (a new array) and the list of pivot columns. The
        pivot of row ``i`` is ``pivots[i]`` for ``i < len(pivots)``; the
        remaining rows are zero.

    """
    reduced = as_binary_matrix(matrix).copy()
    num_rows, num_cols = reduced.shape
    pivots: list[int] = []
    row = 0
    for col in range(num_cols):
        if row >= num_rows:
            break
        candidates = np.flatnonzero(reduced[row:, col])
        if candidates.size == 0:
            continue
        pivot_row = row + int(candidates[0])
        if pivot_row != row:
            reduced[[row, pivot_row]] = reduced[[pivot_row, row]]
        mask = reduced[:, col].astype(bool)
        mask[row] = False
        reduced[mask] ^= reduced[row]
        pivots.append(col)
        row += 1
    return reduced, pivots


def rank(matrix: ArrayLike) -> int:
    """Rank of ``matrix`` over GF(2)."""
    _, pivots = rref(matrix)
    return len(pivots)


def free_columns(num_cols: int, pivots: list[int]) -> list[int]:
    """Columns of an ``num_cols``-wide matrix that are not pivots, ascending."""
    pivot_set = set(pivots)
    return [col for col in range(num_cols) if col not in pivot_set]


def null_space_basis(matrix: ArrayLike, free_dim: int | None = None) -> NDArray[np.uint8]:
    """Basis of the right null space ``{x : matrix @ x = 0}``.

    One basis vector per free column ``f``: a 1 at ``f`` and, for every pivot
    row ``i`` with pivot column ``p``, the entry ``rref[i, f]`` at ``p``.

    Args:
        matrix: Binary matrix of shape (m, n).
        free_dim: Expected dimension of the null space. A mismatch raises
            StructuralError instead of silently returning a different basis.

    Returns:
        Array of shape (dim, n) whose rows span the null space.

    """
    reduced, pivots = rref(matrix)
    num_cols = reduced.shape[1]
    free = free_columns(num_cols, pivots)
    if free_dim is not None and len(free) != free_dim:
        msg = f"Null space has dimension {len(free)}, expected {free_dim}"
        raise StructuralError(msg)

    basis = np.zeros((len(free), num_cols), dtype=np.uint8)
    for row, col in enumerate(free):
        basis[row, col] = 1
        basis[row, pivots] = reduced[: len(pivots), col]
    return basis


def solve_linear(a: ArrayLike, b: ArrayLike) -> NDArray[np.uint8]:
    """Solve ``a @ x = b`` over GF(2) through the RREF of ``[a | b]``.

    ``b`` may be a vector or a matrix of several right-hand sides. Free
    variables are set to 0, so for a singular ``a`` one particular solution is
    returned.

    Raises:
        DimensionError: when the row counts of ``a`` and ``b`` differ.
        StructuralError: when the system is inconsistent.

    """
    a_mat = as_binary_matrix(a, "a")
    b_arr = np.asarray(b)
    vector_rhs = b_arr.ndim == 1
    b_mat = as_binary_matrix(b_arr.reshape(-1, 1) if vector_rhs else b_arr, "b")
    if b_mat.shape[0] != a_mat.shape[0]:
        msg = f"Right-hand side has {b_mat.shape[0]} rows, system has {a_mat.shape[0]}"
        raise DimensionError(msg)

    num_vars = a_mat.shape[1]
    reduced, pivots = rref(np.hstack([a_mat, b_mat]))
    if pivots and pivots[-1] >= num_vars:
        msg = "Linear system over GF(2) is inconsistent"
        raise StructuralError(msg)

    solution = np.zeros((num_vars, b_mat.shape[1]), dtype=np.uint8)
    for row, col in enumerate(pivots):
        solution[col] = reduced[row, num_vars:]
    return solution[:, 0] if vector_rhs else solution


def independent_rows(matrix: ArrayLike) -> list[int]:
    """Indices of a maximal set of linearly independent rows, in order."""
    _, pivots = rref(as_binary_matrix(matrix).T)
    return pivots
