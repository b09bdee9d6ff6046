"""Parity-check / generator matrix derivation from a Tanner graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ldpc_core.errors import CodecError, DimensionError, StructuralError
from ldpc_core.gf2 import as_binary_matrix, free_columns, matmul, null_space_basis, rref
from ldpc_core.graph import TannerGraph
from ldpc_core.syndrome import EXHAUSTIVE_CHECK_LIMIT, all_information_vectors, codebook

logger = logging.getLogger(__name__)

# Number of nonzero information vectors tried when k is too large to enumerate
MIN_DISTANCE_SAMPLE_SIZE = 1000


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class MatrixResult:
    """Derived (H, G) pair for one graph.

    ``g_matrix`` is expressed in the graph's bit-column order. The columns listed
    in ``column_permutation`` take it to systematic form: position ``s`` of a
    systematic vector is graph column ``column_permutation[s]``, so
    ``g_matrix[:, column_permutation] == [I_k | P]``.

    ``min_distance`` is exact only when ``min_distance_exact`` is set; for large
    k it is the lowest weight found over a sample of codewords.
    """

    h_matrix: NDArray[np.uint8]
    g_matrix: NDArray[np.uint8]
    n: int
    k: int
    m: int
    rank: int
    column_permutation: NDArray[np.int64]
    min_distance: int
    min_distance_exact: bool
    valid: bool
    message: str = ""
    bit_labels: tuple[str, ...] = field(default_factory=tuple)
    check_labels: tuple[str, ...] = field(default_factory=tuple)

    @property
    def code_rate(self) -> float:
        """Return k/n, or 0.0 for an empty code."""
        return self.k / self.n if self.n else 0.0

    @property
    def systematic_generator(self) -> NDArray[np.uint8]:
        """G with columns reordered to ``[I_k | P]``."""
        return self.g_matrix[:, self.column_permutation]

    def to_systematic(self, vector: ArrayLike) -> NDArray[Any]:
        """Reorder a graph-order vector into systematic order."""
        vec = np.asarray(vector)
        if vec.shape != (self.n,):
            msg = f"Expected a vector of length {self.n}, got shape {vec.shape}"
            raise DimensionError(msg)
        return vec[self.column_permutation]

    def from_systematic(self, vector: ArrayLike) -> NDArray[Any]:
        """Reorder a systematic-order vector back into graph order."""
        vec = np.asarray(vector)
        if vec.shape != (self.n,):
            msg = f"Expected a vector of length {self.n}, got shape {vec.shape}"
            raise DimensionError(msg)
        out = np.empty_like(vec)
        out[self.column_permutation] = vec
        return out

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable summary (matrices as nested 0/1 lists)."""
        return {
            "valid": self.valid,
            "message": self.message,
            "n": self.n,
            "k": self.k,
            "m": self.m,
            "rank": self.rank,
            "H": self.h_matrix.tolist(),
            "G": self.g_matrix.tolist(),
            "columnPermutation": self.column_permutation.tolist(),
            "minDistance": self.min_distance,
            "minDistanceExact": self.min_distance_exact,
            "bitLabels": list(self.bit_labels),
            "checkLabels": list(self.check_labels),
        }


def build_matrices(
    graph: TannerGraph | dict[str, Any],
    exhaustive_limit: int = EXHAUSTIVE_CHECK_LIMIT,
) -> MatrixResult:
    """Derive H and a systematic G from a constraint graph.

    Bit nodes become columns and check nodes rows, both ordered by the numeric
    suffix of their label (``B1, B2, ..., B10``), falling back to lexical order.
    Structural problems are reported through ``valid=False``.
    """
    try:
        if not isinstance(graph, TannerGraph):
            graph = TannerGraph.from_dict(graph)
        bits, checks = graph.bit_nodes, graph.check_nodes
        if not bits:
            msg = "Graph has no bit nodes"
            raise StructuralError(msg)
        if not checks:
            msg = "Graph has no check nodes"
            raise StructuralError(msg)
        h_mat = graph.parity_check_matrix()
    except StructuralError as exc:
        logger.info("Matrix build rejected: %s", exc)
        return _invalid_result(str(exc))

    return matrices_from_parity_check(
        h_mat,
        bit_labels=[node.label for node in bits],
        check_labels=[node.label for node in checks],
        exhaustive_limit=exhaustive_limit,
    )


def matrices_from_parity_check(
    h_matrix: ArrayLike,
    bit_labels: list[str] | None = None,
    check_labels: list[str] | None = None,
    exhaustive_limit: int = EXHAUSTIVE_CHECK_LIMIT,
) -> MatrixResult:
    """Derive G, the column permutation and d_min for a given H."""
    try:
        h_mat = as_binary_matrix(h_matrix, "H")
    except CodecError as exc:
        return _invalid_result(str(exc))

    m, n = h_mat.shape
    bit_labels = bit_labels or [f"B{j + 1}" for j in range(n)]
    check_labels = check_labels or [f"C{i + 1}" for i in range(m)]
    try:
        g_mat, permutation, h_rank = _derive_generator(h_mat)
    except StructuralError as exc:
        logger.info("Matrix build rejected: %s", exc)
        return _invalid_result(str(exc), h_mat, tuple(bit_labels), tuple(check_labels))

    k = g_mat.shape[0]
    d_min, exact = estimate_min_distance(g_mat, exhaustive_limit)
    logger.info("Built (%d, %d) code: rank %d, d_min %s%d", n, k, h_rank, "" if exact else "<=", d_min)
    return MatrixResult(
        h_matrix=_frozen(h_mat),
        g_matrix=_frozen(g_mat),
        n=n,
        k=k,
        m=m,
        rank=h_rank,
        column_permutation=_frozen(permutation),
        min_distance=d_min,
        min_distance_exact=exact,
        valid=True,
        message=f"Valid ({n}, {k}) code",
        bit_labels=tuple(bit_labels),
        check_labels=tuple(check_labels),
    )


def _invalid_result(
    message: str,
    h_mat: NDArray[np.uint8] | None = None,
    bit_labels: tuple[str, ...] = (),
    check_labels: tuple[str, ...] = (),
) -> MatrixResult:
    if h_mat is None:
        h_mat = np.zeros((0, 0), dtype=np.uint8)
    m, n = h_mat.shape
    return MatrixResult(
        h_matrix=_frozen(h_mat),
        g_matrix=_frozen(np.zeros((0, n), dtype=np.uint8)),
        n=n,
        k=0,
        m=m,
        rank=0,
        column_permutation=_frozen(np.arange(n, dtype=np.int64)),
        min_distance=0,
        min_distance_exact=False,
        valid=False,
        message=message,
        bit_labels=bit_labels,
        check_labels=check_labels,
    )


def _derive_generator(h_mat: NDArray[np.uint8]) -> tuple[NDArray[np.uint8], NDArray[np.int64], int]:
    """Return (G, column permutation, rank) or raise StructuralError."""
    m, n = h_mat.shape
    k = n - m
    if k <= 0:
        msg = f"Code dimension k = n - m = {k} must be positive ({m} checks, {n} bits)"
        raise StructuralError(msg)

    zero_rows = np.flatnonzero(~h_mat.any(axis=1))
    if zero_rows.size:
        logger.warning("Parity-check rows without any bit: %s", zero_rows.tolist())

    reduced, pivots = rref(h_mat)
    if len(pivots) != m:
        msg = f"H has rank {len(pivots)} but {m} checks; remove redundant checks"
        raise StructuralError(msg)
    free = free_columns(n, pivots)
    if len(free) != k:
        msg = f"Found {len(free)} free columns, expected k = {k}"
        raise StructuralError(msg)

    g_mat = _systematic_generator(reduced, pivots, free)
    permutation = np.array(free + pivots, dtype=np.int64)
    if verify_orthogonality(h_mat, g_mat):
        return g_mat, permutation, len(pivots)

    logger.warning("Systematic generator failed H @ G.T == 0, falling back to null-space basis")
    g_mat, permutation = _generator_from_null_space(h_mat, k)
    if not verify_orthogonality(h_mat, g_mat):
        msg = "No generator matrix satisfies H @ G.T == 0"
        raise StructuralError(msg)
    return g_mat, permutation, len(pivots)


def _systematic_generator(reduced: NDArray[np.uint8], pivots: list[int], free: list[int]) -> NDArray[np.uint8]:
    """Read G off the RREF of H.

    Row i has a 1 at free column ``free[i]``; each pivot column takes the
    RREF entry of its pivot row at that free column.
    """
    n = reduced.shape[1]
    g_mat = np.zeros((len(free), n), dtype=np.uint8)
    for i, col in enumerate(free):
        g_mat[i, col] = 1
        for row, pivot in enumerate(pivots):
            g_mat[i, pivot] = reduced[row, col]
    return g_mat


def _generator_from_null_space(h_mat: NDArray[np.uint8], k: int) -> tuple[NDArray[np.uint8], NDArray[np.int64]]:
    """Null-space basis of H brought to reduced form, with its own permutation."""
    basis = null_space_basis(h_mat, free_dim=k)
    g_mat, g_pivots = rref(basis)
    rest = free_columns(h_mat.shape[1], g_pivots)
    return g_mat, np.array(g_pivots + rest, dtype=np.int64)


def verify_orthogonality(h_matrix: ArrayLike, g_matrix: ArrayLike) -> bool:
    """True when ``H @ G.T == 0`` over GF(2)."""
    g_mat = np.asarray(g_matrix)
    if g_mat.shape[0] == 0:
        return True
    return not matmul(h_matrix, g_mat.T).any()


def estimate_min_distance(
    g_matrix: ArrayLike,
    exhaustive_limit: int = EXHAUSTIVE_CHECK_LIMIT,
    sample_size: int = MIN_DISTANCE_SAMPLE_SIZE,
) -> tuple[int, bool]:
    """Smallest nonzero codeword weight and whether it is exact.

    All ``2**k - 1`` nonzero codewords are enumerated for ``k <= exhaustive_limit``.
    Otherwise only the first ``sample_size`` nonzero information vectors are
    encoded and the result is an upper bound on the true distance.
    """
    g_mat = np.asarray(g_matrix)
    k = g_mat.shape[0]
    if k == 0:
        return 0, True
    if k <= exhaustive_limit:
        codewords = codebook(g_mat)[1:]
        exact = True
    else:
        count = min(sample_size, 2**k - 1)
        values = np.arange(1, count + 1, dtype=np.int64)
        width = min(k, count.bit_length())
        info = np.zeros((count, k), dtype=np.uint8)
        info[:, :width] = (values[:, np.newaxis] >> np.arange(width)) & 1
        codewords = matmul(info, g_mat)
        exact = False
    weights = codewords.sum(axis=1, dtype=np.int64)
    return int(weights.min()), exact


@dataclass(frozen=True)
class CodeAnalysis:
    """Read-only diagnostics for an (H, G) pair."""

    n: int
    k: int
    m: int
    code_rate: float
    density: float
    average_bit_degree: float
    average_check_degree: float

    @property
    def average_degree(self) -> float:
        """Mean number of edges per node over both node sets."""
        nodes = self.n + self.m
        return (self.average_bit_degree * self.n + self.average_check_degree * self.m) / nodes if nodes else 0.0


def analyze_code(h_matrix: ArrayLike, g_matrix: ArrayLike) -> CodeAnalysis:
    """Code rate, fraction of ones in H and mean node degrees."""
    h_mat = as_binary_matrix(h_matrix, "H")
    g_mat = np.asarray(g_matrix)
    m, n = h_mat.shape
    k = g_mat.shape[0]
    edges = int(h_mat.sum(dtype=np.int64))
    return CodeAnalysis(
        n=n,
        k=k,
        m=m,
        code_rate=k / n if n else 0.0,
        density=edges / (m * n) if m * n else 0.0,
        average_bit_degree=edges / n if n else 0.0,
        average_check_degree=edges / m if m else 0.0,
    )


@dataclass(frozen=True)
class MatrixAnalysis:
    """Extended structure report: degree distributions and distance."""

    success: bool
    error: str = ""
    n: int = 0
    k: int = 0
    m: int = 0
    code_rate: float = 0.0
    density: float = 0.0
    is_regular: bool = False
    bit_degree_distribution: dict[int, int] = field(default_factory=dict)
    check_degree_distribution: dict[int, int] = field(default_factory=dict)
    min_distance: int = 0
    min_distance_exact: bool = False


def analyze_matrices(
    h_matrix: ArrayLike,
    g_matrix: ArrayLike,
    exhaustive_limit: int = EXHAUSTIVE_CHECK_LIMIT,
) -> MatrixAnalysis:
    """Degree distributions, regularity and d_min of a matrix pair."""
    try:
        h_mat = as_binary_matrix(h_matrix, "H")
        g_mat = as_binary_matrix(g_matrix, "G")
        if g_mat.shape[1] != h_mat.shape[1]:
            msg = f"G has {g_mat.shape[1]} columns but H has {h_mat.shape[1]}"
            raise DimensionError(msg)
        if not verify_orthogonality(h_mat, g_mat):
            msg = "H @ G.T is not zero"
            raise StructuralError(msg)
    except CodecError as exc:
        return MatrixAnalysis(success=False, error=str(exc))

    summary = analyze_code(h_mat, g_mat)
    bit_degrees = h_mat.sum(axis=0, dtype=np.int64)
    check_degrees = h_mat.sum(axis=1, dtype=np.int64)
    d_min, exact = estimate_min_distance(g_mat, exhaustive_limit)
    return MatrixAnalysis(
        success=True,
        n=summary.n,
        k=summary.k,
        m=summary.m,
        code_rate=summary.code_rate,
        density=summary.density,
        is_regular=bool(np.unique(bit_degrees).size <= 1 and np.unique(check_degrees).size <= 1),
        bit_degree_distribution=_histogram(bit_degrees),
        check_degree_distribution=_histogram(check_degrees),
        min_distance=d_min,
        min_distance_exact=exact,
    )


def _histogram(degrees: NDArray[np.int64]) -> dict[int, int]:
    values, counts = np.unique(degrees, return_counts=True)
    return {int(v): int(c) for v, c in zip(values, counts)}


@dataclass(frozen=True)
class MatrixValidation:
    """Outcome of :func:`validate_matrix`."""

    is_valid: bool
    errors: tuple[str, ...] = ()


def validate_matrix(matrix: Any) -> MatrixValidation:
    """Check that ``matrix`` is a non-empty rectangular array of 0/1 entries."""
    try:
        rows = [list(row) for row in matrix]
    except TypeError:
        return MatrixValidation(is_valid=False, errors=("Matrix must be a sequence of rows",))

    errors = []
    if not rows or not rows[0]:
        errors.append("Matrix must not be empty")
    if len({len(row) for row in rows}) > 1:
        errors.append("All rows must have the same length")
    for i, row in enumerate(rows):
        bad = [j for j, value in enumerate(row) if isinstance(value, str) or value not in (0, 1)]
        if bad:
            errors.append(f"Row {i} has non-binary entries at columns {bad}")
    return MatrixValidation(is_valid=not errors, errors=tuple(errors))
