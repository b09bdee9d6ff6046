import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from ldpc_core.errors import DimensionError, DomainError, StructuralError
from ldpc_core.gf2 import (
    as_binary_matrix,
    independent_rows,
    is_binary,
    matmul,
    null_space_basis,
    rank,
    rref,
    solve_linear,
)


@st.composite
def binary_matrices(draw, max_rows=6, max_cols=8):
    rows = draw(st.integers(min_value=1, max_value=max_rows))
    cols = draw(st.integers(min_value=1, max_value=max_cols))
    bits = draw(st.lists(st.integers(0, 1), min_size=rows * cols, max_size=rows * cols))
    return np.array(bits, dtype=np.uint8).reshape(rows, cols)


class TestValidation:
    def test_is_binary(self):
        assert is_binary([0, 1, 1])
        assert is_binary(np.array([True, False]))
        assert not is_binary([0, 2])
        assert not is_binary(["0", "1"])

    def test_rejects_non_binary(self):
        with pytest.raises(DomainError):
            as_binary_matrix([[0, 1], [2, 0]])

    def test_rejects_vector(self):
        with pytest.raises(DimensionError):
            as_binary_matrix([0, 1, 1])


class TestRref:
    def test_known_reduction(self, h_six_three):
        reduced, pivots = rref(h_six_three)
        expected = np.array(
            [
                [1, 0, 1, 0, 1, 1],
                [0, 1, 1, 0, 0, 1],
                [0, 0, 0, 1, 1, 1],
            ],
        )
        np.testing.assert_array_equal(reduced, expected)
        assert pivots == [0, 1, 3]

    def test_input_not_modified(self, h_six_three):
        original = h_six_three.copy()
        rref(h_six_three)
        np.testing.assert_array_equal(h_six_three, original)

    def test_rank(self):
        assert rank(np.eye(4, dtype=np.uint8)) == 4
        assert rank(np.zeros((3, 5), dtype=np.uint8)) == 0
        assert rank([[1, 1, 0], [0, 1, 1], [1, 0, 1]]) == 2

    @given(matrix=binary_matrices())
    @settings(max_examples=60)
    def test_pivot_columns_are_unit_vectors(self, matrix):
        reduced, pivots = rref(matrix)
        assert pivots == sorted(set(pivots))
        for row, col in enumerate(pivots):
            expected = np.zeros(matrix.shape[0], dtype=np.uint8)
            expected[row] = 1
            np.testing.assert_array_equal(reduced[:, col], expected)
        assert not reduced[len(pivots):].any()

    @given(matrix=binary_matrices())
    @settings(max_examples=60)
    def test_row_and_column_rank_agree(self, matrix):
        assert rank(matrix) == rank(matrix.T)


class TestNullSpace:
    @given(matrix=binary_matrices())
    @settings(max_examples=60)
    def test_basis_spans_kernel(self, matrix):
        basis = null_space_basis(matrix)
        assert basis.shape == (matrix.shape[1] - rank(matrix), matrix.shape[1])
        if basis.shape[0]:
            assert not matmul(matrix, basis.T).any()
            assert rank(basis) == basis.shape[0]

    def test_dimension_mismatch(self, h_six_three):
        with pytest.raises(StructuralError):
            null_space_basis(h_six_three, free_dim=2)

    def test_full_rank_square_has_empty_kernel(self):
        assert null_space_basis(np.eye(3, dtype=np.uint8)).shape == (0, 3)


class TestSolveLinear:
    def test_unique_solution(self):
        x = solve_linear([[1, 1], [0, 1]], [1, 1])
        np.testing.assert_array_equal(x, [0, 1])

    def test_several_right_hand_sides(self):
        a = np.array([[1, 1], [0, 1]])
        b = np.array([[1, 0], [1, 1]])
        x = solve_linear(a, b)
        np.testing.assert_array_equal(matmul(a, x), b)

    def test_inconsistent(self):
        with pytest.raises(StructuralError):
            solve_linear([[1, 1], [1, 1]], [0, 1])

    def test_row_mismatch(self):
        with pytest.raises(DimensionError):
            solve_linear([[1, 0], [0, 1]], [1, 0, 1])

    @given(matrix=binary_matrices(), data=st.data())
    @settings(max_examples=60)
    def test_solves_consistent_systems(self, matrix, data):
        x = np.array(
            data.draw(st.lists(st.integers(0, 1), min_size=matrix.shape[1], max_size=matrix.shape[1])),
            dtype=np.uint8,
        )
        b = matmul(matrix, x)
        y = solve_linear(matrix, b)
        np.testing.assert_array_equal(matmul(matrix, y), b)


def test_independent_rows():
    assert independent_rows([[1, 1], [1, 1], [0, 1]]) == [0, 2]
