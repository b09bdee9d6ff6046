import logging
import random

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from ldpc_core import matrices
from ldpc_core.encoder import encode
from ldpc_core.gf2 import matmul, rank
from ldpc_core.matrices import (
    analyze_code,
    analyze_matrices,
    build_matrices,
    estimate_min_distance,
    matrices_from_parity_check,
    validate_matrix,
    verify_orthogonality,
)
from ldpc_core.syndrome import all_information_vectors

H_SIX_THREE = np.array([[1, 0, 1, 1, 0, 0], [1, 1, 0, 0, 1, 0], [0, 1, 1, 0, 0, 1]], dtype=np.uint8)


@st.composite
def parity_check_matrices(draw):
    m = draw(st.integers(min_value=1, max_value=4))
    n = draw(st.integers(min_value=m + 1, max_value=9))
    bits = draw(st.lists(st.integers(0, 1), min_size=m * n, max_size=m * n))
    return np.array(bits, dtype=np.uint8).reshape(m, n)


class TestBuildFromGraph:
    def test_three_bit_graph(self, three_bit_graph):
        result = build_matrices(three_bit_graph)
        assert result.valid
        assert (result.n, result.k, result.m) == (3, 1, 2)
        np.testing.assert_array_equal(result.h_matrix, [[1, 1, 0], [1, 0, 1]])
        np.testing.assert_array_equal(result.g_matrix, [[1, 1, 1]])
        np.testing.assert_array_equal(result.column_permutation, [2, 0, 1])
        assert result.min_distance == 3
        assert result.min_distance_exact
        assert result.bit_labels == ("B1", "B2", "B3")

    def test_deterministic_under_edge_shuffle(self, three_bit_graph):
        first = build_matrices(three_bit_graph)
        shuffled = dict(three_bit_graph)
        edges = [dict(e) for e in three_bit_graph["edges"]]
        random.Random(7).shuffle(edges)
        shuffled["edges"] = [{"source": e["target"], "target": e["source"]} for e in edges]
        second = build_matrices(shuffled)
        np.testing.assert_array_equal(first.h_matrix, second.h_matrix)
        np.testing.assert_array_equal(first.g_matrix, second.g_matrix)
        np.testing.assert_array_equal(first.column_permutation, second.column_permutation)

    def test_no_check_nodes(self):
        result = build_matrices({"nodes": [{"id": "B1", "type": "bit"}], "edges": []})
        assert not result.valid
        assert "no check nodes" in result.message

    def test_no_bit_nodes(self):
        result = build_matrices({"nodes": [{"id": "C1", "type": "check"}], "edges": []})
        assert not result.valid
        assert "no bit nodes" in result.message

    def test_same_tag_edge_is_invalid_not_raised(self):
        graph = {
            "nodes": [{"id": "B1", "type": "bit"}, {"id": "B2", "type": "bit"}, {"id": "C1", "type": "check"}],
            "edges": [{"source": "B1", "target": "B2"}],
        }
        assert not build_matrices(graph).valid


class TestDerivation:
    def test_six_three_code(self, code_six_three):
        assert code_six_three.valid
        assert code_six_three.rank == 3
        np.testing.assert_array_equal(
            code_six_three.g_matrix,
            [[1, 1, 1, 0, 0, 0], [1, 0, 0, 1, 1, 0], [1, 1, 0, 1, 0, 1]],
        )
        np.testing.assert_array_equal(code_six_three.column_permutation, [2, 4, 5, 0, 1, 3])
        assert code_six_three.min_distance == 3

    def test_systematic_generator_starts_with_identity(self, code_six_three):
        sys_g = code_six_three.systematic_generator
        np.testing.assert_array_equal(sys_g[:, :3], np.eye(3, dtype=np.uint8))

    def test_permutation_helpers_invert(self, code_six_three):
        vec = np.arange(6)
        np.testing.assert_array_equal(code_six_three.from_systematic(code_six_three.to_systematic(vec)), vec)

    def test_matrices_are_read_only(self, code_six_three):
        with pytest.raises(ValueError):
            code_six_three.g_matrix[0, 0] = 0

    def test_too_many_checks(self):
        result = matrices_from_parity_check([[1, 0], [0, 1]])
        assert not result.valid
        assert "must be positive" in result.message

    def test_rank_deficient(self):
        result = matrices_from_parity_check([[1, 1, 0, 0], [1, 1, 0, 0]])
        assert not result.valid
        assert "rank" in result.message

    def test_zero_row_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ldpc_core.matrices"):
            result = matrices_from_parity_check([[1, 1, 0], [0, 0, 0]])
        assert not result.valid
        assert "without any bit" in caplog.text

    def test_isolated_bit_gives_weight_one_codeword(self):
        result = matrices_from_parity_check([[1, 1, 0]])
        assert result.valid
        assert result.k == 2
        assert result.min_distance == 1

    def test_non_binary_matrix(self):
        assert not matrices_from_parity_check([[1, 2, 0]]).valid

    def test_null_space_fallback(self, monkeypatch, caplog):
        monkeypatch.setattr(matrices, "_systematic_generator", lambda reduced, pivots, free: np.ones((3, 6), np.uint8))
        with caplog.at_level(logging.WARNING, logger="ldpc_core.matrices"):
            result = matrices_from_parity_check(H_SIX_THREE)
        assert "falling back" in caplog.text
        assert result.valid
        assert verify_orthogonality(result.h_matrix, result.g_matrix)
        np.testing.assert_array_equal(result.systematic_generator[:, :3], np.eye(3, dtype=np.uint8))
        assert encode([1, 1, 0], result).success

    def test_to_dict(self, code_six_three):
        out = code_six_three.to_dict()
        assert out["valid"]
        assert out["columnPermutation"] == [2, 4, 5, 0, 1, 3]
        assert out["H"] == H_SIX_THREE.tolist()

    @given(h_mat=parity_check_matrices())
    @settings(max_examples=80, deadline=None)
    def test_valid_results_are_orthogonal(self, h_mat):
        result = matrices_from_parity_check(h_mat)
        if not result.valid:
            assert rank(h_mat) < h_mat.shape[0]
            return
        assert result.k == h_mat.shape[1] - h_mat.shape[0]
        assert not matmul(result.h_matrix, result.g_matrix.T).any()
        np.testing.assert_array_equal(result.systematic_generator[:, : result.k], np.eye(result.k, dtype=np.uint8))

    def test_encoding_is_injective(self, code_six_three):
        codewords = matmul(all_information_vectors(3), code_six_three.g_matrix)
        assert len({cw.tobytes() for cw in codewords}) == 8


class TestMinDistance:
    def test_repetition_code(self):
        d_min, exact = estimate_min_distance(np.ones((1, 5), dtype=np.uint8))
        assert (d_min, exact) == (5, True)

    def test_sampled_for_large_k(self):
        g_mat = np.hstack([np.eye(16, dtype=np.uint8), np.ones((16, 2), dtype=np.uint8)])
        d_min, exact = estimate_min_distance(g_mat)
        assert not exact
        # two information bits cancel the parity columns
        assert d_min == 2

    def test_sample_never_exceeds_codebook(self, code_six_three):
        d_min, exact = estimate_min_distance(code_six_three.g_matrix, exhaustive_limit=1)
        assert not exact
        assert d_min == 3


class TestAnalysis:
    def test_analyze_code(self, code_six_three):
        summary = analyze_code(code_six_three.h_matrix, code_six_three.g_matrix)
        assert summary.code_rate == pytest.approx(0.5)
        assert summary.density == pytest.approx(9 / 18)
        assert summary.average_bit_degree == pytest.approx(1.5)
        assert summary.average_check_degree == pytest.approx(3.0)
        assert summary.average_degree == pytest.approx(2.0)

    def test_analyze_matrices(self, code_six_three):
        report = analyze_matrices(code_six_three.h_matrix, code_six_three.g_matrix)
        assert report.success
        assert report.bit_degree_distribution == {1: 3, 2: 3}
        assert report.check_degree_distribution == {3: 3}
        assert not report.is_regular
        assert report.min_distance == 3

    def test_analyze_mismatched_pair(self, code_six_three):
        report = analyze_matrices(code_six_three.h_matrix, np.eye(6, dtype=np.uint8))
        assert not report.success
        assert "not zero" in report.error

    def test_regular_code(self):
        h_mat = np.array([[1, 1, 0, 0], [0, 0, 1, 1]], dtype=np.uint8)
        report = analyze_matrices(h_mat, matrices_from_parity_check(h_mat).g_matrix)
        assert report.is_regular


class TestValidateMatrix:
    def test_valid(self):
        assert validate_matrix([[0, 1], [1, 1]]).is_valid

    @pytest.mark.parametrize(
        "matrix",
        [
            [],
            [[0, 1], [1]],
            [[0, 2]],
            [["a", 1]],
            5,
        ],
    )
    def test_invalid(self, matrix):
        report = validate_matrix(matrix)
        assert not report.is_valid
        assert report.errors
