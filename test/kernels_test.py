import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from ldpc_core.kernels import (
    extrinsic_parity_product,
    layered_min_sum_sweep,
    min_sum_check_update,
    phi_check_update,
    tanh_check_update,
)

LIMIT = 20.0
ONE_CHECK = np.array([0, 3], dtype=np.int64)


def _tanh_rule(messages):
    out = []
    for j in range(len(messages)):
        others = np.delete(messages, j)
        out.append(2 * np.arctanh(np.prod(np.tanh(others / 2))))
    return np.array(out)


class TestMinSum:
    def test_plain(self):
        c2v = np.zeros(3)
        min_sum_check_update(np.array([2.0, -3.0, 5.0]), c2v, ONE_CHECK, 1.0, 0.0, LIMIT)
        np.testing.assert_allclose(c2v, [-3.0, 2.0, -2.0])

    def test_scaled_and_offset(self):
        c2v = np.zeros(3)
        min_sum_check_update(np.array([2.0, -3.0, 5.0]), c2v, ONE_CHECK, 0.5, 1.0, LIMIT)
        np.testing.assert_allclose(c2v, [-1.0, 0.5, -0.5])

    def test_degree_one_check_pins_bit_to_zero(self):
        c2v = np.zeros(1)
        min_sum_check_update(np.array([-4.0]), c2v, np.array([0, 1], dtype=np.int64), 1.0, 0.0, LIMIT)
        assert c2v[0] == LIMIT


class TestTanhAndPhi:
    def test_tanh_rule(self):
        v2c = np.array([2.0, -3.0, 5.0])
        c2v = np.zeros(3)
        tanh_check_update(v2c, c2v, ONE_CHECK, LIMIT)
        np.testing.assert_allclose(c2v, _tanh_rule(v2c))

    @given(
        messages=st.lists(
            st.floats(min_value=-5.0, max_value=5.0).filter(lambda x: abs(x) > 1e-3),
            min_size=2,
            max_size=6,
        ),
    )
    @settings(max_examples=50, deadline=None)
    def test_phi_matches_tanh(self, messages):
        v2c = np.array(messages)
        bounds = np.array([0, len(v2c)], dtype=np.int64)
        from_tanh = np.zeros(len(v2c))
        from_phi = np.zeros(len(v2c))
        tanh_check_update(v2c, from_tanh, bounds, LIMIT)
        phi_check_update(v2c, from_phi, bounds, LIMIT)
        np.testing.assert_allclose(from_phi, from_tanh, rtol=1e-6, atol=1e-9)

    def test_zero_message_silences_other_edges(self):
        v2c = np.array([0.0, 2.0, -3.0])
        c2v = np.ones(3)
        phi_check_update(v2c, c2v, ONE_CHECK, LIMIT)
        assert c2v[1] == 0.0
        assert c2v[2] == 0.0
        assert c2v[0] == pytest.approx(2 * np.arctanh(np.tanh(1.0) * np.tanh(-1.5)))

    def test_two_zero_messages(self):
        c2v = np.ones(3)
        phi_check_update(np.array([0.0, 0.0, 4.0]), c2v, ONE_CHECK, LIMIT)
        np.testing.assert_array_equal(c2v, [0.0, 0.0, 0.0])


def test_layered_sweep_updates_posterior():
    posterior = np.array([2.0, -3.0, 5.0])
    c2v = np.zeros(3)
    layered_min_sum_sweep(posterior, c2v, np.arange(3, dtype=np.int64), ONE_CHECK, 1.0, 0.0, LIMIT)
    np.testing.assert_allclose(c2v, [-3.0, 2.0, -2.0])
    np.testing.assert_allclose(posterior, [-1.0, -1.0, 3.0])


def test_layered_sweep_keeps_posterior_within_limit():
    posterior = np.full(3, LIMIT)
    c2v = np.zeros(6)
    edge_var = np.array([0, 1, 2, 0, 1, 2], dtype=np.int64)
    check_bounds = np.array([0, 3, 6], dtype=np.int64)
    layered_min_sum_sweep(posterior, c2v, edge_var, check_bounds, 1.0, 0.0, LIMIT)
    np.testing.assert_allclose(c2v, np.full(6, LIMIT))
    np.testing.assert_allclose(posterior, np.full(3, LIMIT))


def test_extrinsic_parity_product():
    parity = np.empty(3, dtype=np.int64)
    product = np.empty(3)
    extrinsic_parity_product(
        np.array([1, 0, 1], dtype=np.int64),
        np.array([0.5, 0.8, 1.0]),
        ONE_CHECK,
        parity,
        product,
    )
    np.testing.assert_array_equal(parity, [1, 0, 1])
    np.testing.assert_allclose(product, [0.8, 0.5, 0.4])
