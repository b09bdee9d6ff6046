import numpy as np
import pytest

from ldpc_core.util import ebn0_to_snr, hard_decision, parse_values, snr_db_to_linear


def test_snr_db_to_linear():
    assert snr_db_to_linear(0.0) == pytest.approx(1.0)
    assert snr_db_to_linear(10.0) == pytest.approx(10.0)


def test_ebn0_to_snr_half_rate():
    assert ebn0_to_snr(3.0, 0.5) == pytest.approx(3.0 - 10 * np.log10(2))


def test_hard_decision_sign_convention():
    np.testing.assert_array_equal(hard_decision([2.0, -0.1, 0.0, -7.0]), [0, 1, 0, 1])


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1011", [1, 0, 1, 1]),
        ("1, 0, 1", [1, 0, 1]),
        ("0.5 -1.25  3", [0.5, -1.25, 3.0]),
        ("-1,0,1", [-1, 0, 1]),
    ],
)
def test_parse_values(text, expected):
    np.testing.assert_allclose(parse_values(text), expected)
