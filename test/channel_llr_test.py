import math

import numpy as np
import pytest

from ldpc_core.channel_llr import (
    DEFAULT_LLR_MAGNITUDE,
    INPUT_LLR_LIMIT,
    MIN_RELIABLE_LLR,
    awgn_llr_magnitude,
    bec_llr_magnitude,
    bsc_llr_magnitude,
    to_llr,
)
from ldpc_core.config import ChannelType, DecodingConfig
from ldpc_core.errors import DimensionError, DomainError


class TestMagnitudes:
    def test_bsc(self):
        assert bsc_llr_magnitude(0.1) == pytest.approx(math.log(9))

    def test_bsc_edges(self):
        assert bsc_llr_magnitude(0.0) == pytest.approx(math.log(1e12))
        assert bsc_llr_magnitude(1.0) == pytest.approx(math.log(1e12))
        assert bsc_llr_magnitude(0.5) == MIN_RELIABLE_LLR
        assert bsc_llr_magnitude(0.45) == MIN_RELIABLE_LLR

    def test_awgn(self):
        assert awgn_llr_magnitude(0.0) == pytest.approx(2.0)
        assert awgn_llr_magnitude(2.0) == pytest.approx(2 * 10**0.2)
        assert awgn_llr_magnitude(40.0) == INPUT_LLR_LIMIT

    def test_bec_floor(self):
        assert bec_llr_magnitude(0.5) == pytest.approx(1.0)
        assert bec_llr_magnitude(0.1) == pytest.approx(math.log(9))


class TestToLlr:
    def test_default_magnitude(self):
        llr = to_llr([0, 1, 1], DecodingConfig())
        np.testing.assert_allclose(llr, [DEFAULT_LLR_MAGNITUDE, -DEFAULT_LLR_MAGNITUDE, -DEFAULT_LLR_MAGNITUDE])

    def test_bsc_sign_convention(self):
        llr = to_llr([0, 1], DecodingConfig(channel_type=ChannelType.BSC, crossover_prob=0.1))
        np.testing.assert_allclose(llr, [math.log(9), -math.log(9)])

    def test_awgn_hard_bits(self):
        llr = to_llr([1, 0], DecodingConfig(channel_type="AWGN", snr=0.0))
        np.testing.assert_allclose(llr, [-2.0, 2.0])

    def test_soft_input_is_clamped(self):
        llr = to_llr([120.0, -3.5, -75.0], DecodingConfig(llr_input=True))
        np.testing.assert_allclose(llr, [50.0, -3.5, -50.0])

    def test_awgn_soft_channel_passes_through(self):
        llr = to_llr([0.25, -1.0], DecodingConfig(channel_type=ChannelType.AWGN_SOFT))
        np.testing.assert_allclose(llr, [0.25, -1.0])

    def test_bec_erasures_are_zero(self):
        llr = to_llr([0, -1, 1], DecodingConfig(channel_type=ChannelType.BEC, erasure_prob=0.5))
        np.testing.assert_allclose(llr, [1.0, 0.0, -1.0])

    def test_bec_rejects_other_symbols(self):
        with pytest.raises(DomainError):
            to_llr([0, 2, 1], DecodingConfig(channel_type=ChannelType.BEC))

    def test_hard_input_rejects_soft_values(self):
        with pytest.raises(DomainError):
            to_llr([0.3, 1.0], DecodingConfig(channel_type=ChannelType.BSC))

    def test_nan(self):
        with pytest.raises(DomainError):
            to_llr([0.0, float("nan")], DecodingConfig(llr_input=True))

    def test_not_a_vector(self):
        with pytest.raises(DimensionError):
            to_llr([[0, 1]], DecodingConfig())
