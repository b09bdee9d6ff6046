"""Conversion of received values to intrinsic log-likelihood ratios.

Sign convention: a positive LLR favours bit 0, a negative LLR favours bit 1.
"""

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ldpc_core.config import ChannelType, DecodingConfig
from ldpc_core.errors import DimensionError, DomainError
from ldpc_core.util import snr_db_to_linear

logger = logging.getLogger(__name__)

# Bound applied to every intrinsic LLR
INPUT_LLR_LIMIT = 50.0
# Magnitude used when no channel model is given
DEFAULT_LLR_MAGNITUDE = 4.0
# Smallest magnitude given to a non-erased hard symbol
MIN_RELIABLE_LLR = 1.0
# Symbol marking an erased position on the BEC
ERASURE = -1

DEFAULT_CROSSOVER_PROB = 0.1
DEFAULT_SNR_DB = 2.0
DEFAULT_ERASURE_PROB = 0.1

# Keeps log((1 - p) / p) finite at p = 0 and p = 1
_PROB_EPS = 1e-12


def bsc_llr_magnitude(crossover_prob: float) -> float:
    """Return ``|ln((1 - p) / p)|`` for a binary symmetric channel, at least 1."""
    p = float(np.clip(crossover_prob, _PROB_EPS, 1 - _PROB_EPS))
    return float(np.clip(abs(np.log((1 - p) / p)), MIN_RELIABLE_LLR, INPUT_LLR_LIMIT))


def awgn_llr_magnitude(snr_db: float) -> float:
    """Return ``2 * SNR`` (linear), the BPSK hard-decision approximation."""
    return min(2.0 * snr_db_to_linear(snr_db), INPUT_LLR_LIMIT)


def bec_llr_magnitude(erasure_prob: float) -> float:
    """LLR magnitude of a symbol that survived the erasure channel."""
    p = float(np.clip(erasure_prob, _PROB_EPS, 1 - _PROB_EPS))
    return float(np.clip(abs(np.log((1 - p) / p)), MIN_RELIABLE_LLR, INPUT_LLR_LIMIT))


def _hard_to_llr(bits: NDArray[np.float64], magnitude: float) -> NDArray[np.float64]:
    return np.where(bits == 0, magnitude, -magnitude)


def to_llr(received: ArrayLike, config: DecodingConfig) -> NDArray[np.float64]:
    """Map a received vector to intrinsic LLRs.

    Soft input (``llr_input`` or the ``AWGN-SOFT`` channel) is clamped to
    ``[-50, 50]`` and passed through. Hard bits on BSC/AWGN get a magnitude
    from the crossover probability or the SNR; on the BEC the erasure symbol
    ``-1`` becomes LLR 0. Without a channel type a fixed magnitude of 4 is used.

    Raises:
        DimensionError: if ``received`` is not one-dimensional.
        DomainError: on NaN, or on symbols outside the channel alphabet.

    """
    values = np.asarray(received, dtype=np.float64)
    if values.ndim != 1:
        msg = f"Received vector must be 1-D, got shape {values.shape}"
        raise DimensionError(msg)
    if np.isnan(values).any():
        msg = "Received vector contains NaN"
        raise DomainError(msg)

    if config.soft_input:
        return np.clip(values, -INPUT_LLR_LIMIT, INPUT_LLR_LIMIT)

    channel = config.channel_type
    if channel is ChannelType.BEC:
        if not np.all((values == ERASURE) | (values == 0) | (values == 1)):
            msg = "BEC input must contain only -1 (erasure), 0 and 1"
            raise DomainError(msg)
        erasure_prob = config.erasure_prob if config.erasure_prob is not None else DEFAULT_ERASURE_PROB
        llr = _hard_to_llr(values, bec_llr_magnitude(erasure_prob))
        llr[values == ERASURE] = 0.0
        logger.debug("BEC input: %d of %d symbols erased", int((values == ERASURE).sum()), len(values))
        return llr

    if not np.all((values == 0) | (values == 1)):
        msg = "Hard-decision input must contain only 0 and 1"
        raise DomainError(msg)

    if channel is ChannelType.BSC:
        crossover = config.crossover_prob if config.crossover_prob is not None else DEFAULT_CROSSOVER_PROB
        magnitude = bsc_llr_magnitude(crossover)
    elif channel is ChannelType.AWGN:
        magnitude = awgn_llr_magnitude(config.snr if config.snr is not None else DEFAULT_SNR_DB)
    else:
        magnitude = DEFAULT_LLR_MAGNITUDE
    return _hard_to_llr(values, magnitude)
