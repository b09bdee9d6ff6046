"""Message-passing decoder variants sharing one Tanner-graph protocol.

A decoder is created once per decode call. Construction is the Init step
(edge index, intrinsic LLRs, initial variable-to-check messages); every call to
:meth:`MessagePassingDecoder.iterate` runs one full iteration and leaves the
current hard decision in ``hard`` and a signed reliability in ``posterior``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray
from scipy import sparse

from ldpc_core.config import Algorithm, DecodingConfig
from ldpc_core.kernels import (
    extrinsic_parity_product,
    layered_min_sum_sweep,
    min_sum_check_update,
    phi_check_update,
    tanh_check_update,
)
from ldpc_core.util import hard_decision

logger = logging.getLogger(__name__)

# Bound on every message and on the intrinsic LLR inside the decoder
MESSAGE_LIMIT = 20.0
# Belief propagation raises the new-message weight after this many iterations
DAMPING_RAMP_ITERATION = 5
DAMPING_CEILING = 0.9
# Min-sum keeps 10 % of the previous message during its first iterations
MIN_SUM_SETTLE_ITERATIONS = 3
MIN_SUM_SETTLE_WEIGHT = 0.9

# Gallager vote tuning
GALLAGER_TIE_MARGIN = 0.1
GALLAGER_FLIP_LIKELIHOOD = 0.7
GALLAGER_B_THRESHOLD = 0.5
GALLAGER_B_THRESHOLD_FLOOR = 0.2
GALLAGER_B_THRESHOLD_CEILING = 0.8
GALLAGER_B_STALLS_BEFORE_LOWERING = 2


class TannerIndex:
    """Edge arrays for H, built once per decode and reused every iteration.

    Edges are numbered in check-major order (the CSR layout of H), so
    ``check_bounds`` slices the edges of each check and ``edge_var`` gives
    the bit of each edge.
    """

    def __init__(self, h_matrix: NDArray[np.uint8]) -> None:
        """Index the nonzero entries of ``h_matrix``."""
        csr = sparse.csr_matrix(h_matrix)
        csr.sort_indices()
        self.h_matrix = h_matrix
        self.num_checks, self.num_vars = h_matrix.shape
        self.check_bounds = csr.indptr.astype(np.int64)
        self.edge_var = csr.indices.astype(np.int64)
        self.edge_check = np.repeat(np.arange(self.num_checks, dtype=np.int64), np.diff(self.check_bounds))
        self.var_degree = np.bincount(self.edge_var, minlength=self.num_vars)

    @property
    def num_edges(self) -> int:
        """Number of ones in H."""
        return len(self.edge_var)

    def syndrome(self, bits: NDArray[np.uint8]) -> NDArray[np.uint8]:
        """Syndrome of ``bits`` using the edge arrays."""
        counts = np.bincount(self.edge_check, weights=bits[self.edge_var], minlength=self.num_checks)
        return (counts.astype(np.int64) % 2).astype(np.uint8)


class MessagePassingDecoder(ABC):
    """Common state of all variants."""

    algorithm: ClassVar[Algorithm]
    soft: ClassVar[bool] = True

    def __init__(self, index: TannerIndex, intrinsic: NDArray[np.float64], config: DecodingConfig) -> None:
        """Init step: clamp the intrinsic LLR and take the first hard decision."""
        self.index = index
        self.config = config
        self.llr = np.clip(intrinsic, -MESSAGE_LIMIT, MESSAGE_LIMIT)
        self.posterior = self.llr.copy()
        self.hard = hard_decision(self.llr)

    @property
    def can_stagnate(self) -> bool:
        """Whether a repeated hard decision may end the run."""
        return True

    @abstractmethod
    def iterate(self, iteration: int) -> None:
        """Run iteration ``iteration`` (0-based) and update ``hard``/``posterior``."""


class _FloodingDecoder(MessagePassingDecoder):
    """Flooding schedule: all checks, then all bits, each iteration."""

    def __init__(self, index: TannerIndex, intrinsic: NDArray[np.float64], config: DecodingConfig) -> None:
        """Initialise variable-to-check messages to the intrinsic LLR."""
        super().__init__(index, intrinsic, config)
        self.v2c = self.llr[index.edge_var].copy()
        self.c2v = np.zeros(index.num_edges, dtype=np.float64)

    @abstractmethod
    def _check_update(self) -> None:
        """Fill ``self.c2v`` from ``self.v2c``."""

    def _new_message_weight(self, iteration: int) -> float:
        return 1.0

    def iterate(self, iteration: int) -> None:
        """Check update, then extrinsic variable update with optional damping."""
        self._check_update()

        edge_var = self.index.edge_var
        l_total = self.llr.copy()
        np.add.at(l_total, edge_var, self.c2v)
        new_v2c = np.clip(l_total[edge_var] - self.c2v, -MESSAGE_LIMIT, MESSAGE_LIMIT)

        weight = self._new_message_weight(iteration)
        if weight < 1.0:
            self.v2c = weight * new_v2c + (1.0 - weight) * self.v2c
        else:
            self.v2c = new_v2c

        self.posterior = l_total
        self.hard = hard_decision(l_total)


class BeliefPropagationDecoder(_FloodingDecoder):
    """Tanh-rule belief propagation with a damping schedule."""

    algorithm = Algorithm.BELIEF_PROPAGATION

    def _check_update(self) -> None:
        tanh_check_update(self.v2c, self.c2v, self.index.check_bounds, MESSAGE_LIMIT)

    def _new_message_weight(self, iteration: int) -> float:
        if iteration == 0:
            return 1.0
        damping = self.config.damping
        if iteration < DAMPING_RAMP_ITERATION:
            return damping
        return max(damping, min(DAMPING_CEILING, damping + 0.1))


class SumProductDecoder(_FloodingDecoder):
    """Log-domain sum-product with the phi function, undamped."""

    algorithm = Algorithm.SUM_PRODUCT

    def _check_update(self) -> None:
        phi_check_update(self.v2c, self.c2v, self.index.check_bounds, MESSAGE_LIMIT)


class MinSumDecoder(_FloodingDecoder):
    """Scaled and offset min-sum."""

    algorithm = Algorithm.MIN_SUM

    def _check_update(self) -> None:
        min_sum_check_update(
            self.v2c,
            self.c2v,
            self.index.check_bounds,
            self.config.scaling_factor,
            self.config.offset,
            MESSAGE_LIMIT,
        )

    def _new_message_weight(self, iteration: int) -> float:
        if 0 < iteration < MIN_SUM_SETTLE_ITERATIONS:
            return MIN_SUM_SETTLE_WEIGHT
        return 1.0


class LayeredMinSumDecoder(MessagePassingDecoder):
    """Row-serial min-sum: later rows see posteriors refreshed by earlier rows."""

    algorithm = Algorithm.LAYERED

    def __init__(self, index: TannerIndex, intrinsic: NDArray[np.float64], config: DecodingConfig) -> None:
        """Start from zero check messages; the posterior carries the intrinsic LLR."""
        super().__init__(index, intrinsic, config)
        self.c2v = np.zeros(index.num_edges, dtype=np.float64)

    def iterate(self, iteration: int) -> None:
        """One sweep over all checks in row order."""
        layered_min_sum_sweep(
            self.posterior,
            self.c2v,
            self.index.edge_var,
            self.index.check_bounds,
            self.config.scaling_factor,
            self.config.offset,
            MESSAGE_LIMIT,
        )
        self.hard = hard_decision(self.posterior)


class _VotingDecoder(MessagePassingDecoder):
    """Gallager-style decoders voting on the current hard decision.

    Each check votes for bit ``j`` with the parity of its other bits, weighted
    by the product of their reliabilities. Bits with zero intrinsic LLR
    (erasures) carry no weight, so a check touching another erased bit casts no
    vote for ``j``.
    """

    soft = False

    def __init__(self, index: TannerIndex, intrinsic: NDArray[np.float64], config: DecodingConfig) -> None:
        """Derive bit reliabilities and per-edge vote weights."""
        super().__init__(index, intrinsic, config)
        self.reliability = np.abs(self.llr)
        self.intrinsic_bit = self.hard.copy()
        self.intrinsic_weight = self._intrinsic_weight(self.reliability)
        self.edge_weight = self._bit_weight(self.reliability)[index.edge_var]
        self.posterior = np.zeros_like(self.llr)

    @staticmethod
    @abstractmethod
    def _intrinsic_weight(reliability: NDArray[np.float64]) -> NDArray[np.float64]:
        """Weight of each bit's own channel vote."""

    @staticmethod
    @abstractmethod
    def _bit_weight(reliability: NDArray[np.float64]) -> NDArray[np.float64]:
        """Contribution of each bit to the confidence of checks it belongs to."""

    def _votes(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Weighted votes for 0 and for 1 per bit."""
        index = self.index
        parity = np.empty(index.num_edges, dtype=np.int64)
        product = np.empty(index.num_edges, dtype=np.float64)
        edge_bits = self.hard[index.edge_var].astype(np.int64)
        extrinsic_parity_product(edge_bits, self.edge_weight, index.check_bounds, parity, product)

        vote_one = np.where(self.intrinsic_bit == 1, self.intrinsic_weight, 0.0)
        vote_zero = np.where(self.intrinsic_bit == 0, self.intrinsic_weight, 0.0)
        np.add.at(vote_one, index.edge_var, np.where(parity == 1, product, 0.0))
        np.add.at(vote_zero, index.edge_var, np.where(parity == 0, product, 0.0))
        return vote_zero, vote_one

    def _set_estimate(self, bits: NDArray[np.uint8], margin: NDArray[np.float64]) -> None:
        self.hard = bits.astype(np.uint8)
        self.posterior = np.where(self.hard == 0, 1.0, -1.0) * np.abs(margin)


class GallagerADecoder(_VotingDecoder):
    """Reliability-weighted majority vote with syndrome-guided bit flipping."""

    algorithm = Algorithm.GALLAGER_A

    @staticmethod
    def _intrinsic_weight(reliability: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.where(reliability > 0, np.clip(reliability / 2, 0.1, 5.0), 0.0)

    @staticmethod
    def _bit_weight(reliability: NDArray[np.float64]) -> NDArray[np.float64]:
        weight = np.minimum(1.0, 0.1 + 0.9 * np.tanh(reliability / 4))
        return np.where(reliability > 0, weight, 0.0)

    def iterate(self, iteration: int) -> None:
        """Vote, then flip bits that the syndrome implicates."""
        vote_zero, vote_one = self._votes()
        margin = vote_zero - vote_one
        bits = (vote_one > vote_zero).astype(np.uint8)
        tie = np.abs(margin) < GALLAGER_TIE_MARGIN
        bits[tie] = self.intrinsic_bit[tie]

        if iteration > 0:
            bits = self._flip_unreliable(bits)
        if self.config.bit_flip_pass:
            bits = self._flip_single_bit(bits, margin)
        self._set_estimate(bits, margin)

    def _flip_unreliable(self, bits: NDArray[np.uint8]) -> NDArray[np.uint8]:
        """Flip bits mostly in unsatisfied checks and weakly supported by the channel."""
        index = self.index
        syndrome = index.syndrome(bits)
        unsatisfied = np.bincount(index.edge_var, weights=syndrome[index.edge_check], minlength=index.num_vars)
        degree = np.maximum(index.var_degree, 1)
        likelihood = (unsatisfied / degree) / (1.0 + self.reliability)
        flip = likelihood > GALLAGER_FLIP_LIKELIHOOD
        if flip.any():
            logger.debug("Gallager-A: flipping %d unreliable bits", int(flip.sum()))
        return np.where(flip, 1 - bits, bits).astype(np.uint8)

    def _flip_single_bit(self, bits: NDArray[np.uint8], margin: NDArray[np.float64]) -> NDArray[np.uint8]:
        """Flip the one bit whose H column equals the syndrome, if any.

        Among several candidates the one with the weakest vote margin wins.
        """
        syndrome = self.index.syndrome(bits)
        if not syndrome.any():
            return bits
        candidates = np.flatnonzero(np.all(self.index.h_matrix.T == syndrome, axis=1))
        if candidates.size == 0:
            return bits
        target = candidates[np.argmin(np.abs(margin[candidates]))]
        bits = bits.copy()
        bits[target] ^= 1
        logger.debug("Gallager-A: single-bit correction at position %d", int(target))
        return bits


class GallagerBDecoder(_VotingDecoder):
    """Vote with an adaptive confidence threshold.

    A bit changes only when ``|votes_1 - votes_0| / (votes_1 + votes_0)``
    clears the threshold. The threshold drops by 0.1 (floor 0.2) once the
    estimate has stalled twice and rises by 0.05 (cap 0.8) whenever it moves.
    A stalled estimate only counts as stagnation once the threshold sits at
    its floor.
    """

    algorithm = Algorithm.GALLAGER_B

    def __init__(self, index: TannerIndex, intrinsic: NDArray[np.float64], config: DecodingConfig) -> None:
        """Start from the initial threshold."""
        super().__init__(index, intrinsic, config)
        self.threshold = GALLAGER_B_THRESHOLD
        self._stalls = 0

    @staticmethod
    def _intrinsic_weight(reliability: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.minimum(2.0, reliability / 2)

    @staticmethod
    def _bit_weight(reliability: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.where(reliability > 0, np.tanh(reliability / 4 + 0.1), 0.0)

    @property
    def can_stagnate(self) -> bool:
        return self.threshold <= GALLAGER_B_THRESHOLD_FLOOR

    def iterate(self, iteration: int) -> None:
        """Thresholded vote followed by threshold adaptation."""
        vote_zero, vote_one = self._votes()
        total = vote_zero + vote_one
        confidence = np.divide(
            np.abs(vote_one - vote_zero),
            total,
            out=np.zeros_like(total),
            where=total > 0,
        )
        decide = (total > 0) & (confidence >= self.threshold)
        bits = np.where(decide, (vote_one > vote_zero).astype(np.uint8), self.hard)

        if np.array_equal(bits, self.hard):
            self._stalls += 1
            if self._stalls >= GALLAGER_B_STALLS_BEFORE_LOWERING:
                self.threshold = round(max(GALLAGER_B_THRESHOLD_FLOOR, self.threshold - 0.1), 2)
        else:
            self._stalls = 0
            self.threshold = round(min(GALLAGER_B_THRESHOLD_CEILING, self.threshold + 0.05), 2)
        logger.debug("Gallager-B iteration %d: threshold %.2f", iteration, self.threshold)
        self._set_estimate(bits, vote_zero - vote_one)


_DECODERS: dict[Algorithm, type[MessagePassingDecoder]] = {
    cls.algorithm: cls
    for cls in (
        BeliefPropagationDecoder,
        SumProductDecoder,
        MinSumDecoder,
        GallagerADecoder,
        GallagerBDecoder,
        LayeredMinSumDecoder,
    )
}


def create_decoder(index: TannerIndex, intrinsic: NDArray[np.float64], config: DecodingConfig) -> MessagePassingDecoder:
    """Instantiate the variant named by ``config.algorithm``.

    ``config`` must already be resolved by :func:`~ldpc_core.config.adapt_parameters`.
    """
    return _DECODERS[config.algorithm](index, intrinsic, config)
