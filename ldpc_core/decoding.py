"""Decode engine: runs a decoder variant through Init, Iterating and a final state."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ldpc_core.channel_llr import to_llr
from ldpc_core.config import Algorithm, DecodingConfig, adapt_parameters
from ldpc_core.decoders import MessagePassingDecoder, TannerIndex, create_decoder
from ldpc_core.encoder import ColumnOrder
from ldpc_core.errors import CodecError, DimensionError
from ldpc_core.gf2 import as_binary_matrix
from ldpc_core.matrices import MatrixResult
from ldpc_core.syndrome import is_valid_codeword

logger = logging.getLogger(__name__)

# Soft decoders may keep a hard decision while their LLRs still grow
SOFT_STAGNATION_WARMUP = 5
# Number of previous hard decisions compared against to spot oscillation
STATE_MEMORY = 2


class DecoderState(Enum):
    """Lifecycle of one decode call."""

    INIT = "init"
    ITERATING = "iterating"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    STAGNANT = "stagnant"


@dataclass(frozen=True)
class IterationRecord:
    """Snapshot taken after one iteration."""

    iteration: int
    syndrome_weight: int
    decoded: NDArray[np.uint8]
    changed_bits: int

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable form."""
        return {
            "iteration": self.iteration,
            "syndromeWeight": self.syndrome_weight,
            "decoded": self.decoded.tolist(),
            "changedBits": self.changed_bits,
        }


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of :func:`decode`.

    ``success`` requires the final state to be ``CONVERGED`` and the estimate
    to pass :func:`~ldpc_core.syndrome.is_valid_codeword`; without G, or for k
    above ``exhaustive_check_limit``, that check is the zero syndrome alone.
    """

    decoded: NDArray[np.uint8]
    success: bool
    iterations: int
    corrected_errors: int
    message: str
    state: DecoderState
    algorithm: Algorithm
    syndrome_weight: int = 0
    recovered_erasures: int = 0
    iteration_history: tuple[IterationRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable form."""
        return {
            "decoded": self.decoded.tolist(),
            "success": self.success,
            "iterations": self.iterations,
            "correctedErrors": self.corrected_errors,
            "recoveredErasures": self.recovered_erasures,
            "message": self.message,
            "state": self.state.value,
            "algorithm": self.algorithm.value,
            "syndromeWeight": self.syndrome_weight,
            "iterationHistory": [record.to_dict() for record in self.iteration_history],
        }


def _is_terminal(decoder: MessagePassingDecoder, weight: int, erased: NDArray[np.bool_]) -> bool:
    """Zero syndrome, and every erased bit has been given a value."""
    return weight == 0 and not np.any(decoder.posterior[erased] == 0)


def decode(
    received: ArrayLike,
    h_matrix: ArrayLike | MatrixResult,
    config: DecodingConfig | None = None,
    g_matrix: ArrayLike | None = None,
    order: ColumnOrder = ColumnOrder.GRAPH,
) -> DecodeResult:
    """Decode ``received`` against ``H`` with the variant named in ``config``.

    ``received`` holds hard bits, BEC symbols (``-1`` = erasure) or LLRs,
    depending on the channel settings. A :class:`MatrixResult` may be passed in
    place of H; it supplies G, and with ``order=ColumnOrder.SYSTEMATIC`` it
    also maps ``received`` and the result between systematic and graph order.

    Bad input yields ``success=False`` with a message rather than an exception.
    Invalid ``config`` values are rejected earlier, by ``DecodingConfig``.
    """
    config = config or DecodingConfig()
    matrices = h_matrix if isinstance(h_matrix, MatrixResult) else None
    if matrices is not None:
        h_matrix = matrices.h_matrix
        if g_matrix is None:
            g_matrix = matrices.g_matrix

    try:
        h_mat = as_binary_matrix(h_matrix, "H")
        n = h_mat.shape[1]
        values = np.asarray(received)
        if values.shape != (n,):
            msg = f"Received vector must have length n = {n}, got shape {values.shape}"
            raise DimensionError(msg)
        if order is ColumnOrder.SYSTEMATIC:
            if matrices is None:
                msg = "Systematic order needs the MatrixResult holding the column permutation"
                raise DimensionError(msg)
            values = matrices.from_systematic(values)
        g_mat = None
        if g_matrix is not None:
            g_mat = as_binary_matrix(g_matrix, "G")
            if g_mat.shape[1] != n:
                msg = f"G has {g_mat.shape[1]} columns but H has {n}"
                raise DimensionError(msg)
        intrinsic = to_llr(values, config)
    except CodecError as exc:
        logger.info("Decode rejected: %s", exc)
        return DecodeResult(
            decoded=np.zeros(0, dtype=np.uint8),
            success=False,
            iterations=0,
            corrected_errors=0,
            message=str(exc),
            state=DecoderState.INIT,
            algorithm=config.algorithm,
        )

    resolved = adapt_parameters(h_mat, config)
    index = TannerIndex(h_mat)
    decoder = create_decoder(index, intrinsic, resolved)
    erased = intrinsic == 0
    received_bits = decoder.hard.copy()

    history: list[IterationRecord] = []
    iterations = 0
    weight = int(index.syndrome(decoder.hard).sum())
    if _is_terminal(decoder, weight, erased):
        state = DecoderState.CONVERGED
    else:
        state, iterations = _iterate(decoder, index, resolved, erased, history)
        weight = int(index.syndrome(decoder.hard).sum())

    decoded = decoder.hard
    valid = state is DecoderState.CONVERGED and is_valid_codeword(
        decoded,
        h_mat,
        g_mat,
        resolved.exhaustive_check_limit,
    )
    corrected = int(np.count_nonzero((decoded != received_bits) & ~erased))
    recovered = int(np.count_nonzero(erased & (decoder.posterior != 0)))
    message = _summary(state, valid, iterations, corrected)
    logger.info("%s: %s", resolved.algorithm.value, message)

    if order is ColumnOrder.SYSTEMATIC:
        decoded = matrices.to_systematic(decoded)
    return DecodeResult(
        decoded=decoded,
        success=valid,
        iterations=iterations,
        corrected_errors=corrected,
        message=message,
        state=state,
        algorithm=resolved.algorithm,
        syndrome_weight=weight,
        recovered_erasures=recovered,
        iteration_history=tuple(history),
    )


def _iterate(
    decoder: MessagePassingDecoder,
    index: TannerIndex,
    config: DecodingConfig,
    erased: NDArray[np.bool_],
    history: list[IterationRecord],
) -> tuple[DecoderState, int]:
    """Iterating state; returns the final state and the number of iterations run.

    With ``record_history`` set, one record per iteration is appended to
    ``history``. A hard decision equal to one of the last two counts as a
    stall, which catches both a frozen estimate and a two-state oscillation.
    """
    warmup = SOFT_STAGNATION_WARMUP if decoder.soft else 0
    recent = deque([decoder.hard.tobytes()], maxlen=STATE_MEMORY)
    stalls = 0
    terminal = False

    for iteration in range(config.max_iterations):
        before = decoder.hard.copy()
        decoder.iterate(iteration)
        weight = int(index.syndrome(decoder.hard).sum())
        terminal = _is_terminal(decoder, weight, erased)
        logger.debug("Iteration %d: syndrome weight %d", iteration + 1, weight)
        if config.record_history:
            history.append(
                IterationRecord(
                    iteration=iteration + 1,
                    syndrome_weight=weight,
                    decoded=decoder.hard.copy(),
                    changed_bits=int(np.count_nonzero(decoder.hard != before)),
                ),
            )
        if not config.early_termination:
            continue
        if terminal:
            return DecoderState.CONVERGED, iteration + 1

        state_key = decoder.hard.tobytes()
        stalls = stalls + 1 if state_key in recent else 0
        recent.append(state_key)
        if iteration + 1 > warmup and stalls >= config.stagnation_limit and decoder.can_stagnate:
            return DecoderState.STAGNANT, iteration + 1

    final = DecoderState.CONVERGED if terminal else DecoderState.EXHAUSTED
    return final, config.max_iterations


def _summary(state: DecoderState, valid: bool, iterations: int, corrected: int) -> str:
    if state is DecoderState.CONVERGED and valid:
        return f"Converged after {iterations} iterations, corrected {corrected} errors"
    if state is DecoderState.CONVERGED:
        return "Zero syndrome, but the estimate is not a codeword of G"
    if state is DecoderState.STAGNANT:
        return f"Stagnated after {iterations} iterations without a valid codeword"
    return f"Reached the iteration limit ({iterations}) without a valid codeword"
