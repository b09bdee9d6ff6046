"""Decoder configuration and parameter adaptation."""

from __future__ import annotations

import dataclasses
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from ldpc_core.gf2 import as_binary_matrix, rank

# Bounds on the caller-supplied iteration cap
MIN_ITERATIONS = 1
MAX_ITERATIONS = 200
# Iteration cap used when neither the caller nor the channel picks one
DEFAULT_MAX_ITERATIONS = 50
# Largest exhaustive membership check accepted (2**20 codewords)
MAX_EXHAUSTIVE_CHECK_LIMIT = 20

# Layered min-sum offset when the caller gives none
LAYERED_DEFAULT_OFFSET = 0.3


class Algorithm(Enum):
    """Message-passing decoder variants."""

    BELIEF_PROPAGATION = "belief-propagation"
    SUM_PRODUCT = "sum-product"
    MIN_SUM = "min-sum"
    GALLAGER_A = "gallager-a"
    GALLAGER_B = "gallager-b"
    LAYERED = "layered"

    @property
    def is_hard_decision(self) -> bool:
        """Whether the variant votes on hard decisions instead of passing LLRs."""
        return self in (Algorithm.GALLAGER_A, Algorithm.GALLAGER_B)

    @property
    def uses_scaling(self) -> bool:
        """Whether ``scaling_factor`` affects this variant."""
        return self in (Algorithm.MIN_SUM, Algorithm.LAYERED)


class ChannelType(Enum):
    """How received values map to intrinsic LLRs."""

    BSC = "BSC"
    AWGN = "AWGN"
    BEC = "BEC"
    AWGN_SOFT = "AWGN-SOFT"


@dataclass(frozen=True)
class DecodingConfig:
    """Closed set of decoder options, validated on construction.

    Fields left as ``None`` are filled in by :func:`adapt_parameters` from the
    code rate and the channel parameters before decoding starts.
    """

    algorithm: Algorithm = Algorithm.BELIEF_PROPAGATION
    max_iterations: int | None = None
    scaling_factor: float | None = None
    damping: float | None = None  # weight of the new message, 1.0 = undamped
    offset: float | None = None
    early_termination: bool = True
    llr_input: bool = False

    # Channel description
    channel_type: ChannelType | None = None
    snr: float | None = None  # dB, AWGN only
    crossover_prob: float | None = None  # BSC only
    erasure_prob: float | None = None  # BEC only

    # Termination and reporting
    stagnation_limit: int = 3
    exhaustive_check_limit: int = 15
    bit_flip_pass: bool = True
    record_history: bool = False

    def __post_init__(self) -> None:
        """Coerce enum strings and validate ranges."""
        if not isinstance(self.algorithm, Algorithm):
            object.__setattr__(self, "algorithm", Algorithm(self.algorithm))
        if self.channel_type is not None and not isinstance(self.channel_type, ChannelType):
            object.__setattr__(self, "channel_type", ChannelType(self.channel_type))

        if self.max_iterations is not None and (
            isinstance(self.max_iterations, bool)
            or not isinstance(self.max_iterations, (int, np.integer))
            or not MIN_ITERATIONS <= self.max_iterations <= MAX_ITERATIONS
        ):
            msg = f"max_iterations must be an integer in [{MIN_ITERATIONS}, {MAX_ITERATIONS}]"
            raise ValueError(msg)
        if self.scaling_factor is not None and not 0.0 < self.scaling_factor <= 1.0:
            msg = "scaling_factor must be in (0, 1]"
            raise ValueError(msg)
        if self.damping is not None and not 0.0 < self.damping <= 1.0:
            msg = "damping must be in (0, 1]"
            raise ValueError(msg)
        if self.offset is not None and self.offset < 0.0:
            msg = "offset must be non-negative"
            raise ValueError(msg)
        if self.snr is not None and not math.isfinite(self.snr):
            msg = "snr must be finite"
            raise ValueError(msg)
        for name in ("crossover_prob", "erasure_prob"):
            value = getattr(self, name)
            if value is not None and not 0.0 <= value <= 1.0:
                msg = f"{name} must be in [0, 1]"
                raise ValueError(msg)
        if self.stagnation_limit < 1:
            msg = "stagnation_limit must be at least 1"
            raise ValueError(msg)
        if not 0 <= self.exhaustive_check_limit <= MAX_EXHAUSTIVE_CHECK_LIMIT:
            msg = f"exhaustive_check_limit must be in [0, {MAX_EXHAUSTIVE_CHECK_LIMIT}]"
            raise ValueError(msg)

    @property
    def soft_input(self) -> bool:
        """True when received values are LLRs rather than symbols."""
        return self.llr_input or self.channel_type is ChannelType.AWGN_SOFT

    @classmethod
    def from_dict(cls, options: dict[str, Any]) -> DecodingConfig:
        """Build a config from snake_case or camelCase keys, rejecting unknown ones."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()
            if name not in known:
                msg = f"Unknown decoding option {key!r}"
                raise ValueError(msg)
            kwargs[name] = value
        return cls(**kwargs)


def adapt_parameters(h_matrix: ArrayLike, config: DecodingConfig) -> DecodingConfig:
    """Fill unset tuning parameters from the code and the channel.

    - damping (belief propagation): weight of the new message, 0.6 + 0.3 * rate
      clipped to [0.5, 0.9], at least 0.7 on AWGN (hard or soft) below 0 dB.
      1.0 elsewhere.
    - scaling (min-sum, layered): 0.75 + 0.1 * (1 - rate) plus up to 0.1 for
      heavy check rows, clipped to [0.6, 0.95].
    - iterations: 20 + 10 * (1 - rate) on BSC, 15 + 25 * p on BEC, otherwise 50.

    Values the caller set explicitly are kept. Runs once per decode.
    """
    h_mat = as_binary_matrix(h_matrix, "H")
    m, n = h_mat.shape
    rate = (n - rank(h_mat)) / n if n else 0.0
    avg_row_weight = float(h_mat.sum(axis=1).mean()) if m else 0.0
    awgn = config.channel_type in (ChannelType.AWGN, ChannelType.AWGN_SOFT)
    low_snr_awgn = awgn and config.snr is not None and config.snr < 0

    max_iterations = config.max_iterations
    if max_iterations is None:
        if config.channel_type is ChannelType.BSC:
            max_iterations = int(np.clip(round(20 + 10 * (1 - rate)), 10, 50))
        elif config.channel_type is ChannelType.BEC:
            erasure = config.erasure_prob if config.erasure_prob is not None else 0.1
            max_iterations = int(np.clip(round(15 + 25 * erasure), 10, 40))
        else:
            max_iterations = DEFAULT_MAX_ITERATIONS

    damping = config.damping
    if damping is None:
        if config.algorithm is Algorithm.BELIEF_PROPAGATION:
            damping = float(np.clip(0.6 + 0.3 * rate, 0.5, 0.9))
            if low_snr_awgn:
                damping = max(damping, 0.7)
        else:
            damping = 1.0

    scaling = config.scaling_factor
    if scaling is None:
        if config.algorithm.uses_scaling:
            heavy_rows = min(0.1, 0.02 * (avg_row_weight - 3))
            scaling = float(np.clip(0.75 + 0.1 * (1 - rate) + heavy_rows, 0.6, 0.95))
        else:
            scaling = 1.0

    offset = config.offset
    if offset is None:
        offset = LAYERED_DEFAULT_OFFSET if config.algorithm is Algorithm.LAYERED else 0.0

    return dataclasses.replace(
        config,
        max_iterations=max_iterations,
        damping=damping,
        scaling_factor=scaling,
        offset=offset,
    )


@dataclass(frozen=True)
class AlgorithmInfo:
    """Human-readable description of a decoder variant."""

    name: str
    description: str
    complexity: str
    performance: str
    parameters: tuple[str, ...]


_ALGORITHM_INFO = {
    Algorithm.BELIEF_PROPAGATION: AlgorithmInfo(
        "Belief Propagation",
        "Soft message passing with the tanh product rule and damping",
        "High",
        "Near-optimal on long codes",
        ("max_iterations", "damping", "early_termination"),
    ),
    Algorithm.SUM_PRODUCT: AlgorithmInfo(
        "Sum-Product",
        "Log-domain sum-product using phi(x) = -ln(tanh(x / 2))",
        "High",
        "Same fixed point as belief propagation without damping",
        ("max_iterations", "early_termination"),
    ),
    Algorithm.MIN_SUM: AlgorithmInfo(
        "Min-Sum",
        "Min-sum approximation of the check update with scaling and offset correction",
        "Medium",
        "Within a few tenths of a dB of belief propagation",
        ("max_iterations", "scaling_factor", "offset", "early_termination"),
    ),
    Algorithm.GALLAGER_A: AlgorithmInfo(
        "Gallager-A",
        "Reliability-weighted majority vote on hard decisions with a bit-flip pass",
        "Low",
        "Suited to hard-decision channels",
        ("max_iterations", "bit_flip_pass", "early_termination"),
    ),
    Algorithm.GALLAGER_B: AlgorithmInfo(
        "Gallager-B",
        "Vote with an adaptive confidence threshold",
        "Low",
        "Slightly better than Gallager-A at moderate error rates",
        ("max_iterations", "early_termination"),
    ),
    Algorithm.LAYERED: AlgorithmInfo(
        "Layered Min-Sum",
        "Row-serial min-sum where each check sees the estimates updated by earlier rows",
        "Medium",
        "Converges in roughly half the iterations of flooding min-sum",
        ("max_iterations", "scaling_factor", "offset", "early_termination"),
    ),
}


def algorithm_info(algorithm: Algorithm | str) -> AlgorithmInfo:
    """Describe a decoder variant."""
    return _ALGORITHM_INFO[Algorithm(algorithm)]
