"""Small numeric helpers shared by the codec and the CLI."""

import numpy as np
from numpy.typing import ArrayLike, NDArray


def snr_db_to_linear(snr_db: float) -> float:
    """Convert an SNR in dB to a linear power ratio."""
    return float(10 ** (snr_db / 10))


def ebn0_to_snr(ebn0_db: float, code_rate: float, bits_per_symbol: int = 1) -> float:
    """Convert Eb/N0 (dB) to SNR per symbol (Es/N0) in dB.

    The relationship is:
        Es/N0 = Eb/N0 * code_rate * bits_per_symbol

    In dB:
        SNR (dB) = Eb/N0 (dB) + 10*log10(code_rate * bits_per_symbol)

    The default of one bit per symbol matches BPSK, which the hard-decision
    AWGN LLR mapping assumes.
    """
    return ebn0_db + 10 * np.log10(code_rate * bits_per_symbol)


def hard_decision(llr: ArrayLike) -> NDArray[np.uint8]:
    """Bit 1 where the LLR is negative, else 0."""
    return (np.asarray(llr) < 0).astype(np.uint8)


def parse_values(text: str) -> NDArray[np.float64]:
    """Parse ``"1011"``, ``"1,0,1,1"`` or ``"0.5 -1.2 3"`` into an array."""
    stripped = text.strip()
    if stripped and all(ch in "01" for ch in stripped):
        return np.array([int(ch) for ch in stripped], dtype=np.float64)
    return np.array([float(tok) for tok in stripped.replace(",", " ").split()], dtype=np.float64)
