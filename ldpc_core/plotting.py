"""Diagnostic plots for parity-check matrices and decode runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    from matplotlib.axes import Axes
    from matplotlib.figure import Figure
    from numpy.typing import ArrayLike

    from ldpc_core.decoding import DecodeResult

# Above this many nodes per axis tick labels are left off
MAX_LABELLED_NODES = 40


def plot_parity_check(
    h_matrix: ArrayLike,
    bit_labels: list[str] | None = None,
    check_labels: list[str] | None = None,
    title: str | None = None,
) -> tuple[Figure, Axes]:
    """Show the ones of H as filled cells, checks on rows and bits on columns."""
    h_mat = np.asarray(h_matrix)
    num_checks, num_bits = h_mat.shape

    fig, ax = plt.subplots(figsize=(max(4, num_bits * 0.4), max(3, num_checks * 0.4)))
    ax.imshow(h_mat, cmap="Greys", vmin=0, vmax=1, aspect="equal", interpolation="nearest")

    if num_bits <= MAX_LABELLED_NODES:
        ax.set_xticks(np.arange(num_bits))
        ax.set_xticklabels(bit_labels or [f"B{j + 1}" for j in range(num_bits)], rotation=90)
    if num_checks <= MAX_LABELLED_NODES:
        ax.set_yticks(np.arange(num_checks))
        ax.set_yticklabels(check_labels or [f"C{i + 1}" for i in range(num_checks)])
    ax.set_xlabel("Bit node")
    ax.set_ylabel("Check node")
    ax.set_title(title or f"H ({num_checks} x {num_bits}, {int(h_mat.sum())} edges)")

    plt.tight_layout()
    return fig, ax


def plot_decode_history(result: DecodeResult, title: str | None = None) -> tuple[Figure, tuple[Axes, Axes]]:
    """Syndrome weight and number of flipped bits per iteration.

    Needs a result decoded with ``record_history=True``.
    """
    if not result.iteration_history:
        msg = "Decode result has no iteration history; decode with record_history=True"
        raise ValueError(msg)

    iterations = [rec.iteration for rec in result.iteration_history]
    weights = [rec.syndrome_weight for rec in result.iteration_history]
    changed = [rec.changed_bits for rec in result.iteration_history]

    fig, (ax_syn, ax_flip) = plt.subplots(2, 1, figsize=(8, 5), sharex=True)
    ax_syn.plot(iterations, weights, "o-")
    ax_syn.set_ylabel("Syndrome weight")
    ax_syn.grid(visible=True, alpha=0.3)

    ax_flip.bar(iterations, changed, color="tab:orange")
    ax_flip.set_xlabel("Iteration")
    ax_flip.set_ylabel("Bits changed")
    ax_flip.grid(visible=True, alpha=0.3)

    fig.suptitle(title or f"{result.algorithm.value}: {result.state.value} after {result.iterations} iterations")
    plt.tight_layout()
    return fig, (ax_syn, ax_flip)
