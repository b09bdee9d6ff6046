"""Command-line front end for the ldpc_core codec.

Examples:
    python main.py build graph.json
    python main.py encode --matrix "101100;110010;011001" --info 101
    python main.py decode --matrix "101100;110010;011001" --received 001101 --algorithm min-sum
    python main.py analyze graph.json --plot h.png

"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

from ldpc_core.config import Algorithm, ChannelType, DecodingConfig
from ldpc_core.decoding import decode
from ldpc_core.encoder import ColumnOrder, encode
from ldpc_core.matrices import (
    MatrixResult,
    analyze_code,
    analyze_matrices,
    build_matrices,
    matrices_from_parity_check,
)
from ldpc_core.util import ebn0_to_snr, parse_values

logger = logging.getLogger(__name__)


def _parse_matrix(text: str) -> list[list[int]]:
    """Parse ``"110;101"`` (rows separated by ``;``) into nested lists."""
    return [[int(v) for v in parse_values(row)] for row in text.split(";") if row.strip()]


def load_matrices(args: argparse.Namespace) -> MatrixResult:
    """Build the code from ``--matrix`` or from a JSON file.

    The file holds either a graph (``nodes``/``edges``) or ``{"H": [[...]]}``.
    """
    if args.matrix:
        return matrices_from_parity_check(_parse_matrix(args.matrix))
    if not args.source:
        msg = "Give a JSON file or --matrix"
        raise SystemExit(msg)
    data = json.loads(Path(args.source).read_text(encoding="utf-8"))
    if "H" in data:
        return matrices_from_parity_check(data["H"])
    return build_matrices(data)


def _decoding_config(args: argparse.Namespace, matrices: MatrixResult) -> DecodingConfig:
    snr = args.snr
    if args.ebn0 is not None:
        snr = ebn0_to_snr(args.ebn0, matrices.code_rate)
    return DecodingConfig(
        algorithm=Algorithm(args.algorithm),
        max_iterations=args.max_iterations,
        scaling_factor=args.scaling_factor,
        damping=args.damping,
        early_termination=not args.no_early_termination,
        llr_input=args.llr_input,
        channel_type=ChannelType(args.channel) if args.channel else None,
        snr=snr,
        crossover_prob=args.crossover_prob,
        erasure_prob=args.erasure_prob,
        record_history=args.history or bool(args.plot),
    )


def cmd_build(args: argparse.Namespace) -> tuple[dict[str, Any], bool]:
    """Derive H, G and the column permutation."""
    result = load_matrices(args)
    return result.to_dict(), result.valid


def cmd_encode(args: argparse.Namespace) -> tuple[dict[str, Any], bool]:
    """Encode ``--info`` with the derived generator matrix."""
    matrices = load_matrices(args)
    if not matrices.valid:
        return {"success": False, "message": matrices.message}, False
    order = ColumnOrder.SYSTEMATIC if args.systematic else ColumnOrder.GRAPH
    result = encode(parse_values(args.info), matrices, order=order)
    out = {"codeword": result.codeword.tolist(), "success": result.success, "message": result.message}
    return out, result.success


def cmd_decode(args: argparse.Namespace) -> tuple[dict[str, Any], bool]:
    """Decode ``--received`` with the chosen algorithm and channel."""
    matrices = load_matrices(args)
    if not matrices.valid:
        return {"success": False, "message": matrices.message}, False
    config = _decoding_config(args, matrices)
    result = decode(parse_values(args.received), matrices, config)
    if args.plot and result.iteration_history:
        from ldpc_core.plotting import plot_decode_history

        fig, _ = plot_decode_history(result)
        fig.savefig(args.plot)
        logger.info("Saved decode history plot to %s", args.plot)
    out = result.to_dict()
    if not args.history:
        out.pop("iterationHistory")
    return out, result.success


def cmd_analyze(args: argparse.Namespace) -> tuple[dict[str, Any], bool]:
    """Report rate, density, degrees and minimum distance."""
    matrices = load_matrices(args)
    if not matrices.valid:
        return {"success": False, "message": matrices.message}, False
    summary = analyze_code(matrices.h_matrix, matrices.g_matrix)
    details = analyze_matrices(matrices.h_matrix, matrices.g_matrix)
    if args.plot:
        from ldpc_core.plotting import plot_parity_check

        fig, _ = plot_parity_check(matrices.h_matrix, list(matrices.bit_labels), list(matrices.check_labels))
        fig.savefig(args.plot)
        logger.info("Saved parity-check plot to %s", args.plot)
    out = {**dataclasses.asdict(details), "averageDegree": summary.average_degree}
    return out, details.success


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with one sub-command per codec operation."""
    parser = argparse.ArgumentParser(description="LDPC matrix builder, encoder and decoder")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-iteration details")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_code_source(p: argparse.ArgumentParser) -> None:
        p.add_argument("source", nargs="?", help="JSON file with a graph or an 'H' matrix")
        p.add_argument("--matrix", help="Parity-check matrix as rows separated by ';', e.g. '110;101'")

    p_build = sub.add_parser("build", help="Derive H, G and the column permutation")
    add_code_source(p_build)
    p_build.set_defaults(func=cmd_build)

    p_encode = sub.add_parser("encode", help="Encode an information vector")
    add_code_source(p_encode)
    p_encode.add_argument("--info", required=True, help="Information bits, e.g. '101'")
    p_encode.add_argument("--systematic", action="store_true", help="Print the codeword in systematic order")
    p_encode.set_defaults(func=cmd_encode)

    p_decode = sub.add_parser("decode", help="Decode a received vector")
    add_code_source(p_decode)
    p_decode.add_argument("--received", required=True, help="Received bits, BEC symbols or LLRs")
    p_decode.add_argument(
        "--algorithm",
        default=Algorithm.BELIEF_PROPAGATION.value,
        choices=[a.value for a in Algorithm],
    )
    p_decode.add_argument("--max-iterations", type=int, default=None)
    p_decode.add_argument("--scaling-factor", type=float, default=None)
    p_decode.add_argument("--damping", type=float, default=None)
    p_decode.add_argument("--no-early-termination", action="store_true")
    p_decode.add_argument("--llr-input", action="store_true", help="Treat --received as LLRs")
    p_decode.add_argument("--channel", choices=[c.value for c in ChannelType], default=None)
    p_decode.add_argument("--snr", type=float, default=None, help="AWGN SNR in dB")
    p_decode.add_argument("--ebn0", type=float, default=None, help="AWGN Eb/N0 in dB (converted with the code rate)")
    p_decode.add_argument("--crossover-prob", type=float, default=None)
    p_decode.add_argument("--erasure-prob", type=float, default=None)
    p_decode.add_argument("--history", action="store_true", help="Include the per-iteration history")
    p_decode.add_argument("--plot", help="Save a decode-history plot to this file")
    p_decode.set_defaults(func=cmd_decode)

    p_analyze = sub.add_parser("analyze", help="Code rate, degrees and minimum distance")
    add_code_source(p_analyze)
    p_analyze.add_argument("--plot", help="Save a plot of H to this file")
    p_analyze.set_defaults(func=cmd_analyze)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run one sub-command and print its JSON result; exit status 1 on failure."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    try:
        out, ok = args.func(args)
    except (ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 2
    print(json.dumps(out, indent=2))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
