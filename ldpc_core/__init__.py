"""LDPC matrix derivation, systematic encoding and iterative decoding."""

from ldpc_core.channel_llr import to_llr
from ldpc_core.config import Algorithm, ChannelType, DecodingConfig, adapt_parameters, algorithm_info
from ldpc_core.decoding import DecoderState, DecodeResult, decode
from ldpc_core.encoder import ColumnOrder, EncodingResult, encode
from ldpc_core.errors import CodecError, DimensionError, DomainError, StructuralError
from ldpc_core.graph import GraphEdge, GraphNode, NodeType, TannerGraph
from ldpc_core.matrices import (
    MatrixResult,
    analyze_code,
    analyze_matrices,
    build_matrices,
    matrices_from_parity_check,
    validate_matrix,
)
from ldpc_core.syndrome import is_valid_codeword, syndrome

__all__ = [
    "Algorithm",
    "ChannelType",
    "CodecError",
    "ColumnOrder",
    "DecodeResult",
    "DecoderState",
    "DecodingConfig",
    "DimensionError",
    "DomainError",
    "EncodingResult",
    "GraphEdge",
    "GraphNode",
    "MatrixResult",
    "NodeType",
    "StructuralError",
    "TannerGraph",
    "adapt_parameters",
    "algorithm_info",
    "analyze_code",
    "analyze_matrices",
    "build_matrices",
    "decode",
    "encode",
    "is_valid_codeword",
    "matrices_from_parity_check",
    "syndrome",
    "to_llr",
    "validate_matrix",
]
