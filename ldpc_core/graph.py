"""Tanner graph snapshots: bit nodes, check nodes and the edges between them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ldpc_core.errors import StructuralError
from ldpc_core.gf2 import as_binary_matrix

logger = logging.getLogger(__name__)

_LABEL_INDEX = re.compile(r"^[BC](\d+)$")


class NodeType(Enum):
    """Role of a node in the bipartite graph."""

    BIT = "bit"
    CHECK = "check"


@dataclass(frozen=True)
class GraphNode:
    """A bit or check node with a stable identity."""

    id: str
    type: NodeType
    label: str = ""

    def __post_init__(self) -> None:
        """Coerce string node types and default the label to the id."""
        if not isinstance(self.type, NodeType):
            object.__setattr__(self, "type", NodeType(self.type))
        if not self.label:
            object.__setattr__(self, "label", self.id)

    @property
    def sort_key(self) -> tuple[int, int, str, str]:
        """Order by the numeric suffix of labels like ``B12``, else lexically."""
        match = _LABEL_INDEX.match(self.label)
        if match:
            return (0, int(match.group(1)), self.label, self.id)
        return (1, 0, self.label, self.id)


@dataclass(frozen=True)
class GraphEdge:
    """Undirected edge between one bit node and one check node."""

    source: str
    target: str
    id: str = ""


@dataclass(frozen=True)
class TannerGraph:
    """Immutable constraint graph passed by value to the matrix builder.

    Edge direction carries no meaning and duplicate edges collapse to one.
    """

    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate node identities and edge endpoints."""
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))

        by_id: dict[str, GraphNode] = {}
        for node in self.nodes:
            if node.id in by_id:
                msg = f"Duplicate node id {node.id!r}"
                raise StructuralError(msg)
            by_id[node.id] = node

        for edge in self.edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in by_id:
                    msg = f"Edge {edge.source!r}-{edge.target!r} references unknown node {endpoint!r}"
                    raise StructuralError(msg)
            if by_id[edge.source].type == by_id[edge.target].type:
                msg = f"Edge {edge.source!r}-{edge.target!r} connects two {by_id[edge.source].type.value} nodes"
                raise StructuralError(msg)

    @property
    def bit_nodes(self) -> list[GraphNode]:
        """Bit nodes in deterministic column order."""
        return sorted((n for n in self.nodes if n.type is NodeType.BIT), key=lambda n: n.sort_key)

    @property
    def check_nodes(self) -> list[GraphNode]:
        """Check nodes in deterministic row order."""
        return sorted((n for n in self.nodes if n.type is NodeType.CHECK), key=lambda n: n.sort_key)

    def incidence(self) -> set[tuple[str, str]]:
        """Set of ``(check_id, bit_id)`` pairs, independent of edge order and direction."""
        types = {node.id: node.type for node in self.nodes}
        pairs = set()
        for edge in self.edges:
            if types[edge.source] is NodeType.CHECK:
                pairs.add((edge.source, edge.target))
            else:
                pairs.add((edge.target, edge.source))
        return pairs

    def parity_check_matrix(self) -> NDArray[np.uint8]:
        """Build H: entry (i, j) is 1 iff check i is adjacent to bit j."""
        bit_index = {node.id: j for j, node in enumerate(self.bit_nodes)}
        check_index = {node.id: i for i, node in enumerate(self.check_nodes)}
        h_mat = np.zeros((len(check_index), len(bit_index)), dtype=np.uint8)
        for check_id, bit_id in self.incidence():
            h_mat[check_index[check_id], bit_index[bit_id]] = 1

        isolated = [node.label for node in self.bit_nodes if not h_mat[:, bit_index[node.id]].any()]
        if isolated:
            logger.warning("Bit nodes without any check: %s", ", ".join(isolated))
        return h_mat

    @classmethod
    def from_parity_check(cls, h_matrix: ArrayLike) -> TannerGraph:
        """Graph whose bit nodes are ``B1..Bn`` and check nodes ``C1..Cm``."""
        h_mat = as_binary_matrix(h_matrix, "H")
        num_checks, num_bits = h_mat.shape
        nodes = [GraphNode(f"B{j + 1}", NodeType.BIT) for j in range(num_bits)]
        nodes += [GraphNode(f"C{i + 1}", NodeType.CHECK) for i in range(num_checks)]
        rows, cols = np.nonzero(h_mat)
        edges = [GraphEdge(f"B{j + 1}", f"C{i + 1}", f"e{e}") for e, (i, j) in enumerate(zip(rows, cols))]
        return cls(tuple(nodes), tuple(edges))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TannerGraph:
        """Build a graph from ``{"nodes": [...], "edges": [...]}``.

        Nodes need ``id`` and ``type`` (``"bit"``/``"check"``), optionally
        ``label``; edges need ``source`` and ``target``.
        """
        try:
            nodes = tuple(
                GraphNode(str(node["id"]), NodeType(node["type"]), str(node.get("label", "")))
                for node in data["nodes"]
            )
            edges = tuple(
                GraphEdge(str(edge["source"]), str(edge["target"]), str(edge.get("id", "")))
                for edge in data.get("edges", [])
            )
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed graph description: {exc}"
            raise StructuralError(msg) from exc
        return cls(nodes, edges)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable form accepted by :meth:`from_dict`."""
        return {
            "nodes": [{"id": n.id, "type": n.type.value, "label": n.label} for n in self.nodes],
            "edges": [{"id": e.id, "source": e.source, "target": e.target} for e in self.edges],
        }
