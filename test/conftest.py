import numpy as np
import pytest

from ldpc_core.matrices import matrices_from_parity_check

# (6, 3) code with d_min = 3
H_SIX_THREE = np.array(
    [
        [1, 0, 1, 1, 0, 0],
        [1, 1, 0, 0, 1, 0],
        [0, 1, 1, 0, 0, 1],
    ],
    dtype=np.uint8,
)

# Codeword of H_SIX_THREE for information bits [1, 0, 1]
CODEWORD_101 = np.array([0, 0, 1, 1, 0, 1], dtype=np.uint8)


@pytest.fixture
def three_bit_graph():
    """Three bits, two checks: H = [[1, 1, 0], [1, 0, 1]]."""
    return {
        "nodes": [
            {"id": "B1", "type": "bit"},
            {"id": "B2", "type": "bit"},
            {"id": "B3", "type": "bit"},
            {"id": "C1", "type": "check"},
            {"id": "C2", "type": "check"},
        ],
        "edges": [
            {"source": "B1", "target": "C1"},
            {"source": "B2", "target": "C1"},
            {"source": "B1", "target": "C2"},
            {"source": "B3", "target": "C2"},
        ],
    }


@pytest.fixture
def h_six_three():
    return H_SIX_THREE.copy()


@pytest.fixture
def code_six_three():
    return matrices_from_parity_check(H_SIX_THREE)
