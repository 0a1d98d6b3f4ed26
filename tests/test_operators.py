"""
Tests for Relational Operators.

Tests per-node aggregation, empty neighbourhood defaults and the
matrix-wide variants.
"""

import math
import pytest
import torch
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from deepgl.ops import OPERATORS, get_operator
from deepgl.ops.operators import RBF_SIGMA


def op(name):
    return get_operator(name)


class TestOperatorOrder:
    """Tests for the fixed operator list."""

    def test_names(self):
        assert [o.name for o in OPERATORS] == ['sum', 'hadamard', 'max', 'mean', 'rbf', 'l1Norm']

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            get_operator('median')


class TestEmptyNeighbourhood:
    """Empty neighbourhoods produce the operator's neutral row."""

    @pytest.mark.parametrize('name,expected', [
        ('sum', 0.0), ('hadamard', 1.0), ('max', 0.0),
        ('mean', 0.0), ('rbf', 0.0), ('l1Norm', 0.0),
    ])
    def test_default_row(self, name, expected):
        rows = torch.zeros(0, 3, dtype=torch.float64)
        node_row = torch.tensor([4.0, 5.0, 6.0], dtype=torch.float64)

        result = op(name).op(rows, node_row)

        assert result.shape == (3,)
        assert result.tolist() == [expected] * 3


class TestSingleNeighbour:
    """With one neighbour equal to the node, every operator is well defined."""

    @pytest.fixture
    def rows(self):
        return torch.tensor([[2.0, 3.0]], dtype=torch.float64)

    def test_row_passthrough(self, rows):
        node_row = rows[0]
        for name in ('sum', 'hadamard', 'max', 'mean'):
            assert op(name).op(rows, node_row).tolist() == [2.0, 3.0]

    def test_l1_zero(self, rows):
        assert op('l1Norm').op(rows, rows[0]).tolist() == [0.0, 0.0]

    def test_rbf_one(self, rows):
        assert op('rbf').op(rows, rows[0]).tolist() == [1.0, 1.0]


class TestAggregation:
    """Tests for per-node values on a multi-row neighbourhood."""

    @pytest.fixture
    def rows(self):
        return torch.tensor([[1.0, -2.0], [3.0, 4.0], [2.0, 0.5]], dtype=torch.float64)

    @pytest.fixture
    def node_row(self):
        return torch.tensor([2.0, 1.0], dtype=torch.float64)

    def test_sum(self, rows, node_row):
        assert op('sum').op(rows, node_row).tolist() == [6.0, 2.5]

    def test_hadamard(self, rows, node_row):
        assert op('hadamard').op(rows, node_row).tolist() == [6.0, -4.0]

    def test_max(self, rows, node_row):
        assert op('max').op(rows, node_row).tolist() == [3.0, 4.0]

    def test_mean(self, rows, node_row):
        result = op('mean').op(rows, node_row)
        assert torch.allclose(result, torch.tensor([2.0, 2.5 / 3], dtype=torch.float64))

    def test_l1(self, rows, node_row):
        # |1-2| + |3-2| + |2-2| = 2 ; |-2-1| + |4-1| + |0.5-1| = 6.5
        assert op('l1Norm').op(rows, node_row).tolist() == [2.0, 6.5]

    def test_rbf(self, rows, node_row):
        result = op('rbf').op(rows, node_row)
        expected = [
            math.exp(-2.0 / RBF_SIGMA ** 2),
            math.exp(-(9.0 + 9.0 + 0.25) / RBF_SIGMA ** 2),
        ]
        assert result.tolist() == pytest.approx(expected)

    def test_no_nan(self, rows, node_row):
        for operator in OPERATORS:
            assert not torch.isnan(operator.op(rows, node_row)).any()

    def test_hadamard_overflow_times_zero(self):
        """10^320 overflows to inf; a zero row must still give 0, not NaN."""
        rows = torch.tensor([[10.0]] * 320 + [[0.0]], dtype=torch.float64)
        assert op('hadamard').op(rows, rows[0]).tolist() == [0.0]

    def test_hadamard_overflow_is_finite(self):
        rows = torch.full((320, 1), 10.0, dtype=torch.float64)
        assert torch.isfinite(op('hadamard').op(rows, rows[0])).all()


class TestMatrixWide:
    """nd variants agree with per-node aggregation."""

    @pytest.fixture
    def setup(self):
        features = torch.tensor([[1.0, 2.0], [3.0, 0.0], [5.0, 1.0]], dtype=torch.float64)
        # 0 -> {1, 2}, 1 -> {0}, 2 -> {}
        adjacency = torch.tensor([
            [0.0, 1.0, 1.0],
            [1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0],
        ], dtype=torch.float64)
        return features, adjacency

    @pytest.mark.parametrize('name', ['sum', 'mean', 'l1Norm', 'rbf'])
    def test_matches_per_node(self, setup, name):
        features, adjacency = setup
        nd = op(name).nd_op(features, adjacency)

        for node in (0, 1):
            neighbours = adjacency[node].nonzero(as_tuple=True)[0]
            expected = op(name).op(features[neighbours], features[node])
            assert torch.allclose(nd[node], expected)

    def test_mean_isolated_row_is_zero(self, setup):
        features, adjacency = setup
        nd = op('mean').nd_op(features, adjacency)
        assert nd[2].tolist() == [0.0, 0.0]

    def test_hadamard_nd(self, setup):
        features, adjacency = setup
        nd = op('hadamard').nd_op(features, adjacency)
        assert nd[0].tolist() == [15.0, 0.0]
        assert nd[2].tolist() == [0.0, 0.0]

    def test_hadamard_nd_overflow(self):
        features = torch.tensor([[1.0]] + [[10.0]] * 320 + [[0.0]], dtype=torch.float64)
        adjacency = torch.zeros(322, 322, dtype=torch.float64)
        adjacency[0, 1:] = 1.0

        nd = op('hadamard').nd_op(features, adjacency)
        assert nd[0].tolist() == [0.0]
        assert torch.isfinite(nd).all()
