"""
Tests for the Layer Building Stages.

Tests neighbourhood aggregation, diffusion, logarithmic binning and
redundancy pruning.
"""

import pytest
import torch
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from deepgl.data import GraphView
from deepgl.features import Feature, Layer, BaseFeatureBuilder
from deepgl.ops import NeighbourhoodAggregator, DiffusionSmoother, OPERATORS, NEIGHBOURHOODS
from deepgl.pruning import Binner, Pruner
from deepgl.utils.parallel import WorkerPool


def directed_cycle(n):
    sources = list(range(n))
    targets = [(i + 1) % n for i in range(n)]
    return GraphView.from_edge_index([sources, targets], num_nodes=n)


@pytest.fixture
def pool():
    with WorkerPool(concurrency=3) as worker_pool:
        yield worker_pool


@pytest.fixture
def cycle():
    return directed_cycle(4)


@pytest.fixture
def base_layer(cycle, pool):
    return BaseFeatureBuilder(cycle).build(pool)


def column_layer(*columns, names=None):
    """Layer whose columns are the given value lists."""
    matrix = torch.tensor(columns, dtype=torch.float64).t().contiguous()
    names = names or [f"F{i}" for i in range(len(columns))]
    return Layer([Feature(n) for n in names], matrix)


class TestNeighbourhoodAggregator:
    """Tests for the candidate layer."""

    def test_neighbourhoods_on_cycle(self, cycle):
        aggregator = NeighbourhoodAggregator(cycle)
        out_n, in_n, both_n = aggregator.neighbourhoods(0)

        assert out_n == [1]
        assert in_n == [3]
        assert both_n == [1, 3]

    def test_isolated_node(self):
        graph = GraphView.from_edge_index([[0], [1]], num_nodes=3)
        assert NeighbourhoodAggregator(graph).neighbourhoods(2) == ([], [], [])

    def test_width(self, cycle, base_layer, pool):
        candidate = NeighbourhoodAggregator(cycle).aggregate(base_layer, pool)

        assert candidate.num_features == 3 * 6 * 3 == 54
        assert candidate.matrix.shape == (4, 54)

    def test_feature_order(self, cycle, base_layer):
        features = NeighbourhoodAggregator(cycle).feature_list(base_layer.features)

        expected = []
        for neighbourhood in NEIGHBOURHOODS:
            for operator in OPERATORS:
                for prev in ('IN_DEGREE', 'OUT_DEGREE', 'BOTH_DEGREE'):
                    expected.append(f"{operator.name}_{neighbourhood}_neighbourhood({prev})")
        assert [str(f) for f in features] == expected

    def test_columns_follow_names(self):
        """The column named op_nbh(F) holds op over nbh of column F."""
        graph = GraphView.from_edge_index([[0, 0], [1, 2]], num_nodes=3)
        previous = column_layer([1.0, 2.0, 4.0], [0.0, 3.0, 5.0], names=['A', 'B'])
        aggregator = NeighbourhoodAggregator(graph)
        row = aggregator.compute_row(0, previous.matrix)

        names = [str(f) for f in aggregator.feature_list(previous.features)]
        assert row[names.index('sum_out_neighbourhood(A)')].item() == 6.0
        assert row[names.index('max_out_neighbourhood(B)')].item() == 5.0
        assert row[names.index('l1Norm_both_neighbourhood(A)')].item() == 4.0
        # node 0 has no incoming edges
        assert row[names.index('hadamard_in_neighbourhood(A)')].item() == 1.0
        assert row[names.index('mean_in_neighbourhood(B)')].item() == 0.0

    def test_no_nan(self, pool):
        graph = GraphView.from_edge_index([[0, 1], [1, 0]], num_nodes=4)
        candidate = NeighbourhoodAggregator(graph).aggregate(
            column_layer([1.0, 2.0, 3.0, 4.0]), pool
        )
        assert not torch.isnan(candidate.matrix).any()

    def test_large_hub_stays_finite(self, pool):
        """A hub with 321 in-neighbours overflows the product; bins stay finite."""
        leaves = list(range(1, 322))
        graph = GraphView.from_edge_index([leaves, [0] * len(leaves)], num_nodes=322)
        values = [1.0] + [10.0] * 320 + [0.0]

        candidate = NeighbourhoodAggregator(graph).aggregate(column_layer(values), pool)
        assert torch.isfinite(candidate.matrix).all()

        Binner().log_bins(candidate.matrix)
        assert torch.isfinite(candidate.matrix).all()


class TestDiffusionSmoother:
    """Tests for diffusion."""

    def test_zero_iterations_copies(self, cycle, base_layer, pool):
        candidate = NeighbourhoodAggregator(cycle).aggregate(base_layer, pool)
        doubled = DiffusionSmoother(cycle, iterations=0).diffuse(candidate, pool)

        width = candidate.num_features
        assert doubled.num_features == 2 * width
        assert torch.equal(doubled.matrix[:, width:], doubled.matrix[:, :width])
        for original, diffused in zip(candidate.features, doubled.features[width:]):
            assert diffused == Feature('diffuse', original)

    def test_one_round(self, pool):
        """Each node takes the mean of its neighbours; isolated nodes get 0."""
        graph = GraphView.from_edge_index([[0, 1], [1, 2]], num_nodes=4)
        matrix = torch.tensor([[1.0], [2.0], [4.0], [7.0]], dtype=torch.float64)

        smoothed = DiffusionSmoother(graph, iterations=1).smooth(matrix, pool)

        assert smoothed[:, 0].tolist() == [2.0, 2.5, 2.0, 0.0]
        # input untouched
        assert matrix[:, 0].tolist() == [1.0, 2.0, 4.0, 7.0]

    def test_rounds_are_synchronous(self, pool):
        graph = GraphView.from_edge_index([[0, 1], [1, 2]], num_nodes=3)
        matrix = torch.tensor([[0.0], [0.0], [8.0]], dtype=torch.float64)

        smoother = DiffusionSmoother(graph, iterations=2)
        first = smoother.smooth_round(matrix, pool)
        second = smoother.smooth_round(first, pool)

        assert first[:, 0].tolist() == [0.0, 4.0, 0.0]
        assert second[:, 0].tolist() == [4.0, 0.0, 4.0]
        assert torch.equal(smoother.smooth(matrix, pool), second)

    def test_negative_iterations(self, cycle):
        with pytest.raises(ValueError):
            DiffusionSmoother(cycle, iterations=-1)


class TestBinner:
    """Tests for logarithmic binning."""

    def bins(self, values):
        matrix = torch.tensor([values], dtype=torch.float64).t().contiguous()
        return Binner(alpha=0.5).log_bins(matrix)[:, 0]

    def test_distinct_values(self):
        assert self.bins([10.0, 20.0, 30.0, 40.0]).tolist() == [0.0, 0.0, 1.0, 2.0]

    def test_constant_column(self):
        result = self.bins([3.0, 3.0, 3.0])
        assert result.tolist() == [0.0, 0.0, 0.0]
        assert not torch.signbit(result).any()

    def test_ties_share_bin(self):
        result = self.bins([1.0, 2.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0])
        assert result.tolist() == [0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 2.0, 3.0]

    def test_negative_values(self):
        assert self.bins([-3.0, -1.0, -2.0, -4.0]).tolist() == [0.0, 2.0, 1.0, 0.0]

    def test_nan_ranks_as_zero(self):
        assert self.bins([1.0, 2.0, float('nan'), 3.0]).tolist() == [0.0, 1.0, 0.0, 2.0]

    def test_infinite_values_get_finite_bins(self):
        result = self.bins([1.0, float('inf'), 2.0, float('-inf')])
        assert result.tolist() == [0.0, 2.0, 1.0, 0.0]

    def test_scale_invariant(self):
        values = [0.5, 7.0, 1.0, 100.0, 3.0]
        assert torch.equal(self.bins(values), self.bins([v * 1000 for v in values]))

    def test_bins_in_place_per_column(self):
        matrix = torch.tensor([[1.0, 5.0], [2.0, 5.0]], dtype=torch.float64)
        Binner().log_bins(matrix)
        assert matrix.tolist() == [[0.0, 0.0], [1.0, 0.0]]

    def test_empty_matrix(self):
        matrix = torch.zeros(0, 3, dtype=torch.float64)
        assert Binner().log_bins(matrix).shape == (0, 3)

    def test_bad_alpha(self):
        with pytest.raises(ValueError):
            Binner(alpha=1.0)

    def test_linear_bins(self):
        matrix = torch.tensor([[0.0], [5.0], [10.0]], dtype=torch.float64)
        Binner().linear_bins(matrix, num_bins=2)
        assert matrix[:, 0].tolist() == [0.0, 1.0, 1.0]


class TestPruner:
    """Tests for redundancy pruning."""

    @pytest.fixture
    def previous(self):
        return column_layer([0.0, 1.0, 2.0, 3.0], names=['P'])

    def test_disagreement(self):
        column = torch.tensor([1.0, 1.0, 0.0, 0.0])
        matrix = torch.tensor([[1.0, 1.0], [1.0, 0.0], [0.0, 0.0], [0.0, 0.0]])
        assert Pruner.disagreement(column, matrix).tolist() == [0.0, 0.25]

    def test_lambda_zero_keeps_all(self, previous):
        candidate = column_layer([0.0, 1.0, 2.0, 3.0], [0.0, 1.0, 2.0, 3.0], names=['A', 'B'])
        pruned = Pruner(pruning_lambda=0.0).prune(previous, candidate)
        assert pruned.feature_names() == ['A', 'B']

    def test_structural_duplicates_removed(self, previous):
        candidate = column_layer([1.0, 0.0, 1.0, 0.0], [0.0, 0.0, 1.0, 1.0], [5.0, 5.0, 5.0, 5.0],
                                 names=['A', 'P', 'A'])
        pruned = Pruner(pruning_lambda=0.0).prune(previous, candidate)
        assert pruned.feature_names() == ['A']

    def test_redundant_with_previous_dropped(self, previous):
        candidate = column_layer(
            [0.0, 1.0, 2.0, 3.0],   # same as P
            [3.0, 2.0, 1.0, 0.0],
            [3.0, 2.0, 1.0, 0.0],   # same as B
            names=['A', 'B', 'C']
        )
        pruned = Pruner(pruning_lambda=0.3).prune(previous, candidate)

        assert pruned.feature_names() == ['B']
        assert pruned.matrix[:, 0].tolist() == [3.0, 2.0, 1.0, 0.0]

    def test_feature_graph_edges(self, previous):
        candidate = column_layer(
            [0.0, 1.0, 2.0, 3.0],
            [3.0, 2.0, 1.0, 0.0],
            [3.0, 2.0, 1.0, 0.0],
            names=['A', 'B', 'C']
        )
        graph = Pruner(pruning_lambda=0.3).build_feature_graph(previous, candidate)

        assert graph.number_of_nodes() == 4
        assert {tuple(sorted(e)) for e in graph.edges()} == {(0, 1), (2, 3)}

    def test_all_redundant_gives_empty(self, previous):
        candidate = column_layer([0.0, 1.0, 2.0, 3.0], [0.0, 1.0, 2.0, 4.0], names=['A', 'B'])
        pruned = Pruner(pruning_lambda=0.5).prune(previous, candidate)

        assert pruned.num_features == 0
        assert pruned.num_nodes == 4

    def test_kept_order_follows_candidate(self, previous):
        candidate = column_layer(
            [1.0, 1.0, 0.0, 0.0],
            [0.0, 1.0, 1.0, 0.0],
            [1.0, 1.0, 0.0, 0.0],
            names=['A', 'B', 'C']
        )
        pruned = Pruner(pruning_lambda=0.1).prune(previous, candidate)
        assert pruned.feature_names() == ['A', 'B']

    def test_negative_lambda(self):
        with pytest.raises(ValueError):
            Pruner(pruning_lambda=-0.1)
