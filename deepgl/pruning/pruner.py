"""
Feature Pruning Module.

Keeps the feature set from growing combinatorially across layers.

Candidate columns are compared (after binning) with the previous layer's
columns and with each other. Two columns are redundant when the fraction of
nodes on which their values disagree is below ``pruning_lambda``:

    disagreement(a, b) = |{v : a[v] != b[v]}| / N
    redundant(a, b)    = disagreement(a, b) < pruning_lambda

Redundancy pairs form a feature graph; each connected component is a group of
interchangeable features:

    - a group that contains a previous-layer feature is already represented,
      so none of its candidates are kept;
    - otherwise the first candidate of the group (in column order) is kept.

``pruning_lambda = 0`` keeps every (structurally distinct) candidate; larger
values prune more aggressively.
"""

import networkx as nx
import torch
from typing import List

from ..features.feature import Layer


class Pruner:
    """
    Select the non-redundant candidate features of a layer.

    Example:
        >>> pruner = Pruner(pruning_lambda=0.3)
        >>> accepted = pruner.prune(previous_layer, candidate_layer)
    """

    def __init__(self, pruning_lambda: float = 0.3):
        """
        Initialize pruner.

        Args:
            pruning_lambda: Disagreement threshold below which two features
                            count as redundant
        """
        if pruning_lambda < 0:
            raise ValueError(f"pruning_lambda must be >= 0, got {pruning_lambda}")
        self.pruning_lambda = pruning_lambda

    @staticmethod
    def disagreement(column: torch.Tensor, matrix: torch.Tensor) -> torch.Tensor:
        """
        Fraction of rows where ``column`` differs from each column of ``matrix``.

        Args:
            column: Column values [N]
            matrix: Columns to compare against [N, K]

        Returns:
            Disagreement fractions [K]
        """
        differing = (matrix != column.unsqueeze(1)).to(torch.float64).sum(dim=0)
        # an empty graph has nothing to disagree on
        return differing / max(matrix.shape[0], 1)

    def _distinct_candidates(self, previous: Layer, candidate: Layer) -> List[int]:
        """Candidate columns whose feature is not structurally seen before."""
        seen = set(previous.features)
        columns = []
        for column, feature in enumerate(candidate.features):
            if feature in seen:
                continue
            seen.add(feature)
            columns.append(column)
        return columns

    def build_feature_graph(self, previous: Layer, candidate: Layer) -> nx.Graph:
        """
        Redundancy graph over previous + candidate columns.

        Node i < P is previous column i; node P + k is the k-th column of
        ``candidate``. Previous/previous pairs are not compared.

        Args:
            previous: Previous accepted layer (P columns)
            candidate: Candidate layer

        Returns:
            NetworkX graph with one node per column
        """
        num_prev = previous.num_features
        combined = torch.cat([previous.matrix, candidate.matrix], dim=1)

        graph = nx.Graph()
        graph.add_nodes_from(range(combined.shape[1]))

        for k in range(candidate.num_features):
            node = num_prev + k
            column = combined[:, node]
            # previous columns and the candidates after this one
            others = torch.cat([combined[:, :num_prev], combined[:, node + 1:]], dim=1)
            redundant = (self.disagreement(column, others) < self.pruning_lambda).nonzero(as_tuple=True)[0]

            for j in redundant.tolist():
                graph.add_edge(node, j if j < num_prev else j + k + 1)

        return graph

    def prune(self, previous: Layer, candidate: Layer) -> Layer:
        """
        Reduce a candidate layer to its non-redundant features.

        Args:
            previous: Previous accepted layer
            candidate: Binned candidate layer

        Returns:
            Layer holding a subset of the candidate columns, in candidate
            order (possibly empty)
        """
        distinct = candidate.select(self._distinct_candidates(previous, candidate))
        columns = list(range(distinct.num_features))

        if self.pruning_lambda > 0 and distinct.num_features > 0:
            num_prev = previous.num_features
            graph = self.build_feature_graph(previous, distinct)

            columns = []
            for component in nx.connected_components(graph):
                first = min(component)
                if first < num_prev:
                    continue
                columns.append(first - num_prev)
            columns.sort()

        return distinct.select(columns)
