"""
Base Feature Builder Module.

Layer 0 of DeepGL: for each node

    [in_degree, out_degree, both_degree, prop_1, ..., prop_k]

where prop_1..prop_k are the graph's scalar node properties in the order
reported by ``GraphView.available_properties()``. The same order is used for
the feature names, which keeps columns and names aligned.
"""

import torch
from typing import List

from ..data.graph_view import Direction, GraphView
from ..utils.parallel import WorkerPool
from .feature import Feature, Layer, create_matrix


DEGREE_FEATURES = ['IN_DEGREE', 'OUT_DEGREE', 'BOTH_DEGREE']


class BaseFeatureBuilder:
    """
    Compute the layer-0 features of every node.

    Example:
        >>> builder = BaseFeatureBuilder(graph)
        >>> with WorkerPool(concurrency=4) as pool:
        ...     layer = builder.build(pool)
        >>> layer.matrix.shape  # [num_nodes, 3 + num_properties]
    """

    def __init__(self, graph: GraphView):
        self.graph = graph
        self.properties = graph.available_properties()

    @property
    def num_features(self) -> int:
        return len(DEGREE_FEATURES) + len(self.properties)

    def feature_list(self) -> List[Feature]:
        """Base features: degrees first, then upper-cased property names."""
        return (
            [Feature(name) for name in DEGREE_FEATURES] +
            [Feature(name.upper()) for name in self.properties]
        )

    def compute_row(self, node_id: int) -> torch.Tensor:
        """Layer-0 row for a single node."""
        row = [
            float(self.graph.degree(node_id, Direction.INCOMING)),
            float(self.graph.degree(node_id, Direction.OUTGOING)),
            float(self.graph.degree(node_id, Direction.BOTH)),
        ]
        for name in self.properties:
            row.append(self.graph.property_value(name, node_id))
        return torch.tensor(row, dtype=torch.float64)

    def build(self, pool: WorkerPool) -> Layer:
        """
        Build the layer-0 matrix in parallel.

        Args:
            pool: Worker pool used to fill rows

        Returns:
            Layer with base features and their (unbinned) values
        """
        matrix = create_matrix(self.graph.node_count(), self.num_features)

        def task(node_id: int) -> None:
            matrix[node_id] = self.compute_row(node_id)

        pool.run(self.graph.node_count(), task)

        return Layer(self.feature_list(), matrix)
