"""
Neighbourhood Aggregator Module.

Builds the raw candidate layer of a DeepGL iteration. For every node, and for
every neighbourhood kind in the fixed order (out, in, both), every operator in
OPERATORS is applied to the previous layer's rows of that neighbourhood:

    row(v) = [ op_1(out(v)), ..., op_6(out(v)),
               op_1(in(v)),  ..., op_6(in(v)),
               op_1(both(v)), ..., op_6(both(v)) ]

Each block is as wide as the previous layer, so the candidate layer has
3 * len(OPERATORS) * F_prev columns. Feature names are generated in exactly
the same nested order.
"""

import torch
from typing import List, Optional, Sequence, Tuple

from ..data.graph_view import Direction, GraphView
from ..features.feature import Feature, Layer, create_matrix
from ..utils.parallel import WorkerPool
from .operators import OPERATORS, RelOperator


NEIGHBOURHOODS = ('out', 'in', 'both')


class NeighbourhoodAggregator:
    """
    Aggregate the previous layer over out/in/both neighbourhoods.

    Example:
        >>> aggregator = NeighbourhoodAggregator(graph)
        >>> with WorkerPool(concurrency=4) as pool:
        ...     candidate = aggregator.aggregate(previous_layer, pool)
        >>> candidate.num_features == 3 * 6 * previous_layer.num_features
        True
    """

    def __init__(
        self,
        graph: GraphView,
        operators: Optional[Sequence[RelOperator]] = None
    ):
        """
        Initialize aggregator.

        Args:
            graph: Graph view providing neighbourhoods
            operators: Operators to apply (defaults to all six, in fixed order)
        """
        self.graph = graph
        self.operators = list(operators) if operators is not None else list(OPERATORS)

    def neighbourhoods(self, node_id: int) -> Tuple[List[int], List[int], List[int]]:
        """
        Compute the out, in and both neighbourhoods of a node.

        Every relationship touching the node lands in ``both``. It also lands
        in ``out`` when an outgoing edge node -> target exists, otherwise in
        ``in``. Multiplicity is preserved.

        Returns:
            (out_neighbours, in_neighbours, both_neighbours)
        """
        out_neighbours: List[int] = []
        in_neighbours: List[int] = []
        both_neighbours: List[int] = []

        def visit(source: int, target: int) -> bool:
            both_neighbours.append(target)
            if self.graph.edge_exists(source, target, Direction.OUTGOING):
                out_neighbours.append(target)
            else:
                in_neighbours.append(target)
            return True

        self.graph.for_each_neighbour(node_id, Direction.BOTH, visit)

        return out_neighbours, in_neighbours, both_neighbours

    def feature_list(self, prev_features: List[Feature]) -> List[Feature]:
        """Candidate features in column order."""
        features = []
        for neighbourhood in NEIGHBOURHOODS:
            for operator in self.operators:
                for prev_feature in prev_features:
                    features.append(
                        Feature(f"{operator.name}_{neighbourhood}_neighbourhood", prev_feature)
                    )
        return features

    def compute_row(self, node_id: int, prev_matrix: torch.Tensor) -> torch.Tensor:
        """
        Aggregated row of a single node.

        Args:
            node_id: Node to aggregate for
            prev_matrix: Previous layer's matrix [N, F_prev]

        Returns:
            Row of width 3 * len(operators) * F_prev
        """
        node_row = prev_matrix[node_id]
        parts = []

        for neighbourhood in self.neighbourhoods(node_id):
            if not neighbourhood:
                for operator in self.operators:
                    parts.append(operator.default_row(prev_matrix.shape[1], prev_matrix.dtype))
                continue

            index = torch.tensor(neighbourhood, dtype=torch.long)
            neighbourhood_rows = prev_matrix.index_select(0, index)
            for operator in self.operators:
                parts.append(operator.op(neighbourhood_rows, node_row))

        return torch.cat(parts)

    def aggregate(self, previous: Layer, pool: WorkerPool) -> Layer:
        """
        Build the candidate layer in parallel.

        Args:
            previous: Accepted layer of the previous iteration
            pool: Worker pool used to fill rows

        Returns:
            Candidate layer [N, 3 * len(operators) * F_prev]
        """
        prev_matrix = previous.matrix
        width = len(NEIGHBOURHOODS) * len(self.operators) * previous.num_features
        matrix = create_matrix(self.graph.node_count(), width)

        def task(node_id: int) -> None:
            matrix[node_id] = self.compute_row(node_id, prev_matrix)

        pool.run(self.graph.node_count(), task)

        return Layer(self.feature_list(previous.features), matrix)
