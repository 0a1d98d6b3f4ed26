"""
Diffusion Smoother Module.

Heat-diffusion style smoothing of a candidate layer. Each round replaces
every node's row with the mean of its neighbours' rows (both directions,
self excluded) from the previous round:

    D_0 = X
    D_t(v) = mean_{u in both(v)} D_{t-1}(u)

Rounds are synchronous: a round reads only the previous round's buffer and
writes a fresh one. The smoothed matrix is appended to the candidate matrix
as extra columns, each tagged with a "diffuse" feature over the original.
"""

import torch
from typing import List

from ..data.graph_view import Direction, GraphView
from ..features.feature import Feature, Layer, create_matrix
from ..utils.parallel import WorkerPool


DIFFUSE = "diffuse"


class DiffusionSmoother:
    """
    Append diffused copies of every candidate feature.

    Example:
        >>> smoother = DiffusionSmoother(graph, iterations=10)
        >>> with WorkerPool(concurrency=4) as pool:
        ...     doubled = smoother.diffuse(candidate, pool)
        >>> doubled.num_features == 2 * candidate.num_features
        True
    """

    def __init__(self, graph: GraphView, iterations: int = 10):
        """
        Initialize smoother.

        Args:
            graph: Graph view providing neighbourhoods
            iterations: Number of smoothing rounds (0 appends an exact copy)
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        self.graph = graph
        self.iterations = iterations

        # Neighbourhoods do not change between rounds
        self._neighbours: List[torch.Tensor] = [
            torch.tensor(graph.neighbours(n, Direction.BOTH), dtype=torch.long)
            for n in range(graph.node_count())
        ]

    def smooth_round(self, source: torch.Tensor, pool: WorkerPool) -> torch.Tensor:
        """
        One synchronous diffusion round.

        Args:
            source: Snapshot of the previous round [N, F] (read only)
            pool: Worker pool used to fill rows

        Returns:
            New buffer [N, F]
        """
        target = create_matrix(source.shape[0], source.shape[1])

        def task(node_id: int) -> None:
            neighbours = self._neighbours[node_id]
            if neighbours.numel() == 0:
                # isolated node, mean of nothing is 0
                return
            target[node_id] = source.index_select(0, neighbours).mean(dim=0)

        pool.run(source.shape[0], task)
        return target

    def smooth(self, matrix: torch.Tensor, pool: WorkerPool) -> torch.Tensor:
        """Run all rounds and return the diffused matrix."""
        diffused = matrix.clone()
        for _ in range(self.iterations):
            diffused = self.smooth_round(diffused, pool)
        return diffused

    def diffuse(self, candidate: Layer, pool: WorkerPool) -> Layer:
        """
        Append the diffused matrix and "diffuse"-tagged features.

        Args:
            candidate: Aggregated candidate layer
            pool: Worker pool used for the rounds

        Returns:
            Layer with 2 * candidate.num_features columns
        """
        diffused = self.smooth(candidate.matrix, pool)
        features = list(candidate.features) + [
            Feature(DIFFUSE, feature) for feature in candidate.features
        ]
        return Layer(features, torch.cat([candidate.matrix, diffused], dim=1))
