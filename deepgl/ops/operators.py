"""
Relational Operators Module.

A relational operator aggregates the feature rows of a node's neighbourhood
(and optionally the node's own row) into a single row of the same width:

    sum       column-wise sum of neighbour rows
    hadamard  column-wise product of neighbour rows
    max       column-wise maximum
    mean      column-wise arithmetic mean
    rbf       exp(-sum_k (n_k - x)^2 / sigma^2) per column, sigma = 16
    l1Norm    column-wise sum of |n_k - x|

Each operator also has a neutral ``default_val`` used when the
neighbourhood is empty, and a matrix-wide ``nd_op`` working on a dense
adjacency matrix (adjacency[i, j] != 0 when j is in i's neighbourhood).

The order of OPERATORS is fixed: it determines the column order of every
aggregated layer and the matching feature names.
"""

import torch
from dataclasses import dataclass
from typing import Callable, List


RBF_SIGMA = 16.0


@dataclass(frozen=True)
class RelOperator:
    """
    A named aggregation over neighbourhood rows.

    Attributes:
        name: Operator name used in feature names
        default_val: Value filling the row of an empty neighbourhood
        aggregate: (neighbourhood_rows [k, F], node_row [F]) -> [F]
        aggregate_nd: (features [N, F], adjacency [N, N]) -> [N, F]
    """
    name: str
    default_val: float
    aggregate: Callable[[torch.Tensor, torch.Tensor], torch.Tensor]
    aggregate_nd: Callable[[torch.Tensor, torch.Tensor], torch.Tensor]

    def op(self, neighbourhood_rows: torch.Tensor, node_row: torch.Tensor) -> torch.Tensor:
        """
        Aggregate one neighbourhood.

        Args:
            neighbourhood_rows: Feature rows of the neighbours [k, F]
            node_row: Feature row of the node itself [F]

        Returns:
            Aggregated row [F]; all ``default_val`` when k == 0
        """
        if neighbourhood_rows.shape[0] == 0:
            return self.default_row(node_row.shape[-1], node_row.dtype)
        return self.aggregate(neighbourhood_rows, node_row)

    def nd_op(self, features: torch.Tensor, adjacency: torch.Tensor) -> torch.Tensor:
        """
        Aggregate every node's neighbourhood at once.

        Args:
            features: Feature matrix [N, F]
            adjacency: Dense adjacency matrix [N, N]

        Returns:
            Aggregated matrix [N, F]
        """
        return self.aggregate_nd(features, adjacency)

    def default_row(self, width: int, dtype: torch.dtype = torch.float64) -> torch.Tensor:
        return torch.full((width,), self.default_val, dtype=dtype)


# ---------------------------------------------------------------------------
# Per-node aggregations
# ---------------------------------------------------------------------------

def _sum(rows: torch.Tensor, node_row: torch.Tensor) -> torch.Tensor:
    return rows.sum(dim=0)


def _hadamard(rows: torch.Tensor, node_row: torch.Tensor) -> torch.Tensor:
    # large neighbourhoods overflow to inf, and inf * 0 is NaN
    return torch.nan_to_num(rows.prod(dim=0), nan=0.0)


def _max(rows: torch.Tensor, node_row: torch.Tensor) -> torch.Tensor:
    return rows.max(dim=0).values


def _mean(rows: torch.Tensor, node_row: torch.Tensor) -> torch.Tensor:
    return torch.nan_to_num(rows.mean(dim=0), nan=0.0)


def _rbf(rows: torch.Tensor, node_row: torch.Tensor) -> torch.Tensor:
    norm2 = (rows - node_row).pow(2).sum(dim=0)
    return torch.exp(norm2 / -(RBF_SIGMA * RBF_SIGMA))


def _l1_norm(rows: torch.Tensor, node_row: torch.Tensor) -> torch.Tensor:
    return (rows - node_row).abs().sum(dim=0)


# ---------------------------------------------------------------------------
# Matrix-wide aggregations
# ---------------------------------------------------------------------------

def _sum_nd(features: torch.Tensor, adjacency: torch.Tensor) -> torch.Tensor:
    return adjacency @ features


def _hadamard_nd(features: torch.Tensor, adjacency: torch.Tensor) -> torch.Tensor:
    rows = []
    for node in range(adjacency.shape[0]):
        indexes = adjacency[node].nonzero(as_tuple=True)[0]
        if indexes.numel() > 0:
            rows.append(torch.nan_to_num(features[indexes].prod(dim=0), nan=0.0))
        else:
            rows.append(torch.zeros(features.shape[1], dtype=features.dtype))
    return torch.stack(rows) if rows else features.new_zeros(0, features.shape[1])


def _max_nd(features: torch.Tensor, adjacency: torch.Tensor) -> torch.Tensor:
    # [N, N, 1] * [1, N, F]: neighbour j's row weighted by adjacency[i, j]
    weighted = adjacency.unsqueeze(2) * features.unsqueeze(0)
    if weighted.shape[1] == 0:
        return features.new_zeros(adjacency.shape[0], features.shape[1])
    return weighted.max(dim=1).values


def _mean_nd(features: torch.Tensor, adjacency: torch.Tensor) -> torch.Tensor:
    mean = (adjacency @ features) / adjacency.sum(dim=1, keepdim=True)
    # zero-degree rows divide by zero; those entries should be 0
    return torch.nan_to_num(mean, nan=0.0)


def _rbf_nd(features: torch.Tensor, adjacency: torch.Tensor) -> torch.Tensor:
    mask = (adjacency != 0).to(features.dtype).unsqueeze(2)
    diffs = (features.unsqueeze(1) - features.unsqueeze(0)) * mask
    sum_of_square_diffs = diffs.pow(2).sum(dim=1)
    return torch.exp(sum_of_square_diffs * -(1.0 / RBF_SIGMA ** 2))


def _l1_norm_nd(features: torch.Tensor, adjacency: torch.Tensor) -> torch.Tensor:
    weights = adjacency.unsqueeze(2)
    diffs = features.unsqueeze(1) * weights - features.unsqueeze(0) * weights
    return diffs.abs().sum(dim=1)


sum_op = RelOperator('sum', 0.0, _sum, _sum_nd)
hadamard_op = RelOperator('hadamard', 1.0, _hadamard, _hadamard_nd)
max_op = RelOperator('max', 0.0, _max, _max_nd)
mean_op = RelOperator('mean', 0.0, _mean, _mean_nd)
rbf_op = RelOperator('rbf', 0.0, _rbf, _rbf_nd)
l1_norm_op = RelOperator('l1Norm', 0.0, _l1_norm, _l1_norm_nd)

OPERATORS: List[RelOperator] = [sum_op, hadamard_op, max_op, mean_op, rbf_op, l1_norm_op]


def get_operator(name: str) -> RelOperator:
    """Look up an operator by name."""
    for operator in OPERATORS:
        if operator.name == name:
            return operator
    raise ValueError(f"Unknown operator: {name}")
