"""
Relational Operations Module.

Components:
    operators: The six relational operators (sum, hadamard, max, mean, rbf, l1Norm)
    aggregator: Per-node aggregation over out/in/both neighbourhoods
    diffusion: Neighbour-averaging smoothing of candidate features
"""

from .operators import RelOperator, OPERATORS, get_operator
from .aggregator import NeighbourhoodAggregator, NEIGHBOURHOODS
from .diffusion import DiffusionSmoother

__all__ = [
    'RelOperator',
    'OPERATORS',
    'get_operator',
    'NeighbourhoodAggregator',
    'NEIGHBOURHOODS',
    'DiffusionSmoother',
]
