"""
Binning and Pruning Module.

Components:
    Binner: Logarithmic (and linear) per-column discretization
    Pruner: Redundancy-graph based feature selection
"""

from .binning import Binner
from .pruner import Pruner

__all__ = [
    'Binner',
    'Pruner',
]
