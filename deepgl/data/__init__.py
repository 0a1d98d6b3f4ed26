"""
Data Module for DeepGL.

This module handles:
1. Read-only adjacency views over directed graphs
2. Loading graphs from JSON, NetworkX and PyTorch Geometric
3. Creating synthetic graphs for testing

Classes:
    GraphView: Adjacency, degree and property queries with dense node ids
    Direction: Relationship direction (incoming, outgoing, both)
    GraphLoader: Load graphs from files or other libraries

Example:
    >>> from deepgl.data import GraphLoader, Direction
    >>>
    >>> graph = GraphLoader.create_mock(num_nodes=100, seed=42)
    >>> graph.degree(0, Direction.BOTH)
"""

from .graph_view import GraphView, Direction
from .graph_loader import GraphLoader

__all__ = [
    'GraphView',
    'Direction',
    'GraphLoader',
]
