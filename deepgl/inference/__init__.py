"""
Inference Module.

This module wraps the engine for callers:
- Encoder accepting several graph formats
- Caching keyed by graph fingerprint, with dirty tracking

Components:
    StructuralEncoder: Compute, cache and query DeepGL embeddings
    EmbeddingCache: Result cache keyed by graph fingerprint

Example:
    >>> from deepgl.inference import StructuralEncoder
    >>>
    >>> encoder = StructuralEncoder({'iterations': 2})
    >>> embeddings = encoder.encode_all(nx_graph)
    >>> encoder.similar_nodes('alice', nx_graph, k=3)
"""

from .encoder import StructuralEncoder
from .cache import EmbeddingCache, CacheEntry, graph_fingerprint

__all__ = [
    'StructuralEncoder',
    'EmbeddingCache',
    'CacheEntry',
    'graph_fingerprint',
]
