"""
Utilities Module.

This module provides:
- The worker pool and node cursor used by every parallel phase
- Evaluation metrics and similarity search over embeddings

Components:
    parallel: WorkerPool, NodeCursor, ComputationCancelled
    metrics: Embedding/feature statistics, similarity search, health checks
"""

from .parallel import WorkerPool, NodeCursor, ComputationCancelled
from .metrics import (
    compute_embedding_statistics,
    compute_feature_statistics,
    find_similar_nodes,
    role_similarity_matrix,
    check_embedding_health
)

__all__ = [
    # Parallel execution
    'WorkerPool',
    'NodeCursor',
    'ComputationCancelled',
    # Metrics
    'compute_embedding_statistics',
    'compute_feature_statistics',
    'find_similar_nodes',
    'role_similarity_matrix',
    'check_embedding_health',
]
