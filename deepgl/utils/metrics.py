"""
Embedding Metrics Module.

This module provides helpers for inspecting DeepGL embeddings:
- Embedding statistics: distinct structural roles, constant columns
- Feature statistics: lineage depth and operator usage
- Similarity search: nearest nodes in embedding space
- Health checks: NaN/inf values, degenerate embeddings
"""

import numpy as np
import torch
from collections import Counter
from typing import Dict, List, Sequence, Tuple
from sklearn.metrics.pairwise import cosine_similarity
from sklearn.neighbors import NearestNeighbors
from sklearn.preprocessing import StandardScaler


def compute_embedding_statistics(embeddings: torch.Tensor) -> Dict:
    """
    Compute statistics about an embedding matrix.

    DeepGL embeddings hold bin numbers, so structurally equivalent nodes get
    identical rows. ``distinct_rows`` is therefore the number of structural
    roles the embedding distinguishes.

    Args:
        embeddings: Node embeddings [num_nodes, num_features]

    Returns:
        Dictionary with embedding statistics
    """
    num_nodes, dim = embeddings.shape

    if num_nodes == 0 or dim == 0:
        return {
            'num_nodes': num_nodes,
            'embedding_dim': dim,
            'distinct_rows': min(num_nodes, 1),
            'constant_columns': dim,
            'mean_per_dim': 0.0,
            'std_per_dim': 0.0,
            'max_value': 0.0,
            'sparsity': 1.0
        }

    values = embeddings.detach().cpu().to(torch.float64)
    distinct_rows = torch.unique(values, dim=0).shape[0]
    constant_columns = int((values.max(dim=0).values == values.min(dim=0).values).sum().item())

    return {
        'num_nodes': num_nodes,
        'embedding_dim': dim,
        'distinct_rows': distinct_rows,
        'constant_columns': constant_columns,
        'mean_per_dim': values.mean(dim=0).mean().item(),
        'std_per_dim': values.std(dim=0, correction=0).mean().item(),
        'max_value': values.max().item(),
        'sparsity': (values == 0).to(torch.float64).mean().item()
    }


def compute_feature_statistics(features: Sequence) -> Dict:
    """
    Summarize a feature list by lineage depth and operator.

    Args:
        features: Feature descriptors (deepgl.features.Feature)

    Returns:
        Dictionary with depth histogram, operator counts and diffused share
    """
    depths = Counter(f.depth for f in features)
    operators = Counter(f.name for f in features if f.parent is not None)
    diffused = sum(1 for f in features if f.name == 'diffuse')

    return {
        'num_features': len(features),
        'depth_histogram': {int(k): v for k, v in sorted(depths.items())},
        'operator_counts': dict(sorted(operators.items())),
        'diffused_fraction': diffused / len(features) if features else 0.0,
        'base_features': sorted({f.root.name for f in features})
    }


def role_similarity_matrix(embeddings: torch.Tensor, standardize: bool = True) -> np.ndarray:
    """
    Pairwise cosine similarity between node embeddings.

    Args:
        embeddings: Node embeddings [num_nodes, num_features]
        standardize: Z-score every feature first (bin numbers differ in range)

    Returns:
        Similarity matrix [num_nodes, num_nodes]
    """
    values = embeddings.detach().cpu().numpy()
    if standardize and values.shape[0] > 1:
        values = StandardScaler().fit_transform(values)
    return cosine_similarity(values)


def find_similar_nodes(
    embeddings: torch.Tensor,
    node_idx: int,
    k: int = 10,
    metric: str = 'euclidean'
) -> List[Tuple[int, float]]:
    """
    Find the k nodes closest to a node in embedding space.

    Args:
        embeddings: Node embeddings [num_nodes, num_features]
        node_idx: Query node index
        k: Number of neighbours to return (excluding the node itself)
        metric: Distance metric understood by sklearn NearestNeighbors

    Returns:
        List of (node_index, distance), closest first
    """
    num_nodes = embeddings.shape[0]
    if not 0 <= node_idx < num_nodes:
        raise ValueError(f"node_idx {node_idx} outside [0, {num_nodes})")

    k = min(k, num_nodes - 1)
    if k <= 0:
        return []

    values = embeddings.detach().cpu().numpy()
    index = NearestNeighbors(n_neighbors=k + 1, metric=metric).fit(values)
    distances, indices = index.kneighbors(values[node_idx:node_idx + 1])

    results = []
    for idx, dist in zip(indices[0].tolist(), distances[0].tolist()):
        if idx == node_idx:
            continue
        results.append((idx, float(dist)))
    return results[:k]


def check_embedding_health(embeddings: torch.Tensor) -> Tuple[bool, List[str]]:
    """
    Quick health check for embeddings.

    Returns:
        Tuple of (is_healthy, list_of_issues)
    """
    issues = []

    if embeddings.shape[1] == 0:
        issues.append("Embedding has no features")
        return False, issues

    if torch.isnan(embeddings).any():
        issues.append("Contains NaN values")

    if torch.isinf(embeddings).any():
        issues.append("Contains infinite values")

    stats = compute_embedding_statistics(embeddings)

    if stats['constant_columns'] == stats['embedding_dim']:
        issues.append("All features are constant")

    if stats['num_nodes'] > 1 and stats['distinct_rows'] == 1:
        issues.append("All nodes have identical embeddings")

    return len(issues) == 0, issues
