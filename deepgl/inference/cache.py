"""
Embedding Cache Module.

DeepGL features aggregate over neighbourhoods of neighbourhoods, so a change
anywhere in the graph can change every row. The cache therefore holds one
complete result (embedding, features, layer count) keyed by a fingerprint of
the graph it was computed on. A lookup with any other fingerprint misses.

Nodes can also be marked dirty (the caller knows they changed without
rebuilding the graph object); a dirty cache misses until the next store.
"""

import hashlib
import time
import torch
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from ..data.graph_view import GraphView
from ..features.feature import Feature


def graph_fingerprint(graph: GraphView) -> str:
    """Digest of node count, edges, properties and original ids."""
    digest = hashlib.sha1()
    digest.update(str(graph.node_count()).encode())
    digest.update(graph.edge_index.contiguous().numpy().tobytes())
    for name in graph.available_properties():
        digest.update(name.encode())
        digest.update(graph.node_properties[name].contiguous().numpy().tobytes())
    digest.update(repr(graph.original_ids).encode())
    return digest.hexdigest()


@dataclass
class CacheEntry:
    """One computed DeepGL result."""
    fingerprint: str
    embeddings: torch.Tensor
    features: List[Feature]
    num_layers: int = 0
    created: float = field(default_factory=time.time)

    @property
    def age(self) -> float:
        return time.time() - self.created


class EmbeddingCache:
    """
    Single-entry cache of DeepGL results, keyed by graph fingerprint.

    Example:
        >>> cache = EmbeddingCache()
        >>> key = graph_fingerprint(graph)
        >>> entry = cache.lookup(key)
        >>> if entry is None:
        ...     engine = DeepGL(graph).compute()
        ...     entry = cache.store(key, engine.embedding, engine.features, engine.num_layers)
    """

    def __init__(self, max_age_seconds: Optional[float] = None):
        """
        Args:
            max_age_seconds: Entries older than this miss (None = no expiry)
        """
        self.max_age_seconds = max_age_seconds
        self.entry: Optional[CacheEntry] = None
        self.dirty_nodes: Set[int] = set()
        self.version = 0

        self.hits = 0
        self.misses = 0
        self.invalidations = 0

    def is_valid(self, fingerprint: Optional[str] = None) -> bool:
        """
        Whether the stored entry can be served.

        Args:
            fingerprint: If given, the entry must also belong to this graph
        """
        if self.entry is None or self.dirty_nodes:
            return False
        if fingerprint is not None and self.entry.fingerprint != fingerprint:
            return False
        if self.max_age_seconds is not None and self.entry.age > self.max_age_seconds:
            return False
        return True

    def lookup(self, fingerprint: str) -> Optional[CacheEntry]:
        """Stored entry for a graph fingerprint, or None on a miss."""
        if self.is_valid(fingerprint):
            self.hits += 1
            return self.entry
        self.misses += 1
        return None

    def store(
        self,
        fingerprint: str,
        embeddings: torch.Tensor,
        features: List[Feature],
        num_layers: int = 0
    ) -> CacheEntry:
        """
        Replace the stored entry.

        Raises:
            ValueError: If features and embedding columns are misaligned
        """
        if len(features) != embeddings.shape[1]:
            raise ValueError(
                f"Feature count {len(features)} does not match "
                f"embedding columns {embeddings.shape[1]}"
            )

        self.entry = CacheEntry(fingerprint, embeddings, list(features), num_layers)
        self.dirty_nodes.clear()
        self.version += 1
        return self.entry

    def get_single(self, node_idx: int) -> Optional[torch.Tensor]:
        """Row of one node from a servable entry."""
        if not self.is_valid() or not 0 <= node_idx < self.entry.embeddings.shape[0]:
            return None
        return self.entry.embeddings[node_idx]

    def invalidate(self, node_ids: Optional[Iterable[int]] = None) -> None:
        """
        Drop the entry, or mark some nodes dirty.

        Args:
            node_ids: Changed nodes (None drops the entry)
        """
        self.invalidations += 1
        if node_ids is None:
            self.entry = None
            self.dirty_nodes.clear()
        else:
            self.dirty_nodes.update(node_ids)

    def clear(self) -> None:
        self.entry = None
        self.dirty_nodes.clear()
        self.version = 0
        self.hits = self.misses = self.invalidations = 0

    def get_statistics(self) -> Dict:
        total = self.hits + self.misses
        entry = self.entry
        return {
            'valid': self.is_valid(),
            'num_nodes': entry.embeddings.shape[0] if entry is not None else 0,
            'num_features': len(entry.features) if entry is not None else 0,
            'num_layers': entry.num_layers if entry is not None else 0,
            'version': self.version,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total if total > 0 else 0.0,
            'invalidations': self.invalidations,
            'dirty_nodes': len(self.dirty_nodes),
            'age_seconds': entry.age if entry is not None else None,
        }

    def __repr__(self) -> str:
        stats = self.get_statistics()
        return (f"EmbeddingCache(valid={stats['valid']}, "
                f"nodes={stats['num_nodes']}, "
                f"features={stats['num_features']})")
