"""
Structural Encoder Module.

Caller-facing wrapper around the DeepGL engine. It handles:
- Converting the caller's graph format into a GraphView
- Running the engine, or serving the cached result for an unchanged graph
- Lookups by original node id and similarity search
"""

import time
import torch
import networkx as nx
from typing import Any, Dict, List, Optional, Tuple, Union

from torch_geometric.data import Data

from ..data.graph_view import GraphView
from ..data.graph_loader import GraphLoader
from ..engine.config import DeepGLConfig
from ..engine.deepgl import DeepGL
from ..features.feature import Feature
from ..utils.metrics import find_similar_nodes
from .cache import CacheEntry, EmbeddingCache, graph_fingerprint


class StructuralEncoder:
    """
    Compute and serve DeepGL structural embeddings.

    Supported graph formats:
        1. GraphView
        2. NetworkX Graph/DiGraph
        3. PyTorch Geometric Data object
        4. Dict with 'edge_index' (and optional 'num_nodes', 'properties',
           'original_ids'), or the JSON layout with 'nodes' and 'edges'

    Example:
        >>> encoder = StructuralEncoder({'iterations': 3, 'pruning_lambda': 0.3})
        >>> embeddings = encoder.encode_all(graph)
        >>>
        >>> # Same graph again: served from cache
        >>> emb = encoder.encode_by_id('node_17', graph)
        >>>
        >>> # Tell the encoder some nodes changed in place
        >>> encoder.invalidate_cache([17])
    """

    def __init__(
        self,
        config: Optional[Union[DeepGLConfig, Dict[str, Any]]] = None,
        cache_embeddings: bool = True
    ):
        """
        Args:
            config: DeepGLConfig or configuration dictionary
            cache_embeddings: Whether to cache computed embeddings
        """
        if config is None:
            config = DeepGLConfig()
        elif isinstance(config, dict):
            config = DeepGLConfig.from_dict(config)
        self.config = config

        self.cache = EmbeddingCache() if cache_embeddings else None

        self.last_view: Optional[GraphView] = None
        self.last_result: Optional[CacheEntry] = None
        self._inference_times: List[float] = []

    @staticmethod
    def to_graph_view(graph: Any) -> GraphView:
        """
        Convert a supported graph format into a GraphView.

        Raises:
            ValueError: If graph format is not recognized
        """
        if isinstance(graph, GraphView):
            return graph
        if isinstance(graph, Data):
            return GraphView.from_pyg(graph)
        if isinstance(graph, nx.Graph):
            return GraphView.from_networkx(graph)
        if isinstance(graph, dict):
            if 'edge_index' in graph:
                return GraphView.from_edge_index(
                    graph['edge_index'],
                    num_nodes=graph.get('num_nodes'),
                    node_properties=graph.get('properties'),
                    original_ids=graph.get('original_ids')
                )
            if 'nodes' in graph:
                return GraphLoader.from_dict(graph)

        raise ValueError(
            f"Unrecognized graph format: {type(graph)}. "
            "Supported: GraphView, PyG Data, NetworkX Graph, dict"
        )

    def encode_all(self, graph: Any, force_recompute: bool = False) -> torch.Tensor:
        """
        Get embeddings for all nodes.

        Args:
            graph: Graph in any supported format
            force_recompute: If True, ignore cache

        Returns:
            embeddings: Tensor [num_nodes, num_features]
        """
        view = self.to_graph_view(graph)
        fingerprint = graph_fingerprint(view)
        self.last_view = view

        if self.cache is not None and not force_recompute:
            cached = self.cache.lookup(fingerprint)
            if cached is not None:
                self.last_result = cached
                return cached.embeddings

        start_time = time.time()
        engine = DeepGL(view, self.config).compute()

        if self.cache is not None:
            self.last_result = self.cache.store(
                fingerprint, engine.embedding, engine.features, engine.num_layers
            )
        else:
            self.last_result = CacheEntry(
                fingerprint, engine.embedding, list(engine.features), engine.num_layers
            )

        self._inference_times.append(time.time() - start_time)
        return engine.embedding

    @property
    def features(self) -> Optional[List[Feature]]:
        """Features of the last served embedding."""
        return self.last_result.features if self.last_result is not None else None

    def encode_by_id(
        self,
        node_id: Any,
        graph: Any,
        force_recompute: bool = False
    ) -> Optional[torch.Tensor]:
        """
        Embedding row of one node, by original id.

        Returns:
            embedding: Tensor [num_features] or None if the id is unknown
        """
        embeddings = self.encode_all(graph, force_recompute)
        node_idx = self._index_of(node_id)
        if node_idx is None:
            return None
        return embeddings[node_idx]

    def similar_nodes(
        self,
        node_id: Any,
        graph: Any,
        k: int = 5
    ) -> List[Tuple[Any, float]]:
        """
        Find the k nodes structurally closest to a node.

        Args:
            node_id: Original id of the query node
            graph: Graph in any supported format
            k: Number of nodes to return

        Returns:
            List of (original_id, distance), closest first

        Raises:
            ValueError: If node_id is not in the graph
        """
        embeddings = self.encode_all(graph)
        node_idx = self._index_of(node_id)
        if node_idx is None:
            raise ValueError(f"Unknown node id: {node_id}")

        return [
            (self.last_view.to_original_id(idx), dist)
            for idx, dist in find_similar_nodes(embeddings, node_idx, k)
        ]

    def _index_of(self, node_id: Any) -> Optional[int]:
        if self.last_view is None:
            return None
        try:
            return self.last_view.original_ids.index(node_id)
        except ValueError:
            return None

    def invalidate_cache(self, node_ids: Optional[List[int]] = None):
        """Drop the cached result, or mark nodes of it dirty."""
        if self.cache is not None:
            self.cache.invalidate(node_ids)

    def get_statistics(self) -> Dict:
        stats = {
            'config': self.config.to_dict(),
            'cache_enabled': self.cache is not None,
        }

        if self.last_result is not None:
            stats['num_features'] = len(self.last_result.features)
            stats['num_layers'] = self.last_result.num_layers

        if self._inference_times:
            times = self._inference_times[-100:]
            stats.update({
                'avg_inference_ms': sum(times) / len(times) * 1000,
                'max_inference_ms': max(times) * 1000,
                'num_inferences': len(self._inference_times)
            })

        if self.cache is not None:
            stats['cache'] = self.cache.get_statistics()

        return stats
