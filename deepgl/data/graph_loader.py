"""
Graph Loader Module.

This module provides utilities for loading graphs from files and in-memory
graph libraries, and for creating synthetic graphs for testing/development.

The GraphLoader class serves as an adapter between the various graph sources
and the GraphView consumed by the DeepGL engine.

JSON format:
    {
        "nodes": [{"id": "a", "properties": {"weight": 1.5}}, ...],
        "edges": [{"source": "a", "target": "b"}, ...]
    }
"""

import json
import random
import torch
import networkx as nx
from pathlib import Path
from typing import Any, Dict, List, Optional

from torch_geometric.data import Data

from .graph_view import GraphView


class GraphLoader:
    """
    Load graphs from various sources for embedding computation.

    This class provides a unified interface for loading graphs from:
    - JSON files (saved graphs)
    - NetworkX graphs
    - PyTorch Geometric Data objects
    - Synthetic generators (testing)

    Example:
        >>> loader = GraphLoader()
        >>>
        >>> # Load from file
        >>> graph = loader.from_file("data/raw/graph.json")
        >>>
        >>> # Create mock graph
        >>> graph = loader.create_mock(num_nodes=500)
    """

    @staticmethod
    def from_file(path: str) -> GraphView:
        """
        Load graph from JSON file.

        Node properties that are missing on a node default to 0.0. Property
        order follows first appearance in the file.

        Args:
            path: Path to JSON file

        Returns:
            GraphView populated from file
        """
        with open(path, 'r') as f:
            data = json.load(f)

        return GraphLoader.from_dict(data)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> GraphView:
        """
        Build a GraphView from the JSON-style dictionary layout.

        Args:
            data: Dictionary with 'nodes' and 'edges' lists

        Returns:
            GraphView
        """
        nodes = data.get('nodes', [])
        node_ids = [node['id'] for node in nodes]
        node_mapping = {nid: idx for idx, nid in enumerate(node_ids)}
        if len(node_mapping) != len(node_ids):
            raise ValueError("Duplicate node ids in graph data")

        property_names: List[str] = []
        for node in nodes:
            for name in node.get('properties', {}):
                if name not in property_names:
                    property_names.append(name)

        node_properties = {
            name: torch.tensor(
                [float(node.get('properties', {}).get(name, 0.0)) for node in nodes],
                dtype=torch.float64
            )
            for name in property_names
        }

        edges = []
        for edge in data.get('edges', []):
            try:
                edges.append([node_mapping[edge['source']], node_mapping[edge['target']]])
            except KeyError as e:
                raise ValueError(f"Edge references unknown node {e}") from e

        if edges:
            edge_index = torch.tensor(edges, dtype=torch.long).t().contiguous()
        else:
            edge_index = torch.zeros((2, 0), dtype=torch.long)

        return GraphView(edge_index, len(node_ids), node_properties, node_ids)

    @staticmethod
    def save(graph: GraphView, path: str) -> None:
        """
        Save graph to JSON file.

        Args:
            graph: Graph view to save
            path: Output file path
        """
        properties = graph.available_properties()
        data = {
            'nodes': [
                {
                    'id': graph.to_original_id(n),
                    'properties': {name: graph.property_value(name, n) for name in properties}
                }
                for n in range(graph.node_count())
            ],
            'edges': [
                {'source': graph.to_original_id(s), 'target': graph.to_original_id(d)}
                for s, d in zip(graph.edge_index[0].tolist(), graph.edge_index[1].tolist())
            ]
        }

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def from_networkx(graph: nx.Graph, properties: Optional[List[str]] = None) -> GraphView:
        """Load graph from a NetworkX graph."""
        return GraphView.from_networkx(graph, properties)

    @staticmethod
    def from_pyg(data: Data, property_names: Optional[List[str]] = None) -> GraphView:
        """Load graph from a PyTorch Geometric Data object."""
        return GraphView.from_pyg(data, property_names)

    @staticmethod
    def create_mock(
        num_nodes: int = 200,
        edge_probability: float = 0.03,
        num_properties: int = 0,
        seed: int = 42
    ) -> GraphView:
        """
        Create a random directed graph for testing.

        Args:
            num_nodes: Number of nodes
            edge_probability: Probability of each directed edge
            num_properties: Number of random scalar properties per node
            seed: Random seed for reproducibility

        Returns:
            GraphView with synthetic data
        """
        graph = nx.gnp_random_graph(num_nodes, edge_probability, seed=seed, directed=True)

        rng = random.Random(seed)
        property_names = [f"prop_{i}" for i in range(num_properties)]
        for node in graph.nodes():
            for name in property_names:
                graph.nodes[node][name] = rng.random()

        view = GraphView.from_networkx(graph, property_names)

        print(f"Generated synthetic graph:")
        print(f"  Nodes: {view.node_count()}")
        print(f"  Edges: {view.num_edges}")
        print(f"  Properties: {len(property_names)}")

        return view
