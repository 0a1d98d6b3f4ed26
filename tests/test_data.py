"""
Tests for Data Module.

Tests graph views, neighbour iteration and loading from various sources.
"""

import pytest
import torch
import networkx as nx
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from torch_geometric.data import Data

from deepgl.data import GraphView, GraphLoader, Direction


@pytest.fixture
def small_graph():
    """0 -> 1, 0 -> 2, 1 -> 2, 2 -> 0, 3 isolated."""
    edge_index = torch.tensor([[0, 0, 1, 2], [1, 2, 2, 0]])
    return GraphView(edge_index, num_nodes=4, original_ids=['a', 'b', 'c', 'd'])


class TestGraphView:
    """Tests for GraphView queries."""

    def test_node_count(self, small_graph):
        assert small_graph.node_count() == 4
        assert small_graph.num_edges == 4

    def test_degrees(self, small_graph):
        """Test degree in every direction."""
        assert small_graph.degree(0, Direction.OUTGOING) == 2
        assert small_graph.degree(0, Direction.INCOMING) == 1
        assert small_graph.degree(0, Direction.BOTH) == 3
        assert small_graph.degree(3, Direction.BOTH) == 0

    def test_reciprocal_edges_count_twice(self):
        """A reciprocal pair contributes 2 to the BOTH degree."""
        graph = GraphView.from_edge_index([[0, 1], [1, 0]])
        assert graph.degree(0, Direction.BOTH) == 2
        assert graph.neighbours(0, Direction.BOTH) == [1, 1]

    def test_for_each_neighbour_order(self, small_graph):
        """Outgoing relationships come before incoming ones."""
        visited = []
        small_graph.for_each_neighbour(0, Direction.BOTH, lambda s, t: visited.append((s, t)))
        assert visited == [(0, 1), (0, 2), (0, 2)]

    def test_for_each_neighbour_stops(self, small_graph):
        """Returning False from the visitor stops iteration."""
        visited = []

        def visitor(source, target):
            visited.append(target)
            return False

        small_graph.for_each_neighbour(0, Direction.BOTH, visitor)
        assert visited == [1]

    def test_edge_exists(self, small_graph):
        assert small_graph.edge_exists(0, 1)
        assert not small_graph.edge_exists(1, 0)
        assert small_graph.edge_exists(1, 0, Direction.INCOMING)
        assert small_graph.edge_exists(1, 0, Direction.BOTH)
        assert not small_graph.edge_exists(3, 0, Direction.BOTH)

    def test_original_ids(self, small_graph):
        assert small_graph.to_original_id(2) == 'c'

    def test_properties(self):
        graph = GraphView(
            torch.zeros((2, 0), dtype=torch.long), 2,
            node_properties={'weight': [1.5, 2.5]}
        )
        assert graph.available_properties() == ['weight']
        assert graph.property_value('weight', 1) == 2.5

    def test_statistics(self, small_graph):
        stats = small_graph.get_statistics()
        assert stats['num_nodes'] == 4
        assert stats['isolated_nodes'] == 1
        assert stats['max_degree'] == 3


class TestGraphViewValidation:
    """Tests for constructor validation."""

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            GraphView(torch.tensor([0, 1, 2]), num_nodes=3)

    def test_node_out_of_range(self):
        with pytest.raises(ValueError):
            GraphView(torch.tensor([[0], [5]]), num_nodes=3)

    def test_property_length_mismatch(self):
        with pytest.raises(ValueError):
            GraphView(torch.tensor([[0], [1]]), 2, node_properties={'p': [1.0]})

    def test_original_id_count_mismatch(self):
        with pytest.raises(ValueError):
            GraphView(torch.tensor([[0], [1]]), 2, original_ids=['x'])

    def test_empty_graph(self):
        graph = GraphView.from_edge_index([])
        assert graph.node_count() == 0
        assert graph.get_statistics()['num_nodes'] == 0


class TestGraphLoader:
    """Tests for loading graphs."""

    def test_from_networkx_directed(self):
        G = nx.DiGraph()
        G.add_edges_from([('x', 'y'), ('y', 'z')])
        G.nodes['x']['score'] = 3.0

        graph = GraphLoader.from_networkx(G, properties=['score'])

        assert graph.original_ids == ['x', 'y', 'z']
        assert graph.edge_exists(0, 1)
        assert not graph.edge_exists(1, 0)
        assert graph.property_value('score', 0) == 3.0
        assert graph.property_value('score', 1) == 0.0

    def test_from_networkx_undirected(self):
        """Undirected edges are stored in both directions."""
        graph = GraphLoader.from_networkx(nx.path_graph(3))
        assert graph.num_edges == 4
        assert graph.edge_exists(1, 0)
        assert graph.edge_exists(0, 1)

    def test_from_pyg(self):
        data = Data(
            x=torch.tensor([[1.0, 2.0], [3.0, 4.0]]),
            edge_index=torch.tensor([[0], [1]])
        )
        graph = GraphLoader.from_pyg(data)

        assert graph.available_properties() == ['x0', 'x1']
        assert graph.property_value('x1', 1) == 4.0

    def test_from_pyg_name_mismatch(self):
        data = Data(x=torch.ones(2, 2), edge_index=torch.tensor([[0], [1]]))
        with pytest.raises(ValueError):
            GraphLoader.from_pyg(data, property_names=['only_one'])

    def test_from_dict(self):
        graph = GraphLoader.from_dict({
            'nodes': [
                {'id': 'a', 'properties': {'w': 1.0}},
                {'id': 'b'},
            ],
            'edges': [{'source': 'a', 'target': 'b'}]
        })
        assert graph.node_count() == 2
        assert graph.edge_exists(0, 1)
        assert graph.property_value('w', 1) == 0.0

    def test_from_dict_unknown_node(self):
        with pytest.raises(ValueError):
            GraphLoader.from_dict({
                'nodes': [{'id': 'a'}],
                'edges': [{'source': 'a', 'target': 'missing'}]
            })

    def test_from_dict_duplicate_ids(self):
        with pytest.raises(ValueError):
            GraphLoader.from_dict({'nodes': [{'id': 'a'}, {'id': 'a'}], 'edges': []})

    def test_save_and_load(self, small_graph, tmp_path):
        path = tmp_path / 'graph.json'
        GraphLoader.save(small_graph, str(path))
        loaded = GraphLoader.from_file(str(path))

        assert loaded.original_ids == small_graph.original_ids
        assert torch.equal(loaded.edge_index, small_graph.edge_index)

    def test_create_mock(self):
        graph = GraphLoader.create_mock(num_nodes=50, num_properties=2, seed=7)
        assert graph.node_count() == 50
        assert graph.available_properties() == ['prop_0', 'prop_1']

    def test_create_mock_deterministic(self):
        g1 = GraphLoader.create_mock(num_nodes=30, seed=1)
        g2 = GraphLoader.create_mock(num_nodes=30, seed=1)
        assert torch.equal(g1.edge_index, g2.edge_index)
