"""
Graph View Module.

This module provides the read-only adjacency view that the DeepGL engine
walks while building features. It answers the questions the engine asks
about a graph and nothing else:

    - How many nodes are there?
    - What is the in/out/both degree of a node?
    - Which relationships touch a node (and in which direction)?
    - Does a directed edge exist between two nodes?
    - Which scalar node properties are available, and what are their values?
    - Which original id does an internal node index correspond to?

Node indices are dense integers in [0, num_nodes). Original ids (strings,
database ids, ...) are only used when results are emitted.
"""

import torch
import networkx as nx
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple
from torch_geometric.data import Data


class Direction(Enum):
    """Relationship direction relative to the node being visited."""
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    BOTH = "both"


# visitor(source, target) -> False stops the iteration
NeighbourVisitor = Callable[[int, int], Optional[bool]]


class GraphView:
    """
    Directed adjacency view over a graph with dense node indices.

    The view keeps one adjacency list per direction so that neighbour
    iteration is O(degree) and an edge set for O(1) existence checks.
    Parallel edges are kept in the adjacency lists (multiplicity matters for
    aggregation) but collapse in the edge set.

    Example:
        >>> import torch
        >>> from deepgl.data import GraphView, Direction
        >>>
        >>> # Directed cycle 0 -> 1 -> 2 -> 0
        >>> edge_index = torch.tensor([[0, 1, 2], [1, 2, 0]])
        >>> graph = GraphView.from_edge_index(edge_index, num_nodes=3)
        >>> graph.degree(0, Direction.BOTH)
        2
    """

    def __init__(
        self,
        edge_index: torch.Tensor,
        num_nodes: int,
        node_properties: Optional[Dict[str, torch.Tensor]] = None,
        original_ids: Optional[Sequence[Any]] = None
    ):
        """
        Initialize graph view.

        Args:
            edge_index: Edge tensor of shape [2, num_edges] (row 0 sources,
                        row 1 targets)
            num_nodes: Total number of nodes
            node_properties: Ordered mapping of property name to a tensor of
                             shape [num_nodes] with one scalar per node
            original_ids: Original node ids, position i belongs to node i.
                          Defaults to the node indices themselves.
        """
        if edge_index.dim() != 2 or edge_index.shape[0] != 2:
            raise ValueError(
                f"edge_index must have shape [2, num_edges], got {tuple(edge_index.shape)}"
            )
        if num_nodes < 0:
            raise ValueError(f"num_nodes must be non-negative, got {num_nodes}")
        if edge_index.numel() > 0:
            low = int(edge_index.min().item())
            high = int(edge_index.max().item())
            if low < 0 or high >= num_nodes:
                raise ValueError(
                    f"edge_index references node {low if low < 0 else high} "
                    f"outside [0, {num_nodes})"
                )

        self.num_nodes = num_nodes
        self.edge_index = edge_index.to(torch.long).cpu()

        self.node_properties: Dict[str, torch.Tensor] = {}
        for name, values in (node_properties or {}).items():
            values = torch.as_tensor(values, dtype=torch.float64).flatten()
            if values.numel() != num_nodes:
                raise ValueError(
                    f"Property '{name}' has {values.numel()} values for {num_nodes} nodes"
                )
            self.node_properties[name] = values

        if original_ids is None:
            original_ids = list(range(num_nodes))
        elif len(original_ids) != num_nodes:
            raise ValueError(
                f"Got {len(original_ids)} original ids for {num_nodes} nodes"
            )
        self.original_ids = list(original_ids)

        self._build_adjacency()

    def _build_adjacency(self) -> None:
        """
        Build per-direction adjacency lists and the directed edge set.
        """
        self.outgoing: List[List[int]] = [[] for _ in range(self.num_nodes)]
        self.incoming: List[List[int]] = [[] for _ in range(self.num_nodes)]
        self.edge_set: Set[Tuple[int, int]] = set()

        if self.edge_index.numel() == 0:
            return

        src = self.edge_index[0].tolist()
        dst = self.edge_index[1].tolist()

        for s, d in zip(src, dst):
            self.outgoing[s].append(d)
            self.incoming[d].append(s)
            self.edge_set.add((s, d))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_edge_index(
        cls,
        edge_index: Any,
        num_nodes: Optional[int] = None,
        node_properties: Optional[Dict[str, Any]] = None,
        original_ids: Optional[Sequence[Any]] = None
    ) -> 'GraphView':
        """
        Build a view from an edge index (tensor or nested list).

        Args:
            edge_index: [2, num_edges] sources and targets
            num_nodes: Node count. Inferred from edge_index if None.
            node_properties: Optional per-node scalar properties
            original_ids: Optional original ids

        Returns:
            GraphView
        """
        edge_index = torch.as_tensor(edge_index, dtype=torch.long)
        if edge_index.numel() == 0:
            edge_index = edge_index.reshape(2, 0)

        if num_nodes is None:
            if original_ids is not None:
                num_nodes = len(original_ids)
            else:
                num_nodes = int(edge_index.max().item()) + 1 if edge_index.numel() > 0 else 0

        return cls(edge_index, num_nodes, node_properties, original_ids)

    @classmethod
    def from_networkx(
        cls,
        graph: nx.Graph,
        properties: Optional[Iterable[str]] = None
    ) -> 'GraphView':
        """
        Build a view from a NetworkX graph.

        Nodes are indexed in sorted order when sortable (deterministic across
        runs), otherwise in insertion order. Undirected graphs contribute both
        directions of every edge.

        Args:
            graph: NetworkX Graph / DiGraph / MultiDiGraph
            properties: Node attribute names to expose as scalar properties.
                        Missing attributes default to 0.0.

        Returns:
            GraphView whose original ids are the NetworkX node keys
        """
        try:
            node_ids = sorted(graph.nodes())
        except TypeError:
            node_ids = list(graph.nodes())
        node_mapping = {nid: idx for idx, nid in enumerate(node_ids)}

        edges = []
        for src, dst in graph.edges():
            edges.append([node_mapping[src], node_mapping[dst]])
            if not graph.is_directed() and src != dst:
                edges.append([node_mapping[dst], node_mapping[src]])

        if edges:
            edge_index = torch.tensor(edges, dtype=torch.long).t().contiguous()
        else:
            edge_index = torch.zeros((2, 0), dtype=torch.long)

        node_properties = {}
        for name in properties or []:
            node_properties[name] = torch.tensor(
                [float(graph.nodes[nid].get(name, 0.0)) for nid in node_ids],
                dtype=torch.float64
            )

        return cls(edge_index, len(node_ids), node_properties, node_ids)

    @classmethod
    def from_pyg(
        cls,
        data: Data,
        property_names: Optional[Sequence[str]] = None
    ) -> 'GraphView':
        """
        Build a view from a PyTorch Geometric Data object.

        Columns of ``data.x`` (if present) become node properties named by
        ``property_names`` or ``x0, x1, ...``.

        Args:
            data: PyG Data with ``edge_index`` and optionally ``x``
            property_names: Names for the columns of ``data.x``

        Returns:
            GraphView
        """
        node_properties = {}
        x = getattr(data, 'x', None)
        if x is not None:
            x = x.reshape(data.num_nodes, -1)
            if property_names is None:
                property_names = [f"x{i}" for i in range(x.shape[1])]
            if len(property_names) != x.shape[1]:
                raise ValueError(
                    f"Got {len(property_names)} property names for {x.shape[1]} feature columns"
                )
            for i, name in enumerate(property_names):
                node_properties[name] = x[:, i]

        return cls(data.edge_index, data.num_nodes, node_properties)

    # ------------------------------------------------------------------
    # Graph queries
    # ------------------------------------------------------------------

    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self.num_nodes

    def degree(self, node_id: int, direction: Direction) -> int:
        """
        Number of relationships of a node in the given direction.

        BOTH counts incoming plus outgoing, so a reciprocal pair counts twice.
        """
        if direction == Direction.OUTGOING:
            return len(self.outgoing[node_id])
        elif direction == Direction.INCOMING:
            return len(self.incoming[node_id])
        return len(self.outgoing[node_id]) + len(self.incoming[node_id])

    def for_each_neighbour(
        self,
        node_id: int,
        direction: Direction,
        visitor: NeighbourVisitor
    ) -> None:
        """
        Visit every relationship of a node as a (source, target) pair.

        ``source`` is always ``node_id`` and ``target`` is the node at the other
        end, regardless of the stored edge direction. For BOTH, outgoing
        relationships are visited before incoming ones. The visitor may return
        False to stop early.

        Args:
            node_id: Node being visited
            direction: Which relationships to visit
            visitor: Callable receiving (source, target)
        """
        if direction in (Direction.OUTGOING, Direction.BOTH):
            for target in self.outgoing[node_id]:
                if visitor(node_id, target) is False:
                    return
        if direction in (Direction.INCOMING, Direction.BOTH):
            for target in self.incoming[node_id]:
                if visitor(node_id, target) is False:
                    return

    def neighbours(self, node_id: int, direction: Direction) -> List[int]:
        """Neighbour ids of a node, with multiplicity."""
        result: List[int] = []
        self.for_each_neighbour(node_id, direction, lambda s, t: result.append(t))
        return result

    def edge_exists(self, source: int, target: int, direction: Direction = Direction.OUTGOING) -> bool:
        """
        Check whether an edge exists between two nodes.

        OUTGOING checks source -> target, INCOMING checks target -> source and
        BOTH accepts either.
        """
        if direction == Direction.OUTGOING:
            return (source, target) in self.edge_set
        elif direction == Direction.INCOMING:
            return (target, source) in self.edge_set
        return (source, target) in self.edge_set or (target, source) in self.edge_set

    def available_properties(self) -> List[str]:
        """Names of scalar node properties, in a fixed order."""
        return list(self.node_properties.keys())

    def property_value(self, name: str, node_id: int) -> float:
        """Value of a scalar property for a node."""
        return float(self.node_properties[name][node_id].item())

    def to_original_id(self, node_id: int) -> Any:
        """Map an internal node index to its original id."""
        return self.original_ids[node_id]

    @property
    def num_edges(self) -> int:
        """Number of directed edges (parallel edges included)."""
        return self.edge_index.shape[1]

    def get_statistics(self) -> Dict:
        """
        Get statistics about the view.

        Returns:
            Dictionary with graph statistics
        """
        if self.num_nodes == 0:
            return {'num_nodes': 0, 'num_edges': 0, 'avg_degree': 0,
                    'max_degree': 0, 'isolated_nodes': 0, 'properties': []}

        total_degrees = [self.degree(n, Direction.BOTH) for n in range(self.num_nodes)]

        return {
            'num_nodes': self.num_nodes,
            'num_edges': self.num_edges,
            'avg_degree': sum(total_degrees) / self.num_nodes,
            'max_degree': max(total_degrees),
            'isolated_nodes': sum(1 for d in total_degrees if d == 0),
            'properties': self.available_properties()
        }
