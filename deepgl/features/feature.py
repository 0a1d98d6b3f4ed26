"""
Feature Lineage Module.

A DeepGL feature is a named column descriptor with an optional parent:

    IN_DEGREE                                  (base feature)
    sum_out_neighbourhood(IN_DEGREE)           (layer 1)
    diffuse(sum_out_neighbourhood(IN_DEGREE))  (layer 1, diffused copy)
    max_both_neighbourhood(sum_out_...)        (layer 2)

Equality is structural: two features are equal when their names match and
their parent chains are equal all the way to the root. This is what lets the
engine deduplicate features and detect when a layer adds nothing new.
"""

import torch
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Feature:
    """
    Immutable feature descriptor forming a lineage tree.

    Attributes:
        name: Feature name (base name, operator/neighbourhood name, or "diffuse")
        parent: Feature this one was derived from (None for base features)
    """
    name: str
    parent: Optional['Feature'] = None

    @property
    def depth(self) -> int:
        """Length of the lineage chain (1 for base features)."""
        depth = 1
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def root(self) -> 'Feature':
        """Base feature at the end of the lineage chain."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def lineage(self) -> List[str]:
        """Names from this feature down to its base feature."""
        names = []
        node: Optional[Feature] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return names

    def __str__(self) -> str:
        names = self.lineage()
        return "(".join(names) + ")" * (len(names) - 1)


@dataclass
class Layer:
    """
    A feature list paired with its embedding matrix.

    Column j of ``matrix`` holds the values of ``features[j]`` for every node.

    Attributes:
        features: Ordered feature descriptors
        matrix: Embedding matrix [num_nodes, num_features]
    """
    features: List[Feature]
    matrix: torch.Tensor = field(repr=False)

    def __post_init__(self):
        if self.matrix.dim() != 2:
            raise ValueError(f"Embedding matrix must be 2-D, got shape {tuple(self.matrix.shape)}")
        if len(self.features) != self.matrix.shape[1]:
            raise ValueError(
                f"Feature count {len(self.features)} does not match "
                f"matrix columns {self.matrix.shape[1]}"
            )

    @property
    def num_features(self) -> int:
        return len(self.features)

    @property
    def num_nodes(self) -> int:
        return self.matrix.shape[0]

    def feature_names(self) -> List[str]:
        """Rendered lineage of every feature, in column order."""
        return [str(f) for f in self.features]

    def select(self, columns: List[int]) -> 'Layer':
        """New layer holding only the given columns, in the given order."""
        index = torch.tensor(columns, dtype=torch.long)
        return Layer(
            features=[self.features[c] for c in columns],
            matrix=self.matrix.index_select(1, index)
        )


def create_matrix(num_nodes: int, num_features: int) -> torch.Tensor:
    """Allocate a zeroed float64 embedding matrix."""
    return torch.zeros(num_nodes, num_features, dtype=torch.float64)
