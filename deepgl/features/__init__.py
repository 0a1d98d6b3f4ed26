"""
Features Module.

Feature descriptors with structural lineage, the (features, matrix) layer
pair, and the layer-0 feature builder.

Classes:
    Feature: Immutable feature descriptor (name + parent)
    Layer: Features paired with their embedding matrix
    BaseFeatureBuilder: Degrees and node properties of every node
"""

from .feature import Feature, Layer, create_matrix
from .base_features import BaseFeatureBuilder, DEGREE_FEATURES

__all__ = [
    'Feature',
    'Layer',
    'create_matrix',
    'BaseFeatureBuilder',
    'DEGREE_FEATURES',
]
