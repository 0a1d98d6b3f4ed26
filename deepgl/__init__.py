"""
DeepGL Structural Embeddings.

This package learns unsupervised structural node embeddings by recursively
applying relational operators (sum, hadamard, max, mean, rbf, l1Norm) over
out/in/both neighbourhoods, diffusing, binning and pruning the resulting
features layer by layer until no new features emerge.

Submodules:
    - data: Graph views and loaders
    - features: Feature lineage and layer-0 features
    - ops: Relational operators, neighbourhood aggregation, diffusion
    - pruning: Logarithmic binning and redundancy pruning
    - engine: The layer-wise state machine, config and progress logging
    - inference: Caching encoder for callers
    - utils: Worker pool and embedding metrics

Example:
    >>> from deepgl.data import GraphLoader
    >>> from deepgl.engine import DeepGL, DeepGLConfig
    >>>
    >>> graph = GraphLoader.create_mock(num_nodes=200)
    >>> engine = DeepGL(graph, DeepGLConfig(iterations=3)).compute()
"""

__version__ = "1.0.0"
__author__ = "DeepGL Team"

# Version info
VERSION_INFO = {
    'major': 1,
    'minor': 0,
    'patch': 0,
    'release': 'stable'
}
