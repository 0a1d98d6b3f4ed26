"""
Engine Module for DeepGL.

This module runs the layer-wise feature learning:
- State machine over base layer, aggregation, diffusion, binning and pruning
- Termination on feature novelty or iteration cap
- Progress logging and run configuration

Components:
    DeepGL: The engine
    EngineState / Stage: Explicit state carried through the stages
    DeepGLConfig: Validated run options
    ProgressLogger: Console and JSON progress logging

Example:
    >>> from deepgl.engine import DeepGL, DeepGLConfig
    >>>
    >>> engine = DeepGL(graph, DeepGLConfig(iterations=2, pruning_lambda=0.3))
    >>> engine.compute()
    >>> print(engine.num_layers, len(engine.features))
"""

from .config import DeepGLConfig
from .callbacks import ProgressLogger
from .deepgl import DeepGL, EngineState, Stage, EmbeddingResult
from ..utils.parallel import ComputationCancelled

__all__ = [
    'DeepGL',
    'DeepGLConfig',
    'EngineState',
    'Stage',
    'EmbeddingResult',
    'ProgressLogger',
    'ComputationCancelled',
]
