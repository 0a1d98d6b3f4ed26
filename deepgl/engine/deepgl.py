"""
DeepGL Engine Module.

Orchestrates the layer-wise feature learning:

    INIT -> BASE_LAYER -> { AGGREGATE -> DIFFUSE -> BIN -> PRUNE -> NOVELTY_CHECK }* -> DONE

    BASE_LAYER     degrees + node properties, binned; becomes "previous"
    AGGREGATE      relational operators over out/in/both neighbourhoods
    DIFFUSE        append neighbour-averaged copies of every candidate
    BIN            logarithmic binning of the candidate matrix
    PRUNE          drop candidates redundant with previous or earlier ones
    NOVELTY_CHECK  stop when the accepted layer adds no new feature

Every stage is a method taking and returning an EngineState, so transitions
can be driven one at a time. ``compute`` runs them to completion.

Layer count: ``num_layers`` is the number of aggregation layers accepted. A
run that stops at iteration i because nothing new appeared reports i - 1 and
keeps layer i - 1; a run that reaches the iteration cap reports
``iterations``.
"""

import torch
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from ..data.graph_view import GraphView
from ..features.base_features import BaseFeatureBuilder
from ..features.feature import Feature, Layer
from ..ops.aggregator import NeighbourhoodAggregator
from ..ops.diffusion import DiffusionSmoother
from ..pruning.binning import Binner
from ..pruning.pruner import Pruner
from ..utils.parallel import WorkerPool
from .callbacks import ProgressLogger
from .config import DeepGLConfig


class Stage(Enum):
    """Engine state machine stages."""
    INIT = "init"
    BASE_LAYER = "base_layer"
    AGGREGATE = "aggregate"
    DIFFUSE = "diffuse"
    BIN = "bin"
    PRUNE = "prune"
    NOVELTY_CHECK = "novelty_check"
    DONE = "done"


@dataclass
class EngineState:
    """
    Mutable state carried through the stages of one run.

    Attributes:
        stage: Next stage to execute
        previous: Last accepted layer
        current: Layer being built in the current iteration
        iteration: Current iteration (1-based, 0 before the first)
        num_layers: Number of accepted aggregation layers
        history: Per-iteration feature counts
    """
    stage: Stage = Stage.INIT
    previous: Optional[Layer] = None
    current: Optional[Layer] = None
    iteration: int = 0
    num_layers: int = 0
    history: List[Dict[str, int]] = field(default_factory=list)

    @property
    def done(self) -> bool:
        return self.stage == Stage.DONE


@dataclass
class EmbeddingResult:
    """Embedding of one node, keyed by its original id."""
    node_id: Any
    embedding: List[float]


class DeepGL:
    """
    Unsupervised structural node embeddings via DeepGL feature learning.

    Example:
        >>> from deepgl.data import GraphLoader
        >>> from deepgl.engine import DeepGL, DeepGLConfig
        >>>
        >>> graph = GraphLoader.create_mock(num_nodes=200)
        >>> engine = DeepGL(graph, DeepGLConfig(iterations=3, pruning_lambda=0.3))
        >>> engine.compute()
        >>> engine.embedding.shape  # [200, num_features]
        >>> for result in engine.result_stream():
        ...     print(result.node_id, result.embedding[:5])
    """

    def __init__(
        self,
        graph: GraphView,
        config: Optional[DeepGLConfig] = None,
        logger: Optional[ProgressLogger] = None
    ):
        """
        Initialize engine.

        Args:
            graph: Graph to embed
            config: Run options (defaults to DeepGLConfig())
            logger: Progress logger (built from config if None)
        """
        self.graph = graph
        self.config = config or DeepGLConfig()
        self.logger = logger or ProgressLogger(
            log_dir=self.config.log_dir,
            verbose=self.config.verbose
        )

        self.base_builder = BaseFeatureBuilder(graph)
        self.aggregator = NeighbourhoodAggregator(graph)
        self.smoother = DiffusionSmoother(graph, self.config.diffusion_iterations)
        self.binner = Binner()
        self.pruner = Pruner(self.config.pruning_lambda)

        self.pool: Optional[WorkerPool] = None
        self.state: Optional[EngineState] = None
        self._cancel_requested = False

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def init_state(self) -> EngineState:
        """Fresh state positioned at the base layer."""
        self.logger.log(
            f"Executing with {{iterations:{self.config.iterations}, "
            f"pruningLambda:{self.config.pruning_lambda}, "
            f"diffusions:{self.config.diffusion_iterations}}}"
        )
        return EngineState(stage=Stage.BASE_LAYER)

    def base_layer(self, state: EngineState) -> EngineState:
        """Build and bin layer 0; it becomes the previous layer."""
        layer = self.base_builder.build(self.pool)
        self.binner.log_bins(layer.matrix)

        state.previous = layer
        state.current = None
        state.stage = Stage.AGGREGATE
        return state

    def aggregate(self, state: EngineState) -> EngineState:
        """Start the next iteration with a raw candidate layer."""
        state.iteration += 1
        self.logger.log_progress(state.iteration / self.config.iterations)
        self.logger.log(f"Current layer: {state.iteration}")

        self.logger.log("Applying operators")
        state.current = self.aggregator.aggregate(state.previous, self.pool)
        self.logger.log("Applied operators")

        state.history.append({'iteration': state.iteration,
                              'aggregated': state.current.num_features})
        state.stage = Stage.DIFFUSE
        return state

    def diffuse(self, state: EngineState) -> EngineState:
        """Append diffused copies of the candidate features."""
        self.logger.log("Diffuse features")
        state.current = self.smoother.diffuse(state.current, self.pool)
        self.logger.log("Diffused features")

        state.history[-1]['diffused'] = state.current.num_features
        state.stage = Stage.BIN
        return state

    def bin(self, state: EngineState) -> EngineState:
        """Logarithmically bin the candidate matrix in place."""
        self.logger.log("Bin features")
        self.binner.log_bins(state.current.matrix)
        self.logger.log("Binned features")

        state.stage = Stage.PRUNE
        return state

    def prune(self, state: EngineState) -> EngineState:
        """Reduce the candidate layer against the previous one."""
        size_before = state.current.num_features
        state.current = self.pruner.prune(state.previous, state.current)
        size_after = state.current.num_features

        self.logger.log(f"Feature Pruning: Before: [{size_before}], After: [{size_after}]")
        state.history[-1]['pruned'] = size_after
        state.stage = Stage.NOVELTY_CHECK
        return state

    def novelty_check(self, state: EngineState) -> EngineState:
        """Accept the candidate layer if it adds features, otherwise stop."""
        novel = set(state.current.features) - set(state.previous.features)
        self.logger.log(f"Unique features this iteration: {len(novel)}")
        state.history[-1]['novel'] = len(novel)
        self.logger.log_layer(state.iteration, state.history[-1])

        if not novel:
            state.current = None
            state.num_layers = state.iteration - 1
            state.stage = Stage.DONE
            return state

        state.previous = state.current
        state.current = None
        state.num_layers = state.iteration

        if state.iteration >= self.config.iterations:
            state.stage = Stage.DONE
        else:
            state.stage = Stage.AGGREGATE
        return state

    def step(self, state: EngineState) -> EngineState:
        """Execute the stage the state is positioned at."""
        handlers = {
            Stage.BASE_LAYER: self.base_layer,
            Stage.AGGREGATE: self.aggregate,
            Stage.DIFFUSE: self.diffuse,
            Stage.BIN: self.bin,
            Stage.PRUNE: self.prune,
            Stage.NOVELTY_CHECK: self.novelty_check,
        }
        if state.stage == Stage.INIT:
            return self.init_state()
        if state.stage not in handlers:
            raise ValueError(f"No transition out of stage {state.stage.value}")
        return handlers[state.stage](state)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def compute(self) -> 'DeepGL':
        """
        Run every stage to completion.

        Returns:
            self, for method chaining

        Raises:
            ComputationCancelled: If ``cancel`` was called during the run
        """
        self._cancel_requested = False
        self.state = None
        self.logger.reset()
        state = EngineState()

        with WorkerPool(self.config.concurrency) as pool:
            self.pool = pool
            if self._cancel_requested:
                pool.cancel()
            try:
                while not state.done:
                    state = self.step(state)
            finally:
                self.pool = None

        self.state = state
        self.logger.save_final({
            'num_layers': state.num_layers,
            'num_features': state.previous.num_features,
            'num_nodes': self.graph.node_count(),
        })
        return self

    def cancel(self) -> None:
        """Stop the running computation at the next node boundary."""
        self._cancel_requested = True
        if self.pool is not None:
            self.pool.cancel()

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _final_layer(self) -> Layer:
        if self.state is None or not self.state.done:
            raise RuntimeError("compute() has not completed")
        return self.state.previous

    @property
    def embedding(self) -> torch.Tensor:
        """Accepted embedding matrix [num_nodes, num_features]."""
        return self._final_layer().matrix

    @property
    def features(self) -> List[Feature]:
        """Accepted features, aligned with the embedding columns."""
        return self._final_layer().features

    @property
    def num_layers(self) -> int:
        self._final_layer()
        return self.state.num_layers

    @property
    def layer_history(self) -> List[Dict[str, int]]:
        """Per-iteration feature counts (aggregated, diffused, pruned, novel)."""
        self._final_layer()
        return list(self.state.history)

    def result_stream(self) -> Iterator[EmbeddingResult]:
        """Lazily yield one EmbeddingResult per node."""
        matrix = self.embedding
        for node_id in range(self.graph.node_count()):
            yield EmbeddingResult(
                node_id=self.graph.to_original_id(node_id),
                embedding=matrix[node_id].tolist()
            )

    def feature_stream(self) -> Iterator[Feature]:
        return iter(self.features)
