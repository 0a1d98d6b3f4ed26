"""
Worker Pool Module.

Parallel execution model shared by every per-node phase of the engine:

    - A fixed-size pool of worker threads, created once per engine run.
    - A shared cursor over node ids [0, num_nodes). Each worker repeatedly
      claims the next id until the cursor is exhausted or the run is
      cancelled. No static chunking, so uneven per-node cost (large
      neighbourhoods) balances itself.
    - A barrier at the end of every phase: ``run`` returns only once all
      workers have finished, so the next phase always reads a fully written
      matrix.

Tasks must only write the row of the node they claimed. Rows are disjoint, so
the matrices themselves need no locking.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional


class ComputationCancelled(RuntimeError):
    """Raised when a phase stopped early because the run was cancelled."""


class NodeCursor:
    """
    Claim-and-increment counter over node ids.

    Every id in [0, limit) is handed out exactly once between two resets.
    """

    def __init__(self, limit: int = 0):
        self._lock = threading.Lock()
        self._next = 0
        self.limit = limit

    def reset(self, limit: Optional[int] = None) -> None:
        """Rewind the cursor to zero, optionally with a new limit."""
        with self._lock:
            self._next = 0
            if limit is not None:
                self.limit = limit

    def claim(self) -> Optional[int]:
        """
        Claim the next node id.

        Returns:
            Node id, or None once the cursor is exhausted
        """
        with self._lock:
            if self._next >= self.limit:
                return None
            node_id = self._next
            self._next += 1
            return node_id

    @property
    def position(self) -> int:
        with self._lock:
            return self._next


def await_termination(futures: List[Future]) -> None:
    """
    Wait for every future, then re-raise the first failure (if any).

    All workers are allowed to finish before an error surfaces, so no worker
    is still writing when the caller sees the exception.
    """
    wait(futures)
    for future in futures:
        error = future.exception()
        if error is not None:
            raise error


class WorkerPool:
    """
    Fixed-size thread pool draining a shared node cursor.

    Example:
        >>> with WorkerPool(concurrency=4) as pool:
        ...     pool.run(num_nodes, lambda node_id: compute_row(node_id))
    """

    def __init__(self, concurrency: int = 1):
        """
        Initialize worker pool.

        Args:
            concurrency: Number of worker threads
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        self.concurrency = concurrency
        self.cursor = NodeCursor()
        self._running = threading.Event()
        self._running.set()
        self._executor = ThreadPoolExecutor(
            max_workers=concurrency,
            thread_name_prefix='deepgl-worker'
        )

    def run(self, num_nodes: int, task: Callable[[int], None]) -> None:
        """
        Run ``task(node_id)`` for every node id in [0, num_nodes).

        Blocks until every worker has stopped.

        Args:
            num_nodes: Number of node ids to hand out
            task: Per-node work, must only write the claimed node's row

        Raises:
            ComputationCancelled: If the pool was cancelled during the phase
            Exception: The first error raised by a task
        """
        self.cursor.reset(num_nodes)
        futures = [
            self._executor.submit(self._drain, task)
            for _ in range(self.concurrency)
        ]
        await_termination(futures)

        if not self.is_running():
            raise ComputationCancelled(
                f"Cancelled after {min(self.cursor.position, num_nodes)}/{num_nodes} nodes"
            )

    def _drain(self, task: Callable[[int], None]) -> int:
        """Worker loop: claim ids until exhaustion or cancellation."""
        processed = 0
        while True:
            node_id = self.cursor.claim()
            if node_id is None or not self._running.is_set():
                return processed
            task(node_id)
            processed += 1

    def cancel(self) -> None:
        """Ask every worker to stop at its next claim."""
        self._running.clear()

    def resume(self) -> None:
        """Clear a previous cancellation."""
        self._running.set()

    def is_running(self) -> bool:
        return self._running.is_set()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.shutdown()
