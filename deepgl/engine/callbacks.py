"""
Progress Logging Module.

One-way notifications from the engine: console messages, progress and a
per-layer metrics record that can be saved as JSON at the end of a run.
"""

import json
import time
from pathlib import Path
from typing import Dict, List, Optional


class ProgressLogger:
    """
    Log engine progress and per-layer metrics.

    Provides:
    - Console logging
    - JSON layer metrics file
    - Run time tracking

    Example:
        >>> logger = ProgressLogger(log_dir='logs', verbose=True)
        >>> logger.log("Current layer: 1")
        >>> logger.log_layer(1, {'features_before': 108, 'features_after': 12})
        >>> logger.save_final({'num_layers': 1})
    """

    def __init__(
        self,
        log_dir: Optional[str] = None,
        verbose: bool = True
    ):
        """
        Initialize logger.

        Args:
            log_dir: Directory for log files (None disables file output)
            verbose: Whether to print to console
        """
        self.log_dir = Path(log_dir) if log_dir is not None else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.verbose = verbose
        self.reset()

    def reset(self) -> None:
        """Forget everything tracked so far and restart the run clock."""
        self.layer_metrics: List[Dict] = []
        self.messages: List[str] = []
        self.start_time = time.time()
        self.progress = 0.0

    def log(self, message: str) -> None:
        """Record and (if verbose) print a message."""
        self.messages.append(message)
        if self.verbose:
            print(message)

    def log_progress(self, fraction: float) -> None:
        """Record overall progress in [0, 1]."""
        self.progress = fraction
        if self.verbose:
            print(f"Progress: {100 * fraction:.1f}%")

    def log_layer(self, layer: int, metrics: Dict) -> None:
        """
        Record metrics for a layer.

        Args:
            layer: Layer number (1-based)
            metrics: Metrics for this layer
        """
        record = {
            'layer': layer,
            'timestamp': time.time() - self.start_time,
            **metrics
        }
        self.layer_metrics.append(record)

        if self.verbose:
            parts = [f"Layer {layer:3d}"]
            for key, value in metrics.items():
                parts.append(f"{key}: {value}")
            print(" | ".join(parts))

    def save_final(self, extra_info: Optional[Dict] = None) -> None:
        """
        Save the run summary.

        Args:
            extra_info: Additional info to include
        """
        total_time = time.time() - self.start_time

        summary = {
            'total_layers': len(self.layer_metrics),
            'total_time_seconds': total_time,
            'final_metrics': self.layer_metrics[-1] if self.layer_metrics else {},
        }

        if extra_info:
            summary.update(extra_info)

        if self.log_dir is not None:
            with open(self.log_dir / 'layer_metrics.json', 'w') as f:
                json.dump(self.layer_metrics, f, indent=2)

            with open(self.log_dir / 'embedding_summary.json', 'w') as f:
                json.dump(summary, f, indent=2)

        if self.verbose:
            print(f"\nEmbedding complete in {total_time:.1f} seconds")
            if self.log_dir is not None:
                print(f"Logs saved to {self.log_dir}")

    def get_metric_history(self, metric_name: str) -> List:
        """Get history of a specific metric."""
        return [m.get(metric_name) for m in self.layer_metrics
                if metric_name in m]
