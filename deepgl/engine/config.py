"""
Engine Configuration Module.

Validated options of a DeepGL run. The YAML layout (see
config/default.yaml) is:

    deepgl:
      iterations: 3
      pruning_lambda: 0.3
      diffusion_iterations: 10
      concurrency: 4
      verbose: true
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass
class DeepGLConfig:
    """
    Options of a DeepGL run.

    Attributes:
        iterations: Maximum number of aggregation layers (>= 1)
        pruning_lambda: Redundancy threshold, higher prunes more (>= 0)
        diffusion_iterations: Smoothing rounds per layer (>= 0)
        concurrency: Worker threads (>= 1)
        verbose: Print progress to console
        log_dir: Directory for JSON layer logs (None disables file logs)
    """
    iterations: int = 3
    pruning_lambda: float = 0.3
    diffusion_iterations: int = 10
    concurrency: int = 4
    verbose: bool = False
    log_dir: Optional[str] = None

    def __post_init__(self):
        if self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")
        if self.pruning_lambda < 0:
            raise ValueError(f"pruning_lambda must be >= 0, got {self.pruning_lambda}")
        if self.diffusion_iterations < 0:
            raise ValueError(
                f"diffusion_iterations must be >= 0, got {self.diffusion_iterations}"
            )
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'DeepGLConfig':
        """
        Build from a configuration dictionary.

        Accepts either the full config (with a 'deepgl' section, and an
        optional 'paths.logs' entry) or the 'deepgl' section itself.

        Raises:
            ValueError: On unknown keys or invalid values
        """
        section = dict(config.get('deepgl', config))
        if 'log_dir' not in section and 'paths' in config:
            section['log_dir'] = config['paths'].get('logs')
        section.pop('paths', None)

        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown deepgl options: {sorted(unknown)}")

        return cls(**section)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
