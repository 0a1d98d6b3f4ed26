"""
Configuration module for DeepGL.

Loads the YAML run configuration and merges command-line overrides into
its 'deepgl' section. Validation happens in deepgl.engine.DeepGLConfig.
"""

import copy
from pathlib import Path
import yaml
from typing import Dict, Any, Optional


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, loads default.yaml

    Returns:
        Configuration dictionary (always with a 'deepgl' section)
    """
    if config_path is None:
        config_path = Path(__file__).parent / "default.yaml"
    else:
        config_path = Path(config_path)

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    config.setdefault('deepgl', {})

    return config


def apply_overrides(config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of config with non-None overrides set in its 'deepgl' section.

    Args:
        config: Configuration dictionary
        overrides: Option name -> value (None values are ignored)

    Returns:
        New configuration dictionary
    """
    merged = copy.deepcopy(config)
    section = merged.setdefault('deepgl', {})
    for key, value in overrides.items():
        if value is not None:
            section[key] = value
    return merged


def get_default_config() -> Dict[str, Any]:
    """Get default configuration dictionary."""
    return load_config()


__all__ = ['load_config', 'apply_overrides', 'get_default_config']
