"""Experiment configuration management."""

from .config import (
    config_hash,
    config_to_dict,
    save_config,
    load_config,
    merge_configs,
)

__all__ = [
    'config_hash',
    'config_to_dict',
    'save_config',
    'load_config',
    'merge_configs',
]
