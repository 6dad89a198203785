"""JSON persistence and fingerprints for the frozen config dataclasses.

ModelConfig and TrainingConfig are saved next to every run so a checkpoint
can be rebuilt into the exact graph it came from (see export_frozen.py).
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def config_to_dict(config: Any) -> dict:
    """
    Plain-JSON view of a (possibly nested) config dataclass.

    Nested configs become nested dicts and tuples such as hidden_sizes become
    lists. Non-dataclass values are returned unchanged.
    """
    if not is_dataclass(config) or isinstance(config, type):
        return config
    return _jsonable(asdict(config))


def config_hash(config: Any) -> str:
    """Short, order-independent fingerprint of a config (first 8 hex chars of SHA-256)."""
    canonical = json.dumps(config_to_dict(config), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()[:8]


def save_config(config: Any, path: str | Path) -> None:
    """Write a config as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_to_dict(config), indent=2, default=str))


def load_config(path: str | Path, config_cls: type) -> Any:
    """
    Read a config written by save_config back into config_cls.

    Classes with nested configs or tuple fields provide a `from_dict`
    classmethod (ModelConfig does); flat ones are built from keyword
    arguments.

    Raises:
        FileNotFoundError: If path does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    values = json.loads(path.read_text())
    from_dict = getattr(config_cls, 'from_dict', None)
    return from_dict(values) if from_dict is not None else config_cls(**values)


def merge_configs(*configs: Any) -> dict:
    """
    Combine several configs into one dict keyed by their short class name.

    ModelConfig lands under 'model', TrainingConfig under 'training'.
    """
    return {
        type(config).__name__.removesuffix('Config').lower(): config_to_dict(config)
        for config in configs
    }
