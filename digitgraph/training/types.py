"""Training configuration and metric types (pure data structures)."""

from __future__ import annotations

from typing import Any
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class TrainingConfig:
    """Immutable training configuration.

    Args:
        num_epochs: Number of training epochs
        batch_size: Batch size for training
        keep_prob: Dropout keep probability fed during training steps
        seed: Random seed for batch shuffling
        log_every: Log metrics every N steps (None = only epoch summary)
        eval_batch_size: Batch size for evaluation passes
        checkpoint_dir: Directory to save checkpoints (None = no checkpoints)
        checkpoint_every: Save checkpoint every N epochs (None = only final)
        log_dir: TensorBoard event directory (None = no summaries)
    """
    num_epochs: int
    batch_size: int
    keep_prob: float = 1.0
    seed: int = 42
    log_every: int | None = None
    eval_batch_size: int = 1000
    checkpoint_dir: str | None = None
    checkpoint_every: int | None = None
    log_dir: str | None = None

    def __post_init__(self):
        if self.num_epochs < 0:
            raise ValueError(f"num_epochs must be non-negative, got {self.num_epochs}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")
        if not 0.0 < self.keep_prob <= 1.0:
            raise ValueError(f"keep_prob must be in (0, 1], got {self.keep_prob}")
        if self.eval_batch_size < 1:
            raise ValueError(f"eval_batch_size must be at least 1, got {self.eval_batch_size}")
        for name in ('log_every', 'checkpoint_every'):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be None or at least 1, got {value}")


@dataclass(frozen=True)
class Metrics:
    """Immutable metrics container.

    Stores metrics as a dictionary for flexibility.
    All values should be Python scalars (not NumPy or TF values).
    """
    values: dict[str, float]

    def __getitem__(self, key: str) -> float:
        return self.values[key]

    def keys(self) -> list[str]:
        return list(self.values.keys())


def to_scalar(x: Any) -> float:
    """Convert a NumPy/TF value or Python number to a Python float (pure function)."""
    if isinstance(x, (int, float)):
        return float(x)
    return float(np.asarray(x).reshape(-1)[0])


def create_metrics(raw_metrics: dict[str, Any]) -> Metrics:
    """Convert raw metrics dict to immutable Metrics (pure function)."""
    scalar_metrics = {k: to_scalar(v) for k, v in raw_metrics.items()}
    return Metrics(values=scalar_metrics)
