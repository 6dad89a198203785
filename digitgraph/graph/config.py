"""Model and optimizer configuration (immutable data structures)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from digitgraph.dataset.mnist import NUM_CLASSES, NUM_PIXELS

from .layers import get_activation

OPTIMIZER_NAMES = ('sgd', 'momentum', 'adam', 'adagrad', 'rmsprop')


@dataclass(frozen=True)
class OptimizerConfig:
    """Optimizer choice and its hyperparameters.

    Args:
        name: One of sgd, momentum, adam, adagrad, rmsprop
        learning_rate: Step size (must be positive)
        momentum: Momentum coefficient (momentum optimizer only)
    """
    name: str = 'sgd'
    learning_rate: float = 0.1
    momentum: float = 0.9

    def __post_init__(self):
        if self.name not in OPTIMIZER_NAMES:
            raise ValueError(f"Unknown optimizer '{self.name}'. Options: {list(OPTIMIZER_NAMES)}")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        if not 0.0 <= self.momentum < 1.0:
            raise ValueError(f"momentum must be in [0, 1), got {self.momentum}")


@dataclass(frozen=True)
class ModelConfig:
    """MLP architecture.

    Args:
        input_dim: Length of a flattened image
        num_classes: Number of output classes
        hidden_sizes: Width of each hidden layer; () gives softmax regression
        activation: Hidden-layer nonlinearity
        init_stddev: Stddev of the truncated-normal weight initializer
        optimizer: Optimizer settings
        seed: Graph-level random seed (None = nondeterministic init)
    """
    input_dim: int = NUM_PIXELS
    num_classes: int = NUM_CLASSES
    hidden_sizes: tuple[int, ...] = (256,)
    activation: str = 'relu'
    init_stddev: float = 0.1
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    seed: int | None = None

    def __post_init__(self):
        if self.input_dim < 1:
            raise ValueError(f"input_dim must be positive, got {self.input_dim}")
        if self.num_classes < 2:
            raise ValueError(f"num_classes must be at least 2, got {self.num_classes}")
        if any(units < 1 for units in self.hidden_sizes):
            raise ValueError(f"hidden_sizes must be positive, got {self.hidden_sizes}")
        if self.init_stddev <= 0:
            raise ValueError(f"init_stddev must be positive, got {self.init_stddev}")
        get_activation(self.activation)

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> ModelConfig:
        """Rebuild a config from its JSON form (lists become tuples)."""
        values = dict(values)
        if 'hidden_sizes' in values:
            values['hidden_sizes'] = tuple(values['hidden_sizes'])
        if isinstance(values.get('optimizer'), dict):
            values['optimizer'] = OptimizerConfig(**values['optimizer'])
        return cls(**values)
