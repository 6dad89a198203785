"""High-level wrapper: the classifier through tf.keras."""

from .keras_mlp import (
    keras_optimizer,
    build_keras_mlp,
    train_keras_mlp,
    evaluate_keras_mlp,
)

__all__ = [
    'keras_optimizer',
    'build_keras_mlp',
    'train_keras_mlp',
    'evaluate_keras_mlp',
]
