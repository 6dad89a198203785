"""Graph-mode building blocks: variables, affine maps and activations.

All functions add ops to the current default graph and must be called inside
``with graph.as_default():``.
"""

from __future__ import annotations

from typing import Callable

import tensorflow as tf

ActivationFn = Callable[[tf.Tensor], tf.Tensor]

_ACTIVATIONS: dict[str, ActivationFn | None] = {
    'relu': tf.nn.relu,
    'sigmoid': tf.sigmoid,
    'tanh': tf.tanh,
    'elu': tf.nn.elu,
    'linear': None,
}


def get_activation(name: str | None) -> ActivationFn | None:
    """Look up an activation by name; None and 'linear' mean identity."""
    if name is None:
        return None
    if name not in _ACTIVATIONS:
        raise ValueError(f"Unknown activation '{name}'. Options: {sorted(_ACTIVATIONS)}")
    return _ACTIVATIONS[name]


def weight_variable(
    shape: list[int],
    stddev: float = 0.1,
    name: str = 'weights',
) -> tf.Variable:
    """Trainable weight matrix drawn from a truncated normal."""
    return tf.compat.v1.get_variable(
        name,
        shape=shape,
        dtype=tf.float32,
        initializer=tf.compat.v1.truncated_normal_initializer(stddev=stddev),
    )


def bias_variable(
    shape: list[int],
    value: float = 0.0,
    name: str = 'biases',
) -> tf.Variable:
    """Trainable bias vector with a constant initial value."""
    return tf.compat.v1.get_variable(
        name,
        shape=shape,
        dtype=tf.float32,
        initializer=tf.compat.v1.constant_initializer(value),
    )


def affine(inputs: tf.Tensor, units: int, stddev: float = 0.1) -> tf.Tensor:
    """
    Scores = inputs @ W + b, creating W [in, units] and b [units].

    Variables are created in the current variable scope.
    """
    in_features = inputs.shape[-1]
    if in_features is None:
        raise ValueError("affine needs a statically known last dimension")

    weights = weight_variable([int(in_features), units], stddev=stddev)
    biases = bias_variable([units])
    return tf.matmul(inputs, weights) + biases


def dense(
    inputs: tf.Tensor,
    units: int,
    activation: str | None = None,
    stddev: float = 0.1,
    name: str = 'dense',
) -> tf.Tensor:
    """Fully connected layer: affine map plus optional activation, in scope `name`."""
    activation_fn = get_activation(activation)
    with tf.compat.v1.variable_scope(name):
        outputs = affine(inputs, units, stddev=stddev)
        if activation_fn is not None:
            outputs = activation_fn(outputs)
    return outputs


def dropout(inputs: tf.Tensor, keep_prob: tf.Tensor | float) -> tf.Tensor:
    """Inverted dropout driven by a keep probability (1.0 disables it)."""
    return tf.nn.dropout(inputs, rate=1.0 - keep_prob)
