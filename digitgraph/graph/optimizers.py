from __future__ import annotations

import tensorflow as tf

from .config import OPTIMIZER_NAMES, OptimizerConfig


def make_optimizer(config: OptimizerConfig) -> tf.compat.v1.train.Optimizer:
    """
    Build a tf.compat.v1 optimizer from its config.

    The config validates itself, so every name reaching here is one of
    OPTIMIZER_NAMES.
    """
    train = tf.compat.v1.train
    if config.name == 'sgd':
        return train.GradientDescentOptimizer(config.learning_rate)
    if config.name == 'momentum':
        return train.MomentumOptimizer(config.learning_rate, momentum=config.momentum)
    if config.name == 'adam':
        return train.AdamOptimizer(config.learning_rate)
    if config.name == 'adagrad':
        return train.AdagradOptimizer(config.learning_rate)
    if config.name == 'rmsprop':
        return train.RMSPropOptimizer(config.learning_rate)

    raise ValueError(f"Unknown optimizer '{config.name}'. Options: {list(OPTIMIZER_NAMES)}")
