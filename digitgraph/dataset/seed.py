"""Reproducibility switches for a training run."""

from __future__ import annotations

import os
import random

import numpy as np
import tensorflow as tf

DETERMINISM_ENV = 'TF_DETERMINISTIC_OPS'


def set_global_seed(seed: int) -> None:
    """
    Seed Python, NumPy and TensorFlow's global generators.

    Covers initializers and dropout created without an explicit seed, plus
    any NumPy shuffling that does not pass its own. Graphs built with
    tf.compat.v1 additionally take a graph-level seed from ModelConfig.seed.

    Example:
        >>> set_global_seed(42)
        >>> handles = build_mlp_graph(ModelConfig(seed=42))
    """
    random.seed(seed)
    np.random.seed(seed)
    tf.random.set_seed(seed)


def set_tf_deterministic(enable: bool = True) -> None:
    """
    Ask TensorFlow for deterministic kernels (reductions, matmuls on GPU).

    Enabling is process-wide and cannot be undone by TensorFlow itself;
    disabling only clears TF_DETERMINISTIC_OPS for child processes.
    Expect slower training.
    """
    if not enable:
        os.environ.pop(DETERMINISM_ENV, None)
        return

    os.environ[DETERMINISM_ENV] = '1'
    tf.config.experimental.enable_op_determinism()
