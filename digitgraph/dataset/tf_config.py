"""
TensorFlow runtime configuration utilities.

The walkthrough models are small enough to train on CPU; hiding GPUs keeps
runs comparable across machines.
"""
from __future__ import annotations

import os

import tensorflow as tf

_LOG_LEVELS = {
    'DEBUG': '0',
    'INFO': '0',
    'WARNING': '1',
    'ERROR': '2',
    'FATAL': '3',
}


def configure_tf_cpu() -> None:
    """
    Configure TensorFlow to use CPU only (has side effects: modifies TF config).

    Must run before TensorFlow initializes its devices, i.e. before the first
    graph is executed.
    """
    os.environ['CUDA_VISIBLE_DEVICES'] = '-1'
    try:
        tf.config.set_visible_devices([], 'GPU')
    except RuntimeError:
        # Devices already initialized; CUDA_VISIBLE_DEVICES covers child processes
        print("TensorFlow devices already initialized; GPU visibility unchanged")


def set_tf_log_level(level: str = 'ERROR') -> None:
    """
    Quiet TensorFlow's Python and C++ loggers (has side effects: env + logger).

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR, FATAL
    """
    level = level.upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}'. Options: {list(_LOG_LEVELS)}")

    os.environ['TF_CPP_MIN_LOG_LEVEL'] = _LOG_LEVELS[level]
    tf.get_logger().setLevel(level)
