"""Shared fixtures: small synthetic digit splits that train in a few steps."""

from __future__ import annotations

import os

os.environ.setdefault('MPLBACKEND', 'Agg')
os.environ.setdefault('TF_CPP_MIN_LOG_LEVEL', '2')

import numpy as np
import pytest

from digitgraph.dataset.mnist import DigitDatasets, DigitSplit, one_hot


def make_synthetic_split(
    num_examples: int,
    seed: int = 0,
    input_dim: int = 784,
    num_classes: int = 10,
) -> DigitSplit:
    """Linearly separable split: class k lights up the k-th block of pixels."""
    rng = np.random.default_rng(seed)
    class_ids = np.arange(num_examples) % num_classes
    rng.shuffle(class_ids)

    images = rng.uniform(0.0, 0.1, size=(num_examples, input_dim)).astype(np.float32)
    block = input_dim // num_classes
    for row, class_id in enumerate(class_ids):
        images[row, class_id * block:(class_id + 1) * block] += 0.9

    return DigitSplit(images=images, labels=one_hot(class_ids, num_classes))


@pytest.fixture
def synthetic_split() -> DigitSplit:
    return make_synthetic_split(200, seed=0)


@pytest.fixture
def synthetic_datasets() -> DigitDatasets:
    return DigitDatasets(
        train=make_synthetic_split(300, seed=1),
        validation=make_synthetic_split(100, seed=2),
        test=make_synthetic_split(100, seed=3),
    )


@pytest.fixture
def mnist_npz(tmp_path):
    """Tiny Keras-format mnist.npz with uint8 images."""
    rng = np.random.default_rng(0)
    path = tmp_path / 'mnist.npz'
    np.savez(
        path,
        x_train=rng.integers(0, 256, size=(60, 28, 28), dtype=np.uint8),
        y_train=rng.integers(0, 10, size=60, dtype=np.uint8),
        x_test=rng.integers(0, 256, size=(20, 28, 28), dtype=np.uint8),
        y_test=rng.integers(0, 10, size=20, dtype=np.uint8),
    )
    return path


@pytest.fixture
def split_factory():
    """make_synthetic_split, for tests that need other sizes or shapes."""
    return make_synthetic_split
