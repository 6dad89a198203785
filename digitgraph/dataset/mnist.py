"""MNIST loading and the feature/label matrices fed to the graph.

Images become a float32 feature matrix with one row of flattened pixel
intensities per example; labels become a one-hot float32 matrix.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import tensorflow as tf

IMAGE_SIZE = 28
NUM_PIXELS = IMAGE_SIZE * IMAGE_SIZE
NUM_CLASSES = 10
DEFAULT_VALIDATION_SIZE = 5000

_NPZ_KEYS = ('x_train', 'y_train', 'x_test', 'y_test')


@dataclass(frozen=True)
class DigitSplit:
    """
    One split of the digit dataset.

    Attributes:
        images: float32 array of shape (N, input_dim), values in [0, 1]
        labels: float32 one-hot array of shape (N, num_classes)
    """
    images: np.ndarray
    labels: np.ndarray

    def __post_init__(self):
        if self.images.ndim != 2:
            raise ValueError(f"images must be 2-D (N, input_dim), got shape {self.images.shape}")
        if self.labels.ndim != 2:
            raise ValueError(f"labels must be 2-D (N, num_classes), got shape {self.labels.shape}")
        if len(self.images) != len(self.labels):
            raise ValueError(
                f"images and labels differ in length: {len(self.images)} vs {len(self.labels)}")

    @property
    def num_examples(self) -> int:
        return len(self.images)

    @property
    def input_dim(self) -> int:
        return self.images.shape[1]

    @property
    def num_classes(self) -> int:
        return self.labels.shape[1]

    @property
    def class_ids(self) -> np.ndarray:
        """Integer class id of every example (argmax of the one-hot rows)."""
        return np.argmax(self.labels, axis=1)


@dataclass(frozen=True)
class DigitDatasets:
    train: DigitSplit
    validation: DigitSplit
    test: DigitSplit


def flatten_images(images: np.ndarray) -> np.ndarray:
    """
    Flatten (N, H, W) images into a (N, H*W) float32 feature matrix (pure function).

    Integer images, and float images with values above 1.0, are scaled by
    1/255 so every intensity lies in [0, 1].
    """
    images = np.asarray(images)
    if images.ndim < 2:
        raise ValueError(f"images must have a batch dimension, got shape {images.shape}")

    flat = images.reshape(len(images), -1)
    needs_scaling = np.issubdtype(flat.dtype, np.integer) or (flat.size and flat.max() > 1.0)
    flat = flat.astype(np.float32)
    if needs_scaling:
        flat = flat / 255.0
    return flat


def one_hot(labels: np.ndarray, num_classes: int = NUM_CLASSES) -> np.ndarray:
    """Encode integer class ids as a float32 one-hot matrix (pure function)."""
    labels = np.asarray(labels).reshape(-1).astype(np.int64)
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(
            f"labels must lie in [0, {num_classes}), got range "
            f"[{labels.min()}, {labels.max()}]")

    encoded = np.zeros((len(labels), num_classes), dtype=np.float32)
    encoded[np.arange(len(labels)), labels] = 1.0
    return encoded


def make_split(
    images: np.ndarray,
    labels: np.ndarray,
    num_classes: int = NUM_CLASSES,
) -> DigitSplit:
    """Build a DigitSplit from raw images and integer labels (pure function)."""
    return DigitSplit(images=flatten_images(images), labels=one_hot(labels, num_classes))


def subset(split: DigitSplit, n: int) -> DigitSplit:
    """Keep the first n examples of a split (pure function)."""
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return DigitSplit(images=split.images[:n], labels=split.labels[:n])


def split_validation(
    split: DigitSplit,
    validation_size: int,
) -> tuple[DigitSplit, DigitSplit]:
    """
    Carve a validation split off the front of a training split (pure function).

    Args:
        split: Full training split
        validation_size: Number of leading examples moved to validation

    Returns:
        Tuple of (train, validation)

    Raises:
        ValueError: If validation_size is negative or exceeds the split size
    """
    if not 0 <= validation_size <= split.num_examples:
        raise ValueError(
            f"validation_size should be between 0 and {split.num_examples}, "
            f"got {validation_size}")

    validation = DigitSplit(
        images=split.images[:validation_size],
        labels=split.labels[:validation_size],
    )
    train = DigitSplit(
        images=split.images[validation_size:],
        labels=split.labels[validation_size:],
    )
    return train, validation


def load_mnist_arrays(
    path: str | Path | None = None,
) -> tuple[tuple[np.ndarray, np.ndarray], tuple[np.ndarray, np.ndarray]]:
    """
    Load raw MNIST arrays (has side effect: file I/O, possibly a download).

    Args:
        path: Optional Keras-format mnist.npz holding x_train, y_train,
            x_test and y_test. When None the archive is fetched through
            tf.keras.datasets.mnist.

    Returns:
        ((x_train, y_train), (x_test, y_test))
    """
    if path is None:
        return tf.keras.datasets.mnist.load_data()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"MNIST archive not found: {path}")

    with np.load(path) as archive:
        missing = [key for key in _NPZ_KEYS if key not in archive.files]
        if missing:
            raise ValueError(f"MNIST archive {path} is missing arrays: {missing}")
        return (archive['x_train'], archive['y_train']), (archive['x_test'], archive['y_test'])


def load_mnist(
    path: str | Path | None = None,
    validation_size: int = DEFAULT_VALIDATION_SIZE,
    num_classes: int = NUM_CLASSES,
) -> DigitDatasets:
    """
    Load MNIST as train/validation/test feature and one-hot label matrices.

    Example:
        >>> datasets = load_mnist(validation_size=5000)
        >>> datasets.train.images.shape
        (55000, 784)
    """
    (x_train, y_train), (x_test, y_test) = load_mnist_arrays(path)

    full_train = make_split(x_train, y_train, num_classes)
    train, validation = split_validation(full_train, validation_size)
    test = make_split(x_test, y_test, num_classes)

    print(f"Loaded MNIST: train={train.num_examples} "
          f"validation={validation.num_examples} test={test.num_examples}")
    return DigitDatasets(train=train, validation=validation, test=test)
