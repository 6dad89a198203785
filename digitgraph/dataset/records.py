"""TFRecord (tf.train.Example protobuf) serialization of digit splits."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import numpy as np
import tensorflow as tf

from .mnist import DigitSplit, NUM_CLASSES, NUM_PIXELS


def _float_feature(value: Sequence[float]) -> tf.train.Feature:
    """Returns a float_list from a float / double (pure function)."""
    return tf.train.Feature(float_list=tf.train.FloatList(value=value))


def _int64_feature(value: int) -> tf.train.Feature:
    """Returns an int64_list from a bool / enum / int / uint (pure function)."""
    return tf.train.Feature(int64_list=tf.train.Int64List(value=[value]))


def digit_to_example(image: np.ndarray, label: int) -> tf.train.Example:
    """Wrap one flattened image and its class id in a tf.train.Example (pure function)."""
    feature = {
        'image': _float_feature(np.asarray(image, dtype=np.float32).reshape(-1)),
        'label': _int64_feature(int(label)),
    }
    return tf.train.Example(features=tf.train.Features(feature=feature))


def write_digit_records(split: DigitSplit, path: str | Path) -> int:
    """
    Write a split to a TFRecord file (has side effect: file I/O).

    Args:
        split: Split to serialize
        path: Output .tfrecord path

    Returns:
        Number of records written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with tf.io.TFRecordWriter(str(path)) as writer:
        for image, label in zip(split.images, split.class_ids):
            writer.write(digit_to_example(image, label).SerializeToString())
            count += 1

    print(f"Wrote {count} records to {path}")
    return count


def make_digit_parser(
    input_dim: int = NUM_PIXELS,
    num_classes: int = NUM_CLASSES,
) -> Callable[[tf.Tensor], tuple[tf.Tensor, tf.Tensor]]:
    """
    Create a parser for serialized digit examples (pure).

    Returns:
        Function mapping a serialized example to (image, one_hot_label)
    """
    feature_spec = {
        'image': tf.io.FixedLenFeature([input_dim], tf.float32),
        'label': tf.io.FixedLenFeature([], tf.int64),
    }

    def parse(example_proto: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
        parsed = tf.io.parse_single_example(example_proto, feature_spec)
        label = tf.one_hot(parsed['label'], depth=num_classes, dtype=tf.float32)
        return parsed['image'], label

    return parse


def read_digit_records(
    path: str | Path,
    input_dim: int = NUM_PIXELS,
    num_classes: int = NUM_CLASSES,
    batch_size: int = 1024,
) -> DigitSplit:
    """Read a TFRecord file written by write_digit_records back into a DigitSplit."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"TFRecord file not found: {path}")

    dataset = (
        tf.data.TFRecordDataset([str(path)])
        .map(make_digit_parser(input_dim, num_classes), num_parallel_calls=tf.data.AUTOTUNE)
        .batch(batch_size)
    )

    images, labels = [], []
    for image_batch, label_batch in dataset:
        images.append(image_batch.numpy())
        labels.append(label_batch.numpy())

    if not images:
        return DigitSplit(
            images=np.zeros((0, input_dim), dtype=np.float32),
            labels=np.zeros((0, num_classes), dtype=np.float32),
        )
    return DigitSplit(images=np.concatenate(images), labels=np.concatenate(labels))


def count_records(path: str | Path) -> int:
    """Count serialized examples in a TFRecord file (has side effect: file I/O)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"TFRecord file not found: {path}")
    return sum(1 for _ in tf.data.TFRecordDataset([str(path)]))
