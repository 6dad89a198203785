"""Serialize the MNIST splits to TFRecord files of tf.train.Example protobufs.

Run with:
    python examples/mnist_mlp/write_records.py /data/mnist_tfrecords
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from digitgraph.dataset import count_records, load_mnist, read_digit_records, write_digit_records


def main() -> None:
    parser = argparse.ArgumentParser(description="Write MNIST splits as TFRecords")
    parser.add_argument("output_dir", type=Path)
    parser.add_argument("--data", type=Path, default=None,
                        help="Keras-format mnist.npz (default: download)")
    args = parser.parse_args()

    datasets = load_mnist(args.data)

    for name in ("train", "validation", "test"):
        split = getattr(datasets, name)
        path = args.output_dir / f"{name}.tfrecord"
        write_digit_records(split, path)

        restored = read_digit_records(path)
        num_records = count_records(path)
        if num_records != split.num_examples:
            raise RuntimeError(
                f"{path}: wrote {split.num_examples} examples but read back {num_records}")
        if not np.array_equal(restored.class_ids, split.class_ids):
            raise RuntimeError(f"{path}: labels read back differ from the written split")
        print(f"  {name}: verified {restored.num_examples} examples")


if __name__ == "__main__":
    main()
