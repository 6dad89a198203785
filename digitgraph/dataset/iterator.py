from __future__ import annotations

from typing import Iterator

import numpy as np

from .mnist import DigitSplit

Batch = tuple[np.ndarray, np.ndarray]


def num_batches(num_examples: int, batch_size: int, drop_remainder: bool = False) -> int:
    """Number of batches needed to cover num_examples (pure function)."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    if drop_remainder:
        return num_examples // batch_size
    return -(-num_examples // batch_size)


class BatchIterator:
    """
    Endless mini-batch feeder over a DigitSplit.

    Every call to next_batch returns the next batch_size examples. The order
    is reshuffled at the start of each epoch; a batch that crosses the end of
    an epoch is completed with the head of the next (reshuffled) epoch, so
    each example is visited exactly once per epoch.

    Example:
        >>> it = BatchIterator(datasets.train, seed=0)
        >>> images, labels = it.next_batch(100)
        >>> images.shape, labels.shape
        ((100, 784), (100, 10))
    """

    def __init__(self, split: DigitSplit, shuffle: bool = True, seed: int | None = None):
        if split.num_examples == 0:
            raise ValueError("Cannot iterate over an empty split")

        self.split = split
        self.shuffle = shuffle
        self._rng = np.random.default_rng(seed)
        self._order = np.arange(split.num_examples)
        self._epochs_completed = 0
        self._index_in_epoch = 0

        if self.shuffle:
            self._rng.shuffle(self._order)

    @property
    def num_examples(self) -> int:
        return self.split.num_examples

    @property
    def epochs_completed(self) -> int:
        return self._epochs_completed

    @property
    def index_in_epoch(self) -> int:
        return self._index_in_epoch

    def batches_per_epoch(self, batch_size: int) -> int:
        return num_batches(self.num_examples, batch_size)

    def _take(self, start: int, end: int) -> Batch:
        indices = self._order[start:end]
        return self.split.images[indices], self.split.labels[indices]

    def next_batch(self, batch_size: int) -> Batch:
        """Return the next (images, labels) batch of exactly batch_size rows."""
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if batch_size > self.num_examples:
            raise ValueError(
                f"batch_size ({batch_size}) exceeds the number of examples "
                f"({self.num_examples})")

        start = self._index_in_epoch
        end = start + batch_size

        if end <= self.num_examples:
            batch = self._take(start, end)
            self._index_in_epoch = end
            if end == self.num_examples:
                self._finish_epoch()
            return batch

        # Batch straddles the epoch boundary
        rest_images, rest_labels = self._take(start, self.num_examples)
        self._finish_epoch()

        needed = batch_size - len(rest_images)
        head_images, head_labels = self._take(0, needed)
        self._index_in_epoch = needed

        return (
            np.concatenate([rest_images, head_images], axis=0),
            np.concatenate([rest_labels, head_labels], axis=0),
        )

    def _finish_epoch(self) -> None:
        self._epochs_completed += 1
        self._index_in_epoch = 0
        if self.shuffle:
            self._rng.shuffle(self._order)

    def __repr__(self) -> str:
        return (
            f"BatchIterator(num_examples={self.num_examples}, shuffle={self.shuffle}, "
            f"epochs_completed={self._epochs_completed}, index_in_epoch={self._index_in_epoch})"
        )


def iterate_batches(
    split: DigitSplit,
    batch_size: int,
    shuffle: bool = False,
    seed: int | None = None,
    drop_remainder: bool = False,
) -> Iterator[Batch]:
    """
    Single pass over a split in mini-batches.

    Args:
        split: Split to iterate
        batch_size: Rows per batch (last batch may be smaller)
        shuffle: Visit examples in a random order
        seed: Seed for the shuffle
        drop_remainder: Skip the final short batch

    Yields:
        (images, labels) tuples
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    order = np.arange(split.num_examples)
    if shuffle:
        np.random.default_rng(seed).shuffle(order)

    for start in range(0, split.num_examples, batch_size):
        indices = order[start:start + batch_size]
        if drop_remainder and len(indices) < batch_size:
            break
        yield split.images[indices], split.labels[indices]
