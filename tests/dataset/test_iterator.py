"""Tests for mini-batch feeding."""
from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from digitgraph.dataset.iterator import BatchIterator, iterate_batches, num_batches
from digitgraph.dataset.mnist import DigitSplit


def _indexed_split(n: int) -> DigitSplit:
    """Split whose first pixel holds the example index, for tracking visits."""
    images = np.zeros((n, 4), dtype=np.float32)
    images[:, 0] = np.arange(n)
    labels = np.zeros((n, 2), dtype=np.float32)
    labels[:, 0] = 1.0
    return DigitSplit(images=images, labels=labels)


def test_num_batches():
    assert num_batches(10, 3) == 4
    assert num_batches(10, 3, drop_remainder=True) == 3
    assert num_batches(9, 3) == 3
    assert num_batches(0, 3) == 0


def test_num_batches_rejects_zero_batch_size():
    with pytest.raises(ValueError, match="at least 1"):
        num_batches(10, 0)


# ============================================================================
# BatchIterator
# ============================================================================

def test_next_batch_shapes(synthetic_split):
    iterator = BatchIterator(synthetic_split, seed=0)

    images, labels = iterator.next_batch(32)

    assert images.shape == (32, 784)
    assert labels.shape == (32, 10)


def test_epoch_visits_every_example_once():
    split = _indexed_split(12)
    iterator = BatchIterator(split, shuffle=True, seed=0)

    seen = np.concatenate([iterator.next_batch(4)[0][:, 0] for _ in range(3)])

    assert sorted(seen.astype(int)) == list(range(12))
    assert iterator.epochs_completed == 1
    assert iterator.index_in_epoch == 0


def test_batch_straddles_epoch_boundary():
    split = _indexed_split(10)
    iterator = BatchIterator(split, shuffle=False)

    iterator.next_batch(8)
    images, _ = iterator.next_batch(4)

    assert list(images[:, 0].astype(int)) == [8, 9, 0, 1]
    assert iterator.epochs_completed == 1
    assert iterator.index_in_epoch == 2


def test_shuffle_changes_order_between_epochs():
    split = _indexed_split(50)
    iterator = BatchIterator(split, shuffle=True, seed=0)

    first = iterator.next_batch(50)[0][:, 0]
    second = iterator.next_batch(50)[0][:, 0]

    assert sorted(first) == sorted(second)
    assert not np.array_equal(first, second)


def test_no_shuffle_keeps_order():
    split = _indexed_split(6)
    iterator = BatchIterator(split, shuffle=False)

    images, _ = iterator.next_batch(6)

    assert list(images[:, 0].astype(int)) == list(range(6))


def test_same_seed_same_batches(synthetic_split):
    a = BatchIterator(synthetic_split, seed=7)
    b = BatchIterator(synthetic_split, seed=7)

    for _ in range(5):
        assert np.array_equal(a.next_batch(50)[0], b.next_batch(50)[0])


@pytest.mark.parametrize("batch_size", [0, 201])
def test_next_batch_rejects_bad_size(synthetic_split, batch_size):
    iterator = BatchIterator(synthetic_split, seed=0)

    with pytest.raises(ValueError):
        iterator.next_batch(batch_size)


def test_iterator_rejects_empty_split():
    empty = DigitSplit(images=np.zeros((0, 4)), labels=np.zeros((0, 2)))

    with pytest.raises(ValueError, match="empty split"):
        BatchIterator(empty)


def test_batches_per_epoch(synthetic_split):
    iterator = BatchIterator(synthetic_split)

    assert iterator.batches_per_epoch(64) == 4
    assert "num_examples=200" in repr(iterator)


# ============================================================================
# iterate_batches
# ============================================================================

def test_iterate_batches_covers_split():
    split = _indexed_split(10)

    batches = list(iterate_batches(split, 4))

    assert [len(images) for images, _ in batches] == [4, 4, 2]
    seen = np.concatenate([images[:, 0] for images, _ in batches])
    assert list(seen.astype(int)) == list(range(10))


def test_iterate_batches_drop_remainder():
    split = _indexed_split(10)

    batches = list(iterate_batches(split, 4, drop_remainder=True))

    assert [len(images) for images, _ in batches] == [4, 4]


def test_iterate_batches_shuffle_is_permutation():
    split = _indexed_split(20)

    batches = list(iterate_batches(split, 5, shuffle=True, seed=3))
    seen = np.concatenate([images[:, 0] for images, _ in batches]).astype(int)

    assert sorted(seen) == list(range(20))
    assert list(seen) != list(range(20))


# ============================================================================
# Properties
# ============================================================================

@st.composite
def _sizes(draw):
    n = draw(st.integers(min_value=1, max_value=60))
    batch_size = draw(st.integers(min_value=1, max_value=n))
    return n, batch_size


@settings(max_examples=50, deadline=None)
@given(_sizes(), st.booleans(), st.integers(min_value=0, max_value=2**16))
def test_each_epoch_is_a_permutation(sizes, shuffle, seed):
    """Consecutive epochs of the batch stream each visit every example exactly once."""
    n, batch_size = sizes
    iterator = BatchIterator(_indexed_split(n), shuffle=shuffle, seed=seed)

    steps = -(-2 * n // batch_size)
    stream = np.concatenate(
        [iterator.next_batch(batch_size)[0][:, 0] for _ in range(steps)]).astype(int)

    assert all(len(chunk) == n for chunk in (stream[:n], stream[n:2 * n]))
    assert sorted(stream[:n]) == list(range(n))
    assert sorted(stream[n:2 * n]) == list(range(n))
    assert iterator.epochs_completed == len(stream) // n
    assert iterator.index_in_epoch == len(stream) % n


@given(st.integers(min_value=0, max_value=10_000), st.integers(min_value=1, max_value=500))
def test_num_batches_covers_examples(n, batch_size):
    count = num_batches(n, batch_size)
    dropped = num_batches(n, batch_size, drop_remainder=True)

    assert count * batch_size >= n
    assert (count - 1) * batch_size < n or count == 0
    assert dropped * batch_size <= n < (dropped + 1) * batch_size
    assert count - dropped in (0, 1)


@settings(max_examples=50, deadline=None)
@given(_sizes(), st.booleans(), st.booleans())
def test_iterate_batches_single_pass(sizes, shuffle, drop_remainder):
    n, batch_size = sizes
    batches = list(iterate_batches(
        _indexed_split(n), batch_size, shuffle=shuffle, seed=0, drop_remainder=drop_remainder))

    assert len(batches) == num_batches(n, batch_size, drop_remainder=drop_remainder)
    seen = [int(i) for images, _ in batches for i in images[:, 0]]
    assert len(seen) == len(set(seen))
    if not drop_remainder:
        assert sorted(seen) == list(range(n))
    assert all(len(images) == batch_size for images, _ in batches[:-1])
