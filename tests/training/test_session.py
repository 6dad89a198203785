"""Tests for session-driven training, evaluation and prediction."""

from __future__ import annotations

import glob
import os

import numpy as np
import pytest
import tensorflow as tf

from digitgraph.dataset.iterator import BatchIterator
from digitgraph.dataset.mnist import DigitDatasets, DigitSplit
from digitgraph.graph import ModelConfig, OptimizerConfig, build_mlp_graph
from digitgraph.training import (
    TrainingConfig,
    create_session,
    evaluate,
    make_feed_dict,
    open_summary_writer,
    predict,
    train_epoch,
    train_loop,
    train_step,
    write_scalars,
)


def _softmax_regression():
    return build_mlp_graph(ModelConfig(
        hidden_sizes=(),
        optimizer=OptimizerConfig(name='sgd', learning_rate=0.05),
        seed=0,
    ))


@pytest.fixture
def session_and_handles():
    handles = _softmax_regression()
    session = create_session(handles)
    yield session, handles
    session.close()


# ============================================================================
# Single steps
# ============================================================================

def test_make_feed_dict(session_and_handles, synthetic_split):
    _, handles = session_and_handles
    batch = (synthetic_split.images[:4], synthetic_split.labels[:4])

    feed = make_feed_dict(handles, batch)
    assert set(feed) == {handles.inputs, handles.labels}

    feed = make_feed_dict(handles, batch, keep_prob=0.5)
    assert feed[handles.keep_prob] == 0.5


def test_train_step_returns_metrics_and_advances_step(session_and_handles, synthetic_split):
    session, handles = session_and_handles
    batch = (synthetic_split.images[:50], synthetic_split.labels[:50])

    metrics = train_step(session, handles, batch)

    assert set(metrics) == {'loss', 'accuracy'}
    assert 0.0 <= metrics['accuracy'] <= 1.0
    assert session.run(handles.global_step) == 1


def test_train_epoch_runs_requested_steps(session_and_handles, synthetic_split, capsys):
    session, handles = session_and_handles
    iterator = BatchIterator(synthetic_split, seed=0)

    metrics = train_epoch(
        session, handles, iterator, num_batches=4, batch_size=50, log_every=2)

    assert set(metrics.keys()) == {'loss', 'accuracy'}
    assert session.run(handles.global_step) == 4
    assert iterator.epochs_completed == 1
    output = capsys.readouterr().out
    assert "Step 2/4" in output
    assert "Step 4/4" in output


# ============================================================================
# Evaluation and prediction
# ============================================================================

def test_evaluate_does_not_change_variables(session_and_handles, synthetic_split):
    session, handles = session_and_handles
    before = session.run(handles.trainable_variables)

    evaluate(session, handles, synthetic_split, batch_size=64)

    after = session.run(handles.trainable_variables)
    for b, a in zip(before, after):
        assert np.array_equal(b, a)
    assert session.run(handles.global_step) == 0


def test_evaluate_independent_of_batch_size(session_and_handles, synthetic_split):
    session, handles = session_and_handles
    feed = {handles.inputs: synthetic_split.images, handles.labels: synthetic_split.labels}
    full_loss, full_accuracy = session.run([handles.loss, handles.accuracy], feed)

    metrics = evaluate(session, handles, synthetic_split, batch_size=64)

    assert metrics['loss'] == pytest.approx(full_loss, rel=1e-5)
    assert metrics['accuracy'] == pytest.approx(full_accuracy)


def test_evaluate_empty_split(session_and_handles):
    session, handles = session_and_handles
    empty = DigitSplit(images=np.zeros((0, 784)), labels=np.zeros((0, 10)))

    with pytest.raises(ValueError, match="empty split"):
        evaluate(session, handles, empty)


def test_predict_returns_probabilities(session_and_handles, synthetic_split):
    session, handles = session_and_handles

    probabilities = predict(session, handles, synthetic_split.images, batch_size=64)

    assert probabilities.shape == (200, 10)
    assert np.allclose(probabilities.sum(axis=1), 1.0, atol=1e-5)


def test_predict_empty_and_bad_batch(session_and_handles):
    session, handles = session_and_handles

    assert predict(session, handles, np.zeros((0, 784), dtype=np.float32)).shape == (0, 10)
    with pytest.raises(ValueError, match="at least 1"):
        predict(session, handles, np.zeros((2, 784), dtype=np.float32), batch_size=0)


# ============================================================================
# Full loop
# ============================================================================

def test_train_loop_learns_separable_data(session_and_handles, synthetic_datasets, capsys):
    session, handles = session_and_handles
    config = TrainingConfig(num_epochs=8, batch_size=50, seed=0)

    history = train_loop(session, handles, synthetic_datasets, config)

    assert set(history) == {'train_loss', 'train_accuracy', 'val_loss', 'val_accuracy'}
    assert all(len(values) == 8 for values in history.values())
    assert history['train_loss'][-1] < history['train_loss'][0]
    assert history['val_accuracy'][-1] > 0.9
    assert session.run(handles.global_step) == 8 * 6
    assert "Epoch 8/8" in capsys.readouterr().out

    test_metrics = evaluate(session, handles, synthetic_datasets.test)
    assert test_metrics['accuracy'] > 0.9


def test_train_loop_without_validation(session_and_handles, synthetic_datasets):
    session, handles = session_and_handles
    empty = DigitSplit(images=np.zeros((0, 784)), labels=np.zeros((0, 10)))
    datasets = DigitDatasets(
        train=synthetic_datasets.train, validation=empty, test=synthetic_datasets.test)

    history = train_loop(session, handles, datasets, TrainingConfig(num_epochs=2, batch_size=100))

    assert set(history) == {'train_loss', 'train_accuracy'}


def test_train_loop_zero_epochs(session_and_handles, synthetic_datasets):
    session, handles = session_and_handles

    history = train_loop(
        session, handles, synthetic_datasets, TrainingConfig(num_epochs=0, batch_size=50))

    assert history == {}
    assert session.run(handles.global_step) == 0


def test_train_loop_checkpoints(session_and_handles, synthetic_datasets, tmp_path):
    session, handles = session_and_handles
    config = TrainingConfig(
        num_epochs=4,
        batch_size=100,
        checkpoint_dir=str(tmp_path / 'ckpt'),
        checkpoint_every=2,
    )

    train_loop(session, handles, synthetic_datasets, config)

    for name in ('checkpoint_2', 'checkpoint_4', 'checkpoint_final'):
        assert os.path.exists(tmp_path / 'ckpt' / f'{name}.index')
    assert tf.train.latest_checkpoint(str(tmp_path / 'ckpt')).endswith('checkpoint_final')


def test_train_loop_writes_tensorboard_events(session_and_handles, synthetic_datasets, tmp_path):
    session, handles = session_and_handles
    log_dir = str(tmp_path / 'logs')
    config = TrainingConfig(num_epochs=1, batch_size=100, log_dir=log_dir)

    train_loop(session, handles, synthetic_datasets, config)

    assert glob.glob(os.path.join(log_dir, 'events.out.tfevents.*'))


def test_write_scalars(session_and_handles, tmp_path):
    _, handles = session_and_handles
    log_dir = str(tmp_path / 'scalars')

    writer = open_summary_writer(log_dir, handles.graph)
    write_scalars(writer, {'val_loss': 0.5, 'val_accuracy': 0.9}, step=1)
    writer.close()

    tags = set()
    for path in glob.glob(os.path.join(log_dir, 'events.out.tfevents.*')):
        for event in tf.compat.v1.train.summary_iterator(path):
            tags.update(value.tag for value in event.summary.value)
    assert {'val_loss', 'val_accuracy'} <= tags
