"""Tests for training types, metrics and checkpointing."""

from __future__ import annotations

import os

import numpy as np
import pytest
import tensorflow as tf

from digitgraph.graph import ModelConfig, build_mlp_graph
from digitgraph.training import (
    TrainingConfig,
    Metrics,
    create_metrics,
    average_metrics,
    weighted_average_metrics,
    combine_metrics,
    prefix_metrics,
    format_metrics,
    accumulate_history,
    create_session,
    save_checkpoint,
    restore_checkpoint,
    resolve_checkpoint,
    save_metrics_history,
    load_metrics_history,
)


# ============================================================================
# Test Types
# ============================================================================

def test_training_config_immutable():
    """TrainingConfig should be immutable."""
    config = TrainingConfig(num_epochs=10, batch_size=32)

    with pytest.raises(AttributeError):
        config.num_epochs = 20


@pytest.mark.parametrize("kwargs, message", [
    ({'num_epochs': -1, 'batch_size': 32}, "num_epochs"),
    ({'num_epochs': 1, 'batch_size': 0}, "batch_size"),
    ({'num_epochs': 1, 'batch_size': 32, 'keep_prob': 0.0}, "keep_prob"),
    ({'num_epochs': 1, 'batch_size': 32, 'keep_prob': 1.5}, "keep_prob"),
    ({'num_epochs': 1, 'batch_size': 32, 'eval_batch_size': 0}, "eval_batch_size"),
    ({'num_epochs': 1, 'batch_size': 32, 'log_every': 0}, "log_every"),
    ({'num_epochs': 1, 'batch_size': 32, 'checkpoint_every': 0}, "checkpoint_every"),
    ({'num_epochs': 1, 'batch_size': 32, 'checkpoint_every': -2}, "checkpoint_every"),
])
def test_training_config_validation(kwargs, message):
    with pytest.raises(ValueError, match=message):
        TrainingConfig(**kwargs)


def test_training_config_accepts_optional_intervals():
    config = TrainingConfig(num_epochs=1, batch_size=32, log_every=1, checkpoint_every=None)

    assert config.log_every == 1
    assert config.checkpoint_every is None


def test_metrics_immutable():
    """Metrics should be immutable."""
    metrics = Metrics(values={"loss": 1.0, "accuracy": 0.9})

    with pytest.raises(AttributeError):
        metrics.values = {"new": 1.0}


def test_create_metrics_converts_numpy_values():
    """create_metrics should convert NumPy and TF values to Python floats."""
    raw = {
        "loss": np.float32(1.5),
        "accuracy": np.array([0.9]),
        "tensor": tf.constant(0.25),
        "scalar": 0.8,
    }

    metrics = create_metrics(raw)

    assert metrics["loss"] == pytest.approx(1.5)
    assert metrics["accuracy"] == pytest.approx(0.9)
    assert metrics["tensor"] == pytest.approx(0.25)
    assert metrics["scalar"] == pytest.approx(0.8)
    assert all(isinstance(v, float) for v in metrics.values.values())


# ============================================================================
# Test Metrics Functions
# ============================================================================

def test_average_metrics():
    """average_metrics should compute mean across metrics."""
    metrics_list = [
        Metrics(values={"loss": 1.0, "accuracy": 0.8}),
        Metrics(values={"loss": 2.0, "accuracy": 0.9}),
        Metrics(values={"loss": 3.0, "accuracy": 1.0}),
    ]

    avg = average_metrics(metrics_list)

    assert avg["loss"] == pytest.approx(2.0)
    assert avg["accuracy"] == pytest.approx(0.9)


def test_average_metrics_empty():
    """average_metrics should handle empty list."""
    assert average_metrics([]).values == {}


def test_weighted_average_metrics():
    """A short final batch counts in proportion to its size."""
    metrics_list = [
        Metrics(values={"accuracy": 1.0}),
        Metrics(values={"accuracy": 0.0}),
    ]

    avg = weighted_average_metrics(metrics_list, [3, 1])

    assert avg["accuracy"] == pytest.approx(0.75)


def test_weighted_average_metrics_errors():
    with pytest.raises(ValueError, match="weights"):
        weighted_average_metrics([Metrics(values={"a": 1.0})], [1, 2])
    with pytest.raises(ValueError, match="positive"):
        weighted_average_metrics([Metrics(values={"a": 1.0})], [0])


def test_combine_metrics_custom_fn():
    """combine_metrics should use custom aggregation function."""
    metrics_list = [
        Metrics(values={"loss": 1.0}),
        Metrics(values={"loss": 5.0}),
        Metrics(values={"loss": 3.0}),
    ]

    combined = combine_metrics(metrics_list, combine_fn=max)

    assert combined["loss"] == pytest.approx(5.0)


def test_prefix_metrics():
    prefixed = prefix_metrics(Metrics(values={"loss": 1.0, "accuracy": 0.5}), "val_")

    assert prefixed.values == {"val_loss": 1.0, "val_accuracy": 0.5}


def test_format_metrics():
    """format_metrics should create readable string."""
    metrics = Metrics(values={"loss": 1.23456, "accuracy": 0.98765})

    formatted = format_metrics(metrics, precision=2)

    assert formatted == "loss: 1.23 | accuracy: 0.99"


def test_accumulate_history():
    """accumulate_history should append metrics to history."""
    history = {}

    history = accumulate_history(history, Metrics(values={"loss": 1.0, "accuracy": 0.8}))
    history = accumulate_history(history, Metrics(values={"loss": 0.5, "accuracy": 0.9}))

    assert history["loss"] == [1.0, 0.5]
    assert history["accuracy"] == [0.8, 0.9]


def test_accumulate_history_immutable():
    """accumulate_history should not modify original history."""
    original = {"loss": [1.0]}

    new = accumulate_history(original, Metrics(values={"loss": 0.5}))

    assert original["loss"] == [1.0]
    assert new["loss"] == [1.0, 0.5]


# ============================================================================
# Test Checkpointing
# ============================================================================

def test_checkpoint_save_restore(tmp_path, capsys):
    """Restored variables equal the saved ones, not the fresh initialization."""
    handles = build_mlp_graph(ModelConfig(hidden_sizes=(8,)))
    session = create_session(handles)
    saved = session.run(handles.trainable_variables)

    prefix = save_checkpoint(session, handles, str(tmp_path), step=3)
    assert prefix.endswith("checkpoint_3")
    assert os.path.exists(f"{prefix}.index")
    assert "Saved checkpoint" in capsys.readouterr().out

    # Re-initializing draws new random weights
    session.run(handles.init_op)
    restored_from = restore_checkpoint(session, handles, prefix)
    restored = session.run(handles.trainable_variables)
    session.close()

    assert restored_from == prefix
    for before, after in zip(saved, restored):
        assert np.array_equal(before, after)


def test_checkpoint_restore_into_new_graph(tmp_path):
    """A checkpoint restores into a freshly built graph of the same config."""
    config = ModelConfig(hidden_sizes=(8,))

    handles = build_mlp_graph(config)
    session = create_session(handles)
    saved = session.run(handles.trainable_variables)
    save_checkpoint(session, handles, str(tmp_path))
    session.close()

    fresh = build_mlp_graph(config)
    fresh_session = create_session(fresh, initialize=False)
    restore_checkpoint(fresh_session, fresh, str(tmp_path))
    restored = fresh_session.run(fresh.trainable_variables)
    fresh_session.close()

    for before, after in zip(saved, restored):
        assert np.array_equal(before, after)


def test_resolve_checkpoint_uses_latest(tmp_path):
    handles = build_mlp_graph(ModelConfig(hidden_sizes=()))
    session = create_session(handles)
    save_checkpoint(session, handles, str(tmp_path), step=1)
    final = save_checkpoint(session, handles, str(tmp_path))
    session.close()

    assert resolve_checkpoint(str(tmp_path)) == final


def test_resolve_checkpoint_missing(tmp_path):
    with pytest.raises(FileNotFoundError, match="No checkpoint found"):
        resolve_checkpoint(str(tmp_path))

    with pytest.raises(FileNotFoundError, match="Checkpoint not found"):
        resolve_checkpoint(str(tmp_path / "checkpoint_9"))


def test_metrics_history_round_trip(tmp_path):
    history = {"train_loss": [1.0, 0.5], "val_accuracy": [0.8, 0.9]}

    save_metrics_history(history, str(tmp_path / "run"))

    assert load_metrics_history(str(tmp_path / "run")) == history
