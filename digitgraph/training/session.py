"""Session-driven training, evaluation and prediction (orchestrates graph + data).

Every value crossing the session boundary is a NumPy array: batches go in
through feed dictionaries and metrics/probabilities come back from
session.run.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import tensorflow as tf
from tqdm import tqdm

from digitgraph.dataset.iterator import Batch, BatchIterator, iterate_batches
from digitgraph.dataset.mnist import DigitDatasets, DigitSplit
from digitgraph.graph.model import ModelHandles
from digitgraph.training.checkpoint import save_checkpoint
from digitgraph.training.metrics import (
    accumulate_history,
    average_metrics,
    format_metrics,
    prefix_metrics,
    weighted_average_metrics,
)
from digitgraph.training.types import Metrics, TrainingConfig, create_metrics

SummaryWriter = tf.compat.v1.summary.FileWriter


def create_session(handles: ModelHandles, initialize: bool = True) -> tf.compat.v1.Session:
    """Open a session on the handles' graph, optionally running the initializer."""
    session = tf.compat.v1.Session(graph=handles.graph)
    if initialize:
        session.run(handles.init_op)
    return session


def make_feed_dict(
    handles: ModelHandles,
    batch: Batch,
    keep_prob: float | None = None,
) -> dict[tf.Tensor, Any]:
    """Map an (images, labels) batch onto the graph's placeholders."""
    images, labels = batch
    feed = {handles.inputs: images, handles.labels: labels}
    if keep_prob is not None:
        feed[handles.keep_prob] = keep_prob
    return feed


def open_summary_writer(log_dir: str, graph: tf.Graph) -> SummaryWriter:
    """TensorBoard event writer; also records the graph for the Graphs tab."""
    # FileWriter refuses to be created while eager execution is active
    with graph.as_default():
        return tf.compat.v1.summary.FileWriter(log_dir, graph)


def write_scalars(writer: SummaryWriter, values: dict[str, float], step: int) -> None:
    """Append scalar values to a TensorBoard event file (side effect)."""
    summary = tf.compat.v1.Summary(value=[
        tf.compat.v1.Summary.Value(tag=tag, simple_value=float(value))
        for tag, value in values.items()
    ])
    writer.add_summary(summary, step)
    writer.flush()


def train_step(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    batch: Batch,
    keep_prob: float = 1.0,
    writer: SummaryWriter | None = None,
) -> dict[str, float]:
    """
    Apply one optimizer update on a batch.

    Args:
        session: Session with initialized variables
        handles: Graph handles
        batch: (images, labels) NumPy batch
        keep_prob: Dropout keep probability for this step
        writer: Optional TensorBoard writer for the merged summaries

    Returns:
        Dict with the batch loss and accuracy measured before the update
    """
    fetches = {
        'train_op': handles.train_op,
        'loss': handles.loss,
        'accuracy': handles.accuracy,
    }
    if writer is not None:
        fetches['summary'] = handles.summary_op

    results = session.run(fetches, make_feed_dict(handles, batch, keep_prob))

    if writer is not None:
        step = session.run(handles.global_step)
        writer.add_summary(results['summary'], step)

    return {'loss': results['loss'], 'accuracy': results['accuracy']}


def train_epoch(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    iterator: BatchIterator,
    num_batches: int,
    batch_size: int,
    keep_prob: float = 1.0,
    log_every: int | None = None,
    writer: SummaryWriter | None = None,
) -> Metrics:
    """Train for one epoch.

    Args:
        session: Session with initialized variables
        handles: Graph handles
        iterator: Feeder yielding training batches
        num_batches: Number of steps to run
        batch_size: Rows per step
        keep_prob: Dropout keep probability
        log_every: Log metrics every N steps (None = no step logging)
        writer: Optional TensorBoard writer

    Returns:
        Metrics averaged over the epoch's steps
    """
    step_metrics = []

    for step_idx in range(num_batches):
        batch = iterator.next_batch(batch_size)
        raw_metrics = train_step(session, handles, batch, keep_prob=keep_prob, writer=writer)

        metrics = create_metrics(raw_metrics)
        step_metrics.append(metrics)

        if log_every is not None and (step_idx + 1) % log_every == 0:
            print(f"  Step {step_idx + 1}/{num_batches} | {format_metrics(metrics)}")

    return average_metrics(step_metrics)


def evaluate(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    split: DigitSplit,
    batch_size: int = 1000,
) -> Metrics:
    """
    Loss and accuracy over a whole split; no variables are updated.

    Batches are weighted by their size so the result equals the full-split
    mean regardless of batch_size.
    """
    if split.num_examples == 0:
        raise ValueError("Cannot evaluate on an empty split")

    batch_metrics = []
    weights = []
    for batch in iterate_batches(split, batch_size):
        loss, accuracy = session.run(
            [handles.loss, handles.accuracy],
            make_feed_dict(handles, batch),
        )
        batch_metrics.append(create_metrics({'loss': loss, 'accuracy': accuracy}))
        weights.append(len(batch[0]))

    return weighted_average_metrics(batch_metrics, weights)


def predict(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    images: np.ndarray,
    batch_size: int = 1000,
) -> np.ndarray:
    """Class probabilities for flattened images, as a (N, num_classes) NumPy array."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    outputs = [
        session.run(handles.probabilities, {handles.inputs: images[start:start + batch_size]})
        for start in range(0, len(images), batch_size)
    ]
    if not outputs:
        return np.zeros((0, int(handles.probabilities.shape[-1])), dtype=np.float32)
    return np.concatenate(outputs, axis=0)


def train_loop(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    datasets: DigitDatasets,
    config: TrainingConfig,
) -> dict[str, list[float]]:
    """Complete training loop with validation, checkpointing and TensorBoard logging.

    Args:
        session: Session with initialized (or restored) variables
        handles: Graph handles
        datasets: Train split is fed; validation split (if non-empty) is
            evaluated after every epoch
        config: Training configuration

    Returns:
        Metrics history with train_* and val_* keys, one entry per epoch
    """
    iterator = BatchIterator(datasets.train, shuffle=True, seed=config.seed)
    steps_per_epoch = iterator.batches_per_epoch(config.batch_size)
    writer = open_summary_writer(config.log_dir, handles.graph) if config.log_dir else None

    history: dict[str, list[float]] = {}

    try:
        for epoch in tqdm(range(config.num_epochs), desc="Training"):
            train_metrics = train_epoch(
                session=session,
                handles=handles,
                iterator=iterator,
                num_batches=steps_per_epoch,
                batch_size=config.batch_size,
                keep_prob=config.keep_prob,
                log_every=config.log_every,
                writer=writer,
            )
            history = accumulate_history(history, prefix_metrics(train_metrics, "train_"))

            if datasets.validation.num_examples > 0:
                val_metrics = prefix_metrics(
                    evaluate(session, handles, datasets.validation, config.eval_batch_size),
                    "val_",
                )
                history = accumulate_history(history, val_metrics)
                if writer is not None:
                    write_scalars(writer, val_metrics.values, session.run(handles.global_step))

            print(f"Epoch {epoch + 1}/{config.num_epochs} | {format_metrics(train_metrics)}")

            if config.checkpoint_dir is not None:
                if config.checkpoint_every is not None and (epoch + 1) % config.checkpoint_every == 0:
                    save_checkpoint(session, handles, config.checkpoint_dir, step=epoch + 1)
    finally:
        if writer is not None:
            writer.close()

    if config.checkpoint_dir is not None:
        save_checkpoint(session, handles, config.checkpoint_dir, step=None)

    return history
