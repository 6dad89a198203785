"""Checkpoint saving and loading utilities (side effects isolated)."""

from __future__ import annotations

import os
import json

import tensorflow as tf

from digitgraph.graph.model import ModelHandles


def save_checkpoint(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    checkpoint_dir: str,
    step: int | None = None
) -> str:
    """Save every global variable of the session to disk (side effect).

    Args:
        session: Session holding the variable values
        handles: Handles whose saver covers the graph's variables
        checkpoint_dir: Directory to save checkpoint
        step: Optional step number for checkpoint name

    Returns:
        Checkpoint prefix (pass to restore_checkpoint)
    """
    os.makedirs(checkpoint_dir, exist_ok=True)

    if step is not None:
        ckpt_path = os.path.join(checkpoint_dir, f"checkpoint_{step}")
    else:
        ckpt_path = os.path.join(checkpoint_dir, "checkpoint_final")

    # Saver takes its graph-mode path only under the owning graph
    with handles.graph.as_default():
        prefix = handles.saver.save(session, os.path.abspath(ckpt_path))
    print(f"Saved checkpoint to: {prefix}")
    return prefix


def resolve_checkpoint(path: str) -> str:
    """Turn a checkpoint prefix or directory into an existing prefix.

    Raises:
        FileNotFoundError: If no checkpoint exists at path
    """
    if os.path.isdir(path):
        latest = tf.train.latest_checkpoint(path)
        if latest is None:
            raise FileNotFoundError(f"No checkpoint found in directory: {path}")
        return latest

    if not os.path.exists(f"{path}.index"):
        raise FileNotFoundError(f"Checkpoint not found: {path}")
    return path


def restore_checkpoint(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    checkpoint_path: str,
) -> str:
    """Restore variables into the session (side effect).

    Args:
        session: Session whose graph matches the saved one
        handles: Handles of that graph
        checkpoint_path: Checkpoint prefix or directory (latest is used)

    Returns:
        Prefix that was restored
    """
    prefix = resolve_checkpoint(checkpoint_path)
    with handles.graph.as_default():
        handles.saver.restore(session, prefix)
    return prefix


def save_metrics_history(
    history: dict[str, list[float]],
    output_dir: str
) -> None:
    """Save metrics history as JSON (side effect).

    Args:
        history: Metrics history dictionary
        output_dir: Directory to save history
    """
    os.makedirs(output_dir, exist_ok=True)
    history_path = os.path.join(output_dir, "metrics.json")

    with open(history_path, "w") as f:
        json.dump(history, f, indent=2)


def load_metrics_history(output_dir: str) -> dict[str, list[float]]:
    """Load metrics history written by save_metrics_history.

    Args:
        output_dir: Directory containing metrics.json

    Returns:
        Metrics history dictionary
    """
    history_path = os.path.join(output_dir, "metrics.json")

    with open(history_path, "r") as f:
        return json.load(f)
