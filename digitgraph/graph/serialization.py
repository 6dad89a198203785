"""GraphDef protobuf export, freezing and re-import (side effects isolated)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np
import tensorflow as tf
from google.protobuf import text_format

from .model import INPUTS_NAME, PREDICTIONS_NAME, PROBABILITIES_NAME, ModelHandles

TEXT_SUFFIXES = ('.pbtxt', '.txt')


def export_graph_def(
    graph: tf.Graph,
    output_dir: str | Path,
    name: str = 'graph.pb',
    as_text: bool = False,
) -> str:
    """Write the graph structure (no variable values) as a GraphDef protobuf.

    Args:
        graph: Graph to serialize
        output_dir: Destination directory
        name: File name inside output_dir
        as_text: Write the human-readable text format instead of binary

    Returns:
        Path of the written file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = tf.io.write_graph(graph.as_graph_def(), str(output_dir), name, as_text=as_text)
    print(f"Saved graph definition to: {path}")
    return path


def load_graph_def(path: str | Path) -> tf.compat.v1.GraphDef:
    """Read a binary or text (.pbtxt) GraphDef from disk."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"GraphDef not found: {path}")

    graph_def = tf.compat.v1.GraphDef()
    if path.suffix in TEXT_SUFFIXES:
        text_format.Parse(path.read_text(), graph_def)
    else:
        graph_def.ParseFromString(path.read_bytes())
    return graph_def


def freeze_graph(
    session: tf.compat.v1.Session,
    handles: ModelHandles,
    output_names: Sequence[str] = (PROBABILITIES_NAME, PREDICTIONS_NAME),
) -> tf.compat.v1.GraphDef:
    """Fold current variable values into constants for inference.

    Only the subgraph needed to compute output_names is kept, so training
    ops and labels are dropped.

    Args:
        session: Session holding trained variable values
        handles: Handles of the graph to freeze
        output_names: Op names that must stay computable

    Returns:
        Self-contained GraphDef
    """
    with handles.graph.as_default():
        return tf.compat.v1.graph_util.convert_variables_to_constants(
            session,
            handles.graph.as_graph_def(),
            list(output_names),
        )


def save_frozen_graph(graph_def: tf.compat.v1.GraphDef, path: str | Path) -> None:
    """Serialize a frozen GraphDef to a binary .pb file (side effect)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(graph_def.SerializeToString())
    print(f"Saved frozen graph to: {path}")


@dataclass(frozen=True)
class FrozenModel:
    """Inference-only model imported from a frozen GraphDef."""
    graph: tf.Graph
    inputs: tf.Tensor
    probabilities: tf.Tensor
    predictions: tf.Tensor


def import_frozen_graph(graph_def: tf.compat.v1.GraphDef) -> FrozenModel:
    """Import a frozen GraphDef into a fresh graph and look up its endpoints."""
    graph = tf.Graph()
    with graph.as_default():
        tf.graph_util.import_graph_def(graph_def, name='')

    return FrozenModel(
        graph=graph,
        inputs=graph.get_tensor_by_name(f'{INPUTS_NAME}:0'),
        probabilities=graph.get_tensor_by_name(f'{PROBABILITIES_NAME}:0'),
        predictions=graph.get_tensor_by_name(f'{PREDICTIONS_NAME}:0'),
    )


def run_frozen(model: FrozenModel, images: np.ndarray) -> np.ndarray:
    """Class probabilities for a batch of flattened images."""
    with tf.compat.v1.Session(graph=model.graph) as session:
        return session.run(model.probabilities, {model.inputs: images})
