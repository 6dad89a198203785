"""Freeze a model trained by train_graph.py and run it from the .pb alone.

Rebuilds the graph from the saved model_config.json, restores the latest
checkpoint, folds the variables into constants and reloads the frozen
GraphDef into a fresh graph for inference on the test split.

Run with:
    DIGITGRAPH_HEADLESS=true python examples/mnist_mlp/export_frozen.py runs/graph
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from digitgraph.visualization import configure_matplotlib_backend

configure_matplotlib_backend()

from digitgraph.dataset import load_mnist
from digitgraph.experiments import load_config
from digitgraph.graph import (
    ModelConfig,
    build_mlp_graph,
    freeze_graph,
    import_frozen_graph,
    load_graph_def,
    run_frozen,
    save_frozen_graph,
)
from digitgraph.training import create_session, predict, restore_checkpoint
from digitgraph.visualization.plotting import plot_digits, save_figure


def main() -> None:
    parser = argparse.ArgumentParser(description="Export a trained graph as a frozen GraphDef")
    parser.add_argument("run_dir", type=Path, help="Output directory of train_graph.py")
    parser.add_argument("--data", type=Path, default=None,
                        help="Keras-format mnist.npz (default: download)")
    parser.add_argument("--num-samples", type=int, default=16,
                        help="Test digits to plot with their predictions")
    args = parser.parse_args()

    model_config = load_config(args.run_dir / "model_config.json", ModelConfig)
    handles = build_mlp_graph(model_config)

    datasets = load_mnist(args.data)
    images = datasets.test.images

    with create_session(handles, initialize=False) as session:
        prefix = restore_checkpoint(session, handles, str(args.run_dir / "checkpoints"))
        print(f"Restored: {prefix}")
        expected = predict(session, handles, images)
        frozen = freeze_graph(session, handles)

    frozen_path = args.run_dir / "frozen" / "model.pb"
    save_frozen_graph(frozen, frozen_path)
    print(f"Frozen graph: {len(frozen.node)} nodes")

    model = import_frozen_graph(load_graph_def(frozen_path))
    probabilities = run_frozen(model, images)

    max_diff = float(np.abs(probabilities - expected).max())
    accuracy = float(np.mean(np.argmax(probabilities, axis=1) == datasets.test.class_ids))
    print(f"Max difference vs session: {max_diff:.2e}")
    print(f"Frozen test accuracy: {accuracy:.4f}")

    n = min(args.num_samples, len(images))
    fig = plot_digits(
        images[:n],
        labels=datasets.test.class_ids[:n],
        predictions=np.argmax(probabilities[:n], axis=1),
    )
    save_figure(fig, args.run_dir / "frozen_predictions.png")


if __name__ == "__main__":
    main()
