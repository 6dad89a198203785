"""The same MLP in a handful of tf.keras lines, next to its graph-mode history.

Run with:
    DIGITGRAPH_HEADLESS=true python examples/mnist_mlp/train_keras.py --output runs/keras
"""

from __future__ import annotations

import argparse
from pathlib import Path

from digitgraph.visualization import configure_matplotlib_backend

configure_matplotlib_backend()

from digitgraph.dataset import configure_tf_cpu, load_mnist, set_global_seed
from digitgraph.graph import ModelConfig, OptimizerConfig
from digitgraph.highlevel import build_keras_mlp, evaluate_keras_mlp, train_keras_mlp
from digitgraph.training import TrainingConfig, save_metrics_history
from digitgraph.training.metrics import format_metrics
from digitgraph.visualization.plotting import plot_history, save_figure


def main() -> None:
    parser = argparse.ArgumentParser(description="Train an MNIST MLP with tf.keras")
    parser.add_argument("--data", type=Path, default=None,
                        help="Keras-format mnist.npz (default: download)")
    parser.add_argument("--output", "-o", type=Path, default=Path("runs/keras"))
    parser.add_argument("--hidden", type=int, nargs="*", default=[256])
    parser.add_argument("--dropout", type=float, default=0.0, help="Dropout rate")
    parser.add_argument("--epochs", type=int, default=10)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    configure_tf_cpu()
    set_global_seed(args.seed)
    datasets = load_mnist(args.data)

    model = build_keras_mlp(
        ModelConfig(
            hidden_sizes=tuple(args.hidden),
            optimizer=OptimizerConfig(name='sgd', learning_rate=0.1),
            seed=args.seed,
        ),
        dropout_rate=args.dropout,
    )
    model.summary()

    config = TrainingConfig(
        num_epochs=args.epochs,
        batch_size=100,
        log_dir=str(args.output / "logs"),
    )
    history = train_keras_mlp(model, datasets, config)

    print(f"\nTest | {format_metrics(evaluate_keras_mlp(model, datasets.test))}")
    save_metrics_history(history, str(args.output))
    save_figure(plot_history(history), args.output / "history.png")


if __name__ == "__main__":
    main()
