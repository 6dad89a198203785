"""Train the MNIST classifier with the explicit graph + session API.

Walks through the whole programming model: placeholders and variables in a
tf.Graph, a session feeding NumPy batches, TensorBoard summaries, Saver
checkpoints and a GraphDef export.

Run with:
    DIGITGRAPH_HEADLESS=true python examples/mnist_mlp/train_graph.py --output runs/graph
    tensorboard --logdir runs/graph/logs
"""

from __future__ import annotations

import argparse
from pathlib import Path

from digitgraph.visualization import configure_matplotlib_backend

configure_matplotlib_backend()

from digitgraph.dataset import configure_tf_cpu, load_mnist, set_global_seed, set_tf_log_level
from digitgraph.experiments import config_hash, save_config
from digitgraph.graph import ModelConfig, OptimizerConfig, build_mlp_graph, export_graph_def
from digitgraph.training import (
    TrainingConfig,
    create_session,
    evaluate,
    save_metrics_history,
    train_loop,
)
from digitgraph.training.metrics import format_metrics
from digitgraph.visualization.plotting import plot_history, plot_weight_templates, save_figure


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train an MNIST MLP in graph mode")
    parser.add_argument("--data", type=Path, default=None,
                        help="Keras-format mnist.npz (default: download)")
    parser.add_argument("--output", "-o", type=Path, default=Path("runs/graph"),
                        help="Directory for checkpoints, logs and figures")
    parser.add_argument("--hidden", type=int, nargs="*", default=[256],
                        help="Hidden layer widths; pass none for softmax regression")
    parser.add_argument("--optimizer", default="sgd",
                        help="sgd, momentum, adam, adagrad or rmsprop")
    parser.add_argument("--lr", type=float, default=0.1, help="Learning rate")
    parser.add_argument("--epochs", type=int, default=10)
    parser.add_argument("--batch-size", type=int, default=100)
    parser.add_argument("--keep-prob", type=float, default=1.0,
                        help="Dropout keep probability during training")
    parser.add_argument("--seed", type=int, default=42)
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    configure_tf_cpu()
    set_tf_log_level('ERROR')
    set_global_seed(args.seed)

    datasets = load_mnist(args.data)

    model_config = ModelConfig(
        hidden_sizes=tuple(args.hidden),
        optimizer=OptimizerConfig(name=args.optimizer, learning_rate=args.lr),
        seed=args.seed,
    )
    training_config = TrainingConfig(
        num_epochs=args.epochs,
        batch_size=args.batch_size,
        keep_prob=args.keep_prob,
        seed=args.seed,
        log_every=100,
        checkpoint_dir=str(args.output / "checkpoints"),
        checkpoint_every=5,
        log_dir=str(args.output / "logs"),
    )

    save_config(model_config, args.output / "model_config.json")
    save_config(training_config, args.output / "training_config.json")
    print(f"Config hash: {config_hash(model_config)}")

    print("\n" + "=" * 80)
    print("BUILDING GRAPH")
    print("=" * 80)

    handles = build_mlp_graph(model_config)
    for variable in handles.trainable_variables:
        print(f"  {variable.op.name}: {variable.shape.as_list()}")
    export_graph_def(handles.graph, args.output, name="graph.pbtxt", as_text=True)

    print("\n" + "=" * 80)
    print("TRAINING")
    print("=" * 80 + "\n")

    with create_session(handles) as session:
        history = train_loop(session, handles, datasets, training_config)
        test_metrics = evaluate(session, handles, datasets.test)
        first_layer = session.run(handles.trainable_variables[0])

    print(f"\nTest | {format_metrics(test_metrics)}")
    save_metrics_history(history, str(args.output))

    save_figure(plot_history(history), args.output / "history.png")
    if first_layer.ndim == 2:
        save_figure(plot_weight_templates(first_layer[:, :10]), args.output / "weights.png")


if __name__ == "__main__":
    main()
