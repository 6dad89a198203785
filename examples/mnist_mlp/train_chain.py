"""The same classifier declared with the fluent Chain builder.

Shows shared chain prefixes and a frozen layer: the first run trains a
two-layer network, the second copies its feature layer into a new graph,
freezes it and trains only a new output layer on top.

Run with:
    python examples/mnist_mlp/train_chain.py --output runs/chain
"""

from __future__ import annotations

import argparse
from pathlib import Path

import tensorflow as tf

from digitgraph.builder import Chain, build_model
from digitgraph.dataset import configure_tf_cpu, load_mnist, set_global_seed
from digitgraph.graph import OptimizerConfig
from digitgraph.training import TrainingConfig, create_session, evaluate, save_checkpoint, train_loop
from digitgraph.training.metrics import format_metrics


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train an MNIST MLP declared as a layer chain")
    parser.add_argument("--data", type=Path, default=None,
                        help="Keras-format mnist.npz (default: download)")
    parser.add_argument("--output", "-o", type=Path, default=Path("runs/chain"))
    parser.add_argument("--epochs", type=int, default=5)
    parser.add_argument("--seed", type=int, default=42)
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    configure_tf_cpu()
    set_global_seed(args.seed)
    datasets = load_mnist(args.data)

    features = Chain().fully_connected(256, name='features').dropout()
    full = features.fully_connected(128).dropout().logits(10)
    print(f"Full model: {full}")

    optimizer = OptimizerConfig(name='adam', learning_rate=1e-3)
    config = TrainingConfig(num_epochs=args.epochs, batch_size=100, keep_prob=0.75, seed=args.seed)

    print("\n" + "=" * 80)
    print("STAGE 1: TRAIN EVERY LAYER")
    print("=" * 80 + "\n")

    handles = build_model(full, input_dim=datasets.train.input_dim,
                          optimizer_config=optimizer, seed=args.seed)
    print(full.layer_graph())
    with create_session(handles) as session:
        train_loop(session, handles, datasets, config)
        print(f"Test | {format_metrics(evaluate(session, handles, datasets.test))}")
        feature_values = session.run(
            handles.graph.get_collection(tf.compat.v1.GraphKeys.TRAINABLE_VARIABLES, scope='features/'))
        save_checkpoint(session, handles, str(args.output / "stage1"))

    print("\n" + "=" * 80)
    print("STAGE 2: FROZEN FEATURES, NEW HEAD")
    print("=" * 80 + "\n")

    probe = Chain().fully_connected(256, name='features').frozen().logits(10)
    print(f"Probe model: {probe}")
    probe_handles = build_model(probe, input_dim=datasets.train.input_dim,
                                optimizer_config=optimizer, seed=args.seed)
    print(f"Trainable: {[v.op.name for v in probe_handles.trainable_variables]}")

    with create_session(probe_handles) as session:
        feature_vars = probe_handles.graph.get_collection(
            tf.compat.v1.GraphKeys.GLOBAL_VARIABLES, scope='features/')
        # Session.__enter__ makes the graph the default, so assign ops land in it
        session.run([v.assign(value) for v, value in zip(feature_vars, feature_values)])
        train_loop(session, probe_handles, datasets, config)
        print(f"Test | {format_metrics(evaluate(session, probe_handles, datasets.test))}")


if __name__ == "__main__":
    main()
