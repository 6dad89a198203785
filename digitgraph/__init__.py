"""digitgraph: the TensorFlow programming model, walked through on MNIST.

Public API exports for the digit dataset, explicit graph construction,
session-driven training, the fluent layer-chain builder and the tf.keras
wrapper.
"""

# Dataset: feature/label matrices and batch feeding
from digitgraph.dataset import (
    DigitSplit,
    DigitDatasets,
    BatchIterator,
    load_mnist,
    set_global_seed,
)

# Graph API: placeholders, variables, loss, optimizer
from digitgraph.graph import (
    ModelConfig,
    OptimizerConfig,
    ModelHandles,
    LayerNode,
    LayerGraph,
    build_mlp_graph,
    export_graph_def,
    freeze_graph,
    import_frozen_graph,
    run_frozen,
)

# Fluent builder
from digitgraph.builder import Chain, build_model, mlp_chain

# Session training
from digitgraph.training import (
    TrainingConfig,
    Metrics,
    create_session,
    train_loop,
    evaluate,
    predict,
    save_checkpoint,
    restore_checkpoint,
)

# tf.keras wrapper
from digitgraph.highlevel import build_keras_mlp, train_keras_mlp, evaluate_keras_mlp

__version__ = "0.1.0"

__all__ = [
    # Dataset
    "DigitSplit",
    "DigitDatasets",
    "BatchIterator",
    "load_mnist",
    "set_global_seed",

    # Graph
    "ModelConfig",
    "OptimizerConfig",
    "ModelHandles",
    "LayerNode",
    "LayerGraph",
    "build_mlp_graph",
    "export_graph_def",
    "freeze_graph",
    "import_frozen_graph",
    "run_frozen",

    # Builder
    "Chain",
    "build_model",
    "mlp_chain",

    # Training
    "TrainingConfig",
    "Metrics",
    "create_session",
    "train_loop",
    "evaluate",
    "predict",
    "save_checkpoint",
    "restore_checkpoint",

    # Keras
    "build_keras_mlp",
    "train_keras_mlp",
    "evaluate_keras_mlp",
]
