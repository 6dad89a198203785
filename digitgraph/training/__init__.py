"""Training utilities for graph-mode TensorFlow classifiers.

Session-based training library with:
- Immutable training configuration and metrics
- Pure metric functions
- Feed-dict training loop with TensorBoard summaries
- Saver-based checkpoint management
- NumPy prediction
"""

from digitgraph.training.types import (
    TrainingConfig,
    Metrics,
    create_metrics,
)

from digitgraph.training.metrics import (
    average_metrics,
    weighted_average_metrics,
    combine_metrics,
    prefix_metrics,
    format_metrics,
    accumulate_history,
)

from digitgraph.training.checkpoint import (
    save_checkpoint,
    resolve_checkpoint,
    restore_checkpoint,
    save_metrics_history,
    load_metrics_history,
)

from digitgraph.training.session import (
    create_session,
    make_feed_dict,
    open_summary_writer,
    write_scalars,
    train_step,
    train_epoch,
    evaluate,
    predict,
    train_loop,
)

__all__ = [
    # Types
    "TrainingConfig",
    "Metrics",
    "create_metrics",
    # Metrics
    "average_metrics",
    "weighted_average_metrics",
    "combine_metrics",
    "prefix_metrics",
    "format_metrics",
    "accumulate_history",
    # Checkpoints
    "save_checkpoint",
    "resolve_checkpoint",
    "restore_checkpoint",
    "save_metrics_history",
    "load_metrics_history",
    # Session loop
    "create_session",
    "make_feed_dict",
    "open_summary_writer",
    "write_scalars",
    "train_step",
    "train_epoch",
    "evaluate",
    "predict",
    "train_loop",
]
