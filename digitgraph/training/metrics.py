"""Aggregating per-step and per-batch metrics into per-epoch numbers (pure functions)."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from digitgraph.training.types import Metrics


def combine_metrics(
    metrics_list: list[Metrics],
    combine_fn: Callable[[list[float]], float] = lambda x: sum(x) / len(x)
) -> Metrics:
    """Reduce each key across a list of Metrics with combine_fn (pure function).

    Keys are taken from the first entry; every entry must carry them.

    Args:
        metrics_list: Per-step or per-batch metrics
        combine_fn: Reduction over one key's values (default: mean)

    Returns:
        Metrics with one reduced value per key, empty for an empty list
    """
    if not metrics_list:
        return Metrics(values={})
    return Metrics(values={
        key: float(combine_fn([m[key] for m in metrics_list]))
        for key in metrics_list[0].keys()
    })


def average_metrics(metrics_list: list[Metrics]) -> Metrics:
    """Unweighted mean, one vote per step (pure function)."""
    return combine_metrics(metrics_list)


def weighted_average_metrics(
    metrics_list: list[Metrics],
    weights: Sequence[float],
) -> Metrics:
    """Mean weighted per entry, e.g. by batch size (pure function).

    With batch sizes as weights, the result equals the metric over the whole
    split, so a short final batch does not count as a full one.

    Raises:
        ValueError: On a length mismatch or non-positive total weight
    """
    if len(metrics_list) != len(weights):
        raise ValueError(
            f"Got {len(metrics_list)} metrics but {len(weights)} weights")
    if not metrics_list:
        return Metrics(values={})

    weights = np.asarray(weights, dtype=np.float64)
    if weights.sum() <= 0:
        raise ValueError(f"weights must sum to a positive value, got {weights.sum()}")

    return combine_metrics(
        metrics_list,
        combine_fn=lambda values: np.average(values, weights=weights),
    )


def prefix_metrics(metrics: Metrics, prefix: str) -> Metrics:
    """loss -> train_loss and so on (pure function)."""
    return Metrics(values={f"{prefix}{k}": v for k, v in metrics.values.items()})


def format_metrics(metrics: Metrics, precision: int = 4) -> str:
    """One log line: 'loss: 0.1234 | accuracy: 0.9800'."""
    return " | ".join(f"{k}: {v:.{precision}f}" for k, v in metrics.values.items())


def accumulate_history(
    history: dict[str, list[float]],
    metrics: Metrics
) -> dict[str, list[float]]:
    """Append one epoch's metrics to a history dict (pure function - returns a new dict).

    Keys seen for the first time start a new list.
    """
    updated = {key: list(values) for key, values in history.items()}
    for key, value in metrics.values.items():
        updated.setdefault(key, []).append(value)
    return updated
