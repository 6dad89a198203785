"""Plots for digits, learned weights and training curves (side effects: figures)."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import matplotlib.figure
import matplotlib.pyplot as plt

from digitgraph.dataset.mnist import IMAGE_SIZE


def _as_square_images(images: np.ndarray) -> np.ndarray:
    """Reshape flattened rows back into square images (pure function)."""
    images = np.asarray(images)
    if images.ndim == 3:
        return images

    side = int(round(np.sqrt(images.shape[-1])))
    if side * side != images.shape[-1]:
        raise ValueError(f"Cannot reshape rows of length {images.shape[-1]} into square images")
    return images.reshape(len(images), side, side)


def _grid(num_items: int, ncols: int) -> tuple[int, int]:
    ncols = max(1, min(ncols, num_items))
    nrows = -(-num_items // ncols)
    return nrows, ncols


def plot_digits(
    images: np.ndarray,
    labels: Sequence[int] | None = None,
    predictions: Sequence[int] | None = None,
    ncols: int = 8,
    cmap: str = 'gray',
) -> matplotlib.figure.Figure:
    """Plot digits in a grid, titled with labels and/or predictions.

    Args:
        images: (N, 784) flattened or (N, 28, 28) images
        labels: Optional true class ids
        predictions: Optional predicted class ids; mismatches are titled in red
        ncols: Images per row
        cmap: Colormap

    Returns:
        Matplotlib figure object
    """
    squares = _as_square_images(images)
    if len(squares) == 0:
        raise ValueError("No images to plot")

    nrows, ncols = _grid(len(squares), ncols)
    fig, axes = plt.subplots(nrows, ncols, figsize=(1.5 * ncols, 1.7 * nrows), squeeze=False)

    for index, ax in enumerate(axes.flat):
        ax.axis('off')
        if index >= len(squares):
            continue
        ax.imshow(squares[index], cmap=cmap)

        title_parts = []
        if labels is not None:
            title_parts.append(f"y={labels[index]}")
        if predictions is not None:
            title_parts.append(f"p={predictions[index]}")
        if title_parts:
            wrong = labels is not None and predictions is not None and labels[index] != predictions[index]
            ax.set_title(" ".join(title_parts), fontsize=8, color='red' if wrong else 'black')

    fig.tight_layout()
    return fig


def plot_weight_templates(
    weights: np.ndarray,
    ncols: int = 5,
    image_size: int = IMAGE_SIZE,
) -> matplotlib.figure.Figure:
    """Show each column of a first-layer weight matrix as an image.

    For softmax regression (weights of shape (784, 10)) each panel is the
    template the model matches against one digit class.

    Args:
        weights: (image_size**2, k) weight matrix
        ncols: Panels per row
        image_size: Side length of the input images

    Returns:
        Matplotlib figure object
    """
    weights = np.asarray(weights)
    if weights.ndim != 2 or weights.shape[0] != image_size * image_size:
        raise ValueError(
            f"weights must have shape ({image_size * image_size}, k), got {weights.shape}")

    num_units = weights.shape[1]
    nrows, ncols = _grid(num_units, ncols)
    fig, axes = plt.subplots(nrows, ncols, figsize=(2 * ncols, 2 * nrows), squeeze=False)

    limit = float(np.abs(weights).max()) or 1.0
    for index, ax in enumerate(axes.flat):
        ax.axis('off')
        if index >= num_units:
            continue
        template = weights[:, index].reshape(image_size, image_size)
        ax.imshow(template, cmap='seismic', vmin=-limit, vmax=limit)
        ax.set_title(str(index), fontsize=9)

    fig.tight_layout()
    return fig


def plot_history(
    history: dict[str, list[float]],
    keys: Sequence[str] | None = None,
    figsize: tuple[float, float] = (10, 4),
) -> matplotlib.figure.Figure:
    """Plot training curves, one panel per metric (loss, accuracy, ...).

    train_x and val_x curves share the panel for metric x.

    Args:
        history: Metrics history from train_loop / train_keras_mlp
        keys: History keys to include (default: all)
        figsize: Figure size

    Returns:
        Matplotlib figure object
    """
    keys = list(keys) if keys is not None else list(history.keys())
    missing = [k for k in keys if k not in history]
    if missing:
        raise ValueError(f"Keys not in history: {missing}. Available: {list(history.keys())}")
    if not keys:
        raise ValueError("No history keys to plot")

    panels: dict[str, list[str]] = {}
    for key in keys:
        metric = key.split('_', 1)[1] if key.startswith(('train_', 'val_')) else key
        panels.setdefault(metric, []).append(key)

    fig, axes = plt.subplots(1, len(panels), figsize=figsize, squeeze=False)
    for ax, (metric, panel_keys) in zip(axes.flat, panels.items()):
        for key in panel_keys:
            epochs = np.arange(1, len(history[key]) + 1)
            ax.plot(epochs, history[key], marker='o', label=key)
        ax.set_title(metric)
        ax.set_xlabel('epoch')
        ax.legend()
        ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def save_figure(
    fig: matplotlib.figure.Figure,
    path: str | Path,
    dpi: int = 150,
    close: bool = True
) -> None:
    """Save matplotlib figure to disk (side effect).

    Args:
        fig: Matplotlib figure
        path: Output path
        dpi: Resolution
        close: Whether to close figure after saving
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig.savefig(path, dpi=dpi, bbox_inches='tight')
    print(f"Saved figure to: {path}")

    if close:
        plt.close(fig)
