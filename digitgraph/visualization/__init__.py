"""Visualization helpers.

Plotting lives in digitgraph.visualization.plotting; import it after calling
configure_matplotlib_backend so the backend choice takes effect.
"""

from .backend import configure_matplotlib_backend, display_available, is_headless

__all__ = [
    'configure_matplotlib_backend',
    'display_available',
    'is_headless',
]
