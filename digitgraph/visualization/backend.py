"""Pick the matplotlib backend before pyplot is imported.

The example scripts only ever write figures to files, and they mostly run on
training machines without a display. Precedence, highest first:

1. MPLBACKEND, if the user exported one
2. DIGITGRAPH_HEADLESS: truthy forces Agg, falsy keeps matplotlib's default
3. Auto-detection: a Linux/BSD session with neither DISPLAY nor
   WAYLAND_DISPLAY (ssh, CI, containers) gets Agg
"""

from __future__ import annotations

import os
import sys

HEADLESS_ENV = 'DIGITGRAPH_HEADLESS'
_TRUTHY = frozenset({'1', 'true', 'yes', 'on'})
_FALSY = frozenset({'0', 'false', 'no', 'off', ''})


def _headless_flag() -> bool | None:
    """True/False when DIGITGRAPH_HEADLESS says so, None when unset or unrecognized."""
    value = os.environ.get(HEADLESS_ENV)
    if value is None:
        return None
    value = value.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return None


def display_available() -> bool:
    """Whether an interactive window could be opened in this session."""
    if not sys.platform.startswith(('linux', 'freebsd', 'openbsd')):
        return True
    return bool(os.environ.get('DISPLAY') or os.environ.get('WAYLAND_DISPLAY'))


def is_headless() -> bool:
    """True when figures can only be written to files."""
    backend = os.environ.get('MPLBACKEND')
    if backend is not None:
        return backend.lower() == 'agg'
    flag = _headless_flag()
    if flag is not None:
        return flag
    return not display_available()


def configure_matplotlib_backend() -> str:
    """Export MPLBACKEND=Agg when plotting has to be file-only.

    Must be called before the first `import matplotlib.pyplot`.

    Returns:
        The backend now in effect, or 'default' when matplotlib picks its own

    Example:
        >>> # ssh session, no X forwarding
        >>> configure_matplotlib_backend()
        'Agg'
    """
    explicit = os.environ.get('MPLBACKEND')
    if explicit is not None:
        return explicit

    if not is_headless():
        return 'default'

    os.environ['MPLBACKEND'] = 'Agg'
    print("Plotting with the Agg backend (figures are only saved to files)")
    return 'Agg'
