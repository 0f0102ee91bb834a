"""Locate the ``entityctl.toml`` that governs the current directory.

``ENTITYCTL_CONFIG`` pins the file explicitly; otherwise the nearest
``entityctl.toml`` in the directory or any of its ancestors wins. The
``--config`` flag bypasses discovery entirely (see
:meth:`EntitySettings.from_cli`).
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "entityctl.toml"
CONFIG_ENV_VAR = "ENTITYCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file for *start* (default: cwd), or None.

    A set ``ENTITYCTL_CONFIG`` that names a missing file disables
    discovery rather than falling back to the walk-up search.
    """
    pinned = os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        path = Path(pinned)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
