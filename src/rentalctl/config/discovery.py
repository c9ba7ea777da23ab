"""Config file discovery.

Walk-up finder locates rentalctl.toml from the working directory upward.
``RENTALCTL_CONFIG`` and the ``--config`` CLI flag override discovery.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "rentalctl.toml"
CONFIG_ENV_VAR = "RENTALCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest rentalctl.toml at or above *start* (default: cwd).

    When ``RENTALCTL_CONFIG`` is set, it wins outright; a dangling value
    yields None rather than falling back to the walk.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
