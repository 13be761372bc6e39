"""Locate a site's ``sitectl.toml``.

``SITECTL_CONFIG`` names the file outright. Otherwise the search starts in
the given directory and climbs towards the filesystem root, the way git
finds ``.git/``.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "sitectl.toml"
CONFIG_ENV_VAR = "SITECTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or ``None``.

    A ``SITECTL_CONFIG`` that points at a missing file disables discovery.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
