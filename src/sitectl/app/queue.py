"""Asset queue: files referenced by content that the build must copy."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sitectl.app.core import App


class AssetQueue:
    """Deduplicated, insertion-ordered set of asset paths under the site root."""

    def __init__(self, app: App) -> None:
        self.app = app
        self._assets: dict[Path, None] = {}

    def add(self, path: str | Path) -> Path:
        resolved = self.app.config.resolve(path)
        self._assets[resolved] = None
        return resolved

    @property
    def assets(self) -> list[Path]:
        return list(self._assets)

    def __len__(self) -> int:
        return len(self._assets)
