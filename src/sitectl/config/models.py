"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, sitectl.toml only contains overrides.
A fresh site needs nothing at all; ``[site] name`` is the usual first override.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# --- sitectl.toml sections ---


class SiteConfig(BaseModel):
    """[site] section."""

    model_config = {"frozen": True}

    name: str = "my-site"
    url: str = "http://localhost"
    path_prefix: str = "/"
    metadata: dict[str, Any] = Field(default_factory=dict)


class BuildConfig(BaseModel):
    """[build] section."""

    model_config = {"frozen": True}

    output_dir: str = "dist"
    tmp_dir: str = ".sitectl/tmp"


class DevelopConfig(BaseModel):
    """[develop] section."""

    model_config = {"frozen": True}

    host: str = "127.0.0.1"
    port: int = 8080
    live_artifact: str = "now.js"


class PluginEntry(BaseModel):
    """One ``[[plugins]]`` table.

    ``use`` is either ``"package.module:callable"`` or the name of a plugin
    published under the ``sitectl.plugins`` entry-point group.
    """

    model_config = {"frozen": True}

    use: str
    options: dict[str, Any] = Field(default_factory=dict)

    @property
    def plugin_id(self) -> str:
        return self.use
