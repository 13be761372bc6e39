"""Shared Jinja2 template loading with per-site override support."""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader, StrictUndefined


def build_template_environment(group: str, *, site_root: Path | None = None) -> Environment:
    """Build a Jinja2 environment with user overrides before packaged defaults.

    User overrides are loaded from ``.sitectl/templates/`` inside the site.
    Both a namespaced directory (for example ``.sitectl/templates/codegen/``)
    and the shared root are supported.
    """

    loaders: list[BaseLoader] = []
    if site_root is not None:
        template_root = site_root / ".sitectl" / "templates"
        loaders.append(FileSystemLoader([str(template_root / group), str(template_root)]))

    loaders.append(PackageLoader("sitectl", f"templates/{group}"))
    return Environment(
        loader=ChoiceLoader(loaders),
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
