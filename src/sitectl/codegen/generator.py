"""Code generator for the files the client runtime imports.

Two artifacts are emitted into the build's tmp directory:

- ``routes.js``: the route table as an ES module.
- ``now.js``: a timestamp module; rewriting it is the cheap live-reload path.

``generate()`` writes everything; ``generate(target)`` rewrites one artifact.
File I/O runs in a worker thread so the event loop keeps serving clients.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import TemplateError

from sitectl.codegen.templates import build_template_environment
from sitectl.errors import GenerationError

if TYPE_CHECKING:
    from sitectl.app import App

logger = logging.getLogger(__name__)


class CodeGenerator:
    """Renders codegen templates for one :class:`~sitectl.app.App`."""

    def __init__(self, app: App) -> None:
        self.app = app
        self.env = build_template_environment("codegen", site_root=app.config.context)
        self._artifacts: dict[str, Callable[[], dict[str, Any]]] = {
            "routes.js": self._routes_context,
            "now.js": self._now_context,
        }
        self.generations = 0

    @property
    def out_dir(self) -> Path:
        return self.app.config.resolve(self.app.config.build.tmp_dir)

    @property
    def artifacts(self) -> list[str]:
        return list(self._artifacts)

    async def generate(self, target: str | None = None) -> list[Path]:
        """Write all artifacts, or only *target*; return the written paths."""
        targets = [target] if target is not None else self.artifacts
        unknown = [name for name in targets if name not in self._artifacts]
        if unknown:
            msg = f"Unknown artifact {unknown[0]!r}"
            raise GenerationError(msg, target=unknown[0])

        try:
            rendered = {name: self._render(name) for name in targets}
            written = await asyncio.to_thread(self._write, rendered)
        except (OSError, TemplateError) as exc:
            msg = f"Could not generate {target or 'artifacts'}: {exc}"
            raise GenerationError(msg, target=target) from exc

        self.generations += 1
        logger.debug("Generated %s", ", ".join(targets))
        return written

    def _render(self, name: str) -> str:
        context = self._artifacts[name]()
        return self.env.get_template(f"{name}.j2").render(**context)

    def _write(self, rendered: dict[str, str]) -> list[Path]:
        out_dir = self.out_dir
        out_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for name, content in rendered.items():
            path = out_dir / name
            path.write_text(content, encoding="utf-8")
            written.append(path)
        return written

    def _routes_context(self) -> dict[str, Any]:
        if self.app.routes is None:
            msg = "Route table has not been built"
            raise GenerationError(msg, target="routes.js")
        return {
            "routes": self.app.routes.pages,
            "base": self.app.config.site.path_prefix,
        }

    def _now_context(self) -> dict[str, Any]:
        return {"now": int(time.time() * 1000)}
