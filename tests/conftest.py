"""Shared pytest fixtures and test helpers for sitectl tests."""

from __future__ import annotations

import logging
import sys
import types
from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from click.testing import CliRunner

from sitectl.app import App
from sitectl.config.settings import SiteSettings


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep env overrides and logging handlers from leaking between tests."""
    for var in ("SITECTL_CONFIG", "SITECTL_VERBOSE", "SITECTL_LOG_JSON"):
        monkeypatch.delenv(var, raising=False)

    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    site_logger = logging.getLogger("sitectl")
    site_level = site_logger.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    site_logger.setLevel(site_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Empty site directory; tests write ``sitectl.toml`` into it as needed."""
    return tmp_path


@pytest.fixture
def settings(site_root: Path) -> SiteSettings:
    return SiteSettings.from_cli(context=site_root)


@pytest_asyncio.fixture
async def app(settings: SiteSettings) -> AsyncIterator[App]:
    """An un-bootstrapped App that is shut down after the test."""
    instance = App(settings)
    try:
        yield instance
    finally:
        await instance.shutdown()


@pytest.fixture
def plugin_module(monkeypatch: pytest.MonkeyPatch) -> Callable[..., str]:
    """Install an in-memory module so ``[[plugins]] use = "mod:attr"`` resolves.

    Returns a factory: ``plugin_module("name", setup=fn)`` registers the
    module and returns its import name.
    """

    def factory(name: str, **attrs: Any) -> str:
        module = types.ModuleType(name)
        for attr, value in attrs.items():
            setattr(module, attr, value)
        monkeypatch.setitem(sys.modules, name, module)
        return name

    return factory


@pytest.fixture
def local_plugin(site_root: Path) -> Callable[[str, str], Path]:
    """Factory writing ``.sitectl/plugins/<name>.py`` files into the site."""

    def factory(name: str, source: str) -> Path:
        plugin_dir = site_root / ".sitectl" / "plugins"
        plugin_dir.mkdir(parents=True, exist_ok=True)
        path = plugin_dir / f"{name}.py"
        path.write_text(source, encoding="utf-8")
        return path

    return factory
