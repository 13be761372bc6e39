"""Tests for the built-in metadata plugin."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitectl.app import App, BootstrapPhase
from sitectl.config.settings import SiteSettings

SITE_TOML = """\
[site]
name = "Field Notes"
url = "https://notes.example.org"
path_prefix = "/notes"

[site.metadata]
author = "R. Doe"
social = { mastodon = "@rdoe" }
"bad-key" = "skipped"
siteName = "not an override"
"""


@pytest.fixture
def configured_app(site_root: Path) -> App:
    (site_root / "sitectl.toml").write_text(SITE_TOML)
    return App(SiteSettings.from_cli(context=site_root))


class TestMetadataPlugin:
    @pytest.mark.asyncio
    async def test_defaults(self, app: App) -> None:
        await app.bootstrap(BootstrapPhase.CREATE_SCHEMA)
        result = await app.graphql("{ metadata { siteName siteUrl pathPrefix } }")
        assert result == {
            "data": {
                "metadata": {
                    "siteName": "my-site",
                    "siteUrl": "http://localhost",
                    "pathPrefix": "/",
                }
            }
        }

    @pytest.mark.asyncio
    async def test_site_metadata_fields(self, configured_app: App) -> None:
        try:
            await configured_app.bootstrap(BootstrapPhase.CREATE_SCHEMA)
            result = await configured_app.graphql("{ metadata { siteName author social } }")
        finally:
            await configured_app.shutdown()

        assert result == {
            "data": {
                "metadata": {
                    "siteName": "Field Notes",
                    "author": "R. Doe",
                    "social": {"mastodon": "@rdoe"},
                }
            }
        }

    @pytest.mark.asyncio
    async def test_invalid_and_reserved_keys_are_skipped(self, configured_app: App) -> None:
        try:
            await configured_app.bootstrap(BootstrapPhase.CREATE_SCHEMA)
        finally:
            await configured_app.shutdown()

        metadata_type = configured_app.schema.get_type("Metadata")
        assert set(metadata_type.fields) == {"siteName", "siteUrl", "pathPrefix", "author", "social"}
