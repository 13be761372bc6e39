"""Site settings assembled from every configuration layer.

Layers, strongest first:

1. keyword arguments (the CLI flags Click hands over)
2. ``SITECTL_*`` environment variables, ``__`` between nested keys
3. the site's ``sitectl.toml``
4. defaults on the section models

Pydantic Settings v2 does the merging; :class:`TomlSettingsSource` slots the
config file in between the environment and the defaults.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from sitectl.config.discovery import find_config
from sitectl.config.models import BuildConfig, DevelopConfig, PluginEntry, SiteConfig
from sitectl.errors import ConfigError

# Config file picked by from_cli(), read by the source while the model builds.
_active_config: ContextVar[Path | None] = ContextVar("sitectl_active_config", default=None)


def load_toml(path: Path) -> dict[str, Any]:
    """Parse *path*; a malformed file is a :class:`ConfigError`."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by one ``sitectl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None) -> None:
        super().__init__(settings_cls)
        self.path = path
        self._data = load_toml(path) if path is not None and path.is_file() else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


class SiteSettings(BaseSettings):
    """Frozen settings for one sitectl run.

    Attributes:
        context: Site root. Defaults to the directory holding
            ``sitectl.toml``, else the working directory.
        config_path: The config file that was read, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "SITECTL_",
        "env_nested_delimiter": "__",
    }

    context: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # Global CLI flags
    verbose: bool = False
    log_json: bool = False

    # sitectl.toml tables
    site: SiteConfig = Field(default_factory=SiteConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    develop: DevelopConfig = Field(default_factory=DevelopConfig)
    plugins: list[PluginEntry] = Field(default_factory=list)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _active_config.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        context: Path | None = None,
        **cli_flags: Any,
    ) -> SiteSettings:
        """Build settings for a CLI run.

        An explicit *config_path* wins over discovery; otherwise
        ``sitectl.toml`` is searched upwards from *context* (or the working
        directory). Raises :class:`ConfigError` for unreadable or invalid
        configuration.
        """
        if config_path:
            candidate = Path(config_path)
            toml_path = candidate if candidate.is_file() else None
        else:
            toml_path = find_config(context)

        if context is None:
            context = toml_path.parent if toml_path is not None else Path.cwd()

        token = _active_config.set(toml_path)
        try:
            return cls(context=context, config_path=toml_path, **cli_flags)
        except ValidationError as exc:
            msg = f"Invalid configuration: {exc}"
            raise ConfigError(msg) from exc
        finally:
            _active_config.reset(token)

    def resolve(self, path: str | Path) -> Path:
        """Absolute form of *path* taken relative to the site root."""
        return (self.context / path).resolve()
