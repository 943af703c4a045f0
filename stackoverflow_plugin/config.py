"""Runtime configuration based on environment variables and the plugin config file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Sequence

from pydantic import HttpUrl, SecretStr, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from stackoverflow_plugin.services.exceptions import ConfigurationError

PLUGIN_NAME = "stackoverflow"
CONFIG_FILE_NAME = "config.toml"
# Stack Exchange application key registered for this plugin; not a secret.
DEFAULT_APP_KEY = "4Muhe4yLUPuS2xtKQzlRhQ(("


def config_search_paths(plugin_name: str = PLUGIN_NAME) -> list[Path]:
    """Return the launcher plugin directories searched for a config file, highest priority first."""

    return [
        Path.home() / ".local" / "share" / "pop-launcher" / "plugins" / plugin_name / CONFIG_FILE_NAME,
        Path("/etc/pop-launcher/plugins") / plugin_name / CONFIG_FILE_NAME,
        Path("/usr/lib/pop-launcher/plugins") / plugin_name / CONFIG_FILE_NAME,
    ]


def find_config_file(candidates: Sequence[Path] | None = None) -> Path | None:
    for path in candidates if candidates is not None else config_search_paths():
        if path.is_file():
            return path
    return None


class PluginSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    access_token: SecretStr
    app_key: str = DEFAULT_APP_KEY
    api_base_url: HttpUrl = Field(default="https://api.stackexchange.com/2.3")
    site: str = Field(default="stackoverflow", min_length=1)
    page_size: int = Field(default=8, ge=1, le=100)
    request_timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    query_prefix: str = Field(default="stk ", min_length=1)
    description_mode: Literal["tags", "link"] = "tags"
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("access_token")
    @classmethod
    def _token_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("access_token must not be empty")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        config_file = find_config_file()
        if config_file is not None:
            sources.append(TomlConfigSettingsSource(settings_cls, toml_file=config_file))
        return tuple(sources)


def load_settings(**overrides) -> PluginSettings:
    """Build settings, converting validation and parse failures into ``ConfigurationError``."""

    try:
        return PluginSettings(**overrides)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) or "<root>" for err in exc.errors())
        raise ConfigurationError(f"Invalid plugin configuration ({fields}): {exc}") from exc
    except (OSError, ValueError) as exc:
        # Unreadable or malformed TOML config file.
        raise ConfigurationError(f"Failed to read plugin configuration: {exc}") from exc


@lru_cache
def get_settings() -> PluginSettings:
    """Return cached settings instance."""

    return load_settings()


__all__ = [
    "PluginSettings",
    "config_search_paths",
    "find_config_file",
    "get_settings",
    "load_settings",
]
