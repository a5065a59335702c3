# region Docstring
"""
clipcore.config.factory
Where clipdeck settings values come from.
Overview:
- FactoryBaseSettings is the base of every clipdeck settings class. A value is
    taken from the first source that defines it:
        1. process environment (HISTORY_MAX_ITEMS, SEARCH_MODE, OCR_ENABLED, ...)
        2. APP_ROOT/.env
        3. APP_ROOT/clipdeck.{ENVIRONMENT}.yaml, then APP_ROOT/clipdeck.yaml
        4. keyword arguments given to the class, then field defaults
- get_settings() hands out one cached instance per settings class, so the CLI, the
    watcher and the services agree on the same values for a whole run.
Design notes:
- Missing YAML files are simply skipped by pydantic-settings.
- Comma-separated environment values (CLIPBOARD_WATCHER_THUMBNAIL_SIZE="160,160",
    CLIPBOARD_WATCHER_IGNORED_WINDOWS="snippingtool,explorer") are marked NoDecode in
    clipcore.config, so their own validators parse the raw string.
- Tests that change the environment call reset_settings() before get_settings().
"""
# endregion
# region Imports
from functools import lru_cache
from pathlib import Path
from typing import Type, TypeVar

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .base import APP_ENV, APP_ROOT

T = TypeVar("T", bound=BaseSettings)

# later files win, so the environment-specific file comes last
YAML_FILES: list[Path] = [
    APP_ROOT / "clipdeck.yaml",
    APP_ROOT / f"clipdeck.{APP_ENV}.yaml",
]


# endregion
# region FactoryBaseSettings Class
class FactoryBaseSettings(BaseSettings):
    """clipdeck settings base: env > .env > clipdeck YAML files > kwargs."""

    model_config = SettingsConfigDict(
        env_file=APP_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=YAML_FILES),
            init_settings,
        )


# endregion
# region Factory
@lru_cache
def get_settings(settings_cls: Type[T]) -> T:
    """Shared instance of ``settings_cls``, read from the sources once."""
    return settings_cls()


def reset_settings() -> None:
    """Forget cached instances so the next get_settings() re-reads every source."""
    get_settings.cache_clear()


# endregion
