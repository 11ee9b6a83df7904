"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (MISMOKB__SECTION__KEY)
3. Project config (<root>/.mismokb/config.yaml)
4. Global config (~/.config/mismokb/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from mismokb.config.models import (
    DatabaseConfig,
    IngestConfig,
    LegacyConfig,
    LoggingConfig,
    MismoKBConfig,
    NarrativeConfig,
    StoreConfig,
)
from mismokb.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/mismokb/config.yaml").expanduser()
PROJECT_DIR_NAME = ".mismokb"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class bound to one YAML snapshot."""

    class MismoKBSettings(BaseSettings):
        """Root config. Env vars: MISMOKB__LOGGING__LEVEL, MISMOKB__STORE__DB_PATH, etc."""

        model_config = SettingsConfigDict(
            env_prefix="MISMOKB__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        store: StoreConfig = StoreConfig()
        ingest: IngestConfig = IngestConfig()
        database: DatabaseConfig = DatabaseConfig()
        narrative: NarrativeConfig = NarrativeConfig()
        legacy: LegacyConfig = LegacyConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return MismoKBSettings


def load_config(
    project_root: Path | None = None,
    config_file: Path | None = None,
    **kwargs: Any,
) -> MismoKBConfig:
    """Load config: defaults < global yaml < project yaml < env vars < kwargs.

    Args:
        project_root: Directory holding .mismokb/config.yaml.
                      Defaults to current working directory.
        config_file: Explicit YAML file used instead of the project config.
                     Unlike the implicit files it must exist.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit config file, invalid YAML syntax
            or validation errors.
    """
    project_root = project_root or Path.cwd()

    if config_file is not None:
        if not config_file.is_file():
            raise ConfigError.file_not_found(str(config_file))
        project_yaml = _load_yaml(config_file)
    else:
        project_yaml = _load_yaml(project_root / PROJECT_DIR_NAME / "config.yaml")

    yaml_config = _deep_merge(_load_yaml(GLOBAL_CONFIG_PATH), project_yaml)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return MismoKBConfig.model_validate(settings.model_dump())


def resolve_db_path(config: MismoKBConfig, project_root: Path | None = None) -> Path:
    """Absolute path of the store database, relative paths anchored at project_root."""
    path = Path(config.store.db_path).expanduser()
    if not path.is_absolute():
        path = (project_root or Path.cwd()) / path
    return path
