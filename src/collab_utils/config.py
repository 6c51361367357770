"""Configuration settings for collab-utils using pydantic-settings."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from collab_utils.exceptions import ConfigError
from collab_utils.mailservice.config import SMTPConfig


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source that loads configuration from a YAML file.

    Looks for config file in the following order:
    1. COLLAB_CONFIG_FILE environment variable
    2. ./collab.yaml (current directory)
    3. $XDG_CONFIG_HOME/collab-utils/config.yaml (defaults to ~/.config)
    """

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get field value from YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML config."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load and cache YAML config file."""
        if not hasattr(self, "_yaml_data"):
            self._yaml_data = self._read_yaml_file()
        return self._yaml_data

    def _read_yaml_file(self) -> dict[str, Any]:
        """Read YAML config from file with readable error messages."""
        xdg_config = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        config_paths = [
            os.environ.get("COLLAB_CONFIG_FILE"),
            Path.cwd() / "collab.yaml",
            Path(xdg_config) / "collab-utils" / "config.yaml",
        ]

        for path in config_paths:
            if not path:
                continue
            path_obj = Path(path)
            if not path_obj.exists():
                continue
            try:
                with open(path_obj) as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                mark = getattr(e, "problem_mark", None)
                raise ConfigError(
                    f"Invalid YAML syntax: {getattr(e, 'problem', None) or e}",
                    file_path=str(path_obj),
                    line=mark.line + 1 if mark else None,
                    col=mark.column + 1 if mark else None,
                ) from e
            except PermissionError as e:
                raise ConfigError(
                    "Cannot read config file, permission denied",
                    file_path=str(path_obj),
                ) from e
            except OSError as e:
                raise ConfigError(f"Cannot read config file: {e}", file_path=str(path_obj)) from e
            if data is None:
                return {}
            if not isinstance(data, dict):
                raise ConfigError("Top level must be a mapping", file_path=str(path_obj))
            return data

        return {}


def _parse_validation_error(error: ValidationError) -> str:
    """Convert Pydantic ValidationError to user-friendly message."""
    errors = error.errors()
    if not errors:
        return "Unknown validation error"

    err = errors[0]
    loc = err.get("loc", ())
    field_name = ".".join(str(part) for part in loc)
    if err.get("type") == "missing" and loc:
        return f"Missing required field '{field_name}'"
    if loc:
        return f"Invalid value for '{field_name}': {err.get('msg', '')}"
    return str(error)


class Settings(BaseSettings):
    """Application settings loaded from environment variables with COLLAB_ prefix.

    Nested values use a double underscore, e.g. COLLAB_EMAIL__SERVER.

    YAML configuration file:
        email:
          server: "smtp.example.com"
          port: 587
          connection_security: "STARTTLS"
          enable_smtp_auth: true
          username: "notifications@example.com"
          feedback_email: "notifications@example.com"

    The SMTP password is best supplied through COLLAB_EMAIL__PASSWORD.
    """

    model_config = SettingsConfigDict(env_prefix="COLLAB_", env_nested_delimiter="__")

    email: SMTPConfig = Field(default_factory=SMTPConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


def get_settings_eager() -> Settings:
    """Load settings, failing fast with a readable message.

    Raises:
        ConfigError: If the configuration file or values are invalid.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(_parse_validation_error(e)) from e
