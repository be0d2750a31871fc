import logging
import sys
import tomllib
from pathlib import Path
from typing import Optional, Tuple, Type, Union

from pydantic import ValidationError as PydanticValidationError
from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)
from sqlalchemy.engine import URL

from autobk.error_handling import ConfigError

DEFAULT_CONFIG_FILE = "autobk.toml"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
REQUIRED_DB_KEYS = ("db_host", "db_name", "db_user", "db_pass")

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Database
    db_host: Optional[str] = None
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_pass: Optional[str] = None
    db_port: int = 3306
    db_driver: str = "mysql+pymysql"
    database_url: Optional[str] = None

    # Connection retry
    connect_retries: int = Field(default=3, ge=1)
    connect_retry_delay: float = Field(default=0.5, ge=0)

    # Backup trigger
    backup_command: Optional[str] = None
    backup_timeout: int = Field(default=300, ge=0)

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="AUTOBK_",
        env_file=".env",
        env_file_encoding="utf-8",
        toml_file=DEFAULT_CONFIG_FILE,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, dotenv_settings, TomlConfigSettingsSource(settings_cls))

    @model_validator(mode="after")
    def check_database_keys(self):
        if self.database_url:
            return self
        missing = [key for key in REQUIRED_DB_KEYS if getattr(self, key) is None]
        if missing:
            raise ValueError(f"Missing configuration key(s): {', '.join(missing)}")
        return self

    def get_database_url(self) -> Union[str, URL]:
        """Connection URL for the engine; credentials are escaped by URL.create."""
        if self.database_url:
            return self.database_url
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_pass,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


def _describe_errors(exc: PydanticValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def load_settings(config_file: Optional[str] = None, **overrides) -> Settings:
    """
    Load settings from the environment, .env and a TOML settings file.

    An explicit config_file must exist; the default autobk.toml is optional.
    """
    settings_cls = Settings
    if config_file is not None:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {config_file}")

        class FileSettings(Settings):
            model_config = SettingsConfigDict(toml_file=path)

        settings_cls = FileSettings

    try:
        settings = settings_cls(**overrides)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {_describe_errors(e)}") from e
    except (tomllib.TOMLDecodeError, UnicodeDecodeError, OSError) as e:
        raise ConfigError(f"Malformed configuration file: {e}") from e

    return settings


def setup_logging(settings: Settings, verbosity: int = 0) -> None:
    """Configure root logging; stdout is left to the presenter."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = min(logging.INFO, getattr(logging, settings.log_level.upper(), logging.WARNING))
    else:
        level = getattr(logging, settings.log_level.upper(), logging.WARNING)

    handlers = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        try:
            handlers.append(logging.FileHandler(settings.log_file))
        except OSError as e:
            raise ConfigError(f"Cannot open log file {settings.log_file}: {e}") from e

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    logger.debug(f"Logging configured at level {logging.getLevelName(level)}")
