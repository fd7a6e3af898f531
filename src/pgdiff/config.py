"""
Configuration system for pgdiff using Pydantic.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


_HANDLER_NAME = "pgdiff"


class DatabaseConnection(BaseModel):
    """Database connection configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field(..., description="Database name")
    user: str = Field(..., description="Database user")
    password: str = Field("", description="Database password")
    ssl_mode: str = Field("prefer", description="SSL mode")
    connect_timeout: int = Field(30, description="Connection timeout in seconds")
    command_timeout: int = Field(60, description="Command timeout in seconds")

    def to_dsn(self) -> str:
        """Convert to PostgreSQL DSN string."""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/"
            f"{self.database}?sslmode={self.ssl_mode}"
        )


class DiffConfig(BaseModel):
    """Schema comparison settings."""

    table_schema: str = Field("public", description="Schema whose columns are compared")
    updatable_only: bool = Field(
        True, description="Only compare columns of updatable tables (skips views)"
    )
    default_varchar_length: int = Field(
        1024, description="Length used for varchar columns without a maximum length"
    )
    queue_size: int = Field(
        0, description="Rows buffered per database while comparing (0 = unbounded)"
    )
    check_order: bool = Field(
        True, description="Fail if a metadata stream is not sorted by key"
    )

    @field_validator("default_varchar_length")
    @classmethod
    def validate_length(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("default_varchar_length must be positive")
        return v

    @field_validator("queue_size")
    @classmethod
    def validate_queue_size(cls, v: int) -> int:
        if v < 0:
            raise ValueError("queue_size must not be negative")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING", description="Log level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Optional[str] = Field(None, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")


class PgDiffConfig(BaseSettings):
    """Main pgdiff configuration."""

    source: Optional[DatabaseConnection] = Field(
        None, description="Database whose schema is the desired state"
    )
    target: Optional[DatabaseConnection] = Field(
        None, description="Database the generated SQL would be applied to"
    )
    diff: DiffConfig = Field(
        default_factory=DiffConfig, description="Comparison settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PGDIFF_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "PgDiffConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            # Expand environment variables in the data
            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data

    def validate_config(self) -> None:
        """Check that both databases are configured."""
        missing = [name for name in ("source", "target") if getattr(self, name) is None]
        if missing:
            raise ConfigurationError(
                f"Missing database configuration: {', '.join(missing)}"
            )

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_none=True), f, default_flow_style=False, indent=2
            )


def setup_logging(config: LoggingConfig, debug: bool = False) -> None:
    """Configure the root logger from a LoggingConfig."""
    level = logging.DEBUG if debug else getattr(logging, config.level)
    formatter = logging.Formatter(config.format)

    if config.file:
        handler: logging.Handler = RotatingFileHandler(
            config.file, maxBytes=config.max_size, backupCount=config.backup_count
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.set_name(_HANDLER_NAME)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
            existing.close()
    root.addHandler(handler)
    root.setLevel(level)
