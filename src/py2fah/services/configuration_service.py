"""
Configuration service for py2fah client settings.

Settings come from an optional YAML file and environment overrides:

    connection:
      host: 192.168.1.10
      port: 36330
      connect_timeout: 2.0
      io_timeout: 10.0
    logging:
      level: INFO

Environment variables FAH_HOST, FAH_PORT and FAH_LOG_LEVEL take precedence
over the file. Settings are read only; nothing is written back.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from py2fah.core.errors import ConfigurationError, ErrorCodes
from py2fah.models.connection import ConnectionConfig

logger = logging.getLogger(__name__)

ENV_HOST = "FAH_HOST"
ENV_PORT = "FAH_PORT"
ENV_LOG_LEVEL = "FAH_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_CONNECTION_KEYS = ("host", "port", "connect_timeout", "io_timeout")


@dataclass
class ClientSettings:
    """
    Settings for a py2fah client.

    Attributes:
        connection: Where and how to connect
        log_level: Root logging level name
    """

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    log_level: str = "INFO"


def _section(data: Mapping[str, Any], name: str, source: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"'{name}' must be a mapping in {source}",
            setting_name=name,
            error_code=ErrorCodes.CONFIG_INVALID
        )
    return section


def settings_from_dict(data: Mapping[str, Any], source: str = "settings") -> ClientSettings:
    """
    Build ClientSettings from a parsed settings mapping.

    Raises:
        ConfigurationError: If a section or value is invalid
    """
    connection = _section(data, "connection", source)
    unknown = set(connection) - set(_CONNECTION_KEYS)
    if unknown:
        raise ConfigurationError(
            f"Unknown connection settings in {source}: {', '.join(sorted(unknown))}",
            setting_name="connection",
            error_code=ErrorCodes.CONFIG_INVALID
        )

    config = ConnectionConfig(**connection)
    valid, errors = config.validate()
    if not valid:
        raise ConfigurationError(
            f"Invalid connection settings in {source}: {', '.join(errors)}",
            setting_name="connection",
            error_code=ErrorCodes.CONFIG_INVALID
        )

    level = str(_section(data, "logging", source).get("level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log level in {source}: {level}",
            setting_name="logging.level",
            error_code=ErrorCodes.CONFIG_INVALID,
            suggestions=[f"Use one of {', '.join(LOG_LEVELS)}"]
        )

    return ClientSettings(connection=config, log_level=level)


def apply_environment(settings: ClientSettings,
                      environ: Optional[Mapping[str, str]] = None) -> ClientSettings:
    """
    Apply FAH_HOST, FAH_PORT and FAH_LOG_LEVEL overrides.

    Raises:
        ConfigurationError: If FAH_PORT is not a number or the level is unknown
    """
    environ = os.environ if environ is None else environ
    connection = settings.connection
    log_level = settings.log_level

    if environ.get(ENV_HOST):
        connection = replace(connection, host=environ[ENV_HOST])

    if environ.get(ENV_PORT):
        try:
            connection = replace(connection, port=int(environ[ENV_PORT]))
        except ValueError as e:
            raise ConfigurationError(
                f"{ENV_PORT} must be a port number, got {environ[ENV_PORT]!r}",
                setting_name=ENV_PORT,
                error_code=ErrorCodes.CONFIG_INVALID,
                cause=e
            ) from e

    if environ.get(ENV_LOG_LEVEL):
        log_level = environ[ENV_LOG_LEVEL].upper()
        if log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"{ENV_LOG_LEVEL} is not a log level: {environ[ENV_LOG_LEVEL]!r}",
                setting_name=ENV_LOG_LEVEL,
                error_code=ErrorCodes.CONFIG_INVALID
            )

    valid, errors = connection.validate()
    if not valid:
        raise ConfigurationError(
            f"Invalid connection settings from environment: {', '.join(errors)}",
            setting_name="connection",
            error_code=ErrorCodes.CONFIG_INVALID
        )

    return ClientSettings(connection=connection, log_level=log_level)


def load_settings(path: Optional[Union[str, Path]] = None,
                  environ: Optional[Mapping[str, str]] = None) -> ClientSettings:
    """
    Load client settings.

    Args:
        path: YAML settings file. None or a missing file means defaults.
        environ: Environment mapping (default: os.environ)

    Returns:
        ClientSettings with environment overrides applied

    Raises:
        ConfigurationError: If the file cannot be read or is invalid

    Example:
        >>> settings = load_settings("fah_client.yaml")
        >>> connection = FAHConnection(settings.connection)
    """
    settings = ClientSettings()

    if path is not None:
        path = Path(path)
        if path.exists():
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(
                    f"Failed to read settings file {path}: {e}",
                    setting_name=str(path),
                    error_code=ErrorCodes.CONFIG_INVALID,
                    cause=e
                ) from e

            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Settings file {path} must contain a mapping",
                    setting_name=str(path),
                    error_code=ErrorCodes.CONFIG_INVALID
                )
            settings = settings_from_dict(data, source=str(path))
            logger.info(f"Loaded settings from {path}")
        else:
            logger.info(f"No settings file at {path}, using defaults")

    return apply_environment(settings, environ)


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ConfigurationError(
            f"Invalid log level: {level}",
            setting_name="logging.level",
            error_code=ErrorCodes.CONFIG_INVALID
        )

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
