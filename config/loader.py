"""Configuration file loader and validator.

Handles reading, formatting, and validating settings from the INI configuration file.
Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from models.config_models import Config
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField
else:
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "Config",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Model-name prefixes routed to a dedicated provider. Anything else goes to Gemini.
KNOWN_MODEL_PREFIXES: Final[tuple[str, ...]] = ("models/gemini", "gemini", "grok", "gpt", "o1", "o3", "o4", "claude")

PORT_RANGE: Final[range] = range(1, 65536)


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    Reads the INI file, coerces each value to the type of the matching Config field,
    applies command-line overrides and validates the result.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, used in error messaging.
        **args: Command-line overrides (`debug`, `host`, `port`, `model`). None values are ignored.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str,
        script_name: str,
        **args: Any,
    ) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        self._convert_settings(parser)
        self._apply_overrides(args)
        self._validate_settings()

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Copy every defined INI value onto the Config object, coerced to the field type."""
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Skipping undefined section: '%s'", section.name)
                continue
            self._convert_section_field(parser, formatter, section)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        for key in fields(getattr(self.config, section.name)):
            if not parser.has_option(section.name, key.name):
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _apply_overrides(self, args: dict[str, Any]) -> None:
        """Apply command-line argument overrides on top of the file settings."""
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
        if args.get("host") is not None:
            self.config.SERVER.HOST = str(args["host"])
        if args.get("port") is not None:
            self.config.SERVER.PORT = int(args["port"])
        if args.get("model") is not None:
            self.config.TRANSLATION.MODEL = str(args["model"])

    def _validate_settings(self) -> None:
        """Validate server, cache and translation settings.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        try:
            self._validate_port("SERVER", "PORT")
            self._validate_minimum("CACHE", "MEMORY_LIMIT", 1)
            self._validate_minimum("CACHE", "TTL_DAYS", 1)
            self._inspect_model_prefix("TRANSLATION", "MODEL")
        except (AttributeError, TypeError) as err:
            msg: str = f"Invalid configuration value: {err}"
            raise ConfigFormatError(msg) from None

    def _validate_port(self, section_name: str, key_name: str) -> None:
        value: int = getattr(getattr(self.config, section_name), key_name)
        if value not in PORT_RANGE:
            msg: str = f"'{section_name}.{key_name}' must be between 1 and 65535: {value}"
            raise ConfigValueError(msg)

    def _validate_minimum(self, section_name: str, key_name: str, minimum: int) -> None:
        value: int = getattr(getattr(self.config, section_name), key_name)
        if value < minimum:
            msg: str = f"'{section_name}.{key_name}' must be {minimum} or greater: {value}"
            raise ConfigValueError(msg)

    def _inspect_model_prefix(self, section_name: str, key_name: str) -> None:
        """Warn about model names that no provider claims. Such models are sent to the default provider."""
        value: str = getattr(getattr(self.config, section_name), key_name)
        if not isinstance(value, str):
            msg: str = f"Unsupported type used for '{section_name}.{key_name}': {type(value)}"
            raise ConfigTypeError(msg)
        if value and not value.startswith(KNOWN_MODEL_PREFIXES):
            logger.warning("Unknown model '%s' is set for '%s.%s'; Gemini will be used", value, section_name, key_name)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str, list, dict)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert an INI value to the type of the current Config field value.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If an unexpected type is encountered during coercion.
        """
        formatters: dict[type, Callable[[DataclassField[Any], DataclassField[Any]], Any]] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
            str: self.parse_as_string,
        }

        formatter: Callable[[DataclassField[Any], DataclassField[Any]], Any] | None = formatters.get(
            type(getattr(getattr(self.config, section.name), key.name))
        )
        if formatter:
            try:
                return formatter(section, key)
            except ValueError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigValueError(msg) from err
            except TypeError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigTypeError(msg) from err

        value_str: str = self.parser[section.name][key.name]
        try:
            return ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err

    def _unquoted(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        value: str = self.parser.get(section.name, key.name).strip()
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return value

    def parse_as_string(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        """Return the INI value, quoted or bare."""
        return self._unquoted(section, key)

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        return float(self._unquoted(section, key))

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        return int(float(self._unquoted(section, key)))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        return self.parser.getboolean(section.name, key.name)
