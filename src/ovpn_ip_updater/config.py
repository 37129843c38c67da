"""
Configuration management for OpenVPN IP Updater.

This module handles loading and validating configuration from TOML files
and command-line arguments. Configuration priority (high to low):
1. Command-line arguments
2. Configuration file
3. Default values
"""

from __future__ import annotations

import argparse
import copy
import logging
import sys
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from ovpn_ip_updater.logging_config import DATE_FORMAT, LOG_FORMAT
from ovpn_ip_updater.routeros import DEFAULT_PORT

if TYPE_CHECKING:
    from typing import Any

# Configure basic logging for early startup messages.
# This ensures log messages during config loading (before "setup_logging()" is called)
# are visible with proper formatting. The main logging setup in "setup_logging()"
# will reconfigure the "ovpn_ip_updater" logger with full settings later.
# Note: Logs from this logger will not be output to a file as the log file path has not been parsed yet.
logger_basic = logging.getLogger(__name__)
logger_basic.setLevel(logging.DEBUG)
handler = logging.StreamHandler()
formatter = logging.Formatter(
    fmt=LOG_FORMAT,
    datefmt=DATE_FORMAT,
)
handler.setFormatter(formatter)
logger_basic.addHandler(handler)
logger_basic.propagate = False


class ConfigValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    This exception is raised when the TOML configuration contains
    invalid types or values, or a required setting is missing.

    Attributes
    ----------
    message : str
        Human-readable error message describing the validation failures.
    config_path : Path | None
        Path to the configuration file that failed validation.
    """

    def __init__(self, message: str, config_path: Path | None = None) -> None:
        """
        Initialize ConfigValidationError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        config_path : Path | None, optional
            Path to the configuration file.
        """
        self.config_path = config_path
        super().__init__(message)


# Configuration models (Pydantic with type validation and coercion)


class RouterConfig(BaseModel):
    """
    Router API connection configuration.

    Defaults match a factory-fresh RouterOS device.

    Attributes
    ----------
    host : str
        Hostname or IP address of the router.
    port : int
        API service port.
    user : str
        User to authenticate with.
    password : str
        Password to authenticate with.
    timeout : float | None
        Socket timeout in seconds, or None to block indefinitely.
    """

    host: str = "192.168.88.1"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    user: str = "admin"
    password: str = ""
    timeout: float | None = Field(default=10.0, gt=0)


class VPNConfig(BaseModel):
    """
    OpenVPN client configuration.

    Attributes
    ----------
    host : str
        Hostname of the OpenVPN server to resolve.
    prefer_ipv6 : bool
        Whether to prefer an IPv6 address when the host has both.
    interface : str | None
        Name of the OpenVPN client interface, or None for the first one.
    """

    host: str = ""
    prefer_ipv6: bool = False
    interface: str | None = None


class LoggingConfig(BaseModel):
    """
    Logging configuration.

    Attributes
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    file_enabled : bool
        Whether to log to file.
    file_path : str
        Path to the log file.
    """

    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = "/var/log/ovpn-ip-updater.log"

    @property
    def file_path_as_path(self) -> Path:
        """
        Get the log file path as a Path object.

        Returns
        -------
        Path
            The resolved log file path.
        """
        return Path(self.file_path)


class Config(BaseModel):
    """
    Application configuration.

    Attributes
    ----------
    router : RouterConfig
        Router API connection configuration.
    vpn : VPNConfig
        OpenVPN client configuration.
    logging : LoggingConfig
        Logging configuration.
    """

    router: RouterConfig = RouterConfig()
    vpn: VPNConfig = VPNConfig()
    logging: LoggingConfig = LoggingConfig()


def _format_validation_errors(
    error: ValidationError,
    config_path: Path | None,
) -> str:
    """
    Format Pydantic validation errors into human-readable messages.

    Parameters
    ----------
    error : ValidationError
        Pydantic validation error.
    config_path : Path | None
        Path to the configuration file.

    Returns
    -------
    str
        Human-readable error message.
    """
    lines: list[str] = []

    if config_path:
        lines.append(f'Configuration error in "{config_path}":')
    else:
        lines.append("Configuration error:")

    for err in error.errors():
        # Build field path (e.g., "router.port")
        field_path = ".".join(str(loc) for loc in err["loc"])

        error_type = err["type"]
        error_input = err["input"]
        input_type = type(error_input).__name__

        # Format the value for display
        value_repr = (
            f'"{error_input}"' if isinstance(error_input, str) else repr(error_input)
        )

        expected_type = _get_expected_type(error_type)
        lines.append(
            f"  [{field_path}]: Expected {expected_type}, got {input_type} (value: {value_repr}). {err['msg']}.",
        )

    return "\n".join(lines)


def _get_expected_type(error_type: str) -> str:
    """
    Get human-readable expected type from Pydantic error type.

    Parameters
    ----------
    error_type : str
        Pydantic error type string.

    Returns
    -------
    str
        Human-readable type name.
    """
    type_mapping = {
        "int_type": "int",
        "int_parsing": "int",
        "float_type": "float",
        "float_parsing": "float",
        "bool_type": "bool",
        "bool_parsing": "bool",
        "string_type": "str",
        "less_than_equal": "a smaller value",
        "greater_than_equal": "a larger value",
        "greater_than": "a larger value",
    }
    return type_mapping.get(error_type, error_type)


def validate_config_dict(
    data: dict[str, Any],
    config_path: Path | None = None,
) -> None:
    """
    Validate configuration dictionary using Pydantic.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary to validate.
    config_path : Path | None, optional
        Path to the configuration file (for error messages).

    Raises
    ------
    ConfigValidationError
        If validation fails or the VPN host is not set.
    """
    try:
        config = Config(**data)
    except ValidationError as e:
        msg = _format_validation_errors(e, config_path)
        raise ConfigValidationError(msg, config_path) from e

    if not config.vpn.host:
        header = (
            f'Configuration error in "{config_path}":'
            if config_path
            else "Configuration error:"
        )
        msg = f"{header}\n  [vpn.host]: The OpenVPN server hostname must be set."
        raise ConfigValidationError(msg, config_path)


def load_config_from_file(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a TOML file.

    Parameters
    ----------
    config_path : Path
        Path to the configuration file.

    Returns
    -------
    dict[str, Any]
        Parsed configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    tomllib.TOMLDecodeError
        If the configuration file is not valid TOML.
    """
    with config_path.open("rb") as f:
        return tomllib.load(f)


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Parameters
    ----------
    base : dict[str, Any]
        Base configuration.
    override : dict[str, Any]
        Override configuration (takes precedence).

    Returns
    -------
    dict[str, Any]
        Merged configuration.
    """
    # Use deep copy to avoid modifying the original base configuration
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


def dict_to_config(data: dict[str, Any]) -> Config:
    """
    Convert a dictionary to a Config object.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary.

    Returns
    -------
    Config
        Configuration object.
    """
    # Handle file_path expansion before Pydantic validation
    if "logging" in data and "file_path" in data["logging"]:
        data = copy.deepcopy(data)
        data["logging"]["file_path"] = str(
            Path(data["logging"]["file_path"]).expanduser(),
        )

    return Config.model_validate(data)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Parameters
    ----------
    args : list[str] | None, optional
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="ovpn-ip-updater",
        description=(
            "Update the endpoint of a RouterOS OpenVPN client "
            "when its server is on a dynamic IP"
        ),
    )

    # Config arguments
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml)",
    )

    # Router arguments
    parser.add_argument(
        "--router-host",
        type=str,
        dest="router_host",
        default=None,
        help="Hostname or IP of the router",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Router API port",
    )
    parser.add_argument(
        "--user",
        type=str,
        default=None,
        help="User to authenticate with",
    )
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password to authenticate with",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Socket timeout in seconds",
    )

    # VPN arguments
    parser.add_argument(
        "--vpn-host",
        type=str,
        dest="vpn_host",
        default=None,
        help="Hostname of the OpenVPN server",
    )
    family_group = parser.add_mutually_exclusive_group()
    family_group.add_argument(
        "--prefer-ipv6",
        action="store_true",
        dest="prefer_ipv6",
        default=None,
        help="Prefer an IPv6 address for the OpenVPN server",
    )
    family_group.add_argument(
        "--prefer-ipv4",
        action="store_false",
        dest="prefer_ipv6",
        default=None,
        help="Prefer an IPv4 address for the OpenVPN server",
    )
    parser.add_argument(
        "--interface",
        type=str,
        default=None,
        help="Name of the OpenVPN client interface (default: first one)",
    )

    # Logging arguments
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level",
    )
    log_file_group = parser.add_mutually_exclusive_group()
    log_file_group.add_argument(
        "--log-file-enabled",
        action="store_true",
        dest="log_file_enabled",
        default=None,
        help="Enable logging to file",
    )
    log_file_group.add_argument(
        "--log-file-disabled",
        action="store_false",
        dest="log_file_enabled",
        default=None,
        help="Disable logging to file",
    )
    parser.add_argument(
        "--log-file-path",
        type=Path,
        dest="log_file_path",
        default=None,
        help="Path to the log file",
    )

    return parser.parse_args(args)


def load_config(args: argparse.Namespace | None = None) -> Config:
    """
    Load configuration from file and command-line arguments.

    Priority (high to low):
    1. Command-line arguments
    2. Configuration file
    3. Default values

    Parameters
    ----------
    args : argparse.Namespace | None, optional
        Parsed command-line arguments.

    Returns
    -------
    Config
        Loaded configuration.
    """
    if args is None:
        args = parse_args()

    # Start with empty config dict
    config_dict: dict[str, Any] = {}

    # Load from config file if specified or if default exists
    config_path = args.config
    if config_path is not None:
        config_path = config_path.expanduser()
    if config_path is None:
        default_config = Path("config.toml")
        if default_config.exists():
            config_path = default_config

    if config_path is not None:
        if config_path.exists():
            logger_basic.info('Loading configuration from "%s".', config_path)
            try:
                config_dict = load_config_from_file(config_path)
            except tomllib.TOMLDecodeError as e:
                logger_basic.critical('Failed to parse configuration file: "%s".', e)
                sys.exit(1)
        else:
            logger_basic.critical("Configuration file not found: %s", config_path)
            sys.exit(1)

    # Apply command-line overrides
    cli_overrides: dict[str, Any] = {}

    # Router overrides
    router_args = {
        "host": args.router_host,
        "port": args.port,
        "user": args.user,
        "password": args.password,
        "timeout": args.timeout,
    }
    for key, value in router_args.items():
        if value is not None:
            cli_overrides.setdefault("router", {})[key] = value

    # VPN overrides
    if args.vpn_host is not None:
        cli_overrides.setdefault("vpn", {})["host"] = args.vpn_host
    if args.prefer_ipv6 is not None:
        cli_overrides.setdefault("vpn", {})["prefer_ipv6"] = args.prefer_ipv6
    if args.interface is not None:
        cli_overrides.setdefault("vpn", {})["interface"] = args.interface

    # Logging overrides
    if args.log_level is not None:
        cli_overrides.setdefault("logging", {})["level"] = args.log_level
    if args.log_file_enabled is not None:
        cli_overrides.setdefault("logging", {})["file_enabled"] = args.log_file_enabled
    if args.log_file_path is not None:
        cli_overrides.setdefault("logging", {})["file_path"] = str(args.log_file_path)

    if cli_overrides:
        config_dict = merge_config(config_dict, cli_overrides)

    # Validate merged configuration
    validate_config_dict(config_dict, config_path)

    return dict_to_config(config_dict)
