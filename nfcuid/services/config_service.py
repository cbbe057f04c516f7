"""
ConfigService - config.yaml loading with command-line overrides.

Precedence, lowest first: built-in defaults, config.yaml, command-line
flags. The merged result is validated before it is handed out.
"""

import argparse
import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from ..models.config import ConfigData
from ..models.errors import ConfigError
from ..models.output_format import CharFlag
from .restart_service import AUTO_RESTART_FLAG

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


def build_arg_parser() -> argparse.ArgumentParser:
    """Command-line flags. Unset flags are None so the file value stays."""
    options = ", ".join(CharFlag.options())
    parser = argparse.ArgumentParser(
        prog="nfcuid",
        description="Types the UID of NFC tags as keyboard input.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help="Path to config.yaml")
    parser.add_argument("--end-char", dest="end_char",
                        help=f"Character at the end of UID. Options: {options}")
    parser.add_argument("--in-char", dest="in_char",
                        help=f"Character between bytes of UID. Options: {options}")
    parser.add_argument("--caps-lock", dest="caps_lock",
                        action=argparse.BooleanOptionalAction,
                        help="UID with upper-case hex digits")
    parser.add_argument("--reverse", action=argparse.BooleanOptionalAction,
                        help="UID in reverse byte order")
    parser.add_argument("--decimal", action=argparse.BooleanOptionalAction,
                        help="UID in decimal format (4-byte UIDs only)")
    parser.add_argument("--decimal-padding", dest="decimal_padding", type=int,
                        help="Pad decimal numbers with leading zeros to this length (0 = no padding)")
    parser.add_argument("--device", type=int,
                        help="Device number to use (0 = ask)")
    parser.add_argument("--open-website", dest="open_website",
                        action=argparse.BooleanOptionalAction,
                        help="Open website URL in browser on startup")
    parser.add_argument("--website-url", dest="website_url",
                        help="URL to open in browser")
    parser.add_argument("--fullscreen", action=argparse.BooleanOptionalAction,
                        help="Open browser in a new window")
    parser.add_argument("--no-tray", dest="no_tray", action="store_true",
                        help="Run without the system tray icon")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug logging")
    parser.add_argument(AUTO_RESTART_FLAG, dest="auto_restart", action="store_true",
                        help=argparse.SUPPRESS)
    return parser


# (argument name, config section, config key)
_OVERRIDES = [
    ("end_char", "nfc", "end_char"),
    ("in_char", "nfc", "in_char"),
    ("caps_lock", "nfc", "caps_lock"),
    ("reverse", "nfc", "reverse"),
    ("decimal", "nfc", "decimal"),
    ("decimal_padding", "nfc", "decimal_padding"),
    ("device", "nfc", "device"),
    ("open_website", "web", "open_website"),
    ("website_url", "web", "website_url"),
    ("fullscreen", "web", "fullscreen"),
]


class ConfigService:
    """
    Service for loading application configuration.

    Provides:
    - Loading config.yaml (missing file means defaults)
    - Command-line overrides
    - Validation with ConfigError on bad input
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the config service.

        Args:
            config_path: Path to config.yaml. Defaults to 'config.yaml' in current dir.
        """
        self._config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: Optional[ConfigData] = None

    def get_config_path(self) -> str:
        """Get the path to the configuration file."""
        return self._config_path

    @property
    def config(self) -> Optional[ConfigData]:
        return self._config

    def load_raw(self) -> Dict[str, Any]:
        """
        Read config.yaml as a dictionary.

        Raises:
            ConfigError: unreadable file or malformed YAML
        """
        if not os.path.exists(self._config_path):
            logger.info(f"No {self._config_path} found, using defaults and command-line flags")
            return {}

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to parse {self._config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"failed to read {self._config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level")

        logger.info(f"Loaded configuration from {self._config_path}")
        return data

    def load(self, args: Optional[argparse.Namespace] = None) -> ConfigData:
        """
        Load, merge and validate the configuration.

        Args:
            args: Parsed command-line flags, None for file values only

        Raises:
            ConfigError: if the result is invalid
        """
        raw = self.load_raw()
        try:
            config = ConfigData.from_dict(raw)
        except (AttributeError, TypeError) as e:
            raise ConfigError(f"invalid configuration structure: {e}") from e

        if args is not None:
            apply_overrides(config, args)

        try:
            config.validate()
        except TypeError as e:
            # e.g. "device: abc" compared against an int
            raise ConfigError(f"invalid configuration value: {e}") from e

        self._config = config
        return config

    def save(self, config: Optional[ConfigData] = None) -> None:
        """Write the configuration back to disk."""
        if config is not None:
            self._config = config
        if self._config is None:
            self._config = ConfigData()

        with open(self._config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config.to_dict(), f, default_flow_style=False, sort_keys=False)


def apply_overrides(config: ConfigData, args: argparse.Namespace) -> ConfigData:
    """Copy every flag given on the command line into the config."""
    for arg_name, section, key in _OVERRIDES:
        value = getattr(args, arg_name, None)
        if value is not None:
            setattr(getattr(config, section), key, value)

    if getattr(args, "debug", False):
        config.logging.level = "DEBUG"

    if getattr(args, "auto_restart", False):
        config.auto_restart = True
        # Browser was already opened by the first instance
        config.web.open_website = False

    return config


def load_config(argv: Optional[Sequence[str]] = None) -> Tuple[ConfigData, argparse.Namespace]:
    """
    Parse the command line and load the configuration it points at.

    Returns:
        (config, parsed args)
    """
    args = build_arg_parser().parse_args(argv)
    config = ConfigService(args.config).load(args)
    return config, args


class MockConfigService(ConfigService):
    """
    Mock ConfigService for testing.

    Serves a dictionary instead of reading a file.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        super().__init__("mock-config.yaml")
        self.data: Dict[str, Any] = data or {}
        self.saved: List[Dict[str, Any]] = []

    def load_raw(self) -> Dict[str, Any]:
        return self.data

    def save(self, config: Optional[ConfigData] = None) -> None:
        if config is not None:
            self._config = config
        self.saved.append((self._config or ConfigData()).to_dict())
