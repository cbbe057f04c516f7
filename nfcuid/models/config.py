"""
Configuration models for application settings.

These models mirror the config.yaml structure. Missing keys fall back to
defaults; unknown keys are ignored.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List

from .errors import ConfigError
from .output_format import CharFlag, OutputFormat


@dataclass
class NFCConfig:
    """Reader selection and UID output format."""
    device: int = 0  # 0 = ask on the console
    caps_lock: bool = False
    reverse: bool = False
    decimal: bool = False
    decimal_padding: int = 0
    end_char: str = "none"
    in_char: str = "none"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device": self.device,
            "caps_lock": self.caps_lock,
            "reverse": self.reverse,
            "decimal": self.decimal,
            "decimal_padding": self.decimal_padding,
            "end_char": self.end_char,
            "in_char": self.in_char,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NFCConfig":
        return cls(
            device=data.get("device", 0),
            caps_lock=data.get("caps_lock", False),
            reverse=data.get("reverse", False),
            decimal=data.get("decimal", False),
            decimal_padding=data.get("decimal_padding", 0),
            end_char=data.get("end_char", "none"),
            in_char=data.get("in_char", "none"),
        )


@dataclass
class WebConfig:
    """Browser window opened on startup."""
    open_website: bool = False
    website_url: str = "https://example.com"
    fullscreen: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "open_website": self.open_website,
            "website_url": self.website_url,
            "fullscreen": self.fullscreen,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebConfig":
        return cls(
            open_website=data.get("open_website", False),
            website_url=data.get("website_url", "https://example.com"),
            fullscreen=data.get("fullscreen", True),
        )


@dataclass
class NotificationConfig:
    enabled: bool = True
    show_success: bool = True
    show_errors: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "show_success": self.show_success,
            "show_errors": self.show_errors,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NotificationConfig":
        return cls(
            enabled=data.get("enabled", True),
            show_success=data.get("show_success", True),
            show_errors=data.get("show_errors", True),
        )


@dataclass
class AudioConfig:
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AudioConfig":
        return cls(enabled=data.get("enabled", True))


@dataclass
class AdvancedConfig:
    """Retry, reconnect and self-restart tuning."""
    retry_attempts: int = 3
    reconnect_delay: int = 2  # seconds
    auto_reconnect: bool = True
    self_restart: bool = True
    max_context_failures: int = 5
    restart_delay: int = 10  # seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "retry_attempts": self.retry_attempts,
            "reconnect_delay": self.reconnect_delay,
            "auto_reconnect": self.auto_reconnect,
            "self_restart": self.self_restart,
            "max_context_failures": self.max_context_failures,
            "restart_delay": self.restart_delay,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdvancedConfig":
        return cls(
            retry_attempts=data.get("retry_attempts", 3),
            reconnect_delay=data.get("reconnect_delay", 2),
            auto_reconnect=data.get("auto_reconnect", True),
            self_restart=data.get("self_restart", True),
            max_context_failures=data.get("max_context_failures", 5),
            restart_delay=data.get("restart_delay", 10),
        )


@dataclass
class UpdateConfig:
    enabled: bool = True
    check_interval_hours: float = 24.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "check_interval_hours": self.check_interval_hours,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateConfig":
        return cls(
            enabled=data.get("enabled", True),
            check_interval_hours=data.get("check_interval_hours", 24.0),
        )


@dataclass
class LoggingConfig:
    level: str = "INFO"
    directory: str = "logs"

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "directory": self.directory}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=data.get("level", "INFO"),
            directory=data.get("directory", "logs"),
        )


@dataclass
class RepeatKeyConfig:
    """Repeat of the last typed card output."""
    enabled: bool = True
    content_timeout: int = 300  # seconds, 0 = never expires
    notification: bool = True
    require_previous_scan: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "content_timeout": self.content_timeout,
            "notification": self.notification,
            "require_previous_scan": self.require_previous_scan,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepeatKeyConfig":
        return cls(
            enabled=data.get("enabled", True),
            content_timeout=data.get("content_timeout", 300),
            notification=data.get("notification", True),
            require_previous_scan=data.get("require_previous_scan", True),
        )


@dataclass
class ConfigData:
    """
    Main configuration data structure.

    This represents the config.yaml file structure.
    """
    nfc: NFCConfig = field(default_factory=NFCConfig)
    web: WebConfig = field(default_factory=WebConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)
    updates: UpdateConfig = field(default_factory=UpdateConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    repeat_key: RepeatKeyConfig = field(default_factory=RepeatKeyConfig)

    # Set when started by the self-restart supervisor
    auto_restart: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return {
            "nfc": self.nfc.to_dict(),
            "web": self.web.to_dict(),
            "notifications": self.notifications.to_dict(),
            "audio": self.audio.to_dict(),
            "advanced": self.advanced.to_dict(),
            "updates": self.updates.to_dict(),
            "logging": self.logging.to_dict(),
            "repeat_key": self.repeat_key.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigData":
        """Create from dictionary, handling missing sections gracefully."""
        data = data or {}
        return cls(
            nfc=NFCConfig.from_dict(data.get("nfc") or {}),
            web=WebConfig.from_dict(data.get("web") or {}),
            notifications=NotificationConfig.from_dict(data.get("notifications") or {}),
            audio=AudioConfig.from_dict(data.get("audio") or {}),
            advanced=AdvancedConfig.from_dict(data.get("advanced") or {}),
            updates=UpdateConfig.from_dict(data.get("updates") or {}),
            logging=LoggingConfig.from_dict(data.get("logging") or {}),
            repeat_key=RepeatKeyConfig.from_dict(data.get("repeat_key") or {}),
        )

    def validation_errors(self) -> List[str]:
        """Return a list of human-readable problems, empty when valid."""
        errors = []
        if CharFlag.parse(self.nfc.end_char) is None:
            errors.append(f"invalid end character: {self.nfc.end_char}")
        if CharFlag.parse(self.nfc.in_char) is None:
            errors.append(f"invalid in character: {self.nfc.in_char}")
        if self.nfc.device < 0:
            errors.append(f"device number must be positive, got: {self.nfc.device}")
        if self.nfc.decimal_padding < 0:
            errors.append(
                f"decimal padding must be non-negative, got: {self.nfc.decimal_padding}"
            )
        if self.advanced.retry_attempts < 1:
            errors.append(
                f"retry attempts must be at least 1, got: {self.advanced.retry_attempts}"
            )
        if self.advanced.reconnect_delay < 0:
            errors.append(
                f"reconnect delay must be non-negative, got: {self.advanced.reconnect_delay}"
            )
        if self.advanced.max_context_failures < 1:
            errors.append(
                "max context failures must be at least 1, got: "
                f"{self.advanced.max_context_failures}"
            )
        if self.advanced.restart_delay < 0:
            errors.append(
                f"restart delay must be non-negative, got: {self.advanced.restart_delay}"
            )
        if self.repeat_key.content_timeout < 0:
            errors.append(
                "repeat key content timeout must be non-negative, got: "
                f"{self.repeat_key.content_timeout}"
            )
        return errors

    def validate(self) -> None:
        """Raise ConfigError if any setting is invalid."""
        errors = self.validation_errors()
        if errors:
            raise ConfigError("invalid configuration: " + "; ".join(errors))

    def output_format(self) -> OutputFormat:
        """Build the OutputFormat used by the UID codec."""
        return OutputFormat(
            caps_lock=self.nfc.caps_lock,
            reverse=self.nfc.reverse,
            decimal=self.nfc.decimal,
            decimal_padding=self.nfc.decimal_padding,
            end_char=CharFlag.parse(self.nfc.end_char) or CharFlag.NONE,
            in_char=CharFlag.parse(self.nfc.in_char) or CharFlag.NONE,
        )


# Default configuration for new installations
DEFAULT_CONFIG = ConfigData()
