"""
Unit tests for model classes.
"""

import pytest

from nfcuid.models.config import AdvancedConfig, ConfigData, DEFAULT_CONFIG
from nfcuid.models.errors import (
    CardReadError,
    ConfigError,
    ErrorCategory,
    NFCUIDError,
    PCSCError,
    RetryExhaustedError,
    SystemFailureKind,
)
from nfcuid.models.output_format import CharFlag
from nfcuid.models.status import ServiceStatus


class TestConfigModels:
    """Tests for configuration models."""

    def test_config_data_defaults(self):
        config = ConfigData()
        assert config.nfc.device == 0
        assert config.nfc.end_char == "none"
        assert config.web.open_website is False
        assert config.advanced.max_context_failures == 5
        assert config.advanced.restart_delay == 10
        assert config.auto_restart is False

    def test_config_data_serialization(self):
        config = ConfigData()
        config.nfc.decimal = True
        config.advanced.retry_attempts = 7

        restored = ConfigData.from_dict(config.to_dict())

        assert restored == config

    def test_missing_and_null_sections(self):
        config = ConfigData.from_dict({"nfc": None, "advanced": {"reconnect_delay": 5}})

        assert config.nfc.device == 0
        assert config.advanced.reconnect_delay == 5
        assert config.advanced.retry_attempts == 3

    def test_unknown_keys_ignored(self):
        config = ConfigData.from_dict({"nfc": {"colour": "blue"}, "extra": 1})
        assert config == ConfigData()

    def test_auto_restart_not_persisted(self):
        config = ConfigData(auto_restart=True)
        assert "auto_restart" not in config.to_dict()

    def test_default_config_is_valid(self):
        assert DEFAULT_CONFIG.validation_errors() == []

    def test_validation_collects_all_errors(self):
        config = ConfigData()
        config.nfc.end_char = "pipe"
        config.nfc.device = -1
        config.advanced = AdvancedConfig(retry_attempts=0)

        errors = config.validation_errors()

        assert len(errors) == 3
        with pytest.raises(ConfigError):
            config.validate()

    def test_repeat_key_section(self):
        config = ConfigData.from_dict({"repeat_key": {"content_timeout": 0}})

        assert config.repeat_key.enabled is True
        assert config.repeat_key.content_timeout == 0
        assert config.to_dict()["repeat_key"]["require_previous_scan"] is True

    def test_negative_repeat_timeout_is_invalid(self):
        config = ConfigData()
        config.repeat_key.content_timeout = -1

        assert config.validation_errors() == [
            "repeat key content timeout must be non-negative, got: -1"
        ]

    def test_output_format(self):
        config = ConfigData()
        config.nfc.caps_lock = True
        config.nfc.in_char = "Colon"

        output_format = config.output_format()

        assert output_format.caps_lock is True
        assert output_format.in_char is CharFlag.COLON
        assert output_format.end_char is CharFlag.NONE


class TestCharFlag:
    """Tests for separator names."""

    def test_parse_is_case_insensitive(self):
        assert CharFlag.parse("ENTER") is CharFlag.ENTER
        assert CharFlag.parse(" tab ") is CharFlag.TAB

    def test_parse_unknown(self):
        assert CharFlag.parse("pipe") is None

    def test_glyphs(self):
        assert CharFlag.ENTER.glyph == "\n"
        assert CharFlag.HYPHEN.glyph == "-"
        assert CharFlag.NONE.glyph == ""

    def test_options(self):
        assert CharFlag.options() == [
            "none", "space", "tab", "hyphen", "enter", "semicolon", "colon", "comma"
        ]


class TestErrors:
    """Error categories are set where errors are raised."""

    def test_pcsc_error_category_from_kind(self):
        assert PCSCError(SystemFailureKind.CONTEXT, "x").category is ErrorCategory.PCSC_CONTEXT
        assert PCSCError(SystemFailureKind.CONNECTION, "x").category is ErrorCategory.READER

    def test_explicit_category_override(self):
        error = NFCUIDError("failed", ErrorCategory.BROWSER)
        assert error.category is ErrorCategory.BROWSER
        assert NFCUIDError("failed").category is ErrorCategory.GENERAL

    def test_retry_exhausted_inherits_category(self):
        error = RetryExhaustedError(3, CardReadError("short response"))
        assert error.category is ErrorCategory.CARD

    def test_critical_categories(self):
        assert ErrorCategory.PCSC_CONTEXT.is_critical
        assert ErrorCategory.READER.is_critical
        assert not ErrorCategory.CARD.is_critical


class TestServiceStatus:
    """Tests for the status snapshot."""

    def test_summary(self):
        status = ServiceStatus(
            status="Scanning",
            device_name="ACR122U",
            device_index=1,
            last_card_output="04-ae\n",
        )
        assert status.summary == "Scanning | [1] ACR122U | last: 04-ae"

    def test_summary_minimal(self):
        assert ServiceStatus().summary == "Initializing"
