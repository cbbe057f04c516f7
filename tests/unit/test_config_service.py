"""
Unit tests for ConfigService.
"""

import pytest
import yaml

from nfcuid.models.config import ConfigData
from nfcuid.models.errors import ConfigError
from nfcuid.services.config_service import (
    ConfigService,
    MockConfigService,
    apply_overrides,
    build_arg_parser,
    load_config,
)


def parse(*argv):
    return build_arg_parser().parse_args(list(argv))


class TestConfigService:
    """Tests for ConfigService."""

    def test_load_defaults_when_missing(self):
        """Missing config.yaml means built-in defaults."""
        service = ConfigService("/nonexistent/path/config.yaml")
        config = service.load()

        assert isinstance(config, ConfigData)
        assert config.nfc.device == 0
        assert config.advanced.retry_attempts == 3
        assert service.config is config

    def test_load_existing_config(self, temp_config_file):
        service = ConfigService(temp_config_file)
        config = service.load()

        assert config.nfc.device == 2
        assert config.nfc.in_char == "hyphen"
        assert config.advanced.retry_attempts == 5
        assert config.advanced.self_restart is False
        # Sections not in the file keep defaults
        assert config.notifications.enabled is True

    def test_corrupted_config_raises(self, corrupted_config_file):
        with pytest.raises(ConfigError):
            ConfigService(corrupted_config_file).load()

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            ConfigService(str(path)).load()

    def test_empty_file_means_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert ConfigService(str(path)).load() == ConfigData()

    def test_invalid_char_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("nfc:\n  end_char: pipe\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigService(str(path)).load()
        assert "pipe" in str(exc_info.value)

    def test_wrong_type_raises_config_error(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("nfc:\n  device: abc\n")

        with pytest.raises(ConfigError):
            ConfigService(str(path)).load()

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "config.yaml"
        service = ConfigService(str(path))
        config = ConfigData()
        config.nfc.reverse = True
        service.save(config)

        with open(path, encoding="utf-8") as f:
            assert yaml.safe_load(f)["nfc"]["reverse"] is True
        assert ConfigService(str(path)).load().nfc.reverse is True


class TestOverrides:
    """Command-line flags over file values."""

    def test_flags_override_file(self, temp_config_file):
        args = parse("--config", temp_config_file, "--device", "1", "--decimal",
                     "--end-char", "tab")
        config = ConfigService(args.config).load(args)

        assert config.nfc.device == 1
        assert config.nfc.decimal is True
        assert config.nfc.end_char == "tab"
        # Untouched file value survives
        assert config.nfc.in_char == "hyphen"

    def test_unset_flags_keep_file_values(self, temp_config_file):
        config, _ = load_config(["--config", temp_config_file])
        assert config.nfc.device == 2

    def test_negated_boolean(self):
        config = MockConfigService({"nfc": {"reverse": True}}).load(parse("--no-reverse"))
        assert config.nfc.reverse is False

    def test_debug_flag_sets_level(self):
        config = apply_overrides(ConfigData(), parse("--debug"))
        assert config.logging.level == "DEBUG"

    def test_auto_restart_disables_website(self):
        config = ConfigData()
        config.web.open_website = True

        apply_overrides(config, parse("--auto-restart"))

        assert config.auto_restart is True
        assert config.web.open_website is False

    def test_invalid_flag_value_raises(self):
        with pytest.raises(ConfigError):
            MockConfigService().load(parse("--in-char", "slash"))

    def test_no_tray_flag(self):
        assert parse("--no-tray").no_tray is True
        assert parse().no_tray is False


class TestMockConfigService:
    """Tests for MockConfigService."""

    def test_serves_data(self):
        service = MockConfigService({"audio": {"enabled": False}})
        assert service.load().audio.enabled is False

    def test_save_records(self):
        service = MockConfigService()
        service.load()
        service.save()

        assert len(service.saved) == 1
        assert service.saved[0]["nfc"]["device"] == 0
