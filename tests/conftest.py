"""
Pytest configuration and shared fixtures.
"""

import pytest
import subprocess
import sys
import os
import tempfile

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nfcuid.models.config import AdvancedConfig, ConfigData


class FakeProcess:
    """Stands in for subprocess.Popen in restart tests."""

    def __init__(self, exit_code=None):
        self.exit_code = exit_code

    def wait(self, timeout=None):
        if self.exit_code is None:
            raise subprocess.TimeoutExpired("nfcuid", timeout)
        return self.exit_code


@pytest.fixture
def temp_config_file():
    """Create a temporary config.yaml for testing."""
    with tempfile.NamedTemporaryFile(
        mode='w',
        suffix='.yaml',
        delete=False
    ) as f:
        f.write(
            "nfc:\n"
            "  device: 2\n"
            "  in_char: hyphen\n"
            "  end_char: enter\n"
            "advanced:\n"
            "  retry_attempts: 5\n"
            "  self_restart: false\n"
        )
        temp_path = f.name

    yield temp_path

    # Cleanup
    if os.path.exists(temp_path):
        os.remove(temp_path)


@pytest.fixture
def corrupted_config_file():
    """Create a malformed config.yaml for error handling testing."""
    with tempfile.NamedTemporaryFile(
        mode='w',
        suffix='.yaml',
        delete=False
    ) as f:
        f.write("nfc: [unclosed\n  device: 1\n")
        temp_path = f.name

    yield temp_path

    if os.path.exists(temp_path):
        os.remove(temp_path)


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    calls = []

    def sleep(seconds):
        calls.append(seconds)

    sleep.calls = calls
    return sleep


@pytest.fixture
def mock_notifier():
    """Create a mock notifier for testing."""
    from nfcuid.services.notifier import MockNotifier
    return MockNotifier()


@pytest.fixture
def notification_service(mock_notifier):
    """Throttled notifications delivered to the mock notifier."""
    from nfcuid.services.notification_service import NotificationService
    return NotificationService(mock_notifier)


@pytest.fixture
def mock_pcsc():
    """Create a mock PC/SC service with one reader."""
    from nfcuid.services.pcsc_service import MockPCSCService
    return MockPCSCService(["ACS ACR122U PICC Interface 00"])


@pytest.fixture
def mock_keyboard():
    """Create a mock keyboard service for testing."""
    from nfcuid.services.keyboard_service import MockKeyboardService
    return MockKeyboardService()


@pytest.fixture
def spawned():
    """Records commands passed to the restart spawner."""
    return []


@pytest.fixture
def exit_codes():
    """Records exit codes passed to the shutdown callable."""
    return []


@pytest.fixture
def make_restart_service(notification_service, no_sleep, spawned, exit_codes):
    """Factory for a RestartService that never spawns or exits for real."""
    from nfcuid.services.restart_service import RestartService

    def factory(exit_code=None, **overrides):
        config = AdvancedConfig(**overrides)

        def spawn(command):
            spawned.append(command)
            return FakeProcess(exit_code)

        return RestartService(
            config,
            notification_service,
            shutdown=exit_codes.append,
            spawn=spawn,
            sleep=no_sleep,
            argv=["main.py", "--device", "1"],
        )

    return factory


@pytest.fixture
def reader_config():
    """Config reading from device 1 with hyphen separator and enter."""
    config = ConfigData()
    config.nfc.device = 1
    config.nfc.in_char = "hyphen"
    config.nfc.end_char = "enter"
    config.advanced.reconnect_delay = 0
    return config
