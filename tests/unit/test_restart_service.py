"""
Unit tests for RestartService (failure tracker and self-restart).
"""

import subprocess

import pytest

from nfcuid.models.errors import PCSCError, SystemFailureKind
from nfcuid.services.restart_service import (
    AUTO_RESTART_FLAG,
    NOTIFICATION_SETTLE_SECONDS,
    build_restart_command,
)

CONTEXT = SystemFailureKind.CONTEXT


def context_error():
    return PCSCError(CONTEXT, "Failed to establish context")


class TestFailureTracking:
    """Tests for the shared failure counter."""

    def test_restart_fires_exactly_once_on_threshold(
        self, make_restart_service, spawned, exit_codes
    ):
        service = make_restart_service(max_context_failures=5)

        results = [service.track_failure(CONTEXT, context_error()) for _ in range(5)]

        assert results == [False, False, False, False, True]
        assert len(spawned) == 1
        assert exit_codes == [0]

    def test_calls_after_restart_do_not_spawn_again(
        self, make_restart_service, spawned
    ):
        service = make_restart_service(max_context_failures=2)
        service.track_failure(CONTEXT, context_error())
        service.track_failure(CONTEXT, context_error())

        assert service.track_failure(CONTEXT, context_error()) is True
        assert len(spawned) == 1

    def test_reset_clears_consecutive_count(self, make_restart_service, spawned):
        service = make_restart_service(max_context_failures=5)
        for _ in range(4):
            service.track_failure(CONTEXT, context_error())
        assert service.failure_count == 4

        service.reset_failures()
        assert service.failure_count == 0

        results = [service.track_failure(CONTEXT, context_error()) for _ in range(4)]
        assert results == [False] * 4
        assert spawned == []

    def test_counter_is_shared_across_kinds(self, make_restart_service, spawned):
        service = make_restart_service(max_context_failures=3)
        service.track_failure(SystemFailureKind.CONTEXT, context_error())
        service.track_failure(SystemFailureKind.CONNECTION, context_error())

        assert service.track_failure(SystemFailureKind.STATUS_MONITORING, context_error())
        assert len(spawned) == 1

    def test_self_restart_disabled_never_triggers(self, make_restart_service, spawned):
        service = make_restart_service(max_context_failures=1, self_restart=False)

        for _ in range(10):
            assert service.track_failure(CONTEXT, context_error()) is False
        assert service.failure_count == 10
        assert spawned == []


class TestRestartSequence:
    """Tests for the process replacement steps."""

    def test_command_carries_restart_marker(self, make_restart_service, spawned):
        service = make_restart_service(max_context_failures=1)
        service.track_failure(CONTEXT, context_error())

        command = spawned[0]
        assert command[-1] == AUTO_RESTART_FLAG
        assert command[-3:-1] == ["--device", "1"]

    def test_waits_settle_time_plus_delay(self, make_restart_service, no_sleep):
        service = make_restart_service(max_context_failures=1, restart_delay=7)
        service.track_failure(CONTEXT, context_error())

        assert no_sleep.calls == [NOTIFICATION_SETTLE_SECONDS, 7]

    def test_restart_is_announced(self, make_restart_service, mock_notifier):
        service = make_restart_service(max_context_failures=1)
        service.track_failure(CONTEXT, context_error())

        messages = [message for _, message, _ in mock_notifier.notifications]
        assert any("Restarting application" in m for m in messages)
        assert "Application restart initiated" in messages

    def test_child_that_exits_immediately_is_fatal(
        self, make_restart_service, exit_codes, mock_notifier
    ):
        service = make_restart_service(exit_code=3, max_context_failures=1)

        assert service.track_failure(CONTEXT, context_error()) is True
        assert exit_codes == [1]
        assert mock_notifier.titles("error")

    def test_spawn_oserror_is_fatal(self, notification_service, exit_codes, no_sleep):
        from nfcuid.models.config import AdvancedConfig
        from nfcuid.services.restart_service import RestartService

        def spawn(command):
            raise OSError("no such file")

        service = RestartService(
            AdvancedConfig(max_context_failures=1),
            notification_service,
            shutdown=exit_codes.append,
            spawn=spawn,
            sleep=no_sleep,
        )
        service.track_failure(CONTEXT, context_error())

        assert exit_codes == [1]


class TestBuildRestartCommand:
    """Tests for the replacement command line."""

    def test_script_invocation(self, monkeypatch):
        monkeypatch.delattr("sys.frozen", raising=False)
        command = build_restart_command(["main.py", "--decimal"], "/usr/bin/python3")
        assert command == ["/usr/bin/python3", "main.py", "--decimal", AUTO_RESTART_FLAG]

    def test_marker_not_duplicated(self, monkeypatch):
        monkeypatch.delattr("sys.frozen", raising=False)
        command = build_restart_command(["main.py", AUTO_RESTART_FLAG], "python")
        assert command.count(AUTO_RESTART_FLAG) == 1

    def test_frozen_executable(self, monkeypatch):
        monkeypatch.setattr("sys.frozen", True, raising=False)
        command = build_restart_command(["nfcuid.exe", "--reverse"], "C:/nfcuid.exe")
        assert command == ["C:/nfcuid.exe", "--reverse", AUTO_RESTART_FLAG]
