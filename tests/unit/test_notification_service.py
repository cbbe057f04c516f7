"""
Unit tests for NotificationService throttling.
"""

import io
import logging
from datetime import datetime, timedelta

import pytest

from nfcuid.models.config import NotificationConfig
from nfcuid.models.errors import ErrorCategory
from nfcuid.services.notification_service import (
    ERROR_TITLE,
    SYSTEM_ERROR_TITLE,
    NotificationService,
    count_schedule_allows,
)
from nfcuid.services.notifier import ConsoleNotifier, MockNotifier


class FrozenClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def throttled(mock_notifier, clock):
    return NotificationService(mock_notifier, clock=clock)


def fire(service, category, times):
    """Send errors and return the 1-based occurrences that notified."""
    notified = []
    before = len(service.notifier.notifications)
    for occurrence in range(1, times + 1):
        service.notify_error_throttled(category, "failure")
        after = len(service.notifier.notifications)
        if after > before:
            notified.append(occurrence)
        before = after
    return notified


class TestSchedules:
    """Occurrence-count schedules per category class."""

    def test_card_errors_notify_every_fifth(self, throttled):
        assert fire(throttled, ErrorCategory.CARD, 12) == [1, 6, 11]

    def test_critical_errors(self, throttled):
        assert fire(throttled, ErrorCategory.READER, 21) == [1, 3, 5, 11, 21]

    def test_context_errors_are_critical(self, throttled):
        assert fire(throttled, ErrorCategory.PCSC_CONTEXT, 6) == [1, 3, 5]

    def test_service_errors(self, throttled):
        assert fire(throttled, ErrorCategory.SERVICE, 11) == [1, 2, 6, 11]

    def test_default_errors_notify_every_third(self, throttled):
        assert fire(throttled, ErrorCategory.KEYBOARD, 7) == [1, 4, 7]

    def test_categories_are_independent(self, throttled):
        fire(throttled, ErrorCategory.CARD, 3)
        assert fire(throttled, ErrorCategory.KEYBOARD, 1) == [1]

    def test_schedule_function(self):
        assert count_schedule_allows(ErrorCategory.CARD, 0)
        assert not count_schedule_allows(ErrorCategory.CARD, 4)
        assert count_schedule_allows(ErrorCategory.READER, 30)
        assert not count_schedule_allows(ErrorCategory.READER, 15)


class TestTimeOverride:
    """Quiet period after which a repeat notifies regardless of count."""

    def test_card_error_after_two_minutes(self, throttled, clock):
        fire(throttled, ErrorCategory.CARD, 1)
        clock.advance(minutes=2)
        assert fire(throttled, ErrorCategory.CARD, 1) == [1]

    def test_card_error_before_two_minutes(self, throttled, clock):
        fire(throttled, ErrorCategory.CARD, 1)
        clock.advance(minutes=1, seconds=59)
        assert fire(throttled, ErrorCategory.CARD, 1) == []

    def test_critical_needs_five_minutes(self, throttled, clock):
        fire(throttled, ErrorCategory.READER, 3)  # counts 0..2
        clock.advance(minutes=4)
        assert throttled.should_notify(ErrorCategory.READER) is False
        clock.advance(minutes=1)
        assert throttled.should_notify(ErrorCategory.READER) is True


class TestTitles:
    """Occurrence count in titles."""

    def test_repeat_title_shows_earlier_occurrences(self, throttled, mock_notifier):
        fire(throttled, ErrorCategory.CARD, 6)

        titles = mock_notifier.titles("error")
        assert titles == [SYSTEM_ERROR_TITLE, f"{SYSTEM_ERROR_TITLE} (x5)"]

    def test_single_earlier_occurrence_has_no_count(self, throttled, mock_notifier):
        fire(throttled, ErrorCategory.SERVICE, 3)  # notifies 1st and 2nd

        assert mock_notifier.titles("error") == [SYSTEM_ERROR_TITLE, SYSTEM_ERROR_TITLE]

    def test_critical_third_occurrence(self, throttled, mock_notifier):
        fire(throttled, ErrorCategory.READER, 3)

        assert mock_notifier.titles("error")[-1] == f"{SYSTEM_ERROR_TITLE} (x2)"

    def test_application_error_title(self, throttled, mock_notifier):
        throttled.notify_error("Something broke")
        assert mock_notifier.notifications == [(ERROR_TITLE, "Something broke", "error")]


class TestSuccessGating:
    """Success notifications only after errors."""

    def test_success_without_errors_is_silent(self, throttled, mock_notifier):
        assert throttled.notify_success("Card UID: 04ae65ca") is False
        assert mock_notifier.notifications == []
        assert throttled.has_recent_errors() is False

    def test_success_after_error_notifies_and_resets(self, throttled, mock_notifier):
        fire(throttled, ErrorCategory.CARD, 2)
        fire(throttled, ErrorCategory.KEYBOARD, 1)

        assert throttled.notify_success("Card UID: 04ae65ca") is True
        assert mock_notifier.notifications[-1][2] == "success"
        assert throttled.error_count(ErrorCategory.CARD) == 0
        assert throttled.error_count(ErrorCategory.KEYBOARD) == 0

        # Only one success per recovery
        assert throttled.notify_success("Card UID: 04ae65ca") is False


class TestConfigSwitches:
    """enabled / show_errors / show_success."""

    def test_disabled_notifications_do_nothing(self, clock):
        notifier = MockNotifier()
        service = NotificationService(notifier, NotificationConfig(enabled=False), clock)

        service.notify_error_throttled(ErrorCategory.CARD, "failure")
        service.notify_info("Title", "Message")

        assert notifier.notifications == []
        assert service.error_count(ErrorCategory.CARD) == 0

    def test_hidden_success_still_resets_counts(self, clock):
        notifier = MockNotifier()
        service = NotificationService(notifier, NotificationConfig(show_success=False), clock)
        service.notify_error_throttled(ErrorCategory.CARD, "failure")

        assert service.notify_success("Card UID: 01") is False
        assert service.has_recent_errors() is False
        assert len(notifier.notifications) == 1


class TestDelivery:
    """Delivery failures and sounds."""

    def test_delivery_failure_is_swallowed(self, clock):
        service = NotificationService(MockNotifier(fail=True), clock=clock)
        service.notify_error_throttled(ErrorCategory.CARD, "failure")
        assert service.error_count(ErrorCategory.CARD) == 1

    def test_play_sound_forwards(self, throttled, mock_notifier):
        throttled.play_sound(False)
        assert mock_notifier.sounds == [False]


class TestConsoleNotifier:
    """Console delivery used with --no-tray."""

    def test_bells(self):
        stream = io.StringIO()
        notifier = ConsoleNotifier(stream=stream)

        notifier.play_sound(True)
        notifier.play_sound(False)

        assert stream.getvalue() == "\a\a\a"

    def test_audio_disabled(self):
        stream = io.StringIO()
        ConsoleNotifier(audio_enabled=False, stream=stream).play_sound(True)
        assert stream.getvalue() == ""

    def test_errors_are_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="nfcuid"):
            ConsoleNotifier().notify("NFC System Error", "reader gone", "error")
        assert "reader gone" in caplog.text
