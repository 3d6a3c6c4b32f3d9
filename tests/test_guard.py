"""Tests for the entitlement guard and notifications."""

import time
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from client.guard import (
    AuthState, EntitlementGuard, NotConnected, Notification, ProfileMissing,
    StakeInsufficient, UserSession
)

ENTITLED = UserSession(connected=True, email="a@b.com", has_profile=True, stake=Decimal("1"))

@pytest.fixture
def notification():
    """Create a notification with a long timeout."""
    note = Notification(timeout=60)
    yield note
    note.close()

def test_not_logged_in(notification):
    """Test login is checked first and blocks the callback."""
    guard = EntitlementGuard(UserSession(), require_profile=True, require_stake=True, notification=notification)
    callback = MagicMock()

    assert guard.require_auth("add a shop", callback) is False
    callback.assert_not_called()
    assert notification.is_visible
    assert notification.message == "You need to be logged in to add a shop"
    assert isinstance(guard.check("add a shop"), NotConnected)
    assert guard.state is AuthState.UNAUTHENTICATED

def test_profile_checked_before_stake(notification):
    """Test a missing profile is reported even when stake is also missing."""
    session = UserSession(connected=True, email="a@b.com")
    guard = EntitlementGuard(session, require_profile=True, require_stake=True, notification=notification)

    assert guard.require_auth("vote") is False
    assert notification.message == "You need to create your SNS profile before you can vote"
    assert isinstance(guard.check("vote"), ProfileMissing)
    assert guard.state is AuthState.NO_PROFILE

def test_stake_threshold(notification):
    """Test an understaked user is blocked with the threshold named."""
    session = UserSession(connected=True, email="a@b.com", has_profile=True, stake=Decimal("0.0005"))
    guard = EntitlementGuard(session, require_stake=True, min_stake_amount="0.001", notification=notification)

    assert guard.require_auth("list an item") is False
    assert notification.message == "You need to stake at least 0.001 SOL to list an item"
    assert isinstance(guard.check("list an item"), StakeInsufficient)
    assert guard.state is AuthState.NO_STAKE

def test_unrequired_checks_are_skipped(notification):
    """Test profile and stake are only checked when required."""
    session = UserSession(connected=True, email="a@b.com")
    guard = EntitlementGuard(session, notification=notification)
    callback = MagicMock()

    assert guard.require_auth("stake tokens", callback) is True
    callback.assert_called_once_with()
    assert not notification.is_visible

def test_entitled_runs_callback_once(notification):
    """Test a fully entitled user runs the continuation exactly once."""
    guard = EntitlementGuard(ENTITLED, require_profile=True, require_stake=True, notification=notification)
    callback = MagicMock()

    assert guard.require_auth("vote", callback) is True
    callback.assert_called_once_with()
    assert guard.state is AuthState.ENTITLED

def test_default_threshold_from_settings():
    """Test the stake threshold defaults to the configured minimum."""
    guard = EntitlementGuard(ENTITLED)
    assert guard.min_stake_amount == Decimal("0.001")

def test_notification_auto_closes():
    """Test a notification closes itself after its timeout."""
    note = Notification(timeout=0.05)
    note.show("Hello")
    assert note.is_visible

    time.sleep(0.5)
    assert not note.is_visible

def test_notification_manual_close_cancels_timer(notification):
    """Test closing a notification dismisses it and stops its timer."""
    notification.show("Hello")
    timer = notification._timer

    notification.close()

    assert not notification.is_visible
    assert notification._timer is None
    assert timer.finished.is_set()

def test_notification_show_restarts_timer(notification):
    """Test showing a new message replaces the pending timer."""
    notification.show("First")
    first_timer = notification._timer

    notification.show("Second")

    assert notification.message == "Second"
    assert notification._timer is not first_timer
    assert first_timer.finished.is_set()

def test_stale_timer_does_not_hide_new_message(notification):
    """Test a timer that fired before a new message leaves it visible."""
    notification.show("First")
    stale = notification._timer

    notification.show("Second")
    notification._expire(stale)

    assert notification.is_visible
    assert notification.message == "Second"

    notification._expire(notification._timer)
    assert not notification.is_visible
