"""Entitlement guard for gated actions.

A user moves through four states: not logged in, logged in without an SNS
profile, profile without enough stake, and fully entitled. The guard checks
login, then profile, then stake, stops at the first requirement that is not
met and shows a notification naming it and the attempted action.
"""
import enum
import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

logger = logging.getLogger(__name__)

AUTH_NOTIFICATION_TIMEOUT = 5.0
VOTE_NOTIFICATION_TIMEOUT = 2.0

class AuthState(enum.Enum):
    UNAUTHENTICATED = 'unauthenticated'
    NO_PROFILE = 'authenticated-no-profile'
    NO_STAKE = 'authenticated-no-stake'
    ENTITLED = 'fully-entitled'

class GuardError(Exception):
    """Base class for unmet requirements"""
    state = AuthState.UNAUTHENTICATED

class NotConnected(GuardError):
    """No wallet session"""
    state = AuthState.UNAUTHENTICATED

class ProfileMissing(GuardError):
    """Logged in without an SNS profile"""
    state = AuthState.NO_PROFILE

class StakeInsufficient(GuardError):
    """Staked less than the required minimum"""
    state = AuthState.NO_STAKE

@dataclass
class UserSession:
    """What the guard knows about the current user."""
    connected: bool = False
    email: Optional[str] = None
    address: Optional[str] = None
    has_profile: bool = False
    stake: Decimal = Decimal('0')

class Notification:
    """Transient message that closes itself after a timeout."""

    def __init__(self, timeout: float = AUTH_NOTIFICATION_TIMEOUT):
        self.timeout = timeout
        self.message = ''
        self.is_visible = False
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def show(self, message: str) -> None:
        """Show a message, restarting the auto-close timer."""
        with self._lock:
            self._cancel_timer()
            self.message = message
            self.is_visible = True
            timer = threading.Timer(self.timeout, lambda: self._expire(timer))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def close(self) -> None:
        """Dismiss the message and cancel the timer."""
        with self._lock:
            self._cancel_timer()
            self.is_visible = False

    def _expire(self, timer: threading.Timer) -> None:
        with self._lock:
            # A newer message owns the notification now
            if self._timer is not timer:
                return
            self.is_visible = False
            self._timer = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

class EntitlementGuard:
    """Checks a session against an action's requirements."""

    def __init__(
        self,
        session: UserSession,
        require_profile: bool = False,
        require_stake: bool = False,
        min_stake_amount=None,
        notification: Optional[Notification] = None
    ):
        if min_stake_amount is None:
            from config import settings_conf
            min_stake_amount = settings_conf['min_stake_amount']

        self.session = session
        self.require_profile = require_profile
        self.require_stake = require_stake
        self.min_stake_amount = Decimal(str(min_stake_amount))
        self.notification = notification or Notification()

    @property
    def has_stake(self) -> bool:
        return Decimal(str(self.session.stake or 0)) >= self.min_stake_amount

    @property
    def state(self) -> AuthState:
        """The user's state, ignoring which checks this guard enforces."""
        if not self.session.connected:
            return AuthState.UNAUTHENTICATED
        if not self.session.has_profile:
            return AuthState.NO_PROFILE
        if not self.has_stake:
            return AuthState.NO_STAKE
        return AuthState.ENTITLED

    def check(self, action: str) -> Optional[GuardError]:
        """Return the first unmet requirement for an action, or None."""
        if not self.session.connected:
            return NotConnected(f"You need to be logged in to {action}")

        if self.require_profile and not self.session.has_profile:
            return ProfileMissing(f"You need to create your SNS profile before you can {action}")

        if self.require_stake and not self.has_stake:
            return StakeInsufficient(
                f"You need to stake at least {self.min_stake_amount} SOL to {action}"
            )

        return None

    def require_auth(self, action: str, callback: Optional[Callable[[], None]] = None) -> bool:
        """Run callback if the session meets every requirement.

        Returns:
            True if the action may proceed
        """
        failure = self.check(action)
        if failure is not None:
            logger.info(f"Blocked '{action}': {failure.state.value}")
            self.notification.show(str(failure))
            return False

        if callback:
            callback()
        return True
