"""SNS profile lookup for the signed-in user."""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from .api import NetworkError, SpaceAPIClient
from .guard import UserSession

logger = logging.getLogger(__name__)

class ProfileLoader:
    """Loads and saves the SNS name linked to an email address."""

    def __init__(self, api: SpaceAPIClient):
        self.api = api
        self.profile: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.error: Optional[str] = None

    def check_existing(self, email: str) -> Optional[Dict[str, Any]]:
        """Fetch the user row for an email; None if there is none."""
        self.is_loading = True
        self.error = None

        try:
            self.profile = self.api.get_user(email)
        except NetworkError as e:
            self.profile = None
            if not e.not_found:
                logger.warning(f"SNS lookup for {email} failed: {e}")
                self.error = "Failed to check existing SNS ID"
        finally:
            self.is_loading = False

        return self.profile

    def save_sns_id(self, email: str, sns_id: str) -> Optional[Dict[str, Any]]:
        """Link an SNS name to an email, then reload the profile."""
        self.is_loading = True
        self.error = None

        try:
            self.api.upsert_user(email, sns_id)
        except NetworkError as e:
            logger.warning(f"Saving SNS ID for {email} failed: {e}")
            self.error = "Failed to save SNS ID"
            self.is_loading = False
            return None

        return self.check_existing(email)

    @staticmethod
    def has_sns_profile(user: Optional[Dict[str, Any]]) -> bool:
        return bool(user and user.get('sns_id'))

    def apply_to(self, session: UserSession) -> UserSession:
        """Copy the loaded profile onto a session.

        A missing profile means no SNS name and nothing staked.
        """
        profile = self.profile or {}
        session.has_profile = self.has_sns_profile(profile)

        try:
            session.stake = Decimal(str(profile.get('stake') or 0))
        except InvalidOperation:
            logger.warning(f"Ignoring unreadable stake {profile.get('stake')!r} for {session.email}")
            session.stake = Decimal('0')

        return session
