"""Space page controller.

Loads a space, picks the section to open first and ties the chain actions
(voting on the space, staking) to the database updates that follow them.

The chain transaction and the database write are not one transaction. When
the chain half succeeds, the database half is retried a bounded number of
times with a fixed delay and then given up on with a log line; the chain
result is reported either way.

Vote totals are written as "count seen locally + 1". Two voters racing each
other can therefore lose an increment; there is no atomic increment endpoint.
"""
import logging
from decimal import Decimal
from typing import Optional

import backoff

from chain import ChainResult, ShopIdGenerator, StakeAction, VoteAction, Wallet
from chain.instructions import parse_contract_item_id, validate_stake_amount
from .api import NetworkError, SpaceAPIClient
from .guard import (
    AUTH_NOTIFICATION_TIMEOUT, VOTE_NOTIFICATION_TIMEOUT, EntitlementGuard,
    Notification, UserSession
)
from .profile import ProfileLoader
from .sections import SECTIONS, ShopSection, SpaceView

logger = logging.getLogger(__name__)

# First enabled feature -> section opened on load
FEATURE_SECTIONS = {
    'shops': 'explore',
    'lend': 'lend',
    'request': 'request',
    'hangout': 'hangout',
}
DEFAULT_SECTION = 'explore'

VOTE_SAVE_ATTEMPTS = 2

def default_section(features) -> str:
    if not features:
        return DEFAULT_SECTION
    return FEATURE_SECTIONS.get(features[0], DEFAULT_SECTION)

def _log_retry(details):
    logger.warning(
        f"{getattr(details['target'], '__name__', 'request')} attempt {details['tries']} failed, "
        f"retrying in {details['wait']:.1f}s"
    )

class SpacePage:
    """State and actions for a single space."""

    def __init__(
        self,
        api: SpaceAPIClient,
        space_id: str,
        session: UserSession,
        wallet: Optional[Wallet] = None,
        vote_action: Optional[VoteAction] = None,
        stake_action: Optional[StakeAction] = None,
        shop_id_generator: Optional[ShopIdGenerator] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None
    ):
        if retry_attempts is None or retry_delay is None:
            from config import settings_conf
            retry_attempts = retry_attempts or settings_conf['db_retry_attempts']
            retry_delay = settings_conf['db_retry_delay'] if retry_delay is None else retry_delay

        self.api = api
        self.space_id = space_id
        self.session = session
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

        self.vote_action = vote_action or (VoteAction(wallet) if wallet else None)
        self.stake_action = stake_action or (StakeAction(wallet) if wallet else None)
        self.shop_id_generator = shop_id_generator or (ShopIdGenerator(wallet) if wallet else None)

        self.space: Optional[SpaceView] = None
        self.stake_address: Optional[str] = None
        self.active_section = ''
        self.is_loading = False
        self.error: Optional[str] = None

        self.notification = Notification(AUTH_NOTIFICATION_TIMEOUT)
        self.vote_notification = Notification(VOTE_NOTIFICATION_TIMEOUT)
        self.vote_guard = EntitlementGuard(session, require_profile=True, notification=self.notification)
        self.stake_guard = EntitlementGuard(session, notification=self.notification)
        self.create_guard = EntitlementGuard(
            session, require_profile=True, require_stake=True, notification=self.notification
        )

    def _retrying(self, func, attempts: int, raise_on_giveup: bool = True):
        """Wrap func to retry NetworkError with a fixed delay."""
        return backoff.on_exception(
            backoff.constant,
            NetworkError,
            max_tries=attempts,
            interval=self.retry_delay,
            jitter=None,
            giveup=lambda e: e.not_found,
            on_backoff=_log_retry,
            logger=None,
            raise_on_giveup=raise_on_giveup
        )(func)

    def section(self, name: Optional[str] = None):
        """Build the section object for a tab, bound to this space."""
        section_class = SECTIONS[name or self.active_section or DEFAULT_SECTION]
        if section_class is ShopSection:
            return section_class(self.api, self.space_id, self.create_guard, self.shop_id_generator)
        return section_class(self.api, self.space_id, self.create_guard)

    def load_user(self) -> UserSession:
        """Refresh the session's SNS profile and stake from the server.

        A user with no row has no profile and nothing staked. A failed lookup
        leaves the session as it was.
        """
        if not self.session.connected or not self.session.email:
            self.session.has_profile = False
            self.session.stake = Decimal('0')
            return self.session

        loader = ProfileLoader(self.api)
        loader.check_existing(self.session.email)
        if loader.error:
            return self.session
        return loader.apply_to(self.session)

    def load(self) -> Optional[SpaceView]:
        """Fetch the space, retrying transient failures."""
        self.load_user()
        self.is_loading = True
        self.error = None

        try:
            row = self._retrying(self.api.get_space, self.retry_attempts)(self.space_id)
        except NetworkError as e:
            logger.error(f"Failed to load space {self.space_id}: {e}")
            self.space = None
            self.error = "Space not found" if e.not_found else "Failed to load space"
            return None
        finally:
            self.is_loading = False

        self.space = SpaceView.from_row(row)
        self.stake_address = self.space.stake_address
        self.active_section = default_section(self.space.features)
        return self.space

    def vote(self, vote_type: str) -> Optional[ChainResult]:
        """Vote on the space on chain, then record the new total.

        Returns:
            The chain result, or None if the vote never reached the chain
        """
        if self.space is None or not self.space.contract_id:
            return None

        if not self.vote_guard.require_auth("vote"):
            return None

        try:
            item_id = parse_contract_item_id(self.space.contract_id)
        except ValueError as e:
            logger.warning(f"Space {self.space_id} cannot be voted on: {e}")
            return None

        if self.vote_action is None:
            raise RuntimeError("No wallet connected to vote with")

        result = self.vote_action.vote(item_id, vote_type)
        self.vote_notification.show(result.message)

        if not result.success:
            return result

        column = 'upvotes' if vote_type == 'upvote' else 'downvotes'
        new_count = getattr(self.space, column) + 1
        setattr(self.space, column, new_count)
        self._save_vote_count(column, new_count)
        return result

    def _save_vote_count(self, column: str, count: int) -> None:
        patch = self._retrying(self.api.patch_space, VOTE_SAVE_ATTEMPTS, raise_on_giveup=False)
        if patch(self.space_id, **{column: count}) is None:
            logger.error(f"Failed to save {column}={count} for space {self.space_id}")

    def stake(self, amount) -> Optional[ChainResult]:
        """Stake SOL on chain, then add it to the user's recorded stake.

        Returns:
            The chain result, or None if the stake never reached the chain
        """
        if not self.stake_guard.require_auth("stake tokens"):
            return None

        is_valid, error = validate_stake_amount(amount)
        if not is_valid:
            self.notification.show(error)
            return None

        if self.stake_action is None:
            raise RuntimeError("No wallet connected to stake with")

        result = self.stake_action.stake(amount)
        if result.success:
            self._record_stake(Decimal(str(amount)))
        else:
            self.notification.show(result.message)
        return result

    def _record_stake(self, amount: Decimal) -> None:
        email = self.session.email
        if not email:
            logger.error("No user email available for stake update")
            return

        def add_stake():
            user = self.api.get_user(email)
            total = Decimal(str(user.get('stake') or 0)) + amount
            self.api.patch_user(email, stake=str(total))
            return total

        total = self._retrying(add_stake, self.retry_attempts, raise_on_giveup=False)()
        if total is None:
            logger.error(f"Staked {amount} SOL on chain but failed to record it for {email}")
            return

        logger.info(f"Recorded stake for {email}: {total} SOL")
        self.session.stake = total
        self.load_user()
