"""Chain actions with confirmation polling.

Each action builds its instructions, fetches a fresh blockhash right before
submission, hands the transaction to the wallet and then polls the signature
status on a fixed interval. A confirmed status is success, a failed status or
a recognised error message is a terminal failure, and running out of attempts
is a timeout: the transaction may still land after the caller gave up.

Once the wallet has the transaction nothing here can revoke it.
"""
import enum
import logging
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from .instructions import (
    VOTE_PROGRAM_ID, VOTE_TYPES, build_initialize_item_instruction,
    build_stake_instructions, build_transaction, build_vote_instruction,
    format_contract_item_id, item_pda, validate_stake_amount, vault_pda
)
from .rpc import RPCError, SolanaRPC

logger = logging.getLogger(__name__)

class ChainErrorCategory(enum.Enum):
    ALREADY_ACTIONED = 'already_actioned'
    INSUFFICIENT_FUNDS = 'insufficient_funds'
    USER_REJECTED = 'user_rejected'
    EXPIRED = 'expired'
    TIMEOUT = 'timeout'
    UNKNOWN = 'unknown'

# Substring -> (category, user-facing message), checked in order
ERROR_PATTERNS: List[Tuple[str, ChainErrorCategory, str]] = [
    ("AlreadyVoted", ChainErrorCategory.ALREADY_ACTIONED, "Already voted"),
    ("Error Number: 6000", ChainErrorCategory.ALREADY_ACTIONED, "Already voted"),
    ("User has already voted", ChainErrorCategory.ALREADY_ACTIONED, "Already voted"),
    ("custom program error: 0x1770", ChainErrorCategory.ALREADY_ACTIONED, "Already voted"),
    # Signature status form of the same program error
    ("{'Custom': 6000}", ChainErrorCategory.ALREADY_ACTIONED, "Already voted"),
    ("insufficient funds", ChainErrorCategory.INSUFFICIENT_FUNDS, "Insufficient funds for transaction"),
    ("User rejected", ChainErrorCategory.USER_REJECTED, "Transaction was rejected"),
    ("Blockhash not found", ChainErrorCategory.EXPIRED, "Transaction expired. Please try again."),
]

def categorize_chain_error(text: str, default: str = "Transaction failed") -> Tuple[ChainErrorCategory, str]:
    """Translate a raw wallet or cluster error into a category and message."""
    text = text or ''
    for pattern, category, message in ERROR_PATTERNS:
        if pattern in text:
            return category, message
    return ChainErrorCategory.UNKNOWN, default

class ChainError(Exception):
    """Raised by ChainResult.raise_for_status for a failed action."""

    def __init__(self, message: str, category: ChainErrorCategory = ChainErrorCategory.UNKNOWN):
        self.category = category
        super().__init__(message)

@dataclass
class ChainResult:
    """Outcome of a chain action."""
    success: bool
    message: str
    signature: Optional[str] = None
    error: Optional[str] = None
    category: Optional[ChainErrorCategory] = None
    shop_id: Optional[str] = None

    @property
    def timed_out(self) -> bool:
        return self.category is ChainErrorCategory.TIMEOUT

    def raise_for_status(self) -> None:
        if not self.success:
            raise ChainError(self.message, self.category or ChainErrorCategory.UNKNOWN)

class Wallet(ABC):
    """Connected wallet that signs and submits transactions."""

    @property
    @abstractmethod
    def accounts(self) -> List[str]:
        """Base58 addresses of the connected accounts, empty when disconnected."""

    @abstractmethod
    def sign_and_send(self, transaction: Transaction) -> Optional[str]:
        """Sign and submit a transaction, returning its signature."""

class ChainAction:
    """Base class for wallet-submitted actions."""
    max_attempts = 20
    poll_interval = 0.5
    failure_message = "Transaction failed"
    not_connected_error = "Please connect your wallet"
    timeout_result = ("Transaction timeout", "No response from blockchain")

    def __init__(
        self,
        wallet: Wallet,
        rpc: Optional[SolanaRPC] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None
    ):
        self.wallet = wallet
        self.rpc = rpc or SolanaRPC()
        if poll_interval is not None:
            self.poll_interval = poll_interval
        if max_attempts is not None:
            self.max_attempts = max_attempts

    def owner(self) -> Optional[Pubkey]:
        """Public key of the first connected account, or None."""
        accounts = self.wallet.accounts
        if not accounts:
            return None
        return Pubkey.from_string(accounts[0])

    def not_connected(self) -> ChainResult:
        return ChainResult(
            success=False,
            message="No Solana account connected",
            error=self.not_connected_error
        )

    def failure(self, error: str) -> ChainResult:
        category, message = categorize_chain_error(error, self.failure_message)
        logger.warning(f"{type(self).__name__} failed ({category.value}): {error}")
        return ChainResult(success=False, message=message, error=error, category=category)

    def submit(self, instructions: Sequence[Instruction], payer: Pubkey) -> ChainResult:
        """Sign, send and confirm a set of instructions."""
        try:
            blockhash = self.rpc.latest_blockhash()
            transaction = build_transaction(instructions, payer, blockhash)
            signature = self.wallet.sign_and_send(transaction)
        except Exception as e:
            return self.failure(str(e))

        if not signature:
            return ChainResult(
                success=False,
                message="Transaction failed to send",
                error="No signature returned from wallet"
            )

        logger.info(f"{type(self).__name__} submitted {signature}")
        return self.confirm(str(signature))

    def confirm(self, signature: str) -> ChainResult:
        """Poll the signature status until confirmed, failed or out of attempts."""
        for attempt in range(1, self.max_attempts + 1):
            time.sleep(self.poll_interval)

            try:
                status = self.rpc.signature_status(signature)
            except RPCError as e:
                logger.debug(f"Status check {attempt}/{self.max_attempts} failed: {e}")
                continue

            if not status:
                continue

            if status.get('err'):
                result = self.failure(str(status['err']))
                result.signature = signature
                return result

            if status.get('confirmationStatus'):
                logger.info(f"{signature} {status['confirmationStatus']} after {attempt} checks")
                return ChainResult(success=True, message="Transaction confirmed", signature=signature)

        message, error = self.timeout_result
        logger.warning(f"{signature} unconfirmed after {self.max_attempts} checks")
        return ChainResult(
            success=False,
            message=message,
            signature=signature,
            error=error,
            category=ChainErrorCategory.TIMEOUT
        )

class VoteAction(ChainAction):
    """Up- or downvote an item on chain."""
    max_attempts = 20
    failure_message = "Failed to vote"
    not_connected_error = "Please connect your wallet to vote"

    def vote(self, item_id: int, vote_type: str) -> ChainResult:
        if vote_type not in VOTE_TYPES:
            return ChainResult(
                success=False,
                message="Invalid vote type",
                error="Vote type must be 'upvote' or 'downvote'"
            )

        voter = self.owner()
        if voter is None:
            return self.not_connected()

        result = self.submit([build_vote_instruction(item_id, voter, vote_type)], voter)
        if result.success:
            result.message = f"Successfully {vote_type}d item {item_id}"
        return result

class StakeAction(ChainAction):
    """Deposit SOL into the caller's staking vault."""
    max_attempts = 30
    failure_message = "Failed to stake"
    not_connected_error = "Please connect your wallet to stake"

    def stake(self, amount) -> ChainResult:
        is_valid, error = validate_stake_amount(amount)
        if not is_valid:
            return ChainResult(success=False, message=error, error=error)

        owner = self.owner()
        if owner is None:
            return self.not_connected()

        try:
            vault_exists = self.rpc.account_exists(str(vault_pda(owner)))
        except RPCError as e:
            return self.failure(str(e))

        result = self.submit(build_stake_instructions(owner, amount, vault_exists), owner)
        if result.success:
            result.message = f"Successfully staked {amount} SOL"
        return result

class ShopIdGenerator(ChainAction):
    """Reserve a fresh item account and return its shop id."""
    max_attempts = 30
    failure_message = "Failed to sign transaction"
    not_connected_error = "Please connect your wallet to generate shop ID"
    timeout_result = ("Transaction timeout - please check Solana Explorer", "Transaction may still be processing")
    id_range = 1_000_000

    def generate(self, item_id: Optional[int] = None) -> ChainResult:
        owner = self.owner()
        if owner is None:
            return self.not_connected()

        if item_id is None:
            item_id = random.randrange(self.id_range)

        try:
            taken = self.rpc.account_exists(str(item_pda(item_id)))
        except RPCError as e:
            logger.debug(f"Item lookup failed, assuming {item_id} is free: {e}")
            taken = False

        if taken:
            return ChainResult(
                success=False,
                message="Item already exists, please try again",
                error="Generated ID already exists on blockchain"
            )

        result = self.submit([build_initialize_item_instruction(item_id, owner)], owner)
        if result.success:
            result.shop_id = format_contract_item_id(item_id, VOTE_PROGRAM_ID)
            result.message = f"Successfully generated shop ID: {result.shop_id}"
        return result
