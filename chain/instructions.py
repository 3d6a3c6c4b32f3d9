"""Instruction builders for the voting, item and staking programs.

The programs themselves are external; this module only knows their ids,
seeds, instruction discriminators and account layouts. Integer parameters
are encoded as little-endian u64.
"""
import hashlib
import struct
from decimal import Decimal, InvalidOperation
from typing import List, Sequence, Tuple, Union

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction

# Voting program; also owns the item accounts behind shop ids
VOTE_PROGRAM_ID = Pubkey.from_string("5zQieQbJebHJdxpURBSswrVbHWtKXZHx6EF1gEzNrXZp")
STAKE_PROGRAM_ID = Pubkey.from_string("HiTfqcaU6XwKVYcudqCLAZKzCFjCyXQxZ1LQkn2PcEks")

ITEM_SEED = b"item"
VOTE_TRACKER_SEED = b"vote_tracker"
VAULT_SEED = b"vault"

UPVOTE_DISCRIMINATOR = bytes([42, 0, 164, 246, 91, 159, 253, 153])
DOWNVOTE_DISCRIMINATOR = bytes([8, 204, 29, 166, 78, 34, 66, 169])
INITIALIZE_ITEM_DISCRIMINATOR = bytes([56, 205, 178, 170, 150, 105, 174, 27])

VOTE_TYPES = ('upvote', 'downvote')

LAMPORTS_PER_SOL = 1_000_000_000
MIN_STAKE_SOL = Decimal('0.0001')

def u64_le(value: int) -> bytes:
    return struct.pack('<Q', value)

def anchor_discriminator(name: str) -> bytes:
    """First 8 bytes of sha256("global:<name>")."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]

def item_pda(item_id: int) -> Pubkey:
    pda, _ = Pubkey.find_program_address([ITEM_SEED, u64_le(item_id)], VOTE_PROGRAM_ID)
    return pda

def vote_tracker_pda(item: Pubkey, voter: Pubkey) -> Pubkey:
    pda, _ = Pubkey.find_program_address([VOTE_TRACKER_SEED, bytes(item), bytes(voter)], VOTE_PROGRAM_ID)
    return pda

def vault_pda(owner: Pubkey) -> Pubkey:
    pda, _ = Pubkey.find_program_address([VAULT_SEED, bytes(owner)], STAKE_PROGRAM_ID)
    return pda

def build_vote_instruction(item_id: int, voter: Pubkey, vote_type: str) -> Instruction:
    """Build an upvote or downvote instruction for an item.

    Raises:
        ValueError: If vote_type is not 'upvote' or 'downvote'
    """
    if vote_type not in VOTE_TYPES:
        raise ValueError("Vote type must be 'upvote' or 'downvote'")

    item = item_pda(item_id)
    discriminator = UPVOTE_DISCRIMINATOR if vote_type == 'upvote' else DOWNVOTE_DISCRIMINATOR

    return Instruction(
        VOTE_PROGRAM_ID,
        discriminator + u64_le(item_id),
        [
            AccountMeta(item, is_signer=False, is_writable=True),
            AccountMeta(vote_tracker_pda(item, voter), is_signer=False, is_writable=True),
            AccountMeta(voter, is_signer=True, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ]
    )

def build_initialize_item_instruction(item_id: int, owner: Pubkey) -> Instruction:
    """Build the instruction that creates an item account."""
    return Instruction(
        VOTE_PROGRAM_ID,
        INITIALIZE_ITEM_DISCRIMINATOR + u64_le(item_id),
        [
            AccountMeta(item_pda(item_id), is_signer=False, is_writable=True),
            AccountMeta(owner, is_signer=True, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ]
    )

def to_lamports(amount: Union[Decimal, float, str]) -> int:
    return int(Decimal(str(amount)) * LAMPORTS_PER_SOL)

def build_stake_instructions(owner: Pubkey, amount: Union[Decimal, float, str], vault_exists: bool) -> List[Instruction]:
    """Build the deposit instruction, preceded by init_vault for a new vault."""
    vault = vault_pda(owner)
    accounts = [
        AccountMeta(owner, is_signer=True, is_writable=True),
        AccountMeta(vault, is_signer=False, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]

    instructions = []
    if not vault_exists:
        instructions.append(Instruction(STAKE_PROGRAM_ID, anchor_discriminator("init_vault"), accounts))

    instructions.append(Instruction(
        STAKE_PROGRAM_ID,
        anchor_discriminator("deposit") + u64_le(to_lamports(amount)),
        accounts
    ))
    return instructions

def build_transaction(instructions: Sequence[Instruction], payer: Pubkey, blockhash: str) -> Transaction:
    """Assemble an unsigned transaction for the wallet to sign."""
    message = Message.new_with_blockhash(list(instructions), payer, Hash.from_string(blockhash))
    return Transaction.new_unsigned(message)

def validate_stake_amount(amount) -> Tuple[bool, str]:
    """Check a stake amount entered by a user.

    Returns:
        Tuple of (is_valid, error message or '')
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return False, "Please enter a valid number"

    if not value.is_finite():
        return False, "Please enter a valid number"
    if value < MIN_STAKE_SOL:
        return False, f"Minimum stake amount is {MIN_STAKE_SOL} SOL"
    return True, ''

def parse_contract_item_id(contract_id: str) -> int:
    """Extract the numeric item id from "<program>:<itemId>".

    Raises:
        ValueError: If the id is not in that form
    """
    if not contract_id or ':' not in contract_id:
        raise ValueError(f"Invalid contract item id: {contract_id!r}")

    _, item_id = contract_id.rsplit(':', 1)
    if not item_id.isdigit():
        raise ValueError(f"Invalid contract item id: {contract_id!r}")
    return int(item_id)

def format_contract_item_id(item_id: int, program_id: Pubkey = VOTE_PROGRAM_ID) -> str:
    return f"{program_id}:{item_id}"
