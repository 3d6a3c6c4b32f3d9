"""On-chain actions: staking, voting and shop id generation.

Example usage:
    from chain import VoteAction

    result = VoteAction(wallet).vote(42, 'upvote')
    if not result.success:
        print(result.message)
"""
from .actions import (
    ChainAction, ChainError, ChainErrorCategory, ChainResult, ShopIdGenerator,
    StakeAction, VoteAction, Wallet, categorize_chain_error
)
from .rpc import ChainRPCError, NodeConnectionError, RPCError, SolanaRPC

__all__ = [
    'ChainAction',
    'ChainError',
    'ChainErrorCategory',
    'ChainResult',
    'ShopIdGenerator',
    'StakeAction',
    'VoteAction',
    'Wallet',
    'categorize_chain_error',
    'SolanaRPC',
    'RPCError',
    'NodeConnectionError',
    'ChainRPCError',
]
