"""
State management for ammpool
"""

from .balances import BalanceTable
from .custody import Changeset, TokenCustody
from .lp import LPLedger, LPMint
from .pools import PoolConfig
from .snapshot import PoolSnapshot, pool_snapshot

__all__ = [
    "BalanceTable",
    "Changeset",
    "TokenCustody",
    "LPLedger",
    "LPMint",
    "PoolConfig",
    "PoolSnapshot",
    "pool_snapshot",
]
