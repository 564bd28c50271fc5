"""
Pool-ownership (LP) unit ledger.

Each LP mint has an authority (the pool config that owns it), a decimals
value and a total supply. Holder balances are scoped per mint and tracked
separately from asset balances. Minting is the only way supply grows; burning
is not part of this ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from ..errors import UnauthorizedError
from .balances import Amount, PubKey

# Type alias
MintId = str


@dataclass(frozen=True)
class LPMint:
    address: MintId
    authority: PubKey
    decimals: int
    supply: Amount = 0

    def __post_init__(self) -> None:
        if not (0 <= self.decimals <= 18):
            raise ValueError(f"decimals must be in [0, 18]: {self.decimals}")
        if self.supply < 0:
            raise ValueError(f"LP supply must be non-negative: {self.supply}")


class LPLedger:
    """
    LP mints plus holder balances mapping (holder, mint) -> lp_amount.

    Notes:
    - supply(mint) always equals the sum of holder balances for that mint.
    - Zero balances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._mints: Dict[MintId, LPMint] = {}
        self._balances: Dict[Tuple[PubKey, MintId], Amount] = {}

    def create_mint(self, address: MintId, *, authority: PubKey, decimals: int) -> LPMint:
        if address in self._mints:
            raise ValueError(f"LP mint already exists: {address}")
        mint = LPMint(address=address, authority=authority, decimals=decimals)
        self._mints[address] = mint
        return mint

    def has_mint(self, address: MintId) -> bool:
        return address in self._mints

    def get_mint(self, address: MintId) -> LPMint:
        try:
            return self._mints[address]
        except KeyError:
            raise ValueError(f"unknown LP mint: {address}") from None

    def supply(self, address: MintId) -> Amount:
        return self.get_mint(address).supply

    def balance_of(self, holder: PubKey, mint: MintId) -> Amount:
        """Get LP balance for (holder, mint). Returns 0 if not found."""
        return self._balances.get((holder, mint), 0)

    def mint_to(self, mint: MintId, holder: PubKey, amount: Amount, *, authority: PubKey) -> None:
        """Mint `amount` new units to `holder`. Only the mint authority may do this."""
        if amount <= 0:
            raise ValueError(f"mint amount must be positive: {amount}")
        current = self.get_mint(mint)
        if authority != current.authority:
            raise UnauthorizedError(f"{authority} is not the mint authority of {mint}")
        self._mints[mint] = LPMint(
            address=current.address,
            authority=current.authority,
            decimals=current.decimals,
            supply=current.supply + amount,
        )
        self._balances[(holder, mint)] = self.balance_of(holder, mint) + amount

    def copy(self) -> "LPLedger":
        copied = LPLedger()
        copied._mints = dict(self._mints)
        copied._balances = dict(self._balances)
        return copied

    def get_all_balances(self) -> Dict[Tuple[PubKey, MintId], Amount]:
        """Return all LP balances."""
        return dict(self._balances)

    def get_all_mints(self) -> Dict[MintId, LPMint]:
        return dict(self._mints)

    def verify_supply(self) -> bool:
        """Verify each mint's supply equals the sum of its holder balances."""
        totals: Dict[MintId, Amount] = {m: 0 for m in self._mints}
        for (_holder, mint), amount in self._balances.items():
            if amount < 0 or mint not in totals:
                return False
            totals[mint] += amount
        return all(self._mints[m].supply == total for m, total in totals.items())

    def __repr__(self) -> str:
        return f"LPLedger({len(self._mints)} mints, {len(self._balances)} entries)"
