"""
Asset balance tracking with deterministic ordering.

Implements BalanceTable[Owner, AssetId] -> Amount. A reserve vault is simply
the row keyed by (pool config address, asset).
"""

from __future__ import annotations

from typing import Dict, Tuple

from ..errors import InsufficientBalanceError


# Type aliases
PubKey = str  # 32-byte hex string (0x...)
AssetId = str  # 32-byte hex string (0x...)
Amount = int  # Non-negative integer


class BalanceTable:
    """
    Balance table mapping (owner, asset) -> amount.

    Note: balances live in a plain dict. Callers that hash or serialize must
    sort keys explicitly (see `ammpool/state/snapshot.py`).
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[PubKey, AssetId], Amount] = {}

    def get(self, owner: PubKey, asset: AssetId) -> Amount:
        """Get balance for (owner, asset). Returns 0 if not found."""
        return self._balances.get((owner, asset), 0)

    def set(self, owner: PubKey, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (owner, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((owner, asset), None)
        else:
            self._balances[(owner, asset)] = amount

    def add(self, owner: PubKey, asset: AssetId, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            InsufficientBalanceError: If resulting balance would be negative
        """
        current = self.get(owner, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise InsufficientBalanceError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(owner, asset, new_balance)

    def subtract(self, owner: PubKey, asset: AssetId, delta: Amount) -> None:
        """Subtract a non-negative amount from a balance."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(owner, asset, -delta)

    def copy(self) -> "BalanceTable":
        copied = BalanceTable()
        copied._balances = dict(self._balances)
        return copied

    def get_all_balances(self) -> Dict[Tuple[PubKey, AssetId], Amount]:
        """Return all non-zero balances."""
        return dict(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
